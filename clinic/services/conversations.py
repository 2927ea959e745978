from typing import Optional
from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.db.models import Count, OuterRef, Q, Subquery
from loguru import logger

from clinic.models import Appointment, Conversation, Message

User = get_user_model()

# caller role -> (role the counterpart must have, request key naming it)
COUNTERPART = {
    User.ROLE_PATIENT: (User.ROLE_DOCTOR, 'doctorId'),
    User.ROLE_DOCTOR: (User.ROLE_PATIENT, 'patientId'),
}


class CounterpartNotFound(LookupError):
    pass


def _is_patient(user) -> bool:
    return getattr(user, 'role', '') == User.ROLE_PATIENT

def _is_doctor(user) -> bool:
    return getattr(user, 'role', '') == User.ROLE_DOCTOR

def counterpart_key(user) -> Optional[str]:
    """Request body key naming the counterpart, ``None`` if the role may not converse."""
    entry = COUNTERPART.get(getattr(user, 'role', ''))
    return entry[1] if entry else None

def format_conversation(c: Conversation) -> dict:
    return {
        "id": str(c.id),
        "created_at": c.created_at.isoformat() if c.created_at else None,
        "last_message_at": c.last_message_at.isoformat() if c.last_message_at else None,
    }

def resolve_conversation(request_user, counterpart_id) -> tuple[Conversation, bool]:
    """Return the conversation between ``request_user`` and the counterpart, creating it once.

    Raises ``PermissionError`` for roles that cannot hold conversations,
    ``CounterpartNotFound`` when the id does not resolve and ``ValueError``
    when the id is malformed or the counterpart does not have the
    complementary role.
    """
    entry = COUNTERPART.get(getattr(request_user, 'role', ''))
    if entry is None:
        raise PermissionError('Invalid user role')
    expected_role, _ = entry

    try:
        other = User.objects.only('id', 'role').get(id=counterpart_id)
    except ValidationError:
        raise ValueError(f'Invalid {expected_role} ID')
    except User.DoesNotExist:
        raise CounterpartNotFound('User not found')
    if other.role != expected_role:
        raise ValueError(f'Invalid {expected_role} ID')

    if _is_patient(request_user):
        patient, doctor = request_user, other
    else:
        patient, doctor = other, request_user

    # unique (patient, doctor) constraint; get_or_create re-reads after a lost insert race
    conversation, created = Conversation.objects.get_or_create(patient=patient, doctor=doctor)
    if created:
        logger.info("conversation {} opened p={} d={}", conversation.id, patient.id, doctor.id)
    return conversation, created

def _other_party_fields(user, c: Conversation) -> dict:
    if c.patient_id == user.id:
        other = c.doctor
        profile = getattr(other, 'doctor_profile', None)
        return {
            "other_user_id": str(other.id),
            "other_user_name": other.display_name,
            "other_user_role": User.ROLE_DOCTOR,
            "specialization": getattr(profile, 'specialization', None),
        }
    other = c.patient
    return {
        "other_user_id": str(other.id),
        "other_user_name": other.display_name,
        "other_user_role": User.ROLE_PATIENT,
        "specialization": None,
    }

def list_conversations(user) -> list[dict]:
    """Conversations the user takes part in, followed by virtual ones.

    Real entries carry the newest message and the number of unread
    messages sent by the other participant.  Virtual entries stand for
    appointment counterparts without a conversation row yet.
    """
    newest = Message.objects.filter(conversation=OuterRef('pk')).order_by('-created_at', '-id')
    qs = (
        Conversation.objects.filter(Q(patient_id=user.id) | Q(doctor_id=user.id))
        .select_related('patient', 'doctor', 'doctor__doctor_profile')
        .annotate(
            last_message=Subquery(newest.values('content')[:1]),
            newest_message_at=Subquery(newest.values('created_at')[:1]),
            unread_count=Count('messages', filter=Q(messages__is_read=False) & ~Q(messages__sender_id=user.id)),
        )
        .order_by('-last_message_at', '-created_at')
    )

    data = []
    for c in qs:
        entry = {
            "id": str(c.id),
            "created_at": c.created_at.isoformat(),
            "updated_at": c.last_message_at.isoformat() if c.last_message_at else None,
            **_other_party_fields(user, c),
            "last_message": c.last_message,
            "last_message_at": c.newest_message_at.isoformat() if c.newest_message_at else None,
            "unread_count": c.unread_count,
        }
        data.append(entry)

    return data + list_virtual_conversations(user)


def list_virtual_conversations(user) -> list[dict]:
    if _is_patient(user):
        appts = Appointment.objects.filter(patient_id=user.id).exclude(
            doctor_id__in=Conversation.objects.filter(patient_id=user.id).values('doctor_id')
        ).select_related('doctor', 'doctor__doctor_profile')
        counterpart_field, role = 'doctor', User.ROLE_DOCTOR
    elif _is_doctor(user):
        appts = Appointment.objects.filter(doctor_id=user.id).exclude(
            patient_id__in=Conversation.objects.filter(doctor_id=user.id).values('patient_id')
        ).select_related('patient')
        counterpart_field, role = 'patient', User.ROLE_PATIENT
    else:
        return []

    appts = appts.exclude(status=Appointment.STATUS_CANCELLED).order_by('-scheduled_at')

    seen = set()
    data = []
    for a in appts:
        other = getattr(a, counterpart_field)
        if other.id in seen:
            continue
        seen.add(other.id)
        profile = getattr(other, 'doctor_profile', None) if role == User.ROLE_DOCTOR else None
        data.append({
            "id": None,
            "created_at": None,
            "updated_at": None,
            "other_user_id": str(other.id),
            "other_user_name": other.display_name,
            "other_user_role": role,
            "specialization": getattr(profile, 'specialization', None),
            "last_message": None,
            "last_message_at": None,
            "unread_count": 0,
        })
    return data
