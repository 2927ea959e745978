"""
Database models for the telehealth backend.

The messaging flow revolves around :class:`Conversation` (one patient,
one doctor) and its :class:`Message` thread.  :class:`Notification`
rows are written as a side effect of sending.  Appointments are only
read here: the conversation listing uses them to offer "start
conversation" entries for counterparts without a thread yet.
"""
from __future__ import annotations

import uuid

from django.contrib.auth.models import AbstractUser
from django.db import models
from django.utils import timezone


class User(AbstractUser):
    """Custom user model with a telehealth role.

    Identifiers are UUIDs so that counterpart ids supplied by clients can
    be validated syntactically before touching the database.
    """
    ROLE_PATIENT = 'patient'
    ROLE_DOCTOR = 'doctor'
    ROLE_ADMIN = 'admin'
    ROLE_CHOICES = [
        (ROLE_PATIENT, 'Patient'),
        (ROLE_DOCTOR, 'Doctor'),
        (ROLE_ADMIN, 'Administrator'),
    ]
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    role = models.CharField(max_length=10, choices=ROLE_CHOICES, default=ROLE_PATIENT, db_index=True)

    @property
    def display_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip() or self.username

    def __str__(self) -> str:
        return f"{self.username} ({self.role})"


class DoctorProfile(models.Model):
    """Doctor specific information shown next to conversations."""
    user = models.OneToOneField(User, on_delete=models.CASCADE, related_name='doctor_profile')
    specialization = models.CharField(max_length=255, blank=True)

    def __str__(self) -> str:
        return f"{self.user.username} ({self.specialization})"


class Appointment(models.Model):
    """A booked visit between a patient and a doctor.

    Booking happens elsewhere; messaging only reads non-cancelled
    appointments to find counterparts worth contacting.
    """
    STATUS_SCHEDULED = 'scheduled'
    STATUS_CONFIRMED = 'confirmed'
    STATUS_COMPLETED = 'completed'
    STATUS_CANCELLED = 'cancelled'
    STATUS_CHOICES = (
        (STATUS_SCHEDULED, 'scheduled'),
        (STATUS_CONFIRMED, 'confirmed'),
        (STATUS_COMPLETED, 'completed'),
        (STATUS_CANCELLED, 'cancelled'),
    )

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    patient = models.ForeignKey(User, on_delete=models.CASCADE, related_name='patient_appointments')
    doctor = models.ForeignKey(User, on_delete=models.CASCADE, related_name='doctor_appointments')
    scheduled_at = models.DateTimeField()
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_SCHEDULED, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [
            models.Index(fields=['patient', 'scheduled_at'], name='clinic_appo_patient_3c1d2a_idx'),
            models.Index(fields=['doctor', 'scheduled_at'], name='clinic_appo_doctor__8f0b6e_idx'),
        ]

    def __str__(self):
        return f"appt p={self.patient_id} d={self.doctor_id} @ {self.scheduled_at:%F %T}"


# ---------------------------------------------------------------------------
# Conversations & Messaging
# ---------------------------------------------------------------------------

class Conversation(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    patient = models.ForeignKey(User, on_delete=models.CASCADE, related_name='patient_conversations')
    doctor = models.ForeignKey(User, on_delete=models.CASCADE, related_name='doctor_conversations')
    created_at = models.DateTimeField(auto_now_add=True)
    last_message_at = models.DateTimeField(default=timezone.now)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=['patient', 'doctor'], name='unique_conversation_pair'),
        ]
        indexes = [
            models.Index(fields=['patient', 'last_message_at'], name='clinic_conv_patient_5e7a41_idx'),
            models.Index(fields=['doctor', 'last_message_at'], name='clinic_conv_doctor__2b9c0d_idx'),
        ]

    def is_participant(self, user) -> bool:
        user_id = getattr(user, 'id', None)
        return user_id is not None and user_id in (self.patient_id, self.doctor_id)

    def counterpart_id(self, user):
        return self.doctor_id if user.id == self.patient_id else self.patient_id

    def __str__(self):
        return f"conversation p={self.patient_id} d={self.doctor_id}"


class Message(models.Model):
    conversation = models.ForeignKey(Conversation, on_delete=models.CASCADE, related_name='messages')
    sender = models.ForeignKey(User, on_delete=models.CASCADE, related_name='sent_messages')
    content = models.TextField()
    is_read = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [
            models.Index(fields=['conversation', 'created_at'], name='clinic_mess_convers_7d4e19_idx'),
            models.Index(fields=['conversation', 'is_read'], name='clinic_mess_convers_a61f3c_idx'),
        ]

    def __str__(self):
        return f"msg {self.id} conversation={self.conversation_id}"


class Notification(models.Model):
    """A per-user notice created when something targets that user."""
    TYPE_MESSAGE = 'message'
    TYPE_APPOINTMENT = 'appointment'
    TYPE_PRESCRIPTION = 'prescription'
    TYPE_REPORT = 'report'
    TYPE_SYSTEM = 'system'
    TYPE_CHOICES = (
        (TYPE_MESSAGE, 'message'),
        (TYPE_APPOINTMENT, 'appointment'),
        (TYPE_PRESCRIPTION, 'prescription'),
        (TYPE_REPORT, 'report'),
        (TYPE_SYSTEM, 'system'),
    )

    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='notifications')
    title = models.CharField(max_length=255)
    message = models.TextField(blank=True)
    type = models.CharField(max_length=20, choices=TYPE_CHOICES, default=TYPE_SYSTEM)
    action_url = models.CharField(max_length=512, blank=True)
    is_read = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [
            models.Index(fields=['user', 'is_read', 'created_at'], name='clinic_noti_user_id_0c8b52_idx'),
        ]

    def __str__(self):
        return f"notification {self.type} -> {self.user_id}"
