import html

from django.conf import settings
from django.contrib.auth import get_user_model
from django.db import transaction
from django.utils import timezone
from loguru import logger
import bleach

from clinic.models import Conversation, Message, Notification
from clinic.services import notifications

User = get_user_model()

def check_conversation_access(user, conversation: Conversation) -> bool:
    return conversation.is_participant(user)

def format_message(m: Message) -> dict:
    sender = m.sender
    return {
        "id": m.id,
        "content": m.content,
        "is_read": m.is_read,
        "created_at": m.created_at.isoformat(),
        "sender_id": str(sender.id),
        "sender_name": sender.display_name,
        "sender_role": sender.role,
    }

@transaction.atomic
def list_messages(user, conversation: Conversation) -> list[dict]:
    """Mark the other participant's messages read, then return the thread oldest first."""
    if not check_conversation_access(user, conversation):
        raise PermissionError('Access denied')

    Message.objects.filter(conversation=conversation, is_read=False).exclude(sender_id=user.id).update(is_read=True)

    msgs = Message.objects.filter(conversation=conversation).select_related('sender').order_by('created_at', 'id')
    return [format_message(m) for m in msgs]

def _strip_markup(text: str) -> str:
    """Drop HTML tags but keep ``<``, ``&`` and ``>`` in ordinary text as typed."""
    # entity-encoded tags resurface after unescaping, so clean until stable
    for _ in range(3):
        cleaned = html.unescape(bleach.clean(text, tags=set(), strip=True))
        if cleaned == text:
            break
        text = cleaned
    return text.strip()

@transaction.atomic
def send_message(conversation: Conversation, sender, content: str) -> Message:
    if not check_conversation_access(sender, conversation):
        raise PermissionError('Access denied')

    if not isinstance(content, str):
        raise ValueError('Message content must be a string')
    content = _strip_markup(content.strip())
    if not content:
        raise ValueError('Message content is required')
    if len(content) > settings.MESSAGE_MAX_LENGTH:
        raise ValueError(f'Message content exceeds {settings.MESSAGE_MAX_LENGTH} characters')

    msg = Message.objects.create(conversation=conversation, sender=sender, content=content)

    conversation.last_message_at = timezone.now()
    conversation.save(update_fields=['last_message_at'])

    _notify_recipient(conversation, sender, msg)
    return msg

def _notify_recipient(conversation: Conversation, sender, msg: Message) -> None:
    recipient_id = conversation.counterpart_id(sender)
    recipient_role = User.ROLE_DOCTOR if recipient_id == conversation.doctor_id else User.ROLE_PATIENT
    try:
        # savepoint: a failed insert must not poison the message transaction
        with transaction.atomic():
            notifications.create_notification(
                user_id=recipient_id,
                title='New Message',
                message=msg.content[:settings.NOTIFICATION_PREVIEW_LENGTH],
                type=Notification.TYPE_MESSAGE,
                action_url=f'/{recipient_role}/messages',
            )
    except Exception:
        logger.exception("notification for message {} in conversation {} failed", msg.id, conversation.id)
