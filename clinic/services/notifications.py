from typing import Iterable, Optional

from clinic.models import Notification


def create_notification(*, user_id, title: str, message: str = '', type: str = Notification.TYPE_SYSTEM, action_url: str = '') -> Notification:
    return Notification.objects.create(
        user_id=user_id,
        title=title,
        message=message,
        type=type,
        action_url=action_url,
    )

def format_notification(n: Notification) -> dict:
    return {
        "id": n.id,
        "title": n.title,
        "message": n.message,
        "type": n.type,
        "action_url": n.action_url,
        "is_read": n.is_read,
        "created_at": n.created_at.isoformat(),
    }

def list_notifications(user, *, unread_only: bool = False, limit: int = 50) -> tuple[list[dict], int]:
    qs = Notification.objects.filter(user_id=user.id)
    unread = qs.filter(is_read=False).count()
    if unread_only:
        qs = qs.filter(is_read=False)
    items = qs.order_by('-created_at', '-id')[:limit]
    return [format_notification(n) for n in items], unread

def mark_notifications_read(user, ids: Optional[Iterable[int]] = None) -> int:
    """Mark the given notifications (or all of them) read for ``user``."""
    qs = Notification.objects.filter(user_id=user.id, is_read=False)
    if ids is not None:
        qs = qs.filter(id__in=list(ids))
    return qs.update(is_read=True)
