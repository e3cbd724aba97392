"""
In-app notifications.

Workflow services call :func:`notify` while their transaction is open.
The row is written from a post-commit hook, so a rolled back transition
never leaves a notification behind and a failed notification never rolls
back the transition that triggered it.
"""
import logging
from typing import Optional

from django.db import transaction

from clinic.models import Notification, User

logger = logging.getLogger(__name__)


def create_notification(user_id: int, title: str, message: str, notification_type: str = 'general',
                        reference_id: Optional[object] = None) -> Notification:
    return Notification.objects.create(
        user_id=user_id,
        title=title,
        message=message,
        notification_type=notification_type,
        reference_id='' if reference_id is None else str(reference_id),
    )


def notify(user, title: str, message: str, notification_type: str = 'general',
           reference_id: Optional[object] = None) -> None:
    """Queue a notification for ``user`` (a User or a user id) after commit."""
    user_id = user.pk if isinstance(user, User) else user
    if not user_id:
        return

    def _deliver():
        try:
            create_notification(user_id, title, message, notification_type, reference_id)
        except Exception:
            logger.exception('notification to user %s failed: %s', user_id, title)

    transaction.on_commit(_deliver)


def mark_read(user: User, notification_id: int) -> Optional[Notification]:
    n = Notification.objects.filter(pk=notification_id, user=user).first()
    if n is None:
        return None
    if not n.is_read:
        n.is_read = True
        n.save(update_fields=['is_read'])
    return n


def mark_all_read(user: User) -> int:
    return Notification.objects.filter(user=user, is_read=False).update(is_read=True)


def unread_count(user: User) -> int:
    return Notification.objects.filter(user=user, is_read=False).count()
