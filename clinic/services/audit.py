import logging
from typing import Optional, Any, Dict

from django.contrib.auth import get_user_model
from django.db import DatabaseError, transaction

from clinic.models import AuditEvent

User = get_user_model()
logger = logging.getLogger(__name__)


def log_action(*, user: Optional[User], action: str, object_type: Optional[str]=None, object_id: Optional[int]=None, detail: Optional[Dict[str, Any]]=None) -> Optional[AuditEvent]:
    """Record an audit event.  A failed write is logged and never aborts the caller."""
    try:
        with transaction.atomic():
            return AuditEvent.objects.create(
                user=user if isinstance(user, User) and getattr(user, 'pk', None) else None,
                action=action,
                object_type=object_type, object_id=object_id,
                detail=detail or {},
            )
    except DatabaseError:
        logger.exception('audit write failed: %s %s#%s', action, object_type, object_id)
        return None
