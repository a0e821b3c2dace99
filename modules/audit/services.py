# modules/audit/services.py
from __future__ import annotations

import logging
from typing import Any, Optional

from sqlalchemy.orm import Session

from modules.audit.models import AuditLog

logger = logging.getLogger(__name__)


def log_activity(
    db: Session,
    user_id: Optional[int],
    action: str,
    entity_type: str,
    entity_id: Optional[int] = None,
    details: Optional[dict[str, Any]] = None,
) -> AuditLog:
    """Queue an audit row on the caller's session; it commits with the caller's change."""
    row = AuditLog(user_id=user_id, action=action, entity_type=entity_type, entity_id=entity_id, details=details)
    db.add(row)
    logger.info("audit %s %s#%s by user %s", action, entity_type, entity_id, user_id)
    return row


def list_activity(
    db: Session,
    entity_type: Optional[str] = None,
    entity_id: Optional[int] = None,
    user_id: Optional[int] = None,
    skip: int = 0,
    limit: int = 100,
) -> list[AuditLog]:
    q = db.query(AuditLog)
    if entity_type:
        q = q.filter(AuditLog.entity_type == entity_type)
    if entity_id is not None:
        q = q.filter(AuditLog.entity_id == entity_id)
    if user_id is not None:
        q = q.filter(AuditLog.user_id == user_id)
    return q.order_by(AuditLog.created_at.desc(), AuditLog.id.desc()).offset(skip).limit(limit).all()
