# modules/incidents/services.py
from __future__ import annotations

import logging
from html import escape
from typing import List, Optional

from sqlalchemy.orm import Session

from core.errors import BadRequestError, ConflictError, NotFoundError
from core.transitions import compare_and_set
from database.base import utcnow
from modules.audit.services import log_activity
from modules.common.email_service import EmailService, get_email_service
from modules.incidents import schemas
from modules.incidents.models import (
    INCIDENT_FLOW, AlertAcknowledgment, AlertStatus, EmergencyAlert, IncidentReport, IncidentSeverity, IncidentStatus,
)
from modules.users.models import User, UserRole

logger = logging.getLogger(__name__)


# ----------------------------- incidents ------------------------------
def create_incident(db: Session, payload: schemas.IncidentCreate, reporter: User) -> IncidentReport:
    inc = IncidentReport(**payload.model_dump(), operator_id=reporter.id, status=IncidentStatus.REPORTED)
    db.add(inc)
    db.flush()
    log_activity(db, reporter.id, "REPORT_INCIDENT", "incident", inc.id, {"severity": inc.severity.value})
    db.commit()
    db.refresh(inc)
    if inc.severity in (IncidentSeverity.HIGH, IncidentSeverity.CRITICAL):
        logger.warning("Incident %s reported with severity %s", inc.id, inc.severity.value)
    return inc


def get_incident(db: Session, incident_id: int) -> IncidentReport:
    inc = db.get(IncidentReport, incident_id)
    if not inc:
        raise NotFoundError("Incident not found")
    return inc


def list_incidents(
    db: Session,
    status: Optional[IncidentStatus] = None,
    severity: Optional[IncidentSeverity] = None,
    operator_id: Optional[int] = None,
    skip: int = 0,
    limit: int = 100,
) -> List[IncidentReport]:
    q = db.query(IncidentReport)
    if status:
        q = q.filter(IncidentReport.status == status)
    if severity:
        q = q.filter(IncidentReport.severity == severity)
    if operator_id is not None:
        q = q.filter(IncidentReport.operator_id == operator_id)
    return q.order_by(IncidentReport.created_at.desc(), IncidentReport.id.desc()).offset(skip).limit(limit).all()


def advance_incident(db: Session, incident_id: int, actor_id: int, resolution_notes: Optional[str] = None) -> IncidentReport:
    """REPORTED -> UNDER_REVIEW -> RESOLVED -> CLOSED, one step per call."""
    current = get_incident(db, incident_id).status
    target = INCIDENT_FLOW.get(current)
    if target is None:
        raise ConflictError(f"Incident is already {current.value}")

    values = {"status": target}
    if target == IncidentStatus.RESOLVED:
        values.update(resolved_by_id=actor_id, resolved_at=utcnow(), resolution_notes=resolution_notes)
    inc = compare_and_set(
        db, IncidentReport, incident_id, IncidentReport.status, current, values,
        entity="incident", requested=target,
    )
    log_activity(db, actor_id, target.value, "incident", inc.id)
    db.commit()
    db.refresh(inc)
    return inc


# ----------------------------- emergency alerts ------------------------------
def create_alert(db: Session, payload: schemas.AlertCreate, actor: User) -> EmergencyAlert:
    data = payload.model_dump()
    data["target_roles"] = [r.value for r in payload.target_roles]
    alert = EmergencyAlert(**data, triggered_by_id=actor.id, status=AlertStatus.PENDING)
    db.add(alert)
    db.flush()
    log_activity(db, actor.id, "TRIGGER_ALERT", "emergency_alert", alert.id, {"alert_type": alert.alert_type.value})
    db.commit()
    db.refresh(alert)
    logger.warning("Emergency alert %s (%s) raised by user %s", alert.id, alert.alert_type.value, actor.id)
    return alert


def get_alert(db: Session, alert_id: int) -> EmergencyAlert:
    alert = db.get(EmergencyAlert, alert_id)
    if not alert:
        raise NotFoundError("Alert not found")
    return alert


def list_alerts(db: Session, status: Optional[AlertStatus] = None, active_only: bool = False) -> List[EmergencyAlert]:
    q = db.query(EmergencyAlert)
    if status:
        q = q.filter(EmergencyAlert.status == status)
    if active_only:
        q = q.filter(EmergencyAlert.is_active.is_(True))
    return q.order_by(EmergencyAlert.created_at.desc(), EmergencyAlert.id.desc()).all()


def approve_alert(db: Session, alert_id: int, actor_id: int) -> EmergencyAlert:
    alert = compare_and_set(
        db, EmergencyAlert, alert_id, EmergencyAlert.status, AlertStatus.PENDING,
        {"status": AlertStatus.APPROVED, "approved_by_id": actor_id},
        entity="alert", requested=AlertStatus.APPROVED,
    )
    log_activity(db, actor_id, "APPROVE_ALERT", "emergency_alert", alert.id)
    db.commit()
    db.refresh(alert)
    return alert


def reject_alert(db: Session, alert_id: int, reason: str, actor_id: int) -> EmergencyAlert:
    if not (reason or "").strip():
        raise BadRequestError("Rejection reason is required")
    alert = compare_and_set(
        db, EmergencyAlert, alert_id, EmergencyAlert.status, AlertStatus.PENDING,
        {"status": AlertStatus.REJECTED, "rejected_by_id": actor_id,
         "rejection_reason": reason.strip(), "is_active": False},
        entity="alert", requested=AlertStatus.REJECTED,
    )
    log_activity(db, actor_id, "REJECT_ALERT", "emergency_alert", alert.id, {"reason": reason.strip()})
    db.commit()
    db.refresh(alert)
    return alert


def alert_recipients(db: Session, alert: EmergencyAlert) -> List[User]:
    q = db.query(User).filter(User.is_active.is_(True))
    if alert.target_roles:
        q = q.filter(User.role.in_([UserRole(r) for r in alert.target_roles]))
    return q.order_by(User.id).all()


def send_alert(db: Session, alert_id: int, actor_id: int, mailer: Optional[EmailService] = None) -> EmergencyAlert:
    alert = compare_and_set(
        db, EmergencyAlert, alert_id, EmergencyAlert.status, AlertStatus.APPROVED,
        {"status": AlertStatus.SENT, "sent_at": utcnow()},
        entity="alert", requested=AlertStatus.SENT,
    )
    recipients = alert_recipients(db, alert)
    log_activity(db, actor_id, "SEND_ALERT", "emergency_alert", alert.id, {"recipients": len(recipients)})
    db.commit()
    db.refresh(alert)

    mailer = mailer or get_email_service()
    subject = f"[EMERGENCY] {alert.alert_type.value}: {alert.title}"
    html = f"<h2>{escape(alert.title)}</h2><p>{escape(alert.content)}</p>"
    mailer.send(subject, [u.email for u in recipients], html, text=f"{alert.title}\n\n{alert.content}")
    logger.info("Alert %s sent to %d users", alert.id, len(recipients))
    return alert


def acknowledge_alert(db: Session, alert_id: int, user: User) -> EmergencyAlert:
    alert = get_alert(db, alert_id)
    if alert.status != AlertStatus.SENT:
        raise ConflictError("Only sent alerts can be acknowledged")
    already = (
        db.query(AlertAcknowledgment)
        .filter(AlertAcknowledgment.alert_id == alert.id, AlertAcknowledgment.user_id == user.id)
        .first()
    )
    if not already:
        alert.acknowledgments.append(AlertAcknowledgment(user_id=user.id))
        db.commit()
        db.refresh(alert)
    return alert
