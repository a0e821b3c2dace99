# modules/incidents/models.py
from __future__ import annotations

import enum

from sqlalchemy import JSON, Boolean, Column, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import relationship

from database.base import Base, utcnow


# ----------------- Enums -----------------
class IncidentSeverity(str, enum.Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class IncidentStatus(str, enum.Enum):
    REPORTED = "REPORTED"
    UNDER_REVIEW = "UNDER_REVIEW"
    RESOLVED = "RESOLVED"
    CLOSED = "CLOSED"


class AlertType(str, enum.Enum):
    THREAT = "THREAT"
    INJURY = "INJURY"
    BREACH = "BREACH"
    FIRE = "FIRE"
    CLIENT_ISSUE = "CLIENT_ISSUE"
    OTHER = "OTHER"


class AlertStatus(str, enum.Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    SENT = "SENT"


# next status for each incident step
INCIDENT_FLOW = {
    IncidentStatus.REPORTED: IncidentStatus.UNDER_REVIEW,
    IncidentStatus.UNDER_REVIEW: IncidentStatus.RESOLVED,
    IncidentStatus.RESOLVED: IncidentStatus.CLOSED,
}


# ----------------- Incident report -----------------
class IncidentReport(Base):
    __tablename__ = "incident_reports"

    id = Column(Integer, primary_key=True, index=True)
    operator_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    supervisor_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    beat_id = Column(Integer, ForeignKey("beats.id"), nullable=True)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=False)
    photo_url = Column(String(500), nullable=True)
    severity = Column(SAEnum(IncidentSeverity, name="incident_severity"), nullable=False, default=IncidentSeverity.MEDIUM)
    status = Column(SAEnum(IncidentStatus, name="incident_status"), nullable=False, default=IncidentStatus.REPORTED, index=True)
    resolution_notes = Column(Text, nullable=True)
    resolved_by_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    resolved_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)


# ----------------- Emergency alert -----------------
class EmergencyAlert(Base):
    __tablename__ = "emergency_alerts"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(200), nullable=False)
    content = Column(Text, nullable=False)
    alert_type = Column(SAEnum(AlertType, name="alert_type"), nullable=False)
    status = Column(SAEnum(AlertStatus, name="alert_status"), nullable=False, default=AlertStatus.PENDING, index=True)

    beat_id = Column(Integer, ForeignKey("beats.id"), nullable=True)
    location_id = Column(Integer, ForeignKey("locations.id"), nullable=True)

    triggered_by_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    approved_by_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    rejected_by_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    rejection_reason = Column(Text, nullable=True)

    target_roles = Column(JSON, nullable=False, default=list)
    sent_at = Column(DateTime, nullable=True)
    expires_at = Column(DateTime, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    acknowledgments = relationship("AlertAcknowledgment", back_populates="alert", cascade="all, delete-orphan")


class AlertAcknowledgment(Base):
    __tablename__ = "alert_acknowledgments"
    __table_args__ = (UniqueConstraint("alert_id", "user_id", name="uq_alert_ack_user"),)

    id = Column(Integer, primary_key=True, index=True)
    alert_id = Column(Integer, ForeignKey("emergency_alerts.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    acknowledged_at = Column(DateTime, nullable=False, default=utcnow)

    alert = relationship("EmergencyAlert", back_populates="acknowledgments")
