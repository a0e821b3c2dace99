# modules/incidents/schemas.py
from __future__ import annotations
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from modules.users.models import UserRole
from .models import AlertStatus, AlertType, IncidentSeverity, IncidentStatus


# =========================================================
# Incidents
# =========================================================
class IncidentCreate(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    description: str = Field(min_length=1)
    severity: IncidentSeverity = IncidentSeverity.MEDIUM
    beat_id: Optional[int] = None
    supervisor_id: Optional[int] = None
    photo_url: Optional[str] = None


class IncidentAdvance(BaseModel):
    resolution_notes: Optional[str] = None


class IncidentInDB(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    operator_id: int
    supervisor_id: Optional[int] = None
    beat_id: Optional[int] = None
    title: str
    description: str
    photo_url: Optional[str] = None
    severity: IncidentSeverity
    status: IncidentStatus
    resolution_notes: Optional[str] = None
    resolved_by_id: Optional[int] = None
    resolved_at: Optional[datetime] = None
    created_at: datetime


# =========================================================
# Emergency alerts
# =========================================================
class AlertCreate(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    content: str = Field(min_length=1)
    alert_type: AlertType
    beat_id: Optional[int] = None
    location_id: Optional[int] = None
    target_roles: List[UserRole] = Field(default_factory=list)
    expires_at: Optional[datetime] = None


class AcknowledgmentInDB(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    user_id: int
    acknowledged_at: datetime


class AlertInDB(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    content: str
    alert_type: AlertType
    status: AlertStatus
    beat_id: Optional[int] = None
    location_id: Optional[int] = None
    triggered_by_id: int
    approved_by_id: Optional[int] = None
    rejected_by_id: Optional[int] = None
    rejection_reason: Optional[str] = None
    target_roles: List[str] = []
    acknowledgments: List[AcknowledgmentInDB] = []
    sent_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    is_active: bool
    created_at: datetime
