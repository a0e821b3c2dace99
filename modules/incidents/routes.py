# modules/incidents/routes.py
from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from core.errors import ForbiddenError
from database.connection import get_db
from modules.incidents import schemas, services
from modules.incidents.models import AlertStatus, IncidentSeverity, IncidentStatus
from modules.security.deps import get_current_user, require_perm
from modules.security.perms import has_perm
from modules.staff.schemas import RejectRequest
from modules.users.models import User

incidents_router = APIRouter()
alerts_router = APIRouter()


# ---------- INCIDENTS ----------
@incidents_router.post("/", response_model=schemas.IncidentInDB, status_code=status.HTTP_201_CREATED)
def create_incident_route(
    payload: schemas.IncidentCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return services.create_incident(db, payload, user)


@incidents_router.get("/", response_model=List[schemas.IncidentInDB])
def read_incidents_route(
    status: Optional[IncidentStatus] = None,
    severity: Optional[IncidentSeverity] = None,
    skip: int = 0,
    limit: int = 100,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    # reporters without review rights only see their own reports
    operator_id = None if has_perm(user.role.value, "incidents.review") else user.id
    return services.list_incidents(db, status=status, severity=severity, operator_id=operator_id, skip=skip, limit=limit)


@incidents_router.get("/{incident_id}", response_model=schemas.IncidentInDB)
def read_incident_route(incident_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    inc = services.get_incident(db, incident_id)
    if inc.operator_id != user.id and not has_perm(user.role.value, "incidents.review"):
        raise ForbiddenError("Insufficient permissions")
    return inc


@incidents_router.post("/{incident_id}/advance", response_model=schemas.IncidentInDB)
def advance_incident_route(
    incident_id: int,
    payload: schemas.IncidentAdvance,
    user: User = Depends(require_perm("incidents.review")),
    db: Session = Depends(get_db),
):
    return services.advance_incident(db, incident_id, user.id, payload.resolution_notes)


# ---------- EMERGENCY ALERTS ----------
@alerts_router.post("/", response_model=schemas.AlertInDB, status_code=status.HTTP_201_CREATED)
def create_alert_route(payload: schemas.AlertCreate, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return services.create_alert(db, payload, user)


@alerts_router.get("/", response_model=List[schemas.AlertInDB], dependencies=[Depends(get_current_user)])
def read_alerts_route(status: Optional[AlertStatus] = None, active_only: bool = False, db: Session = Depends(get_db)):
    return services.list_alerts(db, status=status, active_only=active_only)


@alerts_router.get("/{alert_id}", response_model=schemas.AlertInDB, dependencies=[Depends(get_current_user)])
def read_alert_route(alert_id: int, db: Session = Depends(get_db)):
    return services.get_alert(db, alert_id)


@alerts_router.post("/{alert_id}/approve", response_model=schemas.AlertInDB)
def approve_alert_route(alert_id: int, user: User = Depends(require_perm("alerts.approve")), db: Session = Depends(get_db)):
    return services.approve_alert(db, alert_id, user.id)


@alerts_router.post("/{alert_id}/reject", response_model=schemas.AlertInDB)
def reject_alert_route(
    alert_id: int,
    payload: RejectRequest,
    user: User = Depends(require_perm("alerts.approve")),
    db: Session = Depends(get_db),
):
    return services.reject_alert(db, alert_id, payload.reason, user.id)


@alerts_router.post("/{alert_id}/send", response_model=schemas.AlertInDB)
def send_alert_route(alert_id: int, user: User = Depends(require_perm("alerts.approve")), db: Session = Depends(get_db)):
    return services.send_alert(db, alert_id, user.id)


@alerts_router.post("/{alert_id}/acknowledge", response_model=schemas.AlertInDB)
def acknowledge_alert_route(alert_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return services.acknowledge_alert(db, alert_id, user)
