# modules/locations/services.py
from __future__ import annotations

import logging
from datetime import date
from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from core.errors import BadRequestError, ConflictError, NotFoundError
from core.transitions import compare_and_set
from database.base import utcnow
from modules.audit.services import log_activity
from modules.locations import models, schemas
from modules.locations.models import AssignmentStatus, Beat, GuardAssignment, Location

logger = logging.getLogger(__name__)


# ----------------------------- locations ------------------------------
def first_active_location(db: Session) -> Optional[Location]:
    """The default target for bulk assignment: lowest id among active locations."""
    return db.query(Location).filter(Location.is_active.is_(True)).order_by(Location.id).first()


def get_location(db: Session, location_id: int) -> Location:
    loc = db.get(Location, location_id)
    if not loc:
        raise NotFoundError("Location not found")
    return loc


def list_locations(
    db: Session,
    is_active: Optional[bool] = None,
    state: Optional[str] = None,
    search: Optional[str] = None,
    skip: int = 0,
    limit: int = 100,
) -> List[Location]:
    q = db.query(Location)
    if is_active is not None:
        q = q.filter(Location.is_active.is_(is_active))
    if state:
        q = q.filter(Location.state == state)
    if search:
        like = f"%{search.strip()}%"
        q = q.filter(or_(Location.location_name.ilike(like), Location.city.ilike(like), Location.address.ilike(like)))
    return q.order_by(Location.location_name).offset(skip).limit(limit).all()


def _ensure_code_free(db: Session, code: Optional[str], exclude_id: Optional[int] = None) -> None:
    if not code:
        return
    q = db.query(Location).filter(Location.location_code == code)
    if exclude_id:
        q = q.filter(Location.id != exclude_id)
    if q.first():
        raise ConflictError(f"Location code '{code}' already exists")


def create_location(db: Session, payload: schemas.LocationCreate, actor_id: Optional[int] = None) -> Location:
    _ensure_code_free(db, payload.location_code)
    loc = Location(**payload.model_dump(), created_by_id=actor_id)
    db.add(loc)
    db.flush()
    log_activity(db, actor_id, "CREATE", "locations", loc.id)
    db.commit()
    db.refresh(loc)
    return loc


def update_location(db: Session, location_id: int, payload: schemas.LocationUpdate, actor_id: Optional[int] = None) -> Location:
    loc = get_location(db, location_id)
    data = payload.model_dump(exclude_unset=True)
    if "location_code" in data:
        _ensure_code_free(db, data["location_code"], exclude_id=loc.id)
    for k, v in data.items():
        setattr(loc, k, v)
    log_activity(db, actor_id, "UPDATE", "locations", loc.id, {"fields": sorted(data)})
    db.commit()
    db.refresh(loc)
    return loc


def delete_location(db: Session, location_id: int, actor_id: Optional[int] = None) -> None:
    loc = get_location(db, location_id)
    if db.query(Beat.id).filter(Beat.location_id == loc.id).first():
        raise BadRequestError("Location still has beats; remove them first")
    db.delete(loc)
    log_activity(db, actor_id, "DELETE", "locations", location_id)
    db.commit()


# ----------------------------- beats ------------------------------
def _refresh_beat_count(db: Session, location_id: int) -> None:
    loc = db.get(Location, location_id)
    if loc:
        loc.total_beats = db.query(Beat).filter(Beat.location_id == location_id).count()


def get_beat(db: Session, beat_id: int) -> Beat:
    beat = db.get(Beat, beat_id)
    if not beat:
        raise NotFoundError("Beat not found")
    return beat


def list_beats(db: Session, location_id: Optional[int] = None, is_active: Optional[bool] = None) -> List[Beat]:
    q = db.query(Beat)
    if location_id is not None:
        q = q.filter(Beat.location_id == location_id)
    if is_active is not None:
        q = q.filter(Beat.is_active.is_(is_active))
    return q.order_by(Beat.beat_code).all()


def create_beat(db: Session, payload: schemas.BeatCreate, actor_id: Optional[int] = None) -> Beat:
    get_location(db, payload.location_id)
    if db.query(Beat.id).filter(Beat.beat_code == payload.beat_code).first():
        raise ConflictError(f"Beat code '{payload.beat_code}' already exists")
    beat = Beat(**payload.model_dump())
    db.add(beat)
    db.flush()
    _refresh_beat_count(db, beat.location_id)
    log_activity(db, actor_id, "CREATE", "beats", beat.id, {"location_id": beat.location_id})
    db.commit()
    db.refresh(beat)
    return beat


def update_beat(db: Session, beat_id: int, payload: schemas.BeatUpdate, actor_id: Optional[int] = None) -> Beat:
    beat = get_beat(db, beat_id)
    data = payload.model_dump(exclude_unset=True)
    for k, v in data.items():
        setattr(beat, k, v)
    log_activity(db, actor_id, "UPDATE", "beats", beat.id, {"fields": sorted(data)})
    db.commit()
    db.refresh(beat)
    return beat


def delete_beat(db: Session, beat_id: int, actor_id: Optional[int] = None) -> None:
    beat = get_beat(db, beat_id)
    live = (
        db.query(GuardAssignment.id)
        .filter(GuardAssignment.beat_id == beat.id, GuardAssignment.status.in_(models.BLOCKING_STATUSES))
        .first()
    )
    if live:
        raise BadRequestError("Beat has pending or active assignments")
    location_id = beat.location_id
    db.delete(beat)
    db.flush()
    _refresh_beat_count(db, location_id)
    log_activity(db, actor_id, "DELETE", "beats", beat_id)
    db.commit()


# ----------------------------- guard assignments ------------------------------
def assert_no_overlap(
    db: Session,
    operator_id: int,
    start_date: date,
    end_date: Optional[date],
    exclude_assignment_id: Optional[int] = None,
) -> None:
    """Periods are [start, end); a missing end date means open ended."""
    q = (
        db.query(GuardAssignment)
        .filter(GuardAssignment.operator_id == operator_id)
        .filter(GuardAssignment.status.in_(models.BLOCKING_STATUSES))
        .filter(or_(GuardAssignment.end_date.is_(None), GuardAssignment.end_date > start_date))
    )
    if end_date is not None:
        q = q.filter(GuardAssignment.start_date < end_date)
    if exclude_assignment_id:
        q = q.filter(GuardAssignment.id != exclude_assignment_id)
    if q.first():
        raise ConflictError("Operator already has an overlapping pending or active assignment")


def get_assignment(db: Session, assignment_id: int) -> GuardAssignment:
    a = db.get(GuardAssignment, assignment_id)
    if not a:
        raise NotFoundError("Assignment not found")
    return a


def list_assignments(
    db: Session,
    operator_id: Optional[int] = None,
    beat_id: Optional[int] = None,
    location_id: Optional[int] = None,
    status: Optional[AssignmentStatus] = None,
    skip: int = 0,
    limit: int = 100,
) -> List[GuardAssignment]:
    q = db.query(GuardAssignment)
    if operator_id is not None:
        q = q.filter(GuardAssignment.operator_id == operator_id)
    if beat_id is not None:
        q = q.filter(GuardAssignment.beat_id == beat_id)
    if location_id is not None:
        q = q.filter(GuardAssignment.location_id == location_id)
    if status is not None:
        q = q.filter(GuardAssignment.status == status)
    return q.order_by(GuardAssignment.start_date.desc(), GuardAssignment.id.desc()).offset(skip).limit(limit).all()


def active_assignment(db: Session, operator_id: int) -> Optional[GuardAssignment]:
    return (
        db.query(GuardAssignment)
        .filter(GuardAssignment.operator_id == operator_id, GuardAssignment.status == AssignmentStatus.ACTIVE)
        .order_by(GuardAssignment.start_date.desc())
        .first()
    )


def create_assignment(db: Session, payload: schemas.AssignmentCreate, actor_id: Optional[int] = None) -> GuardAssignment:
    from modules.staff.models import Operator

    if not db.get(Operator, payload.operator_id):
        raise NotFoundError("Operator not found")
    beat = get_beat(db, payload.beat_id)
    if not beat.is_active:
        raise BadRequestError("Beat is not active")

    assert_no_overlap(db, payload.operator_id, payload.start_date, payload.end_date)

    a = GuardAssignment(
        **payload.model_dump(),
        location_id=beat.location_id,
        status=AssignmentStatus.PENDING,
        assigned_by_id=actor_id,
    )
    if a.supervisor_id is None:
        a.supervisor_id = beat.supervisor_id
    db.add(a)
    db.flush()
    log_activity(db, actor_id, "CREATE", "guard_assignments", a.id, {"operator_id": a.operator_id, "beat_id": a.beat_id})
    db.commit()
    db.refresh(a)
    logger.info("Assignment %s created for operator %s at beat %s", a.id, a.operator_id, a.beat_id)
    return a


def approve_assignment(db: Session, assignment_id: int, actor_id: int) -> GuardAssignment:
    a = compare_and_set(
        db, GuardAssignment, assignment_id, GuardAssignment.status, AssignmentStatus.PENDING,
        {"status": AssignmentStatus.ACTIVE, "approved_by_id": actor_id, "approved_at": utcnow()},
        entity="assignment", requested=AssignmentStatus.ACTIVE,
    )
    log_activity(db, actor_id, "APPROVE", "guard_assignments", a.id)
    db.commit()
    db.refresh(a)
    return a


def reject_assignment(db: Session, assignment_id: int, reason: str, actor_id: int) -> GuardAssignment:
    if not (reason or "").strip():
        raise BadRequestError("Rejection reason is required")
    a = compare_and_set(
        db, GuardAssignment, assignment_id, GuardAssignment.status, AssignmentStatus.PENDING,
        {"status": AssignmentStatus.REJECTED, "approved_by_id": actor_id,
         "approved_at": utcnow(), "rejection_reason": reason.strip()},
        entity="assignment", requested=AssignmentStatus.REJECTED,
    )
    log_activity(db, actor_id, "REJECT", "guard_assignments", a.id, {"reason": reason.strip()})
    db.commit()
    db.refresh(a)
    return a


def end_assignment(db: Session, assignment_id: int, payload: schemas.AssignmentEnd, actor_id: int) -> GuardAssignment:
    target = AssignmentStatus.TRANSFERRED if payload.transferred else AssignmentStatus.ENDED
    current = get_assignment(db, assignment_id)
    end_date = payload.end_date or utcnow().date()
    if end_date <= current.start_date:
        raise BadRequestError("end_date must be after start_date")
    a = compare_and_set(
        db, GuardAssignment, assignment_id, GuardAssignment.status, AssignmentStatus.ACTIVE,
        {"status": target, "end_date": end_date, "ended_at": utcnow()},
        entity="assignment", requested=target,
    )
    log_activity(db, actor_id, target.value, "guard_assignments", a.id)
    db.commit()
    db.refresh(a)
    return a
