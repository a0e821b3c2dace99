# modules/locations/routes.py
from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from database.connection import get_db
from modules.locations import schemas, services
from modules.locations.models import AssignmentStatus
from modules.security.deps import get_current_user, require_perm
from modules.staff.schemas import RejectRequest
from modules.users.models import User

locations_router = APIRouter()
beats_router = APIRouter()
assignments_router = APIRouter()

_signed_in = [Depends(get_current_user)]


# ---------- LOCATIONS ----------
@locations_router.post("/", response_model=schemas.LocationInDB, status_code=status.HTTP_201_CREATED)
def create_location_route(
    payload: schemas.LocationCreate,
    actor: User = Depends(require_perm("locations.manage")),
    db: Session = Depends(get_db),
):
    return services.create_location(db, payload, actor_id=actor.id)


@locations_router.get("/", response_model=List[schemas.LocationInDB], dependencies=_signed_in)
def read_locations_route(
    is_active: Optional[bool] = None,
    state: Optional[str] = None,
    search: Optional[str] = None,
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
):
    return services.list_locations(db, is_active=is_active, state=state, search=search, skip=skip, limit=limit)


@locations_router.get("/{location_id}", response_model=schemas.LocationInDB, dependencies=_signed_in)
def read_location_route(location_id: int, db: Session = Depends(get_db)):
    return services.get_location(db, location_id)


@locations_router.put("/{location_id}", response_model=schemas.LocationInDB)
def update_location_route(
    location_id: int,
    payload: schemas.LocationUpdate,
    actor: User = Depends(require_perm("locations.manage")),
    db: Session = Depends(get_db),
):
    return services.update_location(db, location_id, payload, actor_id=actor.id)


@locations_router.delete("/{location_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_location_route(
    location_id: int,
    actor: User = Depends(require_perm("locations.manage")),
    db: Session = Depends(get_db),
):
    services.delete_location(db, location_id, actor_id=actor.id)


@locations_router.get("/{location_id}/beats", response_model=List[schemas.BeatInDB], dependencies=_signed_in)
def read_location_beats_route(location_id: int, db: Session = Depends(get_db)):
    services.get_location(db, location_id)
    return services.list_beats(db, location_id=location_id)


# ---------- BEATS ----------
@beats_router.post("/", response_model=schemas.BeatInDB, status_code=status.HTTP_201_CREATED)
def create_beat_route(
    payload: schemas.BeatCreate,
    actor: User = Depends(require_perm("locations.manage")),
    db: Session = Depends(get_db),
):
    return services.create_beat(db, payload, actor_id=actor.id)


@beats_router.get("/", response_model=List[schemas.BeatInDB], dependencies=_signed_in)
def read_beats_route(location_id: Optional[int] = None, is_active: Optional[bool] = None, db: Session = Depends(get_db)):
    return services.list_beats(db, location_id=location_id, is_active=is_active)


@beats_router.get("/{beat_id}", response_model=schemas.BeatInDB, dependencies=_signed_in)
def read_beat_route(beat_id: int, db: Session = Depends(get_db)):
    return services.get_beat(db, beat_id)


@beats_router.put("/{beat_id}", response_model=schemas.BeatInDB)
def update_beat_route(
    beat_id: int,
    payload: schemas.BeatUpdate,
    actor: User = Depends(require_perm("locations.manage")),
    db: Session = Depends(get_db),
):
    return services.update_beat(db, beat_id, payload, actor_id=actor.id)


@beats_router.delete("/{beat_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_beat_route(
    beat_id: int,
    actor: User = Depends(require_perm("locations.manage")),
    db: Session = Depends(get_db),
):
    services.delete_beat(db, beat_id, actor_id=actor.id)


# ---------- GUARD ASSIGNMENTS ----------
@assignments_router.post("/", response_model=schemas.AssignmentInDB, status_code=status.HTTP_201_CREATED)
def create_assignment_route(
    payload: schemas.AssignmentCreate,
    actor: User = Depends(require_perm("assignments.manage")),
    db: Session = Depends(get_db),
):
    return services.create_assignment(db, payload, actor_id=actor.id)


@assignments_router.get("/", response_model=List[schemas.AssignmentInDB], dependencies=_signed_in)
def read_assignments_route(
    operator_id: Optional[int] = None,
    beat_id: Optional[int] = None,
    location_id: Optional[int] = None,
    status: Optional[AssignmentStatus] = None,
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
):
    return services.list_assignments(
        db, operator_id=operator_id, beat_id=beat_id, location_id=location_id, status=status, skip=skip, limit=limit
    )


@assignments_router.get("/operator/{operator_id}/active", response_model=Optional[schemas.AssignmentInDB], dependencies=_signed_in)
def read_active_assignment_route(operator_id: int, db: Session = Depends(get_db)):
    return services.active_assignment(db, operator_id)


@assignments_router.get("/{assignment_id}", response_model=schemas.AssignmentInDB, dependencies=_signed_in)
def read_assignment_route(assignment_id: int, db: Session = Depends(get_db)):
    return services.get_assignment(db, assignment_id)


@assignments_router.post("/{assignment_id}/approve", response_model=schemas.AssignmentInDB)
def approve_assignment_route(
    assignment_id: int,
    actor: User = Depends(require_perm("assignments.manage")),
    db: Session = Depends(get_db),
):
    return services.approve_assignment(db, assignment_id, actor.id)


@assignments_router.post("/{assignment_id}/reject", response_model=schemas.AssignmentInDB)
def reject_assignment_route(
    assignment_id: int,
    payload: RejectRequest,
    actor: User = Depends(require_perm("assignments.manage")),
    db: Session = Depends(get_db),
):
    return services.reject_assignment(db, assignment_id, payload.reason, actor.id)


@assignments_router.post("/{assignment_id}/end", response_model=schemas.AssignmentInDB)
def end_assignment_route(
    assignment_id: int,
    payload: schemas.AssignmentEnd,
    actor: User = Depends(require_perm("assignments.manage")),
    db: Session = Depends(get_db),
):
    return services.end_assignment(db, assignment_id, payload, actor.id)
