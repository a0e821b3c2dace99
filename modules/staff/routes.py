# modules/staff/routes.py
from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from database.connection import get_db
from modules.security.deps import require_perm
from modules.staff import schemas, services
from modules.staff.models import ApprovalStatus, Manager, Operator, Secretary, Supervisor
from modules.users.models import User

api_router = APIRouter()

_view = [Depends(require_perm("staff.view"))]


# ---------- SUPERVISORS ----------
@api_router.post("/supervisors", response_model=schemas.StaffRegistration, status_code=status.HTTP_201_CREATED)
def register_supervisor_route(
    payload: schemas.SupervisorCreate,
    actor: User = Depends(require_perm("staff.manage")),
    db: Session = Depends(get_db),
):
    return services.register_supervisor(db, payload, actor_id=actor.id)


@api_router.get("/supervisors", response_model=List[schemas.SupervisorInDB], dependencies=_view)
def read_supervisors_route(
    approval_status: Optional[ApprovalStatus] = None,
    location_id: Optional[int] = None,
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
):
    return services.list_records(db, Supervisor, approval_status, location_id, skip, limit)


@api_router.get("/supervisors/{supervisor_id}", response_model=schemas.SupervisorInDB, dependencies=_view)
def read_supervisor_route(supervisor_id: int, db: Session = Depends(get_db)):
    return services.get_record(db, Supervisor, supervisor_id)


@api_router.put("/supervisors/{supervisor_id}", response_model=schemas.SupervisorInDB)
def update_supervisor_route(
    supervisor_id: int,
    payload: schemas.SupervisorUpdate,
    actor: User = Depends(require_perm("staff.manage")),
    db: Session = Depends(get_db),
):
    return services.update_supervisor(db, supervisor_id, payload, actor_id=actor.id)


@api_router.get("/supervisors/{supervisor_id}/operators", response_model=List[schemas.OperatorInDB], dependencies=_view)
def read_supervisor_operators_route(supervisor_id: int, db: Session = Depends(get_db)):
    return services.operators_of_supervisor(db, supervisor_id)


@api_router.post("/supervisors/{supervisor_id}/link", response_model=schemas.SupervisorInDB)
def link_supervisor_route(
    supervisor_id: int,
    payload: schemas.LinkSupervisorRequest,
    actor: User = Depends(require_perm("staff.manage")),
    db: Session = Depends(get_db),
):
    return services.link_supervisor(db, supervisor_id, payload.general_supervisor_id, actor_id=actor.id)


@api_router.post("/supervisors/{supervisor_id}/location", response_model=schemas.SupervisorInDB)
def assign_supervisor_location_route(
    supervisor_id: int,
    payload: schemas.AssignLocationRequest,
    actor: User = Depends(require_perm("staff.manage")),
    db: Session = Depends(get_db),
):
    return services.assign_location(db, Supervisor, supervisor_id, payload.location_id, actor_id=actor.id)


@api_router.post("/supervisors/{supervisor_id}/approve", response_model=schemas.SupervisorInDB)
def approve_supervisor_route(
    supervisor_id: int,
    actor: User = Depends(require_perm("staff.manage")),
    db: Session = Depends(get_db),
):
    return services.approve_record(db, Supervisor, supervisor_id, actor.id)


@api_router.post("/supervisors/{supervisor_id}/reject", response_model=schemas.SupervisorInDB)
def reject_supervisor_route(
    supervisor_id: int,
    payload: schemas.RejectRequest,
    actor: User = Depends(require_perm("staff.manage")),
    db: Session = Depends(get_db),
):
    return services.reject_record(db, Supervisor, supervisor_id, payload.reason, actor.id)


# ---------- SECRETARIES ----------
@api_router.post("/secretaries", response_model=schemas.StaffRegistration, status_code=status.HTTP_201_CREATED)
def register_secretary_route(
    payload: schemas.SecretaryCreate,
    actor: User = Depends(require_perm("staff.manage")),
    db: Session = Depends(get_db),
):
    return services.register_secretary(db, payload, actor_id=actor.id)


@api_router.get("/secretaries", response_model=List[schemas.SecretaryInDB], dependencies=_view)
def read_secretaries_route(
    approval_status: Optional[ApprovalStatus] = None,
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
):
    return services.list_records(db, Secretary, approval_status, None, skip, limit)


@api_router.get("/secretaries/{secretary_id}", response_model=schemas.SecretaryInDB, dependencies=_view)
def read_secretary_route(secretary_id: int, db: Session = Depends(get_db)):
    return services.get_record(db, Secretary, secretary_id)


@api_router.post("/secretaries/{secretary_id}/approve", response_model=schemas.SecretaryInDB)
def approve_secretary_route(
    secretary_id: int,
    actor: User = Depends(require_perm("staff.manage")),
    db: Session = Depends(get_db),
):
    return services.approve_record(db, Secretary, secretary_id, actor.id)


@api_router.post("/secretaries/{secretary_id}/reject", response_model=schemas.SecretaryInDB)
def reject_secretary_route(
    secretary_id: int,
    payload: schemas.RejectRequest,
    actor: User = Depends(require_perm("staff.manage")),
    db: Session = Depends(get_db),
):
    return services.reject_record(db, Secretary, secretary_id, payload.reason, actor.id)


# ---------- OPERATORS ----------
@api_router.post("/operators", response_model=schemas.StaffRegistration, status_code=status.HTTP_201_CREATED)
def register_operator_route(
    payload: schemas.OperatorCreate,
    actor: User = Depends(require_perm("staff.manage")),
    db: Session = Depends(get_db),
):
    return services.register_operator(db, payload, actor_id=actor.id)


@api_router.get("/operators", response_model=List[schemas.OperatorInDB], dependencies=_view)
def read_operators_route(
    approval_status: Optional[ApprovalStatus] = None,
    location_id: Optional[int] = None,
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
):
    return services.list_records(db, Operator, approval_status, location_id, skip, limit)


@api_router.get("/operators/{operator_id}", response_model=schemas.OperatorInDB, dependencies=_view)
def read_operator_route(operator_id: int, db: Session = Depends(get_db)):
    return services.get_record(db, Operator, operator_id)


@api_router.post("/operators/{operator_id}/location", response_model=schemas.OperatorInDB)
def assign_operator_location_route(
    operator_id: int,
    payload: schemas.AssignLocationRequest,
    actor: User = Depends(require_perm("staff.manage")),
    db: Session = Depends(get_db),
):
    return services.assign_location(db, Operator, operator_id, payload.location_id, actor_id=actor.id)


@api_router.post("/operators/{operator_id}/approve", response_model=schemas.OperatorInDB)
def approve_operator_route(
    operator_id: int,
    actor: User = Depends(require_perm("staff.manage")),
    db: Session = Depends(get_db),
):
    return services.approve_record(db, Operator, operator_id, actor.id)


@api_router.post("/operators/{operator_id}/reject", response_model=schemas.OperatorInDB)
def reject_operator_route(
    operator_id: int,
    payload: schemas.RejectRequest,
    actor: User = Depends(require_perm("staff.manage")),
    db: Session = Depends(get_db),
):
    return services.reject_record(db, Operator, operator_id, payload.reason, actor.id)


# ---------- MANAGERS ----------
@api_router.post("/managers", response_model=schemas.StaffRegistration, status_code=status.HTTP_201_CREATED)
def register_manager_route(
    payload: schemas.ManagerCreate,
    actor: User = Depends(require_perm("users.manage")),
    db: Session = Depends(get_db),
):
    return services.register_manager(db, payload, actor_id=actor.id)


@api_router.get("/managers", response_model=List[schemas.ManagerInDB], dependencies=_view)
def read_managers_route(location_id: Optional[int] = None, skip: int = 0, limit: int = 100, db: Session = Depends(get_db)):
    return services.list_records(db, Manager, None, location_id, skip, limit)
