# modules/staff/services.py
from __future__ import annotations

import logging
from typing import List, Optional, Type

from sqlalchemy.orm import Session

from config.settings import settings
from core.errors import BadRequestError, NotFoundError
from core.transitions import compare_and_set
from database.base import utcnow
from modules.audit.services import log_activity
from modules.security.passwords import generate_employee_id, generate_temporary_password
from modules.staff import schemas
from modules.staff.models import (
    ApprovalStatus, Manager, Operator, OperatorGuarantor, Secretary, Supervisor, SupervisorType,
)
from modules.users.models import User, UserRole
from modules.users.services import new_user

logger = logging.getLogger(__name__)

# employee id prefix per role record
_PREFIX = {Supervisor: "SUP", Secretary: "SEC", Operator: "OPR", Manager: "MGR"}

_ROLE_RECORD = {
    UserRole.SUPERVISOR: Supervisor,
    UserRole.GENERAL_SUPERVISOR: Supervisor,
    UserRole.SECRETARY: Secretary,
    UserRole.OPERATOR: Operator,
    UserRole.MANAGER: Manager,
}


# -------------------- helpers --------------------
def role_record_for_user(db: Session, user: User):
    model = _ROLE_RECORD.get(user.role)
    if model is None:
        return None
    return db.query(model).filter(model.user_id == user.id).first()


def _get(db: Session, model: Type, record_id: int, label: str):
    obj = db.get(model, record_id)
    if not obj:
        raise NotFoundError(f"{label} not found")
    return obj


def _check_location(db: Session, location_id: Optional[int]) -> None:
    if location_id is None:
        return
    from modules.locations.models import Location

    if not db.get(Location, location_id):
        raise NotFoundError("Location not found")


def _create_account(db: Session, payload: schemas.StaffAccountBase, role: UserRole, model: Type, actor_id: Optional[int]):
    password = generate_temporary_password(settings.TEMP_PASSWORD_LENGTH)
    employee_id = generate_employee_id(_PREFIX[model])
    user = new_user(
        db,
        email=payload.email,
        password=password,
        first_name=payload.first_name,
        last_name=payload.last_name,
        role=role,
        phone=payload.phone,
        employee_id=employee_id,
        created_by_id=actor_id,
    )
    return user, employee_id, password


def _registration(db: Session, user: User, record, employee_id: str, password: str, actor_id: Optional[int]) -> dict:
    log_activity(db, actor_id, "REGISTER_STAFF", record.__tablename__, record.id, {"user_id": user.id})
    db.commit()
    db.refresh(user)
    logger.info("Registered %s %s for user %s", record.__tablename__, employee_id, user.id)
    return {"user": user, "employee_id": employee_id, "temporary_password": password, "record_id": record.id}


# -------------------- registration --------------------
def register_supervisor(db: Session, payload: schemas.SupervisorCreate, actor_id: Optional[int] = None) -> dict:
    _check_location(db, payload.location_id)
    if payload.general_supervisor_id is not None:
        _get_general_supervisor(db, payload.general_supervisor_id)

    role = (
        UserRole.GENERAL_SUPERVISOR
        if payload.supervisor_type == SupervisorType.GENERAL_SUPERVISOR
        else UserRole.SUPERVISOR
    )
    user, employee_id, password = _create_account(db, payload, role, Supervisor, actor_id)
    data = payload.model_dump(exclude={"email", "first_name", "last_name", "phone"})
    sup = Supervisor(user_id=user.id, employee_id=employee_id, full_name=user.full_name, **data)
    db.add(sup)
    db.flush()
    return _registration(db, user, sup, employee_id, password, actor_id)


def register_secretary(db: Session, payload: schemas.SecretaryCreate, actor_id: Optional[int] = None) -> dict:
    user, employee_id, password = _create_account(db, payload, UserRole.SECRETARY, Secretary, actor_id)
    data = payload.model_dump(exclude={"email", "first_name", "last_name", "phone"})
    sec = Secretary(user_id=user.id, employee_id=employee_id, full_name=user.full_name, **data)
    db.add(sec)
    db.flush()
    return _registration(db, user, sec, employee_id, password, actor_id)


def register_operator(db: Session, payload: schemas.OperatorCreate, actor_id: Optional[int] = None) -> dict:
    _check_location(db, payload.location_id)
    if payload.supervisor_id is not None:
        _get(db, Supervisor, payload.supervisor_id, "Supervisor")

    user, employee_id, password = _create_account(db, payload, UserRole.OPERATOR, Operator, actor_id)
    data = payload.model_dump(exclude={"email", "first_name", "last_name", "phone", "guarantors"})
    op = Operator(user_id=user.id, employee_id=employee_id, **data)
    op.guarantors = [OperatorGuarantor(**g.model_dump()) for g in payload.guarantors]
    db.add(op)
    db.flush()
    return _registration(db, user, op, employee_id, password, actor_id)


def register_manager(db: Session, payload: schemas.ManagerCreate, actor_id: Optional[int] = None) -> dict:
    """Managers are created by directors and start active."""
    _check_location(db, payload.location_id)
    user, employee_id, password = _create_account(db, payload, UserRole.MANAGER, Manager, actor_id)
    user.activate()
    mgr = Manager(
        user_id=user.id,
        employee_id=employee_id,
        location_id=payload.location_id,
        department=payload.department,
        created_by_id=actor_id,
    )
    db.add(mgr)
    db.flush()
    return _registration(db, user, mgr, employee_id, password, actor_id)


# -------------------- listing --------------------
def list_records(
    db: Session,
    model: Type,
    approval_status: Optional[ApprovalStatus] = None,
    location_id: Optional[int] = None,
    skip: int = 0,
    limit: int = 100,
) -> List:
    q = db.query(model)
    if approval_status is not None and hasattr(model, "approval_status"):
        q = q.filter(model.approval_status == approval_status)
    if location_id is not None and hasattr(model, "location_id"):
        q = q.filter(model.location_id == location_id)
    return q.order_by(model.id.desc()).offset(skip).limit(limit).all()


def get_record(db: Session, model: Type, record_id: int):
    return _get(db, model, record_id, model.__name__)


def update_supervisor(db: Session, supervisor_id: int, payload: schemas.SupervisorUpdate, actor_id: Optional[int] = None) -> Supervisor:
    sup = _get(db, Supervisor, supervisor_id, "Supervisor")
    data = payload.model_dump(exclude_unset=True)
    if "location_id" in data:
        _check_location(db, data["location_id"])
    for k, v in data.items():
        setattr(sup, k, v)
    log_activity(db, actor_id, "UPDATE", "supervisors", sup.id, {"fields": sorted(data)})
    db.commit()
    db.refresh(sup)
    return sup


# -------------------- approval --------------------
def approve_record(db: Session, model: Type, record_id: int, actor_id: int):
    """PENDING -> APPROVED; the linked user becomes active in the same commit."""
    record = compare_and_set(
        db, model, record_id, model.approval_status, ApprovalStatus.PENDING,
        {"approval_status": ApprovalStatus.APPROVED, "approved_by_id": actor_id, "approved_at": utcnow()},
        entity=model.__name__.lower(), requested=ApprovalStatus.APPROVED,
    )
    user = db.get(User, record.user_id)
    if user:
        user.activate()
    log_activity(db, actor_id, "APPROVE", model.__tablename__, record.id)
    db.commit()
    db.refresh(record)
    return record


def reject_record(db: Session, model: Type, record_id: int, reason: str, actor_id: int):
    if not (reason or "").strip():
        raise BadRequestError("Rejection reason is required")
    record = compare_and_set(
        db, model, record_id, model.approval_status, ApprovalStatus.PENDING,
        {"approval_status": ApprovalStatus.REJECTED, "approved_by_id": actor_id,
         "approved_at": utcnow(), "rejection_reason": reason.strip()},
        entity=model.__name__.lower(), requested=ApprovalStatus.REJECTED,
    )
    log_activity(db, actor_id, "REJECT", model.__tablename__, record.id, {"reason": reason.strip()})
    db.commit()
    db.refresh(record)
    return record


# -------------------- supervisor structure --------------------
def _get_general_supervisor(db: Session, supervisor_id: int) -> Supervisor:
    gs = _get(db, Supervisor, supervisor_id, "General supervisor")
    if gs.supervisor_type != SupervisorType.GENERAL_SUPERVISOR:
        raise BadRequestError("Target supervisor is not a general supervisor")
    return gs


def set_general_supervisor(db: Session, supervisor_id: int, general_supervisor_id: int) -> Supervisor:
    """Point a supervisor at its general supervisor (no commit)."""
    if supervisor_id == general_supervisor_id:
        raise BadRequestError("A supervisor cannot report to itself")
    sup = _get(db, Supervisor, supervisor_id, "Supervisor")
    gs = _get_general_supervisor(db, general_supervisor_id)
    sup.general_supervisor_id = gs.id
    return sup


def link_supervisor(db: Session, supervisor_id: int, general_supervisor_id: int, actor_id: Optional[int] = None) -> Supervisor:
    sup = set_general_supervisor(db, supervisor_id, general_supervisor_id)
    log_activity(db, actor_id, "LINK_SUPERVISOR", "supervisors", sup.id, {"general_supervisor_id": general_supervisor_id})
    db.commit()
    db.refresh(sup)
    return sup


def assign_location(db: Session, model: Type, record_id: int, location_id: int, actor_id: Optional[int] = None):
    record = _get(db, model, record_id, model.__name__)
    _check_location(db, location_id)
    record.location_id = location_id
    log_activity(db, actor_id, "ASSIGN_LOCATION", model.__tablename__, record.id, {"location_id": location_id})
    db.commit()
    db.refresh(record)
    return record


def operators_of_supervisor(db: Session, supervisor_id: int) -> List[Operator]:
    _get(db, Supervisor, supervisor_id, "Supervisor")
    return db.query(Operator).filter(Operator.supervisor_id == supervisor_id).order_by(Operator.id).all()
