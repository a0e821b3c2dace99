# modules/maintenance/routines.py
"""
Bulk data corrections. Every routine only flushes; `run_migration` commits.
Each returns a summary with at least `matched` and `modified`.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List

from sqlalchemy import or_, update
from sqlalchemy.orm import Session

from config.settings import settings
from core.errors import AppError, BadRequestError, NotFoundError
from modules.locations.services import first_active_location
from modules.maintenance.services import data_migration
from modules.payroll.models import Salary, SalaryAllowance, SalaryDeduction, SalaryStatus, WorkerRole
from modules.payroll.services import recalculate_totals
from modules.security.passwords import MIN_PASSWORD_LENGTH, generate_temporary_password, hash_password
from modules.staff.models import Operator, Secretary, Supervisor
from modules.staff.services import set_general_supervisor
from modules.users.models import User, UserRole, UserStatus

logger = logging.getLogger(__name__)

PAYROLL_ROLES = [UserRole(r.value) for r in WorkerRole]

RESET_BASE = 45000.0
RESET_BASE_STEP = 5000.0
RESET_TRANSPORT = 8000.0
RESET_TRANSPORT_STEP = 2000.0


def _int_param(params: Dict[str, Any], key: str, default: int) -> int:
    raw = params.get(key, default)
    try:
        return int(raw)
    except (TypeError, ValueError):
        raise BadRequestError(f"Parameter {key} must be an integer")


# ===== users =====
@data_migration("activate_users", "Set is_active on every user where it is not already true")
def activate_users(db: Session, params: Dict[str, Any]) -> dict:
    not_active = or_(User.is_active.is_(False), User.is_active.is_(None))
    matched = db.query(User).filter(not_active).count()
    res = db.execute(
        update(User).where(not_active).values(is_active=True).execution_options(synchronize_session=False)
    )
    return {"matched": matched, "modified": res.rowcount}


@data_migration("activate_admins", "Give ADMIN and DIRECTOR accounts status ACTIVE")
def activate_admins(db: Session, params: Dict[str, Any]) -> dict:
    admins = db.query(User).filter(User.role.in_([UserRole.ADMIN, UserRole.DIRECTOR])).all()
    modified = 0
    for u in admins:
        if u.status != UserStatus.ACTIVE or not u.is_active:
            u.activate()
            modified += 1
    db.flush()
    return {"matched": len(admins), "modified": modified}


@data_migration(
    "set_temporary_passwords",
    "Give users without a password hash a generated temporary password",
    private_keys=("credentials",),
)
def set_temporary_passwords(db: Session, params: Dict[str, Any]) -> dict:
    users = db.query(User).filter(or_(User.password_hash.is_(None), User.password_hash == "")).order_by(User.id).all()
    credentials: List[dict] = []
    for u in users:
        password = generate_temporary_password(settings.TEMP_PASSWORD_LENGTH)
        u.password_hash = hash_password(password)
        credentials.append({"user_id": u.id, "email": u.email, "temporary_password": password})
    db.flush()
    return {"matched": len(users), "modified": len(users), "credentials": credentials}


@data_migration(
    "reset_user_password",
    "Set one user's password to a value supplied by the caller",
    repeatable=True,
    required_params=("email", "password"),
)
def reset_user_password(db: Session, params: Dict[str, Any]) -> dict:
    email = str(params["email"]).strip().lower()
    password = str(params["password"])
    if len(password) < MIN_PASSWORD_LENGTH:
        raise BadRequestError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    user = db.query(User).filter(User.email == email).first()
    if not user:
        raise NotFoundError("User not found")
    user.password_hash = hash_password(password)
    db.flush()
    return {"matched": 1, "modified": 1, "user_id": user.id}


# ===== staff =====
@data_migration("assign_supervisors_to_location", "Put every supervisor without a location on the first active location")
def assign_supervisors_to_location(db: Session, params: Dict[str, Any]) -> dict:
    target = first_active_location(db)
    if target is None:
        raise AppError("No active location found", 400)
    unassigned = Supervisor.location_id.is_(None)
    matched = db.query(Supervisor).filter(unassigned).count()
    res = db.execute(
        update(Supervisor).where(unassigned).values(location_id=target.id)
        .execution_options(synchronize_session=False)
    )
    logger.info("Supervisors without a location assigned to %s (%s)", target.id, target.location_name)
    return {"matched": matched, "modified": res.rowcount, "location_id": target.id}


@data_migration(
    "link_supervisor",
    "Report a supervisor to a general supervisor",
    repeatable=True,
    required_params=("supervisor_id", "general_supervisor_id"),
)
def link_supervisor(db: Session, params: Dict[str, Any]) -> dict:
    sup_id = _int_param(params, "supervisor_id", 0)
    gs_id = _int_param(params, "general_supervisor_id", 0)
    sup = db.get(Supervisor, sup_id)
    before = sup.general_supervisor_id if sup else None
    sup = set_general_supervisor(db, sup_id, gs_id)
    db.flush()
    return {"matched": 1, "modified": int(before != gs_id), "supervisor_id": sup.id, "general_supervisor_id": gs_id}


# ===== payroll =====
def _copy_pay(user: User, salary: float, account_name, bank_name, account_number) -> bool:
    """Write pay fields onto the user; True when anything changed."""
    wanted = {"monthly_salary": float(salary), "account_name": account_name}
    if bank_name:
        wanted["bank_name"] = bank_name
    if account_number:
        wanted["account_number"] = account_number
    changed = False
    for field, value in wanted.items():
        if value is not None and getattr(user, field) != value:
            setattr(user, field, value)
            changed = True
    return changed


@data_migration("migrate_salaries_to_users", "Copy role-record salary and bank details onto the user record")
def migrate_salaries_to_users(db: Session, params: Dict[str, Any]) -> dict:
    counts = {"supervisors": 0, "secretaries": 0, "operators": 0}
    matched = 0

    for sup in db.query(Supervisor).filter(Supervisor.salary > 0).order_by(Supervisor.id):
        matched += 1
        if sup.user and _copy_pay(sup.user, sup.salary, sup.full_name, sup.bank_name, sup.bank_account_number):
            counts["supervisors"] += 1

    for sec in db.query(Secretary).filter(Secretary.salary > 0).order_by(Secretary.id):
        matched += 1
        if sec.user and _copy_pay(sec.user, sec.salary, sec.full_name, sec.bank_name, sec.bank_account_number):
            counts["secretaries"] += 1

    for op in db.query(Operator).filter(Operator.salary > 0).order_by(Operator.id):
        matched += 1
        user = op.user
        if user and _copy_pay(user, op.salary, user.full_name, op.bank_name, op.bank_account):
            counts["operators"] += 1

    db.flush()
    return {"matched": matched, "modified": sum(counts.values()), **counts}


@data_migration("reset_salaries", "Replace every salary with one PENDING seed salary per active worker", repeatable=True)
def reset_salaries(db: Session, params: Dict[str, Any]) -> dict:
    month = _int_param(params, "month", 1)
    year = _int_param(params, "year", 2026)
    limit = _int_param(params, "limit", 5)
    if not 1 <= month <= 12:
        raise BadRequestError("month must be between 1 and 12")

    # bulk deletes skip ORM cascades, so children go first
    db.query(SalaryDeduction).delete(synchronize_session=False)
    db.query(SalaryAllowance).delete(synchronize_session=False)
    deleted = db.query(Salary).delete(synchronize_session=False)
    db.expire_all()

    workers = (
        db.query(User)
        .filter(User.is_active.is_(True), User.role.in_(PAYROLL_ROLES))
        .order_by(User.id)
        .limit(limit)
        .all()
    )
    skipped = (
        db.query(User)
        .filter(User.is_active.is_(True), User.role.notin_(PAYROLL_ROLES))
        .order_by(User.id)
        .all()
    )
    if skipped:
        logger.info(
            "reset_salaries skips %d active users without a payroll role: %s",
            len(skipped), ", ".join(f"{u.id} ({u.role.value})" for u in skipped),
        )
    for i, u in enumerate(workers):
        salary = Salary(
            worker_id=u.id,
            worker_name=u.full_name,
            worker_role=WorkerRole(u.role.value),
            month=month,
            year=year,
            base_salary=RESET_BASE + RESET_BASE_STEP * i,
            status=SalaryStatus.PENDING,
            is_deleted=False,
            created_by_id=u.id,
        )
        salary.allowances = [
            SalaryAllowance(
                name="Transport",
                amount=RESET_TRANSPORT + RESET_TRANSPORT_STEP * i,
                description="Monthly transport allowance",
            )
        ]
        recalculate_totals(salary)
        db.add(salary)
    db.flush()
    return {
        "matched": len(workers), "modified": len(workers), "deleted": deleted,
        "skipped_user_ids": [u.id for u in skipped], "month": month, "year": year,
    }
