# modules/payroll/services.py
from __future__ import annotations

import csv
import io
import logging
from typing import Iterable, List, Optional

from sqlalchemy import case, func, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from core.errors import AppError, BadRequestError, ConflictError, InvalidTransitionError, NotFoundError
from core.transitions import compare_and_set
from database.base import utcnow
from modules.audit.services import log_activity
from modules.payroll import lifecycle, schemas
from modules.payroll.models import (
    ROLE_ORDER, Salary, SalaryAllowance, SalaryDeduction, SalaryStatus, WorkerRole,
)
from modules.users.models import User, UserRole

logger = logging.getLogger(__name__)

# roles that get a payroll line in the profile view
PROFILE_ROLES = [
    WorkerRole.OPERATOR, WorkerRole.SUPERVISOR, WorkerRole.GENERAL_SUPERVISOR,
    WorkerRole.MANAGER, WorkerRole.SECRETARY,
]

_FINAL = (SalaryStatus.PAID, SalaryStatus.REJECTED)
_OPEN = [s for s in SalaryStatus if s not in _FINAL]


# -------------------- helpers --------------------
def _money(x) -> float:
    return round(float(x or 0.0), 2)


def recalculate_totals(salary: Salary) -> Salary:
    """net = base + allowances - deductions; runs on every write that touches money."""
    salary.total_allowances = _money(sum(a.amount or 0 for a in salary.allowances))
    salary.total_deductions = _money(sum(d.amount or 0 for d in salary.deductions))
    salary.net_salary = _money((salary.base_salary or 0) + salary.total_allowances - salary.total_deductions)
    return salary


def _role_rank():
    return case(*[(Salary.worker_role == role, rank) for role, rank in ROLE_ORDER.items()], else_=999)


def _live(db: Session):
    return db.query(Salary).filter(Salary.is_deleted.is_(False))


def _worker_role_for(user: User, requested: Optional[WorkerRole]) -> WorkerRole:
    if requested is not None:
        return requested
    try:
        return WorkerRole(user.role.value)
    except ValueError:
        raise BadRequestError(f"Users with role {user.role.value} are not on the payroll")


# -------------------- reads --------------------
def get_salary(db: Session, salary_id: int, exclude_director: bool = False) -> Salary:
    q = _live(db).options(selectinload(Salary.allowances), selectinload(Salary.deductions)).filter(Salary.id == salary_id)
    if exclude_director:
        q = q.filter(Salary.worker_role != WorkerRole.DIRECTOR)
    salary = q.first()
    if not salary:
        raise NotFoundError("Salary record not found")
    return salary


def list_salaries(
    db: Session,
    month: Optional[int] = None,
    year: Optional[int] = None,
    worker_role: Optional[WorkerRole] = None,
    status: Optional[SalaryStatus] = None,
    worker_id: Optional[int] = None,
    exclude_director: bool = False,
    skip: int = 0,
    limit: int = 500,
) -> List[Salary]:
    q = _live(db).options(selectinload(Salary.allowances), selectinload(Salary.deductions))
    if month:
        q = q.filter(Salary.month == month)
    if year:
        q = q.filter(Salary.year == year)
    if worker_role:
        q = q.filter(Salary.worker_role == worker_role)
    if status:
        q = q.filter(Salary.status == status)
    if worker_id:
        q = q.filter(Salary.worker_id == worker_id)
    if exclude_director:
        q = q.filter(Salary.worker_role != WorkerRole.DIRECTOR)
    return (
        q.order_by(_role_rank(), Salary.year.desc(), Salary.month.desc(), Salary.created_at.desc(), Salary.id.desc())
        .offset(skip)
        .limit(limit)
        .all()
    )


def worker_salary_history(db: Session, worker_id: int) -> List[Salary]:
    return (
        _live(db)
        .options(selectinload(Salary.allowances), selectinload(Salary.deductions))
        .filter(Salary.worker_id == worker_id)
        .order_by(Salary.year.desc(), Salary.month.desc())
        .all()
    )


# -------------------- writes --------------------
def create_salary(db: Session, payload: schemas.SalaryCreate, actor_id: Optional[int] = None) -> Salary:
    worker = db.get(User, payload.worker_id)
    if not worker:
        raise NotFoundError("Worker not found")
    role = _worker_role_for(worker, payload.worker_role)

    dup = (
        _live(db)
        .filter(Salary.worker_id == worker.id, Salary.month == payload.month, Salary.year == payload.year)
        .first()
    )
    if dup:
        raise ConflictError(f"Salary for {payload.month}/{payload.year} already exists for this worker")

    salary = Salary(
        worker_id=worker.id,
        worker_name=payload.worker_name or worker.full_name,
        worker_role=role,
        month=payload.month,
        year=payload.year,
        base_salary=_money(payload.base_salary),
        notes=payload.notes,
        status=SalaryStatus.PENDING,
        created_by_id=actor_id,
        allowances=[SalaryAllowance(**a.model_dump()) for a in payload.allowances],
    )
    recalculate_totals(salary)
    db.add(salary)
    try:
        db.flush()
    except IntegrityError:
        db.rollback()
        raise ConflictError(f"Salary for {payload.month}/{payload.year} already exists for this worker")

    log_activity(db, actor_id, "CREATE_SALARY", "salary", salary.id, {
        "worker_name": salary.worker_name, "worker_role": role.value, "month": salary.month, "year": salary.year,
    })
    db.commit()
    db.refresh(salary)
    logger.info("Salary %s created for worker %s (%s/%s)", salary.id, worker.id, salary.month, salary.year)
    return salary


def _claim_for_edit(db: Session, salary_id: int, allowed: List[SalaryStatus], message: str) -> Salary:
    """Bump updated_at while the status is still in `allowed`; 404 or 409 otherwise."""
    try:
        salary = compare_and_set(
            db, Salary, salary_id, Salary.status, allowed, {"updated_at": utcnow()},
            entity="salary", requested="edit", visible=Salary.is_deleted.is_(False),
        )
    except NotFoundError:
        raise NotFoundError("Salary record not found")
    except InvalidTransitionError as e:
        raise ConflictError(message.format(status=e.current))
    return salary


def update_salary(db: Session, salary_id: int, payload: schemas.SalaryUpdate, actor_id: Optional[int] = None) -> Salary:
    salary = _claim_for_edit(db, salary_id, [SalaryStatus.PENDING], "Only pending salaries can be edited")

    data = payload.model_dump(exclude_unset=True)
    if data.get("base_salary") is not None:
        salary.base_salary = _money(data["base_salary"])
    if payload.allowances is not None:
        salary.allowances = [SalaryAllowance(**a.model_dump()) for a in payload.allowances]
    if "notes" in data:
        salary.notes = data["notes"]

    recalculate_totals(salary)
    log_activity(db, actor_id, "UPDATE_SALARY", "salary", salary.id, {"fields": sorted(data)})
    db.commit()
    db.refresh(salary)
    return salary


def add_deduction(db: Session, salary_id: int, payload: schemas.DeductionCreate, actor_id: Optional[int] = None) -> Salary:
    salary = _claim_for_edit(db, salary_id, _OPEN, "Cannot add deductions to a {status} salary")

    salary.deductions.append(SalaryDeduction(
        type=payload.type,
        amount=_money(payload.amount),
        reason=payload.reason,
        approved_by_id=actor_id,
        approved_at=utcnow(),
        is_system_generated=payload.is_system_generated,
    ))
    recalculate_totals(salary)
    log_activity(db, actor_id, "ADD_SALARY_DEDUCTION", "salary", salary.id, {
        "type": payload.type.value, "amount": _money(payload.amount),
    })
    db.commit()
    db.refresh(salary)
    return salary


def _transition(db: Session, salary_id: int, command: lifecycle.Command, actor_id: int, action: str) -> Salary:
    salary = lifecycle.apply_transition(db, salary_id, command, actor_id)
    log_activity(db, actor_id, action, "salary", salary.id, {
        "worker_name": salary.worker_name, "month": salary.month, "year": salary.year,
    })
    db.commit()
    db.refresh(salary)
    logger.info("Salary %s -> %s by user %s", salary.id, salary.status.value, actor_id)
    return salary


def approve_salary(db: Session, salary_id: int, actor_id: int) -> Salary:
    return _transition(db, salary_id, lifecycle.Approve(), actor_id, "APPROVE_SALARY")


def reject_salary(db: Session, salary_id: int, reason: str, actor_id: int) -> Salary:
    return _transition(db, salary_id, lifecycle.Reject(reason=reason), actor_id, "REJECT_SALARY")


def mark_salary_paid(
    db: Session, salary_id: int, payment_method: str, payment_reference: Optional[str], actor_id: int
) -> Salary:
    command = lifecycle.Pay(payment_method=payment_method, payment_reference=payment_reference)
    return _transition(db, salary_id, command, actor_id, "MARK_SALARY_PAID")


def bulk_approve(db: Session, salary_ids: Iterable[int], actor_id: int) -> dict:
    succeeded: List[int] = []
    failed: dict[int, str] = {}
    for sid in dict.fromkeys(salary_ids):
        try:
            approve_salary(db, sid, actor_id)
            succeeded.append(sid)
        except AppError as e:
            db.rollback()
            failed[sid] = e.message
    return {"succeeded": succeeded, "failed": failed}


def delete_salary(db: Session, salary_id: int, reason: str, actor_id: int) -> None:
    """Soft delete; a second delete of the same record is a 404."""
    if not (reason or "").strip():
        raise BadRequestError("Delete reason is required")
    result = db.execute(
        update(Salary)
        .where(Salary.id == salary_id, Salary.is_deleted.is_(False))
        .values(is_deleted=True, deleted_by_id=actor_id, deleted_at=utcnow(), delete_reason=reason.strip())
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        db.rollback()
        raise NotFoundError("Salary record not found")
    log_activity(db, actor_id, "DELETE_SALARY", "salary", salary_id, {"reason": reason.strip()})
    db.commit()


# -------------------- reports --------------------
def salary_stats(db: Session, month: Optional[int] = None, year: Optional[int] = None) -> dict:
    def _count(st: SalaryStatus):
        return func.coalesce(func.sum(case((Salary.status == st, 1), else_=0)), 0)

    q = db.query(
        func.count(Salary.id),
        func.coalesce(func.sum(Salary.base_salary), 0),
        func.coalesce(func.sum(Salary.total_allowances), 0),
        func.coalesce(func.sum(Salary.total_deductions), 0),
        func.coalesce(func.sum(Salary.net_salary), 0),
        _count(SalaryStatus.PAID),
        _count(SalaryStatus.PENDING),
        _count(SalaryStatus.APPROVED),
        _count(SalaryStatus.REJECTED),
    ).filter(Salary.is_deleted.is_(False))
    if month:
        q = q.filter(Salary.month == month)
    if year:
        q = q.filter(Salary.year == year)
    row = q.one()
    return {
        "total_workers": int(row[0] or 0),
        "total_base_salary": _money(row[1]),
        "total_allowances": _money(row[2]),
        "total_deductions": _money(row[3]),
        "total_net_salary": _money(row[4]),
        "paid_count": int(row[5] or 0),
        "pending_count": int(row[6] or 0),
        "approved_count": int(row[7] or 0),
        "rejected_count": int(row[8] or 0),
    }


def monthly_forecast(db: Session, month: int, year: int) -> List[dict]:
    rows = (
        db.query(
            Salary.worker_role,
            func.count(Salary.id),
            func.sum(Salary.base_salary),
            func.sum(Salary.total_allowances),
            func.sum(Salary.total_deductions),
            func.sum(Salary.net_salary),
        )
        .filter(Salary.is_deleted.is_(False), Salary.month == month, Salary.year == year)
        .group_by(Salary.worker_role)
        .all()
    )
    out = [
        {
            "worker_role": role,
            "count": int(cnt),
            "total_base_salary": _money(base),
            "total_allowances": _money(allow),
            "total_deductions": _money(ded),
            "total_net_salary": _money(net),
        }
        for role, cnt, base, allow, ded, net in rows
    ]
    return sorted(out, key=lambda r: ROLE_ORDER.get(r["worker_role"], 999))


def breakdown_by_role(db: Session, month: int, year: int) -> List[dict]:
    rows = (
        db.query(Salary.worker_role, func.count(Salary.id), func.sum(Salary.net_salary), func.avg(Salary.net_salary))
        .filter(Salary.is_deleted.is_(False), Salary.month == month, Salary.year == year)
        .group_by(Salary.worker_role)
        .all()
    )
    out = [
        {"worker_role": role, "count": int(cnt), "total_net_salary": _money(total), "avg_net_salary": _money(avg)}
        for role, cnt, total, avg in rows
    ]
    return sorted(out, key=lambda r: r["total_net_salary"], reverse=True)


def worker_salaries_from_profiles(
    db: Session,
    month: int,
    year: int,
    worker_role: Optional[WorkerRole] = None,
    status: Optional[str] = None,
    exclude_director: bool = False,
) -> List[dict]:
    """Payroll sheet built from User.monthly_salary less the period's recorded deductions."""
    if worker_role is not None:
        if exclude_director and worker_role == WorkerRole.DIRECTOR:
            return []
        roles = [UserRole(worker_role.value)]
    else:
        roles = [UserRole(r.value) for r in PROFILE_ROLES]

    workers = db.query(User).filter(User.role.in_(roles)).order_by(User.last_name, User.first_name).all()

    period = {
        s.worker_id: s
        for s in _live(db).options(selectinload(Salary.deductions)).filter(Salary.month == month, Salary.year == year)
    }

    out = []
    for w in workers:
        rec = period.get(w.id)
        deductions = list(rec.deductions) if rec else []
        total_ded = rec.total_deductions if rec else 0.0
        monthly = _money(w.monthly_salary)
        out.append({
            "worker_id": w.id,
            "worker_name": w.full_name,
            "worker_role": w.role.value,
            "email": w.email,
            "account_name": w.account_name or "Not provided",
            "account_number": w.account_number or "Not provided",
            "bank_name": w.bank_name or "Not provided",
            "month": month,
            "year": year,
            "base_salary": monthly,
            "total_deductions": _money(total_ded),
            "net_salary": _money(monthly - (total_ded or 0)),
            "deductions": [schemas.DeductionInDB.model_validate(d) for d in deductions],
            "status": rec.status.value if rec else SalaryStatus.PENDING.value,
        })

    if status:
        out = [r for r in out if r["status"] == status]
    return sorted(out, key=lambda r: ROLE_ORDER.get(WorkerRole(r["worker_role"]), 999))


def export_salaries_csv(db: Session, month: int, year: int, exclude_director: bool = False) -> str:
    buf = io.StringIO()
    w = csv.writer(buf)
    w.writerow([
        "id", "worker_id", "worker_name", "worker_role", "month", "year", "base_salary",
        "total_allowances", "total_deductions", "net_salary", "status", "payment_method", "payment_reference",
    ])
    for s in list_salaries(db, month=month, year=year, exclude_director=exclude_director, limit=100000):
        w.writerow([
            s.id, s.worker_id, s.worker_name, s.worker_role.value, s.month, s.year,
            f"{s.base_salary:.2f}", f"{s.total_allowances:.2f}", f"{s.total_deductions:.2f}", f"{s.net_salary:.2f}",
            s.status.value, s.payment_method or "", s.payment_reference or "",
        ])
    return buf.getvalue()
