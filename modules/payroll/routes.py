# modules/payroll/routes.py
from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import Response
from sqlalchemy.orm import Session

from core.errors import ForbiddenError
from database.connection import get_db
from modules.payroll import schemas, services
from modules.payroll.models import SalaryStatus, WorkerRole
from modules.security.deps import get_current_user, require_perm
from modules.security.perms import DIRECTOR_PAY_HIDDEN_FROM, has_perm
from modules.users.models import User

api_router = APIRouter()


def _hide_director(user: User) -> bool:
    return user.role.value in DIRECTOR_PAY_HIDDEN_FROM


# ---------- REPORTS ----------
@api_router.get("/stats", response_model=schemas.SalaryStats)
def salary_stats_route(
    month: Optional[int] = Query(None, ge=1, le=12),
    year: Optional[int] = None,
    user: User = Depends(require_perm("payroll.view")),
    db: Session = Depends(get_db),
):
    return services.salary_stats(db, month=month, year=year)


@api_router.get("/forecast", response_model=List[schemas.RoleForecast])
def monthly_forecast_route(
    month: int = Query(..., ge=1, le=12),
    year: int = Query(...),
    user: User = Depends(require_perm("payroll.view")),
    db: Session = Depends(get_db),
):
    rows = services.monthly_forecast(db, month, year)
    if _hide_director(user):
        rows = [r for r in rows if r["worker_role"] != WorkerRole.DIRECTOR]
    return rows


@api_router.get("/breakdown", response_model=List[schemas.RoleBreakdown])
def breakdown_route(
    month: int = Query(..., ge=1, le=12),
    year: int = Query(...),
    user: User = Depends(require_perm("payroll.view")),
    db: Session = Depends(get_db),
):
    rows = services.breakdown_by_role(db, month, year)
    if _hide_director(user):
        rows = [r for r in rows if r["worker_role"] != WorkerRole.DIRECTOR]
    return rows


@api_router.get("/profiles", response_model=List[schemas.ProfileSalary])
def worker_salaries_from_profiles_route(
    month: Optional[int] = Query(None, ge=1, le=12),
    year: Optional[int] = None,
    worker_role: Optional[WorkerRole] = None,
    status: Optional[str] = None,
    user: User = Depends(require_perm("payroll.view")),
    db: Session = Depends(get_db),
):
    now = datetime.now()
    return services.worker_salaries_from_profiles(
        db,
        month or now.month,
        year or now.year,
        worker_role=worker_role,
        status=status,
        exclude_director=_hide_director(user),
    )


@api_router.get("/export")
def export_salaries_route(
    month: int = Query(..., ge=1, le=12),
    year: int = Query(...),
    user: User = Depends(require_perm("payroll.view")),
    db: Session = Depends(get_db),
):
    body = services.export_salaries_csv(db, month, year, exclude_director=_hide_director(user))
    filename = f"salaries_{year}_{month:02d}.csv"
    return Response(
        content=body,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@api_router.get("/me", response_model=List[schemas.SalaryInDB])
def my_salaries_route(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return services.worker_salary_history(db, user.id)


@api_router.get("/worker/{worker_id}/history", response_model=List[schemas.SalaryInDB])
def worker_history_route(worker_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    if user.id != worker_id and not has_perm(user.role.value, "payroll.view"):
        raise ForbiddenError("Insufficient permissions")
    rows = services.worker_salary_history(db, worker_id)
    if _hide_director(user):
        rows = [r for r in rows if r.worker_role != WorkerRole.DIRECTOR]
    return rows


# ---------- SALARIES ----------
@api_router.get("/", response_model=List[schemas.SalaryInDB])
def read_salaries_route(
    month: Optional[int] = Query(None, ge=1, le=12),
    year: Optional[int] = None,
    worker_role: Optional[WorkerRole] = None,
    status: Optional[SalaryStatus] = None,
    worker_id: Optional[int] = None,
    skip: int = 0,
    limit: int = 500,
    user: User = Depends(require_perm("payroll.view")),
    db: Session = Depends(get_db),
):
    return services.list_salaries(
        db, month=month, year=year, worker_role=worker_role, status=status, worker_id=worker_id,
        exclude_director=_hide_director(user), skip=skip, limit=limit,
    )


@api_router.post("/", response_model=schemas.SalaryInDB, status_code=status.HTTP_201_CREATED)
def create_salary_route(
    payload: schemas.SalaryCreate,
    user: User = Depends(require_perm("payroll.manage")),
    db: Session = Depends(get_db),
):
    return services.create_salary(db, payload, actor_id=user.id)


@api_router.post("/bulk-approve", response_model=schemas.BulkResult)
def bulk_approve_route(
    payload: schemas.BulkApprove,
    user: User = Depends(require_perm("payroll.manage")),
    db: Session = Depends(get_db),
):
    return services.bulk_approve(db, payload.salary_ids, user.id)


@api_router.get("/{salary_id}", response_model=schemas.SalaryInDB)
def read_salary_route(salary_id: int, user: User = Depends(require_perm("payroll.view")), db: Session = Depends(get_db)):
    return services.get_salary(db, salary_id, exclude_director=_hide_director(user))


@api_router.put("/{salary_id}", response_model=schemas.SalaryInDB)
def update_salary_route(
    salary_id: int,
    payload: schemas.SalaryUpdate,
    user: User = Depends(require_perm("payroll.manage")),
    db: Session = Depends(get_db),
):
    return services.update_salary(db, salary_id, payload, actor_id=user.id)


@api_router.post("/{salary_id}/deductions", response_model=schemas.SalaryInDB)
def add_deduction_route(
    salary_id: int,
    payload: schemas.DeductionCreate,
    user: User = Depends(require_perm("payroll.manage")),
    db: Session = Depends(get_db),
):
    return services.add_deduction(db, salary_id, payload, actor_id=user.id)


@api_router.post("/{salary_id}/approve", response_model=schemas.SalaryInDB)
def approve_salary_route(salary_id: int, user: User = Depends(require_perm("payroll.manage")), db: Session = Depends(get_db)):
    return services.approve_salary(db, salary_id, user.id)


@api_router.post("/{salary_id}/reject", response_model=schemas.SalaryInDB)
def reject_salary_route(
    salary_id: int,
    payload: schemas.SalaryReject,
    user: User = Depends(require_perm("payroll.manage")),
    db: Session = Depends(get_db),
):
    return services.reject_salary(db, salary_id, payload.reason, user.id)


@api_router.post("/{salary_id}/pay", response_model=schemas.SalaryInDB)
def pay_salary_route(
    salary_id: int,
    payload: schemas.SalaryPay,
    user: User = Depends(require_perm("payroll.manage")),
    db: Session = Depends(get_db),
):
    return services.mark_salary_paid(db, salary_id, payload.payment_method, payload.payment_reference, user.id)


@api_router.delete("/{salary_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_salary_route(
    salary_id: int,
    payload: schemas.SalaryDelete,
    user: User = Depends(require_perm("payroll.manage")),
    db: Session = Depends(get_db),
):
    services.delete_salary(db, salary_id, payload.reason, user.id)
