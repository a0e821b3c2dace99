# modules/payroll/schemas.py
from __future__ import annotations
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .models import DeductionType, SalaryStatus, WorkerRole


# =========================================================
# Allowances / Deductions
# =========================================================
class AllowanceIn(BaseModel):
    name: str = Field(min_length=1, max_length=120)
    amount: float = Field(ge=0)
    description: Optional[str] = None


class AllowanceInDB(AllowanceIn):
    model_config = ConfigDict(from_attributes=True)
    id: int


class DeductionCreate(BaseModel):
    type: DeductionType
    amount: float = Field(ge=0)
    reason: str = Field(min_length=1)
    is_system_generated: bool = False


class DeductionInDB(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    type: DeductionType
    amount: float
    reason: str
    approved_by_id: Optional[int] = None
    approved_at: Optional[datetime] = None
    is_system_generated: bool


# =========================================================
# Salaries
# =========================================================
class SalaryCreate(BaseModel):
    worker_id: int
    worker_name: Optional[str] = None
    worker_role: Optional[WorkerRole] = None
    month: int = Field(ge=1, le=12)
    year: int = Field(ge=2000, le=2100)
    base_salary: float = Field(ge=0)
    allowances: List[AllowanceIn] = Field(default_factory=list)
    notes: Optional[str] = None


class SalaryUpdate(BaseModel):
    base_salary: Optional[float] = Field(default=None, ge=0)
    allowances: Optional[List[AllowanceIn]] = None
    notes: Optional[str] = None


class SalaryReject(BaseModel):
    reason: str = Field(min_length=1)


class SalaryPay(BaseModel):
    payment_method: str = Field(min_length=1, max_length=60)
    payment_reference: Optional[str] = Field(default=None, max_length=120)


class SalaryDelete(BaseModel):
    reason: str = Field(min_length=1)


class BulkApprove(BaseModel):
    salary_ids: List[int] = Field(min_length=1)


class BulkResult(BaseModel):
    succeeded: List[int]
    failed: dict[int, str]


class SalaryInDB(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    worker_id: int
    worker_name: str
    worker_role: WorkerRole
    month: int
    year: int
    base_salary: float
    allowances: List[AllowanceInDB] = []
    deductions: List[DeductionInDB] = []
    total_allowances: float
    total_deductions: float
    net_salary: float
    status: SalaryStatus
    approved_by_id: Optional[int] = None
    approved_at: Optional[datetime] = None
    rejected_by_id: Optional[int] = None
    rejected_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    paid_by_id: Optional[int] = None
    paid_at: Optional[datetime] = None
    payment_method: Optional[str] = None
    payment_reference: Optional[str] = None
    notes: Optional[str] = None
    created_by_id: Optional[int] = None
    created_at: datetime
    updated_at: datetime


# =========================================================
# Reports
# =========================================================
class SalaryStats(BaseModel):
    total_workers: int = 0
    total_base_salary: float = 0.0
    total_allowances: float = 0.0
    total_deductions: float = 0.0
    total_net_salary: float = 0.0
    paid_count: int = 0
    pending_count: int = 0
    approved_count: int = 0
    rejected_count: int = 0


class RoleForecast(BaseModel):
    worker_role: WorkerRole
    count: int
    total_base_salary: float
    total_allowances: float
    total_deductions: float
    total_net_salary: float


class RoleBreakdown(BaseModel):
    worker_role: WorkerRole
    count: int
    total_net_salary: float
    avg_net_salary: float


class ProfileSalary(BaseModel):
    worker_id: int
    worker_name: str
    worker_role: str
    email: str
    account_name: str
    account_number: str
    bank_name: str
    month: int
    year: int
    base_salary: float
    total_deductions: float
    net_salary: float
    deductions: List[DeductionInDB] = []
    status: str
