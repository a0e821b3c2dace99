# modules/staff/schemas.py
from __future__ import annotations
from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from modules.users.schemas import UserInDB
from .models import ApprovalStatus, OperatorShift, SupervisorType


# =========================================================
# Shared registration fields
# =========================================================
class StaffAccountBase(BaseModel):
    email: EmailStr
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    phone: Optional[str] = None

    @field_validator("email")
    @classmethod
    def _lower_email(cls, v: str) -> str:
        return v.strip().lower()


class RejectRequest(BaseModel):
    reason: str = Field(min_length=1)


# =========================================================
# Supervisors
# =========================================================
class SupervisorCreate(StaffAccountBase):
    supervisor_type: SupervisorType = SupervisorType.SUPERVISOR
    general_supervisor_id: Optional[int] = None
    location_id: Optional[int] = None
    salary: float = Field(default=0.0, ge=0)
    bank_name: Optional[str] = None
    bank_account_number: Optional[str] = None
    region_assigned: Optional[str] = None
    shift_type: Optional[str] = None
    is_motorbike_owner: bool = False
    transport_allowance_eligible: bool = False
    start_date: Optional[date] = None


class SupervisorUpdate(BaseModel):
    location_id: Optional[int] = None
    salary: Optional[float] = Field(default=None, ge=0)
    bank_name: Optional[str] = None
    bank_account_number: Optional[str] = None
    region_assigned: Optional[str] = None
    shift_type: Optional[str] = None
    is_motorbike_owner: Optional[bool] = None
    transport_allowance_eligible: Optional[bool] = None


class SupervisorInDB(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    employee_id: str
    full_name: str
    supervisor_type: SupervisorType
    general_supervisor_id: Optional[int] = None
    location_id: Optional[int] = None
    salary: float
    bank_name: Optional[str] = None
    bank_account_number: Optional[str] = None
    region_assigned: Optional[str] = None
    shift_type: Optional[str] = None
    is_motorbike_owner: bool
    transport_allowance_eligible: bool
    approval_status: ApprovalStatus
    approved_by_id: Optional[int] = None
    approved_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    created_at: datetime


class LinkSupervisorRequest(BaseModel):
    general_supervisor_id: int


class AssignLocationRequest(BaseModel):
    location_id: int


# =========================================================
# Secretaries
# =========================================================
class SecretaryCreate(StaffAccountBase):
    salary: float = Field(default=0.0, ge=0)
    bank_name: Optional[str] = None
    bank_account_number: Optional[str] = None
    address: Optional[str] = None
    date_of_employment: Optional[date] = None
    region_assigned: Optional[str] = None


class SecretaryInDB(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    employee_id: str
    full_name: str
    salary: float
    bank_name: Optional[str] = None
    bank_account_number: Optional[str] = None
    address: Optional[str] = None
    date_of_employment: Optional[date] = None
    region_assigned: Optional[str] = None
    approval_status: ApprovalStatus
    approved_by_id: Optional[int] = None
    approved_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    created_at: datetime


# =========================================================
# Operators
# =========================================================
class GuarantorIn(BaseModel):
    name: str = Field(min_length=1)
    phone: str = Field(min_length=1)
    address: Optional[str] = None
    relationship_to_operator: Optional[str] = None


class GuarantorInDB(GuarantorIn):
    model_config = ConfigDict(from_attributes=True)
    id: int


class OperatorCreate(StaffAccountBase):
    supervisor_id: Optional[int] = None
    location_id: Optional[int] = None
    shift_type: OperatorShift = OperatorShift.DAY
    salary: float = Field(default=0.0, ge=0)
    bank_name: Optional[str] = None
    bank_account: Optional[str] = None
    medical_fitness: bool = False
    previous_experience: Optional[str] = None
    guarantors: List[GuarantorIn] = Field(default_factory=list)


class OperatorInDB(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    employee_id: str
    supervisor_id: Optional[int] = None
    location_id: Optional[int] = None
    shift_type: OperatorShift
    salary: float
    bank_name: Optional[str] = None
    bank_account: Optional[str] = None
    medical_fitness: bool
    previous_experience: Optional[str] = None
    approval_status: ApprovalStatus
    approved_by_id: Optional[int] = None
    approved_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    guarantors: List[GuarantorInDB] = []
    created_at: datetime


# =========================================================
# Managers
# =========================================================
class ManagerCreate(StaffAccountBase):
    location_id: Optional[int] = None
    department: Optional[str] = None


class ManagerInDB(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    employee_id: str
    location_id: Optional[int] = None
    department: Optional[str] = None
    created_at: datetime


# =========================================================
# Registration result (temporary password is only ever shown here)
# =========================================================
class StaffRegistration(BaseModel):
    user: UserInDB
    employee_id: str
    temporary_password: str
    record_id: int
