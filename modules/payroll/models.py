# modules/payroll/models.py
from __future__ import annotations

import enum

from sqlalchemy import (
    Boolean, CheckConstraint, Column, DateTime, Float, ForeignKey, Index, Integer, String, Text, text,
)
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import relationship

# one Base for the whole project
from database.base import Base, utcnow
from modules.users.models import User  # noqa: F401


# ----------------- Enums -----------------
class WorkerRole(str, enum.Enum):
    OPERATOR = "OPERATOR"
    SUPERVISOR = "SUPERVISOR"
    GENERAL_SUPERVISOR = "GENERAL_SUPERVISOR"
    MANAGER = "MANAGER"
    SECRETARY = "SECRETARY"
    DIRECTOR = "DIRECTOR"


class SalaryStatus(str, enum.Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    PAID = "PAID"
    REJECTED = "REJECTED"


class DeductionType(str, enum.Enum):
    OFFENCE = "OFFENCE"
    DAMAGE = "DAMAGE"
    ABSENCE = "ABSENCE"
    LATE_REPORTING = "LATE_REPORTING"
    OTHER = "OTHER"


# payroll listings run from the field upwards
ROLE_ORDER = {
    WorkerRole.OPERATOR: 1,
    WorkerRole.SUPERVISOR: 2,
    WorkerRole.GENERAL_SUPERVISOR: 3,
    WorkerRole.MANAGER: 4,
    WorkerRole.SECRETARY: 5,
    WorkerRole.DIRECTOR: 6,
}


# ----------------- Salary -----------------
class Salary(Base):
    __tablename__ = "salaries"
    __table_args__ = (
        CheckConstraint("month >= 1 AND month <= 12", name="ck_salaries_month"),
        CheckConstraint("base_salary >= 0", name="ck_salaries_base_non_negative"),
        # one live record per worker and period; soft-deleted rows do not count
        Index(
            "uq_salaries_worker_period",
            "worker_id", "month", "year",
            unique=True,
            sqlite_where=text("is_deleted = 0"),
            postgresql_where=text("is_deleted = false"),
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    worker_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    worker_name = Column(String(200), nullable=False)
    worker_role = Column(SAEnum(WorkerRole, name="worker_role"), nullable=False, index=True)
    month = Column(Integer, nullable=False)
    year = Column(Integer, nullable=False)

    base_salary = Column(Float, nullable=False, default=0.0)
    total_allowances = Column(Float, nullable=False, default=0.0)
    total_deductions = Column(Float, nullable=False, default=0.0)
    net_salary = Column(Float, nullable=False, default=0.0)

    status = Column(SAEnum(SalaryStatus, name="salary_status"), nullable=False, default=SalaryStatus.PENDING, index=True)
    approved_by_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    approved_at = Column(DateTime, nullable=True)
    rejected_by_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    rejected_at = Column(DateTime, nullable=True)
    rejection_reason = Column(Text, nullable=True)
    paid_by_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    paid_at = Column(DateTime, nullable=True)
    payment_method = Column(String(60), nullable=True)
    payment_reference = Column(String(120), nullable=True)
    notes = Column(Text, nullable=True)
    created_by_id = Column(Integer, ForeignKey("users.id"), nullable=True)

    is_deleted = Column(Boolean, nullable=False, default=False, index=True)
    deleted_by_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    deleted_at = Column(DateTime, nullable=True)
    delete_reason = Column(Text, nullable=True)

    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    allowances = relationship(
        "SalaryAllowance", back_populates="salary", cascade="all, delete-orphan", order_by="SalaryAllowance.id"
    )
    deductions = relationship(
        "SalaryDeduction", back_populates="salary", cascade="all, delete-orphan", order_by="SalaryDeduction.id"
    )

    def __repr__(self) -> str:
        return f"<Salary {self.id} worker={self.worker_id} {self.month}/{self.year} {self.status}>"


class SalaryAllowance(Base):
    __tablename__ = "salary_allowances"
    __table_args__ = (CheckConstraint("amount >= 0", name="ck_salary_allowances_amount"),)

    id = Column(Integer, primary_key=True, index=True)
    salary_id = Column(Integer, ForeignKey("salaries.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(120), nullable=False)
    amount = Column(Float, nullable=False)
    description = Column(Text, nullable=True)

    salary = relationship("Salary", back_populates="allowances")


class SalaryDeduction(Base):
    __tablename__ = "salary_deductions"
    __table_args__ = (CheckConstraint("amount >= 0", name="ck_salary_deductions_amount"),)

    id = Column(Integer, primary_key=True, index=True)
    salary_id = Column(Integer, ForeignKey("salaries.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(SAEnum(DeductionType, name="deduction_type"), nullable=False)
    amount = Column(Float, nullable=False)
    reason = Column(Text, nullable=False)
    approved_by_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    approved_at = Column(DateTime, nullable=True, default=utcnow)
    is_system_generated = Column(Boolean, nullable=False, default=False)

    salary = relationship("Salary", back_populates="deductions")
