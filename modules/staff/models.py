# modules/staff/models.py
from __future__ import annotations

import enum

from sqlalchemy import (
    Boolean, CheckConstraint, Column, Date, DateTime, Float, ForeignKey, Integer, String, Text,
)
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import relationship

from database.base import Base, utcnow
from modules.users.models import User  # noqa: F401


# ----------------- Enums -----------------
class ApprovalStatus(str, enum.Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class SupervisorType(str, enum.Enum):
    GENERAL_SUPERVISOR = "GENERAL_SUPERVISOR"
    SUPERVISOR = "SUPERVISOR"
    FIELD_SUPERVISOR = "FIELD_SUPERVISOR"
    SHIFT_SUPERVISOR = "SHIFT_SUPERVISOR"
    AREA_SUPERVISOR = "AREA_SUPERVISOR"


class OperatorShift(str, enum.Enum):
    DAY = "DAY"
    NIGHT = "NIGHT"
    ROTATING = "ROTATING"


# ----------------- Role records -----------------
class Supervisor(Base):
    __tablename__ = "supervisors"
    __table_args__ = (CheckConstraint("salary >= 0", name="ck_supervisors_salary_non_negative"),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), unique=True, nullable=False)
    employee_id = Column(String(64), unique=True, nullable=False)
    full_name = Column(String(200), nullable=False)
    supervisor_type = Column(SAEnum(SupervisorType, name="supervisor_type"), nullable=False, default=SupervisorType.SUPERVISOR)
    general_supervisor_id = Column(Integer, ForeignKey("supervisors.id"), nullable=True)
    location_id = Column(Integer, ForeignKey("locations.id"), nullable=True, index=True)

    salary = Column(Float, nullable=False, default=0.0)
    bank_name = Column(String(120), nullable=True)
    bank_account_number = Column(String(32), nullable=True)

    region_assigned = Column(String(120), nullable=True)
    shift_type = Column(String(20), nullable=True)
    is_motorbike_owner = Column(Boolean, nullable=False, default=False)
    transport_allowance_eligible = Column(Boolean, nullable=False, default=False)
    must_reset_password = Column(Boolean, nullable=False, default=True)
    start_date = Column(Date, nullable=True)

    approval_status = Column(SAEnum(ApprovalStatus, name="approval_status"), nullable=False, default=ApprovalStatus.PENDING)
    approved_by_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    approved_at = Column(DateTime, nullable=True)
    rejection_reason = Column(Text, nullable=True)

    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    user = relationship("User", foreign_keys=[user_id])
    general_supervisor = relationship("Supervisor", remote_side=[id])


class Secretary(Base):
    __tablename__ = "secretaries"
    __table_args__ = (CheckConstraint("salary >= 0", name="ck_secretaries_salary_non_negative"),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), unique=True, nullable=False)
    employee_id = Column(String(64), unique=True, nullable=False)
    full_name = Column(String(200), nullable=False)
    address = Column(Text, nullable=True)
    date_of_employment = Column(Date, nullable=True)
    region_assigned = Column(String(120), nullable=True)

    salary = Column(Float, nullable=False, default=0.0)
    bank_name = Column(String(120), nullable=True)
    bank_account_number = Column(String(32), nullable=True)

    approval_status = Column(SAEnum(ApprovalStatus, name="approval_status"), nullable=False, default=ApprovalStatus.PENDING)
    approved_by_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    approved_at = Column(DateTime, nullable=True)
    rejection_reason = Column(Text, nullable=True)

    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    user = relationship("User", foreign_keys=[user_id])


class Operator(Base):
    __tablename__ = "operators"
    __table_args__ = (CheckConstraint("salary >= 0", name="ck_operators_salary_non_negative"),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), unique=True, nullable=False)
    employee_id = Column(String(64), unique=True, nullable=False)
    supervisor_id = Column(Integer, ForeignKey("supervisors.id"), nullable=True, index=True)
    location_id = Column(Integer, ForeignKey("locations.id"), nullable=True, index=True)
    shift_type = Column(SAEnum(OperatorShift, name="operator_shift"), nullable=False, default=OperatorShift.DAY)

    salary = Column(Float, nullable=False, default=0.0)
    bank_name = Column(String(120), nullable=True)
    bank_account = Column(String(32), nullable=True)

    medical_fitness = Column(Boolean, nullable=False, default=False)
    previous_experience = Column(Text, nullable=True)

    approval_status = Column(SAEnum(ApprovalStatus, name="approval_status"), nullable=False, default=ApprovalStatus.PENDING)
    approved_by_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    approved_at = Column(DateTime, nullable=True)
    rejection_reason = Column(Text, nullable=True)

    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    user = relationship("User", foreign_keys=[user_id])
    supervisor = relationship("Supervisor")
    guarantors = relationship("OperatorGuarantor", back_populates="operator", cascade="all, delete-orphan")


class OperatorGuarantor(Base):
    __tablename__ = "operator_guarantors"

    id = Column(Integer, primary_key=True, index=True)
    operator_id = Column(Integer, ForeignKey("operators.id", ondelete="CASCADE"), nullable=False)
    name = Column(String(200), nullable=False)
    phone = Column(String(32), nullable=False)
    address = Column(Text, nullable=True)
    relationship_to_operator = Column(String(60), nullable=True)

    operator = relationship("Operator", back_populates="guarantors")


class Manager(Base):
    __tablename__ = "managers"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), unique=True, nullable=False)
    employee_id = Column(String(64), unique=True, nullable=False)
    location_id = Column(Integer, ForeignKey("locations.id"), nullable=True)
    department = Column(String(120), nullable=True)
    created_by_id = Column(Integer, ForeignKey("users.id"), nullable=True)

    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    user = relationship("User", foreign_keys=[user_id])
