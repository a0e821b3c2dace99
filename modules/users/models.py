# modules/users/models.py
from __future__ import annotations

import enum

from sqlalchemy import (
    Boolean, CheckConstraint, Column, Date, DateTime, Float, ForeignKey, Integer, String, Text,
)
from sqlalchemy import Enum as SAEnum

from database.base import Base, utcnow


# ----------------- Enums -----------------
class UserRole(str, enum.Enum):
    DEVELOPER = "DEVELOPER"
    DIRECTOR = "DIRECTOR"
    ADMIN = "ADMIN"
    GENERAL_SUPERVISOR = "GENERAL_SUPERVISOR"
    SUPERVISOR = "SUPERVISOR"
    OPERATOR = "OPERATOR"
    SECRETARY = "SECRETARY"
    MANAGER = "MANAGER"


class UserStatus(str, enum.Enum):
    PENDING = "PENDING"
    ACTIVE = "ACTIVE"
    SUSPENDED = "SUSPENDED"
    INACTIVE = "INACTIVE"


# ----------------- User -----------------
class User(Base):
    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint("monthly_salary >= 0", name="ck_users_monthly_salary_non_negative"),
    )

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    phone = Column(String(32), unique=True, nullable=True)
    password_hash = Column(String(255), nullable=True)

    role = Column(SAEnum(UserRole, name="user_role"), nullable=False, index=True)
    status = Column(SAEnum(UserStatus, name="user_status"), nullable=False, default=UserStatus.PENDING)
    is_active = Column(Boolean, nullable=False, default=False)

    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    employee_id = Column(String(64), unique=True, nullable=True)

    # payroll
    monthly_salary = Column(Float, nullable=False, default=0.0)
    account_name = Column(String(200), nullable=True)
    account_number = Column(String(32), nullable=True)
    bank_name = Column(String(120), nullable=True)

    # profile
    gender = Column(String(10), nullable=True)
    date_of_birth = Column(Date, nullable=True)
    state = Column(String(80), nullable=True)
    lga = Column(String(80), nullable=True)
    nationality = Column(String(80), nullable=True, default="Nigerian")
    address = Column(Text, nullable=True)
    emergency_contact_name = Column(String(200), nullable=True)
    emergency_contact_phone = Column(String(32), nullable=True)
    next_of_kin_name = Column(String(200), nullable=True)
    next_of_kin_phone = Column(String(32), nullable=True)
    next_of_kin_relationship = Column(String(60), nullable=True)
    profile_photo = Column(String(500), nullable=True)

    last_login = Column(DateTime, nullable=True)
    created_by_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    @property
    def full_name(self) -> str:
        return f"{self.first_name or ''} {self.last_name or ''}".strip()

    def activate(self) -> None:
        self.status = UserStatus.ACTIVE
        self.is_active = True

    def __repr__(self) -> str:
        return f"<User {self.id} {self.email} {self.role}>"
