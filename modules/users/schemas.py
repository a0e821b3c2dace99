# modules/users/schemas.py
from __future__ import annotations
from datetime import date, datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from modules.security.passwords import MIN_PASSWORD_LENGTH
from .models import UserRole, UserStatus


# =========================================================
# Users
# =========================================================
class UserBase(BaseModel):
    email: EmailStr
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    phone: Optional[str] = None

    @field_validator("email")
    @classmethod
    def _lower_email(cls, v: str) -> str:
        return v.strip().lower()


class UserRegister(UserBase):
    password: str = Field(min_length=MIN_PASSWORD_LENGTH)
    role: UserRole = UserRole.OPERATOR
    address: Optional[str] = None


class UserProfileUpdate(BaseModel):
    first_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    phone: Optional[str] = None
    gender: Optional[str] = None
    date_of_birth: Optional[date] = None
    state: Optional[str] = None
    lga: Optional[str] = None
    nationality: Optional[str] = None
    address: Optional[str] = None
    emergency_contact_name: Optional[str] = None
    emergency_contact_phone: Optional[str] = None
    next_of_kin_name: Optional[str] = None
    next_of_kin_phone: Optional[str] = None
    next_of_kin_relationship: Optional[str] = None
    profile_photo: Optional[str] = None
    account_name: Optional[str] = None
    account_number: Optional[str] = None
    bank_name: Optional[str] = None


class UserStatusUpdate(BaseModel):
    status: UserStatus


class UserPayUpdate(BaseModel):
    monthly_salary: Optional[float] = Field(default=None, ge=0)
    account_name: Optional[str] = None
    account_number: Optional[str] = None
    bank_name: Optional[str] = None


class UserInDB(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    first_name: str
    last_name: str
    phone: Optional[str] = None
    role: UserRole
    status: UserStatus
    is_active: bool
    employee_id: Optional[str] = None
    monthly_salary: float = 0.0
    account_name: Optional[str] = None
    account_number: Optional[str] = None
    bank_name: Optional[str] = None
    gender: Optional[str] = None
    date_of_birth: Optional[date] = None
    state: Optional[str] = None
    lga: Optional[str] = None
    nationality: Optional[str] = None
    address: Optional[str] = None
    profile_photo: Optional[str] = None
    last_login: Optional[datetime] = None
    created_at: Optional[datetime] = None


# =========================================================
# Auth
# =========================================================
class LoginRequest(BaseModel):
    email: EmailStr
    password: str

    @field_validator("email")
    @classmethod
    def _lower_email(cls, v: str) -> str:
        return v.strip().lower()


class RefreshRequest(BaseModel):
    refresh_token: str


class ChangePasswordRequest(BaseModel):
    current_password: str
    new_password: str = Field(min_length=MIN_PASSWORD_LENGTH)


class TokenResponse(BaseModel):
    token: str
    refresh_token: Optional[str] = None
    user: UserInDB


class ProfileResponse(BaseModel):
    user: UserInDB
    role_data: Optional[dict[str, Any]] = None
