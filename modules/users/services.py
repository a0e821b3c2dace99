# modules/users/services.py
from __future__ import annotations

import logging
from typing import Any, List, Optional

from sqlalchemy.orm import Session

from core.errors import AppError, AuthError, ConflictError, ForbiddenError, NotFoundError
from database.base import utcnow
from modules.audit.services import log_activity
from modules.security import tokens
from modules.security.passwords import hash_password, needs_rehash, verify_password
from modules.users import schemas
from modules.users.models import User, UserRole, UserStatus

logger = logging.getLogger(__name__)

# roles that are only ever created by an administrator
_PRIVILEGED_ROLES = {UserRole.DEVELOPER, UserRole.DIRECTOR, UserRole.ADMIN}


# -------------------- lookups --------------------
def get_user(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if not user:
        raise NotFoundError("User not found")
    return user


def get_user_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(User.email == (email or "").strip().lower()).first()


def list_users(
    db: Session,
    role: Optional[UserRole] = None,
    status: Optional[UserStatus] = None,
    skip: int = 0,
    limit: int = 100,
) -> List[User]:
    q = db.query(User)
    if role:
        q = q.filter(User.role == role)
    if status:
        q = q.filter(User.status == status)
    return q.order_by(User.id).offset(skip).limit(limit).all()


def ensure_email_free(db: Session, email: str) -> None:
    if get_user_by_email(db, email):
        raise ConflictError("User with this email already exists")


def new_user(
    db: Session,
    *,
    email: str,
    password: Optional[str],
    first_name: str,
    last_name: str,
    role: UserRole,
    phone: Optional[str] = None,
    created_by_id: Optional[int] = None,
    **extra: Any,
) -> User:
    """Add (not commit) a user row; callers own the transaction."""
    ensure_email_free(db, email)
    user = User(
        email=email.strip().lower(),
        password_hash=hash_password(password) if password else None,
        first_name=first_name,
        last_name=last_name,
        role=role,
        phone=phone,
        status=UserStatus.PENDING,
        is_active=False,
        created_by_id=created_by_id,
        **extra,
    )
    db.add(user)
    db.flush()
    return user


# -------------------- auth --------------------
def register(db: Session, payload: schemas.UserRegister) -> dict:
    if payload.role in _PRIVILEGED_ROLES:
        raise ForbiddenError(f"{payload.role.value} accounts cannot self-register")

    user = new_user(
        db,
        email=payload.email,
        password=payload.password,
        first_name=payload.first_name,
        last_name=payload.last_name,
        role=payload.role,
        phone=payload.phone,
        address=payload.address,
    )
    log_activity(db, user.id, "REGISTER", "user", user.id, {"role": user.role.value})
    db.commit()
    db.refresh(user)
    logger.info("Registration successful: user %s (%s)", user.id, user.email)
    return {"token": tokens.create_access_token(user.id, user.email, user.role.value), "user": user}


def login(db: Session, email: str, password: str) -> dict:
    user = get_user_by_email(db, email)
    if not user:
        logger.warning("Login failed: no user %s", email)
        raise AuthError("Invalid email or password")

    if not user.password_hash:
        logger.error("User %s has no password hash", user.id)
        raise AppError("Account not properly configured. Please reset your password or contact support.", 500)

    if user.status == UserStatus.PENDING:
        raise AuthError("Your account is pending approval. Please wait for approval before logging in.")
    if user.status in (UserStatus.INACTIVE, UserStatus.SUSPENDED):
        raise AuthError("Your account has been deactivated. Please contact support.")

    if not verify_password(password, user.password_hash):
        logger.warning("Login failed: bad password for %s", email)
        raise AuthError("Invalid email or password")

    # move old bcrypt hashes to the current format
    if needs_rehash(user.password_hash):
        user.password_hash = hash_password(password)

    user.last_login = utcnow()
    log_activity(db, user.id, "LOGIN", "user", user.id, {"role": user.role.value})
    db.commit()
    db.refresh(user)

    logger.info("Login successful: user %s (%s)", user.id, user.role.value)
    return {
        "token": tokens.create_access_token(user.id, user.email, user.role.value),
        "refresh_token": tokens.create_refresh_token(user.id),
        "user": user,
    }


def refresh(db: Session, refresh_token: str) -> dict:
    claims = tokens.decode_token(refresh_token, expected_type=tokens.REFRESH)
    user = db.get(User, int(claims["sub"]))
    if not user or user.status != UserStatus.ACTIVE:
        raise AuthError("Invalid or expired token")
    return {
        "token": tokens.create_access_token(user.id, user.email, user.role.value),
        "refresh_token": tokens.create_refresh_token(user.id),
        "user": user,
    }


def change_password(db: Session, user: User, current_password: str, new_password: str) -> None:
    if not verify_password(current_password, user.password_hash):
        raise AuthError("Current password is incorrect")
    user.password_hash = hash_password(new_password)
    log_activity(db, user.id, "CHANGE_PASSWORD", "user", user.id)
    db.commit()


# -------------------- profile --------------------
def _role_data(db: Session, user: User) -> Optional[dict]:
    from modules.staff import services as staff_services

    record = staff_services.role_record_for_user(db, user)
    if record is None:
        return None
    return {c.name: getattr(record, c.name) for c in record.__table__.columns}


def get_profile(db: Session, user: User) -> dict:
    return {"user": user, "role_data": _role_data(db, user)}


def update_profile(db: Session, user: User, payload: schemas.UserProfileUpdate) -> User:
    data = payload.model_dump(exclude_unset=True)
    if "phone" in data and data["phone"]:
        taken = db.query(User).filter(User.phone == data["phone"], User.id != user.id).first()
        if taken:
            raise ConflictError("Phone number already in use")
    for k, v in data.items():
        setattr(user, k, v)
    log_activity(db, user.id, "UPDATE_PROFILE", "user", user.id, {"fields": sorted(data)})
    db.commit()
    db.refresh(user)
    return user


# -------------------- administration --------------------
def set_status(db: Session, user_id: int, new_status: UserStatus, actor_id: Optional[int] = None) -> User:
    user = get_user(db, user_id)
    user.status = new_status
    user.is_active = new_status == UserStatus.ACTIVE
    log_activity(db, actor_id, "SET_STATUS", "user", user.id, {"status": new_status.value})
    db.commit()
    db.refresh(user)
    return user


def update_pay(db: Session, user_id: int, payload: schemas.UserPayUpdate, actor_id: Optional[int] = None) -> User:
    user = get_user(db, user_id)
    data = payload.model_dump(exclude_unset=True)
    for k, v in data.items():
        setattr(user, k, v)
    log_activity(db, actor_id, "UPDATE_PAY", "user", user.id, {"fields": sorted(data)})
    db.commit()
    db.refresh(user)
    return user


