# modules/users/routes.py
from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from database.connection import get_db
from modules.security.deps import get_current_user, require_perm
from modules.users import schemas, services
from modules.users.models import User, UserRole, UserStatus

auth_router = APIRouter()
api_router = APIRouter()


# ---------- AUTH ----------
@auth_router.post("/register", response_model=schemas.TokenResponse, status_code=status.HTTP_201_CREATED)
def register_route(payload: schemas.UserRegister, db: Session = Depends(get_db)):
    return services.register(db, payload)


@auth_router.post("/login", response_model=schemas.TokenResponse)
def login_route(payload: schemas.LoginRequest, db: Session = Depends(get_db)):
    return services.login(db, payload.email, payload.password)


@auth_router.post("/refresh", response_model=schemas.TokenResponse)
def refresh_route(payload: schemas.RefreshRequest, db: Session = Depends(get_db)):
    return services.refresh(db, payload.refresh_token)


@auth_router.get("/profile", response_model=schemas.ProfileResponse)
@auth_router.get("/me", response_model=schemas.ProfileResponse)
def profile_route(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return services.get_profile(db, user)


@auth_router.put("/profile", response_model=schemas.UserInDB)
def update_profile_route(
    payload: schemas.UserProfileUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return services.update_profile(db, user, payload)


@auth_router.post("/change-password")
def change_password_route(
    payload: schemas.ChangePasswordRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    services.change_password(db, user, payload.current_password, payload.new_password)
    return {"status": "success", "message": "Password changed successfully"}


# ---------- USER ADMINISTRATION ----------
@api_router.get("/", response_model=List[schemas.UserInDB], dependencies=[Depends(require_perm("users.manage"))])
def read_users_route(
    role: Optional[UserRole] = None,
    status: Optional[UserStatus] = None,
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
):
    return services.list_users(db, role=role, status=status, skip=skip, limit=limit)


@api_router.get("/{user_id}", response_model=schemas.UserInDB, dependencies=[Depends(require_perm("users.manage"))])
def read_user_route(user_id: int, db: Session = Depends(get_db)):
    return services.get_user(db, user_id)


@api_router.patch("/{user_id}/status", response_model=schemas.UserInDB)
def update_user_status_route(
    user_id: int,
    payload: schemas.UserStatusUpdate,
    actor: User = Depends(require_perm("users.manage")),
    db: Session = Depends(get_db),
):
    return services.set_status(db, user_id, payload.status, actor_id=actor.id)


@api_router.patch("/{user_id}/pay", response_model=schemas.UserInDB)
def update_user_pay_route(
    user_id: int,
    payload: schemas.UserPayUpdate,
    actor: User = Depends(require_perm("payroll.manage")),
    db: Session = Depends(get_db),
):
    return services.update_pay(db, user_id, payload, actor_id=actor.id)
