# modules/security/deps.py
from __future__ import annotations

import logging
from typing import Callable, Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from core.errors import AuthError, ForbiddenError
from database.connection import get_db
from modules.security.perms import has_perm
from modules.security.tokens import decode_token
from modules.users.models import User, UserStatus

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


# ------------------------------------------------------------
# Current user dependencies
# ------------------------------------------------------------
def get_current_user(
    creds: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> User:
    """
    Resolve the user from the bearer token; missing/invalid token -> 401
    """
    if creds is None or (creds.scheme or "").lower() != "bearer":
        raise AuthError("No token provided")

    claims = decode_token(creds.credentials)
    user = db.get(User, int(claims["sub"]))
    if user is None:
        raise AuthError("User not found")
    if user.status in (UserStatus.INACTIVE, UserStatus.SUSPENDED):
        raise AuthError("Account has been deactivated")
    return user


def require_roles(*roles: str) -> Callable:
    """
    Use as a FastAPI dependency:
      @router.get(..., dependencies=[Depends(require_roles("DIRECTOR", "MANAGER"))])
    """
    allowed = {r.value if hasattr(r, "value") else str(r) for r in roles}

    def _dep(user: User = Depends(get_current_user)) -> User:
        if user.role.value not in allowed:
            logger.warning("Role %s denied (needs one of %s)", user.role.value, sorted(allowed))
            raise ForbiddenError("Insufficient permissions")
        return user
    return _dep


def require_perm(code: str) -> Callable:
    def _dep(user: User = Depends(get_current_user)) -> User:
        if not has_perm(user.role.value, code):
            logger.warning("User %s (%s) lacks %s", user.id, user.role.value, code)
            raise ForbiddenError("Insufficient permissions")
        return user
    return _dep
