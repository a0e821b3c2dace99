# modules/security/tokens.py
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Dict

import jwt

from config.settings import settings
from core.errors import AuthError

ACCESS = "access"
REFRESH = "refresh"


def _encode(claims: Dict[str, Any], expires: timedelta) -> str:
    now = datetime.now(timezone.utc)
    payload = {**claims, "iat": now, "exp": now + expires}
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def create_access_token(user_id: int, email: str, role: str) -> str:
    return _encode(
        {"sub": str(user_id), "userId": user_id, "email": email, "role": role, "type": ACCESS},
        timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
    )


def create_refresh_token(user_id: int) -> str:
    return _encode(
        {"sub": str(user_id), "userId": user_id, "type": REFRESH},
        timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS),
    )


def decode_token(token: str, expected_type: str = ACCESS) -> Dict[str, Any]:
    try:
        claims = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except jwt.PyJWTError:
        raise AuthError("Invalid or expired token")
    if claims.get("type") != expected_type:
        raise AuthError("Invalid or expired token")
    return claims
