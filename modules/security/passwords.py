# modules/security/passwords.py
from __future__ import annotations

import secrets
import string
import time
from typing import Optional

# werkzeug PBKDF2 is the house format; bcrypt hashes come from accounts created by the old Node backend
import bcrypt
from werkzeug.security import check_password_hash, generate_password_hash

MIN_PASSWORD_LENGTH = 8
_SYMBOLS = "!@#$%^&*"
_B36 = string.digits + string.ascii_uppercase


def is_bcrypt_hash(h: Optional[str]) -> bool:
    return isinstance(h, str) and h.startswith(("$2a$", "$2b$", "$2y$"))


def hash_password(password: str) -> str:
    """
    Standard hash for the system (werkzeug PBKDF2-SHA256)
    """
    return generate_password_hash(password or "", method="pbkdf2:sha256", salt_length=16)


def verify_password(password: str, password_hash: Optional[str]) -> bool:
    """
    Check a password:
    - bcrypt hashes ($2a$/$2b$/$2y$) are checked with bcrypt
    - everything else goes through werkzeug
    """
    if not password_hash:
        return False

    if is_bcrypt_hash(password_hash):
        try:
            return bcrypt.checkpw((password or "").encode("utf-8"), password_hash.encode("utf-8"))
        except ValueError:
            return False

    try:
        return check_password_hash(password_hash, password or "")
    except ValueError:
        return False


def needs_rehash(password_hash: Optional[str]) -> bool:
    return is_bcrypt_hash(password_hash)


# ----------------- generated credentials -----------------
def generate_temporary_password(length: int = 12) -> str:
    """Random password with at least one upper, lower, digit and symbol."""
    length = max(length, 4)
    pools = [string.ascii_uppercase, string.ascii_lowercase, string.digits, _SYMBOLS]
    alphabet = "".join(pools)
    chars = [secrets.choice(p) for p in pools]
    chars += [secrets.choice(alphabet) for _ in range(length - len(chars))]
    secrets.SystemRandom().shuffle(chars)
    return "".join(chars)


def _base36(n: int) -> str:
    out = ""
    while n:
        n, r = divmod(n, 36)
        out = _B36[r] + out
    return out or "0"


def generate_employee_id(prefix: str = "EMP") -> str:
    """PREFIX-<base36 millis>-<4 digits>, e.g. SUP-M0X3K9AB-4821"""
    stamp = _base36(int(time.time() * 1000))
    return f"{prefix}-{stamp}-{secrets.randbelow(9000) + 1000}"
