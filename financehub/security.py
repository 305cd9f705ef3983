# financehub/security.py
# Role: Password hashing, credential rules, and JWT issue/verify helpers.

"""Security helpers for authentication."""

import base64
import hashlib
import re
import secrets
from datetime import datetime, timedelta, timezone
from typing import Any

import jwt

import config
from financehub.logger import get_logger

logger = get_logger(__name__)

_SALT_BYTES = 16
_KEY_LEN = 32
_SCRYPT_N = 2**14
_SCRYPT_R = 8
_SCRYPT_P = 1

ACCESS_TOKEN = "access"
REFRESH_TOKEN = "refresh"

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_SPECIAL_CHARS_RE = re.compile(r'[!@#$%^&*(),.?":{}|<>]')

if config.JWT_SECRET == config.DEFAULT_JWT_SECRET:
    logger.warning("JWT_SECRET is not set; using the built-in fallback secret")


# -------------------------------------------------------------------
# Passwords
# -------------------------------------------------------------------

def _encode(value: bytes) -> str:
    return base64.urlsafe_b64encode(value).decode("ascii").rstrip("=")


def _decode(value: str) -> bytes:
    padding = "=" * (-len(value) % 4)
    return base64.urlsafe_b64decode(value + padding)


def hash_password(password: str) -> str:
    """Hash ``password`` using scrypt with a random salt."""
    salt = secrets.token_bytes(_SALT_BYTES)
    key = hashlib.scrypt(
        password.encode("utf-8"),
        salt=salt,
        n=_SCRYPT_N,
        r=_SCRYPT_R,
        p=_SCRYPT_P,
        dklen=_KEY_LEN,
    )
    return (
        f"scrypt${_SCRYPT_N}${_SCRYPT_R}${_SCRYPT_P}$"
        f"{_encode(salt)}${_encode(key)}"
    )


def verify_password(password: str, hashed: str) -> bool:
    """Return ``True`` if ``password`` matches ``hashed``."""
    try:
        _, n_str, r_str, p_str, salt_b64, key_b64 = hashed.split("$", 5)
        salt = _decode(salt_b64)
        expected = _decode(key_b64)
        candidate = hashlib.scrypt(
            password.encode("utf-8"),
            salt=salt,
            n=int(n_str),
            r=int(r_str),
            p=int(p_str),
            dklen=len(expected),
        )
    except (ValueError, TypeError):
        return False
    return secrets.compare_digest(candidate, expected)


def validate_password(password: str) -> list[str]:
    """Return the list of unmet password rules (empty when the password is acceptable)."""
    errors = []
    if len(password) < 8:
        errors.append("Password must be at least 8 characters long")
    if not re.search(r"[A-Z]", password):
        errors.append("Password must contain at least one uppercase letter")
    if not re.search(r"[a-z]", password):
        errors.append("Password must contain at least one lowercase letter")
    if not re.search(r"\d", password):
        errors.append("Password must contain at least one number")
    if not _SPECIAL_CHARS_RE.search(password):
        errors.append("Password must contain at least one special character")
    return errors


def is_valid_email(email: str) -> bool:
    return bool(EMAIL_RE.match(email))


# -------------------------------------------------------------------
# Tokens
# -------------------------------------------------------------------

def _create_token(user_id: int, token_type: str, expires_in: timedelta) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "userId": user_id,
        "type": token_type,
        "iat": now,
        "exp": now + expires_in,
    }
    return jwt.encode(payload, config.JWT_SECRET, algorithm=config.JWT_ALGORITHM)


def create_access_token(user_id: int) -> str:
    return _create_token(user_id, ACCESS_TOKEN, timedelta(days=config.ACCESS_TOKEN_EXPIRE_DAYS))


def create_refresh_token(user_id: int) -> str:
    return _create_token(user_id, REFRESH_TOKEN, timedelta(days=config.REFRESH_TOKEN_EXPIRE_DAYS))


def create_token_pair(user_id: int) -> dict[str, str]:
    return {
        "accessToken": create_access_token(user_id),
        "refreshToken": create_refresh_token(user_id),
    }


def decode_token(token: str, expected_type: str) -> dict[str, Any] | None:
    """
    Decode and verify a token.

    Returns the payload, or None when the signature is bad, the token has
    expired, or it was issued for a different purpose.
    """
    try:
        payload = jwt.decode(token, config.JWT_SECRET, algorithms=[config.JWT_ALGORITHM])
    except jwt.PyJWTError:
        return None
    if payload.get("type") != expected_type or not isinstance(payload.get("userId"), int):
        return None
    return payload
