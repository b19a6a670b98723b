"""Security helpers for JWT handling and password hashing."""

import secrets
from datetime import datetime, timedelta, timezone
from typing import Any

from jose import JWTError, jwt
from passlib.context import CryptContext

from .config import settings

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


class TokenDecodeError(Exception):
    """Raised when a JWT cannot be decoded or is invalid."""


def create_access_token(subject: str, role: str, expires_minutes: int | None = None) -> str:
    """Create a signed JWT."""
    expire_in = expires_minutes or settings.jwt_expires_in_minutes
    to_encode: dict[str, Any] = {
        "sub": subject,
        "role": role,
        "exp": datetime.now(tz=timezone.utc) + timedelta(minutes=expire_in),
    }
    return jwt.encode(to_encode, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> dict[str, Any]:
    """Decode and validate a JWT, raising TokenDecodeError on failure."""
    try:
        return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except JWTError as exc:  # pragma: no cover - jose already well tested
        raise TokenDecodeError("Invalid token") from exc


def hash_password(password: str) -> str:
    """Hash a password with a per-hash random salt (bcrypt)."""
    return pwd_context.hash(password)


def verify_password(password: str, hashed_password: str | None) -> bool:
    if not hashed_password:
        return False
    try:
        return pwd_context.verify(password, hashed_password)
    except ValueError:
        # Unrecognised or corrupt hash.
        return False


def generate_token() -> str:
    """Return a random 256-bit URL-safe token for email verification / resets."""
    return secrets.token_urlsafe(32)
