# sopopped/core/security.py
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any

from jose import jwt, JWTError
from passlib.context import CryptContext

from sopopped.core.config import get_settings

settings = get_settings()

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """
    Check a plain password against a stored hash.

    Malformed or unknown hash formats count as a mismatch.
    """
    try:
        return pwd_context.verify(password, password_hash)
    except (ValueError, TypeError):
        return False


def create_session_token(
    user_id: int,
    session_id: uuid.UUID,
    expires_at: datetime,
) -> str:
    """
    Sign the session cookie value.

    Claims:
      - sub: user id (string, JWT convention)
      - sid: server-side session row id
      - exp: same expiry as the session row
    """
    claims = {
        "sub": str(user_id),
        "sid": str(session_id),
        "exp": expires_at,
    }
    return jwt.encode(claims, settings.SESSION_SECRET, algorithm=settings.SESSION_ALG)


def decode_session_token(token: str) -> dict[str, Any] | None:
    """
    Decode and verify a session cookie.

    Returns None for any invalid, tampered or expired token; a bad
    cookie simply means "anonymous".
    """
    try:
        return jwt.decode(
            token,
            settings.SESSION_SECRET,
            algorithms=[settings.SESSION_ALG],
        )
    except JWTError:
        return None


def session_expiry(now: datetime | None = None) -> datetime:
    now = now or datetime.now(timezone.utc)
    return now + timedelta(minutes=settings.SESSION_TTL_MINUTES)
