# sopopped/core/auth.py
import uuid
from datetime import datetime, timezone

from fastapi import Depends, Request
from sqlmodel import Session

from sopopped.core.config import get_settings
from sopopped.core.errors import Forbidden, Unauthenticated
from sopopped.core.security import decode_session_token
from sopopped.database import get_session
from sopopped.repositories.session_repo import SessionRepository
from sopopped.repositories.user_repo import UserRepository
from sopopped.schemas.session import AuthSession

settings = get_settings()

session_repo = SessionRepository()
user_repo = UserRepository()


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything we store is UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def resolve_session(session: Session, token: str | None) -> AuthSession | None:
    """
    Turn a session cookie into an AuthSession.

    Flow:
      1. No cookie => anonymous.
      2. Verify JWT signature/expiry, read `sub` and `sid`.
      3. Load the server-side session row; it must exist, belong to
         `sub`, be unrevoked and unexpired.
      4. Load the user; archived accounts are anonymous.

    Any failure returns None (anonymous) rather than raising, so public
    endpoints keep working with a stale cookie.
    """
    if not token:
        return None

    payload = decode_session_token(token)
    if payload is None:
        return None

    try:
        user_id = int(payload.get("sub", ""))
        session_id = uuid.UUID(str(payload.get("sid", "")))
    except ValueError:
        return None

    row = session_repo.get(session, session_id)
    if row is None or row.user_id != user_id or row.revoked_at is not None:
        return None
    if _as_utc(row.expires_at) <= datetime.now(timezone.utc):
        return None

    user = user_repo.get_by_id(session, user_id)
    if user is None or user.is_archived:
        return None

    return AuthSession(
        session_id=row.id,
        user_id=user.id,
        user_name=user.display_name,
        user_email=user.email,
        user_role="admin" if user.role == "admin" else "customer",
    )


def get_current_session(
    request: Request,
    session: Session = Depends(get_session),
) -> AuthSession | None:
    """
    Resolve the current login from the session cookie.

    Returns:
        AuthSession if authenticated, else None for anonymous shoppers.
    """
    return resolve_session(session, request.cookies.get(settings.SESSION_COOKIE_NAME))


def require_auth(auth: AuthSession | None = Depends(get_current_session)) -> AuthSession:
    """
    Enforce authentication.

    Runs before the route body, so a rejected call performs no side
    effects.

    Raises:
        Unauthenticated (401): if there is no valid session.
    """
    if auth is None:
        raise Unauthenticated()
    return auth


def require_admin(auth: AuthSession = Depends(require_auth)) -> AuthSession:
    """
    Enforce admin role.

    Raises:
        Forbidden (403): if the logged-in user is not an admin.
    """
    if not auth.is_admin:
        raise Forbidden()
    return auth
