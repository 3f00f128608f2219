# sopopped/models/session.py
import uuid
from datetime import datetime, timezone

from sqlmodel import SQLModel, Field


class LoginSession(SQLModel, table=True):
    """
    Server-held proof of an authenticated login.

    The session cookie only references this row (via the `sid` claim);
    logout and account archival revoke the row, which immediately turns
    the cookie into an anonymous one.
    """

    __tablename__ = "user_sessions"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
    )

    user_id: int = Field(
        foreign_key="users.id",
        index=True,
    )

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )

    expires_at: datetime

    revoked_at: datetime | None = None
