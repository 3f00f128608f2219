# sopopped/repositories/session_repo.py
import uuid
from datetime import datetime, timezone

from sqlmodel import Session, select

from sopopped.models.session import LoginSession


class SessionRepository:
    """
    Data access layer for server-side login sessions.
    """

    def get(self, session: Session, session_id: uuid.UUID) -> LoginSession | None:
        return session.get(LoginSession, session_id)

    def create(
        self,
        session: Session,
        *,
        user_id: int,
        expires_at: datetime,
    ) -> LoginSession:
        row = LoginSession(user_id=user_id, expires_at=expires_at)
        session.add(row)
        session.commit()
        session.refresh(row)
        return row

    def revoke(self, session: Session, row: LoginSession) -> None:
        if row.revoked_at is None:
            row.revoked_at = datetime.now(timezone.utc)
            session.add(row)
            session.commit()

    def revoke_all_for_user(self, session: Session, user_id: int) -> int:
        """
        Revoke every live session of a user (account archival).

        Does not commit; the caller commits together with the user update.
        """
        stmt = select(LoginSession).where(
            LoginSession.user_id == user_id,
            LoginSession.revoked_at == None,  # noqa: E711
        )
        now = datetime.now(timezone.utc)
        rows = session.exec(stmt).all()
        for row in rows:
            row.revoked_at = now
            session.add(row)
        return len(rows)
