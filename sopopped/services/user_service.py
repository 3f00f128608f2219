# sopopped/services/user_service.py
from sqlmodel import Session

from sopopped.core.errors import BadRequest, NotFound
from sopopped.models.user import User
from sopopped.repositories.session_repo import SessionRepository
from sopopped.repositories.user_repo import UserRepository
from sopopped.schemas.session import AuthSession
from sopopped.schemas.user import UserArchiveUpdate


class UserService:
    """
    Admin account management.

    Archiving is a soft delete: the row stays for order history, the
    account can no longer log in, and its live sessions are revoked.
    """

    def __init__(self, repo: UserRepository, session_repo: SessionRepository):
        self.repo = repo
        self.session_repo = session_repo

    def list_users(self, session: Session, skip: int, limit: int) -> list[User]:
        """List users with pagination (admin only)."""
        return self.repo.list(session, skip=skip, limit=limit)

    def get_user(self, session: Session, user_id: int) -> User:
        """
        Get a user by id (admin only).

        Raises:
            NotFound: if not found.
        """
        user = self.repo.get_by_id(session, user_id)
        if not user:
            raise NotFound("User not found")
        return user

    def set_archived(
        self,
        session: Session,
        admin: AuthSession,
        user_id: int,
        payload: UserArchiveUpdate,
    ) -> User:
        user = self.get_user(session, user_id)

        if payload.is_archived and user.id == admin.user_id:
            raise BadRequest("You cannot archive your own account")

        user.is_archived = payload.is_archived
        if payload.is_archived:
            self.session_repo.revoke_all_for_user(session, user.id)
        return self.repo.update(session, user)
