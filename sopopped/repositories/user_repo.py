# sopopped/repositories/user_repo.py
from sqlmodel import Session, select

from sopopped.models.user import User


class UserRepository:
    """
    Storefront accounts (`users` table).

    Login, signup and the email-check hint look shoppers up by email;
    the admin panel pages through accounts and flips `is_archived`.
    Writes commit immediately: none of them is part of a larger
    transaction.
    """

    def get_by_id(self, session: Session, user_id: int) -> User | None:
        return session.get(User, user_id)

    def get_by_email(self, session: Session, email: str) -> User | None:
        """
        Account for a login/signup email. Emails are stored lower-cased,
        so callers normalise first (see schemas.user.normalize_email).
        """
        return session.exec(select(User).where(User.email == email)).first()

    def list(self, session: Session, skip: int = 0, limit: int = 50) -> list[User]:
        """Admin account listing in signup order (oldest id first)."""
        stmt = select(User).order_by(User.id).offset(skip).limit(limit)
        return list(session.exec(stmt).all())

    def create(self, session: Session, user: User) -> User:
        """Store a new customer from the signup form."""
        return self._commit(session, user)

    def update(self, session: Session, user: User) -> User:
        """Persist an archive/unarchive toggle."""
        return self._commit(session, user)

    @staticmethod
    def _commit(session: Session, user: User) -> User:
        session.add(user)
        session.commit()
        session.refresh(user)
        return user
