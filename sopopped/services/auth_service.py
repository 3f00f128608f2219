# sopopped/services/auth_service.py
import logging
from datetime import datetime

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from sopopped.core.errors import Conflict, Deactivated, InvalidCredentials, NotFound
from sopopped.core.security import (
    create_session_token,
    hash_password,
    session_expiry,
    verify_password,
)
from sopopped.models.user import User
from sopopped.repositories.session_repo import SessionRepository
from sopopped.repositories.user_repo import UserRepository
from sopopped.schemas.session import AuthSession
from sopopped.schemas.user import LoginForm, SignupForm, UserSummary

logger = logging.getLogger(__name__)


class LoginResult:
    """Outcome of a successful login: who, and the cookie to set."""

    def __init__(self, user: User, token: str, expires_at: datetime):
        self.user = user
        self.token = token
        self.expires_at = expires_at

    @property
    def summary(self) -> UserSummary:
        return UserSummary(
            id=self.user.id,
            email=self.user.email,
            name=self.user.display_name,
            role="admin" if self.user.role == "admin" else "customer",
        )

    @property
    def is_admin(self) -> bool:
        return self.user.role == "admin"


class AuthService:
    """
    Login / logout / signup rules.

    Account-existence policy: the storefront discloses whether an email
    is registered (signup must say "already exists", and the
    email-check endpoint exists for the signup form). Login follows the
    same policy and says which check failed: unknown email, archived
    account, or wrong password. Both unauthenticated entry points that
    reveal existence are rate limited per client.
    """

    def __init__(self, user_repo: UserRepository, session_repo: SessionRepository):
        self.user_repo = user_repo
        self.session_repo = session_repo

    def login(
        self,
        session: Session,
        form: LoginForm,
        current: AuthSession | None = None,
    ) -> LoginResult:
        """
        Authenticate and open a new server-side session.

        A login while already authenticated replaces the previous
        identity: the old session row is revoked first.

        Raises:
            NotFound: no account with this email
            Deactivated: the account is archived
            InvalidCredentials: password does not match
        """
        user = self.user_repo.get_by_email(session, form.email)
        if user is None:
            raise NotFound("No account found with this email.")

        if user.is_archived:
            raise Deactivated()

        if not verify_password(form.password, user.password_hash):
            raise InvalidCredentials()

        if current is not None:
            self.logout(session, current)

        expires_at = session_expiry()
        row = self.session_repo.create(session, user_id=user.id, expires_at=expires_at)
        token = create_session_token(user.id, row.id, expires_at)

        logger.info("User %s logged in", user.id)
        return LoginResult(user, token, expires_at)

    def logout(self, session: Session, current: AuthSession | None) -> None:
        """Revoke the current session row. Idempotent."""
        if current is None:
            return
        row = self.session_repo.get(session, current.session_id)
        if row is not None:
            self.session_repo.revoke(session, row)

    def signup(self, session: Session, form: SignupForm) -> User:
        """
        Create a customer account.

        Raises:
            Conflict: email already registered (active or archived)
        """
        existing = self.user_repo.get_by_email(session, form.email)
        if existing is not None:
            if existing.is_archived:
                raise Conflict("An archived account already exists with this email.")
            raise Conflict("An account with this email already exists")

        user = User(
            email=form.email,
            password_hash=hash_password(form.password),
            first_name=form.name,
            middle_name=form.middle or None,
            last_name=form.last,
            phone=form.phone,
            role="customer",
        )
        try:
            return self.user_repo.create(session, user)
        except IntegrityError:
            # lost a race with a concurrent signup for the same email
            session.rollback()
            raise Conflict("An account with this email already exists")

    def email_status(self, session: Session, email: str) -> tuple[bool, bool]:
        """Return (exists, is_archived) for an already-normalised email."""
        user = self.user_repo.get_by_email(session, email)
        if user is None:
            return False, False
        return True, user.is_archived
