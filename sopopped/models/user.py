# sopopped/models/user.py
from datetime import datetime, timezone

from sqlmodel import SQLModel, Field


class User(SQLModel, table=True):
    """
    Storefront account.

    Role:
      - "customer" | "admin"
      - anonymous shoppers have no row; their cart lives in the browser.

    Archived accounts are soft-deleted: the row stays (orders still
    reference it) but the account can no longer authenticate.
    """

    __tablename__ = "users"

    id: int | None = Field(default=None, primary_key=True)

    email: str = Field(
        max_length=255,
        unique=True,
        index=True,
        description="Login email, always stored lower-cased",
    )

    password_hash: str = Field(
        max_length=255,
        description="bcrypt hash produced by passlib",
    )

    first_name: str = Field(max_length=100)
    middle_name: str | None = Field(default=None, max_length=100)
    last_name: str = Field(max_length=100)
    phone: str = Field(max_length=30)

    role: str = Field(
        default="customer",
        max_length=20,
        index=True,
        description="Application role: customer | admin",
    )

    is_archived: bool = Field(
        default=False,
        index=True,
        description="Soft-delete flag; archived users cannot log in",
    )

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Creation timestamp (UTC)",
    )

    @property
    def display_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()
