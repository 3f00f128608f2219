# sopopped/models/cart.py
from datetime import datetime, timezone

from sqlalchemy import Column, JSON
from sqlmodel import SQLModel, Field


class UserCart(SQLModel, table=True):
    """
    Server-side cart snapshot, one row per user.

    The whole cart is stored as a JSON array and replaced wholesale on
    every save; there are no line-level rows. `version` is bumped on
    every write so clients can opt into optimistic concurrency.
    """

    __tablename__ = "user_carts"

    user_id: int = Field(
        foreign_key="users.id",
        primary_key=True,
    )

    cart_json: list = Field(
        default_factory=list,
        sa_column=Column(JSON, nullable=False),
    )

    version: int = Field(
        default=1,
        ge=1,
        description="Incremented on every write",
    )

    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )
