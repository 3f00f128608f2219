# sopopped/models/product.py
from datetime import datetime, timezone

from sqlmodel import SQLModel, Field


class Product(SQLModel, table=True):
    """
    Product catalog entry.

    `quantity` is stock on hand; checkout decrements it inside the
    order transaction.
    """

    __tablename__ = "products"

    id: int | None = Field(default=None, primary_key=True)

    name: str = Field(
        max_length=150,
        index=True,
        description="Display name of the product",
    )

    description: str | None = Field(
        default=None,
        description="Optional long description",
    )

    price: float = Field(
        gt=0,
        description="Current catalog unit price (PHP)",
    )

    quantity: int = Field(
        default=0,
        ge=0,
        description="How many units currently in stock",
    )

    image_path: str | None = Field(
        default=None,
        max_length=255,
        description="Relative path or absolute URL of the product image",
    )

    is_active: bool = Field(
        default=True,
        index=True,
        description="Whether this product is visible on the storefront",
    )

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Creation timestamp (UTC)",
    )
