# sopopped/schemas/product.py
from datetime import datetime

from pydantic import ConfigDict, field_validator
from sqlmodel import SQLModel, Field


class ProductCreate(SQLModel):
    """
    Payload for creating a product (admin only).
    """

    model_config = ConfigDict(extra="forbid")

    name: str = Field(max_length=150)
    description: str | None = None
    price: float = Field(gt=0)
    quantity: int = Field(default=0, ge=0)
    image_path: str | None = Field(default=None, max_length=255)
    is_active: bool = True

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name cannot be empty")
        return v


class ProductUpdate(SQLModel):
    """
    Partial update payload for products.
    All fields are optional.

    Changing `price` only affects future checkouts; recorded order
    items keep their price_at_purchase.
    """

    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(default=None, max_length=150)
    description: str | None = None
    price: float | None = Field(default=None, gt=0)
    quantity: int | None = Field(default=None, ge=0)
    image_path: str | None = Field(default=None, max_length=255)
    is_active: bool | None = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("name cannot be empty")
        return v


class ProductRead(SQLModel):
    """
    Product representation for clients.

    `quantity` is exposed so the cart can clamp to available stock.
    """

    id: int
    name: str
    description: str | None
    price: float
    quantity: int
    image_path: str | None
    is_active: bool
    created_at: datetime
