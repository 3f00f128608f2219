# sopopped/models/order.py
from datetime import datetime, timezone

from sqlalchemy import Column, JSON
from sqlmodel import SQLModel, Field


class Order(SQLModel, table=True):
    """
    Customer order.

    shipping_address is a JSON snapshot of the checkout form so later
    profile/address changes never rewrite history.
    """

    __tablename__ = "orders"

    id: int | None = Field(default=None, primary_key=True)

    user_id: int = Field(
        foreign_key="users.id",
        index=True,
    )

    total_amount: float = Field(
        ge=0,
        description="Sum of price_at_purchase * quantity over all items",
    )

    # pending | paid | shipped | cancelled
    status: str = Field(
        default="pending",
        max_length=20,
        index=True,
        description="Order status lifecycle",
    )

    payment_method: str = Field(
        default="cod",
        max_length=20,
        description="Only cash on delivery exists",
    )

    shipping_address: dict | None = Field(
        default=None,
        sa_column=Column(JSON, nullable=True),
    )

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        index=True,
        description="Creation timestamp (UTC)",
    )


class OrderItem(SQLModel, table=True):
    """
    Line item inside an order.

    price_at_purchase is frozen when the order is created and is never
    recomputed from the live catalog price.
    """

    __tablename__ = "order_items"

    id: int | None = Field(default=None, primary_key=True)

    order_id: int = Field(
        foreign_key="orders.id",
        index=True,
    )

    product_id: int = Field(
        foreign_key="products.id",
        index=True,
    )

    price_at_purchase: float = Field(
        description="Unit price at time of order",
    )

    quantity: int = Field(
        gt=0,
        description="Quantity ordered (>=1)",
    )
