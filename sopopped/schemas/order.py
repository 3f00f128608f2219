# sopopped/schemas/order.py
import json
from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from sqlmodel import SQLModel

from sopopped.schemas.cart import CartLineItem
from sopopped.schemas.user import is_valid_email

OrderStatus = Literal["pending", "paid", "shipped", "cancelled"]

# Only a cash-on-delivery placeholder exists; there is no gateway.
PAYMENT_METHODS = {"cod"}


class CheckoutForm(BaseModel):
    """
    Checkout submission.

    Field names follow the storefront form (camelCase); snake_case is
    accepted too. `cart_items` may arrive as a JSON string (form posts)
    or as a list (JSON bodies).

    Client-side prices inside `cart_items` are ignored by the order
    service; only ids and quantities are used.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore", validate_default=True)

    first_name: str = Field(default="", alias="firstName")
    last_name: str = Field(default="", alias="lastName")
    email: str = ""
    address: str = ""
    province: str = ""
    city: str = ""
    barangay: str = ""
    payment_method: str = Field(default="cod", alias="paymentMethod")
    cart_items: list[CartLineItem] = Field(default_factory=list)

    @field_validator(
        "first_name",
        "last_name",
        "email",
        "address",
        "province",
        "city",
        "barangay",
        "payment_method",
        mode="before",
    )
    @classmethod
    def strip_text(cls, v: object) -> object:
        return v.strip() if isinstance(v, str) else v

    @field_validator("first_name", "last_name")
    @classmethod
    def check_name(cls, v: str) -> str:
        if len(v) < 2:
            raise ValueError("Name required (2+ chars)")
        return v

    @field_validator("email")
    @classmethod
    def check_email(cls, v: str) -> str:
        if not v or not is_valid_email(v):
            raise ValueError("Valid email required")
        return v.lower()

    @field_validator("address")
    @classmethod
    def check_address(cls, v: str) -> str:
        if len(v) < 3:
            raise ValueError("Address required")
        return v

    @field_validator("payment_method")
    @classmethod
    def check_payment_method(cls, v: str) -> str:
        v = (v or "cod").lower()
        if v not in PAYMENT_METHODS:
            raise ValueError("Unsupported payment method")
        return v

    @field_validator("cart_items", mode="before")
    @classmethod
    def parse_cart(cls, v: Any) -> Any:
        if v is None or v == "":
            return []
        if isinstance(v, str):
            try:
                v = json.loads(v)
            except ValueError:
                raise ValueError("Cart is empty.")
        if not isinstance(v, list):
            raise ValueError("Cart is empty.")
        return v

    @field_validator("cart_items")
    @classmethod
    def check_cart(cls, v: list[CartLineItem]) -> list[CartLineItem]:
        if not v:
            raise ValueError("Cart is empty.")
        return v

    def shipping_address(self) -> dict[str, str]:
        """Snapshot stored on the order."""
        return {
            "first_name": self.first_name,
            "last_name": self.last_name,
            "email": self.email,
            "address": self.address,
            "province": self.province,
            "city": self.city,
            "barangay": self.barangay,
        }


class CheckoutResult(SQLModel):
    success: bool = True
    order_id: int
    purchased_ids: list[int]
    redirect: str


class OrderItemRead(SQLModel):
    """
    Line item as shown in order history.

    price_at_purchase is the historical unit price, not the live one.
    """

    product_id: int
    product_name: str
    price_at_purchase: float
    quantity: int


class OrderRead(SQLModel):
    id: int
    user_id: int
    total_amount: float
    status: OrderStatus
    payment_method: str
    shipping_address: dict[str, Any] | None = None
    created_at: datetime
    items: list[OrderItemRead] = []


class OrderListResponse(SQLModel):
    success: bool = True
    orders: list[OrderRead]


class OrderDetailResponse(SQLModel):
    success: bool = True
    order: OrderRead


class OrderStatusUpdate(SQLModel):
    """
    Admin payload to change order status.
    """

    model_config = ConfigDict(extra="forbid")

    status: OrderStatus
