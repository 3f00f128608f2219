# sopopped/schemas/cart.py
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator
from sqlmodel import SQLModel

# localStorage key shared by the browser cart and the sync client
LOCAL_CART_KEY = "sopopped_cart_v1"


class CartLineItem(BaseModel):
    """
    One product line in a cart snapshot.

    - `id` is the product id; a snapshot holds at most one line per id.
    - `quantity` is always >= 1. The browser historically wrote `qty`,
      which is accepted on input and normalised to `quantity`.
    - name/price/description (and any extra display keys such as
      `image`) are cached from the catalog when the item was added.
      They are display-only; checkout re-reads the catalog price.
    """

    model_config = ConfigDict(extra="allow")

    id: int = Field(gt=0)
    quantity: int = Field(default=1, ge=1)
    name: str | None = None
    price: float | None = None
    description: str | None = None

    @model_validator(mode="before")
    @classmethod
    def accept_qty_alias(cls, data: Any) -> Any:
        if isinstance(data, dict) and "qty" in data:
            data = dict(data)
            qty = data.pop("qty")
            data.setdefault("quantity", qty)
        return data

    def to_json(self) -> dict[str, Any]:
        """JSON-compatible dict as stored in user_carts.cart_json."""
        return self.model_dump(exclude_none=True)


class CartResponse(SQLModel):
    """
    Envelope for load/save:

        {"success": true, "cart": [...], "version": 3}
    """

    success: bool = True
    cart: list[dict[str, Any]]
    version: int = 0
