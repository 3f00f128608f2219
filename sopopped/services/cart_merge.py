# sopopped/services/cart_merge.py
"""
Cart reconciliation.

`merge_carts` runs when an anonymous shopper logs in: the browser cart
(local) is folded into the cart saved on the server so neither side
loses items. `union_carts` runs on later page loads and never sums.

Login merge rules:
  - the server snapshot is the base; its display fields win
  - a product present on both sides gets the SUM of both quantities
    (not the max, not a replacement)
  - products only present locally are appended with their own fields
  - the result never holds two lines for the same product id

These functions are pure: no I/O, no clock, inputs are never mutated.
Saving the merged cart back to the server and overwriting the local
copy is the caller's job (see sopopped.client.storefront).
"""

from typing import Iterable

from sopopped.schemas.cart import CartLineItem


def merge_carts(
    server: Iterable[CartLineItem],
    local: Iterable[CartLineItem],
) -> list[CartLineItem]:
    merged: dict[int, CartLineItem] = {}

    for item in list(server) + list(local):
        existing = merged.get(item.id)
        if existing is None:
            merged[item.id] = item.model_copy()
        else:
            merged[item.id] = existing.model_copy(
                update={"quantity": existing.quantity + item.quantity}
            )

    return list(merged.values())


def normalize_snapshot(items: Iterable[CartLineItem]) -> list[CartLineItem]:
    """Fold duplicate product ids in a single snapshot by summing them."""
    return merge_carts([], items)


def union_carts(
    server: Iterable[CartLineItem],
    local: Iterable[CartLineItem],
) -> list[CartLineItem]:
    """
    Page-load reconciliation: server lines are kept as they are and
    local-only products are appended. Quantities are never added, so
    running it again on its own output changes nothing.
    """
    combined = {item.id: item for item in normalize_snapshot(server)}

    for item in normalize_snapshot(local):
        if item.id not in combined:
            combined[item.id] = item

    return list(combined.values())


def remove_purchased(
    items: Iterable[CartLineItem],
    purchased_ids: Iterable[int],
) -> list[CartLineItem]:
    """Lines left in a cart after a (possibly partial) checkout."""
    purchased = set(purchased_ids)
    return [item.model_copy() for item in items if item.id not in purchased]
