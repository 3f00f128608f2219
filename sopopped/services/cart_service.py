# sopopped/services/cart_service.py
import logging
from typing import Any

from pydantic import ValidationError
from sqlmodel import Session

from sopopped.core.errors import BadRequest, Conflict
from sopopped.repositories.cart_repo import CartRepository
from sopopped.schemas.cart import CartLineItem, CartResponse
from sopopped.schemas.session import AuthSession
from sopopped.services.cart_merge import normalize_snapshot

logger = logging.getLogger(__name__)


def parse_snapshot(data: Any) -> list[CartLineItem]:
    """
    Validate a client-supplied snapshot.

    Raises:
        BadRequest: if `data` is not a list, or any item lacks a valid
            product id / positive quantity.
    """
    if not isinstance(data, list):
        raise BadRequest("Cart must be a JSON array")

    items: list[CartLineItem] = []
    for index, raw in enumerate(data):
        try:
            items.append(CartLineItem.model_validate(raw))
        except ValidationError:
            raise BadRequest(f"Invalid cart item at position {index}")
    return items


def load_stored_items(cart_json: Any) -> list[CartLineItem]:
    """
    Read a stored snapshot back, skipping rows that no longer validate.

    Stored data went through parse_snapshot on the way in, so a bad row
    means manual tampering; it is logged and dropped rather than
    breaking the shopper's cart.
    """
    if not isinstance(cart_json, list):
        return []
    items: list[CartLineItem] = []
    for raw in cart_json:
        try:
            items.append(CartLineItem.model_validate(raw))
        except ValidationError:
            logger.warning("Dropping malformed stored cart row: %r", raw)
    return items


class CartService:
    """
    Server-side cart snapshots.

    Responsibilities:
      - return the user's stored snapshot (empty if none yet)
      - replace the snapshot wholesale (upsert, no line-level diffing)
      - optional optimistic concurrency via an expected version

    Callers merge before saving; without an expected version the last
    writer wins.
    """

    def __init__(self, cart_repo: CartRepository):
        self.cart_repo = cart_repo

    def load_cart(self, session: Session, auth: AuthSession) -> CartResponse:
        row = self.cart_repo.get(session, auth.user_id)
        if row is None:
            return CartResponse(cart=[], version=0)
        items = load_stored_items(row.cart_json)
        return CartResponse(cart=[it.to_json() for it in items], version=row.version)

    def save_cart(
        self,
        session: Session,
        auth: AuthSession,
        items: list[CartLineItem],
        expected_version: int | None = None,
    ) -> CartResponse:
        """
        Replace the stored snapshot for auth.user_id.

        Duplicate ids in `items` are folded by summing so the stored
        snapshot never holds two lines for one product.

        Raises:
            Conflict: if expected_version is given and does not match
                the stored version (0 meaning "no cart stored yet").
        """
        row = self.cart_repo.get_for_update(session, auth.user_id)

        if expected_version is not None:
            current = row.version if row is not None else 0
            if current != expected_version:
                session.rollback()
                raise Conflict(
                    "Cart was changed elsewhere; reload and merge before saving",
                    errors={"version": current},
                )

        snapshot = [it.to_json() for it in normalize_snapshot(items)]
        row = self.cart_repo.upsert(session, auth.user_id, snapshot, existing=row)
        session.commit()
        session.refresh(row)

        return CartResponse(cart=snapshot, version=row.version)
