# sopopped/routers/cart.py
import json
from typing import Any

from fastapi import APIRouter, Depends, Header, Request
from sqlmodel import Session

from sopopped.core.auth import require_auth
from sopopped.core.errors import BadRequest
from sopopped.database import get_session
from sopopped.repositories.cart_repo import CartRepository
from sopopped.schemas.cart import CartResponse
from sopopped.schemas.session import AuthSession
from sopopped.services.cart_service import CartService, parse_snapshot

router = APIRouter(prefix="/cart", tags=["Cart"])

cart_repo = CartRepository()
service = CartService(cart_repo)


async def snapshot_body(request: Request) -> Any:
    """
    Read the snapshot to save.

    Accepts a raw JSON body, or a form post whose `cart` field holds
    the JSON array (the non-fetch fallback used by older pages).
    """
    raw = await request.body()
    if raw:
        try:
            return json.loads(raw)
        except ValueError:
            pass

    if "form" in request.headers.get("content-type", ""):
        form = await request.form()
        cart = form.get("cart")
        if isinstance(cart, str):
            try:
                return json.loads(cart)
            except ValueError:
                pass

    raise BadRequest("Cart must be a JSON array")


@router.get("", response_model=CartResponse)
def load_cart(
    auth: AuthSession = Depends(require_auth),
    session: Session = Depends(get_session),
):
    """
    Return the logged-in user's saved cart (empty if none yet).

    `version` is 0 when nothing is stored.
    """
    return service.load_cart(session, auth)


@router.post("", response_model=CartResponse)
def save_cart(
    auth: AuthSession = Depends(require_auth),
    data: Any = Depends(snapshot_body),
    session: Session = Depends(get_session),
    x_cart_version: int | None = Header(default=None),
):
    """
    Replace the saved cart with the posted snapshot.

    Send `X-Cart-Version` (from the last load/save) to have the save
    rejected with 409 when another tab or device saved in between.
    Without it the last writer wins.
    """
    items = parse_snapshot(data)
    return service.save_cart(session, auth, items, expected_version=x_cart_version)
