# sopopped/routers/orders.py
from typing import Any

from fastapi import APIRouter, Depends
from pydantic import ValidationError
from sqlmodel import Session

from sopopped.core.auth import get_current_session, require_auth
from sopopped.core.errors import BadRequest, Unauthenticated, field_errors
from sopopped.core.http import read_payload
from sopopped.database import get_session
from sopopped.repositories.cart_repo import CartRepository
from sopopped.repositories.order_repo import OrderRepository
from sopopped.repositories.product_repo import ProductRepository
from sopopped.schemas.order import (
    CheckoutForm,
    CheckoutResult,
    OrderDetailResponse,
    OrderListResponse,
)
from sopopped.schemas.session import AuthSession
from sopopped.services.order_service import OrderService

router = APIRouter(prefix="/orders", tags=["Orders"])

order_repo = OrderRepository()
cart_repo = CartRepository()
product_repo = ProductRepository()
service = OrderService(order_repo, cart_repo, product_repo)

# pydantic error locations -> checkout form field names
FORM_FIELD_NAMES = {
    "first_name": "firstName",
    "last_name": "lastName",
    "payment_method": "paymentMethod",
    "cart_items": "cart",
}


def require_checkout_session(
    auth: AuthSession | None = Depends(get_current_session),
) -> AuthSession:
    if auth is None:
        raise Unauthenticated("You need an account to proceed with checkout.")
    return auth


@router.post("/checkout", response_model=CheckoutResult)
def checkout(
    auth: AuthSession = Depends(require_checkout_session),
    payload: dict[str, Any] = Depends(read_payload),
    session: Session = Depends(get_session),
):
    """
    Place an order from the submitted cart.

    Only ids and quantities of `cart_items` are used; prices come from
    the catalog. On success the purchased ids are removed from the
    saved cart and returned so the client can drop them locally.
    """
    try:
        form = CheckoutForm.model_validate(payload)
    except ValidationError as exc:
        errors = field_errors(exc, rename=FORM_FIELD_NAMES)
        raise BadRequest("Please correct the highlighted fields", errors=errors)

    return service.checkout(session, auth, form)


@router.get("", response_model=OrderListResponse)
def list_my_orders(
    auth: AuthSession = Depends(require_auth),
    session: Session = Depends(get_session),
    limit: int | None = None,
):
    """
    Newest-first order history of the logged-in user.

    `limit` defaults to 10 (also for zero/negative values), capped at 100.
    """
    return OrderListResponse(orders=service.list_user_orders(session, auth, limit))


@router.get("/{order_id}", response_model=OrderDetailResponse)
def get_my_order(
    order_id: int,
    auth: AuthSession = Depends(require_auth),
    session: Session = Depends(get_session),
):
    """
    A single order of the logged-in user; other users' orders are 404.
    """
    return OrderDetailResponse(order=service.get_user_order(session, auth, order_id))
