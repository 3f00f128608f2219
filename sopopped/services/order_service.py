# sopopped/services/order_service.py
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from sopopped.core.config import get_settings
from sopopped.core.errors import BadRequest, NotFound, StorefrontError
from sopopped.models.order import Order, OrderItem
from sopopped.repositories.cart_repo import CartRepository
from sopopped.repositories.order_repo import OrderRepository
from sopopped.repositories.product_repo import ProductRepository
from sopopped.schemas.order import (
    CheckoutForm,
    CheckoutResult,
    OrderItemRead,
    OrderRead,
    OrderStatusUpdate,
)
from sopopped.schemas.session import AuthSession
from sopopped.services.cart_merge import normalize_snapshot, remove_purchased
from sopopped.services.cart_service import load_stored_items

settings = get_settings()
logger = logging.getLogger(__name__)

UNKNOWN_PRODUCT = "Unknown Product"

# Admin status machine
ALLOWED_TRANSITIONS: dict[str, set[str]] = {
    "pending": {"paid", "cancelled"},
    "paid": {"shipped", "cancelled"},
    "shipped": set(),
    "cancelled": set(),
}


def clamp_limit(limit: int | None) -> int:
    """
    Order history page size: missing or non-positive -> default,
    anything above the cap -> cap.
    """
    if limit is None or limit <= 0:
        return settings.ORDER_LIST_DEFAULT_LIMIT
    return min(limit, settings.ORDER_LIST_MAX_LIMIT)


class OrderService:
    """
    Business logic for orders.

    Responsibilities:
      - Create an order from the cart submitted at checkout
      - Re-validate every line against the catalog (existence, active,
        stock) and price it from the catalog, never from the client
      - Deduct stock and drop purchased lines from the saved cart in
        the same transaction
      - Order history scoped to the session's own user
      - Enforce simple status transitions (admin)
    """

    def __init__(
        self,
        order_repo: OrderRepository,
        cart_repo: CartRepository,
        product_repo: ProductRepository,
    ):
        self.order_repo = order_repo
        self.cart_repo = cart_repo
        self.product_repo = product_repo

    # -------- Checkout --------

    def checkout(
        self,
        session: Session,
        auth: AuthSession,
        form: CheckoutForm,
    ) -> CheckoutResult:
        """
        Convert the submitted cart into an Order.

        Steps:
          1. Fold duplicate lines.
          2. Lock each product row; reject missing/inactive products and
             insufficient stock.
          3. Freeze price_at_purchase from the catalog price.
          4. Insert Order (status='pending') and OrderItems.
          5. Deduct stock.
          6. Remove purchased ids from the saved server cart; other
             lines stay (partial checkout).
          7. Commit. Any failure rolls everything back.
        """
        lines = normalize_snapshot(form.cart_items)

        try:
            priced: list[tuple[int, int, float]] = []
            products = {}
            total = 0.0

            for line in lines:
                product = self.product_repo.get_for_update(session, line.id)
                if product is None or not product.is_active:
                    raise BadRequest(f"Product not found: {line.id}")
                if product.quantity < line.quantity:
                    raise BadRequest(f"Insufficient stock for product id {line.id}")

                products[line.id] = product
                priced.append((line.id, line.quantity, product.price))
                total += product.price * line.quantity

            order = self.order_repo.create_order(
                session,
                Order(
                    user_id=auth.user_id,
                    total_amount=round(total, 2),
                    status="pending",
                    payment_method=form.payment_method,
                    shipping_address=form.shipping_address(),
                ),
            )

            self.order_repo.create_items(
                session,
                [
                    OrderItem(
                        order_id=order.id,
                        product_id=product_id,
                        price_at_purchase=price,
                        quantity=quantity,
                    )
                    for product_id, quantity, price in priced
                ],
            )

            for product_id, quantity, _ in priced:
                product = products[product_id]
                product.quantity -= quantity
                session.add(product)

            purchased_ids = [product_id for product_id, _, _ in priced]
            self._drop_purchased_from_saved_cart(session, auth.user_id, purchased_ids)

            session.commit()
        except (StorefrontError, SQLAlchemyError):
            session.rollback()
            raise

        logger.info("Order %s created for user %s", order.id, auth.user_id)
        return CheckoutResult(
            order_id=order.id,
            purchased_ids=purchased_ids,
            redirect=f"/order_success?order_id={order.id}",
        )

    def _drop_purchased_from_saved_cart(
        self,
        session: Session,
        user_id: int,
        purchased_ids: list[int],
    ) -> None:
        row = self.cart_repo.get_for_update(session, user_id)
        if row is None:
            return
        remaining = remove_purchased(load_stored_items(row.cart_json), purchased_ids)
        if remaining:
            self.cart_repo.upsert(
                session, user_id, [it.to_json() for it in remaining], existing=row
            )
        else:
            self.cart_repo.delete(session, row)

    # -------- Order history --------

    def list_user_orders(
        self,
        session: Session,
        auth: AuthSession,
        limit: int | None = None,
    ) -> list[OrderRead]:
        """
        Newest-first orders of the session's user, items attached.
        """
        orders = self.order_repo.list_for_user(session, auth.user_id, clamp_limit(limit))
        return self._with_items(session, orders)

    def get_user_order(
        self,
        session: Session,
        auth: AuthSession,
        order_id: int,
    ) -> OrderRead:
        """
        A single order of the session's user.

        - 404 if the order does not exist or belongs to someone else.
        """
        order = self.order_repo.get_for_user(session, auth.user_id, order_id)
        if order is None:
            raise NotFound("Order not found")
        return self._with_items(session, [order])[0]

    # -------- Admin operations --------

    def list_all_orders(
        self,
        session: Session,
        skip: int = 0,
        limit: int = 50,
    ) -> list[OrderRead]:
        orders = self.order_repo.list_all(session, skip, limit)
        return self._with_items(session, orders)

    def update_status(
        self,
        session: Session,
        order_id: int,
        payload: OrderStatusUpdate,
    ) -> OrderRead:
        """
        Admin-only status update with simple state machine:

          pending   -> paid, cancelled
          paid      -> shipped, cancelled
          shipped   -> (no change)
          cancelled -> (no change)

        Any invalid transition raises 400.
        """
        order = self.order_repo.get_by_id(session, order_id)
        if not order:
            raise NotFound("Order not found")

        current = order.status
        new = payload.status

        if current != new:
            if new not in ALLOWED_TRANSITIONS.get(current, set()):
                raise BadRequest(f"Invalid status transition: {current} -> {new}")
            order.status = new
            self.order_repo.update_order(session, order)
            session.commit()
            session.refresh(order)

        return self._with_items(session, [order])[0]

    # -------- Helper DTO builder --------

    def _with_items(self, session: Session, orders: list[Order]) -> list[OrderRead]:
        """
        Attach items with one secondary query keyed by the order ids.
        """
        rows = self.order_repo.list_items_for_orders(session, [o.id for o in orders])

        items_by_order: dict[int, list[OrderItemRead]] = {}
        for item, product_name in rows:
            items_by_order.setdefault(item.order_id, []).append(
                OrderItemRead(
                    product_id=item.product_id,
                    product_name=product_name or UNKNOWN_PRODUCT,
                    price_at_purchase=item.price_at_purchase,
                    quantity=item.quantity,
                )
            )

        return [
            OrderRead(
                id=o.id,
                user_id=o.user_id,
                total_amount=o.total_amount,
                status=o.status,
                payment_method=o.payment_method,
                shipping_address=o.shipping_address,
                created_at=o.created_at,
                items=items_by_order.get(o.id, []),
            )
            for o in orders
        ]
