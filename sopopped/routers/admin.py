# sopopped/routers/admin.py
from fastapi import APIRouter, Depends
from sqlmodel import Session

from sopopped.core.auth import require_admin
from sopopped.database import get_session
from sopopped.repositories.session_repo import SessionRepository
from sopopped.repositories.user_repo import UserRepository
from sopopped.routers.orders import service as order_service
from sopopped.schemas.order import OrderRead, OrderStatusUpdate
from sopopped.schemas.session import AuthSession
from sopopped.schemas.user import UserArchiveUpdate, UserRead
from sopopped.services.user_service import UserService

router = APIRouter(
    prefix="/admin",
    tags=["Admin"],
    dependencies=[Depends(require_admin)],
)

user_service = UserService(UserRepository(), SessionRepository())


# -------- Orders --------


@router.get("/orders", response_model=list[OrderRead])
def list_all_orders(
    session: Session = Depends(get_session),
    skip: int = 0,
    limit: int = 50,
):
    """
    List all orders, newest first (admin only).
    """
    return order_service.list_all_orders(session, skip, limit)


@router.patch("/orders/{order_id}/status", response_model=OrderRead)
def update_order_status(
    order_id: int,
    payload: OrderStatusUpdate,
    session: Session = Depends(get_session),
):
    """
    Update order status (admin only) with simple state machine.

      pending   -> paid, cancelled

      paid      -> shipped, cancelled

      shipped   -> (no change)

      cancelled -> (no change)

    """
    return order_service.update_status(session, order_id, payload)


# -------- Users --------


@router.get("/users", response_model=list[UserRead])
def list_users(
    session: Session = Depends(get_session),
    skip: int = 0,
    limit: int = 50,
):
    return user_service.list_users(session, skip, limit)


@router.patch("/users/{user_id}/archive", response_model=UserRead)
def set_user_archived(
    user_id: int,
    payload: UserArchiveUpdate,
    admin: AuthSession = Depends(require_admin),
    session: Session = Depends(get_session),
):
    """
    Archive (soft-delete) or restore an account (admin only).

    Archiving logs the user out everywhere and blocks future logins.
    """
    return user_service.set_archived(session, admin, user_id, payload)
