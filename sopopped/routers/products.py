# sopopped/routers/products.py
"""
Popcorn catalog.

The shop pages fetch the listing once per page load; the cart reads
`quantity` from it to cap adds at the stock on hand. Checkout re-reads
prices and stock itself, so nothing here is trusted at purchase time.
"""

from fastapi import APIRouter, Depends, status
from sqlmodel import Session

from sopopped.core.auth import require_admin
from sopopped.database import get_session
from sopopped.repositories.product_repo import ProductRepository
from sopopped.schemas.product import ProductCreate, ProductRead, ProductUpdate
from sopopped.services.product_service import ProductService

router = APIRouter(prefix="/products", tags=["Products"])

service = ProductService(ProductRepository())


# -------- Shop pages --------


@router.get("", response_model=list[ProductRead])
def list_products(
    skip: int = 0,
    limit: int = 50,
    only_active: bool = True,
    session: Session = Depends(get_session),
):
    """
    Flavors on sale, newest first, with price and stock.

    Products taken off the shelf (`is_active=false`) are left out unless
    `only_active=false` is passed.
    """
    return service.list_products(session, skip=skip, limit=limit, only_active=only_active)


@router.get("/{product_id}", response_model=ProductRead)
def get_product(product_id: int, session: Session = Depends(get_session)):
    return service.get_product(session, product_id)


# -------- Admin dashboard --------


@router.post(
    "",
    response_model=ProductRead,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
def create_product(payload: ProductCreate, session: Session = Depends(get_session)):
    """Add a flavor to the catalog."""
    return service.create_product(session, payload)


@router.patch(
    "/{product_id}",
    response_model=ProductRead,
    dependencies=[Depends(require_admin)],
)
def update_product(
    product_id: int,
    payload: ProductUpdate,
    session: Session = Depends(get_session),
):
    """
    Restock, reprice or shelve a flavor. Placed orders keep their
    price_at_purchase.
    """
    return service.update_product(session, product_id, payload)
