# sopopped/services/product_service.py
from sqlmodel import Session

from sopopped.core.errors import NotFound
from sopopped.models.product import Product
from sopopped.repositories.product_repo import ProductRepository
from sopopped.schemas.product import ProductCreate, ProductUpdate


class ProductService:
    """
    Catalog reads for the storefront and admin edits.

    Admin-only operations are enforced at the router via require_admin.
    """

    def __init__(self, repo: ProductRepository):
        self.repo = repo

    def list_products(
        self,
        session: Session,
        skip: int = 0,
        limit: int = 50,
        only_active: bool = True,
    ) -> list[Product]:
        return self.repo.list(session, skip=skip, limit=limit, only_active=only_active)

    def get_product(self, session: Session, product_id: int) -> Product:
        product = self.repo.get_by_id(session, product_id)
        if not product:
            raise NotFound("Product not found")
        return product

    def create_product(self, session: Session, payload: ProductCreate) -> Product:
        product = Product(
            name=payload.name,
            description=payload.description,
            price=payload.price,
            quantity=payload.quantity,
            image_path=payload.image_path,
            is_active=payload.is_active,
        )
        return self.repo.create(session, product)

    def update_product(
        self,
        session: Session,
        product_id: int,
        payload: ProductUpdate,
    ) -> Product:
        """
        Partial update of a product.

        Only fields present in the payload are touched.
        """
        product = self.get_product(session, product_id)

        for field, value in payload.model_dump(exclude_unset=True).items():
            if value is not None:
                setattr(product, field, value)

        return self.repo.update(session, product)
