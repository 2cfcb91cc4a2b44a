import logging
import uuid

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from app.core.cache import CatalogCache
from app.core.errors import ConflictError, NotFoundError, ValidationError
from app.models.product import Product
from app.repositories.product_repo import ProductRepository
from app.schemas.product import (
    InventoryUpdate,
    ProductCreate,
    ProductQuery,
    ProductRead,
    ProductUpdate,
)

logger = logging.getLogger(__name__)

LOW_STOCK_THRESHOLD = 10


class ProductService:
    """
    Business logic for the catalog.

    Responsibilities:
      - SKU uniqueness
      - cached public listing (CatalogCache), invalidated on every admin write
      - admin restocking with the reserved <= quantity invariant
    """

    def __init__(self, repo: ProductRepository):
        self.repo = repo

    # ----- Public -----

    def list_products(
        self,
        session: Session,
        query: ProductQuery,
        cache: CatalogCache | None = None,
    ) -> dict:
        """
        Paginated listing of active products.

        Returns a plain dict ({items, total, skip, limit}) so the same
        document can be stored in and served from the cache.
        """
        params = query.model_dump()
        if cache is not None:
            cached = cache.get(params)
            if cached is not None:
                return cached

        products, total = self.repo.search(session, query)
        page = {
            "items": [ProductRead.model_validate(p).model_dump(mode="json") for p in products],
            "total": total,
            "skip": query.skip,
            "limit": query.limit,
        }

        if cache is not None:
            cache.set(params, page)
        return page

    def get_product(self, session: Session, product_id: uuid.UUID) -> Product:
        product = self.repo.get_by_id(session, product_id)
        if not product:
            raise NotFoundError("Product not found")
        return product

    # ----- Admin -----

    def create_product(
        self,
        session: Session,
        payload: ProductCreate,
        cache: CatalogCache | None = None,
    ) -> Product:
        if self.repo.get_by_sku(session, payload.sku) is not None:
            raise ConflictError(f"SKU {payload.sku} already exists")

        product = Product(**payload.model_dump())
        product = self.repo.create(session, product)
        logger.info("Created product %s (%s)", product.id, product.sku)
        self._invalidate(cache)
        return product

    def update_product(
        self,
        session: Session,
        product_id: uuid.UUID,
        payload: ProductUpdate,
        cache: CatalogCache | None = None,
    ) -> Product:
        """
        Partial update of a product.
        """
        product = self.get_product(session, product_id)

        for field, value in payload.model_dump(exclude_unset=True).items():
            setattr(product, field, value)

        product = self.repo.update(session, product)
        self._invalidate(cache)
        return product

    def delete_product(
        self,
        session: Session,
        product_id: uuid.UUID,
        cache: CatalogCache | None = None,
    ) -> None:
        product = self.get_product(session, product_id)
        try:
            self.repo.delete(session, product)
        except IntegrityError:
            session.rollback()
            raise ConflictError("Product is referenced by carts or orders; deactivate it instead")
        logger.info("Deleted product %s", product_id)
        self._invalidate(cache)

    def set_inventory(
        self,
        session: Session,
        product_id: uuid.UUID,
        payload: InventoryUpdate,
        cache: CatalogCache | None = None,
    ) -> Product:
        """
        Restock: set the absolute on-hand quantity.

        Rejects a quantity below the reserved count.
        """
        product = self.get_product(session, product_id)
        if payload.quantity < product.inventory_reserved:
            raise ValidationError(
                f"Quantity {payload.quantity} is below reserved count {product.inventory_reserved}"
            )
        product.inventory_quantity = payload.quantity
        product = self.repo.update(session, product)
        self._invalidate(cache)
        return product

    def low_stock(self, session: Session, threshold: int = LOW_STOCK_THRESHOLD) -> list[Product]:
        return self.repo.list_low_stock(session, threshold)

    @staticmethod
    def _invalidate(cache: CatalogCache | None) -> None:
        if cache is not None:
            cache.invalidate()
