# app/routers/products.py
import uuid

from fastapi import APIRouter, Depends, Query, status
from sqlmodel import Session

from app.core.auth import require_admin
from app.core.cache import CatalogCache
from app.core.deps import get_catalog_cache
from app.database import get_session
from app.repositories.product_repo import ProductRepository
from app.schemas.product import (
    InventoryUpdate,
    ProductCreate,
    ProductPage,
    ProductQuery,
    ProductRead,
    ProductType,
    ProductUpdate,
)
from app.services.product_service import LOW_STOCK_THRESHOLD, ProductService

router = APIRouter(prefix="/products", tags=["Products"])

repo = ProductRepository()
service = ProductService(repo)


# -------- Public endpoints --------


@router.get("", response_model=ProductPage)
def list_products(
    session: Session = Depends(get_session),
    cache: CatalogCache | None = Depends(get_catalog_cache),
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=20, ge=1, le=100),
    search: str | None = None,
    product_type: ProductType | None = None,
    category: str | None = None,
    min_price: float | None = Query(default=None, ge=0),
    max_price: float | None = Query(default=None, ge=0),
):
    """
    List active products.

    - Public endpoint.
    - Served from the catalog cache when the same query was seen recently.
    """
    query = ProductQuery(
        skip=skip,
        limit=limit,
        search=search,
        product_type=product_type,
        category=category,
        min_price=min_price,
        max_price=max_price,
    )
    return service.list_products(session, query, cache)


@router.get(
    "/admin/low-stock",
    response_model=list[ProductRead],
    dependencies=[Depends(require_admin)],
)
def low_stock(
    threshold: int = Query(default=LOW_STOCK_THRESHOLD, ge=0),
    session: Session = Depends(get_session),
):
    """
    Products at or below the stock threshold (admin only).
    """
    return service.low_stock(session, threshold)


@router.get("/{product_id}", response_model=ProductRead)
def get_product(
    product_id: uuid.UUID,
    session: Session = Depends(get_session),
):
    """
    Get a single product by id.

    - Public endpoint.
    """
    return service.get_product(session, product_id)


# -------- Admin endpoints --------


@router.post(
    "",
    response_model=ProductRead,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
def create_product(
    payload: ProductCreate,
    session: Session = Depends(get_session),
    cache: CatalogCache | None = Depends(get_catalog_cache),
):
    """
    Create a new product (admin only).
    """
    return service.create_product(session, payload, cache)


@router.patch(
    "/{product_id}",
    response_model=ProductRead,
    dependencies=[Depends(require_admin)],
)
def update_product(
    product_id: uuid.UUID,
    payload: ProductUpdate,
    session: Session = Depends(get_session),
    cache: CatalogCache | None = Depends(get_catalog_cache),
):
    """
    Update an existing product (admin only).
    """
    return service.update_product(session, product_id, payload, cache)


@router.put(
    "/{product_id}/inventory",
    response_model=ProductRead,
    dependencies=[Depends(require_admin)],
)
def set_inventory(
    product_id: uuid.UUID,
    payload: InventoryUpdate,
    session: Session = Depends(get_session),
    cache: CatalogCache | None = Depends(get_catalog_cache),
):
    """
    Restock a product (admin only).
    """
    return service.set_inventory(session, product_id, payload, cache)


@router.delete(
    "/{product_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_admin)],
)
def delete_product(
    product_id: uuid.UUID,
    session: Session = Depends(get_session),
    cache: CatalogCache | None = Depends(get_catalog_cache),
):
    """
    Delete a product (admin only).

    Products already referenced by carts or orders cannot be deleted.
    """
    service.delete_product(session, product_id, cache)
    return None
