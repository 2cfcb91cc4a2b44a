import uuid

from sqlalchemy import func, or_
from sqlmodel import Session, select

from app.models.product import Product
from app.schemas.product import ProductQuery


class ProductRepository:
    """
    Data access layer for Product.

    - Pure DB operations (CRUD + queries).
    - No FastAPI, no business logic.
    """

    def get_by_id(self, session: Session, product_id: uuid.UUID) -> Product | None:
        return session.get(Product, product_id)

    def get_by_sku(self, session: Session, sku: str) -> Product | None:
        stmt = select(Product).where(Product.sku == sku)
        return session.exec(stmt).first()

    def search(self, session: Session, query: ProductQuery) -> tuple[list[Product], int]:
        """
        Filtered listing of active products, newest first.

        Returns (page, total_matching).
        """
        stmt = select(Product).where(Product.is_active == True)  # noqa: E712

        if query.search:
            pattern = f"%{query.search.strip()}%"
            stmt = stmt.where(
                or_(
                    Product.name.ilike(pattern),
                    Product.description.ilike(pattern),
                    Product.sku.ilike(pattern),
                    Product.collection.ilike(pattern),
                    Product.category.ilike(pattern),
                )
            )
        if query.product_type:
            stmt = stmt.where(Product.product_type == query.product_type)
        if query.category:
            stmt = stmt.where(Product.category.ilike(f"%{query.category}%"))
        if query.min_price is not None:
            stmt = stmt.where(Product.price_amount >= query.min_price)
        if query.max_price is not None:
            stmt = stmt.where(Product.price_amount <= query.max_price)

        total = session.exec(select(func.count()).select_from(stmt.subquery())).one()

        page_stmt = (
            stmt.order_by(Product.created_at.desc())
            .offset(query.skip)
            .limit(query.limit)
        )
        return list(session.exec(page_stmt).all()), int(total or 0)

    def list_low_stock(self, session: Session, threshold: int) -> list[Product]:
        stmt = (
            select(Product)
            .where(Product.inventory_quantity <= threshold)
            .order_by(Product.inventory_quantity)
        )
        return list(session.exec(stmt).all())

    def list_by_ids(self, session: Session, ids: list[uuid.UUID]) -> list[Product]:
        if not ids:
            return []
        stmt = select(Product).where(Product.id.in_(ids))
        return list(session.exec(stmt).all())

    def create(self, session: Session, product: Product) -> Product:
        session.add(product)
        session.commit()
        session.refresh(product)
        return product

    def update(self, session: Session, product: Product) -> Product:
        session.add(product)
        session.commit()
        session.refresh(product)
        return product

    def delete(self, session: Session, product: Product) -> None:
        session.delete(product)
        session.commit()
