import uuid

from sqlalchemy import delete
from sqlmodel import Session, select

from app.models.product import Product
from app.models.wishlist import WishlistItem


class WishlistRepository:

    def list_products(self, session: Session, user_id: uuid.UUID) -> list[Product]:
        stmt = (
            select(Product)
            .join(WishlistItem, WishlistItem.product_id == Product.id)
            .where(WishlistItem.user_id == user_id)
            .order_by(WishlistItem.created_at)
        )
        return list(session.exec(stmt).all())

    def get_item(
        self, session: Session, user_id: uuid.UUID, product_id: uuid.UUID
    ) -> WishlistItem | None:
        stmt = select(WishlistItem).where(
            WishlistItem.user_id == user_id, WishlistItem.product_id == product_id
        )
        return session.exec(stmt).first()

    def add(self, session: Session, item: WishlistItem) -> WishlistItem:
        session.add(item)
        session.commit()
        return item

    def remove(self, session: Session, user_id: uuid.UUID, product_id: uuid.UUID) -> None:
        session.exec(
            delete(WishlistItem).where(
                WishlistItem.user_id == user_id, WishlistItem.product_id == product_id
            )
        )
        session.commit()

    def clear(self, session: Session, user_id: uuid.UUID) -> None:
        session.exec(delete(WishlistItem).where(WishlistItem.user_id == user_id))
        session.commit()
