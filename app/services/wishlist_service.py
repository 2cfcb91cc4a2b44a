import uuid

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from app.core.errors import NotFoundError
from app.models.wishlist import WishlistItem
from app.repositories.product_repo import ProductRepository
from app.repositories.wishlist_repo import WishlistRepository
from app.schemas.product import ProductRead
from app.schemas.wishlist import WishlistRead


class WishlistService:
    """
    Saved-for-later products. Adding an already saved product is a no-op.
    """

    def __init__(self, repo: WishlistRepository, product_repo: ProductRepository):
        self.repo = repo
        self.product_repo = product_repo

    def get(self, session: Session, user_id: uuid.UUID) -> WishlistRead:
        products = self.repo.list_products(session, user_id)
        return WishlistRead(products=[ProductRead.model_validate(p) for p in products])

    def add(self, session: Session, user_id: uuid.UUID, product_id: uuid.UUID) -> WishlistRead:
        if not self.product_repo.get_by_id(session, product_id):
            raise NotFoundError("Product not found")

        if self.repo.get_item(session, user_id, product_id) is None:
            try:
                self.repo.add(session, WishlistItem(user_id=user_id, product_id=product_id))
            except IntegrityError:
                # Concurrent add of the same product
                session.rollback()

        return self.get(session, user_id)

    def remove(self, session: Session, user_id: uuid.UUID, product_id: uuid.UUID) -> WishlistRead:
        self.repo.remove(session, user_id, product_id)
        return self.get(session, user_id)

    def clear(self, session: Session, user_id: uuid.UUID) -> WishlistRead:
        self.repo.clear(session, user_id)
        return WishlistRead(products=[])
