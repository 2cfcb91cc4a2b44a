import uuid

from sqlalchemy import delete
from sqlmodel import Session, select

from app.models.cart import Cart, CartItem


class CartRepository:
    """
    Data access layer for carts and cart_items.

    NOTE:
      - No commits here; a cart mutation touches lines and the header
        totals, so CartService commits once per operation.
    """

    # ---- Cart header ----

    def get_for_user(self, session: Session, user_id: uuid.UUID) -> Cart | None:
        stmt = select(Cart).where(Cart.user_id == user_id)
        return session.exec(stmt).first()

    def create(self, session: Session, user_id: uuid.UUID) -> Cart:
        cart = Cart(user_id=user_id)
        session.add(cart)
        session.flush()
        return cart

    def save(self, session: Session, cart: Cart) -> Cart:
        session.add(cart)
        session.flush()
        return cart

    # ---- Lines ----

    def list_items(self, session: Session, cart_id: uuid.UUID) -> list[CartItem]:
        stmt = (
            select(CartItem)
            .where(CartItem.cart_id == cart_id)
            .order_by(CartItem.created_at)
        )
        return list(session.exec(stmt).all())

    def get_item(
        self, session: Session, cart_id: uuid.UUID, product_id: uuid.UUID
    ) -> CartItem | None:
        stmt = select(CartItem).where(
            CartItem.cart_id == cart_id, CartItem.product_id == product_id
        )
        return session.exec(stmt).first()

    def add_item(self, session: Session, item: CartItem) -> CartItem:
        session.add(item)
        session.flush()
        return item

    def delete_item(self, session: Session, item: CartItem) -> None:
        session.delete(item)
        session.flush()

    def delete_items(self, session: Session, cart_id: uuid.UUID) -> None:
        session.exec(delete(CartItem).where(CartItem.cart_id == cart_id))
