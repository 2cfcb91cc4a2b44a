import uuid
from datetime import datetime, timezone

from sqlmodel import Session

from app.core.errors import NotFoundError, ValidationError
from app.models.cart import Cart, CartItem
from app.repositories.cart_repo import CartRepository
from app.repositories.product_repo import ProductRepository
from app.schemas.cart import (
    CartItemCreate,
    CartItemRead,
    CartItemUpdate,
    CartSummary,
    DiscountApply,
)


def recompute(cart: Cart, items: list[CartItem]) -> Cart:
    """
    Rewrite the derived totals of a cart:

      subtotal = sum(unit_price * quantity)
      total    = max(0, subtotal - discount)
    """
    cart.subtotal = round(sum(it.unit_price * it.quantity for it in items), 2)
    cart.total = max(0.0, round(cart.subtotal - cart.discount, 2))
    cart.updated_at = datetime.now(timezone.utc)
    return cart


class CartService:
    """
    Business logic for the cart aggregate.

    Responsibilities:
      - lazily create the user's cart
      - validate product existence and active flag
      - freeze unit_price at add time (never re-read afterwards)
      - recompute totals after every mutation, one commit per operation
    """

    def __init__(self, cart_repo: CartRepository, product_repo: ProductRepository):
        self.cart_repo = cart_repo
        self.product_repo = product_repo

    # ---- internal helpers ----

    def get_or_create_cart(self, session: Session, user_id: uuid.UUID) -> Cart:
        cart = self.cart_repo.get_for_user(session, user_id)
        if cart is None:
            cart = self.cart_repo.create(session, user_id)
            session.commit()
            session.refresh(cart)
        return cart

    def _get_valid_product(self, session: Session, product_id: uuid.UUID):
        product = self.product_repo.get_by_id(session, product_id)
        if not product:
            raise NotFoundError("Product not found")
        if not product.is_active:
            raise ValidationError("Product is inactive")
        return product

    @staticmethod
    def _check_quantity(quantity: int) -> None:
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
            raise ValidationError("Quantity must be a positive integer")

    def _commit(self, session: Session, cart: Cart) -> CartSummary:
        items = self.cart_repo.list_items(session, cart.id)
        recompute(cart, items)
        self.cart_repo.save(session, cart)
        session.commit()
        session.refresh(cart)
        return self._summary(cart, self.cart_repo.list_items(session, cart.id))

    @staticmethod
    def _summary(cart: Cart, items: list[CartItem]) -> CartSummary:
        return CartSummary(
            id=cart.id,
            items=[
                CartItemRead(
                    id=it.id,
                    product_id=it.product_id,
                    product_name=it.product_name,
                    quantity=it.quantity,
                    unit_price=it.unit_price,
                    line_total=round(it.unit_price * it.quantity, 2),
                    created_at=it.created_at,
                )
                for it in items
            ],
            total_quantity=sum(it.quantity for it in items),
            subtotal=cart.subtotal,
            discount=cart.discount,
            total=cart.total,
        )

    # ---- public operations ----

    def get_cart_summary(self, session: Session, user_id: uuid.UUID) -> CartSummary:
        cart = self.get_or_create_cart(session, user_id)
        return self._summary(cart, self.cart_repo.list_items(session, cart.id))

    def add_to_cart(
        self,
        session: Session,
        user_id: uuid.UUID,
        payload: CartItemCreate,
    ) -> CartSummary:
        """
        Add a product to the user's cart.

        Rules:
          - product must exist and be active
          - existing line: quantity is incremented, price stays frozen
          - new line: unit_price is taken from the product's current price
        """
        self._check_quantity(payload.quantity)
        product = self._get_valid_product(session, payload.product_id)
        cart = self.get_or_create_cart(session, user_id)

        existing = self.cart_repo.get_item(session, cart.id, product.id)
        if existing:
            existing.quantity += payload.quantity
            session.add(existing)
        else:
            self.cart_repo.add_item(
                session,
                CartItem(
                    cart_id=cart.id,
                    product_id=product.id,
                    product_name=product.name,
                    quantity=payload.quantity,
                    unit_price=product.price_amount,
                ),
            )

        return self._commit(session, cart)

    def update_quantity(
        self,
        session: Session,
        user_id: uuid.UUID,
        product_id: uuid.UUID,
        payload: CartItemUpdate,
    ) -> CartSummary:
        self._check_quantity(payload.quantity)
        cart = self.get_or_create_cart(session, user_id)
        item = self.cart_repo.get_item(session, cart.id, product_id)
        if not item:
            raise NotFoundError("Item not found in cart")

        item.quantity = payload.quantity
        session.add(item)
        return self._commit(session, cart)

    def remove_item(
        self,
        session: Session,
        user_id: uuid.UUID,
        product_id: uuid.UUID,
    ) -> CartSummary:
        cart = self.get_or_create_cart(session, user_id)
        item = self.cart_repo.get_item(session, cart.id, product_id)
        if not item:
            raise NotFoundError("Item not found in cart")

        self.cart_repo.delete_item(session, item)
        return self._commit(session, cart)

    def apply_discount(
        self,
        session: Session,
        user_id: uuid.UUID,
        payload: DiscountApply,
    ) -> CartSummary:
        """
        Set an absolute discount. It is not checked against the subtotal;
        the total is clamped at zero instead.
        """
        if payload.amount < 0:
            raise ValidationError("Discount cannot be negative")
        cart = self.get_or_create_cart(session, user_id)
        cart.discount = payload.amount
        return self._commit(session, cart)

    def clear_cart(self, session: Session, user_id: uuid.UUID) -> CartSummary:
        cart = self.get_or_create_cart(session, user_id)
        self.empty(session, cart)
        session.commit()
        session.refresh(cart)
        return self._summary(cart, [])

    def empty(self, session: Session, cart: Cart) -> None:
        """
        Drop all lines and reset discount/totals without committing.
        Used by clear_cart and by payment finalization.
        """
        self.cart_repo.delete_items(session, cart.id)
        cart.discount = 0.0
        recompute(cart, [])
        self.cart_repo.save(session, cart)
