import uuid
from datetime import datetime, timezone

from sqlalchemy import UniqueConstraint
from sqlmodel import SQLModel, Field


class Cart(SQLModel, table=True):
    """
    Shopping cart header, one per user.

    Created lazily on first access and emptied (never deleted) when an
    order is paid or the user clears it.

    Derived fields are rewritten by CartService after every mutation:
      subtotal = sum(unit_price * quantity)
      total    = max(0, subtotal - discount)
    """

    __tablename__ = "carts"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    user_id: uuid.UUID = Field(
        foreign_key="users.id",
        unique=True,
        index=True,
    )

    subtotal: float = Field(default=0.0)
    discount: float = Field(default=0.0, ge=0)
    total: float = Field(default=0.0, ge=0)

    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )


class CartItem(SQLModel, table=True):
    """
    Line inside a cart.
    One cart cannot have 2 rows for the same product.
    """

    __tablename__ = "cart_items"
    __table_args__ = (UniqueConstraint("cart_id", "product_id"),)

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    cart_id: uuid.UUID = Field(
        foreign_key="carts.id",
        index=True,
    )

    product_id: uuid.UUID = Field(
        foreign_key="products.id",
        index=True,
    )

    product_name: str

    quantity: int = Field(
        gt=0,
        description="Must be >= 1",
    )

    unit_price: float = Field(
        description="Price frozen when the product was added",
    )

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )
