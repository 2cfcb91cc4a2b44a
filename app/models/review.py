import uuid
from datetime import datetime, timezone

from sqlalchemy import UniqueConstraint
from sqlmodel import SQLModel, Field


class Review(SQLModel, table=True):
    """
    Product review. One review per (user, product).

    `verified` is set when the review was submitted through a delivery
    invitation link.
    """

    __tablename__ = "reviews"
    __table_args__ = (UniqueConstraint("user_id", "product_id"),)

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    user_id: uuid.UUID = Field(foreign_key="users.id", index=True)
    product_id: uuid.UUID = Field(foreign_key="products.id", index=True)

    rating: int = Field(ge=1, le=5)
    comment: str = Field(default="")

    helpful: int = Field(default=0, ge=0)
    verified: bool = Field(default=False)

    # pending | approved | rejected
    status: str = Field(default="pending", index=True)

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )


class ReviewInvitation(SQLModel, table=True):
    """
    Single-use review invitation issued when an order is delivered.

    The signed token carries `jti`; redemption sets `used_at` once.
    """

    __tablename__ = "review_invitations"

    jti: str = Field(primary_key=True)

    user_id: uuid.UUID = Field(foreign_key="users.id", index=True)
    order_id: uuid.UUID = Field(foreign_key="orders.id", index=True)

    expires_at: datetime
    used_at: datetime | None = None

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )
