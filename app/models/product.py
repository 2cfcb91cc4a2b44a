import uuid
from datetime import datetime, timezone

from sqlmodel import SQLModel, Field


class Product(SQLModel, table=True):
    """
    Catalog entry for a wardrobe or storage unit.

    Inventory is informational: order placement does not decrement
    `inventory_quantity`; only admin restocking changes it.
    Invariant: inventory_reserved <= inventory_quantity.

    Review aggregate (review_count, average_rating, rating_1..rating_5)
    is maintained by the review service.
    """

    __tablename__ = "products"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    sku: str = Field(
        max_length=64,
        unique=True,
        index=True,
        description="Stock keeping unit (unique)",
    )

    name: str = Field(
        max_length=200,
        index=True,
        description="Display name",
    )

    description: str | None = Field(default=None)

    # Wardrobe | Storage
    product_type: str = Field(index=True)

    collection: str = Field(index=True)
    category: str | None = Field(default=None, index=True)

    price_amount: float = Field(
        gt=0,
        index=True,
        description="Unit price in major currency units",
    )
    currency: str = Field(default="INR", max_length=3)

    inventory_quantity: int = Field(default=0, ge=0)
    inventory_reserved: int = Field(default=0, ge=0)

    review_count: int = Field(default=0, ge=0)
    average_rating: float = Field(default=0.0)
    rating_1: int = Field(default=0, ge=0)
    rating_2: int = Field(default=0, ge=0)
    rating_3: int = Field(default=0, ge=0)
    rating_4: int = Field(default=0, ge=0)
    rating_5: int = Field(default=0, ge=0)

    is_active: bool = Field(default=True, index=True)

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Creation timestamp (UTC)",
    )

    def rating_distribution(self) -> dict[int, int]:
        return {r: getattr(self, f"rating_{r}") for r in range(1, 6)}

    def apply_rating(self, new_rating: int | None, old_rating: int | None = None) -> None:
        """
        Move one rating in or out of the aggregate and recompute the average.

        - new_rating only: a review is counted.
        - old_rating only: a review is withdrawn.
        - both: an existing review changed its rating.
        """
        if old_rating is not None:
            attr = f"rating_{old_rating}"
            setattr(self, attr, max(0, getattr(self, attr) - 1))
        if new_rating is not None:
            attr = f"rating_{new_rating}"
            setattr(self, attr, getattr(self, attr) + 1)

        dist = self.rating_distribution()
        total = sum(dist.values())
        weighted = sum(r * count for r, count in dist.items())
        self.review_count = total
        self.average_rating = round(weighted / total, 2) if total else 0.0
