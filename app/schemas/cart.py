import uuid
from datetime import datetime

from pydantic import ConfigDict
from sqlmodel import SQLModel, Field


class CartItemCreate(SQLModel):
    """
    Payload for adding to cart.
    """

    model_config = ConfigDict(extra="forbid")

    product_id: uuid.UUID
    quantity: int = Field(default=1, gt=0)


class CartItemUpdate(SQLModel):
    """
    Payload for updating quantity of a cart item.
    """

    model_config = ConfigDict(extra="forbid")

    quantity: int = Field(gt=0)


class DiscountApply(SQLModel):
    """
    Absolute discount amount. It may exceed the subtotal; the total is
    clamped at zero.
    """

    model_config = ConfigDict(extra="forbid")

    amount: float = Field(ge=0)


class CartItemRead(SQLModel):
    """
    Read model for a single cart line, including line_total.
    """

    id: uuid.UUID
    product_id: uuid.UUID
    product_name: str
    quantity: int
    unit_price: float
    line_total: float
    created_at: datetime


class CartSummary(SQLModel):
    """
    Full cart response model with totals.
    """

    id: uuid.UUID
    items: list[CartItemRead]
    total_quantity: int
    subtotal: float
    discount: float
    total: float
