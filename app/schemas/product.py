import uuid
from datetime import datetime
from typing import Literal

from pydantic import ConfigDict, field_validator
from sqlmodel import SQLModel, Field

ProductType = Literal["Wardrobe", "Storage"]


class ProductCreate(SQLModel):
    """
    Payload for creating a product (admin).
    """

    model_config = ConfigDict(extra="forbid")

    sku: str = Field(max_length=64)
    name: str = Field(max_length=200)
    description: str | None = None
    product_type: ProductType
    collection: str = Field(max_length=100)
    category: str | None = Field(default=None, max_length=50)
    price_amount: float = Field(gt=0)
    currency: str = Field(default="INR", min_length=3, max_length=3)
    inventory_quantity: int = Field(default=0, ge=0)
    is_active: bool = True

    @field_validator("sku", "name", "collection")
    @classmethod
    def not_empty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("field cannot be empty")
        return v


class ProductUpdate(SQLModel):
    """
    Partial update payload for products.
    All fields are optional.
    """

    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(default=None, max_length=200)
    description: str | None = None
    product_type: ProductType | None = None
    collection: str | None = Field(default=None, max_length=100)
    category: str | None = Field(default=None, max_length=50)
    price_amount: float | None = Field(default=None, gt=0)
    is_active: bool | None = None

    @field_validator("name", "collection")
    @classmethod
    def not_empty(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("field cannot be empty")
        return v


class InventoryUpdate(SQLModel):
    """
    Admin restock payload: sets the absolute on-hand quantity.
    """

    model_config = ConfigDict(extra="forbid")

    quantity: int = Field(ge=0)


class ReviewStats(SQLModel):
    review_count: int
    average_rating: float
    rating_distribution: dict[int, int]


class ProductRead(SQLModel):
    """
    Product representation for clients.
    """

    id: uuid.UUID
    sku: str
    name: str
    description: str | None
    product_type: ProductType
    collection: str
    category: str | None
    price_amount: float
    currency: str
    inventory_quantity: int
    inventory_reserved: int
    review_count: int
    average_rating: float
    is_active: bool
    created_at: datetime


class ProductQuery(SQLModel):
    """
    Public listing filters; also the cache key material.
    """

    skip: int = Field(default=0, ge=0)
    limit: int = Field(default=20, ge=1, le=100)
    search: str | None = None
    product_type: ProductType | None = None
    category: str | None = None
    min_price: float | None = Field(default=None, ge=0)
    max_price: float | None = Field(default=None, ge=0)


class ProductPage(SQLModel):
    items: list[ProductRead]
    total: int
    skip: int
    limit: int
