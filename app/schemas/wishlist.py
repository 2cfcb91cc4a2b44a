import uuid

from pydantic import ConfigDict
from sqlmodel import SQLModel

from app.schemas.product import ProductRead


class WishlistAdd(SQLModel):
    model_config = ConfigDict(extra="forbid")

    product_id: uuid.UUID


class WishlistRead(SQLModel):
    products: list[ProductRead]
