import uuid
from datetime import datetime, date, timezone
from enum import Enum

from sqlalchemy import JSON, Column
from sqlmodel import SQLModel, Field


class OrderStatus(str, Enum):
    """Fulfillment lifecycle."""

    PENDING = "Pending"
    PROCESSING = "Processing"
    SHIPPED = "Shipped"
    DELIVERED = "Delivered"
    CANCELLED = "Cancelled"


class PaymentStatus(str, Enum):
    """Payment lifecycle, independent of fulfillment."""

    PENDING = "Pending"
    PAID = "Paid"
    FAILED = "Failed"


TERMINAL_STATUSES = {OrderStatus.DELIVERED.value, OrderStatus.CANCELLED.value}

# Forward order of the fulfillment track
FULFILLMENT_TRACK = [
    OrderStatus.PROCESSING.value,
    OrderStatus.SHIPPED.value,
    OrderStatus.DELIVERED.value,
]


class Order(SQLModel, table=True):
    """
    Customer order: an immutable snapshot of the cart taken at checkout,
    plus two state axes (`status`, `payment_status`) and the payment
    gateway correlation fields.

    Lifecycle:
      Pending/Pending       created with a gateway order, awaiting payment
      Processing/Paid       signed callback verified
      Shipped -> Delivered  admin fulfillment updates
      Cancelled             buyer/admin cancel, or payment failure
    """

    __tablename__ = "orders"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    user_id: uuid.UUID = Field(
        foreign_key="users.id",
        index=True,
    )

    subtotal: float
    discount: float = Field(default=0.0)
    delivery_fee: float = Field(default=0.0)
    total: float = Field(description="subtotal - discount (clamped) + delivery_fee")

    # standard | express
    delivery_option: str = Field(default="standard")

    shipping_address: dict = Field(sa_column=Column(JSON, nullable=False))
    billing_address: dict | None = Field(default=None, sa_column=Column(JSON))

    mobile_number: str

    slot_date: date = Field(index=True)
    # morning | afternoon | evening
    slot_time_range: str

    status: str = Field(
        default=OrderStatus.PENDING.value,
        index=True,
    )
    payment_status: str = Field(
        default=PaymentStatus.PENDING.value,
        index=True,
    )

    gateway_order_id: str = Field(unique=True, index=True)
    gateway_payment_id: str | None = Field(default=None, index=True)
    gateway_signature: str | None = None

    invoice_url: str | None = None

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Creation timestamp (UTC)",
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )


class OrderItem(SQLModel, table=True):
    """
    Line item inside an order (snapshot of a cart line).
    """

    __tablename__ = "order_items"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    order_id: uuid.UUID = Field(
        foreign_key="orders.id",
        index=True,
    )

    product_id: uuid.UUID = Field(
        foreign_key="products.id",
        index=True,
    )

    product_name: str

    quantity: int = Field(
        gt=0,
        description="Quantity ordered (>=1)",
    )

    unit_price: float = Field(
        description="Unit price frozen in the cart",
    )
