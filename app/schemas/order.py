import uuid
from datetime import date, datetime
from typing import Literal

from pydantic import ConfigDict, field_validator
from sqlmodel import SQLModel, Field

DeliveryOption = Literal["standard", "express"]
TimeRange = Literal["morning", "afternoon", "evening"]
OrderStatusLiteral = Literal["Pending", "Processing", "Shipped", "Delivered", "Cancelled"]
PaymentStatusLiteral = Literal["Pending", "Paid", "Failed"]


class Address(SQLModel):
    model_config = ConfigDict(extra="forbid")

    street: str
    city: str
    state: str
    country: str = "India"
    zip_code: str

    @field_validator("street", "city", "state", "country", "zip_code")
    @classmethod
    def not_empty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("field cannot be empty")
        return v


class MeasurementSlot(SQLModel):
    """
    Requested in-person measurement appointment.

    The time range is checked by the slot pre-check (not here) so a bad
    value is reported as a checkout validation error.
    """

    model_config = ConfigDict(extra="forbid")

    date: date
    time_range: str


class CheckoutCreate(SQLModel):
    """
    Payload for starting checkout from the current cart.

    User provides:
      - mobile number (validated by the checkout service)
      - shipping address, optional billing address
      - delivery option
      - measurement slot

    Backend derives:
      - items, subtotal, discount from the cart
      - delivery fee from the delivery option
      - gateway order from the payment provider
    """

    model_config = ConfigDict(extra="forbid")

    mobile_number: str
    shipping_address: Address
    billing_address: Address | None = None
    delivery_option: DeliveryOption = "standard"
    measurement_slot: MeasurementSlot

    @field_validator("mobile_number")
    @classmethod
    def strip_mobile(cls, v: str) -> str:
        return v.strip()


class PaymentCallback(SQLModel):
    """
    Fields posted back by the gateway checkout widget after payment.
    """

    model_config = ConfigDict(extra="forbid")

    razorpay_order_id: str
    razorpay_payment_id: str
    razorpay_signature: str


class OrderItemRead(SQLModel):
    id: uuid.UUID
    product_id: uuid.UUID
    product_name: str
    quantity: int
    unit_price: float
    line_total: float


class OrderRead(SQLModel):
    """
    Full order view including items.
    """

    id: uuid.UUID
    user_id: uuid.UUID
    items: list[OrderItemRead]
    subtotal: float
    discount: float
    delivery_fee: float
    total: float
    delivery_option: DeliveryOption
    shipping_address: dict
    billing_address: dict | None
    mobile_number: str
    slot_date: date
    slot_time_range: TimeRange
    status: OrderStatusLiteral
    payment_status: PaymentStatusLiteral
    gateway_order_id: str
    gateway_payment_id: str | None
    invoice_url: str | None
    created_at: datetime
    updated_at: datetime


class GatewayIntentRead(SQLModel):
    """
    What the client needs to open the gateway checkout widget.
    """

    gateway_order_id: str
    amount: int
    currency: str
    key_id: str


class CheckoutRead(SQLModel):
    order: OrderRead
    payment: GatewayIntentRead


class OrderPage(SQLModel):
    orders: list[OrderRead]
    total: int
    skip: int
    limit: int


class OrderStatusUpdate(SQLModel):
    """
    Admin payload to change fulfillment status.
    """

    model_config = ConfigDict(extra="forbid")

    status: OrderStatusLiteral


class SlotAvailability(SQLModel):
    date: date
    taken: list[TimeRange]
    available: list[TimeRange]
    bookable: bool = Field(description="Whether the date passes the booking rules")
