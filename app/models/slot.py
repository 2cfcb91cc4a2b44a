import uuid
from datetime import date, datetime, timezone

from sqlalchemy import Index, text
from sqlmodel import SQLModel, Field


TIME_RANGES = ("morning", "afternoon", "evening")


class SlotReservation(SQLModel, table=True):
    """
    Measurement appointment booking.

    A row is active while `released_at` is NULL. The partial unique index
    allows at most one active row per (slot_date, time_range); released
    rows are kept for history and do not block new bookings.

    `order_id` is not a foreign key: the reservation is inserted before
    the order row inside the same checkout transaction.
    """

    __tablename__ = "slot_reservations"
    __table_args__ = (
        Index(
            "uq_slot_reservations_active",
            "slot_date",
            "time_range",
            unique=True,
            postgresql_where=text("released_at IS NULL"),
            sqlite_where=text("released_at IS NULL"),
        ),
    )

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
    )

    slot_date: date
    time_range: str

    order_id: uuid.UUID = Field(index=True)

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )
    released_at: datetime | None = None
