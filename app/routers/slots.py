# app/routers/slots.py
from datetime import date, datetime, timezone

from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from app.database import get_session
from app.models.slot import TIME_RANGES
from app.repositories.slot_repo import SlotRepository
from app.schemas.order import SlotAvailability
from app.services.slot_service import SlotRegistry, validate_measurement_slot

router = APIRouter(prefix="/slots", tags=["Slots"])

registry = SlotRegistry(SlotRepository())


@router.get("/availability", response_model=SlotAvailability)
def slot_availability(
    slot_date: date = Query(alias="date"),
    session: Session = Depends(get_session),
):
    """
    Measurement time ranges still free on a date (public).

    `bookable` is False when the date itself fails the booking rules
    (Sunday, or not after tomorrow); `available` is then empty.
    """
    bookable = validate_measurement_slot(slot_date, TIME_RANGES[0], datetime.now(timezone.utc))
    taken = registry.taken_ranges(session, slot_date)
    available = [tr for tr in TIME_RANGES if tr not in taken] if bookable else []
    return SlotAvailability(
        date=slot_date,
        taken=taken,
        available=available,
        bookable=bookable,
    )
