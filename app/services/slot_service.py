import logging
import uuid
from datetime import date, datetime, timedelta

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from app.core.errors import SlotUnavailable
from app.models.slot import SlotReservation, TIME_RANGES
from app.repositories.slot_repo import SlotRepository

logger = logging.getLogger(__name__)


def validate_measurement_slot(slot_date: date | None, time_range: str | None, now: datetime) -> bool:
    """
    Stateless booking rules for a measurement appointment.

    Valid when:
      - time_range is morning | afternoon | evening
      - the date is not a Sunday
      - the date is strictly after tomorrow (relative to `now`)
    """
    if slot_date is None or not time_range:
        return False
    if time_range not in TIME_RANGES:
        return False
    if slot_date.weekday() == 6:
        return False
    min_date = (now + timedelta(days=1)).date()
    return slot_date > min_date


class SlotRegistry:
    """
    At-most-one active booking per (date, time_range).

    Reservation is a single INSERT against a partial unique index, so two
    concurrent checkouts for the same slot cannot both commit; there is no
    read-then-write window.
    """

    def __init__(self, repo: SlotRepository):
        self.repo = repo

    def reserve(
        self,
        session: Session,
        slot_date: date,
        time_range: str,
        order_id: uuid.UUID,
    ) -> SlotReservation:
        """
        Insert an active reservation inside the caller's transaction.

        Must be the first write of that transaction: on conflict the whole
        transaction is rolled back before SlotUnavailable is raised.
        """
        try:
            return self.repo.insert_active(session, slot_date, time_range, order_id)
        except IntegrityError:
            session.rollback()
            logger.info("Slot %s/%s already reserved", slot_date, time_range)
            raise SlotUnavailable(slot_date, time_range)

    def release(self, session: Session, order_id: uuid.UUID) -> bool:
        """
        Free the order's active reservation, if any. No commit.
        """
        released = self.repo.release_for_order(session, order_id)
        if released:
            logger.info("Released measurement slot of order %s", order_id)
        return bool(released)

    def taken_ranges(self, session: Session, slot_date: date) -> list[str]:
        taken = {r.time_range for r in self.repo.active_for_date(session, slot_date)}
        return [tr for tr in TIME_RANGES if tr in taken]
