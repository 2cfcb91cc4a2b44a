import uuid
from datetime import date, datetime, timezone

from sqlalchemy import update
from sqlmodel import Session, select

from app.models.slot import SlotReservation


class SlotRepository:
    """
    Data access layer for measurement slot reservations.

    No commits here. `insert_active` relies on the partial unique index
    and lets IntegrityError propagate to the caller.
    """

    def insert_active(
        self,
        session: Session,
        slot_date: date,
        time_range: str,
        order_id: uuid.UUID,
    ) -> SlotReservation:
        reservation = SlotReservation(
            slot_date=slot_date,
            time_range=time_range,
            order_id=order_id,
        )
        session.add(reservation)
        session.flush()
        return reservation

    def release_for_order(self, session: Session, order_id: uuid.UUID) -> int:
        stmt = (
            update(SlotReservation)
            .where(
                SlotReservation.order_id == order_id,
                SlotReservation.released_at.is_(None),
            )
            .values(released_at=datetime.now(timezone.utc))
            .execution_options(synchronize_session=False)
        )
        return session.exec(stmt).rowcount

    def active_for_date(self, session: Session, slot_date: date) -> list[SlotReservation]:
        stmt = select(SlotReservation).where(
            SlotReservation.slot_date == slot_date,
            SlotReservation.released_at.is_(None),
        )
        return list(session.exec(stmt).all())

    def active_for_order(self, session: Session, order_id: uuid.UUID) -> SlotReservation | None:
        stmt = select(SlotReservation).where(
            SlotReservation.order_id == order_id,
            SlotReservation.released_at.is_(None),
        )
        return session.exec(stmt).first()
