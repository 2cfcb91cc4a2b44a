import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import func, update
from sqlmodel import Session, select

from app.models.order import Order, OrderItem


class OrderRepository:
    """
    Data access layer for orders and order_items.

    NOTE:
      - No commits here; checkout and payment finalization are
        multi-step transactions. The service calls session.commit().
      - State transitions go through `transition()`, a conditional
        UPDATE that only applies when the row still matches the expected
        state. The returned row count tells the caller whether it won.
    """

    # ---- Orders ----

    def get_by_id(self, session: Session, order_id: uuid.UUID) -> Order | None:
        return session.get(Order, order_id)

    def get_by_gateway_order_id(self, session: Session, gateway_order_id: str) -> Order | None:
        stmt = select(Order).where(Order.gateway_order_id == gateway_order_id)
        return session.exec(stmt).first()

    def list_for_user(
        self,
        session: Session,
        user_id: uuid.UUID,
        skip: int = 0,
        limit: int = 50,
    ) -> list[Order]:
        stmt = (
            select(Order)
            .where(Order.user_id == user_id)
            .order_by(Order.created_at.desc())
            .offset(skip)
            .limit(limit)
        )
        return list(session.exec(stmt).all())

    def search(
        self,
        session: Session,
        *,
        status: str | None = None,
        payment_status: str | None = None,
        min_total: float | None = None,
        max_total: float | None = None,
        skip: int = 0,
        limit: int = 10,
    ) -> tuple[list[Order], int]:
        stmt = select(Order)
        if status:
            stmt = stmt.where(Order.status == status)
        if payment_status:
            stmt = stmt.where(Order.payment_status == payment_status)
        if min_total is not None:
            stmt = stmt.where(Order.total >= min_total)
        if max_total is not None:
            stmt = stmt.where(Order.total <= max_total)

        total = session.exec(select(func.count()).select_from(stmt.subquery())).one()
        page = session.exec(
            stmt.order_by(Order.created_at.desc()).offset(skip).limit(limit)
        ).all()
        return list(page), int(total or 0)

    def create_order(self, session: Session, order: Order) -> Order:
        """
        Insert an Order without committing, but ensure id is populated.
        """
        session.add(order)
        session.flush()
        return order

    def transition(
        self,
        session: Session,
        order_id: uuid.UUID,
        expected: dict[str, Any],
        values: dict[str, Any],
    ) -> bool:
        """
        UPDATE orders SET <values> WHERE id = :id AND <expected>.

        `expected` maps column name -> required value, or a set of
        allowed values. Returns True when exactly one row changed.
        """
        stmt = update(Order).where(Order.id == order_id)
        for column, value in expected.items():
            col = getattr(Order, column)
            if isinstance(value, (set, frozenset, list, tuple)):
                stmt = stmt.where(col.in_(list(value)))
            else:
                stmt = stmt.where(col == value)

        stmt = stmt.values(updated_at=datetime.now(timezone.utc), **values)
        result = session.exec(stmt.execution_options(synchronize_session=False))
        return result.rowcount == 1

    # ---- Order items ----

    def list_items_for_order(
        self,
        session: Session,
        order_id: uuid.UUID,
    ) -> list[OrderItem]:
        stmt = select(OrderItem).where(OrderItem.order_id == order_id)
        return list(session.exec(stmt).all())

    def create_items(
        self,
        session: Session,
        items: list[OrderItem],
    ) -> list[OrderItem]:
        session.add_all(items)
        session.flush()
        return items

    def order_contains_product(
        self,
        session: Session,
        order_id: uuid.UUID,
        product_id: uuid.UUID,
    ) -> bool:
        stmt = select(OrderItem.id).where(
            OrderItem.order_id == order_id,
            OrderItem.product_id == product_id,
        )
        return session.exec(stmt).first() is not None
