# app/repositories/stats_repo.py
from sqlalchemy import func
from sqlmodel import Session, select

from app.models.order import Order, OrderItem, OrderStatus, PaymentStatus
from app.models.product import Product
from app.models.user import User

CANCELLED = OrderStatus.CANCELLED.value
PAID = PaymentStatus.PAID.value


def _is_sale():
    """Orders that count as revenue: paid and not cancelled."""
    return (Order.payment_status == PAID) & (Order.status != CANCELLED)


class StatsRepository:
    """
    Read-only aggregates for the admin dashboard.

    Day bucketing uses date(), which both Postgres and SQLite provide;
    year/month use extract().
    """

    def totals(self, session: Session) -> tuple[int, int, float]:
        """
        (customers, orders of any status, revenue).
        """
        customers = session.exec(
            select(func.count(User.id)).where(User.role == "user")
        ).one()
        orders = session.exec(select(func.count(Order.id))).one()
        revenue = session.exec(
            select(func.coalesce(func.sum(Order.total), 0.0)).where(_is_sale())
        ).one()
        return int(customers or 0), int(orders or 0), float(revenue or 0.0)

    def daily_sales(self, session: Session, year: int, month: int) -> list[tuple]:
        """
        (day, revenue, order_count) rows for each day of the month with sales.
        """
        day = func.date(Order.created_at)
        stmt = (
            select(day, func.sum(Order.total), func.count(Order.id))
            .where(
                _is_sale(),
                func.extract("year", Order.created_at) == year,
                func.extract("month", Order.created_at) == month,
            )
            .group_by(day)
            .order_by(day)
        )
        return list(session.exec(stmt).all())

    def top_products(self, session: Session, limit: int = 5) -> list[tuple]:
        """
        (product_id, name, quantity, revenue) of best sellers by units.

        Revenue uses the frozen order line price, not the current price.
        """
        units = func.sum(OrderItem.quantity)
        stmt = (
            select(
                OrderItem.product_id,
                Product.name,
                units,
                func.sum(OrderItem.quantity * OrderItem.unit_price),
            )
            .join(Order, Order.id == OrderItem.order_id)
            .join(Product, Product.id == OrderItem.product_id)
            .where(_is_sale())
            .group_by(OrderItem.product_id, Product.name)
            .order_by(units.desc())
            .limit(limit)
        )
        return list(session.exec(stmt).all())

    def latest_orders(self, session: Session, limit: int = 5) -> list[Order]:
        stmt = select(Order).order_by(Order.created_at.desc()).limit(limit)
        return list(session.exec(stmt).all())

    def user_growth(self, session: Session, months: int = 12) -> list[tuple]:
        """
        (year, month, sign-ups) for the latest `months` months that had
        sign-ups, oldest first.
        """
        year = func.extract("year", User.created_at)
        month = func.extract("month", User.created_at)
        stmt = (
            select(year, month, func.count(User.id))
            .group_by(year, month)
            .order_by(year.desc(), month.desc())
            .limit(months)
        )
        return list(reversed(session.exec(stmt).all()))
