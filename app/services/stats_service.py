# app/services/stats_service.py
from datetime import date, datetime, timezone

from sqlmodel import Session

from app.core.errors import ValidationError
from app.repositories.stats_repo import StatsRepository
from app.schemas.stats import (
    AdminDashboardStats,
    DailySales,
    LatestOrderSummary,
    TopProduct,
    UserGrowth,
)


def _as_date(value) -> date:
    # date() comes back as a date from Postgres and as "YYYY-MM-DD" from SQLite
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value))


class StatsService:
    def __init__(self, repo: StatsRepository):
        self.repo = repo

    def get_admin_dashboard_stats(
        self,
        session: Session,
        year: int | None = None,
        month: int | None = None,
        top_n_products: int = 5,
        latest_n_orders: int = 5,
        growth_months: int = 12,
    ) -> AdminDashboardStats:
        """
        Daily sales cover one month, the current UTC month unless given.
        """
        today = datetime.now(timezone.utc).date()
        year = year or today.year
        month = month or today.month
        if not 1 <= month <= 12:
            raise ValidationError("month must be between 1 and 12")

        customers, orders, revenue = self.repo.totals(session)

        return AdminDashboardStats(
            total_customers=customers,
            total_orders=orders,
            total_revenue=revenue,
            daily_sales=[
                DailySales(date=_as_date(day), total_revenue=float(amount or 0.0), order_count=int(count))
                for day, amount, count in self.repo.daily_sales(session, year, month)
            ],
            top_products=[
                TopProduct(
                    product_id=product_id,
                    name=name,
                    total_quantity=int(units or 0),
                    total_revenue=float(amount or 0.0),
                )
                for product_id, name, units, amount in self.repo.top_products(session, top_n_products)
            ],
            latest_orders=[
                LatestOrderSummary.model_validate(order)
                for order in self.repo.latest_orders(session, latest_n_orders)
            ],
            user_growth=[
                UserGrowth(month=f"{int(y):04d}-{int(m):02d}", new_users=int(n))
                for y, m, n in self.repo.user_growth(session, growth_months)
            ],
        )
