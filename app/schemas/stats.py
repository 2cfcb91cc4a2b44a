import uuid
from datetime import date, datetime

from sqlmodel import SQLModel

from app.schemas.order import OrderStatusLiteral, PaymentStatusLiteral

# Dashboard read models. Revenue figures only include paid orders that
# were not cancelled afterwards.


class DailySales(SQLModel):
    date: date
    total_revenue: float
    order_count: int


class TopProduct(SQLModel):
    product_id: uuid.UUID
    name: str
    total_quantity: int
    total_revenue: float


class LatestOrderSummary(SQLModel):
    id: uuid.UUID
    created_at: datetime
    user_id: uuid.UUID
    total: float
    status: OrderStatusLiteral
    payment_status: PaymentStatusLiteral


class UserGrowth(SQLModel):
    month: str  # "YYYY-MM"
    new_users: int


class AdminDashboardStats(SQLModel):
    """
    Sales dashboard for one calendar month plus all-time totals.
    """

    total_customers: int
    total_orders: int
    total_revenue: float
    daily_sales: list[DailySales]
    top_products: list[TopProduct]
    latest_orders: list[LatestOrderSummary]
    user_growth: list[UserGrowth]
