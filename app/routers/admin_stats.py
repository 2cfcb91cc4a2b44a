# app/routers/admin_stats.py
from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from app.core.auth import require_admin
from app.database import get_session
from app.repositories.stats_repo import StatsRepository
from app.schemas.stats import AdminDashboardStats
from app.services.stats_service import StatsService

router = APIRouter(prefix="/admin/stats", tags=["Admin Stats"])

service = StatsService(StatsRepository())


@router.get("", response_model=AdminDashboardStats, dependencies=[Depends(require_admin)])
def dashboard(
    session: Session = Depends(get_session),
    year: int | None = Query(default=None, ge=2000, le=9999),
    month: int | None = Query(default=None, ge=1, le=12),
    top: int = Query(default=5, ge=1, le=50),
    latest: int = Query(default=5, ge=1, le=50),
    growth_months: int = Query(default=12, ge=1, le=60),
):
    """
    Sales dashboard. `year`/`month` pick the month for daily sales
    (current UTC month by default); totals are all-time.
    """
    return service.get_admin_dashboard_stats(
        session,
        year=year,
        month=month,
        top_n_products=top,
        latest_n_orders=latest,
        growth_months=growth_months,
    )
