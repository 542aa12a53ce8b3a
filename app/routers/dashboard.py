# =============================================================================
# app/routers/dashboard.py - Management Dashboard Endpoint
# =============================================================================

from fastapi import APIRouter
from pydantic import BaseModel

from app.dependencies import ContextDep
from core.services.dashboard_service import DashboardService

router = APIRouter()


class DashboardResponse(BaseModel):
    """Dashboard counters."""
    active_jobs: int
    low_stock_items: int
    database_connected: bool


@router.get("/dashboard", response_model=DashboardResponse)
def get_dashboard(ctx: ContextDep):
    """
    Active jobs (pending, planning, in progress), items at or below their
    minimum quantity, and whether the database answers.
    """
    return DashboardService(ctx).summary()
