# =============================================================================
# core/services/dashboard_service.py - Dashboard & View Selection
# =============================================================================
# Summary counters for the management dashboard and the choice of which
# view a signed-in user lands on:
#   employee      -> the timesheet screen
#   anything else -> management tabs (dashboard, customers, jobs, inventory)
# =============================================================================

import logging
from typing import Any

from core.context import AppContext
from core.services.inventory_service import InventoryService
from core.services.project_service import ProjectService

logger = logging.getLogger(__name__)

EMPLOYEE_ROLE = "employee"
MANAGEMENT_TABS = ("dashboard", "customers", "jobs", "inventory")


class DashboardService:
    """Service for the dashboard counters and role-based view."""

    def __init__(self, ctx: AppContext):
        self.ctx = ctx

    def summary(self) -> dict[str, Any]:
        """
        Dashboard counters.

        Returns:
            Dict with active_jobs, low_stock_items and database_connected
        """
        return {
            "active_jobs": ProjectService(self.ctx).active_count(),
            "low_stock_items": InventoryService(self.ctx).low_stock_count(),
            "database_connected": self.ctx.gateway.probe(),
        }

    def view(self) -> dict[str, Any]:
        """
        The view for the current user's role.

        Employees get the timesheet screen. Everyone else gets the
        management tabs with the dashboard counters as badges. A missing
        role counts as management.
        """
        role = self.ctx.user.role if self.ctx.user else None
        if role == EMPLOYEE_ROLE:
            return {"view": "employee_timesheet", "role": role, "tabs": [], "badges": {}}

        summary = self.summary()
        return {
            "view": "management",
            "role": role,
            "tabs": list(MANAGEMENT_TABS),
            "badges": {
                "jobs": summary["active_jobs"],
                "inventory": summary["low_stock_items"],
            },
        }
