# =============================================================================
# core/services/__init__.py - Service Layer Exports
# =============================================================================
# Every service takes an AppContext in its constructor.
# =============================================================================

from .customer_service import CustomerService
from .project_service import ProjectService
from .inventory_service import InventoryService
from .billing_service import InvoiceService, QuoteService
from .timesheet_service import ClockRegistry, TimesheetService
from .dashboard_service import DashboardService

__all__ = [
    "CustomerService",
    "ProjectService",
    "InventoryService",
    "QuoteService",
    "InvoiceService",
    "ClockRegistry",
    "TimesheetService",
    "DashboardService",
]
