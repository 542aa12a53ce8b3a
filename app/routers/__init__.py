# =============================================================================
# app/routers/ - API Route Definitions
# =============================================================================
# This package contains FastAPI routers organized by feature:
# - health.py: Health check endpoints
# - dashboard.py: Management dashboard counters
# - customers.py: Customer CRUD and search
# - projects.py: Project (job) CRUD, search and status filter
# - inventory.py: Inventory CRUD, stock status and total value
# - billing.py: Quotes and invoices (with payments)
# - timesheet.py: Employee clock-in / clock-out
#
# Each router is mounted in main.py with a URL prefix.
# =============================================================================

from . import health
from . import dashboard
from . import customers
from . import projects
from . import inventory
from . import billing
from . import timesheet

__all__ = [
    "health",
    "dashboard",
    "customers",
    "projects",
    "inventory",
    "billing",
    "timesheet",
]
