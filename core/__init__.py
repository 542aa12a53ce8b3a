# =============================================================================
# core/ - Business Logic Package
# =============================================================================
# This package contains the shop's business logic:
# - models/: Pydantic schemas for data validation
# - services/: One service per module (customers, projects, inventory,
#   quotes/invoices, timesheets, dashboard)
# - context.py: AppContext handed to every service
#
# Services raise app.exceptions errors but never touch requests or
# responses, which keeps them testable with a fake gateway.
# =============================================================================
