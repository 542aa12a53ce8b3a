# =============================================================================
# app/ - FastAPI Application Package
# =============================================================================
# This package contains the FastAPI web application:
# - main.py: App entry point, lifespan, middleware setup, error handlers
# - config.py: Environment variable loading and settings
# - dependencies.py: Per-request AppContext
# - auth/: Supabase JWT verification and the current-user routes
# - routers/: API endpoint definitions organized by feature
# - websocket/: Inventory change feed and timesheet ticks
#
# The app layer is thin - it handles HTTP concerns and delegates
# business logic to the core/ package.
# =============================================================================
