# =============================================================================
# app/main.py - FastAPI Application Entry Point
# =============================================================================
# This is the main entry point for the WeldShop API.
# It configures the FastAPI application with middleware, routers, handlers,
# and the shared resources every request's AppContext is built from.
#
# Usage:
#   uvicorn app.main:app --reload
# =============================================================================

import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.auth import routes as auth_routes
from app.config import settings
from app.exceptions import (
    WeldShopException,
    validation_exception_handler,
    weldshop_exception_handler,
)
from app.routers import billing, customers, dashboard, health, inventory, projects, timesheet
from app.websocket import inventory_broadcaster, websocket_manager
from app.websocket import routes as websocket_routes
from core.context import AppContext
from core.services.inventory_service import InventoryService
from core.services.timesheet_service import ClockRegistry
from lib.inventory_cache import InventoryCache
from lib.supabase_client import SupabaseClientError, SupabaseGateway

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def init_state(app: FastAPI) -> None:
    """
    Create the shared resources on app.state.

    Anything already set (e.g. by tests) is left in place.
    """
    if getattr(app.state, "gateway", None) is None:
        app.state.gateway = SupabaseGateway(settings.SUPABASE_URL, settings.SUPABASE_ANON_KEY)
    if getattr(app.state, "inventory_cache", None) is None:
        app.state.inventory_cache = InventoryCache()
    if getattr(app.state, "clocks", None) is None:
        app.state.clocks = ClockRegistry()


async def start_inventory_realtime(app: FastAPI) -> None:
    """
    Keep the inventory cache current from realtime notifications.

    Fills the cache, subscribes to the inventory table and forwards each
    applied change to /ws/inventory clients. The cache is live only while
    the channel reports SUBSCRIBED. If realtime can't be started
    the cache stays not-live and inventory reads reload the table.
    """
    cache: InventoryCache = app.state.inventory_cache
    cache.add_listener(inventory_broadcaster(websocket_manager, asyncio.get_running_loop()))

    try:
        await app.state.gateway.subscribe(
            "inventory", cache.handle_payload, on_status=cache.handle_status,
        )
        InventoryService(AppContext(gateway=app.state.gateway, inventory_cache=cache)).reload()
    except SupabaseClientError as e:
        cache.live = False
        logger.warning(f"Inventory realtime unavailable, reads will reload: {e}")
        return

    logger.info("Inventory realtime started")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    - Startup: Create the gateway (fails fast without Supabase settings),
      the inventory cache and clock registry, then start realtime
    - Shutdown: Close realtime channels
    """
    logger.info(f"Starting WeldShop API in {settings.ENVIRONMENT} mode")
    logger.info(f"CORS origins: {settings.cors_origins_list}")

    init_state(app)
    if settings.INVENTORY_REALTIME_ENABLED:
        await start_inventory_realtime(app)

    yield

    logger.info("Shutting down WeldShop API")
    app.state.inventory_cache.live = False
    await app.state.gateway.unsubscribe_all()


# Create FastAPI application
app = FastAPI(
    title="WeldShop API",
    description="""
## Welding Shop Management API

Customers, jobs, inventory, quotes and invoices for a small welding shop,
plus the employee timesheet that records labour and materials used.

### Employee Timesheet

1. **Pick a work order** - or create one with a customer name
2. **Clock in** - the timer starts
3. **Add materials and consumables** - with quantities used
4. **Clock out** - the entry is saved and inventory is decremented

If the inventory step fails, clocking out again finishes the job without
saving the entry twice.
""",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
    openapi_tags=[
        {"name": "Auth", "description": "Current user, role and view"},
        {"name": "Dashboard", "description": "Management dashboard counters"},
        {"name": "Customers", "description": "Customer records"},
        {"name": "Projects", "description": "Jobs and their costs"},
        {"name": "Inventory", "description": "Stock, value and low-stock status"},
        {"name": "Quotes", "description": "Quotes for upcoming jobs"},
        {"name": "Invoices", "description": "Invoices and payments"},
        {"name": "Timesheet", "description": "Employee clock-in / clock-out"},
        {"name": "WebSocket", "description": "Inventory changes and timesheet ticks"},
        {"name": "Health", "description": "API health and readiness checks"},
    ],
)


# =============================================================================
# Middleware
# =============================================================================

# CORS middleware - allows cross-origin requests
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list if settings.is_production else ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# Exception Handlers
# =============================================================================

@app.exception_handler(WeldShopException)
async def handle_weldshop_exception(request: Request, exc: WeldShopException):
    """Handle custom WeldShop exceptions."""
    return await weldshop_exception_handler(request, exc)


@app.exception_handler(SupabaseClientError)
async def handle_supabase_error(request: Request, exc: SupabaseClientError):
    """A remote call failed; the operation was abandoned."""
    logger.error(f"Supabase error on {request.url.path}: {exc}")
    return JSONResponse(status_code=502, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def handle_request_validation(request: Request, exc: RequestValidationError):
    """Handle malformed request bodies and parameters."""
    return await validation_exception_handler(request, exc)


@app.exception_handler(Exception)
async def handle_general_exception(request: Request, exc: Exception):
    """Handle unexpected exceptions."""
    logger.exception(f"Unexpected error: {exc}")
    return JSONResponse(
        status_code=500,
        content={
            "detail": "An unexpected error occurred",
            "code": "INTERNAL_ERROR",
        }
    )


# =============================================================================
# Routers
# =============================================================================

# Current user and view
app.include_router(auth_routes.router, prefix="/api/v1", tags=["Auth"])

# Health check endpoints
app.include_router(health.router, prefix="/api/v1", tags=["Health"])

# Management dashboard
app.include_router(dashboard.router, prefix="/api/v1", tags=["Dashboard"])

# Records
app.include_router(customers.router, prefix="/api/v1/customers", tags=["Customers"])
app.include_router(projects.router, prefix="/api/v1/projects", tags=["Projects"])
app.include_router(inventory.router, prefix="/api/v1/inventory", tags=["Inventory"])
app.include_router(billing.quotes_router, prefix="/api/v1/quotes", tags=["Quotes"])
app.include_router(billing.invoices_router, prefix="/api/v1/invoices", tags=["Invoices"])

# Employee timesheet
app.include_router(timesheet.router, prefix="/api/v1/timesheet", tags=["Timesheet"])

# WebSocket endpoints (Real-time updates)
app.include_router(websocket_routes.router, tags=["WebSocket"])


# =============================================================================
# Root Endpoint
# =============================================================================

@app.get("/", tags=["Root"])
async def root():
    """
    Root endpoint - returns API info.
    """
    return {
        "name": "WeldShop API",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/api/v1/health",
    }
