# =============================================================================
# core/models/ - Pydantic Data Models
# =============================================================================
# This package contains Pydantic schemas for data validation:
# - customer.py: Customer CRUD schemas
# - inventory.py: Inventory item schemas and stock classification
# - project.py: Project / work order schemas and status colors
# - billing.py: Quote and invoice schemas
# - timesheet.py: Clock-in / clock-out schemas
#
# These models define the "contract" between API and clients.
# =============================================================================

# -----------------------------------------------------------------------------
# Customer Models
# -----------------------------------------------------------------------------
from .customer import (
    CustomerCreate,
    CustomerList,
    CustomerResponse,
    CustomerUpdate,
)

# -----------------------------------------------------------------------------
# Inventory Models
# -----------------------------------------------------------------------------
from .inventory import (
    CONSUMABLE_CATEGORIES,
    InventoryCategory,
    InventoryItemCreate,
    InventoryItemResponse,
    InventoryItemUpdate,
    InventoryList,
    StockStatus,
    classify_stock,
    is_low_stock,
)

# -----------------------------------------------------------------------------
# Project Models
# -----------------------------------------------------------------------------
from .project import (
    ACTIVE_STATUSES,
    ProjectCreate,
    ProjectList,
    ProjectPriority,
    ProjectResponse,
    ProjectStatus,
    ProjectUpdate,
    WorkOrderCreate,
    WorkOrderResponse,
    status_color,
)

# -----------------------------------------------------------------------------
# Billing Models
# -----------------------------------------------------------------------------
from .billing import (
    InvoiceCreate,
    InvoiceResponse,
    InvoiceStatus,
    InvoiceUpdate,
    PaymentCreate,
    PaymentMethod,
    QuoteCreate,
    QuoteResponse,
    QuoteStatus,
    QuoteUpdate,
)

# -----------------------------------------------------------------------------
# Timesheet Models
# -----------------------------------------------------------------------------
from .timesheet import (
    ClockInRequest,
    ClockOutDiscardResponse,
    ClockOutRequest,
    ClockOutResponse,
    ClockOutStep,
    ClockStatus,
    LineAddRequest,
    LineKind,
    LineQuantityRequest,
    TimesheetEntryResponse,
    UsedLine,
    coerce_quantity,
)

__all__ = [
    # Customer
    "CustomerCreate",
    "CustomerList",
    "CustomerResponse",
    "CustomerUpdate",
    # Inventory
    "CONSUMABLE_CATEGORIES",
    "InventoryCategory",
    "InventoryItemCreate",
    "InventoryItemResponse",
    "InventoryItemUpdate",
    "InventoryList",
    "StockStatus",
    "classify_stock",
    "is_low_stock",
    # Project
    "ACTIVE_STATUSES",
    "ProjectCreate",
    "ProjectList",
    "ProjectPriority",
    "ProjectResponse",
    "ProjectStatus",
    "ProjectUpdate",
    "WorkOrderCreate",
    "WorkOrderResponse",
    "status_color",
    # Billing
    "InvoiceCreate",
    "InvoiceResponse",
    "InvoiceStatus",
    "InvoiceUpdate",
    "PaymentCreate",
    "PaymentMethod",
    "QuoteCreate",
    "QuoteResponse",
    "QuoteStatus",
    "QuoteUpdate",
    # Timesheet
    "ClockInRequest",
    "ClockOutDiscardResponse",
    "ClockOutRequest",
    "ClockOutResponse",
    "ClockOutStep",
    "ClockStatus",
    "LineAddRequest",
    "LineKind",
    "LineQuantityRequest",
    "TimesheetEntryResponse",
    "UsedLine",
    "coerce_quantity",
]
