# =============================================================================
# core/models/inventory.py - Inventory Schemas
# =============================================================================
# These models define the API contract for inventory operations:
# - InventoryCategory: The fixed set of shop categories
# - StockStatus: out / low / in stock classification
# - InventoryItemCreate / InventoryItemUpdate: Form payloads
# - InventoryItemResponse: An item row plus its stock status
# - InventoryList: Filtered items with their total value
#
# Stock status rules:
#   quantity <= 0             -> out of stock
#   quantity <= min_quantity  -> low stock
#   otherwise                 -> in stock
# =============================================================================

from datetime import datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field, field_validator


class InventoryCategory(str, Enum):
    """Categories an inventory item can belong to."""
    RAW_MATERIALS = "Raw Materials"
    WELDING_WIRE = "Welding Wire"
    STICK_ELECTRODES = "Stick Electrodes"
    GAS = "Gas"
    SAFETY_EQUIPMENT = "Safety Equipment"
    CONSUMABLES = "Consumables"
    HARDWARE = "Hardware"
    TOOLS = "Tools"


# Items in these categories are logged as consumables on a timesheet;
# everything else is a material
CONSUMABLE_CATEGORIES = frozenset({InventoryCategory.CONSUMABLES.value, InventoryCategory.GAS.value})


class StockStatus(str, Enum):
    """
    Stock level of an item relative to its reorder threshold.

    - out_of_stock: quantity <= 0
    - low_stock: 0 < quantity <= min_quantity
    - in_stock: quantity > min_quantity
    """
    OUT_OF_STOCK = "out_of_stock"
    LOW_STOCK = "low_stock"
    IN_STOCK = "in_stock"


STOCK_STATUS_DISPLAY: dict[StockStatus, tuple[str, str]] = {
    StockStatus.OUT_OF_STOCK: ("Out of Stock", "#ef4444"),
    StockStatus.LOW_STOCK: ("Low Stock", "#f59e0b"),
    StockStatus.IN_STOCK: ("In Stock", "#22c55e"),
}


def classify_stock(quantity: float | int | None, min_quantity: float | int | None) -> StockStatus:
    """Classify an item's stock level."""
    q = float(quantity or 0)
    minimum = float(min_quantity or 0)

    if q <= 0:
        return StockStatus.OUT_OF_STOCK
    if q <= minimum:
        return StockStatus.LOW_STOCK
    return StockStatus.IN_STOCK


def is_low_stock(quantity: float | int | None, min_quantity: float | int | None) -> bool:
    """True when quantity has fallen to or below the minimum (includes out of stock)."""
    return float(quantity or 0) <= float(min_quantity or 0)


class InventoryItemCreate(BaseModel):
    """
    Schema for creating an inventory item.

    Name and category are required; InventoryService reports them as
    form errors when missing.

    Example:
        {
            "name": "ER70S-6 MIG Wire",
            "category": "Welding Wire",
            "sku": "MIG-035-10LB",
            "quantity": 25,
            "min_quantity": 5,
            "unit_price": 45.99
        }
    """

    name: str = Field(default="", max_length=255)
    description: str = ""
    category: InventoryCategory | None = None
    sku: str | None = Field(default=None, max_length=100)
    quantity: int = 0
    min_quantity: int = Field(default=0, ge=0)
    unit_price: float = Field(default=0.0, ge=0)
    supplier: str = ""
    location: str = Field(default="", max_length=100)
    unit: str = ""

    @field_validator("sku", mode="before")
    @classmethod
    def blank_sku_to_none(cls, value):
        # sku is UNIQUE; several blank strings would collide
        if isinstance(value, str) and not value.strip():
            return None
        return value


class InventoryItemUpdate(BaseModel):
    """Schema for updating an inventory item. Omitted fields are left unchanged."""

    name: str | None = Field(default=None, max_length=255)
    description: str | None = None
    category: InventoryCategory | None = None
    sku: str | None = Field(default=None, max_length=100)
    quantity: int | None = None
    min_quantity: int | None = Field(default=None, ge=0)
    unit_price: float | None = Field(default=None, ge=0)
    supplier: str | None = None
    location: str | None = Field(default=None, max_length=100)
    unit: str | None = None


class InventoryItemResponse(BaseModel):
    """An inventory row with its stock classification."""

    id: UUID
    name: str
    description: str | None = None
    category: str | None = None
    sku: str | None = None
    quantity: int = 0
    min_quantity: int = 0
    unit_price: float = 0.0
    supplier: str | None = None
    location: str | None = None
    unit: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    # Derived from quantity/min_quantity when the response is built
    stock_status: StockStatus = StockStatus.IN_STOCK
    stock_label: str = "In Stock"
    stock_color: str = "#22c55e"


class InventoryList(BaseModel):
    """Items matching the active search and category filter."""

    items: list[InventoryItemResponse] = Field(default_factory=list)
    total: int = Field(default=0, ge=0)
    total_value: float = Field(default=0.0, description="Sum of quantity x unit_price over the listed items")
    low_stock_count: int = Field(default=0, ge=0, description="Low or out of stock items in the whole table")
