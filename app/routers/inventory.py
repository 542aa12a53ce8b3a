# =============================================================================
# app/routers/inventory.py - Inventory Endpoints
# =============================================================================
# Handles inventory listing with stock status and total value, plus item
# maintenance. All endpoints require authentication.
# =============================================================================

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Path, Query

from app.dependencies import ContextDep
from core.models.inventory import (
    InventoryCategory,
    InventoryItemCreate,
    InventoryItemResponse,
    InventoryItemUpdate,
    InventoryList,
)
from core.services.inventory_service import InventoryService

router = APIRouter()


@router.get("", response_model=InventoryList)
def list_inventory(
    ctx: ContextDep,
    search: Annotated[str | None, Query(description="Match name, description or supplier")] = None,
    category: Annotated[InventoryCategory | None, Query(description="Filter by category")] = None,
):
    """
    List inventory items ordered by name.

    total_value covers only the listed items; low_stock_count covers the
    whole inventory.
    """
    return InventoryService(ctx).list_items(search=search, category=category)


@router.get("/picker")
def list_picker_items(ctx: ContextDep):
    """Items offered on the timesheet screen (id, name, unit, category)."""
    return {"items": InventoryService(ctx).picker_items()}


@router.post("", response_model=InventoryItemResponse, status_code=201)
def create_item(request: InventoryItemCreate, ctx: ContextDep):
    """
    Create an inventory item.

    Name and category are required.
    """
    return InventoryService(ctx).create_item(request)


@router.get("/{item_id}", response_model=InventoryItemResponse)
def get_item(
    item_id: Annotated[UUID, Path(description="Inventory item UUID")],
    ctx: ContextDep,
):
    """Get one inventory item with its stock status."""
    return InventoryService(ctx).get_item(item_id)


@router.patch("/{item_id}", response_model=InventoryItemResponse)
def update_item(
    item_id: Annotated[UUID, Path(description="Inventory item UUID")],
    request: InventoryItemUpdate,
    ctx: ContextDep,
):
    """Update the fields that were sent."""
    return InventoryService(ctx).update_item(item_id, request)


@router.delete("/{item_id}")
def delete_item(
    item_id: Annotated[UUID, Path(description="Inventory item UUID")],
    ctx: ContextDep,
    confirm: Annotated[bool, Query(description="Must be true; deletion cannot be undone")] = False,
):
    """Delete an inventory item."""
    InventoryService(ctx).delete_item(item_id, confirm=confirm)
    return {"id": str(item_id), "message": "Item deleted successfully"}
