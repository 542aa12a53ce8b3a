# =============================================================================
# core/services/inventory_service.py - Inventory Business Logic
# =============================================================================
# Handles inventory CRUD, search, stock classification and valuation.
#
# Reads come from the shared InventoryCache. While the realtime
# subscription is live the cache is served as-is; otherwise every listing
# reloads the table first. Writes made here are applied to the cache right
# away, and the realtime echo of the same write is harmless.
# =============================================================================

import logging
from typing import Any, Iterable
from uuid import UUID

from app.exceptions import DeleteNotConfirmedError, EntityNotFoundError, ValidationFailedError
from core.context import AppContext
from core.models.inventory import (
    STOCK_STATUS_DISPLAY,
    InventoryCategory,
    InventoryItemCreate,
    InventoryItemUpdate,
    classify_stock,
    is_low_stock,
)
from lib.utils import form_payload, matches_search, round_money

logger = logging.getLogger(__name__)

TABLE = "inventory"
SEARCH_FIELDS = ("name", "description", "supplier")


def with_stock_status(row: dict[str, Any]) -> dict[str, Any]:
    """Add stock_status, stock_label and stock_color to an item row."""
    item = dict(row)
    status = classify_stock(item.get("quantity"), item.get("min_quantity"))
    label, color = STOCK_STATUS_DISPLAY[status]
    item["stock_status"] = status.value
    item["stock_label"] = label
    item["stock_color"] = color
    return item


def filter_items(
    items: Iterable[dict[str, Any]],
    search: str | None = None,
    category: InventoryCategory | str | None = None,
) -> list[dict[str, Any]]:
    """Items matching the search term (name, description, supplier) and category."""
    category_value = category.value if isinstance(category, InventoryCategory) else category
    return [
        item for item in items
        if matches_search(item, search, SEARCH_FIELDS)
        and (not category_value or item.get("category") == category_value)
    ]


def total_value(items: Iterable[dict[str, Any]]) -> float:
    """Sum of quantity x unit_price."""
    return round_money(sum(
        float(item.get("quantity") or 0) * float(item.get("unit_price") or 0)
        for item in items
    ))


class InventoryService:
    """
    Service for inventory management operations.

    Provides a clean interface between API routes, the cache and database.
    """

    def __init__(self, ctx: AppContext):
        self.ctx = ctx
        self.gateway = ctx.gateway
        self.cache = ctx.inventory_cache

    def _items(self) -> list[dict[str, Any]]:
        """All items ordered by name, reloading unless the cache is live."""
        if not self.cache.fresh:
            self.reload()
        return self.cache.items()

    def reload(self) -> None:
        """Replace the cache with a full read of the table."""
        self.cache.load(self.gateway.select(TABLE, order="name"))

    def list_items(
        self,
        search: str | None = None,
        category: InventoryCategory | str | None = None,
    ) -> dict[str, Any]:
        """
        List items matching the search and category filter.

        Returns:
            Dict with:
            - items: matching items with stock status
            - total: number of matching items
            - total_value: sum of quantity x unit_price over the matches
            - low_stock_count: low or out of stock items in the whole table
        """
        all_items = self._items()
        matches = filter_items(all_items, search, category)
        return {
            "items": [with_stock_status(item) for item in matches],
            "total": len(matches),
            "total_value": total_value(matches),
            "low_stock_count": sum(
                1 for item in all_items
                if is_low_stock(item.get("quantity"), item.get("min_quantity"))
            ),
        }

    def get_item(self, item_id: str | UUID) -> dict[str, Any]:
        """
        Get an item by ID.

        Raises:
            EntityNotFoundError: If no item has this id
        """
        item = self.cache.get(str(item_id)) if self.cache.fresh else None
        if item is None:
            item = self.gateway.select_one(TABLE, item_id)
        if not item:
            raise EntityNotFoundError("inventory item", str(item_id))
        return with_stock_status(item)

    def create_item(self, data: InventoryItemCreate) -> dict[str, Any]:
        """
        Create an inventory item.

        Raises:
            ValidationFailedError: If name or category is missing
        """
        payload = form_payload(data)
        payload["name"] = payload["name"].strip()
        missing = [f for f in ("name", "category") if not payload.get(f)]
        if missing:
            raise ValidationFailedError("Item Name and Category are required.", fields=missing)

        item = self.gateway.insert(TABLE, payload)[0]
        self.cache.upsert(item)
        logger.info(f"Created inventory item: {item['id']}")
        return with_stock_status(item)

    def update_item(self, item_id: str | UUID, data: InventoryItemUpdate) -> dict[str, Any]:
        """
        Update an inventory item.

        Raises:
            ValidationFailedError: If name or category is being cleared
            EntityNotFoundError: If no item has this id
        """
        payload = form_payload(data, partial=True)
        if "name" in payload:
            payload["name"] = (payload["name"] or "").strip()
        missing = [f for f in ("name", "category") if f in payload and not payload[f]]
        if missing:
            raise ValidationFailedError("Item Name and Category are required.", fields=missing)

        if not payload:
            return self.get_item(item_id)

        item = self.gateway.update(TABLE, item_id, payload)
        if not item:
            raise EntityNotFoundError("inventory item", str(item_id))
        self.cache.upsert(item)
        return with_stock_status(item)

    def delete_item(self, item_id: str | UUID, confirm: bool = False) -> None:
        """
        Delete an inventory item.

        Raises:
            DeleteNotConfirmedError: If confirm is not set
        """
        if not confirm:
            raise DeleteNotConfirmedError("inventory item", str(item_id))
        self.gateway.delete(TABLE, item_id)
        self.cache.remove(str(item_id))

    def low_stock_count(self) -> int:
        """Number of items at or below their minimum quantity."""
        return sum(
            1 for item in self._items()
            if is_low_stock(item.get("quantity"), item.get("min_quantity"))
        )

    def picker_items(self) -> list[dict[str, Any]]:
        """Items offered on the timesheet screen: id, name, unit, category."""
        return [
            {k: item.get(k) for k in ("id", "name", "unit", "category")}
            for item in self._items()
        ]
