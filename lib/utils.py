# =============================================================================
# lib/utils.py - Shared Utilities
# =============================================================================
# Common helpers used by the services:
# - normalize_uuid: consistent string ids for queries
# - matches_search: client-side substring search over a row
# - round_money: currency rounding
# - form_payload: pydantic form -> JSON-ready row dict
# =============================================================================

from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Iterable
from uuid import UUID

from pydantic import BaseModel


# =============================================================================
# UUID Utilities
# =============================================================================

def normalize_uuid(value: str | UUID) -> str:
    """
    Normalize a UUID to string format.

    Example:
        customer_id = normalize_uuid(uuid_obj)  # "550e8400-..."
        customer_id = normalize_uuid("550e8400-...")  # "550e8400-..."
    """
    return str(value) if isinstance(value, UUID) else value


# =============================================================================
# Search
# =============================================================================

def matches_search(row: dict[str, Any], term: str | None, fields: Iterable[str]) -> bool:
    """
    Case-insensitive substring match of `term` against any of `fields`.

    An empty or missing term matches every row. Missing or null fields
    never match.

    Example:
        matches_search({"name": "Alberta Steel"}, "steel", ["name", "email"])  # True
    """
    if not term:
        return True
    needle = term.lower()
    for name in fields:
        value = row.get(name)
        if value is not None and needle in str(value).lower():
            return True
    return False


# =============================================================================
# Money
# =============================================================================

def round_money(value: float | int | None) -> float:
    """Round to cents, halves away from zero (1.005 -> 1.01)."""
    return float(Decimal(str(value or 0)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


# =============================================================================
# Payloads
# =============================================================================

def form_payload(model: BaseModel, *, partial: bool = False) -> dict[str, Any]:
    """
    Convert a form model into a row dict for the database.

    Dates, UUIDs and enums are rendered as JSON strings. With partial=True
    only the fields the client actually sent are included, so an update
    never blanks out columns it didn't mention.
    """
    return model.model_dump(mode="json", exclude_unset=partial)
