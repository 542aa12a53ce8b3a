# =============================================================================
# core/context.py - Application Context
# =============================================================================
# Everything a service needs, passed in explicitly instead of read from
# module-level globals:
# - gateway: the Supabase data-access gateway
# - user: the authenticated user (and role) making the request
# - inventory_cache: shared in-memory inventory keyed by id
# - clocks: running clock-in sessions keyed by employee
#
# app/dependencies.py builds one per request from app.state.
# =============================================================================

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from lib.inventory_cache import InventoryCache
from lib.supabase_client import SupabaseGateway

if TYPE_CHECKING:
    from app.auth.models import AuthUser
    from core.services.timesheet_service import ClockRegistry


@dataclass
class AppContext:
    """Per-request handle on shared resources and the current user."""
    gateway: SupabaseGateway
    user: AuthUser | None = None
    inventory_cache: InventoryCache = field(default_factory=InventoryCache)
    clocks: ClockRegistry | None = None
