# =============================================================================
# lib/ - Standalone Utility Modules
# =============================================================================
# This package contains reusable utilities:
# - supabase_client.py: Supabase data-access gateway
# - inventory_cache.py: Id-keyed inventory cache fed by realtime changes
# - utils.py: Shared helpers (UUIDs, search, money, payloads)
#
# These modules are self-contained and can be tested in isolation.
# =============================================================================

from lib.supabase_client import (
    ConfigurationError,
    RemoteFunctionError,
    SupabaseClientError,
    SupabaseGateway,
)
from lib.inventory_cache import ChangeEvent, InventoryCache
from lib.utils import form_payload, matches_search, normalize_uuid, round_money

__all__ = [
    # Supabase
    "ConfigurationError",
    "RemoteFunctionError",
    "SupabaseClientError",
    "SupabaseGateway",
    # Cache
    "ChangeEvent",
    "InventoryCache",
    # Utils
    "form_payload",
    "matches_search",
    "normalize_uuid",
    "round_money",
]
