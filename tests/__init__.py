# =============================================================================
# tests/ - Test Suite
# =============================================================================
# This package contains all tests for the WeldShop API:
# - test_models.py: Model validation, stock rules and settings
# - test_supabase_client.py: Gateway against a mocked Supabase client
# - test_inventory_cache.py: Realtime payloads applied to the cache
# - test_services.py: Record services over the fake gateway
# - test_timesheet.py: Clock-in / clock-out and resumption
# - test_api.py / test_websocket.py / test_auth.py: HTTP surface
#
# Run tests with: pytest
# =============================================================================
