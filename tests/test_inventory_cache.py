# =============================================================================
# tests/test_inventory_cache.py - Inventory Cache Tests
# =============================================================================
# This module contains tests for:
# - Parsing realtime payloads in both formats
# - Applying single-row changes by id
# - Listener notification
# - Following the realtime channel state
# =============================================================================

import asyncio
from unittest.mock import MagicMock

import pytest

from lib.inventory_cache import ChangeEvent, InventoryCache


@pytest.fixture
def loaded_cache():
    """Cache holding two items."""
    cache = InventoryCache()
    cache.load([
        {"id": "a", "name": "Argon Gas Cylinder", "quantity": 6},
        {"id": "b", "name": "Bolts", "quantity": 100},
    ])
    return cache


# =============================================================================
# ChangeEvent Tests
# =============================================================================

class TestChangeEvent:
    """Test realtime payload parsing."""

    def test_server_format(self):
        payload = {"data": {"type": "UPDATE", "record": {"id": "a", "quantity": 3}, "old_record": {"id": "a"}}}

        event = ChangeEvent.from_payload(payload)

        assert event.kind == "UPDATE"
        assert event.record == {"id": "a", "quantity": 3}
        assert event.row_id == "a"

    def test_client_format_delete(self):
        payload = {"eventType": "DELETE", "new": {}, "old": {"id": "b"}}

        event = ChangeEvent.from_payload(payload)

        assert event.kind == "DELETE"
        assert event.record is None
        assert event.row_id == "b"

    def test_to_message(self):
        event = ChangeEvent(kind="INSERT", record={"id": "c", "name": "Clamps"})
        assert event.to_message() == {
            "type": "inventory_changed",
            "event": "INSERT",
            "id": "c",
            "record": {"id": "c", "name": "Clamps"},
        }


# =============================================================================
# Cache Tests
# =============================================================================

class TestInventoryCache:
    """Test that each change touches exactly the affected entry."""

    def test_items_sorted_by_name(self, loaded_cache):
        loaded_cache.upsert({"id": "c", "name": "anti-spatter spray"})
        assert [i["id"] for i in loaded_cache.items()] == ["c", "a", "b"]

    def test_update_changes_only_that_item(self, loaded_cache):
        changed = loaded_cache.apply(ChangeEvent(kind="UPDATE", record={"id": "a", "name": "Argon Gas Cylinder", "quantity": 2}))

        assert changed is True
        assert loaded_cache.get("a")["quantity"] == 2
        assert loaded_cache.get("b") == {"id": "b", "name": "Bolts", "quantity": 100}
        assert len(loaded_cache) == 2

    def test_delete_removes_only_that_item(self, loaded_cache):
        changed = loaded_cache.apply(ChangeEvent(kind="DELETE", old_record={"id": "b"}))

        assert changed is True
        assert loaded_cache.get("b") is None
        assert loaded_cache.get("a") is not None

    def test_delete_unknown_item(self, loaded_cache):
        assert loaded_cache.apply(ChangeEvent(kind="DELETE", old_record={"id": "zzz"})) is False
        assert len(loaded_cache) == 2

    def test_event_without_id_ignored(self, loaded_cache):
        assert loaded_cache.apply(ChangeEvent(kind="UPDATE", record={"name": "?"})) is False

    def test_fresh_requires_live_and_loaded(self):
        cache = InventoryCache()
        cache.live = True
        assert cache.fresh is False
        cache.load([])
        assert cache.fresh is True
        cache.invalidate()
        assert cache.fresh is False

    def test_subscribed_status_makes_cache_live(self):
        cache = InventoryCache()
        cache.handle_status("SUBSCRIBED")
        assert cache.live is True
        cache.load([])
        assert cache.fresh is True

    @pytest.mark.parametrize("state", ["CHANNEL_ERROR", "TIMED_OUT", "CLOSED"])
    def test_lost_subscription_stops_serving_cache(self, loaded_cache, state):
        loaded_cache.live = True
        assert loaded_cache.fresh is True

        loaded_cache.handle_status(state, RuntimeError("socket dropped"))

        assert loaded_cache.live is False
        assert loaded_cache.fresh is False
        assert len(loaded_cache) == 0

    def test_resubscribe_after_drop(self, loaded_cache):
        """Test that the cache is only served again after a fresh read."""
        loaded_cache.handle_status("CLOSED")
        loaded_cache.handle_status("SUBSCRIBED")

        assert loaded_cache.fresh is False
        loaded_cache.load([{"id": "a", "name": "Argon"}])
        assert loaded_cache.fresh is True

    def test_status_enum_value(self, loaded_cache):
        status = MagicMock(value="TIMED_OUT")
        loaded_cache.live = True
        loaded_cache.handle_status(status)
        assert loaded_cache.live is False

    def test_payload_before_load_is_skipped(self):
        cache = InventoryCache()
        listener = MagicMock()
        cache.add_listener(listener)

        cache.handle_payload({"eventType": "INSERT", "new": {"id": "a", "name": "Argon"}})

        assert len(cache) == 0
        listener.assert_not_called()

    def test_payload_notifies_listeners(self, loaded_cache):
        listener = MagicMock()
        loaded_cache.add_listener(listener)

        loaded_cache.handle_payload({"eventType": "INSERT", "new": {"id": "c", "name": "Clamps"}, "old": {}})

        listener.assert_called_once()
        event = listener.call_args[0][0]
        assert event.row_id == "c"
        assert loaded_cache.get("c")["name"] == "Clamps"

    def test_failing_listener_does_not_stop_others(self, loaded_cache):
        broken = MagicMock(side_effect=RuntimeError("socket closed"))
        working = MagicMock()
        loaded_cache.add_listener(broken)
        loaded_cache.add_listener(working)

        loaded_cache.handle_payload({"eventType": "DELETE", "old": {"id": "a"}})

        working.assert_called_once()


# =============================================================================
# Realtime Startup Tests
# =============================================================================

class TestRealtimeStartup:
    """Test that startup wires the channel state into the cache."""

    def test_cache_follows_channel_state(self, gateway, wire):
        from app.main import start_inventory_realtime

        app = MagicMock()
        app.state.gateway = gateway
        app.state.inventory_cache = InventoryCache()

        asyncio.run(start_inventory_realtime(app))
        cache = app.state.inventory_cache
        on_status = gateway.status_callbacks[0]

        assert gateway.subscriptions == ["inventory"]
        assert cache.loaded is True
        assert cache.live is False

        on_status("SUBSCRIBED", None)
        assert cache.fresh is True

        on_status("CHANNEL_ERROR", RuntimeError("socket dropped"))
        assert cache.fresh is False
