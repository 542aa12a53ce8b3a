# =============================================================================
# tests/test_websocket.py - WebSocket Tests
# =============================================================================
# This module contains tests for:
# - ConnectionManager channel bookkeeping and broadcast
# - The inventory change bridge
# - /ws/timesheet ticks and token rejection
# =============================================================================

import asyncio
from unittest.mock import AsyncMock, patch

import pytest
from fastapi import HTTPException
from starlette.websockets import WebSocketDisconnect

from app.websocket.broadcast import INVENTORY_CHANNEL, inventory_broadcaster, timesheet_channel
from app.websocket.manager import ConnectionManager
from lib.inventory_cache import ChangeEvent


class TestConnectionManager:
    """Test connection tracking per channel."""

    def test_broadcast_drops_dead_connections(self):
        manager = ConnectionManager()
        alive, dead = AsyncMock(), AsyncMock()
        dead.send_json.side_effect = RuntimeError("closed")

        async def scenario():
            await manager.connect(INVENTORY_CHANNEL, alive)
            await manager.connect(INVENTORY_CHANNEL, dead)
            return await manager.broadcast(INVENTORY_CHANNEL, {"type": "inventory_changed"})

        sent = asyncio.run(scenario())

        assert sent == 1
        assert manager.get_connection_count(INVENTORY_CHANNEL) == 1
        assert manager.get_connection_count() == 1

    def test_empty_channel(self):
        assert asyncio.run(ConnectionManager().broadcast("nobody", {"type": "x"})) == 0

    def test_timesheet_channel_name(self):
        assert timesheet_channel("abc") == "timesheet:abc"


class TestInventoryBroadcaster:
    """Test that cache changes reach inventory clients."""

    def test_change_forwarded(self):
        manager = ConnectionManager()
        client = AsyncMock()

        async def scenario():
            await manager.connect(INVENTORY_CHANNEL, client)
            listener = inventory_broadcaster(manager, asyncio.get_running_loop())
            listener(ChangeEvent(kind="UPDATE", record={"id": "a", "quantity": 2}))
            await asyncio.sleep(0.01)

        asyncio.run(scenario())

        client.send_json.assert_awaited_once_with({
            "type": "inventory_changed", "event": "UPDATE", "id": "a", "record": {"id": "a", "quantity": 2},
        })


class TestTimesheetSocket:
    """Test the elapsed-time feed."""

    def test_ticks(self, client, employee, project):
        client.post("/api/v1/timesheet/clock-in", json={"project_id": project["id"]})

        with patch("app.websocket.routes.verify_token", return_value=employee):
            with client.websocket_connect("/ws/timesheet?token=test") as ws:
                assert ws.receive_json()["type"] == "connected"
                tick = ws.receive_json()

        assert tick["type"] == "tick"
        assert tick["clocked_in"] is True
        assert tick["project_name"] == "Industrial Railing System"

    def test_bad_token_closes(self, client):
        rejected = HTTPException(status_code=401, detail="Invalid token")
        with patch("app.websocket.routes.verify_token", side_effect=rejected):
            with pytest.raises(WebSocketDisconnect):
                with client.websocket_connect("/ws/timesheet?token=bad") as ws:
                    ws.receive_json()
