# =============================================================================
# app/websocket/__init__.py - WebSocket Module
# =============================================================================
# Provides real-time updates:
# - /ws/inventory: inventory changes as they are applied to the cache
# - /ws/timesheet: the employee's elapsed time, once a second
#
# Usage:
#   from app.websocket import websocket_manager, INVENTORY_CHANNEL
#
#   await websocket_manager.broadcast(INVENTORY_CHANNEL, {
#       "type": "inventory_changed",
#       "id": "..."
#   })
# =============================================================================

from app.websocket.manager import websocket_manager
from app.websocket.broadcast import (
    INVENTORY_CHANNEL,
    inventory_broadcaster,
    timesheet_channel,
)

__all__ = [
    "websocket_manager",
    "INVENTORY_CHANNEL",
    "inventory_broadcaster",
    "timesheet_channel",
]
