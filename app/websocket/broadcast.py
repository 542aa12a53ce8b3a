# =============================================================================
# app/websocket/broadcast.py - Realtime To WebSocket Bridge
# =============================================================================
# Forwards inventory changes applied to the InventoryCache to every client
# on the "inventory" channel.
#
# The cache calls its listeners synchronously, possibly off the event
# loop's thread, so the send is scheduled onto the loop.
#
# Events:
#   {"type": "inventory_changed", "event": "UPDATE", "id": "...", "record": {...}}
# =============================================================================

import asyncio
import logging
from typing import Callable
from uuid import UUID

from app.websocket.manager import ConnectionManager
from lib.inventory_cache import ChangeEvent

logger = logging.getLogger(__name__)

INVENTORY_CHANNEL = "inventory"


def timesheet_channel(employee_id: str | UUID) -> str:
    """Channel name for one employee's timesheet."""
    return f"timesheet:{employee_id}"


def inventory_broadcaster(
    manager: ConnectionManager,
    loop: asyncio.AbstractEventLoop,
) -> Callable[[ChangeEvent], None]:
    """
    Build an InventoryCache listener that rebroadcasts each change.

    Args:
        manager: Connection manager holding the inventory clients
        loop: The application's event loop

    Returns:
        Listener to pass to InventoryCache.add_listener()
    """
    def listener(event: ChangeEvent) -> None:
        if not manager.get_connection_count(INVENTORY_CHANNEL):
            return
        asyncio.run_coroutine_threadsafe(
            manager.broadcast(INVENTORY_CHANNEL, event.to_message()),
            loop,
        )
        logger.debug(f"Queued inventory {event.kind} for {event.row_id}")

    return listener
