# =============================================================================
# app/websocket/manager.py - WebSocket Connection Manager
# =============================================================================
# Manages WebSocket connections per channel and handles broadcasting.
#
# Channels:
#   "inventory"               -> every client watching inventory changes
#   "timesheet:<employee_id>" -> one employee's timesheet tabs
#
# Usage:
#   from app.websocket import websocket_manager
#
#   await websocket_manager.connect("inventory", websocket)
#   await websocket_manager.broadcast("inventory", {"type": "inventory_changed", ...})
#   websocket_manager.disconnect("inventory", websocket)
# =============================================================================

import logging
from typing import Dict, Set

from fastapi import WebSocket

logger = logging.getLogger(__name__)


class ConnectionManager:
    """
    Manages WebSocket connections organized by channel name.

    A channel can have multiple connected clients (e.g., multiple browser
    tabs). Messages for a channel go to all of its clients.
    """

    def __init__(self):
        # channel -> set of WebSocket connections
        self.connections: Dict[str, Set[WebSocket]] = {}
        self._total_connections = 0

    async def connect(self, channel: str, websocket: WebSocket) -> None:
        """
        Accept a new WebSocket connection and track it.

        Args:
            channel: The channel this connection listens on
            websocket: The WebSocket connection
        """
        await websocket.accept()
        self.connections.setdefault(channel, set()).add(websocket)
        self._total_connections += 1

        logger.info(
            f"WebSocket connected to {channel}. "
            f"Total connections: {self._total_connections}"
        )

    def disconnect(self, channel: str, websocket: WebSocket) -> None:
        """Stop tracking a connection."""
        clients = self.connections.get(channel)
        if clients is not None and websocket in clients:
            clients.discard(websocket)
            self._total_connections -= 1
            if not clients:
                del self.connections[channel]

        logger.info(
            f"WebSocket disconnected from {channel}. "
            f"Total connections: {self._total_connections}"
        )

    async def broadcast(self, channel: str, message: dict) -> int:
        """
        Send a message to every connection on a channel.

        Connections that fail to receive are dropped.

        Returns:
            int: Number of clients the message was sent to
        """
        clients = self.connections.get(channel)
        if not clients:
            logger.debug(f"No connections on {channel}, skipping broadcast")
            return 0

        dead_connections: Set[WebSocket] = set()
        sent_count = 0

        for websocket in list(clients):
            try:
                await websocket.send_json(message)
                sent_count += 1
            except Exception as e:
                logger.warning(f"Failed to send to WebSocket: {e}")
                dead_connections.add(websocket)

        for ws in dead_connections:
            self.disconnect(channel, ws)

        logger.debug(
            f"Broadcast to {channel}: type={message.get('type')}, sent to {sent_count} clients"
        )
        return sent_count

    def get_connection_count(self, channel: str | None = None) -> int:
        """
        Number of active connections, on one channel or in total.
        """
        if channel:
            return len(self.connections.get(channel, set()))
        return self._total_connections

    def get_active_channels(self) -> list[str]:
        """Channels with at least one connection."""
        return list(self.connections.keys())


# Global singleton instance
websocket_manager = ConnectionManager()
