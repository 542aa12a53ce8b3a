# =============================================================================
# app/websocket/routes.py - WebSocket Routes
# =============================================================================
# WebSocket endpoints for real-time updates.
#
# Connect:
#   ws://host/ws/inventory?token={jwt}
#   ws://host/ws/timesheet?token={jwt}
#
# Events:
#   - {"type": "connected", "channel": "..."}
#   - {"type": "inventory_changed", "event": "UPDATE", "id": "...", "record": {...}}
#   - {"type": "tick", "clocked_in": true, "elapsed_seconds": 75, "elapsed_display": "00:01:15"}
#
# Clients may send "ping" and get "pong" back.
# =============================================================================

import asyncio
import logging

from fastapi import APIRouter, HTTPException, Query, WebSocket, WebSocketDisconnect

from app.auth import AuthUser, verify_token
from app.dependencies import build_context
from app.websocket.broadcast import INVENTORY_CHANNEL, timesheet_channel
from app.websocket.manager import websocket_manager
from core.services.timesheet_service import TimesheetService

logger = logging.getLogger(__name__)

router = APIRouter()

TICK_SECONDS = 1.0


async def _authenticate(websocket: WebSocket, token: str) -> AuthUser | None:
    """Verify the token or close the socket with 4001."""
    try:
        return verify_token(token)
    except HTTPException as e:
        logger.warning(f"WebSocket auth failed: {e.detail}")
        await websocket.close(code=4001, reason="Invalid token")
        return None


async def _receive(websocket: WebSocket, timeout: float | None = None) -> None:
    """
    Wait for one client message, answering "ping" with "pong".

    Raises:
        asyncio.TimeoutError: If nothing arrives within `timeout`
        WebSocketDisconnect: If the client went away
    """
    data = await asyncio.wait_for(websocket.receive_text(), timeout=timeout)
    if data == "ping":
        await websocket.send_text("pong")
    else:
        logger.debug(f"WebSocket received: {data[:100]}")


@router.websocket("/ws/inventory")
async def inventory_websocket(
    websocket: WebSocket,
    token: str = Query(..., description="JWT token for authentication"),
):
    """
    Inventory change feed.

    Every INSERT, UPDATE or DELETE applied to the inventory cache from the
    realtime subscription is forwarded as an inventory_changed event.
    """
    user = await _authenticate(websocket, token)
    if user is None:
        return

    await websocket_manager.connect(INVENTORY_CHANNEL, websocket)
    try:
        await websocket.send_json({
            "type": "connected",
            "channel": INVENTORY_CHANNEL,
            "live": websocket.app.state.inventory_cache.live,
        })
        while True:
            await _receive(websocket)
    except WebSocketDisconnect:
        logger.info(f"WebSocket client {user.id} left {INVENTORY_CHANNEL}")
    finally:
        websocket_manager.disconnect(INVENTORY_CHANNEL, websocket)


@router.websocket("/ws/timesheet")
async def timesheet_websocket(
    websocket: WebSocket,
    token: str = Query(..., description="JWT token for authentication"),
):
    """
    Elapsed-time ticks for the signed-in employee.

    Sends a tick every second; elapsed time stays 00:00:00 until the
    employee clocks in.
    """
    user = await _authenticate(websocket, token)
    if user is None:
        return

    channel = timesheet_channel(user.id)
    service = TimesheetService(build_context(websocket.app, user))

    await websocket_manager.connect(channel, websocket)
    try:
        await websocket.send_json({"type": "connected", "channel": channel})
        while True:
            status = service.status()
            await websocket.send_json({
                "type": "tick",
                "clocked_in": status["clocked_in"],
                "project_name": status["project_name"],
                "elapsed_seconds": status["elapsed_seconds"],
                "elapsed_display": status["elapsed_display"],
                "clockout_step": status["clockout_step"],
            })
            try:
                await _receive(websocket, timeout=TICK_SECONDS)
            except asyncio.TimeoutError:
                pass
    except WebSocketDisconnect:
        logger.info(f"WebSocket client {user.id} left {channel}")
    finally:
        websocket_manager.disconnect(channel, websocket)


@router.get("/ws/status")
async def websocket_status():
    """
    Get WebSocket connection statistics.
    """
    return {
        "total_connections": websocket_manager.get_connection_count(),
        "active_channels": websocket_manager.get_active_channels(),
    }
