# =============================================================================
# app/websocket/routes.py - WebSocket Routes
# =============================================================================
# WebSocket endpoint for real-time per-user updates.
#
# Connect: ws://host/ws/users/{user_id}?token={jwt}
#
# Events:
#   - {"type": "connected", "user_id": "..."}
#   - {"type": "agent_mode_changed", "enabled": true}
# =============================================================================

import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect, Query
from jose import JWTError

from app.auth.dependencies import decode_access_token
from app.websocket.manager import websocket_manager

logger = logging.getLogger(__name__)

router = APIRouter()


@router.websocket("/ws/users/{user_id}")
async def user_websocket(
    websocket: WebSocket,
    user_id: str,
    token: str = Query(..., description="JWT token for authentication")
):
    """
    WebSocket endpoint for a user's real-time updates.

    The token's subject must be the user in the path; a client can only
    listen to its own events.

    Close codes:
        4001: Invalid token
        4003: Token belongs to another user
    """
    try:
        user = decode_access_token(token)
    except JWTError as e:
        logger.warning(f"WebSocket auth failed: {e}")
        await websocket.close(code=4001, reason="Invalid token")
        return

    if str(user.id) != user_id:
        logger.warning(f"WebSocket access denied: user {user.id} tried to listen as {user_id}")
        await websocket.close(code=4003, reason="Access denied")
        return

    await websocket_manager.connect(user_id, websocket)

    try:
        await websocket.send_json({
            "type": "connected",
            "user_id": user_id,
            "message": "Connected to user updates"
        })

        while True:
            data = await websocket.receive_text()

            # Keepalive
            if data == "ping":
                await websocket.send_text("pong")
            else:
                logger.debug(f"WebSocket received: {data[:100]}")

    except WebSocketDisconnect:
        logger.info(f"WebSocket client disconnected for user {user_id}")
    finally:
        websocket_manager.disconnect(user_id, websocket)


@router.get("/ws/status")
async def websocket_status():
    """
    Get WebSocket connection statistics.
    """
    active_users = websocket_manager.get_active_users()
    return {
        "total_connections": websocket_manager.get_connection_count(),
        "user_count": len(active_users),
    }
