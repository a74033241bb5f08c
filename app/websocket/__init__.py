# =============================================================================
# app/websocket/__init__.py - WebSocket Module
# =============================================================================
# Provides real-time updates to a user's connected clients (browser tabs,
# devices).
#
# Usage:
#   # Broadcast an event to all connections of a user (from FastAPI)
#   from app.websocket import websocket_manager
#
#   await websocket_manager.broadcast(user_id, {
#       "type": "agent_mode_changed",
#       "enabled": True
#   })
#
#   # Publish events from any process (API or Celery worker)
#   from app.websocket import publish_event
#
#   publish_event(user_id, "agent_mode_changed", {"enabled": True})
# =============================================================================

from app.websocket.manager import websocket_manager
from app.websocket.broadcast import publish_event, WEBSOCKET_CHANNEL

__all__ = [
    "websocket_manager",
    "publish_event",
    "WEBSOCKET_CHANNEL",
]
