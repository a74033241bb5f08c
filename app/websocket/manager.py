# =============================================================================
# app/websocket/manager.py - WebSocket Connection Manager
# =============================================================================
# Tracks open WebSocket connections per user so a change made in one tab or
# device (e.g. toggling agent mode) reaches every other one.
#
# Usage:
#   from app.websocket import websocket_manager
#
#   await websocket_manager.connect(user_id, websocket)
#   await websocket_manager.broadcast(user_id, {"type": "agent_mode_changed", ...})
#   websocket_manager.disconnect(user_id, websocket)
# =============================================================================

import logging
from collections import defaultdict

from fastapi import WebSocket

logger = logging.getLogger(__name__)


class ConnectionManager:
    """
    WebSocket connections grouped by user ID.

    A user can have any number of clients connected at once; broadcasts go
    to all of them. Connections that fail on send are dropped.
    """

    def __init__(self):
        self.connections: dict[str, set[WebSocket]] = defaultdict(set)

    @property
    def total_connections(self) -> int:
        return sum(len(sockets) for sockets in self.connections.values())

    async def connect(self, user_id: str, websocket: WebSocket) -> None:
        """Accept a connection and register it under the user."""
        await websocket.accept()
        self.connections[user_id].add(websocket)
        logger.info(
            f"WebSocket connected for user {user_id}. "
            f"Total connections: {self.total_connections}"
        )

    def disconnect(self, user_id: str, websocket: WebSocket) -> None:
        """Forget a connection; empty users are removed."""
        sockets = self.connections.get(user_id)
        if sockets is not None:
            sockets.discard(websocket)
            if not sockets:
                del self.connections[user_id]

        logger.info(
            f"WebSocket disconnected for user {user_id}. "
            f"Total connections: {self.total_connections}"
        )

    async def broadcast(self, user_id: str, message: dict) -> int:
        """
        Send a JSON message to every connection of a user.

        Returns:
            int: Number of clients the message reached
        """
        sockets = self.connections.get(user_id)
        if not sockets:
            logger.debug(f"No connections for user {user_id}, skipping broadcast")
            return 0

        dead: list[WebSocket] = []
        sent_count = 0

        for websocket in list(sockets):
            try:
                await websocket.send_json(message)
                sent_count += 1
            except Exception as e:
                logger.warning(f"Failed to send to WebSocket: {e}")
                dead.append(websocket)

        for websocket in dead:
            self.disconnect(user_id, websocket)

        logger.debug(
            f"Broadcast to user {user_id}: "
            f"type={message.get('type')}, sent to {sent_count} clients"
        )
        return sent_count

    def get_connection_count(self, user_id: str | None = None) -> int:
        """Connections for one user, or in total."""
        if user_id:
            return len(self.connections.get(user_id, ()))
        return self.total_connections

    def get_active_users(self) -> list[str]:
        """User IDs with at least one open connection."""
        return list(self.connections.keys())


# Global singleton instance
websocket_manager = ConnectionManager()
