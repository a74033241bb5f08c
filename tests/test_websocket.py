# =============================================================================
# tests/test_websocket.py - WebSocket Tests
# =============================================================================
# This module contains tests for:
# - /ws/users/{user_id} authentication and the connected event
# - ConnectionManager fan-out and dead-socket cleanup
#
# Run with: pytest tests/test_websocket.py -v
# =============================================================================

import asyncio
import time
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.websockets import WebSocketDisconnect
from jose import jwt

from app.config import settings
from app.websocket.manager import ConnectionManager, websocket_manager
from tests.conftest import USER_ID

OTHER_USER = "9b2d6f3e-1c4a-4f5e-8d7c-0a1b2c3d4e5f"


def _token(sub=USER_ID, secret=None):
    return jwt.encode(
        {"sub": sub, "aud": "authenticated", "exp": int(time.time()) + 3600},
        secret or settings.SUPABASE_JWT_SECRET,
        algorithm="HS256",
    )


# =============================================================================
# Endpoint
# =============================================================================

class TestUserWebSocket:
    """Test /ws/users/{user_id}."""

    def test_connected_event_and_keepalive(self, client):
        with client.websocket_connect(f"/ws/users/{USER_ID}?token={_token()}") as ws:
            assert ws.receive_json() == {
                "type": "connected",
                "user_id": USER_ID,
                "message": "Connected to user updates",
            }
            assert websocket_manager.get_connection_count(USER_ID) == 1

            ws.send_text("ping")
            assert ws.receive_text() == "pong"

        assert websocket_manager.get_connection_count(USER_ID) == 0

    def test_bad_token_closes_4001(self, client):
        bad = _token(secret="another-secret-that-is-long-enough")

        with pytest.raises(WebSocketDisconnect) as exc_info:
            with client.websocket_connect(f"/ws/users/{USER_ID}?token={bad}"):
                pass

        assert exc_info.value.code == 4001

    def test_other_users_channel_closes_4003(self, client):
        with pytest.raises(WebSocketDisconnect) as exc_info:
            with client.websocket_connect(f"/ws/users/{OTHER_USER}?token={_token()}"):
                pass

        assert exc_info.value.code == 4003
        assert websocket_manager.get_connection_count(OTHER_USER) == 0

    def test_status(self, client):
        assert client.get("/ws/status").json() == {"total_connections": 0, "user_count": 0}


# =============================================================================
# Connection Manager
# =============================================================================

def _socket(fails=False):
    websocket = MagicMock()
    websocket.accept = AsyncMock()
    websocket.send_json = AsyncMock(side_effect=RuntimeError("closed") if fails else None)
    return websocket


class TestConnectionManager:
    """Test ConnectionManager."""

    def test_broadcast_reaches_every_client(self):
        manager = ConnectionManager()
        first, second = _socket(), _socket()

        async def scenario():
            await manager.connect(USER_ID, first)
            await manager.connect(USER_ID, second)
            return await manager.broadcast(USER_ID, {"type": "agent_mode_changed", "enabled": True})

        assert asyncio.run(scenario()) == 2
        first.send_json.assert_awaited_once_with({"type": "agent_mode_changed", "enabled": True})

    def test_broadcast_drops_dead_socket(self):
        manager = ConnectionManager()
        alive, dead = _socket(), _socket(fails=True)

        async def scenario():
            await manager.connect(USER_ID, alive)
            await manager.connect(USER_ID, dead)
            return await manager.broadcast(USER_ID, {"type": "agent_mode_changed"})

        assert asyncio.run(scenario()) == 1
        assert manager.connections[USER_ID] == {alive}

    def test_last_dead_socket_removes_user(self):
        manager = ConnectionManager()
        dead = _socket(fails=True)

        async def scenario():
            await manager.connect(USER_ID, dead)
            return await manager.broadcast(USER_ID, {"type": "agent_mode_changed"})

        assert asyncio.run(scenario()) == 0
        assert manager.get_active_users() == []

    def test_broadcast_without_connections(self):
        assert asyncio.run(ConnectionManager().broadcast(USER_ID, {"type": "x"})) == 0
