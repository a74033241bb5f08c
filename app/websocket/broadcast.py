# =============================================================================
# app/websocket/broadcast.py - Cross-Process Broadcasting
# =============================================================================
# Publishes events that get broadcast to a user's WebSocket clients.
#
# Uses Redis pub/sub for cross-process communication:
# - Any process calls publish_event() to send events
# - FastAPI subscribes and broadcasts to WebSocket clients
#
# Events:
#   - agent_mode_changed: The user turned agent mode on/off elsewhere
# =============================================================================

import json
import logging
from typing import Any

import redis
from redis.exceptions import RedisError

from app.config import settings

logger = logging.getLogger(__name__)

# Redis channel for WebSocket events
WEBSOCKET_CHANNEL = "airocket:websocket:events"


def get_redis_client() -> redis.Redis:
    """Get a Redis client for pub/sub operations."""
    return redis.from_url(settings.REDIS_URL)


def publish_event(user_id: str, event_type: str, data: dict[str, Any]) -> bool:
    """
    Publish an event that will be broadcast to the user's WebSocket clients.

    Args:
        user_id: The user to broadcast to
        event_type: Event type (e.g. agent_mode_changed)
        data: Event data to include

    Returns:
        bool: True if published successfully
    """
    try:
        client = get_redis_client()

        message = json.dumps({
            "user_id": str(user_id),
            "type": event_type,
            **data
        })

        client.publish(WEBSOCKET_CHANNEL, message)

        logger.debug(f"Published {event_type} event for user {user_id}")
        return True

    except RedisError as e:
        logger.error(f"Failed to publish event: {e}")
        return False
