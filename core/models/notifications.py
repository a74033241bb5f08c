# =============================================================================
# core/models/notifications.py - Assistant Notification Schemas
# =============================================================================
# - NotificationRequest: fan a message out over the user's enabled channels
# - NotificationResponse: which channels delivered, which failed and why
# - ProactiveMessageRequest/Response: AI-written message for an event
#
# Delivery flow:
# 1. Preferences gate the send (opt-out, per-type toggle, quiet hours)
# 2. Each enabled channel gets an assistant_proactive_events row
# 3. The in-app notification is always written
# =============================================================================

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class Channel(str, Enum):
    """Delivery channels, in the order they are attempted."""
    EMAIL = "email"
    SMS = "sms"
    WHATSAPP = "whatsapp"
    TELEGRAM = "telegram"
    IN_APP = "in_app"


class NotificationRequest(BaseModel):
    """
    Send a notification from the assistant.

    Example:
        {
            "user_id": "550e8400-...",
            "event_type": "report_ready",
            "message_title": "Your Report is Ready",
            "message_body": "Weekly pipeline report finished.",
            "priority": 5
        }
    """
    user_id: str | None = None
    event_type: str | None = None
    message_title: str | None = None
    message_body: str | None = None
    message_html: str | None = None

    # 8 and above break through quiet hours
    priority: int = 5
    force_send: bool = False
    metadata: dict[str, Any] = Field(default_factory=dict)


class ChannelResult(BaseModel):
    success: bool
    error: str | None = None
    event_id: str | None = None


class ChannelFailure(BaseModel):
    channel: str
    error: str | None = None


class NotificationResponse(BaseModel):
    """
    Outcome of a notification send.

    When the send is gated (no preferences, opted out, quiet hours) only
    `success=false`, `message` and an empty `channels_sent` are returned.
    """
    success: bool
    message: str | None = None
    channels_sent: list[str] = Field(default_factory=list)
    channels_failed: list[ChannelFailure] | None = None
    results: dict[str, ChannelResult] | None = None


class ProactiveMessageRequest(BaseModel):
    """Ask the assistant to write a message for an event."""
    user_id: str | None = None
    event_type: str | None = None
    context: dict[str, Any] = Field(default_factory=dict)
    channel: str = "email"


class ProactiveMessageResponse(BaseModel):
    success: bool = True
    title: str
    message: str = Field(..., description="Message formatted for the channel")
    original_message: str
    event_type: str
    channel: str
