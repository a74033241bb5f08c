# =============================================================================
# core/models/messaging.py - SMS & Telegram Delivery Schemas
# =============================================================================
# Required fields are optional here and checked by the service, so a missing
# field returns the handler's "Missing required fields" message.
# =============================================================================

from typing import Literal

from pydantic import BaseModel


class SmsRequest(BaseModel):
    """
    Send one SMS.

    `event_id` points at an assistant_proactive_events row that gets the
    delivery outcome recorded on it.
    """
    user_id: str | None = None
    phone_number: str | None = None
    message: str | None = None
    event_type: str | None = None
    event_id: str | None = None


class SmsResponse(BaseModel):
    success: bool = True
    message_sid: str | None = None
    status: str | None = None


class TelegramRequest(BaseModel):
    """Send one Telegram message through the bot."""
    user_id: str | None = None
    chat_id: str | None = None
    message: str | None = None
    parse_mode: Literal["HTML", "Markdown", "MarkdownV2"] | None = None
    event_type: str | None = None
    event_id: str | None = None


class TelegramResponse(BaseModel):
    success: bool = True
    message_id: int | str | None = None
    chat_id: int | str | None = None
