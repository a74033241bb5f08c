# =============================================================================
# core/services/messaging_service.py - SMS & Telegram Delivery
# =============================================================================
# Sends a single message through Twilio or the Telegram bot and, when the
# message belongs to a proactive event, records the outcome on that event.
# =============================================================================

import logging
from typing import Any

from app.config import settings
from app.exceptions import InvalidRequestError, MissingConfigurationError, ProviderError
from lib.messaging import MessagingError, send_telegram_message, send_twilio_sms
from lib.supabase_client import SupabaseClient, SupabaseClientError
from lib.utils import utc_now_iso

logger = logging.getLogger(__name__)


def _record_event(event_id: str | None, fields: dict[str, Any]) -> None:
    """Write the delivery outcome to the proactive event (best effort)."""
    if not event_id:
        return
    try:
        SupabaseClient.update_proactive_event(event_id, fields)
    except SupabaseClientError as e:
        logger.error(f"Could not record delivery outcome on event {event_id}: {e}")


class MessagingService:
    """Service for direct SMS / Telegram sends."""

    @staticmethod
    def send_sms(
        user_id: str | None,
        phone_number: str | None,
        message: str | None,
        event_type: str | None = None,
        event_id: str | None = None,
    ) -> dict[str, Any]:
        """
        Send an SMS via Twilio.

        Returns:
            {success, message_sid, status}

        Raises:
            MissingConfigurationError: Twilio credentials not set
            InvalidRequestError: Required field missing
            ProviderError: Twilio rejected the message
        """
        if not (settings.TWILIO_ACCOUNT_SID and settings.TWILIO_AUTH_TOKEN and settings.TWILIO_PHONE_NUMBER):
            raise MissingConfigurationError(
                "Missing Twilio configuration. Please set TWILIO_ACCOUNT_SID, "
                "TWILIO_AUTH_TOKEN, and TWILIO_PHONE_NUMBER secrets.",
                ["TWILIO_ACCOUNT_SID", "TWILIO_AUTH_TOKEN", "TWILIO_PHONE_NUMBER"],
            )

        if not user_id or not phone_number or not message:
            raise InvalidRequestError("Missing required fields: user_id, phone_number, message")

        try:
            result = send_twilio_sms(
                settings.TWILIO_ACCOUNT_SID,
                settings.TWILIO_AUTH_TOKEN,
                settings.TWILIO_PHONE_NUMBER,
                phone_number,
                message,
                timeout=settings.HTTP_TIMEOUT_SECONDS,
            )
        except MessagingError as e:
            _record_event(event_id, {
                "status": "failed",
                "failed_at": utc_now_iso(),
                "error_message": e.message,
                "provider_response": e.provider_response,
            })
            raise ProviderError("twilio", "Failed to send SMS", details=e.message)

        _record_event(event_id, {
            "status": "sent",
            "sent_at": utc_now_iso(),
            "provider_message_id": result.get("sid"),
            "provider_response": result,
        })

        logger.info(f"SMS sent to user {user_id} ({event_type or 'direct'}): {result.get('sid')}")
        return {
            "success": True,
            "message_sid": result.get("sid"),
            "status": result.get("status"),
        }

    @staticmethod
    def send_telegram(
        user_id: str | None,
        chat_id: str | None,
        message: str | None,
        parse_mode: str | None = None,
        event_type: str | None = None,
        event_id: str | None = None,
    ) -> dict[str, Any]:
        """
        Send a Telegram message via the bot.

        Returns:
            {success, message_id, chat_id}

        Raises:
            MissingConfigurationError: Bot token not set
            InvalidRequestError: Required field missing
            ProviderError: Telegram rejected the message
        """
        if not settings.TELEGRAM_BOT_TOKEN:
            raise MissingConfigurationError(
                "Missing Telegram configuration. Please set TELEGRAM_BOT_TOKEN secret.",
                ["TELEGRAM_BOT_TOKEN"],
            )

        if not user_id or not chat_id or not message:
            raise InvalidRequestError("Missing required fields: user_id, chat_id, message")

        try:
            result = send_telegram_message(
                settings.TELEGRAM_BOT_TOKEN,
                chat_id,
                message,
                parse_mode=parse_mode,
                timeout=settings.HTTP_TIMEOUT_SECONDS,
            )
        except MessagingError as e:
            _record_event(event_id, {
                "status": "failed",
                "failed_at": utc_now_iso(),
                "error_message": e.message,
                "provider_response": e.provider_response,
            })
            raise ProviderError("telegram", "Failed to send Telegram message", details=e.message)

        sent = result.get("result") or {}
        message_id = sent.get("message_id")
        now = utc_now_iso()

        _record_event(event_id, {
            "status": "delivered",
            "sent_at": now,
            "delivered_at": now,
            "provider_message_id": str(message_id) if message_id is not None else None,
            "provider_response": result,
        })

        logger.info(f"Telegram message sent to user {user_id} ({event_type or 'direct'})")
        return {
            "success": True,
            "message_id": message_id,
            "chat_id": (sent.get("chat") or {}).get("id"),
        }
