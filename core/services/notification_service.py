# =============================================================================
# core/services/notification_service.py - Assistant Notifications
# =============================================================================
# Handles the assistant's outbound notifications:
# - send_assistant_notification: gate on preferences, then deliver over every
#   enabled channel (email, SMS, WhatsApp, Telegram) plus in-app
# - generate_proactive_message: have the LLM write the message for an event
# - process_notification_queue: send the queued proactive notifications
#   (written on demand when a row carries no message yet)
#
# Every external channel gets an assistant_proactive_events row first
# (status "sending"), which the delivery step moves to sent/failed.
# =============================================================================

import html
import logging
from datetime import datetime
from typing import Any, Callable

from app.config import settings
from app.exceptions import (
    DatabaseError,
    InvalidRequestError,
    MissingConfigurationError,
    NotFoundError,
    ProviderError,
    RocketException,
)
from core.models.notifications import Channel
from core.prompts.proactive_messages import build_proactive_prompt, format_for_channel
from core.services.messaging_service import MessagingService
from lib.edge_functions import EdgeFunctionError, call_function
from lib.llm import LLMError, generate_text
from lib.scheduling import is_within_quiet_hours
from lib.supabase_client import SupabaseClient, SupabaseClientError, rows
from lib.utils import to_iso, utc_now, utc_now_iso

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "Astra Assistant"

# Notifications at or above this priority ignore quiet hours
QUIET_HOURS_OVERRIDE_PRIORITY = 8

# Queue rows handled per pass
QUEUE_BATCH_SIZE = 50

IN_APP_TYPES = {
    "team_mention": "mention",
    "report_ready": "report",
}


def _gated(message: str) -> dict[str, Any]:
    return {"success": False, "message": message, "channels_sent": []}


class NotificationService:
    """Service for multi-channel assistant notifications."""

    # -------------------------------------------------------------------------
    # Delivery
    # -------------------------------------------------------------------------

    @staticmethod
    def send_assistant_notification(
        user_id: str | None,
        event_type: str | None,
        message_body: str | None,
        message_title: str | None = None,
        message_html: str | None = None,
        priority: int = 5,
        force_send: bool = False,
        metadata: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """
        Deliver a notification over the user's enabled channels.

        Gates (skipped with force_send):
        - no preferences row / proactive notifications disabled
        - this event type switched off
        - quiet hours, unless priority >= 8

        Returns:
            {success, channels_sent, channels_failed, results}, or
            {success: false, message, channels_sent: []} when gated

        Raises:
            InvalidRequestError: Required field missing
            NotFoundError: User record missing
        """
        if not user_id or not event_type or not message_body:
            raise InvalidRequestError("Missing required fields: user_id, event_type, message_body")

        metadata = metadata or {}
        preferences = SupabaseClient.fetch_assistant_preferences(user_id)

        if not preferences:
            return _gated("User has no notification preferences configured")

        if not preferences.get("proactive_enabled") and not force_send:
            return _gated("Proactive notifications are disabled for this user")

        notification_types = preferences.get("notification_types") or {}
        if notification_types.get(event_type) is False and not force_send:
            return _gated(f"User has disabled {event_type} notifications")

        if (
            is_within_quiet_hours(preferences)
            and not force_send
            and priority < QUIET_HOURS_OVERRIDE_PRIORITY
        ):
            return _gated("Currently within quiet hours")

        user = SupabaseClient.fetch_user(user_id, columns="email, team_id")
        if not user:
            raise NotFoundError("User", user_id)

        title = message_title or DEFAULT_TITLE
        team_id = user.get("team_id")
        results: dict[str, dict[str, Any]] = {}

        def _event(channel: Channel, include_html: bool = False) -> str | None:
            data = {
                "user_id": user_id,
                "team_id": team_id,
                "event_type": event_type,
                "channel": channel.value,
                "message_title": title,
                "message_body": message_body,
                "status": "sending",
                "metadata": metadata,
            }
            if include_html:
                data["message_html"] = message_html
            return NotificationService._create_event(data)

        # Email
        if preferences.get("email_enabled"):
            email_address = preferences.get("email_address") or user.get("email")
            if email_address:
                event_id = _event(Channel.EMAIL, include_html=True)
                result = NotificationService._deliver(
                    lambda: call_function("send-personal-email", {
                        "to": email_address,
                        "subject": title,
                        "body": message_body,
                        "html": message_html,
                    })
                )
                if event_id:
                    NotificationService._finish_event(event_id, result)
                results[Channel.EMAIL.value] = {**result, "event_id": event_id}

        # SMS
        if preferences.get("sms_enabled") and preferences.get("sms_phone_number"):
            event_id = _event(Channel.SMS)
            sms_message = f"{title}\n\n{message_body}"
            result = NotificationService._deliver(
                lambda: MessagingService.send_sms(
                    user_id, preferences["sms_phone_number"], sms_message,
                    event_type=event_type, event_id=event_id,
                )
            )
            results[Channel.SMS.value] = {**result, "event_id": event_id}

        # WhatsApp
        if preferences.get("whatsapp_enabled") and preferences.get("whatsapp_number"):
            event_id = _event(Channel.WHATSAPP)
            whatsapp_message = f"*{title}*\n\n{message_body}"
            result = NotificationService._deliver(
                lambda: call_function("send-whatsapp-notification", {
                    "user_id": user_id,
                    "phone_number": preferences["whatsapp_number"],
                    "message": whatsapp_message,
                    "event_id": event_id,
                })
            )
            results[Channel.WHATSAPP.value] = {**result, "event_id": event_id}

        # Telegram
        if preferences.get("telegram_enabled") and preferences.get("telegram_chat_id"):
            event_id = _event(Channel.TELEGRAM)
            telegram_message = f"<b>{html.escape(title)}</b>\n\n{html.escape(message_body)}"
            result = NotificationService._deliver(
                lambda: MessagingService.send_telegram(
                    user_id, preferences["telegram_chat_id"], telegram_message,
                    parse_mode="HTML", event_type=event_type, event_id=event_id,
                )
            )
            results[Channel.TELEGRAM.value] = {**result, "event_id": event_id}

        # In-app (always)
        results[Channel.IN_APP.value] = NotificationService._create_in_app(
            user_id, title, message_body, event_type, metadata
        )

        channels_sent = [channel for channel, result in results.items() if result["success"]]
        channels_failed = [
            {"channel": channel, "error": result.get("error")}
            for channel, result in results.items()
            if not result["success"]
        ]

        logger.info(
            f"Notification {event_type} for {user_id}: sent={channels_sent}, "
            f"failed={[f['channel'] for f in channels_failed]}"
        )

        return {
            "success": len(channels_sent) > 0,
            "channels_sent": channels_sent,
            "channels_failed": channels_failed,
            "results": results,
        }

    @staticmethod
    def _deliver(send: Callable[[], Any]) -> dict[str, Any]:
        """Run one channel send and fold the outcome into {success, error}."""
        try:
            send()
            return {"success": True}
        except (RocketException, EdgeFunctionError) as e:
            return {"success": False, "error": e.message}
        except Exception as e:
            logger.error(f"Channel delivery failed: {e}")
            return {"success": False, "error": str(e)}

    @staticmethod
    def _create_event(data: dict[str, Any]) -> str | None:
        client = SupabaseClient.get_client()
        try:
            inserted = rows(client.table("assistant_proactive_events").insert(data).execute())
            return inserted[0]["id"] if inserted else None
        except Exception as e:
            logger.error(f"Could not create {data['channel']} event: {e}")
            return None

    @staticmethod
    def _finish_event(event_id: str, result: dict[str, Any]) -> None:
        now = utc_now_iso()
        try:
            SupabaseClient.update_proactive_event(event_id, {
                "status": "sent" if result["success"] else "failed",
                "sent_at": now if result["success"] else None,
                "failed_at": None if result["success"] else now,
                "error_message": result.get("error"),
            })
        except SupabaseClientError as e:
            logger.error(f"Could not update event {event_id}: {e}")

    @staticmethod
    def _create_in_app(
        user_id: str,
        title: str,
        body: str,
        event_type: str,
        metadata: dict[str, Any],
    ) -> dict[str, Any]:
        client = SupabaseClient.get_client()
        try:
            client.table("astra_notifications").insert({
                "user_id": user_id,
                "type": IN_APP_TYPES.get(event_type, "system"),
                "title": title,
                "message": body,
                "metadata": metadata,
            }).execute()
            return {"success": True}
        except Exception as e:
            logger.error(f"In-app notification failed for {user_id}: {e}")
            return {"success": False, "error": str(e)}

    # -------------------------------------------------------------------------
    # Message generation
    # -------------------------------------------------------------------------

    @staticmethod
    def generate_proactive_message(
        user_id: str | None,
        event_type: str | None,
        context: dict[str, Any] | None = None,
        channel: str = "email",
    ) -> dict[str, Any]:
        """
        Write a notification message for an event with the LLM.

        Returns:
            {success, title, message, original_message, event_type, channel}

        Raises:
            MissingConfigurationError: GEMINI_API_KEY not set
            InvalidRequestError: Required field missing
            ProviderError: Generation failed or returned nothing
        """
        if not settings.GEMINI_API_KEY:
            raise MissingConfigurationError(
                "Missing GEMINI_API_KEY configuration", ["GEMINI_API_KEY"]
            )

        if not user_id or not event_type:
            raise InvalidRequestError("Missing required fields: user_id, event_type")

        try:
            user = SupabaseClient.fetch_user(user_id, columns="name, email")
        except SupabaseClientError as e:
            logger.error(f"Error fetching user: {e}")
            user = None

        context_with_user = {
            **(context or {}),
            "user_name": (user or {}).get("name") or "there",
            "event_type": event_type,
        }

        title, prompt = build_proactive_prompt(event_type, context_with_user)

        try:
            generated = generate_text(prompt, temperature=0.7, max_tokens=1024)
        except LLMError as e:
            raise ProviderError("gemini", e.message)

        return {
            "success": True,
            "title": title,
            "message": format_for_channel(generated, channel),
            "original_message": generated,
            "event_type": event_type,
            "channel": channel,
        }

    # -------------------------------------------------------------------------
    # Notification queue
    # -------------------------------------------------------------------------

    @staticmethod
    def process_notification_queue(now: datetime | None = None) -> dict[str, Any]:
        """
        Send the queued proactive notifications that are ready.

        Picks up to 50 unprocessed rows of proactive_notification_queue whose
        scheduled_for and process_after have passed and that haven't expired,
        highest priority first. For each row:
        - no preferences, opted out, or this type switched off: marked
          processed and counted as skipped
        - quiet hours with priority below 8: left queued for a later pass
        - otherwise the stored message (or a freshly generated one) is sent
          over the user's channels and the row is marked processed

        Returns:
            {success, message, processed, sent, skipped, errors?}

        Raises:
            DatabaseError: The queue could not be read
        """
        now = now or utc_now()
        now_iso = to_iso(now)
        client = SupabaseClient.get_client()

        try:
            queued = rows(
                client.table("proactive_notification_queue")
                .select("*")
                .eq("is_processed", False)
                .lte("scheduled_for", now_iso)
                .lte("process_after", now_iso)
                .gt("expires_at", now_iso)
                .order("priority", desc=True)
                .order("scheduled_for")
                .limit(QUEUE_BATCH_SIZE)
                .execute()
            )
        except Exception as e:
            logger.error(f"Error fetching notification queue: {e}")
            raise DatabaseError("Failed to fetch notification queue")

        if not queued:
            return {
                "success": True,
                "message": "No pending notifications to process",
                "processed": 0,
            }

        user_ids = list(dict.fromkeys(item["user_id"] for item in queued))
        try:
            preference_rows = rows(
                client.table("user_assistant_preferences")
                .select("*")
                .in_("user_id", user_ids)
                .execute()
            )
        except Exception as e:
            logger.error(f"Error fetching preferences: {e}")
            preference_rows = []
        preferences_by_user = {row["user_id"]: row for row in preference_rows}

        def _mark(item_id: str, fields: dict[str, Any]) -> None:
            client.table("proactive_notification_queue").update(fields).eq("id", item_id).execute()

        processed = sent = skipped = 0
        errors: list[str] = []

        for item in queued:
            try:
                _mark(item["id"], {"processing_started_at": utc_now_iso()})

                preferences = preferences_by_user.get(item["user_id"])
                notification_types = (preferences or {}).get("notification_types") or {}

                if (
                    not preferences
                    or not preferences.get("proactive_enabled")
                    or notification_types.get(item["event_type"]) is False
                ):
                    _mark(item["id"], {"is_processed": True})
                    skipped += 1
                    processed += 1
                    continue

                priority = item.get("priority") or 0
                if is_within_quiet_hours(preferences, now) and priority < QUIET_HOURS_OVERRIDE_PRIORITY:
                    continue

                context = item.get("context") or {}
                title = DEFAULT_TITLE
                message = item.get("generated_message")

                if not message:
                    try:
                        generated = NotificationService.generate_proactive_message(
                            item["user_id"], item["event_type"], context=context
                        )
                        title, message = generated["title"], generated["message"]
                        _mark(item["id"], {"generated_message": message})
                    except RocketException as e:
                        logger.error(f"Message generation failed for queue item {item['id']}: {e.message}")

                if not message:
                    errors.append(f"Failed to generate message for {item['id']}")
                    continue

                try:
                    outcome = NotificationService.send_assistant_notification(
                        item["user_id"],
                        item["event_type"],
                        message,
                        message_title=title,
                        priority=priority,
                        metadata=context,
                    )
                    delivered = bool(outcome["success"] and outcome["channels_sent"])
                except RocketException as e:
                    logger.error(f"Notification send failed for queue item {item['id']}: {e.message}")
                    delivered = False

                _mark(item["id"], {"is_processed": True})
                if delivered:
                    sent += 1
                processed += 1

            except Exception as e:
                logger.error(f"Error processing queue item {item['id']}: {e}")
                errors.append(f"Error processing {item['id']}: {e}")

        logger.info(f"Notification queue: processed={processed}, sent={sent}, skipped={skipped}")

        result: dict[str, Any] = {
            "success": True,
            "message": f"Processed {processed} notifications",
            "processed": processed,
            "sent": sent,
            "skipped": skipped,
        }
        if errors:
            result["errors"] = errors
        return result
