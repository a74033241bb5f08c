# =============================================================================
# tests/test_messaging.py - SMS & Telegram Tests
# =============================================================================
# This module contains tests for:
# - Twilio and Telegram REST clients (httpx mocked)
# - MessagingService validation, configuration checks and event recording
#
# Run with: pytest tests/test_messaging.py -v
# =============================================================================

from unittest.mock import patch

import httpx
import pytest

from app.config import settings
from app.exceptions import InvalidRequestError, MissingConfigurationError, ProviderError
from core.services.messaging_service import MessagingService
from lib.messaging import (
    MessagingError,
    format_phone_number,
    send_telegram_message,
    send_twilio_sms,
)


# =============================================================================
# Provider Clients
# =============================================================================

class TestTwilioClient:
    """Test send_twilio_sms."""

    def test_success(self):
        response = httpx.Response(201, json={"sid": "SM123", "status": "queued"})

        with patch("lib.messaging.httpx.post", return_value=response) as mock_post:
            result = send_twilio_sms("AC1", "token", "+15550000000", "15551234567", "Hi")

        assert result["sid"] == "SM123"
        _, kwargs = mock_post.call_args
        assert kwargs["auth"] == ("AC1", "token")
        assert kwargs["data"] == {"To": "+15551234567", "From": "+15550000000", "Body": "Hi"}
        assert mock_post.call_args[0][0].endswith("/Accounts/AC1/Messages.json")

    def test_error_carries_provider_body(self):
        response = httpx.Response(400, json={"message": "Invalid 'To' number", "code": 21211})

        with patch("lib.messaging.httpx.post", return_value=response):
            with pytest.raises(MessagingError) as exc_info:
                send_twilio_sms("AC1", "token", "+1", "+2", "Hi")

        assert exc_info.value.message == "Invalid 'To' number"
        assert exc_info.value.provider_response["code"] == 21211

    def test_unreachable(self):
        with patch("lib.messaging.httpx.post", side_effect=httpx.ConnectError("down")):
            with pytest.raises(MessagingError) as exc_info:
                send_twilio_sms("AC1", "token", "+1", "+2", "Hi")

        assert exc_info.value.provider == "twilio"

    def test_format_phone_number(self):
        assert format_phone_number("15551234567") == "+15551234567"
        assert format_phone_number("+15551234567") == "+15551234567"


class TestTelegramClient:
    """Test send_telegram_message."""

    def test_success_with_parse_mode(self):
        body = {"ok": True, "result": {"message_id": 42, "chat": {"id": 99}}}

        with patch("lib.messaging.httpx.post", return_value=httpx.Response(200, json=body)) as mock_post:
            result = send_telegram_message("bot-token", "99", "<b>Hi</b>", parse_mode="HTML")

        assert result["result"]["message_id"] == 42
        assert mock_post.call_args.kwargs["json"] == {
            "chat_id": "99",
            "text": "<b>Hi</b>",
            "parse_mode": "HTML",
        }

    def test_ok_false_in_200_is_an_error(self):
        body = {"ok": False, "description": "Bad Request: chat not found"}

        with patch("lib.messaging.httpx.post", return_value=httpx.Response(200, json=body)):
            with pytest.raises(MessagingError) as exc_info:
                send_telegram_message("bot-token", "1", "Hi")

        assert exc_info.value.message == "Bad Request: chat not found"


# =============================================================================
# MessagingService
# =============================================================================

class TestSendSms:
    """Test MessagingService.send_sms."""

    def test_missing_configuration(self, monkeypatch):
        monkeypatch.setattr(settings, "TWILIO_AUTH_TOKEN", None)

        with pytest.raises(MissingConfigurationError) as exc_info:
            MessagingService.send_sms("user-1", "+15551234567", "Hi")

        assert exc_info.value.status_code == 500
        assert "TWILIO_AUTH_TOKEN" in exc_info.value.message

    def test_missing_fields(self):
        with pytest.raises(InvalidRequestError) as exc_info:
            MessagingService.send_sms("user-1", None, "Hi")

        assert exc_info.value.message == "Missing required fields: user_id, phone_number, message"

    def test_success_records_event(self):
        with patch(
            "core.services.messaging_service.send_twilio_sms",
            return_value={"sid": "SM1", "status": "queued"},
        ), patch("core.services.messaging_service.SupabaseClient.update_proactive_event") as mock_update:
            result = MessagingService.send_sms("user-1", "+15551234567", "Hi", event_id="evt-1")

        assert result == {"success": True, "message_sid": "SM1", "status": "queued"}
        event_id, fields = mock_update.call_args[0]
        assert event_id == "evt-1"
        assert fields["status"] == "sent"
        assert fields["provider_message_id"] == "SM1"

    def test_without_event_nothing_recorded(self):
        with patch(
            "core.services.messaging_service.send_twilio_sms",
            return_value={"sid": "SM1", "status": "queued"},
        ), patch("core.services.messaging_service.SupabaseClient.update_proactive_event") as mock_update:
            MessagingService.send_sms("user-1", "+15551234567", "Hi")

        mock_update.assert_not_called()

    def test_provider_failure_marks_event_failed(self):
        error = MessagingError("twilio", "Invalid number", {"code": 21211})

        with patch("core.services.messaging_service.send_twilio_sms", side_effect=error), \
                patch("core.services.messaging_service.SupabaseClient.update_proactive_event") as mock_update:
            with pytest.raises(ProviderError) as exc_info:
                MessagingService.send_sms("user-1", "+1", "Hi", event_id="evt-1")

        assert exc_info.value.message == "Failed to send SMS"
        assert exc_info.value.details == "Invalid number"
        fields = mock_update.call_args[0][1]
        assert fields["status"] == "failed"
        assert fields["error_message"] == "Invalid number"
        assert fields["provider_response"] == {"code": 21211}


class TestSendTelegram:
    """Test MessagingService.send_telegram."""

    def test_missing_configuration(self, monkeypatch):
        monkeypatch.setattr(settings, "TELEGRAM_BOT_TOKEN", None)

        with pytest.raises(MissingConfigurationError):
            MessagingService.send_telegram("user-1", "99", "Hi")

    def test_missing_fields(self):
        with pytest.raises(InvalidRequestError) as exc_info:
            MessagingService.send_telegram("user-1", "", "Hi")

        assert exc_info.value.message == "Missing required fields: user_id, chat_id, message"

    def test_success_marks_event_delivered(self):
        body = {"ok": True, "result": {"message_id": 42, "chat": {"id": 99}}}

        with patch("core.services.messaging_service.send_telegram_message", return_value=body), \
                patch("core.services.messaging_service.SupabaseClient.update_proactive_event") as mock_update:
            result = MessagingService.send_telegram("user-1", "99", "Hi", event_id="evt-2")

        assert result == {"success": True, "message_id": 42, "chat_id": 99}
        fields = mock_update.call_args[0][1]
        assert fields["status"] == "delivered"
        assert fields["provider_message_id"] == "42"
        assert fields["sent_at"] == fields["delivered_at"]

    def test_provider_failure(self):
        error = MessagingError("telegram", "chat not found")

        with patch("core.services.messaging_service.send_telegram_message", side_effect=error):
            with pytest.raises(ProviderError) as exc_info:
                MessagingService.send_telegram("user-1", "99", "Hi")

        assert exc_info.value.message == "Failed to send Telegram message"
