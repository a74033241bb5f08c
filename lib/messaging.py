# =============================================================================
# lib/messaging.py - SMS and Telegram Provider Clients
# =============================================================================
# Direct REST calls to Twilio (SMS) and the Telegram Bot API.
#
# Both functions return the provider's JSON body on success and raise
# MessagingError (carrying that body) on failure, so callers can store the
# provider response on the delivery event either way.
#
# Usage:
#   from lib.messaging import send_twilio_sms, MessagingError
#   result = send_twilio_sms(sid, token, from_number, "+15551234567", "Hi")
#   print(result["sid"])
# =============================================================================

from __future__ import annotations

import logging
from typing import Any

import httpx

from lib.utils import ApplicationError

logger = logging.getLogger(__name__)

TWILIO_API_URL = "https://api.twilio.com/2010-04-01/Accounts/{account_sid}/Messages.json"
TELEGRAM_API_URL = "https://api.telegram.org/bot{token}/sendMessage"


class MessagingError(ApplicationError):
    """Raised when a provider rejects a message or can't be reached."""

    def __init__(self, provider: str, message: str, provider_response: dict[str, Any] | None = None):
        super().__init__(
            message,
            code="MESSAGING_ERROR",
            details={"provider": provider},
        )
        self.provider = provider
        self.provider_response = provider_response or {}


def _json_body(response: httpx.Response) -> dict[str, Any]:
    try:
        body = response.json()
    except ValueError:
        return {"raw": response.text[:500]}
    return body if isinstance(body, dict) else {"data": body}


def format_phone_number(phone_number: str) -> str:
    """Ensure E.164-style leading '+'."""
    return phone_number if phone_number.startswith("+") else f"+{phone_number}"


def send_twilio_sms(
    account_sid: str,
    auth_token: str,
    from_number: str,
    to_number: str,
    body: str,
    timeout: float = 30.0,
) -> dict[str, Any]:
    """
    Send an SMS through Twilio's Messages API.

    Returns:
        Twilio message resource (has "sid" and "status")

    Raises:
        MessagingError: If Twilio returns a non-2xx status or is unreachable
    """
    url = TWILIO_API_URL.format(account_sid=account_sid)

    try:
        response = httpx.post(
            url,
            auth=(account_sid, auth_token),
            data={"To": format_phone_number(to_number), "From": from_number, "Body": body},
            timeout=timeout,
        )
    except httpx.HTTPError as e:
        raise MessagingError("twilio", f"Twilio request failed: {e}")

    result = _json_body(response)

    if not response.is_success:
        logger.error(f"Twilio error: {result}")
        raise MessagingError("twilio", result.get("message") or "SMS send failed", result)

    return result


def send_telegram_message(
    bot_token: str,
    chat_id: str,
    text: str,
    parse_mode: str | None = None,
    timeout: float = 30.0,
) -> dict[str, Any]:
    """
    Send a message through the Telegram Bot API.

    Telegram reports failures either with an HTTP error or with `"ok": false`
    in a 200 response; both raise.

    Returns:
        Telegram response body ({"ok": true, "result": {...}})

    Raises:
        MessagingError: On HTTP failure or `ok: false`
    """
    payload: dict[str, str] = {"chat_id": chat_id, "text": text}
    if parse_mode:
        payload["parse_mode"] = parse_mode

    try:
        response = httpx.post(
            TELEGRAM_API_URL.format(token=bot_token),
            json=payload,
            timeout=timeout,
        )
    except httpx.HTTPError as e:
        raise MessagingError("telegram", f"Telegram request failed: {e}")

    result = _json_body(response)

    if not response.is_success or not result.get("ok"):
        logger.error(f"Telegram error: {result}")
        raise MessagingError("telegram", result.get("description") or "Telegram send failed", result)

    return result
