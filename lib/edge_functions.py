# =============================================================================
# lib/edge_functions.py - Remote Function Invocation
# =============================================================================
# Some work is done by functions deployed next to the database rather than
# in this service (OAuth token refresh, transactional email, WhatsApp).
# They're invoked over HTTP with the service-role key.
#
# Usage:
#   from lib.edge_functions import invoke_function
#   response = invoke_function("google-drive-refresh-token", {"user_id": ...})
#   if response.is_success: ...
# =============================================================================

from __future__ import annotations

import logging
from typing import Any

import httpx

from app.config import settings
from lib.utils import ApplicationError

logger = logging.getLogger(__name__)


class EdgeFunctionError(ApplicationError):
    """Raised when a remote function is unreachable or answers non-2xx."""

    def __init__(self, name: str, message: str, status_code: int | None = None):
        super().__init__(
            message,
            code="EDGE_FUNCTION_ERROR",
            details={"function": name, "status_code": status_code},
        )
        self.name = name
        self.status_code = status_code


def invoke_function(
    name: str,
    payload: dict[str, Any],
    timeout: float | None = None,
) -> httpx.Response:
    """
    POST a JSON payload to a remote function.

    Args:
        name: Function name, e.g. "send-report-email"
        payload: JSON body
        timeout: Seconds (defaults to settings.HTTP_TIMEOUT_SECONDS)

    Returns:
        The raw response; callers decide what a failure means

    Raises:
        httpx.HTTPError: If the function can't be reached
    """
    url = f"{settings.functions_url}/{name}"
    logger.debug(f"Invoking function {name}")

    return httpx.post(
        url,
        json=payload,
        headers={
            "Authorization": f"Bearer {settings.SUPABASE_SERVICE_KEY}",
            "Content-Type": "application/json",
        },
        timeout=timeout or settings.HTTP_TIMEOUT_SECONDS,
    )


def error_message(response: httpx.Response, default: str) -> str:
    """Pull an error string out of a failed function response."""
    try:
        body = response.json()
    except ValueError:
        return default
    if isinstance(body, dict):
        return body.get("error") or body.get("message") or default
    return default


def call_function(name: str, payload: dict[str, Any], timeout: float | None = None) -> dict[str, Any]:
    """
    Invoke a remote function and return its JSON body.

    Raises:
        EdgeFunctionError: If the call fails or the function answers non-2xx
    """
    try:
        response = invoke_function(name, payload, timeout=timeout)
    except httpx.HTTPError as e:
        raise EdgeFunctionError(name, f"{name} unreachable: {e}")

    if not response.is_success:
        raise EdgeFunctionError(
            name,
            error_message(response, f"{name} failed with status {response.status_code}"),
            status_code=response.status_code,
        )

    try:
        body = response.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {"data": body}
