# =============================================================================
# app/exceptions.py - Custom Exception Handlers
# =============================================================================
# Centralized exception handling for the API.
#
# Error bodies keep the shape web clients already read:
#   {"error": "<message>", "code": "<MACHINE_CODE>", ...}
# plus optional "suggestion", "details" and endpoint-specific top-level
# fields (e.g. "needs_reauth": true, "success": false).
# =============================================================================

from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse


class RocketException(Exception):
    """
    Base exception for the AI Rocket API.

    All custom exceptions inherit from this class.
    Provides structured error responses with actionable suggestions.
    """

    def __init__(
        self,
        message: str,
        code: str = "ROCKET_ERROR",
        status_code: int = 500,
        suggestion: str | None = None,
        details: Any = None,
        extra: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code
        self.suggestion = suggestion
        self.details = details
        self.extra = extra or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to API response dict."""
        result: dict[str, Any] = {**self.extra, "error": self.message, "code": self.code}
        if self.suggestion:
            result["suggestion"] = self.suggestion
        if self.details:
            result["details"] = self.details
        return result


# =============================================================================
# Request Exceptions
# =============================================================================

class InvalidRequestError(RocketException):
    """Raised when a request body is missing required fields or is malformed."""

    def __init__(self, message: str, details: Any = None):
        super().__init__(
            message=message,
            code="INVALID_REQUEST",
            status_code=400,
            details=details,
        )


class NotFoundError(RocketException):
    """Raised when a referenced record doesn't exist."""

    def __init__(self, resource: str, identifier: str):
        super().__init__(
            message=f"{resource} not found: {identifier}",
            code="NOT_FOUND",
            status_code=404,
            details={"resource": resource, "id": identifier},
        )


# =============================================================================
# Configuration / Provider / Storage Exceptions
# =============================================================================

class MissingConfigurationError(RocketException):
    """Raised when a handler needs a setting that isn't configured."""

    def __init__(self, message: str, settings_names: list[str]):
        super().__init__(
            message=message,
            code="MISSING_CONFIGURATION",
            status_code=500,
            suggestion=f"Set {', '.join(settings_names)} in the environment",
        )
        self.settings_names = settings_names


class ProviderError(RocketException):
    """
    Raised when a third-party API call fails.

    `status_code` defaults to 500 but can mirror the provider's status
    (e.g. Google Calendar's 403 for missing scopes).
    """

    def __init__(
        self,
        provider: str,
        message: str,
        details: Any = None,
        status_code: int = 500,
        extra: dict[str, Any] | None = None,
    ):
        super().__init__(
            message=message,
            code="PROVIDER_ERROR",
            status_code=status_code,
            details=details,
            extra=extra,
        )
        self.provider = provider


class DatabaseError(RocketException):
    """Raised when a database read or write fails inside a handler."""

    def __init__(self, message: str, details: Any = None, extra: dict[str, Any] | None = None):
        super().__init__(
            message=message,
            code="DATABASE_ERROR",
            status_code=500,
            details=details,
            extra=extra,
        )


# =============================================================================
# Exception Handlers
# =============================================================================

async def rocket_exception_handler(
    request: Request,
    exc: RocketException
) -> JSONResponse:
    """
    Convert RocketException to JSON response.

    Returns structured error with:
    - error: Human-readable message
    - code: Machine-readable error code
    - suggestion: How to fix (if available)
    - details: Additional context
    """
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict()
    )
