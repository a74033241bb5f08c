# =============================================================================
# core/models/preflight.py - Auth Preflight Schemas
# =============================================================================
# Unauthenticated lookups the sign-up flow makes before an account exists:
# whether an email is registered, a team's display name, and the moonshot
# challenge registration status.
# =============================================================================

from enum import Enum

from pydantic import BaseModel, ConfigDict


class PreflightAction(str, Enum):
    CHECK_EMAIL = "check-email"
    LOOKUP_TEAM_NAME = "lookup-team-name"
    CHECK_MOONSHOT_REGISTRATION = "check-moonshot-registration"
    CHECK_MOONSHOT_TEAM_REGISTERED = "check-moonshot-team-registered"


class PreflightRequest(BaseModel):
    """
    Preflight request body.

    `action` is kept as a plain string so unknown actions reach the handler
    and get its "Unknown action" response.

    Example:
        {"action": "check-email", "email": "jane@example.com"}
        {"action": "lookup-team-name", "teamId": "550e8400-..."}
    """
    model_config = ConfigDict(extra="ignore")

    action: str | None = None
    email: str | None = None
    teamId: str | None = None
