# =============================================================================
# core/models/integrations.py - Integration Health & Calendar Schemas
# =============================================================================
# - IntegrationHealthResult: outcome of one token-health / refresh sweep
# - CalendarEventsResponse: upcoming Google Calendar events for a user
# - DriveFilesResponse / MicrosoftDrivesResponse: file-picker listings
# - TenantConsent*: Microsoft tenant admin-consent records
# =============================================================================

from typing import Any

from pydantic import BaseModel, Field


# Provider slugs that can be refreshed, mapped to the remote function that
# refreshes them. Anything else is left alone by the health sweep.
REFRESH_FUNCTIONS: dict[str, str] = {
    "google-drive": "google-drive-refresh-token",
    "google-calendar": "google-drive-refresh-token",
    "microsoft-onedrive": "microsoft-graph-refresh-token",
    "outlook-calendar": "microsoft-graph-refresh-token",
}


class IntegrationHealthResult(BaseModel):
    """
    Result of an integration health sweep.

    Example:
        {
            "success": true,
            "health": {"expired": 2, "expiring_soon": 1},
            "refresh_attempts": 2,
            "refresh_successes": 1,
            "checked_at": "2025-03-01T14:00:00.000Z"
        }
    """
    success: bool = True
    health: Any = Field(None, description="Raw result of the token health RPC")
    refresh_attempts: int = 0
    refresh_successes: int = 0
    checked_at: str


class CalendarEventsResponse(BaseModel):
    """Upcoming events from the user's primary Google calendar."""
    events: list[dict[str, Any]] = Field(default_factory=list)
    timeMin: str
    timeMax: str
    calendarEmail: str = ""


# =============================================================================
# Drive Listings
# =============================================================================

class DriveFilesResponse(BaseModel):
    """
    Files under a Google Drive folder, each tagged with a `category`
    (document, spreadsheet, presentation, text, other).

    A folder Google reports as missing comes back with `error` set and
    no files.
    """
    files: list[dict[str, Any]] = Field(default_factory=list)
    totalCount: int = 0
    googleAccount: str | None = None
    subfolderCount: int | None = None
    folderId: str | None = None
    error: str | None = None


class MicrosoftDrivesResponse(BaseModel):
    """OneDrive, SharePoint document libraries and shared drives the user can open."""
    drives: list[dict[str, Any]] = Field(default_factory=list)


# =============================================================================
# Microsoft Tenant Consent
# =============================================================================

class TenantConsentRequest(BaseModel):
    """
    Body for checking or recording Microsoft tenant admin consent.

    `tenant_id` is validated by the service so a missing value returns the
    handler's own 400 message rather than a schema error.
    """
    tenant_id: str | None = None
    admin_email: str | None = None
    team_id: str | None = None


class TenantConsentStatus(BaseModel):
    """Whether a tenant has active admin consent."""
    success: bool = True
    tenant_id: str
    has_consent: bool
    granted_at: str | None = None


class TenantConsentStored(BaseModel):
    """Confirmation that consent was recorded."""
    success: bool = True
    tenant_id: str
    message: str = "Tenant consent recorded successfully"
