# =============================================================================
# app/routers/integrations.py - Integration Endpoints
# =============================================================================
# - POST /integrations/health-check: token health sweep + refresh (internal)
# - GET  /integrations/calendar/events: upcoming Google Calendar events
# - GET  /integrations/google-drive/files: files under a Drive folder
# - GET  /integrations/microsoft/drives: drives reachable through Microsoft
#
# Handlers are plain `def` so the provider round-trips run in FastAPI's
# threadpool instead of on the event loop.
# =============================================================================

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from app.auth import AuthUser, get_current_user, require_service_role
from core.models.integrations import (
    CalendarEventsResponse,
    DriveFilesResponse,
    IntegrationHealthResult,
    MicrosoftDrivesResponse,
)
from core.services.drive_service import DriveService
from core.services.integration_service import IntegrationService

router = APIRouter()


@router.post(
    "/health-check",
    response_model=IntegrationHealthResult,
    dependencies=[Depends(require_service_role)],
)
def check_integration_health():
    """
    Run the integration token health check.

    Calls the token health RPC, then tries to refresh every integration
    that expired in the last five minutes, one at a time. Refresh failures
    are logged and counted, never raised.
    """
    return IntegrationService.check_integration_health()


@router.get("/calendar/events", response_model=CalendarEventsResponse)
def list_calendar_events(
    user: AuthUser = Depends(get_current_user),
    days: Annotated[int, Query(ge=1, le=90, description="Days ahead to look")] = 7,
    max: Annotated[int, Query(ge=1, le=100, description="Maximum events")] = 50,
):
    """
    List the user's upcoming Google Calendar events.

    Errors:
        400: No active Google connection
        403: Calendar scope missing ({"needs_reauth": true})
    """
    return IntegrationService.list_calendar_events(
        str(user.id), team_id=user.team_id, days=days, max_results=max
    )


@router.get(
    "/google-drive/files",
    response_model=DriveFilesResponse,
    response_model_exclude_none=True,
)
def list_google_drive_files(
    user: AuthUser = Depends(get_current_user),
    folderId: Annotated[str | None, Query(description="Drive folder to list")] = None,
    includeSubfolders: Annotated[bool, Query(description="Walk into subfolders")] = True,
    maxDepth: Annotated[int, Query(ge=1, le=5, description="Folder levels to include")] = 2,
):
    """
    List the files under a Google Drive folder for the file picker.

    Errors:
        400: folderId missing or no active Google connection
        401: Token expired, reconnect needed
        403: Drive permission missing
    """
    return DriveService.list_google_drive_files(
        str(user.id),
        folderId,
        team_id=user.team_id,
        include_subfolders=includeSubfolders,
        max_depth=maxDepth,
    )


@router.get("/microsoft/drives", response_model=MicrosoftDrivesResponse)
def list_microsoft_drives(user: AuthUser = Depends(get_current_user)):
    """
    List OneDrive, SharePoint libraries and shared drives for the user.

    Errors:
        404: No active Microsoft connection
    """
    return DriveService.list_microsoft_drives(str(user.id))
