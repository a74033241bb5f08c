# =============================================================================
# core/services/integration_service.py - Integration Health & Calendar
# =============================================================================
# - check_integration_health: token-health RPC plus a refresh pass over
#   integrations that just expired
# - list_calendar_events: upcoming events from the user's Google calendar
#
# The refresh pass is deliberately plain: rows are handled one after another,
# each in its own try/except, with no retries.
# =============================================================================

import logging
from datetime import timedelta
from typing import Any

import httpx

from app.config import settings
from app.exceptions import DatabaseError, InvalidRequestError, ProviderError
from core.models.integrations import REFRESH_FUNCTIONS
from lib.edge_functions import invoke_function
from lib.supabase_client import SupabaseClient, maybe_one, rows
from lib.utils import normalize_uuid, to_iso, utc_now

logger = logging.getLogger(__name__)

# Only integrations marked expired within this window are retried
RECENT_EXPIRY_WINDOW = timedelta(minutes=5)

GOOGLE_CALENDAR_EVENTS_URL = "https://www.googleapis.com/calendar/v3/calendars/primary/events"
CALENDAR_FIELDS = (
    "items(id,summary,description,location,start,end,status,organizer,"
    "attendees,htmlLink,hangoutLink,conferenceData)"
)
CALENDAR_MAX_RESULTS = 100
CALENDAR_REAUTH_MESSAGE = (
    "Calendar access not granted. Your Google connection needs calendar permissions. "
    "Please reconnect Google Drive to include calendar access."
)


class IntegrationService:
    """Service for third-party integration upkeep."""

    # -------------------------------------------------------------------------
    # Health sweep
    # -------------------------------------------------------------------------

    @staticmethod
    def check_integration_health() -> dict[str, Any]:
        """
        Run the token health check and refresh recently expired tokens.

        Returns:
            {success, health, refresh_attempts, refresh_successes, checked_at}

        Raises:
            DatabaseError: If the health RPC fails
        """
        client = SupabaseClient.get_client()

        try:
            health = client.rpc("check_integration_token_health").execute().data
        except Exception as e:
            logger.error(f"Health check error: {e}")
            raise DatabaseError(f"Health check failed: {e}")

        since = utc_now() - RECENT_EXPIRY_WINDOW
        expired = rows(
            client.table("user_integrations")
            .select(
                "user_id, team_id, integration_id, status, token_expires_at, "
                "integration_registry(provider_name, provider_slug)"
            )
            .eq("status", "expired")
            .not_.is_("token_expires_at", "null")
            .gte("updated_at", to_iso(since))
            .execute()
        )

        attempts = 0
        successes = 0

        for integration in expired:
            registry = integration.get("integration_registry")
            if not registry:
                continue

            slug = registry.get("provider_slug")
            function_name = REFRESH_FUNCTIONS.get(slug)
            if not function_name:
                continue

            attempts += 1
            try:
                response = invoke_function(
                    function_name,
                    {"user_id": integration["user_id"], "team_id": integration.get("team_id")},
                )
                if response.is_success:
                    (
                        client.table("user_integrations")
                        .update({
                            "status": "active",
                            "last_error": None,
                            "updated_at": to_iso(utc_now()),
                        })
                        .eq("user_id", integration["user_id"])
                        .eq("integration_id", integration.get("integration_id") or "")
                        .execute()
                    )
                    successes += 1
                else:
                    logger.warning(f"Token refresh for {slug} returned {response.status_code}")

            except Exception as e:
                logger.error(f"Token refresh failed for {slug}: {e}")

        logger.info(f"Integration health: {successes}/{attempts} refreshes succeeded")

        return {
            "success": True,
            "health": health,
            "refresh_attempts": attempts,
            "refresh_successes": successes,
            "checked_at": to_iso(utc_now()),
        }

    # -------------------------------------------------------------------------
    # Google Calendar
    # -------------------------------------------------------------------------

    @staticmethod
    def find_google_connection(user_id: str, team_id: str | None) -> dict[str, Any] | None:
        """
        Find an active Google connection for the user, else for their team.
        """
        client = SupabaseClient.get_client()

        def _query(column: str, value: str) -> dict[str, Any] | None:
            return maybe_one(
                client.table("user_drive_connections")
                .select("access_token, token_expires_at, google_account_email")
                .eq(column, value)
                .eq("provider", "google")
                .eq("is_active", True)
                .maybe_single()
                .execute()
            )

        connection = _query("user_id", user_id)
        if not connection and team_id:
            connection = _query("team_id", team_id)
        return connection

    @staticmethod
    def list_calendar_events(
        user_id: str,
        team_id: str | None = None,
        days: int = 7,
        max_results: int = 50,
    ) -> dict[str, Any]:
        """
        List upcoming events from the user's primary Google calendar.

        Args:
            user_id: The authenticated user
            team_id: Team from the token metadata (looked up if missing)
            days: How far ahead to look
            max_results: Event cap (at most 100)

        Returns:
            {events, timeMin, timeMax, calendarEmail}

        Raises:
            InvalidRequestError: No active Google connection
            ProviderError: Google Calendar rejected the request
        """
        user_id = normalize_uuid(user_id)

        if not team_id:
            user = SupabaseClient.fetch_user(user_id, columns="team_id")
            team_id = user.get("team_id") if user else None

        connection = IntegrationService.find_google_connection(user_id, team_id)
        if not connection or not connection.get("access_token"):
            raise InvalidRequestError("No active Google connection. Connect Google Drive first.")

        now = utc_now()
        time_min = to_iso(now)
        time_max = to_iso(now + timedelta(days=days))

        params = {
            "timeMin": time_min,
            "timeMax": time_max,
            "maxResults": str(min(max_results, CALENDAR_MAX_RESULTS)),
            "singleEvents": "true",
            "orderBy": "startTime",
            "fields": CALENDAR_FIELDS,
        }

        try:
            response = httpx.get(
                GOOGLE_CALENDAR_EVENTS_URL,
                params=params,
                headers={"Authorization": f"Bearer {connection['access_token']}"},
                timeout=settings.HTTP_TIMEOUT_SECONDS,
            )
        except httpx.HTTPError as e:
            raise ProviderError("google_calendar", f"Google Calendar request failed: {e}")

        if response.status_code == 403:
            raise ProviderError(
                "google_calendar",
                CALENDAR_REAUTH_MESSAGE,
                status_code=403,
                extra={"needs_reauth": True},
            )
        if not response.is_success:
            raise ProviderError(
                "google_calendar",
                f"Google Calendar API error: {response.status_code}",
                details=response.text,
                status_code=response.status_code,
            )

        events = response.json().get("items") or []
        calendar_email = connection.get("google_account_email") or ""

        IntegrationService._record_agent_usage(user_id, calendar_email)

        return {
            "events": events,
            "timeMin": time_min,
            "timeMax": time_max,
            "calendarEmail": calendar_email,
        }

    @staticmethod
    def _record_agent_usage(user_id: str, account_email: str) -> None:
        """Bump the usage counter on the matching integration (best effort)."""
        client = SupabaseClient.get_client()

        try:
            current = maybe_one(
                client.table("user_integrations")
                .select("times_used_by_agent")
                .eq("user_id", user_id)
                .eq("connected_account_email", account_email)
                .maybe_single()
                .execute()
            )
            times_used = ((current or {}).get("times_used_by_agent") or 0) + 1

            (
                client.table("user_integrations")
                .update({"last_used_at": to_iso(utc_now()), "times_used_by_agent": times_used})
                .eq("user_id", user_id)
                .eq("connected_account_email", account_email)
                .execute()
            )
        except Exception as e:
            logger.warning(f"Could not record calendar usage for {user_id}: {e}")
