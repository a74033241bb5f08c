# =============================================================================
# core/services/preflight_service.py - Auth Preflight Lookups
# =============================================================================
# Lookups the sign-up/sign-in screens make before the user has a session.
# They run with the service role, so each answers only the narrow question
# asked (exists / name / registered) and never returns user records.
# =============================================================================

import logging
from typing import Any

from supabase import AuthError

from app.exceptions import InvalidRequestError
from core.models.preflight import PreflightAction
from lib.supabase_client import SupabaseClient, maybe_one

logger = logging.getLogger(__name__)


class PreflightService:
    """Service for unauthenticated pre-signup checks."""

    @staticmethod
    def run(action: str | None, email: str | None = None, team_id: str | None = None) -> dict[str, Any]:
        """
        Dispatch a preflight action.

        Raises:
            InvalidRequestError: Missing input or unknown action
        """
        if action == PreflightAction.CHECK_EMAIL.value:
            return PreflightService.check_email(email)
        if action == PreflightAction.LOOKUP_TEAM_NAME.value:
            return PreflightService.lookup_team_name(team_id)
        if action == PreflightAction.CHECK_MOONSHOT_REGISTRATION.value:
            return PreflightService.check_moonshot_registration(email)
        if action == PreflightAction.CHECK_MOONSHOT_TEAM_REGISTERED.value:
            return PreflightService.check_moonshot_team_registered(team_id)
        raise InvalidRequestError("Unknown action")

    @staticmethod
    def check_email(email: str | None) -> dict[str, Any]:
        """Whether an auth account exists for the email (case-insensitive)."""
        if not email or not isinstance(email, str):
            raise InvalidRequestError("Email is required")

        normalized = email.lower().strip()
        client = SupabaseClient.get_client()

        try:
            users = client.auth.admin.list_users()
        except AuthError as e:
            logger.error(f"Error listing auth users: {e}")
            return {"exists": False, "debug": "auth_error"}
        except Exception as e:
            logger.error(f"Exception during email check: {e}")
            return {"exists": False, "debug": "exception"}

        exists = any((u.email or "").lower() == normalized for u in users)
        logger.info(f"Email check: exists={exists}, total_users={len(users)}")
        return {"exists": exists}

    @staticmethod
    def lookup_team_name(team_id: str | None) -> dict[str, Any]:
        """Display name of a team, or None."""
        if not team_id or not isinstance(team_id, str):
            raise InvalidRequestError("Team ID is required")

        client = SupabaseClient.get_client()
        try:
            team = maybe_one(
                client.table("teams").select("name").eq("id", team_id).maybe_single().execute()
            )
        except Exception as e:
            logger.warning(f"Team lookup failed for {team_id}: {e}")
            team = None

        return {"name": team["name"] if team else None}

    @staticmethod
    def check_moonshot_registration(email: str | None) -> dict[str, Any]:
        """Moonshot challenge registration for an email, or None."""
        if not email or not isinstance(email, str):
            raise InvalidRequestError("Email is required")

        client = SupabaseClient.get_client()
        try:
            registration = maybe_one(
                client.table("moonshot_registrations")
                .select("id, team_name, user_id, team_id")
                .eq("email", email.lower().strip())
                .maybe_single()
                .execute()
            )
        except Exception as e:
            logger.warning(f"Moonshot registration lookup failed: {e}")
            registration = None

        return {"registration": registration}

    @staticmethod
    def check_moonshot_team_registered(team_id: str | None) -> dict[str, Any]:
        """Whether a team is registered for the moonshot challenge."""
        if not team_id or not isinstance(team_id, str):
            raise InvalidRequestError("Team ID is required")

        client = SupabaseClient.get_client()
        try:
            registration = maybe_one(
                client.table("moonshot_registrations")
                .select("id")
                .eq("team_id", team_id)
                .maybe_single()
                .execute()
            )
        except Exception as e:
            logger.warning(f"Moonshot team lookup failed for {team_id}: {e}")
            registration = None

        if not registration:
            return {"registered": False}
        return {"registered": True, "id": registration["id"]}
