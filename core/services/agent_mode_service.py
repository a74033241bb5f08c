# =============================================================================
# core/services/agent_mode_service.py - Agent Mode Preference
# =============================================================================
# Resolution:
#   available = feature flag "agent_mode" is on for the user
#   stored    = user_ui_preferences.agent_mode_enabled (nullable)
#   enabled   = available AND (stored if set, else True, persisted on first
#               resolution while the flag is on)
#
# Every explicit change is published as an agent_mode_changed event so the
# user's other tabs and devices follow along.
# =============================================================================

import logging
from uuid import UUID

from app.exceptions import DatabaseError
from app.websocket import publish_event
from core.models.agent_mode import AGENT_MODE_CHANGED_EVENT, AGENT_MODE_FLAG, AgentModeState
from lib.supabase_client import SupabaseClient, maybe_one, rows
from lib.utils import normalize_uuid, utc_now_iso

logger = logging.getLogger(__name__)


class AgentModeService:
    """Service for the per-user agent mode switch."""

    @staticmethod
    def is_flag_enabled(user_id: str | UUID, flag_name: str = AGENT_MODE_FLAG) -> bool:
        """
        Whether a feature flag is on for a user.

        A row scoped to the user wins over the global (user_id null) row;
        no row at all means off.
        """
        client = SupabaseClient.get_client()
        user_id = normalize_uuid(user_id)

        try:
            flags = rows(
                client.table("feature_flags")
                .select("user_id, enabled")
                .eq("flag_name", flag_name)
                .execute()
            )
        except Exception as e:
            logger.warning(f"Feature flag lookup failed for {flag_name}: {e}")
            return False

        user_rows = [f for f in flags if f.get("user_id") == user_id]
        global_rows = [f for f in flags if f.get("user_id") is None]

        for candidates in (user_rows, global_rows):
            if candidates:
                return bool(candidates[0].get("enabled"))
        return False

    @staticmethod
    def _stored_value(user_id: str) -> bool | None:
        client = SupabaseClient.get_client()
        try:
            prefs = maybe_one(
                client.table("user_ui_preferences")
                .select("agent_mode_enabled")
                .eq("user_id", user_id)
                .maybe_single()
                .execute()
            )
        except Exception as e:
            raise DatabaseError(f"Failed to load UI preferences: {e}")
        return (prefs or {}).get("agent_mode_enabled")

    @staticmethod
    def _store(user_id: str, enabled: bool) -> None:
        client = SupabaseClient.get_client()
        try:
            client.table("user_ui_preferences").upsert({
                "user_id": user_id,
                "agent_mode_enabled": enabled,
                "updated_at": utc_now_iso(),
            }, on_conflict="user_id").execute()
        except Exception as e:
            raise DatabaseError(f"Failed to save agent mode preference: {e}")

    @staticmethod
    def get_state(user_id: str | UUID) -> AgentModeState:
        """
        Resolve agent mode for a user.

        Raises:
            DatabaseError: Preference read/write failed
        """
        user_id = normalize_uuid(user_id)
        available = AgentModeService.is_flag_enabled(user_id)
        stored = AgentModeService._stored_value(user_id)

        if stored is None and available:
            AgentModeService._store(user_id, True)
            stored = True

        return AgentModeState(is_available=available, is_enabled=available and bool(stored))

    @staticmethod
    def set_enabled(user_id: str | UUID, enabled: bool) -> AgentModeState:
        """
        Persist the user's choice and notify their other clients.

        The choice is stored even while the flag is off; it takes effect
        once the flag turns on.
        """
        user_id = normalize_uuid(user_id)
        AgentModeService._store(user_id, enabled)

        publish_event(user_id, AGENT_MODE_CHANGED_EVENT, {"enabled": enabled})
        logger.info(f"Agent mode {'enabled' if enabled else 'disabled'} for {user_id}")

        available = AgentModeService.is_flag_enabled(user_id)
        return AgentModeState(is_available=available, is_enabled=available and enabled)

    @staticmethod
    def toggle(user_id: str | UUID) -> AgentModeState:
        """Flip the user's choice (unset counts as the flag's default)."""
        user_id = normalize_uuid(user_id)
        stored = AgentModeService._stored_value(user_id)
        if stored is None:
            stored = AgentModeService.is_flag_enabled(user_id)
        return AgentModeService.set_enabled(user_id, not stored)
