# =============================================================================
# lib/supabase_client.py - Supabase Client Wrapper
# =============================================================================
# This module provides a typed wrapper for Supabase database operations.
# It implements the singleton pattern to reuse a single client connection
# and provides helpers for the rows most handlers touch:
# - Users and their assistant preferences
# - Agent conversation messages
# - Proactive delivery events
#
# Usage:
#   from lib.supabase_client import SupabaseClient
#   user = SupabaseClient.fetch_user(user_id, columns="name, team_id")
# =============================================================================

from __future__ import annotations

import logging
from typing import Any
from uuid import UUID

from supabase import create_client, Client

from app.config import settings
from lib.utils import normalize_uuid

# Set up logging for this module
logger = logging.getLogger(__name__)


class SupabaseClientError(Exception):
    """
    Error during Supabase operations.

    Carries a code and an optional suggestion so callers can log
    something actionable.
    """

    def __init__(
        self,
        message: str,
        code: str = "SUPABASE_ERROR",
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.code = code
        self.message = message
        self.suggestion = suggestion
        self.details = details or {}

    def __str__(self) -> str:
        result = f"[{self.code}] {self.message}"
        if self.suggestion:
            result += f" Suggestion: {self.suggestion}"
        return result


def maybe_one(response: Any) -> dict[str, Any] | None:
    """
    Extract a single row from a query response.

    `maybe_single().execute()` returns None when nothing matched, and plain
    queries return a list; both collapse to a dict or None here.
    """
    if response is None:
        return None
    data = response.data
    if isinstance(data, list):
        return data[0] if data else None
    return data or None


def rows(response: Any) -> list[dict[str, Any]]:
    """Extract the row list from a query response (empty when nothing matched)."""
    if response is None or not response.data:
        return []
    return response.data


class SupabaseClient:
    """
    Typed wrapper for Supabase database operations.

    Implements singleton pattern - one client instance is shared across
    the application. All methods are class methods for easy access without
    instantiation.

    Example:
        prefs = SupabaseClient.fetch_assistant_preferences(user_id)
        if prefs and prefs.get("proactive_enabled"):
            ...
    """

    _instance: Client | None = None

    @classmethod
    def get_client(cls) -> Client:
        """
        Get or create the singleton Supabase client.

        Uses service_role key which bypasses Row Level Security (RLS).
        This is appropriate for server-side operations.

        Raises:
            SupabaseClientError: If client creation fails
        """
        if cls._instance is None:
            try:
                cls._instance = create_client(
                    settings.SUPABASE_URL,
                    settings.SUPABASE_SERVICE_KEY
                )
                logger.info("Supabase client initialized successfully")
            except Exception as e:
                raise SupabaseClientError(
                    message=f"Failed to create Supabase client: {e}",
                    code="CLIENT_INIT_FAILED",
                    suggestion="Check SUPABASE_URL and SUPABASE_SERVICE_KEY in your .env file"
                )
        return cls._instance

    # -------------------------------------------------------------------------
    # Users
    # -------------------------------------------------------------------------

    @classmethod
    def fetch_user(
        cls,
        user_id: str | UUID,
        columns: str = "*",
    ) -> dict[str, Any] | None:
        """
        Fetch a row from public.users.

        Args:
            user_id: The user UUID
            columns: PostgREST column list

        Returns:
            User dict, or None if the user has no profile row

        Raises:
            SupabaseClientError: If query fails
        """
        client = cls.get_client()
        user_id_str = normalize_uuid(user_id)

        try:
            response = (
                client.table("users")
                .select(columns)
                .eq("id", user_id_str)
                .maybe_single()
                .execute()
            )
            return maybe_one(response)

        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to fetch user: {e}",
                code="FETCH_USER_FAILED",
                details={"user_id": user_id_str}
            )

    @classmethod
    def fetch_assistant_preferences(
        cls,
        user_id: str | UUID,
        columns: str = "*",
    ) -> dict[str, Any] | None:
        """
        Fetch a user's assistant/notification preferences.

        Returns:
            Preferences dict, or None if the user never configured them

        Raises:
            SupabaseClientError: If query fails
        """
        client = cls.get_client()
        user_id_str = normalize_uuid(user_id)

        try:
            response = (
                client.table("user_assistant_preferences")
                .select(columns)
                .eq("user_id", user_id_str)
                .maybe_single()
                .execute()
            )
            return maybe_one(response)

        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to fetch assistant preferences: {e}",
                code="FETCH_PREFERENCES_FAILED",
                details={"user_id": user_id_str}
            )

    # -------------------------------------------------------------------------
    # Agent Conversations
    # -------------------------------------------------------------------------

    @classmethod
    def insert_agent_message(
        cls,
        user_id: str | UUID,
        team_id: str | UUID | None,
        message: str,
        metadata: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """
        Post a message from the assistant into the user's agent conversation.

        Args:
            user_id: The recipient user
            team_id: The user's team (nullable)
            message: Message text (markdown)
            metadata: JSONB metadata; should carry a "source" key

        Returns:
            Inserted row

        Raises:
            SupabaseClientError: If insert fails
        """
        client = cls.get_client()

        data = {
            "user_id": normalize_uuid(user_id),
            "team_id": normalize_uuid(team_id) if team_id else None,
            "role": "agent",
            "message": message,
            "metadata": metadata or {},
        }

        try:
            response = client.table("agent_conversations").insert(data).execute()

            inserted = rows(response)
            if inserted:
                return inserted[0]
            raise SupabaseClientError(
                message="Insert returned no data",
                code="INSERT_NO_DATA"
            )

        except SupabaseClientError:
            raise
        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to insert agent message: {e}",
                code="INSERT_AGENT_MESSAGE_FAILED",
                details={"user_id": data["user_id"]}
            )

    # -------------------------------------------------------------------------
    # Proactive Delivery Events
    # -------------------------------------------------------------------------

    @classmethod
    def update_proactive_event(cls, event_id: str, fields: dict[str, Any]) -> None:
        """
        Record a delivery outcome on an assistant_proactive_events row.

        Raises:
            SupabaseClientError: If update fails
        """
        client = cls.get_client()

        try:
            (
                client.table("assistant_proactive_events")
                .update(fields)
                .eq("id", event_id)
                .execute()
            )
            logger.debug(f"Updated proactive event {event_id}: status={fields.get('status')}")

        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to update proactive event: {e}",
                code="UPDATE_EVENT_FAILED",
                details={"event_id": event_id}
            )
