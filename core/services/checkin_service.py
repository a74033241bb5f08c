# =============================================================================
# core/services/checkin_service.py - Weekly Assistant Check-in
# =============================================================================
# Once a week the assistant posts a short check-in into each opted-in user's
# agent conversation, with how many insights it delivered and how many were
# rated helpful, and asks for feedback.
# =============================================================================

import logging
from datetime import timedelta
from typing import Any

from app.exceptions import DatabaseError
from lib.supabase_client import SupabaseClient, rows
from lib.utils import to_iso, utc_now

logger = logging.getLogger(__name__)

CHECKIN_WINDOW = timedelta(days=7)


def build_checkin_message(
    user_name: str,
    assistant_name: str,
    total_insights: int,
    helpful_count: int,
) -> str:
    """Compose the weekly check-in text."""
    message = f"Hi {user_name}, it's {assistant_name} checking in for the week. "

    if total_insights > 0:
        message += f"I delivered {total_insights} insights this week. "
        if helpful_count > 0:
            message += f"You found {helpful_count} of them helpful -- that's good to know. "
    else:
        message += "I didn't deliver any overnight insights this week. "

    message += (
        "How am I doing? Is there anything you'd like me to focus on or improve? "
        "Your feedback helps me serve you better."
    )
    return message


class CheckinService:
    """Service for the weekly check-in job."""

    @staticmethod
    def process_weekly_checkin() -> dict[str, Any]:
        """
        Post the weekly check-in for every user with proactive mode on.

        Users without a team are skipped; a failure for one user is logged
        and the job moves on.

        Raises:
            DatabaseError: Eligible users could not be fetched
        """
        client = SupabaseClient.get_client()

        try:
            eligible = rows(
                client.table("user_assistant_preferences")
                .select("user_id")
                .eq("proactive_enabled", True)
                .execute()
            )
        except Exception as e:
            raise DatabaseError(f"Failed to fetch users: {e}")

        if not eligible:
            return {"success": True, "message": "No eligible users", "processed": 0}

        since = to_iso(utc_now() - CHECKIN_WINDOW)
        processed = 0

        for row in eligible:
            user_id = row["user_id"]
            try:
                user = SupabaseClient.fetch_user(user_id, columns="id, name, team_id")
                if not user or not user.get("team_id"):
                    continue

                prefs = SupabaseClient.fetch_assistant_preferences(user_id, columns="assistant_name")
                insights = rows(
                    client.table("assistant_proactive_insights")
                    .select("title, was_helpful")
                    .eq("user_id", user_id)
                    .gte("created_at", since)
                    .execute()
                )

                total_insights = len(insights)
                helpful_count = sum(1 for i in insights if i.get("was_helpful") is True)

                SupabaseClient.insert_agent_message(
                    user_id,
                    user["team_id"],
                    build_checkin_message(
                        user.get("name") or "there",
                        (prefs or {}).get("assistant_name") or "Astra",
                        total_insights,
                        helpful_count,
                    ),
                    metadata={
                        "source": "weekly_checkin",
                        "weekly_stats": {
                            "total_insights": total_insights,
                            "helpful_count": helpful_count,
                        },
                        "action": {"type": "none"},
                    },
                )
                processed += 1

            except Exception as e:
                logger.error(f"Error processing check-in for user {user_id}: {e}")

        logger.info(f"Weekly check-in posted for {processed}/{len(eligible)} users")
        return {"success": True, "processed": processed}
