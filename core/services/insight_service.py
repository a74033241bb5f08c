# =============================================================================
# core/services/insight_service.py - Insight Feedback & Strategic Identity
# =============================================================================
# - collect_insight_feedback: store a rating on insight rows, log the
#   session, feed the strategic identity and auto-tune the proactive level
# - update_strategic_identity: rewrite the user's profile with the LLM
# =============================================================================

import logging
from typing import Any

from app.config import settings
from app.exceptions import DatabaseError, InvalidRequestError, MissingConfigurationError, ProviderError, RocketException
from core.models.insights import LEVEL_DOWNGRADES
from core.prompts.strategic_identity import build_identity_prompt
from lib.llm import LLMError, generate_text
from lib.supabase_client import SupabaseClient, SupabaseClientError, maybe_one, rows
from lib.utils import utc_now_iso

logger = logging.getLogger(__name__)

# Auto-adjust looks at this many recent rated insights
RATING_WINDOW = 20
MIN_RATINGS_FOR_ADJUST = 10
HELPFUL_RATIO_FLOOR = 0.3


def _unique(values: list[Any]) -> list[Any]:
    """De-duplicate, keeping first-seen order."""
    return list(dict.fromkeys(values))


class InsightService:
    """Service for insight feedback and the strategic identity."""

    @staticmethod
    def collect_insight_feedback(
        user_id: str | None,
        insight_id: str | None = None,
        batch_id: str | None = None,
        feedback: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """
        Record feedback on one insight or a batch.

        Args:
            user_id: Rating user
            insight_id: Single insight (wins over batch_id)
            batch_id: Every insight of a batch
            feedback: Only the provided fields among was_helpful,
                user_rating, user_feedback, was_dismissed

        Returns:
            {success, updated_insights, feedback_recorded}

        Raises:
            InvalidRequestError: Missing user or target
            DatabaseError: Insight update failed
        """
        if not user_id:
            raise InvalidRequestError("Missing required field: user_id")
        if not insight_id and not batch_id:
            raise InvalidRequestError("Must provide either insight_id or batch_id")

        feedback = feedback or {}
        was_helpful = feedback.get("was_helpful")
        user_rating = feedback.get("user_rating")
        user_feedback = feedback.get("user_feedback")
        was_dismissed = feedback.get("was_dismissed")

        payload: dict[str, Any] = {
            key: feedback[key]
            for key in ("was_helpful", "user_feedback", "was_dismissed")
            if key in feedback
        }
        if "user_rating" in feedback and user_rating is not None:
            payload["user_rating"] = min(5, max(1, user_rating))
        payload["first_viewed_at"] = utc_now_iso()

        client = SupabaseClient.get_client()
        target = "insight" if insight_id else "batch insights"
        try:
            query = client.table("assistant_proactive_insights").update(payload)
            if insight_id:
                query = query.eq("id", insight_id)
            else:
                query = query.eq("batch_id", batch_id)
            updated = rows(query.eq("user_id", user_id).execute())
        except Exception as e:
            raise DatabaseError(f"Failed to update {target}: {e}")

        updated_ids = [row["id"] for row in updated]

        if user_feedback:
            content = user_feedback
        elif was_helpful is True:
            content = "Thumbs up"
        elif was_helpful is False:
            content = "Thumbs down"
        else:
            content = "Dismissed"

        try:
            client.table("assistant_feedback_sessions").insert({
                "user_id": user_id,
                "session_type": "detailed_feedback" if user_feedback else "quick_rating",
                "feedback_content": content,
                "insights_referenced": updated_ids,
                "identity_update_applied": False,
            }).execute()
        except Exception as e:
            logger.error(f"Could not log feedback session for {user_id}: {e}")

        signals = []
        if was_helpful is not None:
            signals.append(f"rated {'helpful' if was_helpful else 'not helpful'}")
        if user_rating:
            signals.append(f"gave {user_rating}/5 stars")
        if user_feedback:
            signals.append(f'feedback: "{user_feedback}"')
        if was_dismissed:
            signals.append("dismissed insight without reading")

        if signals:
            try:
                InsightService.update_strategic_identity(
                    user_id,
                    "insight_feedback",
                    f"User {', '.join(signals)} for {len(updated_ids)} insight(s)",
                    user_feedback=user_feedback or None,
                )
            except RocketException as e:
                logger.error(f"Failed to trigger strategic identity update: {e.message}")

        InsightService._auto_adjust_level(user_id)

        return {
            "success": True,
            "updated_insights": len(updated_ids),
            "feedback_recorded": True,
        }

    @staticmethod
    def _auto_adjust_level(user_id: str) -> str | None:
        """
        Step the proactive level down when recent insights keep missing.

        Returns:
            The new level, or None when nothing changed
        """
        client = SupabaseClient.get_client()
        try:
            rated = rows(
                client.table("assistant_proactive_insights")
                .select("was_helpful")
                .eq("user_id", user_id)
                .not_.is_("was_helpful", "null")
                .order("created_at", desc=True)
                .limit(RATING_WINDOW)
                .execute()
            )
        except Exception as e:
            logger.error(f"Could not load rated insights for {user_id}: {e}")
            return None

        if len(rated) < MIN_RATINGS_FOR_ADJUST:
            return None

        helpful_ratio = sum(1 for r in rated if r.get("was_helpful") is True) / len(rated)
        if helpful_ratio >= HELPFUL_RATIO_FLOOR:
            return None

        try:
            prefs = SupabaseClient.fetch_assistant_preferences(user_id, columns="proactive_level")
            current_level = (prefs or {}).get("proactive_level") or "medium"
            new_level = LEVEL_DOWNGRADES.get(current_level)
            if not new_level:
                return None

            (
                client.table("user_assistant_preferences")
                .update({"proactive_level": new_level})
                .eq("user_id", user_id)
                .execute()
            )

            SupabaseClient.insert_agent_message(
                user_id,
                None,
                "I noticed my recent insights haven't been as helpful as I'd like them to be. "
                f'I\'ve adjusted my proactive level from "{current_level}" to "{new_level}" to '
                "focus on higher-quality, more relevant findings. You can always adjust this "
                "in your assistant settings.",
                metadata={
                    "source": "feedback_auto_adjust",
                    "previous_level": current_level,
                    "new_level": new_level,
                    "helpful_ratio": helpful_ratio,
                    "action": {"type": "none"},
                },
            )
        except Exception as e:
            logger.error(f"Could not adjust proactive level for {user_id}: {e}")
            return None

        logger.info(f"Proactive level for {user_id}: {current_level} -> {new_level}")
        return new_level

    # -------------------------------------------------------------------------
    # Strategic identity
    # -------------------------------------------------------------------------

    @staticmethod
    def update_strategic_identity(
        user_id: str | None,
        signal_type: str | None,
        signal_details: str | None = None,
        user_feedback: str | None = None,
    ) -> dict[str, Any]:
        """
        Rewrite a user's strategic identity to account for a new signal.

        Returns:
            {success, identity_version, identity_text_length}

        Raises:
            MissingConfigurationError: GEMINI_API_KEY not set
            InvalidRequestError: Required field missing
            ProviderError: Generation failed
            DatabaseError: Upsert failed
        """
        if not settings.GEMINI_API_KEY:
            raise MissingConfigurationError("Missing required configuration", ["GEMINI_API_KEY"])

        if not user_id or not signal_type:
            raise InvalidRequestError("Missing required fields: user_id, signal_type")

        client = SupabaseClient.get_client()

        try:
            user = SupabaseClient.fetch_user(user_id, columns="name, email")
            prefs = SupabaseClient.fetch_assistant_preferences(
                user_id, columns="proactive_level, notification_types"
            )
            current = maybe_one(
                client.table("user_strategic_identity")
                .select("*")
                .eq("user_id", user_id)
                .maybe_single()
                .execute()
            ) or {}
            priorities = rows(
                client.table("user_priorities")
                .select("priority_type, priority_value")
                .eq("user_id", user_id)
                .execute()
            )
            insights = rows(
                client.table("assistant_proactive_insights")
                .select("insight_type, title, was_helpful, was_dismissed, user_rating")
                .eq("user_id", user_id)
                .order("created_at", desc=True)
                .limit(RATING_WINDOW)
                .execute()
            )
        except SupabaseClientError as e:
            raise DatabaseError(e.message)
        except Exception as e:
            raise DatabaseError(f"Failed to load identity inputs: {e}")

        user_name = (user or {}).get("name") or "User"
        version = current.get("identity_version") or 0

        helpful = [i for i in insights if i.get("was_helpful") is True]
        dismissed = [i for i in insights if i.get("was_dismissed") is True]
        total_rated = sum(1 for i in insights if i.get("was_helpful") is not None)
        helpful_ratio = len(helpful) / total_rated if total_rated else 0

        preferred_categories = _unique([i.get("insight_type") for i in helpful])
        dismissed_categories = _unique([i.get("insight_type") for i in dismissed])

        prompt = build_identity_prompt(
            user_name=user_name,
            current_text=current.get("identity_text") or "",
            version=version,
            priorities=priorities,
            proactive_level=(prefs or {}).get("proactive_level") or "medium",
            helpful_ratio=helpful_ratio,
            helpful_count=len(helpful),
            total_rated=total_rated,
            preferred_categories=preferred_categories,
            dismissed_categories=dismissed_categories,
            signal_type=signal_type,
            signal_details=signal_details,
            user_feedback=user_feedback,
        )

        try:
            updated_text = generate_text(prompt, temperature=0.4, max_tokens=2048)
        except LLMError as e:
            raise ProviderError("gemini", e.message)

        try:
            client.table("user_strategic_identity").upsert({
                "user_id": user_id,
                "team_id": current.get("team_id"),
                "identity_text": updated_text,
                "identity_version": version + 1,
                "preferred_insight_categories": (
                    preferred_categories or current.get("preferred_insight_categories") or []
                ),
                "dismissed_insight_categories": (
                    dismissed_categories or current.get("dismissed_insight_categories") or []
                ),
                "insight_helpful_ratio": helpful_ratio,
                "last_updated_at": utc_now_iso(),
                "last_updated_reason": signal_type,
                "update_count": (current.get("update_count") or 0) + 1,
            }, on_conflict="user_id").execute()
        except Exception as e:
            logger.error(f"Error upserting strategic identity: {e}")
            raise DatabaseError(f"Failed to update strategic identity: {e}")

        try:
            client.table("assistant_feedback_sessions").insert({
                "user_id": user_id,
                "session_type": "identity_evolution",
                "feedback_content": f"Signal: {signal_type} - {signal_details}",
                "identity_update_applied": True,
            }).execute()
        except Exception as e:
            logger.error(f"Could not log identity evolution for {user_id}: {e}")

        logger.info(f"Strategic identity for {user_id} updated to v{version + 1}")
        return {
            "success": True,
            "identity_version": version + 1,
            "identity_text_length": len(updated_text),
        }
