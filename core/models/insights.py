# =============================================================================
# core/models/insights.py - Insight Feedback & Strategic Identity Schemas
# =============================================================================
# Users rate the assistant's proactive insights. Each rating:
# - is stored on the insight row(s)
# - is logged as a feedback session
# - feeds the user's "strategic identity", a living profile the assistant
#   rewrites with the LLM after every signal
# =============================================================================

from enum import Enum

from pydantic import BaseModel, Field


class ProactiveLevel(str, Enum):
    """How eagerly the assistant surfaces insights."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


# One step down per auto-adjustment; "low" is the floor
LEVEL_DOWNGRADES: dict[str, str] = {
    ProactiveLevel.HIGH.value: ProactiveLevel.MEDIUM.value,
    ProactiveLevel.MEDIUM.value: ProactiveLevel.LOW.value,
}


class InsightFeedbackRequest(BaseModel):
    """
    Feedback on one insight or a whole batch.

    Only fields actually sent are written to the insight rows, so
    "not provided" and false/null stay distinguishable.

    The rating user comes from the access token; `user_id` is optional
    and must match it when sent.

    Example:
        {"insight_id": "9f1c...", "was_helpful": true}
    """
    user_id: str | None = None
    insight_id: str | None = None
    batch_id: str | None = None
    was_helpful: bool | None = None
    user_rating: int | None = Field(None, description="Stars; clamped to 1..5")
    user_feedback: str | None = None
    was_dismissed: bool | None = None


class InsightFeedbackResponse(BaseModel):
    success: bool = True
    updated_insights: int = 0
    feedback_recorded: bool = True


class IdentityUpdateRequest(BaseModel):
    """A new signal for the strategic identity (feedback, onboarding, ...)."""
    user_id: str | None = None
    signal_type: str | None = None
    signal_details: str | None = None
    user_feedback: str | None = None


class IdentityUpdateResponse(BaseModel):
    success: bool = True
    identity_version: int
    identity_text_length: int
