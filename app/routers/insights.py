# =============================================================================
# app/routers/insights.py - Insight Feedback Endpoints
# =============================================================================
# - POST /insights/feedback: the signed-in user rates an insight or batch
# - POST /insights/identity: apply a signal to the strategic identity
#   (internal, service-role only)
#
# Both handlers are plain `def`: the identity rewrite waits on the LLM, so
# FastAPI runs them in its threadpool.
# =============================================================================

from fastapi import APIRouter, Depends, HTTPException, status

from app.auth import AuthUser, get_current_user, require_service_role
from core.models.insights import (
    IdentityUpdateRequest,
    IdentityUpdateResponse,
    InsightFeedbackRequest,
    InsightFeedbackResponse,
)
from core.services.insight_service import InsightService

router = APIRouter()


@router.post("/feedback", response_model=InsightFeedbackResponse)
def collect_insight_feedback(
    request: InsightFeedbackRequest,
    user: AuthUser = Depends(get_current_user),
):
    """
    Record feedback on one insight (insight_id) or a whole batch (batch_id).

    The rating user is the token's user; a body `user_id` naming anyone
    else is rejected. Only fields present in the body are written.

    Errors:
        403: Body user_id differs from the token's user
    """
    user_id = str(user.id)
    if request.user_id and request.user_id.lower() != user_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Cannot record feedback for another user",
        )

    provided = request.model_dump(
        exclude_unset=True,
        include={"was_helpful", "user_rating", "user_feedback", "was_dismissed"},
    )
    return InsightService.collect_insight_feedback(
        user_id,
        insight_id=request.insight_id,
        batch_id=request.batch_id,
        feedback=provided,
    )


@router.post(
    "/identity",
    response_model=IdentityUpdateResponse,
    dependencies=[Depends(require_service_role)],
)
def update_strategic_identity(request: IdentityUpdateRequest):
    """Rewrite the user's strategic identity for a new signal."""
    return InsightService.update_strategic_identity(
        request.user_id,
        request.signal_type,
        request.signal_details,
        user_feedback=request.user_feedback,
    )
