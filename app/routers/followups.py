# =============================================================================
# app/routers/followups.py - Follow-Up Detection Endpoint
# =============================================================================
# Stateless text classification; the client sends the draft message and the
# assistant's last reply.
# =============================================================================

from fastapi import APIRouter

from core.models.followup import FollowUpRequest, FollowUpResponse, SelectedOptionModel
from lib.followup import (
    build_enhanced_payload_context,
    detect_follow_up,
    get_suggestion_text,
    should_show_suggestion,
)

router = APIRouter()


@router.post("/follow-up", response_model=FollowUpResponse)
async def detect_chat_follow_up(request: FollowUpRequest):
    """
    Classify a draft message as a follow-up to the assistant's last reply.

    Returns the detection, whether to show a suggestion (medium/low
    confidence only) and the context to send with the message.
    """
    last = request.last_assistant_message
    detection = detect_follow_up(
        request.message,
        last.timestamp if last else None,
        last.content if last else None,
    )

    show = should_show_suggestion(detection)
    context = build_enhanced_payload_context(
        request.message,
        last.model_dump() if last else None,
        last_user_message=request.last_user_message,
        message_count=request.message_count,
    )

    selected = detection.selected_option
    return FollowUpResponse(
        is_follow_up=detection.is_follow_up,
        confidence=detection.confidence,
        detection_type=detection.detection_type,
        matched_pattern=detection.matched_pattern,
        selected_option=(
            SelectedOptionModel(option_number=selected.option_number, option_text=selected.option_text)
            if selected else None
        ),
        show_suggestion=show,
        suggestion_text=get_suggestion_text(detection, request.assistant_name) if show else None,
        context=context,
    )
