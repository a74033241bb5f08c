# =============================================================================
# core/models/followup.py - Follow-Up Detection Schemas
# =============================================================================
# The chat client asks, before sending a message, whether it looks like a
# reply to the assistant's last message. Medium/low confidence matches show
# a suggestion ("Referring to Astra's last response?"); accepting it sends
# the returned context along with the message.
# =============================================================================

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field


class AssistantMessageRef(BaseModel):
    """The assistant message the user may be replying to."""
    id: str
    content: str
    timestamp: datetime


class FollowUpRequest(BaseModel):
    """
    Example:
        {
            "message": "tell me more about that",
            "last_assistant_message": {
                "id": "msg_123",
                "content": "Here are three options: ...",
                "timestamp": "2025-03-01T14:00:00Z"
            },
            "assistant_name": "Astra"
        }
    """
    message: str = Field(..., max_length=10000)
    last_assistant_message: AssistantMessageRef | None = None
    last_user_message: str | None = None
    message_count: int | None = None
    assistant_name: str = "Astra"


class SelectedOptionModel(BaseModel):
    option_number: int
    option_text: str


class FollowUpResponse(BaseModel):
    """
    Detection result plus what the client needs to render and send.

    `suggestion_text` is only set when a suggestion should be shown;
    `context` is None when there is no assistant message to attach.
    """
    is_follow_up: bool
    confidence: Literal["high", "medium", "low", "none"]
    detection_type: str | None = None
    matched_pattern: str | None = None
    selected_option: SelectedOptionModel | None = None
    show_suggestion: bool = False
    suggestion_text: str | None = None
    context: dict[str, Any] | None = None
