# =============================================================================
# lib/followup.py - Follow-Up Message Detection
# =============================================================================
# Decides whether a new chat message is a reply to the assistant's last
# message ("yes", "option 2", "tell me more", "what about that?") so the
# client can offer to attach the previous response as context.
#
# Detection runs ordered regex groups first (first match wins), then falls
# back to a timing + length heuristic for short messages sent shortly after
# the assistant replied.
#
# Usage:
#   from lib.followup import detect_follow_up, should_show_suggestion
#   detection = detect_follow_up("option 2", last_ts, last_content)
#   if should_show_suggestion(detection):
#       text = get_suggestion_text(detection)
# =============================================================================

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Literal

from lib.utils import to_iso

Confidence = Literal["high", "medium", "low", "none"]

FollowUpType = Literal[
    "confirmation",
    "option_selection",
    "clarification_request",
    "elaboration_request",
    "referential",
    "continuation",
    "negation",
]

SHORT_MESSAGE_THRESHOLD = 60
FOLLOWUP_TIME_WINDOW = timedelta(minutes=3)
OPTION_TEXT_LIMIT = 200
RECENT_RESPONSE_LIMIT = 500

HEURISTIC_PATTERN = "timing_and_length_heuristic"


# =============================================================================
# Data Classes
# =============================================================================

@dataclass
class SelectedOption:
    """An option the user picked from a numbered list in the assistant's reply."""
    option_number: int
    option_text: str


@dataclass
class FollowUpDetection:
    """Outcome of follow-up detection for a single message."""
    is_follow_up: bool
    confidence: Confidence
    detection_type: FollowUpType | None
    matched_pattern: str | None
    selected_option: SelectedOption | None = None

    @classmethod
    def none(cls) -> "FollowUpDetection":
        return cls(
            is_follow_up=False,
            confidence="none",
            detection_type=None,
            matched_pattern=None,
        )


@dataclass(frozen=True)
class _PatternGroup:
    type: FollowUpType
    confidence: Confidence
    patterns: tuple[re.Pattern, ...]


def _compile(*sources: str) -> tuple[re.Pattern, ...]:
    return tuple(re.compile(source, re.IGNORECASE) for source in sources)


# Order matters: the first group with a matching pattern decides the type.
FOLLOWUP_PATTERNS: tuple[_PatternGroup, ...] = (
    _PatternGroup(
        type="confirmation",
        confidence="high",
        patterns=_compile(
            r"^(yes|yeah|yep|yup|sure|ok|okay|definitely|absolutely|correct|right|affirmative|agreed|sounds good|perfect|great|exactly|that's right|that works|go ahead|let's do it|proceed|confirm|approved)[\s.,!?]*$",
            r"^(yes|yeah|yep|yup|sure|ok|okay)[,.]?\s*(please|thanks|thank you|do it|go ahead|let's go|sounds good)",
        ),
    ),
    _PatternGroup(
        type="negation",
        confidence="high",
        patterns=_compile(
            r"^(no|nope|nah|not that|wrong|incorrect|that's not right|negative|cancel|stop|nevermind|never mind)[\s.,!?]*$",
            r"^(no|nope)[,.]?\s*(thanks|thank you|that's not what I meant|try again)",
        ),
    ),
    _PatternGroup(
        type="option_selection",
        confidence="high",
        patterns=_compile(
            r"^(option|choice|number|#)?\s*([1-9]|one|two|three|four|five|first|second|third|fourth|fifth|the first|the second|the third)[\s.,!?]*$",
            r"^(let's go with|i('ll| will) (take|choose|pick|go with)|i (want|choose|pick|prefer)|give me|show me)\s*(option|choice|number|#)?\s*([1-9]|one|two|three|four|five|the first|the second|the third)",
            r"^(the )?(first|second|third|fourth|fifth|last|top|bottom)\s*(one|option|choice)?[\s.,!?]*$",
            r"^([a-e]|option [a-e])[\s.,!?]*$",
        ),
    ),
    _PatternGroup(
        type="elaboration_request",
        confidence="high",
        patterns=_compile(
            r"^(tell me more|more details|explain|elaborate|expand on|go deeper|more info|more information|can you explain|please explain|what do you mean)[\s.,!?]*$",
            r"^(tell me more|more details|explain more|elaborate more|expand more)\s*(about|on)?\s*(this|that|it)?[\s.,!?]*$",
            r"^(can you|could you|please|would you)\s*(tell me more|explain|elaborate|expand|give me more details)",
            r"^(i('d| would) like|i want)\s*(to know more|more details|more information|you to explain)",
        ),
    ),
    _PatternGroup(
        type="clarification_request",
        confidence="high",
        patterns=_compile(
            r"^(what do you mean|i don't understand|clarify|can you clarify|what does that mean|i'm confused|not sure I follow|could you clarify)[\s.,!?]*$",
            r"^(what|how|why|when|where)\s*(exactly|specifically)?\s*(is|does|do|did|was|were|would|should|can|could)\s*(this|that|it)?[\s.,!?]*",
        ),
    ),
    _PatternGroup(
        type="referential",
        confidence="medium",
        patterns=_compile(
            r"^(this|that|it|these|those)\s+(is|are|was|were|looks|seems|sounds)?\s*(good|great|perfect|fine|interesting|helpful|useful|what I need|exactly what)?",
            r"^(do|can|could|would|should|will)\s+(this|that|it)\s+",
            r"^(what about|how about|regarding|concerning|as for)\s+(this|that|it|the|option)",
            r"\b(this|that|it)\b.{0,20}$",
        ),
    ),
    _PatternGroup(
        type="continuation",
        confidence="medium",
        patterns=_compile(
            r"^(and|also|additionally|furthermore|moreover|plus|another thing|one more|next|continue|keep going|go on|what else|anything else)[\s.,!?]",
            r"^(then|so|now)\s+(what|how|can|could|would|should)",
            r"^what('s| is)?\s*(next|the next step|after that)",
        ),
    ),
)

_REFERENTIAL_WORDS = re.compile(r"\b(this|that|it|these|those|here|there)\b", re.IGNORECASE)
_QUESTION_START = re.compile(
    r"^(what|how|why|when|where|who|which|can|could|would|should|is|are|do|does|did)\b",
    re.IGNORECASE,
)

_OPTION_NUMBER = re.compile(r"([1-9]|one|two|three|four|five|first|second|third|fourth|fifth)", re.IGNORECASE)

_NUMBER_WORDS = {
    "1": 1, "one": 1, "first": 1,
    "2": 2, "two": 2, "second": 2,
    "3": 3, "three": 3, "third": 3,
    "4": 4, "four": 4, "fourth": 4,
    "5": 5, "five": 5, "fifth": 5,
}

_LIST_LINE = re.compile(r"^[\s]*[-*•]?\s*\d+[.):>\s]|^[\s]*[-*•]\s+", re.IGNORECASE)
_BOLD_NUMBER_LINE = re.compile(r"^\s*\*\*\d+", re.IGNORECASE)
_LIST_PREFIX = re.compile(r"^[\s]*[-*•]?\s*\d+[.):>\s]*")
_BOLD_PREFIX = re.compile(r"^\*\*\d+[.):>\s]*")


# =============================================================================
# Detection
# =============================================================================

def detect_follow_up(
    message: str,
    last_assistant_timestamp: datetime | None = None,
    last_assistant_content: str | None = None,
    now: datetime | None = None,
) -> FollowUpDetection:
    """
    Classify a user message as a follow-up to the assistant's last reply.

    Args:
        message: The message the user is about to send
        last_assistant_timestamp: When the assistant last replied
        last_assistant_content: Text of that reply (used for option lookup)
        now: Reference time for the timing heuristic (defaults to UTC now)

    Returns:
        FollowUpDetection with type, confidence and the matched pattern
    """
    trimmed = message.strip()
    if not trimmed:
        return FollowUpDetection.none()

    for group in FOLLOWUP_PATTERNS:
        for pattern in group.patterns:
            if pattern.search(trimmed):
                detection = FollowUpDetection(
                    is_follow_up=True,
                    confidence=group.confidence,
                    detection_type=group.type,
                    matched_pattern=pattern.pattern,
                )
                if group.type == "option_selection" and last_assistant_content:
                    detection.selected_option = extract_selected_option(
                        trimmed, last_assistant_content
                    )
                return detection

    if len(trimmed) < SHORT_MESSAGE_THRESHOLD and _within_window(last_assistant_timestamp, now):
        has_referential_words = bool(_REFERENTIAL_WORDS.search(trimmed))
        is_question = trimmed.endswith("?") and bool(_QUESTION_START.search(trimmed))

        if has_referential_words or is_question:
            return FollowUpDetection(
                is_follow_up=True,
                confidence="low",
                detection_type="referential",
                matched_pattern=HEURISTIC_PATTERN,
            )

    return FollowUpDetection.none()


def _within_window(timestamp: datetime | None, now: datetime | None) -> bool:
    if timestamp is None:
        return False
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=timezone.utc)
    now = now or datetime.now(timezone.utc)
    return (now - timestamp) < FOLLOWUP_TIME_WINDOW


def extract_selected_option(message: str, assistant_content: str) -> SelectedOption | None:
    """
    Work out which numbered option the user picked and what it said.

    Tries explicit "N." / "**N." / "Option N" markers in the assistant's text,
    then counts list lines. If the number is known but the text can't be
    found, returns a generic "Option N".
    """
    number_match = _OPTION_NUMBER.search(message)
    if not number_match:
        return None

    option_number = _NUMBER_WORDS.get(number_match.group(1).lower())
    if not option_number:
        return None

    option_patterns = (
        rf"{option_number}[.):>\s]+([^\n]+)",
        rf"\*\*{option_number}[.):>\s]+([^\n*]+)",
        rf"option\s*{option_number}[.):>\s]*([^\n]+)",
        rf"- {option_number}[.):>\s]+([^\n]+)",
        rf"\n{option_number}[.):>\s]+([^\n]+)",
    )
    for source in option_patterns:
        match = re.search(source, assistant_content, re.IGNORECASE)
        if match and match.group(1):
            return SelectedOption(
                option_number=option_number,
                option_text=match.group(1).strip()[:OPTION_TEXT_LIMIT],
            )

    option_count = 0
    for line in assistant_content.split("\n"):
        if _LIST_LINE.search(line) or _BOLD_NUMBER_LINE.search(line):
            option_count += 1
            if option_count == option_number:
                cleaned = _BOLD_PREFIX.sub("", _LIST_PREFIX.sub("", line, count=1), count=1).strip()
                if cleaned:
                    return SelectedOption(
                        option_number=option_number,
                        option_text=cleaned[:OPTION_TEXT_LIMIT],
                    )

    return SelectedOption(option_number=option_number, option_text=f"Option {option_number}")


# =============================================================================
# Suggestion Helpers
# =============================================================================

def should_show_suggestion(detection: FollowUpDetection) -> bool:
    """
    High-confidence follow-ups are attached automatically; only the
    uncertain ones (medium/low) ask the user.
    """
    if not detection.is_follow_up:
        return False
    return detection.confidence in ("medium", "low")


def get_suggestion_text(detection: FollowUpDetection, assistant_name: str = "Astra") -> str:
    """Prompt shown above the chat input when offering to attach context."""
    kind = detection.detection_type
    if kind == "option_selection":
        if detection.selected_option:
            return (
                f"Selecting option {detection.selected_option.option_number} "
                f"from {assistant_name}'s last response?"
            )
        return f"Selecting an option from {assistant_name}'s last response?"
    if kind == "referential":
        return f"Referring to {assistant_name}'s last response?"
    if kind == "continuation":
        return f"Continuing from {assistant_name}'s last response?"
    if kind == "clarification_request":
        return f"Asking about {assistant_name}'s last response?"
    if kind == "elaboration_request":
        return f"Want more details about {assistant_name}'s last response?"
    return f"Replying to {assistant_name}'s last message?"


def build_enhanced_payload_context(
    user_message: str,
    last_assistant_message: dict[str, Any] | None,
    last_user_message: str | None = None,
    message_count: int | None = None,
    now: datetime | None = None,
) -> dict[str, Any] | None:
    """
    Build the context block sent along with a follow-up message.

    Args:
        user_message: The new message
        last_assistant_message: {"id", "content", "timestamp": datetime}
        last_user_message: The user's previous message, if any
        message_count: Messages in the conversation so far

    Returns:
        Context dict, or None when there is no assistant message to refer to
    """
    if not last_assistant_message:
        return None

    content = last_assistant_message["content"]
    timestamp: datetime = last_assistant_message["timestamp"]
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=timezone.utc)

    detection = detect_follow_up(user_message, timestamp, content, now=now)

    context: dict[str, Any] = {
        "recent_context": content,
        "recent_context_message_id": last_assistant_message["id"],
        "recent_context_timestamp": to_iso(timestamp),
        "is_likely_followup": detection.is_follow_up,
        "followup_confidence": detection.confidence,
        "followup_type": detection.detection_type,
        "conversation_context": {
            "last_user_message": last_user_message,
            "last_astra_response": content[:RECENT_RESPONSE_LIMIT],
            "message_count": message_count or 0,
        },
    }

    if detection.selected_option:
        context["selected_option"] = {
            "option_number": detection.selected_option.option_number,
            "option_text": detection.selected_option.option_text,
        }

    return context
