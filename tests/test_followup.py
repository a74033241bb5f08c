# =============================================================================
# tests/test_followup.py - Follow-Up Detection Tests
# =============================================================================
# This module contains tests for:
# - Pattern groups and their priority order
# - The timing + length heuristic
# - Option extraction from the assistant's reply
# - Suggestion text and the enhanced payload context
#
# Run with: pytest tests/test_followup.py -v
# =============================================================================

from datetime import datetime, timedelta, timezone

import pytest

from lib.followup import (
    HEURISTIC_PATTERN,
    FollowUpDetection,
    SelectedOption,
    build_enhanced_payload_context,
    detect_follow_up,
    extract_selected_option,
    get_suggestion_text,
    should_show_suggestion,
)

NOW = datetime(2025, 3, 1, 14, 0, tzinfo=timezone.utc)

OPTIONS_REPLY = """Here are a few directions we could take:

1. Review the quarterly pipeline
2. Draft the board update
3. Schedule a team retro"""


# =============================================================================
# Pattern Detection
# =============================================================================

class TestPatternDetection:
    """Test the ordered regex groups."""

    @pytest.mark.parametrize("message", ["yes", "Sounds good!", "ok, go ahead", "Perfect."])
    def test_confirmations(self, message):
        detection = detect_follow_up(message)

        assert detection.is_follow_up is True
        assert detection.detection_type == "confirmation"
        assert detection.confidence == "high"

    @pytest.mark.parametrize("message", ["no", "Nope.", "never mind", "no thanks"])
    def test_negations(self, message):
        detection = detect_follow_up(message)

        assert detection.detection_type == "negation"
        assert detection.confidence == "high"

    @pytest.mark.parametrize("message", ["2", "option 3", "the second one", "b", "I'll take the first"])
    def test_option_selection(self, message):
        detection = detect_follow_up(message)

        assert detection.detection_type == "option_selection"
        assert detection.confidence == "high"

    def test_elaboration_request(self):
        detection = detect_follow_up("tell me more")

        assert detection.detection_type == "elaboration_request"

    def test_clarification_request(self):
        detection = detect_follow_up("I don't understand")

        assert detection.detection_type == "clarification_request"

    def test_referential_is_medium_confidence(self):
        detection = detect_follow_up("what about the second quarter numbers")

        assert detection.detection_type == "referential"
        assert detection.confidence == "medium"

    def test_continuation(self):
        detection = detect_follow_up("also, add the marketing budget")

        assert detection.detection_type == "continuation"
        assert detection.confidence == "medium"

    def test_confirmation_wins_over_later_groups(self):
        """'ok' matches confirmation before any referential pattern."""
        detection = detect_follow_up("ok")

        assert detection.detection_type == "confirmation"

    def test_empty_message_is_not_follow_up(self):
        detection = detect_follow_up("   ")

        assert detection == FollowUpDetection.none()

    def test_unrelated_message_is_not_follow_up(self):
        detection = detect_follow_up("Summarize our hiring plan for next year")

        assert detection.is_follow_up is False
        assert detection.confidence == "none"
        assert detection.detection_type is None


# =============================================================================
# Heuristic
# =============================================================================

class TestHeuristic:
    """Test the short-message fallback."""

    def test_short_referential_question_within_window(self):
        # Arrange: "here" is referential but matches none of the groups
        message = "who owns the budget here"
        last_reply = NOW - timedelta(minutes=1)

        # Act
        detection = detect_follow_up(message, last_reply, now=NOW)

        # Assert
        assert detection.is_follow_up is True
        assert detection.confidence == "low"
        assert detection.detection_type == "referential"
        assert detection.matched_pattern == HEURISTIC_PATTERN

    def test_outside_window_is_not_follow_up(self):
        detection = detect_follow_up(
            "who owns the budget here", NOW - timedelta(minutes=10), now=NOW
        )

        assert detection.is_follow_up is False

    def test_no_timestamp_is_not_follow_up(self):
        detection = detect_follow_up("who owns the budget here", None, now=NOW)

        assert detection.is_follow_up is False

    def test_long_message_skips_heuristic(self):
        message = "who owns the budget here " + "and the forecast for next year " * 3

        detection = detect_follow_up(message, NOW - timedelta(seconds=30), now=NOW)

        assert detection.is_follow_up is False


# =============================================================================
# Option Extraction
# =============================================================================

class TestOptionExtraction:
    """Test matching the picked option to the assistant's list."""

    def test_numbered_option(self):
        option = extract_selected_option("option 2", OPTIONS_REPLY)

        assert option == SelectedOption(option_number=2, option_text="Draft the board update")

    def test_word_number(self):
        option = extract_selected_option("the third one", OPTIONS_REPLY)

        assert option.option_number == 3
        assert option.option_text == "Schedule a team retro"

    def test_option_prefixed_list(self):
        reply = "Option 1: Review the pipeline\nOption 2: Draft the update"

        option = extract_selected_option("option 2", reply)

        assert option.option_number == 2
        assert option.option_text == "Draft the update"

    def test_unknown_text_falls_back_to_generic_label(self):
        option = extract_selected_option("option 5", OPTIONS_REPLY)

        assert option.option_number == 5
        assert option.option_text == "Option 5"

    def test_no_number_returns_none(self):
        assert extract_selected_option("the blue card", OPTIONS_REPLY) is None

    def test_detection_attaches_option(self):
        detection = detect_follow_up("2", NOW, OPTIONS_REPLY, now=NOW)

        assert detection.selected_option.option_text == "Draft the board update"


# =============================================================================
# Suggestions
# =============================================================================

class TestSuggestions:
    """Test when and how the suggestion is shown."""

    def test_high_confidence_is_not_suggested(self):
        assert should_show_suggestion(detect_follow_up("yes")) is False

    def test_medium_confidence_is_suggested(self):
        assert should_show_suggestion(detect_follow_up("also, what about Q4?")) is True

    def test_non_follow_up_is_not_suggested(self):
        assert should_show_suggestion(FollowUpDetection.none()) is False

    def test_option_text_names_the_option(self):
        detection = detect_follow_up("2", NOW, OPTIONS_REPLY, now=NOW)

        text = get_suggestion_text(detection, "Nova")

        assert text == "Selecting option 2 from Nova's last response?"

    def test_referential_text(self):
        detection = detect_follow_up("what about the second quarter numbers")

        assert get_suggestion_text(detection) == "Referring to Astra's last response?"


# =============================================================================
# Payload Context
# =============================================================================

class TestPayloadContext:
    """Test the context block sent with a follow-up."""

    def test_no_assistant_message(self):
        assert build_enhanced_payload_context("yes", None) is None

    def test_context_fields(self):
        # Arrange
        last = {"id": "msg-1", "content": OPTIONS_REPLY, "timestamp": NOW - timedelta(minutes=1)}

        # Act
        context = build_enhanced_payload_context(
            "option 1", last, last_user_message="what next?", message_count=4, now=NOW
        )

        # Assert
        assert context["recent_context"] == OPTIONS_REPLY
        assert context["recent_context_message_id"] == "msg-1"
        assert context["recent_context_timestamp"] == "2025-03-01T13:59:00.000Z"
        assert context["is_likely_followup"] is True
        assert context["followup_type"] == "option_selection"
        assert context["conversation_context"]["message_count"] == 4
        assert context["selected_option"] == {
            "option_number": 1,
            "option_text": "Review the quarterly pipeline",
        }

    def test_long_reply_is_truncated_in_conversation_context(self):
        last = {"id": "msg-1", "content": "x" * 800, "timestamp": NOW}

        context = build_enhanced_payload_context("tell me more", last, now=NOW)

        assert len(context["conversation_context"]["last_astra_response"]) == 500
        assert context["conversation_context"]["message_count"] == 0
