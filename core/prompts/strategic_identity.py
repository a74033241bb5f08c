# =============================================================================
# core/prompts/strategic_identity.py - Strategic Identity Prompt
# =============================================================================
# The strategic identity is a third-person profile of how a user works with
# the assistant. Every feedback signal rewrites it through the LLM, keeping
# still-valid observations and noting how preferences evolve.
#
# Usage:
#   prompt = build_identity_prompt(user_name="Jane", version=3, ...)
# =============================================================================

from __future__ import annotations

from typing import Any


def build_identity_prompt(
    user_name: str,
    current_text: str,
    version: int,
    priorities: list[dict[str, Any]],
    proactive_level: str,
    helpful_ratio: float,
    helpful_count: int,
    total_rated: int,
    preferred_categories: list[str],
    dismissed_categories: list[str],
    signal_type: str,
    signal_details: str | None,
    user_feedback: str | None = None,
) -> str:
    """Build the rewrite prompt for a user's strategic identity."""
    priorities_block = "\n".join(
        f"- {p.get('priority_type')}: {p.get('priority_value')}" for p in priorities
    ) or "None set"

    feedback_line = f'- User feedback: "{user_feedback}"' if user_feedback else ""

    return f"""You are maintaining the Strategic Identity for "{user_name}".
This is a living profile document that captures their communication preferences, decision-making patterns, current priorities, and how they interact with AI-generated insights.

CURRENT IDENTITY (version {version}):
{current_text or "(No identity established yet -- this is the initial creation.)"}

USER PRIORITIES:
{priorities_block}

PROACTIVE LEVEL: {proactive_level}

RECENT INSIGHT ENGAGEMENT:
- Helpful ratio: {round(helpful_ratio * 100)}% ({helpful_count}/{total_rated} rated helpful)
- Preferred categories: {", ".join(preferred_categories) or "Not enough data"}
- Dismissed categories: {", ".join(dismissed_categories) or "None"}

NEW SIGNAL:
- Event: {signal_type}
- Details: {signal_details}
{feedback_line}

INSTRUCTIONS:
Update the identity text to reflect this new signal. Follow these rules:
1. Preserve existing observations that are still valid
2. Add new patterns discovered from this signal
3. If the new signal contradicts an old observation, note the evolution (e.g., "Previously preferred X, now shows preference for Y")
4. Keep the identity under 500 words
5. Focus on ACTIONABLE patterns that help serve this user better
6. Write in third person (e.g., "{user_name} prefers...")
7. Include observations about: communication style, content preferences, engagement patterns, current focus areas, and decision-making tendencies

Return ONLY the updated identity text, no explanations or metadata."""
