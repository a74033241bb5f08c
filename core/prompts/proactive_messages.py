# =============================================================================
# core/prompts/proactive_messages.py - Proactive Message Prompts
# =============================================================================
# Title + prompt template per notification event type. The event context is
# rendered as indented JSON in place of {context}.
#
# Usage:
#   title, prompt = build_proactive_prompt("report_ready", {"report": "..."})
# =============================================================================

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class MessageTemplate:
    title: str
    prompt: str


EVENT_TYPE_TEMPLATES: dict[str, MessageTemplate] = {
    "daily_summary": MessageTemplate(
        title="Your Daily Briefing",
        prompt="""Generate a brief, friendly daily summary for a team member. Include:
- A warm greeting appropriate for the time of day
- Key highlights from team activity (if provided)
- Any important upcoming items
- An encouraging closing

Context: {context}

Keep it conversational, brief (2-3 short paragraphs), and actionable. Use a professional but friendly tone.""",
    ),
    "report_ready": MessageTemplate(
        title="Your Report is Ready",
        prompt="""Generate a brief notification message that a report has been generated. Include:
- The report name/type
- A brief summary of what the report contains
- Encouragement to review it

Context: {context}

Keep it to 1-2 short paragraphs. Be informative and helpful.""",
    ),
    "goal_milestone": MessageTemplate(
        title="Goal Progress Update",
        prompt="""Generate an encouraging message about goal progress. Include:
- The specific milestone or progress achieved
- Recognition of the accomplishment
- Motivation to continue

Context: {context}

Keep it celebratory but brief (1-2 paragraphs). Be genuinely encouraging.""",
    ),
    "meeting_reminder": MessageTemplate(
        title="Meeting Reminder",
        prompt="""Generate a helpful meeting reminder message. Include:
- The meeting details (name, time if provided)
- Any relevant context or preparation suggestions
- A brief helpful note

Context: {context}

Keep it concise (1 paragraph) and practical.""",
    ),
    "action_item_due": MessageTemplate(
        title="Action Item Reminder",
        prompt="""Generate a friendly reminder about an upcoming deadline or action item. Include:
- What's due and when
- A gentle nudge to complete it
- Offer of assistance if needed

Context: {context}

Keep it brief and non-pressuring but clear about the deadline.""",
    ),
    "team_mention": MessageTemplate(
        title="You Were Mentioned",
        prompt="""Generate a brief notification that someone mentioned this user in team chat. Include:
- Who mentioned them (if provided)
- A brief context of what was discussed
- Encouragement to respond

Context: {context}

Keep it very brief (1 short paragraph) and informative.""",
    ),
    "insight_discovered": MessageTemplate(
        title="New Insight Discovered",
        prompt="""Generate an intriguing message about an AI-discovered insight. Include:
- A teaser about what was found
- Why it might be interesting or valuable
- Invitation to explore more

Context: {context}

Keep it engaging and curiosity-provoking (1-2 paragraphs).""",
    ),
    "sync_complete": MessageTemplate(
        title="Document Sync Complete",
        prompt="""Generate a brief notification that document sync has completed. Include:
- Summary of what was synced (number of files if provided)
- Any highlights or new content
- Brief next steps

Context: {context}

Keep it informative but brief (1 paragraph).""",
    ),
    "weekly_recap": MessageTemplate(
        title="Your Weekly Recap",
        prompt="""Generate a comprehensive but concise weekly summary. Include:
- Key accomplishments and highlights
- Team activity summary
- Upcoming priorities for next week
- An encouraging note

Context: {context}

Keep it structured, scannable, and motivating (3-4 short paragraphs or bullet points).""",
    ),
    "custom": MessageTemplate(
        title="Message from Astra",
        prompt="""Generate a helpful message based on the following context:

Context: {context}

Be clear, friendly, and helpful. Keep it appropriately brief based on the content.""",
    ),
}

SMS_LIMIT = 160

_BOLD = re.compile(r"\*\*(.*?)\*\*")


def get_template(event_type: str) -> MessageTemplate:
    """Template for an event type; unknown types use "custom"."""
    return EVENT_TYPE_TEMPLATES.get(event_type, EVENT_TYPE_TEMPLATES["custom"])


def build_proactive_prompt(event_type: str, context: dict[str, Any]) -> tuple[str, str]:
    """
    Returns:
        (title, prompt) for the event
    """
    template = get_template(event_type)
    rendered = json.dumps(context, indent=2, default=str)
    return template.title, template.prompt.replace("{context}", rendered, 1)


def format_for_channel(message: str, channel: str) -> str:
    """
    Adapt generated markdown to a delivery channel.

    - sms: 160 chars max (157 + "...")
    - whatsapp: **bold** -> *bold*
    - telegram: **bold** -> <b>bold</b> (HTML parse mode)
    - email and anything else: unchanged
    """
    if channel == "sms":
        return message if len(message) <= SMS_LIMIT else message[: SMS_LIMIT - 3] + "..."
    if channel == "whatsapp":
        return _BOLD.sub(r"*\1*", message)
    if channel == "telegram":
        return _BOLD.sub(r"<b>\1</b>", message)
    return message
