# =============================================================================
# core/prompts/ - Prompts for the Assistant
# =============================================================================
# - proactive_messages.py: per-event notification templates + channel format
# - strategic_identity.py: identity rewrite prompt
# - scheduled_task.py: team-agent prompt for scheduled tasks
# =============================================================================

from core.prompts.proactive_messages import (
    EVENT_TYPE_TEMPLATES,
    build_proactive_prompt,
    format_for_channel,
    get_template,
)
from core.prompts.scheduled_task import TaskUserContext, build_task_prompt
from core.prompts.strategic_identity import build_identity_prompt

__all__ = [
    "EVENT_TYPE_TEMPLATES",
    "build_proactive_prompt",
    "format_for_channel",
    "get_template",
    "TaskUserContext",
    "build_task_prompt",
    "build_identity_prompt",
]
