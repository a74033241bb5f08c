# =============================================================================
# core/prompts/scheduled_task.py - Scheduled Task Prompt
# =============================================================================
# Wraps a user's scheduled-task instructions with who is asking, what the
# team cares about and the grounding rules for the team agent.
# =============================================================================

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from lib.utils import to_iso, utc_now


@dataclass
class TaskUserContext:
    """Who a scheduled task runs for."""
    user_name: str
    user_email: str
    team_name: str
    team_id: str | None
    agent_name: str = "Astra"
    priorities: list[str] = field(default_factory=list)
    user_priorities: list[str] = field(default_factory=list)
    active_skills: list[str] = field(default_factory=list)


def build_task_prompt(task: dict[str, Any], ctx: TaskUserContext) -> str:
    """Build the prompt sent to the team agent for one task execution."""
    priorities_section = f"\nTeam priorities: {', '.join(ctx.priorities)}" if ctx.priorities else ""
    user_priorities_section = (
        f"\nPersonal priorities: {', '.join(ctx.user_priorities)}" if ctx.user_priorities else ""
    )
    skills_section = f"\nActive skills: {', '.join(ctx.active_skills)}" if ctx.active_skills else ""

    description = f"Description: {task['description']}" if task.get("description") else ""
    frequency = task.get("frequency") or "once"
    recurrence = f" (runs {frequency})" if frequency != "once" else ""
    run_number = (task.get("run_count") or 0) + 1

    return f"""You are {ctx.agent_name}, the AI assistant for the {ctx.team_name} team.
You are executing a scheduled {task.get("task_type")} for {ctx.user_name}.

Task: "{task.get("title")}"
{description}
{priorities_section}{user_priorities_section}{skills_section}

The user set up this task with the following instructions:
{task.get("ai_prompt")}

This is execution #{run_number}{recurrence}.
Current date: {to_iso(utc_now())}.

IMPORTANT RULES:
- Use ONLY the team's actual synced document data to inform your response. Do NOT fabricate numbers, metrics, or statistics.
- If no relevant data is found, clearly state that and suggest what data the user should sync.
- Address {ctx.user_name} by name.
- Be concise but thorough. Use markdown formatting with bold headers and bullet points.
- Do not mention that you are an AI or that this is automated."""
