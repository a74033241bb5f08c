# =============================================================================
# core/models/scheduled_tasks.py - Scheduled Task Schemas
# =============================================================================
# Users schedule recurring prompts for the assistant ("every Monday at 9,
# summarize last week's pipeline"). A cron job picks up due tasks, runs
# them through the team agent and delivers the result.
#
# Task lifecycle:
#   active -> (run) -> active        (recurring, next_run_at advanced)
#          \-> (run) -> completed    (one-time, or max_runs reached)
# =============================================================================

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class TaskType(str, Enum):
    REMINDER = "reminder"
    RESEARCH = "research"
    REPORT = "report"
    CHECK_IN = "check_in"
    CUSTOM = "custom"


class Frequency(str, Enum):
    ONCE = "once"
    DAILY = "daily"
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    MONTHLY = "monthly"


class DeliveryMethod(str, Enum):
    """
    Where results go.

    - conversation: posted into the agent chat (or Reports for report tasks)
    - notification: additionally queued as a proactive notification
    - both: same as notification
    """
    CONVERSATION = "conversation"
    NOTIFICATION = "notification"
    BOTH = "both"


class TaskStatus(str, Enum):
    ACTIVE = "active"
    PAUSED = "paused"
    COMPLETED = "completed"


class ExecutionStatus(str, Enum):
    RUNNING = "running"
    SUCCESS = "success"
    FAILED = "failed"


class ScheduledTaskCreate(BaseModel):
    """
    Schema for creating a scheduled task.

    `schedule_day` is 0=Sunday..6=Saturday for weekly/biweekly tasks and the
    day of month for monthly tasks.

    Example:
        {
            "title": "Monday pipeline recap",
            "ai_prompt": "Summarize last week's pipeline changes",
            "task_type": "report",
            "frequency": "weekly",
            "schedule_day": 1,
            "schedule_hour": 9,
            "timezone": "America/Chicago"
        }
    """
    title: str | None = None
    description: str | None = None
    task_type: TaskType | None = None
    frequency: Frequency | None = None
    schedule_day: int | None = Field(None, ge=0, le=31)
    schedule_hour: int = Field(0, ge=0, le=23)
    schedule_minute: int | None = Field(None, ge=0, le=59)
    timezone: str | None = None
    ai_prompt: str | None = None
    delivery_method: DeliveryMethod | None = None
    max_runs: int | None = Field(None, ge=1)
    metadata: dict[str, Any] = Field(default_factory=dict)


class ScheduledTaskCreated(BaseModel):
    success: bool = True
    task: dict[str, Any]
