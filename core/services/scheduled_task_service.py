# =============================================================================
# core/services/scheduled_task_service.py - Scheduled Task Operations
# =============================================================================
# Creation of user scheduled tasks and the cron pass that executes the due
# ones through the team agent (n8n webhook).
#
# Execution flow per task:
# 1. Insert a scheduled_task_executions row (running)
# 2. Load who the task runs for and build the prompt
# 3. Ask the team agent; an empty answer fails the execution
# 4. Deliver (Reports tab or agent conversation, optional notification)
# 5. Advance the task's schedule
# =============================================================================

import logging
from datetime import datetime, timedelta
from typing import Any
from uuid import uuid4

import httpx

from app.config import settings
from app.exceptions import DatabaseError, InvalidRequestError
from core.models.scheduled_tasks import (
    DeliveryMethod,
    ExecutionStatus,
    Frequency,
    ScheduledTaskCreate,
    TaskStatus,
    TaskType,
)
from core.prompts.scheduled_task import TaskUserContext, build_task_prompt
from lib.scheduling import DEFAULT_TIMEZONE, advance_run_at, first_run_at
from lib.supabase_client import SupabaseClient, maybe_one, rows
from lib.utils import to_iso, utc_now

logger = logging.getLogger(__name__)

# Tasks due within this window are picked up by the current pass
DUE_WINDOW = timedelta(minutes=2)
MAX_TASKS_PER_RUN = 50
QUEUE_MESSAGE_LIMIT = 500

NO_AGENT_RESPONSE = (
    "No response from team agent. The task requires synced document data "
    "but could not reach the data retrieval service."
)


def _as_list(value: Any) -> list[str]:
    """Priorities are stored either as a JSON array or as an object of values."""
    if isinstance(value, list):
        return value
    if isinstance(value, dict):
        return list(value.values())
    return []


def _value(field: Any) -> Any:
    return field.value if hasattr(field, "value") else field


class ScheduledTaskService:
    """Service for user scheduled tasks."""

    # -------------------------------------------------------------------------
    # Create
    # -------------------------------------------------------------------------

    @staticmethod
    def create_scheduled_task(
        user_id: str,
        payload: ScheduledTaskCreate,
        now: datetime | None = None,
    ) -> dict[str, Any]:
        """
        Create a task for the user's team and compute its first run.

        Returns:
            {success, task}

        Raises:
            InvalidRequestError: User has no team / title or prompt missing
            DatabaseError: Insert failed
        """
        user = SupabaseClient.fetch_user(user_id, columns="team_id")
        if not user or not user.get("team_id"):
            raise InvalidRequestError("No team found")

        if not payload.title or not payload.ai_prompt:
            raise InvalidRequestError("Title and ai_prompt are required")

        timezone_name = payload.timezone or DEFAULT_TIMEZONE
        schedule_minute = payload.schedule_minute or 0
        frequency = _value(payload.frequency) or Frequency.ONCE.value
        task_type = _value(payload.task_type) or TaskType.CUSTOM.value
        delivery_method = _value(payload.delivery_method) or DeliveryMethod.CONVERSATION.value

        next_run_at = first_run_at(
            frequency,
            payload.schedule_hour,
            schedule_minute,
            payload.schedule_day,
            timezone_name,
            now or utc_now(),
        )

        features_used = ["Team Data Search"]
        features_used.append("Reports View" if task_type == TaskType.REPORT.value else "Agent Chat")
        if delivery_method in (DeliveryMethod.NOTIFICATION.value, DeliveryMethod.BOTH.value):
            features_used.append("Notifications")

        client = SupabaseClient.get_client()
        try:
            response = client.table("user_scheduled_tasks").insert({
                "user_id": user_id,
                "team_id": user["team_id"],
                "task_type": task_type,
                "title": payload.title,
                "description": payload.description or "",
                "frequency": frequency,
                "schedule_day": payload.schedule_day,
                "schedule_hour": payload.schedule_hour,
                "schedule_minute": schedule_minute,
                "timezone": timezone_name,
                "next_run_at": to_iso(next_run_at),
                "status": TaskStatus.ACTIVE.value,
                "ai_prompt": payload.ai_prompt,
                "delivery_method": delivery_method,
                "max_runs": payload.max_runs or None,
                "metadata": {**payload.metadata, "features_used": features_used},
            }).execute()
            task = maybe_one(response)
        except Exception as e:
            logger.error(f"Insert error: {e}")
            raise DatabaseError("Failed to create task", details=str(e))

        if not task:
            raise DatabaseError("Failed to create task", details="Insert returned no data")

        logger.info(f"Created scheduled task {task.get('id')} for {user_id}, next run {to_iso(next_run_at)}")
        return {"success": True, "task": task}

    # -------------------------------------------------------------------------
    # Process (cron)
    # -------------------------------------------------------------------------

    @staticmethod
    def process_scheduled_tasks(now: datetime | None = None) -> dict[str, Any]:
        """
        Execute every active task due within the next two minutes.

        Tasks run one after another; a failing task is recorded and the
        pass moves on.

        Raises:
            DatabaseError: Due tasks could not be fetched
        """
        now = now or utc_now()
        client = SupabaseClient.get_client()

        try:
            due_tasks = rows(
                client.table("user_scheduled_tasks")
                .select("*")
                .eq("status", TaskStatus.ACTIVE.value)
                .not_.is_("next_run_at", "null")
                .lte("next_run_at", to_iso(now + DUE_WINDOW))
                .order("next_run_at")
                .limit(MAX_TASKS_PER_RUN)
                .execute()
            )
        except Exception as e:
            logger.error(f"Failed to fetch due tasks: {e}")
            raise DatabaseError("Failed to fetch tasks")

        if not due_tasks:
            return {"success": True, "processed": 0, "message": "No tasks due"}

        logger.info(f"Processing {len(due_tasks)} due tasks")

        processed = 0
        failed = 0
        results = []

        for task in due_tasks:
            status = ScheduledTaskService._run_task(task, now)
            if status == ExecutionStatus.SUCCESS:
                processed += 1
            else:
                failed += 1
            results.append({"taskId": task["id"], "status": status.value})

        return {
            "success": True,
            "processed": processed,
            "failed": failed,
            "total": len(due_tasks),
            "results": results,
        }

    @staticmethod
    def _run_task(task: dict[str, Any], now: datetime) -> ExecutionStatus:
        client = SupabaseClient.get_client()
        execution_id = str(uuid4())

        try:
            client.table("scheduled_task_executions").insert({
                "id": execution_id,
                "task_id": task["id"],
                "user_id": task["user_id"],
                "team_id": task.get("team_id"),
                "status": ExecutionStatus.RUNNING.value,
            }).execute()

            ctx = ScheduledTaskService.load_user_context(task["user_id"], task.get("team_id"))
            prompt = build_task_prompt(task, ctx)

            result_message = ""
            if settings.N8N_WEBHOOK_URL:
                result_message = ScheduledTaskService.ask_team_agent(
                    prompt, task.get("team_id"), task["user_id"]
                )

            if not result_message:
                logger.warning(f"Task {task['id']}: team agent unavailable or returned empty, skipping execution")
                ScheduledTaskService._finish_execution(execution_id, ExecutionStatus.FAILED, error=NO_AGENT_RESPONSE)
                return ExecutionStatus.FAILED

            ScheduledTaskService._deliver_result(task, ctx, execution_id, result_message)
            ScheduledTaskService._finish_execution(
                execution_id, ExecutionStatus.SUCCESS, result_message=result_message
            )
            ScheduledTaskService._advance(task, now, result_message)

            logger.info(f"Task {task['id']} ({task.get('title')}) executed successfully")
            return ExecutionStatus.SUCCESS

        except Exception as e:
            logger.error(f"Task {task['id']} failed: {e}")
            try:
                ScheduledTaskService._finish_execution(execution_id, ExecutionStatus.FAILED, error=str(e))
            except Exception as update_error:
                logger.error(f"Could not mark execution {execution_id} failed: {update_error}")
            return ExecutionStatus.FAILED

    @staticmethod
    def load_user_context(user_id: str, team_id: str | None) -> TaskUserContext:
        """Load the names, priorities and skills a task prompt needs."""
        client = SupabaseClient.get_client()

        user = SupabaseClient.fetch_user(user_id, columns="email, name") or {}
        team = maybe_one(
            client.table("teams").select("name").eq("id", team_id).maybe_single().execute()
        ) or {}
        agent = maybe_one(
            client.table("team_agent_settings").select("agent_name").eq("team_id", team_id).maybe_single().execute()
        ) or {}
        team_priorities = maybe_one(
            client.table("team_priorities").select("priorities").eq("team_id", team_id).maybe_single().execute()
        ) or {}
        user_priorities = maybe_one(
            client.table("user_priorities").select("priorities").eq("user_id", user_id).maybe_single().execute()
        ) or {}
        skills = rows(
            client.table("assistant_skills")
            .select("skill_id, display_name")
            .eq("user_id", user_id)
            .eq("is_active", True)
            .execute()
        )

        email = user.get("email") or ""
        return TaskUserContext(
            user_name=user.get("name") or (email.split("@")[0] if email else "") or "there",
            user_email=email,
            team_name=team.get("name") or "Your Team",
            team_id=team_id,
            agent_name=agent.get("agent_name") or "Astra",
            priorities=_as_list(team_priorities.get("priorities")),
            user_priorities=_as_list(user_priorities.get("priorities")),
            active_skills=[s.get("display_name") for s in skills],
        )

    @staticmethod
    def ask_team_agent(prompt: str, team_id: str | None, user_id: str) -> str:
        """
        Send a prompt to the team agent webhook.

        Returns:
            The agent's answer, or "" when the agent is unreachable or fails
        """
        try:
            response = httpx.post(
                settings.N8N_WEBHOOK_URL,
                json={
                    "prompt": prompt,
                    "team_id": team_id,
                    "user_id": user_id,
                    "source": "scheduled_task",
                },
                headers={"Authorization": f"Bearer {settings.SUPABASE_SERVICE_KEY}"},
                timeout=settings.HTTP_TIMEOUT_SECONDS,
            )
            if response.status_code >= 400:
                logger.error(
                    f"Agent response error ({response.status_code}): {response.text[:200]}"
                )
                return ""
            result = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Error calling team agent: {e}")
            return ""

        if not isinstance(result, dict):
            return ""
        return result.get("output") or result.get("response") or result.get("message") or ""

    @staticmethod
    def _deliver_result(
        task: dict[str, Any],
        ctx: TaskUserContext,
        execution_id: str,
        result_message: str,
    ) -> None:
        client = SupabaseClient.get_client()
        task_metadata = {
            "source": "scheduled_task",
            "task_id": task["id"],
            "task_title": task.get("title"),
            "task_type": task.get("task_type"),
            "execution_id": execution_id,
            "frequency": task.get("frequency"),
        }

        if task.get("task_type") == TaskType.REPORT.value:
            client.table("astra_chats").insert({
                "user_id": task["user_id"],
                "user_email": ctx.user_email,
                "mode": "reports",
                "message": result_message,
                "message_type": "astra",
                "metadata": task_metadata,
            }).execute()

            first_name = ctx.user_name.split(" ")[0] or ctx.user_name
            SupabaseClient.insert_agent_message(
                task["user_id"],
                task.get("team_id"),
                f'Hi {first_name}, your scheduled report **"{task.get("title")}"** just finished '
                "running. You can view the full results in your **Reports** tab.",
                metadata={
                    "source": "scheduled_task_notification",
                    "task_id": task["id"],
                    "task_title": task.get("title"),
                    "action": {"type": "navigate", "destination": "reports"},
                },
            )
        else:
            SupabaseClient.insert_agent_message(
                task["user_id"],
                task.get("team_id"),
                result_message,
                metadata={**task_metadata, "action": {"type": "none"}},
            )

    @staticmethod
    def _finish_execution(
        execution_id: str,
        status: ExecutionStatus,
        error: str | None = None,
        result_message: str | None = None,
    ) -> None:
        fields: dict[str, Any] = {"status": status.value, "completed_at": to_iso(utc_now())}
        if error is not None:
            fields["error"] = error
        if result_message is not None:
            fields["result_message"] = result_message

        client = SupabaseClient.get_client()
        client.table("scheduled_task_executions").update(fields).eq("id", execution_id).execute()

    @staticmethod
    def _advance(task: dict[str, Any], now: datetime, result_message: str) -> None:
        """Bump the run counter, schedule the next run and queue a notification."""
        client = SupabaseClient.get_client()

        run_count = (task.get("run_count") or 0) + 1
        max_runs = task.get("max_runs")
        is_done = bool(max_runs and run_count >= max_runs) or task.get("frequency") == Frequency.ONCE.value

        next_run = None
        if not is_done:
            next_run = advance_run_at(
                task.get("frequency"),
                task.get("schedule_hour") or 0,
                task.get("schedule_minute") or 0,
                task.get("schedule_day"),
                task.get("timezone"),
                now,
                not_before=now + DUE_WINDOW,
            )

        client.table("user_scheduled_tasks").update({
            "run_count": run_count,
            "last_run_at": to_iso(now),
            "next_run_at": to_iso(next_run) if next_run else None,
            "status": TaskStatus.COMPLETED.value if is_done else TaskStatus.ACTIVE.value,
        }).eq("id", task["id"]).execute()

        if task.get("delivery_method") in (DeliveryMethod.NOTIFICATION.value, DeliveryMethod.BOTH.value):
            client.table("proactive_notification_queue").insert({
                "user_id": task["user_id"],
                "event_type": "custom",
                "priority": 5,
                "context": {
                    "task_id": task["id"],
                    "task_title": task.get("title"),
                    "message": result_message[:QUEUE_MESSAGE_LIMIT],
                },
                "scheduled_for": to_iso(now),
            }).execute()
