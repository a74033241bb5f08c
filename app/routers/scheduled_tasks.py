# =============================================================================
# app/routers/scheduled_tasks.py - Scheduled Task Endpoints
# =============================================================================
# Users create recurring assistant tasks. Execution happens in the
# process_scheduled_tasks job (see /jobs).
# =============================================================================

from fastapi import APIRouter, Depends

from app.auth import AuthUser, get_current_user
from core.models.scheduled_tasks import ScheduledTaskCreate, ScheduledTaskCreated
from core.services.scheduled_task_service import ScheduledTaskService

router = APIRouter()


@router.post("", response_model=ScheduledTaskCreated)
async def create_scheduled_task(
    request: ScheduledTaskCreate,
    user: AuthUser = Depends(get_current_user),
):
    """
    Create a scheduled task for the user's team.

    The first run is computed in the task's timezone.

    Errors:
        400: User has no team, or title/ai_prompt missing
        500: Insert failed
    """
    return ScheduledTaskService.create_scheduled_task(str(user.id), request)
