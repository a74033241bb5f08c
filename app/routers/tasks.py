# =============================================================================
# app/routers/tasks.py - Background Job Status Endpoints (internal)
# =============================================================================
# Status, result and cancellation of jobs queued through /jobs or by beat.
# =============================================================================

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, Path
from pydantic import BaseModel

from app.auth import require_service_role

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(require_service_role)])

TaskId = Annotated[str, Path(description="Celery task ID")]

# Human-readable message per Celery state
STATE_MESSAGES = {
    "PENDING": "Waiting in queue...",
    "STARTED": "Running...",
    "RETRY": "Retrying...",
    "SUCCESS": "Complete",
    "FAILURE": "Failed",
    "REVOKED": "Cancelled",
}


# =============================================================================
# Response Models
# =============================================================================

class TaskStatusResponse(BaseModel):
    """Response model for job status."""
    task_id: str
    status: str
    message: str | None = None
    result: dict[str, Any] | None = None
    error: str | None = None


def _async_result(task_id: str):
    from workers.celery_app import celery_app
    return celery_app.AsyncResult(task_id)


def _failure_text(result) -> str:
    return str(result.result) if result.result else "Unknown error"


# =============================================================================
# Endpoints
# =============================================================================

@router.get("/{task_id}", response_model=TaskStatusResponse)
async def get_task_status(task_id: TaskId):
    """
    Get the state of a queued job.

    States: PENDING, STARTED, RETRY, SUCCESS (with result), FAILURE (with
    error), REVOKED.
    """
    try:
        result = _async_result(task_id)
        response = TaskStatusResponse(
            task_id=task_id,
            status=result.status,
            message=STATE_MESSAGES.get(result.status),
        )
        if result.status == "SUCCESS" and isinstance(result.result, dict):
            response.result = result.result
        elif result.status == "FAILURE":
            response.error = _failure_text(result)
        return response

    except Exception as e:
        logger.error(f"Error getting task status: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to get task status: {e}")


@router.get("/{task_id}/result")
async def get_task_result(task_id: TaskId):
    """Return the job's result once it finished; otherwise its state."""
    try:
        result = _async_result(task_id)
    except Exception as e:
        logger.error(f"Error getting task result: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to get task result: {e}")

    body: dict[str, Any] = {"task_id": task_id, "status": result.status}
    if result.status == "SUCCESS":
        body["result"] = result.result
    elif result.status == "FAILURE":
        body["error"] = _failure_text(result)
    else:
        body["message"] = "Task not yet complete"
    return body


@router.delete("/{task_id}")
async def cancel_task(task_id: TaskId):
    """Revoke a job that hasn't finished yet."""
    try:
        result = _async_result(task_id)

        if result.status in ("SUCCESS", "FAILURE"):
            return {
                "task_id": task_id,
                "message": f"Task already {result.status.lower()}, cannot cancel",
                "cancelled": False,
            }

        result.revoke(terminate=True)
        return {"task_id": task_id, "message": "Task cancelled", "cancelled": True}

    except Exception as e:
        logger.error(f"Error cancelling task: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to cancel task: {e}")
