# =============================================================================
# app/routers/jobs.py - Periodic Job Triggers (internal)
# =============================================================================
# Queues one of the periodic jobs outside its beat schedule. Progress and
# results are read through /api/v1/tasks/{task_id}.
# =============================================================================

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Path

from app.auth import require_service_role
from app.exceptions import NotFoundError
from core.models.jobs import JobSubmitResponse

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(require_service_role)])


@router.post("/{job_name}", response_model=JobSubmitResponse)
async def submit_job(
    job_name: Annotated[str, Path(description="e.g. process-scheduled-tasks")]
):
    """
    Queue a periodic job now.

    Jobs: check-integration-health, process-scheduled-tasks,
    process-weekly-checkin, deliver-pending-reports.
    """
    from workers.tasks import PERIODIC_JOBS

    job = PERIODIC_JOBS.get(job_name)
    if job is None:
        raise NotFoundError("Job", job_name)

    try:
        result = job.delay()
    except Exception as e:
        logger.error(f"Error submitting job {job_name}: {e}")
        raise HTTPException(
            status_code=503,
            detail=f"Failed to submit job. Is Redis running? Error: {e}"
        )

    return JobSubmitResponse(
        task_id=result.id,
        job=job_name,
        message=f"{job_name} queued. Use GET /api/v1/tasks/{result.id} to check status.",
    )
