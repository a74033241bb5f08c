# =============================================================================
# core/models/jobs.py - Periodic Job Schemas
# =============================================================================
# Response for queuing one of the periodic jobs (integration health,
# scheduled tasks, weekly check-in, report delivery) on demand.
# =============================================================================

from pydantic import BaseModel


class JobSubmitResponse(BaseModel):
    """Response for queuing a periodic job outside its schedule."""
    task_id: str
    job: str
    status: str = "PENDING"
    message: str
