# =============================================================================
# workers/ - Celery Background Task Workers
# =============================================================================
# This package contains the Celery configuration and the periodic jobs that
# used to run as cron-triggered functions.
#
# Components:
# - celery_app.py: Celery application configuration
# - tasks.py: Task definitions (health sweep, scheduled tasks, check-ins,
#   report delivery)
# - config.py: Worker settings and the beat schedule
#
# Usage:
#   # Start worker with the embedded scheduler
#   celery -A workers.celery_app worker --beat -Q default,ai_tasks --loglevel=info
#
#   # Queue a job outside its schedule (from API)
#   from workers.tasks import process_scheduled_tasks
#   result = process_scheduled_tasks.delay()
# =============================================================================

from .celery_app import celery_app
from . import tasks

__all__ = [
    "celery_app",
    "tasks",
]
