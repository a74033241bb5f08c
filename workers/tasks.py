# =============================================================================
# workers/tasks.py - Celery Task Definitions
# =============================================================================
# Periodic jobs (see CeleryConfig.beat_schedule), also queueable on demand:
# - check_integration_health: token health sweep and refresh
# - process_scheduled_tasks: run due user scheduled tasks
# - process_weekly_checkin: post the assistant's weekly check-in
# - deliver_pending_reports: email reports whose deliver_at passed
# - process_proactive_notifications: send queued assistant notifications
#
# Each job returns the same dict its HTTP counterpart returns, so results
# are readable through /api/v1/tasks/{task_id}/result.
# =============================================================================

import logging
from typing import Any

from celery import shared_task

from core.services.checkin_service import CheckinService
from core.services.integration_service import IntegrationService
from core.services.notification_service import NotificationService
from core.services.report_delivery_service import ReportDeliveryService
from core.services.scheduled_task_service import ScheduledTaskService

logger = logging.getLogger(__name__)


@shared_task(name="workers.tasks.check_integration_health")
def check_integration_health() -> dict[str, Any]:
    """Run the integration token health sweep."""
    result = IntegrationService.check_integration_health()
    logger.info(
        f"Integration health: {result['refresh_successes']}/{result['refresh_attempts']} refreshed"
    )
    return result


@shared_task(name="workers.tasks.process_scheduled_tasks")
def process_scheduled_tasks() -> dict[str, Any]:
    """Execute every user scheduled task that is due."""
    result = ScheduledTaskService.process_scheduled_tasks()
    logger.info(
        f"Scheduled tasks: processed={result.get('processed', 0)}, failed={result.get('failed', 0)}"
    )
    return result


@shared_task(name="workers.tasks.process_weekly_checkin")
def process_weekly_checkin() -> dict[str, Any]:
    """Post the weekly check-in for opted-in users."""
    return CheckinService.process_weekly_checkin()


@shared_task(name="workers.tasks.deliver_pending_reports")
def deliver_pending_reports() -> dict[str, Any]:
    """Deliver reports whose delivery time has passed."""
    return ReportDeliveryService.deliver_pending_reports()


@shared_task(name="workers.tasks.process_proactive_notifications")
def process_proactive_notifications() -> dict[str, Any]:
    """Send queued proactive notifications that are ready."""
    result = NotificationService.process_notification_queue()
    logger.info(
        f"Notification queue: sent={result.get('sent', 0)}, skipped={result.get('skipped', 0)}"
    )
    return result


# Jobs that can be queued over POST /api/v1/jobs/{job_name}
PERIODIC_JOBS = {
    "check-integration-health": check_integration_health,
    "process-scheduled-tasks": process_scheduled_tasks,
    "process-weekly-checkin": process_weekly_checkin,
    "deliver-pending-reports": deliver_pending_reports,
    "process-proactive-notifications": process_proactive_notifications,
}
