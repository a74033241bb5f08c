# =============================================================================
# workers/config.py - Celery Worker Configuration
# =============================================================================
# Settings specific to Celery workers, including the beat schedule that
# replaces the cron triggers of the periodic jobs.
# =============================================================================

from celery.schedules import crontab

from app.config import settings


class CeleryConfig:
    """
    Celery configuration settings.

    These are applied to the Celery app via app.config_from_object().
    """

    # -------------------------------------------------------------------------
    # Broker Settings (Redis)
    # -------------------------------------------------------------------------

    broker_url = settings.REDIS_URL
    result_backend = settings.REDIS_URL

    # -------------------------------------------------------------------------
    # Task Settings
    # -------------------------------------------------------------------------

    # Acknowledge tasks after they complete (not before)
    task_acks_late = True

    # Only prefetch one task at a time
    worker_prefetch_multiplier = 1

    # Task results expire after 1 hour
    result_expires = 3600

    # A scheduled-task pass can make up to 50 agent calls
    task_time_limit = 900
    task_soft_time_limit = 840

    # -------------------------------------------------------------------------
    # Serialization
    # -------------------------------------------------------------------------

    task_serializer = "json"
    result_serializer = "json"
    accept_content = ["json"]

    # -------------------------------------------------------------------------
    # Task Routing
    # -------------------------------------------------------------------------

    task_queues = {
        "default": {
            "exchange": "default",
            "routing_key": "default",
        },
        "ai_tasks": {
            "exchange": "ai_tasks",
            "routing_key": "ai_tasks",
        },
    }

    # These passes wait on the team agent or the LLM; keep them off the default queue
    task_routes = {
        "workers.tasks.process_scheduled_tasks": {"queue": "ai_tasks"},
        "workers.tasks.process_proactive_notifications": {"queue": "ai_tasks"},
    }

    task_default_queue = "default"

    # -------------------------------------------------------------------------
    # Beat Schedule
    # -------------------------------------------------------------------------

    beat_schedule = {
        "check-integration-health": {
            "task": "workers.tasks.check_integration_health",
            "schedule": crontab(minute="*/5"),
        },
        "process-scheduled-tasks": {
            "task": "workers.tasks.process_scheduled_tasks",
            "schedule": crontab(minute="*/2"),
        },
        "deliver-pending-reports": {
            "task": "workers.tasks.deliver_pending_reports",
            "schedule": crontab(minute="*/5"),
        },
        "process-proactive-notifications": {
            "task": "workers.tasks.process_proactive_notifications",
            "schedule": crontab(minute="*/5"),
        },
        "process-weekly-checkin": {
            "task": "workers.tasks.process_weekly_checkin",
            "schedule": crontab(minute=0, hour=14, day_of_week="mon"),
        },
    }

    # -------------------------------------------------------------------------
    # Monitoring
    # -------------------------------------------------------------------------

    worker_send_task_events = True
    task_send_sent_event = True

    # -------------------------------------------------------------------------
    # Timezone
    # -------------------------------------------------------------------------

    timezone = "UTC"
    enable_utc = True
