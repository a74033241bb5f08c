# =============================================================================
# app/routers/ - API Route Definitions
# =============================================================================
# This package contains FastAPI routers organized by feature:
# - health.py: Health check endpoints
# - integrations.py: Integration token health, Google Calendar events
# - microsoft.py: Microsoft tenant admin consent
# - marketing.py: Marketing unsubscribe
# - notifications.py: SMS, Telegram, multi-channel notifications (internal)
# - insights.py: Insight feedback and strategic identity
# - scheduled_tasks.py: User scheduled tasks
# - jobs.py: Queue periodic jobs on demand (internal)
# - tasks.py: Background job status endpoints (internal)
# - agent_mode.py: Agent mode preference
# - followups.py: Chat follow-up detection
#
# Each router is mounted in main.py with a URL prefix.
# =============================================================================

from . import health
from . import integrations
from . import microsoft
from . import marketing
from . import notifications
from . import insights
from . import scheduled_tasks
from . import jobs
from . import tasks
from . import agent_mode
from . import followups

__all__ = [
    "health",
    "integrations",
    "microsoft",
    "marketing",
    "notifications",
    "insights",
    "scheduled_tasks",
    "jobs",
    "tasks",
    "agent_mode",
    "followups",
]
