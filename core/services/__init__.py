# =============================================================================
# core/services/__init__.py - Service Layer Exports
# =============================================================================

from .integration_service import IntegrationService
from .consent_service import ConsentService
from .marketing_service import MarketingService
from .preflight_service import PreflightService
from .messaging_service import MessagingService
from .notification_service import NotificationService
from .insight_service import InsightService
from .scheduled_task_service import ScheduledTaskService
from .checkin_service import CheckinService
from .report_delivery_service import ReportDeliveryService
from .agent_mode_service import AgentModeService

__all__ = [
    "IntegrationService",
    "ConsentService",
    "MarketingService",
    "PreflightService",
    "MessagingService",
    "NotificationService",
    "InsightService",
    "ScheduledTaskService",
    "CheckinService",
    "ReportDeliveryService",
    "AgentModeService",
]
