# =============================================================================
# core/models/ - Pydantic Data Models
# =============================================================================
# This package contains Pydantic schemas for data validation:
# - integrations.py: Integration health, calendar events, tenant consent
# - marketing.py: Marketing unsubscribe results
# - preflight.py: Pre-signup auth lookups
# - messaging.py: SMS / Telegram delivery
# - notifications.py: Multi-channel assistant notifications
# - insights.py: Insight feedback and strategic identity
# - scheduled_tasks.py: User scheduled tasks
# - jobs.py: Periodic job submission
# - agent_mode.py: Agent mode preference
# - followup.py: Follow-up detection
#
# These models define the "contract" between API and clients.
# =============================================================================

# -----------------------------------------------------------------------------
# Integrations
# -----------------------------------------------------------------------------
from .integrations import (
    REFRESH_FUNCTIONS,
    CalendarEventsResponse,
    IntegrationHealthResult,
    TenantConsentRequest,
    TenantConsentStatus,
    TenantConsentStored,
)

# -----------------------------------------------------------------------------
# Marketing / Preflight
# -----------------------------------------------------------------------------
from .marketing import UnsubscribeResult, UnsubscribeStatus
from .preflight import PreflightAction, PreflightRequest

# -----------------------------------------------------------------------------
# Messaging / Notifications
# -----------------------------------------------------------------------------
from .messaging import SmsRequest, SmsResponse, TelegramRequest, TelegramResponse
from .notifications import (
    Channel,
    ChannelFailure,
    ChannelResult,
    NotificationRequest,
    NotificationResponse,
    ProactiveMessageRequest,
    ProactiveMessageResponse,
)

# -----------------------------------------------------------------------------
# Insights
# -----------------------------------------------------------------------------
from .insights import (
    LEVEL_DOWNGRADES,
    IdentityUpdateRequest,
    IdentityUpdateResponse,
    InsightFeedbackRequest,
    InsightFeedbackResponse,
    ProactiveLevel,
)

# -----------------------------------------------------------------------------
# Scheduled Tasks / Jobs
# -----------------------------------------------------------------------------
from .scheduled_tasks import (
    DeliveryMethod,
    ExecutionStatus,
    Frequency,
    ScheduledTaskCreate,
    ScheduledTaskCreated,
    TaskStatus,
    TaskType,
)
from .jobs import JobSubmitResponse

# -----------------------------------------------------------------------------
# Agent Mode / Follow-Up
# -----------------------------------------------------------------------------
from .agent_mode import AGENT_MODE_CHANGED_EVENT, AGENT_MODE_FLAG, AgentModeState, AgentModeUpdate
from .followup import AssistantMessageRef, FollowUpRequest, FollowUpResponse, SelectedOptionModel

# -----------------------------------------------------------------------------
# __all__ - Explicit public API
# -----------------------------------------------------------------------------
__all__ = [
    # Integrations
    "REFRESH_FUNCTIONS",
    "CalendarEventsResponse",
    "IntegrationHealthResult",
    "TenantConsentRequest",
    "TenantConsentStatus",
    "TenantConsentStored",
    # Marketing / Preflight
    "UnsubscribeResult",
    "UnsubscribeStatus",
    "PreflightAction",
    "PreflightRequest",
    # Messaging / Notifications
    "SmsRequest",
    "SmsResponse",
    "TelegramRequest",
    "TelegramResponse",
    "Channel",
    "ChannelFailure",
    "ChannelResult",
    "NotificationRequest",
    "NotificationResponse",
    "ProactiveMessageRequest",
    "ProactiveMessageResponse",
    # Insights
    "LEVEL_DOWNGRADES",
    "IdentityUpdateRequest",
    "IdentityUpdateResponse",
    "InsightFeedbackRequest",
    "InsightFeedbackResponse",
    "ProactiveLevel",
    # Scheduled Tasks / Jobs
    "DeliveryMethod",
    "ExecutionStatus",
    "Frequency",
    "ScheduledTaskCreate",
    "ScheduledTaskCreated",
    "TaskStatus",
    "TaskType",
    "JobSubmitResponse",
    # Agent Mode / Follow-Up
    "AGENT_MODE_CHANGED_EVENT",
    "AGENT_MODE_FLAG",
    "AgentModeState",
    "AgentModeUpdate",
    "AssistantMessageRef",
    "FollowUpRequest",
    "FollowUpResponse",
    "SelectedOptionModel",
]
