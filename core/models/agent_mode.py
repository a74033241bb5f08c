# =============================================================================
# core/models/agent_mode.py - Agent Mode Schemas
# =============================================================================
# Agent mode is the assistant-first layout of the web app. It is gated by
# the "agent_mode" feature flag; within that gate each user can turn it on
# or off, and the choice follows them across tabs and devices.
# =============================================================================

from pydantic import BaseModel, Field

AGENT_MODE_FLAG = "agent_mode"
AGENT_MODE_CHANGED_EVENT = "agent_mode_changed"


class AgentModeState(BaseModel):
    """
    Resolved agent mode for a user.

    - is_available: the feature flag is on for this user
    - is_enabled: available AND the user's choice (or the default) is on
    """
    is_available: bool
    is_enabled: bool


class AgentModeUpdate(BaseModel):
    """Explicitly turn agent mode on or off."""
    enabled: bool = Field(..., description="True to enable, False to disable")
