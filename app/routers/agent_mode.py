# =============================================================================
# app/routers/agent_mode.py - Agent Mode Endpoints
# =============================================================================
# Read and change the user's agent mode. Changes are pushed to the user's
# other clients over /ws/users/{user_id}.
# =============================================================================

from fastapi import APIRouter, Depends

from app.auth import AuthUser, get_current_user
from core.models.agent_mode import AgentModeState, AgentModeUpdate
from core.services.agent_mode_service import AgentModeService

router = APIRouter()


@router.get("", response_model=AgentModeState)
async def get_agent_mode(user: AuthUser = Depends(get_current_user)):
    """Resolved agent mode (availability + enabled) for the current user."""
    return AgentModeService.get_state(user.id)


@router.put("", response_model=AgentModeState)
async def set_agent_mode(
    request: AgentModeUpdate,
    user: AuthUser = Depends(get_current_user),
):
    """Enable or disable agent mode."""
    return AgentModeService.set_enabled(user.id, request.enabled)


@router.post("/toggle", response_model=AgentModeState)
async def toggle_agent_mode(user: AuthUser = Depends(get_current_user)):
    """Flip agent mode."""
    return AgentModeService.toggle(user.id)
