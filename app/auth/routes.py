# =============================================================================
# app/auth/routes.py - Authentication Routes
# =============================================================================
# API endpoints for authentication-related operations.
#
# Note: Actual signup/login is handled by Supabase Auth client-side.
# These routes cover the lookups the sign-up screens make beforehand
# (preflight) and user info after authentication.
# =============================================================================

import logging

from fastapi import APIRouter, Depends

from app.auth.dependencies import get_current_user
from app.auth.models import AuthUser, UserResponse
from core.models.preflight import PreflightRequest
from core.services.preflight_service import PreflightService
from lib.supabase_client import SupabaseClient, SupabaseClientError

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/preflight")
async def auth_preflight(request: PreflightRequest) -> dict:
    """
    Unauthenticated pre-signup lookups.

    Actions:
    - check-email: {"exists": bool}
    - lookup-team-name: {"name": str | null}
    - check-moonshot-registration: {"registration": {...} | null}
    - check-moonshot-team-registered: {"registered": bool, "id"?: str}

    Raises:
        400: Missing email/teamId or unknown action
    """
    return PreflightService.run(request.action, email=request.email, team_id=request.teamId)


@router.get("/me", response_model=UserResponse)
async def get_current_user_info(
    user: AuthUser = Depends(get_current_user)
) -> UserResponse:
    """
    Get the current authenticated user's profile.

    Falls back to the token's id/email when the profile row doesn't exist
    yet (the signup trigger may not have run).
    """
    try:
        profile = SupabaseClient.fetch_user(user.id, columns="id, email, name, team_id, role, created_at")
        if profile:
            return UserResponse(**profile)
    except SupabaseClientError as e:
        logger.warning(f"Could not fetch user profile: {e}")

    return UserResponse(id=user.id, email=user.email)


@router.get("/verify")
async def verify_token(
    user: AuthUser = Depends(get_current_user)
) -> dict:
    """
    Verify that the current token is valid.

    Raises:
        401: If token is invalid or expired
    """
    return {
        "valid": True,
        "user_id": str(user.id),
        "email": user.email
    }
