# =============================================================================
# app/auth/__init__.py - Authentication Module
# =============================================================================
# Provides JWT-based authentication using Supabase Auth.
#
# Usage:
#   from app.auth import get_current_user, AuthUser
#
#   @router.get("/protected")
#   async def protected(user: AuthUser = Depends(get_current_user)):
#       return {"user_id": user.id}
#
#   # Internal endpoints (scheduler, other backend functions)
#   @router.post("/internal", dependencies=[Depends(require_service_role)])
# =============================================================================

from app.auth.dependencies import (
    decode_access_token,
    get_current_user,
    require_service_role,
)
from app.auth.models import AuthUser, UserResponse

__all__ = [
    "decode_access_token",
    "get_current_user",
    "require_service_role",
    "AuthUser",
    "UserResponse",
]
