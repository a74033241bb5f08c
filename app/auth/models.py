# =============================================================================
# app/auth/models.py - Authentication Models
# =============================================================================
# Pydantic models for authentication data.
# =============================================================================

from pydantic import BaseModel, ConfigDict
from uuid import UUID
from datetime import datetime
from typing import Optional


class AuthUser(BaseModel):
    """
    Authenticated user extracted from Supabase JWT.

    This is the minimal user info available from the token itself,
    without querying the database.
    """
    model_config = ConfigDict(frozen=True)

    id: UUID
    email: Optional[str] = None
    # user_metadata.team_id, when the signup flow stored one
    team_id: Optional[str] = None


class UserResponse(BaseModel):
    """
    Profile returned by /auth/me, from the public.users table.
    """
    id: UUID
    email: Optional[str] = None
    name: Optional[str] = None
    team_id: Optional[UUID] = None
    role: Optional[str] = None
    created_at: Optional[datetime] = None
