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
    Authenticated user extracted from a Supabase access token.

    Only what the token itself says. The role is deliberately NOT taken
    from the token; admin checks read the profiles table.
    """
    model_config = ConfigDict(frozen=True)

    id: UUID
    email: Optional[str] = None


class UserResponse(BaseModel):
    """Current user's profile for /auth/me."""
    id: UUID
    email: Optional[str] = None
    display_name: Optional[str] = None
    avatar_url: Optional[str] = None
    role: str = "user"
    created_at: Optional[datetime] = None


class SignInResponse(BaseModel):
    """Tokens plus the internal path the client should navigate to."""
    redirect: str
    access_token: str
    refresh_token: str
    expires_in: Optional[int] = None
    user_id: Optional[str] = None
