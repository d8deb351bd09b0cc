# =============================================================================
# app/auth/routes.py - Authentication Routes
# =============================================================================
# Sign-up / sign-in go through Supabase Auth with our rate limits and
# validation in front; /me and /verify read the verified token.
# =============================================================================

import logging
from typing import Literal

from fastapi import APIRouter, Depends, Request
from fastapi.security import HTTPAuthorizationCredentials
from pydantic import BaseModel

from app.auth.dependencies import extract_token, get_current_user, security_optional
from app.auth.models import AuthUser, UserResponse
from app.dependencies import respond
from core.services.auth_service import AuthService
from lib.supabase_client import SupabaseClient

logger = logging.getLogger(__name__)

router = APIRouter()


class SignInBody(BaseModel):
    email: str = ""
    password: str = ""
    redirect: str | None = None


class SignUpBody(BaseModel):
    email: str = ""
    password: str = ""
    display_name: str = ""


@router.get("/me", response_model=UserResponse)
async def get_current_user_info(
    user: AuthUser = Depends(get_current_user)
) -> UserResponse:
    """
    Get the current authenticated user's profile.

    Falls back to token data when the profile row isn't there yet (the
    sign-up trigger may not have run).
    """
    profile = SupabaseClient.fetch_profile(user.id)
    if profile:
        return UserResponse(**profile)

    return UserResponse(id=user.id, email=user.email)


@router.get("/verify")
async def verify_token(
    user: AuthUser = Depends(get_current_user)
) -> dict:
    """Check that the current token is valid."""
    return {
        "valid": True,
        "user_id": str(user.id),
        "email": user.email
    }


@router.post("/signup")
async def sign_up(body: SignUpBody):
    """Create an account (confirmation email follows)."""
    return respond(AuthService.sign_up(body.model_dump()))


@router.post("/login")
async def sign_in(body: SignInBody):
    """
    Password sign-in.

    Returns tokens and a safe internal `redirect` path for the client.
    """
    payload = body.model_dump(exclude={"redirect"})
    return respond(AuthService.sign_in(payload, redirect=body.redirect))


@router.get("/oauth/{provider}")
async def oauth_url(provider: Literal["google", "github"]):
    """Authorization URL for a social sign-in provider."""
    return respond(AuthService.oauth_url(provider))


@router.post("/logout")
async def sign_out(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(security_optional),
    user: AuthUser = Depends(get_current_user),
):
    """Revoke the caller's sessions."""
    logger.info(f"Sign-out for {user.id}")
    return AuthService.sign_out(extract_token(request, credentials))
