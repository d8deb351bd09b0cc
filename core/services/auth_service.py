# =============================================================================
# core/services/auth_service.py - Sign-up / Sign-in
# =============================================================================
# Thin layer over Supabase Auth (anon client) that adds per-email rate
# limits and input validation. Tokens issued here are verified by
# app/auth/dependencies.py on later requests.
# =============================================================================

import logging
from typing import Any, Literal

from app.config import settings
from app.exceptions import (
    AuthenticationRequiredError,
    ExternalServiceFailureError,
    ValidationFailedError,
)
from core.models.account import SignInRequest, SignUpRequest
from core.models.result import returns_action_result
from core.services.common import enforce_rate_limit
from core.validation import validate_model
from lib.rate_limit import RateLimitRule
from lib.supabase_client import SupabaseClient

logger = logging.getLogger(__name__)

DEFAULT_REDIRECT = "/dashboard"
OAuthProvider = Literal["google", "github"]


def safe_redirect_path(target: str | None) -> str:
    """
    Internal path to send the user to after sign-in.

    Only same-site absolute paths are allowed: "/apps" passes, while
    "//evil.com" and "https://evil.com" fall back to /dashboard.
    """
    if target and target.startswith("/") and not target.startswith("//"):
        return target
    return DEFAULT_REDIRECT


def _auth_error(e: Exception) -> tuple[str, int | None]:
    message = getattr(e, "message", None) or str(e)
    status = getattr(e, "status", None)
    try:
        status = int(status) if status is not None else None
    except (TypeError, ValueError):
        status = None
    return message, status


class AuthService:

    @staticmethod
    @returns_action_result
    def sign_up(raw: dict[str, Any]) -> dict[str, Any]:
        """
        Create an account; the provider emails a confirmation link.

        Rate limited per lower-cased email before validation so bad
        payloads count too.
        """
        email = str((raw or {}).get("email") or "")
        enforce_rate_limit(RateLimitRule.SIGNUP, email.lower())

        request = validate_model(SignUpRequest, raw)

        client = SupabaseClient.get_anon_client()
        try:
            client.auth.sign_up({
                "email": request.email,
                "password": request.password,
                "options": {"data": {"display_name": request.display_name}},
            })
        except Exception as e:
            message, status = _auth_error(e)
            if status is not None and status < 500:
                raise ValidationFailedError(message)
            logger.error(f"Sign-up failed: {e}")
            raise ExternalServiceFailureError("auth", message)

        logger.info(f"Sign-up requested for {request.email}")
        return {"message": "Check your email to confirm your account."}

    @staticmethod
    @returns_action_result
    def sign_in(raw: dict[str, Any], redirect: str | None = None) -> dict[str, Any]:
        """
        Password sign-in.

        Returns:
            {"redirect": <safe internal path>, "access_token", "refresh_token",
             "expires_in", "user_id"}
        """
        raw = dict(raw or {})
        email = str(raw.get("email") or "")
        enforce_rate_limit(RateLimitRule.SIGNIN, email.lower())

        if redirect is not None:
            raw["redirect"] = redirect
        request = validate_model(SignInRequest, raw)

        client = SupabaseClient.get_anon_client()
        try:
            response = client.auth.sign_in_with_password({
                "email": request.email,
                "password": request.password,
            })
        except Exception as e:
            message, status = _auth_error(e)
            if status is not None and status < 500:
                logger.warning(f"Sign-in rejected for {request.email}: {message}")
                raise AuthenticationRequiredError(message)
            logger.error(f"Sign-in failed: {e}")
            raise ExternalServiceFailureError("auth", message)

        session = response.session
        if session is None:
            raise AuthenticationRequiredError("Invalid login credentials")

        return {
            "redirect": safe_redirect_path(request.redirect),
            "access_token": session.access_token,
            "refresh_token": session.refresh_token,
            "expires_in": session.expires_in,
            "user_id": str(response.user.id) if response.user else None,
        }

    @staticmethod
    @returns_action_result
    def oauth_url(provider: OAuthProvider) -> dict[str, Any]:
        """Provider authorization URL that returns to <SITE_URL>/auth/callback."""
        client = SupabaseClient.get_anon_client()
        try:
            response = client.auth.sign_in_with_oauth({
                "provider": provider,
                "options": {"redirect_to": f"{settings.site_url}/auth/callback"},
            })
        except Exception as e:
            message, _ = _auth_error(e)
            logger.error(f"OAuth URL for {provider} failed: {e}")
            raise ExternalServiceFailureError("auth", message)

        return {"url": response.url}

    @staticmethod
    def sign_out(access_token: str) -> dict[str, str]:
        """
        Revoke the caller's sessions. Failures are logged; the client drops
        its tokens either way.
        """
        try:
            SupabaseClient.get_client().auth.admin.sign_out(access_token)
        except Exception as e:
            logger.warning(f"Sign-out revoke failed: {e}")
        return {"redirect": "/"}
