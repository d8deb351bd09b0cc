# =============================================================================
# app/middleware.py - Session Redirect Middleware
# =============================================================================
# Route-level redirects for the site's page paths (API paths are untouched):
#
#   signed out  + /submit, /dashboard, /admin  -> /auth/login?redirect=<path>
#   signed in   + /auth/login, /auth/signup    -> /dashboard
#   non-admin   + /admin                       -> /
#
# The session comes from the same bearer header / cookie the API accepts.
# Admin status is read from profiles, never from the token.
# =============================================================================

import logging
from typing import Callable
from urllib.parse import urlencode

from jose import JWTError
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import RedirectResponse, Response

from app.auth.dependencies import ACCESS_TOKEN_COOKIE, decode_access_token
from app.auth.models import AuthUser
from core.services.moderation_service import ModerationService
from lib.supabase_client import SupabaseClientError

logger = logging.getLogger(__name__)

PROTECTED_PREFIXES = ("/submit", "/dashboard")
ADMIN_PREFIXES = ("/admin",)
AUTH_PREFIXES = ("/auth/login", "/auth/signup")

LOGIN_PATH = "/auth/login"
DASHBOARD_PATH = "/dashboard"
HOME_PATH = "/"


def _matches(path: str, prefixes: tuple[str, ...]) -> bool:
    return any(path.startswith(prefix) for prefix in prefixes)


def _login_redirect(path: str) -> str:
    return f"{LOGIN_PATH}?{urlencode({'redirect': path})}"


def resolve_redirect(
    path: str,
    user: AuthUser | None,
    is_admin: Callable[[AuthUser], bool],
) -> str | None:
    """
    Where to send a page request, or None to let it through.

    `is_admin` is only called for a signed-in user on an admin path.
    """
    if user is not None and _matches(path, AUTH_PREFIXES):
        return DASHBOARD_PATH

    if user is None and _matches(path, PROTECTED_PREFIXES):
        return _login_redirect(path)

    if _matches(path, ADMIN_PREFIXES):
        if user is None:
            return _login_redirect(path)
        if not is_admin(user):
            return HOME_PATH

    return None


def _session_user(request: Request) -> AuthUser | None:
    token = None
    auth = request.headers.get("authorization")
    if auth and auth.lower().startswith("bearer "):
        token = auth[7:].strip()
    if not token:
        token = request.cookies.get(ACCESS_TOKEN_COOKIE)
    if not token:
        return None

    try:
        return decode_access_token(token)
    except JWTError:
        return None


def _profile_is_admin(user: AuthUser) -> bool:
    try:
        return ModerationService.is_admin(user)
    except SupabaseClientError as e:
        logger.error(f"Role lookup failed for {user.id}: {e}")
        return False


class SessionRedirectMiddleware(BaseHTTPMiddleware):
    """Apply resolve_redirect() to every non-API request."""

    def __init__(self, app, api_prefix: str = "/api", is_admin: Callable[[AuthUser], bool] | None = None):
        super().__init__(app)
        self.api_prefix = api_prefix
        self.is_admin = is_admin or _profile_is_admin

    async def dispatch(self, request: Request, call_next) -> Response:
        path = request.url.path
        if path.startswith(self.api_prefix):
            return await call_next(request)

        if not _matches(path, PROTECTED_PREFIXES + ADMIN_PREFIXES + AUTH_PREFIXES):
            return await call_next(request)

        target = resolve_redirect(path, _session_user(request), self.is_admin)
        if target is not None:
            logger.debug(f"Redirecting {path} -> {target}")
            return RedirectResponse(url=target, status_code=307)

        return await call_next(request)
