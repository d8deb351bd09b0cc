# =============================================================================
# core/services/common.py - Shared Service Helpers
# =============================================================================
# Small guards used by every workflow service.
# =============================================================================

import logging
from contextlib import contextmanager
from typing import Iterator

from app.auth.models import AuthUser
from app.exceptions import AuthenticationRequiredError, PersistenceFailureError, RateLimitedError
from lib.rate_limit import RateLimitRule, check_rate_limit
from lib.supabase_client import SupabaseClientError

logger = logging.getLogger(__name__)


def require_user(user: AuthUser | None, message: str = "You must be signed in.") -> AuthUser:
    """
    Raises:
        AuthenticationRequiredError: If there is no signed-in caller
    """
    if user is None:
        raise AuthenticationRequiredError(message)
    return user


def enforce_rate_limit(rule: RateLimitRule, subject: str) -> None:
    """
    Raises:
        RateLimitedError: With the rule's user-facing message
    """
    if not check_rate_limit(rule, subject):
        raise RateLimitedError(rule.value.message)


@contextmanager
def persistence_failure(message: str) -> Iterator[None]:
    """
    Translate database errors into a PersistenceFailureError with a
    user-facing message.

    Usage:
        with persistence_failure("Failed to upvote."):
            SupabaseClient.insert_membership(...)
    """
    try:
        yield
    except SupabaseClientError as e:
        logger.error(f"{message} {e}")
        raise PersistenceFailureError(message, error=e.message)
