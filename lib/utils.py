# =============================================================================
# lib/utils.py - Shared Utilities
# =============================================================================
# Common utilities used across the application.
# =============================================================================

import re
import time
import unicodedata
from typing import Any
from uuid import UUID


# =============================================================================
# UUID Utilities
# =============================================================================

def normalize_uuid(value: str | UUID) -> str:
    """
    Normalize a UUID to string format.

    Handles both string and UUID objects, ensuring consistent string output.

    Args:
        value: UUID as string or UUID object

    Returns:
        String representation of the UUID

    Example:
        listing_id = normalize_uuid(uuid_obj)  # "550e8400-..."
        listing_id = normalize_uuid("550e8400-...")  # "550e8400-..."
    """
    return str(value) if isinstance(value, UUID) else value


# =============================================================================
# Slug Utilities
# =============================================================================

_NON_SLUG_CHARS = re.compile(r"[^a-z0-9\s-]")
_SLUG_SEPARATORS = re.compile(r"[\s_-]+")
_BASE36_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"


def slugify(value: str) -> str:
    """
    Convert a display name into a URL-safe slug.

    Accents are folded to ASCII, anything that isn't a letter, digit,
    space or hyphen is dropped, and runs of separators collapse to one
    hyphen.

    Example:
        slugify("Héy  Siri! Helper")  # "hey-siri-helper"
    """
    folded = unicodedata.normalize("NFKD", value).encode("ascii", "ignore").decode("ascii")
    cleaned = _NON_SLUG_CHARS.sub("", folded.lower().strip())
    return _SLUG_SEPARATORS.sub("-", cleaned).strip("-")


def to_base36(number: int) -> str:
    """Encode a non-negative integer in lowercase base 36."""
    if number < 0:
        raise ValueError("to_base36 only accepts non-negative integers")
    if number == 0:
        return "0"

    digits = []
    while number:
        number, remainder = divmod(number, 36)
        digits.append(_BASE36_DIGITS[remainder])
    return "".join(reversed(digits))


def timestamp_suffix(now_ms: int | None = None) -> str:
    """Current time in milliseconds, base-36 encoded."""
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    return to_base36(now_ms)


def escape_like(value: str) -> str:
    """
    Escape LIKE/ILIKE wildcards so a pattern matches literally.

    PostgREST rewrites "*" to "%" in like/ilike filters and a backslash
    does not stop it, so "*" becomes the single-character wildcard "_".
    Callers that need an exact match must re-check the returned rows.
    """
    return (
        value.replace("\\", "\\\\")
        .replace("%", "\\%")
        .replace("_", "\\_")
        .replace("*", "_")
    )


# =============================================================================
# Base Error Class
# =============================================================================

class ApplicationError(Exception):
    """
    Base error class for application-specific errors.

    Provides actionable error messages following the principle:
    "Errors should tell HOW to fix, not just WHAT failed."

    Attributes:
        code: Error code for categorization
        message: Human-readable error message
        suggestion: Actionable suggestion for fixing the error
        details: Additional context for debugging

    Example:
        class MyServiceError(ApplicationError):
            def __init__(self, message: str, **kwargs):
                super().__init__(message, code="MY_SERVICE_ERROR", **kwargs)
    """

    def __init__(
        self,
        message: str,
        code: str = "APPLICATION_ERROR",
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.code = code
        self.message = message
        self.suggestion = suggestion
        self.details = details or {}

    def __str__(self) -> str:
        result = f"[{self.code}] {self.message}"
        if self.suggestion:
            result += f"\n  Suggestion: {self.suggestion}"
        return result

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for API responses."""
        return {
            "code": self.code,
            "message": self.message,
            "suggestion": self.suggestion,
            "details": self.details,
        }
