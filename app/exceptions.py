# =============================================================================
# app/exceptions.py - Custom Exceptions and Handlers
# =============================================================================
# Centralized error taxonomy for the directory API.
# Errors should tell HOW to fix, not just WHAT failed.
#
# Services raise these; the workflow layer turns them into ActionResult
# objects (see core/models/result.py), and the handlers below turn any that escape
# into structured JSON responses.
# =============================================================================

from typing import Any

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse


class DirectoryException(Exception):
    """
    Base exception for the directory API.

    All custom exceptions inherit from this class.
    Provides structured error responses with actionable suggestions.
    """

    def __init__(
        self,
        message: str,
        code: str = "DIRECTORY_ERROR",
        status_code: int = 500,
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code
        self.suggestion = suggestion
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to API response dict."""
        result = {
            "detail": self.message,
            "code": self.code,
        }
        if self.suggestion:
            result["suggestion"] = self.suggestion
        if self.details:
            result["details"] = self.details
        return result


# =============================================================================
# Caller Exceptions
# =============================================================================

class AuthenticationRequiredError(DirectoryException):
    """Raised when an operation needs a signed-in caller."""

    def __init__(self, message: str = "You must be signed in."):
        super().__init__(
            message=message,
            code="AUTHENTICATION_REQUIRED",
            status_code=401,
            suggestion="Sign in and retry with a valid bearer token",
        )


class AuthorizationDeniedError(DirectoryException):
    """Raised when the caller has the wrong role or does not own the resource."""

    def __init__(self, message: str = "Not authorized"):
        super().__init__(
            message=message,
            code="AUTHORIZATION_DENIED",
            status_code=403,
        )


class ValidationFailedError(DirectoryException):
    """Raised with the first violated input constraint."""

    def __init__(self, message: str, field: str | None = None):
        super().__init__(
            message=message,
            code="VALIDATION_FAILED",
            status_code=422,
            details={"field": field} if field else None,
        )


class RateLimitedError(DirectoryException):
    """Raised when a caller exceeds a request rate limit."""

    def __init__(self, message: str = "Too many requests. Please slow down."):
        super().__init__(
            message=message,
            code="RATE_LIMITED",
            status_code=429,
            suggestion="Wait a few minutes before trying again",
        )


class QuotaExceededError(DirectoryException):
    """Raised when the daily submission quota is used up."""

    def __init__(self, limit: int):
        super().__init__(
            message=f"You can submit a maximum of {limit} apps per day. Please try again tomorrow.",
            code="QUOTA_EXCEEDED",
            status_code=429,
            details={"limit": limit},
        )


# =============================================================================
# Resource Exceptions
# =============================================================================

class DuplicateResourceError(DirectoryException):
    """Raised when a listing, report, or unlock already exists."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(
            message=message,
            code="DUPLICATE_RESOURCE",
            status_code=409,
            details=details,
        )


class NotFoundError(DirectoryException):
    """Raised when a listing, report, or category doesn't exist."""

    def __init__(self, resource: str, identifier: str):
        super().__init__(
            message=f"{resource} not found.",
            code="NOT_FOUND",
            status_code=404,
            suggestion=f"Check that the {resource.lower()} identifier is correct",
            details={"resource": resource, "id": identifier},
        )


class PersistenceFailureError(DirectoryException):
    """Raised when a database write or read fails."""

    def __init__(self, message: str, error: str | None = None):
        super().__init__(
            message=message,
            code="PERSISTENCE_FAILURE",
            status_code=500,
            suggestion="Try again later or contact support if the issue persists",
            details={"error": error} if error else None,
        )


class ExternalServiceFailureError(DirectoryException):
    """Raised when auth, storage, or payment services fail."""

    def __init__(self, service: str, message: str):
        super().__init__(
            message=message,
            code="EXTERNAL_SERVICE_FAILURE",
            status_code=502,
            details={"service": service},
        )


# =============================================================================
# Exception Handlers
# =============================================================================

async def directory_exception_handler(
    request: Request,
    exc: DirectoryException
) -> JSONResponse:
    """
    Convert DirectoryException to JSON response.

    Returns structured error with:
    - detail: Human-readable message
    - code: Machine-readable error code
    - suggestion: How to fix (if available)
    - details: Additional context
    """
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict()
    )


async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError
) -> JSONResponse:
    """
    Handle request-body validation errors.

    Only the first error is surfaced, matching the workflow layer.
    """
    errors = exc.errors()
    message = "Invalid request"
    if errors:
        ctx_error = (errors[0].get("ctx") or {}).get("error")
        message = str(ctx_error) if isinstance(ctx_error, ValueError) else errors[0].get("msg", message)
    return JSONResponse(
        status_code=422,
        content={
            "detail": message,
            "code": "VALIDATION_FAILED",
        }
    )
