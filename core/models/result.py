# =============================================================================
# core/models/result.py - Uniform Workflow Result
# =============================================================================
# Every workflow operation (submit, edit, toggle, moderate, report...) returns
# an ActionResult instead of raising:
#
#   {"success": true,  "data": {...}}
#   {"success": false, "error": "An app with this website URL already exists",
#    "code": "DUPLICATE_RESOURCE"}
#
# Services raise DirectoryException subclasses internally; the
# @returns_action_result decorator converts those at the boundary. Anything
# else (bugs, unexpected client errors) propagates to the top-level handler.
# =============================================================================

import functools
import inspect
import logging
from typing import Any, Callable

from pydantic import BaseModel, Field

from app.exceptions import DirectoryException

logger = logging.getLogger(__name__)


class ActionResult(BaseModel):
    """Outcome of one workflow operation."""

    success: bool = Field(
        ...,
        description="Whether the operation succeeded"
    )

    error: str | None = Field(
        default=None,
        description="User-facing error message when success is false"
    )

    code: str | None = Field(
        default=None,
        description="Machine-readable error code when success is false"
    )

    data: dict[str, Any] = Field(
        default_factory=dict,
        description="Operation-specific payload (e.g. created listing id)"
    )

    # HTTP status for routers; not part of the response body
    status_code: int = Field(default=200, exclude=True)

    @classmethod
    def ok(cls, **data: Any) -> "ActionResult":
        """Successful result carrying `data`."""
        return cls(success=True, data=data)

    @classmethod
    def failure(cls, exc: DirectoryException) -> "ActionResult":
        """Failed result built from a directory exception."""
        return cls(
            success=False,
            error=exc.message,
            code=exc.code,
            status_code=exc.status_code,
        )


def returns_action_result(func: Callable[..., Any]) -> Callable[..., ActionResult]:
    """
    Wrap a service operation so it returns an ActionResult.

    The wrapped function may return an ActionResult, a dict (becomes
    `data`), or None (empty success). DirectoryException becomes a failed
    result; any other exception propagates. Coroutine functions get an
    async wrapper.
    """

    def _to_result(outcome: Any) -> ActionResult:
        if isinstance(outcome, ActionResult):
            return outcome
        return ActionResult.ok(**(outcome or {}))

    if inspect.iscoroutinefunction(func):
        @functools.wraps(func)
        async def async_wrapper(*args: Any, **kwargs: Any) -> ActionResult:
            try:
                outcome = await func(*args, **kwargs)
            except DirectoryException as exc:
                logger.info(f"{func.__name__} failed: [{exc.code}] {exc.message}")
                return ActionResult.failure(exc)
            return _to_result(outcome)

        return async_wrapper

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> ActionResult:
        try:
            outcome = func(*args, **kwargs)
        except DirectoryException as exc:
            logger.info(f"{func.__name__} failed: [{exc.code}] {exc.message}")
            return ActionResult.failure(exc)
        return _to_result(outcome)

    return wrapper
