# =============================================================================
# app/dependencies.py - Shared Dependencies
# =============================================================================
# FastAPI dependency injection for shared resources, plus the helper that
# turns workflow results into HTTP responses.
# =============================================================================

from typing import Annotated

from fastapi import Depends
from fastapi.responses import JSONResponse

from core.models.result import ActionResult
from lib.supabase_client import SupabaseClient


def get_supabase_client() -> type[SupabaseClient]:
    """
    Get Supabase client wrapper.

    Returns the singleton client wrapper.
    """
    return SupabaseClient


# Type alias for dependency injection
SupabaseDep = Annotated[type[SupabaseClient], Depends(get_supabase_client)]


def respond(result: ActionResult) -> JSONResponse:
    """
    Serialize an ActionResult with its HTTP status.

    Body is always {"success", "error", "code", "data"}; failures carry the
    status of the error that produced them (401, 403, 409, 422, 429...).
    """
    return JSONResponse(
        status_code=result.status_code,
        content=result.model_dump(mode="json"),
    )
