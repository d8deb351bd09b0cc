# =============================================================================
# app/routers/reports.py - Report & Contact Endpoints
# =============================================================================

from typing import Annotated, Any

from fastapi import APIRouter, Body, Depends
from pydantic import BaseModel, Field

from app.auth import AuthUser, get_current_user_optional
from app.dependencies import respond
from core.services.contact_service import ContactService
from core.services.report_service import ReportService

router = APIRouter()


class ContactRequest(BaseModel):
    subject: str = Field(default="", example="Listing ownership")
    message: str = Field(default="", example="I'm the developer of this app and would like to claim it.")


@router.post("/reports")
async def submit_report(
    body: Annotated[dict[str, Any], Body(
        examples=[{"listing_id": "550e8400-e29b-41d4-a716-446655440000", "reason": "broken_links",
                   "details": "The website link returns a 404."}],
    )],
    user: AuthUser | None = Depends(get_current_user_optional),
):
    """Flag a listing for moderation (one pending report per listing)."""
    return respond(ReportService.submit_report(user, body))


@router.post("/contact")
async def submit_contact_message(
    request: ContactRequest,
    user: AuthUser | None = Depends(get_current_user_optional),
):
    """Send a message to the site team."""
    return respond(ContactService.submit_contact_message(user, request.subject, request.message))
