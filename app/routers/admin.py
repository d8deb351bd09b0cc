# =============================================================================
# app/routers/admin.py - Moderation Endpoints
# =============================================================================
# Admin-only. The role is re-read from profiles by the service on every
# call; these handlers only pass the verified caller through.
# =============================================================================

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Path, Query
from pydantic import BaseModel, Field

from app.auth import AuthUser, get_current_user_optional
from app.dependencies import respond
from core.models.listing import ListingStatus
from core.models.report import ReportStatus
from core.services.moderation_service import ModerationService

router = APIRouter()


class RejectRequest(BaseModel):
    reason: str = Field(default="", example="Website is unreachable.")


class ResolveReportRequest(BaseModel):
    status: str = Field(..., example="resolved", description="resolved or dismissed")


# =============================================================================
# Queues
# =============================================================================

@router.get("/listings")
async def list_listings(
    status: Annotated[ListingStatus | None, Query(description="Filter by status")] = None,
    user: AuthUser | None = Depends(get_current_user_optional),
):
    """Listings for moderation, newest first."""
    listings = ModerationService.list_listings(user, status)
    return {"listings": listings, "total": len(listings)}


@router.get("/reports")
async def list_reports(
    status: Annotated[ReportStatus | None, Query(description="Filter by status")] = None,
    user: AuthUser | None = Depends(get_current_user_optional),
):
    reports = ModerationService.list_reports(user, status)
    return {"reports": reports, "total": len(reports)}


# =============================================================================
# Listing Actions
# =============================================================================

@router.post("/listings/{listing_id}/approve")
async def approve_listing(
    listing_id: Annotated[UUID, Path(description="Listing UUID")],
    user: AuthUser | None = Depends(get_current_user_optional),
):
    return respond(ModerationService.approve(user, listing_id))


@router.post("/listings/{listing_id}/reject")
async def reject_listing(
    listing_id: Annotated[UUID, Path(description="Listing UUID")],
    request: RejectRequest,
    user: AuthUser | None = Depends(get_current_user_optional),
):
    """Reject with a reason (at least 5 characters) shown to the owner."""
    return respond(ModerationService.reject(user, listing_id, request.reason))


@router.post("/listings/{listing_id}/hide")
async def hide_listing(
    listing_id: Annotated[UUID, Path(description="Listing UUID")],
    user: AuthUser | None = Depends(get_current_user_optional),
):
    return respond(ModerationService.hide(user, listing_id))


@router.post("/listings/{listing_id}/featured")
async def toggle_featured(
    listing_id: Annotated[UUID, Path(description="Listing UUID")],
    user: AuthUser | None = Depends(get_current_user_optional),
):
    return respond(ModerationService.toggle_featured(user, listing_id))


@router.delete("/listings/{listing_id}")
async def delete_listing(
    listing_id: Annotated[UUID, Path(description="Listing UUID")],
    user: AuthUser | None = Depends(get_current_user_optional),
):
    """Permanently delete a listing."""
    return respond(ModerationService.delete(user, listing_id))


# =============================================================================
# Report Actions
# =============================================================================

@router.post("/reports/{report_id}/resolve")
async def resolve_report(
    report_id: Annotated[UUID, Path(description="Report UUID")],
    request: ResolveReportRequest,
    user: AuthUser | None = Depends(get_current_user_optional),
):
    return respond(ModerationService.resolve_report(user, report_id, request.status))
