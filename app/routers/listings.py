# =============================================================================
# app/routers/listings.py - Listing Endpoints
# =============================================================================
# Public browse/detail plus the signed-in workflow: submit, edit, the
# owner dashboard and the upvote / interest toggles.
#
# Workflow endpoints resolve the caller optionally and let the service
# answer "must be signed in", so every workflow response has the same
# {"success", "error", "code", "data"} shape.
# =============================================================================

from typing import Annotated, Any
from uuid import UUID

from fastapi import APIRouter, Body, Depends, Path, Query

from app.auth import AuthUser, get_current_user, get_current_user_optional
from app.dependencies import respond
from core.models.listing import ListingQuery, ListingSort, Platform, PricingModel
from core.models.premium import InterestToggleRequest
from core.services.engagement_service import EngagementService
from core.services.listing_service import ListingService

router = APIRouter()


# =============================================================================
# Public Reads
# =============================================================================

@router.get("")
async def browse_listings(
    q: Annotated[str | None, Query(max_length=200, description="Full-text search")] = None,
    category: Annotated[str | None, Query(description="Category slug")] = None,
    platform: Annotated[Platform | None, Query(description="Platform filter")] = None,
    pricing: Annotated[PricingModel | None, Query(description="Pricing filter")] = None,
    sort: Annotated[ListingSort, Query(description="newest, popular or name")] = ListingSort.NEWEST,
    page: Annotated[int, Query(ge=1, description="Page number")] = 1,
    per_page: Annotated[int, Query(ge=1, le=50, description="Items per page")] = 12,
    user: AuthUser | None = Depends(get_current_user_optional),
):
    """
    Browse approved listings.

    Filters are ANDed; `q` uses websearch syntax ("voice -game", "\"smart home\"").
    """
    query = ListingQuery(
        q=q,
        category=category,
        platform=platform,
        pricing=pricing,
        sort=sort,
        page=page,
        per_page=per_page,
    )
    return ListingService.browse_listings(query, user=user)


@router.get("/mine")
async def list_my_listings(
    user: AuthUser = Depends(get_current_user),
):
    """The caller's submissions in every status (dashboard)."""
    listings = ListingService.list_owner_listings(user)
    return {"listings": listings, "total": len(listings)}


@router.get("/{slug}")
async def get_listing(
    slug: Annotated[str, Path(description="Listing slug")],
    user: AuthUser | None = Depends(get_current_user_optional),
):
    """Approved listing detail. Counts a view."""
    return ListingService.get_listing_by_slug(slug, user=user)


# =============================================================================
# Workflow
# =============================================================================

@router.post("")
async def submit_listing(
    body: Annotated[dict[str, Any], Body(description="Listing submission")],
    user: AuthUser | None = Depends(get_current_user_optional),
):
    """
    Submit a listing for review.

    New listings start as `pending` and appear publicly once approved.
    """
    return respond(ListingService.submit_listing(user, body))


@router.put("/{listing_id}")
async def update_listing(
    listing_id: Annotated[UUID, Path(description="Listing UUID")],
    body: Annotated[dict[str, Any], Body(description="Full listing payload")],
    user: AuthUser | None = Depends(get_current_user_optional),
):
    """Edit an own, not-yet-approved listing; it goes back to `pending`."""
    return respond(ListingService.update_listing(user, listing_id, body))


@router.post("/{listing_id}/upvote")
async def toggle_upvote(
    listing_id: Annotated[UUID, Path(description="Listing UUID")],
    user: AuthUser | None = Depends(get_current_user_optional),
):
    """Upvote, or remove an existing upvote."""
    return respond(EngagementService.toggle_upvote(user, listing_id))


@router.post("/{listing_id}/interest")
async def toggle_interest(
    listing_id: Annotated[UUID, Path(description="Listing UUID")],
    request: InterestToggleRequest | None = None,
    user: AuthUser | None = Depends(get_current_user_optional),
):
    """
    Register or withdraw interest in a coming-soon listing.

    Registering needs `consent_acknowledged: true`.
    """
    request = request or InterestToggleRequest()
    return respond(EngagementService.toggle_interest(
        user,
        listing_id,
        country=request.country,
        consent_acknowledged=request.consent_acknowledged,
    ))
