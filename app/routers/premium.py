# =============================================================================
# app/routers/premium.py - Interest Analytics Endpoints
# =============================================================================
# Owner-only views of interest in a coming-soon listing. The interested
# user list and CSV export require a paid unlock.
# =============================================================================

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Path
from fastapi.responses import StreamingResponse

from app.auth import AuthUser, get_current_user, get_current_user_optional
from app.dependencies import respond
from core.services.premium_service import PremiumService

router = APIRouter()


@router.get("/{listing_id}/analytics")
async def get_interest_analytics(
    listing_id: Annotated[UUID, Path(description="Listing UUID")],
    user: AuthUser | None = Depends(get_current_user_optional),
):
    """Interest timeline, country breakdown and unlock status."""
    return respond(await PremiumService.get_interest_analytics(user, listing_id))


@router.get("/{listing_id}/interested-users")
async def get_interested_users(
    listing_id: Annotated[UUID, Path(description="Listing UUID")],
    user: AuthUser | None = Depends(get_current_user_optional),
):
    """Interested users with emails (unlocked listings only)."""
    return respond(PremiumService.get_interested_users(user, listing_id))


@router.get("/{listing_id}/interested-users.csv")
async def export_interested_users(
    listing_id: Annotated[UUID, Path(description="Listing UUID")],
    user: AuthUser = Depends(get_current_user),
):
    """Download interested users as CSV (Email, Name, Country, Date)."""
    filename, csv_text = PremiumService.export_interested_users_csv(user, listing_id)

    return StreamingResponse(
        iter([csv_text]),
        media_type="text/csv",
        headers={
            "Content-Disposition": f"attachment; filename={filename}",
        }
    )
