# =============================================================================
# app/routers/categories.py - Category Endpoints
# =============================================================================

from typing import Annotated

from fastapi import APIRouter, Path

from core.models.listing import Category, CategoryList
from core.services.listing_service import ListingService

router = APIRouter()


@router.get("", response_model=CategoryList)
async def list_categories():
    """All categories in display order."""
    return {"categories": ListingService.list_categories()}


@router.get("/{slug}", response_model=Category)
async def get_category(
    slug: Annotated[str, Path(description="Category slug")],
):
    return ListingService.get_category(slug)
