# =============================================================================
# app/routers/sitemap.py - Sitemap
# =============================================================================

from fastapi import APIRouter
from fastapi.responses import Response

from core.services.sitemap_service import SitemapService

router = APIRouter()


@router.get("/sitemap.xml", include_in_schema=False)
async def sitemap():
    """Sitemap of the public site (home, browse, categories, approved listings)."""
    entries = SitemapService.build_sitemap_entries()
    return Response(
        content=SitemapService.render_sitemap_xml(entries),
        media_type="application/xml",
    )
