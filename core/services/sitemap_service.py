# =============================================================================
# core/services/sitemap_service.py - Sitemap
# =============================================================================
# Standard sitemap entries for search engines:
#
#   /                        daily   1.0
#   /apps                    daily   0.9
#   /apps?category=<slug>    weekly  0.7
#   /apps/<slug>             weekly  0.8   (lastmod = updated_at)
# =============================================================================

from dataclasses import dataclass
from datetime import datetime, timezone
from xml.etree import ElementTree

from app.config import settings
from lib.supabase_client import SupabaseClient

SITEMAP_NAMESPACE = "http://www.sitemaps.org/schemas/sitemap/0.9"


@dataclass
class SitemapEntry:
    loc: str
    lastmod: str
    changefreq: str
    priority: float


class SitemapService:

    @staticmethod
    def build_sitemap_entries(now: datetime | None = None) -> list[SitemapEntry]:
        """Home, browse, every category and every approved listing."""
        base = settings.site_url
        today = (now or datetime.now(timezone.utc)).date().isoformat()

        entries = [
            SitemapEntry(f"{base}/", today, "daily", 1.0),
            SitemapEntry(f"{base}/apps", today, "daily", 0.9),
        ]

        for category in SupabaseClient.fetch_categories():
            entries.append(SitemapEntry(f"{base}/apps?category={category['slug']}", today, "weekly", 0.7))

        for listing in SupabaseClient.fetch_approved_slugs():
            lastmod = (listing.get("updated_at") or today)[:10]
            entries.append(SitemapEntry(f"{base}/apps/{listing['slug']}", lastmod, "weekly", 0.8))

        return entries

    @staticmethod
    def render_sitemap_xml(entries: list[SitemapEntry]) -> str:
        """Serialize entries as a <urlset> document (special characters escaped)."""
        urlset = ElementTree.Element("urlset", xmlns=SITEMAP_NAMESPACE)
        for entry in entries:
            url = ElementTree.SubElement(urlset, "url")
            ElementTree.SubElement(url, "loc").text = entry.loc
            ElementTree.SubElement(url, "lastmod").text = entry.lastmod
            ElementTree.SubElement(url, "changefreq").text = entry.changefreq
            ElementTree.SubElement(url, "priority").text = f"{entry.priority:.1f}"

        body = ElementTree.tostring(urlset, encoding="unicode")
        return f'<?xml version="1.0" encoding="UTF-8"?>\n{body}'
