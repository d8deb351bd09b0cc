# =============================================================================
# core/services/__init__.py - Service Layer Exports
# =============================================================================

from .listing_service import ListingService
from .engagement_service import EngagementService
from .moderation_service import ModerationService
from .report_service import ReportService
from .contact_service import ContactService
from .premium_service import PremiumService
from .auth_service import AuthService, safe_redirect_path
from .sitemap_service import SitemapService, SitemapEntry

__all__ = [
    "ListingService",
    "EngagementService",
    "ModerationService",
    "ReportService",
    "ContactService",
    "PremiumService",
    "AuthService",
    "safe_redirect_path",
    "SitemapService",
    "SitemapEntry",
]
