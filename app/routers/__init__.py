# =============================================================================
# app/routers/ - API Route Definitions
# =============================================================================
# This package contains FastAPI routers organized by feature:
# - health.py: Health check endpoints
# - categories.py: Category reference data
# - listings.py: Browse, detail, submit/edit, upvote and interest toggles
# - reports.py: Listing reports and contact messages
# - premium.py: Interest analytics and CSV export for owners
# - admin.py: Moderation queue and actions
# - webhooks.py: Payment provider webhook
# - sitemap.py: sitemap.xml
#
# Each router is mounted in main.py with a URL prefix.
# =============================================================================

from . import health
from . import categories
from . import listings
from . import reports
from . import premium
from . import admin
from . import webhooks
from . import sitemap

__all__ = [
    "health",
    "categories",
    "listings",
    "reports",
    "premium",
    "admin",
    "webhooks",
    "sitemap",
]
