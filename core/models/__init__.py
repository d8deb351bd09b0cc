# =============================================================================
# core/models/ - Pydantic Data Models
# =============================================================================
# This package contains Pydantic schemas for data validation:
# - listing.py: Listing submission, categories, browse query
# - report.py: Moderation reports
# - account.py: Profiles, sign-up / sign-in, contact messages
# - premium.py: Interest analytics and paid unlocks
# - result.py: Uniform ActionResult returned by workflow operations
#
# These models define the "contract" between API and clients.
# =============================================================================

# -----------------------------------------------------------------------------
# Listing Models
# -----------------------------------------------------------------------------
from .listing import (
    VOICE_FEATURES,
    Category,
    CategoryList,
    ListingQuery,
    ListingSort,
    ListingStatus,
    ListingSubmission,
    Platform,
    PricingModel,
)

# -----------------------------------------------------------------------------
# Report Models
# -----------------------------------------------------------------------------
from .report import (
    ReportReason,
    ReportStatus,
    ReportSubmission,
)

# -----------------------------------------------------------------------------
# Account Models
# -----------------------------------------------------------------------------
from .account import (
    ContactMessage,
    Profile,
    SignInRequest,
    SignUpRequest,
    UserRole,
)

# -----------------------------------------------------------------------------
# Premium Models
# -----------------------------------------------------------------------------
from .premium import (
    CountryBreakdown,
    InterestAnalytics,
    InterestedUser,
    InterestTimelinePoint,
    InterestToggleRequest,
    UnlockReceipt,
)

# -----------------------------------------------------------------------------
# Workflow Result
# -----------------------------------------------------------------------------
from .result import ActionResult, returns_action_result

__all__ = [
    # Listing
    "VOICE_FEATURES",
    "Category",
    "CategoryList",
    "ListingQuery",
    "ListingSort",
    "ListingStatus",
    "ListingSubmission",
    "Platform",
    "PricingModel",
    # Report
    "ReportReason",
    "ReportStatus",
    "ReportSubmission",
    # Account
    "ContactMessage",
    "Profile",
    "SignInRequest",
    "SignUpRequest",
    "UserRole",
    # Premium
    "CountryBreakdown",
    "InterestAnalytics",
    "InterestedUser",
    "InterestTimelinePoint",
    "InterestToggleRequest",
    "UnlockReceipt",
    # Result
    "ActionResult",
    "returns_action_result",
]
