# =============================================================================
# core/models/report.py - Report Schemas
# =============================================================================
# User-submitted moderation flags on a listing.
#
# Lifecycle: pending -> resolved | dismissed (admin only)
# A reporter may hold at most one pending report per listing.
# =============================================================================

from enum import Enum
from uuid import UUID

from pydantic import BaseModel, ConfigDict, field_validator


class ReportReason(str, Enum):
    SPAM = "spam"
    MISLEADING = "misleading"
    BROKEN_LINKS = "broken_links"
    DUPLICATE = "duplicate"
    INAPPROPRIATE = "inappropriate"
    OTHER = "other"


class ReportStatus(str, Enum):
    """
    Report state.

    - pending: Waiting for an admin
    - resolved: Acted upon
    - dismissed: Closed without action
    """
    PENDING = "pending"
    RESOLVED = "resolved"
    DISMISSED = "dismissed"


class ReportSubmission(BaseModel):
    """
    Payload for flagging a listing.

    Example:
        {"listing_id": "550e8400-...", "reason": "broken_links",
         "details": "The website link returns a 404."}
    """

    model_config = ConfigDict(extra="forbid", validate_default=True)

    listing_id: str = ""
    reason: ReportReason | None = None
    details: str = ""

    @field_validator("listing_id")
    @classmethod
    def validate_listing_id(cls, v: str) -> str:
        try:
            return str(UUID(v.strip()))
        except ValueError:
            raise ValueError("Invalid app id")

    @field_validator("reason", mode="before")
    @classmethod
    def validate_reason(cls, v):
        if not isinstance(v, str) or v not in {r.value for r in ReportReason}:
            raise ValueError("Please select a reason")
        return v

    @field_validator("details")
    @classmethod
    def validate_details(cls, v: str) -> str:
        stripped = v.strip()
        if len(stripped) < 10:
            raise ValueError("Please provide at least 10 characters of detail")
        if len(stripped) > 500:
            raise ValueError("Details must be under 500 characters")
        return stripped
