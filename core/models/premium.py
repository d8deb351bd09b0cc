# =============================================================================
# core/models/premium.py - Interest & Unlock Schemas
# =============================================================================
# Interest analytics for coming-soon listings. Aggregates (timeline,
# countries) are free for owners; the interested-user list and CSV export
# need a paid unlock.
# =============================================================================

from datetime import date, datetime

from pydantic import BaseModel, Field


class InterestToggleRequest(BaseModel):
    """
    Body of the interest toggle.

    `consent_acknowledged` must be true when registering interest (the
    owner may receive the user's email); removing interest never needs it.
    """
    country: str | None = Field(
        default=None,
        description="ISO 3166-1 alpha-2 country code, e.g. 'US'"
    )
    consent_acknowledged: bool = Field(
        default=False,
        description="User agreed to share their email with the developer"
    )


class InterestTimelinePoint(BaseModel):
    """Interest registrations per day."""
    day: date
    count: int = 0


class CountryBreakdown(BaseModel):
    country: str
    count: int = 0


class InterestedUser(BaseModel):
    email: str
    display_name: str | None = None
    country: str | None = None
    interested_at: datetime


class InterestAnalytics(BaseModel):
    """Owner-facing summary for one listing."""
    listing_id: str
    name: str
    interest_count: int = 0
    is_coming_soon: bool = False
    timeline: list[InterestTimelinePoint] = Field(default_factory=list)
    countries: list[CountryBreakdown] = Field(default_factory=list)
    is_unlocked: bool = False


class UnlockReceipt(BaseModel):
    """Payment receipt granting analytics access for one listing."""
    app_id: str
    unlocked_by: str
    stripe_checkout_session_id: str
    stripe_payment_intent_id: str | None = None
    amount_cents: int = 0
    currency: str = "usd"
