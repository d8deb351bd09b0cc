# =============================================================================
# core/services/engagement_service.py - Upvote & Interest Toggles
# =============================================================================
# Both toggles flip a (user, listing) membership row: delete it if present,
# insert it otherwise. Calling a toggle twice returns to the original state.
#
# Interest extras:
# - only approved, coming-soon listings accept NEW interest
# - inserting requires the caller's consent to share their email
# - an optional ISO country code is stored with the row
# Removing interest is always allowed.
# =============================================================================

import logging
from typing import Any
from uuid import UUID

from app.auth.models import AuthUser
from app.exceptions import NotFoundError, ValidationFailedError
from core.models.listing import ListingStatus
from core.models.result import returns_action_result
from core.services.common import enforce_rate_limit, persistence_failure, require_user
from core.validation import is_valid_country_code
from lib.rate_limit import RateLimitRule
from lib.supabase_client import SupabaseClient

logger = logging.getLogger(__name__)

UPVOTES_TABLE = "upvotes"
INTERESTS_TABLE = "app_interests"


class EngagementService:
    """Idempotent membership toggles."""

    @staticmethod
    def _toggle(
        table: str,
        user_id: str,
        listing_id: str,
        row: dict[str, Any],
        remove_error: str,
        add_error: str,
    ) -> bool:
        """Flip one membership row. Returns the membership after the call."""
        with persistence_failure(add_error):
            existing = SupabaseClient.fetch_membership(table, user_id, listing_id)

        if existing:
            with persistence_failure(remove_error):
                SupabaseClient.delete_membership(table, user_id, listing_id)
            return False

        with persistence_failure(add_error):
            SupabaseClient.insert_membership(table, row)
        return True

    @staticmethod
    @returns_action_result
    def toggle_upvote(user: AuthUser | None, listing_id: str | UUID) -> dict[str, Any]:
        """
        Upvote a listing, or take the upvote back.

        Returns:
            {"listing_id": ..., "active": bool}
        """
        user = require_user(user, "You must be signed in to upvote.")
        user_id = str(user.id)
        listing_id = str(listing_id)

        enforce_rate_limit(RateLimitRule.UPVOTE, user_id)

        active = EngagementService._toggle(
            UPVOTES_TABLE,
            user_id,
            listing_id,
            {"user_id": user_id, "app_id": listing_id},
            remove_error="Failed to remove upvote.",
            add_error="Failed to upvote.",
        )
        logger.debug(f"Upvote {'added' if active else 'removed'}: {user_id} -> {listing_id}")
        return {"listing_id": listing_id, "active": active}

    @staticmethod
    @returns_action_result
    def toggle_interest(
        user: AuthUser | None,
        listing_id: str | UUID,
        country: str | None = None,
        consent_acknowledged: bool = False,
    ) -> dict[str, Any]:
        """
        Register or withdraw interest in a coming-soon listing.

        Args:
            user: Signed-in caller
            listing_id: Listing UUID
            country: Optional ISO 3166-1 alpha-2 code (stored upper-case)
            consent_acknowledged: Required when registering interest

        Returns:
            {"listing_id": ..., "active": bool}
        """
        user = require_user(user, "You must be signed in to express interest.")
        user_id = str(user.id)
        listing_id = str(listing_id)

        enforce_rate_limit(RateLimitRule.INTEREST, user_id)

        with persistence_failure("Failed to update interest."):
            existing = SupabaseClient.fetch_membership(INTERESTS_TABLE, user_id, listing_id)

        if existing:
            with persistence_failure("Failed to remove interest."):
                SupabaseClient.delete_membership(INTERESTS_TABLE, user_id, listing_id)
            logger.debug(f"Interest removed: {user_id} -> {listing_id}")
            return {"listing_id": listing_id, "active": False}

        with persistence_failure("Failed to update interest."):
            listing = SupabaseClient.fetch_listing(listing_id, columns="id, status, is_coming_soon")
        if listing is None or listing.get("status") != ListingStatus.APPROVED.value:
            raise NotFoundError("App", listing_id)
        if not listing.get("is_coming_soon"):
            raise ValidationFailedError("Interest can only be registered for upcoming apps.", field="listing_id")

        if not consent_acknowledged:
            raise ValidationFailedError(
                "Please agree to share your email with the developer before expressing interest.",
                field="consent_acknowledged",
            )

        country_code = country.strip().upper() if country else None
        if country_code and not is_valid_country_code(country_code):
            raise ValidationFailedError("Invalid country code.", field="country")

        with persistence_failure("Failed to express interest."):
            SupabaseClient.insert_membership(
                INTERESTS_TABLE,
                {"user_id": user_id, "app_id": listing_id, "country": country_code},
            )

        logger.info(f"Interest registered: {user_id} -> {listing_id} ({country_code or 'unknown country'})")
        return {"listing_id": listing_id, "active": True}
