# =============================================================================
# core/services/premium_service.py - Interest Analytics & Unlocks
# =============================================================================
# Owners of a coming-soon listing see interest aggregates for free. The
# list of interested users (and its CSV export) needs a paid unlock, which
# is recorded from the payment provider's checkout.session.completed
# webhook.
#
# Unlock recording is idempotent: the checkout session id is unique, so a
# redelivered webhook hits a unique violation and is reported as a
# duplicate success.
# =============================================================================

import asyncio
import io
import logging
import re
from typing import Any
from uuid import UUID

import pandas as pd

from app.auth.models import AuthUser
from app.exceptions import AuthorizationDeniedError, PersistenceFailureError, ValidationFailedError
from core.models.premium import (
    CountryBreakdown,
    InterestAnalytics,
    InterestedUser,
    InterestTimelinePoint,
    UnlockReceipt,
)
from core.models.result import returns_action_result
from core.services.common import persistence_failure, require_user
from lib.supabase_client import SupabaseClient, SupabaseClientError

logger = logging.getLogger(__name__)

CSV_COLUMNS = {
    "email": "Email",
    "display_name": "Name",
    "country": "Country",
    "interested_at": "Date",
}


class PremiumService:
    """Owner analytics and paid unlocks."""

    @staticmethod
    def _require_owned_listing(user: AuthUser | None, listing_id: str) -> dict[str, Any]:
        """
        Raises:
            AuthenticationRequiredError: No caller
            AuthorizationDeniedError: Listing missing or owned by someone else
        """
        user = require_user(user)
        listing = SupabaseClient.fetch_listing(
            listing_id,
            columns="id, name, submitted_by, interest_count, is_coming_soon",
        )
        if not listing or str(listing.get("submitted_by")) != str(user.id):
            raise AuthorizationDeniedError("App not found or you do not have permission.")
        return listing

    @staticmethod
    def _fetch_interested_users(user: AuthUser | None, listing_id: str) -> tuple[dict[str, Any], list[InterestedUser]]:
        with persistence_failure("Failed to fetch interested users."):
            listing = PremiumService._require_owned_listing(user, listing_id)
            unlock = SupabaseClient.fetch_unlock(listing_id)

        if unlock is None:
            raise AuthorizationDeniedError("You must unlock this app to access interested users.")

        with persistence_failure("Failed to fetch interested users."):
            rows = SupabaseClient.rpc("get_interested_users", {"p_app_id": listing_id}) or []

        return listing, [InterestedUser(**row) for row in rows]

    # -------------------------------------------------------------------------
    # Analytics
    # -------------------------------------------------------------------------

    @staticmethod
    @returns_action_result
    async def get_interest_analytics(user: AuthUser | None, listing_id: str | UUID) -> dict[str, Any]:
        """
        Timeline, country breakdown and unlock status for an owned listing.

        The three reads run concurrently; each is a blocking Supabase call,
        so they're pushed to worker threads.
        """
        listing_id = str(listing_id)

        with persistence_failure("Failed to load interest analytics."):
            listing = await asyncio.to_thread(PremiumService._require_owned_listing, user, listing_id)
            timeline, countries, unlock = await asyncio.gather(
                asyncio.to_thread(SupabaseClient.rpc, "get_interest_timeline", {"p_app_id": listing_id}),
                asyncio.to_thread(SupabaseClient.rpc, "get_interest_countries", {"p_app_id": listing_id}),
                asyncio.to_thread(SupabaseClient.fetch_unlock, listing_id),
            )

        analytics = InterestAnalytics(
            listing_id=listing_id,
            name=listing["name"],
            interest_count=listing.get("interest_count") or 0,
            is_coming_soon=bool(listing.get("is_coming_soon")),
            timeline=[InterestTimelinePoint(**point) for point in (timeline or [])],
            countries=[CountryBreakdown(**row) for row in (countries or [])],
            is_unlocked=unlock is not None,
        )
        return analytics.model_dump(mode="json")

    @staticmethod
    @returns_action_result
    def get_interested_users(user: AuthUser | None, listing_id: str | UUID) -> dict[str, Any]:
        """Interested users (email, name, country, date) for an unlocked listing."""
        _, users = PremiumService._fetch_interested_users(user, str(listing_id))
        return {"users": [u.model_dump(mode="json") for u in users]}

    @staticmethod
    def export_interested_users_csv(user: AuthUser | None, listing_id: str | UUID) -> tuple[str, str]:
        """
        Interested users as CSV.

        Returns:
            Tuple of (filename, CSV text)

        Raises:
            DirectoryException: Same failures as get_interested_users
        """
        listing, users = PremiumService._fetch_interested_users(user, str(listing_id))

        df = pd.DataFrame(
            [u.model_dump() for u in users],
            columns=list(CSV_COLUMNS),
        )
        if not df.empty:
            df["interested_at"] = pd.to_datetime(df["interested_at"], utc=True).dt.strftime("%Y-%m-%d")
        df = df.rename(columns=CSV_COLUMNS)

        csv_buffer = io.StringIO()
        df.to_csv(csv_buffer, index=False)

        filename = f"{re.sub(r'[^a-zA-Z0-9]', '_', listing['name'])}_interests.csv"
        return filename, csv_buffer.getvalue()

    # -------------------------------------------------------------------------
    # Unlocks
    # -------------------------------------------------------------------------

    @staticmethod
    @returns_action_result
    def record_checkout_completion(session: dict[str, Any]) -> dict[str, Any]:
        """
        Record an unlock from a completed checkout session.

        Args:
            session: The event's `data.object`

        Returns:
            {"created": bool}; False means this session was already recorded
        """
        metadata = session.get("metadata") or {}
        app_id = metadata.get("app_id")
        unlocked_by = metadata.get("unlocked_by")
        if not app_id or not unlocked_by:
            logger.warning(f"Checkout session {session.get('id')} missing unlock metadata")
            raise ValidationFailedError("Missing metadata", field="metadata")

        payment_intent = session.get("payment_intent")
        if isinstance(payment_intent, dict):
            payment_intent = payment_intent.get("id")

        receipt = UnlockReceipt(
            app_id=app_id,
            unlocked_by=unlocked_by,
            stripe_checkout_session_id=session.get("id") or "",
            stripe_payment_intent_id=payment_intent,
            amount_cents=session.get("amount_total") or 0,
            currency=session.get("currency") or "usd",
        )

        try:
            row = SupabaseClient.insert_unlock(receipt.model_dump())
        except SupabaseClientError as e:
            logger.error(f"Failed to record unlock for app {app_id}: {e}")
            raise PersistenceFailureError("Database error", error=e.message)

        if row is None:
            return {"created": False}

        logger.info(f"Unlock recorded for app {app_id} by {unlocked_by}")
        return {"created": True}
