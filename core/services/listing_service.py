# =============================================================================
# core/services/listing_service.py - Submission Workflow & Listing Reads
# =============================================================================
# Create path (in this order):
#   1. signed-in caller          6. atomic daily quota
#   2. per-caller rate limit     7. duplicate website / name
#   3. honeypot (fake success)   8. unique slug
#   4. field validation          9. insert as pending
#   5. media URL origin          10. tags (failures logged, not fatal)
#
# Edit path: owner only, never on approved listings; status resets to
# pending for another review.
# =============================================================================

import logging
import math
from typing import Any
from uuid import UUID

from app.auth.models import AuthUser
from app.config import settings
from app.exceptions import (
    AuthorizationDeniedError,
    DuplicateResourceError,
    NotFoundError,
    QuotaExceededError,
    ValidationFailedError,
)
from core.models.listing import ListingQuery, ListingStatus, ListingSubmission
from core.models.result import returns_action_result
from core.services.common import enforce_rate_limit, persistence_failure, require_user
from core.validation import check_media_urls, validate_submission
from lib.rate_limit import RateLimitRule
from lib.supabase_client import SupabaseClient, SupabaseClientError
from lib.utils import slugify, timestamp_suffix

logger = logging.getLogger(__name__)

HONEYPOT_FIELD = "website2"
HONEYPOT_ID = "fake"


class ListingService:
    """
    Submission, edit and read operations for listings.

    Workflow operations return ActionResult; reads raise NotFoundError.
    """

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    @staticmethod
    def generate_unique_slug(name: str, now_ms: int | None = None) -> str:
        """
        Slug for a new listing.

        If the plain slug is taken, a base-36 millisecond timestamp is
        appended: "talkative" -> "talkative-lq2x9k1c".
        """
        slug = slugify(name) or "app"
        if SupabaseClient.slug_exists(slug):
            slug = f"{slug}-{timestamp_suffix(now_ms)}"
        return slug

    @staticmethod
    def attach_tags(listing_id: str, tags: list[str]) -> int:
        """
        Upsert tags by slug and link them to a listing.

        Tag failures never fail the submission; they're logged and the
        remaining tags are skipped.

        Returns:
            Number of tags linked
        """
        linked = 0
        try:
            for tag_name in tags:
                tag = SupabaseClient.upsert_tag(tag_name.lower().strip(), slugify(tag_name))
                if tag and tag.get("id"):
                    SupabaseClient.link_tag(listing_id, tag["id"])
                    linked += 1
        except SupabaseClientError as e:
            logger.error(f"Tag creation failed for listing {listing_id}: {e}")
        return linked

    @staticmethod
    def _reject_duplicates(submission: ListingSubmission) -> None:
        existing = SupabaseClient.find_listing_by_website(submission.website_url)
        if existing:
            raise DuplicateResourceError(
                f'An app with this website URL already exists: "{existing["name"]}".',
                details={"listing_id": existing["id"]},
            )

        similar = SupabaseClient.find_listing_by_name(submission.name)
        if similar:
            raise DuplicateResourceError(
                f'An app with a similar name already exists: "{similar["name"]}".',
                details={"listing_id": similar["id"]},
            )

    # -------------------------------------------------------------------------
    # Workflow Operations
    # -------------------------------------------------------------------------

    @staticmethod
    @returns_action_result
    def submit_listing(user: AuthUser | None, raw: dict[str, Any]) -> dict[str, Any]:
        """
        Submit a new listing for review.

        Args:
            user: Signed-in caller (None for anonymous)
            raw: Submission payload (see ListingSubmission)

        Returns:
            {"id": <new listing id>, "slug": ...}; a honeypot hit returns
            {"id": "fake"} and stores nothing
        """
        user = require_user(user, "You must be signed in to submit an app.")
        user_id = str(user.id)

        enforce_rate_limit(RateLimitRule.SUBMIT, user_id)

        if isinstance(raw, dict) and str(raw.get(HONEYPOT_FIELD) or "").strip():
            logger.warning(f"Honeypot triggered by user {user_id}; discarding submission")
            return {"id": HONEYPOT_ID}

        submission = validate_submission(raw)
        check_media_urls(submission.media_urls())

        with persistence_failure("Failed to submit app. Please try again."):
            within_quota = SupabaseClient.check_submission_quota(user_id, settings.MAX_SUBMISSIONS_PER_DAY)
        if not within_quota:
            raise QuotaExceededError(settings.MAX_SUBMISSIONS_PER_DAY)

        with persistence_failure("Failed to submit app. Please try again."):
            ListingService._reject_duplicates(submission)
            slug = ListingService.generate_unique_slug(submission.name)
            listing = SupabaseClient.insert_listing({
                **submission.to_row(),
                "submitted_by": user_id,
                "slug": slug,
                "status": ListingStatus.PENDING.value,
            })

        logger.info(f"Listing submitted: {listing['id']} ({slug}) by {user_id}")

        if submission.tags:
            ListingService.attach_tags(listing["id"], submission.tags)

        return {"id": listing["id"], "slug": slug}

    @staticmethod
    @returns_action_result
    def update_listing(user: AuthUser | None, listing_id: str | UUID, raw: dict[str, Any]) -> dict[str, Any]:
        """
        Edit one of the caller's own listings and send it back to review.

        Raises (as failed results):
            NotFoundError: Listing doesn't exist
            AuthorizationDeniedError: Caller isn't the owner
            ValidationFailedError: Approved listing, or invalid payload
        """
        user = require_user(user)
        listing_id = str(listing_id)

        with persistence_failure("Failed to update app. Please try again."):
            listing = SupabaseClient.fetch_listing(listing_id, columns="id, submitted_by, status")

        if listing is None:
            raise NotFoundError("App", listing_id)
        if str(listing.get("submitted_by")) != str(user.id):
            raise AuthorizationDeniedError("App not found or you do not have permission to edit it.")
        if listing.get("status") == ListingStatus.APPROVED.value:
            raise ValidationFailedError(
                "Approved apps cannot be edited. Contact an admin if changes are needed.",
                field="status",
            )

        submission = validate_submission(raw)
        check_media_urls(submission.media_urls())

        row = submission.to_row()
        # Slug and counters stay put; only content changes
        row["status"] = ListingStatus.PENDING.value

        with persistence_failure("Failed to update app. Please try again."):
            SupabaseClient.update_listing(listing_id, row)

        logger.info(f"Listing {listing_id} edited by owner; back to pending")
        return {"id": listing_id, "status": ListingStatus.PENDING.value}

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    @staticmethod
    def record_view(listing: dict[str, Any]) -> bool:
        """
        Best-effort view counter bump.

        Compare-and-swap on the observed count with no retry: a concurrent
        view wins and this one is lost. Errors are logged, never raised.
        """
        observed = listing.get("view_count") or 0
        try:
            return SupabaseClient.increment_view_count(listing["id"], observed)
        except SupabaseClientError as e:
            logger.warning(f"View count update failed for {listing['id']}: {e}")
            return False

    @staticmethod
    def get_listing_by_slug(slug: str, user: AuthUser | None = None) -> dict[str, Any]:
        """
        Public detail view of an approved listing.

        Adds tags and, for a signed-in caller, `user_has_upvoted` /
        `user_has_interested`. Counts one view.

        Raises:
            NotFoundError: If no approved listing has this slug
        """
        listing = SupabaseClient.fetch_approved_listing_by_slug(slug)
        if listing is None:
            raise NotFoundError("App", slug)

        listing["tags"] = SupabaseClient.fetch_listing_tags(listing["id"])
        listing["user_has_upvoted"] = False
        listing["user_has_interested"] = False

        if user is not None:
            listing["user_has_upvoted"] = SupabaseClient.fetch_membership("upvotes", user.id, listing["id"]) is not None
            listing["user_has_interested"] = (
                SupabaseClient.fetch_membership("app_interests", user.id, listing["id"]) is not None
            )

        ListingService.record_view(listing)
        return listing

    @staticmethod
    def browse_listings(query: ListingQuery, user: AuthUser | None = None) -> dict[str, Any]:
        """
        Approved listings matching the query, one page at a time.

        Returns:
            {"items": [...], "total": int, "page": int, "per_page": int, "pages": int}

        Raises:
            NotFoundError: If the category slug is unknown
        """
        category_id = None
        if query.category:
            category = SupabaseClient.fetch_category_by_slug(query.category)
            if category is None:
                raise NotFoundError("Category", query.category)
            category_id = category["id"]

        offset = (query.page - 1) * query.per_page
        items, total = SupabaseClient.search_listings(
            search=query.q.strip() if query.q else None,
            category_id=category_id,
            platform=query.platform.value if query.platform else None,
            pricing_model=query.pricing.value if query.pricing else None,
            sort=query.sort.value,
            offset=offset,
            limit=query.per_page,
        )

        if user is not None and items:
            ids = [item["id"] for item in items]
            upvoted = SupabaseClient.fetch_memberships_for_listings("upvotes", user.id, ids)
            interested = SupabaseClient.fetch_memberships_for_listings("app_interests", user.id, ids)
            for item in items:
                item["user_has_upvoted"] = item["id"] in upvoted
                item["user_has_interested"] = item["id"] in interested

        return {
            "items": items,
            "total": total,
            "page": query.page,
            "per_page": query.per_page,
            "pages": math.ceil(total / query.per_page) if total else 0,
        }

    @staticmethod
    def list_owner_listings(user: AuthUser) -> list[dict[str, Any]]:
        """Caller's own listings, every status, newest first."""
        return SupabaseClient.fetch_listings_by_owner(user.id)

    @staticmethod
    def list_categories() -> list[dict[str, Any]]:
        return SupabaseClient.fetch_categories()

    @staticmethod
    def get_category(slug: str) -> dict[str, Any]:
        """
        Raises:
            NotFoundError: If the slug is unknown
        """
        category = SupabaseClient.fetch_category_by_slug(slug)
        if category is None:
            raise NotFoundError("Category", slug)
        return category
