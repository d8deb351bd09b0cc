# =============================================================================
# core/services/moderation_service.py - Admin Moderation
# =============================================================================
# Admin-only state changes on listings and reports:
#
#   approve        pending|rejected -> approved   (reason cleared)
#   reject         any -> rejected                 (reason >= 5 chars)
#   hide           any -> rejected                 ("Hidden by admin.")
#   toggle_featured  flips `featured` (approved listings only can gain it)
#   delete         hard delete with the service-role client
#   resolve_report pending -> resolved | dismissed
#
# The caller's role is read from profiles on every call; nothing from the
# token or the client decides admin access.
# =============================================================================

import logging
from typing import Any
from uuid import UUID

from app.auth.models import AuthUser
from app.exceptions import (
    AuthenticationRequiredError,
    AuthorizationDeniedError,
    NotFoundError,
    ValidationFailedError,
)
from core.models.account import UserRole
from core.models.listing import ListingStatus
from core.models.report import ReportStatus
from core.models.result import returns_action_result
from core.services.common import persistence_failure
from lib.supabase_client import SupabaseClient

logger = logging.getLogger(__name__)

HIDDEN_REASON = "Hidden by admin."
MIN_REJECTION_REASON_LENGTH = 5


class ModerationService:
    """Admin operations. Every public method re-checks the caller's role."""

    @staticmethod
    def require_admin(user: AuthUser | None) -> AuthUser:
        """
        Raises:
            AuthenticationRequiredError: No caller
            AuthorizationDeniedError: Caller's profile role isn't admin
        """
        if user is None:
            raise AuthenticationRequiredError("Not authenticated")

        with persistence_failure("Not authorized"):
            profile = SupabaseClient.fetch_profile(user.id)

        if not profile or profile.get("role") != UserRole.ADMIN.value:
            logger.warning(f"Non-admin {user.id} attempted an admin action")
            raise AuthorizationDeniedError("Not authorized")
        return user

    @staticmethod
    def is_admin(user: AuthUser | None) -> bool:
        """Role check for callers that only need a yes/no (e.g. redirects)."""
        if user is None:
            return False
        profile = SupabaseClient.fetch_profile(user.id)
        return bool(profile) and profile.get("role") == UserRole.ADMIN.value

    @staticmethod
    def _set_status(listing_id: str, data: dict[str, Any], error: str) -> None:
        with persistence_failure(error):
            updated = SupabaseClient.update_listing(listing_id, data)
        if updated is None:
            raise NotFoundError("App", listing_id)

    # -------------------------------------------------------------------------
    # Listing State
    # -------------------------------------------------------------------------

    @staticmethod
    @returns_action_result
    def approve(user: AuthUser | None, listing_id: str | UUID) -> dict[str, Any]:
        """Publish a listing and clear any rejection reason."""
        admin = ModerationService.require_admin(user)
        listing_id = str(listing_id)

        ModerationService._set_status(
            listing_id,
            {"status": ListingStatus.APPROVED.value, "rejection_reason": None},
            "Failed to approve app.",
        )
        logger.info(f"Listing {listing_id} approved by {admin.id}")
        return {"id": listing_id, "status": ListingStatus.APPROVED.value}

    @staticmethod
    @returns_action_result
    def reject(user: AuthUser | None, listing_id: str | UUID, reason: str | None) -> dict[str, Any]:
        """Reject a listing with a reason the owner will see."""
        admin = ModerationService.require_admin(user)
        listing_id = str(listing_id)

        reason = (reason or "").strip()
        if len(reason) < MIN_REJECTION_REASON_LENGTH:
            raise ValidationFailedError(
                "Please provide a rejection reason (at least 5 characters).",
                field="reason",
            )

        ModerationService._set_status(
            listing_id,
            {"status": ListingStatus.REJECTED.value, "rejection_reason": reason},
            "Failed to reject app.",
        )
        logger.info(f"Listing {listing_id} rejected by {admin.id}")
        return {"id": listing_id, "status": ListingStatus.REJECTED.value}

    @staticmethod
    @returns_action_result
    def hide(user: AuthUser | None, listing_id: str | UUID) -> dict[str, Any]:
        """Take a listing out of the directory with the system reason."""
        admin = ModerationService.require_admin(user)
        listing_id = str(listing_id)

        ModerationService._set_status(
            listing_id,
            {"status": ListingStatus.REJECTED.value, "rejection_reason": HIDDEN_REASON},
            "Failed to hide app.",
        )
        logger.info(f"Listing {listing_id} hidden by {admin.id}")
        return {"id": listing_id, "status": ListingStatus.REJECTED.value}

    @staticmethod
    @returns_action_result
    def toggle_featured(user: AuthUser | None, listing_id: str | UUID) -> dict[str, Any]:
        """
        Flip the featured flag.

        Un-featuring always works; featuring needs an approved listing.
        """
        ModerationService.require_admin(user)
        listing_id = str(listing_id)

        with persistence_failure("Failed to update featured status."):
            listing = SupabaseClient.fetch_listing(listing_id, columns="id, featured, status")
        if listing is None:
            raise NotFoundError("App", listing_id)

        featured = not listing.get("featured", False)
        if featured and listing.get("status") != ListingStatus.APPROVED.value:
            raise ValidationFailedError("Only approved apps can be featured.", field="featured")

        with persistence_failure("Failed to update featured status."):
            SupabaseClient.update_listing(listing_id, {"featured": featured})

        logger.info(f"Listing {listing_id} featured={featured}")
        return {"id": listing_id, "featured": featured}

    @staticmethod
    @returns_action_result
    def delete(user: AuthUser | None, listing_id: str | UUID) -> dict[str, Any]:
        """Hard-delete a listing (service-role path; no RLS delete policy exists)."""
        admin = ModerationService.require_admin(user)
        listing_id = str(listing_id)

        with persistence_failure("Failed to delete app."):
            deleted = SupabaseClient.delete_listing(listing_id)
        if not deleted:
            raise NotFoundError("App", listing_id)

        logger.info(f"Listing {listing_id} deleted by {admin.id}")
        return {"id": listing_id, "deleted": True}

    # -------------------------------------------------------------------------
    # Reports
    # -------------------------------------------------------------------------

    @staticmethod
    @returns_action_result
    def resolve_report(user: AuthUser | None, report_id: str | UUID, status: str | ReportStatus) -> dict[str, Any]:
        """Close a report as resolved or dismissed."""
        admin = ModerationService.require_admin(user)
        report_id = str(report_id)

        status_value = status.value if isinstance(status, ReportStatus) else str(status)
        if status_value not in (ReportStatus.RESOLVED.value, ReportStatus.DISMISSED.value):
            raise ValidationFailedError("Status must be resolved or dismissed", field="status")

        with persistence_failure("Failed to update report."):
            updated = SupabaseClient.update_report_status(report_id, status_value)
        if updated is None:
            raise NotFoundError("Report", report_id)

        logger.info(f"Report {report_id} {status_value} by {admin.id}")
        return {"id": report_id, "status": status_value}

    # -------------------------------------------------------------------------
    # Admin Views
    # -------------------------------------------------------------------------

    @staticmethod
    def list_listings(user: AuthUser | None, status: ListingStatus | None = None) -> list[dict[str, Any]]:
        """Moderation queue. Raises instead of returning a result."""
        ModerationService.require_admin(user)
        return SupabaseClient.fetch_listings_by_status(status.value if status else None)

    @staticmethod
    def list_reports(user: AuthUser | None, status: ReportStatus | None = None) -> list[dict[str, Any]]:
        ModerationService.require_admin(user)
        return SupabaseClient.fetch_reports(status.value if status else None)
