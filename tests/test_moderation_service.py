# =============================================================================
# tests/test_moderation_service.py - Admin Moderation Tests
# =============================================================================
# Run with: poetry run pytest tests/test_moderation_service.py -v
# =============================================================================

import pytest

from app.exceptions import AuthenticationRequiredError, AuthorizationDeniedError
from core.models.listing import ListingStatus
from core.models.report import ReportStatus
from core.services.moderation_service import HIDDEN_REASON, ModerationService


class TestAdminCheck:
    """The role is read from the profile, never trusted from the caller."""

    def test_non_admin_denied(self, fake_db, owner):
        # Arrange: a profile exists but with the default role
        fake_db.add_profile(owner.id)
        listing = fake_db.add_listing()

        # Act
        result = ModerationService.approve(owner, listing["id"])

        # Assert
        assert result.success is False
        assert result.error == "Not authorized"
        assert result.status_code == 403
        assert fake_db.listings[listing["id"]]["status"] == "pending"

    def test_missing_profile_denied(self, fake_db, owner):
        with pytest.raises(AuthorizationDeniedError):
            ModerationService.require_admin(owner)

    def test_anonymous(self, fake_db):
        with pytest.raises(AuthenticationRequiredError) as exc_info:
            ModerationService.require_admin(None)
        assert exc_info.value.message == "Not authenticated"

    def test_is_admin(self, fake_db, admin_user, owner):
        assert ModerationService.is_admin(admin_user) is True
        assert ModerationService.is_admin(owner) is False
        assert ModerationService.is_admin(None) is False


class TestListingActions:
    """Approve, reject, hide, feature and delete."""

    def test_approve_clears_reason(self, fake_db, admin_user):
        listing = fake_db.add_listing(status="rejected", rejection_reason="Broken link")

        result = ModerationService.approve(admin_user, listing["id"])

        assert result.success is True
        stored = fake_db.listings[listing["id"]]
        assert stored["status"] == "approved"
        assert stored["rejection_reason"] is None

    def test_approve_missing_listing(self, fake_db, admin_user):
        result = ModerationService.approve(admin_user, "7d3f1b2a-0000-4f6a-9b8c-1d2e3f4a5b6c")
        assert result.status_code == 404

    def test_reject_with_reason(self, fake_db, admin_user):
        listing = fake_db.add_listing()

        result = ModerationService.reject(admin_user, listing["id"], "  Website is unreachable.  ")

        assert result.success is True
        assert fake_db.listings[listing["id"]]["rejection_reason"] == "Website is unreachable."

    @pytest.mark.parametrize("reason", [None, "", "   ", "bad"])
    def test_reject_needs_reason(self, fake_db, admin_user, reason):
        listing = fake_db.add_listing()

        result = ModerationService.reject(admin_user, listing["id"], reason)

        assert result.success is False
        assert result.error == "Please provide a rejection reason (at least 5 characters)."
        assert fake_db.listings[listing["id"]]["status"] == "pending"

    def test_hide(self, fake_db, admin_user):
        listing = fake_db.add_listing(status="approved")

        ModerationService.hide(admin_user, listing["id"])

        stored = fake_db.listings[listing["id"]]
        assert stored["status"] == "rejected"
        assert stored["rejection_reason"] == HIDDEN_REASON

    def test_toggle_featured(self, fake_db, admin_user):
        """Featuring flips on and back off."""
        # Arrange
        listing = fake_db.add_listing(status="approved")

        # Act
        on = ModerationService.toggle_featured(admin_user, listing["id"])
        off = ModerationService.toggle_featured(admin_user, listing["id"])

        # Assert
        assert on.data["featured"] is True
        assert off.data["featured"] is False

    def test_feature_requires_approved(self, fake_db, admin_user):
        listing = fake_db.add_listing(status="pending")

        result = ModerationService.toggle_featured(admin_user, listing["id"])

        assert result.error == "Only approved apps can be featured."
        assert fake_db.listings[listing["id"]]["featured"] is False

    def test_unfeature_after_hide(self, fake_db, admin_user):
        listing = fake_db.add_listing(status="rejected", featured=True)

        result = ModerationService.toggle_featured(admin_user, listing["id"])

        assert result.success is True
        assert result.data["featured"] is False

    def test_delete(self, fake_db, admin_user):
        listing = fake_db.add_listing()

        result = ModerationService.delete(admin_user, listing["id"])

        assert result.success is True
        assert listing["id"] not in fake_db.listings

    def test_delete_failure(self, fake_db, admin_user):
        listing = fake_db.add_listing()
        fake_db.fail_on.add("delete_listing")

        result = ModerationService.delete(admin_user, listing["id"])

        assert result.error == "Failed to delete app."


class TestReports:

    def test_resolve_report(self, fake_db, admin_user, owner):
        report = fake_db.insert_report({"app_id": "a", "reporter_id": str(owner.id), "reason": "spam",
                                        "details": "Spam listing text", "status": "pending"})

        result = ModerationService.resolve_report(admin_user, report["id"], ReportStatus.DISMISSED)

        assert result.success is True
        assert fake_db.reports[report["id"]]["status"] == "dismissed"

    def test_resolve_to_pending_rejected(self, fake_db, admin_user):
        result = ModerationService.resolve_report(admin_user, "7d3f1b2a-0000-4f6a-9b8c-1d2e3f4a5b6c", "pending")
        assert result.error == "Status must be resolved or dismissed"

    def test_resolve_missing_report(self, fake_db, admin_user):
        result = ModerationService.resolve_report(admin_user, "7d3f1b2a-0000-4f6a-9b8c-1d2e3f4a5b6c", "resolved")
        assert result.status_code == 404

    def test_admin_views(self, fake_db, admin_user):
        fake_db.add_listing(status="pending")
        fake_db.add_listing(status="approved")

        pending = ModerationService.list_listings(admin_user, ListingStatus.PENDING)
        everything = ModerationService.list_listings(admin_user)

        assert len(pending) == 1
        assert len(everything) == 2

    def test_admin_views_raise_for_non_admin(self, fake_db, owner):
        with pytest.raises(AuthorizationDeniedError):
            ModerationService.list_reports(owner)
