# =============================================================================
# tests/test_listing_service.py - Submission Workflow Tests
# =============================================================================
# Tests for core/services/listing_service.py against the in-memory
# FakeSupabase (see conftest.py):
# - Submit: auth, rate limit, honeypot, validation, media, quota,
#   duplicates, slug, tags
# - Edit: ownership and the approved-listing lock
# - Reads: detail flags, view counting, browse filters and paging
#
# Run with: poetry run pytest tests/test_listing_service.py -v
# =============================================================================

from unittest.mock import patch

import pytest

from app.exceptions import NotFoundError
from core.models.listing import ListingQuery, ListingSort, Platform
from core.services.listing_service import ListingService
from core.services.moderation_service import ModerationService
from lib.rate_limit import RateLimitRule, check_rate_limit

from tests.conftest import CATEGORY_ID


# =============================================================================
# Submit
# =============================================================================

class TestSubmitListing:
    """Tests for ListingService.submit_listing."""

    def test_submit_creates_pending_listing(self, fake_db, owner, valid_submission):
        """A valid submission is stored as pending with the caller as owner."""
        # Act
        result = ListingService.submit_listing(owner, valid_submission)

        # Assert
        assert result.success is True
        listing = fake_db.listings[result.data["id"]]
        assert listing["status"] == "pending"
        assert listing["submitted_by"] == str(owner.id)
        assert listing["slug"] == "talkative"
        assert result.data["slug"] == "talkative"

    def test_submit_links_tags(self, fake_db, owner, valid_submission):
        """Tags are upserted by slug and linked to the new listing."""
        # Arrange
        valid_submission["tags"] = ["Smart Home", "notes"]

        # Act
        result = ListingService.submit_listing(owner, valid_submission)

        # Assert
        assert set(fake_db.tags) == {"smart-home", "notes"}
        assert fake_db.tags["smart-home"]["name"] == "smart home"
        assert len(fake_db.app_tags) == 2
        assert all(link["app_id"] == result.data["id"] for link in fake_db.app_tags)

    def test_tag_failure_does_not_fail_submission(self, fake_db, owner, valid_submission):
        fake_db.fail_on.add("upsert_tag")

        result = ListingService.submit_listing(owner, valid_submission)

        assert result.success is True
        assert result.data["id"] in fake_db.listings

    def test_anonymous_caller(self, fake_db, valid_submission):
        result = ListingService.submit_listing(None, valid_submission)

        assert result.success is False
        assert result.error == "You must be signed in to submit an app."
        assert result.status_code == 401
        assert fake_db.listings == {}

    def test_honeypot_returns_fake_success(self, fake_db, owner, valid_submission):
        """A filled honeypot looks like success but stores nothing."""
        # Arrange
        valid_submission["website2"] = "https://spam.example.com"

        # Act
        result = ListingService.submit_listing(owner, valid_submission)

        # Assert
        assert result.success is True
        assert result.data == {"id": "fake"}
        assert fake_db.listings == {}

    def test_validation_error_is_first_message(self, fake_db, owner, valid_submission):
        valid_submission["tagline"] = "short"

        result = ListingService.submit_listing(owner, valid_submission)

        assert result.success is False
        assert result.error == "Tagline must be at least 10 characters"
        assert result.status_code == 422

    def test_foreign_media_url_rejected(self, fake_db, owner, valid_submission):
        valid_submission["logo_url"] = "https://evil-supabase.co/storage/v1/object/public/app-assets/x.png"

        result = ListingService.submit_listing(owner, valid_submission)

        assert result.success is False
        assert result.error == "Invalid image URL. Please upload images using the form."
        assert fake_db.listings == {}

    def test_rate_limited(self, fake_db, owner, valid_submission):
        """The sixth submission inside the window is refused before validation."""
        # Arrange: use up the window
        for _ in range(5):
            check_rate_limit(RateLimitRule.SUBMIT, str(owner.id))

        # Act
        result = ListingService.submit_listing(owner, valid_submission)

        # Assert
        assert result.success is False
        assert result.code == "RATE_LIMITED"
        assert result.error == "Too many submissions. Please wait a few minutes and try again."

    def test_daily_quota(self, fake_db, owner, valid_submission):
        """The fourth submission in a day is refused with the quota message."""
        # Arrange: three accepted submissions with distinct names/sites
        for i in range(3):
            payload = {**valid_submission, "name": f"App {i}", "website_url": f"https://app{i}.example.com"}
            assert ListingService.submit_listing(owner, payload).success is True

        # Act
        result = ListingService.submit_listing(owner, valid_submission)

        # Assert
        assert result.success is False
        assert result.code == "QUOTA_EXCEEDED"
        assert result.error == "You can submit a maximum of 3 apps per day. Please try again tomorrow."
        assert len(fake_db.listings) == 3

    def test_duplicate_website(self, fake_db, owner, valid_submission):
        # Arrange
        fake_db.add_listing(name="Existing", website_url=valid_submission["website_url"])

        # Act
        result = ListingService.submit_listing(owner, valid_submission)

        # Assert
        assert result.success is False
        assert result.code == "DUPLICATE_RESOURCE"
        assert result.error == 'An app with this website URL already exists: "Existing".'

    def test_duplicate_name_is_case_insensitive(self, fake_db, owner, valid_submission):
        fake_db.add_listing(name="TALKATIVE", website_url="https://other.example.com")

        result = ListingService.submit_listing(owner, valid_submission)

        assert result.success is False
        assert result.error == 'An app with a similar name already exists: "TALKATIVE".'

    def test_slug_collision_gets_timestamp_suffix(self, fake_db):
        """A taken slug gets a base-36 millisecond suffix."""
        # Arrange
        fake_db.add_listing(slug="talkative")

        # Act
        slug = ListingService.generate_unique_slug("Talkative", now_ms=36 ** 3)

        # Assert
        assert slug == "talkative-1000"

    def test_database_failure(self, fake_db, owner, valid_submission):
        fake_db.fail_on.add("insert_listing")

        result = ListingService.submit_listing(owner, valid_submission)

        assert result.success is False
        assert result.code == "PERSISTENCE_FAILURE"
        assert result.error == "Failed to submit app. Please try again."
        assert result.status_code == 500


# =============================================================================
# Edit
# =============================================================================

class TestUpdateListing:
    """Tests for ListingService.update_listing."""

    def test_owner_edit_resets_to_pending(self, fake_db, owner, valid_submission):
        """Editing a rejected listing sends it back to review."""
        # Arrange
        listing = fake_db.add_listing(submitted_by=str(owner.id), status="rejected",
                                      rejection_reason="Broken link")
        valid_submission["tagline"] = "A brand new tagline for review"

        # Act
        result = ListingService.update_listing(owner, listing["id"], valid_submission)

        # Assert
        assert result.success is True
        stored = fake_db.listings[listing["id"]]
        assert stored["status"] == "pending"
        assert stored["tagline"] == "A brand new tagline for review"
        assert stored["slug"] == listing["slug"]

    def test_missing_listing(self, fake_db, owner, valid_submission):
        result = ListingService.update_listing(owner, "7d3f1b2a-0000-4f6a-9b8c-1d2e3f4a5b6c", valid_submission)

        assert result.success is False
        assert result.status_code == 404

    def test_non_owner_denied(self, fake_db, owner, other_user, valid_submission):
        listing = fake_db.add_listing(submitted_by=str(owner.id))

        result = ListingService.update_listing(other_user, listing["id"], valid_submission)

        assert result.success is False
        assert result.error == "App not found or you do not have permission to edit it."
        assert result.status_code == 403

    def test_approved_listing_is_locked(self, fake_db, owner, valid_submission):
        listing = fake_db.add_listing(submitted_by=str(owner.id), status="approved")

        result = ListingService.update_listing(owner, listing["id"], valid_submission)

        assert result.success is False
        assert result.error == "Approved apps cannot be edited. Contact an admin if changes are needed."
        assert fake_db.listings[listing["id"]]["status"] == "approved"

    def test_submit_approve_then_edit(self, fake_db, owner, admin_user, valid_submission):
        """Full lifecycle: submit A, B with A's website is refused, approve A, edit refused."""
        # Arrange
        submitted = ListingService.submit_listing(owner, valid_submission)
        listing_id = submitted.data["id"]

        # Act
        duplicate = ListingService.submit_listing(owner, {**valid_submission, "name": "Other Name"})
        approved = ModerationService.approve(admin_user, listing_id)
        edited = ListingService.update_listing(owner, listing_id, valid_submission)

        # Assert
        assert submitted.success is True
        assert duplicate.error == 'An app with this website URL already exists: "Talkative".'
        assert approved.success is True
        assert edited.success is False
        assert edited.code == "VALIDATION_FAILED"
        assert fake_db.listings[listing_id]["status"] == "approved"


# =============================================================================
# Reads
# =============================================================================

class TestListingReads:
    """Detail and browse reads."""

    def test_detail_counts_a_view(self, fake_db):
        listing = fake_db.add_listing(slug="talkative", status="approved", view_count=4)

        result = ListingService.get_listing_by_slug("talkative")

        assert result["id"] == listing["id"]
        assert result["user_has_upvoted"] is False
        assert fake_db.listings[listing["id"]]["view_count"] == 5

    def test_detail_membership_flags(self, fake_db, owner):
        listing = fake_db.add_listing(slug="talkative", status="approved")
        fake_db.insert_membership("upvotes", {"user_id": str(owner.id), "app_id": listing["id"]})

        result = ListingService.get_listing_by_slug("talkative", user=owner)

        assert result["user_has_upvoted"] is True
        assert result["user_has_interested"] is False

    def test_pending_listing_not_public(self, fake_db):
        fake_db.add_listing(slug="secret", status="pending")

        with pytest.raises(NotFoundError):
            ListingService.get_listing_by_slug("secret")

    def test_view_count_failure_is_not_fatal(self, fake_db):
        fake_db.add_listing(slug="talkative", status="approved")
        fake_db.fail_on.add("increment_view_count")

        with patch("core.services.listing_service.logger") as mock_logger:
            result = ListingService.get_listing_by_slug("talkative")

        assert result["slug"] == "talkative"
        mock_logger.warning.assert_called_once()

    def test_browse_filters_and_pages(self, fake_db):
        """Only approved listings matching every filter are returned."""
        # Arrange
        for i in range(3):
            fake_db.add_listing(name=f"Voice {i}", status="approved", platforms=["ios"], upvote_count=i)
        fake_db.add_listing(name="Voice web", status="approved", platforms=["web"])
        fake_db.add_listing(name="Voice pending", status="pending", platforms=["ios"])

        # Act
        page = ListingService.browse_listings(
            ListingQuery(platform=Platform.IOS, sort=ListingSort.POPULAR, per_page=2)
        )

        # Assert
        assert page["total"] == 3
        assert page["pages"] == 2
        assert [item["name"] for item in page["items"]] == ["Voice 2", "Voice 1"]

    def test_browse_by_category(self, fake_db):
        fake_db.add_listing(status="approved", category_id=CATEGORY_ID)

        page = ListingService.browse_listings(ListingQuery(category="productivity"))

        assert page["total"] == 1

    def test_browse_unknown_category(self, fake_db):
        with pytest.raises(NotFoundError):
            ListingService.browse_listings(ListingQuery(category="nope"))

    def test_browse_marks_upvoted_items(self, fake_db, owner):
        listing = fake_db.add_listing(status="approved")
        fake_db.insert_membership("upvotes", {"user_id": str(owner.id), "app_id": listing["id"]})

        page = ListingService.browse_listings(ListingQuery(), user=owner)

        assert page["items"][0]["user_has_upvoted"] is True
