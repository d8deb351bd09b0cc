# =============================================================================
# tests/test_api.py - HTTP API Tests
# =============================================================================
# Router-level tests with FastAPI's TestClient. The caller is injected via
# dependency_overrides and persistence is the FakeSupabase from conftest.
#
# Run with: poetry run pytest tests/test_api.py -v
# =============================================================================

import pytest
from fastapi.testclient import TestClient

from app.auth import get_current_user, get_current_user_optional
from app.dependencies import get_supabase_client
from app.main import app


@pytest.fixture
def client(fake_db):
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def signed_in(client):
    """Override the auth dependencies with a given user."""
    def _sign_in(user):
        app.dependency_overrides[get_current_user_optional] = lambda: user
        app.dependency_overrides[get_current_user] = lambda: user
        return client
    return _sign_in


# =============================================================================
# Public Reads
# =============================================================================

class TestPublicEndpoints:

    def test_root(self, client):
        response = client.get("/")

        assert response.status_code == 200
        assert response.json()["name"] == "VoiceNative Directory API"

    def test_health_live(self, client):
        assert client.get("/api/v1/health/live").json()["status"] == "alive"

    def test_readiness(self, client, fake_db):
        app.dependency_overrides[get_supabase_client] = lambda: fake_db

        response = client.get("/api/v1/health/ready")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "ready"
        assert body["checks"]["rate_limiter"] == "healthy (memory)"

    def test_categories(self, client):
        response = client.get("/api/v1/categories")

        assert response.status_code == 200
        assert response.json()["categories"][0]["slug"] == "productivity"

    def test_unknown_category(self, client):
        response = client.get("/api/v1/categories/nope")

        assert response.status_code == 404
        assert response.json()["code"] == "NOT_FOUND"

    def test_browse(self, client, fake_db):
        """Query parameters become filters; only approved listings show."""
        # Arrange
        fake_db.add_listing(name="Alpha", status="approved", pricing_model="free")
        fake_db.add_listing(name="Beta", status="approved", pricing_model="paid")
        fake_db.add_listing(name="Gamma", status="pending", pricing_model="free")

        # Act
        response = client.get("/api/v1/listings", params={"pricing": "free", "sort": "name"})

        # Assert
        assert response.status_code == 200
        body = response.json()
        assert body["total"] == 1
        assert body["items"][0]["name"] == "Alpha"

    def test_browse_rejects_bad_page_size(self, client):
        response = client.get("/api/v1/listings", params={"per_page": 500})

        assert response.status_code == 422
        assert response.json()["code"] == "VALIDATION_FAILED"

    def test_detail_not_found(self, client):
        response = client.get("/api/v1/listings/does-not-exist")

        assert response.status_code == 404
        assert response.json()["detail"] == "App not found."

    def test_detail(self, client, fake_db):
        fake_db.add_listing(slug="talkative", status="approved")

        response = client.get("/api/v1/listings/talkative")

        assert response.status_code == 200
        assert response.json()["slug"] == "talkative"

    def test_sitemap(self, client, fake_db):
        fake_db.add_listing(slug="talkative", status="approved")

        response = client.get("/sitemap.xml")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("application/xml")
        assert "https://voicenative.test/apps/talkative" in response.text


# =============================================================================
# Workflow
# =============================================================================

class TestWorkflowEndpoints:
    """Workflow endpoints answer with the ActionResult shape."""

    def test_submit_anonymous(self, client, valid_submission):
        response = client.post("/api/v1/listings", json=valid_submission)

        assert response.status_code == 401
        assert response.json() == {
            "success": False,
            "error": "You must be signed in to submit an app.",
            "code": "AUTHENTICATION_REQUIRED",
            "data": {},
        }

    def test_submit(self, signed_in, owner, valid_submission, fake_db):
        # Arrange
        client = signed_in(owner)

        # Act
        response = client.post("/api/v1/listings", json=valid_submission)

        # Assert
        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["data"]["slug"] == "talkative"
        assert fake_db.listings[body["data"]["id"]]["status"] == "pending"

    def test_submit_validation_failure(self, signed_in, owner, valid_submission):
        client = signed_in(owner)
        valid_submission["website_url"] = "javascript:alert(1)"

        response = client.post("/api/v1/listings", json=valid_submission)

        assert response.status_code == 422
        assert response.json()["error"] == "URL must start with https:// or http://"

    def test_edit_own_listing(self, signed_in, owner, valid_submission, fake_db):
        client = signed_in(owner)
        listing = fake_db.add_listing(submitted_by=str(owner.id), status="rejected")

        response = client.put(f"/api/v1/listings/{listing['id']}", json=valid_submission)

        assert response.status_code == 200
        assert response.json()["data"]["status"] == "pending"

    def test_my_listings(self, signed_in, owner, fake_db):
        client = signed_in(owner)
        fake_db.add_listing(submitted_by=str(owner.id), status="rejected")
        fake_db.add_listing(submitted_by="someone-else", status="approved")

        response = client.get("/api/v1/listings/mine")

        assert response.json()["total"] == 1

    def test_upvote_toggle(self, signed_in, owner, fake_db):
        client = signed_in(owner)
        listing = fake_db.add_listing(status="approved")

        first = client.post(f"/api/v1/listings/{listing['id']}/upvote")
        second = client.post(f"/api/v1/listings/{listing['id']}/upvote")

        assert first.json()["data"]["active"] is True
        assert second.json()["data"]["active"] is False

    def test_interest_needs_consent(self, signed_in, owner, fake_db):
        client = signed_in(owner)
        listing = fake_db.add_listing(status="approved", is_coming_soon=True)

        without = client.post(f"/api/v1/listings/{listing['id']}/interest")
        with_consent = client.post(
            f"/api/v1/listings/{listing['id']}/interest",
            json={"country": "de", "consent_acknowledged": True},
        )

        assert without.status_code == 422
        assert with_consent.json()["data"]["active"] is True

    def test_report(self, signed_in, owner, fake_db):
        client = signed_in(owner)
        listing = fake_db.add_listing(status="approved")

        response = client.post("/api/v1/reports", json={
            "listing_id": listing["id"],
            "reason": "misleading",
            "details": "The description promises features it lacks.",
        })

        assert response.status_code == 200
        assert len(fake_db.reports) == 1

    def test_contact(self, signed_in, owner, fake_db):
        client = signed_in(owner)

        response = client.post("/api/v1/contact", json={
            "subject": "Feature request",
            "message": "Please add a filter for offline voice apps.",
        })

        assert response.json()["success"] is True
        assert len(fake_db.contact_messages) == 1


# =============================================================================
# Admin & Premium
# =============================================================================

class TestAdminEndpoints:

    def test_non_admin_forbidden(self, signed_in, owner, fake_db):
        client = signed_in(owner)
        listing = fake_db.add_listing()

        response = client.post(f"/api/v1/admin/listings/{listing['id']}/approve")

        assert response.status_code == 403
        assert response.json()["error"] == "Not authorized"

    def test_admin_reject(self, signed_in, admin_user, fake_db):
        client = signed_in(admin_user)
        listing = fake_db.add_listing()

        response = client.post(
            f"/api/v1/admin/listings/{listing['id']}/reject",
            json={"reason": "Website is unreachable."},
        )

        assert response.status_code == 200
        assert fake_db.listings[listing["id"]]["status"] == "rejected"

    def test_admin_queue(self, signed_in, admin_user, fake_db):
        client = signed_in(admin_user)
        fake_db.add_listing(status="pending")

        response = client.get("/api/v1/admin/listings", params={"status": "pending"})

        assert response.json()["total"] == 1

    def test_admin_queue_non_admin(self, signed_in, owner):
        client = signed_in(owner)

        response = client.get("/api/v1/admin/reports")

        assert response.status_code == 403
        assert response.json()["code"] == "AUTHORIZATION_DENIED"


class TestPremiumEndpoints:

    def test_csv_download(self, signed_in, owner, fake_db):
        # Arrange
        client = signed_in(owner)
        listing = fake_db.add_listing(name="Talkative", submitted_by=str(owner.id), is_coming_soon=True)
        fake_db.insert_unlock({"app_id": listing["id"], "unlocked_by": str(owner.id),
                               "stripe_checkout_session_id": "cs_1"})
        fake_db.rpc_results["get_interested_users"] = [
            {"email": "ana@example.com", "display_name": "Ana", "country": "GB",
             "interested_at": "2026-10-01T12:30:00+00:00"},
        ]

        # Act
        response = client.get(f"/api/v1/listings/{listing['id']}/interested-users.csv")

        # Assert
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert response.headers["content-disposition"] == "attachment; filename=Talkative_interests.csv"
        assert "ana@example.com,Ana,GB,2026-10-01" in response.text

    def test_csv_download_locked(self, signed_in, owner, fake_db):
        client = signed_in(owner)
        listing = fake_db.add_listing(submitted_by=str(owner.id))

        response = client.get(f"/api/v1/listings/{listing['id']}/interested-users.csv")

        assert response.status_code == 403
        assert response.json()["detail"] == "You must unlock this app to access interested users."

    def test_analytics(self, signed_in, owner, fake_db):
        client = signed_in(owner)
        listing = fake_db.add_listing(submitted_by=str(owner.id), is_coming_soon=True, interest_count=7)

        response = client.get(f"/api/v1/listings/{listing['id']}/analytics")

        assert response.status_code == 200
        assert response.json()["data"]["interest_count"] == 7
