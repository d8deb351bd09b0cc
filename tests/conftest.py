# =============================================================================
# tests/conftest.py - Pytest Configuration
# =============================================================================
# This module provides pytest fixtures and configuration for all tests.
#
# Key features:
# - Sets up mock environment variables before any imports
# - FakeSupabase: in-memory stand-in for lib.supabase_client.SupabaseClient
#   so workflow tests are stateful (submit, then edit, then approve...)
# - A fresh in-memory rate-limit store per test
# =============================================================================

import os
import uuid
from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

# =============================================================================
# Set up test environment BEFORE any imports
# =============================================================================
# This must happen before importing app.config which loads settings immediately

os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("SUPABASE_ANON_KEY", "test-anon-key")
os.environ.setdefault("SUPABASE_SERVICE_KEY", "test-service-key")
os.environ.setdefault("SUPABASE_JWT_SECRET", "test-jwt-secret-with-enough-length-123")
os.environ.setdefault("STRIPE_WEBHOOK_SECRET", "whsec_test_secret")
os.environ.setdefault("RATE_LIMIT_BACKEND", "memory")
os.environ.setdefault("SITE_URL", "https://voicenative.test")
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("DEBUG", "true")

import pytest

from app.auth.models import AuthUser
from lib.rate_limit import MemoryCounterStore, set_counter_store
from lib.supabase_client import SupabaseClientError

# Modules that import SupabaseClient by name
PATCH_TARGETS = [
    "core.services.listing_service.SupabaseClient",
    "core.services.engagement_service.SupabaseClient",
    "core.services.moderation_service.SupabaseClient",
    "core.services.report_service.SupabaseClient",
    "core.services.contact_service.SupabaseClient",
    "core.services.premium_service.SupabaseClient",
    "core.services.auth_service.SupabaseClient",
    "core.services.sitemap_service.SupabaseClient",
    "app.auth.routes.SupabaseClient",
]

CATEGORY_ID = "7d3f1b2a-5c4e-4f6a-9b8c-1d2e3f4a5b6c"


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


# =============================================================================
# Fake Supabase
# =============================================================================

class FakeSupabase:
    """
    In-memory implementation of the SupabaseClient methods the services use.

    `fail_on` names methods that should raise SupabaseClientError, and
    `quota_allows` can force the quota RPC result.
    """

    def __init__(self):
        self.listings: dict[str, dict] = {}
        self.profiles: dict[str, dict] = {}
        self.categories: list[dict] = [
            {"id": CATEGORY_ID, "name": "Productivity", "slug": "productivity",
             "description": "Get things done by voice", "icon": "zap", "display_order": 1},
        ]
        self.tags: dict[str, dict] = {}
        self.app_tags: list[dict] = []
        self.memberships: dict[str, dict[tuple[str, str], dict]] = {"upvotes": {}, "app_interests": {}}
        self.reports: dict[str, dict] = {}
        self.contact_messages: list[dict] = []
        self.unlocks: dict[str, dict] = {}
        self.submission_counts: dict[str, int] = {}
        self.rpc_results: dict[str, object] = {}
        self.rpc_calls: list[tuple[str, dict]] = []
        self.fail_on: set[str] = set()
        self.quota_allows: bool | None = None

        self.client = MagicMock(name="supabase_client")
        self.anon_client = MagicMock(name="supabase_anon_client")

    def _maybe_fail(self, name: str) -> None:
        if name in self.fail_on:
            raise SupabaseClientError(f"{name} failed", code="TEST_FAILURE")

    # -- clients ---------------------------------------------------------------

    def get_client(self):
        return self.client

    def get_anon_client(self):
        return self.anon_client

    # -- rpc / profiles ------------------------------------------------------

    def rpc(self, function_name, params):
        self._maybe_fail("rpc")
        self.rpc_calls.append((function_name, params))
        return self.rpc_results.get(function_name, [])

    def check_submission_quota(self, user_id, max_per_day):
        self._maybe_fail("check_submission_quota")
        if self.quota_allows is not None:
            return self.quota_allows
        user_id = str(user_id)
        count = self.submission_counts.get(user_id, 0)
        if count >= max_per_day:
            return False
        self.submission_counts[user_id] = count + 1
        return True

    def fetch_profile(self, user_id):
        self._maybe_fail("fetch_profile")
        return self.profiles.get(str(user_id))

    def add_profile(self, user_id, role="user", email=None):
        self.profiles[str(user_id)] = {
            "id": str(user_id),
            "email": email,
            "display_name": None,
            "avatar_url": None,
            "role": role,
            "submissions_today": 0,
            "last_submission_date": None,
        }

    # -- categories ----------------------------------------------------------

    def fetch_categories(self):
        return sorted(self.categories, key=lambda c: c["display_order"])

    def fetch_category_by_slug(self, slug):
        return next((c for c in self.categories if c["slug"] == slug), None)

    # -- listings ------------------------------------------------------------

    def add_listing(self, **fields):
        """Seed a listing directly (bypassing the workflow)."""
        listing_id = fields.pop("id", None) or str(uuid.uuid4())
        row = {
            "id": listing_id,
            "name": "Seeded App",
            "slug": f"seeded-{listing_id[:8]}",
            "tagline": "A seeded listing for tests",
            "description": "x" * 60,
            "category_id": CATEGORY_ID,
            "website_url": f"https://{listing_id[:8]}.example.com",
            "platforms": ["ios"],
            "pricing_model": "free",
            "status": "pending",
            "rejection_reason": None,
            "featured": False,
            "is_coming_soon": False,
            "interest_count": 0,
            "upvote_count": 0,
            "view_count": 0,
            "submitted_by": None,
            "created_at": _now(),
            "updated_at": _now(),
        }
        row.update(fields)
        self.listings[listing_id] = row
        return row

    def fetch_listing(self, listing_id, columns="*"):
        self._maybe_fail("fetch_listing")
        row = self.listings.get(str(listing_id))
        return dict(row) if row else None

    def fetch_approved_listing_by_slug(self, slug):
        for row in self.listings.values():
            if row["slug"] == slug and row["status"] == "approved":
                category = self.fetch_category_by_slug("productivity") if row["category_id"] == CATEGORY_ID else None
                return {**row, "category": category}
        return None

    def find_listing_by_website(self, website_url):
        self._maybe_fail("find_listing_by_website")
        for row in self.listings.values():
            if row["website_url"] == website_url:
                return {"id": row["id"], "name": row["name"]}
        return None

    def find_listing_by_name(self, name):
        for row in self.listings.values():
            if row["name"].lower() == name.lower():
                return {"id": row["id"], "name": row["name"]}
        return None

    def slug_exists(self, slug):
        return any(row["slug"] == slug for row in self.listings.values())

    def insert_listing(self, data):
        self._maybe_fail("insert_listing")
        return dict(self.add_listing(**data))

    def update_listing(self, listing_id, data):
        self._maybe_fail("update_listing")
        row = self.listings.get(str(listing_id))
        if row is None:
            return None
        row.update(data)
        row["updated_at"] = _now()
        return dict(row)

    def delete_listing(self, listing_id):
        self._maybe_fail("delete_listing")
        return self.listings.pop(str(listing_id), None) is not None

    def increment_view_count(self, listing_id, observed):
        self._maybe_fail("increment_view_count")
        row = self.listings.get(str(listing_id))
        if row is None or row["view_count"] != observed:
            return False
        row["view_count"] = observed + 1
        return True

    def search_listings(self, search=None, category_id=None, platform=None, pricing_model=None,
                        sort="newest", offset=0, limit=12):
        rows = [r for r in self.listings.values() if r["status"] == "approved"]
        if search:
            needle = search.lower()
            rows = [r for r in rows if needle in f"{r['name']} {r['tagline']} {r['description']}".lower()]
        if category_id:
            rows = [r for r in rows if r["category_id"] == category_id]
        if platform:
            rows = [r for r in rows if platform in r["platforms"]]
        if pricing_model:
            rows = [r for r in rows if r["pricing_model"] == pricing_model]

        if sort == "popular":
            rows.sort(key=lambda r: r["upvote_count"], reverse=True)
        elif sort == "name":
            rows.sort(key=lambda r: r["name"])
        else:
            rows.sort(key=lambda r: r["created_at"], reverse=True)

        return [dict(r) for r in rows[offset:offset + limit]], len(rows)

    def fetch_listings_by_owner(self, user_id):
        return [dict(r) for r in self.listings.values() if r["submitted_by"] == str(user_id)]

    def fetch_listings_by_status(self, status=None):
        return [dict(r) for r in self.listings.values() if status is None or r["status"] == status]

    def fetch_approved_slugs(self):
        return [{"slug": r["slug"], "updated_at": r["updated_at"]}
                for r in self.listings.values() if r["status"] == "approved"]

    # -- tags ----------------------------------------------------------------

    def upsert_tag(self, name, slug):
        self._maybe_fail("upsert_tag")
        tag = self.tags.setdefault(slug, {"id": str(uuid.uuid4()), "name": name, "slug": slug})
        return dict(tag)

    def link_tag(self, listing_id, tag_id):
        self._maybe_fail("link_tag")
        self.app_tags.append({"app_id": str(listing_id), "tag_id": str(tag_id)})

    def fetch_listing_tags(self, listing_id):
        ids = {link["tag_id"] for link in self.app_tags if link["app_id"] == str(listing_id)}
        return [{"name": t["name"], "slug": t["slug"]} for t in self.tags.values() if t["id"] in ids]

    # -- memberships ---------------------------------------------------------

    def fetch_membership(self, table, user_id, listing_id):
        self._maybe_fail("fetch_membership")
        return self.memberships[table].get((str(user_id), str(listing_id)))

    def fetch_memberships_for_listings(self, table, user_id, listing_ids):
        return {lid for (uid, lid) in self.memberships[table] if uid == str(user_id) and lid in listing_ids}

    def insert_membership(self, table, data):
        self._maybe_fail("insert_membership")
        key = (str(data["user_id"]), str(data["app_id"]))
        self.memberships[table][key] = dict(data)

    def delete_membership(self, table, user_id, listing_id):
        self._maybe_fail("delete_membership")
        self.memberships[table].pop((str(user_id), str(listing_id)), None)

    # -- reports / contact ---------------------------------------------------

    def find_pending_report(self, listing_id, reporter_id):
        for report in self.reports.values():
            if (report["app_id"] == str(listing_id) and report["reporter_id"] == str(reporter_id)
                    and report["status"] == "pending"):
                return {"id": report["id"]}
        return None

    def insert_report(self, data):
        self._maybe_fail("insert_report")
        report_id = str(uuid.uuid4())
        self.reports[report_id] = {"id": report_id, **data, "created_at": _now()}
        return dict(self.reports[report_id])

    def update_report_status(self, report_id, status):
        report = self.reports.get(str(report_id))
        if report is None:
            return None
        report["status"] = status
        return dict(report)

    def fetch_reports(self, status=None):
        return [dict(r) for r in self.reports.values() if status is None or r["status"] == status]

    def insert_contact_message(self, data):
        self._maybe_fail("insert_contact_message")
        self.contact_messages.append(dict(data))

    # -- unlocks -------------------------------------------------------------

    def fetch_unlock(self, listing_id):
        return next((dict(u) for u in self.unlocks.values() if u["app_id"] == str(listing_id)), None)

    def insert_unlock(self, data):
        self._maybe_fail("insert_unlock")
        session_id = data["stripe_checkout_session_id"]
        if session_id in self.unlocks:
            return None
        self.unlocks[session_id] = {"id": str(uuid.uuid4()), **data}
        return dict(self.unlocks[session_id])


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture(autouse=True)
def memory_rate_limiter():
    """Fresh per-test counter store so limits never leak between tests."""
    store = MemoryCounterStore()
    set_counter_store(store)
    yield store
    set_counter_store(None)


@pytest.fixture
def fake_db():
    """FakeSupabase patched into every module that uses SupabaseClient."""
    fake = FakeSupabase()
    patchers = [patch(target, fake) for target in PATCH_TARGETS]
    for p in patchers:
        p.start()
    yield fake
    for p in patchers:
        p.stop()


@pytest.fixture
def owner():
    return AuthUser(id=uuid.UUID("11111111-1111-4111-8111-111111111111"), email="owner@example.com")


@pytest.fixture
def other_user():
    return AuthUser(id=uuid.UUID("22222222-2222-4222-8222-222222222222"), email="other@example.com")


@pytest.fixture
def admin_user(fake_db):
    user = AuthUser(id=uuid.UUID("33333333-3333-4333-8333-333333333333"), email="admin@example.com")
    fake_db.add_profile(user.id, role="admin", email=user.email)
    return user


@pytest.fixture
def storage_url():
    """Builds a URL inside the test project's media bucket."""
    def _build(name: str = "logo.png") -> str:
        return f"https://test-project.supabase.co/storage/v1/object/public/app-assets/user-1/{name}"
    return _build


@pytest.fixture
def valid_submission(storage_url):
    """A submission payload that passes every field rule."""
    return {
        "name": "Talkative",
        "tagline": "Hands-free notes for busy people",
        "description": "Talkative turns your voice into organised notes, reminders and to-do lists in seconds.",
        "category_id": CATEGORY_ID,
        "voice_features": ["Voice Notes/Memos", "Voice Input/Dictation"],
        "platforms": ["ios", "android"],
        "website_url": "https://talkative.app",
        "app_store_url": "https://apps.apple.com/us/app/talkative/id123456",
        "play_store_url": "",
        "pricing_model": "freemium",
        "pricing_details": "Free tier, $4.99/month for Pro",
        "tags": ["notes", "productivity"],
        "logo_url": storage_url("logo.png"),
        "screenshot_urls": [storage_url("shot-1.png")],
    }
