# =============================================================================
# lib/supabase_client.py - Supabase Client Wrapper
# =============================================================================
# This module provides a typed wrapper for Supabase database operations.
# It implements the singleton pattern to reuse a single client connection
# and provides specialized methods for:
# - Profiles (role + atomic submission quota)
# - Listings ("apps" table), categories and tags
# - Membership toggles (upvotes, interests)
# - Reports, contact messages and paid unlocks
# - Stored procedures (rate limit, interest analytics)
#
# Access control lives in the service layer: the service_role key bypasses
# Row Level Security, so every privileged path is checked before it gets here.
#
# Usage:
#   from lib.supabase_client import SupabaseClient
#   listing = SupabaseClient.fetch_listing(listing_id)
# =============================================================================

from __future__ import annotations

import logging
from typing import Any
from uuid import UUID

from supabase import create_client, Client

from app.config import settings
from lib.utils import ApplicationError, escape_like, normalize_uuid

# Set up logging for this module
logger = logging.getLogger(__name__)

# PostgREST code for "no rows" on .single()
NO_ROWS_CODE = "PGRST116"
# Postgres unique_violation
UNIQUE_VIOLATION_CODE = "23505"

LISTINGS_TABLE = "apps"
MEMBERSHIP_TABLES = ("upvotes", "app_interests")


class SupabaseClientError(ApplicationError):
    """
    Error during Supabase operations.

    Carries the PostgREST/Postgres error code (when there is one) in
    `details["pg_code"]` so callers can react to constraint violations.
    """

    def __init__(
        self,
        message: str,
        code: str = "SUPABASE_ERROR",
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, code=code, suggestion=suggestion, details=details)

    def __str__(self) -> str:
        result = f"[{self.code}] {self.message}"
        if self.suggestion:
            result += f" Suggestion: {self.suggestion}"
        return result


def _pg_code(error: Exception) -> str | None:
    """Extract a Postgres/PostgREST error code from a client exception."""
    code = getattr(error, "code", None)
    if code:
        return str(code)
    for known in (NO_ROWS_CODE, UNIQUE_VIOLATION_CODE):
        if known in str(error):
            return known
    return None


class SupabaseClient:
    """
    Typed wrapper for Supabase database operations.

    Implements singleton pattern - one client instance is shared across
    the application. All methods are class methods for easy access without
    instantiation.

    Example:
        listing = SupabaseClient.fetch_listing("550e8400-...")
        if listing and listing["status"] == "approved":
            ...
    """

    _instance: Client | None = None
    _anon_instance: Client | None = None

    @classmethod
    def get_client(cls) -> Client:
        """
        Get or create the singleton Supabase client.

        Uses service_role key which bypasses Row Level Security (RLS).
        This is appropriate for server-side operations.

        Returns:
            Client: Supabase client instance

        Raises:
            SupabaseClientError: If client creation fails
        """
        if cls._instance is None:
            try:
                cls._instance = create_client(
                    settings.SUPABASE_URL,
                    settings.SUPABASE_SERVICE_KEY
                )
                logger.info("Supabase client initialized successfully")
            except Exception as e:
                raise SupabaseClientError(
                    message=f"Failed to create Supabase client: {e}",
                    code="CLIENT_INIT_FAILED",
                    suggestion="Check SUPABASE_URL and SUPABASE_SERVICE_KEY in your .env file"
                )
        return cls._instance

    @classmethod
    def get_anon_client(cls) -> Client:
        """
        Get or create the anon-key client used for Supabase Auth calls.

        Sign-up and password sign-in must go through the public key so the
        auth provider applies its own policies.
        """
        if cls._anon_instance is None:
            try:
                cls._anon_instance = create_client(
                    settings.SUPABASE_URL,
                    settings.SUPABASE_ANON_KEY
                )
            except Exception as e:
                raise SupabaseClientError(
                    message=f"Failed to create Supabase anon client: {e}",
                    code="CLIENT_INIT_FAILED",
                    suggestion="Check SUPABASE_URL and SUPABASE_ANON_KEY in your .env file"
                )
        return cls._anon_instance

    @classmethod
    def _execute(
        cls,
        query: Any,
        code: str,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> Any:
        """Run a query builder, translating client failures."""
        try:
            return query.execute()
        except Exception as e:
            raise SupabaseClientError(
                message=f"{message}: {e}",
                code=code,
                details={**(details or {}), "pg_code": _pg_code(e)},
            )

    @staticmethod
    def _first(response: Any) -> dict[str, Any] | None:
        """First row of a response, or None."""
        rows = getattr(response, "data", None) or []
        return rows[0] if rows else None

    # -------------------------------------------------------------------------
    # Stored Procedures
    # -------------------------------------------------------------------------

    @classmethod
    def rpc(cls, function_name: str, params: dict[str, Any]) -> Any:
        """
        Call a database function and return its data.

        Raises:
            SupabaseClientError: If the call fails
        """
        client = cls.get_client()
        response = cls._execute(
            client.rpc(function_name, params),
            code="RPC_FAILED",
            message=f"Failed to call {function_name}",
            details={"function": function_name},
        )
        return response.data

    @classmethod
    def check_rate_limit(cls, key: str, max_requests: int, window_seconds: int) -> bool:
        """Atomic sliding-window counter kept in the database."""
        allowed = cls.rpc(
            "check_rate_limit",
            {
                "p_key": key,
                "p_max_requests": max_requests,
                "p_window_seconds": window_seconds,
            },
        )
        return bool(allowed)

    @classmethod
    def check_submission_quota(cls, user_id: str | UUID, max_per_day: int) -> bool:
        """
        Atomically check and increment the caller's daily submission count.

        The database function locks the profile row, resets the counter on a
        new day, and only increments when the caller is below the limit.

        Returns:
            True if the submission is within quota (and was counted)
        """
        allowed = cls.rpc(
            "check_and_increment_submission_quota",
            {"p_user_id": normalize_uuid(user_id), "p_max_per_day": max_per_day},
        )
        return bool(allowed)

    # -------------------------------------------------------------------------
    # Profiles
    # -------------------------------------------------------------------------

    @classmethod
    def fetch_profile(cls, user_id: str | UUID) -> dict[str, Any] | None:
        """
        Fetch a user's profile row.

        Returns:
            Profile dict (id, email, display_name, role, submissions_today,
            last_submission_date), or None if not found
        """
        client = cls.get_client()
        user_id_str = normalize_uuid(user_id)

        response = cls._execute(
            client.table("profiles")
            .select("id, email, display_name, avatar_url, role, submissions_today, last_submission_date")
            .eq("id", user_id_str)
            .limit(1),
            code="FETCH_PROFILE_FAILED",
            message="Failed to fetch profile",
            details={"user_id": user_id_str},
        )
        return cls._first(response)

    # -------------------------------------------------------------------------
    # Categories
    # -------------------------------------------------------------------------

    @classmethod
    def fetch_categories(cls) -> list[dict[str, Any]]:
        """Fetch all categories in display order."""
        client = cls.get_client()
        response = cls._execute(
            client.table("categories").select("*").order("display_order"),
            code="FETCH_CATEGORIES_FAILED",
            message="Failed to fetch categories",
        )
        return response.data or []

    @classmethod
    def fetch_category_by_slug(cls, slug: str) -> dict[str, Any] | None:
        """Fetch one category by slug."""
        client = cls.get_client()
        response = cls._execute(
            client.table("categories").select("*").eq("slug", slug).limit(1),
            code="FETCH_CATEGORY_FAILED",
            message="Failed to fetch category",
            details={"slug": slug},
        )
        return cls._first(response)

    # -------------------------------------------------------------------------
    # Listings
    # -------------------------------------------------------------------------

    @classmethod
    def fetch_listing(cls, listing_id: str | UUID, columns: str = "*") -> dict[str, Any] | None:
        """
        Fetch a listing by ID, regardless of status.

        Args:
            listing_id: The listing UUID
            columns: PostgREST column selection

        Returns:
            Listing dict, or None if not found
        """
        client = cls.get_client()
        listing_id_str = normalize_uuid(listing_id)

        response = cls._execute(
            client.table(LISTINGS_TABLE).select(columns).eq("id", listing_id_str).limit(1),
            code="FETCH_LISTING_FAILED",
            message="Failed to fetch listing",
            details={"listing_id": listing_id_str},
        )
        return cls._first(response)

    @classmethod
    def fetch_approved_listing_by_slug(cls, slug: str) -> dict[str, Any] | None:
        """Fetch an approved listing with its category joined."""
        client = cls.get_client()
        response = cls._execute(
            client.table(LISTINGS_TABLE)
            .select("*, category:categories(*)")
            .eq("slug", slug)
            .eq("status", "approved")
            .limit(1),
            code="FETCH_LISTING_FAILED",
            message="Failed to fetch listing",
            details={"slug": slug},
        )
        return cls._first(response)

    @classmethod
    def find_listing_by_website(cls, website_url: str) -> dict[str, Any] | None:
        """Find any listing (any status) that uses this website URL."""
        client = cls.get_client()
        response = cls._execute(
            client.table(LISTINGS_TABLE).select("id, name").eq("website_url", website_url).limit(1),
            code="DUPLICATE_CHECK_FAILED",
            message="Failed to check for duplicate website",
        )
        return cls._first(response)

    @classmethod
    def find_listing_by_name(cls, name: str) -> dict[str, Any] | None:
        """Case-insensitive exact name match across all listings."""
        client = cls.get_client()
        response = cls._execute(
            client.table(LISTINGS_TABLE).select("id, name").ilike("name", escape_like(name)),
            code="DUPLICATE_CHECK_FAILED",
            message="Failed to check for duplicate name",
        )
        # "*" in the name matches any single character; keep exact matches only
        wanted = name.lower()
        rows = getattr(response, "data", None) or []
        return next((row for row in rows if str(row.get("name", "")).lower() == wanted), None)

    @classmethod
    def slug_exists(cls, slug: str) -> bool:
        """Check whether a listing already uses a slug."""
        client = cls.get_client()
        response = cls._execute(
            client.table(LISTINGS_TABLE).select("id").eq("slug", slug).limit(1),
            code="SLUG_CHECK_FAILED",
            message="Failed to check slug",
            details={"slug": slug},
        )
        return cls._first(response) is not None

    @classmethod
    def insert_listing(cls, data: dict[str, Any]) -> dict[str, Any]:
        """
        Insert a listing row.

        Returns:
            The inserted row (with generated id)

        Raises:
            SupabaseClientError: If insert fails or returns nothing
        """
        client = cls.get_client()
        response = cls._execute(
            client.table(LISTINGS_TABLE).insert(data),
            code="INSERT_LISTING_FAILED",
            message="Failed to insert listing",
            details={"slug": data.get("slug")},
        )
        row = cls._first(response)
        if row is None:
            raise SupabaseClientError(
                message="Insert returned no data",
                code="INSERT_NO_DATA"
            )
        return row

    @classmethod
    def update_listing(cls, listing_id: str | UUID, data: dict[str, Any]) -> dict[str, Any] | None:
        """Update a listing; returns the updated row or None if it vanished."""
        client = cls.get_client()
        listing_id_str = normalize_uuid(listing_id)
        response = cls._execute(
            client.table(LISTINGS_TABLE).update(data).eq("id", listing_id_str),
            code="UPDATE_LISTING_FAILED",
            message="Failed to update listing",
            details={"listing_id": listing_id_str},
        )
        return cls._first(response)

    @classmethod
    def delete_listing(cls, listing_id: str | UUID) -> bool:
        """Hard-delete a listing. Returns True if a row was removed."""
        client = cls.get_client()
        listing_id_str = normalize_uuid(listing_id)
        response = cls._execute(
            client.table(LISTINGS_TABLE).delete().eq("id", listing_id_str),
            code="DELETE_LISTING_FAILED",
            message="Failed to delete listing",
            details={"listing_id": listing_id_str},
        )
        return bool(response.data)

    @classmethod
    def increment_view_count(cls, listing_id: str | UUID, observed: int) -> bool:
        """
        Compare-and-swap view counter bump.

        Only updates when the stored count still equals `observed`; a
        concurrent view wins and this increment is dropped.

        Returns:
            True if the row was updated
        """
        client = cls.get_client()
        response = cls._execute(
            client.table(LISTINGS_TABLE)
            .update({"view_count": observed + 1})
            .eq("id", normalize_uuid(listing_id))
            .eq("view_count", observed),
            code="VIEW_COUNT_FAILED",
            message="Failed to increment view count",
        )
        return bool(response.data)

    @classmethod
    def search_listings(
        cls,
        search: str | None = None,
        category_id: str | None = None,
        platform: str | None = None,
        pricing_model: str | None = None,
        sort: str = "newest",
        offset: int = 0,
        limit: int = 12,
    ) -> tuple[list[dict[str, Any]], int]:
        """
        Search approved listings.

        Full-text search uses the generated `search_vector` column with
        websearch syntax; filters are ANDed together.

        Returns:
            Tuple of (listing rows, total matching count)
        """
        client = cls.get_client()
        query = (
            client.table(LISTINGS_TABLE)
            .select("*, category:categories(*)", count="exact")
            .eq("status", "approved")
        )

        if search:
            query = query.text_search("search_vector", search, options={"type": "websearch"})
        if category_id:
            query = query.eq("category_id", category_id)
        if platform:
            query = query.contains("platforms", [platform])
        if pricing_model:
            query = query.eq("pricing_model", pricing_model)

        if sort == "popular":
            query = query.order("upvote_count", desc=True)
        elif sort == "name":
            query = query.order("name")
        else:
            query = query.order("created_at", desc=True)

        query = query.range(offset, offset + limit - 1)

        response = cls._execute(
            query,
            code="SEARCH_LISTINGS_FAILED",
            message="Failed to search listings",
        )
        return response.data or [], response.count or 0

    @classmethod
    def fetch_listings_by_owner(cls, user_id: str | UUID) -> list[dict[str, Any]]:
        """All listings submitted by a user, newest first."""
        client = cls.get_client()
        response = cls._execute(
            client.table(LISTINGS_TABLE)
            .select("id, name, slug, status, rejection_reason, featured, is_coming_soon, "
                    "interest_count, upvote_count, view_count, created_at, updated_at")
            .eq("submitted_by", normalize_uuid(user_id))
            .order("created_at", desc=True),
            code="FETCH_OWNER_LISTINGS_FAILED",
            message="Failed to fetch your listings",
        )
        return response.data or []

    @classmethod
    def fetch_listings_by_status(cls, status: str | None = None) -> list[dict[str, Any]]:
        """Listings for the moderation queue, newest first."""
        client = cls.get_client()
        query = client.table(LISTINGS_TABLE).select(
            "id, name, slug, status, rejection_reason, featured, is_coming_soon, "
            "upvote_count, view_count, submitted_by, created_at, category:categories(name)"
        )
        if status:
            query = query.eq("status", status)
        response = cls._execute(
            query.order("created_at", desc=True),
            code="FETCH_LISTINGS_FAILED",
            message="Failed to fetch listings",
        )
        return response.data or []

    @classmethod
    def fetch_approved_slugs(cls) -> list[dict[str, Any]]:
        """Slug and updated_at of every approved listing."""
        client = cls.get_client()
        response = cls._execute(
            client.table(LISTINGS_TABLE).select("slug, updated_at").eq("status", "approved"),
            code="FETCH_SLUGS_FAILED",
            message="Failed to fetch listing slugs",
        )
        return response.data or []

    # -------------------------------------------------------------------------
    # Tags
    # -------------------------------------------------------------------------

    @classmethod
    def upsert_tag(cls, name: str, slug: str) -> dict[str, Any] | None:
        """Insert a tag or return the existing one with the same slug."""
        client = cls.get_client()
        response = cls._execute(
            client.table("tags").upsert({"name": name, "slug": slug}, on_conflict="slug"),
            code="UPSERT_TAG_FAILED",
            message="Failed to upsert tag",
            details={"slug": slug},
        )
        return cls._first(response)

    @classmethod
    def link_tag(cls, listing_id: str | UUID, tag_id: str | UUID) -> None:
        """Associate a tag with a listing."""
        client = cls.get_client()
        cls._execute(
            client.table("app_tags").insert({
                "app_id": normalize_uuid(listing_id),
                "tag_id": normalize_uuid(tag_id),
            }),
            code="LINK_TAG_FAILED",
            message="Failed to link tag",
        )

    @classmethod
    def fetch_listing_tags(cls, listing_id: str | UUID) -> list[dict[str, Any]]:
        """Tags (name, slug) attached to a listing."""
        client = cls.get_client()
        response = cls._execute(
            client.table("app_tags").select("tag_id, tags(name, slug)").eq("app_id", normalize_uuid(listing_id)),
            code="FETCH_TAGS_FAILED",
            message="Failed to fetch tags",
        )
        return [row["tags"] for row in (response.data or []) if row.get("tags")]

    # -------------------------------------------------------------------------
    # Memberships (upvotes, interests)
    # -------------------------------------------------------------------------

    @classmethod
    def _membership_table(cls, table: str) -> str:
        if table not in MEMBERSHIP_TABLES:
            raise ValueError(f"Unknown membership table: {table}")
        return table

    @classmethod
    def fetch_membership(cls, table: str, user_id: str | UUID, listing_id: str | UUID) -> dict[str, Any] | None:
        """Fetch one (user, listing) membership row."""
        client = cls.get_client()
        response = cls._execute(
            client.table(cls._membership_table(table))
            .select("user_id, app_id")
            .eq("user_id", normalize_uuid(user_id))
            .eq("app_id", normalize_uuid(listing_id))
            .limit(1),
            code="FETCH_MEMBERSHIP_FAILED",
            message=f"Failed to read {table}",
        )
        return cls._first(response)

    @classmethod
    def fetch_memberships_for_listings(
        cls,
        table: str,
        user_id: str | UUID,
        listing_ids: list[str],
    ) -> set[str]:
        """IDs of the given listings that the user has a membership on."""
        if not listing_ids:
            return set()
        client = cls.get_client()
        response = cls._execute(
            client.table(cls._membership_table(table))
            .select("app_id")
            .eq("user_id", normalize_uuid(user_id))
            .in_("app_id", listing_ids),
            code="FETCH_MEMBERSHIP_FAILED",
            message=f"Failed to read {table}",
        )
        return {row["app_id"] for row in (response.data or [])}

    @classmethod
    def insert_membership(cls, table: str, data: dict[str, Any]) -> None:
        """Insert a membership row."""
        client = cls.get_client()
        cls._execute(
            client.table(cls._membership_table(table)).insert(data),
            code="INSERT_MEMBERSHIP_FAILED",
            message=f"Failed to insert into {table}",
        )

    @classmethod
    def delete_membership(cls, table: str, user_id: str | UUID, listing_id: str | UUID) -> None:
        """Delete a (user, listing) membership row."""
        client = cls.get_client()
        cls._execute(
            client.table(cls._membership_table(table))
            .delete()
            .eq("user_id", normalize_uuid(user_id))
            .eq("app_id", normalize_uuid(listing_id)),
            code="DELETE_MEMBERSHIP_FAILED",
            message=f"Failed to delete from {table}",
        )

    # -------------------------------------------------------------------------
    # Reports
    # -------------------------------------------------------------------------

    @classmethod
    def find_pending_report(cls, listing_id: str | UUID, reporter_id: str | UUID) -> dict[str, Any] | None:
        """A pending report by this reporter on this listing, if any."""
        client = cls.get_client()
        response = cls._execute(
            client.table("reports")
            .select("id")
            .eq("app_id", normalize_uuid(listing_id))
            .eq("reporter_id", normalize_uuid(reporter_id))
            .eq("status", "pending")
            .limit(1),
            code="FETCH_REPORT_FAILED",
            message="Failed to check existing reports",
        )
        return cls._first(response)

    @classmethod
    def insert_report(cls, data: dict[str, Any]) -> dict[str, Any] | None:
        """Insert a report row."""
        client = cls.get_client()
        response = cls._execute(
            client.table("reports").insert(data),
            code="INSERT_REPORT_FAILED",
            message="Failed to insert report",
        )
        return cls._first(response)

    @classmethod
    def update_report_status(cls, report_id: str | UUID, status: str) -> dict[str, Any] | None:
        """Set a report's status; returns the updated row or None if missing."""
        client = cls.get_client()
        response = cls._execute(
            client.table("reports").update({"status": status}).eq("id", normalize_uuid(report_id)),
            code="UPDATE_REPORT_FAILED",
            message="Failed to update report",
        )
        return cls._first(response)

    @classmethod
    def fetch_reports(cls, status: str | None = None) -> list[dict[str, Any]]:
        """Reports for the admin view, newest first."""
        client = cls.get_client()
        query = client.table("reports").select("*, app:apps(id, name, slug)")
        if status:
            query = query.eq("status", status)
        response = cls._execute(
            query.order("created_at", desc=True),
            code="FETCH_REPORTS_FAILED",
            message="Failed to fetch reports",
        )
        return response.data or []

    # -------------------------------------------------------------------------
    # Contact Messages
    # -------------------------------------------------------------------------

    @classmethod
    def insert_contact_message(cls, data: dict[str, Any]) -> None:
        """Insert a contact message."""
        client = cls.get_client()
        cls._execute(
            client.table("contact_messages").insert(data),
            code="INSERT_CONTACT_FAILED",
            message="Failed to insert contact message",
        )

    # -------------------------------------------------------------------------
    # Unlocks
    # -------------------------------------------------------------------------

    @classmethod
    def fetch_unlock(cls, listing_id: str | UUID) -> dict[str, Any] | None:
        """The paid unlock for a listing, if any."""
        client = cls.get_client()
        response = cls._execute(
            client.table("app_unlocks").select("id, created_at").eq("app_id", normalize_uuid(listing_id)).limit(1),
            code="FETCH_UNLOCK_FAILED",
            message="Failed to fetch unlock",
        )
        return cls._first(response)

    @classmethod
    def insert_unlock(cls, data: dict[str, Any]) -> dict[str, Any] | None:
        """
        Insert an unlock receipt.

        Returns:
            The inserted row, or None when the checkout session was already
            recorded (unique violation from a duplicate delivery)

        Raises:
            SupabaseClientError: On any other failure
        """
        client = cls.get_client()
        try:
            response = client.table("app_unlocks").insert(data).execute()
        except Exception as e:
            if _pg_code(e) == UNIQUE_VIOLATION_CODE:
                logger.info(
                    f"Unlock already recorded for checkout session {data.get('stripe_checkout_session_id')}"
                )
                return None
            raise SupabaseClientError(
                message=f"Failed to insert unlock: {e}",
                code="INSERT_UNLOCK_FAILED",
                details={"app_id": data.get("app_id"), "pg_code": _pg_code(e)},
            )
        return cls._first(response) or {}
