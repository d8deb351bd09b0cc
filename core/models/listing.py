# =============================================================================
# core/models/listing.py - Listing Schemas
# =============================================================================
# These models define the API contract for listings ("apps" table):
# - ListingStatus / PricingModel / Platform: enumerations stored in the DB
# - ListingSubmission: strongly-typed submit/edit payload with all field rules
# - Category, CategoryList: reference data
# - ListingQuery: browse/search parameters
#
# Lifecycle: (none) -> pending -> approved | rejected
#            rejected -> pending (owner edit) | approved (admin)
#            approved -> rejected (admin hide)
#
# Validators raise ValueError with the exact user-facing message; see
# core/validation.py for how the first message is surfaced.
# =============================================================================

import re
from datetime import date
from enum import Enum
from urllib.parse import urlparse
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.config import settings


class ListingStatus(str, Enum):
    """
    Moderation state of a listing.

    - pending: Awaiting review (new submissions and owner edits)
    - approved: Public; locked for the owner
    - rejected: Hidden, with a rejection reason
    """
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class PricingModel(str, Enum):
    FREE = "free"
    FREEMIUM = "freemium"
    PAID = "paid"
    SUBSCRIPTION = "subscription"


class Platform(str, Enum):
    IOS = "ios"
    ANDROID = "android"
    WEB = "web"
    MACOS = "macos"
    WINDOWS = "windows"
    LINUX = "linux"
    ALEXA = "alexa"
    GOOGLE_ASSISTANT = "google_assistant"


class ListingSort(str, Enum):
    NEWEST = "newest"
    POPULAR = "popular"
    NAME = "name"


VOICE_FEATURES: tuple[str, ...] = (
    "Voice Commands",
    "Voice Search",
    "Voice Navigation",
    "Voice Input/Dictation",
    "Voice Responses/TTS",
    "Conversational AI",
    "Voice Authentication",
    "Voice Control (Smart Home)",
    "Voice Translation",
    "Voice Notes/Memos",
    "Voice Shopping",
    "Voice Gaming",
    "Accessibility (Screen Reader)",
    "Custom Wake Word",
    "Multi-language Voice",
)

APP_STORE_URL_PATTERN = re.compile(r"^https://apps\.apple\.com/.+")
PLAY_STORE_URL_PATTERN = re.compile(r"^https://play\.google\.com/store/apps/.+")
TAG_PATTERN = re.compile(r"^[a-zA-Z0-9\s\-]+$")
DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")

MAX_TAGS = 10


# =============================================================================
# URL Helpers
# =============================================================================

def check_http_url(value: str, message: str = "Please enter a valid URL") -> str:
    """
    Validate an absolute http(s) URL and return it stripped.

    javascript:, data: and every other scheme are rejected.

    Raises:
        ValueError: With a user-facing message
    """
    candidate = value.strip()
    if not candidate or any(ch.isspace() for ch in candidate):
        raise ValueError(message)

    parsed = urlparse(candidate)
    if not parsed.scheme:
        raise ValueError(message)
    if parsed.scheme.lower() not in ("http", "https"):
        raise ValueError("URL must start with https:// or http://")
    if not parsed.netloc or not parsed.hostname:
        raise ValueError(message)
    return candidate


def _optional_url(value: str | None) -> str | None:
    if value is None or value.strip() == "":
        return None
    return check_http_url(value)


def _check_length(value: str, minimum: int, maximum: int, too_short: str, too_long: str) -> str:
    stripped = value.strip()
    if len(stripped) < minimum:
        raise ValueError(too_short)
    if len(stripped) > maximum:
        raise ValueError(too_long)
    return stripped


# =============================================================================
# Submission Payload
# =============================================================================

class ListingSubmission(BaseModel):
    """
    Payload for submitting or editing a listing.

    Fields are validated in declaration order and unknown fields are
    rejected. `website2` is the honeypot: it's accepted here so the workflow
    can inspect it, but never stored.

    Example:
        {
            "name": "Talkative",
            "tagline": "Hands-free notes for busy people",
            "description": "...at least fifty characters...",
            "category_id": "550e8400-e29b-41d4-a716-446655440000",
            "voice_features": ["Voice Notes/Memos"],
            "platforms": ["ios", "android"],
            "website_url": "https://talkative.app",
            "pricing_model": "freemium",
            "tags": ["notes", "productivity"]
        }
    """

    model_config = ConfigDict(extra="forbid", validate_default=True)

    name: str = ""
    tagline: str = ""
    description: str = ""
    category_id: str = ""
    voice_features: list[str] = Field(default_factory=list)
    platforms: list[Platform] = Field(default_factory=list)
    website_url: str = ""
    app_store_url: str | None = None
    play_store_url: str | None = None
    other_download_url: str | None = None
    demo_video_url: str | None = None
    pricing_model: PricingModel | None = None
    pricing_details: str | None = None
    is_coming_soon: bool = False
    expected_launch_date: str | None = None
    tags: list[str] = Field(default_factory=list)
    logo_url: str | None = None
    screenshot_urls: list[str] = Field(default_factory=list)

    # Honeypot - real users never see or fill this field
    website2: str | None = None

    # -------------------------------------------------------------------------
    # Text Fields
    # -------------------------------------------------------------------------

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        return _check_length(v, 1, 100, "Name is required", "Name must be under 100 characters")

    @field_validator("tagline")
    @classmethod
    def validate_tagline(cls, v: str) -> str:
        return _check_length(
            v, 10, 150,
            "Tagline must be at least 10 characters",
            "Tagline must be under 150 characters",
        )

    @field_validator("description")
    @classmethod
    def validate_description(cls, v: str) -> str:
        return _check_length(
            v, 50, 2000,
            "Description must be at least 50 characters",
            "Description must be under 2000 characters",
        )

    @field_validator("category_id")
    @classmethod
    def validate_category_id(cls, v: str) -> str:
        try:
            return str(UUID(v.strip()))
        except ValueError:
            raise ValueError("Please select a category")

    # -------------------------------------------------------------------------
    # Enumerations
    # -------------------------------------------------------------------------

    @field_validator("voice_features")
    @classmethod
    def validate_voice_features(cls, v: list[str]) -> list[str]:
        if not v:
            raise ValueError("Select at least one voice feature")
        for feature in v:
            if feature not in VOICE_FEATURES:
                raise ValueError(f"Unknown voice feature: {feature}")
        return list(dict.fromkeys(v))

    @field_validator("platforms", mode="before")
    @classmethod
    def validate_platforms(cls, v):
        if not isinstance(v, list) or not v:
            raise ValueError("Select at least one platform")
        allowed = {p.value for p in Platform}
        for platform in v:
            if not isinstance(platform, str) or platform not in allowed:
                raise ValueError(f"Unknown platform: {platform}")
        return list(dict.fromkeys(v))

    @field_validator("pricing_model", mode="before")
    @classmethod
    def validate_pricing_model(cls, v):
        allowed = [m.value for m in PricingModel]
        if v not in allowed:
            raise ValueError(f"Pricing model must be one of: {', '.join(allowed)}")
        return v

    # -------------------------------------------------------------------------
    # URLs
    # -------------------------------------------------------------------------

    @field_validator("website_url")
    @classmethod
    def validate_website_url(cls, v: str) -> str:
        return check_http_url(v)

    @field_validator("app_store_url")
    @classmethod
    def validate_app_store_url(cls, v: str | None) -> str | None:
        url = _optional_url(v)
        if url and not APP_STORE_URL_PATTERN.match(url):
            raise ValueError("Must be a valid App Store URL")
        return url

    @field_validator("play_store_url")
    @classmethod
    def validate_play_store_url(cls, v: str | None) -> str | None:
        url = _optional_url(v)
        if url and not PLAY_STORE_URL_PATTERN.match(url):
            raise ValueError("Must be a valid Play Store URL")
        return url

    @field_validator("other_download_url", "demo_video_url")
    @classmethod
    def validate_optional_urls(cls, v: str | None) -> str | None:
        return _optional_url(v)

    # -------------------------------------------------------------------------
    # Pricing, Launch, Tags
    # -------------------------------------------------------------------------

    @field_validator("pricing_details")
    @classmethod
    def validate_pricing_details(cls, v: str | None) -> str | None:
        if v is None or v.strip() == "":
            return None
        if len(v.strip()) > 100:
            raise ValueError("Pricing details must be under 100 characters")
        return v.strip()

    @field_validator("expected_launch_date")
    @classmethod
    def validate_expected_launch_date(cls, v: str | None) -> str | None:
        if v is None or v.strip() == "":
            return None
        candidate = v.strip()
        if not DATE_PATTERN.match(candidate):
            raise ValueError("Expected launch date must be a valid date")
        try:
            date.fromisoformat(candidate)
        except ValueError:
            raise ValueError("Expected launch date must be a valid date")
        return candidate

    @field_validator("tags")
    @classmethod
    def validate_tags(cls, v: list[str]) -> list[str]:
        if len(v) > MAX_TAGS:
            raise ValueError(f"Maximum {MAX_TAGS} tags")
        cleaned = []
        for tag in v:
            tag = tag.strip()
            if len(tag) < 2:
                raise ValueError("Tag must be at least 2 characters")
            if len(tag) > 30:
                raise ValueError("Tag must be under 30 characters")
            if not TAG_PATTERN.match(tag):
                raise ValueError("Tags can only contain letters, numbers, spaces, and hyphens")
            cleaned.append(tag)
        return cleaned

    @field_validator("logo_url")
    @classmethod
    def validate_logo_url(cls, v: str | None) -> str | None:
        if v is None or v.strip() == "":
            return None
        return v.strip()

    @field_validator("screenshot_urls")
    @classmethod
    def validate_screenshot_urls(cls, v: list[str]) -> list[str]:
        if len(v) > settings.MAX_SCREENSHOTS:
            raise ValueError(f"Maximum {settings.MAX_SCREENSHOTS} screenshots")
        return [url.strip() for url in v if url.strip()]

    # -------------------------------------------------------------------------
    # Helper Methods
    # -------------------------------------------------------------------------

    def media_urls(self) -> list[str]:
        """Logo and screenshot URLs that must point at our storage bucket."""
        urls = [self.logo_url] if self.logo_url else []
        return urls + list(self.screenshot_urls)

    def to_row(self) -> dict:
        """Column values for the apps table (honeypot excluded)."""
        return {
            "name": self.name,
            "tagline": self.tagline,
            "description": self.description,
            "category_id": self.category_id,
            "voice_features": self.voice_features,
            "platforms": [p.value for p in self.platforms],
            "website_url": self.website_url,
            "app_store_url": self.app_store_url,
            "play_store_url": self.play_store_url,
            "other_download_url": self.other_download_url,
            "demo_video_url": self.demo_video_url,
            "pricing_model": self.pricing_model.value if self.pricing_model else None,
            "pricing_details": self.pricing_details,
            "is_coming_soon": self.is_coming_soon,
            "expected_launch_date": self.expected_launch_date if self.is_coming_soon else None,
            "logo_url": self.logo_url or "",
            "screenshot_urls": self.screenshot_urls,
        }


# =============================================================================
# Reference Data
# =============================================================================

class Category(BaseModel):
    """Fixed taxonomy entry; not writable by end users."""
    id: UUID
    name: str
    slug: str
    description: str | None = None
    icon: str | None = None
    display_order: int = 0


class CategoryList(BaseModel):
    categories: list[Category]


# =============================================================================
# Browse / Search
# =============================================================================

class ListingQuery(BaseModel):
    """
    Parameters for browsing approved listings.

    Example:
        ListingQuery(q="notes", platform=Platform.IOS, sort=ListingSort.POPULAR)
    """

    q: str | None = Field(
        default=None,
        max_length=200,
        description="Full-text search (websearch syntax)"
    )

    category: str | None = Field(
        default=None,
        description="Category slug"
    )

    platform: Platform | None = Field(
        default=None,
        description="Only listings available on this platform"
    )

    pricing: PricingModel | None = Field(
        default=None,
        description="Only listings with this pricing model"
    )

    sort: ListingSort = Field(
        default=ListingSort.NEWEST,
        description="newest (default), popular (upvotes) or name"
    )

    page: int = Field(
        default=1,
        ge=1,
        description="Page number (1-indexed)"
    )

    per_page: int = Field(
        default=12,
        ge=1,
        le=50,
        description="Items per page"
    )
