# =============================================================================
# core/validation.py - Input Validation
# =============================================================================
# Turns raw request payloads into typed models, surfacing only the FIRST
# violated constraint as a ValidationFailedError:
#
#   validate_submission({"name": ""})
#   -> ValidationFailedError("Name is required", field="name")
#
# Also hosts the URL checks shared by the workflows:
# - is_http_url: absolute http(s) URL (javascript:, data: etc. rejected)
# - is_valid_storage_url: https URL inside our public media bucket
# - is_valid_country_code: ISO 3166-1 alpha-2
# =============================================================================

import re
from typing import Any, TypeVar
from urllib.parse import urlparse

from pydantic import BaseModel, ValidationError

from app.config import settings
from app.exceptions import ValidationFailedError
from core.models.listing import ListingSubmission, check_http_url
from core.models.report import ReportSubmission

ModelT = TypeVar("ModelT", bound=BaseModel)

COUNTRY_CODE_PATTERN = re.compile(r"^[A-Z]{2}$")


def first_error(exc: ValidationError) -> tuple[str, str | None]:
    """
    Message and field name of the first error in a ValidationError.

    Messages from our own validators are returned as written (pydantic's
    "Value error, " prefix is stripped); built-in checks keep pydantic's
    wording.
    """
    errors = exc.errors()
    if not errors:
        return "Invalid input", None

    error = errors[0]
    ctx_error = (error.get("ctx") or {}).get("error")
    message = str(ctx_error) if isinstance(ctx_error, ValueError) else error.get("msg", "Invalid input")
    loc = error.get("loc") or ()
    field = str(loc[0]) if loc else None
    return message, field


def validate_model(model: type[ModelT], raw: Any) -> ModelT:
    """
    Validate `raw` into `model`.

    Raises:
        ValidationFailedError: With the first violated constraint
    """
    if isinstance(raw, model):
        return raw
    if not isinstance(raw, dict):
        raise ValidationFailedError("Invalid input")
    try:
        return model.model_validate(raw)
    except ValidationError as e:
        message, field = first_error(e)
        raise ValidationFailedError(message, field=field)


def validate_submission(raw: Any) -> ListingSubmission:
    """Validate a listing submit/edit payload."""
    return validate_model(ListingSubmission, raw)


def validate_report(raw: Any) -> ReportSubmission:
    """Validate a report payload."""
    return validate_model(ReportSubmission, raw)


# =============================================================================
# URL Checks
# =============================================================================

def is_http_url(url: str) -> bool:
    """True for an absolute http:// or https:// URL."""
    try:
        check_http_url(url)
    except (ValueError, AttributeError):
        return False
    return True


def is_valid_storage_url(url: str) -> bool:
    """
    True iff `url` points at a public object in our media bucket.

    Requires https, a host that is a proper subdomain of
    STORAGE_HOST_SUFFIX (so "evil-supabase.co" fails for ".supabase.co"),
    and a path under the bucket's public prefix without ".." segments.
    The netloc must be the bare host: browsers treat "\" as a path
    separator, so "https://evil.com\@x.supabase.co/..." would load from
    evil.com.
    """
    if not isinstance(url, str) or not url or "\\" in url:
        return False
    try:
        parsed = urlparse(url)
        hostname = parsed.hostname or ""
        port = parsed.port
    except ValueError:
        return False

    if port is not None or parsed.netloc.lower() != hostname:
        return False

    suffix = settings.STORAGE_HOST_SUFFIX.lower()
    if not suffix.startswith("."):
        suffix = f".{suffix}"

    if parsed.scheme != "https":
        return False
    if not hostname.endswith(suffix) or len(hostname) <= len(suffix):
        return False
    if not parsed.path.startswith(settings.storage_public_prefix):
        return False
    return ".." not in parsed.path.split("/")


def check_media_urls(urls: list[str]) -> None:
    """
    Raises:
        ValidationFailedError: If any logo/screenshot URL is outside our storage
    """
    for url in urls:
        if not is_valid_storage_url(url):
            raise ValidationFailedError("Invalid image URL. Please upload images using the form.", field="media")


def is_valid_country_code(code: str | None) -> bool:
    return bool(code) and bool(COUNTRY_CODE_PATTERN.match(code))
