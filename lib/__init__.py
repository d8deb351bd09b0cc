# =============================================================================
# lib/ - Standalone Utility Modules
# =============================================================================
# This package contains reusable utilities:
# - supabase_client.py: Typed Supabase wrapper for database operations
# - rate_limit.py: Window-based rate limiter over swappable counter stores
# - webhook_signature.py: Payment webhook signature verification
# - utils.py: Shared utilities (error base class, UUIDs, slugs)
#
# These modules are self-contained and can be tested in isolation.
# =============================================================================

from lib.supabase_client import SupabaseClient, SupabaseClientError
from lib.rate_limit import (
    CounterStore,
    MemoryCounterStore,
    RateLimiter,
    RateLimitRule,
    check_rate_limit,
)
from lib.webhook_signature import WebhookSignatureError, verify_signature
from lib.utils import ApplicationError, normalize_uuid, slugify

__all__ = [
    # Supabase
    "SupabaseClient",
    "SupabaseClientError",
    # Rate limiting
    "CounterStore",
    "MemoryCounterStore",
    "RateLimiter",
    "RateLimitRule",
    "check_rate_limit",
    # Webhooks
    "WebhookSignatureError",
    "verify_signature",
    # Utils
    "ApplicationError",
    "normalize_uuid",
    "slugify",
]
