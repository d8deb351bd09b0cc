# =============================================================================
# lib/rate_limit.py - Rate Limiter
# =============================================================================
# Window-based request counter keyed by a caller-supplied string
# (e.g. "submit:<user_id>").
#
# The counter itself lives behind the CounterStore interface so the backing
# store can be swapped without touching callers:
# - MemoryCounterStore: per-process dict (tests, single-instance dev)
# - SupabaseCounterStore: atomic check_rate_limit() database function
# - RedisCounterStore: INCR + EXPIRE in Redis
#
# Only the database and Redis stores hold across multiple instances.
#
# Each rule carries its own failure policy: when the store is unreachable,
# auth and submission limits deny (fail closed), cheap toggles allow
# (fail open).
#
# Usage:
#   from lib.rate_limit import RateLimitRule, check_rate_limit
#   if not check_rate_limit(RateLimitRule.SUBMIT, user_id):
#       ...
# =============================================================================

from __future__ import annotations

import logging
import threading
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Callable

from app.config import settings
from lib.utils import ApplicationError

logger = logging.getLogger(__name__)


class RateLimitStoreError(ApplicationError):
    """Raised when a counter store cannot be reached."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(
            message,
            code="RATE_LIMIT_STORE_ERROR",
            suggestion="Check the rate-limit backend (RATE_LIMIT_BACKEND) is reachable",
            details=details,
        )


# =============================================================================
# Counter Stores
# =============================================================================

class CounterStore(ABC):
    """Backing store for rate-limit counters."""

    @abstractmethod
    def increment_and_check(self, key: str, max_requests: int, window_seconds: int) -> bool:
        """
        Count one request for `key` and report whether it is allowed.

        Raises:
            RateLimitStoreError: If the store is unreachable
        """


class MemoryCounterStore(CounterStore):
    """
    In-process counter map: key -> (count, window reset time).

    No cross-instance guarantee. A missing or expired entry restarts the
    window with a count of 1. Expired entries are swept every
    `sweep_every` calls so idle callers don't accumulate.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic, sweep_every: int = 1000):
        self._clock = clock
        self._entries: dict[str, tuple[int, float]] = {}
        self._lock = threading.Lock()
        self._sweep_every = sweep_every
        self._calls = 0

    @property
    def size(self) -> int:
        """Number of keys currently tracked."""
        return len(self._entries)

    def _sweep(self, now: float) -> None:
        expired = [key for key, (_, reset_at) in self._entries.items() if now >= reset_at]
        for key in expired:
            del self._entries[key]

    def increment_and_check(self, key: str, max_requests: int, window_seconds: int) -> bool:
        now = self._clock()
        with self._lock:
            self._calls += 1
            if self._calls % self._sweep_every == 0:
                self._sweep(now)

            entry = self._entries.get(key)

            if entry is None or now >= entry[1]:
                self._entries[key] = (1, now + window_seconds)
                return True

            count, reset_at = entry
            if count < max_requests:
                self._entries[key] = (count + 1, reset_at)
                return True

            return False

    def reset(self) -> None:
        """Drop every counter."""
        with self._lock:
            self._entries.clear()


class SupabaseCounterStore(CounterStore):
    """Counter kept by the check_rate_limit() database function."""

    def increment_and_check(self, key: str, max_requests: int, window_seconds: int) -> bool:
        # Imported here so the memory store works without a Supabase client
        from lib.supabase_client import SupabaseClient, SupabaseClientError

        try:
            return SupabaseClient.check_rate_limit(key, max_requests, window_seconds)
        except SupabaseClientError as e:
            raise RateLimitStoreError(f"Rate limit check failed: {e.message}", details={"key": key})


class RedisCounterStore(CounterStore):
    """
    Fixed-window counter in Redis.

    INCR creates the key at 1; EXPIRE NX starts the window only on the first
    hit so later hits don't extend it.
    """

    def __init__(self, redis_client=None, url: str | None = None):
        if redis_client is None:
            import redis

            redis_client = redis.Redis.from_url(url or settings.REDIS_URL)
        self._redis = redis_client

    def increment_and_check(self, key: str, max_requests: int, window_seconds: int) -> bool:
        redis_key = f"ratelimit:{key}"
        try:
            pipe = self._redis.pipeline()
            pipe.incr(redis_key)
            pipe.expire(redis_key, window_seconds, nx=True)
            count, _ = pipe.execute()
        except Exception as e:
            raise RateLimitStoreError(f"Redis rate limit check failed: {e}", details={"key": key})

        return int(count) <= max_requests

    def ping(self) -> bool:
        return bool(self._redis.ping())


# =============================================================================
# Limiter
# =============================================================================

class RateLimiter:
    """
    allow(key, max_requests, window_seconds) over a CounterStore.

    Store failures are logged and resolved by `fail_open`.
    """

    def __init__(self, store: CounterStore, fail_open: bool = False):
        self.store = store
        self.fail_open = fail_open

    def allow(self, key: str, max_requests: int, window_seconds: int) -> bool:
        try:
            return self.store.increment_and_check(key, max_requests, window_seconds)
        except RateLimitStoreError as e:
            policy = "allowing" if self.fail_open else "denying"
            logger.error(f"{e.message} ({policy} request for {key})")
            return self.fail_open


@dataclass(frozen=True)
class RateLimitPolicy:
    """Limits and failure policy for one kind of action."""
    prefix: str
    max_requests: int
    window_seconds: int
    fail_open: bool
    message: str


class RateLimitRule(Enum):
    """Per-action rate limits."""

    SUBMIT = RateLimitPolicy(
        "submit", 5, 600, False,
        "Too many submissions. Please wait a few minutes and try again.",
    )
    REPORT = RateLimitPolicy(
        "report", 5, 600, False,
        "Too many reports. Please wait a few minutes and try again.",
    )
    SIGNUP = RateLimitPolicy(
        "signup", 5, 900, False,
        "Too many signup attempts. Please wait a few minutes and try again.",
    )
    SIGNIN = RateLimitPolicy(
        "signin", 10, 900, False,
        "Too many login attempts. Please wait a few minutes and try again.",
    )
    UPVOTE = RateLimitPolicy(
        "upvote", 30, 60, True,
        "Too many requests. Please slow down.",
    )
    INTEREST = RateLimitPolicy(
        "interest", 30, 60, True,
        "Too many requests. Please slow down.",
    )


# =============================================================================
# Store Selection
# =============================================================================

_store: CounterStore | None = None


def get_counter_store() -> CounterStore:
    """Get or create the process-wide counter store chosen by settings."""
    global _store
    if _store is None:
        backend = settings.RATE_LIMIT_BACKEND
        if backend == "memory":
            _store = MemoryCounterStore()
        elif backend == "redis":
            _store = RedisCounterStore()
        else:
            _store = SupabaseCounterStore()
        logger.info(f"Rate limiter using {backend} counter store")
    return _store


def set_counter_store(store: CounterStore | None) -> None:
    """Replace the process-wide store (None resets to the configured one)."""
    global _store
    _store = store


def get_rate_limiter(fail_open: bool = False) -> RateLimiter:
    """Limiter over the configured store with the given failure policy."""
    return RateLimiter(get_counter_store(), fail_open=fail_open)


def check_rate_limit(rule: RateLimitRule, subject: str) -> bool:
    """
    Count one request by `subject` against `rule`.

    Returns:
        True if the request is allowed
    """
    policy = rule.value
    limiter = get_rate_limiter(fail_open=policy.fail_open)
    allowed = limiter.allow(f"{policy.prefix}:{subject}", policy.max_requests, policy.window_seconds)
    if not allowed:
        logger.warning(f"Rate limit exceeded: {policy.prefix}:{subject}")
    return allowed
