# =============================================================================
# lib/webhook_signature.py - Payment Webhook Signature Verification
# =============================================================================
# Verifies the provider's signature header:
#
#   Stripe-Signature: t=1492774577,v1=5257a869e7...,v0=6ffbb59b2...
#
# The expected signature is HMAC-SHA256(secret, "<t>.<raw body>") in hex.
# Any matching v1 entry is accepted (the provider sends several during
# secret rotation); other schemes are ignored.
# =============================================================================

import hashlib
import hmac
import time

from lib.utils import ApplicationError

SIGNATURE_SCHEME = "v1"


class WebhookSignatureError(ApplicationError):
    """Raised when a webhook signature header is missing, malformed, or wrong."""

    def __init__(self, message: str):
        super().__init__(message, code="INVALID_WEBHOOK_SIGNATURE")


def _parse_header(header: str) -> tuple[int, list[str]]:
    timestamp: int | None = None
    signatures: list[str] = []

    for item in header.split(","):
        key, sep, value = item.strip().partition("=")
        if not sep:
            continue
        if key == "t":
            try:
                timestamp = int(value)
            except ValueError:
                raise WebhookSignatureError("Unable to parse timestamp from signature header")
        elif key == SIGNATURE_SCHEME:
            signatures.append(value)

    if timestamp is None:
        raise WebhookSignatureError("Unable to extract timestamp from signature header")
    if not signatures:
        raise WebhookSignatureError(f"No {SIGNATURE_SCHEME} signatures found in header")

    return timestamp, signatures


def compute_signature(payload: bytes | str, secret: str, timestamp: int) -> str:
    """Hex HMAC-SHA256 of "<timestamp>.<payload>"."""
    if isinstance(payload, str):
        payload = payload.encode("utf-8")
    signed_payload = f"{timestamp}.".encode("utf-8") + payload
    return hmac.new(secret.encode("utf-8"), signed_payload, hashlib.sha256).hexdigest()


def verify_signature(
    payload: bytes | str,
    header: str,
    secret: str,
    tolerance: int = 300,
    now: float | None = None,
) -> int:
    """
    Verify a webhook payload against its signature header.

    Args:
        payload: Raw request body, exactly as received
        header: Value of the signature header
        secret: Shared webhook secret
        tolerance: Max age in seconds (0 disables the check)
        now: Current unix time (for tests)

    Returns:
        The signed timestamp

    Raises:
        WebhookSignatureError: If verification fails
    """
    if not header:
        raise WebhookSignatureError("Missing signature header")

    timestamp, signatures = _parse_header(header)
    expected = compute_signature(payload, secret, timestamp)

    if not any(hmac.compare_digest(expected, candidate) for candidate in signatures):
        raise WebhookSignatureError("No signatures found matching the expected signature for payload")

    current = time.time() if now is None else now
    if tolerance and timestamp < current - tolerance:
        raise WebhookSignatureError("Timestamp outside the tolerance zone")

    return timestamp
