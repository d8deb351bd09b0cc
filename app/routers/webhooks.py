# =============================================================================
# app/routers/webhooks.py - Payment Webhook
# =============================================================================
# Receives the payment provider's events. Only checkout.session.completed
# does anything: it records the unlock for the listing in the session's
# metadata. Other events are acknowledged and ignored.
#
# Responses:
#   400  missing/invalid signature, bad JSON, missing metadata
#   500  database error (the provider retries)
#   200  {"received": true} (+ "duplicate": true on redelivery)
# =============================================================================

import json
import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from app.config import settings
from core.services.premium_service import PremiumService
from lib.webhook_signature import WebhookSignatureError, verify_signature

logger = logging.getLogger(__name__)

router = APIRouter()

SIGNATURE_HEADER = "stripe-signature"
CHECKOUT_COMPLETED = "checkout.session.completed"


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


@router.post("/stripe")
async def stripe_webhook(request: Request):
    """Verify the signature and record paid unlocks."""
    payload = await request.body()
    signature = request.headers.get(SIGNATURE_HEADER)

    if not signature:
        return _error(400, "Missing stripe-signature header")

    try:
        verify_signature(
            payload,
            signature,
            settings.STRIPE_WEBHOOK_SECRET,
            tolerance=settings.STRIPE_WEBHOOK_TOLERANCE_SECONDS,
        )
    except WebhookSignatureError as e:
        logger.warning(f"Webhook signature verification failed: {e.message}")
        return _error(400, "Invalid signature")

    try:
        event = json.loads(payload)
    except ValueError:
        return _error(400, "Invalid payload")

    if event.get("type") != CHECKOUT_COMPLETED:
        return {"received": True}

    session = (event.get("data") or {}).get("object") or {}
    result = PremiumService.record_checkout_completion(session)

    if not result.success:
        if result.status_code >= 500:
            return _error(500, result.error)
        return _error(400, result.error)

    if not result.data.get("created"):
        return {"received": True, "duplicate": True}

    return {"received": True}
