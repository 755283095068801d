"""
Webhook Security Module
Signature helpers for the Stripe webhook endpoint:
- Stripe event verification through the SDK
- Signature generation for tests
"""

import hashlib
import hmac
import json
import logging
import time
from typing import Optional

import stripe
from fastapi import HTTPException, Request

logger = logging.getLogger(__name__)


def compute_hmac_sha256(secret: str, payload: bytes) -> str:
    """Compute HMAC-SHA256 signature of payload"""
    return hmac.new(secret.encode("utf-8"), payload, hashlib.sha256).hexdigest()


async def verify_stripe_webhook(request: Request, secret: Optional[str]) -> dict:
    """
    Verify a Stripe webhook and return the event as a plain dict.

    Stripe uses:
    - Header: 'Stripe-Signature' (format: "t=<timestamp>,v1=<signature>")

    Raises:
        HTTPException 400 when the header is missing or the signature is bad,
        500 when no endpoint secret is configured
    """
    raw_body = await request.body()
    signature_header = request.headers.get("stripe-signature")

    if not signature_header:
        logger.warning("🚫 Stripe webhook missing signature header")
        raise HTTPException(status_code=400, detail="Missing stripe-signature header")

    if not secret:
        logger.error("❌ STRIPE_WEBHOOK_SECRET not configured")
        raise HTTPException(status_code=500, detail="Webhook secret not configured")

    try:
        stripe.Webhook.construct_event(raw_body, signature_header, secret)
    except stripe.SignatureVerificationError as e:
        logger.warning(f"🚫 Stripe webhook signature mismatch: {str(e)}")
        raise HTTPException(status_code=400, detail="Invalid webhook signature") from e
    except ValueError as e:
        logger.warning(f"🚫 Stripe webhook payload is not valid JSON: {str(e)}")
        raise HTTPException(status_code=400, detail="Invalid payload") from e

    logger.debug("✅ Stripe webhook signature verified")
    return json.loads(raw_body)


def create_stripe_signature(secret: str, payload: bytes, timestamp: Optional[int] = None) -> str:
    """Stripe-Signature header value for a payload, for tests or replays"""
    timestamp = timestamp or int(time.time())
    signed_payload = f"{timestamp}.{payload.decode('utf-8')}"
    return f"t={timestamp},v1={compute_hmac_sha256(secret, signed_payload.encode())}"
