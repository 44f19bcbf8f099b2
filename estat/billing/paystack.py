"""
Paystack webhook handling.

Paystack signs every delivery with HMAC-SHA512 of the raw request body keyed
by the account secret, hex encoded in the `x-paystack-signature` header.
Only `charge.success` changes state; other events are acknowledged.
"""

import hashlib
import hmac
import json
import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from estat.billing.subscriptions import extend_subscription, get_or_create_profile
from estat.config import Settings
from estat.telemetry import record_webhook_event

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "x-paystack-signature"
CHARGE_SUCCESS = "charge.success"


class SignatureMismatch(Exception):
    """Webhook signature missing or wrong. Not retriable."""


class WebhookPayloadError(ValueError):
    """Webhook body is not usable (bad JSON or malformed charge data)."""


@dataclass
class WebhookResult:
    event: str
    handled: bool
    user_id: Optional[str] = None


def sign(raw_body: bytes, secret: str) -> str:
    return hmac.new(secret.encode("utf-8"), raw_body, hashlib.sha512).hexdigest()


def verify_signature(raw_body: bytes, signature: Optional[str], secret: str) -> bool:
    """Constant-time check of the header against the body. Empty secret never verifies."""
    if not secret or not signature:
        return False
    return hmac.compare_digest(sign(raw_body, secret), signature.strip().lower())


async def process_webhook(
    session: AsyncSession,
    raw_body: bytes,
    signature: Optional[str],
    settings: Settings,
) -> WebhookResult:
    """
    Verify and apply one webhook delivery.

    Raises:
        SignatureMismatch: signature does not match (nothing is touched)
        WebhookPayloadError: body is not JSON or charge.success data is malformed
    """
    if not verify_signature(raw_body, signature, settings.PAYSTACK_SECRET_KEY):
        logger.warning("Webhook signature verification failed")
        record_webhook_event("unknown", "rejected")
        raise SignatureMismatch("Signature verification failed")

    try:
        payload = json.loads(raw_body)
    except ValueError as e:
        record_webhook_event("unknown", "bad_request")
        raise WebhookPayloadError("Body is not valid JSON") from e
    if not isinstance(payload, dict):
        record_webhook_event("unknown", "bad_request")
        raise WebhookPayloadError("Body is not a JSON object")

    event = str(payload.get("event") or "unknown")
    if event != CHARGE_SUCCESS:
        logger.info(f"Ignoring webhook event {event}")
        record_webhook_event(event, "ignored")
        return WebhookResult(event=event, handled=False)

    data = payload.get("data") or {}
    customer = (data.get("customer") or {}) if isinstance(data, dict) else None
    if not isinstance(customer, dict):
        logger.error("Webhook error: data or customer is not an object")
        record_webhook_event(event, "bad_request")
        raise WebhookPayloadError("Malformed charge data")

    metadata = data.get("metadata") or {}
    user_id = metadata.get("user_id") if isinstance(metadata, dict) else None
    if not user_id:
        logger.error("Webhook error: user_id not found in metadata")
        record_webhook_event(event, "bad_request")
        raise WebhookPayloadError("User ID missing")

    email = customer.get("email")
    profile = await get_or_create_profile(session, str(user_id), email=email, trial_days=0)
    extend_subscription(profile, settings.SUBSCRIPTION_DAYS)
    if email and not profile.email:
        profile.email = email
    session.add(profile)
    await session.commit()

    record_webhook_event(event, "ok")
    logger.info(
        f"Subscription active for user {user_id} until {profile.subscription_expires_at.isoformat()}"
    )
    return WebhookResult(event=event, handled=True, user_id=str(user_id))
