"""
Billing module.

Trial/subscription access for user profiles and the Paystack webhook that
activates paid periods.
"""

from estat.billing.paystack import (
    SignatureMismatch,
    WebhookPayloadError,
    WebhookResult,
    process_webhook,
    verify_signature,
)
from estat.billing.subscriptions import (
    AccessStatus,
    access_status,
    extend_subscription,
    get_or_create_profile,
    get_profile,
)

__all__ = [
    "SignatureMismatch",
    "WebhookPayloadError",
    "WebhookResult",
    "process_webhook",
    "verify_signature",
    "AccessStatus",
    "access_status",
    "extend_subscription",
    "get_or_create_profile",
    "get_profile",
]
