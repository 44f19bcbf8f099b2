"""
Sentry integration for error tracking.

Security:
- Sensitive headers are scrubbed before sending
- Query strings with secrets (the scan trigger takes ?secret=) are redacted
- Request bodies are NOT captured (payment webhooks carry customer data)
- PII is disabled
"""

import logging
import os
import re
from contextlib import contextmanager
from typing import Optional

import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.logging import LoggingIntegration
from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration

logger = logging.getLogger(__name__)

_sentry_initialized = False

SENSITIVE_HEADERS = (
    "authorization",
    "cookie",
    "set-cookie",
    "x-paystack-signature",
    "x-user-id",
    "x-forwarded-for",
)


def scrub_sensitive_data(event: dict, hint: dict) -> Optional[dict]:
    """Scrub secrets from Sentry events before sending."""
    request = event.get("request") or {}

    headers = request.get("headers") or {}
    for key in list(headers.keys()):
        if key.lower() in SENSITIVE_HEADERS:
            headers[key] = "[REDACTED]"
    request["headers"] = headers

    query_string = request.get("query_string")
    if isinstance(query_string, str) and query_string:
        request["query_string"] = re.sub(
            r"(?i)(secret|token|api_key|apikey|key|password)=([^&]*)",
            r"\1=[REDACTED]",
            query_string,
        )

    if "data" in request:
        request["data"] = "[SCRUBBED]"

    event["request"] = request
    return event


def init_sentry() -> bool:
    """
    Initialize Sentry SDK if SENTRY_DSN is configured.

    Environment variables:
    - SENTRY_DSN: Required. Sentry DSN from project settings.
    - SENTRY_TRACES_SAMPLE_RATE: Optional. Default 0.05.
    - SENTRY_ENVIRONMENT: Optional. Default "development".
    """
    global _sentry_initialized

    if _sentry_initialized:
        return True

    dsn = os.getenv("SENTRY_DSN")
    if not dsn:
        logger.info("Sentry not configured (SENTRY_DSN not set)")
        return False

    environment = os.getenv("SENTRY_ENVIRONMENT", "development")
    traces_sample_rate = float(os.getenv("SENTRY_TRACES_SAMPLE_RATE", "0.05"))

    sentry_sdk.init(
        dsn=dsn,
        environment=environment,
        integrations=[
            FastApiIntegration(transaction_style="endpoint"),
            SqlalchemyIntegration(),
            LoggingIntegration(level=logging.INFO, event_level=logging.ERROR),
        ],
        traces_sample_rate=traces_sample_rate,
        send_default_pii=False,
        before_send=scrub_sensitive_data,
    )

    _sentry_initialized = True
    logger.info(f"Sentry initialized: env={environment}, traces_sample_rate={traces_sample_rate}")
    return True


def is_sentry_enabled() -> bool:
    """Check if Sentry is initialized and active."""
    return _sentry_initialized


@contextmanager
def sentry_job_context(job_id: str, **extra_tags):
    """
    Tag scheduler job work and capture its exceptions before re-raising.

    Usage:
        with sentry_job_context("daily_scan", day="2026-01-25"):
            ...
    """
    if not _sentry_initialized:
        yield
        return

    with sentry_sdk.new_scope() as scope:
        scope.set_tag("job_id", job_id)
        for key, value in extra_tags.items():
            scope.set_tag(key, str(value))
        try:
            yield
        except Exception as e:
            sentry_sdk.capture_exception(e)
            raise
