"""
Telemetry module.

Provides Prometheus metrics for upstream providers, daily scans and payment
webhooks, plus optional Sentry error tracking.
"""

from estat.telemetry.metrics import (
    get_metrics_text,
    record_provider_request,
    record_scan_run,
    record_webhook_event,
)
from estat.telemetry.sentry import init_sentry, is_sentry_enabled, sentry_job_context

__all__ = [
    "get_metrics_text",
    "record_provider_request",
    "record_scan_run",
    "record_webhook_event",
    "init_sentry",
    "is_sentry_enabled",
    "sentry_job_context",
]
