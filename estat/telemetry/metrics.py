"""
Prometheus metrics for upstream calls, scans and payments.

Labels are restricted to LOW-CARDINALITY values only:
- provider:    "api_football", "newsapi"
- endpoint:    "fixtures", "fixtures/headtohead", "leagues", "everything"
- status_code: "200", "429", "500", "timeout", "request_error"
- outcome:     "ok", "cache_error", "error", "rejected", "ignored", "bad_request"

Never use fixture ids, team names, user ids or dates as labels.
"""

import logging

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    REGISTRY,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)

logger = logging.getLogger(__name__)

# =============================================================================
# PROVIDER METRICS
# =============================================================================

provider_requests_total = Counter(
    "estat_provider_requests_total",
    "Total requests to upstream providers",
    ["provider", "endpoint", "status_code"],
)

provider_rate_limited_total = Counter(
    "estat_provider_rate_limited_total",
    "Rate-limited responses (429) from upstream providers",
    ["provider", "endpoint"],
)

provider_latency_ms = Histogram(
    "estat_provider_latency_ms",
    "Upstream request latency in milliseconds",
    ["provider", "endpoint"],
    buckets=[25, 50, 100, 250, 500, 1000, 2500, 5000, 10000, 30000],
)

# =============================================================================
# SCAN METRICS
# =============================================================================

scan_runs_total = Counter(
    "estat_scan_runs_total",
    "Daily scan runs by outcome",
    ["trigger", "outcome"],
)

scan_predictions_cached = Gauge(
    "estat_scan_predictions_cached",
    "Predictions cached by the last successful scan",
)

scan_fixtures_dropped_total = Counter(
    "estat_scan_fixtures_dropped_total",
    "Fixtures dropped because an upstream lookup failed",
)

scan_duration_seconds = Histogram(
    "estat_scan_duration_seconds",
    "Wall time of a daily scan",
    buckets=[1, 5, 10, 30, 60, 120, 300, 600],
)

# =============================================================================
# PAYMENT METRICS
# =============================================================================

webhook_events_total = Counter(
    "estat_webhook_events_total",
    "Payment webhook deliveries by event and outcome",
    ["event", "outcome"],
)


def record_provider_request(provider: str, endpoint: str, status_code: str, latency_ms: float) -> None:
    """Record one upstream request. Best-effort: never raises into the caller."""
    try:
        provider_requests_total.labels(
            provider=provider, endpoint=endpoint, status_code=status_code
        ).inc()
        provider_latency_ms.labels(provider=provider, endpoint=endpoint).observe(latency_ms)
        if status_code == "429":
            provider_rate_limited_total.labels(provider=provider, endpoint=endpoint).inc()
    except Exception as e:
        logger.debug(f"Failed to record provider metric: {e}")


def record_scan_run(trigger: str, outcome: str, cached: int = 0, dropped: int = 0, duration_s: float = 0.0) -> None:
    """Record a finished scan (outcome ok/cache_error/error)."""
    try:
        scan_runs_total.labels(trigger=trigger, outcome=outcome).inc()
        if outcome == "ok":
            scan_predictions_cached.set(cached)
            scan_duration_seconds.observe(duration_s)
        if dropped:
            scan_fixtures_dropped_total.inc(dropped)
    except Exception as e:
        logger.debug(f"Failed to record scan metric: {e}")


def record_webhook_event(event: str, outcome: str) -> None:
    """Record a webhook delivery. Unknown event names collapse to 'other'."""
    known = {"charge.success", "unknown"}
    try:
        webhook_events_total.labels(event=event if event in known else "other", outcome=outcome).inc()
    except Exception as e:
        logger.debug(f"Failed to record webhook metric: {e}")


def get_metrics_text() -> tuple[str, str]:
    """Return (payload, content_type) for the /metrics endpoint."""
    return generate_latest(REGISTRY).decode("utf-8"), CONTENT_TYPE_LATEST
