"""Process-wide telemetry counters shared by the routers.

Counters reset on restart; they are diagnostics, not history (see /metrics
for the Prometheus side).
"""

# =============================================================================
# TELEMETRY COUNTERS (aggregated, no high-cardinality labels)
# =============================================================================
# Single event loop: plain increments need no locking.

_telemetry = {
    # Proxy caches
    "live_scores_cache_hit": 0,
    "live_scores_cache_miss": 0,
    "news_cache_hit": 0,
    "news_cache_miss": 0,
    "graded_results_cache_hit": 0,
    "graded_results_cache_miss": 0,
    # Prediction reads
    "predictions_read": 0,
    "predictions_read_empty": 0,
    # Scan trigger
    "scan_trigger_accepted": 0,
    "scan_trigger_rejected": 0,
    # Access gating
    "access_denied_no_user": 0,
    "access_denied_expired": 0,
}


def _incr(key: str) -> None:
    """Increment a telemetry counter."""
    _telemetry[key] = _telemetry.get(key, 0) + 1


def _hit_rate(prefix: str) -> float:
    hits = _telemetry.get(f"{prefix}_hit", 0)
    total = hits + _telemetry.get(f"{prefix}_miss", 0)
    return round(hits / total, 3) if total > 0 else 0
