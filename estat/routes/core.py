"""Core routes: health, telemetry, metrics.

Auth per-endpoint:
- /health: public, rate limited
- /telemetry: Bearer token (METRICS_BEARER_TOKEN)
- /metrics: Bearer token (METRICS_BEARER_TOKEN)
"""

from fastapi import APIRouter, Depends, Header, HTTPException, Request
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel

from estat.config import Settings, get_settings
from estat.security import bearer_token_valid, limiter
from estat.state import _hit_rate, _telemetry
from estat.telemetry import get_metrics_text, is_sentry_enabled

router = APIRouter(tags=["core"])


class HealthResponse(BaseModel):
    status: str
    database: dict
    scheduler_running: bool
    sentry_enabled: bool


@router.get("/health", response_model=HealthResponse)
@limiter.limit("120/minute")
async def health_check(request: Request):
    """Health check endpoint."""
    database = getattr(request.app.state, "database", None)
    scheduler = getattr(request.app.state, "scheduler", None)
    return HealthResponse(
        status="ok",
        database=database.get_pool_status() if database is not None else {},
        scheduler_running=bool(scheduler is not None and scheduler.running),
        sentry_enabled=is_sentry_enabled(),
    )


@router.get("/telemetry")
async def get_telemetry(
    authorization: str = Header(None, alias="Authorization"),
    settings: Settings = Depends(get_settings),
):
    """
    Aggregated telemetry counters for proxy caches, reads and triggers.

    NOTE: Counters reset on restart. For persistent metrics, scrape /metrics.
    """
    if not bearer_token_valid(authorization, settings.METRICS_BEARER_TOKEN):
        raise HTTPException(status_code=401, detail="Telemetry access requires valid token.")

    return {
        "live_scores_cache": {
            "hit": _telemetry["live_scores_cache_hit"],
            "miss": _telemetry["live_scores_cache_miss"],
            "hit_rate": _hit_rate("live_scores_cache"),
        },
        "news_cache": {
            "hit": _telemetry["news_cache_hit"],
            "miss": _telemetry["news_cache_miss"],
            "hit_rate": _hit_rate("news_cache"),
        },
        "graded_results_cache": {
            "hit": _telemetry["graded_results_cache_hit"],
            "miss": _telemetry["graded_results_cache_miss"],
            "hit_rate": _hit_rate("graded_results_cache"),
        },
        "predictions": {
            "read": _telemetry["predictions_read"],
            "read_empty": _telemetry["predictions_read_empty"],
        },
        "scan_trigger": {
            "accepted": _telemetry["scan_trigger_accepted"],
            "rejected": _telemetry["scan_trigger_rejected"],
        },
        "access": {
            "denied_no_user": _telemetry["access_denied_no_user"],
            "denied_expired": _telemetry["access_denied_expired"],
        },
    }


@router.get("/metrics")
async def prometheus_metrics(
    authorization: str = Header(None, alias="Authorization"),
    settings: Settings = Depends(get_settings),
):
    """
    Prometheus metrics endpoint.

    Exposes upstream request/latency counters, scan run outcomes and webhook
    deliveries. Requires Bearer token authentication via METRICS_BEARER_TOKEN.
    """
    if not bearer_token_valid(authorization, settings.METRICS_BEARER_TOKEN):
        return PlainTextResponse(
            content="# Unauthorized: Invalid or missing bearer token\n",
            status_code=401,
            media_type="text/plain",
        )

    content, content_type = get_metrics_text()
    return PlainTextResponse(content=content, media_type=content_type)
