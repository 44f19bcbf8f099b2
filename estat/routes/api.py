"""Public API endpoints: daily scan, predictions, live scores, news, billing.

Auth:
- /api/run-daily-scan: operator shared secret (?secret=)
- /api/get-predictions, /api/predictions/history: profile access when REQUIRE_SUBSCRIPTION
- /api/paystack/webhook: HMAC-SHA512 signature
- /api/profile/access: authenticated user (USER_ID_HEADER)
- everything else: public, rate limited

Long-lived collaborators are built in the lifespan and read from app.state.
"""

import logging
from datetime import date, datetime, timedelta, timezone
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from estat.billing import (
    AccessStatus,
    SignatureMismatch,
    WebhookPayloadError,
    access_status,
    get_or_create_profile,
    process_webhook,
)
from estat.billing.paystack import SIGNATURE_HEADER
from estat.config import Settings, get_settings
from estat.database import get_async_session
from estat.etl import APIFootballProvider, NewsProvider, ProviderError
from estat.scan import CacheUnavailable, DailyScanner, PredictionCache, grade_records
from estat.scan.grading import fixture_ids
from estat.security import get_user_id, limiter, verify_scan_secret
from estat.state import _incr
from estat.utils.cache import TTLCache

router = APIRouter(tags=["api"])

logger = logging.getLogger(__name__)


# =============================================================================
# Dependencies (process-wide instances from the lifespan)
# =============================================================================


def get_football_provider(request: Request) -> APIFootballProvider:
    return request.app.state.football_provider


def get_news_provider(request: Request) -> NewsProvider:
    return request.app.state.news_provider


def get_scanner(request: Request) -> DailyScanner:
    return request.app.state.scanner


def get_prediction_cache(request: Request) -> PredictionCache:
    return request.app.state.prediction_cache


def get_proxy_caches(request: Request) -> dict[str, TTLCache]:
    return request.app.state.proxy_caches


async def require_access(
    user_id: Optional[str] = Depends(get_user_id),
    session: AsyncSession = Depends(get_async_session),
    settings: Settings = Depends(get_settings),
) -> Optional[AccessStatus]:
    """
    Gate prediction reads on the caller's trial/subscription.

    Disabled (returns None) unless REQUIRE_SUBSCRIPTION is set.
    """
    if not settings.REQUIRE_SUBSCRIPTION:
        return None
    if not user_id:
        _incr("access_denied_no_user")
        raise HTTPException(status_code=401, detail="Authentication required")

    profile = await get_or_create_profile(session, user_id, trial_days=settings.TRIAL_DAYS)
    status = access_status(profile)
    if not status.has_access:
        _incr("access_denied_expired")
        raise HTTPException(status_code=402, detail="Your free trial has ended. Subscribe to continue.")
    return status


def _today() -> date:
    return datetime.now(timezone.utc).date()


# =============================================================================
# Daily scan
# =============================================================================


@router.api_route("/api/run-daily-scan", methods=["GET", "POST"])
@limiter.limit("10/minute")
async def run_daily_scan(
    request: Request,
    day: Optional[date] = Query(None, alias="date", description="Scan day (YYYY-MM-DD), default today UTC"),
    _: bool = Depends(verify_scan_secret),
    scanner: DailyScanner = Depends(get_scanner),
    proxy_caches: dict = Depends(get_proxy_caches),
):
    """
    Run the daily scan and cache its predictions.

    Upstream failures shrink the result; a cache write failure is a 500 with
    the underlying message.
    """
    _incr("scan_trigger_accepted")
    try:
        result = await scanner.run(day or _today(), trigger="http")
    except CacheUnavailable as e:
        raise HTTPException(status_code=500, detail=f"Error caching predictions: {e}")
    except Exception as e:
        logger.error(f"Daily scan failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Daily scan failed: {e}")

    # The day's list was replaced; graded copies of the old one are stale
    proxy_caches["graded_results"].invalidate(result.day.isoformat())

    return {
        "message": f"Scan complete. Cached {result.count} predictions.",
        "count": result.count,
        "date": result.day.isoformat(),
    }


# =============================================================================
# Predictions
# =============================================================================


async def _graded(
    day: date,
    records: list[dict],
    provider: APIFootballProvider,
    cache: TTLCache,
) -> list[dict]:
    """Attach results to finished fixtures; falls back to the plain records on upstream failure."""
    hit, graded = cache.get(day.isoformat())
    if hit:
        _incr("graded_results_cache_hit")
        return graded
    _incr("graded_results_cache_miss")

    ids = fixture_ids(records)
    if not ids:
        return records
    try:
        fixtures = await provider.get_fixtures_by_ids(ids)
    except ProviderError as e:
        logger.warning(f"Could not grade predictions for {day.isoformat()}: {e}")
        return records

    graded = grade_records(records, {f.external_id: f for f in fixtures})
    cache.set(graded, day.isoformat())
    return graded


@router.get("/api/get-predictions")
@limiter.limit("60/minute")
async def get_predictions(
    request: Request,
    day: Optional[date] = Query(None, alias="date", description="Day (YYYY-MM-DD), default today UTC"),
    grade: bool = Query(False, description="Attach results of finished fixtures"),
    _access: Optional[AccessStatus] = Depends(require_access),
    prediction_cache: PredictionCache = Depends(get_prediction_cache),
    provider: APIFootballProvider = Depends(get_football_provider),
    proxy_caches: dict = Depends(get_proxy_caches),
):
    """Cached predictions of one day; an empty list when that day was never scanned."""
    day = day or _today()
    try:
        records = await prediction_cache.read_day(day)
    except CacheUnavailable as e:
        logger.error(f"Failed to read predictions for {day.isoformat()}: {e}")
        raise HTTPException(status_code=500, detail="Error fetching predictions")

    _incr("predictions_read")
    if not records:
        _incr("predictions_read_empty")
        return []
    if grade:
        return await _graded(day, records, provider, proxy_caches["graded_results"])
    return records


@router.get("/api/predictions/history")
@limiter.limit("30/minute")
async def get_prediction_history(
    request: Request,
    days: int = Query(14, ge=0, le=60, description="Past days to include"),
    ahead: int = Query(2, ge=0, le=7, description="Future days to include"),
    _access: Optional[AccessStatus] = Depends(require_access),
    prediction_cache: PredictionCache = Depends(get_prediction_cache),
):
    """Cached predictions from `days` ago through `ahead` days out, keyed by date."""
    today = _today()
    try:
        return await prediction_cache.read_range(today - timedelta(days=days), today + timedelta(days=ahead))
    except CacheUnavailable as e:
        logger.error(f"Failed to read prediction history: {e}")
        raise HTTPException(status_code=500, detail="Error fetching predictions")


# =============================================================================
# Upstream proxies
# =============================================================================


@router.get("/api/get-live-scores")
@limiter.limit("60/minute")
async def get_live_scores(
    request: Request,
    provider: APIFootballProvider = Depends(get_football_provider),
    proxy_caches: dict = Depends(get_proxy_caches),
):
    """Fixtures currently in play worldwide."""
    cache: TTLCache = proxy_caches["live_scores"]
    hit, data = cache.get()
    if hit:
        _incr("live_scores_cache_hit")
        return data
    _incr("live_scores_cache_miss")

    try:
        fixtures = await provider.get_live_fixtures()
    except ProviderError as e:
        logger.error(f"Error fetching live scores: {e}")
        raise HTTPException(status_code=502, detail="Error fetching live scores.")

    live_scores = [
        {
            "id": f.external_id,
            "league": f.league_label,
            "homeTeam": f.home.name,
            "awayTeam": f.away.name,
            "goals": {"home": f.home_goals, "away": f.away_goals},
            "elapsed": f.elapsed,
        }
        for f in fixtures
    ]
    cache.set(live_scores)
    logger.info(f"Serving {len(live_scores)} live fixtures")
    return live_scores


@router.get("/api/get-news")
@limiter.limit("60/minute")
async def get_news(
    request: Request,
    news: NewsProvider = Depends(get_news_provider),
    proxy_caches: dict = Depends(get_proxy_caches),
):
    """Latest football headlines that carry an image."""
    if not news.is_configured:
        raise HTTPException(status_code=500, detail="News API key not configured.")

    cache: TTLCache = proxy_caches["news"]
    hit, data = cache.get()
    if hit:
        _incr("news_cache_hit")
        return data
    _incr("news_cache_miss")

    try:
        articles = await news.get_headlines()
    except ProviderError as e:
        logger.error(f"News API error: {e}")
        raise HTTPException(status_code=502, detail="Error fetching news.")

    cache.set(articles)
    return articles


# =============================================================================
# Billing
# =============================================================================


@router.post("/api/paystack/webhook")
async def paystack_webhook(
    request: Request,
    session: AsyncSession = Depends(get_async_session),
    settings: Settings = Depends(get_settings),
):
    """
    Paystack event delivery.

    The signature is checked over the raw body before anything is parsed.
    """
    raw_body = await request.body()
    try:
        result = await process_webhook(session, raw_body, request.headers.get(SIGNATURE_HEADER), settings)
    except SignatureMismatch:
        raise HTTPException(status_code=401, detail="Signature verification failed")
    except WebhookPayloadError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except SQLAlchemyError as e:
        logger.error(f"Profile update failed: {e}")
        raise HTTPException(status_code=500, detail="Error updating user profile")

    return {"message": "Webhook received", "event": result.event, "handled": result.handled}


@router.get("/api/profile/access")
async def get_profile_access(
    user_id: Optional[str] = Depends(get_user_id),
    session: AsyncSession = Depends(get_async_session),
    settings: Settings = Depends(get_settings),
):
    """Trial/subscription state of the calling user (created with a trial on first call)."""
    if not user_id:
        raise HTTPException(status_code=401, detail="Authentication required")

    profile = await get_or_create_profile(session, user_id, trial_days=settings.TRIAL_DAYS)
    status = access_status(profile)
    return {
        "userId": profile.id,
        **status.to_dict(),
        "trialEndsAt": profile.trial_ends_at.isoformat() if profile.trial_ends_at else None,
        "subscriptionExpiresAt": (
            profile.subscription_expires_at.isoformat() if profile.subscription_expires_at else None
        ),
    }


@router.get("/api/billing/config")
async def get_billing_config(settings: Settings = Depends(get_settings)):
    """Public checkout parameters for the payment widget."""
    return {
        "publicKey": settings.PAYSTACK_PUBLIC_KEY,
        "amountKobo": settings.SUBSCRIPTION_AMOUNT_KOBO,
        "currency": "NGN",
        "subscriptionDays": settings.SUBSCRIPTION_DAYS,
        "trialDays": settings.TRIAL_DAYS,
    }
