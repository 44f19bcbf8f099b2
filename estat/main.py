"""FastAPI application for Estat Predict."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from estat.config import Settings, get_settings
from estat.database import Database
from estat.etl import APIFootballProvider, NewsProvider
from estat.routes.api import router as api_router
from estat.routes.core import router as core_router
from estat.scan import DailyScanner, PredictionCache
from estat.scheduler import start_scheduler, stop_scheduler
from estat.security import limiter
from estat.telemetry import init_sentry
from estat.utils.cache import TTLCache

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Initialize Sentry for error tracking (before FastAPI app creation)
# Only activates if SENTRY_DSN is set in environment
init_sentry()


def build_proxy_caches(settings: Settings) -> dict[str, TTLCache]:
    return {
        "live_scores": TTLCache(ttl=settings.LIVE_SCORES_CACHE_SECONDS),
        "news": TTLCache(ttl=settings.NEWS_CACHE_SECONDS),
        "graded_results": TTLCache(ttl=settings.GRADED_RESULTS_CACHE_SECONDS, max_entries=32),
    }


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler: builds every long-lived client exactly once."""
    settings = get_settings()

    # Startup
    logger.info("Starting Estat Predict...")
    database = Database(settings.DATABASE_URL)
    await database.init()

    football_provider = APIFootballProvider(settings)
    news_provider = NewsProvider(settings)
    prediction_cache = PredictionCache(database)
    scanner = DailyScanner(football_provider, prediction_cache, settings)

    app.state.database = database
    app.state.football_provider = football_provider
    app.state.news_provider = news_provider
    app.state.prediction_cache = prediction_cache
    app.state.scanner = scanner
    app.state.proxy_caches = build_proxy_caches(settings)
    app.state.scheduler = start_scheduler(scanner, settings, app.state.proxy_caches["graded_results"])

    logger.info(
        f"Scan config: model={settings.SCAN_MODEL}, form_source={settings.SCAN_FORM_SOURCE}, "
        f"rules={settings.SCAN_RULES} ({settings.SCAN_RULE_POLICY}), leagues={settings.SCAN_LEAGUE_MODE}"
    )

    yield

    # Shutdown
    logger.info("Shutting down...")
    stop_scheduler(app.state.scheduler)
    await football_provider.close()
    await news_provider.close()
    await database.close()


app = FastAPI(
    title="Estat Predict",
    description="Daily low-scoring and dominant-favourite football picks",
    version="1.0.0",
    lifespan=lifespan,
)

# Add rate limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# Include routers
app.include_router(core_router)
app.include_router(api_router)
