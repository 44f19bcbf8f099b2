"""Background scheduler for the daily prediction scan."""

import logging
import os
from datetime import datetime, timezone
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from estat.config import Settings
from estat.scan import CacheUnavailable, DailyScanner
from estat.telemetry import sentry_job_context
from estat.utils.cache import TTLCache

logger = logging.getLogger(__name__)

DAILY_SCAN_JOB_ID = "daily_scan"

_scheduler_started = False


async def daily_scan_job(scanner: DailyScanner, graded_cache: Optional[TTLCache] = None) -> None:
    """
    Scan today (UTC). Failures are logged and reported, never raised into
    the scheduler.
    """
    day = datetime.now(timezone.utc).date()
    try:
        with sentry_job_context(DAILY_SCAN_JOB_ID, day=day.isoformat()):
            result = await scanner.run(day, trigger="scheduler")
        logger.info(f"Scheduled scan cached {result.count} predictions for {day.isoformat()}")
    except CacheUnavailable as e:
        logger.error(f"Scheduled scan could not write the cache: {e}")
        return
    except Exception as e:
        logger.error(f"Scheduled scan failed: {e}", exc_info=True)
        return

    if graded_cache is not None:
        graded_cache.invalidate(day.isoformat())


def start_scheduler(
    scanner: DailyScanner,
    settings: Settings,
    graded_cache: Optional[TTLCache] = None,
) -> Optional[AsyncIOScheduler]:
    """
    Start the background scheduler.

    Uses a module-level flag to prevent duplicate scheduler instances
    when running with --reload or multiple workers.
    """
    global _scheduler_started

    if not settings.SCHEDULER_ENABLED:
        logger.info("Scheduler disabled (SCHEDULER_ENABLED=false)")
        return None

    if _scheduler_started:
        logger.warning("Scheduler already started, skipping duplicate initialization")
        return None

    # Uvicorn sets this env var in the reloader subprocess
    if os.environ.get("UVICORN_RELOADED"):
        logger.info("Skipping scheduler in reload subprocess")
        return None

    scheduler = AsyncIOScheduler(timezone="UTC")
    scheduler.add_job(
        daily_scan_job,
        trigger=CronTrigger(hour=settings.SCAN_HOUR_UTC, minute=settings.SCAN_MINUTE_UTC, timezone="UTC"),
        args=[scanner, graded_cache],
        id=DAILY_SCAN_JOB_ID,
        name="Daily Prediction Scan",
        replace_existing=True,
        max_instances=1,
        coalesce=True,
    )
    scheduler.start()
    _scheduler_started = True

    logger.info(
        f"Scheduler started:\n"
        f"  - Daily prediction scan: {settings.SCAN_HOUR_UTC:02d}:{settings.SCAN_MINUTE_UTC:02d} UTC"
    )
    return scheduler


def stop_scheduler(scheduler: Optional[AsyncIOScheduler]) -> None:
    """Stop the background scheduler."""
    global _scheduler_started
    if scheduler is not None and scheduler.running:
        scheduler.shutdown(wait=False)
        _scheduler_started = False
        logger.info("Scheduler stopped")
