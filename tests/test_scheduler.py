"""Tests for the daily scan job and scheduler start/stop."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from conftest import make_settings
from estat import scheduler as scheduler_module
from estat.scan.cache import CacheUnavailable
from estat.scheduler import DAILY_SCAN_JOB_ID, daily_scan_job, start_scheduler, stop_scheduler
from estat.utils.cache import TTLCache


class TestDailyScanJob:

    @pytest.mark.asyncio
    async def test_runs_scan_for_today(self):
        scanner = MagicMock()
        scanner.run = AsyncMock(return_value=MagicMock(count=3))

        await daily_scan_job(scanner)

        scanner.run.assert_awaited_once()
        assert scanner.run.await_args.kwargs["trigger"] == "scheduler"

    @pytest.mark.asyncio
    async def test_successful_scan_drops_graded_copy(self):
        today = datetime.now(timezone.utc).date().isoformat()
        graded = TTLCache(ttl=300)
        graded.set([{"id": "old"}], today)
        graded.set([{"id": "other"}], "2001-01-01")
        scanner = MagicMock()
        scanner.run = AsyncMock(return_value=MagicMock(count=1))

        await daily_scan_job(scanner, graded)

        assert graded.get(today) == (False, None)
        assert graded.get("2001-01-01") == (True, [{"id": "other"}])

    @pytest.mark.asyncio
    async def test_failed_scan_keeps_graded_copy(self):
        today = datetime.now(timezone.utc).date().isoformat()
        graded = TTLCache(ttl=300)
        graded.set([{"id": "old"}], today)
        scanner = MagicMock()
        scanner.run = AsyncMock(side_effect=CacheUnavailable("store down"))

        await daily_scan_job(scanner, graded)

        assert graded.get(today) == (True, [{"id": "old"}])

    @pytest.mark.asyncio
    async def test_failures_do_not_escape(self):
        scanner = MagicMock()
        scanner.run = AsyncMock(side_effect=CacheUnavailable("store down"))
        await daily_scan_job(scanner)

        scanner.run = AsyncMock(side_effect=RuntimeError("unexpected"))
        await daily_scan_job(scanner)


class TestStartScheduler:

    def test_disabled(self):
        assert start_scheduler(MagicMock(), make_settings(SCHEDULER_ENABLED=False)) is None

    @pytest.mark.asyncio
    async def test_starts_once(self):
        settings = make_settings(SCHEDULER_ENABLED=True, SCAN_HOUR_UTC=2, SCAN_MINUTE_UTC=30)

        scheduler = start_scheduler(MagicMock(), settings)
        try:
            assert scheduler is not None and scheduler.running
            assert scheduler.get_job(DAILY_SCAN_JOB_ID) is not None
            assert start_scheduler(MagicMock(), settings) is None
        finally:
            stop_scheduler(scheduler)

        assert scheduler_module._scheduler_started is False
