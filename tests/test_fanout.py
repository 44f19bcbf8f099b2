"""Tests for the join-all-settled fan-out and the daily fixture fetch."""

import asyncio
from datetime import date

import pytest

from conftest import FakeProvider, make_fixture, make_settings
from estat.etl.base import ProviderRateLimited, ProviderUnavailable
from estat.etl.competitions import CURATED_LEAGUE_IDS
from estat.etl.fanout import gather_settled, log_failures
from estat.etl.fixtures import fetch_fixtures_for_date, resolve_league_ids


class TestGatherSettled:

    @pytest.mark.asyncio
    async def test_failures_do_not_cancel_siblings(self):
        async def work(unit):
            if unit == 2:
                raise ProviderUnavailable("boom")
            if unit == 3:
                raise ProviderRateLimited("slow down")
            await asyncio.sleep(0)
            return unit * 10

        settled = await gather_settled([1, 2, 3, 4], work)

        assert [s.unit for s in settled] == [1, 2, 3, 4]
        assert [s.value for s in settled if s.ok] == [10, 40]
        assert not settled[1].ok and not settled[1].rate_limited
        assert settled[2].rate_limited
        assert log_failures(settled, "unit") == 2

    @pytest.mark.asyncio
    async def test_empty_units(self):
        async def work(unit):
            return unit

        assert await gather_settled([], work) == []


class TestResolveLeagueIds:

    @pytest.mark.asyncio
    async def test_curated_default(self):
        ids = await resolve_league_ids(FakeProvider(), make_settings(), 2025)
        assert ids == list(CURATED_LEAGUE_IDS)

    @pytest.mark.asyncio
    async def test_explicit_override(self):
        ids = await resolve_league_ids(FakeProvider(), make_settings(SCAN_LEAGUE_IDS="135, 39"), 2025)
        assert ids == [135, 39]

    @pytest.mark.asyncio
    async def test_active_mode(self):
        provider = FakeProvider(active_leagues=[5, 6])
        ids = await resolve_league_ids(provider, make_settings(SCAN_LEAGUE_MODE="active"), 2025)
        assert ids == [5, 6]


class TestFetchFixturesForDate:

    @pytest.mark.asyncio
    async def test_flattens_successes_and_drops_failures(self):
        provider = FakeProvider(
            fixtures_by_league={135: [make_fixture(1), make_fixture(2)], 39: [make_fixture(3)]},
            failing_leagues=(78,),
        )
        day = date(2026, 1, 25)

        batch = await fetch_fixtures_for_date(provider, day, [135, 78, 39], 2025)

        assert sorted(f.external_id for f in batch.fixtures) == [1, 2, 3]
        assert batch.leagues_failed == [78]
        assert batch.leagues_requested == 3
        assert {call[0] for call in provider.fixture_calls} == {135, 78, 39}
        assert all(call[1] == 2025 and call[2] == day for call in provider.fixture_calls)

    @pytest.mark.asyncio
    async def test_rate_limited_league_is_skipped(self):
        provider = FakeProvider(failing_leagues=(135,), league_error=ProviderRateLimited)

        batch = await fetch_fixtures_for_date(provider, date(2026, 1, 25), [135], 2025)

        assert batch.fixtures == []
        assert batch.leagues_failed == [135]
