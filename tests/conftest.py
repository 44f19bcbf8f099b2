"""Shared fixtures: environment, fixture builders, fake provider, in-memory store."""

import os

# Settings are read on first use; required values must exist before app imports
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("RAPIDAPI_KEY", "test-key")
os.environ.setdefault("SCHEDULER_ENABLED", "false")

from datetime import datetime, timedelta, timezone
from typing import Optional

import pytest
import pytest_asyncio

from estat.config import Settings
from estat.database import Database
from estat.etl.base import DataProvider, FixtureData, LeagueData, ProviderUnavailable, TeamRef

KICKOFF = datetime(2026, 1, 25, 15, 0, tzinfo=timezone.utc)


def embedded_stats(
    goals_for: Optional[float],
    goals_against: Optional[float] = 1.0,
    form: str = "",
) -> dict:
    """`teams.<side>.last_5_games` block as API-Football embeds it (averages are strings)."""
    return {
        "form": form,
        "goals": {
            "for": {"average": None if goals_for is None else str(goals_for)},
            "against": {"average": None if goals_against is None else str(goals_against)},
        },
    }


def make_fixture(
    fixture_id: int,
    home: tuple = ("Home FC", 1),
    away: tuple = ("Away FC", 2),
    league: str = "Serie A",
    country: Optional[str] = "Italy",
    league_id: int = 135,
    kickoff: Optional[datetime] = KICKOFF,
    status: str = "NS",
    home_goals: Optional[int] = None,
    away_goals: Optional[int] = None,
    home_stats: Optional[dict] = None,
    away_stats: Optional[dict] = None,
) -> FixtureData:
    teams = {"home": {"id": home[1], "name": home[0]}, "away": {"id": away[1], "name": away[0]}}
    if home_stats is not None:
        teams["home"]["last_5_games"] = home_stats
    if away_stats is not None:
        teams["away"]["last_5_games"] = away_stats
    return FixtureData(
        external_id=fixture_id,
        league_id=league_id,
        league_name=league,
        league_country=country,
        kickoff=kickoff,
        status=status,
        home=TeamRef(id=home[1], name=home[0]),
        away=TeamRef(id=away[1], name=away[0]),
        home_goals=home_goals,
        away_goals=away_goals,
        raw={"teams": teams},
    )


def make_result(
    fixture_id: int,
    home_goals: int,
    away_goals: int,
    home: tuple = ("Home FC", 1),
    away: tuple = ("Away FC", 2),
    days_ago: int = 7,
) -> FixtureData:
    """A finished past game."""
    return make_fixture(
        fixture_id,
        home=home,
        away=away,
        kickoff=KICKOFF - timedelta(days=days_ago),
        status="FT",
        home_goals=home_goals,
        away_goals=away_goals,
    )


class FakeProvider(DataProvider):
    """In-memory DataProvider. Failures are configured per league / team pair."""

    name = "fake"

    def __init__(
        self,
        fixtures_by_league: Optional[dict] = None,
        head_to_head: Optional[dict] = None,
        team_games: Optional[dict] = None,
        live: Optional[list] = None,
        by_id: Optional[dict] = None,
        active_leagues: Optional[list] = None,
        failing_leagues: tuple = (),
        failing_pairs: tuple = (),
        league_error: type = ProviderUnavailable,
    ):
        self.fixtures_by_league = fixtures_by_league or {}
        self.head_to_head = head_to_head or {}
        self.team_games = team_games or {}
        self.live = live or []
        self.by_id = by_id or {}
        self.active_leagues = active_leagues or []
        self.failing_leagues = set(failing_leagues)
        self.failing_pairs = set(failing_pairs)
        self.league_error = league_error
        self.fixture_calls: list = []
        self.h2h_calls: list = []
        self.team_calls: list = []

    async def get_active_leagues(self, season):
        return [LeagueData(id=i, name=f"League {i}", country=None) for i in self.active_leagues]

    async def get_fixtures(self, league_id, season, day):
        self.fixture_calls.append((league_id, season, day))
        if league_id in self.failing_leagues:
            raise self.league_error(f"league {league_id} down")
        return list(self.fixtures_by_league.get(league_id, []))

    async def get_head_to_head(self, home_id, away_id, last):
        self.h2h_calls.append((home_id, away_id, last))
        if (home_id, away_id) in self.failing_pairs:
            raise ProviderUnavailable("h2h down")
        return list(self.head_to_head.get((home_id, away_id), []))

    async def get_team_last_games(self, team_id, last):
        self.team_calls.append((team_id, last))
        return list(self.team_games.get(team_id, []))[:last]

    async def get_live_fixtures(self):
        return list(self.live)

    async def get_fixtures_by_ids(self, fixture_ids):
        return [self.by_id[i] for i in fixture_ids if i in self.by_id]


def make_settings(**overrides) -> Settings:
    values = {
        "DATABASE_URL": "sqlite://",
        "RAPIDAPI_KEY": "test-key",
        "SCHEDULER_ENABLED": False,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest_asyncio.fixture
async def database():
    db = Database("sqlite://")
    await db.init()
    yield db
    await db.close()
