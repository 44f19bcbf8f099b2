"""Abstract base class and DTOs for sports-data providers."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional


class ProviderError(RuntimeError):
    """Base class for upstream provider failures."""


class ProviderUnavailable(ProviderError):
    """Network error, timeout, non-2xx or malformed payload. Retriable."""


class ProviderRateLimited(ProviderError):
    """Upstream answered 429. Retriable with backoff; the scan skips the unit."""


FINISHED_STATUSES = ("FT", "AET", "PEN")
LIVE_STATUSES = ("1H", "HT", "2H", "ET", "BT", "P", "LIVE", "INT")


def season_for_date(d: date) -> int:
    """
    API-Football 'season' for a calendar day.

    European seasons span two years: Jan-Jun 2026 belongs to season 2025.
    """
    return d.year if d.month >= 7 else d.year - 1


@dataclass
class TeamRef:
    """Team as it appears on a fixture."""

    id: Optional[int]
    name: str


@dataclass
class FixtureData:
    """Data transfer object for a fixture, kept close to the API payload."""

    external_id: int
    league_id: Optional[int]
    league_name: str
    league_country: Optional[str]
    kickoff: Optional[datetime]
    status: str  # NS, 1H, FT, ...
    home: TeamRef
    away: TeamRef
    home_goals: Optional[int] = None
    away_goals: Optional[int] = None
    elapsed: Optional[int] = None
    raw: dict = field(default_factory=dict, repr=False)

    @property
    def league_label(self) -> str:
        """'Serie A (Italy)' style label used for display and ordering."""
        if self.league_country:
            return f"{self.league_name} ({self.league_country})"
        return self.league_name

    @property
    def is_finished(self) -> bool:
        return self.status in FINISHED_STATUSES

    @property
    def is_live(self) -> bool:
        return self.status in LIVE_STATUSES

    @property
    def total_goals(self) -> Optional[int]:
        if self.home_goals is None or self.away_goals is None:
            return None
        return self.home_goals + self.away_goals

    def winner_id(self) -> Optional[int]:
        """Winning team id, None for a draw or an unplayed fixture."""
        if self.home_goals is None or self.away_goals is None:
            return None
        if self.home_goals > self.away_goals:
            return self.home.id
        if self.away_goals > self.home_goals:
            return self.away.id
        return None


@dataclass
class LeagueData:
    """Competition returned by the active-leagues lookup."""

    id: int
    name: str
    country: Optional[str]


class DataProvider(ABC):
    """Abstract base class for football data providers."""

    name: str = "provider"

    @abstractmethod
    async def get_active_leagues(self, season: int) -> list[LeagueData]:
        """Leagues with a current season matching `season`."""

    @abstractmethod
    async def get_fixtures(self, league_id: int, season: int, day: date) -> list[FixtureData]:
        """Fixtures of one league on one calendar day."""

    @abstractmethod
    async def get_head_to_head(self, home_id: int, away_id: int, last: int) -> list[FixtureData]:
        """Most recent meetings between two teams, regardless of venue."""

    @abstractmethod
    async def get_team_last_games(self, team_id: int, last: int) -> list[FixtureData]:
        """A team's most recent fixtures across competitions."""

    @abstractmethod
    async def get_live_fixtures(self) -> list[FixtureData]:
        """Fixtures currently in play worldwide."""

    @abstractmethod
    async def get_fixtures_by_ids(self, fixture_ids: list[int]) -> list[FixtureData]:
        """Fixtures looked up by external id."""

    async def close(self) -> None:
        """Release underlying resources."""
