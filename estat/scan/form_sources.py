"""Per-team recent form, from one of three interchangeable sources."""

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from estat.etl.base import DataProvider, FixtureData, TeamRef

# Unknown goal averages read as "high" so a team without data is never the weak side
MISSING_GOAL_AVERAGE = 99.0

RESULT_POINTS = {"W": 3, "D": 1, "L": 0}


def form_score(form: Optional[str]) -> int:
    """League-points score of a result string: 'WWDLW' -> 10."""
    if not form:
        return 0
    return sum(RESULT_POINTS.get(ch, 0) for ch in form.upper())


def _parse_average(value) -> float:
    if value is None or value == "":
        return MISSING_GOAL_AVERAGE
    try:
        return float(value)
    except (TypeError, ValueError):
        return MISSING_GOAL_AVERAGE


@dataclass
class TeamForm:
    """Recent form of one team. Derived per scan, never stored."""

    team_id: Optional[int]
    team_name: str
    form: str = ""
    goals_for_avg: float = MISSING_GOAL_AVERAGE
    goals_against_avg: float = MISSING_GOAL_AVERAGE
    games: int = 0

    @classmethod
    def unknown(cls, team: TeamRef) -> "TeamForm":
        return cls(team_id=team.id, team_name=team.name)

    @property
    def has_goal_data(self) -> bool:
        return self.goals_for_avg != MISSING_GOAL_AVERAGE

    @property
    def score(self) -> int:
        return form_score(self.form)

    @property
    def wins(self) -> int:
        return self.form.upper().count("W")

    @classmethod
    def from_games(cls, team: TeamRef, games: list[FixtureData]) -> "TeamForm":
        """Aggregate finished games from `team`'s point of view, oldest result first."""
        played = [g for g in games if g.total_goals is not None and team.id in (g.home.id, g.away.id)]
        if not played:
            return cls.unknown(team)

        played.sort(key=lambda g: (g.kickoff.timestamp() if g.kickoff else 0.0, g.external_id))
        scored = conceded = 0
        results = []
        for game in played:
            is_home = game.home.id == team.id
            goals_for = game.home_goals if is_home else game.away_goals
            goals_against = game.away_goals if is_home else game.home_goals
            scored += goals_for
            conceded += goals_against
            if goals_for > goals_against:
                results.append("W")
            elif goals_for < goals_against:
                results.append("L")
            else:
                results.append("D")

        n = len(played)
        return cls(
            team_id=team.id,
            team_name=team.name,
            form="".join(results),
            goals_for_avg=round(scored / n, 2),
            goals_against_avg=round(conceded / n, 2),
            games=n,
        )


class FormSource(ABC):
    """Where TeamForm comes from. Pipelines pick exactly one."""

    name: str = "form_source"
    needs_head_to_head: bool = False

    @abstractmethod
    async def collect(
        self,
        provider: DataProvider,
        fixture: FixtureData,
        meetings: Optional[list[FixtureData]] = None,
    ) -> tuple[TeamForm, TeamForm]:
        """Return (home_form, away_form) for the fixture."""


class EmbeddedFixtureStats(FormSource):
    """`teams.<side>.last_5_games` aggregate embedded in the fixture payload. No extra calls."""

    name = "embedded"

    @staticmethod
    def _side(fixture: FixtureData, side: str, team: TeamRef) -> TeamForm:
        teams = fixture.raw.get("teams") or {}
        last_games = (teams.get(side) or {}).get("last_5_games")
        if not isinstance(last_games, dict):
            return TeamForm.unknown(team)

        goals = last_games.get("goals") or {}
        form = last_games.get("form") or ""
        return TeamForm(
            team_id=team.id,
            team_name=team.name,
            form=form,
            goals_for_avg=_parse_average((goals.get("for") or {}).get("average")),
            goals_against_avg=_parse_average((goals.get("against") or {}).get("average")),
            games=len(form),
        )

    async def collect(self, provider, fixture, meetings=None):
        return self._side(fixture, "home", fixture.home), self._side(fixture, "away", fixture.away)


class HeadToHeadAggregate(FormSource):
    """Both teams' form across their most recent meetings with each other."""

    name = "head_to_head"
    needs_head_to_head = True

    async def collect(self, provider, fixture, meetings=None):
        meetings = meetings or []
        return (
            TeamForm.from_games(fixture.home, meetings),
            TeamForm.from_games(fixture.away, meetings),
        )


class LatestTeamGames(FormSource):
    """Each team's own last N games, fetched concurrently."""

    name = "latest_games"

    def __init__(self, last: int = 5):
        self.last = last

    async def _team(self, provider: DataProvider, team: TeamRef) -> TeamForm:
        if team.id is None:
            return TeamForm.unknown(team)
        games = await provider.get_team_last_games(team.id, self.last)
        return TeamForm.from_games(team, games)

    async def collect(self, provider, fixture, meetings=None):
        home, away = await asyncio.gather(
            self._team(provider, fixture.home),
            self._team(provider, fixture.away),
        )
        return home, away


def build_form_source(name: str, last: int = 5) -> FormSource:
    """Form source by configuration name."""
    if name == EmbeddedFixtureStats.name:
        return EmbeddedFixtureStats()
    if name == HeadToHeadAggregate.name:
        return HeadToHeadAggregate()
    if name == LatestTeamGames.name:
        return LatestTeamGames(last=last)
    raise ValueError(f"Unknown form source: {name}")
