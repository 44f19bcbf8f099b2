"""Prediction records as cached and served to the dashboard."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from estat.etl.base import FixtureData


class PredictionType(str, Enum):
    """Prediction categories. Values are the wire names the dashboard reads."""

    LOW_SCORE_WEAKER_TEAM = "LOW_SCORE_WEAKER_TEAM"  # total goals <= 2
    WINNER = "WINNER"  # stronger team wins
    DOUBLE_CHANCE = "DOUBLE_CHANCE"  # stronger team wins or draws


# Id suffixes used when one fixture yields one record per category
CATEGORY_SUFFIX = {
    PredictionType.WINNER: "A",
    PredictionType.DOUBLE_CHANCE: "A",
    PredictionType.LOW_SCORE_WEAKER_TEAM: "B",
}


@dataclass
class PredictionRecord:
    """A fixture that passed the filter, plus what is predicted about it."""

    id: str
    fixture_id: int
    league: str
    home_team: str
    away_team: str
    prediction_type: PredictionType
    kickoff: Optional[str] = None
    weaker_team: Optional[str] = None
    stronger_team: Optional[str] = None
    pick: Optional[str] = None  # "1X" / "X2" for double chance

    @classmethod
    def for_fixture(
        cls,
        fixture: FixtureData,
        prediction_type: PredictionType,
        suffixed: bool = False,
        **prediction,
    ) -> "PredictionRecord":
        record_id = str(fixture.external_id)
        if suffixed:
            record_id = f"{record_id}-{CATEGORY_SUFFIX[prediction_type]}"
        return cls(
            id=record_id,
            fixture_id=fixture.external_id,
            league=fixture.league_label,
            home_team=fixture.home.name,
            away_team=fixture.away.name,
            kickoff=fixture.kickoff.isoformat() if fixture.kickoff else None,
            prediction_type=prediction_type,
            **prediction,
        )

    def to_dict(self) -> dict:
        """JSON shape stored in the daily cache row."""
        prediction = {"type": self.prediction_type.value}
        if self.prediction_type == PredictionType.LOW_SCORE_WEAKER_TEAM:
            prediction["weakerTeam"] = self.weaker_team
        else:
            prediction["strongerTeam"] = self.stronger_team
            prediction["weakerTeam"] = self.weaker_team
        if self.pick:
            prediction["pick"] = self.pick

        data = {
            "id": self.id,
            "fixtureId": self.fixture_id,
            "league": self.league,
            "kickoff": self.kickoff,
            "homeTeam": self.home_team,
            "awayTeam": self.away_team,
            "prediction": prediction,
        }
        return data


def sort_records(records: list[PredictionRecord]) -> list[PredictionRecord]:
    """Order by league label (ascending), then fixture id and record id for determinism."""
    return sorted(records, key=lambda r: (r.league, r.fixture_id, r.id))
