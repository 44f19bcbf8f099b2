"""Result annotation for cached predictions. Presentation only, nothing is stored."""

from typing import Optional

from estat.etl.base import FixtureData
from estat.scan.records import PredictionType


def fixture_ids(records: list[dict]) -> list[int]:
    """Fixture ids referenced by well-formed records, in first-seen order."""
    ids = []
    for record in records:
        fixture_id = record.get("fixtureId") if isinstance(record, dict) else None
        if isinstance(fixture_id, int) and fixture_id not in ids:
            ids.append(fixture_id)
    return ids


def is_prediction_correct(prediction: dict, fixture: FixtureData) -> Optional[bool]:
    """None when the fixture is unfinished or the prediction type is unknown."""
    if not fixture.is_finished or fixture.total_goals is None:
        return None

    kind = prediction.get("type")
    if kind == PredictionType.LOW_SCORE_WEAKER_TEAM.value:
        return fixture.total_goals <= 2

    stronger = prediction.get("strongerTeam")
    if stronger not in (fixture.home.name, fixture.away.name):
        return None
    stronger_goals, weaker_goals = (
        (fixture.home_goals, fixture.away_goals)
        if stronger == fixture.home.name
        else (fixture.away_goals, fixture.home_goals)
    )
    if kind == PredictionType.WINNER.value:
        return stronger_goals > weaker_goals
    if kind == PredictionType.DOUBLE_CHANCE.value:
        return stronger_goals >= weaker_goals
    return None


def grade_records(records: list[dict], fixtures: dict[int, FixtureData]) -> list[dict]:
    """
    Copy of `records` with status, score and isPredictionCorrect filled in.

    Records of an older shape (no fixtureId or no prediction object) and
    records whose fixture was not found are returned unchanged.
    """
    graded = []
    for record in records:
        if not isinstance(record, dict):
            graded.append(record)
            continue
        prediction = record.get("prediction")
        fixture = fixtures.get(record.get("fixtureId"))
        if not isinstance(prediction, dict) or fixture is None:
            graded.append(record)
            continue

        graded.append(
            {
                **record,
                "status": fixture.status,
                "homeScore": fixture.home_goals,
                "awayScore": fixture.away_goals,
                "isPredictionCorrect": is_prediction_correct(prediction, fixture),
            }
        )
    return graded
