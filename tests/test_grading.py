"""Tests for result annotation of cached predictions."""

from conftest import make_fixture
from estat.scan.grading import fixture_ids, grade_records


def record(fixture_id, kind, **prediction):
    return {
        "id": str(fixture_id),
        "fixtureId": fixture_id,
        "league": "Serie A (Italy)",
        "homeTeam": "Home FC",
        "awayTeam": "Away FC",
        "prediction": {"type": kind, **prediction},
    }


def finished(fixture_id, home_goals, away_goals):
    return make_fixture(fixture_id, status="FT", home_goals=home_goals, away_goals=away_goals)


class TestGradeRecords:

    def test_low_score(self):
        graded = grade_records(
            [record(1, "LOW_SCORE_WEAKER_TEAM"), record(2, "LOW_SCORE_WEAKER_TEAM")],
            {1: finished(1, 1, 1), 2: finished(2, 2, 1)},
        )

        assert graded[0]["isPredictionCorrect"] is True
        assert graded[0]["homeScore"] == 1 and graded[0]["status"] == "FT"
        assert graded[1]["isPredictionCorrect"] is False

    def test_winner_and_double_chance(self):
        records = [
            record(1, "WINNER", strongerTeam="Away FC"),
            record(2, "DOUBLE_CHANCE", strongerTeam="Home FC", pick="1X"),
            record(3, "DOUBLE_CHANCE", strongerTeam="Home FC", pick="1X"),
        ]
        fixtures = {1: finished(1, 0, 2), 2: finished(2, 1, 1), 3: finished(3, 0, 1)}

        graded = grade_records(records, fixtures)

        assert [g["isPredictionCorrect"] for g in graded] == [True, True, False]

    def test_unfinished_fixture_has_no_verdict(self):
        graded = grade_records([record(1, "LOW_SCORE_WEAKER_TEAM")], {1: make_fixture(1, status="1H", home_goals=0, away_goals=0)})

        assert graded[0]["status"] == "1H"
        assert graded[0]["isPredictionCorrect"] is None

    def test_legacy_shapes_pass_through(self):
        legacy = {"id": 5, "homeTeam": "A", "awayTeam": "B", "weakerTeam": "A"}
        unknown_fixture = record(9, "LOW_SCORE_WEAKER_TEAM")

        graded = grade_records([legacy, unknown_fixture], {1: finished(1, 0, 0)})

        assert graded == [legacy, unknown_fixture]

    def test_input_is_not_mutated(self):
        original = record(1, "LOW_SCORE_WEAKER_TEAM")
        grade_records([original], {1: finished(1, 0, 0)})
        assert "isPredictionCorrect" not in original


class TestFixtureIds:

    def test_unique_ids_in_order(self):
        records = [record(3, "WINNER"), {"id": "x"}, record(1, "WINNER"), record(3, "LOW_SCORE_WEAKER_TEAM")]
        assert fixture_ids(records) == [3, 1]
