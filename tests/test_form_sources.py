"""Tests for team-form extraction from the three form sources."""

import pytest

from conftest import FakeProvider, embedded_stats, make_fixture, make_result
from estat.etl.base import TeamRef
from estat.scan.form_sources import (
    MISSING_GOAL_AVERAGE,
    EmbeddedFixtureStats,
    HeadToHeadAggregate,
    LatestTeamGames,
    TeamForm,
    build_form_source,
    form_score,
)


class TestFormScore:
    """League-points score of a form string."""

    def test_mixed_form(self):
        assert form_score("WWDLW") == 10

    def test_empty_form(self):
        assert form_score("") == 0
        assert form_score(None) == 0

    def test_lowercase_and_unknown_characters(self):
        """Lowercase counts, anything but W/D/L is ignored."""
        assert form_score("wd?l") == 4


class TestTeamFormFromGames:
    """Aggregation of finished games from one team's point of view."""

    def test_home_and_away_perspective(self):
        team = TeamRef(id=1, name="Home FC")
        games = [
            make_result(10, 2, 0, days_ago=3),  # home win
            make_result(11, 1, 3, home=("Other", 9), away=("Home FC", 1), days_ago=2),  # away win
            make_result(12, 1, 1, days_ago=1),  # draw
        ]

        form = TeamForm.from_games(team, games)

        assert form.form == "WWD"
        assert form.games == 3
        assert form.goals_for_avg == round(6 / 3, 2)
        assert form.goals_against_avg == round(2 / 3, 2)

    def test_unplayed_games_are_ignored(self):
        team = TeamRef(id=1, name="Home FC")
        games = [make_fixture(20), make_result(21, 0, 1)]

        form = TeamForm.from_games(team, games)

        assert form.games == 1
        assert form.form == "L"

    def test_no_games_gives_sentinel_averages(self):
        form = TeamForm.from_games(TeamRef(id=1, name="Home FC"), [])

        assert form.goals_for_avg == MISSING_GOAL_AVERAGE
        assert form.goals_against_avg == MISSING_GOAL_AVERAGE
        assert not form.has_goal_data


class TestEmbeddedFixtureStats:
    """Stats embedded in the fixture payload."""

    @pytest.mark.asyncio
    async def test_reads_both_sides(self):
        fixture = make_fixture(
            1,
            home_stats=embedded_stats(1.0, 0.8, "WDWLW"),
            away_stats=embedded_stats(2.2, 1.6, "LLDWL"),
        )

        home, away = await EmbeddedFixtureStats().collect(FakeProvider(), fixture)

        assert home.goals_for_avg == 1.0
        assert home.goals_against_avg == 0.8
        assert home.form == "WDWLW"
        assert away.goals_for_avg == 2.2
        assert away.team_name == "Away FC"

    @pytest.mark.asyncio
    async def test_missing_block_uses_sentinel(self):
        fixture = make_fixture(1, home_stats=embedded_stats(1.0))

        home, away = await EmbeddedFixtureStats().collect(FakeProvider(), fixture)

        assert home.goals_for_avg == 1.0
        assert away.goals_for_avg == MISSING_GOAL_AVERAGE
        assert away.form == ""

    @pytest.mark.asyncio
    async def test_unparseable_average_uses_sentinel(self):
        stats = embedded_stats(1.0)
        stats["goals"]["for"]["average"] = "n/a"
        fixture = make_fixture(1, home_stats=stats, away_stats=embedded_stats(None))

        home, away = await EmbeddedFixtureStats().collect(FakeProvider(), fixture)

        assert home.goals_for_avg == MISSING_GOAL_AVERAGE
        assert away.goals_for_avg == MISSING_GOAL_AVERAGE


class TestHeadToHeadAggregate:
    """Form derived from the meetings already fetched for the fixture."""

    @pytest.mark.asyncio
    async def test_aggregates_each_side(self):
        meetings = [make_result(10, 1, 0, days_ago=30), make_result(11, 0, 0, days_ago=10)]
        provider = FakeProvider()

        home, away = await HeadToHeadAggregate().collect(provider, make_fixture(1), meetings)

        assert home.form == "WD"
        assert away.form == "LD"
        assert home.goals_for_avg == 0.5
        assert away.goals_for_avg == 0.0
        assert provider.h2h_calls == []

    @pytest.mark.asyncio
    async def test_no_meetings(self):
        home, away = await HeadToHeadAggregate().collect(FakeProvider(), make_fixture(1), None)

        assert not home.has_goal_data
        assert not away.has_goal_data


class TestLatestTeamGames:
    """Each team's own recent games."""

    @pytest.mark.asyncio
    async def test_fetches_both_teams(self):
        provider = FakeProvider(
            team_games={
                1: [make_result(10, 3, 1), make_result(11, 2, 2, days_ago=3)],
                2: [make_result(12, 0, 1, home=("X", 7), away=("Away FC", 2))],
            }
        )

        home, away = await LatestTeamGames(last=5).collect(provider, make_fixture(1))

        assert sorted(provider.team_calls) == [(1, 5), (2, 5)]
        assert home.goals_for_avg == 2.5
        assert away.form == "W"

    @pytest.mark.asyncio
    async def test_team_without_id_is_not_fetched(self):
        provider = FakeProvider()
        fixture = make_fixture(1, home=("Nameless", None))

        home, _ = await LatestTeamGames().collect(provider, fixture)

        assert not home.has_goal_data
        assert provider.team_calls == [(2, 5)]


class TestBuildFormSource:

    def test_known_names(self):
        assert isinstance(build_form_source("embedded"), EmbeddedFixtureStats)
        assert isinstance(build_form_source("head_to_head"), HeadToHeadAggregate)
        source = build_form_source("latest_games", last=3)
        assert isinstance(source, LatestTeamGames)
        assert source.last == 3

    def test_unknown_name(self):
        with pytest.raises(ValueError):
            build_form_source("crystal_ball")
