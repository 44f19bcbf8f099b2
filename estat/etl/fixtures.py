"""Daily fixture fetch across a set of leagues."""

import logging
from dataclasses import dataclass, field
from datetime import date

from estat.config import Settings
from estat.etl.base import DataProvider, FixtureData
from estat.etl.competitions import CURATED_LEAGUE_IDS
from estat.etl.fanout import gather_settled, log_failures

logger = logging.getLogger(__name__)


@dataclass
class FixtureBatch:
    """Flattened fixtures of one day plus the leagues that could not be fetched."""

    day: date
    season: int
    fixtures: list[FixtureData] = field(default_factory=list)
    leagues_requested: int = 0
    leagues_failed: list[int] = field(default_factory=list)


async def resolve_league_ids(provider: DataProvider, settings: Settings, season: int) -> list[int]:
    """
    League ids to scan.

    - curated (default): SCAN_LEAGUE_IDS when set, else the curated list
    - active: every league the provider reports current for `season`
    """
    if settings.SCAN_LEAGUE_MODE == "active":
        leagues = await provider.get_active_leagues(season)
        return [league.id for league in leagues]
    return settings.scan_league_ids or list(CURATED_LEAGUE_IDS)


async def fetch_fixtures_for_date(
    provider: DataProvider,
    day: date,
    league_ids: list[int],
    season: int,
) -> FixtureBatch:
    """
    Fetch the fixtures of every league on `day`, one request per league.

    Requests run concurrently; a failed league is logged and left out.
    The result is unsorted and may contain duplicates when leagues overlap.
    """
    settled = await gather_settled(
        league_ids,
        lambda league_id: provider.get_fixtures(league_id, season, day),
    )
    log_failures(settled, "league")

    batch = FixtureBatch(day=day, season=season, leagues_requested=len(league_ids))
    for s in settled:
        if s.ok:
            batch.fixtures.extend(s.value)
        else:
            batch.leagues_failed.append(s.unit)

    logger.info(
        f"Found {len(batch.fixtures)} fixtures for {day.isoformat()} "
        f"({len(league_ids) - len(batch.leagues_failed)}/{len(league_ids)} leagues ok)"
    )
    return batch
