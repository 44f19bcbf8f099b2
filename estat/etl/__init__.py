"""ETL module for upstream sports-data and news providers."""

from estat.etl.api_football import APIFootballProvider
from estat.etl.base import (
    DataProvider,
    FixtureData,
    LeagueData,
    ProviderError,
    ProviderRateLimited,
    ProviderUnavailable,
    TeamRef,
    season_for_date,
)
from estat.etl.competitions import CURATED_COMPETITIONS, CURATED_LEAGUE_IDS, Competition
from estat.etl.fanout import Settled, gather_settled
from estat.etl.fixtures import FixtureBatch, fetch_fixtures_for_date, resolve_league_ids
from estat.etl.news import NewsProvider

__all__ = [
    "DataProvider",
    "APIFootballProvider",
    "NewsProvider",
    "FixtureData",
    "LeagueData",
    "TeamRef",
    "ProviderError",
    "ProviderRateLimited",
    "ProviderUnavailable",
    "season_for_date",
    "Competition",
    "CURATED_COMPETITIONS",
    "CURATED_LEAGUE_IDS",
    "Settled",
    "gather_settled",
    "FixtureBatch",
    "fetch_fixtures_for_date",
    "resolve_league_ids",
]
