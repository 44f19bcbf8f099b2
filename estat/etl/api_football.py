"""API-Football data provider implementation."""

import logging
import time
from datetime import date, datetime
from typing import Optional

import httpx

from estat.config import Settings
from estat.etl.base import (
    DataProvider,
    FixtureData,
    LeagueData,
    ProviderRateLimited,
    ProviderUnavailable,
    TeamRef,
)
from estat.telemetry import record_provider_request

logger = logging.getLogger(__name__)

# API-Football accepts at most 20 ids per /fixtures?ids= call
MAX_IDS_PER_REQUEST = 20


def api_football_endpoint(settings: Settings) -> tuple[str, dict]:
    """Return (base_url, headers) for RapidAPI or API-Sports direct hosts."""
    host = settings.RAPIDAPI_HOST
    if "api-sports.io" in host:
        return f"https://{host}", {"x-apisports-key": settings.RAPIDAPI_KEY}
    return f"https://{host}/v3", {
        "X-RapidAPI-Key": settings.RAPIDAPI_KEY,
        "X-RapidAPI-Host": host,
    }


def parse_fixture(fixture: dict) -> FixtureData:
    """Parse an API fixture item into FixtureData."""
    fixture_info = fixture.get("fixture") or {}
    league = fixture.get("league") or {}
    teams = fixture.get("teams") or {}
    goals = fixture.get("goals") or {}
    status_info = fixture_info.get("status") or {}

    external_id = fixture_info.get("id")
    if external_id is None:
        raise ValueError("fixture without id")

    kickoff = None
    date_str = fixture_info.get("date")
    if date_str:
        try:
            kickoff = datetime.fromisoformat(date_str.replace("Z", "+00:00"))
        except ValueError:
            kickoff = None

    home = teams.get("home") or {}
    away = teams.get("away") or {}

    return FixtureData(
        external_id=external_id,
        league_id=league.get("id"),
        league_name=league.get("name") or "Unknown league",
        league_country=league.get("country"),
        kickoff=kickoff,
        status=status_info.get("short") or "NS",
        home=TeamRef(id=home.get("id"), name=home.get("name") or "Home"),
        away=TeamRef(id=away.get("id"), name=away.get("name") or "Away"),
        home_goals=goals.get("home"),
        away_goals=goals.get("away"),
        elapsed=status_info.get("elapsed"),
        raw=fixture,
    )


class APIFootballProvider(DataProvider):
    """API-Football data provider (supports RapidAPI and API-Sports)."""

    name = "api_football"

    def __init__(self, settings: Settings, client: Optional[httpx.AsyncClient] = None):
        base_url, headers = api_football_endpoint(settings)
        self.BASE_URL = base_url
        self.client = client or httpx.AsyncClient(headers=headers, timeout=settings.API_TIMEOUT_SECONDS)

    async def _request(self, endpoint: str, params: Optional[dict] = None) -> list:
        """
        Single GET against the API, returning its `response` list.

        No retry: a 429 raises ProviderRateLimited so the caller can skip the
        unit, anything else non-2xx or malformed raises ProviderUnavailable.
        """
        url = f"{self.BASE_URL}/{endpoint}"
        start_time = time.time()

        try:
            response = await self.client.get(url, params=params)
        except httpx.TimeoutException as e:
            record_provider_request(self.name, endpoint, "timeout", (time.time() - start_time) * 1000)
            raise ProviderUnavailable(f"Timeout calling {endpoint}: {e}") from e
        except httpx.RequestError as e:
            record_provider_request(self.name, endpoint, "request_error", (time.time() - start_time) * 1000)
            raise ProviderUnavailable(f"Request error calling {endpoint}: {e}") from e

        latency_ms = (time.time() - start_time) * 1000
        record_provider_request(self.name, endpoint, str(response.status_code), latency_ms)

        if response.status_code == 429:
            raise ProviderRateLimited(f"Rate limited on {endpoint} ({params})")
        if response.status_code >= 400:
            raise ProviderUnavailable(f"HTTP {response.status_code} from {endpoint}")

        try:
            data = response.json()
        except ValueError as e:
            raise ProviderUnavailable(f"Malformed JSON from {endpoint}") from e

        # API-Football reports quota and parameter problems inside a 200 body
        errors = data.get("errors") if isinstance(data, dict) else None
        if errors:
            if isinstance(errors, dict) and "rateLimit" in errors:
                raise ProviderRateLimited(f"Rate limited on {endpoint}: {errors}")
            raise ProviderUnavailable(f"API error from {endpoint}: {errors}")

        items = data.get("response") if isinstance(data, dict) else None
        if not isinstance(items, list):
            raise ProviderUnavailable(f"Missing response list from {endpoint}")
        return items

    def _parse_fixtures(self, items: list) -> list[FixtureData]:
        fixtures = []
        for item in items:
            try:
                fixtures.append(parse_fixture(item))
            except (ValueError, AttributeError) as e:
                logger.debug(f"Skipping fixture: {e}")
        return fixtures

    async def get_active_leagues(self, season: int) -> list[LeagueData]:
        """Leagues flagged current for the given season."""
        items = await self._request("leagues", {"season": season, "current": "true"})
        leagues = []
        for item in items:
            league = item.get("league") or {}
            country = item.get("country") or {}
            if league.get("id") is None:
                continue
            leagues.append(
                LeagueData(id=league["id"], name=league.get("name", ""), country=country.get("name"))
            )
        logger.info(f"Found {len(leagues)} active leagues for season {season}")
        return leagues

    async def get_fixtures(self, league_id: int, season: int, day: date) -> list[FixtureData]:
        """Fetch fixtures for one league on one date."""
        items = await self._request(
            "fixtures", {"league": league_id, "season": season, "date": day.isoformat()}
        )
        return self._parse_fixtures(items)

    async def get_head_to_head(self, home_id: int, away_id: int, last: int) -> list[FixtureData]:
        """Most recent meetings between two teams."""
        items = await self._request(
            "fixtures/headtohead", {"h2h": f"{home_id}-{away_id}", "last": last}
        )
        return self._parse_fixtures(items)

    async def get_team_last_games(self, team_id: int, last: int) -> list[FixtureData]:
        """A team's last `last` fixtures."""
        items = await self._request("fixtures", {"team": team_id, "last": last})
        return self._parse_fixtures(items)

    async def get_live_fixtures(self) -> list[FixtureData]:
        """All fixtures currently in play."""
        items = await self._request("fixtures", {"live": "all"})
        return self._parse_fixtures(items)

    async def get_fixtures_by_ids(self, fixture_ids: list[int]) -> list[FixtureData]:
        """
        Fetch fixtures by external id, 20 per request.

        Chunks run sequentially; a failing chunk propagates its error.
        """
        results: list[FixtureData] = []
        for i in range(0, len(fixture_ids), MAX_IDS_PER_REQUEST):
            chunk = fixture_ids[i:i + MAX_IDS_PER_REQUEST]
            ids_param = "-".join(str(fid) for fid in chunk)
            items = await self._request("fixtures", {"ids": ids_param})
            results.extend(self._parse_fixtures(items))
        return results

    async def close(self) -> None:
        """Close the HTTP client."""
        await self.client.aclose()
