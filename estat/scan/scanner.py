"""
Daily scan: fetch the day's fixtures, run the heuristic filter, cache the result.

Flow:
1. Resolve league ids (curated list, override, or active leagues)
2. Fetch fixtures per league concurrently; failed leagues are dropped
3. Build a MatchContext per fixture concurrently (H2H + form); failed fixtures are dropped
4. Apply the configured model(s) and sort by league label
5. Upsert the day's row, even when the list is empty
"""

import logging
import time
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Optional

from estat.config import Settings
from estat.etl.base import DataProvider, FixtureData, ProviderError, season_for_date
from estat.etl.competitions import CURATED_LEAGUE_IDS
from estat.etl.fanout import gather_settled, log_failures
from estat.etl.fixtures import fetch_fixtures_for_date, resolve_league_ids
from estat.scan.cache import CacheUnavailable, PredictionCache
from estat.scan.form_sources import FormSource, build_form_source
from estat.scan.records import PredictionRecord, PredictionType, sort_records
from estat.scan.rules import MatchContext, RuleConfig, RuleSet, dominance_prediction, weaker_team
from estat.telemetry import record_scan_run

logger = logging.getLogger(__name__)

MODELS = ("low_score", "dominance", "dual")


@dataclass
class ScanResult:
    """Summary of one scan run."""

    day: date
    count: int
    fixtures_seen: int = 0
    fixtures_dropped: int = 0
    leagues_failed: int = 0
    records: list[dict] = field(default_factory=list, repr=False)


class DailyScanner:
    """Runs the daily scan against an injected provider and cache."""

    def __init__(
        self,
        provider: DataProvider,
        cache: PredictionCache,
        settings: Settings,
        form_source: Optional[FormSource] = None,
        ruleset: Optional[RuleSet] = None,
        rule_config: Optional[RuleConfig] = None,
        model: Optional[str] = None,
    ):
        self.provider = provider
        self.cache = cache
        self.settings = settings
        self.form_source = form_source or build_form_source(settings.SCAN_FORM_SOURCE, settings.SCAN_H2H_LAST)
        self.ruleset = ruleset or RuleSet(settings.scan_rule_names, settings.SCAN_RULE_POLICY)
        self.rule_config = rule_config or RuleConfig.from_settings(settings)
        self.model = model or settings.SCAN_MODEL
        if self.model not in MODELS:
            raise ValueError(f"Unknown scan model: {self.model}")

    @property
    def needs_head_to_head(self) -> bool:
        return (
            self.model in ("dominance", "dual")
            or self.ruleset.needs_head_to_head
            or self.form_source.needs_head_to_head
        )

    async def _league_ids(self, season: int) -> list[int]:
        try:
            return await resolve_league_ids(self.provider, self.settings, season)
        except ProviderError as e:
            logger.warning(f"Active league lookup failed ({e}), using curated leagues")
            return self.settings.scan_league_ids or list(CURATED_LEAGUE_IDS)

    async def build_context(self, fixture: FixtureData) -> MatchContext:
        """Fetch what the rules need for one fixture. Raises ProviderError on upstream failure."""
        meetings = None
        if self.needs_head_to_head and fixture.home.id is not None and fixture.away.id is not None:
            meetings = await self.provider.get_head_to_head(
                fixture.home.id, fixture.away.id, self.rule_config.h2h_last
            )
        home, away = await self.form_source.collect(self.provider, fixture, meetings)
        return MatchContext(fixture=fixture, home=home, away=away, meetings=meetings)

    def evaluate(self, ctx: MatchContext) -> list[PredictionRecord]:
        """Records for one fixture under the configured model (zero, one or two)."""
        suffixed = self.model == "dual"
        records = []

        if self.model in ("low_score", "dual") and self.ruleset.passes(ctx, self.rule_config):
            weaker = weaker_team(ctx)
            records.append(
                PredictionRecord.for_fixture(
                    ctx.fixture,
                    PredictionType.LOW_SCORE_WEAKER_TEAM,
                    suffixed=suffixed,
                    weaker_team=weaker.team_name if weaker else None,
                )
            )

        if self.model in ("dominance", "dual"):
            result = dominance_prediction(ctx, self.rule_config)
            if result is not None:
                prediction_type, dominance = result
                pick = None
                if prediction_type == PredictionType.DOUBLE_CHANCE:
                    pick = "1X" if dominance.stronger is ctx.home else "X2"
                records.append(
                    PredictionRecord.for_fixture(
                        ctx.fixture,
                        prediction_type,
                        suffixed=suffixed,
                        stronger_team=dominance.stronger.team_name,
                        weaker_team=dominance.weaker.team_name,
                        pick=pick,
                    )
                )

        return records

    async def run(self, day: Optional[date] = None, trigger: str = "manual") -> ScanResult:
        """
        Scan `day` (default: today UTC) and cache the result.

        Upstream failures only shrink the result. CacheUnavailable propagates.
        """
        day = day or datetime.now(timezone.utc).date()
        start_time = time.time()
        season = season_for_date(day)
        logger.info(f"Starting daily scan for {day.isoformat()} (season {season}, model {self.model})")

        try:
            league_ids = await self._league_ids(season)
            batch = await fetch_fixtures_for_date(self.provider, day, league_ids, season)

            # Leagues can overlap (cups): one entry per fixture id
            fixtures = list({f.external_id: f for f in batch.fixtures}.values())

            settled = await gather_settled(fixtures, self.build_context)
            dropped = log_failures(settled, "fixture")

            records = []
            for s in settled:
                if s.ok:
                    records.extend(self.evaluate(s.value))
            payload = [r.to_dict() for r in sort_records(records)]

            await self.cache.write_day(day, payload)
        except CacheUnavailable:
            record_scan_run(trigger, "cache_error")
            raise
        except Exception:
            record_scan_run(trigger, "error")
            raise

        duration = time.time() - start_time
        record_scan_run(trigger, "ok", cached=len(payload), dropped=dropped, duration_s=duration)
        logger.info(
            f"Daily scan for {day.isoformat()} complete: {len(payload)} predictions "
            f"from {len(fixtures)} fixtures ({dropped} dropped) in {duration:.1f}s"
        )
        return ScanResult(
            day=day,
            count=len(payload),
            fixtures_seen=len(fixtures),
            fixtures_dropped=dropped,
            leagues_failed=len(batch.leagues_failed),
            records=payload,
        )
