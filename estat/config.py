"""Application configuration using Pydantic Settings."""

from functools import lru_cache
from typing import Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database (Supabase Postgres in production, SQLite locally)
    DATABASE_URL: str

    # API-Football (RapidAPI)
    RAPIDAPI_KEY: str
    RAPIDAPI_HOST: str = "api-football-v1.p.rapidapi.com"
    API_TIMEOUT_SECONDS: float = 30.0

    # News headlines (newsapi.org)
    NEWS_API_KEY: str = ""
    NEWS_API_URL: str = "https://newsapi.org/v2/everything"
    NEWS_QUERY: str = "football"
    NEWS_SOURCES: str = "bbc-sport,espn,four-four-two"
    NEWS_PAGE_SIZE: int = 10
    NEWS_MAX_ARTICLES: int = 5

    # Paystack
    PAYSTACK_SECRET_KEY: str = ""
    PAYSTACK_PUBLIC_KEY: str = ""
    SUBSCRIPTION_AMOUNT_KOBO: int = 250000  # NGN 2,500
    SUBSCRIPTION_DAYS: int = 30
    TRIAL_DAYS: int = 7

    # Operator shared secret for /api/run-daily-scan (empty = trigger disabled)
    CRON_SECRET: str = ""

    # ═══════════════════════════════════════════════════════════════
    # Daily scan
    # ═══════════════════════════════════════════════════════════════

    SCAN_LEAGUE_MODE: Literal["curated", "active"] = "curated"
    SCAN_LEAGUE_IDS: str = ""  # "135,197,262" overrides the curated list
    SCAN_MODEL: Literal["low_score", "dominance", "dual"] = "low_score"
    SCAN_FORM_SOURCE: Literal["embedded", "head_to_head", "latest_games"] = "embedded"
    SCAN_RULES: str = "goal_average,h2h_average"
    SCAN_RULE_POLICY: Literal["any", "all"] = "any"

    SCAN_GOAL_AVG_THRESHOLD: float = 1.6
    SCAN_CONCEDED_AVG_THRESHOLD: float = 1.4
    SCAN_H2H_AVG_THRESHOLD: float = 2.5
    SCAN_H2H_LAST: int = 5
    SCAN_H2H_MISSING_POLICY: Literal["pass_through", "disqualify"] = "pass_through"
    SCAN_DOMINANCE_MARGIN: int = 2
    SCAN_DOMINANCE_MIN_H2H: int = 3

    SCHEDULER_ENABLED: bool = True
    SCAN_HOUR_UTC: int = 1
    SCAN_MINUTE_UTC: int = 0

    # Proxy endpoint caches (seconds)
    LIVE_SCORES_CACHE_SECONDS: float = 15.0
    NEWS_CACHE_SECONDS: float = 600.0
    GRADED_RESULTS_CACHE_SECONDS: float = 300.0

    # Access gating
    REQUIRE_SUBSCRIPTION: bool = False
    USER_ID_HEADER: str = "X-User-Id"  # Set by the auth gateway

    # Telemetry / Observability
    METRICS_BEARER_TOKEN: str = ""

    @field_validator("SCAN_RULES")
    @classmethod
    def _known_rules(cls, value: str) -> str:
        from estat.scan.rules import RULES

        names = [n.strip() for n in value.split(",") if n.strip()]
        unknown = [n for n in names if n not in RULES]
        if unknown:
            raise ValueError(f"Unknown scan rules: {unknown}")
        if not names:
            raise ValueError("SCAN_RULES must name at least one rule")
        return ",".join(names)

    @property
    def scan_rule_names(self) -> list[str]:
        return self.SCAN_RULES.split(",")

    @property
    def scan_league_ids(self) -> list[int]:
        """Explicit league override, empty when the curated list applies."""
        return [int(x) for x in self.SCAN_LEAGUE_IDS.split(",") if x.strip()]

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
