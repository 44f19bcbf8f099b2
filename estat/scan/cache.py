"""Daily prediction cache: one row per date holding that day's ordered list."""

import logging
from datetime import date, timedelta

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError

from estat.database import Database
from estat.models import DailyPrediction, utcnow

logger = logging.getLogger(__name__)


class CacheUnavailable(RuntimeError):
    """The prediction store could not be read or written. Fatal for a scan run."""


class PredictionCache:
    """Reads and replaces whole per-day prediction lists."""

    def __init__(self, database: Database):
        self.database = database

    def _insert(self):
        if self.database.is_sqlite:
            return sqlite_insert(DailyPrediction)
        return pg_insert(DailyPrediction)

    async def write_day(self, day: date, records: list[dict]) -> None:
        """Upsert the row for `day`, replacing any previous list (also when empty)."""
        now = utcnow()
        stmt = self._insert().values(prediction_date=day, games_data=records, updated_at=now)
        stmt = stmt.on_conflict_do_update(
            index_elements=["prediction_date"],
            set_={"games_data": stmt.excluded.games_data, "updated_at": stmt.excluded.updated_at},
        )
        try:
            async with self.database.session() as session:
                await session.execute(stmt)
                await session.commit()
        except SQLAlchemyError as e:
            logger.error(f"Failed to cache predictions for {day.isoformat()}: {e}")
            raise CacheUnavailable(str(e)) from e

        logger.info(f"Cached {len(records)} predictions for {day.isoformat()}")

    async def read_day(self, day: date) -> list[dict]:
        """The cached list for `day`; empty when no scan has run for it."""
        try:
            async with self.database.session() as session:
                result = await session.execute(
                    select(DailyPrediction.games_data).where(DailyPrediction.prediction_date == day)
                )
                games = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            raise CacheUnavailable(str(e)) from e
        return list(games or [])

    async def read_range(self, start: date, end: date) -> dict[str, list[dict]]:
        """
        Cached lists for every day in [start, end], keyed by ISO date.

        Days without a row map to an empty list so the dashboard can render
        past, today and upcoming columns uniformly.
        """
        if end < start:
            return {}
        try:
            async with self.database.session() as session:
                result = await session.execute(
                    select(DailyPrediction.prediction_date, DailyPrediction.games_data)
                    .where(DailyPrediction.prediction_date >= start)
                    .where(DailyPrediction.prediction_date <= end)
                )
                rows = {row[0]: row[1] for row in result.all()}
        except SQLAlchemyError as e:
            raise CacheUnavailable(str(e)) from e

        days = {}
        current = start
        while current <= end:
            days[current.isoformat()] = list(rows.get(current) or [])
            current += timedelta(days=1)
        return days
