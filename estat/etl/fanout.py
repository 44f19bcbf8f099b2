"""Join-all-settled fan-out for independent upstream calls."""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Generic, Iterable, Optional, TypeVar

from estat.etl.base import ProviderRateLimited

logger = logging.getLogger(__name__)

U = TypeVar("U")
T = TypeVar("T")


@dataclass
class Settled(Generic[U, T]):
    """Outcome of one unit of work: exactly one of value / error is meaningful."""

    unit: U
    value: Optional[T] = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def rate_limited(self) -> bool:
        return isinstance(self.error, ProviderRateLimited)


async def gather_settled(
    units: Iterable[U],
    fn: Callable[[U], Awaitable[T]],
) -> list[Settled[U, T]]:
    """
    Run fn(unit) for every unit concurrently and wait for all of them.

    A failing unit never cancels or fails its siblings. Results keep the
    order of `units`. Cancellation of the caller still propagates.
    """
    units = list(units)
    outcomes: list[Any] = await asyncio.gather(
        *(fn(unit) for unit in units), return_exceptions=True
    )

    settled = []
    for unit, outcome in zip(units, outcomes):
        if isinstance(outcome, asyncio.CancelledError):
            raise outcome
        if isinstance(outcome, Exception):
            settled.append(Settled(unit=unit, error=outcome))
        else:
            settled.append(Settled(unit=unit, value=outcome))
    return settled


def log_failures(settled: list[Settled], what: str) -> int:
    """Log failed units (rate limits separately) and return how many failed."""
    failed = 0
    for s in settled:
        if s.ok:
            continue
        failed += 1
        if s.rate_limited:
            logger.warning(f"Rate limited - skipping {what} {s.unit}")
        else:
            logger.warning(f"Dropping {what} {s.unit}: {s.error}")
    return failed
