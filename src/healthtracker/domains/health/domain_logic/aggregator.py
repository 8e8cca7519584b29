"""Daily and ranged health metrics aggregation.

For one calendar date the aggregator derives the local-day window, queries
the step and sleep sources concurrently, and builds a MetricsRecord. A
source that fails or is denied contributes its zero default and is flagged
in ``manually_entered``; the aggregation itself does not fail because of it.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, tzinfo
from typing import Generic, TypeVar

from healthtracker.domains.health.connectors import HealthQueryService
from healthtracker.domains.health.connectors.sources import (
    ErrorCodeMap,
    SleepAnalysisSource,
    StepCountSource,
)
from healthtracker.domains.health.domain_logic.errors import HealthDataError
from healthtracker.domains.health.domain_logic.metrics_models import MetricKind, MetricsRecord
from healthtracker.domains.health.domain_logic.state import HealthDataState

logger = logging.getLogger(__name__)

WEEK_DAYS = 7

T = TypeVar("T", int, float)


@dataclass(frozen=True)
class BranchResult(Generic[T]):
    """Outcome of one fork-join branch: the value used, and the absorbed error if any."""

    value: T
    error: HealthDataError | None = None

    @property
    def is_default(self) -> bool:
        return self.value == 0


class DailyMetricsAggregator:
    """Builds MetricsRecords from a HealthQueryService.

    Usage::

        aggregator = DailyMetricsAggregator(store, tz=ZoneInfo("Europe/London"))
        today = await aggregator.fetch_todays_metrics()
        week = await aggregator.fetch_weekly_metrics()
    """

    def __init__(
        self,
        service: HealthQueryService,
        *,
        state: HealthDataState | None = None,
        codes: ErrorCodeMap | None = None,
        tz: tzinfo | None = None,
        today: Callable[[], date] | None = None,
    ) -> None:
        """Initialize the aggregator.

        Args:
            service: Platform query service shared by both sources.
            state: Observable state to publish loading/error changes to.
            codes: Platform error code mapping for the sources.
            tz: Zone whose midnights bound a day; None uses the system zone.
            today: Clock override returning the current local date.
        """
        self._steps = StepCountSource(service, codes)
        self._sleep = SleepAnalysisSource(service, codes)
        self.state = state or HealthDataState()
        self._tz = tz
        self._today = today or self._local_today

    def day_window(self, day: date) -> tuple[datetime, datetime]:
        """Half-open ``[start, end)`` window covering ``day`` in local time.

        Raises:
            TypeError: If ``day`` is not a date.
            OverflowError: If the following day is out of range.
        """
        day = _as_date(day)
        return self._midnight(day), self._midnight(day + timedelta(days=1))

    async def fetch_metrics(self, day: date) -> MetricsRecord:
        """Aggregate the metrics for one calendar date."""
        with self.state.loading():
            day = _as_date(day)
            start, end = self.day_window(day)

            steps, sleep = await _join(
                self._resolve(self._steps, start, end, 0),
                self._resolve(self._sleep, start, end, 0.0),
            )

            for source, branch in ((self._steps, steps), (self._sleep, sleep)):
                if branch.error is not None:
                    logger.warning(
                        "%s query failed for %s, using default: %s",
                        source.kind.value, day.isoformat(), branch.error,
                    )
                    self.state.set_last_error(branch.error)

            manually_entered: set[MetricKind] = set()
            if steps.is_default:
                manually_entered.add(MetricKind.STEPS)
            if sleep.is_default:
                manually_entered.add(MetricKind.SLEEP)

            return MetricsRecord(
                date=day,
                steps=steps.value,
                sleep_hours=sleep.value,
                screen_time_minutes=0,  # populated outside this core
                manually_entered=frozenset(manually_entered),
                estimated_fields=frozenset(),
            )

    async def fetch_todays_metrics(self) -> MetricsRecord:
        return await self.fetch_metrics(self._today())

    async def fetch_metrics_range(self, end_day: date, days: int = WEEK_DAYS) -> list[MetricsRecord]:
        """Aggregate ``days`` consecutive dates ending at ``end_day``, ascending.

        Days run one after another. Any failure aborts the remaining days and
        propagates; no partial list is returned.
        """
        if days < 1:
            raise ValueError(f"days must be at least 1, got {days}")
        end_day = _as_date(end_day)
        first = end_day - timedelta(days=days - 1)

        records: list[MetricsRecord] = []
        with self.state.loading():
            for offset in range(days):
                records.append(await self.fetch_metrics(first + timedelta(days=offset)))
        return records

    async def fetch_weekly_metrics(self) -> list[MetricsRecord]:
        """Trailing seven days ending today."""
        return await self.fetch_metrics_range(self._today(), WEEK_DAYS)

    async def _resolve(self, source, start: datetime, end: datetime, default: T) -> BranchResult[T]:
        # Only the taxonomy is absorbed; cancellation and programming errors propagate
        try:
            return BranchResult(await source.query(start, end))
        except HealthDataError as exc:
            return BranchResult(default, exc)

    def _midnight(self, day: date) -> datetime:
        naive = datetime.combine(day, time.min)
        if self._tz is None:
            return naive.astimezone()
        return naive.replace(tzinfo=self._tz)

    def _local_today(self) -> date:
        return datetime.now(self._tz).date()


async def _join(*branches):
    """Run branches concurrently; if one raises, cancel the rest before re-raising."""
    tasks = [asyncio.ensure_future(branch) for branch in branches]
    try:
        return await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


def _as_date(value: date) -> date:
    if isinstance(value, datetime):
        return value.date()
    if not isinstance(value, date):
        raise TypeError(f"Expected a date, got {type(value).__name__}")
    return value
