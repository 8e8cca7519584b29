"""Source query adapters — one per metric with a platform source.

Each adapter issues a single range-bounded query against the platform
service and sorts the outcome into three buckets:

1. permission denied  → ``PermissionDenied``
2. no data in range   → zero value (not an error)
3. anything else      → ``UnknownError``

Which platform codes mean "denied" or "no data" is configuration, held by
``ErrorCodeMap``.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from healthtracker.domains.health.connectors import (
    Capability,
    HealthQueryService,
    PlatformQueryError,
    SleepSample,
)
from healthtracker.domains.health.domain_logic.errors import (
    DataUnavailable,
    PermissionDenied,
    UnknownError,
)
from healthtracker.domains.health.domain_logic.metrics_models import MetricKind

logger = logging.getLogger(__name__)

SECONDS_PER_HOUR = 3600


class QueryOutcome(Enum):
    PERMISSION_DENIED = "permission_denied"
    NO_DATA = "no_data"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class ErrorCodeMap:
    """Maps platform error codes onto query outcomes."""

    permission_denied_codes: frozenset[int] = field(default_factory=lambda: frozenset({5}))
    no_data_codes: frozenset[int] = field(default_factory=lambda: frozenset({11}))

    @classmethod
    def from_codes(
        cls, permission_denied: Iterable[int], no_data: Iterable[int]
    ) -> ErrorCodeMap:
        return cls(frozenset(permission_denied), frozenset(no_data))

    def classify(self, code: int) -> QueryOutcome:
        if code in self.permission_denied_codes:
            return QueryOutcome.PERMISSION_DENIED
        if code in self.no_data_codes:
            return QueryOutcome.NO_DATA
        return QueryOutcome.UNKNOWN


class _SourceAdapter:
    """Shared availability check and error classification."""

    kind: MetricKind
    capability: Capability

    def __init__(self, service: HealthQueryService, codes: ErrorCodeMap | None = None) -> None:
        self._service = service
        self._codes = codes or ErrorCodeMap()

    def _ensure_available(self) -> None:
        try:
            available = self._service.is_available()
        except Exception as exc:
            raise UnknownError(exc) from exc
        if not available:
            raise DataUnavailable(self.capability)

    def _classify(self, exc: PlatformQueryError) -> None:
        """Raise the taxonomy error for ``exc``, or return if it means no data."""
        outcome = self._codes.classify(exc.code)
        if outcome is QueryOutcome.NO_DATA:
            logger.debug("%s query reported no data (code %d)", self.kind.value, exc.code)
            return
        if outcome is QueryOutcome.PERMISSION_DENIED:
            raise PermissionDenied(self.capability) from exc
        raise UnknownError(exc) from exc


class StepCountSource(_SourceAdapter):
    """Cumulative step count over a window."""

    kind = MetricKind.STEPS
    capability = Capability.STEP_COUNT

    async def query(self, start: datetime, end: datetime) -> int:
        self._ensure_available()
        try:
            total = await self._service.query_aggregate(self.capability, start, end)
        except PlatformQueryError as exc:
            self._classify(exc)
            return 0
        except Exception as exc:
            raise UnknownError(exc) from exc
        if total is None:
            return 0
        return int(total)


class SleepAnalysisSource(_SourceAdapter):
    """Hours asleep over a window.

    Only asleep stages count; in-bed and awake samples are ignored.
    Overlapping samples (e.g. phone and watch both reporting) are summed as
    reported, without merging.
    """

    kind = MetricKind.SLEEP
    capability = Capability.SLEEP_ANALYSIS

    async def query(self, start: datetime, end: datetime) -> float:
        self._ensure_available()
        try:
            samples = await self._service.query_samples(self.capability, start, end)
        except PlatformQueryError as exc:
            self._classify(exc)
            return 0.0
        except Exception as exc:
            raise UnknownError(exc) from exc
        return asleep_hours(samples)


def asleep_hours(samples: Iterable[SleepSample]) -> float:
    """Sum asleep-stage durations and convert seconds to hours."""
    total_seconds = sum(s.duration_seconds for s in samples if s.stage.is_asleep)
    return total_seconds / SECONDS_PER_HOUR
