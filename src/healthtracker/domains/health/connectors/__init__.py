"""Platform health query service — the boundary the aggregation core consumes.

The aggregator never talks to a health store directly. It goes through
``HealthQueryService``, which exposes availability, per-capability
authorization, and two range-bounded query shapes (an aggregate sum for step
counts, raw samples for sleep analysis).
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Protocol, runtime_checkable


class Capability(Enum):
    """One queryable category of platform health data."""

    STEP_COUNT = "HKQuantityTypeIdentifierStepCount"
    SLEEP_ANALYSIS = "HKCategoryTypeIdentifierSleepAnalysis"

    @property
    def label(self) -> str:
        return _CAPABILITY_LABELS[self]


_CAPABILITY_LABELS = {
    Capability.STEP_COUNT: "Steps",
    Capability.SLEEP_ANALYSIS: "Sleep",
}


class AuthorizationState(Enum):
    """Last known authorization state for a capability."""

    NOT_DETERMINED = "not_determined"
    DENIED = "denied"
    AUTHORIZED = "authorized"
    UNKNOWN = "unknown"


class SleepStage(Enum):
    """Sleep analysis stage tags, keyed by their HealthKit category value."""

    IN_BED = "HKCategoryValueSleepAnalysisInBed"
    ASLEEP_UNSPECIFIED = "HKCategoryValueSleepAnalysisAsleepUnspecified"
    AWAKE = "HKCategoryValueSleepAnalysisAwake"
    ASLEEP_CORE = "HKCategoryValueSleepAnalysisAsleepCore"
    ASLEEP_DEEP = "HKCategoryValueSleepAnalysisAsleepDeep"
    ASLEEP_REM = "HKCategoryValueSleepAnalysisAsleepREM"
    # Legacy value written before stage tracking existed
    ASLEEP = "HKCategoryValueSleepAnalysisAsleep"

    @property
    def is_asleep(self) -> bool:
        return self in ASLEEP_STAGES


ASLEEP_STAGES = frozenset({
    SleepStage.ASLEEP_UNSPECIFIED,
    SleepStage.ASLEEP_CORE,
    SleepStage.ASLEEP_DEEP,
    SleepStage.ASLEEP_REM,
    SleepStage.ASLEEP,
})


@dataclass(frozen=True)
class SleepSample:
    """One sleep analysis sample as reported by the platform."""

    start: datetime
    end: datetime
    stage: SleepStage

    @property
    def duration_seconds(self) -> float:
        return (self.end - self.start).total_seconds()


@dataclass(frozen=True)
class StepSample:
    """One step count sample (a count over a short interval)."""

    start: datetime
    end: datetime
    count: float


class PlatformQueryError(Exception):
    """Raised by a platform query service, carrying a platform-defined code.

    Codes are interpreted by ``ErrorCodeMap`` in the source adapters; the
    services themselves attach no meaning to them.
    """

    def __init__(self, code: int, message: str = "") -> None:
        self.code = code
        self.message = message or f"Platform query failed with code {code}"
        super().__init__(self.message)


@runtime_checkable
class HealthQueryService(Protocol):
    """Abstract interface for the platform health data store.

    Query windows are half-open ``[start, end)`` with strict start
    semantics: a sample is in range iff it starts inside the window.
    """

    def is_available(self) -> bool:
        """Whether health data exists at all on this device."""
        ...

    def authorization_status(self, capability: Capability) -> AuthorizationState:
        """Current authorization state for one capability."""
        ...

    async def request_authorization(self, read: set[Capability]) -> None:
        """Ask for read access. Raises if the request itself could not be made."""
        ...

    async def query_aggregate(
        self, capability: Capability, start: datetime, end: datetime
    ) -> float | None:
        """Cumulative sum over the window; ``None`` when there is no data."""
        ...

    async def query_samples(
        self, capability: Capability, start: datetime, end: datetime
    ) -> list[SleepSample]:
        """Raw samples starting inside the window."""
        ...

    @property
    def data_source(self) -> str:
        """Label for the backing store: 'apple_health' or 'in_memory'."""
        ...
