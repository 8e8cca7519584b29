"""Daily metrics record returned by the aggregation core."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any


class MetricKind(Enum):
    """Metric kinds carried by a MetricsRecord."""

    STEPS = "steps"
    SLEEP = "sleep"
    SCREEN_TIME = "screenTime"


# Domain-valid ranges, inclusive
STEPS_RANGE = (0, 50_000)
SLEEP_HOURS_RANGE = (0.0, 16.0)
SCREEN_TIME_MINUTES_RANGE = (0, 1440)


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class MetricsRecord:
    """Health metrics for one calendar date.

    Records are built fresh on every aggregation call and never mutated.
    Out-of-range values are accepted at construction and only reported by
    ``is_valid()``.
    """

    date: date
    steps: int = 0
    sleep_hours: float = 0.0
    screen_time_minutes: int = 0
    # Kinds whose value is a fallback default rather than a measurement
    manually_entered: frozenset[MetricKind] = frozenset()
    # Kinds whose value was imputed; always empty for now
    estimated_fields: frozenset[MetricKind] = frozenset()
    id: uuid.UUID = field(default_factory=uuid.uuid4)
    last_updated: datetime = field(default_factory=_now)

    @classmethod
    def with_defaults(cls, day: date) -> MetricsRecord:
        """All-zero record for ``day`` with no fields flagged."""
        return cls(date=day)

    def is_valid(self) -> bool:
        """True iff every numeric field lies inside its domain-valid range."""
        return (
            STEPS_RANGE[0] <= self.steps <= STEPS_RANGE[1]
            and SLEEP_HOURS_RANGE[0] <= self.sleep_hours <= SLEEP_HOURS_RANGE[1]
            and SCREEN_TIME_MINUTES_RANGE[0]
            <= self.screen_time_minutes
            <= SCREEN_TIME_MINUTES_RANGE[1]
        )

    def needs_manual_entry(self, kind: MetricKind) -> bool:
        return kind in self.manually_entered

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready representation."""
        return {
            "id": str(self.id),
            "date": self.date.isoformat(),
            "steps": self.steps,
            "sleep_hours": round(self.sleep_hours, 2),
            "screen_time_minutes": self.screen_time_minutes,
            "manually_entered": sorted(k.value for k in self.manually_entered),
            "estimated_fields": sorted(k.value for k in self.estimated_fields),
            "last_updated": self.last_updated.isoformat(),
            "valid": self.is_valid(),
        }
