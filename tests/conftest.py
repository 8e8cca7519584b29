"""Shared test fixtures for Health Tracker tests."""

from __future__ import annotations

import sys
from datetime import date, datetime, timezone
from pathlib import Path

import pytest

# ---------------------------------------------------------------------------
# Test hermeticity
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _force_hermetic_test_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "APPLE_HEALTH_EXPORT_PATH",
        "DECLINED_CAPABILITIES",
        "HEALTH_TIMEZONE",
        "PERMISSION_DENIED_CODES",
        "NO_DATA_CODES",
        "HT_HOST",
        "HT_PORT",
        "HT_ALLOW_INSECURE_BIND",
    ):
        monkeypatch.delenv(name, raising=False)

# Allow running tests without `pip install -e .` by making `src/` importable.
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
_SRC_DIR = _PROJECT_ROOT / "src"
if str(_SRC_DIR) not in sys.path:
    sys.path.insert(0, str(_SRC_DIR))

from healthtracker.domains.health.connectors import (  # noqa: E402
    SleepSample,
    SleepStage,
    StepSample,
)
from healthtracker.domains.health.connectors.providers import InMemoryHealthStore  # noqa: E402
from healthtracker.domains.health.domain_logic.aggregator import (  # noqa: E402
    DailyMetricsAggregator,
)

# Fixed "today" for every aggregator built by these fixtures
TODAY = date(2026, 2, 7)


def at(day: int, hour: int, minute: int = 0) -> datetime:
    """UTC instant in February 2026."""
    return datetime(2026, 2, day, hour, minute, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# Sample data
# ---------------------------------------------------------------------------

@pytest.fixture
def night_of_feb_1() -> list[SleepSample]:
    """One night with in-bed and awake samples mixed into asleep stages.

    Only the two asleep samples count: 0.5h + 7.0h = 7.5h.
    """
    return [
        SleepSample(at(1, 23, 0), at(1, 23, 30), SleepStage.ASLEEP_UNSPECIFIED),
        SleepSample(at(1, 22, 45), at(1, 23, 0), SleepStage.IN_BED),
        SleepSample(at(2, 2, 0), at(2, 2, 10), SleepStage.AWAKE),
        SleepSample(at(1, 23, 30), at(2, 6, 30), SleepStage.ASLEEP_DEEP),
    ]


@pytest.fixture
def steps_feb_1() -> list[StepSample]:
    return [
        StepSample(at(1, 6), at(1, 12), 4500),
        StepSample(at(1, 12), at(1, 18), 3700),
    ]


@pytest.fixture
def store(night_of_feb_1, steps_feb_1) -> InMemoryHealthStore:
    """In-memory store holding one day of steps and one night of sleep."""
    return InMemoryHealthStore(steps=steps_feb_1, sleep=night_of_feb_1)


@pytest.fixture
def empty_store() -> InMemoryHealthStore:
    return InMemoryHealthStore()


@pytest.fixture
def aggregator(store) -> DailyMetricsAggregator:
    """Aggregator over ``store`` with UTC day boundaries and a fixed today."""
    return DailyMetricsAggregator(store, tz=timezone.utc, today=lambda: TODAY)
