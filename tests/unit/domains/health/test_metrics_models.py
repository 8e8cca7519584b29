"""Tests for MetricsRecord and MetricKind."""

from __future__ import annotations

import dataclasses
from datetime import date

import pytest

from healthtracker.domains.health.domain_logic.metrics_models import MetricKind, MetricsRecord

DAY = date(2026, 2, 1)


class TestValidity:
    def test_all_zero_defaults_are_valid(self):
        assert MetricsRecord.with_defaults(DAY).is_valid()

    def test_upper_bounds_are_inclusive(self):
        record = MetricsRecord(date=DAY, steps=50_000, sleep_hours=16.0, screen_time_minutes=1440)
        assert record.is_valid()

    @pytest.mark.parametrize(
        "overrides",
        [
            {"steps": -1},
            {"steps": 50_001},
            {"sleep_hours": 17},
            {"sleep_hours": -0.1},
            {"screen_time_minutes": 1500},
        ],
    )
    def test_out_of_range_is_invalid_but_constructible(self, overrides):
        record = MetricsRecord(date=DAY, **overrides)
        assert not record.is_valid()


class TestDefaults:
    def test_with_defaults_has_zero_values_and_no_flags(self):
        record = MetricsRecord.with_defaults(DAY)
        assert record.date == DAY
        assert (record.steps, record.sleep_hours, record.screen_time_minutes) == (0, 0.0, 0)
        assert record.manually_entered == frozenset()
        assert record.estimated_fields == frozenset()

    def test_each_construction_gets_fresh_identity(self):
        first = MetricsRecord.with_defaults(DAY)
        second = MetricsRecord.with_defaults(DAY)
        assert first.id != second.id
        assert second.last_updated >= first.last_updated

    def test_record_is_immutable(self):
        record = MetricsRecord.with_defaults(DAY)
        with pytest.raises(dataclasses.FrozenInstanceError):
            record.steps = 10


class TestSerialization:
    def test_to_dict_shape(self):
        record = MetricsRecord(
            date=DAY,
            steps=8200,
            sleep_hours=7.456,
            manually_entered=frozenset({MetricKind.SLEEP, MetricKind.STEPS}),
        )
        data = record.to_dict()
        assert data["date"] == "2026-02-01"
        assert data["steps"] == 8200
        assert data["sleep_hours"] == 7.46
        assert data["manually_entered"] == ["sleep", "steps"]
        assert data["estimated_fields"] == []
        assert data["valid"] is True

    def test_needs_manual_entry(self):
        record = MetricsRecord(date=DAY, manually_entered=frozenset({MetricKind.STEPS}))
        assert record.needs_manual_entry(MetricKind.STEPS)
        assert not record.needs_manual_entry(MetricKind.SLEEP)

    def test_metric_kind_values(self):
        assert [k.value for k in MetricKind] == ["steps", "sleep", "screenTime"]
