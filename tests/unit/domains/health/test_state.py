"""Tests for the observable HealthDataState."""

from __future__ import annotations

import pytest

from healthtracker.domains.health.connectors import AuthorizationState, Capability
from healthtracker.domains.health.domain_logic.errors import ValidationFailed
from healthtracker.domains.health.domain_logic.state import HealthDataState


def test_loading_released_on_exception():
    state = HealthDataState()
    with pytest.raises(RuntimeError):
        with state.loading():
            assert state.is_loading
            raise RuntimeError("boom")
    assert not state.is_loading


def test_nested_loading_stays_raised_until_outermost_exits():
    state = HealthDataState()
    with state.loading():
        with state.loading():
            pass
        assert state.is_loading
    assert not state.is_loading


def test_subscribers_see_changes_until_unsubscribed():
    state = HealthDataState()
    events: list[str] = []
    unsubscribe = state.subscribe(lambda s: events.append("change"))

    state.set_last_error(ValidationFailed("steps"))
    state.set_permission_status(Capability.STEP_COUNT, AuthorizationState.AUTHORIZED)
    unsubscribe()
    state.set_last_error(None)

    assert events == ["change", "change"]
    assert state.last_error is None


def test_unchanged_permission_does_not_notify():
    state = HealthDataState()
    events: list[str] = []
    state.subscribe(lambda s: events.append("change"))
    state.set_permission_status(Capability.STEP_COUNT, AuthorizationState.DENIED)
    state.set_permission_status(Capability.STEP_COUNT, AuthorizationState.DENIED)
    assert len(events) == 1


def test_permission_status_is_a_copy():
    state = HealthDataState()
    state.set_permission_status(Capability.STEP_COUNT, AuthorizationState.DENIED)
    snapshot = state.permission_status
    snapshot[Capability.STEP_COUNT] = AuthorizationState.AUTHORIZED
    assert state.permission_status[Capability.STEP_COUNT] is AuthorizationState.DENIED


def test_failing_listener_does_not_break_writer(caplog):
    state = HealthDataState()

    def _broken(_state):
        raise ValueError("observer bug")

    state.subscribe(_broken)
    with state.loading():
        pass
    assert not state.is_loading
    assert "State listener" in caplog.text
