"""Observable state published by the aggregator and the permission gate.

The owning component writes; any number of observers read or subscribe.
Reads may be stale — this state only drives loading indicators and status
displays.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager

from healthtracker.domains.health.connectors import AuthorizationState, Capability
from healthtracker.domains.health.domain_logic.errors import HealthDataError

logger = logging.getLogger(__name__)

Listener = Callable[["HealthDataState"], None]


class HealthDataState:
    """Loading flag, last error, and per-capability permission map.

    Usage::

        state = HealthDataState()
        unsubscribe = state.subscribe(lambda s: print(s.is_loading))
        with state.loading():
            ...
        unsubscribe()
    """

    def __init__(self) -> None:
        self._loading_depth = 0
        self._last_error: HealthDataError | None = None
        self._permission_status: dict[Capability, AuthorizationState] = {}
        self._listeners: list[Listener] = []

    @property
    def is_loading(self) -> bool:
        return self._loading_depth > 0

    @property
    def last_error(self) -> HealthDataError | None:
        return self._last_error

    @property
    def permission_status(self) -> dict[Capability, AuthorizationState]:
        """Snapshot copy of the cached permission map."""
        return dict(self._permission_status)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a change listener; returns a callable that removes it."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    @contextmanager
    def loading(self) -> Iterator[None]:
        """Hold the loading flag for the duration of the block.

        The flag is released on every exit path, including cancellation.
        Overlapping holders keep it raised until the last one exits.
        """
        self._loading_depth += 1
        if self._loading_depth == 1:
            self._notify()
        try:
            yield
        finally:
            self._loading_depth -= 1
            if self._loading_depth == 0:
                self._notify()

    def set_last_error(self, error: HealthDataError | None) -> None:
        self._last_error = error
        self._notify()

    def set_permission_status(self, capability: Capability, status: AuthorizationState) -> None:
        if self._permission_status.get(capability) is status:
            return
        self._permission_status[capability] = status
        self._notify()

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception:
                # A broken observer must not break the writer
                logger.exception("State listener %r failed", listener)
