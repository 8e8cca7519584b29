"""In-memory HealthQueryService for development and tests."""

from __future__ import annotations

import asyncio
from datetime import datetime

from healthtracker.domains.health.connectors import (
    AuthorizationState,
    Capability,
    PlatformQueryError,
    SleepSample,
    StepSample,
)


class InMemoryHealthStore:
    """Serves programmed samples. Always available unless told otherwise.

    Every capability starts authorized. Tests can deny a capability, inject
    a platform error code per capability, or add a delay to observe
    concurrency. Each query is recorded in ``queries``.
    """

    def __init__(
        self,
        *,
        steps: list[StepSample] | None = None,
        sleep: list[SleepSample] | None = None,
        available: bool = True,
        delay: float = 0.0,
    ) -> None:
        self.steps = list(steps or [])
        self.sleep = list(sleep or [])
        self.available = available
        self.delay = delay
        self.status: dict[Capability, AuthorizationState] = {
            capability: AuthorizationState.AUTHORIZED for capability in Capability
        }
        self.errors: dict[Capability, int] = {}
        self.authorization_error: Exception | None = None
        self.authorization_requests: list[set[Capability]] = []
        self.queries: list[tuple[Capability, datetime, datetime]] = []

    def fail_with(self, capability: Capability, code: int) -> None:
        """Make every query for ``capability`` raise ``code``."""
        self.errors[capability] = code

    def is_available(self) -> bool:
        return self.available

    def authorization_status(self, capability: Capability) -> AuthorizationState:
        return self.status.get(capability, AuthorizationState.UNKNOWN)

    async def request_authorization(self, read: set[Capability]) -> None:
        self.authorization_requests.append(set(read))
        if self.authorization_error is not None:
            raise self.authorization_error

    async def query_aggregate(
        self, capability: Capability, start: datetime, end: datetime
    ) -> float | None:
        await self._record(capability, start, end)
        in_range = [s.count for s in self.steps if start <= s.start < end]
        return sum(in_range) if in_range else None

    async def query_samples(
        self, capability: Capability, start: datetime, end: datetime
    ) -> list[SleepSample]:
        await self._record(capability, start, end)
        return [s for s in self.sleep if start <= s.start < end]

    @property
    def data_source(self) -> str:
        return "in_memory"

    async def _record(self, capability: Capability, start: datetime, end: datetime) -> None:
        self.queries.append((capability, start, end))
        if self.delay:
            await asyncio.sleep(self.delay)
        if capability in self.errors:
            raise PlatformQueryError(self.errors[capability])
