"""Permission gate — cached authorization state and read-access requests.

Read-only consent outcomes are hidden by the platform: after the consent
prompt the requester cannot tell whether the user granted access. A True
result from ``request_access`` therefore means "the request completed",
not "data will be readable". The real signal is the aggregator's no-data
fallback.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable

from healthtracker.domains.health.connectors import (
    AuthorizationState,
    Capability,
    HealthQueryService,
)
from healthtracker.domains.health.domain_logic.errors import PermissionDenied, UnknownError
from healthtracker.domains.health.domain_logic.state import HealthDataState

logger = logging.getLogger(__name__)

REQUIRED_CAPABILITIES = (Capability.STEP_COUNT, Capability.SLEEP_ANALYSIS)

STATUS_TEXT = {
    AuthorizationState.NOT_DETERMINED: "Not determined",
    AuthorizationState.DENIED: "Denied",
    AuthorizationState.AUTHORIZED: "Authorized",
    AuthorizationState.UNKNOWN: "Unknown",
}


class PermissionGate:
    """Tracks per-capability authorization and requests read access."""

    def __init__(
        self,
        service: HealthQueryService,
        *,
        state: HealthDataState | None = None,
        capabilities: Iterable[Capability] = REQUIRED_CAPABILITIES,
    ) -> None:
        self._service = service
        self.state = state or HealthDataState()
        self.capabilities = tuple(capabilities)
        self._startup_task: asyncio.Task | None = None

    def start(self) -> asyncio.Task | None:
        """Schedule a best-effort refresh without blocking the caller.

        Returns the scheduled task, or None when no event loop is running.
        """
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop; initial permission refresh skipped")
            return None
        self._startup_task = loop.create_task(self._refresh_quietly())
        return self._startup_task

    async def refresh(self) -> None:
        """Re-read every capability's authorization state into the cache."""
        for capability in self.capabilities:
            self.state.set_permission_status(
                capability, self._service.authorization_status(capability)
            )

    async def request_access(self) -> bool:
        """Ask for read access to every required capability.

        Returns:
            False if health data is unavailable on this device or the request
            could not be made; True once the request completed, whatever the
            user chose.
        """
        if not self._service.is_available():
            self.state.set_last_error(
                PermissionDenied("Health", reason="Health data not available on this device")
            )
            return False

        with self.state.loading():
            try:
                await self._service.request_authorization(set(self.capabilities))
            except Exception as exc:
                logger.error("Health authorization request failed: %s", exc)
                self.state.set_last_error(UnknownError(exc))
                return False
            await self.refresh()
            return True

    def status_text(self, capability: Capability) -> str:
        """Display text for the platform's current state of ``capability``."""
        status = self._service.authorization_status(capability)
        return STATUS_TEXT.get(status, STATUS_TEXT[AuthorizationState.UNKNOWN])

    async def _refresh_quietly(self) -> None:
        try:
            await self.refresh()
        except Exception:
            logger.exception("Initial permission refresh failed")
