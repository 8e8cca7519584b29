"""Apple Health query service — answers platform queries from an XML export.

Users export via iOS Health app → Share → Export Health Data → produces
export.xml. This service parses that file once and serves range queries
from the parsed samples.

An export carries no consent state, so authorization is simulated: every
capability starts not-determined, and a read request authorizes everything
except the capabilities configured as declined.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import datetime
from pathlib import Path

from healthtracker.domains.health.connectors import (
    AuthorizationState,
    Capability,
    PlatformQueryError,
    SleepSample,
)
from healthtracker.domains.health.connectors.apple_health_parser import (
    AppleHealthParseError,
    HealthExport,
    parse_apple_health_export,
)

logger = logging.getLogger(__name__)

# Code reported when the export itself cannot be read
PARSE_FAILURE_CODE = 0


class AppleHealthExportStore:
    """HealthQueryService backed by an Apple Health XML export.

    Usage::

        store = AppleHealthExportStore("/path/to/export.xml")
        if store.is_available():
            await store.request_authorization({Capability.STEP_COUNT})
            steps = await store.query_aggregate(Capability.STEP_COUNT, start, end)
    """

    def __init__(
        self,
        export_path: str,
        *,
        permission_denied_code: int = 5,
        declined: Iterable[Capability] = (),
    ) -> None:
        self._export_path = export_path
        self._permission_denied_code = permission_denied_code
        self._declined = frozenset(declined)
        self._status: dict[Capability, AuthorizationState] = {
            capability: AuthorizationState.NOT_DETERMINED for capability in Capability
        }
        self._export: HealthExport | None = None
        self._load_error: PlatformQueryError | None = None

    def is_available(self) -> bool:
        """Check if the export file exists."""
        return bool(self._export_path) and Path(self._export_path).exists()

    def authorization_status(self, capability: Capability) -> AuthorizationState:
        return self._status.get(capability, AuthorizationState.UNKNOWN)

    async def request_authorization(self, read: set[Capability]) -> None:
        for capability in read:
            if capability in self._declined:
                self._status[capability] = AuthorizationState.DENIED
            else:
                self._status[capability] = AuthorizationState.AUTHORIZED
        logger.info(
            "Apple Health read access requested for %s",
            ", ".join(sorted(c.label for c in read)),
        )

    async def query_aggregate(
        self, capability: Capability, start: datetime, end: datetime
    ) -> float | None:
        """Sum step counts of samples starting inside ``[start, end)``."""
        if capability is not Capability.STEP_COUNT:
            raise PlatformQueryError(
                PARSE_FAILURE_CODE, f"Aggregate queries are not supported for {capability.label}"
            )
        self._check_authorized(capability)
        in_range = [s.count for s in self._load().steps if start <= s.start < end]
        if not in_range:
            return None
        return sum(in_range)

    async def query_samples(
        self, capability: Capability, start: datetime, end: datetime
    ) -> list[SleepSample]:
        """Sleep samples starting inside ``[start, end)``, in file order."""
        if capability is not Capability.SLEEP_ANALYSIS:
            raise PlatformQueryError(
                PARSE_FAILURE_CODE, f"Sample queries are not supported for {capability.label}"
            )
        self._check_authorized(capability)
        return [s for s in self._load().sleep if start <= s.start < end]

    @property
    def data_source(self) -> str:
        return "apple_health"

    def _check_authorized(self, capability: Capability) -> None:
        if self._status.get(capability) is not AuthorizationState.AUTHORIZED:
            raise PlatformQueryError(
                self._permission_denied_code,
                f"Read access to {capability.label} is not authorized",
            )

    def _load(self) -> HealthExport:
        """Parse the export on first use and cache the result.

        A failed parse is cached too; later queries re-raise it without
        re-reading the file.
        """
        if self._load_error is not None:
            raise self._load_error
        if self._export is None:
            try:
                self._export = parse_apple_health_export(self._export_path)
            except AppleHealthParseError as exc:
                logger.exception("Failed to parse Apple Health export")
                self._load_error = PlatformQueryError(PARSE_FAILURE_CODE, str(exc))
                raise self._load_error from exc
        return self._export
