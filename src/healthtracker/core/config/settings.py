"""Application settings loaded from environment variables."""

from __future__ import annotations

from datetime import tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic_settings import BaseSettings

from healthtracker.domains.health.connectors import Capability


class Settings(BaseSettings):
    """Health Tracker server configuration."""

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    # Server
    # Default to loopback; there is no auth layer in front of the MCP server.
    ht_host: str = "127.0.0.1"
    ht_port: int = 8001
    ht_log_level: str = "info"
    ht_allow_insecure_bind: bool = False

    # Connectors
    # Empty selects the in-memory store (no real data).
    apple_health_export_path: str = ""
    # Simulated consent outcome for the export store, e.g. '["SLEEP_ANALYSIS"]'
    declined_capabilities: list[str] = []

    # Day boundaries (IANA zone name); empty uses the system local zone
    health_timezone: str = ""

    # Platform error codes
    permission_denied_codes: list[int] = [5]
    no_data_codes: list[int] = [11]

    def zone(self) -> tzinfo | None:
        """Zone for day boundaries; None means the system local zone.

        Raises:
            ValueError: If HEALTH_TIMEZONE is not a known IANA zone.
        """
        if not self.health_timezone:
            return None
        try:
            return ZoneInfo(self.health_timezone)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(
                f"Unknown HEALTH_TIMEZONE {self.health_timezone!r}; expected an IANA zone such as 'Europe/London'"
            ) from None

    def declined(self) -> set[Capability]:
        """Declined capabilities, by enum name (case-insensitive).

        Raises:
            ValueError: If a name matches no capability.
        """
        declined: set[Capability] = set()
        for name in self.declined_capabilities:
            try:
                declined.add(Capability[name.upper()])
            except KeyError:
                allowed = ", ".join(c.name.lower() for c in Capability)
                raise ValueError(
                    f"Unknown capability {name!r} in DECLINED_CAPABILITIES; expected one of: {allowed}"
                ) from None
        return declined


def get_settings() -> Settings:
    """Create and return a Settings instance."""
    return Settings()
