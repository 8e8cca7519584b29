"""Health Tracker server entry point — ``python -m healthtracker.core.server.main``."""

from __future__ import annotations

import logging
from ipaddress import ip_address

from healthtracker.core.config.settings import Settings, get_settings
from healthtracker.core.server.app import create_app

logger = logging.getLogger(__name__)


def _is_loopback_host(host: str) -> bool:
    if host == "localhost":
        return True
    try:
        return ip_address(host).is_loopback
    except ValueError:
        return False


def check_startup_settings(settings: Settings) -> None:
    """Reject settings the server cannot run with, before anything binds.

    Raises:
        RuntimeError: If the host is not loopback and insecure binds are not allowed.
        ValueError: If HEALTH_TIMEZONE or DECLINED_CAPABILITIES names something unknown.
    """
    if not settings.ht_allow_insecure_bind and not _is_loopback_host(settings.ht_host):
        raise RuntimeError(
            "Refusing to bind the health server to a non-loopback host without an auth layer. "
            "Set HT_ALLOW_INSECURE_BIND=true to override (unsafe)."
        )
    settings.zone()
    settings.declined()


def run() -> None:
    """Start the Health Tracker MCP server with Streamable HTTP transport."""
    settings = get_settings()
    logging.basicConfig(level=getattr(logging, settings.ht_log_level.upper(), logging.INFO))

    check_startup_settings(settings)
    logger.info("Day boundaries use %s", settings.health_timezone or "the system local zone")
    if settings.declined_capabilities:
        logger.info(
            "Simulating declined access for %s",
            ", ".join(sorted(c.label for c in settings.declined())),
        )
    logger.info("Starting Health Tracker server on %s:%d", settings.ht_host, settings.ht_port)

    mcp = create_app()
    mcp.run(
        transport="streamable-http",
        host=settings.ht_host,
        port=settings.ht_port,
    )


if __name__ == "__main__":
    run()
