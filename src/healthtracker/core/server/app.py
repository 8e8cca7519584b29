"""Health Tracker MCP Server — application factory.

This module provides:
- create_app() for testability (integration tests create fresh server instances)
- Module-level `mcp` variable for FastMCP discovery
"""

from __future__ import annotations

import logging

from fastmcp import FastMCP

from healthtracker.core.config.settings import get_settings
from healthtracker.domains.health.connectors import HealthQueryService
from healthtracker.domains.health.connectors.apple_health import AppleHealthExportStore
from healthtracker.domains.health.connectors.providers import InMemoryHealthStore
from healthtracker.domains.health.connectors.sources import ErrorCodeMap
from healthtracker.domains.health.domain_logic.aggregator import DailyMetricsAggregator
from healthtracker.domains.health.domain_logic.permissions import PermissionGate
from healthtracker.domains.health.domain_logic.state import HealthDataState
from healthtracker.domains.health.tools.health_metrics_tools import (
    register_health_metrics_tools,
)
from healthtracker.domains.health.tools.permission_tools import register_permission_tools

logger = logging.getLogger(__name__)


def create_app(
    *,
    query_service_override: HealthQueryService | None = None,
    aggregator_override: DailyMetricsAggregator | None = None,
) -> FastMCP:
    """Create and configure the Health Tracker MCP server.

    This is the main application factory. It:
    1. Creates the FastMCP server instance
    2. Selects the platform query service (Apple Health export or in-memory)
    3. Builds the shared state, permission gate and daily aggregator
    4. Registers all tools
    """
    settings = get_settings()

    # --- Server instance ---
    server = FastMCP(
        "Health Tracker",
        instructions=(
            "Daily health metrics server. Aggregates steps and sleep per "
            "calendar day from the configured health data store, with weekly "
            "rollups and health data permission management."
        ),
    )

    codes = ErrorCodeMap.from_codes(settings.permission_denied_codes, settings.no_data_codes)

    # --- Initialize platform query service ---
    if query_service_override is not None:
        service = query_service_override
    elif settings.apple_health_export_path:
        service = AppleHealthExportStore(
            settings.apple_health_export_path,
            permission_denied_code=min(codes.permission_denied_codes, default=5),
            declined=settings.declined(),
        )
        logger.info("Using Apple Health export: %s", settings.apple_health_export_path)
    else:
        service = InMemoryHealthStore()
        logger.info("No APPLE_HEALTH_EXPORT_PATH configured — using empty in-memory store")

    # --- Shared state, permission gate, aggregator ---
    if aggregator_override is not None:
        aggregator = aggregator_override
        state = aggregator.state
    else:
        state = HealthDataState()
        aggregator = DailyMetricsAggregator(
            service, state=state, codes=codes, tz=settings.zone()
        )
    gate = PermissionGate(service, state=state)
    # Best effort; tools refresh again on read when no loop is running yet
    gate.start()

    # --- Register tools ---
    @server.tool
    def health_check() -> dict:
        """Check server health and return basic status information."""
        last_error = state.last_error
        return {
            "status": "ok",
            "server": "Health Tracker",
            "version": "0.1.0",
            "data_source": service.data_source,
            "health_data_available": service.is_available(),
            "loading": state.is_loading,
            "last_error": last_error.description if last_error is not None else None,
        }

    register_health_metrics_tools(server, aggregator)
    register_permission_tools(server, gate)
    logger.info("Health metrics and permission tools registered")

    return server


# Module-level instance for FastMCP discovery.
# Lazy: only created when this module is loaded directly (not when tests import create_app).
def __getattr__(name: str):
    if name == "mcp":
        global mcp  # noqa: PLW0603
        mcp = create_app()
        return mcp
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
