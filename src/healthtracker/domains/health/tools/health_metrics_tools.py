"""MCP tools for daily and weekly health metrics.

Each call aggregates fresh from the platform query service. Fields that
fell back to a default are listed under ``manually_entered`` so the client
can prompt the user to fill them in.
"""

from __future__ import annotations

import json
import logging
from datetime import date
from typing import TYPE_CHECKING

from fastmcp import Context, FastMCP

if TYPE_CHECKING:
    from healthtracker.domains.health.domain_logic.aggregator import DailyMetricsAggregator

logger = logging.getLogger(__name__)


def register_health_metrics_tools(
    mcp: FastMCP,
    aggregator: DailyMetricsAggregator,
) -> None:
    """Register metrics aggregation tools on the MCP server."""

    @mcp.tool
    async def daily_metrics(
        ctx: Context,
        date: str = "",
    ) -> str:
        """Steps, sleep and screen time for one calendar day.

        Args:
            date: Day to aggregate (ISO 8601, e.g., '2026-01-15'). Defaults to today.
        """
        if date:
            try:
                day = _parse_day(date)
            except ValueError:
                return json.dumps({
                    "status": "error",
                    "message": f"Invalid date {date!r}; expected YYYY-MM-DD",
                })
            record = await aggregator.fetch_metrics(day)
        else:
            record = await aggregator.fetch_todays_metrics()

        logger.info(
            "Daily metrics aggregated for %s (defaults: %s)",
            record.date.isoformat(),
            sorted(k.value for k in record.manually_entered) or "none",
        )
        return json.dumps({"status": "ok", "metrics": record.to_dict()}, indent=2)

    @mcp.tool
    async def weekly_metrics(ctx: Context) -> str:
        """Daily metrics for the last seven days, oldest first."""
        records = await aggregator.fetch_weekly_metrics()
        days_needing_entry = sum(1 for r in records if r.manually_entered)
        return json.dumps({
            "status": "ok",
            "start_date": records[0].date.isoformat(),
            "end_date": records[-1].date.isoformat(),
            "days": [r.to_dict() for r in records],
            "days_needing_manual_entry": days_needing_entry,
        }, indent=2)


def _parse_day(value: str) -> date:
    return date.fromisoformat(value.strip())
