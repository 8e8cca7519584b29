"""MCP tools for health data permissions."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING

from fastmcp import Context, FastMCP

if TYPE_CHECKING:
    from healthtracker.domains.health.domain_logic.permissions import PermissionGate

logger = logging.getLogger(__name__)


def register_permission_tools(
    mcp: FastMCP,
    gate: PermissionGate,
) -> None:
    """Register permission status and access request tools on the MCP server."""

    @mcp.tool
    async def health_permissions(ctx: Context) -> str:
        """Show the current access status for each health data category."""
        await gate.refresh()
        return json.dumps({
            "status": "ok",
            "permissions": {
                capability.label: gate.status_text(capability)
                for capability in gate.capabilities
            },
        }, indent=2)

    @mcp.tool
    async def request_health_access(ctx: Context) -> str:
        """Ask for read access to steps and sleep data.

        A completed request does not mean access was granted: read consent is
        private to the user. Categories without access show up later as
        fields needing manual entry.
        """
        completed = await gate.request_access()
        result: dict = {"status": "ok" if completed else "error", "request_completed": completed}
        if not completed and gate.state.last_error is not None:
            error = gate.state.last_error
            result["message"] = error.description
            result["recovery_suggestion"] = error.recovery_suggestion
        return json.dumps(result, indent=2)
