"""Integration tests for the Health Tracker MCP server."""

from __future__ import annotations

import asyncio

import pytest
from fastmcp import Client

from healthtracker.core.server.app import create_app
from healthtracker.domains.health.connectors import Capability


def _run(coro):
    """Run an async coroutine synchronously (no pytest-asyncio required)."""
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


ALL_EXPECTED_TOOLS = [
    "health_check",
    "daily_metrics",
    "weekly_metrics",
    "health_permissions",
    "request_health_access",
]


@pytest.fixture
def client(store, aggregator):
    """MCP client against a server backed by the in-memory store."""
    mcp = create_app(query_service_override=store, aggregator_override=aggregator)
    return Client(mcp)


def test_server_starts_and_lists_tools(client):
    """Server should start and expose all registered tools."""
    async def _check():
        async with client:
            tools = await client.list_tools()
            tool_names = [t.name for t in tools]
            for expected in ALL_EXPECTED_TOOLS:
                assert expected in tool_names, f"Missing tool: {expected}"
    _run(_check())


def test_default_app_uses_in_memory_store():
    """Without an export path the server still starts, with an empty store."""
    async def _check():
        async with Client(create_app()) as client:
            result = await client.call_tool("health_check", {})
            assert "in_memory" in str(result)
    _run(_check())


def test_health_check_returns_ok(client):
    async def _check():
        async with client:
            result = await client.call_tool("health_check", {})
            result_text = str(result)
            assert "ok" in result_text
            assert "health_data_available" in result_text
    _run(_check())


def test_daily_metrics_for_measured_day(client):
    async def _check():
        async with client:
            result = await client.call_tool("daily_metrics", {"date": "2026-02-01"})
            result_text = str(result)
            assert "2026-02-01" in result_text
            assert "8200" in result_text
            assert "7.5" in result_text
    _run(_check())


def test_daily_metrics_defaults_to_today(client):
    async def _check():
        async with client:
            result = await client.call_tool("daily_metrics", {})
            result_text = str(result)
            assert "2026-02-07" in result_text
            assert "manually_entered" in result_text
    _run(_check())


def test_daily_metrics_rejects_bad_date(client):
    async def _check():
        async with client:
            result = await client.call_tool("daily_metrics", {"date": "yesterday"})
            assert "Invalid date" in str(result)
    _run(_check())


def test_weekly_metrics_spans_seven_days(client):
    async def _check():
        async with client:
            result = await client.call_tool("weekly_metrics", {})
            result_text = str(result)
            assert "2026-02-01" in result_text
            assert "2026-02-07" in result_text
            assert "days_needing_manual_entry" in result_text
    _run(_check())


def test_permissions_report_status_text(client, store):
    async def _check():
        async with client:
            result = await client.call_tool("health_permissions", {})
            result_text = str(result)
            assert "Steps" in result_text
            assert "Authorized" in result_text
    _run(_check())


def test_request_access_when_unavailable(client, store):
    store.available = False

    async def _check():
        async with client:
            result = await client.call_tool("request_health_access", {})
            result_text = str(result)
            assert "not available" in result_text
            assert "recovery_suggestion" in result_text
    _run(_check())
    assert store.authorization_requests == []


def test_request_access_completes(client, store):
    async def _check():
        async with client:
            await client.call_tool("request_health_access", {})
    _run(_check())
    assert store.authorization_requests == [{Capability.STEP_COUNT, Capability.SLEEP_ANALYSIS}]
