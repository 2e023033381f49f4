"""MCP server — exposes stored subscriptions and insights as tools.

Implements the Model Context Protocol (MCP) over stdio transport.
The assistant calls tools like subs_cashflow(months=6) during conversation.
"""

from __future__ import annotations

import json
import os

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import TextContent, Tool

from subtracker.lib import insights
from subtracker.lib.project import Project
from subtracker.lib.subscription import STATUSES

server = Server("subtracker")


def get_project() -> Project:
    """Project rooted at the SUBTRACKER_ROOT env var (default: cwd)."""
    return Project.discover(os.environ.get("SUBTRACKER_ROOT", "."))


def _text(data: object) -> list[TextContent]:
    return [TextContent(type="text", text=json.dumps(data, indent=2, ensure_ascii=False))]


@server.list_tools()
async def list_tools() -> list[Tool]:
    return [
        Tool(
            name="subs_list",
            description=(
                "List detected subscriptions with amount, cadence and status. "
                "Example: 'Which subscriptions still need review?'"
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "status": {
                        "type": "string",
                        "enum": list(STATUSES),
                        "description": "Only return subscriptions with this status",
                    },
                },
            },
        ),
        Tool(
            name="subs_totals",
            description="Monthly and annual spend on confirmed subscriptions, plus counts by status.",
            inputSchema={"type": "object", "properties": {}},
        ),
        Tool(
            name="subs_clusters",
            description=(
                "Group confirmed subscriptions by category with annual totals. "
                "Example: 'How much do I spend on media subscriptions?'"
            ),
            inputSchema={"type": "object", "properties": {}},
        ),
        Tool(
            name="subs_cashflow",
            description=(
                "Projected monthly subscription spend over recent months. "
                "Yearly charges are spread evenly."
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "months": {
                        "type": "integer",
                        "description": "Number of months (default: 6, min: 3, max: 24)",
                        "default": 6,
                    },
                },
            },
        ),
        Tool(
            name="subs_set_status",
            description="Confirm or ignore a detected subscription by id.",
            inputSchema={
                "type": "object",
                "properties": {
                    "id": {"type": "string", "description": "Subscription id"},
                    "status": {"type": "string", "enum": list(STATUSES)},
                },
                "required": ["id", "status"],
            },
        ),
    ]


@server.call_tool()
async def call_tool(name: str, arguments: dict) -> list[TextContent]:
    """Route MCP tool calls to the store and insights."""
    with get_project().open_store() as store:
        if name == "subs_list":
            subs = store.list(status=arguments.get("status"))
            return _text([s.to_dict() for s in subs])

        if name == "subs_totals":
            return _text(insights.totals(store.list()).to_dict())

        if name == "subs_clusters":
            return _text(insights.infrastructure_map(store.list()).to_dict())

        if name == "subs_cashflow":
            try:
                months = int(arguments.get("months", 6))
            except (TypeError, ValueError) as e:
                return [TextContent(type="text", text=f"Error: months must be an integer: {e}")]
            points = insights.cashflow_timeline(store.list(), months=months)
            return _text([p.to_dict() for p in points])

        if name == "subs_set_status":
            try:
                updated = store.update(arguments["id"], {"status": arguments["status"]})
            except (KeyError, ValueError) as e:
                return [TextContent(type="text", text=f"Error: {e}")]
            if updated is None:
                return [TextContent(type="text", text=f"Error: no subscription {arguments['id']}")]
            return _text(updated.to_dict())

    return [TextContent(type="text", text=f"Unknown tool: {name}")]


async def run_server() -> None:
    """Run the MCP server over stdio."""
    async with stdio_server() as (read_stream, write_stream):
        await server.run(read_stream, write_stream, server.create_initialization_options())
