"""bin/mcp — MCP server entry point (stdio transport).

  SUBTRACKER_ROOT=~/finances subs-mcp
"""

from __future__ import annotations

import asyncio
import os

import click


@click.command()
@click.option("--root", default=None, help="Project root (overrides SUBTRACKER_ROOT)")
def main(root: str | None) -> None:
    """Start the subscription MCP server."""
    from subtracker.lib.mcp_server import run_server

    if root:
        os.environ["SUBTRACKER_ROOT"] = root
    asyncio.run(run_server())


if __name__ == "__main__":
    main()
