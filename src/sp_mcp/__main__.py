"""Main entry point for the stored-procedure MCP server.

This module provides the CLI entry point for running the MCP server
using FastMCP with stdio transport.
"""

import anyio

from sp_mcp.server import mcp


def main() -> None:
    """Run the server over stdio.

    Configuration comes from the environment (or a ``.env`` file), e.g.:

        DATABASE_HOST=localhost DATABASE_NAME=store python -m sp_mcp
    """
    anyio.run(mcp.run_stdio_async)


if __name__ == "__main__":
    main()
