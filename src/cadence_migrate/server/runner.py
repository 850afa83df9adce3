"""MCP server entry point."""

import os

from mcp.server.fastmcp import FastMCP

from cadence_migrate.core.logging import configure_logging
from cadence_migrate.core.sentry import init_sentry
from cadence_migrate.server.registry import register_all_tools

# Create FastMCP instance
mcp = FastMCP("cadence-migrate")


def run_mcp_server() -> None:
    """Run the MCP server.

    This function:
    1. Configures logging from LOG_LEVEL / LOG_FILE (stdout carries the protocol)
    2. Initializes Sentry error tracking (if configured)
    3. Registers all MCP tools from all features
    4. Starts the MCP server with stdio transport
    """
    configure_logging(log_level=os.environ.get("LOG_LEVEL", "INFO"), log_file=os.environ.get("LOG_FILE"))
    init_sentry(service_name="cadence-migrate-mcp")
    register_all_tools(mcp)
    mcp.run(transport="stdio")
