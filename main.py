"""cadence-migrate MCP server entry point."""

from cadence_migrate.server.runner import run_mcp_server

if __name__ == "__main__":
    run_mcp_server()
