"""Central tool registration for MCP server."""

from mcp.server.fastmcp import FastMCP

from cadence_migrate.features.migration.tools import register_migration_tools
from cadence_migrate.features.scan.tools import register_scan_tools
from cadence_migrate.features.transform.tools import register_transform_tools
from cadence_migrate.features.validation.tools import register_validation_tools


def register_all_tools(mcp: FastMCP) -> None:
    """Register all MCP tools from all features.

    Tools are registered in pipeline order:
    1. Scan (scan_legacy_patterns)
    2. Transform (transform_cadence_code)
    3. Validation (validate_cadence_code)
    4. Migration (migrate_templates)
    """
    register_scan_tools(mcp)
    register_transform_tools(mcp)
    register_validation_tools(mcp)
    register_migration_tools(mcp)
