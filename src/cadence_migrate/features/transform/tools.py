"""MCP tool definitions for syntax transformation.

This module registers MCP tools for:
- transform_cadence_code: Rewrite legacy Cadence code to the modern dialect
"""

import time
from typing import Any, Dict

import sentry_sdk
from mcp.server.fastmcp import FastMCP
from pydantic import Field

from cadence_migrate.core.logging import get_logger
from cadence_migrate.features.migration.migrator import TRANSFORMATION_NAMES
from cadence_migrate.features.transform.transformer import SyntaxTransformer


def transform_cadence_code_tool(code: str) -> Dict[str, Any]:
    """
    Rewrite legacy Cadence code.

    Passes run in order: access modifiers, interface conformance, storage
    API, function signatures, import statements. Comments and string
    literals are left untouched.

    Args:
        code: Cadence source code

    Returns:
        Dictionary with the rewritten code, substitution counts per pass,
        manual migration notes and line statistics

    Example usage:
        result = transform_cadence_code(code="pub contract Hello { pub fun hi(): String { return \\"hi\\" } }")
        print(result["code"])
    """
    logger = get_logger("tool.transform_cadence_code")
    start_time = time.time()

    logger.info("tool_invoked", tool="transform_cadence_code", code_length=len(code))

    try:
        transformer = SyntaxTransformer()
        result = transformer.transform(code)

        execution_time = time.time() - start_time
        logger.info(
            "tool_completed",
            tool="transform_cadence_code",
            execution_time_seconds=round(execution_time, 3),
            substitutions=result.substitutions,
        )

        return {
            "code": result.code,
            "substitutions": result.substitutions,
            "substitutions_by_pass": result.substitutions_by_pass,
            "transformations_applied": [TRANSFORMATION_NAMES[name] for name in result.changed_passes],
            "manual_migrations": [{"line": n.line, "message": n.message} for n in result.notes],
            "stats": transformer.get_transformation_stats(code, result.code),
        }

    except Exception as e:
        execution_time = time.time() - start_time
        logger.error("tool_failed", tool="transform_cadence_code", execution_time_seconds=round(execution_time, 3), error=str(e)[:200])
        sentry_sdk.capture_exception(
            e,
            extras={"tool": "transform_cadence_code", "code_length": len(code), "execution_time_seconds": round(execution_time, 3)},
        )
        raise


def register_transform_tools(mcp: FastMCP) -> None:
    """Register transform feature tools with MCP server.

    Args:
        mcp: FastMCP server instance
    """

    @mcp.tool()
    def transform_cadence_code(
        code: str = Field(description="Cadence source code using legacy syntax"),
    ) -> Dict[str, Any]:
        """Wrapper that calls the standalone transform_cadence_code_tool function."""
        return transform_cadence_code_tool(code=code)
