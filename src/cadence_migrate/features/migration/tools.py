"""MCP tool definitions for template migration.

This module registers MCP tools for:
- migrate_templates: Migrate a corpus of templates to the modern dialect
"""

import time
from typing import Any, Dict, List

import sentry_sdk
from mcp.server.fastmcp import FastMCP
from pydantic import Field

from cadence_migrate.constants import ParallelProcessing
from cadence_migrate.core.logging import get_logger
from cadence_migrate.features.migration.controller import MigrationController
from cadence_migrate.models.migration import Template


def migrate_templates_tool(templates: List[Dict[str, Any]], max_threads: int = 1) -> Dict[str, Any]:
    """
    Migrate a template corpus.

    Templates already using modern syntax are returned unchanged. Templates
    whose rewrite fails validation keep their original code and are listed
    under errors.

    Args:
        templates: Template records with id, name, description, category,
            tags and code
        max_threads: Templates migrated concurrently

    Returns:
        Dictionary with the migrated templates, the originals of rewritten
        templates, statistics, errors, warnings and a markdown report
    """
    logger = get_logger("tool.migrate_templates")
    start_time = time.time()

    logger.info("tool_invoked", tool="migrate_templates", templates=len(templates), max_threads=max_threads)

    try:
        corpus = [Template.from_dict(t) for t in templates]
        controller = MigrationController(max_workers=ParallelProcessing.get_optimal_workers(max_threads))
        run_result = controller.process_all_templates(corpus)
        report = controller.generate_report(run_result)

        execution_time = time.time() - start_time
        logger.info(
            "tool_completed",
            tool="migrate_templates",
            execution_time_seconds=round(execution_time, 3),
            successful=run_result.statistics.successful_migrations,
            failed=run_result.statistics.failed_migrations,
        )

        return {
            "success": run_result.success,
            "migrated_templates": [t.to_dict() for t in run_result.migrated_templates],
            "migrated_files": run_result.migrated_files,
            "backups": [t.to_dict() for t in run_result.backups],
            "statistics": vars(run_result.statistics),
            "errors": [vars(e) for e in run_result.errors],
            "warnings": [vars(w) for w in run_result.warnings],
            "summary": report.summary,
            "recommendations": report.recommendations,
            "report": controller.generate_migration_report(run_result),
        }

    except Exception as e:
        execution_time = time.time() - start_time
        logger.error("tool_failed", tool="migrate_templates", execution_time_seconds=round(execution_time, 3), error=str(e)[:200])
        sentry_sdk.capture_exception(
            e,
            extras={"tool": "migrate_templates", "templates": len(templates), "execution_time_seconds": round(execution_time, 3)},
        )
        raise


def register_migration_tools(mcp: FastMCP) -> None:
    """Register migration feature tools with MCP server.

    Args:
        mcp: FastMCP server instance
    """

    @mcp.tool()
    def migrate_templates(
        templates: List[Dict[str, Any]] = Field(description="Template records: id, name, description, category, tags, code"),
        max_threads: int = Field(default=1, description="Number of templates migrated in parallel (0 = auto-detect)"),
    ) -> Dict[str, Any]:
        """Wrapper that calls the standalone migrate_templates_tool function."""
        return migrate_templates_tool(templates=templates, max_threads=max_threads)
