"""MCP tool definitions for legacy pattern scanning.

This module registers MCP tools for:
- scan_legacy_patterns: Scan a directory for legacy Cadence syntax
"""

import time
from typing import Any, Dict, Optional

import sentry_sdk
from mcp.server.fastmcp import FastMCP
from pydantic import Field

from cadence_migrate.constants import ParallelProcessing
from cadence_migrate.core.logging import get_logger
from cadence_migrate.features.reporting.reporter import generate_report, save_report
from cadence_migrate.features.scan.scanner import create_general_scanner, create_production_scanner


def scan_legacy_patterns_tool(
    project_folder: str,
    production_only: bool = False,
    output_format: str = "json",
    group_by_file: bool = False,
    include_context: bool = True,
    max_threads: int = 1,
    save_to_file: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Scan a project for legacy Cadence syntax.

    **Scanner variants:**
    - general (default): every match is reported; matches in tests, docs,
      specs, comments or string literals are downgraded to suggestions
    - production_only: test/spec/doc paths are skipped and matches in
      comments, strings or documentation lines are discarded

    Args:
        project_folder: Absolute path to the directory to scan
        production_only: Use the production scanner
        output_format: 'json', 'markdown' or 'csv'
        group_by_file: Group markdown findings by file instead of severity
        include_context: Inline context windows in markdown output
        max_threads: Files scanned concurrently
        save_to_file: Optional path to write the report to

    Returns:
        Dictionary with summary counts, critical_count and the rendered report

    Example usage:
        result = scan_legacy_patterns(project_folder="/path/to/dapp", production_only=True)
        if result["critical_count"]:
            print(result["summary"])
    """
    logger = get_logger("tool.scan_legacy_patterns")
    start_time = time.time()

    logger.info(
        "tool_invoked",
        tool="scan_legacy_patterns",
        project_folder=project_folder,
        production_only=production_only,
        output_format=output_format,
    )

    try:
        factory = create_production_scanner if production_only else create_general_scanner
        scanner = factory(max_workers=ParallelProcessing.get_optimal_workers(max_threads))
        result = scanner.scan(project_folder)

        report = generate_report(result, output_format=output_format, include_context=include_context, group_by_file=group_by_file)
        saved_to = None
        if save_to_file:
            saved_to = save_report(result, save_to_file, output_format=output_format, include_context=include_context, group_by_file=group_by_file)

        execution_time = time.time() - start_time
        logger.info(
            "tool_completed",
            tool="scan_legacy_patterns",
            execution_time_seconds=round(execution_time, 3),
            files_scanned=result.total_files_scanned,
            total_patterns=result.total_patterns_found,
            critical_count=result.critical_count,
        )

        return {
            "summary": result.summary,
            "total_files_scanned": result.total_files_scanned,
            "files_with_legacy_patterns": result.files_with_legacy_patterns,
            "total_patterns_found": result.total_patterns_found,
            "patterns_by_type": result.patterns_by_type,
            "patterns_by_severity": result.patterns_by_severity,
            "critical_count": result.critical_count,
            "suppressed_count": result.suppressed_count,
            "format": output_format,
            "report": report,
            "saved_to": saved_to,
        }

    except Exception as e:
        execution_time = time.time() - start_time
        logger.error("tool_failed", tool="scan_legacy_patterns", execution_time_seconds=round(execution_time, 3), error=str(e)[:200])
        sentry_sdk.capture_exception(
            e,
            extras={
                "tool": "scan_legacy_patterns",
                "project_folder": project_folder,
                "production_only": production_only,
                "execution_time_seconds": round(execution_time, 3),
            },
        )
        raise


def register_scan_tools(mcp: FastMCP) -> None:
    """Register scan feature tools with MCP server.

    Args:
        mcp: FastMCP server instance
    """

    @mcp.tool()
    def scan_legacy_patterns(
        project_folder: str = Field(description="The absolute path to the project folder to scan"),
        production_only: bool = Field(default=False, description="Skip tests/docs/specs and discard matches in comments or strings"),
        output_format: str = Field(default="json", description="Report format: 'json', 'markdown' or 'csv'"),
        group_by_file: bool = Field(default=False, description="Group markdown findings by file instead of by severity"),
        include_context: bool = Field(default=True, description="Include the surrounding lines of each finding in markdown output"),
        max_threads: int = Field(default=1, description="Number of files scanned in parallel (0 = auto-detect)"),
        save_to_file: Optional[str] = Field(default=None, description="Optional file path to save the report"),
    ) -> Dict[str, Any]:
        """Wrapper that calls the standalone scan_legacy_patterns_tool function."""
        return scan_legacy_patterns_tool(
            project_folder=project_folder,
            production_only=production_only,
            output_format=output_format,
            group_by_file=group_by_file,
            include_context=include_context,
            max_threads=max_threads,
            save_to_file=save_to_file,
        )
