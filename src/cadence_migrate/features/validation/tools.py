"""MCP tool definitions for code validation.

This module registers MCP tools for:
- validate_cadence_code: Validate Cadence code and score its compliance
- validate_user_input: Detect legacy constructs in user code and suggest fixes
- auto_modernize_code: Rewrite the legacy constructs of selected severities
"""

import time
from typing import Any, Dict

import sentry_sdk
from mcp.server.fastmcp import FastMCP
from pydantic import Field

from cadence_migrate.core.logging import get_logger
from cadence_migrate.features.validation.realtime import RealtimeValidator
from cadence_migrate.features.validation.validator import CodeValidator


def validate_cadence_code_tool(code: str, strict_mode: bool = False) -> Dict[str, Any]:
    """
    Validate Cadence code against the modern dialect.

    Runs the fast rejection check, the legacy pattern checks and every
    syntax pass, and computes a 0-100 compliance score.

    Args:
        code: Cadence source code
        strict_mode: Treat warnings as failures

    Returns:
        Validation report dictionary (validation, analysis, rejection,
        suggestions, compliance_score)
    """
    logger = get_logger("tool.validate_cadence_code")
    start_time = time.time()

    logger.info("tool_invoked", tool="validate_cadence_code", code_length=len(code), strict_mode=strict_mode)

    try:
        report = CodeValidator(strict_mode=strict_mode).generate_validation_report(code)

        execution_time = time.time() - start_time
        logger.info(
            "tool_completed",
            tool="validate_cadence_code",
            execution_time_seconds=round(execution_time, 3),
            is_valid=report["validation"]["is_valid"],
            compliance_score=report["compliance_score"],
        )
        return report

    except Exception as e:
        execution_time = time.time() - start_time
        logger.error("tool_failed", tool="validate_cadence_code", execution_time_seconds=round(execution_time, 3), error=str(e)[:200])
        sentry_sdk.capture_exception(
            e,
            extras={"tool": "validate_cadence_code", "code_length": len(code), "execution_time_seconds": round(execution_time, 3)},
        )
        raise


def validate_user_input_tool(code: str) -> Dict[str, Any]:
    """
    Check user-supplied Cadence code for legacy constructs.

    Args:
        code: Cadence source code

    Returns:
        Dictionary with is_valid, has_legacy_patterns, patterns, suggestions
        (modern replacement, explanation, example, confidence,
        auto_fixable), educational_content, validation_time_ms and
        confidence
    """
    logger = get_logger("tool.validate_user_input")
    start_time = time.time()

    logger.info("tool_invoked", tool="validate_user_input", code_length=len(code))

    try:
        result = RealtimeValidator().validate_user_input(code)

        execution_time = time.time() - start_time
        logger.info(
            "tool_completed",
            tool="validate_user_input",
            execution_time_seconds=round(execution_time, 3),
            is_valid=result.is_valid,
            patterns=len(result.patterns),
        )
        return result.to_dict()

    except Exception as e:
        execution_time = time.time() - start_time
        logger.error("tool_failed", tool="validate_user_input", execution_time_seconds=round(execution_time, 3), error=str(e)[:200])
        sentry_sdk.capture_exception(
            e,
            extras={"tool": "validate_user_input", "code_length": len(code), "execution_time_seconds": round(execution_time, 3)},
        )
        raise


def auto_modernize_code_tool(
    code: str,
    auto_fix_critical: bool = True,
    auto_fix_warnings: bool = False,
    preserve_comments: bool = True,
    add_explanation_comments: bool = False,
) -> Dict[str, Any]:
    """
    Rewrite the legacy constructs of the selected severities.

    Args:
        code: Cadence source code
        auto_fix_critical: Fix critical constructs
        auto_fix_warnings: Fix warning-level constructs
        preserve_comments: Leave comments and string literals untouched
        add_explanation_comments: Annotate each changed line

    Returns:
        Dictionary with original_code, modernized_code,
        transformations_applied, confidence, requires_manual_review and
        warnings
    """
    logger = get_logger("tool.auto_modernize_code")
    start_time = time.time()

    logger.info(
        "tool_invoked",
        tool="auto_modernize_code",
        code_length=len(code),
        auto_fix_critical=auto_fix_critical,
        auto_fix_warnings=auto_fix_warnings,
    )

    try:
        result = RealtimeValidator().auto_modernize_code(
            code,
            auto_fix_critical=auto_fix_critical,
            auto_fix_warnings=auto_fix_warnings,
            preserve_comments=preserve_comments,
            add_explanation_comments=add_explanation_comments,
        )

        execution_time = time.time() - start_time
        logger.info(
            "tool_completed",
            tool="auto_modernize_code",
            execution_time_seconds=round(execution_time, 3),
            transformations=len(result.transformations_applied),
            requires_manual_review=result.requires_manual_review,
        )
        return result.to_dict()

    except Exception as e:
        execution_time = time.time() - start_time
        logger.error("tool_failed", tool="auto_modernize_code", execution_time_seconds=round(execution_time, 3), error=str(e)[:200])
        sentry_sdk.capture_exception(
            e,
            extras={"tool": "auto_modernize_code", "code_length": len(code), "execution_time_seconds": round(execution_time, 3)},
        )
        raise


def register_validation_tools(mcp: FastMCP) -> None:
    """Register validation feature tools with MCP server.

    Args:
        mcp: FastMCP server instance
    """

    @mcp.tool()
    def validate_cadence_code(
        code: str = Field(description="Cadence source code to validate"),
        strict_mode: bool = Field(default=False, description="If True, warnings also make the code invalid"),
    ) -> Dict[str, Any]:
        """Wrapper that calls the standalone validate_cadence_code_tool function."""
        return validate_cadence_code_tool(code=code, strict_mode=strict_mode)

    @mcp.tool()
    def validate_user_input(
        code: str = Field(description="Cadence source code supplied by a user"),
    ) -> Dict[str, Any]:
        """Wrapper that calls the standalone validate_user_input_tool function."""
        return validate_user_input_tool(code=code)

    @mcp.tool()
    def auto_modernize_code(
        code: str = Field(description="Cadence source code to modernize"),
        auto_fix_critical: bool = Field(default=True, description="Fix critical legacy constructs"),
        auto_fix_warnings: bool = Field(default=False, description="Fix warning-level legacy constructs"),
        preserve_comments: bool = Field(default=True, description="Leave comments and string literals untouched"),
        add_explanation_comments: bool = Field(default=False, description="Add a '// Modernized:' comment above each changed line"),
    ) -> Dict[str, Any]:
        """Wrapper that calls the standalone auto_modernize_code_tool function."""
        return auto_modernize_code_tool(
            code=code,
            auto_fix_critical=auto_fix_critical,
            auto_fix_warnings=auto_fix_warnings,
            preserve_comments=preserve_comments,
            add_explanation_comments=add_explanation_comments,
        )
