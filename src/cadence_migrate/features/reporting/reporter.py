"""Scan report generation.

Renders a ScanResult without re-scanning:
- Markdown reports (human review), grouped by severity or by file
- JSON reports (machine-readable, with generation timestamp and schema version)
- CSV reports (spreadsheet triage)
"""

import csv
import io
import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional

from cadence_migrate.constants import ReportDefaults, Severity
from cadence_migrate.core.logging import get_logger
from cadence_migrate.models.migration import LegacyPattern, ScanResult

logger = get_logger(__name__)

SEVERITY_ICONS = {Severity.CRITICAL: "🚨", Severity.WARNING: "⚠️", Severity.SUGGESTION: "💡"}
SEVERITY_PRIORITY = {Severity.CRITICAL: "HIGH", Severity.WARNING: "MEDIUM", Severity.SUGGESTION: "LOW"}

# =============================================================================
# Markdown Report Generation - Helper Functions
# =============================================================================


def _generate_report_header(result: ScanResult, generated_at: str) -> List[str]:
    """Generate title, timestamp and executive summary.

    Args:
        result: Scan result
        generated_at: ISO timestamp shown in the header

    Returns:
        List of header lines
    """
    return [
        f"# {ReportDefaults.TITLE}",
        "",
        f"Generated: {generated_at}",
        "",
        "## Executive Summary",
        "",
        result.summary,
        "",
    ]


def _generate_statistics_section(result: ScanResult) -> List[str]:
    """Generate totals plus type and severity tables.

    Args:
        result: Scan result

    Returns:
        List of statistics lines
    """
    lines = [
        "## Scan Statistics",
        "",
        f"- **Total Files Scanned**: {result.total_files_scanned}",
        f"- **Files with Legacy Patterns**: {result.files_with_legacy_patterns}",
        f"- **Total Patterns Found**: {result.total_patterns_found}",
    ]
    if result.suppressed_count:
        lines.append(f"- **Suppressed Matches**: {result.suppressed_count}")
    if result.failed_files:
        lines.append(f"- **Unreadable Files**: {len(result.failed_files)}")

    lines.extend(["", "### Patterns by Type", "", "| Pattern Type | Count |", "|--------------|-------|"])
    for pattern_type, count in sorted(result.patterns_by_type.items()):
        lines.append(f"| {pattern_type} | {count} |")

    lines.extend(["", "### Patterns by Severity", "", "| Severity | Count | Priority |", "|----------|-------|----------|"])
    for severity in Severity.ALL:
        count = result.patterns_by_severity.get(severity)
        if count:
            lines.append(f"| {severity} | {count} | {SEVERITY_ICONS[severity]} {SEVERITY_PRIORITY[severity]} |")

    lines.append("")
    return lines


def _format_context(pattern: LegacyPattern) -> List[str]:
    return ["**Context:**", "```cadence", pattern.location.context, "```", ""]


def _generate_file_grouped_section(patterns: List[LegacyPattern], include_context: bool) -> List[str]:
    """Generate findings grouped by file, files in sorted order.

    Args:
        patterns: Sorted findings
        include_context: Whether to inline the context window per finding

    Returns:
        List of section lines
    """
    lines = ["## Detailed Findings (Grouped by File)", ""]

    by_file: Dict[str, List[LegacyPattern]] = {}
    for pattern in patterns:
        by_file.setdefault(pattern.location.file, []).append(pattern)

    for file_path in sorted(by_file):
        file_patterns = sorted(by_file[file_path], key=lambda p: (p.location.line, p.location.column, p.type))
        lines.extend([f"### {file_path}", "", f"Found {len(file_patterns)} pattern(s) in this file:", ""])

        for index, pattern in enumerate(file_patterns, start=1):
            lines.extend(
                [
                    f"#### {index}. {SEVERITY_ICONS.get(pattern.severity, '')} {pattern.description}",
                    "",
                    f"- **Pattern**: `{pattern.pattern}`",
                    f"- **Location**: Line {pattern.location.line}, Column {pattern.location.column}",
                    f"- **Severity**: {pattern.severity}",
                    f"- **Impact**: {pattern.impact}",
                    f"- **Suggested Fix**: {pattern.suggested_fix}",
                    "",
                ]
            )
            if include_context:
                lines.extend(_format_context(pattern))

    return lines


def _generate_severity_grouped_section(patterns: List[LegacyPattern], include_context: bool) -> List[str]:
    """Generate findings grouped by severity, most urgent first.

    Args:
        patterns: Sorted findings
        include_context: Whether to inline the context window per finding

    Returns:
        List of section lines
    """
    lines = ["## Detailed Findings (Grouped by Severity)", ""]

    for severity in Severity.ALL:
        severity_patterns = [p for p in patterns if p.severity == severity]
        if not severity_patterns:
            continue

        lines.extend([f"### {SEVERITY_ICONS[severity]} {severity.upper()} ({len(severity_patterns)} patterns)", ""])
        for index, pattern in enumerate(severity_patterns, start=1):
            lines.extend(
                [
                    f"#### {index}. {pattern.description}",
                    "",
                    f"- **File**: {pattern.location.file}",
                    f"- **Location**: Line {pattern.location.line}, Column {pattern.location.column}",
                    f"- **Pattern**: `{pattern.pattern}`",
                    f"- **Type**: {pattern.type}",
                    f"- **Impact**: {pattern.impact}",
                    f"- **Suggested Fix**: {pattern.suggested_fix}",
                    "",
                ]
            )
            if include_context:
                lines.extend(_format_context(pattern))

    return lines


def _count_by_type(patterns: List[LegacyPattern], severity: str) -> Dict[str, int]:
    counts: Dict[str, int] = {}
    for pattern in patterns:
        if pattern.severity == severity:
            counts[pattern.type] = counts.get(pattern.type, 0) + 1
    return dict(sorted(counts.items()))


def _generate_recommendations_section(result: ScanResult) -> List[str]:
    """Generate per-severity recommendations and next steps.

    Args:
        result: Scan result

    Returns:
        List of recommendation lines
    """
    lines = ["## Recommendations", ""]
    headings = {
        Severity.CRITICAL: ("Immediate Action Required", "critical patterns must be fixed before deployment"),
        Severity.WARNING: ("High Priority", "warning patterns should be addressed soon"),
        Severity.SUGGESTION: ("Improvement Opportunities", "suggestion patterns could be improved when convenient"),
    }

    for severity in Severity.ALL:
        count = result.patterns_by_severity.get(severity, 0)
        if not count:
            continue
        title, text = headings[severity]
        lines.extend([f"### {SEVERITY_ICONS[severity]} {title}", "", f"{count} {text}:", ""])
        for pattern_type, type_count in _count_by_type(result.patterns, severity).items():
            lines.append(f"- **{pattern_type}**: {type_count} instances")
        lines.append("")

    lines.extend(["### Next Steps", ""])
    if not result.patterns:
        lines.extend(
            [
                "✅ **Congratulations!** Your codebase appears to be fully migrated to Cadence 1.0.",
                "",
                "Consider adding prevention mechanisms so legacy patterns are not reintroduced:",
                "- Add pre-commit hooks",
                "- Run `cadence-migrate scan --production` in CI",
            ]
        )
    else:
        lines.extend(
            [
                "1. **Fix Critical Issues First**: Address all critical patterns immediately",
                "2. **Plan Warning Fixes**: Schedule time to fix warning patterns",
                "3. **Consider Suggestions**: Evaluate suggestion patterns for future improvements",
                "4. **Implement Prevention**: Add mechanisms to prevent legacy patterns from being reintroduced",
                "5. **Re-scan Regularly**: Run this scanner periodically to catch any new legacy patterns",
            ]
        )
    return lines


# =============================================================================
# Format Renderers
# =============================================================================


def generate_markdown_report(
    result: ScanResult, include_context: bool = True, group_by_file: bool = False, generated_at: Optional[str] = None
) -> str:
    """Generate a Markdown-formatted scan report.

    Args:
        result: ScanResult from a scanner
        include_context: Whether to inline the context window per finding
        group_by_file: Group findings by file instead of by severity
        generated_at: Timestamp for the header (defaults to now, UTC)

    Returns:
        Markdown-formatted report as string
    """
    report_lines = []

    report_lines.extend(_generate_report_header(result, generated_at or _now()))
    report_lines.extend(_generate_statistics_section(result))
    if result.patterns:
        if group_by_file:
            report_lines.extend(_generate_file_grouped_section(result.patterns, include_context))
        else:
            report_lines.extend(_generate_severity_grouped_section(result.patterns, include_context))
    report_lines.extend(_generate_recommendations_section(result))

    return "\n".join(report_lines) + "\n"


def generate_json_report(result: ScanResult, generated_at: Optional[str] = None) -> str:
    """Serialize the full scan result plus generated_at and version."""
    report = result.to_dict()
    report["generated_at"] = generated_at or _now()
    report["version"] = ReportDefaults.SCHEMA_VERSION
    return json.dumps(report, indent=2)


def generate_csv_report(result: ScanResult) -> str:
    """One row per finding; fields containing quotes, commas or newlines are quoted."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_MINIMAL, lineterminator="\n")
    writer.writerow(ReportDefaults.CSV_HEADERS)
    for pattern in result.patterns:
        writer.writerow(
            [
                pattern.location.file,
                pattern.location.line,
                pattern.location.column,
                pattern.pattern,
                pattern.type,
                pattern.severity,
                pattern.impact,
                pattern.description,
                pattern.suggested_fix,
                pattern.location.context,
            ]
        )
    return buffer.getvalue()


# =============================================================================
# Report Generator (Main Entry Point)
# =============================================================================


def generate_report(
    result: ScanResult,
    output_format: str = "markdown",
    include_context: bool = True,
    group_by_file: bool = False,
    generated_at: Optional[str] = None,
) -> str:
    """Render ``result`` in the requested format.

    Args:
        result: ScanResult to render
        output_format: 'markdown', 'json' or 'csv'
        include_context: Inline context windows (markdown only)
        group_by_file: Group by file instead of severity (markdown only)
        generated_at: Fixed timestamp, for reproducible output

    Returns:
        Report text

    Raises:
        ValueError: If output_format is not supported
    """
    if output_format == "markdown":
        return generate_markdown_report(result, include_context=include_context, group_by_file=group_by_file, generated_at=generated_at)
    elif output_format == "json":
        return generate_json_report(result, generated_at=generated_at)
    elif output_format == "csv":
        return generate_csv_report(result)
    else:
        raise ValueError(f"Unsupported output format: {output_format}")


def save_report(
    result: ScanResult,
    path: str,
    output_format: str = "markdown",
    include_context: bool = True,
    group_by_file: bool = False,
) -> str:
    """Render and write a report, creating parent directories.

    Returns:
        The path written
    """
    content = generate_report(result, output_format=output_format, include_context=include_context, group_by_file=group_by_file)
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    with open(target, "w", encoding="utf-8", newline="") as f:
        f.write(content)

    logger.info("report_saved", path=str(target), format=output_format, size=len(content))
    return str(target)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()
