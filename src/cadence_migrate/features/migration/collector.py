"""Run-scoped error and warning collection.

Each migration or scan run owns one MigrationErrorCollector. Every append
is mirrored to the structured log; state is reset explicitly with
clear_all() between independent runs.
"""
import threading
from typing import Any, Dict, List, Optional

from cadence_migrate.constants import ErrorCategory
from cadence_migrate.core.logging import get_logger
from cadence_migrate.models.migration import MigrationError, MigrationWarning

logger = get_logger(__name__)


class MigrationErrorCollector:
    """Append-only store of errors and warnings, safe to share between worker threads."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._errors: List[MigrationError] = []
        self._warnings: List[MigrationWarning] = []

    # -------------------------------------------------------------------------
    # Recording
    # -------------------------------------------------------------------------

    def create_error(
        self,
        file: str,
        message: str,
        category: str,
        severity: str = "error",
        line: Optional[int] = None,
        column: Optional[int] = None,
    ) -> MigrationError:
        """Record an error and log it.

        Args:
            file: File path or template name the error belongs to
            message: Description of the failure
            category: One of ErrorCategory.ALL
            severity: "error" or "critical"
            line: Optional 1-based line
            column: Optional 1-based column

        Returns:
            The recorded MigrationError
        """
        error = MigrationError(file=file, message=message, category=category, severity=severity, line=line, column=column)
        with self._lock:
            self._errors.append(error)
        logger.error("migration_error", file=file, category=category, severity=severity, line=line, column=column, message=message)
        return error

    def create_warning(
        self,
        file: str,
        message: str,
        line: Optional[int] = None,
        suggestion: Optional[str] = None,
    ) -> MigrationWarning:
        """Record a warning and log it."""
        warning = MigrationWarning(file=file, message=message, line=line, suggestion=suggestion)
        with self._lock:
            self._warnings.append(warning)
        logger.warning("migration_warning", file=file, line=line, message=message, suggestion=suggestion)
        return warning

    def handle_syntax_error(self, file: str, error: Exception, line: Optional[int] = None, column: Optional[int] = None) -> MigrationError:
        return self.create_error(file, f"Syntax error: {error}", ErrorCategory.SYNTAX, line=line, column=column)

    def handle_transformation_error(self, file: str, rule: str, error: Exception) -> MigrationError:
        return self.create_error(file, f"Transformation failed for rule '{rule}': {error}", ErrorCategory.TRANSFORMATION)

    def handle_validation_error(self, file: str, errors: List[str]) -> MigrationError:
        """Record a rewrite that did not validate; the first error is quoted."""
        detail = errors[0] if errors else "unknown error"
        more = f" (+{len(errors) - 1} more)" if len(errors) > 1 else ""
        return self.create_error(file, f"Validation failed: {detail}{more}", ErrorCategory.VALIDATION)

    def handle_system_error(self, file: str, error: Exception) -> MigrationError:
        return self.create_error(file, f"System error: {error}", ErrorCategory.SYSTEM, severity="critical")

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def get_errors(self) -> List[MigrationError]:
        with self._lock:
            return list(self._errors)

    def get_warnings(self) -> List[MigrationWarning]:
        with self._lock:
            return list(self._warnings)

    def get_errors_by_file(self, file: str) -> List[MigrationError]:
        return [e for e in self.get_errors() if e.file == file]

    def get_warnings_by_file(self, file: str) -> List[MigrationWarning]:
        return [w for w in self.get_warnings() if w.file == file]

    def get_errors_by_category(self, category: str) -> List[MigrationError]:
        return [e for e in self.get_errors() if e.category == category]

    def has_errors(self) -> bool:
        with self._lock:
            return bool(self._errors)

    def has_warnings(self) -> bool:
        with self._lock:
            return bool(self._warnings)

    def has_critical_errors(self) -> bool:
        return any(e.severity == "critical" for e in self.get_errors())

    def clear_all(self) -> None:
        """Reset state before an independent run."""
        with self._lock:
            self._errors.clear()
            self._warnings.clear()

    def get_statistics(self) -> Dict[str, Any]:
        """Counts by category and severity plus the affected files.

        Returns:
            Dictionary with total_errors, total_warnings, errors_by_category,
            errors_by_severity and files_with_errors (sorted)
        """
        errors = self.get_errors()
        warnings = self.get_warnings()

        by_category: Dict[str, int] = {}
        by_severity: Dict[str, int] = {}
        for error in errors:
            by_category[error.category] = by_category.get(error.category, 0) + 1
            by_severity[error.severity] = by_severity.get(error.severity, 0) + 1

        return {
            "total_errors": len(errors),
            "total_warnings": len(warnings),
            "errors_by_category": dict(sorted(by_category.items())),
            "errors_by_severity": dict(sorted(by_severity.items())),
            "files_with_errors": sorted({e.file for e in errors}),
        }

    def generate_error_report(self) -> str:
        """Render a deterministic plain-text summary of the run's errors."""
        stats = self.get_statistics()
        lines = [
            "Migration Error Report",
            "=" * 22,
            "",
            f"Total Errors: {stats['total_errors']}",
            f"Total Warnings: {stats['total_warnings']}",
        ]

        if stats["errors_by_category"]:
            lines.extend(["", "Errors by Category:"])
            for category, count in stats["errors_by_category"].items():
                lines.append(f"  {category}: {count}")

        if stats["errors_by_severity"]:
            lines.extend(["", "Errors by Severity:"])
            for severity, count in stats["errors_by_severity"].items():
                lines.append(f"  {severity}: {count}")

        if stats["files_with_errors"]:
            lines.extend(["", "Files with Errors:"])
            for file in stats["files_with_errors"]:
                lines.append(f"  {file}")
                for error in self.get_errors_by_file(file):
                    position = f" (line {error.line})" if error.line is not None else ""
                    lines.append(f"    - [{error.category}] {error.message}{position}")

        return "\n".join(lines)
