"""Shared constants across the cadence-migrate codebase.

This module centralizes severity orderings, scanner defaults and the
thresholds used by the validator so the individual features do not
hard-code them.
"""
import os


class Severity:
    """Finding severities, most to least urgent."""

    CRITICAL = "critical"
    WARNING = "warning"
    SUGGESTION = "suggestion"

    ALL = [CRITICAL, WARNING, SUGGESTION]


class Impact:
    """Finding impact levels."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    ALL = [HIGH, MEDIUM, LOW]


SEVERITY_ORDER = {Severity.CRITICAL: 3, Severity.WARNING: 2, Severity.SUGGESTION: 1}
IMPACT_ORDER = {Impact.HIGH: 3, Impact.MEDIUM: 2, Impact.LOW: 1}


class RuleCategory:
    """Categories a transformation rule may belong to (also the pass order)."""

    ACCESS_MODIFIER = "access-modifier"
    INTERFACE = "interface"
    STORAGE = "storage"
    FUNCTION = "function"
    IMPORT = "import"

    ALL = [ACCESS_MODIFIER, INTERFACE, STORAGE, FUNCTION, IMPORT]


class ErrorCategory:
    """Taxonomy of errors recorded during a run."""

    SYNTAX = "syntax"
    TRANSFORMATION = "transformation"
    VALIDATION = "validation"
    SYSTEM = "system"

    ALL = [SYNTAX, TRANSFORMATION, VALIDATION, SYSTEM]


class ScanDefaults:
    """Default file selection for the legacy pattern scanner."""

    FILE_EXTENSIONS = [".cdc", ".ts", ".tsx", ".js", ".jsx", ".md"]

    # Directory name fragments never descended into
    EXCLUDE_DIRS = ["node_modules", ".next", ".git", "dist", "build", "__pycache__"]

    # Path fragments the production scanner drops outright
    PRODUCTION_EXCLUDE = [
        "__tests__",
        ".test.",
        ".spec.",
        ".kiro",
        "docs",
        "README",
        "CHANGELOG",
        "LICENSE",
    ]

    TEST_PATH_MARKERS = ["__tests__", ".test.", ".spec.", "/tests/", "/test/"]
    DOC_PATH_MARKERS = ["/docs/"]
    SPEC_PATH_MARKERS = [".kiro/specs", "/specs/"]

    CONTEXT_RADIUS = 1  # lines before/after a match


class ValidationDefaults:
    """Windows and type tables used by the static validator."""

    RETURN_LOOKAHEAD_LINES = 20
    DESTROY_LOOKAHEAD_LINES = 50
    RESOURCE_MOVE_WINDOW_LINES = 2

    LIFECYCLE_FUNCTIONS = ["init", "destroy"]

    PRIMITIVE_TYPES = [
        "String", "Character", "Bool", "Address", "Void", "AnyStruct", "AnyResource",
        "Int", "Int8", "Int16", "Int32", "Int64", "Int128", "Int256",
        "UInt", "UInt8", "UInt16", "UInt32", "UInt64", "UInt128", "UInt256",
        "Word8", "Word16", "Word32", "Word64",
        "Fix64", "UFix64", "Path", "StoragePath", "PublicPath", "Type",
    ]

    # Words that may legitimately be followed by a space and "("
    CALL_SPACING_KEYWORDS = [
        "fun", "if", "while", "for", "return", "emit", "in", "switch", "case",
        "let", "var", "pre", "post", "else", "panic", "assert", "destroy", "view",
    ]

    PATH_LITERAL_MARKERS = ["/storage/", "/public/", "/private/"]


class MigrationDefaults:
    """Template migration metadata."""

    TARGET_VERSION = "1.0"
    MODERN_TAG = "Cadence 1.0"
    DESCRIPTION_SUFFIX = " (Updated for Cadence 1.0 compatibility)"


class ReportDefaults:
    """Report rendering defaults."""

    SCHEMA_VERSION = "1.0.0"
    TITLE = "Legacy Cadence Patterns Scan Report"
    CSV_HEADERS = [
        "File",
        "Line",
        "Column",
        "Pattern",
        "Type",
        "Severity",
        "Impact",
        "Description",
        "Suggested Fix",
        "Context",
    ]
    FORMAT_EXTENSIONS = {"markdown": ".md", "json": ".json", "csv": ".csv"}


class ParallelProcessing:
    """Parallel processing configuration."""

    DEFAULT_WORKERS = 1
    MAX_WORKERS = 16

    @staticmethod
    def get_optimal_workers(max_threads: int = 0) -> int:
        """Calculate worker count for a scan or migration run.

        Args:
            max_threads: Requested thread count (0 = auto-detect)

        Returns:
            Number of worker threads (1 to MAX_WORKERS)
        """
        if max_threads > 0:
            return min(max_threads, ParallelProcessing.MAX_WORKERS)

        cpu_count = os.cpu_count() or 4
        return max(1, min(cpu_count - 1, ParallelProcessing.MAX_WORKERS))
