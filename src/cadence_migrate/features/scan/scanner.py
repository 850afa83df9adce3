"""Legacy pattern scanner.

Walks a directory tree (or an in-memory template corpus), applies the
registry's detection patterns and classifies every match. One Scanner class
covers both variants; the suppression policy decides what happens to
matches found in test, documentation, spec or example context:

- DOWNGRADE (general scanner): keep the match as a low-impact suggestion
  annotated with the detected context
- DISCARD (production scanner): drop the match and count it in
  ScanResult.suppressed_count; test/spec/doc paths are not even read
"""
import re
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

import sentry_sdk

from cadence_migrate.constants import IMPACT_ORDER, SEVERITY_ORDER, Impact, ScanDefaults, Severity
from cadence_migrate.core.exceptions import ScanError
from cadence_migrate.core.logging import get_logger
from cadence_migrate.features.rules.patterns import DOCUMENTATION_LINE_MARKERS
from cadence_migrate.features.rules.registry import RuleRegistry
from cadence_migrate.models.migration import FindingLocation, LegacyPattern, ScanResult, Template
from cadence_migrate.utils.lexer import (
    context_window,
    find_literal_spans,
    in_line_comment,
    in_spans,
    in_string_literal,
    line_starts,
    offset_to_position,
)

logger = get_logger(__name__)

_DOC_MARKERS = [re.compile(m) for m in DOCUMENTATION_LINE_MARKERS]

EXAMPLE_FIX = "Consider if this example is still needed or should be updated"


class SuppressionPolicy:
    """What to do with matches found in non-production context."""

    DOWNGRADE = "downgrade"
    DISCARD = "discard"

    ALL = [DOWNGRADE, DISCARD]


class Scanner:
    """Detects legacy Cadence constructs in files and templates.

    Args:
        policy: SuppressionPolicy.DOWNGRADE or SuppressionPolicy.DISCARD
        extensions: File extensions to read (default ScanDefaults.FILE_EXTENSIONS)
        exclude_dirs: Directory name fragments never descended into
        exclude_paths: Relative path fragments whose files are skipped
        registry: Source of the detection patterns
        max_workers: Files scanned concurrently (1 = sequential)
        collector: Optional MigrationErrorCollector receiving unreadable files
    """

    def __init__(
        self,
        policy: str = SuppressionPolicy.DOWNGRADE,
        extensions: Optional[Iterable[str]] = None,
        exclude_dirs: Optional[Iterable[str]] = None,
        exclude_paths: Optional[Iterable[str]] = None,
        registry: Optional[RuleRegistry] = None,
        max_workers: int = 1,
        collector: Optional[Any] = None,
    ):
        if policy not in SuppressionPolicy.ALL:
            raise ValueError(f"Unknown suppression policy: {policy}")
        self.policy = policy
        self.extensions = list(extensions or ScanDefaults.FILE_EXTENSIONS)
        self.exclude_dirs = list(exclude_dirs or ScanDefaults.EXCLUDE_DIRS)
        self.exclude_paths = list(exclude_paths or [])
        self.registry = registry or RuleRegistry()
        self.max_workers = max(1, max_workers)
        self.collector = collector
        self._cancelled = threading.Event()
        self._patterns = [(re.compile(p["regex"]), p) for p in self.registry.detection_patterns]

    def cancel(self) -> None:
        """Stop scheduling further files; files already being read finish.

        The request applies to the run in progress. scan and scan_templates
        clear it when they start.
        """
        self._cancelled.set()
        logger.info("scan_cancel_requested")

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    # -------------------------------------------------------------------------
    # Entry points
    # -------------------------------------------------------------------------

    def scan(self, root: str) -> ScanResult:
        """Scan every eligible file under ``root``.

        Args:
            root: Directory to walk

        Returns:
            ScanResult with findings sorted deterministically

        Raises:
            ScanError: If ``root`` does not exist or is not a directory
        """
        root_path = Path(root)
        if not root_path.is_dir():
            raise ScanError(f"Scan root does not exist or is not a directory: {root}")

        self._cancelled.clear()
        logger.info("scan_started", root=str(root_path), policy=self.policy, workers=self.max_workers)

        with sentry_sdk.start_span(op="scan", name="scan_directory") as span:
            files = self.collect_files(root_path)
            span.set_data("files", len(files))

            outcomes = self._scan_files(root_path, files)

        findings: List[LegacyPattern] = []
        suppressed = 0
        scanned = 0
        failed: List[str] = []
        for rel_path, file_findings, file_suppressed, ok in outcomes:
            if not ok:
                failed.append(rel_path)
                continue
            scanned += 1
            findings.extend(file_findings)
            suppressed += file_suppressed

        result = build_scan_result(findings, scanned, suppressed, sorted(failed))
        logger.info(
            "scan_completed",
            files=result.total_files_scanned,
            patterns=result.total_patterns_found,
            critical=result.critical_count,
            suppressed=result.suppressed_count,
            failed=len(result.failed_files),
            cancelled=self.cancelled,
        )
        return result

    def scan_templates(self, templates: Iterable[Template]) -> ScanResult:
        """Scan an in-memory corpus; each template is named ``template:<id>``."""
        self._cancelled.clear()
        findings: List[LegacyPattern] = []
        suppressed = 0
        scanned = 0
        for template in templates:
            if self.cancelled:
                break
            file_findings, file_suppressed = self.scan_content(template.code, f"template:{template.id}", is_cadence=True)
            findings.extend(file_findings)
            suppressed += file_suppressed
            scanned += 1
        return build_scan_result(findings, scanned, suppressed, [])

    def scan_content(self, content: str, rel_path: str, is_cadence: Optional[bool] = None) -> Tuple[List[LegacyPattern], int]:
        """Apply every detection pattern to one text.

        Args:
            content: File contents
            rel_path: Name reported in finding locations
            is_cadence: Whether full Cadence lexing applies; defaults to a
                ``.cdc`` suffix check

        Returns:
            Tuple of (findings, suppressed_count)
        """
        if is_cadence is None:
            is_cadence = rel_path.endswith(".cdc")

        lines = content.split("\n")
        starts = line_starts(content)
        spans = find_literal_spans(content) if is_cadence else []
        span_starts = [s[0] for s in spans]
        path_context = self._path_context(rel_path)

        findings: List[LegacyPattern] = []
        suppressed = 0
        for regex, definition in self._patterns:
            for match in regex.finditer(content):
                line_no, column = offset_to_position(starts, match.start())
                line = lines[line_no - 1]

                if is_cadence:
                    line_context = "example" if in_spans(spans, match.start(), span_starts) else None
                else:
                    line_context = _line_context(line, column - 1)
                context_kind = path_context or line_context

                if context_kind and self.policy == SuppressionPolicy.DISCARD:
                    suppressed += 1
                    logger.debug("finding_suppressed", file=rel_path, line=line_no, type=definition["type"], context=context_kind)
                    continue

                findings.append(
                    _create_finding(
                        definition,
                        match.group(0),
                        FindingLocation(
                            file=rel_path,
                            line=line_no,
                            column=column,
                            context=context_window(lines, line_no - 1, ScanDefaults.CONTEXT_RADIUS),
                        ),
                        context_kind,
                    )
                )
        return findings, suppressed

    # -------------------------------------------------------------------------
    # File selection
    # -------------------------------------------------------------------------

    def collect_files(self, root: Path) -> List[Path]:
        """Eligible files under ``root`` in sorted walk order."""
        files: List[Path] = []
        self._walk(root, root, files)
        return files

    def _walk(self, root: Path, directory: Path, files: List[Path]) -> None:
        try:
            entries = sorted(directory.iterdir(), key=lambda p: p.name)
        except OSError as e:
            logger.warning("directory_unreadable", path=str(directory), error=str(e))
            return

        for entry in entries:
            # Symlinked directories are never followed
            if entry.is_symlink() and entry.is_dir():
                continue
            if entry.is_dir():
                if not any(fragment in entry.name for fragment in self.exclude_dirs):
                    self._walk(root, entry, files)
            elif entry.is_file() and entry.suffix in self.extensions:
                rel_path = entry.relative_to(root).as_posix()
                if not any(fragment in rel_path for fragment in self.exclude_paths):
                    files.append(entry)

    # -------------------------------------------------------------------------
    # File scanning
    # -------------------------------------------------------------------------

    def _scan_files(self, root: Path, files: List[Path]) -> List[Tuple[str, List[LegacyPattern], int, bool]]:
        if self.max_workers == 1:
            outcomes = []
            for path in files:
                if self.cancelled:
                    break
                outcomes.append(self._scan_file(root, path))
            return outcomes

        outcomes = []
        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            futures = {}
            for path in files:
                if self.cancelled:
                    break
                futures[executor.submit(self._scan_file, root, path)] = path
            for future in as_completed(futures):
                outcomes.append(future.result())
        # Completion order is arbitrary; build_scan_result sorts findings
        outcomes.sort(key=lambda o: o[0])
        return outcomes

    def _scan_file(self, root: Path, path: Path) -> Tuple[str, List[LegacyPattern], int, bool]:
        rel_path = path.relative_to(root).as_posix()
        try:
            content = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("file_unreadable", file=rel_path, error=str(e))
            sentry_sdk.capture_exception(e)
            if self.collector is not None:
                self.collector.handle_system_error(rel_path, e)
            return rel_path, [], 0, False

        findings, suppressed = self.scan_content(content, rel_path)
        return rel_path, findings, suppressed, True

    def _path_context(self, rel_path: str) -> Optional[str]:
        anchored = "/" + rel_path
        if any(marker in anchored for marker in ScanDefaults.TEST_PATH_MARKERS):
            return "test"
        if any(marker in anchored for marker in ScanDefaults.SPEC_PATH_MARKERS):
            return "spec"
        if rel_path.endswith(".md") or any(marker in anchored for marker in ScanDefaults.DOC_PATH_MARKERS):
            return "documentation"
        return None


# =============================================================================
# Factories
# =============================================================================


def create_general_scanner(**kwargs: Any) -> Scanner:
    """Scanner keeping every match, downgrading those in non-production context."""
    return Scanner(policy=SuppressionPolicy.DOWNGRADE, **kwargs)


def create_production_scanner(**kwargs: Any) -> Scanner:
    """Scanner reporting production code only.

    Test, spec and documentation paths are skipped and matches in comments,
    string literals or documentation lines are discarded.
    """
    exclude_paths = list(kwargs.pop("exclude_paths", None) or []) + ScanDefaults.PRODUCTION_EXCLUDE
    return Scanner(policy=SuppressionPolicy.DISCARD, exclude_paths=exclude_paths, **kwargs)


# =============================================================================
# Classification and aggregation
# =============================================================================


def _line_context(line: str, index: int) -> Optional[str]:
    """Per-line guess for non-Cadence files (TypeScript, JavaScript, markdown)."""
    if in_line_comment(line, index) or in_string_literal(line, index):
        return "example"
    if any(marker.search(line) for marker in _DOC_MARKERS):
        return "documentation"
    return None


def _create_finding(definition: Dict[str, Any], matched: str, location: FindingLocation, context_kind: Optional[str]) -> LegacyPattern:
    if context_kind is None:
        return LegacyPattern(
            type=definition["type"],
            pattern=matched,
            location=location,
            severity=definition["severity"],
            description=definition["description"],
            suggested_fix=definition["suggested_fix"],
            impact=definition["impact"],
        )
    return LegacyPattern(
        type=definition["type"],
        pattern=matched,
        location=location,
        severity=Severity.SUGGESTION,
        description=f"{definition['description']} (in {context_kind} context)",
        suggested_fix=EXAMPLE_FIX,
        impact=Impact.LOW,
    )


def sort_findings(findings: List[LegacyPattern]) -> List[LegacyPattern]:
    """Severity desc, impact desc, then file, line, column and type."""
    return sorted(
        findings,
        key=lambda f: (
            -SEVERITY_ORDER.get(f.severity, 0),
            -IMPACT_ORDER.get(f.impact, 0),
            f.location.file,
            f.location.line,
            f.location.column,
            f.type,
            f.pattern,
        ),
    )


def build_scan_result(findings: List[LegacyPattern], files_scanned: int, suppressed: int, failed_files: List[str]) -> ScanResult:
    """Aggregate findings into a ScanResult with a prose summary."""
    ordered = sort_findings(findings)

    by_type: Dict[str, int] = {}
    by_severity: Dict[str, int] = {}
    for finding in ordered:
        by_type[finding.type] = by_type.get(finding.type, 0) + 1
        by_severity[finding.severity] = by_severity.get(finding.severity, 0) + 1

    files_with_patterns = len({f.location.file for f in ordered})

    return ScanResult(
        total_files_scanned=files_scanned,
        files_with_legacy_patterns=files_with_patterns,
        total_patterns_found=len(ordered),
        patterns_by_type=dict(sorted(by_type.items())),
        patterns_by_severity={s: by_severity[s] for s in Severity.ALL if s in by_severity},
        patterns=ordered,
        summary=generate_summary(files_scanned, len(ordered), files_with_patterns, by_severity),
        suppressed_count=suppressed,
        failed_files=failed_files,
    )


def generate_summary(files_scanned: int, total: int, files_with_patterns: int, by_severity: Dict[str, int]) -> str:
    lines = [f"Scanned {files_scanned} files and found {total} legacy patterns in {files_with_patterns} files."]
    if total == 0:
        lines.append("No legacy patterns found! Codebase appears to be fully migrated.")
        return "\n".join(lines)

    critical = by_severity.get(Severity.CRITICAL, 0)
    warning = by_severity.get(Severity.WARNING, 0)
    suggestion = by_severity.get(Severity.SUGGESTION, 0)
    if critical:
        lines.append(f"CRITICAL: {critical} patterns require immediate attention.")
    if warning:
        lines.append(f"WARNING: {warning} patterns should be addressed.")
    if suggestion:
        lines.append(f"SUGGESTION: {suggestion} patterns could be improved.")
    return "\n".join(lines)
