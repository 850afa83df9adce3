"""Data models for the Cadence syntax migration engine."""
import re
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, Pattern, Tuple

from cadence_migrate.utils.lexer import Replacement

# =============================================================================
# Rules and configuration
# =============================================================================


@dataclass(frozen=True)
class TransformationRule:
    """A single rewrite rule.

    Attributes:
        pattern: Regular expression source matched against code
        replacement: Replacement template (may reference groups), or a
            callable receiving the match
        description: Human-readable description, unique per registry
        category: One of access-modifier, interface, storage, function, import
    """
    pattern: str
    replacement: Replacement
    description: str
    category: str

    def compile(self) -> Pattern[str]:
        return re.compile(self.pattern)


@dataclass(frozen=True)
class MigrationConfig:
    """Immutable snapshot of a rule registry.

    Attributes:
        target_cadence_version: Dialect version the rewrite targets
        preserve_comments: Leave comments and string literals untouched
        validate_after_migration: Re-validate rewritten code before accepting it
        backup_originals: Keep the original of every template whose rewrite is
            accepted in MigrationRunResult.backups
        transformation_rules: Default rules followed by caller additions
    """
    target_cadence_version: str
    preserve_comments: bool
    validate_after_migration: bool
    backup_originals: bool
    transformation_rules: Tuple[TransformationRule, ...]


@dataclass
class ConfigValidationResult:
    """Outcome of validating a rule registry."""
    is_valid: bool
    errors: List[str] = field(default_factory=list)


# =============================================================================
# Validation
# =============================================================================


@dataclass
class CodeLocation:
    """1-based position of a diagnostic."""
    line: int
    column: int
    length: Optional[int] = None


def format_diagnostic(location: CodeLocation, message: str, suggestion: Optional[str]) -> str:
    """Render a diagnostic as 'Line L:C - message (suggestion)'."""
    text = f"Line {location.line}:{location.column} - {message}"
    if suggestion:
        text += f" ({suggestion})"
    return text


@dataclass
class SyntaxIssue:
    """Bracket/statement error or style warning.

    Attributes:
        type: bracket-mismatch, incomplete-statement, style, best-practice, potential-issue
        location: Where the issue starts
        message: Description of the problem
        suggestion: Optional fix hint
    """
    type: str
    location: CodeLocation
    message: str
    suggestion: Optional[str] = None

    def format(self) -> str:
        return format_diagnostic(self.location, self.message, self.suggestion)


@dataclass
class StructureIssue:
    """Contract/resource structure problem; only 'error' severity blocks validity."""
    type: str
    location: CodeLocation
    message: str
    severity: str
    suggestion: Optional[str] = None

    def format(self) -> str:
        return format_diagnostic(self.location, self.message, self.suggestion)


@dataclass
class FunctionIssue:
    """Function signature problem."""
    type: str
    location: CodeLocation
    function_name: str
    message: str
    suggestion: Optional[str] = None

    def format(self) -> str:
        return format_diagnostic(self.location, self.message, self.suggestion)


@dataclass
class EventIssue:
    """Event declaration problem."""
    type: str
    location: CodeLocation
    event_name: str
    message: str
    suggestion: Optional[str] = None

    def format(self) -> str:
        return format_diagnostic(self.location, self.message, self.suggestion)


@dataclass
class SyntaxValidationResult:
    """Decomposed diagnostics from the static validator.

    Attributes:
        is_valid: No errors, no error-severity structure issues, no function or event issues
        errors: Bracket and statement errors
        warnings: Style and best-practice warnings
        structure_issues: Contract/resource issues (severity-bearing)
        function_issues: Function signature issues
        event_issues: Event declaration issues
    """
    is_valid: bool
    errors: List[SyntaxIssue] = field(default_factory=list)
    warnings: List[SyntaxIssue] = field(default_factory=list)
    structure_issues: List[StructureIssue] = field(default_factory=list)
    function_issues: List[FunctionIssue] = field(default_factory=list)
    event_issues: List[EventIssue] = field(default_factory=list)


@dataclass
class ValidationResult:
    """Flat pass/fail verdict for a piece of code."""
    is_valid: bool
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    compilation_success: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class RejectionResult:
    """Result of the fast hard-reject check."""
    should_reject: bool
    reason: str = ""


# =============================================================================
# Scanning
# =============================================================================


@dataclass
class FindingLocation:
    """Where a legacy pattern was found.

    Attributes:
        file: Path relative to the scan root (posix separators)
        line: 1-based line number
        column: 1-based column number
        context: The matched line plus one line before and after
    """
    file: str
    line: int
    column: int
    context: str


@dataclass
class LegacyPattern:
    """One located occurrence of a legacy construct."""
    type: str
    pattern: str
    location: FindingLocation
    severity: str
    description: str
    suggested_fix: str
    impact: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class ScanResult:
    """Aggregated findings of one scan.

    Attributes:
        total_files_scanned: Eligible files read successfully
        files_with_legacy_patterns: Distinct files with at least one finding
        total_patterns_found: Always equal to len(patterns)
        patterns_by_type: Finding count per pattern type
        patterns_by_severity: Finding count per severity
        patterns: Findings sorted by severity, impact, file, line, column
        summary: Prose summary
        suppressed_count: Matches discarded by the suppression policy
        failed_files: Files that could not be read
    """
    total_files_scanned: int
    files_with_legacy_patterns: int
    total_patterns_found: int
    patterns_by_type: Dict[str, int] = field(default_factory=dict)
    patterns_by_severity: Dict[str, int] = field(default_factory=dict)
    patterns: List[LegacyPattern] = field(default_factory=list)
    summary: str = ""
    suppressed_count: int = 0
    failed_files: List[str] = field(default_factory=list)

    @property
    def critical_count(self) -> int:
        return self.patterns_by_severity.get("critical", 0)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# =============================================================================
# Interactive validation
# =============================================================================


@dataclass
class CodeExample:
    """Before/after sample illustrating one modernization."""
    before: str
    after: str
    description: str


@dataclass
class ModernizationSuggestion:
    """How to modernize one detected legacy construct.

    Attributes:
        pattern: The detected construct
        modern_replacement: The construct's source line as the transformer
            rewrites it; empty when no mechanical rewrite exists
        explanation: Why the modern form differs
        example: Before/after sample for the construct's type
        confidence: 0.1-1.0
        auto_fixable: Whether auto-modernization can rewrite it
    """
    pattern: LegacyPattern
    modern_replacement: str
    explanation: str
    example: CodeExample
    confidence: float
    auto_fixable: bool


@dataclass
class EducationalContent:
    """Background on one kind of legacy construct."""
    pattern: str
    title: str
    description: str
    why_modernize: str
    benefits: List[str] = field(default_factory=list)
    learn_more_url: Optional[str] = None


@dataclass
class InputValidationResult:
    """Verdict on a piece of user-supplied code.

    Attributes:
        is_valid: No critical legacy construct present
        has_legacy_patterns: Any legacy construct present
        patterns: Detected constructs in source order
        suggestions: One suggestion per detected construct
        educational_content: One entry per distinct construct type
        validation_time_ms: Wall time spent validating
        confidence: Mean detection confidence, 1.0 when nothing was found
    """
    is_valid: bool
    has_legacy_patterns: bool
    patterns: List[LegacyPattern] = field(default_factory=list)
    suggestions: List[ModernizationSuggestion] = field(default_factory=list)
    educational_content: List[EducationalContent] = field(default_factory=list)
    validation_time_ms: float = 0.0
    confidence: float = 1.0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class ModernizationResult:
    """Outcome of auto-modernizing a piece of code.

    Attributes:
        original_code: Code as supplied
        modernized_code: Code after the selected passes (and comments)
        transformations_applied: One entry per pass that changed the code
        confidence: Share of detected constructs that were fixed, at least 0.1
        requires_manual_review: Legacy constructs remain or the result is rejected
        warnings: One entry per construct left for manual review
    """
    original_code: str
    modernized_code: str
    transformations_applied: List[str] = field(default_factory=list)
    confidence: float = 1.0
    requires_manual_review: bool = False
    warnings: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# =============================================================================
# Templates and migration runs
# =============================================================================


@dataclass
class Template:
    """A named, reusable source sample from a template store."""
    id: str
    name: str
    description: str
    category: str
    tags: List[str]
    code: str
    author: str = ""
    downloads: int = 0
    featured: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Template":
        return cls(
            id=str(data["id"]),
            name=data.get("name", str(data["id"])),
            description=data.get("description", ""),
            category=data.get("category", ""),
            tags=list(data.get("tags") or []),
            code=data.get("code", ""),
            author=data.get("author", ""),
            downloads=int(data.get("downloads", 0)),
            featured=bool(data.get("featured", False)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class TransformationNote:
    """A construct the transformer found but could not rewrite safely."""
    line: int
    message: str


@dataclass
class TransformationResult:
    """Output of a full transformer run.

    Attributes:
        code: Rewritten code
        substitutions: Total number of substitutions
        substitutions_by_pass: Substitutions keyed by pass category
        notes: Constructs that need manual migration
    """
    code: str
    substitutions: int
    substitutions_by_pass: Dict[str, int] = field(default_factory=dict)
    notes: List[TransformationNote] = field(default_factory=list)

    @property
    def changed_passes(self) -> List[str]:
        return [name for name, count in self.substitutions_by_pass.items() if count > 0]


@dataclass
class MigrationError:
    """An error recorded during a run."""
    file: str
    message: str
    category: str
    severity: str = "error"
    line: Optional[int] = None
    column: Optional[int] = None


@dataclass
class MigrationWarning:
    """A warning recorded during a run."""
    file: str
    message: str
    line: Optional[int] = None
    suggestion: Optional[str] = None


@dataclass
class MigrationStatistics:
    """Counters for one migration run."""
    total_files_processed: int = 0
    successful_migrations: int = 0
    failed_migrations: int = 0
    transformations_applied: int = 0
    lines_of_code_migrated: int = 0
    skipped_templates: int = 0


@dataclass
class TemplateMigrationResult:
    """Per-template outcome.

    Attributes:
        template_id: Id of the processed template
        original_template: Template as supplied
        migrated_template: Accepted rewrite, or the original on failure/skip
        needed_migration: Whether any legacy pattern was present
        success: Rewrite accepted (always True for already-modern items)
        transformations_applied: Names of transformations that changed the code
        substitutions: Number of substitutions in the accepted rewrite
        validation_result: Verdict on the rewritten code, when validated
        error: Failure reason, when the rewrite was rejected
        notes: Constructs left for manual migration
    """
    template_id: str
    original_template: Template
    migrated_template: Template
    needed_migration: bool
    success: bool
    transformations_applied: List[str] = field(default_factory=list)
    substitutions: int = 0
    validation_result: Optional[ValidationResult] = None
    error: Optional[str] = None
    notes: List[TransformationNote] = field(default_factory=list)


@dataclass
class MigrationRunResult:
    """Result of processing a template corpus.

    Attributes:
        backups: Originals of the templates whose rewrite was accepted, in
            corpus order; empty unless the registry keeps backups
    """
    success: bool
    migrated_templates: List[Template] = field(default_factory=list)
    results: List[TemplateMigrationResult] = field(default_factory=list)
    statistics: MigrationStatistics = field(default_factory=MigrationStatistics)
    errors: List[MigrationError] = field(default_factory=list)
    warnings: List[MigrationWarning] = field(default_factory=list)
    cancelled: bool = False
    backups: List[Template] = field(default_factory=list)

    @property
    def migrated_files(self) -> List[str]:
        """Ids of templates whose code was rewritten."""
        return [r.template_id for r in self.results if r.needed_migration and r.success]


@dataclass
class MigrationReport:
    """Summary of a finished run."""
    timestamp: str
    duration_ms: int
    result: MigrationRunResult
    summary: str
    recommendations: List[str] = field(default_factory=list)
