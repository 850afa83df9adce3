"""Catalog of legacy Cadence patterns.

Every regular expression the engine uses to recognise legacy syntax is
defined here once:

- rewrite patterns, wrapped into the registry's default TransformationRules
- detection patterns, applied by the scanner to whole files
- needs-migration patterns, the subset deciding whether a template is rewritten
- validation patterns, reported by validate_code as errors or warnings
- rejection patterns, the short list behind should_reject_code
"""
import re
from typing import Any, Dict, List, Tuple

from cadence_migrate.constants import Impact, RuleCategory, Severity
from cadence_migrate.models.migration import TransformationRule
from cadence_migrate.utils.lexer import legacy_keyword_regex

# =============================================================================
# Rewrite patterns
# =============================================================================

PUB_SET_DECLARATION = legacy_keyword_regex(r"pub\(set\)")
PUB_DECLARATION = legacy_keyword_regex("pub")

_IDENT = r"[A-Za-z_][\w.]*"
_HEAD = r"\b(?:resource|struct|contract)(?:\s+interface)?\s+[A-Za-z_]\w*\s*:\s*"

# Conformance list holding at least one comma. The leading run may only use
# "&", so the first comma splits the list in exactly one way.
_COMMA_LIST = rf"{_IDENT}(?:\s*&\s*{_IDENT})*\s*,\s*{_IDENT}(?:\s*[,&]\s*{_IDENT})*"

# Group 1 is the declaration head, group 2 the whole list. Only identifier
# lists directly followed by "{" qualify, so type-constraint forms such as
# "&{Receiver}" are never touched.
INTERFACE_CONFORMANCE = rf"({_HEAD})({_COMMA_LIST})(?=\s*\{{)"

# Full conformance list, used for detection
INTERFACE_LIST = rf"{_HEAD}{_COMMA_LIST}\s*\{{"

_LIST_SEPARATOR = re.compile(r"\s*[,&]\s*")

GETTER_WITHOUT_VIEW = (
    r"(\baccess\([^)\n]*\)[ \t]+)"
    r"(fun[ \t]+(?:get|read|check|is|has|can)(?:[A-Z0-9_]\w*)?[ \t]*\([^)]*\)[ \t]*:)"
)

LEGACY_LINK = r"\baccount\.link\s*(?:<[^>\n]*>\s*)?\("


def storage_call(name: str) -> str:
    """Regex source for a flat ``account.<name>`` call, typed or not.

    Only the ``account.<name>`` prefix is consumed; the type arguments or
    opening parenthesis that follow are a lookahead.
    """
    return rf"\baccount\.{name}\b(?=\s*[<(])"


def join_conformance_list(match: "re.Match[str]") -> str:
    """Rewrite a whole INTERFACE_CONFORMANCE match with ``&`` separators."""
    return match.group(1) + " & ".join(_LIST_SEPARATOR.split(match.group(2)))


DEFAULT_TRANSFORMATION_RULES: Tuple[TransformationRule, ...] = (
    TransformationRule(
        pattern=PUB_SET_DECLARATION,
        replacement="access(all) ",
        description="Replace pub(set) with access(all)",
        category=RuleCategory.ACCESS_MODIFIER,
    ),
    TransformationRule(
        pattern=PUB_DECLARATION,
        replacement="access(all) ",
        description="Replace pub with access(all)",
        category=RuleCategory.ACCESS_MODIFIER,
    ),
    TransformationRule(
        pattern=INTERFACE_CONFORMANCE,
        replacement=join_conformance_list,
        description="Replace comma-separated interface conformance with &",
        category=RuleCategory.INTERFACE,
    ),
    TransformationRule(
        pattern=storage_call("save"),
        replacement="account.storage.save",
        description="Replace account.save() with account.storage.save()",
        category=RuleCategory.STORAGE,
    ),
    TransformationRule(
        pattern=storage_call("load"),
        replacement="account.storage.load",
        description="Replace account.load() with account.storage.load()",
        category=RuleCategory.STORAGE,
    ),
    TransformationRule(
        pattern=storage_call("borrow"),
        replacement="account.storage.borrow",
        description="Replace account.borrow() with account.storage.borrow()",
        category=RuleCategory.STORAGE,
    ),
    TransformationRule(
        pattern=storage_call("copy"),
        replacement="account.storage.copy",
        description="Replace account.copy() with account.storage.copy()",
        category=RuleCategory.STORAGE,
    ),
    TransformationRule(
        pattern=r"\baccount\.getCapability\b",
        replacement="account.capabilities.get",
        description="Replace account.getCapability with account.capabilities.get",
        category=RuleCategory.STORAGE,
    ),
    TransformationRule(
        pattern=GETTER_WITHOUT_VIEW,
        replacement=r"\1view \2",
        description="Add view modifier to getter functions",
        category=RuleCategory.FUNCTION,
    ),
)

# =============================================================================
# Detection patterns (scanner)
# =============================================================================

DETECTION_PATTERNS: List[Dict[str, Any]] = [
    {
        "regex": PUB_DECLARATION,
        "type": "pub-keyword",
        "severity": Severity.CRITICAL,
        "description": "Legacy pub keyword found",
        "suggested_fix": "Replace with access(all) or appropriate access modifier",
        "impact": Impact.HIGH,
    },
    {
        "regex": PUB_SET_DECLARATION,
        "type": "pub-keyword",
        "severity": Severity.CRITICAL,
        "description": "Legacy pub(set) keyword found",
        "suggested_fix": "Replace with access(all) and implement setter restrictions",
        "impact": Impact.HIGH,
    },
    {
        "regex": storage_call("save"),
        "type": "storage-api",
        "severity": Severity.CRITICAL,
        "description": "Legacy account.save() found",
        "suggested_fix": "Replace with account.storage.save()",
        "impact": Impact.HIGH,
    },
    {
        "regex": LEGACY_LINK,
        "type": "storage-api",
        "severity": Severity.CRITICAL,
        "description": "Legacy account.link() found",
        "suggested_fix": "Replace with account.capabilities.storage.issue() + account.capabilities.publish()",
        "impact": Impact.HIGH,
    },
    {
        "regex": storage_call("borrow"),
        "type": "storage-api",
        "severity": Severity.CRITICAL,
        "description": "Legacy account.borrow() found",
        "suggested_fix": "Replace with account.storage.borrow()",
        "impact": Impact.HIGH,
    },
    {
        "regex": r"\baccount\.getCapability\b",
        "type": "storage-api",
        "severity": Severity.CRITICAL,
        "description": "Legacy account.getCapability() found",
        "suggested_fix": "Replace with account.capabilities.get()",
        "impact": Impact.HIGH,
    },
    {
        "regex": storage_call("load"),
        "type": "storage-api",
        "severity": Severity.WARNING,
        "description": "Legacy account.load() found",
        "suggested_fix": "Replace with account.storage.load()",
        "impact": Impact.MEDIUM,
    },
    {
        "regex": storage_call("copy"),
        "type": "storage-api",
        "severity": Severity.WARNING,
        "description": "Legacy account.copy() found",
        "suggested_fix": "Replace with account.storage.copy()",
        "impact": Impact.MEDIUM,
    },
    {
        "regex": INTERFACE_LIST,
        "type": "interface-conformance",
        "severity": Severity.WARNING,
        "description": "Legacy interface conformance syntax found",
        "suggested_fix": "Replace comma-separated interfaces with ampersand (&) syntax",
        "impact": Impact.MEDIUM,
    },
    {
        "regex": GETTER_WITHOUT_VIEW,
        "type": "function-signature",
        "severity": Severity.SUGGESTION,
        "description": "Getter function without view modifier",
        "suggested_fix": "Declare read-only getters as view functions",
        "impact": Impact.LOW,
    },
    {
        "regex": r"\bimport\s+[A-Z]\w*\s+from\s+0x[a-fA-F0-9]{16}\b",
        "type": "import-statement",
        "severity": Severity.SUGGESTION,
        "description": "Import statement with hardcoded address",
        "suggested_fix": "Verify import uses current Flow standard contract addresses",
        "impact": Impact.LOW,
    },
]

# Line-level markers of text that talks about legacy syntax instead of using it
DOCUMENTATION_LINE_MARKERS: List[str] = [
    r"expect\s*\(.*\)\s*\.\s*(?:not\s*\.\s*)?toContain",
    r"\bassert\w*\s*\(",
    r"\bconst\s+legacy\w*\s*=",
    r"Legacy.*found",
    r"Replace.*with",
    r"\|\s*`pub[^`]*`\s*\|",
]

# =============================================================================
# Needs-migration patterns (template migrator)
# =============================================================================

NEEDS_MIGRATION_PATTERNS: List[str] = [
    PUB_DECLARATION,
    PUB_SET_DECLARATION,
    INTERFACE_LIST,
    storage_call("(?:save|load|borrow|copy)"),
    r"\baccount\.getCapability\b",
]

# =============================================================================
# Validation patterns (validate_code)
# =============================================================================

LEGACY_VALIDATION_PATTERNS: List[Dict[str, str]] = [
    {
        "pattern": r"\bpub\s+",
        "message": 'Legacy "pub" keyword detected',
        "severity": "error",
        "suggestion": 'Use "access(all)" instead of "pub"',
    },
    {
        "pattern": r"\bpub\(set\)\s*",
        "message": 'Legacy "pub(set)" keyword detected',
        "severity": "error",
        "suggestion": 'Use "access(all)" with proper setter access control',
    },
    {
        "pattern": storage_call("(?:save|load)"),
        "message": "Legacy storage API detected",
        "severity": "error",
        "suggestion": 'Use "account.storage.save()" / "account.storage.load()" instead',
    },
    {
        "pattern": r"\baccount\.link\b",
        "message": "Legacy linking API detected",
        "severity": "error",
        "suggestion": "Use modern capability-based linking with account.capabilities",
    },
    {
        "pattern": r"\baccount\.borrow\b",
        "message": "Legacy borrow API detected",
        "severity": "error",
        "suggestion": 'Use "account.storage.borrow()" instead',
    },
    {
        "pattern": r"\baccount\.getCapability\b",
        "message": "Legacy capability API detected",
        "severity": "error",
        "suggestion": 'Use "account.capabilities.get()" instead',
    },
    {
        "pattern": INTERFACE_LIST,
        "message": "Legacy interface conformance syntax detected",
        "severity": "error",
        "suggestion": 'Use "&" to separate multiple interfaces (e.g., "Interface1 & Interface2")',
    },
    {
        "pattern": r"\bAuthAccount\b",
        "message": "AuthAccount type may be deprecated",
        "severity": "warning",
        "suggestion": "Consider using modern account access patterns",
    },
    {
        "pattern": r"\bPublicAccount\b",
        "message": "PublicAccount type may be deprecated",
        "severity": "warning",
        "suggestion": "Consider using modern account access patterns",
    },
    {
        "pattern": r"\.copy\(\)",
        "message": "Copy method usage detected",
        "severity": "warning",
        "suggestion": "Ensure copy semantics are appropriate for your use case",
    },
    {
        "pattern": r"\bimport\s+\w+\s+from\s+0x[a-fA-F0-9]+",
        "message": "Hardcoded contract address in import",
        "severity": "warning",
        "suggestion": "Consider using named imports for standard contracts",
    },
]

# Checked on raw code because the message text itself is what is judged
GENERIC_PANIC_PATTERN = r'panic\s*\(\s*"(?:error|failed|panic)?"\s*\)'

# =============================================================================
# Rejection patterns (should_reject_code)
# =============================================================================

CRITICAL_REJECTION_PATTERNS: List[Tuple[str, str]] = [
    (r"\bpub\s+", 'Contains legacy "pub" keyword'),
    (r"\bpub\(set\)", 'Contains legacy "pub(set)" keyword'),
    (storage_call("save"), "Uses legacy storage API"),
    (r"\baccount\.link\b", "Uses legacy linking API"),
    (r"\baccount\.borrow\b", "Uses legacy borrow API"),
]
