"""Interactive validation of user-supplied Cadence code.

Used on code typed or generated at request time rather than on a stored
corpus. validate_user_input answers "is this legacy code, and how would it
look modernized" with per-construct suggestions and background material.
auto_modernize_code rewrites what it safely can and lists what it left for
a person to review.

Detection reuses the production scanner's rules: matches inside comments
and string literals are ignored.
"""
import re
import time
from typing import Dict, List, Optional

from cadence_migrate.constants import RuleCategory, Severity
from cadence_migrate.core.logging import get_logger
from cadence_migrate.features.rules.patterns import LEGACY_LINK
from cadence_migrate.features.rules.registry import RuleRegistry
from cadence_migrate.features.scan.scanner import Scanner, SuppressionPolicy
from cadence_migrate.features.transform.transformer import SyntaxTransformer
from cadence_migrate.features.validation.validator import CodeValidator
from cadence_migrate.models.migration import (
    CodeExample,
    EducationalContent,
    InputValidationResult,
    LegacyPattern,
    ModernizationResult,
    ModernizationSuggestion,
)

logger = get_logger(__name__)

# Name reported as the file of every detected construct
INPUT_NAME = "input"

# Construct type -> transformer pass that rewrites it
FIX_PASSES: Dict[str, str] = {
    "pub-keyword": RuleCategory.ACCESS_MODIFIER,
    "interface-conformance": RuleCategory.INTERFACE,
    "storage-api": RuleCategory.STORAGE,
    "function-signature": RuleCategory.FUNCTION,
}

# Detection confidence per construct type
TYPE_CONFIDENCE: Dict[str, float] = {
    "pub-keyword": 0.95,
    "storage-api": 0.90,
    "interface-conformance": 0.85,
    "function-signature": 0.70,
}
DEFAULT_TYPE_CONFIDENCE = 0.60

SEVERITY_CONFIDENCE: Dict[str, float] = {Severity.CRITICAL: 0.9, Severity.WARNING: 0.7}
DEFAULT_SEVERITY_CONFIDENCE = 0.5

EXPLANATIONS: Dict[str, str] = {
    "pub-keyword": 'Cadence 1.0 uses explicit access control with access(all), access(self), etc. '
    'instead of the legacy "pub" keyword.',
    "storage-api": "The storage API has moved under account.storage and account.capabilities "
    "for better security and clarity.",
    "interface-conformance": "Interface conformance now uses ampersand (&) syntax instead of commas.",
    "function-signature": "Modern function signatures support view modifiers and entitlement-based access control.",
    "import-statement": "Import statements should use current contract addresses for the target network.",
}
DEFAULT_EXPLANATION = "This construct should be updated to Cadence 1.0 syntax."

EXAMPLES: Dict[str, CodeExample] = {
    "pub-keyword": CodeExample(
        before="pub fun getValue(): String {\n  return self.value\n}",
        after="access(all) fun getValue(): String {\n  return self.value\n}",
        description='Replace "pub" with explicit access control',
    ),
    "storage-api": CodeExample(
        before="account.save(<-vault, to: /storage/vault)",
        after="account.storage.save(<-vault, to: /storage/vault)",
        description="Use the modern storage API",
    ),
    "interface-conformance": CodeExample(
        before="resource Vault: Provider, Receiver, Balance {",
        after="resource Vault: Provider & Receiver & Balance {",
        description="Use ampersand syntax for interface conformance",
    ),
    "function-signature": CodeExample(
        before="access(all) fun getBalance(): UFix64 {\n  return self.balance\n}",
        after="access(all) view fun getBalance(): UFix64 {\n  return self.balance\n}",
        description="Add view modifier for read-only functions",
    ),
}

EDUCATION: Dict[str, EducationalContent] = {
    "pub-keyword": EducationalContent(
        pattern="pub-keyword",
        title="Access Control Modernization",
        description='Cadence 1.0 replaces the legacy "pub" keyword with explicit access modifiers.',
        why_modernize="Explicit access control states intent and allows entitlement-based permissions.",
        benefits=[
            "Explicit access control reduces security vulnerabilities",
            "Support for entitlement-based permissions",
            "Compatibility with current Flow tooling",
        ],
        learn_more_url="https://cadence-lang.org/docs/language/access-control",
    ),
    "storage-api": EducationalContent(
        pattern="storage-api",
        title="Storage API Modernization",
        description="Account storage and capabilities are reached through account.storage and account.capabilities.",
        why_modernize="Capability controllers give finer control over who can reach stored objects.",
        benefits=[
            "Capability-based security model",
            "Clearer API surface",
            "Capabilities can be issued and revoked individually",
        ],
        learn_more_url="https://cadence-lang.org/docs/language/capabilities",
    ),
    "interface-conformance": EducationalContent(
        pattern="interface-conformance",
        title="Interface Conformance Syntax",
        description="A type conforming to several interfaces joins them with &.",
        why_modernize="The ampersand form matches intersection types used elsewhere in the language.",
        benefits=["Clearer type composition", "Consistent with intersection types"],
    ),
    "function-signature": EducationalContent(
        pattern="function-signature",
        title="Function Signature Modernization",
        description="Functions that only read state can be declared view.",
        why_modernize="View functions cannot modify state, which the checker enforces.",
        benefits=["Read-only intent is checked", "View functions can be called from other view contexts"],
    ),
}

_LINK_RE = re.compile(LEGACY_LINK)


class RealtimeValidator:
    """Validates and modernizes user-supplied code.

    Args:
        registry: Rule registry for detection and rewriting
    """

    def __init__(self, registry: Optional[RuleRegistry] = None):
        self.registry = registry or RuleRegistry()
        self.scanner = Scanner(policy=SuppressionPolicy.DISCARD, registry=self.registry)
        self.code_validator = CodeValidator()

    def detect(self, code: str) -> List[LegacyPattern]:
        """Legacy constructs in ``code`` in source order."""
        findings, _ = self.scanner.scan_content(code, INPUT_NAME, is_cadence=True)
        return sorted(findings, key=lambda f: (f.location.line, f.location.column, f.type))

    def validate_user_input(self, code: str) -> InputValidationResult:
        """Check ``code`` for legacy constructs and suggest modern forms.

        Args:
            code: Cadence source

        Returns:
            InputValidationResult; is_valid is False when any critical
            construct is present
        """
        start = time.perf_counter()
        patterns = self.detect(code)
        suggestions = self.generate_modernization_suggestions(code, patterns)

        seen_types: List[str] = []
        for pattern in patterns:
            if pattern.type not in seen_types:
                seen_types.append(pattern.type)
        education = [EDUCATION[t] for t in seen_types if t in EDUCATION]

        elapsed_ms = (time.perf_counter() - start) * 1000
        result = InputValidationResult(
            is_valid=not any(p.severity == Severity.CRITICAL for p in patterns),
            has_legacy_patterns=bool(patterns),
            patterns=patterns,
            suggestions=suggestions,
            educational_content=education,
            validation_time_ms=round(elapsed_ms, 3),
            confidence=validation_confidence(patterns),
        )
        logger.debug(
            "user_input_validated",
            is_valid=result.is_valid,
            patterns=len(patterns),
            validation_time_ms=result.validation_time_ms,
        )
        return result

    def generate_modernization_suggestions(self, code: str, patterns: List[LegacyPattern]) -> List[ModernizationSuggestion]:
        """One suggestion per construct; the replacement is its line rewritten."""
        lines = code.split("\n")
        transformer = SyntaxTransformer(self.registry)
        suggestions = []
        for pattern in patterns:
            line = lines[pattern.location.line - 1]
            rewritten = transformer.transform_all(line)
            modern = rewritten.strip() if rewritten != line else ""
            fixable = is_auto_fixable(pattern)
            suggestions.append(
                ModernizationSuggestion(
                    pattern=pattern,
                    modern_replacement=modern,
                    explanation=EXPLANATIONS.get(pattern.type, DEFAULT_EXPLANATION),
                    example=EXAMPLES.get(pattern.type)
                    or CodeExample(before=pattern.pattern, after=modern, description=pattern.suggested_fix),
                    confidence=suggestion_confidence(pattern.severity, fixable),
                    auto_fixable=fixable,
                )
            )
        return suggestions

    def auto_modernize_code(
        self,
        code: str,
        auto_fix_critical: bool = True,
        auto_fix_warnings: bool = False,
        preserve_comments: bool = True,
        add_explanation_comments: bool = False,
    ) -> ModernizationResult:
        """Rewrite the constructs the selected severities allow.

        A transformer pass runs when at least one auto-fixable construct of
        an enabled severity needs it; the pass then rewrites every
        occurrence it covers. Constructs still present afterwards are listed
        in ``warnings``.

        Args:
            code: Cadence source
            auto_fix_critical: Fix critical constructs
            auto_fix_warnings: Fix warning-level constructs
            preserve_comments: Leave comments and string literals untouched
            add_explanation_comments: Put a ``// Modernized:`` line above
                every changed line

        Returns:
            ModernizationResult
        """
        enabled = set()
        if auto_fix_critical:
            enabled.add(Severity.CRITICAL)
        if auto_fix_warnings:
            enabled.add(Severity.WARNING)

        before = self.detect(code)
        passes = {FIX_PASSES[p.type] for p in before if p.severity in enabled and is_auto_fixable(p)}

        transformer = SyntaxTransformer(self.registry.copy(preserve_comments=preserve_comments))
        modernized = code
        applied: List[str] = []
        for category in RuleCategory.ALL:
            if category not in passes:
                continue
            modernized, count = transformer.apply_pass(modernized, category)
            if count:
                applied.append(f"{category} transformation: {count} substitution(s)")

        remaining = self.detect(modernized)
        warnings = [f"Manual review required: {p.description} at line {p.location.line}" for p in remaining]

        rejection = self.code_validator.should_reject_code(modernized)
        if rejection.should_reject:
            warnings.append(f"Modernized code is still rejected: {rejection.reason}")

        if add_explanation_comments and modernized != code:
            modernized = _add_explanation_comments(code, modernized, before)

        fixed = max(0, len(before) - len(remaining))
        result = ModernizationResult(
            original_code=code,
            modernized_code=modernized,
            transformations_applied=applied,
            confidence=modernization_confidence(fixed, len(remaining)),
            requires_manual_review=bool(remaining) or rejection.should_reject,
            warnings=warnings,
        )
        logger.info(
            "code_modernized",
            passes=sorted(passes),
            fixed=fixed,
            remaining=len(remaining),
            requires_manual_review=result.requires_manual_review,
        )
        return result


# =============================================================================
# Scoring
# =============================================================================


def is_auto_fixable(pattern: LegacyPattern) -> bool:
    """account.link has no mechanical rewrite; other typed constructs do."""
    if pattern.type not in FIX_PASSES:
        return False
    return not _LINK_RE.match(pattern.pattern)


def validation_confidence(patterns: List[LegacyPattern]) -> float:
    if not patterns:
        return 1.0
    scores = [TYPE_CONFIDENCE.get(p.type, DEFAULT_TYPE_CONFIDENCE) for p in patterns]
    return round(sum(scores) / len(scores), 2)


def suggestion_confidence(severity: str, auto_fixable: bool) -> float:
    base = SEVERITY_CONFIDENCE.get(severity, DEFAULT_SEVERITY_CONFIDENCE)
    adjusted = base + (0.1 if auto_fixable else -0.2)
    return round(max(0.1, min(1.0, adjusted)), 2)


def modernization_confidence(fixed: int, remaining: int) -> float:
    total = fixed + remaining
    if total == 0:
        return 1.0
    return round(max(0.1, fixed / total), 2)


def _add_explanation_comments(original: str, modernized: str, patterns: List[LegacyPattern]) -> str:
    """Insert a comment above each line the rewrite changed.

    The transformer never adds or removes lines, so original and modernized
    line numbers agree.
    """
    fixes: Dict[int, List[str]] = {}
    for pattern in patterns:
        notes = fixes.setdefault(pattern.location.line, [])
        if pattern.suggested_fix not in notes:
            notes.append(pattern.suggested_fix)

    output = []
    for number, (old, new) in enumerate(zip(original.split("\n"), modernized.split("\n")), start=1):
        if old != new:
            indent = new[: len(new) - len(new.lstrip())]
            note = "; ".join(fixes.get(number, [])) or "Updated to Cadence 1.0 syntax"
            output.append(f"{indent}// Modernized: {note}")
        output.append(new)
    return "\n".join(output)
