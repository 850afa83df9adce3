"""Pass/fail validation of Cadence code.

Combines the legacy pattern catalog with the multi-pass syntax validator
into a flat ValidationResult, and provides the fast rejection check used
before any rewritten code is accepted.
"""
import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from cadence_migrate.core.logging import get_logger
from cadence_migrate.features.rules.patterns import (
    CRITICAL_REJECTION_PATTERNS,
    GENERIC_PANIC_PATTERN,
    LEGACY_VALIDATION_PATTERNS,
)
from cadence_migrate.features.validation.syntax import SyntaxValidator
from cadence_migrate.models.migration import (
    CodeLocation,
    RejectionResult,
    SyntaxValidationResult,
    ValidationResult,
    format_diagnostic,
)
from cadence_migrate.utils.lexer import (
    LITERAL_COMMENT,
    find_literal_spans,
    in_spans,
    line_starts,
    offset_to_position,
    strip_comments_and_strings,
)

logger = get_logger(__name__)

_PUB_KEYWORD_RE = re.compile(r"\bpub(?:\s+|\(set\))")
_PANIC_RE = re.compile(GENERIC_PANIC_PATTERN)


class CodeValidator:
    """Validates code against the modern dialect.

    Args:
        strict_mode: Treat warnings as failures
        custom_patterns: Extra legacy patterns, each a dict with pattern,
            message, severity ("error" or "warning") and optional suggestion
    """

    def __init__(self, strict_mode: bool = False, custom_patterns: Optional[List[Dict[str, str]]] = None):
        self.strict_mode = strict_mode
        self.custom_patterns = list(custom_patterns or [])
        self.syntax_validator = SyntaxValidator()

    def validate_code(
        self,
        code: str,
        strict_mode: Optional[bool] = None,
        custom_patterns: Optional[List[Dict[str, str]]] = None,
    ) -> ValidationResult:
        """Validate ``code``.

        Legacy pattern errors, bracket/statement errors and blocking
        structure, function and event issues all land in ``errors``;
        style warnings and non-blocking structure issues in ``warnings``.

        Args:
            code: Cadence source
            strict_mode: Overrides the validator's strict_mode for this call
            custom_patterns: Extra legacy patterns for this call, checked
                after the validator's own

        Returns:
            ValidationResult; is_valid is False when any error is present,
            or any warning in strict mode
        """
        strict = self.strict_mode if strict_mode is None else strict_mode
        legacy_errors, legacy_warnings = self._check_legacy_patterns(code, custom_patterns)
        syntax = self.syntax_validator.validate_syntax(code)

        errors = legacy_errors + _syntax_errors(syntax)
        warnings = legacy_warnings + _syntax_warnings(syntax)

        is_valid = not errors and (not strict or not warnings)
        logger.debug("code_validated", is_valid=is_valid, errors=len(errors), warnings=len(warnings), strict=strict)

        return ValidationResult(is_valid=is_valid, errors=errors, warnings=warnings, compilation_success=is_valid)

    def validate_syntax(self, code: str) -> SyntaxValidationResult:
        """Return the decomposed diagnostics of the syntax validator."""
        return self.syntax_validator.validate_syntax(code)

    def should_reject_code(self, code: str) -> RejectionResult:
        """Fast check for critical legacy constructs.

        Returns:
            RejectionResult naming the first critical construct found
        """
        stripped = strip_comments_and_strings(code)
        for pattern, reason in CRITICAL_REJECTION_PATTERNS:
            if re.search(pattern, stripped):
                return RejectionResult(should_reject=True, reason=reason)
        return RejectionResult(should_reject=False)

    def contains_legacy_pub_keywords(self, code: str) -> bool:
        return bool(_PUB_KEYWORD_RE.search(strip_comments_and_strings(code)))

    def analyze_legacy_patterns(self, code: str) -> Dict[str, Any]:
        """Summarize the legacy constructs present in ``code``."""
        errors, warnings = self._check_legacy_patterns(code)
        return {
            "has_legacy_patterns": bool(errors or warnings),
            "critical_issues": len(errors),
            "warnings": len(warnings),
            "patterns": errors + warnings,
        }

    def generate_fix_suggestions(self, code: str) -> List[str]:
        """Distinct fix hints for the legacy constructs in ``code``, in catalog order."""
        stripped = strip_comments_and_strings(code)
        suggestions: List[str] = []
        for entry in self._patterns():
            suggestion = entry.get("suggestion")
            if suggestion and suggestion not in suggestions and re.search(entry["pattern"], stripped):
                suggestions.append(suggestion)
        return suggestions

    def generate_validation_report(self, code: str) -> Dict[str, Any]:
        """Full validation report with a 0-100 compliance score.

        The score starts at 100 and loses 20 per error, 5 per warning and 15
        per critical legacy construct, floored at 0.
        """
        validation = self.validate_code(code)
        analysis = self.analyze_legacy_patterns(code)
        rejection = self.should_reject_code(code)

        score = 100 - 20 * len(validation.errors) - 5 * len(validation.warnings) - 15 * analysis["critical_issues"]

        return {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "code_metrics": {
                "total_lines": len(code.split("\n")),
                "non_empty_lines": sum(1 for line in code.split("\n") if line.strip()),
                "has_content": bool(code.strip()),
            },
            "validation": validation.to_dict(),
            "analysis": analysis,
            "rejection": {"should_reject": rejection.should_reject, "reason": rejection.reason},
            "suggestions": self.generate_fix_suggestions(code),
            "compliance_score": max(0, score),
        }

    # -------------------------------------------------------------------------
    # Legacy pattern matching
    # -------------------------------------------------------------------------

    def _patterns(self, extra: Optional[List[Dict[str, str]]] = None) -> List[Dict[str, str]]:
        return LEGACY_VALIDATION_PATTERNS + self.custom_patterns + list(extra or [])

    def _check_legacy_patterns(self, code: str, extra: Optional[List[Dict[str, str]]] = None):
        errors: List[str] = []
        warnings: List[str] = []
        stripped_lines = strip_comments_and_strings(code).split("\n")

        for entry in self._patterns(extra):
            pattern = re.compile(entry["pattern"])
            target = errors if entry.get("severity", "error") == "error" else warnings
            for index, line in enumerate(stripped_lines):
                for match in pattern.finditer(line):
                    location = CodeLocation(index + 1, match.start() + 1, len(match.group(0)))
                    target.append(format_diagnostic(location, entry["message"], entry.get("suggestion")))

        spans = find_literal_spans(code)
        comments = [s for s in spans if s[2] == LITERAL_COMMENT]
        starts = line_starts(code)
        for match in _PANIC_RE.finditer(code):
            if in_spans(comments, match.start()):
                continue
            line, column = offset_to_position(starts, match.start())
            warnings.append(
                format_diagnostic(
                    CodeLocation(line, column, len(match.group(0))),
                    "Generic panic message detected",
                    "Use descriptive error messages in panic statements",
                )
            )

        return errors, warnings


def _syntax_errors(syntax: SyntaxValidationResult) -> List[str]:
    errors = [e.format() for e in syntax.errors]
    errors.extend(i.format() for i in syntax.structure_issues if i.severity == "error")
    errors.extend(i.format() for i in syntax.function_issues)
    errors.extend(i.format() for i in syntax.event_issues)
    return errors


def _syntax_warnings(syntax: SyntaxValidationResult) -> List[str]:
    warnings = [w.format() for w in syntax.warnings]
    warnings.extend(i.format() for i in syntax.structure_issues if i.severity != "error")
    return warnings
