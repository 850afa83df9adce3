"""Syntax transformer for legacy Cadence code.

Applies the registry's transformation rules in a fixed pass order:

1. access-modifier  (pub(set) before pub)
2. interface        (comma-separated conformance -> &)
3. storage          (account.save/load/borrow/copy -> account.storage.*)
4. function         (view modifier for getter-like functions)
5. import           (no built-in rewrites; caller rules only)

Every pass is idempotent on modern code and skips matches inside comments
and string literals unless the registry disables preserve_comments.
"""
import re
from typing import Dict, List, Optional, Tuple

from cadence_migrate.constants import RuleCategory
from cadence_migrate.core.logging import get_logger
from cadence_migrate.features.rules.patterns import LEGACY_LINK
from cadence_migrate.features.rules.registry import RuleRegistry
from cadence_migrate.models.migration import TransformationNote, TransformationResult, TransformationRule
from cadence_migrate.utils.lexer import find_literal_spans, in_spans, line_starts, offset_to_position, sub_outside_literals

logger = get_logger(__name__)

_LINK_RE = re.compile(LEGACY_LINK)


class SyntaxTransformer:
    """Rewrites legacy Cadence syntax to the modern dialect."""

    def __init__(self, registry: Optional[RuleRegistry] = None):
        self.registry = registry or RuleRegistry()

    # -------------------------------------------------------------------------
    # Individual passes
    # -------------------------------------------------------------------------

    def transform_access_modifiers(self, code: str) -> Tuple[str, int]:
        """Rewrite pub / pub(set) declarations to access(all)."""
        return self._apply_category(code, RuleCategory.ACCESS_MODIFIER)

    def transform_interface_conformance(self, code: str) -> Tuple[str, int]:
        """Rewrite `resource R: A, B {` to `resource R: A & B {`.

        Each conformance list is rewritten whole by one substitution, so the
        count is the number of lists rewritten.
        """
        return self._apply_category(code, RuleCategory.INTERFACE)

    def transform_storage_api(self, code: str) -> Tuple[str, int]:
        """Move flat account storage calls under account.storage / account.capabilities.

        account.link() has no mechanical replacement and is left in place;
        see find_manual_migrations.
        """
        return self._apply_category(code, RuleCategory.STORAGE)

    def transform_function_signatures(self, code: str) -> Tuple[str, int]:
        """Add the view modifier to getter-like functions that declare a return type."""
        return self._apply_category(code, RuleCategory.FUNCTION)

    def transform_import_statements(self, code: str) -> Tuple[str, int]:
        """Apply caller-supplied import rules; a no-op with the default rule set."""
        return self._apply_category(code, RuleCategory.IMPORT)

    # -------------------------------------------------------------------------
    # Full pipeline
    # -------------------------------------------------------------------------

    def transform(self, code: str) -> TransformationResult:
        """Run every pass in order.

        Args:
            code: Cadence source

        Returns:
            TransformationResult with the rewritten code, per-pass counts and
            notes about constructs needing manual migration
        """
        passes = [
            (RuleCategory.ACCESS_MODIFIER, self.transform_access_modifiers),
            (RuleCategory.INTERFACE, self.transform_interface_conformance),
            (RuleCategory.STORAGE, self.transform_storage_api),
            (RuleCategory.FUNCTION, self.transform_function_signatures),
            (RuleCategory.IMPORT, self.transform_import_statements),
        ]

        notes = self.find_manual_migrations(code)
        counts: Dict[str, int] = {}
        current = code
        for name, apply_pass in passes:
            current, counts[name] = apply_pass(current)

        total = sum(counts.values())
        logger.debug("transform_completed", substitutions=total, by_pass=counts, manual_steps=len(notes))
        return TransformationResult(code=current, substitutions=total, substitutions_by_pass=counts, notes=notes)

    def transform_all(self, code: str) -> str:
        """Return ``code`` rewritten by every pass."""
        return self.transform(code).code

    def find_manual_migrations(self, code: str) -> List[TransformationNote]:
        """Locate legacy calls that cannot be rewritten mechanically."""
        spans = find_literal_spans(code)
        starts = line_starts(code)
        notes = []
        for match in _LINK_RE.finditer(code):
            if in_spans(spans, match.start()):
                continue
            line, _ = offset_to_position(starts, match.start())
            notes.append(
                TransformationNote(
                    line=line,
                    message="account.link() requires manual migration to capability controllers "
                    "(account.capabilities.storage.issue + account.capabilities.publish)",
                )
            )
        for note in notes:
            logger.warning("manual_migration_required", line=note.line)
        return notes

    @staticmethod
    def get_transformation_stats(original: str, transformed: str) -> Dict[str, object]:
        """Compare line counts before and after a rewrite."""
        original_lines = original.split("\n")
        transformed_lines = transformed.split("\n")
        changed = sum(1 for a, b in zip(original_lines, transformed_lines) if a != b)
        changed += abs(len(original_lines) - len(transformed_lines))
        return {
            "original_lines": len(original_lines),
            "transformed_lines": len(transformed_lines),
            "lines_changed": changed,
            "has_changes": original != transformed,
        }

    # -------------------------------------------------------------------------
    # Rule application
    # -------------------------------------------------------------------------

    def apply_pass(self, code: str, category: str) -> Tuple[str, int]:
        """Run the rules of one category only."""
        return self._apply_category(code, category)

    def _apply_category(self, code: str, category: str) -> Tuple[str, int]:
        config = self.registry.get_config()
        total = 0
        for rule in config.transformation_rules:
            if rule.category != category:
                continue
            code, count = _apply_rule(rule, code, skip_literals=config.preserve_comments)
            total += count
        return code, total


def _apply_rule(rule: TransformationRule, code: str, skip_literals: bool) -> Tuple[str, int]:
    """Apply one rule in a single left-to-right pass."""
    return sub_outside_literals(rule.compile(), rule.replacement, code, skip_literals=skip_literals)
