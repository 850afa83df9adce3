"""Rule registry for the migration engine.

The registry owns the ordered list of transformation rules (defaults first,
caller additions after) plus the run-level options that travel with them.
It also exposes the detection catalogs so the transformer, scanner and
validator draw from one source.
"""
import re
import threading
from typing import Any, Dict, Iterable, List, Optional

from cadence_migrate.constants import MigrationDefaults, RuleCategory
from cadence_migrate.core.exceptions import RuleValidationError
from cadence_migrate.core.logging import get_logger
from cadence_migrate.features.rules.patterns import (
    DEFAULT_TRANSFORMATION_RULES,
    DETECTION_PATTERNS,
    NEEDS_MIGRATION_PATTERNS,
)
from cadence_migrate.models.migration import ConfigValidationResult, MigrationConfig, TransformationRule

logger = get_logger(__name__)

_UPDATABLE_OPTIONS = ("target_cadence_version", "preserve_comments", "validate_after_migration", "backup_originals")


class RuleRegistry:
    """Ordered catalog of transformation rules and legacy detection patterns.

    Example:
        registry = RuleRegistry()
        registry.add_transformation_rule(TransformationRule(
            pattern=r"\\bpriv\\s+", replacement="access(self) ",
            description="Replace priv with access(self)", category="access-modifier",
        ))
        registry.ensure_valid()
    """

    def __init__(
        self,
        target_cadence_version: str = MigrationDefaults.TARGET_VERSION,
        transformation_rules: Optional[Iterable[TransformationRule]] = None,
        preserve_comments: bool = True,
        validate_after_migration: bool = True,
        backup_originals: bool = True,
    ):
        """Create a registry seeded with the default rules.

        Args:
            target_cadence_version: Dialect version the rewrite targets
            transformation_rules: Extra rules appended after the defaults
            preserve_comments: Leave comments and string literals untouched
            validate_after_migration: Re-validate rewritten code before accepting it
            backup_originals: Keep the original of every accepted rewrite
        """
        self._lock = threading.Lock()
        self._options: Dict[str, Any] = {
            "target_cadence_version": target_cadence_version,
            "preserve_comments": preserve_comments,
            "validate_after_migration": validate_after_migration,
            "backup_originals": backup_originals,
        }
        self._rules: List[TransformationRule] = list(DEFAULT_TRANSFORMATION_RULES)
        self._rules.extend(transformation_rules or [])

    # -------------------------------------------------------------------------
    # Configuration snapshot
    # -------------------------------------------------------------------------

    def get_config(self) -> MigrationConfig:
        """Return an immutable snapshot of options and rules."""
        with self._lock:
            return MigrationConfig(
                target_cadence_version=self._options["target_cadence_version"],
                preserve_comments=self._options["preserve_comments"],
                validate_after_migration=self._options["validate_after_migration"],
                backup_originals=self._options["backup_originals"],
                transformation_rules=tuple(self._rules),
            )

    def update_config(self, **changes: Any) -> MigrationConfig:
        """Update run-level options.

        Args:
            **changes: Any of target_cadence_version, preserve_comments,
                validate_after_migration, backup_originals

        Returns:
            The new snapshot

        Raises:
            ValueError: If an unknown option is given
        """
        unknown = sorted(set(changes) - set(_UPDATABLE_OPTIONS))
        if unknown:
            raise ValueError(f"Unknown configuration option(s): {', '.join(unknown)}")
        with self._lock:
            self._options.update(changes)
        logger.info("config_updated", options=sorted(changes))
        return self.get_config()

    def copy(self, **changes: Any) -> "RuleRegistry":
        """Independent registry with the same rules and the given option changes."""
        config = self.get_config()
        clone = RuleRegistry(
            target_cadence_version=config.target_cadence_version,
            preserve_comments=config.preserve_comments,
            validate_after_migration=config.validate_after_migration,
            backup_originals=config.backup_originals,
        )
        clone._rules = list(config.transformation_rules)
        if changes:
            clone.update_config(**changes)
        return clone

    # -------------------------------------------------------------------------
    # Rule management
    # -------------------------------------------------------------------------

    def add_transformation_rule(self, rule: TransformationRule) -> None:
        """Append a rule; it runs after existing rules of the same category."""
        with self._lock:
            self._rules.append(rule)
        logger.debug("rule_added", description=rule.description, category=rule.category)

    def remove_transformation_rule(self, description: str) -> int:
        """Remove every rule whose description matches exactly.

        Returns:
            Number of rules removed
        """
        with self._lock:
            before = len(self._rules)
            self._rules = [r for r in self._rules if r.description != description]
            removed = before - len(self._rules)
        logger.debug("rule_removed", description=description, removed=removed)
        return removed

    def get_transformation_rules_by_category(self, category: str) -> List[TransformationRule]:
        with self._lock:
            return [r for r in self._rules if r.category == category]

    # -------------------------------------------------------------------------
    # Validation
    # -------------------------------------------------------------------------

    def validate_config(self) -> ConfigValidationResult:
        """Check the registry for problems that would make a run untrustworthy.

        Every violation is reported, not just the first.

        Returns:
            ConfigValidationResult with is_valid and the list of errors
        """
        config = self.get_config()
        errors: List[str] = []

        if not str(config.target_cadence_version or "").strip():
            errors.append("Target Cadence version is required")

        if not config.transformation_rules:
            errors.append("At least one transformation rule is required")

        seen_descriptions: Dict[str, int] = {}
        for index, rule in enumerate(config.transformation_rules, start=1):
            errors.extend(_validate_rule(index, rule))
            if rule.description:
                if rule.description in seen_descriptions:
                    errors.append(
                        f"Transformation rule {index}: description duplicates rule "
                        f"{seen_descriptions[rule.description]} ('{rule.description}')"
                    )
                else:
                    seen_descriptions[rule.description] = index

        return ConfigValidationResult(is_valid=len(errors) == 0, errors=errors)

    def ensure_valid(self) -> MigrationConfig:
        """Validate and return the snapshot, or raise.

        Raises:
            RuleValidationError: If validate_config reports any violation
        """
        result = self.validate_config()
        if not result.is_valid:
            logger.error("rule_set_invalid", errors=result.errors)
            raise RuleValidationError(result.errors)
        return self.get_config()

    # -------------------------------------------------------------------------
    # Detection catalogs
    # -------------------------------------------------------------------------

    @property
    def detection_patterns(self) -> List[Dict[str, Any]]:
        """Legacy detection patterns applied by the scanner."""
        return [dict(p) for p in DETECTION_PATTERNS]

    @property
    def needs_migration_patterns(self) -> List[str]:
        return list(NEEDS_MIGRATION_PATTERNS)


def _validate_rule(index: int, rule: TransformationRule) -> List[str]:
    errors = []
    for attr in ("pattern", "replacement", "description", "category"):
        value = getattr(rule, attr, None)
        # An empty replacement is legitimate (deletion); a missing one is not
        if value is None or (attr != "replacement" and not str(value).strip()):
            errors.append(f"Transformation rule {index}: {attr} is required")

    if rule.category and rule.category not in RuleCategory.ALL:
        errors.append(f"Transformation rule {index}: category must be one of {', '.join(RuleCategory.ALL)}")

    if rule.pattern:
        try:
            re.compile(rule.pattern)
        except re.error as e:
            errors.append(f"Transformation rule {index}: pattern is not a valid regular expression ({e})")

    return errors
