"""Rule registry and legacy pattern catalog."""

from cadence_migrate.features.rules.patterns import (
    CRITICAL_REJECTION_PATTERNS,
    DEFAULT_TRANSFORMATION_RULES,
    DETECTION_PATTERNS,
    LEGACY_VALIDATION_PATTERNS,
    NEEDS_MIGRATION_PATTERNS,
)
from cadence_migrate.features.rules.registry import RuleRegistry

__all__ = [
    "RuleRegistry",
    "CRITICAL_REJECTION_PATTERNS",
    "DEFAULT_TRANSFORMATION_RULES",
    "DETECTION_PATTERNS",
    "LEGACY_VALIDATION_PATTERNS",
    "NEEDS_MIGRATION_PATTERNS",
]
