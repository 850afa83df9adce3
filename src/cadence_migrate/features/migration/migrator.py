"""Template migrator.

Rewrites one template at a time: detect legacy syntax, transform, check
the rewrite and only then annotate the metadata. A rewrite that fails the
check is never swapped in; the caller gets the original back together with
the reason.
"""
import dataclasses
import re
from typing import Any, Dict, List, Optional

from cadence_migrate.constants import MigrationDefaults, RuleCategory
from cadence_migrate.core.logging import get_logger
from cadence_migrate.features.rules.registry import RuleRegistry
from cadence_migrate.features.transform.transformer import SyntaxTransformer
from cadence_migrate.features.validation.syntax import SyntaxValidator
from cadence_migrate.models.migration import Template, TemplateMigrationResult, ValidationResult
from cadence_migrate.utils.lexer import strip_comments_and_strings

logger = get_logger(__name__)

# Pass category -> name reported in TemplateMigrationResult.transformations_applied
TRANSFORMATION_NAMES = {
    RuleCategory.ACCESS_MODIFIER: "access-modifier-transformation",
    RuleCategory.INTERFACE: "interface-conformance-transformation",
    RuleCategory.STORAGE: "storage-api-transformation",
    RuleCategory.FUNCTION: "function-signature-transformation",
    RuleCategory.IMPORT: "import-statement-transformation",
}

_LEGACY_LABELS = [
    "pub keyword usage",
    "pub(set) keyword usage",
    "comma-separated interface conformance",
    "legacy storage API usage",
    "legacy capability API usage",
]


class TemplateMigrator:
    """Migrates individual templates to the modern dialect."""

    def __init__(self, registry: Optional[RuleRegistry] = None, transformer: Optional[SyntaxTransformer] = None):
        self.registry = registry or RuleRegistry()
        self.transformer = transformer or SyntaxTransformer(self.registry)
        self.syntax_validator = SyntaxValidator()
        self._needs_migration = [re.compile(p) for p in self.registry.needs_migration_patterns]

    def needs_migration(self, template: Template) -> bool:
        """True when any needs-migration pattern matches the template's code."""
        stripped = strip_comments_and_strings(template.code)
        return any(p.search(stripped) for p in self._needs_migration)

    def migrate_template(self, template: Template) -> Template:
        """Return the migrated template, or ``template`` itself when no
        migration was needed or the rewrite was rejected."""
        return self.migrate_template_with_result(template).migrated_template

    def migrate_template_with_result(self, template: Template) -> TemplateMigrationResult:
        """Migrate ``template`` and describe what happened.

        Args:
            template: Template to migrate

        Returns:
            TemplateMigrationResult; on rejection migrated_template is the
            original and error carries the reason
        """
        if not self.needs_migration(template):
            logger.debug("template_already_modern", template_id=template.id)
            return TemplateMigrationResult(
                template_id=template.id,
                original_template=template,
                migrated_template=template,
                needed_migration=False,
                success=True,
            )

        logger.info("template_migration_started", template_id=template.id, name=template.name)
        transformed = self.transformer.transform(template.code)
        candidate = dataclasses.replace(template, code=transformed.code)
        applied = [TRANSFORMATION_NAMES.get(name, name) for name in transformed.changed_passes]

        validation: Optional[ValidationResult] = None
        if self.registry.get_config().validate_after_migration:
            validation = self.validate_template(candidate)
            if not validation.is_valid:
                logger.warning("template_migration_rejected", template_id=template.id, errors=validation.errors)
                return TemplateMigrationResult(
                    template_id=template.id,
                    original_template=template,
                    migrated_template=template,
                    needed_migration=True,
                    success=False,
                    transformations_applied=applied,
                    substitutions=transformed.substitutions,
                    validation_result=validation,
                    error="; ".join(validation.errors),
                    notes=transformed.notes,
                )

        migrated = self.update_template_metadata(candidate)
        logger.info(
            "template_migration_completed",
            template_id=template.id,
            substitutions=transformed.substitutions,
            transformations=applied,
            manual_steps=len(transformed.notes),
        )
        return TemplateMigrationResult(
            template_id=template.id,
            original_template=template,
            migrated_template=migrated,
            needed_migration=True,
            success=True,
            transformations_applied=applied,
            substitutions=transformed.substitutions,
            validation_result=validation,
            notes=transformed.notes,
        )

    def validate_template(self, template: Template) -> ValidationResult:
        """Check a (migrated) template.

        Leftover legacy syntax and bracket errors fail the template;
        missing modern idioms are reported as warnings only.
        """
        stripped = strip_comments_and_strings(template.code)
        errors: List[str] = []

        for pattern, label in zip(self._needs_migration, _LEGACY_LABELS):
            if pattern.search(stripped):
                errors.append(f"Legacy syntax found: {label}")

        errors.extend(issue.format() for issue in self.syntax_validator.check_brackets(stripped))

        warnings = _modern_pattern_suggestions(stripped)
        is_valid = not errors
        logger.debug("template_validated", template_id=template.id, is_valid=is_valid, errors=len(errors), warnings=len(warnings))
        return ValidationResult(is_valid=is_valid, errors=errors, warnings=warnings, compilation_success=is_valid)

    def update_template_metadata(self, template: Template) -> Template:
        """Tag the template as modern and note it in the description, once."""
        tags = list(template.tags)
        if MigrationDefaults.MODERN_TAG not in tags:
            tags.append(MigrationDefaults.MODERN_TAG)

        description = template.description
        if MigrationDefaults.MODERN_TAG.lower() not in description.lower():
            description = f"{description}{MigrationDefaults.DESCRIPTION_SUFFIX}"

        return dataclasses.replace(template, tags=tags, description=description)

    def get_transformations_applied(self, original_code: str, migrated_code: str) -> List[str]:
        """Names of the transformation passes that changed ``original_code``.

        Each pass is replayed on the original in order and compared
        before/after, so only passes that actually changed text are named.
        ``migrated_code`` equal to the original yields an empty list.
        """
        if original_code == migrated_code:
            return []
        return [TRANSFORMATION_NAMES[name] for name in self.transformer.transform(original_code).changed_passes]

    @staticmethod
    def get_template_migration_stats(original: Template, migrated: Template) -> Dict[str, Any]:
        original_lines = len(original.code.split("\n"))
        migrated_lines = len(migrated.code.split("\n"))
        return {
            "template_id": original.id,
            "template_name": original.name,
            "original_lines": original_lines,
            "migrated_lines": migrated_lines,
            "lines_changed": abs(migrated_lines - original_lines),
            "has_changes": original.code != migrated.code,
            "original_size": len(original.code),
            "migrated_size": len(migrated.code),
        }


def _modern_pattern_suggestions(stripped: str) -> List[str]:
    suggestions = []
    if "access(" not in stripped:
        suggestions.append("Consider using explicit access modifiers like access(all)")
    if "account.storage" in stripped and "account.capabilities" not in stripped:
        suggestions.append("Consider using capability-based access patterns where appropriate")
    if "fun get" in stripped and "view fun" not in stripped:
        suggestions.append("Consider adding view modifier to getter functions")
    return suggestions
