"""Unit tests for TemplateMigrator."""

import pytest

from cadence_migrate.features.migration.migrator import TemplateMigrator
from cadence_migrate.features.rules.registry import RuleRegistry

from conftest import LEGACY_CONTRACT, MODERN_CONTRACT, make_template


@pytest.fixture
def migrator() -> TemplateMigrator:
    return TemplateMigrator()


class TestNeedsMigration:
    """Tests for needs_migration."""

    @pytest.mark.parametrize(
        "code",
        [
            "pub fun a() {}",
            "pub(set) var x: Int",
            "resource R: A, B {}",
            "account.save(<-r, to: /storage/r)",
            "let c = account.getCapability<&R>(/public/r)",
        ],
    )
    def test_legacy_code(self, migrator, code) -> None:
        """Test each needs-migration pattern triggers migration"""
        assert migrator.needs_migration(make_template("t", code)) is True

    def test_modern_code(self, migrator) -> None:
        assert migrator.needs_migration(make_template("t", MODERN_CONTRACT)) is False

    def test_legacy_text_only_in_comments(self, migrator) -> None:
        """Test legacy text in comments and strings is ignored"""
        template = make_template("t", '// pub fun old() {}\naccess(all) fun f(): String { return "pub var" }')
        assert migrator.needs_migration(template) is False


class TestMigrateTemplate:
    """Tests for migrate_template and migrate_template_with_result."""

    def test_legacy_template_migrated(self, migrator) -> None:
        """Test a legacy contract is rewritten and tagged"""
        template = make_template("fungible", LEGACY_CONTRACT)
        result = migrator.migrate_template_with_result(template)

        assert result.success is True
        assert result.needed_migration is True
        assert result.substitutions == 6
        assert result.transformations_applied == [
            "access-modifier-transformation",
            "interface-conformance-transformation",
            "storage-api-transformation",
        ]
        migrated = result.migrated_template
        assert "pub " not in migrated.code
        assert "resource Vault: Provider & Receiver {" in migrated.code
        assert "self.account.storage.save(" in migrated.code
        assert migrated.tags == ["flow", "Cadence 1.0"]
        assert migrated.description == "Description of fungible (Updated for Cadence 1.0 compatibility)"
        assert result.original_template is template
        assert template.code == LEGACY_CONTRACT

    def test_capability_suggestion_warning(self, migrator) -> None:
        result = migrator.migrate_template_with_result(make_template("fungible", LEGACY_CONTRACT))
        assert result.validation_result.is_valid is True
        assert result.validation_result.warnings == ["Consider using capability-based access patterns where appropriate"]

    def test_modern_template_returned_unchanged(self, migrator) -> None:
        """Test already-modern templates are returned as-is"""
        template = make_template("counter", MODERN_CONTRACT)
        assert migrator.migrate_template(template) is template

        result = migrator.migrate_template_with_result(template)
        assert result.needed_migration is False
        assert result.success is True
        assert result.substitutions == 0

    def test_rejected_rewrite_keeps_original(self, migrator) -> None:
        """Test a rewrite that fails validation is never swapped in"""
        template = make_template("broken", "pub fun foo() {")
        result = migrator.migrate_template_with_result(template)

        assert result.success is False
        assert result.migrated_template is template
        assert result.migrated_template.code == "pub fun foo() {"
        assert "Unclosed bracket '{'" in result.error
        assert result.validation_result.is_valid is False

    def test_validation_can_be_disabled(self) -> None:
        """Test validate_after_migration=False accepts the raw rewrite"""
        migrator = TemplateMigrator(RuleRegistry(validate_after_migration=False))
        result = migrator.migrate_template_with_result(make_template("broken", "pub fun foo() {"))
        assert result.success is True
        assert result.validation_result is None
        assert result.migrated_template.code == "access(all) fun foo() {"

    def test_manual_migration_notes_carried(self, migrator) -> None:
        code = "pub fun setup(account: AuthAccount) {\n    account.link<&V>(/public/v, target: /storage/v)\n}"
        result = migrator.migrate_template_with_result(make_template("t", code))
        assert result.success is True
        assert [note.line for note in result.notes] == [2]

    def test_migrating_twice_is_stable(self, migrator) -> None:
        once = migrator.migrate_template(make_template("fungible", LEGACY_CONTRACT))
        assert migrator.migrate_template(once) is once


class TestValidateTemplate:
    """Tests for validate_template."""

    def test_leftover_legacy_syntax(self, migrator) -> None:
        """Test leftover legacy syntax fails the template"""
        result = migrator.validate_template(make_template("t", "pub var x: Int"))
        assert result.is_valid is False
        assert "Legacy syntax found: pub keyword usage" in result.errors

    def test_bracket_error(self, migrator) -> None:
        result = migrator.validate_template(make_template("t", "access(all) fun f() {"))
        assert result.is_valid is False
        assert any("Unclosed bracket" in e for e in result.errors)

    def test_modern_idiom_suggestions_are_warnings(self, migrator) -> None:
        """Test missing modern idioms only produce warnings"""
        result = migrator.validate_template(make_template("t", "fun getValue(): Int { return 1 }"))
        assert result.is_valid is True
        assert result.warnings == [
            "Consider using explicit access modifiers like access(all)",
            "Consider adding view modifier to getter functions",
        ]

    def test_modern_contract(self, migrator) -> None:
        result = migrator.validate_template(make_template("t", MODERN_CONTRACT))
        assert result.is_valid is True
        assert result.errors == []
        assert result.warnings == []


class TestMetadataAndStats:
    """Tests for update_template_metadata, get_transformations_applied and stats."""

    def test_metadata_applied_once(self, migrator) -> None:
        """Test tag and description suffix are not duplicated"""
        template = make_template("t", MODERN_CONTRACT)
        once = migrator.update_template_metadata(template)
        twice = migrator.update_template_metadata(once)
        assert twice.tags == ["flow", "Cadence 1.0"]
        assert twice.description == "Description of t (Updated for Cadence 1.0 compatibility)"
        assert template.tags == ["flow"]

    def test_description_already_mentioning_version(self, migrator) -> None:
        template = make_template("t", MODERN_CONTRACT, description="Works with Cadence 1.0")
        assert migrator.update_template_metadata(template).description == "Works with Cadence 1.0"

    def test_get_transformations_applied(self, migrator) -> None:
        """Test only passes that changed the text are named"""
        original = "pub fun getBalance(): UFix64 { return 1.0 }"
        migrated = migrator.migrate_template(make_template("t", original)).code
        assert migrator.get_transformations_applied(original, migrated) == [
            "access-modifier-transformation",
            "function-signature-transformation",
        ]
        assert migrator.get_transformations_applied(original, original) == []

    def test_template_migration_stats(self, migrator) -> None:
        original = make_template("t", "pub var a: Int\npub var b: Int")
        migrated = migrator.migrate_template(original)
        stats = TemplateMigrator.get_template_migration_stats(original, migrated)
        assert stats["template_id"] == "t"
        assert stats["original_lines"] == stats["migrated_lines"] == 2
        assert stats["has_changes"] is True
        assert stats["migrated_size"] > stats["original_size"]
