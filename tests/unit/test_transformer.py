"""Unit tests for the syntax transformer."""

import re

import pytest

from cadence_migrate.constants import RuleCategory
from cadence_migrate.features.rules.registry import RuleRegistry
from cadence_migrate.features.transform.transformer import SyntaxTransformer
from cadence_migrate.features.validation.validator import CodeValidator
from cadence_migrate.models.migration import TransformationRule
from cadence_migrate.utils.lexer import strip_comments_and_strings

LEGACY_SAMPLES = [
    "pub contract X { pub var v: Int }",
    "pub(set) var count: Int",
    "pub resource Vault: FungibleToken.Provider, FungibleToken.Receiver, Balance {\n}",
    "pub fun getBalance(): UFix64 {\n    return self.balance\n}",
    "let vault <- account.load<@Vault>(from: /storage/vault)\naccount.save(<-vault, to: /storage/vault)",
    "let cap = account.getCapability<&Vault{Receiver}>(/public/receiver)",
    "// pub fun commented() {}\npub event Deposit(amount: UFix64)",
    'pub fun greet(): String { return "pub var not code" }',
]

_LEGACY_DECLARATION = re.compile(r"\bpub(?:\(set\))?\s+(?:var|let|fun|resource|struct|contract|interface|event)\b")


def _paren_balance(code: str) -> int:
    return code.count("(") - code.count(")")


@pytest.fixture
def transformer() -> SyntaxTransformer:
    return SyntaxTransformer()


class TestAccessModifiers:
    """Tests for transform_access_modifiers."""

    def test_pub_declarations(self, transformer) -> None:
        code, count = transformer.transform_access_modifiers("pub contract X { pub var v: Int }")
        assert code == "access(all) contract X { access(all) var v: Int }"
        assert count == 2

    def test_pub_set_runs_before_pub(self, transformer) -> None:
        """Test the setter-qualified form is rewritten whole"""
        code, count = transformer.transform_access_modifiers("pub(set) var count: Int")
        assert code == "access(all) var count: Int"
        assert count == 1

    def test_identifiers_containing_pub_untouched(self, transformer) -> None:
        code = "let publicKey = publisher.key\nlet pubs: [String] = []"
        assert transformer.transform_access_modifiers(code) == (code, 0)

    def test_pub_not_followed_by_declaration_untouched(self, transformer) -> None:
        code = "let x = pub + 1"
        assert transformer.transform_access_modifiers(code) == (code, 0)


class TestInterfaceConformance:
    """Tests for transform_interface_conformance."""

    def test_two_interfaces(self, transformer) -> None:
        code, count = transformer.transform_interface_conformance("resource Vault: Provider, Receiver {")
        assert code == "resource Vault: Provider & Receiver {"
        assert count == 1

    def test_qualified_interfaces(self, transformer) -> None:
        code, count = transformer.transform_interface_conformance(
            "access(all) resource Vault: FungibleToken.Provider, FungibleToken.Receiver, Balance {"
        )
        assert code == "access(all) resource Vault: FungibleToken.Provider & FungibleToken.Receiver & Balance {"
        assert count == 1

    def test_mixed_separators(self, transformer) -> None:
        code, count = transformer.transform_interface_conformance("struct S: A & B, C,D {")
        assert code == "struct S: A & B & C & D {"
        assert count == 1

    def test_long_list_rewritten_in_one_call(self, transformer) -> None:
        """Test every comma of a long conformance list is replaced at once"""
        interfaces = [f"I{i}" for i in range(40)]
        code = "pub resource R: " + ", ".join(interfaces) + " {}"
        once = transformer.transform_all(code)
        assert once == "access(all) resource R: " + " & ".join(interfaces) + " {}"
        assert transformer.transform_all(once) == once

    def test_unterminated_long_list_untouched(self, transformer) -> None:
        """Test a list with no opening brace is left alone"""
        code = "resource R: " + ", ".join(f"I{i}" for i in range(2000))
        assert transformer.transform_interface_conformance(code) == (code, 0)

    def test_type_constraint_untouched(self, transformer) -> None:
        """Test capability type constraints are not conformance lists"""
        code = "let cap: Capability<&{FungibleToken.Receiver, FungibleToken.Balance}> = c"
        assert transformer.transform_interface_conformance(code) == (code, 0)

    def test_single_interface_untouched(self, transformer) -> None:
        code = "resource Vault: Provider {"
        assert transformer.transform_interface_conformance(code) == (code, 0)


class TestStorageApi:
    """Tests for transform_storage_api."""

    def test_storage_calls(self, transformer) -> None:
        code, count = transformer.transform_storage_api(
            "account.save(<-v, to: /storage/v)\n"
            "let v <- account.load<@V>(from: /storage/v)\n"
            "let r = account.borrow<&V>(from: /storage/v)\n"
            "let c = account.copy<Int>(from: /storage/n)"
        )
        assert code == (
            "account.storage.save(<-v, to: /storage/v)\n"
            "let v <- account.storage.load<@V>(from: /storage/v)\n"
            "let r = account.storage.borrow<&V>(from: /storage/v)\n"
            "let c = account.storage.copy<Int>(from: /storage/n)"
        )
        assert count == 4

    def test_storage_calls_without_type_arguments(self, transformer) -> None:
        code, count = transformer.transform_storage_api(
            "account.save(<-v, to: /storage/v)\n"
            "let v <- account.load(from: /storage/v)\n"
            "let r = account.borrow(from: /storage/v)\n"
            "let c = account.copy(from: /storage/n)"
        )
        assert count == 4
        for name in ("save", "load", "borrow", "copy"):
            assert f"account.storage.{name}(" in code

    def test_get_capability(self, transformer) -> None:
        code, count = transformer.transform_storage_api("let cap = account.getCapability<&V>(/public/v)")
        assert code == "let cap = account.capabilities.get<&V>(/public/v)"
        assert count == 1

    def test_link_is_left_for_manual_migration(self, transformer) -> None:
        """Test account.link is never rewritten"""
        code = "account.link<&V>(/public/v, target: /storage/v)"
        assert transformer.transform_storage_api(code) == (code, 0)


class TestFunctionSignatures:
    """Tests for transform_function_signatures."""

    def test_getter_gets_view(self, transformer) -> None:
        code, count = transformer.transform_function_signatures("access(all) fun getBalance(): UFix64 {")
        assert code == "access(all) view fun getBalance(): UFix64 {"
        assert count == 1

    def test_non_getter_untouched(self, transformer) -> None:
        code = "access(all) fun deposit(from: @Vault) {"
        assert transformer.transform_function_signatures(code) == (code, 0)

    def test_getter_without_return_type_untouched(self, transformer) -> None:
        code = "access(all) fun getNothing() {"
        assert transformer.transform_function_signatures(code) == (code, 0)

    def test_existing_view_untouched(self, transformer) -> None:
        code = "access(all) view fun isEmpty(): Bool {"
        assert transformer.transform_function_signatures(code) == (code, 0)


class TestImportStatements:
    """Tests for transform_import_statements."""

    def test_no_default_import_rules(self, transformer) -> None:
        code = "import FungibleToken from 0xf233dcee88fe0abe"
        assert transformer.transform_import_statements(code) == (code, 0)

    def test_caller_supplied_import_rule(self) -> None:
        registry = RuleRegistry(
            transformation_rules=[
                TransformationRule(
                    pattern=r"\bimport\s+(\w+)\s+from\s+0x[0-9a-fA-F]+",
                    replacement=r'import "\1"',
                    description="Use string imports",
                    category=RuleCategory.IMPORT,
                )
            ]
        )
        code, count = SyntaxTransformer(registry).transform_import_statements("import FungibleToken from 0xf233dcee88fe0abe")
        assert code == 'import "FungibleToken"'
        assert count == 1


class TestTransform:
    """Tests for the full pipeline."""

    def test_counts_by_pass(self, transformer, legacy_contract) -> None:
        """Test substitution counts for each pass"""
        result = transformer.transform(legacy_contract)
        assert result.substitutions_by_pass == {
            RuleCategory.ACCESS_MODIFIER: 4,
            RuleCategory.INTERFACE: 1,
            RuleCategory.STORAGE: 1,
            RuleCategory.FUNCTION: 0,
            RuleCategory.IMPORT: 0,
        }
        assert result.substitutions == 6
        assert result.changed_passes == [RuleCategory.ACCESS_MODIFIER, RuleCategory.INTERFACE, RuleCategory.STORAGE]

    def test_pipeline_order_adds_view_after_access_rewrite(self, transformer) -> None:
        result = transformer.transform("pub fun getBalance(): UFix64 { return 1.0 }")
        assert result.code == "access(all) view fun getBalance(): UFix64 { return 1.0 }"

    def test_modern_code_unchanged(self, transformer, modern_contract) -> None:
        result = transformer.transform(modern_contract)
        assert result.code == modern_contract
        assert result.substitutions == 0
        assert result.changed_passes == []

    @pytest.mark.parametrize("code", LEGACY_SAMPLES)
    def test_idempotent(self, transformer, code) -> None:
        """Test a second transform changes nothing"""
        once = transformer.transform_all(code)
        assert transformer.transform_all(once) == once
        assert transformer.transform(once).substitutions == 0

    @pytest.mark.parametrize("code", LEGACY_SAMPLES)
    def test_no_legacy_declaration_remains(self, transformer, code) -> None:
        result = transformer.transform_all(code)
        assert not _LEGACY_DECLARATION.search(strip_comments_and_strings(result))

    @pytest.mark.parametrize("code", LEGACY_SAMPLES)
    def test_brackets_preserved(self, transformer, code) -> None:
        """Test braces and paren balance survive the rewrite"""
        result = transformer.transform_all(code)
        assert result.count("{") == code.count("{")
        assert result.count("}") == code.count("}")
        assert _paren_balance(result) == _paren_balance(code)

    def test_comments_and_strings_untouched(self, transformer) -> None:
        code = 'pub fun greet(): String { return "pub var x" } // pub var y\n/* account.save(x) */'
        result = transformer.transform_all(code)
        assert '"pub var x"' in result
        assert "// pub var y" in result
        assert "/* account.save(x) */" in result
        assert result.startswith("access(all) fun greet()")

    def test_preserve_comments_disabled(self) -> None:
        registry = RuleRegistry(preserve_comments=False)
        result = SyntaxTransformer(registry).transform_all("let x = 1 // pub var y")
        assert result == "let x = 1 // access(all) var y"

    def test_never_raises_on_arbitrary_input(self, transformer) -> None:
        for code in ["", "}{)(", "pub", "\n\n\n", "pub(set)", '"unterminated', "/* open"]:
            assert isinstance(transformer.transform_all(code), str)

    def test_end_to_end_modernization(self, transformer) -> None:
        """Test the rewrite turns invalid code into valid code"""
        original = "pub contract X { pub var v: Int }"
        result = transformer.transform_all(original)
        assert "access(all) contract X" in result
        assert "access(all) var v: Int" in result

        validator = CodeValidator()
        assert validator.validate_code(original).is_valid is False
        assert validator.validate_code(result).is_valid is True


class TestManualMigrations:
    """Tests for find_manual_migrations."""

    def test_link_reported_with_line(self, transformer) -> None:
        code = "transaction {\n    prepare(account: AuthAccount) {\n        account.link<&V>(/public/v, target: /storage/v)\n    }\n}"
        result = transformer.transform(code)
        assert len(result.notes) == 1
        assert result.notes[0].line == 3
        assert "capabilities" in result.notes[0].message
        assert "account.link<&V>(" in result.code

    def test_commented_link_ignored(self, transformer) -> None:
        assert transformer.find_manual_migrations("// account.link(/public/v)") == []


class TestTransformationStats:
    """Tests for get_transformation_stats."""

    def test_stats(self) -> None:
        stats = SyntaxTransformer.get_transformation_stats("pub var a: Int\nlet b = 1", "access(all) var a: Int\nlet b = 1")
        assert stats == {"original_lines": 2, "transformed_lines": 2, "lines_changed": 1, "has_changes": True}

    def test_no_changes(self) -> None:
        stats = SyntaxTransformer.get_transformation_stats("let b = 1", "let b = 1")
        assert stats["has_changes"] is False
        assert stats["lines_changed"] == 0
