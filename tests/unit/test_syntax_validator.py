"""Unit tests for the multi-pass syntax validator."""

import pytest

from cadence_migrate.features.validation.syntax import SyntaxValidator, is_valid_event_type


@pytest.fixture
def validator() -> SyntaxValidator:
    return SyntaxValidator()


def _messages(issues) -> list:
    return [issue.message for issue in issues]


class TestBrackets:
    """Tests for bracket matching."""

    def test_single_unclosed_brace_located_exactly(self, validator) -> None:
        """Test one unclosed brace yields one error at its position"""
        code = "access(all) contract C {\n    init() {\n        self.x = 1\n\n}"
        result = validator.validate_syntax(code)
        bracket_errors = [e for e in result.errors if e.type == "bracket-mismatch"]
        assert len(bracket_errors) == 1
        assert bracket_errors[0].message == "Unclosed bracket '{'"
        assert (bracket_errors[0].location.line, bracket_errors[0].location.column) == (1, 24)
        assert result.is_valid is False

    def test_unclosed_brace_on_later_line(self, validator) -> None:
        code = "access(all) fun a() {}\naccess(all) fun b() {\n"
        bracket_errors = [e for e in validator.validate_syntax(code).errors if e.type == "bracket-mismatch"]
        assert len(bracket_errors) == 1
        assert (bracket_errors[0].location.line, bracket_errors[0].location.column) == (2, 21)

    def test_unexpected_closer(self, validator) -> None:
        errors = validator.check_brackets("}")
        assert _messages(errors) == ["Unexpected closing bracket '}'"]
        assert (errors[0].location.line, errors[0].location.column) == (1, 1)

    def test_mismatched_pair(self, validator) -> None:
        errors = validator.check_brackets("(]")
        assert _messages(errors) == ["Mismatched brackets: expected ')' but found ']'"]
        assert errors[0].location.column == 2

    def test_brackets_in_comments_and_strings_ignored(self, validator) -> None:
        result = validator.validate_syntax('access(all) fun f() {\n    log("{[(")\n}\n// )\n/* } */')
        assert result.errors == []

    def test_balanced(self, validator) -> None:
        assert validator.check_brackets("a[(b)]{c}") == []


class TestFunctions:
    """Tests for function signature checks."""

    def test_incomplete_signature(self, validator) -> None:
        issues = validator.check_functions(["access(all) fun foo(a: Int,"])
        assert [i.type for i in issues] == ["incomplete-signature"]
        assert issues[0].message == "Incomplete function signature for 'foo'"
        assert issues[0].function_name == "foo"

    def test_missing_body(self, validator) -> None:
        lines = ["access(all) contract C {", "    access(all) fun foo(): Int", "    init() {}", "}"]
        issues = validator.check_functions(lines)
        assert _messages(issues) == ["Function 'foo' is missing implementation body"]
        assert issues[0].location.line == 2

    def test_interface_functions_need_no_body(self, validator) -> None:
        lines = ["access(all) resource interface R {", "    access(all) fun foo(): Int", "}"]
        assert validator.check_functions(lines) == []

    def test_body_on_next_line(self, validator) -> None:
        assert validator.check_functions(["access(all) fun foo()", "{", "}"]) == []

    def test_missing_return_type(self, validator) -> None:
        """Test return with a value requires a return type"""
        lines = ["access(all) fun foo() {", "    return 42", "}"]
        issues = validator.check_functions(lines)
        assert _messages(issues) == ["Function 'foo' has return statement but no return type specified"]

    def test_bare_return_needs_no_type(self, validator) -> None:
        assert validator.check_functions(["access(all) fun foo() {", "    return", "}"]) == []

    def test_return_after_body_closes_not_attributed(self, validator) -> None:
        lines = ["access(all) fun foo() {", "}", "access(all) fun bar(): Int {", "    return 1", "}"]
        assert validator.check_functions(lines) == []


class TestStructure:
    """Tests for contract and resource structure checks."""

    def test_contract_missing_access_modifier(self, validator) -> None:
        issues = validator.check_structure(["contract C {", "    init() {}", "}"])
        assert _messages(issues) == ["Contract 'C' is missing access modifier"]
        assert issues[0].severity == "error"

    def test_resource_missing_access_modifier(self, validator) -> None:
        issues = validator.check_structure(["resource R {", "    destroy() {}", "}"])
        assert _messages(issues) == ["Resource 'R' is missing access modifier"]

    def test_resource_missing_destroy_is_warning(self, validator) -> None:
        lines = ["access(all) resource R {", "    access(all) let id: UInt64", "    init() { self.id = 1 }", "}"]
        issues = validator.check_structure(lines)
        assert _messages(issues) == ["Resource 'R' is missing destroy() function"]
        assert issues[0].severity == "warning"

    def test_resource_interface_needs_no_destroy(self, validator) -> None:
        assert validator.check_structure(["access(all) resource interface R {", "}"]) == []

    def test_multiline_contract_missing_init_is_error(self, validator) -> None:
        issues = validator.check_structure(["access(all) contract C {", "    access(all) let x: Int", "}"])
        assert _messages(issues) == ["Contract 'C' is missing init() function"]
        assert issues[0].severity == "error"

    def test_inline_contract_missing_init_is_warning(self, validator) -> None:
        """Test inline contracts only warn about init"""
        issues = validator.check_structure(["access(all) contract X { access(all) var v: Int }"])
        assert _messages(issues) == ["Contract 'X' is missing init() function"]
        assert issues[0].severity == "warning"

    def test_contract_interface_needs_no_init(self, validator) -> None:
        assert validator.check_structure(["access(all) contract interface CI {", "}"]) == []


class TestEvents:
    """Tests for event declaration checks."""

    def test_valid_event(self, validator) -> None:
        assert validator.check_events(["access(all) event Deposit(amount: UFix64, to: Address?)"]) == []

    def test_event_without_parameters(self, validator) -> None:
        assert validator.check_events(["access(all) event ContractInitialized()"]) == []

    def test_missing_access_modifier(self, validator) -> None:
        issues = validator.check_events(["event Deposit(amount: UFix64)"])
        assert _messages(issues) == ["Event 'Deposit' is missing access modifier"]

    def test_parameter_missing_type(self, validator) -> None:
        issues = validator.check_events(["access(all) event Deposit(amount)"])
        assert _messages(issues) == ["Event 'Deposit' parameter 'amount' is missing type annotation"]
        assert issues[0].location.column == len("access(all) event Deposit(") + 1

    def test_malformed_parameter(self, validator) -> None:
        issues = validator.check_events(["access(all) event Deposit(: UFix64)"])
        assert _messages(issues) == ["Event 'Deposit' has malformed parameter ': UFix64'"]

    def test_invalid_parameter_type(self, validator) -> None:
        issues = validator.check_events(["access(all) event E(x: int)"])
        assert _messages(issues) == ["Event 'E' parameter 'x' has potentially invalid type 'int'"]

    def test_dictionary_parameter_not_split_on_inner_comma(self, validator) -> None:
        """Test nested commas stay inside one parameter"""
        assert validator.check_events(["access(all) event E(m: {String: UInt64}, ids: [UInt64])"]) == []

    def test_incomplete_event(self, validator) -> None:
        issues = validator.check_events(["access(all) event Deposit"])
        assert _messages(issues) == ["Event 'Deposit' declaration is incomplete"]

    @pytest.mark.parametrize(
        "type_text",
        [
            "String",
            "UInt64?",
            "[Address]",
            "[UInt8; 32]",
            "{String: UInt64}",
            "{String: [Int]}",
            "&Vault",
            "FungibleToken.Vault",
            "Capability<&Vault>",
            "MyStruct",
        ],
    )
    def test_valid_types(self, type_text) -> None:
        assert is_valid_event_type(type_text) is True

    @pytest.mark.parametrize("type_text", ["int", "", "123", "{String: int}", "[string]"])
    def test_invalid_types(self, type_text) -> None:
        assert is_valid_event_type(type_text) is False


class TestStatements:
    """Tests for statement completeness checks."""

    def test_bare_declaration(self, validator) -> None:
        errors = validator.check_statements(["    let x"])
        assert _messages(errors) == ["Variable declaration is missing type annotation or initialization"]
        assert errors[0].location.column == 5

    def test_missing_semicolon(self, validator) -> None:
        errors = validator.check_statements(["let x = 1"])
        assert _messages(errors) == ["Statement appears to be missing semicolon"]
        assert errors[0].location.column == len("let x = 1")

    @pytest.mark.parametrize(
        "line",
        [
            "let x = 1;",
            "let v <- create R() {",
            "emit Deposit(",
            "let ready = a &&",
            "var items: [Int] = [",
            "destroy vault;",
            "return x",
        ],
    )
    def test_terminated_or_continued_statements(self, validator, line) -> None:
        """Test terminated and continued lines are accepted"""
        assert validator.check_statements([line]) == []


class TestStyle:
    """Tests for style warnings."""

    def test_space_before_call(self, validator) -> None:
        warnings = validator.check_style(["log (x);"])
        assert _messages(warnings) == ["Unnecessary space before parentheses in function call"]

    def test_keywords_may_precede_parenthesis(self, validator) -> None:
        assert validator.check_style(["if (x) {", "while (y) {", "access(all) fun f (a: Int) {"]) == []

    def test_operator_spacing(self, validator) -> None:
        warnings = validator.check_style(["let y = a+b;"])
        assert _messages(warnings) == ["Missing spaces around operator"]
        assert warnings[0].location.column == len("let y = a") + 1

    def test_path_literals_are_not_operators(self, validator) -> None:
        assert validator.check_style(["account.storage.save(v, to: /storage/vault);"]) == []

    def test_function_naming(self, validator) -> None:
        warnings = validator.check_style(["access(all) fun GetValue(): Int {"])
        assert _messages(warnings) == ["Function name 'GetValue' should use camelCase"]

    def test_resource_move(self, validator) -> None:
        warnings = validator.check_style(["let v <- create R();"])
        assert _messages(warnings) == ["Resource move operation detected - ensure proper resource handling"]

    def test_resource_move_followed_by_destroy(self, validator) -> None:
        assert validator.check_style(["let v <- create R();", "destroy v;"]) == []


class TestValidateSyntax:
    """Tests for the combined verdict."""

    def test_modern_contract_is_valid(self, validator, modern_contract) -> None:
        result = validator.validate_syntax(modern_contract)
        assert result.is_valid is True
        assert result.errors == []
        assert result.warnings == []

    def test_warnings_do_not_block_validity(self, validator) -> None:
        result = validator.validate_syntax("access(all) fun add(a: Int, b: Int): Int {\n    return a+b\n}")
        assert result.is_valid is True
        assert len(result.warnings) == 1

    def test_function_issue_blocks_validity(self, validator) -> None:
        result = validator.validate_syntax("access(all) fun foo() {\n    return 42\n}")
        assert result.is_valid is False
        assert len(result.function_issues) == 1
