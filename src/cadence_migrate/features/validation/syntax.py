"""Multi-pass static analysis of Cadence source text.

Each pass is independent and works on code whose comments and string
contents have been blanked, so brackets or keywords that only appear in
text never produce diagnostics. All locations are 1-based.

Passes:
    check_brackets    stack-based (){}[] matching
    check_functions   incomplete signature, missing body, missing return type
    check_structure   access modifiers, resource teardown, contract init
    check_events      access modifier, parameter form and types, parameter list
    check_statements  bare var/let declarations, unterminated statements
    check_style       call/operator spacing, naming, resource moves (warnings)
"""
import re
from typing import List, Optional, Tuple

from cadence_migrate.constants import ValidationDefaults
from cadence_migrate.core.logging import get_logger
from cadence_migrate.models.migration import (
    CodeLocation,
    EventIssue,
    FunctionIssue,
    StructureIssue,
    SyntaxIssue,
    SyntaxValidationResult,
)
from cadence_migrate.utils.lexer import strip_comments_and_strings

logger = get_logger(__name__)

_OPENERS = {"(": ")", "{": "}", "[": "]"}
_CLOSERS = {")": "(", "}": "{", "]": "["}

_FUN_RE = re.compile(r"\bfun\s+([A-Za-z_]\w*)\s*\(")
_RETURN_VALUE_RE = re.compile(r"\breturn[ \t]+[^\s}]")
_INTERFACE_DECL_RE = re.compile(r"\binterface\s+[A-Za-z_]")
_CONTRACT_RE = re.compile(r"\bcontract\s+(interface\s+)?([A-Za-z_]\w*)")
_RESOURCE_RE = re.compile(r"\bresource\s+(interface\s+)?([A-Za-z_]\w*)")
_INIT_RE = re.compile(r"\binit\s*\(")
_DESTROY_FN_RE = re.compile(r"\bdestroy\s*\(")
_EVENT_RE = re.compile(r"\bevent\s+([A-Za-z_]\w*)\s*\(([^)]*)\)")
_INCOMPLETE_EVENT_RE = re.compile(r"\bevent\s+([A-Za-z_]\w*)\s*$")
_TERMINATED_KEYWORD_RE = re.compile(r"^(let|var|emit|destroy|panic)\s")
_CALL_SPACING_RE = re.compile(r"\b([A-Za-z_]\w*)\s+\(")
_OPERATOR_RE = re.compile(r"(?<=\w)(?:==|!=|<=|>=|[+\-*/%=])(?=\w)")
_NOMINAL_TYPE_RE = re.compile(r"[A-Z]\w*(?:\.[A-Za-z_]\w*)*")
_DOTTED_TYPE_RE = re.compile(r"[A-Za-z_]\w*(?:\.[A-Za-z_]\w*)+")
_GENERIC_TYPE_RE = re.compile(r"([A-Z]\w*(?:\.[A-Za-z_]\w*)*)<(.+)>")

# Line endings that continue a statement on the next line
_CONTINUATIONS = (";", "{", "}", "(", "[", ",", "=", "<-", "??", "&&", "||")


class SyntaxValidator:
    """Static validator producing decomposed diagnostics."""

    def validate_syntax(self, code: str) -> SyntaxValidationResult:
        """Run every pass over ``code``.

        Args:
            code: Cadence source

        Returns:
            SyntaxValidationResult; is_valid requires no errors, no error
            severity structure issues and no function or event issues
        """
        stripped = strip_comments_and_strings(code)
        lines = stripped.split("\n")

        errors = self.check_brackets(stripped)
        function_issues = self.check_functions(lines)
        structure_issues = self.check_structure(lines)
        event_issues = self.check_events(lines)
        errors.extend(self.check_statements(lines))
        warnings = self.check_style(lines)

        is_valid = (
            not errors
            and not any(i.severity == "error" for i in structure_issues)
            and not function_issues
            and not event_issues
        )

        logger.debug(
            "syntax_validated",
            is_valid=is_valid,
            errors=len(errors),
            warnings=len(warnings),
            structure_issues=len(structure_issues),
            function_issues=len(function_issues),
            event_issues=len(event_issues),
        )

        return SyntaxValidationResult(
            is_valid=is_valid,
            errors=errors,
            warnings=warnings,
            structure_issues=structure_issues,
            function_issues=function_issues,
            event_issues=event_issues,
        )

    # =========================================================================
    # Brackets
    # =========================================================================

    def check_brackets(self, stripped: str) -> List[SyntaxIssue]:
        """Match (){}[] with a stack.

        Reports one error per unexpected closer, one per mismatched pair and
        one per opener left open at end of input.
        """
        errors: List[SyntaxIssue] = []
        stack: List[Tuple[str, int, int]] = []

        for line_no, line in enumerate(stripped.split("\n"), start=1):
            for col, char in enumerate(line, start=1):
                if char in _OPENERS:
                    stack.append((char, line_no, col))
                elif char in _CLOSERS:
                    if not stack:
                        errors.append(
                            SyntaxIssue(
                                type="bracket-mismatch",
                                location=CodeLocation(line_no, col, 1),
                                message=f"Unexpected closing bracket '{char}'",
                                suggestion=f"Remove the extra '{char}' or add matching opening bracket",
                            )
                        )
                        continue
                    opener, open_line, _ = stack.pop()
                    if opener != _CLOSERS[char]:
                        errors.append(
                            SyntaxIssue(
                                type="bracket-mismatch",
                                location=CodeLocation(line_no, col, 1),
                                message=f"Mismatched brackets: expected '{_OPENERS[opener]}' but found '{char}'",
                                suggestion=f"Change '{char}' to match opening bracket '{opener}' at line {open_line}",
                            )
                        )

        for opener, line_no, col in stack:
            errors.append(
                SyntaxIssue(
                    type="bracket-mismatch",
                    location=CodeLocation(line_no, col, 1),
                    message=f"Unclosed bracket '{opener}'",
                    suggestion=f"Add closing bracket '{_OPENERS[opener]}'",
                )
            )
        return errors

    # =========================================================================
    # Functions
    # =========================================================================

    def check_functions(self, lines: List[str]) -> List[FunctionIssue]:
        """Check every `fun name(` declaration line."""
        issues: List[FunctionIssue] = []
        in_interface = _interface_body_lines(lines)

        for index, line in enumerate(lines):
            match = _FUN_RE.search(line)
            if not match:
                continue

            name = match.group(1)
            column = match.start() + 1
            signature = line[match.start():]
            opens, closes = signature.count("("), signature.count(")")

            if opens > closes:
                issues.append(
                    FunctionIssue(
                        type="incomplete-signature",
                        location=CodeLocation(index + 1, column),
                        function_name=name,
                        message=f"Incomplete function signature for '{name}'",
                        suggestion="Complete the function signature with parameters and return type",
                    )
                )
                continue

            params_end = _matching_paren(signature, signature.index("("))
            after_params = signature[params_end + 1:] if params_end is not None else ""
            has_body = "{" in signature or ";" in signature or _next_code_line_starts_block(lines, index)

            if not has_body and not in_interface[index]:
                issues.append(
                    FunctionIssue(
                        type="missing-body",
                        location=CodeLocation(index + 1, column),
                        function_name=name,
                        message=f"Function '{name}' is missing implementation body",
                        suggestion="Add function body with curly braces { }",
                    )
                )

            if name in ValidationDefaults.LIFECYCLE_FUNCTIONS or after_params.lstrip().startswith(":"):
                continue

            if _body_returns_value(lines, index, after_params):
                issues.append(
                    FunctionIssue(
                        type="missing-return-type",
                        location=CodeLocation(index + 1, column),
                        function_name=name,
                        message=f"Function '{name}' has return statement but no return type specified",
                        suggestion='Add return type to function signature (e.g., ": String", ": Int", etc.)',
                    )
                )
        return issues

    # =========================================================================
    # Structure
    # =========================================================================

    def check_structure(self, lines: List[str]) -> List[StructureIssue]:
        """Check contract and resource declarations."""
        issues: List[StructureIssue] = []
        first_contract: Optional[Tuple[str, int, int, bool]] = None
        has_init = False

        for index, line in enumerate(lines):
            if _INIT_RE.search(line):
                has_init = True

            contract = _CONTRACT_RE.search(line)
            if contract:
                name = contract.group(2)
                if "access(" not in line[:contract.start()]:
                    issues.append(
                        StructureIssue(
                            type="invalid-access-modifier",
                            location=CodeLocation(index + 1, contract.start() + 1),
                            message=f"Contract '{name}' is missing access modifier",
                            severity="error",
                            suggestion='Add access modifier like "access(all)" before contract keyword',
                        )
                    )
                if first_contract is None and not contract.group(1):
                    inline = _closes_on_same_line(line, contract.end())
                    first_contract = (name, index + 1, contract.start() + 1, inline)

            resource = _RESOURCE_RE.search(line)
            if resource:
                name = resource.group(2)
                if "access(" not in line[:resource.start()]:
                    issues.append(
                        StructureIssue(
                            type="invalid-access-modifier",
                            location=CodeLocation(index + 1, resource.start() + 1),
                            message=f"Resource '{name}' is missing access modifier",
                            severity="error",
                            suggestion='Add access modifier like "access(all)" before resource keyword',
                        )
                    )
                if not resource.group(1) and not _has_destroy(lines, index, resource.end()):
                    issues.append(
                        StructureIssue(
                            type="invalid-resource-structure",
                            location=CodeLocation(index + 1, resource.start() + 1),
                            message=f"Resource '{name}' is missing destroy() function",
                            severity="warning",
                            suggestion="Add destroy() function to properly handle resource cleanup",
                        )
                    )

        if first_contract is not None and not has_init:
            name, line_no, column, inline = first_contract
            # An inline body cannot hold initializer logic, so it is only flagged
            issues.append(
                StructureIssue(
                    type="missing-init",
                    location=CodeLocation(line_no, column),
                    message=f"Contract '{name}' is missing init() function",
                    severity="warning" if inline else "error",
                    suggestion="Add init() function to initialize contract state",
                )
            )
        return issues

    # =========================================================================
    # Events
    # =========================================================================

    def check_events(self, lines: List[str]) -> List[EventIssue]:
        """Check event declarations and their parameter lists."""
        issues: List[EventIssue] = []

        for index, line in enumerate(lines):
            for match in _EVENT_RE.finditer(line):
                name = match.group(1)
                column = match.start() + 1

                if "access(" not in line[:match.start()]:
                    issues.append(
                        EventIssue(
                            type="invalid-definition",
                            location=CodeLocation(index + 1, column),
                            event_name=name,
                            message=f"Event '{name}' is missing access modifier",
                            suggestion='Add access modifier like "access(all)" before event keyword',
                        )
                    )

                params_start = match.start(2)
                for param, offset in _split_top_level(match.group(2), ","):
                    param_column = params_start + offset + 1
                    issues.extend(_check_event_parameter(name, param, CodeLocation(index + 1, param_column)))

            incomplete = _INCOMPLETE_EVENT_RE.search(line)
            if incomplete:
                name = incomplete.group(1)
                issues.append(
                    EventIssue(
                        type="incomplete-event",
                        location=CodeLocation(index + 1, incomplete.start() + 1),
                        event_name=name,
                        message=f"Event '{name}' declaration is incomplete",
                        suggestion='Add parameter list in parentheses, even if empty: "()"',
                    )
                )
        return issues

    # =========================================================================
    # Statements
    # =========================================================================

    def check_statements(self, lines: List[str]) -> List[SyntaxIssue]:
        """Flag bare declarations and unterminated keyword statements."""
        errors: List[SyntaxIssue] = []

        for index, line in enumerate(lines):
            trimmed = line.strip()
            if not trimmed:
                continue
            indent = len(line) - len(line.lstrip())

            if trimmed.startswith(("var ", "let ")):
                if ":" not in trimmed and "=" not in trimmed and "<-" not in trimmed:
                    errors.append(
                        SyntaxIssue(
                            type="incomplete-statement",
                            location=CodeLocation(index + 1, indent + 1),
                            message="Variable declaration is missing type annotation or initialization",
                            suggestion="Add type annotation (: Type) or initialization (= value)",
                        )
                    )
                    continue

            if _TERMINATED_KEYWORD_RE.match(trimmed) and not trimmed.endswith(_CONTINUATIONS):
                errors.append(
                    SyntaxIssue(
                        type="incomplete-statement",
                        location=CodeLocation(index + 1, indent + len(trimmed)),
                        message="Statement appears to be missing semicolon",
                        suggestion="Add semicolon at the end of the statement",
                    )
                )
        return errors

    # =========================================================================
    # Style
    # =========================================================================

    def check_style(self, lines: List[str]) -> List[SyntaxIssue]:
        """Collect non-blocking style and best-practice warnings."""
        warnings: List[SyntaxIssue] = []

        for index, line in enumerate(lines):
            for match in _CALL_SPACING_RE.finditer(line):
                if match.group(1) in ValidationDefaults.CALL_SPACING_KEYWORDS or _FUN_RE.search(line):
                    continue
                warnings.append(
                    SyntaxIssue(
                        type="style",
                        location=CodeLocation(index + 1, match.start() + 1),
                        message="Unnecessary space before parentheses in function call",
                        suggestion="Remove space before opening parenthesis",
                    )
                )
                break

            if not any(marker in line for marker in ValidationDefaults.PATH_LITERAL_MARKERS):
                for match in _OPERATOR_RE.finditer(line):
                    warnings.append(
                        SyntaxIssue(
                            type="style",
                            location=CodeLocation(index + 1, match.start() + 1, len(match.group(0))),
                            message="Missing spaces around operator",
                            suggestion="Add spaces around operators for better readability",
                        )
                    )

            fun = _FUN_RE.search(line)
            if fun:
                name = fun.group(1)
                if name not in ValidationDefaults.LIFECYCLE_FUNCTIONS and name[0].isupper():
                    warnings.append(
                        SyntaxIssue(
                            type="best-practice",
                            location=CodeLocation(index + 1, fun.start(1) + 1, len(name)),
                            message=f"Function name '{name}' should use camelCase",
                            suggestion='Use camelCase for function names (e.g., "myFunction")',
                        )
                    )

            move = line.find("<-")
            if move != -1:
                window = lines[index:index + ValidationDefaults.RESOURCE_MOVE_WINDOW_LINES + 1]
                if not any("destroy" in w for w in window):
                    warnings.append(
                        SyntaxIssue(
                            type="potential-issue",
                            location=CodeLocation(index + 1, move + 1, 2),
                            message="Resource move operation detected - ensure proper resource handling",
                            suggestion="Verify that resources are properly managed and destroyed when no longer needed",
                        )
                    )
        return warnings


# =============================================================================
# Helpers
# =============================================================================


def _interface_body_lines(lines: List[str]) -> List[bool]:
    """For each line, whether it starts inside an interface body."""
    flags = []
    stack: List[bool] = []
    pending_interface = False
    for line in lines:
        flags.append(any(stack))
        if _INTERFACE_DECL_RE.search(line):
            pending_interface = True
        for char in line:
            if char == "{":
                stack.append(pending_interface)
                pending_interface = False
            elif char == "}" and stack:
                stack.pop()
    return flags


def _matching_paren(text: str, start: int) -> Optional[int]:
    depth = 0
    for i in range(start, len(text)):
        if text[i] == "(":
            depth += 1
        elif text[i] == ")":
            depth -= 1
            if depth == 0:
                return i
    return None


def _next_code_line_starts_block(lines: List[str], index: int) -> bool:
    for following in lines[index + 1:]:
        if following.strip():
            return following.lstrip().startswith("{")
    return False


def _body_returns_value(lines: List[str], index: int, first_segment: str) -> bool:
    """Whether the body opened after a signature returns a value.

    Scans at most RETURN_LOOKAHEAD_LINES lines and stops when the body's
    braces balance.
    """
    depth = 0
    opened = False
    end = min(len(lines), index + ValidationDefaults.RETURN_LOOKAHEAD_LINES)
    for i in range(index, end):
        segment = first_segment if i == index else lines[i]
        if not opened and "{" in segment:
            opened = True
        if opened and _RETURN_VALUE_RE.search(segment):
            return True
        depth += segment.count("{") - segment.count("}")
        if opened and depth <= 0:
            return False
    return False


def _closes_on_same_line(line: str, start: int) -> bool:
    depth = 0
    opened = False
    for char in line[start:]:
        if char == "{":
            depth += 1
            opened = True
        elif char == "}":
            depth -= 1
            if opened and depth == 0:
                return True
    return False


def _has_destroy(lines: List[str], index: int, start: int) -> bool:
    """Look for a destroy() handler in the body following a resource declaration."""
    depth = 0
    opened = False
    end = min(len(lines), index + ValidationDefaults.DESTROY_LOOKAHEAD_LINES)
    for i in range(index, end):
        segment = lines[i][start:] if i == index else lines[i]
        if "{" in segment:
            opened = True
        if opened and _DESTROY_FN_RE.search(segment):
            return True
        depth += segment.count("{") - segment.count("}")
        if opened and depth <= 0:
            return False
    return False


def _split_top_level(text: str, separator: str) -> List[Tuple[str, int]]:
    """Split on ``separator`` outside (), [], {} and <>.

    Returns:
        (stripped_part, offset_of_part_in_text) pairs; empty parts are dropped
    """
    parts = []
    depth = 0
    start = 0
    for i, char in enumerate(text + separator):
        if char in "([{<":
            depth += 1
        elif char in ")]}>":
            depth -= 1
        elif char == separator and depth <= 0:
            raw = text[start:i]
            if raw.strip():
                parts.append((raw.strip(), start + len(raw) - len(raw.lstrip())))
            start = i + 1
    return parts


def _check_event_parameter(event_name: str, param: str, location: CodeLocation) -> List[EventIssue]:
    if ":" not in param:
        return [
            EventIssue(
                type="invalid-parameter-types",
                location=location,
                event_name=event_name,
                message=f"Event '{event_name}' parameter '{param}' is missing type annotation",
                suggestion='Add type annotation (e.g., "paramName: String")',
            )
        ]

    label, param_type = (p.strip() for p in param.split(":", 1))
    if not label or not param_type:
        return [
            EventIssue(
                type="invalid-parameter-types",
                location=location,
                event_name=event_name,
                message=f"Event '{event_name}' has malformed parameter '{param}'",
                suggestion='Use format "parameterName: ParameterType"',
            )
        ]

    if not is_valid_event_type(param_type):
        return [
            EventIssue(
                type="invalid-parameter-types",
                location=location,
                event_name=event_name,
                message=f"Event '{event_name}' parameter '{label}' has potentially invalid type '{param_type}'",
                suggestion="Ensure type name follows Cadence naming conventions",
            )
        ]
    return []


def is_valid_event_type(type_text: str) -> bool:
    """Accept primitives, nominal/dotted names and arrays, optionals,
    references, dictionaries and generics built from them."""
    t = type_text.strip()
    if not t:
        return False
    if t.endswith("?"):
        return is_valid_event_type(t[:-1])
    if t.startswith("&"):
        return is_valid_event_type(t[1:])
    if t.startswith("[") and t.endswith("]"):
        inner = t[1:-1].split(";", 1)[0]
        return is_valid_event_type(inner)
    if t.startswith("{") and t.endswith("}"):
        inner = t[1:-1]
        parts = _split_top_level(inner, ":")
        if len(parts) == 2:
            return all(is_valid_event_type(p) for p, _ in parts)
        return all(is_valid_event_type(p) for p, _ in _split_top_level(inner, ","))
    if t in ValidationDefaults.PRIMITIVE_TYPES:
        return True
    generic = _GENERIC_TYPE_RE.fullmatch(t)
    if generic:
        return all(is_valid_event_type(p) for p, _ in _split_top_level(generic.group(2), ","))
    return bool(_NOMINAL_TYPE_RE.fullmatch(t) or _DOTTED_TYPE_RE.fullmatch(t))
