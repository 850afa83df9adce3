"""Lexical helpers shared by the transformer, validator and scanner.

The engine never builds a syntax tree. Everything it knows about comments,
string literals and keyword boundaries lives here so the three consumers
agree on what counts as code.

Two families of helpers are provided:

- Whole-text helpers for Cadence source (`find_literal_spans`,
  `strip_comments_and_strings`, `sub_outside_literals`). These understand
  `//` line comments, nested `/* */` block comments and double-quoted
  single-line string literals.
- Per-line heuristics (`in_line_comment`, `in_string_literal`) for the
  scanner, which also reads TypeScript, JavaScript and markdown files where
  a full Cadence lexer does not apply.
"""
import bisect
import re
from typing import Callable, List, Optional, Pattern, Sequence, Tuple, Union

# Keywords that may follow an access modifier in a declaration
DECLARATION_KEYWORDS = ("var", "let", "fun", "resource", "struct", "contract", "interface", "event")

DECLARATION_LOOKAHEAD = r"(?=(?:" + "|".join(DECLARATION_KEYWORDS) + r")\b)"

LITERAL_STRING = "string"
LITERAL_COMMENT = "comment"

Span = Tuple[int, int, str]
Replacement = Union[str, Callable[["re.Match[str]"], str]]


def legacy_keyword_regex(keyword: str) -> str:
    """Regex source for a legacy keyword in declaration position.

    The keyword must stand alone (word boundary on the left), be followed by
    whitespace and then one of DECLARATION_KEYWORDS.

    Args:
        keyword: Regex-escaped keyword, e.g. ``pub`` or ``pub\\(set\\)``

    Returns:
        Regex source matching the keyword and its trailing whitespace
    """
    return rf"\b{keyword}\s+{DECLARATION_LOOKAHEAD}"


# =============================================================================
# Whole-text lexing
# =============================================================================


def _block_comment_end(code: str, start: int) -> int:
    depth = 0
    i = start
    n = len(code)
    while i < n:
        if code.startswith("/*", i):
            depth += 1
            i += 2
        elif code.startswith("*/", i):
            depth -= 1
            i += 2
            if depth == 0:
                return i
        else:
            i += 1
    return n


def _string_end(code: str, start: int) -> int:
    i = start + 1
    n = len(code)
    while i < n:
        ch = code[i]
        if ch == "\\":
            i += 2
            continue
        if ch == '"':
            return i + 1
        if ch == "\n":
            return i
        i += 1
    return n


def find_literal_spans(code: str) -> List[Span]:
    """Locate comments and string literals in Cadence code.

    Args:
        code: Source text

    Returns:
        Sorted, non-overlapping (start, end, kind) spans; ``end`` is exclusive
        and kind is LITERAL_COMMENT or LITERAL_STRING
    """
    spans: List[Span] = []
    i = 0
    n = len(code)
    while i < n:
        ch = code[i]
        if ch == "/" and code.startswith("//", i):
            end = code.find("\n", i)
            end = n if end == -1 else end
            spans.append((i, end, LITERAL_COMMENT))
            i = end
        elif ch == "/" and code.startswith("/*", i):
            end = _block_comment_end(code, i)
            spans.append((i, end, LITERAL_COMMENT))
            i = end
        elif ch == '"':
            end = _string_end(code, i)
            spans.append((i, end, LITERAL_STRING))
            i = end
        else:
            i += 1
    return spans


def strip_comments_and_strings(code: str) -> str:
    """Blank out comments and string contents, preserving every position.

    Comment characters become spaces; string literals keep their quote
    characters but lose their contents. Newlines are never removed, so line
    and column numbers computed on the result match the original.

    Args:
        code: Source text

    Returns:
        Text of the same length as ``code``
    """
    chars = list(code)
    for start, end, kind in find_literal_spans(code):
        lo, hi = start, end
        if kind == LITERAL_STRING:
            lo = start + 1
            if end - 1 > start and code[end - 1] == '"':
                hi = end - 1
        for i in range(lo, hi):
            if chars[i] != "\n":
                chars[i] = " "
    return "".join(chars)


def in_spans(spans: Sequence[Span], offset: int, starts: Optional[List[int]] = None) -> bool:
    """Check whether ``offset`` falls inside any of ``spans``.

    Args:
        spans: Output of find_literal_spans
        offset: Character offset
        starts: Precomputed span start offsets, for repeated lookups
    """
    if not spans:
        return False
    if starts is None:
        starts = [s[0] for s in spans]
    idx = bisect.bisect_right(starts, offset) - 1
    if idx < 0:
        return False
    start, end, _ = spans[idx]
    return start <= offset < end


def sub_outside_literals(
    pattern: Pattern[str],
    replacement: Replacement,
    code: str,
    skip_literals: bool = True,
) -> Tuple[str, int]:
    """Substitute matches of ``pattern`` that start in code.

    Args:
        pattern: Compiled regex
        replacement: Template string (group references allowed) or callable
        code: Source text
        skip_literals: Leave matches inside comments and strings alone

    Returns:
        Tuple of (new_code, substitution_count)
    """
    spans = find_literal_spans(code) if skip_literals else []
    starts = [s[0] for s in spans]
    count = 0

    def _replace(match: "re.Match[str]") -> str:
        nonlocal count
        if in_spans(spans, match.start(), starts):
            return match.group(0)
        count += 1
        if callable(replacement):
            return replacement(match)
        return match.expand(replacement)

    return pattern.sub(_replace, code), count


# =============================================================================
# Positions
# =============================================================================


def line_starts(code: str) -> List[int]:
    """Offsets at which each line begins."""
    starts = [0]
    for match in re.finditer("\n", code):
        starts.append(match.end())
    return starts


def offset_to_position(starts: List[int], offset: int) -> Tuple[int, int]:
    """Convert a character offset to a 1-based (line, column) pair."""
    line_index = bisect.bisect_right(starts, offset) - 1
    return line_index + 1, offset - starts[line_index] + 1


def context_window(lines: List[str], line_index: int, radius: int = 1) -> str:
    """Return the line at ``line_index`` with ``radius`` lines either side."""
    start = max(0, line_index - radius)
    end = min(len(lines), line_index + radius + 1)
    return "\n".join(lines[start:end])


# =============================================================================
# Per-line heuristics
# =============================================================================


def _count_unescaped(text: str, quote: str) -> int:
    count = 0
    escaped = False
    for ch in text:
        if escaped:
            escaped = False
        elif ch == "\\":
            escaped = True
        elif ch == quote:
            count += 1
    return count


def in_string_literal(line: str, index: int, quotes: str = "\"'`") -> bool:
    """Guess whether ``index`` sits inside a quoted string on ``line``.

    An odd number of unescaped quote characters of one kind before the index
    means a literal of that kind is open.
    """
    prefix = line[:index]
    return any(_count_unescaped(prefix, q) % 2 == 1 for q in quotes)


def in_line_comment(line: str, index: int) -> bool:
    """Guess whether ``index`` sits inside a comment on ``line``.

    Covers ``//`` comments that start outside a string, and the body lines of
    block comments (lines starting with ``*`` or ``/*``).
    """
    stripped = line.lstrip()
    if stripped.startswith(("/*", "*")):
        return True
    pos = line.find("//")
    while pos != -1 and pos < index:
        if not in_string_literal(line, pos):
            return True
        pos = line.find("//", pos + 2)
    return False
