"""Utility helpers for cadence-migrate."""

from cadence_migrate.utils.lexer import (
    DECLARATION_KEYWORDS,
    DECLARATION_LOOKAHEAD,
    context_window,
    find_literal_spans,
    in_line_comment,
    in_spans,
    in_string_literal,
    legacy_keyword_regex,
    line_starts,
    offset_to_position,
    strip_comments_and_strings,
    sub_outside_literals,
)

__all__ = [
    "DECLARATION_KEYWORDS",
    "DECLARATION_LOOKAHEAD",
    "context_window",
    "find_literal_spans",
    "in_line_comment",
    "in_spans",
    "in_string_literal",
    "legacy_keyword_regex",
    "line_starts",
    "offset_to_position",
    "strip_comments_and_strings",
    "sub_outside_literals",
]
