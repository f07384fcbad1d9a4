from __future__ import annotations

import textwrap

from mdbook_code_align.indentation import (
    build_tree,
    parse_indented_text,
    render,
    split_lines,
    tokenize,
)
from mdbook_code_align.models import DEDENT, INDENT, IndentToken, Line, Subtext, TokenKind


def _line(text: str) -> IndentToken:
    return IndentToken(TokenKind.LINE, text)


def test_split_lines_drops_terminators():
    assert split_lines("foo\r\nbar\n\nbaz\n") == ["foo", "bar", "", "baz"]
    assert split_lines("foo\r\nbar\n\nbaz\n\n") == ["foo", "bar", "", "baz", ""]
    assert split_lines("foo\r\nbar\n\nbaz") == ["foo", "bar", "", "baz"]
    assert split_lines("") == []


def test_tokenize_flat_text():
    assert list(tokenize("a\nb\n")) == [_line("a"), _line("b")]


def test_tokenize_indent_and_dedent():
    text = "a\n  b\n    c\na\n"

    assert list(tokenize(text)) == [
        _line("a"),
        INDENT,
        _line("b"),
        INDENT,
        _line("c"),
        DEDENT,
        DEDENT,
        _line("a"),
    ]


def test_tokenize_blank_lines_do_not_change_level():
    text = "a\n    b\n\n    c\n  \nd\n"

    assert list(tokenize(text)) == [
        _line("a"),
        INDENT,
        _line("b"),
        _line(""),
        _line("c"),
        _line(""),
        DEDENT,
        _line("d"),
    ]


def test_tokenize_partial_dedent_opens_new_level():
    tokens = list(tokenize("   coucou\n plop"))

    assert tokens == [INDENT, _line("coucou"), DEDENT, INDENT, _line("plop")]


def test_tokenize_incomparable_whitespace_falls_back_to_ancestor():
    # Tab-indented line after space-indented levels.
    tokens = list(tokenize("a\n    b\n        c\n\td\n"))

    assert tokens == [
        _line("a"),
        INDENT,
        _line("b"),
        INDENT,
        _line("c"),
        DEDENT,
        DEDENT,
        INDENT,
        _line("d"),
    ]


def test_tokenize_is_lazy():
    tokens = tokenize("a\n  b\n")

    assert next(tokens) == _line("a")
    assert next(tokens) == INDENT


def test_build_tree_closes_open_levels_at_end():
    assert build_tree([_line("a"), INDENT, _line("b"), INDENT, _line("c")]) == [
        Line("a"),
        Subtext([Line("b"), Subtext([Line("c")])]),
    ]


def test_build_tree_empty_stream():
    assert build_tree([]) == []


def test_parse_nested_text():
    text = "coucou\nplop\n    plap\n    plip\n        plup\nplaf\n\n"

    assert parse_indented_text(text) == [
        Line("coucou"),
        Line("plop"),
        Subtext([Line("plap"), Line("plip"), Subtext([Line("plup")])]),
        Line("plaf"),
        Line(""),
    ]


def test_parse_border_cases():
    assert parse_indented_text("") == []
    assert parse_indented_text("   ") == [Line("")]
    assert parse_indented_text("   coucou\n plop") == [
        Subtext([Line("coucou")]),
        Subtext([Line("plop")]),
    ]
    assert parse_indented_text("   coucou\nplop") == [Subtext([Line("coucou")]), Line("plop")]


def test_parse_keeps_trailing_whitespace_of_content():
    assert parse_indented_text("  x = 1  \n") == [Subtext([Line("x = 1  ")])]


def test_render_pretty_print():
    structure = [
        Line("a"),
        Line("b"),
        Subtext(
            [
                Line("c"),
                Subtext([Line("d")]),
                Line("e"),
                Subtext([Line("f")]),
            ]
        ),
        Line("g"),
    ]
    expected = textwrap.dedent(
        """\
        a
        b
           c
              d
           e
              f
        g
        """
    )

    assert render(structure, "", "   ") == expected


def test_render_with_prefix():
    structure = [Line("a"), Subtext([Line("b")])]

    assert render(structure, "> ", "  ") == "> a\n>   b\n"


def test_render_empty_structure():
    assert render([], "> ", "   ") == ""


def test_round_trip_with_four_space_unit():
    text = "def f(x):\n    if x:\n        return 1\n    return 2\n"

    assert render(parse_indented_text(text), "", "    ") == text


def test_reindent_changes_unit():
    text = "def f(x):\n    if x:\n        return 1\n    return 2\n"

    assert render(parse_indented_text(text), "", "  ") == (
        "def f(x):\n  if x:\n    return 1\n  return 2\n"
    )


def test_mixed_units_are_levels_not_widths():
    text = "a\n b\n       c\n d\n"

    assert render(parse_indented_text(text), "", "   ") == "a\n   b\n      c\n   d\n"
