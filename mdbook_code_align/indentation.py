"""Indentation structure parsing and printing.

Text is read as a tree: every run of lines sharing one more level of leading
whitespace than its parent becomes a nested `Subtext`. Only whitespace is
considered, never the syntax of the language the text is written in.

    >>> tree = parse_indented_text("a\\n    b\\nc\\n")
    >>> render(tree, "", "  ")
    'a\\n  b\\nc\\n'
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator

from .constants import CANONICAL_INDENT
from .models import DEDENT, INDENT, Element, IndentToken, Line, Subtext, TextStructure, TokenKind


def split_lines(text: str) -> list[str]:
    """Split text into lines without their terminators.

    A final line terminator does not start an extra empty line, and a carriage
    return preceding ``"\\n"`` is dropped.

    Examples:
        split_lines("foo\\r\\nbar\\n\\nbaz\\n")  # ["foo", "bar", "", "baz"]
        split_lines("")  # []
    """
    lines = text.split("\n")
    if lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


def tokenize(text: str) -> Iterator[IndentToken]:
    """Turn text into a stream of `INDENT`, `LINE` and `DEDENT` tokens.

    Leading whitespace of each line is compared with a stack of the prefixes
    currently open. A prefix extending the top opens one level; anything else
    closes every level whose prefix is not a prefix of the new one, then opens
    a level if the line is still deeper than what remains. Whitespace-only
    lines produce an empty `LINE` and never change the level.

    Inconsistent whitespace (for example tabs after spaces) falls back to the
    nearest enclosing level instead of failing.

    Args:
        text: Text to tokenize.

    Yields:
        IndentToken: Structural tokens in document order.

    Examples:
        [token.kind.name for token in tokenize("a\\n  b\\n")]
        # ["LINE", "INDENT", "LINE"]
    """
    indents = [""]
    for line in split_lines(text):
        content = line.lstrip()
        if not content:
            yield IndentToken(TokenKind.LINE, "")
            continue

        indent = line[: len(line) - len(content)]
        current_indent = indents[-1]
        if indent == current_indent:
            yield IndentToken(TokenKind.LINE, content)
            continue

        if indent.startswith(current_indent):
            indents.append(indent)
            yield INDENT
            yield IndentToken(TokenKind.LINE, content)
            continue

        previous_depth = len(indents)
        # "" is a prefix of everything, so the bottom entry always survives.
        indents[:] = [prefix for prefix in indents if indent.startswith(prefix)]
        for _ in range(previous_depth - len(indents)):
            yield DEDENT
        if indent != indents[-1]:
            indents.append(indent)
            yield INDENT
        yield IndentToken(TokenKind.LINE, content)


def build_tree(tokens: Iterable[IndentToken]) -> TextStructure:
    """Build a text structure from a token stream.

    An `INDENT` opens a `Subtext` that runs until the matching `DEDENT`; levels
    still open at the end of the stream are closed implicitly.

    Args:
        tokens: Tokens as produced by `tokenize`.

    Returns:
        TextStructure: Top-level elements in document order.
    """
    return _build_level(iter(tokens))


def _build_level(tokens: Iterator[IndentToken]) -> TextStructure:
    elements: TextStructure = []
    for token in tokens:
        if token.kind is TokenKind.INDENT:
            elements.append(Subtext(_build_level(tokens)))
        elif token.kind is TokenKind.LINE:
            elements.append(Line(token.text))
        else:
            break
    return elements


def parse_indented_text(text: str) -> TextStructure:
    """Parse text into its indentation structure.

    Examples:
        parse_indented_text("   coucou\\nplop")
        # [Subtext([Line("coucou")]), Line("plop")]
    """
    return build_tree(tokenize(text))


def render(
    structure: TextStructure, prefix: str = "", increment: str = CANONICAL_INDENT
) -> str:
    """Render a text structure back to text.

    Every line is written as ``prefix + text + "\\n"``; each nested `Subtext`
    extends the prefix by `increment`.

    Args:
        structure: Elements to render.
        prefix: Text placed before every line of the top level.
        increment: Indentation added per nesting level.

    Returns:
        str: Rendered text, one terminated line per `Line` element.
    """
    return "".join(_render_element(element, prefix, increment) for element in structure)


def _render_element(element: Element, prefix: str, increment: str) -> str:
    if isinstance(element, Line):
        return f"{prefix}{element.text}\n"
    return render(element.children, prefix + increment, increment)
