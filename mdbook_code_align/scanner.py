"""Discovery of code blocks marked for alignment."""

from __future__ import annotations

import logging
import re
from collections.abc import Iterator

from markdown_it import MarkdownIt
from markdown_it.tree import SyntaxTreeNode

from .config import AlignConfig, validate_config
from .exceptions import MalformedMetaError, ParseError
from .models import MarkedBlock

logger = logging.getLogger(__name__)

# Line terminators as markdown-it normalizes them; line maps count lines this way.
NEWLINE_PATTERN = re.compile(r"\r\n?|\n")

_MARKDOWN = MarkdownIt("commonmark")


def parse_markdown(content: str) -> SyntaxTreeNode:
    """Parse Markdown into a syntax tree.

    Args:
        content: Markdown document text.

    Returns:
        SyntaxTreeNode: Root node of the document.

    Raises:
        ParseError: If the content cannot be parsed.
    """
    if not isinstance(content, str):
        raise ParseError(f"Markdown content must be a string, not {type(content).__name__}")
    try:
        tokens = _MARKDOWN.parse(content)
    except (TypeError, ValueError, RecursionError) as error:
        raise ParseError(f"Failed to parse Markdown: {error}") from error
    return SyntaxTreeNode(tokens)


def split_info(info: str) -> tuple[str | None, str | None]:
    """Split a fence info string into its language tag and meta string.

    Examples:
        split_info("rust,noplaypen title='x' align")  # ("rust,noplaypen", "title='x' align")
        split_info("python")  # ("python", None)
        split_info("")  # (None, None)
    """
    parts = info.strip().split(maxsplit=1)
    if not parts:
        return None, None
    if len(parts) == 1:
        return parts[0], None
    return parts[0], parts[1].strip()


def meta_tokens(meta: str) -> list[str]:
    """Split a meta string into whitespace-separated tokens.

    Quotes and backslashes carry no meaning; ``title="a b"`` is two tokens.

    Raises:
        MalformedMetaError: If `meta` is not a string.

    Examples:
        meta_tokens('title="An example" align')  # ['title="An', 'example"', "align"]
    """
    if not isinstance(meta, str):
        raise MalformedMetaError(meta, f"expected a string, not {type(meta).__name__}")
    return meta.split()


def has_marker(meta: str | None, marker: str) -> bool:
    """Tell whether `marker` appears as a standalone token of `meta`.

    A meta string that cannot be tokenized counts as not marked.
    """
    if not meta:
        return False
    try:
        return marker in meta_tokens(meta)
    except MalformedMetaError as error:
        logger.debug("Ignoring code block: %s", error)
        return False


def line_spans(content: str) -> list[tuple[int, int]]:
    """Return ``(start, end)`` offsets of every line, terminators excluded."""
    spans = []
    start = 0
    for match in NEWLINE_PATTERN.finditer(content):
        spans.append((start, match.start()))
        start = match.end()
    spans.append((start, len(content)))
    return spans


def _iter_nodes(node: SyntaxTreeNode) -> Iterator[SyntaxTreeNode]:
    yield node
    for child in node.children:
        yield from _iter_nodes(child)


def _marked_block(
    node: SyntaxTreeNode, content: str, spans: list[tuple[int, int]]
) -> MarkedBlock:
    first_line, end_line = node.map
    line_start, line_end = spans[first_line]
    opening_line = content[line_start:line_end]
    fence_column = opening_line.find(node.markup)

    lang, meta = split_info(node.info)
    return MarkedBlock(
        start=line_start + fence_column,
        # An unclosed fence ends with the last line of its container.
        end=spans[max(end_line - 1, first_line)][1],
        lang=lang,
        meta=meta,
        content=node.content,
        line_prefix=opening_line[:fence_column],
        fence=node.markup,
    )


def scan_document(content: str, config: AlignConfig | None = None) -> list[MarkedBlock]:
    """Collect the fenced code blocks whose meta string carries the marker.

    Walks the whole syntax tree, so blocks nested in block quotes or list
    items are found as well.

    Args:
        content: Markdown document text.
        config: Configuration providing the marker. Defaults to `AlignConfig()`.

    Returns:
        list[MarkedBlock]: Marked blocks in document order.

    Raises:
        ConfigError: If the configuration fails validation.
        ParseError: If the content cannot be parsed.

    Examples:
        scan_document("```rust align\\n    fn main() {}\\n```\\n")
    """
    config = config or AlignConfig()
    validate_config(config)

    tree = parse_markdown(content)
    spans = line_spans(content)
    blocks = []
    for node in _iter_nodes(tree):
        if node.type != "fence":
            continue
        _, meta = split_info(node.info)
        if not has_marker(meta, config.marker):
            continue
        blocks.append(_marked_block(node, content, spans))

    logger.debug("Found %d code block(s) marked %r", len(blocks), config.marker)
    return blocks
