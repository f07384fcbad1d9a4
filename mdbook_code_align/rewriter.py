"""Splicing aligned code blocks back into Markdown documents."""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable

from .align import align
from .config import AlignConfig
from .models import Edit, MarkedBlock, RewriteResult
from .scanner import scan_document

logger = logging.getLogger(__name__)


def strip_marker(meta: str, marker: str) -> str | None:
    """Remove every standalone occurrence of `marker` from a meta string.

    Examples:
        strip_marker('title="x" align linenos', "align")  # 'title="x" linenos'
        strip_marker("align", "align")  # None
    """
    pattern = re.compile(rf"(?:^|\s+){re.escape(marker)}(?=\s|$)")
    stripped = pattern.sub("", meta).strip()
    return stripped or None


def fence_info(block: MarkedBlock, config: AlignConfig) -> str:
    """Rebuild the info string written after the opening fence."""
    meta = block.meta
    if meta is not None and not config.keep_marker:
        meta = strip_marker(meta, config.marker)
    if block.lang is None:
        return ""
    if meta is None:
        return block.lang
    return f"{block.lang} {meta}"


def render_block(block: MarkedBlock, config: AlignConfig) -> str:
    """Re-assemble a marked block with its payload aligned.

    The closing fence reuses the opening markup and the line prefix, so blocks
    inside block quotes stay inside them.
    """
    body = align(
        block.line_prefix,
        block.content,
        indent_unit=config.indent_chars,
        unwrap=config.unwrap_single_block,
    )
    return f"{block.fence}{fence_info(block, config)}\n{body}{block.line_prefix}{block.fence}"


def build_edits(blocks: Iterable[MarkedBlock], config: AlignConfig | None = None) -> list[Edit]:
    """Turn marked blocks into edits sorted by start offset.

    Args:
        blocks: Marked blocks of one document.
        config: Alignment configuration. Defaults to `AlignConfig()`.

    Returns:
        list[Edit]: One edit per block, ordered by ascending `start`.
    """
    config = config or AlignConfig()
    edits = [Edit(block.start, block.end, render_block(block, config)) for block in blocks]
    edits.sort(key=lambda edit: edit.start)
    return edits


def apply_edits(content: str, edits: Iterable[Edit]) -> str:
    """Apply non-overlapping edits in one pass over the original text.

    Text outside the edited ranges is copied unchanged; without edits the
    content is returned as is.

    Args:
        content: Original document text the edit offsets refer to.
        edits: Edits sorted by ascending start offset.

    Returns:
        str: Rewritten document text.

    Examples:
        apply_edits("abcdef", [Edit(1, 3, "X")])  # "aXdef"
    """
    parts = []
    cursor = 0
    for edit in edits:
        parts.append(content[cursor : edit.start])
        parts.append(edit.replacement)
        cursor = edit.end
    parts.append(content[cursor:])
    return "".join(parts)


def rewrite_document(content: str, config: AlignConfig | None = None) -> RewriteResult:
    """Align every marked code block of a document.

    Args:
        content: Markdown document text.
        config: Alignment configuration. Defaults to `AlignConfig()`.

    Returns:
        RewriteResult: Rewritten text and the blocks that were aligned.

    Raises:
        ConfigError: If the configuration fails validation.
        ParseError: If the document cannot be parsed.
    """
    config = config or AlignConfig()

    blocks = scan_document(content, config)
    edits = build_edits(blocks, config)
    realigned = sum(content[edit.start : edit.end] != edit.replacement for edit in edits)
    result = RewriteResult(
        content=apply_edits(content, edits), blocks=blocks, original=content, realigned=realigned
    )
    if realigned:
        logger.debug("Realigned %d of %d marked code block(s)", realigned, len(blocks))
    return result


def rewrite(content: str, config: AlignConfig | None = None) -> str:
    """Return `content` with every marked code block aligned.

    Examples:
        rewrite("```rust align\\n    fn main() {}\\n```\\n")
        # "```rust align\\nfn main() {}\\n```\\n"
    """
    return rewrite_document(content, config).content
