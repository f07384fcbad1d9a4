"""mdBook preprocessor aligning marked code blocks in every chapter."""

from __future__ import annotations

import json
import logging
from collections.abc import Callable

from .book import Book, PreprocessorContext, book_to_json, iter_chapters, parse_input
from .config import AlignConfig, config_from_book, validate_config
from .constants import MDBOOK_VERSION, PREPROCESSOR_NAME
from .rewriter import rewrite_document

logger = logging.getLogger(__name__)


def supports_renderer(renderer: str) -> bool:
    """Alignment only touches Markdown, so every renderer is supported."""
    return True


def check_version(context: PreprocessorContext, warn: Callable[[str], None] | None = None) -> bool:
    """Warn when mdBook's version differs from the one this preprocessor targets.

    Returns:
        bool: True when the versions match.
    """
    if context.mdbook_version == MDBOOK_VERSION:
        return True
    if warn is not None:
        warn(
            f"Warning: The {PREPROCESSOR_NAME} plugin was built against version "
            f"{MDBOOK_VERSION} of mdbook, but we're being called from version "
            f"{context.mdbook_version}"
        )
    return False


def run_preprocessor(
    context: PreprocessorContext, book: Book, config: AlignConfig | None = None
) -> Book:
    """Align the marked code blocks of every chapter of `book` in place.

    Args:
        context: Context received from mdBook.
        book: Book received from mdBook.
        config: Alignment configuration; read from the book settings when omitted.

    Returns:
        Book: The same book, with chapter contents rewritten.

    Raises:
        ConfigError: If the configuration fails validation.
        ParseError: If a chapter cannot be parsed.
    """
    config = config or config_from_book(context.as_mapping())
    validate_config(config)

    for chapter in iter_chapters(book.items):
        result = rewrite_document(chapter.content, config)
        if result.realigned:
            logger.info("%s: realigned %d code block(s)", chapter.name, result.realigned)
        chapter.content = result.content
    return book


def process(raw_input: str, warn: Callable[[str], None] | None = None) -> str:
    """Run the preprocessor over raw mdBook input and return the book as JSON.

    Raises:
        BookFormatError: If the input is malformed.
        ConfigError: If the book settings are invalid.
        ParseError: If a chapter cannot be parsed.
    """
    context, book = parse_input(raw_input)
    check_version(context, warn)
    logger.info("%s: Running align preprocessor", PREPROCESSOR_NAME)
    return json.dumps(book_to_json(run_preprocessor(context, book)), ensure_ascii=False)
