"""Package-specific exception types."""

from __future__ import annotations


class ParseError(ValueError):
    """Base class for parsing-related errors.

    Represents failures to obtain a syntax tree for Markdown content, or to
    decode the input handed over by mdBook.
    """


class MalformedMetaError(ParseError):
    """Raised when a code fence meta string cannot be split into tokens.

    Args:
        meta: The offending meta string.
        reason: Tokenizer message describing the failure.
    """

    def __init__(self, meta: str, reason: str):
        self.meta = meta
        self.reason = reason
        super().__init__(f"Cannot tokenize code fence meta {meta!r}: {reason}")


class BookFormatError(ParseError):
    """Raised when preprocessor input is not a valid `[context, book]` document."""
