"""Data models for mdbook-code-align."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto


class TokenKind(Enum):
    """Kinds of structural tokens produced from indented text.

    Attributes:
        INDENT: A deeper indentation prefix than the current level was observed.
        LINE: A line's content with its leading whitespace removed.
        DEDENT: One indentation level was closed.
    """

    INDENT = auto()
    LINE = auto()
    DEDENT = auto()


@dataclass(frozen=True)
class IndentToken:
    """Structural token emitted by the indentation tokenizer.

    Attributes:
        kind: Token kind.
        text: De-indented line content; only meaningful for `TokenKind.LINE`.
    """

    kind: TokenKind
    text: str = ""


INDENT = IndentToken(TokenKind.INDENT)
DEDENT = IndentToken(TokenKind.DEDENT)


@dataclass(frozen=True)
class Line:
    """A single de-indented line of a text structure."""

    text: str


@dataclass
class Subtext:
    """A run of elements nested one indentation level below its parent."""

    children: list[Element] = field(default_factory=list)


Element = Line | Subtext
TextStructure = list[Element]


@dataclass(frozen=True)
class MarkedBlock:
    """A fenced code block opted into alignment.

    Attributes:
        start: Offset of the opening fence markup in the document.
        end: Offset just past the block's last line, line terminator excluded.
        lang: Language tag from the fence info string, if any.
        meta: Remainder of the info string after the language tag, if any.
        content: Raw payload between the fences.
        line_prefix: Text preceding the fence on its opening line, such as a
            block-quote marker.
        fence: Opening fence markup (for example ``"```"`` or ``"~~~~"``).
    """

    start: int
    end: int
    lang: str | None
    meta: str | None
    content: str
    line_prefix: str = ""
    fence: str = "```"


@dataclass(frozen=True)
class Edit:
    """Replacement of the half-open range ``[start, end)`` of a document."""

    start: int
    end: int
    replacement: str


@dataclass
class RewriteResult:
    """Result of aligning the marked blocks of a document.

    Attributes:
        content: Rewritten document text.
        blocks: Marked blocks found in the original text, in document order.
        original: Document text before rewriting.
        realigned: Number of blocks whose text changed.
    """

    content: str
    blocks: list[MarkedBlock]
    original: str
    realigned: int = 0

    @property
    def changed(self) -> bool:
        return self.content != self.original
