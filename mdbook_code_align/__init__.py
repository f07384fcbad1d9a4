"""
mdbook-code-align: re-indent marked code blocks in Markdown.

Fenced code blocks whose meta string contains the `align` token have their
indentation rebuilt as a tree and printed back with a canonical unit.

mdBook usage (book.toml):
    [preprocessor.code-align]
    command = "mdbook-code-align"

Library Usage:
    from mdbook_code_align import rewrite

    aligned = rewrite(Path("chapter.md").read_text())
"""

from .align import align
from .config import AlignConfig, ConfigError
from .exceptions import BookFormatError, MalformedMetaError, ParseError
from .indentation import parse_indented_text, render, tokenize
from .models import Line, MarkedBlock, RewriteResult, Subtext
from .rewriter import apply_edits, rewrite, rewrite_document
from .scanner import scan_document

__version__ = "0.1.0"

__all__ = [
    # Core functionality
    "rewrite",
    "rewrite_document",
    "scan_document",
    "apply_edits",
    "align",
    "tokenize",
    "parse_indented_text",
    "render",
    # Data models
    "AlignConfig",
    "Line",
    "MarkedBlock",
    "RewriteResult",
    "Subtext",
    # Exceptions
    "BookFormatError",
    "ConfigError",
    "MalformedMetaError",
    "ParseError",
    # Version
    "__version__",
]
