"""Constants used across the mdbook-code-align package."""

from __future__ import annotations

from .config import AlignConfig

DEFAULT_CONFIG = AlignConfig()

CANONICAL_INDENT = DEFAULT_CONFIG.indent_chars
DEFAULT_MAX_FILE_SIZE = DEFAULT_CONFIG.max_file_size

MARKDOWN_EXTENSIONS = (".md", ".markdown")

# mdBook preprocessor protocol
PREPROCESSOR_NAME = "align-preprocessor"
MDBOOK_VERSION = "0.4.21"
