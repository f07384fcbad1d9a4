from __future__ import annotations

import pytest

from mdbook_code_align.config import AlignConfig, ConfigError
from mdbook_code_align.exceptions import MalformedMetaError, ParseError
from mdbook_code_align.scanner import (
    has_marker,
    line_spans,
    meta_tokens,
    parse_markdown,
    scan_document,
    split_info,
)

DOC = "# Title\n\nSome text\n\n```rust align\n    fn main() {}\n```\n\nend\n"
QUOTED = "> quote\n>\n> ```rust align\n>     fn main() {}\n> ```\n> after\n"


def test_scan_finds_marked_block():
    (block,) = scan_document(DOC)

    assert block.start == DOC.index("```")
    assert DOC[block.start : block.end] == "```rust align\n    fn main() {}\n```"
    assert block.lang == "rust"
    assert block.meta == "align"
    assert block.content == "    fn main() {}\n"
    assert block.line_prefix == ""
    assert block.fence == "```"


def test_scan_records_block_quote_prefix():
    (block,) = scan_document(QUOTED)

    assert block.line_prefix == "> "
    assert block.content == "    fn main() {}\n"
    assert QUOTED[block.start : block.end] == "```rust align\n>     fn main() {}\n> ```"


def test_scan_list_item_block():
    content = "- item\n\n  ```py align\n      x\n  ```\n"

    (block,) = scan_document(content)

    assert block.line_prefix == "  "
    assert block.content == "    x\n"
    assert content[block.start : block.end] == "```py align\n      x\n  ```"


def test_scan_tilde_fence():
    content = "~~~~ python align\n  a\n    b\n~~~~\n"

    (block,) = scan_document(content)

    assert block.fence == "~~~~"
    assert block.lang == "python"
    assert block.meta == "align"
    assert content[block.start : block.end] == content.rstrip("\n")


def test_scan_unclosed_fence_ends_with_document():
    content = "```py align\n  x\n"

    (block,) = scan_document(content)

    assert block.end == len(content) - 1
    assert block.content == "  x\n"


def test_scan_keeps_document_order():
    content = "```a align\nx\n```\n\ntext\n\n```b align\ny\n```\n"

    blocks = scan_document(content)

    assert [block.lang for block in blocks] == ["a", "b"]
    assert blocks[0].end < blocks[1].start


def test_scan_ignores_unmarked_blocks():
    content = "```rust,noplaypen\n    fn main() {}\n```\n\n    indented code align\n"

    assert scan_document(content) == []


def test_scan_ignores_marker_as_language():
    assert scan_document("```align\n  x\n```\n") == []


def test_scan_ignores_marker_substring():
    assert scan_document("```rust aligned\n  x\n```\n") == []


def test_scan_ignores_marker_inside_quoted_attribute():
    assert scan_document('```rust title="align me"\n  x\n```\n') == []


def test_scan_accepts_marker_next_to_quoted_attribute():
    content = '```rust,noplaypen title="Here is an example" fgfg align\n  x\n```\n'

    (block,) = scan_document(content)

    assert block.lang == "rust,noplaypen"
    assert block.meta == 'title="Here is an example" fgfg align'


def test_scan_treats_quotes_as_plain_characters():
    (block,) = scan_document('```rust title="oops align\n  x\n```\n')

    assert block.meta == 'title="oops align'
    assert scan_document('```rust "align"\n  x\n```\n') == []


def test_scan_custom_marker():
    content = "```rust reindent\n  x\n```\n\n```rust align\n  y\n```\n"

    (block,) = scan_document(content, AlignConfig(marker="reindent"))

    assert block.meta == "reindent"


def test_scan_rejects_invalid_config():
    with pytest.raises(ConfigError):
        scan_document(DOC, AlignConfig(marker=""))


def test_scan_crlf_offsets():
    content = "text\r\n\r\n```py align\r\n    x\r\n```\r\nafter\r\n"

    (block,) = scan_document(content)

    assert content[block.start : block.end] == "```py align\r\n    x\r\n```"


def test_parse_markdown_rejects_non_string():
    with pytest.raises(ParseError):
        parse_markdown(b"```rust align\n```\n")


def test_split_info():
    assert split_info("rust align") == ("rust", "align")
    assert split_info("  rust   title='x'  align ") == ("rust", "title='x'  align")
    assert split_info("rust") == ("rust", None)
    assert split_info("") == (None, None)


def test_meta_tokens_split_on_whitespace():
    assert meta_tokens('title="An example"  align') == ['title="An', 'example"', "align"]
    assert meta_tokens("a\\ align") == ["a\\", "align"]
    assert meta_tokens("") == []


def test_meta_tokens_rejects_non_string():
    with pytest.raises(MalformedMetaError) as excinfo:
        meta_tokens(42)  # type: ignore[arg-type]

    assert excinfo.value.meta == 42


def test_has_marker():
    assert has_marker("fgfg align", "align")
    assert not has_marker(None, "align")
    assert not has_marker("", "align")
    assert not has_marker("alignment", "align")
    assert has_marker("title=Don't align", "align")
    assert not has_marker('"align"', "align")
    assert not has_marker(["align"], "align")  # type: ignore[arg-type]


def test_line_spans():
    assert line_spans("a\r\nbc\rd\n") == [(0, 1), (3, 5), (6, 7), (8, 8)]
    assert line_spans("") == [(0, 0)]
