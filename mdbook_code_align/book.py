"""mdBook book model and JSON codec.

mdBook hands a preprocessor a JSON array ``[context, book]`` on stdin and reads
the processed book back from stdout. Book items are one of three variants:

    {"Chapter": {"name": ..., "content": ..., "sub_items": [...], ...}}
    "Separator"
    {"PartTitle": "..."}

Only chapter contents and sub-items are interpreted; every other field is
carried through untouched.
"""

from __future__ import annotations

import json
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any

from .exceptions import BookFormatError


@dataclass
class Chapter:
    """A chapter with its Markdown source and nested items.

    Attributes:
        name: Chapter title.
        content: Markdown source of the chapter.
        sub_items: Nested book items.
        extra: Remaining chapter fields (number, path, ...), kept verbatim.
    """

    name: str
    content: str
    sub_items: list[BookItem] = field(default_factory=list)
    extra: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Separator:
    """A separator between chapters."""


@dataclass(frozen=True)
class PartTitle:
    """A title introducing a part of the book."""

    title: str


BookItem = Chapter | Separator | PartTitle


@dataclass
class Book:
    """The book passed through a preprocessor.

    Attributes:
        items: Top-level book items.
        items_key: Key holding the items (``sections`` before mdBook 0.5,
            ``items`` afterwards).
        extra: Remaining book fields, kept verbatim.
    """

    items: list[BookItem] = field(default_factory=list)
    items_key: str = "sections"
    extra: dict[str, Any] = field(default_factory=dict)


@dataclass
class PreprocessorContext:
    """Context mdBook sends alongside the book.

    Attributes:
        root: Book root directory.
        config: Parsed `book.toml`.
        renderer: Name of the renderer the book is built for.
        mdbook_version: Version of the calling mdBook.
    """

    root: str = ""
    config: dict[str, Any] = field(default_factory=dict)
    renderer: str = ""
    mdbook_version: str = ""

    def as_mapping(self) -> dict[str, Any]:
        return {
            "root": self.root,
            "config": self.config,
            "renderer": self.renderer,
            "mdbook_version": self.mdbook_version,
        }


def item_from_json(data: object) -> BookItem:
    """Decode one book item.

    Raises:
        BookFormatError: If `data` is not one of the known variants.
    """
    if data == "Separator":
        return Separator()
    if isinstance(data, dict) and len(data) == 1:
        ((kind, payload),) = data.items()
        if kind == "PartTitle" and isinstance(payload, str):
            return PartTitle(payload)
        if kind == "Chapter" and isinstance(payload, dict):
            return _chapter_from_json(payload)
    raise BookFormatError(f"Unsupported book item: {_preview(data)}")


def _chapter_from_json(payload: dict[str, Any]) -> Chapter:
    extra = dict(payload)
    name = extra.pop("name", "")
    content = extra.pop("content", None)
    sub_items = extra.pop("sub_items", [])
    if not isinstance(content, str):
        raise BookFormatError(f"Chapter {name!r} has no Markdown content")
    if not isinstance(sub_items, list):
        raise BookFormatError(f"Chapter {name!r} has invalid sub-items")
    return Chapter(
        name=name,
        content=content,
        sub_items=[item_from_json(item) for item in sub_items],
        extra=extra,
    )


def item_to_json(item: BookItem) -> object:
    """Encode one book item back into mdBook's JSON shape."""
    if isinstance(item, Separator):
        return "Separator"
    if isinstance(item, PartTitle):
        return {"PartTitle": item.title}
    chapter = {
        "name": item.name,
        "content": item.content,
        "sub_items": [item_to_json(sub_item) for sub_item in item.sub_items],
    }
    chapter.update(item.extra)
    return {"Chapter": chapter}


def book_from_json(data: object) -> Book:
    """Decode a book object.

    Raises:
        BookFormatError: If the book has no item list or holds unknown items.
    """
    if not isinstance(data, dict):
        raise BookFormatError("Book must be a JSON object")
    extra = dict(data)
    for items_key in ("sections", "items"):
        if items_key in extra:
            raw_items = extra.pop(items_key)
            break
    else:
        raise BookFormatError("Book has neither `sections` nor `items`")
    if not isinstance(raw_items, list):
        raise BookFormatError(f"Book `{items_key}` must be a list")
    return Book(
        items=[item_from_json(item) for item in raw_items],
        items_key=items_key,
        extra=extra,
    )


def book_to_json(book: Book) -> dict[str, Any]:
    data = {book.items_key: [item_to_json(item) for item in book.items]}
    data.update(book.extra)
    return data


def context_from_json(data: object) -> PreprocessorContext:
    if not isinstance(data, dict):
        raise BookFormatError("Preprocessor context must be a JSON object")
    config = data.get("config") or {}
    if not isinstance(config, dict):
        raise BookFormatError("Preprocessor context `config` must be an object")
    return PreprocessorContext(
        root=str(data.get("root", "")),
        config=config,
        renderer=str(data.get("renderer", "")),
        mdbook_version=str(data.get("mdbook_version", "")),
    )


def parse_input(raw: str) -> tuple[PreprocessorContext, Book]:
    """Decode the ``[context, book]`` document mdBook writes to stdin.

    Raises:
        BookFormatError: If the input is not valid JSON or has the wrong shape.
    """
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as error:
        raise BookFormatError(f"Invalid preprocessor input: {error}") from error

    if not isinstance(data, list) or len(data) != 2:
        raise BookFormatError("Preprocessor input must be a `[context, book]` array")
    context, book = data
    return context_from_json(context), book_from_json(book)


def iter_chapters(items: list[BookItem]) -> Iterator[Chapter]:
    """Yield every chapter depth-first, each exactly once."""
    for item in items:
        if isinstance(item, Chapter):
            yield item
            yield from iter_chapters(item.sub_items)


def _preview(data: object, limit: int = 60) -> str:
    text = json.dumps(data, ensure_ascii=False)
    return text if len(text) <= limit else f"{text[:limit]}..."
