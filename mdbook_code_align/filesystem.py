"""Reading and rewriting a standalone Markdown file in place."""

from __future__ import annotations

import os
import stat
import tempfile
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from .constants import DEFAULT_MAX_FILE_SIZE, MARKDOWN_EXTENSIONS

MAX_FILE_SIZE_ENV_VAR = "CODE_ALIGN_MAX_FILE_SIZE"


@dataclass(frozen=True)
class MarkdownSource:
    """Text of a Markdown file together with the stat taken when it was read.

    Attributes:
        path: Resolved path of the file.
        content: File text, line endings untouched.
        snapshot: Stat of the file once reading finished; a rewrite is refused
            when the file no longer matches it.
        atime_ns: Access time before reading, restored after a rewrite.
    """

    path: Path
    content: str
    snapshot: os.stat_result
    atime_ns: int


def max_file_size(default: int = DEFAULT_MAX_FILE_SIZE) -> int:
    """Return the size limit, taking `CODE_ALIGN_MAX_FILE_SIZE` over `default`.

    Raises:
        ValueError: If the environment value is not a positive integer.
    """
    raw = os.environ.get(MAX_FILE_SIZE_ENV_VAR)
    if raw is None:
        return default
    try:
        limit = int(raw)
    except ValueError as error:
        raise ValueError(
            f"Invalid value for {MAX_FILE_SIZE_ENV_VAR}: {raw} (expected positive integer)"
        ) from error
    if limit <= 0:
        raise ValueError(f"{MAX_FILE_SIZE_ENV_VAR} must be a positive integer, got {limit}.")
    return limit


def resolve_markdown_path(raw_path: str, base_dir: Path) -> Path:
    """Resolve the path of a chapter to align and check it may be rewritten.

    The file must exist, be reached without symlinks, sit under `base_dir`
    and carry a Markdown extension.

    Raises:
        ValueError: If any of those conditions does not hold.

    Examples:
        resolve_markdown_path("src/chapter_1.md", Path.cwd())
    """
    path = Path(raw_path).expanduser()
    if _through_symlink(path):
        raise ValueError(f"Symlinks are not supported: {path}")

    try:
        resolved = path.resolve(strict=True)
    except FileNotFoundError as error:
        raise ValueError(f"{path} does not exist.") from error
    except OSError as error:
        raise ValueError(f"Error resolving {path}: {error}") from error

    if not resolved.is_file():
        raise ValueError(f"{resolved} is not a regular file.")
    if not resolved.is_relative_to(base_dir):
        raise ValueError(f"{resolved} is outside of the working directory {base_dir}.")
    if resolved.suffix.lower() not in MARKDOWN_EXTENSIONS:
        raise ValueError(
            f"{resolved} is not a Markdown file (expected {', '.join(MARKDOWN_EXTENSIONS)})."
        )
    return resolved


def _through_symlink(path: Path) -> bool:
    for candidate in (path, *path.parents):
        try:
            if candidate.is_symlink():
                return True
        except OSError:
            continue
    return False


def _snapshot(path: Path) -> os.stat_result:
    try:
        stat_result = os.stat(path, follow_symlinks=False)
    except OSError as error:
        raise IOError(f"Error accessing {path}: {error}") from error
    if not stat.S_ISREG(stat_result.st_mode):
        raise IOError(f"{path} is not a regular file.")
    return stat_result


def _same_file(before: os.stat_result, after: os.stat_result) -> bool:
    return (before.st_ino, before.st_dev, before.st_size, before.st_mtime_ns) == (
        after.st_ino,
        after.st_dev,
        after.st_size,
        after.st_mtime_ns,
    )


def read_markdown(path: Path, size_limit: int = DEFAULT_MAX_FILE_SIZE) -> MarkdownSource:
    """Read a Markdown file, refusing oversized files and concurrent writers.

    Line endings are kept as they are so block offsets match the file.

    Raises:
        IOError: If the file is not a regular file, exceeds `size_limit`, or
            changes while being read.
        UnicodeDecodeError: If the file is not valid UTF-8.
    """
    before = _snapshot(path)
    if before.st_size > size_limit:
        raise IOError(f"{path} exceeds the maximum allowed size of {size_limit} bytes.")

    with open(path, encoding="UTF-8", newline="") as file:
        content = file.read()

    after = _snapshot(path)
    if not _same_file(before, after):
        raise IOError(f"{path} changed during processing; refusing to overwrite.")
    return MarkdownSource(path, content, after, before.st_atime_ns)


def replace_markdown(
    source: MarkdownSource, content: str, warn: Callable[[str], None] | None = None
):
    """Atomically replace the file `source` was read from with `content`.

    The text is written to a temporary file in the same directory, synced and
    given the original mode and ownership, then moved over the original. Its
    access time is restored afterwards.

    Args:
        source: Result of `read_markdown` for the file.
        content: New file text.
        warn: Called with a message when ownership cannot be preserved.

    Raises:
        IOError: If the file changed since it was read or cannot be replaced.
    """
    path = source.path
    if not _same_file(source.snapshot, _snapshot(path)):
        raise IOError(f"{path} changed during processing; refusing to overwrite.")

    temp_path: Path | None = None
    try:
        with tempfile.NamedTemporaryFile(
            mode="w", encoding="UTF-8", newline="", delete=False, dir=path.parent
        ) as tmp_file:
            temp_path = Path(tmp_file.name)
            tmp_file.write(content)
            tmp_file.flush()
            os.fsync(tmp_file.fileno())
        os.chmod(temp_path, stat.S_IMODE(source.snapshot.st_mode))
        if hasattr(os, "chown"):
            try:
                os.chown(temp_path, source.snapshot.st_uid, source.snapshot.st_gid)
            except PermissionError:
                if warn is not None:
                    warn(f"Warning: Could not preserve file ownership for {path.name}")

        os.replace(temp_path, path)
        temp_path = None
        os.utime(path, ns=(source.atime_ns, path.stat().st_mtime_ns))
    finally:
        if temp_path is not None:
            temp_path.unlink(missing_ok=True)
