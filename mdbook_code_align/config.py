"""Configuration loading and management."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, fields, replace
from pathlib import Path
import tomllib

CONFIG_TABLE = "code-align"
# Keys mdBook itself reads from a `[preprocessor.<name>]` table.
MDBOOK_PREPROCESSOR_KEYS = frozenset({"command", "renderers", "before", "after", "optional"})


@dataclass
class AlignConfig:
    """Configuration for aligning marked code blocks.

    Attributes:
        marker: Meta token that opts a code block into alignment.
        indent_chars: Indentation unit used when re-printing a block.
        indent_spaces: Number of spaces used for indentation; overrides
            `indent_chars` when set.
        unwrap_single_block: Whether a payload that is entirely one nested
            level deeper than its fence loses that level.
        keep_marker: Whether the marker stays in the rewritten fence meta.
        max_file_size: Maximum file size in bytes processed in single-file mode.

    Examples:
        AlignConfig(marker="align", indent_spaces=4)
    """

    marker: str = "align"

    # Formatting
    indent_chars: str = "   "
    indent_spaces: int | None = None
    unwrap_single_block: bool = True
    keep_marker: bool = True

    # Limits
    max_file_size: int = 10 * 1024 * 1024


class ConfigError(ValueError):
    """Exception raised when configuration values are invalid.

    Examples:
        raise ConfigError("`marker` must not be empty")
    """


def load_config(search_path: Path) -> AlignConfig:
    """Load configuration from the nearest config file.

    Walks parent directories from `search_path` to the filesystem root, reading
    the ``[tool.code-align]`` table from `pyproject.toml` and the
    ``[code-align]`` or ``[tool.code-align]`` table from `.code-align.toml`.
    TOML files that cannot be read or decoded are skipped.

    Args:
        search_path: Directory used as the starting point for configuration lookup.

    Returns:
        AlignConfig: Loaded configuration, or defaults when nothing is found.

    Raises:
        ConfigError: If a matching table is not a mapping or contains unsupported keys.

    Examples:
        load_config(Path("docs"))
    """
    current = search_path.resolve()

    while True:
        pyproject_config = _load_from_file(
            current / "pyproject.toml", table_paths=[("tool", CONFIG_TABLE)]
        )
        if pyproject_config is not None:
            return normalize_config(pyproject_config)

        dotfile_config = _load_from_file(
            current / f".{CONFIG_TABLE}.toml",
            table_paths=[(CONFIG_TABLE,), ("tool", CONFIG_TABLE)],
        )
        if dotfile_config is not None:
            return normalize_config(dotfile_config)

        parent = current.parent
        if parent == current:
            break
        current = parent

    return AlignConfig()


def config_from_book(context: Mapping[str, object]) -> AlignConfig:
    """Read configuration from the book settings mdBook forwards to preprocessors.

    The ``[preprocessor.code-align]`` table of `book.toml` arrives as JSON under
    ``context["config"]``. Keys consumed by mdBook itself are ignored.

    Args:
        context: Preprocessor context decoded from mdBook's input.

    Returns:
        AlignConfig: Validated configuration; defaults when the table is absent.

    Raises:
        ConfigError: If the table is not a mapping, contains unsupported keys,
            or holds invalid values.
    """
    raw_config = _extract_table(context, ("config", "preprocessor", CONFIG_TABLE))
    if raw_config is _MISSING:
        return AlignConfig()
    if isinstance(raw_config, dict):
        raw_config = {
            key: value for key, value in raw_config.items() if key not in MDBOOK_PREPROCESSOR_KEYS
        }
    config = normalize_config(
        _build_config_from_raw(raw_config, "book.toml", ("preprocessor", CONFIG_TABLE))
    )
    validate_config(config)
    return config


_MISSING = object()


def _load_from_file(config_file: Path, table_paths: list[tuple[str, ...]]) -> AlignConfig | None:
    if not config_file.exists():
        return None

    try:
        with open(config_file, "rb") as stream:
            data = tomllib.load(stream)
    except (OSError, tomllib.TOMLDecodeError):
        return None

    for table_path in table_paths:
        raw_config = _extract_table(data, table_path)
        if raw_config is _MISSING:
            continue
        return _build_config_from_raw(raw_config, config_file, table_path)

    return None


def _extract_table(data: object, table_path: tuple[str, ...]) -> object:
    current = data
    for key in table_path:
        if not isinstance(current, Mapping) or key not in current:
            return _MISSING
        current = current[key]
    return current


def _build_config_from_raw(
    raw_config: object, source: Path | str, table_path: tuple[str, ...]
) -> AlignConfig:
    table_display = ".".join(table_path)

    if raw_config is None:
        return AlignConfig()

    if not isinstance(raw_config, dict):
        raise ConfigError(f"Invalid `[{table_display}]` settings in {source}")

    # TOML keys are kebab-case by convention.
    raw_config = {key.replace("-", "_"): value for key, value in raw_config.items()}
    known = {config_field.name for config_field in fields(AlignConfig)}
    unknown = sorted(set(raw_config) - known)
    if unknown:
        raise ConfigError(
            f"Invalid `[{table_display}]` settings in {source}: "
            f"unsupported key(s) {', '.join(unknown)}"
        )

    return AlignConfig(**raw_config)


def normalize_config(config: AlignConfig) -> AlignConfig:
    indent_chars = config.indent_chars
    if config.indent_spaces is not None:
        _ensure_integers({"indent_spaces": config.indent_spaces})
        if config.indent_spaces <= 0:
            raise ConfigError("`indent_spaces` must be a positive integer")
        indent_chars = " " * config.indent_spaces

    return replace(config, indent_chars=indent_chars)


def validate_config(config: AlignConfig) -> None:
    """Validate an `AlignConfig` instance.

    Args:
        config: Configuration to validate.

    Raises:
        ConfigError: If the marker is empty or contains whitespace, the
            indentation unit is empty or not whitespace, a flag is not a
            boolean, or the size limit is not a positive integer.

    Examples:
        validate_config(AlignConfig(indent_spaces=2))
    """
    config = normalize_config(config)

    _ensure_integers({"max_file_size": config.max_file_size})

    if not isinstance(config.marker, str) or not config.marker:
        raise ConfigError("`marker` must not be empty")
    if any(character.isspace() for character in config.marker):
        raise ConfigError("`marker` must not contain whitespace")

    if not isinstance(config.indent_chars, str) or not config.indent_chars:
        raise ConfigError("`indent_chars` must not be empty")
    if not config.indent_chars.isspace() or "\n" in config.indent_chars or "\r" in config.indent_chars:
        raise ConfigError("`indent_chars` must only contain spaces or tabs")

    for name in ("unwrap_single_block", "keep_marker"):
        if not isinstance(getattr(config, name), bool):
            raise ConfigError(f"`{name}` must be a boolean")

    _ensure_positive({"max_file_size": config.max_file_size})


def apply_overrides(config: AlignConfig, **overrides: object) -> AlignConfig:
    """Apply override values to an `AlignConfig`.

    Args:
        config: Base configuration to update.
        overrides: Override values keyed by field name; None values are ignored.

    Returns:
        AlignConfig: Updated configuration, or `config` itself when nothing changes.

    Raises:
        TypeError: If an override name is not defined on `AlignConfig`.

    Examples:
        updated = apply_overrides(config, marker="reindent", indent_spaces=2)
    """
    changes = {key: value for key, value in overrides.items() if value is not None}
    if "indent_chars" in changes and "indent_spaces" not in changes:
        changes["indent_spaces"] = None
    if not changes:
        return config
    return replace(config, **changes)


def build_config(search_path: Path, **overrides: object) -> AlignConfig:
    """Load, override, and validate configuration.

    Args:
        search_path: Directory where configuration files are resolved.
        overrides: Override values keyed by configuration attributes; None
            values are ignored.

    Returns:
        AlignConfig: Validated configuration.

    Raises:
        ConfigError: If configuration loading or validation fails.

    Examples:
        config = build_config(Path.cwd(), marker="align", indent_spaces=4)
    """
    config = load_config(search_path)
    config = apply_overrides(config, **overrides)
    config = normalize_config(config)
    validate_config(config)
    return config


def _ensure_positive(values: dict[str, int]) -> None:
    for key, value in values.items():
        if value <= 0:
            raise ConfigError(f"`{key}` must be a positive integer")


def _ensure_integers(values: dict[str, object]) -> None:
    for key, value in values.items():
        if isinstance(value, bool) or not isinstance(value, int):
            raise ConfigError(f"`{key}` must be an integer")
