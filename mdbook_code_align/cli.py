"""
mdBook preprocessor that re-indents code blocks marked with `align`.
Run without a subcommand, it speaks mdBook's preprocessor protocol on
stdin/stdout; the `file` subcommand aligns a single Markdown file.
"""

from __future__ import annotations

import logging
from pathlib import Path

import click

from .config import ConfigError, build_config
from .exceptions import ParseError
from .filesystem import max_file_size, read_markdown, replace_markdown, resolve_markdown_path
from .preprocessor import process, supports_renderer
from .rewriter import rewrite_document

__all__ = ["cli"]

LOG_FORMAT = "[%(levelname)s] %(message)s"
DEBUG_LOG_FORMAT = "[%(levelname)s] [%(name)s:%(lineno)d] %(message)s"


def configure_logging(verbosity: int) -> None:
    """Send log records to stderr; nothing is configured when `verbosity` is 0."""
    if verbosity <= 0:
        return
    level = logging.INFO if verbosity == 1 else logging.DEBUG
    logging.basicConfig(
        level=level, format=LOG_FORMAT if level == logging.INFO else DEBUG_LOG_FORMAT
    )


def _warn(message: str) -> None:
    click.echo(message, err=True)


@click.group(invoke_without_command=True)
@click.version_option()
@click.option("-v", "--verbose", count=True, help="Log to stderr (repeat for debug output)")
@click.pass_context
def cli(ctx: click.Context, verbose: int):
    """
    Align the indentation of code blocks whose fence meta contains `align`.

    Without a subcommand, reads mdBook's `[context, book]` JSON from stdin and
    writes the processed book to stdout.

    Raises:
        click.ClickException: If the input is malformed, the book settings are
            invalid, or a chapter cannot be parsed.

    Examples:
        mdbook-code-align supports html
        mdbook-code-align file src/chapter_1.md --check
    """
    configure_logging(verbose)
    if ctx.invoked_subcommand is not None:
        return

    raw_input = click.get_text_stream("stdin").read()
    try:
        output = process(raw_input, warn=_warn)
    except (ParseError, ConfigError) as error:
        raise click.ClickException(str(error)) from error
    click.echo(output, nl=False)


@cli.command()
@click.argument("renderer")
@click.pass_context
def supports(ctx: click.Context, renderer: str):
    """Exit with 0 when RENDERER is supported, 1 otherwise."""
    ctx.exit(0 if supports_renderer(renderer) else 1)


@cli.command("file")
@click.option("--marker", help="Meta token marking blocks to align")
@click.option("--indent-spaces", type=int, help="Spaces per indentation level")
@click.option("--check", is_flag=True, help="Exit with 1 when the file would change")
@click.option("--stdout", "to_stdout", is_flag=True, help="Print the result instead of rewriting")
@click.argument("filepath", type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def align_file(
    ctx: click.Context,
    filepath: str,
    marker: str | None = None,
    indent_spaces: int | None = None,
    check: bool = False,
    to_stdout: bool = False,
):
    """
    Align the marked code blocks of a single Markdown file.

    The file is rewritten in place unless `--check` or `--stdout` is given.

    Raises:
        click.BadParameter: If the path or configuration overrides are invalid.
        click.ClickException: If the file is too large, changes while being
            processed, cannot be parsed, or cannot be written.

    Examples:
        mdbook-code-align file README.md --indent-spaces 4
    """
    base_dir = Path.cwd().resolve()
    try:
        path = resolve_markdown_path(filepath, base_dir)
    except ValueError as error:
        raise click.BadParameter(str(error)) from error
    try:
        config = build_config(path.parent, marker=marker, indent_spaces=indent_spaces)
    except ConfigError as error:
        raise click.BadParameter(str(error)) from error

    try:
        size_limit = max_file_size(default=config.max_file_size)
    except ValueError as error:
        raise click.ClickException(str(error)) from error

    try:
        source = read_markdown(path, size_limit)
    except UnicodeDecodeError as error:
        raise click.ClickException(f"Invalid UTF-8 sequence in {path}: {error}") from error
    except IOError as error:
        raise click.ClickException(str(error)) from error

    try:
        result = rewrite_document(source.content, config)
    except ParseError as error:
        raise click.ClickException(f"{path}: {error}") from error

    if to_stdout:
        click.echo(result.content, nl=False)
        return

    if check:
        if result.changed:
            click.echo(f"{path} would be realigned ({result.realigned} marked block(s))")
            ctx.exit(1)
        return

    if not result.changed:
        return

    try:
        replace_markdown(source, result.content, warn=_warn)
    except IOError as error:
        raise click.ClickException(str(error)) from error


if __name__ == "__main__":
    cli()
