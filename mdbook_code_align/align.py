"""Re-indentation of a single code block payload."""

from __future__ import annotations

from .constants import CANONICAL_INDENT
from .indentation import parse_indented_text, render
from .models import Subtext, TextStructure


def unwrap_single_subtext(structure: TextStructure) -> TextStructure:
    """Drop one level of nesting when it wraps the whole structure.

    A payload whose lines all sit one level deeper than the fence usually
    carries indentation that belongs to the surrounding document. Text made of
    a single nested construct is indistinguishable from that case and is
    unwrapped as well.

    Examples:
        unwrap_single_subtext([Subtext([Line("x")])])  # [Line("x")]
        unwrap_single_subtext([Line("x"), Subtext([Line("y")])])  # unchanged
    """
    if len(structure) == 1 and isinstance(structure[0], Subtext):
        return structure[0].children
    return structure


def align(
    line_prefix: str,
    content: str,
    indent_unit: str = CANONICAL_INDENT,
    unwrap: bool = True,
) -> str:
    """Normalize the indentation of a code block payload.

    Args:
        line_prefix: Text placed before every output line, typically the
            block-quote markers preceding the opening fence.
        content: Raw payload between the fences.
        indent_unit: Indentation written per nesting level.
        unwrap: Whether to apply `unwrap_single_subtext`.

    Returns:
        str: Re-indented payload, each line terminated by a newline. The
            closing fence is not included.

    Examples:
        align("", "    fn main() {}\\n")  # "fn main() {}\\n"
        align("> ", "if x:\\n        y\\n")  # "> if x:\\n>    y\\n"
    """
    structure = parse_indented_text(content)
    if unwrap:
        structure = unwrap_single_subtext(structure)
    return render(structure, line_prefix, indent_unit)
