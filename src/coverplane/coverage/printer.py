"""Line-by-line source listing annotated with execution counts.

Output per source line:

    12     3 |     if err != nil {
    13     0 |         return err
    14       | }

The count column is blank for lines that are not instrumented. Covered
lines are green, unexecuted lines red (when the console supports color).
"""

from __future__ import annotations

from collections.abc import Iterable

from rich.console import Console
from rich.text import Text

from coverplane.coverage.models import FileCoverage

_COVERED_STYLE = "green"
_UNCOVERED_STYLE = "red"


def annotate_lines(
    fc: FileCoverage | None,
    source: Iterable[str],
) -> list[Text]:
    """Build one styled Text per source line.

    A missing FileCoverage (file outside the report) renders every line as
    not instrumented.
    """
    lines = [line.rstrip("\r\n") for line in source]
    counts = fc.line_counts() if fc is not None else {}
    number_width = len(str(len(lines))) if lines else 1
    count_width = max((len(str(c)) for c in counts.values()), default=1)

    result: list[Text] = []
    for lineno, content in enumerate(lines, start=1):
        count = counts.get(lineno)
        count_str = "" if count is None else str(count)
        text = Text(f"{lineno:>{number_width}} {count_str:>{count_width}} | {content}")
        if count is not None:
            text.stylize(_COVERED_STYLE if count > 0 else _UNCOVERED_STYLE)
        result.append(text)
    return result


def print_annotated(
    fc: FileCoverage | None,
    source: Iterable[str],
    *,
    console: Console | None = None,
) -> None:
    """Print annotated source to console (stdout by default)."""
    console = console or Console()
    for text in annotate_lines(fc, source):
        console.print(text, soft_wrap=True, highlight=False)
