"""coverplane diff command - compare two reports."""

import json
from pathlib import Path

import click
from rich.console import Console

from coverplane.cli.utils import load_report_or_fail
from coverplane.report import render_file_diffs, render_table


@click.command()
@click.argument("current", type=click.Path(exists=True, path_type=Path))
@click.argument("baseline", type=click.Path(exists=True, path_type=Path))
@click.option(
    "--root",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Project root used to resolve relative report sources",
)
@click.option("--all", "show_all", is_flag=True, help="Also list files whose coverage did not move")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def diff_command(
    current: Path,
    baseline: Path,
    root: Path | None,
    show_all: bool,
    as_json: bool,
) -> None:
    """Compare CURRENT against BASELINE.

    Each side is a stored report JSON or a raw coverage report.
    """
    root = root.resolve() if root is not None else None
    cur = load_report_or_fail(current, root=root)
    base = load_report_or_fail(baseline, root=root)

    result = cur.compare(base)
    if as_json:
        click.echo(
            json.dumps(
                {
                    "coverage": result.coverage.to_dict() if result.coverage else None,
                    "code_to_test_ratio": result.code_to_test_ratio_delta,
                    "test_execution_time": result.test_execution_time_delta,
                },
                indent=2,
            )
        )
        return

    console = Console()
    console.print(render_table(cur, base))
    if result.coverage is not None:
        console.print()
        console.print(render_file_diffs(result.coverage, changed_only=not show_all))
