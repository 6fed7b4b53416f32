"""coverplane view command - show source annotated with execution counts."""

from pathlib import Path

import click
from rich.console import Console
from rich.rule import Rule

from coverplane.cli.utils import load_cli_config, load_report_or_fail, resolve_path
from coverplane.coverage import PARSER_BY_FORMAT, print_annotated


def _project_path(file: Path, root: Path) -> str:
    """Root-relative path when file is inside root, else absolute."""
    full = file.resolve()
    try:
        return full.relative_to(root).as_posix()
    except ValueError:
        return full.as_posix()


@click.command()
@click.argument(
    "files",
    nargs=-1,
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "--coverage",
    "coverage_path",
    type=click.Path(path_type=Path),
    help="Coverage report file or directory (overrides coverage.path)",
)
@click.option(
    "--format",
    "format_id",
    type=click.Choice(sorted(PARSER_BY_FORMAT)),
    help="Force a coverage format instead of detecting it",
)
@click.option(
    "--root",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=".",
    help="Project root (default: current directory)",
)
@click.pass_context
def view_command(
    ctx: click.Context,
    files: tuple[Path, ...],
    coverage_path: Path | None,
    format_id: str | None,
    root: Path,
) -> None:
    """Print FILES with per-line execution counts from the coverage report."""
    root = root.resolve()
    config = load_cli_config(ctx, root)

    cov_value = coverage_path or config.coverage.path
    if cov_value is None:
        raise click.ClickException("No coverage report. Pass --coverage or set coverage.path.")
    report = load_report_or_fail(
        resolve_path(cov_value, root),
        format_id=format_id or config.coverage.format,
        root=root,
    )
    coverage = report.coverage
    if coverage is None:
        raise click.ClickException(f"{cov_value}: report has no coverage")
    if not coverage.detailed:
        raise click.ClickException(f"{cov_value}: report has no per-line detail")

    console = Console()
    for file in files:
        fc = coverage.find(_project_path(file, root), root=str(root))
        if fc is None:
            raise click.ClickException(f"{file}: not found in coverage report")
        if len(files) > 1:
            console.print(Rule(str(file), align="left"))
        with file.open(encoding="utf-8", errors="replace") as f:
            print_annotated(fc, f, console=console)
