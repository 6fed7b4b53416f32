"""coverplane CLI - coverplane command."""

from pathlib import Path

import click

from coverplane.cli.diff import diff_command
from coverplane.cli.measure import measure_command
from coverplane.cli.view import view_command
from coverplane.core.logging import configure_logging


@click.group()
@click.version_option(version="0.1.0", prog_name="coverplane")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.option(
    "-c",
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Config file (default: .coverplane.yml in the project root)",
)
@click.pass_context
def cli(ctx: click.Context, verbose: bool, config_path: Path | None) -> None:
    """coverplane - Coverage report ingestion, comparison and thresholds."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["config_path"] = config_path
    configure_logging(level="DEBUG" if verbose else "WARNING")


cli.add_command(measure_command, name="measure")
cli.add_command(view_command, name="view")
cli.add_command(diff_command, name="diff")


if __name__ == "__main__":
    cli()
