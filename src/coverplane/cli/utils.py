"""CLI utilities."""

from pathlib import Path

import click

from coverplane.config import CoverPlaneConfig, load_config
from coverplane.core.errors import CoverPlaneError
from coverplane.core.logging import configure_logging
from coverplane.coverage import CoverageParseError
from coverplane.report import Report, load_report


def load_cli_config(ctx: click.Context, root: Path) -> CoverPlaneConfig:
    """Load config for root and reconfigure logging from it.

    Raises:
        click.ClickException: If the config cannot be loaded.
    """
    obj = ctx.find_root().obj or {}
    try:
        config = load_config(root, config_path=obj.get("config_path"))
    except CoverPlaneError as e:
        raise click.ClickException(str(e)) from e

    logging_config = config.logging
    if obj.get("verbose"):
        logging_config = logging_config.model_copy(update={"level": "DEBUG"})
    configure_logging(config=logging_config)
    return config


def resolve_path(value: str | Path, root: Path) -> Path:
    """Resolve a config/CLI path relative to the project root."""
    path = Path(value).expanduser()
    return path if path.is_absolute() else root / path


def load_report_or_fail(
    path: Path,
    *,
    format_id: str | None = None,
    root: Path | None = None,
) -> Report:
    """load_report with errors converted to click exceptions."""
    try:
        return load_report(path, format_id=format_id, root=root)
    except (CoverageParseError, ValueError) as e:
        raise click.ClickException(f"{path}: {e}") from e
