"""coverplane measure command - measure, compare, store and check."""

import json
from pathlib import Path

import click
from rich.console import Console

from coverplane.acceptable import Metrics, compile_expression
from coverplane.cli.utils import load_cli_config, load_report_or_fail, resolve_path
from coverplane.config import CoverPlaneConfig
from coverplane.core.errors import CoverPlaneError
from coverplane.core.logging import clear_measurement_id, get_logger, set_measurement_id
from coverplane.coverage import PARSER_BY_FORMAT, CoverageParseError
from coverplane.report import Report, render_table

log = get_logger("cli.measure")


def _acceptable_expressions(config: CoverPlaneConfig, report: Report) -> list[tuple[str, str]]:
    """(metric, expression) pairs configured for the measured metrics."""
    checks: list[tuple[str, str]] = []
    if report.is_measured_coverage() and config.coverage.acceptable:
        checks.append(("coverage", config.coverage.acceptable))
    if report.is_measured_code_to_test_ratio() and config.code_to_test_ratio.acceptable:
        checks.append(("code_to_test_ratio", config.code_to_test_ratio.acceptable))
    if report.is_measured_test_execution_time() and config.test_execution_time.acceptable:
        checks.append(("test_execution_time", config.test_execution_time.acceptable))
    return checks


@click.command()
@click.argument("path", default=".", type=click.Path(exists=True, file_okay=False, path_type=Path))
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
    "--test-execution-time",
    "exec_time",
    type=click.FloatRange(min=0),
    help="Test run duration in seconds",
)
@click.option(
    "--diff",
    "diff_path",
    type=click.Path(path_type=Path),
    help="Baseline report JSON or coverage report (overrides diff.path)",
)
@click.option(
    "--report",
    "report_path",
    type=click.Path(path_type=Path),
    help="Write the report JSON here (overrides report.path)",
)
@click.option("--ref", default=None, help="Branch or tag recorded in the report")
@click.option("--commit", default=None, help="Commit id recorded in the report")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def measure_command(
    ctx: click.Context,
    path: Path,
    coverage_path: Path | None,
    format_id: str | None,
    exec_time: float | None,
    diff_path: Path | None,
    report_path: Path | None,
    ref: str | None,
    commit: str | None,
    as_json: bool,
) -> None:
    """Measure coverage, code-to-test ratio and test execution time.

    PATH is the project root (default: current directory). Settings come
    from .coverplane.yml; options override them.
    """
    root = path.resolve()
    config = load_cli_config(ctx, root)
    measurement_id = set_measurement_id()
    log.debug("measure_started", root=str(root), measurement_id=measurement_id)

    try:
        report = Report(repository=config.repository, ref=ref, commit=commit)

        cov_value = coverage_path or config.coverage.path
        if cov_value is not None:
            try:
                report.measure_coverage(
                    resolve_path(cov_value, root),
                    format_id=format_id or config.coverage.format,
                    root=root,
                )
            except CoverageParseError as e:
                raise click.ClickException(f"Coverage: {e}") from e

        ratio_config = config.code_to_test_ratio
        if ratio_config.test:
            report.measure_code_to_test_ratio(root, ratio_config.code, ratio_config.test)

        seconds = exec_time if exec_time is not None else config.test_execution_time.seconds
        if seconds is not None:
            report.set_test_execution_time(seconds)

        if report.count_measured() == 0:
            raise click.ClickException(
                "Nothing to measure. Set coverage.path, code_to_test_ratio.test "
                "or test_execution_time.seconds."
            )

        baseline = None
        diff_value = diff_path or config.diff.path
        if diff_value is not None:
            baseline = load_report_or_fail(resolve_path(diff_value, root), root=root)

        failures = _check_acceptable(config, report, baseline)

        if as_json:
            out = report.to_dict()
            if baseline is not None:
                coverage_diff = report.compare(baseline).coverage
                if coverage_diff is not None:
                    out["diff"] = coverage_diff.to_dict()
            out["acceptable"] = not failures
            click.echo(json.dumps(out, indent=2))
        else:
            Console().print(render_table(report, baseline))

        out_value = report_path or config.report.path
        if out_value is not None:
            out_path = resolve_path(out_value, root)
            if config.report.compact:
                report.compact()
            out_path.parent.mkdir(parents=True, exist_ok=True)
            out_path.write_text(report.to_json(indent=2) + "\n")
            log.info("report_written", path=str(out_path))

        if failures:
            raise click.ClickException("\n".join(failures))
    finally:
        clear_measurement_id()


def _check_acceptable(
    config: CoverPlaneConfig,
    report: Report,
    baseline: Report | None,
) -> list[str]:
    """Evaluate configured thresholds; return one message per failure."""
    failures: list[str] = []
    checks = _acceptable_expressions(config, report)
    if not checks:
        return failures

    metrics = Metrics.from_reports(report, baseline)
    for metric, source in checks:
        try:
            expr = compile_expression(source, metric=metric)
            ok = expr.evaluate(metrics)
        except CoverPlaneError as e:
            raise click.ClickException(f"{metric}.acceptable: {e}") from e
        log.debug("acceptable_checked", metric=metric, expression=expr.source, ok=ok)
        if not ok:
            failures.append(f"{metric} is not acceptable: {expr.source}")
    return failures
