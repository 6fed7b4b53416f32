"""Tests for coverplane measure command."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from coverplane.cli.main import cli
from coverplane.report import Report

runner = CliRunner()


def _lcov(covered: int, total: int = 10) -> str:
    lines = "".join(f"DA:{n},{1 if n <= covered else 0}\n" for n in range(1, total + 1))
    return f"SF:src/app.py\n{lines}end_of_record\n"


LCOV = _lcov(8)
BASELINE_LCOV = _lcov(6)


@pytest.fixture
def project(tmp_path: Path) -> Path:
    """Project with an lcov report covering 8 of 10 lines."""
    root = tmp_path / "project"
    (root / "coverage").mkdir(parents=True)
    (root / "coverage" / "lcov.info").write_text(LCOV)
    (root / "src").mkdir()
    (root / "src" / "app.py").write_text("x = 1\ny = 2\n")
    (root / "tests").mkdir()
    (root / "tests" / "test_app.py").write_text(
        "def test_x():\n    assert True\n\n\ndef test_y():\n    pass\n"
    )
    return root


def _write_config(root: Path, text: str) -> None:
    (root / ".coverplane.yml").write_text(text)


class TestMeasureCommand:
    def test_measures_from_config(self, project: Path) -> None:
        _write_config(project, "coverage:\n  path: coverage/lcov.info\n")

        result = runner.invoke(cli, ["measure", str(project)])

        assert result.exit_code == 0, result.output
        assert "Coverage" in result.output
        assert "80.0%" in result.output

    def test_json_output(self, project: Path) -> None:
        result = runner.invoke(
            cli,
            ["measure", str(project), "--coverage", "coverage/lcov.info", "--json"],
        )

        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["coverage"]["covered"] == 8
        assert data["acceptable"] is True

    def test_coverage_directory_searched(self, project: Path) -> None:
        result = runner.invoke(cli, ["measure", str(project), "--coverage", "."])

        assert result.exit_code == 0, result.output
        assert "80.0%" in result.output

    def test_writes_compacted_report(self, project: Path) -> None:
        _write_config(
            project,
            "repository: acme/app\n"
            "coverage:\n  path: coverage/lcov.info\n"
            "report:\n  path: out/report.json\n",
        )

        result = runner.invoke(cli, ["measure", str(project), "--commit", "abc1234"])

        assert result.exit_code == 0, result.output
        report = Report.from_json((project / "out" / "report.json").read_text())
        assert report.repository == "acme/app"
        assert report.commit == "abc1234"
        assert report.coverage is not None
        assert report.coverage.percent == 80.0
        assert not report.coverage.detailed

    def test_code_to_test_ratio_and_time(self, project: Path) -> None:
        _write_config(
            project,
            "code_to_test_ratio:\n"
            "  code: ['src/**/*.py']\n"
            "  test: ['tests/**/*.py']\n"
            "test_execution_time:\n  seconds: 12\n",
        )

        result = runner.invoke(cli, ["measure", str(project), "--json"])

        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["code_to_test_ratio"]["code"] == 2
        assert data["code_to_test_ratio"]["test"] == 4
        assert data["test_execution_time"] == 12.0
        assert data["coverage"] is None

    def test_nothing_to_measure(self, project: Path) -> None:
        result = runner.invoke(cli, ["measure", str(project)])

        assert result.exit_code != 0
        assert "Nothing to measure" in result.output

    def test_bad_coverage_report(self, project: Path) -> None:
        (project / "bad.info").write_text("garbage\n")

        result = runner.invoke(cli, ["measure", str(project), "--coverage", "bad.info"])

        assert result.exit_code != 0
        assert "Could not detect coverage format" in result.output

    def test_invalid_config(self, project: Path) -> None:
        _write_config(project, "coverage: [unclosed\n")

        result = runner.invoke(cli, ["measure", str(project)])

        assert result.exit_code != 0
        assert "CONFIG_PARSE_ERROR" in result.output


class TestAcceptable:
    def test_passing_threshold(self, project: Path) -> None:
        _write_config(project, "coverage:\n  path: coverage/lcov.info\n  acceptable: 80%\n")

        result = runner.invoke(cli, ["measure", str(project)])

        assert result.exit_code == 0, result.output

    def test_failing_threshold(self, project: Path) -> None:
        _write_config(project, "coverage:\n  path: coverage/lcov.info\n  acceptable: 90%\n")

        result = runner.invoke(cli, ["measure", str(project)])

        assert result.exit_code == 1
        assert "coverage is not acceptable: current.coverage >= 90" in result.output

    def test_report_written_even_when_failing(self, project: Path) -> None:
        _write_config(
            project,
            "coverage:\n  path: coverage/lcov.info\n  acceptable: 90%\nreport:\n  path: r.json\n",
        )

        runner.invoke(cli, ["measure", str(project)])

        assert (project / "r.json").exists()

    def test_diff_against_raw_baseline(self, project: Path) -> None:
        (project / "base.info").write_text(BASELINE_LCOV)
        _write_config(
            project,
            "coverage:\n"
            "  path: coverage/lcov.info\n"
            "  acceptable: diff.coverage >= 20\n"
            "diff:\n  path: base.info\n",
        )

        result = runner.invoke(cli, ["measure", str(project), "--json"])

        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["diff"]["delta"] == pytest.approx(20.0)
        assert data["diff"]["files"][0]["delta"] == pytest.approx(20.0)

    def test_diff_without_baseline_is_an_error(self, project: Path) -> None:
        _write_config(
            project,
            "coverage:\n  path: coverage/lcov.info\n  acceptable: diff.coverage >= 0\n",
        )

        result = runner.invoke(cli, ["measure", str(project)])

        assert result.exit_code == 1
        assert "METRIC_NOT_MEASURED" in result.output

    def test_invalid_expression(self, project: Path) -> None:
        _write_config(
            project,
            "coverage:\n  path: coverage/lcov.info\n  acceptable: current.coverage >>= 1\n",
        )

        result = runner.invoke(cli, ["measure", str(project)])

        assert result.exit_code == 1
        assert "EXPRESSION_SYNTAX" in result.output

    def test_execution_time_shorthand(self, project: Path) -> None:
        _write_config(project, "test_execution_time:\n  acceptable: 10s\n")

        result = runner.invoke(cli, ["measure", str(project), "--test-execution-time", "12"])

        assert result.exit_code == 1
        assert "test_execution_time is not acceptable" in result.output
