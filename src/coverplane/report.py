"""Measurement report: the unit that is stored and compared.

A Report bundles the independent measurements of one run (coverage,
code-to-test ratio, test execution time) with a timestamp. Each measurement
is optional; ``count_measured`` tells how many were taken.

JSON schema (``Report.to_json``)::

    {
      "repository": "owner/repo",
      "ref": "refs/heads/main",
      "commit": "a2ecb4b...",
      "coverage": {
        "type": "loc",
        "format": "lcov",
        "total": 10,
        "covered": 8,
        "files": [
          {"type": "loc", "file": "src/a.py", "total": 10, "covered": 8,
           "lines": [[1, 3], [2, 0]]},
          {"type": "stmt", "file": "pkg/b.go", "total": 4, "covered": 3,
           "blocks": [{"start_line": 1, "start_col": 2, "end_line": 3,
                       "end_col": 4, "num_stmt": 3, "count": 1}]}
        ]
      },
      "code_to_test_ratio": {"code": 100, "test": 120, "files": [...]},
      "test_execution_time": 31.5,
      "timestamp": "2026-10-19T08:00:00+00:00"
    }

``lines``/``blocks`` are omitted for compacted files.
"""

from __future__ import annotations

import json
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from rich.table import Table

from coverplane.core.logging import get_logger
from coverplane.coverage import (
    BlockCoverage,
    Coverage,
    CoverageDiff,
    FileCoverage,
    diff_coverage,
    parse_artifact,
)
from coverplane.ratio import CodeToTestRatio, measure_code_to_test_ratio

log = get_logger("report")


# =============================================================================
# Coverage (de)serialization
# =============================================================================


def _block_to_dict(block: BlockCoverage) -> dict[str, Any]:
    return {
        "start_line": block.start_line,
        "start_col": block.start_col,
        "end_line": block.end_line,
        "end_col": block.end_col,
        "num_stmt": block.num_stmt,
        "count": block.count,
    }


def _file_to_dict(fc: FileCoverage) -> dict[str, Any]:
    data: dict[str, Any] = {
        "type": fc.kind,
        "file": fc.path,
        "total": fc.total,
        "covered": fc.covered,
    }
    if fc.detailed:
        if fc.kind == "loc":
            data["lines"] = [[line, hits] for line, hits in sorted(fc.lines.items())]
        else:
            data["blocks"] = [_block_to_dict(b) for b in fc.blocks]
    return data


def coverage_to_dict(coverage: Coverage) -> dict[str, Any]:
    kinds = {fc.kind for fc in coverage}
    return {
        "type": kinds.pop() if len(kinds) == 1 else "loc",
        "format": coverage.format,
        "total": coverage.total,
        "covered": coverage.covered,
        "files": [_file_to_dict(fc) for fc in coverage],
    }


def _file_from_dict(data: dict[str, Any]) -> FileCoverage:
    kind = data.get("type", "loc")
    if kind not in ("loc", "stmt"):
        raise ValueError(f"unknown file coverage type {kind!r}")
    fc = FileCoverage(
        path=data["file"],
        kind=kind,
        total=int(data["total"]),
        covered=int(data["covered"]),
    )
    if "lines" in data:
        fc.lines = {int(line): int(hits) for line, hits in data["lines"]}
    elif "blocks" in data:
        fc.blocks = [BlockCoverage(**b) for b in data["blocks"]]
    else:
        fc.detailed = False
    if not 0 <= fc.covered <= fc.total:
        raise ValueError(f"{fc.path}: covered {fc.covered} outside 0..{fc.total}")
    return fc


def coverage_from_dict(data: dict[str, Any]) -> Coverage:
    files: dict[str, FileCoverage] = {}
    for entry in data.get("files") or []:
        fc = _file_from_dict(entry)
        if fc.path in files:
            raise ValueError(f"duplicate file entry {fc.path!r}")
        files[fc.path] = fc
    return Coverage(format=data.get("format", "unknown"), files=files)


# =============================================================================
# Report
# =============================================================================


@dataclass(slots=True)
class Report:
    """Measurements of one run."""

    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))
    repository: str | None = None
    ref: str | None = None
    commit: str | None = None
    coverage: Coverage | None = None
    code_to_test_ratio: CodeToTestRatio | None = None
    test_execution_time: float | None = None  # seconds

    # -------------------------------------------------------------------------
    # Measuring
    # -------------------------------------------------------------------------

    def measure_coverage(
        self,
        path: Path,
        *,
        format_id: str | None = None,
        root: Path | None = None,
    ) -> None:
        """Decode the coverage report at path into this report.

        Raises:
            CoverageParseError: If the report is missing or cannot be decoded.
        """
        self.coverage = parse_artifact(path, format_id=format_id, root=root)
        log.info(
            "coverage_measured",
            format=self.coverage.format,
            files=len(self.coverage),
            total=self.coverage.total,
            covered=self.coverage.covered,
        )

    def measure_code_to_test_ratio(
        self,
        root: Path,
        code: Sequence[str],
        test: Sequence[str],
    ) -> None:
        self.code_to_test_ratio = measure_code_to_test_ratio(root, code, test)
        log.info(
            "code_to_test_ratio_measured",
            code=self.code_to_test_ratio.code,
            test=self.code_to_test_ratio.test,
        )

    def set_test_execution_time(self, seconds: float) -> None:
        if seconds < 0:
            raise ValueError(f"test execution time must be >= 0, got {seconds}")
        self.test_execution_time = seconds

    @property
    def coverage_percent(self) -> float | None:
        return self.coverage.percent if self.coverage is not None else None

    @property
    def code_to_test_ratio_value(self) -> float | None:
        return self.code_to_test_ratio.ratio if self.code_to_test_ratio is not None else None

    def is_measured_coverage(self) -> bool:
        return self.coverage is not None

    def is_measured_code_to_test_ratio(self) -> bool:
        return self.code_to_test_ratio is not None

    def is_measured_test_execution_time(self) -> bool:
        return self.test_execution_time is not None

    def count_measured(self) -> int:
        return sum(
            (
                self.is_measured_coverage(),
                self.is_measured_code_to_test_ratio(),
                self.is_measured_test_execution_time(),
            )
        )

    def compact(self) -> None:
        """Drop per-line/per-block/per-file detail before long-term storage."""
        if self.coverage is not None:
            self.coverage.compact()
        if self.code_to_test_ratio is not None:
            self.code_to_test_ratio.compact()

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        return {
            "repository": self.repository,
            "ref": self.ref,
            "commit": self.commit,
            "coverage": coverage_to_dict(self.coverage) if self.coverage is not None else None,
            "code_to_test_ratio": (
                self.code_to_test_ratio.to_dict() if self.code_to_test_ratio is not None else None
            ),
            "test_execution_time": self.test_execution_time,
            "timestamp": self.timestamp.isoformat(),
        }

    def to_json(self, *, indent: int | None = None) -> str:
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Report:
        """Rebuild a report from to_dict output.

        Raises:
            ValueError: On missing or inconsistent fields.
        """
        try:
            timestamp = datetime.fromisoformat(data["timestamp"])
            coverage = data.get("coverage")
            ratio = data.get("code_to_test_ratio")
            exec_time = data.get("test_execution_time")
            return cls(
                timestamp=timestamp,
                repository=data.get("repository"),
                ref=data.get("ref"),
                commit=data.get("commit"),
                coverage=coverage_from_dict(coverage) if coverage is not None else None,
                code_to_test_ratio=(
                    CodeToTestRatio.from_dict(ratio) if ratio is not None else None
                ),
                test_execution_time=float(exec_time) if exec_time is not None else None,
            )
        except (KeyError, TypeError) as e:
            raise ValueError(f"invalid report: {e}") from e

    @classmethod
    def from_json(cls, text: str | bytes) -> Report:
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise ValueError(f"invalid report JSON: {e}") from e
        if not isinstance(data, dict):
            raise ValueError("invalid report: not a JSON object")
        return cls.from_dict(data)

    # -------------------------------------------------------------------------
    # Comparison
    # -------------------------------------------------------------------------

    def compare(self, baseline: Report) -> ReportDiff:
        coverage_diff = None
        if self.coverage is not None and baseline.coverage is not None:
            coverage_diff = diff_coverage(self.coverage, baseline.coverage)
        return ReportDiff(current=self, baseline=baseline, coverage=coverage_diff)


def is_report_json(data: bytes) -> bool:
    """True when data looks like Report.to_json output rather than a raw report."""
    head = data.lstrip()
    if not head.startswith(b"{"):
        return False
    try:
        doc = json.loads(data)
    except (json.JSONDecodeError, UnicodeDecodeError):
        return False
    return isinstance(doc, dict) and isinstance(doc.get("timestamp"), str) and "coverage" in doc


def load_report(
    path: Path,
    *,
    format_id: str | None = None,
    root: Path | None = None,
) -> Report:
    """Load a stored report JSON, or measure coverage from a raw report.

    Raises:
        CoverageParseError: If path is a raw report that cannot be decoded.
        ValueError: If path is a stored report with invalid content.
    """
    if path.is_file():
        data = path.read_bytes()
        if is_report_json(data):
            return Report.from_json(data)
    report = Report()
    report.measure_coverage(path, format_id=format_id, root=root)
    return report


# =============================================================================
# Report comparison
# =============================================================================


def _delta(current: float | None, baseline: float | None) -> float | None:
    if current is None or baseline is None:
        return None
    return current - baseline


@dataclass(frozen=True, slots=True)
class ReportDiff:
    """Differences between two reports, measurement by measurement."""

    current: Report
    baseline: Report
    coverage: CoverageDiff | None = None

    @property
    def coverage_delta(self) -> float | None:
        return self.coverage.delta if self.coverage is not None else None

    @property
    def code_to_test_ratio_delta(self) -> float | None:
        return _delta(
            self.current.code_to_test_ratio_value, self.baseline.code_to_test_ratio_value
        )

    @property
    def test_execution_time_delta(self) -> float | None:
        return _delta(self.current.test_execution_time, self.baseline.test_execution_time)


# =============================================================================
# Rendering
# =============================================================================


def format_percent(value: float | None) -> str:
    return "-" if value is None else f"{value:.1f}%"


def format_ratio(value: float | None) -> str:
    return "-" if value is None else f"1:{value:.1f}"


def format_duration(seconds: float | None) -> str:
    if seconds is None:
        return "-"
    minutes, secs = divmod(seconds, 60)
    if minutes >= 1:
        return f"{int(minutes)}m{secs:.0f}s"
    return f"{secs:.1f}s"


def _signed(value: float | None, fmt: str) -> str:
    if value is None:
        return ""
    return f"{value:+{fmt}}"


def _label(report: Report, fallback: str) -> str:
    if report.ref and report.commit:
        return f"{report.ref} ({report.commit[:7]})"
    return report.ref or (report.commit[:7] if report.commit else fallback)


def render_table(report: Report, baseline: Report | None = None) -> Table:
    """Summary table of measured values, with deltas when a baseline is given."""
    table = Table(box=None, padding=(0, 2), pad_edge=False)
    table.add_column("")
    if baseline is not None:
        table.add_column(_label(baseline, "baseline"), justify="right")
    table.add_column(_label(report, "current"), justify="right")
    if baseline is not None:
        table.add_column("+/-", justify="right")

    diff = report.compare(baseline) if baseline is not None else None
    rows: list[tuple[str, str, str, str]] = []
    if report.is_measured_coverage():
        rows.append(
            (
                "Coverage",
                format_percent(baseline.coverage_percent) if baseline else "",
                format_percent(report.coverage_percent),
                _signed(diff.coverage_delta, ".1f") + "%"
                if diff and diff.coverage_delta is not None
                else "",
            )
        )
    if report.is_measured_code_to_test_ratio():
        rows.append(
            (
                "Code to Test Ratio",
                format_ratio(baseline.code_to_test_ratio_value) if baseline else "",
                format_ratio(report.code_to_test_ratio_value),
                _signed(diff.code_to_test_ratio_delta, ".1f") if diff else "",
            )
        )
    if report.is_measured_test_execution_time():
        rows.append(
            (
                "Test Execution Time",
                format_duration(baseline.test_execution_time) if baseline else "",
                format_duration(report.test_execution_time),
                _signed(diff.test_execution_time_delta, ".1f") + "s"
                if diff and diff.test_execution_time_delta is not None
                else "",
            )
        )

    for name, before, after, delta in rows:
        if baseline is not None:
            table.add_row(name, before, after, delta)
        else:
            table.add_row(name, after)
    return table


def render_file_diffs(diff: CoverageDiff, *, changed_only: bool = False) -> Table:
    """Per-file coverage table of a CoverageDiff."""
    table = Table(box=None, padding=(0, 2), pad_edge=False)
    table.add_column("File")
    table.add_column("Baseline", justify="right")
    table.add_column("Current", justify="right")
    table.add_column("+/-", justify="right")

    for fd in diff.files:
        if changed_only and fd.status == "changed" and not fd.delta:
            continue
        if fd.status == "added":
            delta = "[green]new[/green]"
        elif fd.status == "removed":
            delta = "[red]removed[/red]"
        elif fd.delta:
            style = "green" if fd.delta > 0 else "red"
            delta = f"[{style}]{fd.delta:+.1f}%[/{style}]"
        else:
            delta = ""
        table.add_row(fd.path, format_percent(fd.baseline), format_percent(fd.current), delta)

    table.add_section()
    total_delta = "" if diff.delta is None else f"{diff.delta:+.1f}%"
    table.add_row("Total", format_percent(diff.baseline), format_percent(diff.current), total_delta)
    return table
