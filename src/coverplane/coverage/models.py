"""Unified coverage data model.

File-centric model: every format converts to a Coverage made of
FileCoverage entries. Line-based formats (lcov, cobertura, clover, jacoco,
simplecov) fill ``lines``; block-based formats (Go profiles) fill ``blocks``.

Paths are stored exactly as they appear in the report. Resolving them to
project-relative paths is done lazily by ``coverplane.coverage.fuzzy``.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from typing import Literal

FileKind = Literal["loc", "stmt"]


class CoverageParseError(Exception):
    """Error parsing coverage data."""

    pass


class FormatMismatchError(CoverageParseError):
    """Input does not carry this parser's format signature.

    The sniffer treats this as "try the next parser".
    """

    def __init__(self, format_id: str, reason: str) -> None:
        super().__init__(f"not {format_id}: {reason}")
        self.format_id = format_id
        self.reason = reason


class MalformedRecordError(CoverageParseError):
    """A record violates the format after its signature matched."""

    def __init__(self, format_id: str, reason: str, *, line: int | None = None) -> None:
        where = f" (line {line})" if line is not None else ""
        super().__init__(f"malformed {format_id} record{where}: {reason}")
        self.format_id = format_id
        self.reason = reason
        self.line = line


class UnrecognizedFormatError(CoverageParseError):
    """No registered parser accepted the input."""

    def __init__(self, tried: Iterable[str]) -> None:
        self.tried = tuple(tried)
        super().__init__(
            "Could not detect coverage format. Tried: " + ", ".join(self.tried)
        )


def percent(covered: int, total: int) -> float | None:
    """Coverage percentage, or None when nothing is measurable."""
    if total == 0:
        return None
    return 100.0 * covered / total


@dataclass(frozen=True, slots=True)
class BlockCoverage:
    """A contiguous statement range with its execution count."""

    start_line: int
    end_line: int
    num_stmt: int
    count: int
    start_col: int | None = None
    end_col: int | None = None

    def __post_init__(self) -> None:
        if self.count < 0:
            raise ValueError(f"block count must be >= 0, got {self.count}")
        if self.num_stmt < 0:
            raise ValueError(f"block statement count must be >= 0, got {self.num_stmt}")


@dataclass(slots=True)
class FileCoverage:
    """Coverage data for a single file.

    ``total``/``covered`` are statement counts captured when the file is
    built, so they survive ``compact()``. Use ``from_lines`` or
    ``from_blocks`` rather than setting them by hand.

    Lines map 1-based line number → hit count. A line absent from the map is
    not instrumented.
    """

    path: str
    kind: FileKind = "loc"
    total: int = 0
    covered: int = 0
    lines: dict[int, int] = field(default_factory=dict)
    blocks: list[BlockCoverage] = field(default_factory=list)
    detailed: bool = True

    @classmethod
    def from_lines(cls, path: str, lines: dict[int, int]) -> FileCoverage:
        total = len(lines)
        covered = sum(1 for hits in lines.values() if hits > 0)
        return cls(path=path, kind="loc", total=total, covered=covered, lines=dict(lines))

    @classmethod
    def from_blocks(cls, path: str, blocks: Iterable[BlockCoverage]) -> FileCoverage:
        # Overlapping blocks are summed, never deduplicated
        block_list = list(blocks)
        total = sum(b.num_stmt for b in block_list)
        covered = sum(b.num_stmt for b in block_list if b.count > 0)
        return cls(path=path, kind="stmt", total=total, covered=covered, blocks=block_list)

    @property
    def percent(self) -> float | None:
        return percent(self.covered, self.total)

    def line_count(self, line: int) -> int | None:
        """Execution count of a source line.

        Returns None when the line is not instrumented, 0 when it is
        instrumented but never executed.
        """
        if self.kind == "loc":
            return self.lines.get(line)
        count: int | None = None
        for block in self.blocks:
            if block.num_stmt == 0 or not (block.start_line <= line <= block.end_line):
                continue
            count = (count or 0) + block.count
        return count

    def line_counts(self) -> dict[int, int]:
        """Per-line counts for every instrumented line, sorted by line."""
        if self.kind == "loc":
            return dict(sorted(self.lines.items()))
        result: dict[int, int] = {}
        for block in self.blocks:
            if block.num_stmt == 0:
                continue
            for line in range(block.start_line, block.end_line + 1):
                result[line] = result.get(line, 0) + block.count
        return dict(sorted(result.items()))

    @property
    def uncovered_lines(self) -> list[int]:
        return [line for line, hits in self.line_counts().items() if hits == 0]

    def compact(self) -> None:
        """Drop line/block detail, keeping totals."""
        self.lines = {}
        self.blocks = []
        self.detailed = False


@dataclass(slots=True)
class Coverage:
    """Coverage aggregate for one decoded report.

    Files keep decode order and are keyed by the path stored in the report.
    """

    format: str
    files: dict[str, FileCoverage] = field(default_factory=dict)

    @property
    def total(self) -> int:
        return sum(f.total for f in self.files.values())

    @property
    def covered(self) -> int:
        return sum(f.covered for f in self.files.values())

    @property
    def percent(self) -> float | None:
        return percent(self.covered, self.total)

    @property
    def detailed(self) -> bool:
        return all(f.detailed for f in self.files.values())

    def __iter__(self) -> Iterator[FileCoverage]:
        return iter(self.files.values())

    def __len__(self) -> int:
        return len(self.files)

    def find(self, path: str, *, root: str | None = None) -> FileCoverage | None:
        """Fuzzy lookup of a working-tree path. See ``coverplane.coverage.fuzzy``."""
        from coverplane.coverage.fuzzy import find_file

        return find_file(path, self.files.values(), root=root)

    def compact(self) -> None:
        """Discard per-line/per-block detail of every file.

        Aggregate and per-file totals are unchanged. Must not run while
        other code is reading this Coverage.
        """
        for fc in self.files.values():
            fc.compact()


class CoverageBuilder:
    """Accumulates per-file fragments into a Coverage.

    Line fragments for the same path are merged with max-hit semantics;
    block fragments are appended.
    """

    def __init__(self, format_id: str) -> None:
        self.format_id = format_id
        self._lines: dict[str, dict[int, int]] = {}
        self._blocks: dict[str, list[BlockCoverage]] = {}
        self._order: dict[str, FileKind] = {}

    def add_file(self, path: str, kind: FileKind = "loc") -> None:
        """Register a file even if it ends up with no records."""
        if path not in self._order:
            self._order[path] = kind
            if kind == "loc":
                self._lines[path] = {}
            else:
                self._blocks[path] = []

    def add_line(self, path: str, line: int, hits: int) -> None:
        self.add_file(path, "loc")
        lines = self._lines[path]
        lines[line] = max(lines.get(line, 0), hits)

    def add_block(self, path: str, block: BlockCoverage) -> None:
        self.add_file(path, "stmt")
        self._blocks[path].append(block)

    def build(self) -> Coverage:
        files: dict[str, FileCoverage] = {}
        for path, kind in self._order.items():
            if kind == "loc":
                files[path] = FileCoverage.from_lines(path, self._lines[path])
            else:
                files[path] = FileCoverage.from_blocks(path, self._blocks[path])
        return Coverage(format=self.format_id, files=files)
