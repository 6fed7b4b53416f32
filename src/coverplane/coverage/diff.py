"""Coverage comparison between a current and a baseline snapshot.

Files are paired with the fuzzy path matcher, so a baseline produced in a
different checkout location (or a different container) still lines up.
Same-path pairs win over suffix guesses; a suffix pair must be mutual.
The aggregate delta is computed from aggregate totals, which weights every
file by its statement count.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal

from coverplane.coverage.fuzzy import find_file, same_path
from coverplane.coverage.models import Coverage, FileCoverage

FileDiffStatus = Literal["changed", "added", "removed"]


def _delta(current: float | None, baseline: float | None) -> float | None:
    if current is None or baseline is None:
        return None
    return current - baseline


@dataclass(frozen=True, slots=True)
class FileDiff:
    """Coverage change of one file.

    ``path`` is the current path, or the baseline path for removed files.
    """

    path: str
    status: FileDiffStatus
    current: float | None = None
    baseline: float | None = None

    @property
    def delta(self) -> float | None:
        """Percentage point change. None for added/removed or unmeasurable files."""
        if self.status != "changed":
            return None
        return _delta(self.current, self.baseline)

    def to_dict(self) -> dict[str, Any]:
        return {
            "path": self.path,
            "status": self.status,
            "current": self.current,
            "baseline": self.baseline,
            "delta": self.delta,
        }


@dataclass(frozen=True, slots=True)
class CoverageDiff:
    """Result of diff_coverage."""

    current: float | None
    baseline: float | None
    files: list[FileDiff] = field(default_factory=list)

    @property
    def delta(self) -> float | None:
        """Aggregate percentage point change."""
        return _delta(self.current, self.baseline)

    @property
    def added(self) -> list[FileDiff]:
        return [f for f in self.files if f.status == "added"]

    @property
    def removed(self) -> list[FileDiff]:
        return [f for f in self.files if f.status == "removed"]

    @property
    def changed(self) -> list[FileDiff]:
        """Files present on both sides whose percentage moved."""
        return [f for f in self.files if f.status == "changed" and f.delta]

    def to_dict(self) -> dict[str, Any]:
        return {
            "current": self.current,
            "baseline": self.baseline,
            "delta": self.delta,
            "files": [f.to_dict() for f in self.files],
        }


def _pair_files(
    current: list[FileCoverage], baseline: list[FileCoverage]
) -> dict[int, FileCoverage]:
    """Map id(current file) to its baseline file.

    Same-path pairs are taken first across both sides. Suffix matching only
    runs on what is left, and a pair is kept only when each file is the
    other's best match.
    """
    pairs: dict[int, FileCoverage] = {}
    free: list[FileCoverage] = list(baseline)

    for fc in current:
        same = [b for b in free if same_path(fc.path, b.path)]
        if len(same) == 1:
            pairs[id(fc)] = same[0]
            free.remove(same[0])

    unpaired = [fc for fc in current if id(fc) not in pairs]
    progress = True
    while progress:
        progress = False
        for fc in unpaired:
            match = find_file(fc.path, free)
            if match is None or find_file(match.path, unpaired) is not fc:
                continue
            pairs[id(fc)] = match
            free.remove(match)
            unpaired.remove(fc)
            progress = True
            break

    return pairs


def diff_coverage(current: Coverage, baseline: Coverage) -> CoverageDiff:
    """Compare two coverages file by file and in aggregate.

    Every file of either side appears exactly once in the result: current
    files first (decode order), then baseline-only files.
    """
    baseline_files: list[FileCoverage] = list(baseline)
    pairs = _pair_files(list(current), baseline_files)
    paired = {id(b) for b in pairs.values()}
    files: list[FileDiff] = []

    for fc in current:
        match = pairs.get(id(fc))
        if match is None:
            files.append(FileDiff(path=fc.path, status="added", current=fc.percent))
        else:
            files.append(
                FileDiff(
                    path=fc.path,
                    status="changed",
                    current=fc.percent,
                    baseline=match.percent,
                )
            )

    for fc in baseline_files:
        if id(fc) not in paired:
            files.append(FileDiff(path=fc.path, status="removed", baseline=fc.percent))

    return CoverageDiff(current=current.percent, baseline=baseline.percent, files=files)
