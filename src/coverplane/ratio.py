"""Code-to-test ratio measurement.

The ratio is ``test / code`` where both sides are counts of code lines
(non-blank, non-comment) of the files selected by glob patterns relative to
the project root:

    code: ["**/*.go", "!**/*_test.go"]
    test: ["**/*_test.go"]

Patterns are applied in order and the last matching one decides, so a
leading ``!`` excludes files selected by an earlier pattern (gitignore
semantics). ``**/`` matches any depth, including none.
"""

from __future__ import annotations

import fnmatch
import os
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from coverplane.core.logging import get_logger

log = get_logger("ratio")

# Never traversed
PRUNABLE_DIRS: frozenset[str] = frozenset(
    (
        ".git",
        ".svn",
        ".hg",
        "node_modules",
        "bower_components",
        "vendor",
        ".venv",
        "venv",
        "__pycache__",
        ".mypy_cache",
        ".pytest_cache",
        ".tox",
        "target",
        "build",
        "dist",
    )
)

# extension -> (line comment markers, block comment (open, close) pairs)
_C_STYLE = (("//",), (("/*", "*/"),))
_HASH = (("#",), ())
COMMENT_SYNTAX: dict[str, tuple[tuple[str, ...], tuple[tuple[str, str], ...]]] = {
    ".go": _C_STYLE,
    ".c": _C_STYLE,
    ".h": _C_STYLE,
    ".cc": _C_STYLE,
    ".cpp": _C_STYLE,
    ".hpp": _C_STYLE,
    ".cs": _C_STYLE,
    ".java": _C_STYLE,
    ".kt": _C_STYLE,
    ".kts": _C_STYLE,
    ".scala": _C_STYLE,
    ".swift": _C_STYLE,
    ".rs": _C_STYLE,
    ".js": _C_STYLE,
    ".jsx": _C_STYLE,
    ".mjs": _C_STYLE,
    ".cjs": _C_STYLE,
    ".ts": _C_STYLE,
    ".tsx": _C_STYLE,
    ".dart": _C_STYLE,
    ".php": (("//", "#"), (("/*", "*/"),)),
    ".py": (("#",), (('"""', '"""'), ("'''", "'''"))),
    ".rb": (("#",), (("=begin", "=end"),)),
    ".sh": _HASH,
    ".bash": _HASH,
    ".pl": _HASH,
    ".r": _HASH,
    ".ex": _HASH,
    ".exs": _HASH,
    ".lua": (("--",), (("--[[", "]]"),)),
    ".sql": (("--",), (("/*", "*/"),)),
    ".hs": (("--",), (("{-", "-}"),)),
}


@dataclass(frozen=True, slots=True)
class RatioFile:
    """Code line count of one selected file."""

    path: str  # root-relative, slash separated
    code: int
    is_test: bool

    def to_dict(self) -> dict[str, Any]:
        return {"file": self.path, "code": self.code, "type": "test" if self.is_test else "code"}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RatioFile:
        return cls(path=data["file"], code=int(data["code"]), is_test=data.get("type") == "test")


@dataclass(slots=True)
class CodeToTestRatio:
    """Code and test line counts with per-file detail."""

    code: int = 0
    test: int = 0
    files: list[RatioFile] = field(default_factory=list)

    @property
    def ratio(self) -> float | None:
        """Test lines per code line, or None without any code."""
        if self.code == 0:
            return None
        return self.test / self.code

    def compact(self) -> None:
        self.files = []

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "test": self.test,
            "files": [f.to_dict() for f in self.files],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CodeToTestRatio:
        return cls(
            code=int(data.get("code", 0)),
            test=int(data.get("test", 0)),
            files=[RatioFile.from_dict(f) for f in data.get("files") or []],
        )


def matches_glob(rel_path: str, pattern: str) -> bool:
    """Check if a path matches a glob pattern, with ** support."""
    if fnmatch.fnmatchcase(rel_path, pattern):
        return True
    # "**/" also matches zero directories, at the start or in the middle
    idx = pattern.find("**/")
    while idx != -1:
        if matches_glob(rel_path, pattern[:idx] + pattern[idx + 3 :]):
            return True
        idx = pattern.find("**/", idx + 1)
    return False


def is_selected(rel_path: str, patterns: Sequence[str]) -> bool:
    """Apply patterns in order; the last matching pattern decides."""
    selected = False
    for pattern in patterns:
        if pattern.startswith("!"):
            if matches_glob(rel_path, pattern[1:]):
                selected = False
        elif matches_glob(rel_path, pattern):
            selected = True
    return selected


def count_code_lines(text: str, extension: str) -> int:
    """Count lines that are neither blank nor comment-only."""
    line_markers, block_markers = COMMENT_SYNTAX.get(extension.lower(), ((), ()))
    count = 0
    block_end: str | None = None

    for raw in text.splitlines():
        line = raw.strip()
        if not line:
            continue

        if block_end is not None:
            if block_end in line:
                rest = line.split(block_end, 1)[1].strip()
                block_end = None
                if rest and not rest.startswith(line_markers or ("\0",)):
                    count += 1
            continue

        if line_markers and line.startswith(line_markers):
            continue

        opened = next((pair for pair in block_markers if line.startswith(pair[0])), None)
        if opened is not None:
            start, end = opened
            remainder = line[len(start) :]
            if end not in remainder:
                block_end = end
            continue

        count += 1

    return count


def _iter_files(root: Path) -> Iterable[tuple[Path, str]]:
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(d for d in dirnames if d not in PRUNABLE_DIRS)
        for name in sorted(filenames):
            full = Path(dirpath) / name
            yield full, full.relative_to(root).as_posix()


def measure_code_to_test_ratio(
    root: Path,
    code_patterns: Sequence[str],
    test_patterns: Sequence[str],
) -> CodeToTestRatio:
    """Count code and test lines under root.

    A file selected by both pattern lists counts as test.

    Raises:
        ValueError: If no test patterns are given.
    """
    if not test_patterns:
        raise ValueError("test patterns are not set")

    result = CodeToTestRatio()
    for full, rel in _iter_files(root):
        is_test = is_selected(rel, test_patterns)
        if not is_test and not is_selected(rel, code_patterns):
            continue
        lines = count_code_lines(full.read_text(errors="replace"), full.suffix)
        result.files.append(RatioFile(path=rel, code=lines, is_test=is_test))
        if is_test:
            result.test += lines
        else:
            result.code += lines

    log.debug("ratio_measured", code=result.code, test=result.test, files=len(result.files))
    return result
