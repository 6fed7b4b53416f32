"""Fuzzy mapping of working-tree paths to paths recorded in a report.

Reports record paths in whatever form the producing tool saw them: absolute
paths inside a CI container, Go import paths, paths relative to a
subdirectory. Lookup order:

1. Exact string match on the stored path.
2. Match after normalization (``\\`` to ``/``, ``./`` and leading ``/``
   stripped, both sides made absolute against ``root`` when given).
3. Separator-aligned suffix match in either direction
   (``src/app/main.go`` ~ ``/build/src/app/main.go``).
4. Among suffix matches the longest common suffix wins. Equal best lengths
   are ambiguous and yield no match.

Only strings are compared; the filesystem is never consulted.
"""

from __future__ import annotations

import posixpath
from collections.abc import Iterable

from coverplane.coverage.models import FileCoverage


def _normalize(path: str) -> str:
    """Slash-separated, collapsed, without ``./`` prefixes."""
    path = path.strip().replace("\\", "/")
    if not path:
        return ""
    is_abs = path.startswith("/")
    normalized = posixpath.normpath(path)
    if normalized == ".":
        return ""
    # normpath keeps a leading '//' which is meaningless here
    if is_abs:
        normalized = "/" + normalized.lstrip("/")
    return normalized


def _absolute(path: str, root: str | None) -> str:
    if root is None or path.startswith("/"):
        return path
    base = _normalize(root)
    return _normalize(f"{base}/{path}") if base else path


def _components(path: str) -> list[str]:
    return [part for part in path.split("/") if part]


def common_suffix_length(a: str, b: str) -> int:
    """Number of trailing path components two paths share."""
    left, right = _components(a), _components(b)
    n = 0
    while n < len(left) and n < len(right) and left[-1 - n] == right[-1 - n]:
        n += 1
    return n


def is_suffix_match(a: str, b: str) -> bool:
    """True when one path is a component-aligned suffix of the other."""
    shared = common_suffix_length(a, b)
    return shared > 0 and shared == min(len(_components(a)), len(_components(b)))


def same_path(a: str, b: str) -> bool:
    """True when a and b name the same file without any suffix guessing."""
    return a == b or _normalize(a).lstrip("/") == _normalize(b).lstrip("/")


def find_file(
    target: str,
    files: Iterable[FileCoverage],
    *,
    root: str | None = None,
) -> FileCoverage | None:
    """Find the FileCoverage recorded for target.

    Args:
        target: Path as the caller knows it (usually project-relative).
        files: Candidate file entries of one Coverage.
        root: Project root used to absolutize relative paths on both sides.

    Returns:
        The single best match, or None when nothing matches or the best
        suffix match is ambiguous.
    """
    candidates = list(files)

    # 1. Exact
    for fc in candidates:
        if fc.path == target:
            return fc

    # 2. Normalized / absolutized
    norm_target = _absolute(_normalize(target), root)
    normalized = [(fc, _absolute(_normalize(fc.path), root)) for fc in candidates]
    exact = [fc for fc, norm in normalized if norm == norm_target]
    if len(exact) == 1:
        return exact[0]
    if len(exact) > 1:
        return None
    bare_target = norm_target.lstrip("/")
    stripped = [fc for fc, norm in normalized if norm.lstrip("/") == bare_target]
    if len(stripped) == 1:
        return stripped[0]
    if len(stripped) > 1:
        return None

    # 3 + 4. Suffix match, longest wins, ties are no match
    best: FileCoverage | None = None
    best_len = 0
    tied = False
    plain_target = _normalize(target)
    for fc in candidates:
        stored = _normalize(fc.path)
        if not is_suffix_match(stored, plain_target):
            continue
        shared = common_suffix_length(stored, plain_target)
        if shared > best_len:
            best, best_len, tied = fc, shared, False
        elif shared == best_len:
            tied = True

    if tied:
        return None
    return best
