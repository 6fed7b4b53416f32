"""Tests for coverage diffs."""

import pytest

from coverplane.coverage import Coverage, CoverageBuilder, diff_coverage


def _coverage(files: dict[str, tuple[int, int]], format_id: str = "lcov") -> Coverage:
    """Build a coverage from {path: (covered, total)}."""
    builder = CoverageBuilder(format_id)
    for path, (covered, total) in files.items():
        builder.add_file(path)
        for line in range(1, total + 1):
            builder.add_line(path, line, 1 if line <= covered else 0)
    return builder.build()


class TestDiffCoverage:
    def test_changed_file_delta(self) -> None:
        current = _coverage({"src/a.go": (8, 10)})
        baseline = _coverage({"src/a.go": (6, 10)})

        diff = diff_coverage(current, baseline)

        assert len(diff.files) == 1
        fd = diff.files[0]
        assert fd.status == "changed"
        assert fd.current == 80.0
        assert fd.baseline == 60.0
        assert fd.delta == pytest.approx(20.0)
        assert diff.delta == pytest.approx(20.0)

    def test_paths_matched_fuzzily(self) -> None:
        current = _coverage({"src/app/main.go": (1, 2)})
        baseline = _coverage({"/build/src/app/main.go": (2, 2)})

        diff = diff_coverage(current, baseline)

        assert [f.status for f in diff.files] == ["changed"]
        assert diff.files[0].delta == pytest.approx(-50.0)

    def test_added_and_removed(self) -> None:
        current = _coverage({"a.py": (1, 1), "new.py": (0, 2)})
        baseline = _coverage({"a.py": (1, 1), "old.py": (1, 2)})

        diff = diff_coverage(current, baseline)

        assert [(f.path, f.status) for f in diff.files] == [
            ("a.py", "changed"),
            ("new.py", "added"),
            ("old.py", "removed"),
        ]
        assert [f.path for f in diff.added] == ["new.py"]
        assert [f.path for f in diff.removed] == ["old.py"]
        assert diff.added[0].delta is None
        assert diff.changed == []

    def test_baseline_file_consumed_once(self) -> None:
        current = _coverage({"a/x.py": (1, 1), "b/x.py": (0, 1)})
        baseline = _coverage({"a/x.py": (1, 1)})

        diff = diff_coverage(current, baseline)

        assert [f.status for f in diff.files] == ["changed", "added"]

    def test_same_path_wins_over_earlier_suffix_match(self) -> None:
        # Given a new file whose name is a suffix of an existing one, listed first
        current = _coverage({"main.go": (0, 4), "cmd/main.go": (5, 10)})
        baseline = _coverage({"cmd/main.go": (5, 10)})

        # When
        diff = diff_coverage(current, baseline)

        # Then the baseline goes to its exact counterpart
        assert [(f.path, f.status) for f in diff.files] == [
            ("main.go", "added"),
            ("cmd/main.go", "changed"),
        ]
        assert diff.files[1].baseline == 50.0

    def test_suffix_pair_must_be_mutual(self) -> None:
        current = _coverage({"main.go": (0, 4), "x/cmd/main.go": (5, 10)})
        baseline = _coverage({"/build/cmd/main.go": (5, 10)})

        diff = diff_coverage(current, baseline)

        assert [(f.path, f.status) for f in diff.files] == [
            ("main.go", "added"),
            ("x/cmd/main.go", "changed"),
        ]

    def test_undefined_percent_gives_none_delta(self) -> None:
        current = _coverage({"a.py": (0, 0)})
        baseline = _coverage({"a.py": (1, 2)})

        diff = diff_coverage(current, baseline)

        assert diff.files[0].delta is None
        assert diff.delta is None

    def test_aggregate_weights_by_statements(self) -> None:
        current = _coverage({"big.py": (90, 100), "small.py": (0, 10)})
        baseline = _coverage({"big.py": (90, 100), "small.py": (10, 10)})

        diff = diff_coverage(current, baseline)

        assert diff.delta == pytest.approx(100 * 90 / 110 - 100.0)

    def test_antisymmetric(self) -> None:
        a = _coverage({"a.py": (3, 4), "b.py": (1, 5)})
        b = _coverage({"a.py": (1, 4), "c.py": (2, 2)})

        assert diff_coverage(a, b).delta == pytest.approx(-diff_coverage(b, a).delta)

    def test_to_dict(self) -> None:
        diff = diff_coverage(_coverage({"a.py": (1, 2)}), _coverage({"a.py": (2, 2)}))

        data = diff.to_dict()

        assert data["delta"] == pytest.approx(-50.0)
        assert data["files"][0]["status"] == "changed"
