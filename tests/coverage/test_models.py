"""Tests for the unified coverage model."""

import pytest

from coverplane.coverage import (
    BlockCoverage,
    Coverage,
    CoverageBuilder,
    FileCoverage,
    percent,
)


class TestPercent:
    def test_eight_of_ten(self) -> None:
        assert percent(8, 10) == 80.0

    def test_zero_total_is_undefined(self) -> None:
        assert percent(0, 0) is None

    def test_full(self) -> None:
        assert percent(3, 3) == 100.0


class TestBlockCoverage:
    def test_negative_count_rejected(self) -> None:
        with pytest.raises(ValueError):
            BlockCoverage(start_line=1, end_line=2, num_stmt=1, count=-1)

    def test_negative_statements_rejected(self) -> None:
        with pytest.raises(ValueError):
            BlockCoverage(start_line=1, end_line=2, num_stmt=-1, count=0)

    def test_columns_optional(self) -> None:
        block = BlockCoverage(start_line=1, end_line=2, num_stmt=1, count=0)
        assert block.start_col is None


class TestFileCoverage:
    """Tests for FileCoverage model properties."""

    def test_from_lines_totals(self) -> None:
        fc = FileCoverage.from_lines("a.py", {1: 1, 2: 0, 3: 7})

        assert fc.total == 3
        assert fc.covered == 2
        assert fc.uncovered_lines == [2]

    def test_empty_file_percent_is_none(self) -> None:
        assert FileCoverage(path="empty.py").percent is None

    def test_line_count_three_states(self) -> None:
        fc = FileCoverage.from_lines("a.py", {2: 0, 3: 4})

        assert fc.line_count(1) is None
        assert fc.line_count(2) == 0
        assert fc.line_count(3) == 4

    def test_block_line_counts_sum_overlaps(self) -> None:
        fc = FileCoverage.from_blocks(
            "a.go",
            [
                BlockCoverage(start_line=1, end_line=3, num_stmt=2, count=1),
                BlockCoverage(start_line=3, end_line=4, num_stmt=1, count=2),
                BlockCoverage(start_line=6, end_line=6, num_stmt=0, count=9),
            ],
        )

        assert fc.line_counts() == {1: 1, 2: 1, 3: 3, 4: 2}
        assert fc.line_count(3) == 3
        assert fc.line_count(5) is None
        assert fc.line_count(6) is None

    def test_compact_keeps_totals(self) -> None:
        fc = FileCoverage.from_lines("a.py", {1: 1, 2: 0})

        fc.compact()

        assert fc.lines == {}
        assert not fc.detailed
        assert (fc.covered, fc.total) == (1, 2)


class TestCoverage:
    def _coverage(self) -> Coverage:
        builder = CoverageBuilder("lcov")
        for line in range(1, 11):
            builder.add_line("src/a.py", line, 1 if line <= 8 else 0)
        return builder.build()

    def test_aggregate(self) -> None:
        cov = self._coverage()

        assert cov.total == 10
        assert cov.covered == 8
        assert cov.percent == 80.0

    def test_empty_coverage_percent_is_none(self) -> None:
        assert Coverage(format="lcov").percent is None

    def test_covered_never_exceeds_total(self) -> None:
        cov = self._coverage()
        for fc in cov:
            assert 0 <= fc.covered <= fc.total
        assert 0 <= cov.covered <= cov.total

    def test_compact_keeps_aggregate(self) -> None:
        cov = self._coverage()

        cov.compact()

        assert cov.percent == 80.0
        assert not cov.detailed

    def test_find_delegates_to_fuzzy(self) -> None:
        cov = self._coverage()
        assert cov.find("./src/a.py") is cov.files["src/a.py"]


class TestCoverageBuilder:
    def test_decode_order_preserved(self) -> None:
        builder = CoverageBuilder("lcov")
        builder.add_line("z.py", 1, 1)
        builder.add_line("a.py", 1, 1)
        builder.add_file("m.py")

        assert list(builder.build().files) == ["z.py", "a.py", "m.py"]

    def test_line_fragments_merge_with_max(self) -> None:
        builder = CoverageBuilder("cobertura")
        builder.add_line("a.py", 1, 2)
        builder.add_line("a.py", 1, 5)
        builder.add_line("a.py", 1, 0)

        assert builder.build().files["a.py"].lines == {1: 5}

    def test_blocks_appended(self) -> None:
        builder = CoverageBuilder("gocov")
        block = BlockCoverage(start_line=1, end_line=1, num_stmt=1, count=1)
        builder.add_block("a.go", block)
        builder.add_block("a.go", block)

        fc = builder.build().files["a.go"]
        assert fc.kind == "stmt"
        assert fc.total == 2
