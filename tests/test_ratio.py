"""Tests for code-to-test ratio measurement."""

from pathlib import Path

import pytest

from coverplane.ratio import (
    CodeToTestRatio,
    RatioFile,
    count_code_lines,
    is_selected,
    matches_glob,
    measure_code_to_test_ratio,
)


class TestMatchesGlob:
    @pytest.mark.parametrize(
        ("path", "pattern", "expected"),
        [
            ("main.go", "**/*.go", True),
            ("pkg/a/main.go", "**/*.go", True),
            ("pkg/a/main.go", "*.go", True),  # fnmatch '*' crosses '/'
            ("pkg/main_test.go", "**/*_test.go", True),
            ("src/app.py", "src/**/*.py", True),
            ("src/a/b/app.py", "src/**/*.py", True),
            ("pkg/main.go", "**/*_test.go", False),
            ("README.md", "**/*.go", False),
        ],
    )
    def test_patterns(self, path: str, pattern: str, expected: bool) -> None:
        assert matches_glob(path, pattern) is expected


class TestIsSelected:
    def test_negation_excludes(self) -> None:
        patterns = ["**/*.go", "!**/*_test.go"]

        assert is_selected("a/main.go", patterns)
        assert not is_selected("a/main_test.go", patterns)

    def test_last_match_wins(self) -> None:
        patterns = ["**/*.go", "!vendor/**", "vendor/keep/*.go"]

        assert not is_selected("vendor/x/a.go", patterns)
        assert is_selected("vendor/keep/a.go", patterns)

    def test_no_patterns_selects_nothing(self) -> None:
        assert not is_selected("a.go", [])


class TestCountCodeLines:
    def test_go_comments_and_blanks(self) -> None:
        text = (
            "// Package main\n"
            "package main\n"
            "\n"
            "/* block\n"
            "   comment */\n"
            "func main() {\n"
            "\t/* inline */\n"
            "}\n"
        )
        assert count_code_lines(text, ".go") == 3

    def test_code_after_block_end_counts(self) -> None:
        assert count_code_lines("/* a\n b */ x := 1\n", ".go") == 1

    def test_python_hash_and_docstring(self) -> None:
        text = '"""Module doc.\n\nMore.\n"""\n# comment\nimport os\n\nx = 1\n'
        assert count_code_lines(text, ".py") == 2

    def test_unknown_extension_counts_non_blank(self) -> None:
        assert count_code_lines("a\n\n# b\n", ".txt") == 2


class TestCodeToTestRatio:
    def test_ratio(self) -> None:
        assert CodeToTestRatio(code=100, test=150).ratio == 1.5

    def test_ratio_without_code_is_none(self) -> None:
        assert CodeToTestRatio(code=0, test=10).ratio is None

    def test_dict_round_trip(self) -> None:
        ratio = CodeToTestRatio(
            code=3, test=2, files=[RatioFile("a.go", 3, False), RatioFile("a_test.go", 2, True)]
        )

        data = ratio.to_dict()

        assert data["files"][1] == {"file": "a_test.go", "code": 2, "type": "test"}
        assert CodeToTestRatio.from_dict(data) == ratio


class TestMeasure:
    @pytest.fixture
    def project(self, tmp_path: Path) -> Path:
        (tmp_path / "pkg").mkdir()
        (tmp_path / "pkg" / "main.go").write_text("package pkg\n\n// c\nfunc A() {}\n")
        (tmp_path / "pkg" / "main_test.go").write_text(
            "package pkg\n\nfunc TestA(t *testing.T) {\n\tA()\n}\n"
        )
        (tmp_path / "node_modules").mkdir()
        (tmp_path / "node_modules" / "dep.go").write_text("package dep\n")
        (tmp_path / "README.md").write_text("# readme\n")
        return tmp_path

    def test_counts_code_and_test(self, project: Path) -> None:
        result = measure_code_to_test_ratio(
            project, ["**/*.go", "!**/*_test.go"], ["**/*_test.go"]
        )

        assert result.code == 2
        assert result.test == 4
        assert result.ratio == 2.0
        assert [f.path for f in result.files] == ["pkg/main.go", "pkg/main_test.go"]

    def test_prunable_dirs_skipped(self, project: Path) -> None:
        result = measure_code_to_test_ratio(project, ["**/*.go"], ["**/*_test.go"])

        assert all(not f.path.startswith("node_modules/") for f in result.files)

    def test_file_in_both_lists_counts_as_test(self, project: Path) -> None:
        result = measure_code_to_test_ratio(project, ["**/*.go"], ["**/*_test.go"])

        assert result.code == 2
        assert result.test == 4

    def test_test_patterns_required(self, project: Path) -> None:
        with pytest.raises(ValueError):
            measure_code_to_test_ratio(project, ["**/*.go"], [])
