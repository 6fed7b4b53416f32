"""Tests for annotated source output."""

import io

from rich.console import Console

from coverplane.coverage import BlockCoverage, FileCoverage, annotate_lines, print_annotated

SOURCE = ["package main\n", "\n", "func main() {\n", "\tprintln()\n", "}\n"]


class TestAnnotateLines:
    def test_counts_and_blanks(self) -> None:
        fc = FileCoverage.from_lines("main.go", {3: 1, 4: 0})

        lines = [t.plain for t in annotate_lines(fc, SOURCE)]

        assert lines == [
            "1   | package main",
            "2   | ",
            "3 1 | func main() {",
            "4 0 | \tprintln()",
            "5   | }",
        ]

    def test_styles(self) -> None:
        fc = FileCoverage.from_lines("main.go", {3: 1, 4: 0})

        texts = annotate_lines(fc, SOURCE)

        assert texts[2].spans[0].style == "green"
        assert texts[3].spans[0].style == "red"
        assert texts[0].spans == []

    def test_block_coverage(self) -> None:
        fc = FileCoverage.from_blocks(
            "main.go", [BlockCoverage(start_line=3, end_line=5, num_stmt=1, count=12)]
        )

        lines = [t.plain for t in annotate_lines(fc, SOURCE)]

        assert lines[2] == "3 12 | func main() {"
        assert lines[0] == "1    | package main"

    def test_missing_coverage_renders_plain(self) -> None:
        assert [t.plain for t in annotate_lines(None, ["x\n"])] == ["1   | x"]


class TestPrintAnnotated:
    def test_writes_to_console(self) -> None:
        buf = io.StringIO()
        console = Console(file=buf, width=120, color_system=None)

        print_annotated(FileCoverage.from_lines("a.go", {1: 2}), ["x := 1\n"], console=console)

        assert buf.getvalue() == "1 2 | x := 1\n"
