"""Go coverage profile parser.

Go test produces coverage profiles with format:
mode: set|count|atomic
<package>/<file>:<startline>.<startcol>,<endline>.<endcol> <numstmt> <count>

Example:
mode: set
github.com/user/pkg/main.go:10.2,12.16 3 1
github.com/user/pkg/main.go:15.2,20.16 5 0

- mode: set (0/1), count (hit count), atomic (thread-safe count)
- numstmt: number of statements in block
- count: execution count (0 = not covered)

Every record becomes one block. Profiles merged from several test binaries
repeat blocks; those are kept as separate blocks.
"""

import re

from coverplane.coverage.models import (
    BlockCoverage,
    Coverage,
    CoverageBuilder,
    FormatMismatchError,
    MalformedRecordError,
)

from .base import decode_text

_MODES = ("set", "count", "atomic")
_RECORD = re.compile(r"^(.+):(\d+)\.(\d+),(\d+)\.(\d+) (\d+) (\d+)$")


class GocovParser:
    """Parser for Go coverage profiles."""

    @property
    def format_id(self) -> str:
        return "gocov"

    @property
    def default_filenames(self) -> tuple[str, ...]:
        return ("coverage.out", "cover.out", "coverage.txt", "c.out")

    def parse(self, data: bytes, *, root: str | None = None) -> Coverage:  # noqa: ARG002
        """Parse Go coverage profile into Coverage."""
        content = decode_text(data, self.format_id)
        lines = content.splitlines()

        # First non-blank line must be the mode header
        start = 0
        while start < len(lines) and not lines[start].strip():
            start += 1
        if start == len(lines):
            raise FormatMismatchError(self.format_id, "empty input")
        header = lines[start].strip()
        if not header.startswith("mode:"):
            raise FormatMismatchError(self.format_id, "missing mode line")
        mode = header[len("mode:") :].strip()
        if mode not in _MODES:
            raise MalformedRecordError(self.format_id, f"unknown mode {mode!r}", line=start + 1)

        builder = CoverageBuilder(self.format_id)

        for lineno, line in enumerate(lines[start + 1 :], start=start + 2):
            line = line.strip()
            if not line:
                continue
            # Concatenated profiles repeat the header
            if line.startswith("mode:"):
                continue

            match = _RECORD.match(line)
            if not match:
                raise MalformedRecordError(self.format_id, repr(line), line=lineno)

            file_path = match.group(1)
            start_line, start_col, end_line, end_col, num_stmt, count = (
                int(g) for g in match.groups()[1:]
            )
            if end_line < start_line:
                raise MalformedRecordError(
                    self.format_id, f"range ends before it starts: {line!r}", line=lineno
                )

            builder.add_block(
                file_path,
                BlockCoverage(
                    start_line=start_line,
                    start_col=start_col,
                    end_line=end_line,
                    end_col=end_col,
                    num_stmt=num_stmt,
                    count=count,
                ),
            )

        return builder.build()
