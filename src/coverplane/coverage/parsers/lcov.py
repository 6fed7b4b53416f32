"""LCOV format parser.

LCOV format is a plain text format with records like:
- TN:<test name>
- SF:<source file path>
- DA:<line>,<hit count>[,<checksum>]
- BRDA:<line>,<block>,<branch>,<taken>
- FN:<line>,<name> / FNDA:<hit count>,<name>
- LF/LH, BRF/BRH, FNF/FNH: summary counters
- end_of_record

Only DA records feed statement totals; LF/LH summaries are not trusted.

Used by: pytest-cov, cargo-llvm-cov, gcov/lcov, c8, dart test
"""

from coverplane.coverage.models import (
    Coverage,
    CoverageBuilder,
    FormatMismatchError,
    MalformedRecordError,
)

from .base import decode_text

# Records accepted but not needed for statement coverage
_IGNORED = (
    "TN",
    "BRDA",
    "BRF",
    "BRH",
    "FN",
    "FNDA",
    "FNF",
    "FNH",
    "FNL",
    "FNA",
    "LF",
    "LH",
    "VER",
)
_KNOWN = ("SF", "DA", *_IGNORED)


class LcovParser:
    """Parser for LCOV format coverage files."""

    @property
    def format_id(self) -> str:
        return "lcov"

    @property
    def default_filenames(self) -> tuple[str, ...]:
        return ("lcov.info", "coverage/lcov.info", "coverage.lcov")

    def _check_signature(self, lines: list[str]) -> None:
        for line in lines:
            stripped = line.strip()
            if not stripped or stripped.startswith("#"):
                continue
            tag = stripped.split(":", 1)[0]
            if tag in _KNOWN and ":" in stripped:
                return
            raise FormatMismatchError(self.format_id, f"unexpected first record {stripped[:40]!r}")
        raise FormatMismatchError(self.format_id, "no records")

    def parse(self, data: bytes, *, root: str | None = None) -> Coverage:  # noqa: ARG002
        """Parse LCOV content into Coverage."""
        content = decode_text(data, self.format_id)
        lines = content.splitlines()
        self._check_signature(lines)

        builder = CoverageBuilder(self.format_id)
        current_file: str | None = None

        for lineno, line in enumerate(lines, start=1):
            line = line.strip()
            if not line or line.startswith("#"):
                continue

            if line == "end_of_record":
                current_file = None
                continue

            tag, sep, value = line.partition(":")
            if not sep or tag not in _KNOWN:
                raise MalformedRecordError(self.format_id, f"unknown record {line!r}", line=lineno)

            if tag == "SF":
                if not value:
                    raise MalformedRecordError(self.format_id, "empty SF path", line=lineno)
                current_file = value
                builder.add_file(current_file)

            elif tag == "DA":
                if current_file is None:
                    raise MalformedRecordError(
                        self.format_id, "DA record before any SF", line=lineno
                    )
                parts = value.split(",")
                if len(parts) < 2:
                    raise MalformedRecordError(self.format_id, f"bad DA {value!r}", line=lineno)
                try:
                    line_num = int(parts[0])
                    # Handle '-' as 0 (some tools use this)
                    hits = 0 if parts[1] == "-" else int(parts[1])
                except ValueError as e:
                    raise MalformedRecordError(
                        self.format_id, f"bad DA {value!r}", line=lineno
                    ) from e
                if line_num <= 0 or hits < 0:
                    raise MalformedRecordError(self.format_id, f"bad DA {value!r}", line=lineno)
                builder.add_line(current_file, line_num, hits)

            elif tag not in ("TN", "VER") and current_file is None:
                raise MalformedRecordError(
                    self.format_id, f"{tag} record before any SF", line=lineno
                )

        return builder.build()
