"""SimpleCov-style JSON per-file line map parser.

SimpleCov is the standard Ruby coverage tool. Its .resultset.json wraps one
coverage map per test suite:

{
  "RSpec": {
    "coverage": {
      "/path/to/file.rb": {
        "lines": [null, 1, 2, 0, null, ...]
      }
    },
    "timestamp": 1234567890
  }
}

Older versions store the array directly ("/path/to/file.rb": [null, 1, ...]).
A bare map without the suite wrapper is accepted too:

{"/path/to/file.rb": [null, 1, 0]}

Line array semantics:
- null: non-executable line (comment, blank, etc.)
- 0: executable but not executed
- N > 0: executed N times

Array is 0-indexed but represents 1-indexed lines (element 0 = line 1).
"""

import json
from typing import Any

from coverplane.coverage.models import (
    Coverage,
    CoverageBuilder,
    FormatMismatchError,
    MalformedRecordError,
)

from .base import decode_text


class SimplecovParser:
    """Parser for SimpleCov JSON format."""

    @property
    def format_id(self) -> str:
        return "simplecov"

    @property
    def default_filenames(self) -> tuple[str, ...]:
        return ("coverage/.resultset.json", ".resultset.json")

    def parse(self, data: bytes, *, root: str | None = None) -> Coverage:  # noqa: ARG002
        """Parse SimpleCov JSON into Coverage."""
        head = data.lstrip(b"\xef\xbb\xbf \t\r\n")
        if not head.startswith(b"{"):
            raise FormatMismatchError(self.format_id, "not a JSON object")
        try:
            doc = json.loads(decode_text(data, self.format_id))
        except json.JSONDecodeError as e:
            raise FormatMismatchError(self.format_id, f"invalid JSON: {e}") from e

        maps = self._coverage_maps(doc)
        builder = CoverageBuilder(self.format_id)

        for coverage_map in maps:
            for file_path, file_data in coverage_map.items():
                builder.add_file(file_path)

                # Extract lines array
                if isinstance(file_data, dict):
                    lines_array = file_data.get("lines")
                else:
                    lines_array = file_data
                if not isinstance(lines_array, list):
                    raise MalformedRecordError(
                        self.format_id, f"{file_path}: line data is not an array"
                    )

                for idx, count in enumerate(lines_array):
                    if count is None:
                        # Non-executable line
                        continue
                    # "ignored" marks lines excluded with nocov comments
                    if count == "ignored":
                        continue
                    if isinstance(count, bool) or not isinstance(count, int) or count < 0:
                        raise MalformedRecordError(
                            self.format_id, f"{file_path}: line {idx + 1} count {count!r}"
                        )
                    builder.add_line(file_path, idx + 1, count)

        return builder.build()

    def _coverage_maps(self, doc: Any) -> list[dict[str, Any]]:
        """Locate the {path: lines} maps inside a document."""
        if not isinstance(doc, dict) or not doc:
            raise FormatMismatchError(self.format_id, "not a non-empty JSON object")

        # .resultset.json: {suite: {"coverage": {...}}}
        suites = [v for v in doc.values() if isinstance(v, dict) and "coverage" in v]
        if suites:
            maps = []
            for suite in suites:
                coverage_map = suite["coverage"]
                if not isinstance(coverage_map, dict):
                    raise MalformedRecordError(self.format_id, "'coverage' is not an object")
                maps.append(coverage_map)
            return maps

        # Bare map: every value is a line array or {"lines": [...]}
        for value in doc.values():
            if isinstance(value, list):
                continue
            if isinstance(value, dict) and isinstance(value.get("lines"), list):
                continue
            raise FormatMismatchError(self.format_id, "values are not per-line hit arrays")
        return [doc]
