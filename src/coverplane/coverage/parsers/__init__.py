"""Coverage parser registry and format sniffing.

This module provides:
- PARSER_REGISTRY: All available parsers, in sniffing priority order
- sniff: Decode raw bytes with the first parser that accepts them
- parse_bytes: Decode with a forced or sniffed format
- parse_artifact: Decode a report file, or find one inside a directory
"""

from collections.abc import Sequence
from pathlib import Path

from coverplane.core.logging import get_logger
from coverplane.coverage.models import (
    Coverage,
    CoverageParseError,
    FormatMismatchError,
    UnrecognizedFormatError,
)

from .base import CoverageParser
from .clover import CloverParser
from .cobertura import CoberturaParser
from .gocov import GocovParser
from .jacoco import JacocoParser
from .lcov import LcovParser
from .simplecov import SimplecovParser

log = get_logger("coverage.parsers")

# Parser registry - order matters for detection priority
# Strict formats first, lenient ones last
PARSER_REGISTRY: Sequence[CoverageParser] = (
    GocovParser(),  # "mode:" header
    SimplecovParser(),  # JSON object of per-line arrays
    JacocoParser(),  # <report> root
    CloverParser(),  # <coverage><project>
    CoberturaParser(),  # <coverage><packages> (last XML fallback)
    LcovParser(),  # LCOV text (last text fallback)
)

# Format ID to parser mapping
PARSER_BY_FORMAT: dict[str, CoverageParser] = {p.format_id: p for p in PARSER_REGISTRY}

__all__ = [
    "PARSER_REGISTRY",
    "PARSER_BY_FORMAT",
    "find_report_file",
    "parse_artifact",
    "parse_bytes",
    "sniff",
    "CoverageParser",
    "CloverParser",
    "CoberturaParser",
    "GocovParser",
    "JacocoParser",
    "LcovParser",
    "SimplecovParser",
]


def sniff(data: bytes, *, root: str | None = None) -> Coverage:
    """Decode a report of unknown format.

    Parsers are tried in PARSER_REGISTRY order. A parser that rejects the
    input's signature (FormatMismatchError) passes it on to the next one;
    any other CoverageParseError means the format matched but the content is
    broken, and is raised as is.

    Raises:
        UnrecognizedFormatError: No parser accepted the input.
        MalformedRecordError: The matching parser found a broken record.
    """
    for parser in PARSER_REGISTRY:
        try:
            coverage = parser.parse(data, root=root)
        except FormatMismatchError as e:
            log.debug("format_mismatch", format=parser.format_id, reason=e.reason)
            continue
        log.debug(
            "format_detected",
            format=parser.format_id,
            files=len(coverage),
            total=coverage.total,
            covered=coverage.covered,
        )
        return coverage
    raise UnrecognizedFormatError(p.format_id for p in PARSER_REGISTRY)


def _parser_for(format_id: str) -> CoverageParser:
    parser = PARSER_BY_FORMAT.get(format_id)
    if not parser:
        valid = ", ".join(sorted(PARSER_BY_FORMAT.keys()))
        raise CoverageParseError(f"Unknown coverage format: {format_id!r}. Valid formats: {valid}")
    return parser


def parse_bytes(
    data: bytes,
    *,
    format_id: str | None = None,
    root: str | None = None,
) -> Coverage:
    """Decode report bytes, sniffing the format unless format_id is given."""
    if format_id:
        return _parser_for(format_id).parse(data, root=root)
    return sniff(data, root=root)


def find_report_file(directory: Path, *, format_id: str | None = None) -> Path:
    """Find a report inside a directory using each parser's default names.

    Raises:
        CoverageParseError: No default report name exists under directory.
    """
    parsers = [_parser_for(format_id)] if format_id else PARSER_REGISTRY
    for parser in parsers:
        for name in parser.default_filenames:
            candidate = directory / name
            if candidate.is_file():
                return candidate
    raise CoverageParseError(f"No coverage report found in {directory}")


def parse_artifact(
    path: Path,
    *,
    format_id: str | None = None,
    root: Path | None = None,
) -> Coverage:
    """Parse a coverage report file (or the report found in a directory).

    Args:
        path: Path to coverage file or directory.
        format_id: Force specific format (skip sniffing).
        root: Project root, passed on to parsers for relative references.

    Raises:
        CoverageParseError: If the path is missing or parsing fails.
    """
    if not path.exists():
        raise CoverageParseError(f"Coverage report not found: {path}")
    report_file = find_report_file(path, format_id=format_id) if path.is_dir() else path

    try:
        data = report_file.read_bytes()
    except OSError as e:
        raise CoverageParseError(f"Failed to read coverage report {report_file}: {e}") from e

    log.debug("parse_artifact", path=str(report_file), size=len(data))
    return parse_bytes(data, format_id=format_id, root=str(root) if root else None)
