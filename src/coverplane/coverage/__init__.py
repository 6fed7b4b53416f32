"""Coverage report decoding, lookup and comparison.

This package provides:
- Multi-format decoding with format sniffing (6 formats)
- A unified Coverage model with statement totals
- Fuzzy lookup of report paths from working-tree paths
- Per-file and aggregate diffs between two coverages

Usage:
    from coverplane.coverage import parse_artifact, diff_coverage

    coverage = parse_artifact(Path("coverage/lcov.info"))
    coverage.percent              # None when there are no statements
    coverage.find("src/app.py")   # FileCoverage or None
    diff_coverage(coverage, baseline).delta

Supported formats:
    - gocov: Go test coverage profiles (block based)
    - lcov: pytest-cov, c8, cargo-llvm-cov, gcov
    - simplecov: Ruby SimpleCov and other per-line JSON maps
    - jacoco: Java/Kotlin (Maven/Gradle)
    - clover: PHP (PHPUnit), Kotlin (kover)
    - cobertura: coverage.py, coverlet, gocover-cobertura
"""

from coverplane.coverage.diff import CoverageDiff, FileDiff, diff_coverage
from coverplane.coverage.fuzzy import find_file
from coverplane.coverage.models import (
    BlockCoverage,
    Coverage,
    CoverageBuilder,
    CoverageParseError,
    FileCoverage,
    FormatMismatchError,
    MalformedRecordError,
    UnrecognizedFormatError,
    percent,
)
from coverplane.coverage.parsers import (
    PARSER_BY_FORMAT,
    PARSER_REGISTRY,
    CoverageParser,
    parse_artifact,
    parse_bytes,
    sniff,
)
from coverplane.coverage.printer import annotate_lines, print_annotated

__all__ = [
    # Models
    "BlockCoverage",
    "Coverage",
    "CoverageBuilder",
    "FileCoverage",
    "percent",
    # Errors
    "CoverageParseError",
    "FormatMismatchError",
    "MalformedRecordError",
    "UnrecognizedFormatError",
    # Parsers
    "CoverageParser",
    "PARSER_BY_FORMAT",
    "PARSER_REGISTRY",
    "parse_artifact",
    "parse_bytes",
    "sniff",
    # Lookup / diff
    "find_file",
    "CoverageDiff",
    "FileDiff",
    "diff_coverage",
    # Printing
    "annotate_lines",
    "print_annotated",
]
