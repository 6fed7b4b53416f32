"""Pydantic configuration models with env var support.

Configuration Hierarchy (highest to lowest precedence):
1. Direct kwargs to load_config()
2. Environment variables (COVERPLANE__SECTION__KEY)
3. Repo YAML (.coverplane.yml)
4. Global YAML (~/.config/coverplane/config.yml)
5. Built-in defaults (this file)

Examples:
    COVERPLANE__LOGGING__LEVEL=DEBUG
    COVERPLANE__COVERAGE__PATH=coverage/lcov.info
    COVERPLANE__COVERAGE__ACCEPTABLE="current.coverage >= 80%"
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class LogOutputConfig(BaseModel):
    """Single logging output configuration."""

    format: Literal["json", "console"] = "console"
    destination: str = "stderr"  # stderr, stdout, or absolute file path
    level: LogLevel | None = None  # Inherits from parent if None

    @field_validator("destination")
    @classmethod
    def validate_destination(cls, v: str) -> str:
        if v in ("stderr", "stdout"):
            return v
        path = Path(v).expanduser()
        if not path.is_absolute():
            raise ValueError(f"File destination must be absolute path: {v}")
        return str(path)


class LoggingConfig(BaseModel):
    """Logging configuration.

    Env vars:
        COVERPLANE__LOGGING__LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """

    level: LogLevel = Field(
        default="WARNING",
        description="Root log level. Measurement output goes to stdout regardless.",
    )
    outputs: list[LogOutputConfig] = Field(default_factory=lambda: [LogOutputConfig()])


class CoverageConfig(BaseModel):
    """Code coverage measurement.

    Env vars:
        COVERPLANE__COVERAGE__PATH: Report file or directory to decode
        COVERPLANE__COVERAGE__FORMAT: Force a report format (skip sniffing)
        COVERPLANE__COVERAGE__ACCEPTABLE: Threshold expression
    """

    path: str | None = Field(
        default=None,
        description="Coverage report file, or a directory searched for default report names.",
    )
    format: str | None = Field(
        default=None,
        description="Force one format id (gocov, lcov, simplecov, jacoco, clover, cobertura).",
    )
    acceptable: str | None = Field(
        default=None,
        description="Threshold expression, e.g. 'current.coverage >= 60%' or just '60%'.",
    )


class CodeToTestRatioConfig(BaseModel):
    """Code-to-test ratio measurement.

    Patterns are globs relative to the project root; ``!pattern`` excludes.
    """

    code: list[str] = Field(default_factory=list)
    test: list[str] = Field(default_factory=list)
    acceptable: str | None = Field(
        default=None,
        description=(
            "Threshold expression, e.g. 'current.code_to_test_ratio >= 1.2' or just '1:1.2'."
        ),
    )


class ExecutionTimeConfig(BaseModel):
    """Externally measured test execution time."""

    seconds: float | None = Field(
        default=None,
        description="Duration of the test run in seconds, recorded into the report.",
    )
    acceptable: str | None = Field(
        default=None,
        description="Threshold expression, e.g. 'diff.test_execution_time <= 30' or just '90s'.",
    )

    @field_validator("seconds")
    @classmethod
    def validate_seconds(cls, v: float | None) -> float | None:
        if v is not None and v < 0:
            raise ValueError(f"Execution time must be >= 0, got {v}")
        return v


class DiffConfig(BaseModel):
    """Baseline used for comparison.

    ``path`` may point at a stored report JSON or at a raw coverage report.
    """

    path: str | None = None


class ReportConfig(BaseModel):
    """Where the measured report JSON is written."""

    path: str | None = None
    compact: bool = Field(
        default=True,
        description="Discard per-line/per-block detail before writing.",
    )


class CoverPlaneConfig(BaseModel):
    """Root configuration for coverplane."""

    repository: str | None = None
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    coverage: CoverageConfig = Field(default_factory=CoverageConfig)
    code_to_test_ratio: CodeToTestRatioConfig = Field(default_factory=CodeToTestRatioConfig)
    test_execution_time: ExecutionTimeConfig = Field(
        default_factory=ExecutionTimeConfig
    )
    diff: DiffConfig = Field(default_factory=DiffConfig)
    report: ReportConfig = Field(default_factory=ReportConfig)
