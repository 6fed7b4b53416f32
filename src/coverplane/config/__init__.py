"""Config module exports."""

from coverplane.config.loader import find_repo_config, load_config
from coverplane.config.models import (
    CodeToTestRatioConfig,
    CoverageConfig,
    CoverPlaneConfig,
    DiffConfig,
    ExecutionTimeConfig,
    LoggingConfig,
    ReportConfig,
)

__all__ = [
    "find_repo_config",
    "load_config",
    "CodeToTestRatioConfig",
    "CoverageConfig",
    "CoverPlaneConfig",
    "DiffConfig",
    "ExecutionTimeConfig",
    "LoggingConfig",
    "ReportConfig",
]
