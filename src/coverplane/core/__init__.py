"""Core module exports."""

from coverplane.core.errors import (
    ConfigError,
    CoverPlaneError,
    ErrorCode,
    EvaluationError,
    ExpressionError,
)
from coverplane.core.logging import (
    clear_measurement_id,
    configure_logging,
    get_logger,
    get_measurement_id,
    set_measurement_id,
)

__all__ = [
    # Errors
    "ConfigError",
    "CoverPlaneError",
    "ErrorCode",
    "EvaluationError",
    "ExpressionError",
    # Logging
    "clear_measurement_id",
    "configure_logging",
    "get_logger",
    "get_measurement_id",
    "set_measurement_id",
]
