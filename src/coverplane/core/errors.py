"""coverplane error types with typed error codes.

Error code ranges:
- 2xxx: Config
- 4xxx: Acceptability (threshold expressions)

Coverage decoding errors live next to the coverage model
(``coverplane.coverage.models``) and are plain exceptions.
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any


class ErrorCode(IntEnum):
    """Typed error codes for programmatic handling."""

    # Config (2xxx)
    CONFIG_PARSE_ERROR = 2001
    CONFIG_INVALID_VALUE = 2002

    # Acceptability (4xxx)
    EXPRESSION_SYNTAX = 4001
    EXPRESSION_UNKNOWN_VARIABLE = 4002
    EXPRESSION_TYPE_MISMATCH = 4003
    METRIC_NOT_MEASURED = 4101
    EVALUATION_FAILED = 4102


@dataclass(frozen=True, slots=True)
class CoverPlaneError(Exception):
    """Base error with structured context."""

    code: ErrorCode
    message: str
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def error_name(self) -> str:
        """String identifier for logging (e.g., 'CONFIG_PARSE_ERROR')."""
        return self.code.name

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code.value,
            "error": self.error_name,
            "message": self.message,
            "details": self.details,
        }

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.error_name}: {self.message}"


class ConfigError(CoverPlaneError):
    """Configuration-related errors."""

    @classmethod
    def parse_error(cls, path: str, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_PARSE_ERROR,
            message=f"Failed to parse config at {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def invalid_value(cls, field: str, value: Any, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_INVALID_VALUE,
            message=f"Invalid value for '{field}': {reason}",
            details={"field": field, "value": str(value), "reason": reason},
        )


class ExpressionError(CoverPlaneError):
    """Threshold expression rejected at compile time."""

    @classmethod
    def syntax(cls, source: str, position: int, reason: str) -> "ExpressionError":
        return cls(
            code=ErrorCode.EXPRESSION_SYNTAX,
            message=f"Invalid expression at column {position + 1}: {reason}",
            details={"expression": source, "position": position, "reason": reason},
        )

    @classmethod
    def unknown_variable(cls, source: str, name: str) -> "ExpressionError":
        return cls(
            code=ErrorCode.EXPRESSION_UNKNOWN_VARIABLE,
            message=f"Unknown variable '{name}'",
            details={"expression": source, "variable": name},
        )

    @classmethod
    def type_mismatch(cls, source: str, reason: str) -> "ExpressionError":
        return cls(
            code=ErrorCode.EXPRESSION_TYPE_MISMATCH,
            message=f"Type mismatch: {reason}",
            details={"expression": source, "reason": reason},
        )


class EvaluationError(CoverPlaneError):
    """Threshold expression could not be evaluated against the metrics."""

    @classmethod
    def not_measured(cls, name: str) -> "EvaluationError":
        return cls(
            code=ErrorCode.METRIC_NOT_MEASURED,
            message=f"Metric '{name}' is not measured",
            details={"variable": name},
        )

    @classmethod
    def failed(cls, source: str, reason: str) -> "EvaluationError":
        return cls(
            code=ErrorCode.EVALUATION_FAILED,
            message=f"Failed to evaluate '{source}': {reason}",
            details={"expression": source, "reason": reason},
        )

