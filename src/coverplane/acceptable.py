"""Acceptability expressions: thresholds a measurement must satisfy.

Expressions are compiled once, then evaluated against a metric table:

    expr = compile_expression("current.coverage >= 80% && diff.coverage >= 0")
    expr.evaluate(Metrics.from_reports(current, prev))

Grammar (lowest to highest precedence)::

    expr       := or
    or         := and (("||" | "or") and)*
    and        := not (("&&" | "and") not)*
    not        := ("!" | "not") not | comparison
    comparison := sum (("<" | "<=" | ">" | ">=" | "==" | "!=") sum)?
    sum        := product (("+" | "-") product)*
    product    := unary (("*" | "/") unary)*
    unary      := "-" unary | atom
    atom       := NUMBER ["%"] | "true" | "false" | VARIABLE | "(" expr ")"

Variables are ``current.``, ``prev.`` or ``diff.`` followed by ``coverage``,
``code_to_test_ratio`` or ``test_execution_time``. A percent suffix is
decoration only: ``80%`` is the number 80, matching coverage percentages.

A bare threshold is shorthand for a comparison against the current value of
the metric the expression belongs to:

    coverage             "60%"   -> current.coverage >= 60
    code_to_test_ratio   "1:1.2" -> current.code_to_test_ratio >= 1.2
    test_execution_time  "90s"   -> current.test_execution_time <= 90
                         "2min"  -> current.test_execution_time <= 120
"""

from __future__ import annotations

import operator
import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal

from coverplane.core.errors import EvaluationError, ExpressionError
from coverplane.core.logging import get_logger

if TYPE_CHECKING:
    from coverplane.report import Report

log = get_logger("acceptable")

ValueType = Literal["num", "bool"]

SCOPES = ("current", "prev", "diff")
METRICS = ("coverage", "code_to_test_ratio", "test_execution_time")
VARIABLES: frozenset[str] = frozenset(f"{scope}.{metric}" for scope in SCOPES for metric in METRICS)

_BARE_PERCENT_RE = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*%?\s*$")
_BARE_RATIO_RE = re.compile(r"^\s*1\s*:\s*(\d+(?:\.\d+)?)\s*$")
_BARE_DURATION_RE = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*(s|sec|m|min)?\s*$")
_DURATION_UNITS = {None: 1, "s": 1, "sec": 1, "m": 60, "min": 60}
_TOKEN_RE = re.compile(
    r"""
    (?P<ws>\s+)
    | (?P<number>\d+(?:\.\d+)?%?)
    | (?P<name>[A-Za-z_][A-Za-z0-9_]*(?:\.[A-Za-z_][A-Za-z0-9_]*)*)
    | (?P<op>\|\||&&|<=|>=|==|!=|[<>!+\-*/()])
    """,
    re.VERBOSE,
)
_KEYWORD_OPS = {"or": "||", "and": "&&", "not": "!"}

_COMPARISONS: dict[str, Callable[[float, float], bool]] = {
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
    "==": operator.eq,
    "!=": operator.ne,
}
_ARITHMETIC: dict[str, Callable[[float, float], float]] = {
    "+": operator.add,
    "-": operator.sub,
    "*": operator.mul,
    "/": operator.truediv,
}


# =============================================================================
# Metrics
# =============================================================================


@dataclass(frozen=True, slots=True)
class Metrics:
    """Variable table for evaluation. None marks an unmeasured value."""

    values: Mapping[str, float | None]

    def get(self, name: str) -> float:
        value = self.values.get(name)
        if value is None:
            raise EvaluationError.not_measured(name)
        return value

    @classmethod
    def from_reports(cls, current: Report, prev: Report | None = None) -> Metrics:
        """Build current/prev/diff variables from one or two reports."""
        cur = _report_metrics(current)
        old = _report_metrics(prev) if prev is not None else dict.fromkeys(METRICS)
        values: dict[str, float | None] = {}
        for metric in METRICS:
            c, p = cur[metric], old[metric]
            values[f"current.{metric}"] = c
            values[f"prev.{metric}"] = p
            values[f"diff.{metric}"] = c - p if c is not None and p is not None else None
        return cls(values=values)


def _report_metrics(report: Report) -> dict[str, float | None]:
    return {
        "coverage": report.coverage_percent,
        "code_to_test_ratio": report.code_to_test_ratio_value,
        "test_execution_time": report.test_execution_time,
    }


# =============================================================================
# Syntax tree
# =============================================================================


@dataclass(frozen=True, slots=True)
class _Literal:
    value: float | bool
    type: ValueType

    def eval(self, metrics: Metrics) -> float | bool:
        return self.value


@dataclass(frozen=True, slots=True)
class _Variable:
    name: str
    type: ValueType = "num"

    def eval(self, metrics: Metrics) -> float:
        return metrics.get(self.name)


@dataclass(frozen=True, slots=True)
class _Unary:
    op: str
    operand: _Node
    type: ValueType

    def eval(self, metrics: Metrics) -> float | bool:
        value = self.operand.eval(metrics)
        return (not value) if self.op == "!" else -value


@dataclass(frozen=True, slots=True)
class _Binary:
    op: str
    left: _Node
    right: _Node
    type: ValueType

    def eval(self, metrics: Metrics) -> float | bool:
        if self.op == "||":
            return bool(self.left.eval(metrics)) or bool(self.right.eval(metrics))
        if self.op == "&&":
            return bool(self.left.eval(metrics)) and bool(self.right.eval(metrics))
        left = self.left.eval(metrics)
        right = self.right.eval(metrics)
        if self.op in _COMPARISONS:
            return _COMPARISONS[self.op](left, right)
        return _ARITHMETIC[self.op](left, right)


_Node = _Literal | _Variable | _Unary | _Binary


# =============================================================================
# Parser
# =============================================================================


@dataclass(frozen=True, slots=True)
class _Token:
    kind: Literal["number", "name", "op", "end"]
    text: str
    pos: int


def _tokenize(source: str) -> list[_Token]:
    tokens: list[_Token] = []
    pos = 0
    while pos < len(source):
        m = _TOKEN_RE.match(source, pos)
        if m is None:
            raise ExpressionError.syntax(source, pos, f"unexpected character {source[pos]!r}")
        kind = m.lastgroup
        text = m.group()
        if kind == "name" and text in _KEYWORD_OPS:
            tokens.append(_Token("op", _KEYWORD_OPS[text], pos))
        elif kind != "ws":
            tokens.append(_Token(kind, text, pos))  # type: ignore[arg-type]
        pos = m.end()
    tokens.append(_Token("end", "", len(source)))
    return tokens


class _Parser:
    """Recursive descent parser that type-checks while building the tree."""

    def __init__(self, source: str) -> None:
        self.source = source
        self.tokens = _tokenize(source)
        self.index = 0

    @property
    def current(self) -> _Token:
        return self.tokens[self.index]

    def _accept(self, *ops: str) -> str | None:
        tok = self.current
        if tok.kind == "op" and tok.text in ops:
            self.index += 1
            return tok.text
        return None

    def _error(self, reason: str) -> ExpressionError:
        return ExpressionError.syntax(self.source, self.current.pos, reason)

    def _require(self, node: _Node, expected: ValueType, context: str) -> None:
        if node.type != expected:
            kind = "number" if expected == "num" else "boolean"
            raise ExpressionError.type_mismatch(self.source, f"{context} expects a {kind}")

    def parse(self) -> _Node:
        if self.current.kind == "end":
            raise self._error("empty expression")
        node = self._or()
        if self.current.kind != "end":
            raise self._error(f"unexpected {self.current.text!r}")
        if node.type != "bool":
            raise ExpressionError.type_mismatch(
                self.source, "expression must evaluate to a boolean"
            )
        return node

    def _or(self) -> _Node:
        node = self._and()
        while self._accept("||"):
            right = self._and()
            self._require(node, "bool", "'||'")
            self._require(right, "bool", "'||'")
            node = _Binary("||", node, right, "bool")
        return node

    def _and(self) -> _Node:
        node = self._not()
        while self._accept("&&"):
            right = self._not()
            self._require(node, "bool", "'&&'")
            self._require(right, "bool", "'&&'")
            node = _Binary("&&", node, right, "bool")
        return node

    def _not(self) -> _Node:
        if self._accept("!"):
            operand = self._not()
            self._require(operand, "bool", "'!'")
            return _Unary("!", operand, "bool")
        return self._comparison()

    def _comparison(self) -> _Node:
        node = self._sum()
        op = self._accept(*_COMPARISONS)
        if op is None:
            return node
        right = self._sum()
        if op in ("==", "!="):
            if node.type != right.type:
                raise ExpressionError.type_mismatch(
                    self.source, f"'{op}' compares a {node.type} with a {right.type}"
                )
        else:
            self._require(node, "num", f"'{op}'")
            self._require(right, "num", f"'{op}'")
        if self.current.kind == "op" and self.current.text in _COMPARISONS:
            raise self._error("comparisons cannot be chained")
        return _Binary(op, node, right, "bool")

    def _sum(self) -> _Node:
        node = self._product()
        while op := self._accept("+", "-"):
            right = self._product()
            self._require(node, "num", f"'{op}'")
            self._require(right, "num", f"'{op}'")
            node = _Binary(op, node, right, "num")
        return node

    def _product(self) -> _Node:
        node = self._unary()
        while op := self._accept("*", "/"):
            right = self._unary()
            self._require(node, "num", f"'{op}'")
            self._require(right, "num", f"'{op}'")
            node = _Binary(op, node, right, "num")
        return node

    def _unary(self) -> _Node:
        if self._accept("-"):
            operand = self._unary()
            self._require(operand, "num", "unary '-'")
            return _Unary("-", operand, "num")
        return self._atom()

    def _atom(self) -> _Node:
        tok = self.current
        if tok.kind == "number":
            self.index += 1
            return _Literal(float(tok.text.rstrip("%")), "num")
        if tok.kind == "name":
            self.index += 1
            if tok.text in ("true", "false"):
                return _Literal(tok.text == "true", "bool")
            if tok.text not in VARIABLES:
                raise ExpressionError.unknown_variable(self.source, tok.text)
            return _Variable(tok.text)
        if self._accept("("):
            node = self._or()
            if not self._accept(")"):
                raise self._error("expected ')'")
            return node
        if tok.kind == "end":
            raise self._error("unexpected end of expression")
        raise self._error(f"unexpected {tok.text!r}")


def _collect_variables(node: _Node) -> set[str]:
    if isinstance(node, _Variable):
        return {node.name}
    if isinstance(node, _Unary):
        return _collect_variables(node.operand)
    if isinstance(node, _Binary):
        return _collect_variables(node.left) | _collect_variables(node.right)
    return set()


# =============================================================================
# Public API
# =============================================================================


@dataclass(frozen=True, slots=True)
class Expression:
    """A compiled, type-checked acceptability expression."""

    source: str
    _root: _Node

    @property
    def variables(self) -> frozenset[str]:
        return frozenset(_collect_variables(self._root))

    def evaluate(self, metrics: Metrics) -> bool:
        """Evaluate against metrics.

        Raises:
            EvaluationError: If a referenced metric is not measured, or on
                division by zero.
        """
        try:
            result = bool(self._root.eval(metrics))
        except ZeroDivisionError as e:
            raise EvaluationError.failed(self.source, "division by zero") from e
        log.debug("expression_evaluated", expression=self.source, result=result)
        return result


def expand_shorthand(source: str, metric: str = "coverage") -> str:
    """Rewrite a bare threshold into a full expression for metric."""
    if metric == "coverage":
        m = _BARE_PERCENT_RE.match(source)
        if m is not None:
            return f"current.coverage >= {m.group(1)}"
    elif metric == "code_to_test_ratio":
        m = _BARE_RATIO_RE.match(source)
        if m is not None:
            return f"current.code_to_test_ratio >= {m.group(1)}"
    elif metric == "test_execution_time":
        m = _BARE_DURATION_RE.match(source)
        if m is not None:
            seconds = float(m.group(1)) * _DURATION_UNITS[m.group(2)]
            return f"current.test_execution_time <= {seconds!r}"
    else:
        raise ValueError(f"unknown metric {metric!r}")
    return source


def compile_expression(source: str, *, metric: str = "coverage") -> Expression:
    """Parse and type-check an expression.

    ``metric`` selects how a bare threshold is read (see module docstring).

    Raises:
        ExpressionError: On syntax errors, unknown variables or type mismatches.
    """
    source = expand_shorthand(source, metric)
    return Expression(source=source, _root=_Parser(source).parse())


def evaluate(source: str, metrics: Metrics, *, metric: str = "coverage") -> bool:
    return compile_expression(source, metric=metric).evaluate(metrics)
