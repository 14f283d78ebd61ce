"""ExpressionEvaluator — a restricted predicate language for Condition nodes.

Grammar::

    expr       := or_expr
    or_expr    := and_expr (("or" | "||") and_expr)*
    and_expr   := not_expr (("and" | "&&") not_expr)*
    not_expr   := ("not" | "!") not_expr | comparison
    comparison := operand (COMPARE operand)?
    operand    := NUMBER | STRING | "true" | "false" | "null"
                | NAME ("." NAME)* | NAME "(" ")" | "(" expr ")"

Names resolve against the evaluation context only. Calls are limited to
zero-argument functions whitelisted at construction. Nothing else from the
interpreter is reachable, so a predicate can never run arbitrary code.

``==`` and ``!=`` compare values; ``===`` and ``!==`` also require both
operands to be the same kind of value (boolean, number, string, null).
"""

from __future__ import annotations

import functools
import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

from treectl.domain.errors import PredicateError

_TOKEN_RE = re.compile(
    r"""
    (?P<NUMBER>-?\d+(?:\.\d+)?)
  | (?P<STRING>"(?:\\.|[^"\\])*"|'(?:\\.|[^'\\])*')
  | (?P<OP>===|!==|==|!=|<=|>=|&&|\|\||[<>!().])
  | (?P<NAME>[A-Za-z_][A-Za-z0-9_]*)
  | (?P<SKIP>\s+)
  | (?P<MISMATCH>.)
    """,
    re.VERBOSE,
)

_KEYWORDS = {"and", "or", "not", "true", "false", "null"}
_COMPARE_OPS = {"==", "!=", "<", "<=", ">", ">=", "===", "!=="}
_ESCAPE_RE = re.compile(r"\\(.)")


@dataclass(frozen=True)
class _Token:
    kind: str
    value: str
    pos: int


def _tokenize(source: str) -> list[_Token]:
    tokens: list[_Token] = []
    for match in _TOKEN_RE.finditer(source):
        kind = match.lastgroup or "MISMATCH"
        value = match.group(0)
        if kind == "SKIP":
            continue
        if kind == "MISMATCH":
            raise PredicateError(f"Unexpected character {value!r} at {match.start()}")
        if kind == "NAME" and value in _KEYWORDS:
            kind = "KW"
        tokens.append(_Token(kind, value, match.start()))
    tokens.append(_Token("EOF", "", len(source)))
    return tokens


# ---------------------------------------------------------------------------
# AST
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class _Literal:
    value: Any


@dataclass(frozen=True)
class _Name:
    parts: tuple[str, ...]


@dataclass(frozen=True)
class _Call:
    name: str


@dataclass(frozen=True)
class _Not:
    operand: _Expr


@dataclass(frozen=True)
class _BoolOp:
    op: str
    operands: tuple[_Expr, ...]


@dataclass(frozen=True)
class _Compare:
    left: _Expr
    op: str
    right: _Expr


_Expr = _Literal | _Name | _Call | _Not | _BoolOp | _Compare


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


class _Parser:
    def __init__(self, source: str) -> None:
        self._tokens = _tokenize(source)
        self._pos = 0

    def _peek(self) -> _Token:
        return self._tokens[self._pos]

    def _advance(self) -> _Token:
        token = self._tokens[self._pos]
        self._pos += 1
        return token

    def _match(self, *values: str) -> bool:
        token = self._peek()
        if token.kind in ("OP", "KW") and token.value in values:
            self._pos += 1
            return True
        return False

    def _expect(self, value: str) -> None:
        if not self._match(value):
            token = self._peek()
            found = token.value or "end"
            raise PredicateError(f"Expected {value!r} at {token.pos}, found {found!r}")

    def parse(self) -> _Expr:
        expr = self._or()
        token = self._peek()
        if token.kind != "EOF":
            raise PredicateError(f"Unexpected {token.value!r} at {token.pos}")
        return expr

    def _or(self) -> _Expr:
        operands = [self._and()]
        while self._match("or", "||"):
            operands.append(self._and())
        return operands[0] if len(operands) == 1 else _BoolOp("or", tuple(operands))

    def _and(self) -> _Expr:
        operands = [self._not()]
        while self._match("and", "&&"):
            operands.append(self._not())
        return operands[0] if len(operands) == 1 else _BoolOp("and", tuple(operands))

    def _not(self) -> _Expr:
        if self._match("not", "!"):
            return _Not(self._not())
        return self._comparison()

    def _comparison(self) -> _Expr:
        left = self._operand()
        token = self._peek()
        if token.kind == "OP" and token.value in _COMPARE_OPS:
            self._advance()
            return _Compare(left, token.value, self._operand())
        return left

    def _operand(self) -> _Expr:
        token = self._advance()
        if token.kind == "NUMBER":
            value = float(token.value) if "." in token.value else int(token.value)
            return _Literal(value)
        if token.kind == "STRING":
            return _Literal(_ESCAPE_RE.sub(r"\1", token.value[1:-1]))
        if token.kind == "KW" and token.value in ("true", "false", "null"):
            return _Literal({"true": True, "false": False, "null": None}[token.value])
        if token.kind == "NAME":
            if self._match("("):
                self._expect(")")
                return _Call(token.value)
            parts = [token.value]
            while self._match("."):
                name = self._advance()
                if name.kind != "NAME":
                    raise PredicateError(f"Expected a name after '.' at {name.pos}")
                parts.append(name.value)
            return _Name(tuple(parts))
        if token.kind == "OP" and token.value == "(":
            expr = self._or()
            self._expect(")")
            return expr
        raise PredicateError(f"Unexpected {token.value or 'end'!r} at {token.pos}")


@functools.lru_cache(maxsize=256)
def parse_predicate(source: str) -> _Expr:
    """Parse *source* into an expression tree. Cached per predicate text."""
    return _Parser(source).parse()


# ---------------------------------------------------------------------------
# Evaluator
# ---------------------------------------------------------------------------


def _value_kind(value: Any) -> str:
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    return type(value).__name__


def _strict_equal(left: Any, right: Any) -> bool:
    return _value_kind(left) == _value_kind(right) and bool(left == right)


def _compare(op: str, left: Any, right: Any) -> bool:
    if op == "===":
        return _strict_equal(left, right)
    if op == "!==":
        return not _strict_equal(left, right)
    if op == "==":
        return bool(left == right)
    if op == "!=":
        return bool(left != right)
    if isinstance(left, bool) or isinstance(right, bool):
        raise TypeError("booleans are not ordered")
    if op == "<":
        return bool(left < right)
    if op == "<=":
        return bool(left <= right)
    if op == ">":
        return bool(left > right)
    return bool(left >= right)


class ExpressionEvaluator:
    """ConditionEvaluator over the restricted grammar above.

    Args:
        functions: Zero-argument callables a predicate may call by name,
            e.g. ``{"random": random.random}``.
    """

    def __init__(self, functions: Mapping[str, Callable[[], Any]] | None = None) -> None:
        self._functions = dict(functions or {})

    def evaluate(self, predicate: str, context: Mapping[str, Any]) -> bool:
        try:
            expr = parse_predicate(predicate)
            value = self._eval(expr, context)
        except PredicateError as exc:
            raise PredicateError(exc.message, predicate=predicate) from exc
        if not isinstance(value, bool):
            raise PredicateError(
                f"Predicate produced {type(value).__name__}, expected a boolean",
                predicate=predicate,
            )
        return value

    def _eval(self, expr: _Expr, context: Mapping[str, Any]) -> Any:
        match expr:
            case _Literal(value=value):
                return value
            case _Name(parts=parts):
                return self._resolve(parts, context)
            case _Call(name=name):
                func = self._functions.get(name)
                if func is None:
                    raise PredicateError(f"Unknown function: {name}()")
                return func()
            case _Not(operand=operand):
                return not self._truth(self._eval(operand, context))
            case _BoolOp(op="and", operands=operands):
                return all(self._truth(self._eval(o, context)) for o in operands)
            case _BoolOp(operands=operands):
                return any(self._truth(self._eval(o, context)) for o in operands)
            case _Compare(left=left, op=op, right=right):
                lhs = self._eval(left, context)
                rhs = self._eval(right, context)
                try:
                    return _compare(op, lhs, rhs)
                except TypeError as exc:
                    raise PredicateError(
                        f"Cannot compare {type(lhs).__name__} {op} {type(rhs).__name__}"
                    ) from exc
        raise PredicateError(f"Unsupported expression: {expr!r}")

    @staticmethod
    def _truth(value: Any) -> bool:
        if not isinstance(value, bool):
            raise PredicateError(f"Expected a boolean operand, got {type(value).__name__}")
        return value

    @staticmethod
    def _resolve(parts: tuple[str, ...], context: Mapping[str, Any]) -> Any:
        value: Any = context
        for depth, part in enumerate(parts):
            if not isinstance(value, Mapping) or part not in value:
                name = ".".join(parts[: depth + 1])
                raise PredicateError(f"Unknown name: {name}")
            value = value[part]
        return value
