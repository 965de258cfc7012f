"""Compiler from condition expression strings to predicate trees.

Accepts the expression micro-language authored in workflow files::

    hasErrors && !isSuccess
    fileCount >= 2 || output.includes("deploy")
    true

JavaScript-style operators are normalized, the text is parsed with
``ast.parse(mode="eval")`` and only a closed set of syntax nodes is
translated. The parsed tree is walked, never compiled or executed.
"""

from __future__ import annotations

import ast
import re
from functools import lru_cache

from agentflow.conditions.predicates import (
    SIGNAL_NAMES,
    AndPredicate,
    ConstantPredicate,
    FileCountPredicate,
    NotPredicate,
    OrPredicate,
    OutputContainsPredicate,
    OutputMatchesPredicate,
    Predicate,
    SignalPredicate,
)
from agentflow.errors.exceptions import ExpressionError


_STRING_LITERAL = re.compile(r"""("(?:[^"\\]|\\.)*"|'(?:[^'\\]|\\.)*')""")
_BANG = re.compile(r"!(?!=)")

_BOOLEAN_NAMES = {"true": True, "false": False, "True": True, "False": False}

_COMPARE_OPS: dict[type[ast.cmpop], str] = {
    ast.Eq: "==",
    ast.NotEq: "!=",
    ast.Lt: "<",
    ast.LtE: "<=",
    ast.Gt: ">",
    ast.GtE: ">=",
}

# Mirrors an operator when fileCount sits on the right-hand side
_FLIPPED = {"==": "==", "!=": "!=", "<": ">", "<=": ">=", ">": "<", ">=": "<="}


def _translate_operators(code: str) -> str:
    code = code.replace("!==", "!=").replace("===", "==")
    code = code.replace("&&", " and ").replace("||", " or ")
    return _BANG.sub(" not ", code)


def normalize_expression(expression: str) -> str:
    """Rewrite JavaScript-style operators outside of string literals."""
    parts = _STRING_LITERAL.split(expression)
    # split() with one capture group puts literals at odd indices
    normalized = [
        part if index % 2 else _translate_operators(part)
        for index, part in enumerate(parts)
    ]
    return "".join(normalized).strip()


class _Compiler:
    """Translates a parsed expression tree into predicates."""

    def __init__(self, expression: str) -> None:
        self._expression = expression

    def fail(self, reason: str) -> ExpressionError:
        return ExpressionError(self._expression, reason)

    def compile(self, node: ast.AST) -> Predicate:
        if isinstance(node, ast.Expression):
            return self.compile(node.body)

        if isinstance(node, ast.BoolOp):
            operands = tuple(self.compile(v) for v in node.values)
            if isinstance(node.op, ast.And):
                return AndPredicate(operands=operands)
            return OrPredicate(operands=operands)

        if isinstance(node, ast.UnaryOp) and isinstance(node.op, ast.Not):
            return NotPredicate(operand=self.compile(node.operand))

        if isinstance(node, ast.Constant):
            if isinstance(node.value, bool):
                return ConstantPredicate(value=node.value)
            raise self.fail(f"literal {node.value!r} is not a boolean")

        if isinstance(node, ast.Name):
            return self._name(node.id)

        if isinstance(node, ast.Compare):
            return self._compare(node)

        if isinstance(node, ast.Call):
            return self._call(node)

        raise self.fail(f"unsupported syntax '{type(node).__name__}'")

    def _name(self, name: str) -> Predicate:
        if name in _BOOLEAN_NAMES:
            return ConstantPredicate(value=_BOOLEAN_NAMES[name])
        if name in SIGNAL_NAMES:
            return SignalPredicate(signal=name)
        if name == "fileCount":
            raise self.fail("fileCount must be compared with a number")
        raise self.fail(f"unknown name '{name}'")

    def _compare(self, node: ast.Compare) -> Predicate:
        comparisons: list[Predicate] = []
        left = node.left
        for op_node, right in zip(node.ops, node.comparators):
            op = _COMPARE_OPS.get(type(op_node))
            if op is None:
                raise self.fail(f"unsupported comparison '{type(op_node).__name__}'")
            comparisons.append(self._comparison(left, op, right))
            left = right

        if len(comparisons) == 1:
            return comparisons[0]
        return AndPredicate(operands=tuple(comparisons))

    def _comparison(self, left: ast.expr, op: str, right: ast.expr) -> Predicate:
        if _is_name(right, "fileCount") and not _is_name(left, "fileCount"):
            left, right = right, left
            op = _FLIPPED[op]

        if _is_name(left, "fileCount"):
            value = _number(right)
            if value is None:
                raise self.fail("fileCount can only be compared with a number")
            return FileCountPredicate(op=op, value=value)

        # hasErrors == true / isSuccess != false
        if isinstance(right, ast.Name) and right.id in SIGNAL_NAMES:
            left, right = right, left
        if isinstance(left, ast.Name) and left.id in SIGNAL_NAMES and op in ("==", "!="):
            expected = _boolean(right)
            if expected is None:
                raise self.fail(f"{left.id} can only be compared with true or false")
            signal = SignalPredicate(signal=left.id)
            if expected == (op == "=="):
                return signal
            return NotPredicate(operand=signal)

        raise self.fail("comparisons must involve fileCount or a signal")

    def _call(self, node: ast.Call) -> Predicate:
        func = node.func
        if not (
            isinstance(func, ast.Attribute)
            and _is_name(func.value, "output")
            and func.attr in ("includes", "matches")
        ):
            raise self.fail("only output.includes(...) and output.matches(...) can be called")
        if node.keywords or len(node.args) != 1:
            raise self.fail(f"output.{func.attr}() takes exactly one argument")

        arg = node.args[0]
        if not (isinstance(arg, ast.Constant) and isinstance(arg.value, str)):
            raise self.fail(f"output.{func.attr}() needs a string literal")

        if func.attr == "includes":
            return OutputContainsPredicate(text=arg.value)
        return OutputMatchesPredicate(pattern=arg.value)


def _is_name(node: ast.expr, name: str) -> bool:
    return isinstance(node, ast.Name) and node.id == name


def _number(node: ast.expr) -> float | None:
    if isinstance(node, ast.UnaryOp) and isinstance(node.op, ast.USub):
        inner = _number(node.operand)
        return -inner if inner is not None else None
    if (
        isinstance(node, ast.Constant)
        and isinstance(node.value, (int, float))
        and not isinstance(node.value, bool)
    ):
        return float(node.value)
    return None


def _boolean(node: ast.expr) -> bool | None:
    if isinstance(node, ast.Constant) and isinstance(node.value, bool):
        return node.value
    if isinstance(node, ast.Name) and node.id in _BOOLEAN_NAMES:
        return _BOOLEAN_NAMES[node.id]
    return None


@lru_cache(maxsize=256)
def compile_expression(expression: str) -> Predicate:
    """Compile an expression string into a predicate tree.

    Args:
        expression: Expression text, e.g. ``"hasErrors && fileCount > 0"``.

    Returns:
        The equivalent predicate.

    Raises:
        ExpressionError: If the text is empty, malformed or uses anything
            outside the supported vocabulary.
    """
    source = normalize_expression(expression)
    if not source:
        raise ExpressionError(expression, "expression is empty")

    try:
        tree = ast.parse(source, mode="eval")
    except SyntaxError as e:
        raise ExpressionError(expression, f"syntax error: {e.msg}") from e
    except (ValueError, RecursionError, MemoryError) as e:
        raise ExpressionError(expression, f"cannot parse: {type(e).__name__}") from e

    try:
        return _Compiler(expression).compile(tree)
    except (RecursionError, MemoryError) as e:
        raise ExpressionError(expression, "expression is nested too deeply") from e
