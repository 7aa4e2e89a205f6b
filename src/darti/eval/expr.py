from __future__ import annotations

import math
from typing import Union

from ..environment import Environment
from ..nodes import BinaryExpression, ConditionalExpression
from ..types import (
    DartiRuntimeError,
    DtBool,
    DtInt,
    DtString,
    DtValue,
    IntegerDivisionByZeroError,
    TypeMismatchError,
    is_number,
)
from ..utils import dart_equals, number_value, type_name
from .common import EvalFunc, require_bool, require_number

Num = Union[int, float]

# ---------------- numeric helpers ----------------

def _float_divide(a: Num, b: Num) -> float:
    if b == 0:
        if a == 0 or math.isnan(a):
            return math.nan
        return math.copysign(math.inf, a) * math.copysign(1.0, b)
    return a / b

def _truncating_divide(a: Num, b: Num) -> int:
    if isinstance(a, int) and isinstance(b, int):
        if b == 0:
            raise IntegerDivisionByZeroError()
        quotient = abs(a) // abs(b)
        return -quotient if (a < 0) != (b < 0) else quotient

    result = _float_divide(a, b)
    if math.isinf(result) or math.isnan(result):
        raise DartiRuntimeError("Unsupported operation: Infinity or NaN toInt")
    return math.trunc(result)

def _remainder(a: Num, b: Num) -> Num:
    # truncated remainder: takes the sign of the dividend
    if isinstance(a, int) and isinstance(b, int):
        if b == 0:
            raise IntegerDivisionByZeroError()
        return a - b * _truncating_divide(a, b)

    if b == 0 or math.isinf(a) or math.isnan(a) or math.isnan(b):
        return math.nan
    return math.fmod(a, b)

_ARITHMETIC = {
    "+": lambda a, b: a + b,
    "-": lambda a, b: a - b,
    "*": lambda a, b: a * b,
    "/": _float_divide,
    "~/": _truncating_divide,
    "%": _remainder,
}

_COMPARISON = {
    "<": lambda a, b: a < b,
    "<=": lambda a, b: a <= b,
    ">": lambda a, b: a > b,
    ">=": lambda a, b: a >= b,
}

def apply_binary_operator(op: str, lhs: DtValue, rhs: DtValue) -> DtValue:
    """Eager binary operators; `&&`/`||` are handled by eval_binary."""
    if op == "==":
        return DtBool(dart_equals(lhs, rhs))

    if op == "!=":
        return DtBool(not dart_equals(lhs, rhs))

    if is_number(lhs) and is_number(rhs):
        arith = _ARITHMETIC.get(op)
        if arith is not None:
            return number_value(arith(lhs.value, rhs.value))

        compare = _COMPARISON.get(op)
        if compare is not None:
            return DtBool(compare(lhs.value, rhs.value))

    if op == "+" and isinstance(lhs, DtString) and isinstance(rhs, DtString):
        return DtString(lhs.value + rhs.value)

    if op == "*" and isinstance(lhs, DtString) and isinstance(rhs, DtInt):
        return DtString(lhs.value * rhs.value)

    raise TypeMismatchError(
        f"operator '{op}' is not defined for {type_name(lhs)} and {type_name(rhs)}"
    )

# ---------------- expression handlers ----------------

def eval_binary(node: BinaryExpression, env: Environment, eval_func: EvalFunc) -> DtValue:
    op = node.operator

    if op == "&&":
        if not require_bool(eval_func(node.left, env), "left operand of '&&'"):
            return DtBool(False)
        return DtBool(require_bool(eval_func(node.right, env), "right operand of '&&'"))

    if op == "||":
        if require_bool(eval_func(node.left, env), "left operand of '||'"):
            return DtBool(True)
        return DtBool(require_bool(eval_func(node.right, env), "right operand of '||'"))

    lhs = eval_func(node.left, env)
    rhs = eval_func(node.right, env)
    return apply_binary_operator(op, lhs, rhs)

def apply_unary_operator(op: str, operand: DtValue) -> DtValue:
    if op == "-":
        return number_value(-require_number(operand, "operand of unary '-'").value)

    if op == "!":
        return DtBool(not require_bool(operand, "operand of '!'"))

    raise TypeMismatchError(f"unknown unary operator '{op}'")

def eval_conditional(node: ConditionalExpression, env: Environment, eval_func: EvalFunc) -> DtValue:
    if require_bool(eval_func(node.condition, env), "conditional expression condition"):
        return eval_func(node.then_expression, env)
    return eval_func(node.else_expression, env)
