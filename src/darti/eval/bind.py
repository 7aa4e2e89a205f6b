"""Assignable places and the operators that write through them."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from ..environment import Environment
from ..nodes import (
    AssignmentExpression,
    Expression,
    Identifier,
    IndexExpression,
    PostfixExpression,
    PrefixExpression,
    PropertyAccess,
)
from ..types import DtInt, DtValue, UnsupportedFeatureError
from .common import EvalFunc, require_number
from .expr import apply_binary_operator, apply_unary_operator

@dataclass
class Place:
    """A storage location resolved once; receivers and indices are not re-evaluated."""
    read: Callable[[], DtValue]
    write: Callable[[DtValue], DtValue]

def resolve_place(target: Expression, env: Environment, eval_func: EvalFunc) -> Place:
    match target:
        case Identifier(name):
            return Place(
                read=lambda: eval_func(target, env),
                write=lambda value: env.update(name, value),
            )

        case PropertyAccess(receiver_node, name):
            receiver = eval_func(receiver_node, env)
            host = env.host
            return Place(
                read=lambda: host.get_member(receiver, name),
                write=lambda value: host.set_member(receiver, name, value),
            )

        case IndexExpression(receiver_node, index_node):
            receiver = eval_func(receiver_node, env)
            index = eval_func(index_node, env)
            host = env.host
            return Place(
                read=lambda: host.invoke_member(receiver, "[]", [index]),
                write=lambda value: _write_index(host, receiver, index, value),
            )

    raise UnsupportedFeatureError(f"cannot assign to {type(target).__name__}")

def _write_index(host, receiver: DtValue, index: DtValue, value: DtValue) -> DtValue:
    host.invoke_member(receiver, "[]=", [index, value])
    return value

def eval_assignment(node: AssignmentExpression, env: Environment, eval_func: EvalFunc) -> DtValue:
    place = resolve_place(node.target, env, eval_func)

    if node.operator == "=":
        return place.write(eval_func(node.value, env))

    # compound: `a op= b` reads the place before evaluating b
    current = place.read()
    rhs = eval_func(node.value, env)
    return place.write(apply_binary_operator(node.operator[:-1], current, rhs))

def _step(op: str, current: DtValue) -> DtValue:
    require_number(current, f"operand of '{op}'")
    return apply_binary_operator("+" if op == "++" else "-", current, DtInt(1))

def eval_prefix(node: PrefixExpression, env: Environment, eval_func: EvalFunc) -> DtValue:
    if node.operator in ("++", "--"):
        place = resolve_place(node.operand, env, eval_func)
        return place.write(_step(node.operator, place.read()))

    return apply_unary_operator(node.operator, eval_func(node.operand, env))

def eval_postfix(node: PostfixExpression, env: Environment, eval_func: EvalFunc) -> DtValue:
    place = resolve_place(node.operand, env, eval_func)
    old = place.read()
    place.write(_step(node.operator, old))
    return old
