from __future__ import annotations

from typing import List, Optional

from ..environment import Environment
from ..nodes import (
    BlockBody,
    ExpressionBody,
    FunctionBody,
    FunctionInvocation,
    FunctionLiteral,
    MethodInvocation,
    NamedArgument,
    Node,
    Parameter,
)
from ..runtime import call_value
from ..types import (
    NULL,
    CompletionKind,
    DartiRuntimeError,
    DtFunction,
    DtValue,
    UnsupportedFeatureError,
)
from .common import EvalFunc, ExecFunc

def make_closure(name: Optional[str], params: List[Parameter], body: FunctionBody, env: Environment) -> DtFunction:
    for param in params:
        if param.kind != "required":
            label = f"'{name}'" if name else "function literal"
            raise UnsupportedFeatureError(
                f"{param.kind} parameter '{param.name}' in {label} is not supported"
            )

    return DtFunction(name=name, params=[p.name for p in params], body=body, env=env)

def eval_function_literal(node: FunctionLiteral, env: Environment) -> DtValue:
    return make_closure(None, node.parameters, node.body, env)

def run_function_body(body: FunctionBody, env: Environment, exec_func: ExecFunc, eval_func: EvalFunc) -> DtValue:
    """Run a callee body in its fresh scope and turn its completion into a value."""
    if isinstance(body, ExpressionBody):
        return eval_func(body.expression, env)

    if not isinstance(body, BlockBody):
        raise UnsupportedFeatureError(f"unsupported function body kind {type(body).__name__}")

    completion = exec_func(body.block, env)

    match completion.kind:
        case CompletionKind.RETURN:
            return completion.value
        case CompletionKind.NORMAL:
            return NULL
        case CompletionKind.BREAK:
            raise DartiRuntimeError("break outside of a loop")
        case CompletionKind.CONTINUE:
            raise DartiRuntimeError("continue outside of a loop")

    raise DartiRuntimeError(f"unknown completion {completion.kind}")

def eval_arguments(arguments: List[Node], env: Environment, eval_func: EvalFunc) -> List[DtValue]:
    values: List[DtValue] = []

    for arg in arguments:
        if isinstance(arg, NamedArgument):
            raise UnsupportedFeatureError(f"named argument '{arg.name}' is not supported")
        values.append(eval_func(arg, env))

    return values

def eval_function_invocation(node: FunctionInvocation, env: Environment, eval_func: EvalFunc) -> DtValue:
    callee = eval_func(node.function, env)
    args = eval_arguments(node.arguments, env, eval_func)
    return call_value(callee, args)

def eval_method_invocation(node: MethodInvocation, env: Environment, eval_func: EvalFunc) -> DtValue:
    receiver = eval_func(node.target, env)
    args = eval_arguments(node.arguments, env, eval_func)
    return env.host.invoke_member(receiver, node.name, args)
