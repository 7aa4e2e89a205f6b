from __future__ import annotations

from ..environment import Environment
from ..nodes import DoStatement, ForEachStatement, ForStatement, IfStatement, VariableDeclarations, WhileStatement
from ..types import NORMAL, Completion, CompletionKind
from .common import EvalFunc, ExecFunc, iterate_value, require_bool

def eval_if_stmt(node: IfStatement, env: Environment, exec_func: ExecFunc, eval_func: EvalFunc) -> Completion:
    if require_bool(eval_func(node.condition, env), "if condition"):
        return exec_func(node.then_statement, env)

    if node.else_statement is not None:
        return exec_func(node.else_statement, env)

    return NORMAL

def _loop_exit(completion: Completion) -> Completion | None:
    """Completion that ends the loop, or None to keep iterating."""
    match completion.kind:
        case CompletionKind.BREAK:
            return NORMAL
        case CompletionKind.RETURN:
            return completion
        case _:
            return None

def eval_while_stmt(node: WhileStatement, env: Environment, exec_func: ExecFunc, eval_func: EvalFunc) -> Completion:
    while require_bool(eval_func(node.condition, env), "while condition"):
        done = _loop_exit(exec_func(node.body, env))
        if done is not None:
            return done

    return NORMAL

def eval_do_stmt(node: DoStatement, env: Environment, exec_func: ExecFunc, eval_func: EvalFunc) -> Completion:
    while True:
        done = _loop_exit(exec_func(node.body, env))
        if done is not None:
            return done

        if not require_bool(eval_func(node.condition, env), "do-while condition"):
            return NORMAL

def eval_for_stmt(node: ForStatement, env: Environment, exec_func: ExecFunc, eval_func: EvalFunc) -> Completion:
    # one scope for the loop variables, shared by every iteration
    loop_env = env.child()

    if isinstance(node.initializer, VariableDeclarations):
        exec_func(node.initializer, loop_env)
    elif node.initializer is not None:
        for expr in node.initializer:
            eval_func(expr, loop_env)

    while node.condition is None or require_bool(eval_func(node.condition, loop_env), "for condition"):
        done = _loop_exit(exec_func(node.body, loop_env))
        if done is not None:
            return done

        for expr in node.updaters:
            eval_func(expr, loop_env)

    return NORMAL

def eval_for_in(node: ForEachStatement, env: Environment, exec_func: ExecFunc, eval_func: EvalFunc) -> Completion:
    iterable = eval_func(node.iterable, env)

    for item in iterate_value(iterable):
        if node.declares:
            iter_env = env.child({node.variable: item})
        else:
            env.update(node.variable, item)
            iter_env = env

        done = _loop_exit(exec_func(node.body, iter_env))
        if done is not None:
            return done

    return NORMAL
