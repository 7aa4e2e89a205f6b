from __future__ import annotations

import traceback

from ..environment import Environment
from ..nodes import CatchClause, ReturnStatement, ThrowExpression, TryStatement
from ..types import (
    NULL,
    Completion,
    DartiRuntimeError,
    DtHostObject,
    DtNull,
    DtString,
    DtValue,
    ThrownValue,
    TypeMismatchError,
    UnsupportedFeatureError,
)
from .common import EvalFunc, ExecFunc

def eval_return_stmt(node: ReturnStatement, env: Environment, eval_func: EvalFunc) -> Completion:
    value = eval_func(node.expression, env) if node.expression is not None else NULL
    return Completion.returning(value)

def eval_throw_expr(node: ThrowExpression, env: Environment, eval_func: EvalFunc) -> DtValue:
    value = eval_func(node.expression, env)
    raise coerce_throw_value(value)

def coerce_throw_value(value: DtValue) -> DartiRuntimeError:
    # `throw e` on a caught runtime error re-raises the original error
    if isinstance(value, DtHostObject) and isinstance(value.obj, DartiRuntimeError):
        return value.obj

    if isinstance(value, DtNull):
        return TypeMismatchError("Throw of null.")

    return ThrownValue(value)

def eval_rethrow_stmt(env: Environment) -> Completion:
    current = env.handled_error()
    if current is None:
        raise DartiRuntimeError("rethrow outside of catch")
    raise current

def eval_try_stmt(node: TryStatement, env: Environment, exec_func: ExecFunc) -> Completion:
    try:
        completion = _run_try_catch(node, env, exec_func)
    except DartiRuntimeError:
        if node.finally_block is None:
            raise

        # an abrupt finally replaces the pending error; otherwise it propagates
        finally_completion = exec_func(node.finally_block, env)
        if finally_completion.is_abrupt:
            return finally_completion
        raise

    if node.finally_block is not None:
        finally_completion = exec_func(node.finally_block, env)
        if finally_completion.is_abrupt:
            return finally_completion

    return completion

def _run_try_catch(node: TryStatement, env: Environment, exec_func: ExecFunc) -> Completion:
    try:
        return exec_func(node.body, env)
    except DartiRuntimeError as exc:
        if not node.catch_clauses:
            raise
        # only the first clause participates; typed matching is not modelled
        return _run_catch_clause(node.catch_clauses[0], exc, env, exec_func)

def _run_catch_clause(clause: CatchClause, exc: DartiRuntimeError, env: Environment, exec_func: ExecFunc) -> Completion:
    if clause.exception_type is not None:
        raise UnsupportedFeatureError(f"typed catch clause 'on {clause.exception_type}' is not supported")

    catch_env = env.child()
    # track the handled error so `rethrow;` can re-raise it
    catch_env.active_error = exc

    if clause.exception_parameter is not None:
        catch_env.declare(clause.exception_parameter, exception_value(exc))

    if clause.stack_trace_parameter is not None:
        trace = "".join(traceback.format_tb(exc.__traceback__))
        catch_env.declare(clause.stack_trace_parameter, DtString(trace))

    return exec_func(clause.body, catch_env)

def exception_value(exc: DartiRuntimeError) -> DtValue:
    """Value a catch clause binds for *exc*."""
    if isinstance(exc, ThrownValue):
        return exc.value
    return DtHostObject(exc)
