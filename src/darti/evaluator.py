"""Statement execution and expression evaluation.

`execute` runs a statement and returns its `Completion`; `evaluate` computes
exactly one value for an expression. Both dispatch on the node class through
the tables below and attach the innermost source position to any runtime
error that passes through them.
"""
from __future__ import annotations

from typing import Callable, Dict

from .environment import Environment
from .nodes import (
    AssignmentExpression,
    BinaryExpression,
    Block,
    BooleanLiteral,
    BreakStatement,
    CompilationUnit,
    ConditionalExpression,
    ContinueStatement,
    DoStatement,
    DoubleLiteral,
    EmptyStatement,
    ExpressionStatement,
    ForEachStatement,
    ForStatement,
    FunctionDeclaration,
    FunctionInvocation,
    FunctionLiteral,
    Identifier,
    IfStatement,
    IndexExpression,
    IntegerLiteral,
    ListLiteral,
    MethodInvocation,
    Node,
    NullLiteral,
    ParenthesizedExpression,
    PostfixExpression,
    PrefixExpression,
    PropertyAccess,
    RethrowStatement,
    ReturnStatement,
    SetOrMapLiteral,
    StringInterpolation,
    StringLiteral,
    ThrowExpression,
    TryStatement,
    VariableDeclarations,
    WhileStatement,
)
from .types import (
    BREAK,
    CONTINUE,
    NORMAL,
    NULL,
    Completion,
    DartiRuntimeError,
    DtBool,
    DtDouble,
    DtInt,
    DtString,
    DtValue,
    UnboundNameError,
    UnsupportedFeatureError,
)

from .eval.bind import eval_assignment, eval_postfix, eval_prefix
from .eval.blocks import (
    eval_block,
    eval_compilation_unit,
    eval_expression_stmt,
    eval_function_declaration,
    eval_variable_declarations,
)
from .eval.control import eval_rethrow_stmt, eval_return_stmt, eval_throw_expr, eval_try_stmt
from .eval.expr import eval_binary, eval_conditional
from .eval.fn import (
    eval_function_invocation,
    eval_function_literal,
    eval_method_invocation,
    run_function_body as _run_function_body,
)
from .eval.literals import eval_list_literal, eval_set_or_map_literal, eval_string_interpolation
from .eval.loops import eval_do_stmt, eval_for_in, eval_for_stmt, eval_if_stmt, eval_while_stmt

def _maybe_attach_location(exc: DartiRuntimeError, node: Node) -> None:
    # innermost node wins; attach_location ignores later calls
    exc.attach_location(node.line, node.column)

# ---------------- Statements ----------------

def execute(node: Node, env: Environment) -> Completion:
    try:
        return _execute_inner(node, env)
    except DartiRuntimeError as e:
        _maybe_attach_location(e, node)
        raise

def _execute_inner(node: Node, env: Environment) -> Completion:
    handler = _STMT_DISPATCH.get(type(node))
    if handler is not None:
        return handler(node, env)

    raise UnsupportedFeatureError(f"unsupported statement kind {type(node).__name__}")

# ---------------- Expressions ----------------

def evaluate(node: Node, env: Environment) -> DtValue:
    try:
        return _evaluate_inner(node, env)
    except DartiRuntimeError as e:
        _maybe_attach_location(e, node)
        raise

def _evaluate_inner(node: Node, env: Environment) -> DtValue:
    handler = _EXPR_DISPATCH.get(type(node))
    if handler is not None:
        return handler(node, env)

    raise UnsupportedFeatureError(f"unsupported expression kind {type(node).__name__}")

def _eval_identifier(node: Identifier, env: Environment) -> DtValue:
    try:
        return env.lookup(node.name)
    except UnboundNameError:
        # host-provided globals (int, double, identical, ...) sit behind the scope chain
        found = env.host.resolve_global(node.name) if env.host is not None else None
        if found is None:
            raise
        return found

def _eval_property_access(node: PropertyAccess, env: Environment) -> DtValue:
    receiver = evaluate(node.target, env)
    return env.host.get_member(receiver, node.name)

def _eval_index(node: IndexExpression, env: Environment) -> DtValue:
    receiver = evaluate(node.target, env)
    index = evaluate(node.index, env)
    return env.host.invoke_member(receiver, "[]", [index])

def run_function_body(body: Node, env: Environment) -> DtValue:
    """Call boundary used by runtime.call_function."""
    return _run_function_body(body, env, execute, evaluate)

# ---------------- Dispatch tables ----------------

_STMT_DISPATCH: Dict[type, Callable[[Node, Environment], Completion]] = {
    CompilationUnit: lambda n, env: eval_compilation_unit(n, env, execute),
    Block: lambda n, env: eval_block(n, env, execute),
    ExpressionStatement: lambda n, env: eval_expression_stmt(n, env, evaluate),
    VariableDeclarations: lambda n, env: eval_variable_declarations(n, env, evaluate),
    FunctionDeclaration: lambda n, env: eval_function_declaration(n, env),
    ReturnStatement: lambda n, env: eval_return_stmt(n, env, evaluate),
    IfStatement: lambda n, env: eval_if_stmt(n, env, execute, evaluate),
    WhileStatement: lambda n, env: eval_while_stmt(n, env, execute, evaluate),
    DoStatement: lambda n, env: eval_do_stmt(n, env, execute, evaluate),
    ForStatement: lambda n, env: eval_for_stmt(n, env, execute, evaluate),
    ForEachStatement: lambda n, env: eval_for_in(n, env, execute, evaluate),
    BreakStatement: lambda n, env: BREAK,
    ContinueStatement: lambda n, env: CONTINUE,
    TryStatement: lambda n, env: eval_try_stmt(n, env, execute),
    RethrowStatement: lambda n, env: eval_rethrow_stmt(env),
    EmptyStatement: lambda n, env: NORMAL,
}

_EXPR_DISPATCH: Dict[type, Callable[[Node, Environment], DtValue]] = {
    Identifier: _eval_identifier,
    NullLiteral: lambda n, env: NULL,
    BooleanLiteral: lambda n, env: DtBool(n.value),
    IntegerLiteral: lambda n, env: DtInt(n.value),
    DoubleLiteral: lambda n, env: DtDouble(n.value),
    StringLiteral: lambda n, env: DtString(n.value),
    StringInterpolation: lambda n, env: eval_string_interpolation(n, env, evaluate),
    BinaryExpression: lambda n, env: eval_binary(n, env, evaluate),
    PrefixExpression: lambda n, env: eval_prefix(n, env, evaluate),
    PostfixExpression: lambda n, env: eval_postfix(n, env, evaluate),
    ConditionalExpression: lambda n, env: eval_conditional(n, env, evaluate),
    AssignmentExpression: lambda n, env: eval_assignment(n, env, evaluate),
    ParenthesizedExpression: lambda n, env: evaluate(n.expression, env),
    FunctionLiteral: lambda n, env: eval_function_literal(n, env),
    FunctionInvocation: lambda n, env: eval_function_invocation(n, env, evaluate),
    MethodInvocation: lambda n, env: eval_method_invocation(n, env, evaluate),
    PropertyAccess: _eval_property_access,
    IndexExpression: _eval_index,
    ThrowExpression: lambda n, env: eval_throw_expr(n, env, evaluate),
    ListLiteral: lambda n, env: eval_list_literal(n, env, evaluate),
    SetOrMapLiteral: lambda n, env: eval_set_or_map_literal(n, env, evaluate),
}
