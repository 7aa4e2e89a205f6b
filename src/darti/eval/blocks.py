from __future__ import annotations

from typing import List

from ..environment import Environment
from ..nodes import (
    Block,
    CompilationUnit,
    ExpressionStatement,
    FunctionDeclaration,
    Statement,
    VariableDeclarations,
)
from ..types import NULL, NORMAL, Completion
from .common import EvalFunc, ExecFunc
from .fn import make_closure

def eval_compilation_unit(unit: CompilationUnit, env: Environment, exec_func: ExecFunc) -> Completion:
    # top-level declarations share the caller's scope so the embedder can find `main`
    return eval_statement_list(unit.declarations, env, exec_func)

def eval_block(block: Block, env: Environment, exec_func: ExecFunc) -> Completion:
    return eval_statement_list(block.statements, env.child(), exec_func)

def eval_statement_list(statements: List[Statement], env: Environment, exec_func: ExecFunc) -> Completion:
    for stmt in statements:
        completion = exec_func(stmt, env)
        if completion.is_abrupt:
            return completion

    return NORMAL

def eval_expression_stmt(stmt: ExpressionStatement, env: Environment, eval_func: EvalFunc) -> Completion:
    eval_func(stmt.expression, env)
    return NORMAL

def eval_variable_declarations(decls: VariableDeclarations, env: Environment, eval_func: EvalFunc) -> Completion:
    for decl in decls.variables:
        value = eval_func(decl.initializer, env) if decl.initializer is not None else NULL
        env.declare(decl.name, value)

    return NORMAL

def eval_function_declaration(decl: FunctionDeclaration, env: Environment) -> Completion:
    env.declare(decl.name, make_closure(decl.name, decl.parameters, decl.body, env))
    return NORMAL
