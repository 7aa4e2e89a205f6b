"""Source text -> AST.

The grammar lives in grammar.lark and is parsed with lark's Earley parser over
a basic lexer. `AstBuilder` turns the lark parse tree into the dataclass nodes
of nodes.py; a short static pass then rejects jumps that have no enclosing
loop.
"""
from __future__ import annotations

import functools
import logging
import re
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Iterator, List, Optional, Tuple, Union

from lark import Lark, Token, Transformer, UnexpectedInput, v_args
from lark.exceptions import UnexpectedCharacters, UnexpectedEOF, UnexpectedToken, VisitError

from .nodes import (
    FUNCTION_NODES,
    LOOP_NODES,
    AssignmentExpression,
    BinaryExpression,
    Block,
    BlockBody,
    BooleanLiteral,
    BreakStatement,
    CatchClause,
    CompilationUnit,
    ConditionalExpression,
    ContinueStatement,
    DoStatement,
    DoubleLiteral,
    EmptyStatement,
    Expression,
    ExpressionBody,
    ExpressionStatement,
    ForEachStatement,
    ForElement,
    ForStatement,
    FunctionDeclaration,
    FunctionInvocation,
    FunctionLiteral,
    Identifier,
    IfElement,
    IfStatement,
    IndexExpression,
    IntegerLiteral,
    ListLiteral,
    MapLiteralEntry,
    MethodInvocation,
    NamedArgument,
    Node,
    NullAwareElement,
    NullLiteral,
    Parameter,
    ParenthesizedExpression,
    PostfixExpression,
    PrefixExpression,
    PropertyAccess,
    RethrowStatement,
    ReturnStatement,
    SetOrMapLiteral,
    SpreadElement,
    Statement,
    StringInterpolation,
    StringLiteral,
    ThrowExpression,
    TryStatement,
    VariableDeclaration,
    VariableDeclarations,
    WhileStatement,
)
from .types import DartiSyntaxError

logger = logging.getLogger(__name__)

GRAMMAR_PATH = Path(__file__).with_name("grammar.lark")

_START_SYMBOLS = ["compilation_unit", "repl_input", "expression"]

_PLACE_NODES = (Identifier, PropertyAccess, IndexExpression)

_ESCAPES = {
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "b": "\b",
    "f": "\f",
    "v": "\v",
}

_INTERPOLATED_IDENT = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")


@functools.lru_cache(maxsize=None)
def build_parser() -> Lark:
    logger.debug("building Earley parser from %s", GRAMMAR_PATH)
    return Lark(
        GRAMMAR_PATH.read_text(encoding="utf-8"),
        parser="earley",
        lexer="basic",
        ambiguity="resolve",
        propagate_positions=True,
        maybe_placeholders=True,
        start=_START_SYMBOLS,
    )


# ---------------- Public API ----------------

def parse_source(text: str) -> CompilationUnit:
    unit = _parse(text, "compilation_unit")
    check_jump_targets(unit)
    return unit


def parse_statements(text: str) -> List[Statement]:
    statements = _parse(text, "repl_input")
    for stmt in statements:
        check_jump_targets(stmt)
    return statements


def parse_expression(text: str) -> Expression:
    expr = _parse(text, "expression")
    check_jump_targets(expr)
    return expr


def _parse(text: str, start: str) -> Any:
    try:
        tree = build_parser().parse(text, start=start)
    except UnexpectedInput as exc:
        line = exc.line if exc.line and exc.line > 0 else None
        column = exc.column if exc.column and exc.column > 0 else None
        raise DartiSyntaxError(_describe(exc), line, column) from exc

    try:
        return AstBuilder().transform(tree)
    except VisitError as exc:
        if isinstance(exc.orig_exc, DartiSyntaxError):
            raise exc.orig_exc from None
        raise


def _describe(exc: UnexpectedInput) -> str:
    if isinstance(exc, UnexpectedCharacters):
        return f"Unexpected character {exc.char!r}"

    if isinstance(exc, UnexpectedEOF):
        return "Unexpected end of input"

    if isinstance(exc, UnexpectedToken):
        if exc.token.type == "$END":
            return "Unexpected end of input"
        return f"Unexpected token {exc.token.value!r}"

    return str(exc)


# ---------------- Static checks ----------------

def _child_nodes(node: Node) -> Iterator[Node]:
    for f in fields(node):
        value = getattr(node, f.name)

        if isinstance(value, Node):
            yield value
        elif isinstance(value, list):
            for item in value:
                if isinstance(item, Node):
                    yield item


def check_jump_targets(node: Node, in_loop: bool = False, in_catch: bool = False) -> None:
    """Reject break/continue with no enclosing loop and rethrow with no
    enclosing catch clause in the same function."""
    if isinstance(node, (BreakStatement, ContinueStatement)) and not in_loop:
        keyword = "break" if isinstance(node, BreakStatement) else "continue"
        raise DartiSyntaxError(f"{keyword} outside of a loop", node.line, node.column)

    if isinstance(node, RethrowStatement) and not in_catch:
        raise DartiSyntaxError("rethrow outside of a catch clause", node.line, node.column)

    if isinstance(node, FUNCTION_NODES):
        in_loop = False
        in_catch = False
    elif isinstance(node, LOOP_NODES):
        in_loop = True
    elif isinstance(node, CatchClause):
        in_catch = True

    for child in _child_nodes(node):
        check_jump_targets(child, in_loop, in_catch)


# ---------------- Tree -> AST ----------------

@dataclass
class _FinallyPart:
    block: Block


@dataclass
class _Directive:
    keyword: str
    target: str


@dataclass
class _ForClassic:
    initializer: Union[VariableDeclarations, List[Expression], None]
    condition: Optional[Expression]
    updaters: List[Expression]


@dataclass
class _ForEach:
    variable: str
    declares: bool
    iterable: Expression


def _pos(meta: Any) -> dict:
    if getattr(meta, "empty", True):
        return {}
    return {"line": meta.line, "column": meta.column}


def _is_token(value: Any, *types: str) -> bool:
    return isinstance(value, Token) and (not types or value.type in types)


def _require_place(target: Expression, meta: Any, message: str) -> None:
    if not isinstance(target, _PLACE_NODES):
        info = _pos(meta)
        raise DartiSyntaxError(message, info.get("line"), info.get("column"))


@v_args(meta=True)
class AstBuilder(Transformer):
    # ---- entry points ----

    def compilation_unit(self, meta, children):
        declarations = [c for c in children if not isinstance(c, _Directive)]
        return CompilationUnit(declarations, **_pos(meta))

    def directive(self, meta, children):
        keyword, *rest = children
        target = " ".join(str(t) for t in rest)
        logger.debug("ignoring %s directive %s", keyword, target)
        return _Directive(str(keyword), target)

    def repl_input(self, meta, children):
        return list(children)

    def expression(self, meta, children):
        return children[0]

    def top_level_variables(self, meta, children):
        return children[0]

    # ---- declarations ----

    def function_declaration(self, meta, children):
        *head, params, body = children
        return_type = head[0] if len(head) == 2 else None
        return FunctionDeclaration(str(head[-1]), params, body, return_type, **_pos(meta))

    def block_body(self, meta, children):
        return BlockBody(children[0], **_pos(meta))

    def expression_body(self, meta, children):
        return ExpressionBody(children[0], **_pos(meta))

    def formal_parameters(self, meta, children):
        params: List[Parameter] = []

        for child in children:
            if isinstance(child, list):
                params.extend(child)
            else:
                params.append(child)

        return params

    def normal_parameter(self, meta, children):
        type_name = next((c for c in children if isinstance(c, str) and not isinstance(c, Token)), None)
        return Parameter(str(children[-1]), type_name=type_name, **_pos(meta))

    def default_parameter(self, meta, children):
        return next(c for c in children if isinstance(c, Parameter))

    def optional_positional_parameters(self, meta, children):
        return [replace(p, kind="optional") for p in children]

    def named_parameters(self, meta, children):
        return [replace(p, kind="named") for p in children]

    def variable_declarations(self, meta, children):
        keywords = [str(c) for c in children if _is_token(c, "VAR", "FINAL", "CONST", "LATE")]
        type_name = next((c for c in children if isinstance(c, str) and not isinstance(c, Token)), None)
        variables = [c for c in children if isinstance(c, VariableDeclaration)]
        keyword = " ".join(keywords) if keywords else None
        return VariableDeclarations(variables, keyword, type_name, **_pos(meta))

    def variable_declaration(self, meta, children):
        initializer = children[1] if len(children) > 1 else None
        return VariableDeclaration(str(children[0]), initializer, **_pos(meta))

    def type(self, meta, children):
        head = children[0]
        if _is_token(head, "VOID"):
            return "void"

        text = str(head)
        for child in children[1:]:
            if isinstance(child, list):
                text += "<" + ", ".join(child) + ">"
            elif _is_token(child, "QMARK"):
                text += "?"

        return text

    def type_arguments(self, meta, children):
        return list(children)

    # ---- statements ----

    def block(self, meta, children):
        return Block(list(children), **_pos(meta))

    def local_variables(self, meta, children):
        return children[0]

    def expression_statement(self, meta, children):
        return ExpressionStatement(children[0], **_pos(meta))

    def return_stmt(self, meta, children):
        return ReturnStatement(children[0] if children else None, **_pos(meta))

    def break_stmt(self, meta, children):
        return BreakStatement(**_pos(meta))

    def continue_stmt(self, meta, children):
        return ContinueStatement(**_pos(meta))

    def rethrow_stmt(self, meta, children):
        return RethrowStatement(**_pos(meta))

    def empty_stmt(self, meta, children):
        return EmptyStatement(**_pos(meta))

    def if_stmt(self, meta, children):
        condition, then_statement, *rest = children
        return IfStatement(condition, then_statement, rest[0] if rest else None, **_pos(meta))

    def while_stmt(self, meta, children):
        return WhileStatement(children[0], children[1], **_pos(meta))

    def do_stmt(self, meta, children):
        return DoStatement(children[0], children[1], **_pos(meta))

    def for_stmt(self, meta, children):
        parts, body = children
        return self._loop_from_parts(parts, body, meta)

    @staticmethod
    def _loop_from_parts(parts: Union[_ForClassic, _ForEach], body: Any, meta: Any) -> Statement:
        if isinstance(parts, _ForEach):
            return ForEachStatement(parts.variable, parts.iterable, body, parts.declares, **_pos(meta))

        return ForStatement(parts.initializer, parts.condition, parts.updaters, body, **_pos(meta))

    def for_classic(self, meta, children):
        initializer, condition, updaters = children
        return _ForClassic(initializer, condition, updaters or [])

    def for_each(self, meta, children):
        (name, declares), iterable = children
        return _ForEach(name, declares, iterable)

    def declared_loop_variable(self, meta, children):
        return (str(children[-1]), True)

    def existing_loop_variable(self, meta, children):
        return (str(children[0]), False)

    def expression_list(self, meta, children):
        return list(children)

    def try_statement(self, meta, children):
        body = children[0]
        clauses = [c for c in children[1:] if isinstance(c, CatchClause)]
        finally_block = next((c.block for c in children[1:] if isinstance(c, _FinallyPart)), None)

        if not clauses and finally_block is None:
            info = _pos(meta)
            raise DartiSyntaxError("try requires a catch or finally clause", info.get("line"), info.get("column"))

        return TryStatement(body, clauses, finally_block, **_pos(meta))

    def on_catch_clause(self, meta, children):
        exception_type, *names, body = children
        return self._catch(meta, exception_type, names, body)

    def on_clause(self, meta, children):
        exception_type, body = children
        return CatchClause(body, exception_type, **_pos(meta))

    def catch_clause(self, meta, children):
        *names, body = children
        return self._catch(meta, None, names, body)

    @staticmethod
    def _catch(meta: Any, exception_type: Optional[str], names: List[Token], body: Block) -> CatchClause:
        exception_parameter = str(names[0])
        stack_trace_parameter = str(names[1]) if len(names) > 1 else None
        return CatchClause(body, exception_type, exception_parameter, stack_trace_parameter, **_pos(meta))

    def finally_part(self, meta, children):
        return _FinallyPart(children[0])

    # ---- expressions ----

    def arrow_function(self, meta, children):
        params, expr = children
        return FunctionLiteral(params, ExpressionBody(expr, **_pos(meta)), **_pos(meta))

    def function_literal(self, meta, children):
        params, block = children
        return FunctionLiteral(params, BlockBody(block, **_pos(meta)), **_pos(meta))

    def throw_expr(self, meta, children):
        return ThrowExpression(children[0], **_pos(meta))

    def assignment(self, meta, children):
        target, op, value = children
        _require_place(target, meta, "Illegal assignment target")
        return AssignmentExpression(str(op), target, value, **_pos(meta))

    def conditional(self, meta, children):
        return ConditionalExpression(*children, **_pos(meta))

    def binary(self, meta, children):
        left, op, right = children
        return BinaryExpression(str(op), left, right, **_pos(meta))

    def prefix(self, meta, children):
        op, operand = children
        if op.type in ("INC", "DEC"):
            _require_place(operand, meta, f"Illegal operand for prefix {op}")
        return PrefixExpression(str(op), operand, **_pos(meta))

    def postfix(self, meta, children):
        operand, op = children
        _require_place(operand, meta, f"Illegal operand for postfix {op}")
        return PostfixExpression(str(op), operand, **_pos(meta))

    def property_access(self, meta, children):
        target, name = children
        return PropertyAccess(target, str(name), **_pos(meta))

    def invocation(self, meta, children):
        callee, arguments = children
        if isinstance(callee, PropertyAccess):
            return MethodInvocation(callee.target, callee.name, arguments, **_pos(meta))
        return FunctionInvocation(callee, arguments, **_pos(meta))

    def index(self, meta, children):
        target, index = children
        return IndexExpression(target, index, **_pos(meta))

    def arguments(self, meta, children):
        return list(children)

    def named_argument(self, meta, children):
        name, value = children
        return NamedArgument(str(name), value, **_pos(meta))

    def identifier(self, meta, children):
        return Identifier(str(children[0]), **_pos(meta))

    def parenthesized(self, meta, children):
        return ParenthesizedExpression(children[0], **_pos(meta))

    # ---- literals ----

    def null_literal(self, meta, children):
        return NullLiteral(**_pos(meta))

    def true_literal(self, meta, children):
        return BooleanLiteral(True, **_pos(meta))

    def false_literal(self, meta, children):
        return BooleanLiteral(False, **_pos(meta))

    def int_literal(self, meta, children):
        text = str(children[0])
        value = int(text, 16) if text[:2] in ("0x", "0X") else int(text, 10)
        return IntegerLiteral(value, **_pos(meta))

    def double_literal(self, meta, children):
        return DoubleLiteral(float(children[0]), **_pos(meta))

    def string_literal(self, meta, children):
        parts: List[Union[str, Expression]] = []

        for token in children:
            for part in _string_parts(token):
                if isinstance(part, str) and parts and isinstance(parts[-1], str):
                    parts[-1] += part
                else:
                    parts.append(part)

        if all(isinstance(p, str) for p in parts):
            return StringLiteral("".join(parts), **_pos(meta))

        return StringInterpolation(parts, **_pos(meta))

    def list_literal(self, meta, children):
        type_arguments, elements = _split_type_arguments(children)
        return ListLiteral(elements, type_arguments, **_pos(meta))

    def set_or_map_literal(self, meta, children):
        type_arguments, elements = _split_type_arguments(children)
        return SetOrMapLiteral(elements, type_arguments, **_pos(meta))

    def map_entry(self, meta, children):
        exprs: List[Expression] = []
        null_aware: List[bool] = []
        pending = False

        for child in children:
            if _is_token(child, "QMARK"):
                pending = True
                continue
            exprs.append(child)
            null_aware.append(pending)
            pending = False

        key, value = exprs
        return MapLiteralEntry(key, value, null_aware[0], null_aware[1], **_pos(meta))

    def spread(self, meta, children):
        return SpreadElement(children[0], **_pos(meta))

    def null_aware_spread(self, meta, children):
        return SpreadElement(children[0], null_aware=True, **_pos(meta))

    def null_aware_element(self, meta, children):
        return NullAwareElement(children[0], **_pos(meta))

    def if_element(self, meta, children):
        condition, then_element, *rest = children
        return IfElement(condition, then_element, rest[0] if rest else None, **_pos(meta))

    def for_element(self, meta, children):
        parts, body = children
        loop = self._loop_from_parts(parts, EmptyStatement(**_pos(meta)), meta)
        return ForElement(loop, body, **_pos(meta))


def _split_type_arguments(children: List[Any]) -> Tuple[List[str], List[Node]]:
    if children and isinstance(children[0], list):
        return children[0], list(children[1:])
    return [], list(children)


# ---------------- String literals ----------------

def _string_parts(token: Token) -> List[Union[str, Expression]]:
    text = str(token)
    raw = text.startswith("r")
    if raw:
        text = text[1:]

    quote = text[:3] if text[:3] in ('"""', "'''") else text[0]
    body = text[len(quote):-len(quote)]

    if len(quote) == 3:
        # a triple-quoted literal drops a newline right after the opening quotes
        if body.startswith("\r\n"):
            body = body[2:]
        elif body.startswith("\n"):
            body = body[1:]

    if raw:
        return [body]

    line = getattr(token, "line", None)
    column = getattr(token, "column", None)
    parts: List[Union[str, Expression]] = []
    buf: List[str] = []
    i = 0

    def flush() -> None:
        if buf:
            parts.append("".join(buf))
            buf.clear()

    while i < len(body):
        ch = body[i]

        if ch == "\\":
            decoded, i = _decode_escape(body, i + 1, line, column)
            buf.append(decoded)
            continue

        if ch == "$":
            if body.startswith("{", i + 1):
                end = _closing_brace(body, i + 2, line, column)
                flush()
                parts.append(parse_expression(body[i + 2:end]))
                i = end + 1
                continue

            match = _INTERPOLATED_IDENT.match(body, i + 1)
            if match is None:
                raise DartiSyntaxError("Expected an identifier or '{' after '$'", line, column)

            flush()
            parts.append(Identifier(match.group(0), line=line, column=column))
            i = match.end()
            continue

        buf.append(ch)
        i += 1

    flush()
    return parts


def _decode_escape(body: str, i: int, line: Optional[int], column: Optional[int]) -> Tuple[str, int]:
    esc = body[i]

    try:
        if esc == "x":
            return chr(int(body[i + 1:i + 3], 16)), i + 3

        if esc == "u":
            if body.startswith("{", i + 1):
                end = body.index("}", i + 1)
                return chr(int(body[i + 2:end], 16)), end + 1
            return chr(int(body[i + 1:i + 5], 16)), i + 5
    except ValueError as exc:
        raise DartiSyntaxError(f"Invalid escape sequence \\{esc}", line, column) from exc

    if esc == "\n":
        return "", i + 1

    return _ESCAPES.get(esc, esc), i + 1


def _closing_brace(body: str, start: int, line: Optional[int], column: Optional[int]) -> int:
    depth = 0
    quote: Optional[str] = None
    i = start

    while i < len(body):
        ch = body[i]

        if quote is not None:
            if ch == "\\":
                i += 2
                continue
            if ch == quote:
                quote = None
        elif ch in "'\"":
            quote = ch
        elif ch == "{":
            depth += 1
        elif ch == "}":
            if depth == 0:
                return i
            depth -= 1

        i += 1

    raise DartiSyntaxError("Unterminated string interpolation", line, column)
