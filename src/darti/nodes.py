"""AST node kinds understood by the evaluator.

Every node carries the 1-based source position of its first token so runtime
errors can point back at the program text. Positions never take part in
equality, which keeps parser tests free of coordinates.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Union


@dataclass
class Node:
    line: Optional[int] = field(default=None, kw_only=True, compare=False, repr=False)
    column: Optional[int] = field(default=None, kw_only=True, compare=False, repr=False)


class Statement(Node):
    pass


class Expression(Node):
    pass


class CollectionElement(Node):
    """Marker for element forms that only make sense inside [] and {}."""


# ---------- Declarations / functions ----------

@dataclass
class Parameter(Node):
    name: str
    kind: str = "required"      # required | optional | named
    type_name: Optional[str] = None


@dataclass
class BlockBody(Node):
    block: 'Block'


@dataclass
class ExpressionBody(Node):
    expression: Expression


FunctionBody = Union[BlockBody, ExpressionBody]


@dataclass
class FunctionDeclaration(Statement):
    name: str
    parameters: List[Parameter]
    body: FunctionBody
    return_type: Optional[str] = None


@dataclass
class VariableDeclaration(Node):
    name: str
    initializer: Optional[Expression] = None


@dataclass
class VariableDeclarations(Statement):
    variables: List[VariableDeclaration]
    keyword: Optional[str] = None       # var | final | const | late ...
    type_name: Optional[str] = None


@dataclass
class CompilationUnit(Node):
    declarations: List[Statement]


# ---------- Statements ----------

@dataclass
class Block(Statement):
    statements: List[Statement]


@dataclass
class ExpressionStatement(Statement):
    expression: Expression


@dataclass
class ReturnStatement(Statement):
    expression: Optional[Expression] = None


@dataclass
class IfStatement(Statement):
    condition: Expression
    then_statement: Statement
    else_statement: Optional[Statement] = None


@dataclass
class WhileStatement(Statement):
    condition: Expression
    body: Statement


@dataclass
class DoStatement(Statement):
    body: Statement
    condition: Expression


@dataclass
class ForStatement(Statement):
    initializer: Union[VariableDeclarations, List[Expression], None]
    condition: Optional[Expression]
    updaters: List[Expression]
    body: Statement


@dataclass
class ForEachStatement(Statement):
    variable: str
    iterable: Expression
    body: Statement
    declares: bool = True


@dataclass
class BreakStatement(Statement):
    pass


@dataclass
class ContinueStatement(Statement):
    pass


@dataclass
class CatchClause(Node):
    body: 'Block'
    exception_type: Optional[str] = None
    exception_parameter: Optional[str] = None
    stack_trace_parameter: Optional[str] = None


@dataclass
class TryStatement(Statement):
    body: Block
    catch_clauses: List[CatchClause]
    finally_block: Optional[Block] = None


@dataclass
class RethrowStatement(Statement):
    pass


@dataclass
class EmptyStatement(Statement):
    pass


# ---------- Expressions ----------

@dataclass
class Identifier(Expression):
    name: str


@dataclass
class NullLiteral(Expression):
    pass


@dataclass
class BooleanLiteral(Expression):
    value: bool


@dataclass
class IntegerLiteral(Expression):
    value: int


@dataclass
class DoubleLiteral(Expression):
    value: float


@dataclass
class StringLiteral(Expression):
    value: str


@dataclass
class StringInterpolation(Expression):
    parts: List[Union[str, Expression]]


@dataclass
class BinaryExpression(Expression):
    operator: str
    left: Expression
    right: Expression


@dataclass
class PrefixExpression(Expression):
    operator: str
    operand: Expression


@dataclass
class PostfixExpression(Expression):
    operator: str
    operand: Expression


@dataclass
class ConditionalExpression(Expression):
    condition: Expression
    then_expression: Expression
    else_expression: Expression


@dataclass
class AssignmentExpression(Expression):
    operator: str
    target: Expression
    value: Expression


@dataclass
class ParenthesizedExpression(Expression):
    expression: Expression


@dataclass
class FunctionLiteral(Expression):
    parameters: List[Parameter]
    body: FunctionBody


@dataclass
class NamedArgument(Expression):
    name: str
    value: Expression


@dataclass
class FunctionInvocation(Expression):
    function: Expression
    arguments: List[Expression]


@dataclass
class MethodInvocation(Expression):
    target: Expression
    name: str
    arguments: List[Expression]


@dataclass
class PropertyAccess(Expression):
    target: Expression
    name: str


@dataclass
class IndexExpression(Expression):
    target: Expression
    index: Expression


@dataclass
class ThrowExpression(Expression):
    expression: Expression


@dataclass
class ListLiteral(Expression):
    elements: List[Node]
    type_arguments: List[str] = field(default_factory=list)


@dataclass
class SetOrMapLiteral(Expression):
    elements: List[Node]
    type_arguments: List[str] = field(default_factory=list)


# ---------- Collection elements ----------

@dataclass
class MapLiteralEntry(CollectionElement):
    key: Expression
    value: Expression
    null_aware_key: bool = False
    null_aware_value: bool = False


@dataclass
class SpreadElement(CollectionElement):
    expression: Expression
    null_aware: bool = False


@dataclass
class NullAwareElement(CollectionElement):
    expression: Expression


@dataclass
class IfElement(CollectionElement):
    condition: Expression
    then_element: Node
    else_element: Optional[Node] = None


@dataclass
class ForElement(CollectionElement):
    parts: Node
    body: Node


LOOP_NODES = (WhileStatement, DoStatement, ForStatement, ForEachStatement)
FUNCTION_NODES = (FunctionDeclaration, FunctionLiteral)
