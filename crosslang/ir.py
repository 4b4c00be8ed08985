"""Canonical AST - the language-neutral representation shared by all pairs.

This module defines the closed set of node variants that source parsers
produce and target generators consume. Each node's docstring documents its
semantics and how targets render it.

Architecture:
    Source -> native parse (tree-sitter) -> Frontend parsers -> [IR] -> Backend -> Target

Every variant field is mandatory. Absent children are stated explicitly as
None (or an empty list) so a parser cannot forget one.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal as TypingLiteral

LiteralKind = TypingLiteral["int", "float", "bool", "string", "char"]
"""Kind of a literal value, decided by the parser.

| Kind   | Python value | C        | Java     | Python   |
|--------|--------------|----------|----------|----------|
| int    | int          | 42       | 42       | 42       |
| float  | float        | 3.14     | 3.14     | 3.14     |
| bool   | bool         | true     | true     | True     |
| string | str          | "s"      | "s"      | "s"      |
| char   | str (len 1)  | 'c'      | 'c'      | 'c'      |
"""

LoopKind = TypingLiteral["for_range", "for_each", "for_classic", "while", "do_while"]

Strategy = TypingLiteral["structural", "regex"]


# ============================================================
# SOURCE POSITIONS
# ============================================================


@dataclass
class Pos:
    """Where a statement came from in the source.

    Invariants:
    - line and end_line are 0-indexed rows, end_line >= line
    - text is the original source of the statement
    - strategy records which parsing strategy produced the node
    - blank_before is set when blank source lines separate the statement
      from the previous one in the same block
    """

    line: int
    end_line: int
    text: str
    strategy: Strategy = "structural"
    blank_before: bool = False


# ============================================================
# EXPRESSIONS
# ============================================================


@dataclass(kw_only=True)
class Expr:
    """Base for all expressions. Abstract."""


@dataclass
class Identifier(Expr):
    """Reference to a variable or function by name."""

    name: str


@dataclass
class Literal(Expr):
    """Literal value.

    Invariants:
    - literal_kind is one of int, float, bool, string, char
    - string and char values hold decoded characters, never escape sequences
    """

    value: int | float | bool | str
    literal_kind: LiteralKind


@dataclass
class NullLiteral(Expr):
    """None / null / NULL."""


@dataclass
class ArrayLiteral(Expr):
    """Brace or bracket initializer list. Elements may nest."""

    elements: list[Expr]


@dataclass
class BinaryExpression(Expr):
    """Binary operation with a canonical operator.

    Operators: + - * / // % ** == != < <= > >= && || & | ^ << >>

    `/` is true division, `//` is integer division. C and Java `/` between
    integer operands is parsed as `//`.
    """

    left: Expr
    operator: str
    right: Expr


@dataclass
class UnaryExpression(Expr):
    """Unary operation: - + ! ~ ++ --. postfix is only meaningful for ++/--."""

    operator: str
    operand: Expr
    postfix: bool


@dataclass
class TernaryExpression(Expr):
    """Conditional value: `c ? a : b` / `a if c else b`."""

    condition: Expr
    then_value: Expr
    else_value: Expr


@dataclass
class CallExpression(Expr):
    """Function call.

    Canonical builtins: len abs pow sqrt min max str int float.
    Any other name refers to a function declared in the same unit.
    """

    name: str
    arguments: list[Expr]


@dataclass
class ArrayAccess(Expr):
    """Indexing: `array[index]`. array is an identifier or a nested access.

    A negative literal index counts from the end, which targets without
    negative indexing rewrite against the array length.
    """

    array: Expr
    index: Expr


@dataclass
class AssignmentExpression(Expr):
    """Assignment: `target op value` with op in = += -= *= /= %= etc."""

    target: Expr
    operator: str
    value: Expr


# ============================================================
# PRINT FORMATTING
# ============================================================


@dataclass
class FormatSpec:
    """Formatting of one printed value.

    | Field      | printf      | Python spec |
    |------------|-------------|-------------|
    | flags      | -+ #0       | < + # 0     |
    | width      | %5d         | {x:5d}      |
    | precision  | %.2f        | {x:.2f}     |
    | conversion | d f e g x o s c | d f e g x o |

    conversion None means "render the value the default way".
    """

    flags: str
    width: int | None
    precision: int | None
    conversion: str | None


@dataclass
class TextFragment:
    """Literal text inside printed output (decoded characters)."""

    text: str


@dataclass
class Placeholder:
    """Slot filled by arguments[index] when printing."""

    index: int
    spec: FormatSpec | None


Fragment = TextFragment | Placeholder


# ============================================================
# STATEMENTS
# ============================================================


@dataclass(kw_only=True)
class Stmt:
    """Base for all statements. Abstract."""

    pos: Pos | None = None


@dataclass
class VariableDeclaration(Stmt):
    """Scalar variable declaration with optional initializer.

    declared_type is the source-language spelling ("int", "char*", "String",
    "str"); Python types are inferred from the initializer. "" means the
    type could not be resolved.

    | Target | rendering          |
    |--------|--------------------|
    | C      | T x = v;           |
    | Java   | T x = v;           |
    | Python | x = v              |
    """

    name: str
    declared_type: str
    initializer: Expr | None
    is_const: bool


@dataclass
class ArrayDeclaration(Stmt):
    """Array declaration.

    Invariants:
    - len(dimensions) equals the bracket depth; each entry is a size
      expression or None when unsized
    - an empty dimensions list means a non-array scalar
    - initializer is an ArrayLiteral nested to the same depth, or None
    """

    name: str
    element_type: str
    dimensions: list[Expr | None]
    initializer: ArrayLiteral | None


@dataclass
class PrintStatement(Stmt):
    """Console output.

    fragments interleave literal text with placeholders indexing into
    arguments. newline records the trailing newline, which never appears
    in the fragment text.
    """

    fragments: list[Fragment]
    arguments: list[Expr]
    newline: bool


@dataclass
class Comment(Stmt):
    """Source comment. is_inline marks a trailing comment on a code line."""

    text: str
    is_inline: bool


@dataclass
class ElifBranch:
    condition: Expr
    body: list[Stmt]


@dataclass
class ConditionalStatement(Stmt):
    """if / else-if chain / else.

    else_branch is None when there is no else; an empty list is an empty else.
    """

    condition: Expr
    then_branch: list[Stmt]
    elif_branches: list[ElifBranch]
    else_branch: list[Stmt] | None


@dataclass
class RangeHeader:
    """Counting loop: variable from start to stop by a constant step.

    inclusive means stop is reached (`<=`/`>=`). declares is False when the
    source loop reused an existing variable.
    """

    variable: str
    var_type: str
    start: Expr
    stop: Expr
    step: int
    inclusive: bool
    declares: bool


@dataclass
class EachHeader:
    """Iteration over the elements of an array or string."""

    variable: str
    element_type: str
    iterable: Expr


@dataclass
class ClassicHeader:
    """C-style loop that does not fit a counting range."""

    init: Stmt | None
    condition: Expr | None
    update: list[Expr]


@dataclass
class ConditionHeader:
    """Condition of a while or do-while loop."""

    condition: Expr


LoopHeader = RangeHeader | EachHeader | ClassicHeader | ConditionHeader


@dataclass
class LoopStatement(Stmt):
    """Loop of one of five kinds.

    | kind        | header          |
    |-------------|-----------------|
    | for_range   | RangeHeader     |
    | for_each    | EachHeader      |
    | for_classic | ClassicHeader   |
    | while       | ConditionHeader |
    | do_while    | ConditionHeader |
    """

    kind: LoopKind
    header: LoopHeader
    body: list[Stmt]


@dataclass
class ExpressionStatement(Stmt):
    """Expression evaluated for effect: assignment, update, call."""

    expression: Expr


@dataclass
class Parameter:
    name: str
    declared_type: str
    dimensions: int


@dataclass
class FunctionDeclaration(Stmt):
    """Function other than the entry point.

    return_type "void" means no value; "" means unresolved.
    """

    name: str
    return_type: str
    parameters: list[Parameter]
    body: list[Stmt]


@dataclass
class ReturnStatement(Stmt):
    value: Expr | None


@dataclass
class BreakStatement(Stmt):
    pass


@dataclass
class ContinueStatement(Stmt):
    pass


@dataclass
class Unsupported(Stmt):
    """Source kept verbatim and rendered as a comment."""

    text: str
    reason: str


# ============================================================
# TRANSLATION UNIT
# ============================================================


@dataclass
class Unit:
    """Parsed translation unit: entry body plus helper functions."""

    functions: list[FunctionDeclaration] = field(default_factory=list)
    body: list[Stmt] = field(default_factory=list)


STATEMENT_TYPES = (
    VariableDeclaration,
    ArrayDeclaration,
    PrintStatement,
    Comment,
    ConditionalStatement,
    LoopStatement,
    ExpressionStatement,
    FunctionDeclaration,
    ReturnStatement,
    BreakStatement,
    ContinueStatement,
    Unsupported,
)
