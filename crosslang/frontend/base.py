"""Source parser contract and the shared frontend skeleton.

A SourceParser claims native nodes with can_parse() and converts them with
parse(). parse() returns a canonical statement, a list of statements
(several declarations from one line, or nothing for imports), or None to let
the next registered parser try.
"""

from __future__ import annotations

from dataclasses import dataclass, field as dc_field
from typing import Callable

from tree_sitter import Node

from ..context import TranslationContext
from ..errors import UnsupportedConstruct
from ..ir import ArrayLiteral, Comment, Expr, Literal, Stmt, UnaryExpression
from .native import COMMENT_TYPES, SourceText, field

ParseResult = Stmt | list[Stmt] | None


@dataclass
class ParseDispatch:
    """Callbacks into the orchestrator for recursive parsing.

    parse_block converts a sequence of native statements with the same
    per-node recovery the orchestrator applies at the top level.
    """

    parse_block: Callable[[list[Node]], list[Stmt]]


@dataclass
class EntryPoints:
    """Native statements forming the entry body, and helper functions."""

    body: list[Node] = dc_field(default_factory=list)
    functions: list[Node] = dc_field(default_factory=list)


class SourceParser:
    """Converts one family of native statements into canonical nodes."""

    name = "parser"
    strategy = "structural"
    node_types: frozenset[str] = frozenset()

    def __init__(self, frontend: Frontend) -> None:
        self.fe = frontend

    def can_parse(self, node: Node) -> bool:
        return node.type in self.node_types

    def parse(self, node: Node, ctx: TranslationContext) -> ParseResult:
        raise NotImplementedError


class CommentParser(SourceParser):
    """Comments of all three languages. Inline-ness is decided by position."""

    name = "comments"
    node_types = COMMENT_TYPES

    def parse(self, node: Node, ctx: TranslationContext) -> ParseResult:
        return Comment(comment_text(self.fe.text(node)), False)


def comment_text(raw: str) -> str:
    """Strip comment markers, keeping the text and its line structure."""
    raw = raw.strip()
    if raw.startswith("#"):
        return raw[1:].strip()
    if raw.startswith("//"):
        return raw[2:].strip()
    if raw.startswith("/*"):
        body = raw[2:]
        if body.endswith("*/"):
            body = body[:-2]
        lines = [line.strip() for line in body.strip().split("\n")]
        lines = [line[1:].strip() if line.startswith("*") else line for line in lines]
        return "\n".join(lines)
    return raw


class Frontend:
    """Per-language parser family bound to one source text and Context."""

    language = ""
    # Compound statements dispatched as one multi-line unit
    block_types: frozenset[str] = frozenset()

    def __init__(self, source: SourceText, ctx: TranslationContext, dispatch: ParseDispatch) -> None:
        self.source = source
        self.ctx = ctx
        self.dispatch = dispatch
        self.parsers: list[SourceParser] = self.build_parsers()

    def build_parsers(self) -> list[SourceParser]:
        raise NotImplementedError

    def collect(self, root: Node) -> EntryPoints:
        raise NotImplementedError

    def register_functions(self, functions: list[Node]) -> None:
        """Make helper functions callable before their bodies are parsed."""

    def parse_function(self, node: Node) -> ParseResult:
        raise NotImplementedError

    def expr(self, node: Node) -> Expr:
        raise NotImplementedError

    def text(self, node: Node) -> str:
        return self.source.text(node)

    def block(self, node: Node | None) -> list[Stmt]:
        """Parse the statements of a body node (or a single-statement body)."""
        if node is None:
            return []
        if node.type in ("block", "compound_statement"):
            return self.dispatch.parse_block(list(node.named_children))
        return self.dispatch.parse_block([node])

    def unsupported(self, node: Node, reason: str = "") -> UnsupportedConstruct:
        return UnsupportedConstruct(node.type, reason or self.text(node))

    def child(self, node: Node, name: str) -> Node:
        """Field of node that its grammar always fills; a missing one means malformed input."""
        found = field(node, name)
        if found is None:
            raise self.unsupported(node, f"missing {name}")
        return found


def negate(operand: Expr) -> Expr:
    """Unary minus, folded into numeric literals."""
    if isinstance(operand, Literal) and operand.literal_kind in ("int", "float"):
        value = operand.value
        assert isinstance(value, (int, float))
        return Literal(-value, operand.literal_kind)
    return UnaryExpression("-", operand, False)


def initializer_dims(literal: ArrayLiteral, depth: int) -> list[Expr | None]:
    """Dimensions implied by a nested initializer: outer unsized, inner from the first row."""
    dims: list[Expr | None] = [None]
    level = literal
    while len(dims) < depth:
        first = level.elements[0] if level.elements else None
        if isinstance(first, ArrayLiteral):
            dims.append(Literal(len(first.elements), "int"))
            level = first
        else:
            dims.append(None)
    return dims


def literal_depth(literal: ArrayLiteral) -> int:
    depth = 1
    for e in literal.elements:
        if isinstance(e, ArrayLiteral):
            depth = max(depth, literal_depth(e) + 1)
    return depth
