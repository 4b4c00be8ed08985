"""Native parsing via tree-sitter grammars, plus node helpers.

Native nodes are only read. Text is sliced from the encoded source by byte
offsets so multi-byte characters stay intact.
"""

from __future__ import annotations

import tree_sitter_c
import tree_sitter_java
import tree_sitter_python
from tree_sitter import Language, Node, Parser

from ..errors import GrammarUnavailable

_GRAMMARS = {
    "python": tree_sitter_python,
    "java": tree_sitter_java,
    "c": tree_sitter_c,
}

COMMENT_TYPES = frozenset({"comment", "line_comment", "block_comment"})


def load_parser(language: str) -> Parser:
    """Build a tree-sitter parser for language."""
    grammar = _GRAMMARS[language]
    try:
        return Parser(Language(grammar.language()))
    except (ValueError, TypeError, OSError, AttributeError) as e:
        raise GrammarUnavailable(language, e) from e


class SourceText:
    """Source code with byte-accurate slicing and row lookups."""

    def __init__(self, source: str) -> None:
        self.source = source
        self.data = source.encode("utf-8")
        self.rows = source.split("\n")

    def text(self, node: Node) -> str:
        return self.data[node.start_byte : node.end_byte].decode("utf-8")

    def between(self, start_byte: int, end_byte: int) -> str:
        return self.data[start_byte:end_byte].decode("utf-8")

    def is_blank(self, row: int) -> bool:
        return 0 <= row < len(self.rows) and not self.rows[row].strip()

    def statement_text(self, node: Node) -> str:
        """Node text with continuation lines dedented to the first line's column."""
        text = self.text(node)
        col = node.start_point[1]
        lines = text.split("\n")
        out = [lines[0]]
        for line in lines[1:]:
            prefix = line[:col]
            out.append(line[col:] if not prefix.strip() else line.lstrip())
        return "\n".join(out)


def row(node: Node) -> int:
    return node.start_point[0]


def end_row(node: Node) -> int:
    """Last row holding text of node."""
    end, col = node.end_point[0], node.end_point[1]
    if col == 0 and end > node.start_point[0]:
        return end - 1
    return end


def field(node: Node, name: str) -> Node | None:
    return node.child_by_field_name(name)


def fields(node: Node, name: str) -> list[Node]:
    return list(node.children_by_field_name(name))


def named(node: Node) -> list[Node]:
    """Named children, skipping comments."""
    return [c for c in node.named_children if c.type not in COMMENT_TYPES]


def strip_parens(node: Node) -> Node:
    while node.type == "parenthesized_expression":
        inner = named(node)
        if len(inner) != 1:
            break
        node = inner[0]
    return node


def operator_text(node: Node, source: SourceText) -> str:
    """Operator token of a binary/unary/update node.

    Uses the `operator` field where the grammar has one, else the first
    anonymous child.
    """
    op = field(node, "operator")
    if op is not None:
        return source.text(op)
    for c in node.children:
        if not c.is_named:
            return source.text(c)
    return ""
