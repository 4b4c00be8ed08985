"""Secondary strategy: line-level regex recovery for native ERROR nodes.

Used only after every structural parser declined a node. It understands a
handful of single-line shapes (simple assignments and literal prints); the
orchestrator records that the node came from this strategy.
"""

from __future__ import annotations

import re

from tree_sitter import Node

from ..context import TranslationContext
from ..ir import (
    AssignmentExpression,
    Expr,
    ExpressionStatement,
    Identifier,
    Literal,
    PrintStatement,
    TextFragment,
    VariableDeclaration,
)
from ..typemap import infer_kind, spelling
from .base import ParseResult, SourceParser
from .literals import count_placeholders, decode_string, parse_printf

_STRING = r"\"(?:[^\"\\]|\\.)*\""

_PRINT = {
    "python": re.compile(rf"^print\(\s*(?P<lit>{_STRING}|'(?:[^'\\]|\\.)*')\s*\)$"),
    "java": re.compile(rf"^System\.out\.(?P<fn>println|print)\(\s*(?P<lit>{_STRING})\s*\);?$"),
    "c": re.compile(rf"^(?P<fn>printf|puts)\(\s*(?P<lit>{_STRING})\s*\);?$"),
}

_DECL = {
    "python": re.compile(r"^(?P<name>[A-Za-z_]\w*)\s*=\s*(?P<value>[^=].*)$"),
    "java": re.compile(r"^(?:(?P<type>[A-Za-z_][\w<>\[\]]*)\s+)?(?P<name>[A-Za-z_]\w*)\s*=\s*(?P<value>[^;=][^;]*);?$"),
    "c": re.compile(r"^(?:(?P<type>[A-Za-z_]\w*\s*\*?)\s*)??(?P<name>[A-Za-z_]\w*)\s*=\s*(?P<value>[^;=][^;]*);?$"),
}

_INT = re.compile(r"^-?\d+$")
_FLOAT = re.compile(r"^-?\d+\.\d*(?:[eE][-+]?\d+)?$")
_NAME = re.compile(r"^[A-Za-z_]\w*$")

_BOOLS = {
    "python": {"True": True, "False": False},
    "java": {"true": True, "false": False},
    "c": {"true": True, "false": False},
}


class RecoveryParser(SourceParser):
    name = "recovery"
    strategy = "regex"
    node_types = frozenset({"ERROR"})

    def parse(self, node: Node, ctx: TranslationContext) -> ParseResult:
        text = self.fe.text(node).strip()
        if not text or "\n" in text:
            return None
        lang = self.fe.language
        m = _PRINT[lang].match(text)
        if m is not None:
            return self._print(m, lang)
        m = _DECL[lang].match(text)
        if m is not None:
            return self._assign(m, lang, ctx)
        return None

    def _print(self, m: re.Match[str], lang: str) -> ParseResult:
        value = decode_string(m.group("lit"))
        fn = m.groupdict().get("fn")
        if lang == "c" and fn == "printf":
            fragments, newline = parse_printf(value, lang)
            if count_placeholders(fragments):
                return None
            return PrintStatement(fragments, [], newline)
        return PrintStatement([TextFragment(value)] if value else [], [], fn != "print")

    def _assign(self, m: re.Match[str], lang: str, ctx: TranslationContext) -> ParseResult:
        name = m.group("name")
        value = self._value(m.group("value").strip(), lang, ctx)
        if value is None:
            return None
        declared = m.groupdict().get("type")
        if ctx.has_local(name) and not declared:
            return ExpressionStatement(AssignmentExpression(Identifier(name), "=", value))
        typ = " ".join(declared.split()) if declared else spelling(infer_kind(value, ctx), lang)
        ctx.add_variable(name, typ)
        return VariableDeclaration(name, typ, value, False)

    def _value(self, text: str, lang: str, ctx: TranslationContext) -> Expr | None:
        if _INT.match(text):
            return Literal(int(text), "int")
        if _FLOAT.match(text):
            return Literal(float(text), "float")
        if text in _BOOLS[lang]:
            return Literal(_BOOLS[lang][text], "bool")
        if re.fullmatch(_STRING, text):
            return Literal(decode_string(text), "string")
        if _NAME.match(text) and ctx.has_variable(text):
            return Identifier(text)
        return None
