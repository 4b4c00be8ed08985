"""Translator: native parse -> canonical AST -> target text, with layout.

One Translator serves one language pair. Each translate() call builds its
own Context, frontend and generator, so a Translator may be shared between
threads.

Recovery is per node: a statement that no parser accepts, or that a parser
or generator raises on, is kept as a comment holding its original text and
reported as a warning. Only internal invariant violations fail the whole
translation.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace

from tree_sitter import Node, Parser

from .backend import GENERATORS, Generator
from .context import TranslateOptions, TranslationContext
from .errors import LedgerConflict, TranslationError, UnsupportedConstruct
from .frontend import FRONTENDS
from .frontend.base import Frontend, ParseDispatch
from .frontend.native import SourceText, end_row, load_parser, row
from .ir import Comment, FunctionDeclaration, Pos, Stmt, Unit, Unsupported

logger = logging.getLogger(__name__)


@dataclass
class TranslationResult:
    """Outcome of one translation."""

    success: bool
    translated_code: str
    warnings: list[str] = field(default_factory=list)
    error: str | None = None
    service_used: str = "core"

    def to_dict(self) -> dict[str, object]:
        d: dict[str, object] = {
            "success": self.success,
            "translated_code": self.translated_code,
            "warnings": list(self.warnings),
            "service_used": self.service_used,
        }
        if self.error is not None:
            d["error"] = self.error
        return d


class LineLedger:
    """Source rows consumed by each dispatched entry unit.

    Units are claimed in source order. Two units may share a boundary row
    (`int a; int b;` or `} x++;`), but a unit may not start inside the rows
    of an earlier one.
    """

    def __init__(self) -> None:
        self.owners: dict[int, str] = {}
        self.end = -1

    def claim(self, start: int, end: int, kind: str) -> None:
        if start < self.end:
            raise LedgerConflict(start, self.owners.get(start, "?"), kind)
        label = f"{kind}:{start + 1}"
        for r in range(start, end + 1):
            self.owners.setdefault(r, label)
        self.end = max(self.end, end)

    def owner(self, r: int) -> str | None:
        return self.owners.get(r)

    def consumed(self) -> set[int]:
        return set(self.owners)


@dataclass
class _Parsed:
    """Canonical statements produced from one native node."""

    start: int
    end: int
    stmts: list[Stmt]
    blank_before: bool = False


class Translator:
    """Translates programs from source_language to target_language."""

    def __init__(
        self, source_language: str, target_language: str, options: TranslateOptions | None = None
    ) -> None:
        if source_language not in FRONTENDS:
            raise ValueError(f"no frontend for {source_language}")
        if target_language not in GENERATORS:
            raise ValueError(f"no generator for {target_language}")
        self.source_language = source_language
        self.target_language = target_language
        self.options = options or TranslateOptions()
        # raises GrammarUnavailable
        self.parser: Parser = load_parser(source_language)
        # State of the most recent call, kept for inspection
        self.ctx = TranslationContext(source_language, target_language, self.options)
        self.ledger = LineLedger()
        self.unit = Unit()

    def translate(self, source_code: str) -> TranslationResult:
        self.ctx = TranslationContext(self.source_language, self.target_language, self.options)
        self.ledger = LineLedger()
        self.unit = Unit()
        logger.debug("translating %s -> %s", self.source_language, self.target_language)
        try:
            code = self._run(source_code)
        except (TranslationError, RecursionError) as e:
            logger.debug("translation failed: %s", e, exc_info=True)
            return TranslationResult(False, "", list(self.ctx.warnings), str(e))
        return TranslationResult(True, code, list(self.ctx.warnings))

    # --- Pipeline ---

    def _run(self, source_code: str) -> str:
        ctx = self.ctx
        source = SourceText(source_code)
        tree = self.parser.parse(source.data)
        if tree.root_node.has_error:
            logger.debug("native parse has errors; recovery parser enabled")
        frontend = FRONTENDS[self.source_language](source, ctx, ParseDispatch(parse_block=self._parse_block))
        generator = GENERATORS[self.target_language](self.options)
        self._frontend = frontend
        entry = frontend.collect(tree.root_node)
        frontend.register_functions(entry.functions)
        functions = [self._parse_function(fn) for fn in entry.functions]
        body = self._dispatch_all(entry.body, self.ledger)
        self.unit = Unit(
            [s for p in functions for s in p.stmts if isinstance(s, FunctionDeclaration)],
            [s for p in body for s in p.stmts],
        )
        rendered_functions: list[str] = []
        for parsed in functions:
            for stmt in parsed.stmts:
                text = self._render(generator, stmt, generator.function_depth)
                if text:
                    rendered_functions.append(text)
        lines = self._layout(generator, body)
        return generator.program(lines, rendered_functions, ctx)

    # --- Dispatch ---

    def _parse_block(self, nodes: list[Node]) -> list[Stmt]:
        return [s for p in self._dispatch_all(nodes, None) for s in p.stmts]

    def _dispatch_all(self, nodes: list[Node], ledger: LineLedger | None) -> list[_Parsed]:
        source = self._frontend.source
        out: list[_Parsed] = []
        prev_end = -1
        for node in nodes:
            start, end = row(node), end_row(node)
            if ledger is not None:
                ledger.claim(start, end, node.type)
            stmts = self._dispatch(node)
            if start == prev_end:
                for s in stmts:
                    if isinstance(s, Comment):
                        s.is_inline = True
            blank = prev_end >= 0 and any(source.is_blank(r) for r in range(prev_end + 1, start))
            if blank and stmts and stmts[0].pos is not None:
                # statements split from one node share a Pos
                stmts[0].pos = replace(stmts[0].pos, blank_before=True)
            out.append(_Parsed(start, end, stmts, blank))
            prev_end = end
        return out

    def _dispatch(self, node: Node) -> list[Stmt]:
        """First parser that claims node and returns a result wins.

        A parser that raises counts as declining the node. When no parser
        accepts it, the first failure is the reason given in the warning.
        """
        fe, ctx = self._frontend, self.ctx
        reason = ""
        for parser in fe.parsers:
            if not parser.can_parse(node):
                continue
            try:
                result = parser.parse(node, ctx)
            except UnsupportedConstruct as e:
                reason = reason or str(e)
                continue
            except Exception as e:
                logger.warning("line %d: %s parser raised %r", row(node) + 1, parser.name, e)
                reason = reason or f"{parser.name} parser failed: {e!r}"
                continue
            if result is None:
                continue
            stmts = result if isinstance(result, list) else [result]
            pos = Pos(row(node), end_row(node), fe.source.statement_text(node), parser.strategy)
            for s in stmts:
                s.pos = pos
            ctx.record_strategy(row(node), parser.name, parser.strategy)
            return stmts
        return [self._degrade(fe, node, reason or f"no parser for {node.type}")]

    def _parse_function(self, node: Node) -> _Parsed:
        fe = self._frontend
        start, end = row(node), end_row(node)
        try:
            result = fe.parse_function(node)
        except UnsupportedConstruct as e:
            return _Parsed(start, end, [self._degrade(fe, node, str(e))])
        except Exception as e:
            logger.warning("line %d: function parser raised %r", start + 1, e)
            return _Parsed(start, end, [self._degrade(fe, node, f"function parser failed: {e!r}")])
        if result is None:
            return _Parsed(start, end, [self._degrade(fe, node, "function")])
        stmts = result if isinstance(result, list) else [result]
        pos = Pos(start, end, fe.source.statement_text(node))
        for s in stmts:
            s.pos = pos
        self.ctx.record_strategy(start, "function", "structural")
        return _Parsed(start, end, stmts)

    def _degrade(self, fe: Frontend, node: Node, reason: str) -> Unsupported:
        text = fe.source.statement_text(node)
        self.ctx.warn(f"line {row(node) + 1}: {reason}")
        stmt = Unsupported(text, reason)
        stmt.pos = Pos(row(node), end_row(node), text)
        return stmt

    # --- Generation and layout ---

    def _render(self, generator: Generator, stmt: Stmt, depth: int) -> str:
        try:
            if isinstance(stmt, FunctionDeclaration):
                return generator.function(stmt, self.ctx, depth)
            return generator.generate(stmt, self.ctx, depth)
        except (UnsupportedConstruct, NotImplementedError) as e:
            reason = str(e)
        except Exception as e:
            logger.warning("%s generator raised %r", self.target_language, e)
            reason = f"{self.target_language} generator failed: {e!r}"
        line = stmt.pos.line + 1 if stmt.pos is not None else 0
        self.ctx.warn(f"line {line}: {reason}")
        text = stmt.pos.text if stmt.pos is not None else ""
        return generator.comment_out(text, depth)

    def _layout(self, generator: Generator, body: list[_Parsed]) -> list[str]:
        """Entry lines with source blank lines kept and trailing comments attached."""
        lines: list[str] = []
        for parsed in body:
            if parsed.blank_before:
                lines.append("")
            for stmt in parsed.stmts:
                if isinstance(stmt, Comment) and stmt.is_inline and lines and lines[-1]:
                    lines[-1] += generator.inline_comment(stmt.text)
                    continue
                text = self._render(generator, stmt, generator.body_depth)
                if text:
                    lines.extend(text.split("\n"))
        return collapse_blank_lines(lines)


def collapse_blank_lines(lines: list[str]) -> list[str]:
    """Runs of blank lines become one; leading and trailing blanks go."""
    out: list[str] = []
    for line in lines:
        if not line.strip():
            if out and out[-1]:
                out.append("")
            continue
        out.append(line)
    while out and not out[-1]:
        out.pop()
    return out
