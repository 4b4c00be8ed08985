"""Per-translation state shared by parsers and generators."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from .typemap import pair_key

logger = logging.getLogger(__name__)


@dataclass
class TranslateOptions:
    """Caller-facing knobs.

    exact_types: render integer 0/1 as integers even for flag-like names.
    class_name: wrapper class of Java output.
    indent: one indentation level in the output.
    """

    exact_types: bool = False
    class_name: str = "Main"
    indent: str = "    "


@dataclass
class StrategyRecord:
    """Which parser and strategy produced the node at a source line."""

    line: int
    parser: str
    strategy: str


@dataclass
class TranslationContext:
    """Variable bindings, diagnostics and one-shot flags for one translation.

    Bindings map names to source-language type spellings. A binding is
    created once and never retyped. The entry body uses the outermost
    scope; each function pushes its own.
    """

    source: str
    target: str
    options: TranslateOptions = field(default_factory=TranslateOptions)
    scopes: list[dict[str, str]] = field(default_factory=lambda: [{}])
    scope_names: list[str] = field(default_factory=lambda: ["<entry>"])
    functions: dict[str, str] = field(default_factory=dict)
    warnings: list[str] = field(default_factory=list)
    flags: set[str] = field(default_factory=set)
    strategies: list[StrategyRecord] = field(default_factory=list)

    @property
    def pair(self) -> str:
        return pair_key(self.source, self.target)

    # Variables

    def add_variable(self, name: str, typ: str) -> bool:
        """Bind name in the innermost scope. Returns False if already bound there.

        A binding in an outer scope is shadowed, not retyped.
        """
        if self.has_local(name):
            existing = self.get_variable_type(name)
            if existing != typ:
                logger.debug("keeping %s: %s, ignoring retype to %s", name, existing, typ)
            return False
        self.scopes[-1][name] = typ
        return True

    def get_variable_type(self, name: str) -> str | None:
        for scope in reversed(self.scopes):
            if name in scope:
                return scope[name]
        return None

    def has_variable(self, name: str) -> bool:
        return any(name in scope for scope in self.scopes)

    def has_local(self, name: str) -> bool:
        return name in self.scopes[-1]

    def push_scope(self, name: str) -> None:
        self.scopes.append({})
        self.scope_names.append(name)

    def pop_scope(self) -> None:
        if len(self.scopes) == 1:
            raise RuntimeError("cannot pop the entry scope")
        self.scopes.pop()
        self.scope_names.pop()

    @property
    def scope_name(self) -> str:
        return self.scope_names[-1]

    # Functions

    def add_function(self, name: str, return_type: str) -> None:
        """Register a helper function; an unresolved return type may be filled in later."""
        if not self.functions.get(name):
            self.functions[name] = return_type

    def get_function(self, name: str) -> str | None:
        return self.functions.get(name)

    def has_function(self, name: str) -> bool:
        return name in self.functions

    # Diagnostics

    def warn(self, message: str) -> None:
        logger.warning(message)
        self.warnings.append(message)

    def record_strategy(self, line: int, parser: str, strategy: str) -> None:
        logger.debug("line %d: %s (%s)", line + 1, parser, strategy)
        self.strategies.append(StrategyRecord(line, parser, strategy))

    # One-shot flags: includes, imports

    def require(self, flag: str) -> None:
        self.flags.add(flag)

    def requires(self, flag: str) -> bool:
        return flag in self.flags
