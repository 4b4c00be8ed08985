"""C generator: canonical AST -> C99 program with an int main().

Includes are collected through Context flags while rendering and emitted
ahead of the program. With more than one helper function, prototypes are
emitted so helpers may call each other in any order.

Known deficiencies:
- Strings are `char*`; concatenation and str() have no rendering.
- len() of an array parameter is unsupported, since arrays decay to pointers.
"""

from __future__ import annotations

from ..context import TranslationContext
from ..errors import UnsupportedConstruct
from ..ir import (
    ArrayDeclaration,
    ArrayLiteral,
    EachHeader,
    Expr,
    FormatSpec,
    FunctionDeclaration,
    Identifier,
    Literal,
    Placeholder,
    PrintStatement,
    Stmt,
    TextFragment,
)
from ..typemap import GENERIC_TYPE, element_type, map_type, source_type_of
from .clike import CLikeGenerator
from .util import C_RESERVED, is_atomic, printf_spec

# Include order in the output
_HEADERS = ("stdbool.h", "stdlib.h", "string.h", "math.h")


class CGenerator(CLikeGenerator):
    """Renders canonical statements as C."""

    language = "c"
    const_keyword = "const"
    null_literal = "NULL"
    reserved = C_RESERVED
    body_depth = 1
    function_depth = 0

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.prototypes: list[str] = []
        self.parameters: set[str] = set()

    def program(self, body: list[str], functions: list[str], ctx: TranslationContext) -> str:
        pad = self.options.indent
        out = ["#include <stdio.h>"]
        out.extend(f"#include <{h}>" for h in _HEADERS if ctx.requires(h))
        out.append("")
        if len(functions) > 1:
            out.extend(self.prototypes)
            out.append("")
        for fn in functions:
            out.append(fn)
            out.append("")
        out.append("int main() {")
        out.extend(body)
        out.append(f"{pad}return 0;")
        out.append("}")
        return "\n".join(out) + "\n"

    # Types

    def target_type(self, source_type: str) -> str:
        typ = map_type(source_type, self.ctx.pair)
        if typ.startswith("bool"):
            self.ctx.require("stdbool.h")
        return typ

    def decl_type(self, declared: str, init: Expr | None) -> str:
        typ = super().decl_type(declared, init)
        if typ.startswith("bool"):
            self.ctx.require("stdbool.h")
        return typ

    # Declarations

    def _emit_function(self, fn: FunctionDeclaration) -> None:
        self.parameters = {p.name for p in fn.parameters}
        try:
            super()._emit_function(fn)
        finally:
            self.parameters = set()

    def _signature(self, fn: FunctionDeclaration) -> str:
        params: list[str] = []
        for p in fn.parameters:
            name = self.name(p.name)
            if p.dimensions == 1:
                base = self.target_type(p.declared_type)
                params.append(f"{base} {name}[]")
            else:
                params.append(f"{self.target_type(p.declared_type + '[]' * p.dimensions)} {name}")
        ret = self.target_type(fn.return_type) if fn.return_type else "void"
        signature = f"{ret} {self.name(fn.name)}({', '.join(params) or 'void'})"
        self.prototypes.append(signature + ";")
        return signature

    def _emit_array(self, stmt: ArrayDeclaration) -> None:
        elem = self.target_type(stmt.element_type)
        name = self.name(stmt.name)
        dims = stmt.dimensions
        if stmt.initializer is not None:
            if elem == GENERIC_TYPE["c"]:
                raise UnsupportedConstruct("array", f"{stmt.name} has no common element type")
            if any(d is None for d in dims[1:]):
                raise UnsupportedConstruct("array", f"{stmt.name} has unsized inner dimensions")
            sizes = "".join(f"[{self._expr(d)}]" if d is not None else "[]" for d in dims)
            self._line(f"{elem} {name}{sizes} = {self._expr(stmt.initializer)};")
            return
        if any(d is None for d in dims):
            raise UnsupportedConstruct("array", f"{stmt.name} without size")
        sizes = "".join(f"[{self._expr(d)}]" for d in dims if d is not None)
        if all(isinstance(d, Literal) for d in dims):
            self._line(f"{elem} {name}{sizes} = {{0}};")
            return
        # variable-length arrays cannot have an initializer
        self.ctx.require("string.h")
        self._line(f"{elem} {name}{sizes};")
        self._line(f"memset({name}, 0, sizeof({name}));")

    def _assign_value(self, target: Expr, value: Expr) -> str:
        if isinstance(value, ArrayLiteral):
            raise UnsupportedConstruct("assignment", "arrays cannot be assigned in C")
        return self._expr(value)

    # Loops

    def _emit_each(self, header: EachHeader, body: list[Stmt]) -> None:
        iterable = header.iterable
        if not isinstance(iterable, Identifier):
            raise UnsupportedConstruct("loop", "for-each over an expression")
        var = self.name(header.variable)
        seq = self.name(iterable.name)
        index = f"{header.variable}_index"
        if self.kind(iterable) == "string":
            self.declare(header.variable, "char")
            self._line(f"for (int {index} = 0; {seq}[{index}] != '\\0'; {index}++) {{")
            elem = "char"
        else:
            declared = header.element_type or element_type(source_type_of(iterable, self.ctx))
            self.declare(header.variable, declared)
            elem = self.target_type(declared)
            self._line(f"for (int {index} = 0; {index} < {self._length(iterable)}; {index}++) {{")
        self.indent += 1
        self._line(f"{elem} {var} = {seq}[{index}];")
        self.indent -= 1
        self._emit_body(body)
        self._line("}")

    # Printing

    def _emit_print(self, stmt: PrintStatement) -> None:
        fmt: list[str] = []
        args: list[str] = []
        shortest = False
        for frag in stmt.fragments:
            if isinstance(frag, TextFragment):
                fmt.append(self.escape(frag.text).replace("%", "%%"))
                continue
            shortest = shortest or _shortest_float(frag, self.kind(stmt.arguments[frag.index]))
            fragment, arg = self._placeholder(frag, stmt.arguments[frag.index])
            fmt.append(fragment)
            args.append(arg)
        if stmt.newline:
            fmt.append("\\n")
        if not fmt:
            return
        if shortest:
            line = stmt.pos.line + 1 if stmt.pos is not None else 0
            self.ctx.warn(f"line {line}: %g prints floats differently from {self.ctx.source} (2.0 prints as 2)")
        rendered = "".join(", " + a for a in args)
        self._line(f'printf("{"".join(fmt)}"{rendered});')

    def _placeholder(self, frag: Placeholder, arg: Expr) -> tuple[str, str]:
        """Conversion text and argument text for one placeholder."""
        kind = self.kind(arg)
        spec = frag.spec
        if kind == "array":
            raise UnsupportedConstruct("print", "arrays have no printf conversion")
        conversion = spec.conversion if spec is not None else None
        if conversion is None:
            if kind == "bool":
                yes, no = ("True", "False") if self.ctx.source == "python" else ("true", "false")
                cond = self.paren(arg, "||", True)
                return printf_spec(spec, "s"), f'{cond} ? "{yes}" : "{no}"'
            conversion = _conversion(kind, spec)
        elif conversion == "c" and kind == "string":
            conversion = "s"
        return printf_spec(spec, conversion), self._expr(arg)

    # Expressions

    def _literal(self, value: int | float | bool | str, kind: str) -> str:
        if kind == "bool":
            self.ctx.require("stdbool.h")
        return super()._literal(value, kind)

    def _binary(self, left: Expr, op: str, right: Expr) -> str:
        if op == "+" and "string" in (self.kind(left), self.kind(right)):
            raise UnsupportedConstruct("expression", "string concatenation")
        return super()._binary(left, op, right)

    def _length(self, array: Expr) -> str:
        base = self._expr(array) if is_atomic(array) else f"({self._expr(array)})"
        if self.kind(array) == "string":
            self.ctx.require("string.h")
            return f"(int) strlen({self._expr(array)})"
        self._check_sized(array)
        return f"(int) (sizeof({base}) / sizeof({base}[0]))"

    def _negative_index(self, array: Expr, k: int) -> str:
        base = self._expr(array) if is_atomic(array) else f"({self._expr(array)})"
        if self.kind(array) == "string":
            self.ctx.require("string.h")
            return f"strlen({self._expr(array)}) - {k}"
        self._check_sized(array)
        return f"sizeof({base})/sizeof({base}[0]) - {k}"

    def _check_sized(self, array: Expr) -> None:
        if isinstance(array, Identifier) and array.name in self.parameters:
            raise UnsupportedConstruct("len", f"{array.name} is a pointer inside the function")

    def _power(self, left: Expr, right: Expr) -> str:
        self.ctx.require("math.h")
        text = f"pow({self._expr(left)}, {self._expr(right)})"
        if self.integral(left) and self.integral(right):
            return f"(int) {text}"
        return text

    def _floor_division(self, left: Expr, right: Expr) -> str:
        self.ctx.require("math.h")
        return f"floor({self._expr(left)} / {self.paren(right, '/', False)})"

    def _string_equality(self, left: Expr, op: str, right: Expr) -> str:
        self.ctx.require("string.h")
        return f"strcmp({self._expr(left)}, {self._expr(right)}) {op} 0"

    def _call(self, name: str, args: list[Expr]) -> str:
        rendered = [self._expr(a) for a in args]
        match name, args:
            case "sqrt", [_]:
                self.ctx.require("math.h")
                return f"sqrt({rendered[0]})"
            case "abs", [arg]:
                if self.kind(arg) == "float":
                    self.ctx.require("math.h")
                    return f"fabs({rendered[0]})"
                self.ctx.require("stdlib.h")
                return f"abs({rendered[0]})"
            case "pow", [left, right]:
                return self._power(left, right)
            case "min" | "max", [first, _, *_]:
                cmp = "<" if name == "min" else ">"
                text = self.paren(first, "<", True)
                for arg in args[1:]:
                    other = self.paren(arg, "<", True)
                    text = f"({text} {cmp} {other} ? {text} : {other})"
                return text
            case "str", [_]:
                raise UnsupportedConstruct("call", "str() has no C counterpart")
            case "int", [arg]:
                if self.kind(arg) == "string":
                    self.ctx.require("stdlib.h")
                    return f"atoi({rendered[0]})"
                return self.cast("int", arg)
            case "float", [arg]:
                if self.kind(arg) == "string":
                    self.ctx.require("stdlib.h")
                    return f"atof({rendered[0]})"
                return self.cast("double", arg)
            case ("sqrt" | "abs" | "pow" | "min" | "max" | "int" | "float"), _:
                raise UnsupportedConstruct("call", f"{name} with {len(args)} arguments")
        return f"{self.name(name)}({', '.join(rendered)})"


def _shortest_float(frag: Placeholder, kind: str) -> bool:
    """A float printed in its shortest form, which printf can only approximate with %g."""
    spec = frag.spec
    return kind == "float" and (spec is None or (spec.conversion is None and spec.precision is None))


def _conversion(kind: str, spec: FormatSpec | None) -> str:
    """printf conversion inferred from an argument's kind."""
    match kind:
        case "int":
            return "d"
        case "float":
            return "f" if spec is not None and spec.precision is not None else "g"
        case "string":
            return "s"
        case "char":
            return "c"
        case _:
            return "d"
