"""Java generator: canonical AST -> Java class with a static main.

Helper functions become `public static` methods of the wrapper class; the
entry statements form the body of `main(String[] args)`.

Known deficiencies:
- Booleans print as true/false, not in the source language's spelling.
- Python lists of mixed element types become Object[].
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
    Literal,
    Placeholder,
    PrintStatement,
    Stmt,
    TextFragment,
)
from ..typemap import GENERIC_TYPE, array_of, element_type, kind_of, source_type_of
from .clike import CLikeGenerator
from .util import JAVA_RESERVED, escape_java, is_atomic, printf_spec

_INT_MAX = 2**31 - 1

_PRINTF_CONVERSIONS = frozenset({"f", "F", "e", "E", "g", "G", "x", "X", "o"})

_NUMERIC_KINDS = ("int", "float", "char")
_NUMERIC_TYPES = frozenset({"int", "long", "short", "byte", "double", "float"})


class JavaGenerator(CLikeGenerator):
    """Renders canonical statements as Java inside a wrapper class."""

    language = "java"
    const_keyword = "final"
    null_literal = "null"
    reserved = JAVA_RESERVED
    body_depth = 2
    function_depth = 1

    def program(self, body: list[str], functions: list[str], ctx: TranslationContext) -> str:
        pad = self.options.indent
        out: list[str] = []
        if ctx.requires("java.util.Arrays"):
            out.extend(["import java.util.Arrays;", ""])
        out.append(f"public class {self.options.class_name} {{")
        for fn in functions:
            out.append(fn)
            out.append("")
        out.append(f"{pad}public static void main(String[] args) {{")
        out.extend(body)
        out.append(f"{pad}}}")
        out.append("}")
        return "\n".join(out) + "\n"

    def escape(self, value: str, quote: str = '"') -> str:
        return escape_java(value, quote)

    # Declarations

    def _signature(self, fn: FunctionDeclaration) -> str:
        params = ", ".join(
            f"{self.target_type(array_of(p.declared_type, p.dimensions))} {self.name(p.name)}"
            for p in fn.parameters
        )
        ret = self.target_type(fn.return_type) if fn.return_type else "void"
        return f"public static {ret} {self.name(fn.name)}({params})"

    def _initializer(self, typ: str, init: Expr) -> str:
        if isinstance(init, Literal) and init.literal_kind == "float" and typ == "float":
            return self._expr(init) + "f"
        if typ == "boolean":
            return self._boolean(init)
        if typ in _NUMERIC_TYPES and self.kind(init) == "bool":
            return self._numeric(init)
        return self._expr(init)

    def _emit_array(self, stmt: ArrayDeclaration) -> None:
        elem = self.target_type(stmt.element_type)
        brackets = "[]" * len(stmt.dimensions)
        name = self.name(stmt.name)
        if stmt.initializer is not None:
            self._line(f"{elem}{brackets} {name} = {self._array_literal(stmt.initializer, elem)};")
            return
        dims = stmt.dimensions
        if dims[0] is None:
            raise UnsupportedConstruct("array", f"{stmt.name} without size")
        sizes = "".join(f"[{self._expr(d)}]" if d is not None else "[]" for d in dims)
        self._line(f"{elem}{brackets} {name} = new {elem}{sizes};")

    def _array_literal(self, literal: ArrayLiteral, elem: str) -> str:
        parts: list[str] = []
        for e in literal.elements:
            if isinstance(e, ArrayLiteral):
                parts.append(self._array_literal(e, elem))
            else:
                parts.append(self._initializer(elem, e))
        return "{" + ", ".join(parts) + "}"

    def _assign_value(self, target: Expr, value: Expr) -> str:
        if isinstance(value, ArrayLiteral):
            typ = self.target_type(source_type_of(target, self.ctx))
            if not typ.endswith("[]"):
                typ = GENERIC_TYPE["java"] + "[]"
            elem = typ.rstrip("[]")
            return f"new {typ}{self._array_literal(value, elem)}"
        target_kind = self.kind(target)
        if target_kind == "bool":
            return self._boolean(value)
        if target_kind in _NUMERIC_KINDS and self.kind(value) == "bool":
            return self._numeric(value)
        return self._expr(value)

    # Booleans and numbers do not convert implicitly

    def _needs_truth_test(self, e: Expr) -> bool:
        return self.kind(e) in _NUMERIC_KINDS

    def _boolean(self, value: Expr) -> str:
        if isinstance(value, Literal) and value.literal_kind == "int" and value.value in (0, 1):
            return "true" if value.value else "false"
        return self._condition(value)

    def _numeric(self, value: Expr) -> str:
        return f"{self._ternary_part(value)} ? 1 : 0"

    # Loops

    def _emit_each(self, header: EachHeader, body: list[Stmt]) -> None:
        iterable = header.iterable
        self.declare(header.variable, header.element_type)
        var = self.name(header.variable)
        if self.kind(iterable) == "string":
            self._line(f"for (char {var} : {self._expr(iterable)}.toCharArray()) {{")
        else:
            elem = self.target_type(header.element_type) if header.element_type else ""
            if not elem or elem == GENERIC_TYPE["java"]:
                inner = element_type(source_type_of(iterable, self.ctx))
                elem = self.target_type(inner) if inner else "var"
            self._line(f"for ({elem} {var} : {self._expr(iterable)}) {{")
        self._emit_body(body)
        self._line("}")

    # Printing

    def _emit_print(self, stmt: PrintStatement) -> None:
        if any(self._needs_printf(f) for f in stmt.fragments if isinstance(f, Placeholder)):
            self._emit_printf(stmt)
            return
        method = "println" if stmt.newline else "print"
        parts: list[tuple[str, bool]] = []
        for frag in stmt.fragments:
            if isinstance(frag, TextFragment):
                parts.append((f'"{escape_java(frag.text)}"', True))
            else:
                parts.append(self._print_arg(stmt.arguments[frag.index], frag))
        if not parts:
            if stmt.newline:
                self._line("System.out.println();")
            return
        if len(parts) == 1:
            self._line(f"System.out.{method}({parts[0][0]});")
            return
        texts: list[str] = []
        for text, atomic in parts:
            texts.append(text if atomic else f"({text})")
        # two leading non-strings would be added, not concatenated
        if not self._is_string(stmt, 0) and not self._is_string(stmt, 1):
            texts.insert(0, '""')
        self._line(f"System.out.{method}({' + '.join(texts)});")

    def _is_string(self, stmt: PrintStatement, position: int) -> bool:
        frag = stmt.fragments[position]
        if isinstance(frag, TextFragment):
            return True
        return self.kind(stmt.arguments[frag.index]) == "string"

    def _print_arg(self, arg: Expr, frag: Placeholder) -> tuple[str, bool]:
        """Rendered argument and whether it can stand in a concatenation without parentheses."""
        kind = self.kind(arg)
        conversion = frag.spec.conversion if frag.spec is not None else None
        if kind == "array":
            return self._array_string(arg), True
        if conversion == "c" and kind == "int":
            return self.cast("char", arg), False
        if conversion == "d" and kind == "char":
            return self.cast("int", arg), False
        return self._expr(arg), is_atomic(arg)

    def _array_string(self, arg: Expr) -> str:
        self.ctx.require("java.util.Arrays")
        nested = kind_of(element_type(source_type_of(arg, self.ctx))) == "array"
        method = "deepToString" if nested else "toString"
        return f"Arrays.{method}({self._expr(arg)})"

    def _needs_printf(self, frag: Placeholder) -> bool:
        spec = frag.spec
        if spec is None:
            return False
        return (
            spec.width is not None
            or spec.precision is not None
            or bool(spec.flags)
            or spec.conversion in _PRINTF_CONVERSIONS
        )

    def _emit_printf(self, stmt: PrintStatement) -> None:
        fmt: list[str] = []
        args: list[str] = []
        for frag in stmt.fragments:
            if isinstance(frag, TextFragment):
                fmt.append(escape_java(frag.text).replace("%", "%%"))
                continue
            arg = stmt.arguments[frag.index]
            kind = self.kind(arg)
            spec = frag.spec
            conversion = spec.conversion if spec is not None and spec.conversion else _conversion(kind, spec)
            if spec is not None and conversion in ("s", "c"):
                # Java rejects numeric flags on %s and %c
                flags = "-" if "-" in spec.flags else ""
                precision = spec.precision if conversion == "s" else None
                spec = FormatSpec(flags, spec.width, precision, conversion)
            fmt.append(printf_spec(spec, conversion))
            args.append(self._array_string(arg) if kind == "array" else self._expr(arg))
        if stmt.newline:
            fmt.append("%n")
        rendered = "".join(", " + a for a in args)
        self._line(f'System.out.printf("{"".join(fmt)}"{rendered});')

    # Expressions

    def _literal(self, value: int | float | bool | str, kind: str) -> str:
        text = super()._literal(value, kind)
        if kind == "int" and not isinstance(value, bool) and isinstance(value, int) and abs(value) > _INT_MAX:
            return text + "L"
        return text

    def _length(self, array: Expr) -> str:
        base = self._expr(array) if is_atomic(array) else f"({self._expr(array)})"
        if self.kind(array) == "string":
            return f"{base}.length()"
        return f"{base}.length"

    def _power(self, left: Expr, right: Expr) -> str:
        text = f"Math.pow({self._expr(left)}, {self._expr(right)})"
        if self.integral(left) and self.integral(right):
            return f"(int) {text}"
        return text

    def _floor_division(self, left: Expr, right: Expr) -> str:
        return f"Math.floor({self._expr(left)} / {self.paren(right, '/', False)})"

    def _string_equality(self, left: Expr, op: str, right: Expr) -> str:
        base = self._expr(left) if is_atomic(left) else f"({self._expr(left)})"
        text = f"{base}.equals({self._expr(right)})"
        return text if op == "==" else f"!{text}"

    def _call(self, name: str, args: list[Expr]) -> str:
        rendered = [self._expr(a) for a in args]
        match name, args:
            case "sqrt" | "abs", [_]:
                return f"Math.{name}({rendered[0]})"
            case "pow", [left, right]:
                return self._power(left, right)
            case "min" | "max", [_, _, *_]:
                text = rendered[0]
                for r in rendered[1:]:
                    text = f"Math.{name}({text}, {r})"
                return text
            case "str", [_]:
                return f"String.valueOf({rendered[0]})"
            case "int", [arg]:
                if self.kind(arg) == "string":
                    return f"Integer.parseInt({rendered[0]})"
                return self.cast("int", arg)
            case "float", [arg]:
                if self.kind(arg) == "string":
                    return f"Double.parseDouble({rendered[0]})"
                return self.cast("double", arg)
            case ("sqrt" | "abs" | "pow" | "min" | "max" | "str" | "int" | "float"), _:
                raise UnsupportedConstruct("call", f"{name} with {len(args)} arguments")
        return f"{self.name(name)}({', '.join(rendered)})"


def _conversion(kind: str, spec: FormatSpec | None) -> str:
    """printf conversion for a placeholder without one."""
    match kind:
        case "int":
            return "d"
        case "char":
            return "c"
        case "float" if spec is not None and spec.precision is not None:
            return "f"
        case _:
            return "s"

