"""C source parsers built on tree-sitter-c.

The entry body is the body of `main`, with a final `return 0;` dropped.
Top-level declarations, `#define` constants and bare statements join the
entry body in source order; other functions become helpers. Includes and
prototypes produce no output.

Known deficiencies:
- Pointers other than strings and arrays, structs, and scanf are unsupported.
"""

from __future__ import annotations

import re

from tree_sitter import Node

from ..context import TranslationContext
from ..ir import (
    ArrayDeclaration,
    ArrayLiteral,
    CallExpression,
    Expr,
    FunctionDeclaration,
    Identifier,
    Literal,
    NullLiteral,
    Parameter,
    Placeholder,
    PrintStatement,
    Stmt,
    TextFragment,
    VariableDeclaration,
)
from ..typemap import array_of, infer_kind, normalize, spelling
from .base import CommentParser, EntryPoints, ParseResult, SourceParser, initializer_dims, literal_depth
from .clike import (
    BlockParser,
    CLikeFrontend,
    ConditionalParser,
    ExpressionParser,
    JumpParser,
    LoopParser,
)
from .literals import count_placeholders, decode_char, decode_string, parse_number, parse_printf
from .native import field, fields, named
from .recovery import RecoveryParser

# C function -> (canonical builtin, arity)
_LIBRARY_CALLS = {
    "pow": ("pow", 2),
    "sqrt": ("sqrt", 1),
    "abs": ("abs", 1),
    "fabs": ("abs", 1),
    "strlen": ("len", 1),
    "atoi": ("int", 1),
    "atof": ("float", 1),
}

_CASTS = {
    "int": "int",
    "long": "int",
    "short": "int",
    "long long": "int",
    "unsigned int": "int",
    "double": "float",
    "float": "float",
}

_SIZEOF_LENGTH = re.compile(r"^sizeof\s*\(?\s*(\w+)\s*\)?\s*/\s*sizeof\s*\(?\s*\1\s*\[\s*0\s*\]\s*\)?$")

_MAIN_RETURN = re.compile(r"^return\s*\(?\s*(0|EXIT_SUCCESS)\s*\)?\s*;$")

_DEFINE_VALUE = re.compile(r"^(-?\d+(?:\.\d*)?(?:[eE][-+]?\d+)?[fFlLuU]*|\"(?:[^\"\\]|\\.)*\"|'(?:[^'\\]|\\.)+')$")


class Declarator:
    """One declarator of a declaration, with pointer and array structure unwrapped."""

    def __init__(self, name: str, pointers: int, dims: list[Node | None], value: Node | None) -> None:
        self.name = name
        self.pointers = pointers
        self.dims = dims
        self.value = value


def _unwrap(node: Node, fe: CFrontend) -> Declarator | None:
    """Walk init/pointer/array declarators down to the identifier.

    Returns None for function declarators (prototypes).
    """
    match node.type:
        case "identifier":
            return Declarator(fe.text(node), 0, [], None)
        case "init_declarator":
            inner = fe.child(node, "declarator")
            d = _unwrap(inner, fe)
            if d is not None:
                d.value = field(node, "value")
            return d
        case "pointer_declarator":
            inner = fe.child(node, "declarator")
            d = _unwrap(inner, fe)
            if d is not None:
                d.pointers += 1
            return d
        case "array_declarator":
            inner = fe.child(node, "declarator")
            d = _unwrap(inner, fe)
            if d is not None:
                d.dims.append(field(node, "size"))
            return d
        case "parenthesized_declarator":
            inner = named(node)
            return _unwrap(inner[0], fe) if inner else None
        case _:
            return None


def _base_type(node: Node, fe: CFrontend) -> tuple[str, bool]:
    """(type spelling, is_const) of a declaration or parameter."""
    type_node = fe.child(node, "type")
    is_const = any(c.type == "type_qualifier" and fe.text(c) == "const" for c in node.children)
    return normalize(fe.text(type_node)), is_const


class DeclarationParser(SourceParser):
    """Scalars, strings, pointers and arrays: `int x = 5;`, `char s[] = "a";`, `int a[3] = {1, 2, 3};`."""

    name = "variables"
    node_types = frozenset({"declaration"})

    def parse(self, node: Node, ctx: TranslationContext) -> ParseResult:
        fe = self.fe
        assert isinstance(fe, CFrontend)
        base, is_const = _base_type(node, fe)
        declarators = []
        for d in fields(node, "declarator"):
            unwrapped = _unwrap(d, fe)
            if unwrapped is None:
                # prototype
                return []
            declarators.append(unwrapped)
        out = [self._declare(node, base, is_const, d, ctx) for d in declarators]
        return out[0] if len(out) == 1 else out

    def _declare(self, node: Node, base: str, is_const: bool, d: Declarator, ctx: TranslationContext) -> Stmt:
        value = d.value
        if base == "char" and not d.dims and d.pointers == 1:
            return self._scalar(d.name, "char*", value, is_const, ctx)
        is_string = value is not None and value.type in ("string_literal", "concatenated_string")
        if base == "char" and len(d.dims) == 1 and d.pointers == 0 and is_string:
            return self._scalar(d.name, "char*", value, is_const, ctx)
        element = base + "*" * d.pointers
        if d.dims:
            return self._array(node, d.name, element, d, ctx)
        return self._scalar(d.name, element, value, is_const, ctx)

    def _scalar(self, name: str, typ: str, value: Node | None, is_const: bool, ctx: TranslationContext) -> Stmt:
        init = self.fe.expr(value) if value is not None else None
        ctx.add_variable(name, typ)
        return VariableDeclaration(name, typ, init, is_const)

    def _array(self, node: Node, name: str, element: str, d: Declarator, ctx: TranslationContext) -> Stmt:
        fe = self.fe
        assert isinstance(fe, CFrontend)
        depth = len(d.dims)
        ctx.add_variable(name, array_of(element, depth))
        sizes: list[Expr | None] = [fe.expr(s) if s is not None else None for s in d.dims]
        if d.value is None:
            if any(s is None for s in sizes):
                raise fe.unsupported(node, f"array {name} without size")
            return ArrayDeclaration(name, element, sizes, None)
        if d.value.type != "initializer_list":
            raise fe.unsupported(d.value, "array initializer")
        literal = fe.initializer(d.value)
        dims = initializer_dims(literal, depth)
        # declared sizes win over sizes implied by the initializer
        dims = [s if s is not None else implied for s, implied in zip(sizes, dims)]
        if literal_depth(literal) > depth:
            raise fe.unsupported(d.value, "initializer nesting")
        return ArrayDeclaration(name, element, dims, literal)


class DefineParser(SourceParser):
    """`#define MAX 10` as a constant."""

    name = "defines"
    node_types = frozenset({"preproc_def"})

    def parse(self, node: Node, ctx: TranslationContext) -> ParseResult:
        fe = self.fe
        name, value = field(node, "name"), field(node, "value")
        if name is None or value is None:
            return None
        text = fe.text(value).strip()
        if not _DEFINE_VALUE.match(text):
            return None
        if text.startswith('"'):
            init: Expr = Literal(decode_string(text), "string")
        elif text.startswith("'"):
            init = Literal(decode_char(text), "char")
        else:
            init = parse_number(text)
        typ = spelling(infer_kind(init, ctx), "c")
        ctx.add_variable(fe.text(name), typ)
        return VariableDeclaration(fe.text(name), typ, init, True)


class PrintParser(SourceParser):
    """printf / puts / putchar."""

    name = "print"
    node_types = frozenset({"expression_statement"})

    def parse(self, node: Node, ctx: TranslationContext) -> ParseResult:
        fe = self.fe
        inner = named(node)
        if len(inner) != 1 or inner[0].type != "call_expression":
            return None
        call = inner[0]
        func, args_node = field(call, "function"), field(call, "arguments")
        if func is None or args_node is None:
            return None
        name = fe.text(func)
        args = named(args_node)
        match name:
            case "printf":
                if not args or args[0].type not in ("string_literal", "concatenated_string"):
                    raise fe.unsupported(call, "printf without a literal format")
                fmt = fe.expr(args[0])
                assert isinstance(fmt, Literal) and isinstance(fmt.value, str)
                fragments, newline = parse_printf(fmt.value, "c")
                arguments = [fe.expr(a) for a in args[1:]]
                if count_placeholders(fragments) != len(arguments):
                    raise fe.unsupported(call, "printf argument count")
                return PrintStatement(fragments, arguments, newline)
            case "puts" if len(args) == 1:
                value = fe.expr(args[0])
                if isinstance(value, Literal) and value.literal_kind == "string":
                    return PrintStatement([TextFragment(str(value.value))], [], True)
                return PrintStatement([Placeholder(0, None)], [value], True)
            case "putchar" if len(args) == 1:
                value = fe.expr(args[0])
                if isinstance(value, Literal) and value.literal_kind == "char":
                    text = str(value.value)
                    if text == "\n":
                        return PrintStatement([], [], True)
                    return PrintStatement([TextFragment(text)], [], False)
                return PrintStatement([Placeholder(0, None)], [value], False)
            case _:
                return None


class CFrontend(CLikeFrontend):
    language = "c"
    block_types = frozenset(
        {
            "if_statement",
            "for_statement",
            "while_statement",
            "do_statement",
            "switch_statement",
            "function_definition",
            "compound_statement",
            "struct_specifier",
        }
    )

    def build_parsers(self) -> list[SourceParser]:
        return [
            CommentParser(self),
            DeclarationParser(self),
            DefineParser(self),
            PrintParser(self),
            ConditionalParser(self),
            LoopParser(self),
            JumpParser(self),
            BlockParser(self),
            ExpressionParser(self),
            RecoveryParser(self),
        ]

    # Entry collection

    def collect(self, root: Node) -> EntryPoints:
        entry = EntryPoints()
        for child in root.named_children:
            if child.type in ("preproc_include", "preproc_call"):
                continue
            if child.type == "function_definition":
                if self._function_name(child) == "main":
                    entry.body.extend(self._main_body(child))
                else:
                    entry.functions.append(child)
            elif child.type == "declaration" and self._is_prototype(child):
                continue
            else:
                entry.body.append(child)
        return entry

    def _main_body(self, node: Node) -> list[Node]:
        body = field(node, "body")
        if body is None:
            return []
        statements = list(body.named_children)
        code = [s for s in statements if s.type != "comment"]
        if code and code[-1].type == "return_statement" and _MAIN_RETURN.match(self.text(code[-1])):
            statements.remove(code[-1])
        return statements

    def _function_declarator(self, node: Node) -> Node | None:
        d = field(node, "declarator")
        while d is not None and d.type in ("pointer_declarator", "parenthesized_declarator"):
            d = field(d, "declarator") if d.type == "pointer_declarator" else (named(d) or [None])[0]
        if d is not None and d.type == "function_declarator":
            return d
        return None

    def _function_name(self, node: Node) -> str:
        fd = self._function_declarator(node)
        if fd is None:
            return ""
        name = field(fd, "declarator")
        return self.text(name) if name is not None else ""

    def _return_type(self, node: Node) -> str:
        base, _ = _base_type(node, self)
        d = field(node, "declarator")
        while d is not None and d.type == "pointer_declarator":
            base += "*"
            d = field(d, "declarator")
        return base

    def _is_prototype(self, node: Node) -> bool:
        return any(
            d.type == "function_declarator"
            or (d.type == "pointer_declarator" and self._function_declarator(d) is not None)
            for d in fields(node, "declarator")
        )

    # Functions

    def register_functions(self, functions: list[Node]) -> None:
        for fn in functions:
            name = self._function_name(fn)
            if name:
                self.ctx.add_function(name, self._return_type(fn))

    def parse_function(self, node: Node) -> ParseResult:
        ctx = self.ctx
        fd = self._function_declarator(node)
        if fd is None:
            raise self.unsupported(node, "function declarator")
        name = self._function_name(node)
        params_node = field(fd, "parameters")
        params: list[Parameter] = []
        for p in named(params_node) if params_node is not None else []:
            if p.type != "parameter_declaration":
                raise self.unsupported(p, "parameter")
            base, _ = _base_type(p, self)
            declarator = field(p, "declarator")
            if declarator is None:
                if base == "void":
                    continue
                raise self.unsupported(p, "unnamed parameter")
            d = _unwrap(declarator, self)
            if d is None:
                raise self.unsupported(p, "parameter")
            if base == "char" and d.pointers + len(d.dims) == 1:
                params.append(Parameter(d.name, "char*", 0))
            else:
                params.append(Parameter(d.name, base, d.pointers + len(d.dims)))
        ctx.push_scope(name)
        try:
            for param in params:
                ctx.add_variable(param.name, array_of(param.declared_type, param.dimensions))
            body = self.block(field(node, "body"))
        finally:
            ctx.pop_scope()
        return FunctionDeclaration(name, self._return_type(node), params, body)

    # Expressions

    def decode_char(self, node: Node) -> str:
        return decode_char(self.text(node))

    def initializer(self, node: Node) -> ArrayLiteral:
        elements: list[Expr] = []
        for c in named(node):
            elements.append(self.initializer(c) if c.type == "initializer_list" else self.expr(c))
        return ArrayLiteral(elements)

    def binary(self, node: Node) -> Expr:
        m = _SIZEOF_LENGTH.match(" ".join(self.text(node).split()))
        if m is not None:
            return CallExpression("len", [Identifier(m.group(1))])
        return super().binary(node)

    def expr_special(self, node: Node) -> Expr:
        t = node.type
        if t == "number_literal":
            return parse_number(self.text(node))
        if t == "string_literal":
            return Literal(decode_string(self.text(node)), "string")
        if t == "concatenated_string":
            parts = [decode_string(self.text(c)) for c in named(node) if c.type == "string_literal"]
            return Literal("".join(parts), "string")
        if t == "initializer_list":
            return self.initializer(node)
        if t == "call_expression":
            return self._call(node)
        if t == "cast_expression":
            typ, value = self.child(node, "type"), self.child(node, "value")
            canonical = _CASTS.get(normalize(self.text(typ)))
            if canonical is None:
                raise self.unsupported(node, "cast")
            return CallExpression(canonical, [self.expr(value)])
        raise self.unsupported(node)

    def expr(self, node: Node) -> Expr:
        if node.type == "identifier" and self.text(node) == "NULL":
            return NullLiteral()
        return super().expr(node)

    def _call(self, node: Node) -> Expr:
        func, args_node = self.child(node, "function"), self.child(node, "arguments")
        name = self.text(func)
        args = [self.expr(a) for a in named(args_node)]
        if name in _LIBRARY_CALLS:
            canonical, arity = _LIBRARY_CALLS[name]
            if len(args) != arity:
                raise self.unsupported(node, f"{name} with {len(args)} arguments")
            return CallExpression(canonical, args)
        if func.type == "identifier" and self.ctx.has_function(name):
            return CallExpression(name, args)
        raise self.unsupported(node, f"call to {name}")
