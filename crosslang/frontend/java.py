"""Java source parsers built on tree-sitter-java.

The entry body is the block of `main` in the first class that declares
one; other methods become helper functions. Top-level statements (a
snippet with no class) are accepted as the entry body too.

Known deficiencies:
- Objects, collections and string methods other than length() are unsupported.
- `System.out.printf` needs a literal format string.
"""

from __future__ import annotations

from tree_sitter import Node

from ..context import TranslationContext
from ..ir import (
    ArrayDeclaration,
    ArrayLiteral,
    BinaryExpression,
    CallExpression,
    EachHeader,
    Expr,
    Fragment,
    FunctionDeclaration,
    Literal,
    LoopStatement,
    Parameter,
    Placeholder,
    PrintStatement,
    Stmt,
    TextFragment,
    VariableDeclaration,
)
from ..typemap import array_of, infer_kind, normalize, spelling, split_array
from .base import (
    CommentParser,
    EntryPoints,
    ParseResult,
    SourceParser,
    initializer_dims,
)
from .clike import (
    BlockParser,
    CLikeFrontend,
    ConditionalParser,
    ExpressionParser,
    JumpParser,
    LoopParser,
)
from .literals import count_placeholders, decode_char, decode_string, join_text, parse_number, parse_printf
from .native import field, fields, named
from .recovery import RecoveryParser

_DECLARATIONS = frozenset({"local_variable_declaration", "field_declaration"})

_NUMBER_TYPES = frozenset(
    {
        "decimal_integer_literal",
        "hex_integer_literal",
        "octal_integer_literal",
        "binary_integer_literal",
        "decimal_floating_point_literal",
    }
)

# Class.method -> (canonical builtin, arity)
_STATIC_CALLS = {
    ("Math", "pow"): ("pow", 2),
    ("Math", "sqrt"): ("sqrt", 1),
    ("Math", "abs"): ("abs", 1),
    ("Math", "max"): ("max", 2),
    ("Math", "min"): ("min", 2),
    ("Integer", "parseInt"): ("int", 1),
    ("Double", "parseDouble"): ("float", 1),
    ("String", "valueOf"): ("str", 1),
    ("Integer", "toString"): ("str", 1),
}

_CASTS = {
    "int": "int",
    "long": "int",
    "short": "int",
    "byte": "int",
    "double": "float",
    "float": "float",
}

_PRINT_METHODS = frozenset({"println", "print", "printf", "format"})


def _declarators(node: Node, fe: JavaFrontend) -> list[tuple[str, int, Node | None]]:
    """(name, extra bracket depth, value) for each declarator."""
    out = []
    for d in fields(node, "declarator"):
        name = fe.child(d, "name")
        dims = field(d, "dimensions")
        depth = fe.text(dims).count("[") if dims is not None else 0
        out.append((fe.text(name), depth, field(d, "value")))
    return out


def _is_final(node: Node, fe: JavaFrontend) -> bool:
    for c in node.children:
        if c.type == "modifiers" and "final" in fe.text(c).split():
            return True
    return False


class ArrayParser(SourceParser):
    """`int[] xs = {1, 2};`, `int xs[] = new int[5];`, `int[][] m = ...`."""

    name = "arrays"
    node_types = _DECLARATIONS

    def parse(self, node: Node, ctx: TranslationContext) -> ParseResult:
        fe = self.fe
        assert isinstance(fe, JavaFrontend)
        type_node = fe.child(node, "type")
        base, depth = split_array(fe.text(type_node))
        decls = _declarators(node, fe)
        if not depth and not any(d for _, d, _ in decls):
            return None
        out: list[Stmt] = []
        for name, extra, value in decls:
            out.append(self._declare(name, base, depth + extra, value, ctx))
        return out

    def _declare(self, name: str, base: str, depth: int, value: Node | None, ctx: TranslationContext) -> Stmt:
        fe = self.fe
        assert isinstance(fe, JavaFrontend)
        ctx.add_variable(name, array_of(base, depth))
        if value is None:
            return VariableDeclaration(name, array_of(base, depth), None, False)
        if value.type == "array_initializer":
            literal = fe.initializer(value)
            return ArrayDeclaration(name, base, initializer_dims(literal, depth), literal)
        if value.type == "array_creation_expression":
            init = field(value, "value")
            if init is not None:
                literal = fe.initializer(init)
                return ArrayDeclaration(name, base, initializer_dims(literal, depth), literal)
            dims: list[Expr | None] = []
            for c in value.named_children:
                if c.type == "dimensions_expr":
                    inner = named(c)
                    dims.append(fe.expr(inner[0]))
                elif c.type == "dimensions":
                    dims.extend([None] * fe.text(c).count("["))
            if len(dims) != depth:
                raise fe.unsupported(value, "array dimensions")
            return ArrayDeclaration(name, base, dims, None)
        return VariableDeclaration(name, array_of(base, depth), fe.expr(value), False)


class VariableParser(SourceParser):
    """`int x = 5;`, `final double PI = 3.14;`, `var s = "a";`, `int a, b;`."""

    name = "variables"
    node_types = _DECLARATIONS

    def parse(self, node: Node, ctx: TranslationContext) -> ParseResult:
        fe = self.fe
        assert isinstance(fe, JavaFrontend)
        type_node = fe.child(node, "type")
        typ = normalize(fe.text(type_node))
        is_final = _is_final(node, fe)
        out: list[Stmt] = []
        for name, _, value in _declarators(node, fe):
            init = fe.expr(value) if value is not None else None
            declared = typ
            if typ == "var":
                if init is None:
                    raise fe.unsupported(node, "var without initializer")
                declared = spelling(infer_kind(init, ctx), "java")
            ctx.add_variable(name, declared)
            out.append(VariableDeclaration(name, declared, init, is_final))
        return out[0] if len(out) == 1 else out


class PrintParser(SourceParser):
    """System.out.println / print / printf / format."""

    name = "print"
    node_types = frozenset({"expression_statement"})

    def parse(self, node: Node, ctx: TranslationContext) -> ParseResult:
        fe = self.fe
        assert isinstance(fe, JavaFrontend)
        inner = named(node)
        if len(inner) != 1 or inner[0].type != "method_invocation":
            return None
        call = inner[0]
        obj, name = field(call, "object"), field(call, "name")
        if obj is None or name is None or fe.text(obj) not in ("System.out", "System.err"):
            return None
        method = fe.text(name)
        if method not in _PRINT_METHODS:
            return None
        args_node = fe.child(call, "arguments")
        args = named(args_node)
        if method in ("printf", "format"):
            return self._printf(call, args, ctx)
        if len(args) > 1:
            raise fe.unsupported(call, "print with several arguments")
        newline = method == "println"
        if not args:
            return PrintStatement([], [], newline)
        fragments, arguments = fe.concatenation(args[0])
        return PrintStatement(fragments, arguments, newline)

    def _printf(self, call: Node, args: list[Node], ctx: TranslationContext) -> ParseResult:
        fe = self.fe
        if not args or args[0].type != "string_literal":
            raise fe.unsupported(call, "printf without a literal format")
        fragments, newline = parse_printf(decode_string(fe.text(args[0])), "java")
        arguments = [fe.expr(a) for a in args[1:]]
        if count_placeholders(fragments) != len(arguments):
            raise fe.unsupported(call, "printf argument count")
        return PrintStatement(fragments, arguments, newline)


class EachLoopParser(SourceParser):
    """`for (int x : xs)`."""

    name = "loops"
    node_types = frozenset({"enhanced_for_statement"})

    def parse(self, node: Node, ctx: TranslationContext) -> ParseResult:
        fe = self.fe
        type_node, name, value = fe.child(node, "type"), fe.child(node, "name"), fe.child(node, "value")
        var = fe.text(name)
        elem = normalize(fe.text(type_node))
        iterable = fe.expr(value)
        ctx.add_variable(var, elem)
        return LoopStatement("for_each", EachHeader(var, elem, iterable), fe.block(field(node, "body")))


class JavaFrontend(CLikeFrontend):
    language = "java"
    ternary_type = "ternary_expression"
    subscript_type = "array_access"
    subscript_array_field = "array"
    unary_operand_field = "operand"
    char_literal_type = "character_literal"
    for_init_field = "init"
    null_types = frozenset({"null_literal"})
    block_types = frozenset(
        {
            "if_statement",
            "for_statement",
            "enhanced_for_statement",
            "while_statement",
            "do_statement",
            "switch_expression",
            "try_statement",
            "try_with_resources_statement",
            "method_declaration",
            "constructor_declaration",
            "class_declaration",
            "block",
        }
    )

    def build_parsers(self) -> list[SourceParser]:
        return [
            CommentParser(self),
            ArrayParser(self),
            VariableParser(self),
            PrintParser(self),
            ConditionalParser(self),
            LoopParser(self),
            EachLoopParser(self),
            JumpParser(self),
            BlockParser(self),
            ExpressionParser(self),
            RecoveryParser(self),
        ]

    # Entry collection

    def collect(self, root: Node) -> EntryPoints:
        entry = EntryPoints()
        for child in root.named_children:
            if child.type in ("import_declaration", "package_declaration"):
                continue
            if child.type == "class_declaration":
                self._collect_class(child, entry)
            else:
                entry.body.append(child)
        return entry

    def _collect_class(self, node: Node, entry: EntryPoints) -> None:
        body = field(node, "body")
        if body is None:
            return
        for member in body.named_children:
            if member.type == "method_declaration" and self._is_main(member):
                block = field(member, "body")
                if block is not None:
                    entry.body.extend(block.named_children)
            elif member.type == "method_declaration":
                entry.functions.append(member)
            else:
                entry.body.append(member)

    def _is_main(self, node: Node) -> bool:
        name = field(node, "name")
        return name is not None and self.text(name) == "main"

    # Functions

    def register_functions(self, functions: list[Node]) -> None:
        for fn in functions:
            name, typ = field(fn, "name"), field(fn, "type")
            if name is not None and typ is not None:
                self.ctx.add_function(self.text(name), normalize(self.text(typ)))

    def parse_function(self, node: Node) -> ParseResult:
        ctx = self.ctx
        name_node, type_node = self.child(node, "name"), self.child(node, "type")
        params_node = self.child(node, "parameters")
        name = self.text(name_node)
        params: list[Parameter] = []
        for p in named(params_node):
            if p.type != "formal_parameter":
                raise self.unsupported(p, "parameter")
            p_type, p_name = self.child(p, "type"), self.child(p, "name")
            base, depth = split_array(self.text(p_type))
            dims = field(p, "dimensions")
            if dims is not None:
                depth += self.text(dims).count("[")
            params.append(Parameter(self.text(p_name), base, depth))
        ctx.push_scope(name)
        try:
            for param in params:
                ctx.add_variable(param.name, array_of(param.declared_type, param.dimensions))
            body = self.block(field(node, "body"))
        finally:
            ctx.pop_scope()
        return FunctionDeclaration(name, normalize(self.text(type_node)), params, body)

    # Expressions

    def decode_char(self, node: Node) -> str:
        return decode_char(self.text(node))

    def initializer(self, node: Node) -> ArrayLiteral:
        elements: list[Expr] = []
        for c in named(node):
            elements.append(self.initializer(c) if c.type == "array_initializer" else self.expr(c))
        return ArrayLiteral(elements)

    def concatenation(self, node: Node) -> tuple[list[Fragment], list[Expr]]:
        """Decompose `"Sum: " + a + b` into text and placeholders.

        Operands left of the first string are added numerically, as Java
        evaluates them, and print as one value.
        """
        parts = [self.expr(p) for p in self._plus_operands(node)]
        kinds = [infer_kind(p, self.ctx) for p in parts]
        if "string" not in kinds:
            return [Placeholder(0, None)], [self.expr(node)]
        first = kinds.index("string")
        if first > 1:
            prefix: Expr = parts[0]
            for p in parts[1:first]:
                prefix = BinaryExpression(prefix, "+", p)
            parts = [prefix] + parts[first:]
        fragments: list[Fragment] = []
        arguments: list[Expr] = []
        for p in parts:
            if isinstance(p, Literal) and p.literal_kind in ("string", "char"):
                fragments.append(TextFragment(str(p.value)))
            else:
                fragments.append(Placeholder(len(arguments), None))
                arguments.append(p)
        return join_text(fragments), arguments

    def _plus_operands(self, node: Node) -> list[Node]:
        if node.type == "binary_expression":
            op = field(node, "operator")
            left, right = field(node, "left"), field(node, "right")
            if op is not None and self.text(op) == "+" and left is not None and right is not None:
                return self._plus_operands(left) + [right]
        return [node]

    def expr_special(self, node: Node) -> Expr:
        t = node.type
        if t in _NUMBER_TYPES:
            return parse_number(self.text(node))
        if t == "string_literal":
            return Literal(decode_string(self.text(node)), "string")
        if t == "array_initializer":
            return self.initializer(node)
        if t == "array_creation_expression":
            init = field(node, "value")
            if init is None:
                raise self.unsupported(node, "array allocation outside a declaration")
            return self.initializer(init)
        if t == "method_invocation":
            return self._method_call(node)
        if t == "field_access":
            obj, fld = field(node, "object"), field(node, "field")
            if obj is not None and fld is not None and self.text(fld) == "length":
                return CallExpression("len", [self.expr(obj)])
            raise self.unsupported(node, "field access")
        if t == "cast_expression":
            typ, value = self.child(node, "type"), self.child(node, "value")
            canonical = _CASTS.get(self.text(typ))
            if canonical is None:
                raise self.unsupported(node, "cast")
            return CallExpression(canonical, [self.expr(value)])
        raise self.unsupported(node)

    def _method_call(self, node: Node) -> Expr:
        obj = field(node, "object")
        name_node, args_node = self.child(node, "name"), self.child(node, "arguments")
        name = self.text(name_node)
        args = [self.expr(a) for a in named(args_node)]
        if obj is None:
            if self.ctx.has_function(name):
                return CallExpression(name, args)
            raise self.unsupported(node, f"call to {name}")
        receiver = self.text(obj)
        if (receiver, name) in _STATIC_CALLS:
            canonical, arity = _STATIC_CALLS[(receiver, name)]
            if len(args) != arity:
                raise self.unsupported(node, f"{receiver}.{name} with {len(args)} arguments")
            return CallExpression(canonical, args)
        if name == "length" and not args:
            return CallExpression("len", [self.expr(obj)])
        raise self.unsupported(node, "method call")
