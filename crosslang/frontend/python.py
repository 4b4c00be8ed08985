"""Python source parsers built on tree-sitter-python.

Python has no declarations, so the first assignment to a name becomes a
VariableDeclaration (or ArrayDeclaration for list values) whose type is
inferred from the value. Later assignments are plain assignments.

Known deficiencies:
- Only `math` imports are understood; other imports degrade to comments.
- Slices, comprehensions, keyword arguments and methods are unsupported.
"""

from __future__ import annotations

import re

from tree_sitter import Node

from ..context import TranslationContext
from ..ir import (
    ArrayAccess,
    ArrayDeclaration,
    ArrayLiteral,
    AssignmentExpression,
    BinaryExpression,
    BreakStatement,
    CallExpression,
    Comment,
    ConditionHeader,
    ConditionalStatement,
    ContinueStatement,
    EachHeader,
    ElifBranch,
    Expr,
    ExpressionStatement,
    Fragment,
    FunctionDeclaration,
    Identifier,
    Literal,
    LoopStatement,
    NullLiteral,
    Parameter,
    Placeholder,
    PrintStatement,
    RangeHeader,
    ReturnStatement,
    Stmt,
    TernaryExpression,
    TextFragment,
    UnaryExpression,
    VariableDeclaration,
)
from ..typemap import (
    array_of,
    element_type,
    infer_kind,
    kind_of,
    source_type_of,
    spelling,
    split_array,
    unify_kinds,
)
from .base import CommentParser, EntryPoints, Frontend, ParseResult, SourceParser, initializer_dims, negate
from .literals import decode_string, join_text, parse_number, parse_python_spec, split_quoted, unescape
from .native import field, fields, named
from .recovery import RecoveryParser

_BINARY_OPS = frozenset({"+", "-", "*", "/", "//", "%", "**", "&", "|", "^", "<<", ">>"})

_COMPARE_OPS = {
    "==": "==",
    "!=": "!=",
    "<": "<",
    "<=": "<=",
    ">": ">",
    ">=": ">=",
    "is": "==",
    "is not": "!=",
}

# Builtins with a canonical counterpart, and their arity
_BUILTINS = {"len": 1, "abs": 1, "pow": 2, "min": 2, "max": 2, "str": 1, "int": 1, "float": 1}

_MATH_FUNCS = {"sqrt": ("sqrt", 1), "pow": ("pow", 2), "fabs": ("abs", 1)}

_MAIN_GUARD = re.compile(r"^__name__\s*==\s*(['\"])__main__\1$")

_ZERO_VALUES = (0, 0.0, False, "")

_ALIGN = re.compile(r"^.?[<>^=]")


def _only_child(node: Node) -> Node | None:
    inner = named(node)
    return inner[0] if len(inner) == 1 else None


def _assignment(node: Node) -> Node | None:
    """The plain `=` assignment wrapped by an expression_statement, if any."""
    inner = _only_child(node)
    if inner is None or inner.type != "assignment":
        return None
    return inner


def _annotation_type(text: str) -> str:
    """`list[int]` -> `int[]`; other annotations pass through."""
    t = text.replace(" ", "")
    m = re.match(r"^(?:list|List)\[(.+)\]$", t)
    if m:
        return _annotation_type(m.group(1)) + "[]"
    return t


def _is_fstring(text: str) -> bool:
    prefix, _, _ = split_quoted(text)
    return "f" in prefix.lower()


class DocstringParser(SourceParser):
    """Bare string statements read as block comments."""

    name = "docstrings"
    node_types = frozenset({"expression_statement"})

    def parse(self, node: Node, ctx: TranslationContext) -> ParseResult:
        inner = _only_child(node)
        if inner is None or inner.type != "string" or _is_fstring(self.fe.text(inner)):
            return None
        return Comment(decode_string(self.fe.text(inner)).strip(), False)


class ImportParser(SourceParser):
    """`import math` and `from math import sqrt` produce no output."""

    name = "imports"
    node_types = frozenset({"import_statement", "import_from_statement"})

    def parse(self, node: Node, ctx: TranslationContext) -> ParseResult:
        fe = self.fe
        assert isinstance(fe, PythonFrontend)
        if node.type == "import_from_statement":
            module = field(node, "module_name")
            if module is None or fe.text(module) != "math":
                return None
            for name in fields(node, "name"):
                fe.math_names.add(fe.text(name))
            return []
        for name in fields(node, "name"):
            if fe.text(name) != "math":
                return None
        return []


class ArrayParser(SourceParser):
    """First assignment of a list value: `xs = [1, 2]`, `xs = [0] * n`."""

    name = "arrays"
    node_types = frozenset({"expression_statement"})

    def parse(self, node: Node, ctx: TranslationContext) -> ParseResult:
        a = _assignment(node)
        if a is None:
            return None
        left, right = field(a, "left"), field(a, "right")
        if left is None or right is None or left.type != "identifier":
            return None
        name = self.fe.text(left)
        if ctx.has_local(name):
            return None
        annotation = field(a, "type")
        if right.type == "list":
            decl = self._literal(name, right, ctx)
        elif right.type == "binary_operator" and self._is_repeat(right):
            decl = self._sized(name, right, ctx)
        else:
            return None
        if annotation is not None:
            base, depth = split_array(_annotation_type(self.fe.text(annotation)))
            if depth == len(decl.dimensions):
                decl.element_type = base
        ctx.add_variable(name, array_of(decl.element_type, len(decl.dimensions)))
        return decl

    def _is_repeat(self, node: Node) -> bool:
        left = field(node, "left")
        op = field(node, "operator")
        return left is not None and left.type == "list" and op is not None and self.fe.text(op) == "*"

    def _literal(self, name: str, node: Node, ctx: TranslationContext) -> ArrayDeclaration:
        literal, depth, leaves = self.fe.array_literal(node)
        kind = unify_kinds([infer_kind(leaf, ctx) for leaf in leaves])
        dims = initializer_dims(literal, depth)
        return ArrayDeclaration(name, spelling(kind, "python") or "object", dims, literal)

    def _sized(self, name: str, node: Node, ctx: TranslationContext) -> ArrayDeclaration:
        fill_list = self.fe.child(node, "left")
        size = self.fe.child(node, "right")
        items = named(fill_list)
        if len(items) != 1:
            raise self.fe.unsupported(node, "list repetition of several values")
        fill = self.fe.expr(items[0])
        if not isinstance(fill, Literal) or fill.value not in _ZERO_VALUES:
            raise self.fe.unsupported(node, "list repetition of a non-zero value")
        kind = infer_kind(fill, ctx)
        return ArrayDeclaration(name, spelling(kind, "python") or "object", [self.fe.expr(size)], None)


class VariableParser(SourceParser):
    """First assignment to a name, including `a, b = 1, 2` and `x: int = 5`."""

    name = "variables"
    node_types = frozenset({"expression_statement"})

    def parse(self, node: Node, ctx: TranslationContext) -> ParseResult:
        a = _assignment(node)
        if a is None:
            return None
        left, right = field(a, "left"), field(a, "right")
        annotation = field(a, "type")
        if left is None:
            return None
        if left.type == "identifier":
            name = self.fe.text(left)
            if ctx.has_local(name):
                return None
            typ = _annotation_type(self.fe.text(annotation)) if annotation is not None else ""
            return self._declare(name, typ, right, ctx)
        if left.type in ("pattern_list", "tuple_pattern") and right is not None:
            return self._unpack(left, right, ctx)
        return None

    def _declare(self, name: str, typ: str, right: Node | None, ctx: TranslationContext) -> Stmt:
        init = self.fe.expr(right) if right is not None else None
        if not typ and init is not None:
            kind = infer_kind(init, ctx)
            typ = source_type_of(init, ctx) if kind == "array" else spelling(kind, "python")
        ctx.add_variable(name, typ)
        return VariableDeclaration(name, typ, init, name.isupper())

    def _unpack(self, left: Node, right: Node, ctx: TranslationContext) -> ParseResult:
        targets = named(left)
        values = named(right) if right.type in ("expression_list", "tuple") else []
        if len(targets) != len(values) or any(t.type != "identifier" for t in targets):
            return None
        names = [self.fe.text(t) for t in targets]
        if any(ctx.has_local(n) for n in names):
            return None
        return [self._declare(n, "", v, ctx) for n, v in zip(names, values)]


class PrintParser(SourceParser):
    """`print(a, b, sep=..., end=...)` with f-string arguments."""

    name = "print"
    node_types = frozenset({"expression_statement"})

    def parse(self, node: Node, ctx: TranslationContext) -> ParseResult:
        call = _only_child(node)
        if call is None or call.type != "call":
            return None
        func = field(call, "function")
        if func is None or func.type != "identifier" or self.fe.text(func) != "print":
            return None
        args = self.fe.child(call, "arguments")
        fe = self.fe
        assert isinstance(fe, PythonFrontend)
        sep, end = " ", "\n"
        items: list[list[Fragment]] = []
        arguments: list[Expr] = []
        for arg in named(args):
            if arg.type == "keyword_argument":
                key = fe.text(field(arg, "name") or arg)
                value = field(arg, "value")
                if key == "flush":
                    continue
                if key not in ("sep", "end") or value is None or value.type != "string":
                    raise fe.unsupported(arg, "print keyword")
                text = decode_string(fe.text(value))
                if key == "sep":
                    sep = text
                else:
                    end = text
            elif arg.type == "string" and not _is_fstring(fe.text(arg)):
                items.append([TextFragment(decode_string(fe.text(arg)))])
            elif arg.type == "string":
                items.append(fe.fstring(arg, arguments))
            else:
                items.append([Placeholder(len(arguments), None)])
                arguments.append(fe.expr(arg))
        fragments: list[Fragment] = []
        for i, item in enumerate(items):
            if i:
                fragments.append(TextFragment(sep))
            fragments.extend(item)
        newline = end.endswith("\n")
        tail = end[:-1] if newline else end
        if tail:
            fragments.append(TextFragment(tail))
        return PrintStatement(join_text(fragments), arguments, newline)


class ConditionalParser(SourceParser):
    name = "conditionals"
    node_types = frozenset({"if_statement"})

    def parse(self, node: Node, ctx: TranslationContext) -> ParseResult:
        fe = self.fe
        cond = fe.child(node, "condition")
        condition = fe.expr(cond)
        then_branch = fe.block(field(node, "consequence"))
        elifs: list[ElifBranch] = []
        else_branch: list[Stmt] | None = None
        for alt in fields(node, "alternative"):
            if alt.type == "elif_clause":
                c = fe.child(alt, "condition")
                elifs.append(ElifBranch(fe.expr(c), fe.block(field(alt, "consequence"))))
            else:
                else_branch = fe.block(field(alt, "body"))
        return ConditionalStatement(condition, then_branch, elifs, else_branch)


class LoopParser(SourceParser):
    """`for x in range(...)`, `for x in xs`, `while cond`."""

    name = "loops"
    node_types = frozenset({"for_statement", "while_statement"})

    def parse(self, node: Node, ctx: TranslationContext) -> ParseResult:
        fe = self.fe
        if field(node, "alternative") is not None:
            raise fe.unsupported(node, "loop else clause")
        if node.type == "while_statement":
            cond = fe.child(node, "condition")
            return LoopStatement("while", ConditionHeader(fe.expr(cond)), fe.block(field(node, "body")))
        left, right = fe.child(node, "left"), fe.child(node, "right")
        if left.type != "identifier":
            raise fe.unsupported(node, "loop target must be a name")
        var = fe.text(left)
        header = self._range(var, right, ctx)
        if header is not None:
            ctx.add_variable(var, "int")
            return LoopStatement("for_range", header, fe.block(field(node, "body")))
        iterable = fe.expr(right)
        iter_type = source_type_of(iterable, ctx)
        if kind_of(iter_type) == "string" or infer_kind(iterable, ctx) == "string":
            elem = "str"
        elif isinstance(iterable, ArrayLiteral):
            elem = spelling(unify_kinds([infer_kind(e, ctx) for e in iterable.elements]), "python")
        else:
            elem = element_type(iter_type)
        ctx.add_variable(var, elem)
        return LoopStatement("for_each", EachHeader(var, elem, iterable), fe.block(field(node, "body")))

    def _range(self, var: str, node: Node, ctx: TranslationContext) -> RangeHeader | None:
        if node.type != "call":
            return None
        func = field(node, "function")
        if func is None or self.fe.text(func) != "range":
            return None
        args_node = self.fe.child(node, "arguments")
        args = [self.fe.expr(a) for a in named(args_node)]
        step = 1
        match args:
            case [stop]:
                start: Expr = Literal(0, "int")
            case [start, stop]:
                pass
            case [start, stop, Literal(value=int() as value, literal_kind="int")] if value != 0:
                step = value
            case _:
                raise self.fe.unsupported(node, "range() with a non-constant step")
        return RangeHeader(var, "int", start, stop, step, False, not ctx.has_local(var))


class JumpParser(SourceParser):
    name = "jumps"
    node_types = frozenset({"return_statement", "break_statement", "continue_statement", "pass_statement"})

    def parse(self, node: Node, ctx: TranslationContext) -> ParseResult:
        match node.type:
            case "break_statement":
                return BreakStatement()
            case "continue_statement":
                return ContinueStatement()
            case "pass_statement":
                return []
            case _:
                values = named(node)
                return ReturnStatement(self.fe.expr(values[0]) if values else None)


class ExpressionParser(SourceParser):
    """Reassignments, augmented assignments and calls."""

    name = "expressions"
    node_types = frozenset({"expression_statement"})

    def parse(self, node: Node, ctx: TranslationContext) -> ParseResult:
        inner = _only_child(node)
        if inner is None or inner.type not in ("assignment", "augmented_assignment", "call"):
            return None
        return ExpressionStatement(self.fe.expr(inner))


class PythonFrontend(Frontend):
    language = "python"
    block_types = frozenset(
        {
            "if_statement",
            "for_statement",
            "while_statement",
            "function_definition",
            "class_definition",
            "decorated_definition",
            "try_statement",
            "with_statement",
            "match_statement",
        }
    )

    def __init__(self, *args, **kwargs) -> None:
        self.math_names: set[str] = set()
        super().__init__(*args, **kwargs)

    def build_parsers(self) -> list[SourceParser]:
        return [
            CommentParser(self),
            DocstringParser(self),
            ImportParser(self),
            ArrayParser(self),
            VariableParser(self),
            PrintParser(self),
            ConditionalParser(self),
            LoopParser(self),
            JumpParser(self),
            ExpressionParser(self),
            RecoveryParser(self),
        ]

    # Entry collection

    def collect(self, root: Node) -> EntryPoints:
        entry = EntryPoints()
        inlined_main = False
        for child in root.named_children:
            if child.type == "function_definition" and self._is_main(child):
                body = field(child, "body")
                if body is not None:
                    entry.body.extend(body.named_children)
                inlined_main = True
            elif child.type == "function_definition":
                entry.functions.append(child)
            elif child.type == "if_statement" and self._is_main_guard(child):
                body = field(child, "consequence")
                if body is not None:
                    entry.body.extend(body.named_children)
            else:
                entry.body.append(child)
        if inlined_main:
            entry.body = [n for n in entry.body if self.text(n).strip() != "main()"]
        return entry

    def _is_main(self, node: Node) -> bool:
        name = field(node, "name")
        params = field(node, "parameters")
        return (
            name is not None
            and self.text(name) == "main"
            and (params is None or not named(params))
        )

    def _is_main_guard(self, node: Node) -> bool:
        cond = field(node, "condition")
        if cond is None or fields(node, "alternative"):
            return False
        return _MAIN_GUARD.match(self.text(cond)) is not None

    # Functions

    def register_functions(self, functions: list[Node]) -> None:
        for fn in functions:
            name = field(fn, "name")
            ret = field(fn, "return_type")
            if name is not None:
                rt = _annotation_type(self.text(ret)) if ret is not None else ""
                self.ctx.add_function(self.text(name), rt)

    def parse_function(self, node: Node) -> ParseResult:
        ctx = self.ctx
        name_node = self.child(node, "name")
        params_node = self.child(node, "parameters")
        name = self.text(name_node)
        params: list[Parameter] = []
        for p in named(params_node):
            if p.type == "identifier":
                params.append(Parameter(self.text(p), "", 0))
            elif p.type == "typed_parameter":
                ident = next((c for c in p.named_children if c.type == "identifier"), None)
                typ = field(p, "type")
                if ident is None or typ is None:
                    raise self.unsupported(p, "parameter")
                base, depth = split_array(_annotation_type(self.text(typ)))
                params.append(Parameter(self.text(ident), base, depth))
            else:
                raise self.unsupported(p, "parameter")
        if ctx.target != "python" and any(not p.declared_type for p in params):
            ctx.warn(f"{name}: parameter types are not annotated, using generic types")
        ctx.push_scope(name)
        try:
            for p in params:
                ctx.add_variable(p.name, array_of(p.declared_type, p.dimensions) if p.dimensions else p.declared_type)
            body = self.block(field(node, "body"))
            ret = field(node, "return_type")
            if ret is not None:
                return_type = _annotation_type(self.text(ret))
            else:
                return_type = self._infer_return(body, ctx)
        finally:
            ctx.pop_scope()
        ctx.add_function(name, return_type)
        return FunctionDeclaration(name, return_type, params, body)

    def _infer_return(self, body: list[Stmt], ctx: TranslationContext) -> str:
        for value in _return_values(body):
            kind = infer_kind(value, ctx)
            if kind == "array":
                return source_type_of(value, ctx)
            return spelling(kind, "python") or "object"
        return "void"

    # Literals

    def array_literal(self, node: Node) -> tuple[ArrayLiteral, int, list[Expr]]:
        """Nested list literal -> (literal, depth, leaf expressions)."""
        elements: list[Expr] = []
        leaves: list[Expr] = []
        depth = 1
        for child in named(node):
            if child.type == "list":
                inner, inner_depth, inner_leaves = self.array_literal(child)
                elements.append(inner)
                leaves.extend(inner_leaves)
                depth = max(depth, inner_depth + 1)
            else:
                e = self.expr(child)
                elements.append(e)
                leaves.append(e)
        return ArrayLiteral(elements), depth, leaves

    def fstring(self, node: Node, arguments: list[Expr]) -> list[Fragment]:
        """Split an f-string into text and placeholders, appending to arguments."""
        text = self.text(node)
        prefix, quote, _ = split_quoted(text)
        raw = "r" in prefix.lower()
        children = node.children
        begin = node.start_byte + len(prefix.encode()) + len(quote)
        finish = node.end_byte - len(quote)
        if children and children[0].type == "string_start":
            begin = children[0].end_byte
        if children and children[-1].type == "string_end":
            finish = children[-1].start_byte
        fragments: list[Fragment] = []
        cursor = begin
        for child in children:
            if child.type != "interpolation":
                continue
            fragments.append(TextFragment(self._fstring_text(self.source.between(cursor, child.start_byte), raw)))
            fragments.append(self._interpolation(child, arguments))
            cursor = child.end_byte
        fragments.append(TextFragment(self._fstring_text(self.source.between(cursor, finish), raw)))
        return join_text(fragments)

    def _fstring_text(self, raw_text: str, raw: bool) -> str:
        text = raw_text if raw else unescape(raw_text)
        return text.replace("{{", "{").replace("}}", "}")

    def _interpolation(self, node: Node, arguments: list[Expr]) -> Placeholder:
        expression = field(node, "expression")
        spec_node = field(node, "format_specifier")
        for c in node.named_children:
            if c.type == "type_conversion":
                raise self.unsupported(node, "f-string conversion")
            if c.type == "format_specifier" and spec_node is None:
                spec_node = c
            elif expression is None and c.type not in ("format_specifier", "format_expression"):
                expression = c
        if expression is None:
            raise self.unsupported(node, "empty interpolation")
        value = self.expr(expression)
        spec = None
        if spec_node is not None:
            spec_text = self.text(spec_node)
            spec_text = spec_text[1:] if spec_text.startswith(":") else spec_text
            spec = parse_python_spec(spec_text)
            # strings are left-aligned unless an alignment is given
            if (
                spec.width is not None
                and spec.conversion in (None, "s")
                and not _ALIGN.search(spec_text)
                and infer_kind(value, self.ctx) == "string"
            ):
                spec.flags += "-"
        placeholder = Placeholder(len(arguments), spec)
        arguments.append(value)
        return placeholder

    # Expressions

    def expr(self, node: Node) -> Expr:
        match node.type:
            case "identifier":
                return Identifier(self.text(node))
            case "integer" | "float":
                return parse_number(self.text(node))
            case "true":
                return Literal(True, "bool")
            case "false":
                return Literal(False, "bool")
            case "none":
                return NullLiteral()
            case "string":
                text = self.text(node)
                if _is_fstring(text):
                    raise self.unsupported(node, "f-string outside print")
                return Literal(decode_string(text), "string")
            case "concatenated_string":
                parts = [self.expr(c) for c in named(node)]
                return Literal("".join(str(p.value) for p in parts if isinstance(p, Literal)), "string")
            case "parenthesized_expression":
                inner = _only_child(node)
                if inner is None:
                    raise self.unsupported(node)
                return self.expr(inner)
            case "list":
                return self.array_literal(node)[0]
            case "binary_operator":
                return self._binary(node)
            case "boolean_operator":
                left, right, op = self.child(node, "left"), self.child(node, "right"), self.child(node, "operator")
                canonical = "&&" if self.text(op) == "and" else "||"
                return BinaryExpression(self.expr(left), canonical, self.expr(right))
            case "not_operator":
                arg = self.child(node, "argument")
                return UnaryExpression("!", self.expr(arg), False)
            case "unary_operator":
                return self._unary(node)
            case "comparison_operator":
                return self._comparison(node)
            case "conditional_expression":
                parts = named(node)
                if len(parts) != 3:
                    raise self.unsupported(node)
                then_value, cond, else_value = parts
                return TernaryExpression(self.expr(cond), self.expr(then_value), self.expr(else_value))
            case "call":
                return self._call(node)
            case "subscript":
                value = field(node, "value")
                indices = fields(node, "subscript")
                if value is None or len(indices) != 1 or indices[0].type == "slice":
                    raise self.unsupported(node, "slice or multi-index")
                return ArrayAccess(self.expr(value), self.expr(indices[0]))
            case "assignment":
                left, right = field(node, "left"), field(node, "right")
                if left is None or right is None or field(node, "type") is not None:
                    raise self.unsupported(node)
                return AssignmentExpression(self._target(left), "=", self.expr(right))
            case "augmented_assignment":
                left, right, op = self.child(node, "left"), self.child(node, "right"), self.child(node, "operator")
                return AssignmentExpression(self._target(left), self.text(op), self.expr(right))
            case _:
                raise self.unsupported(node)

    def _target(self, node: Node) -> Expr:
        if node.type not in ("identifier", "subscript"):
            raise self.unsupported(node, "assignment target")
        return self.expr(node)

    def _binary(self, node: Node) -> Expr:
        left, right, op_node = self.child(node, "left"), self.child(node, "right"), self.child(node, "operator")
        op = self.text(op_node)
        if op not in _BINARY_OPS:
            raise self.unsupported(node, f"operator {op}")
        return BinaryExpression(self.expr(left), op, self.expr(right))

    def _unary(self, node: Node) -> Expr:
        arg, op_node = self.child(node, "argument"), self.child(node, "operator")
        op = self.text(op_node)
        operand = self.expr(arg)
        if op == "-":
            return negate(operand)
        return UnaryExpression(op, operand, False)

    def _comparison(self, node: Node) -> Expr:
        """`a < b < c` becomes `a < b && b < c`."""
        operands: list[Expr] = []
        ops: list[str] = []
        pending: list[str] = []
        for c in node.children:
            if c.is_named:
                if pending:
                    ops.append(" ".join(pending))
                    pending = []
                operands.append(self.expr(c))
            else:
                pending.append(self.text(c))
        result: Expr | None = None
        for i, op in enumerate(ops):
            if op not in _COMPARE_OPS:
                raise self.unsupported(node, f"operator {op}")
            pair = BinaryExpression(operands[i], _COMPARE_OPS[op], operands[i + 1])
            result = pair if result is None else BinaryExpression(result, "&&", pair)
        if result is None:
            raise self.unsupported(node)
        return result

    def _call(self, node: Node) -> Expr:
        func, args_node = self.child(node, "function"), self.child(node, "arguments")
        if args_node.type != "argument_list":
            raise self.unsupported(node, "generator argument")
        arg_nodes = named(args_node)
        if any(a.type in ("keyword_argument", "list_splat", "dictionary_splat") for a in arg_nodes):
            raise self.unsupported(node, "keyword or splat arguments")
        args = [self.expr(a) for a in arg_nodes]
        name = self.text(func)
        if func.type == "attribute":
            obj, attr = field(func, "object"), field(func, "attribute")
            if obj is None or attr is None or self.text(obj) != "math" or self.text(attr) not in _MATH_FUNCS:
                raise self.unsupported(node, "method call")
            canonical, arity = _MATH_FUNCS[self.text(attr)]
        elif name in self.math_names and name in _MATH_FUNCS:
            canonical, arity = _MATH_FUNCS[name]
        elif name in _BUILTINS:
            canonical, arity = name, _BUILTINS[name]
        elif self.ctx.has_function(name):
            return CallExpression(name, args)
        else:
            raise self.unsupported(node, f"call to {name}")
        if len(args) != arity:
            raise self.unsupported(node, f"{name} with {len(args)} arguments")
        return CallExpression(canonical, args)


def _return_values(body: list[Stmt]) -> list[Expr]:
    """Values of return statements anywhere in body, in order."""
    out: list[Expr] = []
    for stmt in body:
        match stmt:
            case ReturnStatement(value=value) if value is not None:
                out.append(value)
            case ConditionalStatement(then_branch=then_branch, elif_branches=elifs, else_branch=else_branch):
                out.extend(_return_values(then_branch))
                for branch in elifs:
                    out.extend(_return_values(branch.body))
                out.extend(_return_values(else_branch or []))
            case LoopStatement(body=loop_body):
                out.extend(_return_values(loop_body))
    return out
