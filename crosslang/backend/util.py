"""Shared utilities for target generators."""

from __future__ import annotations

from ..context import TranslateOptions, TranslationContext
from ..errors import UnsupportedConstruct
from ..ir import (
    ArrayAccess,
    ArrayLiteral,
    AssignmentExpression,
    BinaryExpression,
    CallExpression,
    Comment,
    Expr,
    FormatSpec,
    FunctionDeclaration,
    Identifier,
    Literal,
    NullLiteral,
    Stmt,
    TernaryExpression,
    UnaryExpression,
)
from ..typemap import infer_kind

PYTHON_RESERVED = frozenset(
    {
        "False",
        "None",
        "True",
        "and",
        "as",
        "assert",
        "async",
        "await",
        "class",
        "def",
        "del",
        "elif",
        "except",
        "finally",
        "from",
        "global",
        "import",
        "in",
        "is",
        "lambda",
        "nonlocal",
        "not",
        "or",
        "pass",
        "raise",
        "try",
        "with",
        "yield",
        # builtins the generated code calls
        "abs",
        "float",
        "int",
        "len",
        "list",
        "math",
        "max",
        "min",
        "pow",
        "print",
        "range",
        "str",
    }
)

JAVA_RESERVED = frozenset(
    {
        "abstract",
        "assert",
        "boolean",
        "break",
        "byte",
        "case",
        "catch",
        "char",
        "class",
        "const",
        "continue",
        "default",
        "do",
        "double",
        "else",
        "enum",
        "extends",
        "final",
        "finally",
        "float",
        "for",
        "goto",
        "if",
        "implements",
        "import",
        "instanceof",
        "int",
        "interface",
        "long",
        "native",
        "new",
        "package",
        "private",
        "protected",
        "public",
        "return",
        "short",
        "static",
        "strictfp",
        "super",
        "switch",
        "synchronized",
        "this",
        "throw",
        "throws",
        "transient",
        "try",
        "void",
        "volatile",
        "while",
        "true",
        "false",
        "null",
        "var",
        "_",
        # classes the generated code refers to
        "Arrays",
        "Math",
        "String",
        "System",
    }
)

C_RESERVED = frozenset(
    {
        "auto",
        "break",
        "case",
        "char",
        "const",
        "continue",
        "default",
        "do",
        "double",
        "else",
        "enum",
        "extern",
        "float",
        "for",
        "goto",
        "if",
        "inline",
        "int",
        "long",
        "register",
        "restrict",
        "return",
        "short",
        "signed",
        "sizeof",
        "static",
        "struct",
        "switch",
        "typedef",
        "union",
        "unsigned",
        "void",
        "volatile",
        "while",
        "_Bool",
        "bool",
        "true",
        "false",
        "NULL",
        # library functions the generated code calls
        "abs",
        "atof",
        "atoi",
        "fabs",
        "floor",
        "pow",
        "printf",
        "sqrt",
        "strcmp",
        "strlen",
    }
)


def escape_string(value: str, quote: str = '"') -> str:
    """Escape a string for a C, Java or Python literal (without quotes)."""
    out: list[str] = []
    for ch in value:
        match ch:
            case "\\":
                out.append("\\\\")
            case "\n":
                out.append("\\n")
            case "\t":
                out.append("\\t")
            case "\r":
                out.append("\\r")
            case _ if ch == quote:
                out.append("\\" + ch)
            case _ if ord(ch) < 0x20 or ord(ch) == 0x7F:
                out.append(f"\\{ord(ch):03o}")
            case _:
                out.append(ch)
    return "".join(out)


def escape_java(value: str, quote: str = '"') -> str:
    """Java has no \\x or \\v escapes; control characters use \\u."""
    out: list[str] = []
    for ch in value:
        if ch in "\\\n\t\r" or ch == quote:
            out.append(escape_string(ch, quote))
        elif ord(ch) < 0x20 or ord(ch) == 0x7F:
            out.append(f"\\u{ord(ch):04x}")
        else:
            out.append(ch)
    return "".join(out)


def escape_python(value: str, quote: str = '"') -> str:
    out: list[str] = []
    for ch in value:
        if ch in "\\\n\t\r" or ch == quote:
            out.append(escape_string(ch, quote))
        elif ord(ch) < 0x20 or ord(ch) == 0x7F:
            out.append(f"\\x{ord(ch):02x}")
        else:
            out.append(ch)
    return "".join(out)


def float_literal(value: float) -> str:
    text = repr(float(value))
    if text in ("inf", "-inf", "nan"):
        raise UnsupportedConstruct("float literal", text)
    return text


def printf_spec(spec: FormatSpec | None, conversion: str) -> str:
    """`%[flags][width][.precision]conversion` for printf-family targets."""
    if spec is None:
        return "%" + conversion
    out = "%" + spec.flags
    if spec.width is not None:
        out += str(spec.width)
    if spec.precision is not None:
        out += f".{spec.precision}"
    return out + conversion


def is_atomic(e: Expr) -> bool:
    """Renders without any operator that could bind to a neighbour."""
    match e:
        case Identifier() | NullLiteral() | CallExpression() | ArrayAccess() | ArrayLiteral():
            return True
        case Literal(value=value, literal_kind=kind):
            return not (kind in ("int", "float") and isinstance(value, (int, float)) and value < 0)
        case _:
            return False


def zero_literal(kind: str) -> Expr | None:
    match kind:
        case "int":
            return Literal(0, "int")
        case "float":
            return Literal(0.0, "float")
        case "bool":
            return Literal(False, "bool")
        case "string":
            return Literal("", "string")
        case "char":
            return Literal("\0", "char")
        case _:
            return None


def negative_index(index: Expr) -> int | None:
    """k for a literal index -k."""
    if isinstance(index, Literal) and index.literal_kind == "int":
        value = index.value
        if isinstance(value, int) and not isinstance(value, bool) and value < 0:
            return -value
    return None


def comment_lines(text: str) -> list[str]:
    return text.split("\n") if text else [""]


class Generator:
    """Base class for target generators with indentation tracking.

    generate() renders one canonical statement at a given depth; expr()
    renders one expression. Subclasses implement the per-node rules. Side
    effects on the Context are limited to include/import flags, bindings for
    names first seen while rendering, and warnings about output that may
    print differently from the source.
    """

    language = ""
    comment_prefix = "//"
    reserved: frozenset[str] = frozenset()
    precedence: dict[str, int] = {}

    def __init__(self, options: TranslateOptions | None = None) -> None:
        self.options = options or TranslateOptions()
        self.indent = 0
        self.lines: list[str] = []
        self.ctx = TranslationContext("", self.language, self.options)

    def generate(self, node: Stmt, ctx: TranslationContext, depth: int = 0) -> str:
        """Render one statement (and its children) at depth."""
        self.ctx = ctx
        self.indent = depth
        self.lines = []
        self._emit_stmt(node)
        return "\n".join(self.lines)

    def expr(self, e: Expr, ctx: TranslationContext) -> str:
        self.ctx = ctx
        return self._expr(e)

    def function(self, fn: FunctionDeclaration, ctx: TranslationContext, depth: int) -> str:
        """Render a helper function, binding its parameters while its body renders."""
        self.ctx = ctx
        self.indent = depth
        self.lines = []
        ctx.push_scope(fn.name)
        try:
            self._emit_function(fn)
        finally:
            ctx.pop_scope()
        return "\n".join(self.lines)

    def program(self, body: list[str], functions: list[str], ctx: TranslationContext) -> str:
        """Wrap rendered statements in the target's program shell."""
        raise NotImplementedError

    # Depth of entry statements and helper functions inside the shell
    body_depth = 0
    function_depth = 0

    def comment(self, text: str, depth: int) -> str:
        pad = self.options.indent * depth
        return "\n".join(
            f"{pad}{self.comment_prefix} {line}".rstrip() for line in comment_lines(text)
        )

    def comment_out(self, text: str, depth: int) -> str:
        """Original source rendered as a comment, for nodes that could not be translated."""
        return self.comment(text, depth)

    def inline_comment(self, text: str) -> str:
        return f"  {self.comment_prefix} {' '.join(text.split())}"

    def _line(self, text: str = "") -> None:
        if text:
            self.lines.append(self.options.indent * self.indent + text)
        else:
            self.lines.append("")

    def _emit_stmt(self, stmt: Stmt) -> None:
        raise NotImplementedError

    def _emit_function(self, fn: FunctionDeclaration) -> None:
        raise NotImplementedError

    def _expr(self, e: Expr) -> str:
        raise NotImplementedError

    def _emit_comment(self, stmt: Comment) -> None:
        if stmt.is_inline and self.lines:
            self.lines[-1] += self.inline_comment(stmt.text)
            return
        for line in comment_lines(stmt.text):
            self._line(f"{self.comment_prefix} {line}".rstrip())

    def _emit_body(self, body: list[Stmt]) -> None:
        self.indent += 1
        for i, s in enumerate(body):
            if i and s.pos is not None and s.pos.blank_before:
                self._line()
            self._emit_stmt(s)
        self.indent -= 1

    def _emit_unsupported(self, text: str) -> None:
        for line in comment_lines(text):
            self._line(f"{self.comment_prefix} {line}".rstrip())

    # Names and kinds

    def name(self, name: str) -> str:
        """Rename identifiers that collide with target keywords or builtins."""
        if name in self.reserved:
            return name + "_"
        return name

    def kind(self, e: Expr) -> str:
        return infer_kind(e, self.ctx)

    def integral(self, e: Expr) -> bool:
        return self.kind(e) in ("int", "char", "bool")

    def declare(self, name: str, typ: str) -> None:
        """Bind a name first seen while rendering (function locals, loop variables)."""
        self.ctx.add_variable(name, typ)

    # Precedence

    def op_precedence(self, e: Expr) -> int:
        """Binding strength of the outermost operator of e; atoms bind tightest."""
        match e:
            case BinaryExpression(operator=op):
                return self.precedence.get(op, 0)
            case UnaryExpression(postfix=False):
                return self.precedence.get("unary", 100)
            case TernaryExpression() | AssignmentExpression():
                return 0
            case _:
                return 100

    def paren(self, e: Expr, parent_op: str, is_left: bool) -> str:
        """Render e as an operand of parent_op, adding parentheses where needed."""
        text = self._expr(e)
        if self.needs_parens(e, parent_op, is_left):
            return f"({text})"
        return text

    def needs_parens(self, e: Expr, parent_op: str, is_left: bool) -> bool:
        child = self.op_precedence(e)
        parent = self.precedence.get(parent_op, 0)
        if child < parent:
            return True
        if child == parent and isinstance(e, BinaryExpression):
            # ** groups right to left
            return is_left if parent_op == "**" else not is_left
        return False
