"""Python generator: canonical AST -> Python script.

Output is a bare script: `import math` when needed, helper functions, then
the entry statements at top level.

Known deficiencies:
- `continue` inside a C-style for loop skips the update, since the loop
  becomes `while` with the update at the end of the body.
- Truncating integer division of negative operands becomes floor division.
"""

from __future__ import annotations

from ..context import TranslationContext
from ..errors import UnsupportedConstruct
from ..ir import (
    ArrayAccess,
    ArrayDeclaration,
    ArrayLiteral,
    AssignmentExpression,
    BinaryExpression,
    BreakStatement,
    CallExpression,
    ClassicHeader,
    Comment,
    ConditionalStatement,
    ConditionHeader,
    ContinueStatement,
    EachHeader,
    Expr,
    ExpressionStatement,
    FormatSpec,
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
    Unsupported,
    VariableDeclaration,
)
from ..typemap import array_of, kind_of, looks_boolean, map_type
from .util import (
    PYTHON_RESERVED,
    Generator,
    escape_python,
    float_literal,
    is_atomic,
    zero_literal,
)

_PRECEDENCE = {
    "||": 1,
    "&&": 2,
    "!": 3,
    "==": 4,
    "!=": 4,
    "<": 4,
    ">": 4,
    "<=": 4,
    ">=": 4,
    "|": 5,
    "^": 6,
    "&": 7,
    "<<": 8,
    ">>": 8,
    "+": 9,
    "-": 9,
    "*": 10,
    "/": 10,
    "//": 10,
    "%": 10,
    "unary": 11,
    "**": 12,
}

_COMPARISONS = frozenset({"==", "!=", "<", ">", "<=", ">="})

_OPERATORS = {"&&": "and", "||": "or"}

_NUMERIC_CONVERSIONS = frozenset({"d", "f", "F", "e", "E", "g", "G", "x", "X", "o"})


def _string_literal(value: str) -> str:
    return f'"{escape_python(value)}"'


def format_spec(spec: FormatSpec | None, kind: str) -> str:
    """Python format spec for a printf-style FormatSpec, "" when the default applies."""
    if spec is None:
        return ""
    conversion = spec.conversion
    if not spec.flags and spec.width is None and spec.precision is None:
        if conversion in (None, "s") or (conversion, kind) in (("d", "int"), ("c", "char")):
            return ""
    textual =kind in ("string", "char") or conversion in ("s",) or (conversion == "c" and kind != "int")
    out = ""
    if "-" in spec.flags:
        out += "<"
    elif spec.width is not None and textual:
        out += ">"
    for flag in ("+", " ", "#"):
        if flag in spec.flags:
            out += flag
            break
    if "0" in spec.flags and "-" not in spec.flags and not textual:
        out += "0"
    if spec.width is not None:
        out += str(spec.width)
    if spec.precision is not None:
        out += f".{spec.precision}"
    if conversion in _NUMERIC_CONVERSIONS:
        out += conversion
    elif conversion == "c" and kind == "int":
        out += "c"
    return out


class PythonGenerator(Generator):
    """Renders canonical statements as Python source."""

    language = "python"
    comment_prefix = "#"
    reserved = PYTHON_RESERVED
    precedence = _PRECEDENCE

    def program(self, body: list[str], functions: list[str], ctx: TranslationContext) -> str:
        out: list[str] = []
        if ctx.requires("math"):
            out.append("import math")
        for fn in functions:
            if out:
                out.extend(["", ""])
            out.append(fn)
        if body:
            if out:
                out.extend(["", ""] if functions else [""])
            out.extend(body)
        return "\n".join(out) + "\n"

    # Statements

    def _emit_stmt(self, stmt: Stmt) -> None:
        match stmt:
            case VariableDeclaration(name=name, declared_type=typ, initializer=init):
                self.declare(name, typ)
                if init is None:
                    zero = zero_literal(kind_of(typ))
                    value = self._expr(zero) if zero is not None else "None"
                else:
                    value = self._value(name, init)
                self._line(f"{self.name(name)} = {value}")
            case ArrayDeclaration(name=name, element_type=elem, dimensions=dims, initializer=init):
                self.declare(name, array_of(elem, len(dims)))
                if init is not None:
                    self._line(f"{self.name(name)} = {self._expr(init)}")
                else:
                    self._line(f"{self.name(name)} = {self._sized_list(elem, dims)}")
            case PrintStatement():
                self._emit_print(stmt)
            case Comment():
                self._emit_comment(stmt)
            case ConditionalStatement(
                condition=cond, then_branch=then_branch, elif_branches=elifs, else_branch=else_branch
            ):
                self._line(f"if {self._expr(cond)}:")
                self._emit_suite(then_branch)
                for branch in elifs:
                    self._line(f"elif {self._expr(branch.condition)}:")
                    self._emit_suite(branch.body)
                if else_branch is not None:
                    self._line("else:")
                    self._emit_suite(else_branch)
            case LoopStatement():
                self._emit_loop(stmt)
            case ExpressionStatement(expression=e):
                self._line(self._statement_expr(e))
            case FunctionDeclaration():
                self._emit_function(stmt)
            case ReturnStatement(value=value):
                if value is not None:
                    self._line(f"return {self._expr(value)}")
                else:
                    self._line("return")
            case BreakStatement():
                self._line("break")
            case ContinueStatement():
                self._line("continue")
            case Unsupported(text=text):
                self._emit_unsupported(text)
            case _:
                raise NotImplementedError(f"no Python rendering for {type(stmt).__name__}")

    def _emit_suite(self, body: list[Stmt]) -> None:
        if not any(not isinstance(s, Comment) for s in body):
            self.indent += 1
            for s in body:
                self._emit_stmt(s)
            self._line("pass")
            self.indent -= 1
            return
        self._emit_body(body)

    def _emit_function(self, fn: FunctionDeclaration) -> None:
        params = ", ".join(self._param(p) for p in fn.parameters)
        ret = self._annotation(fn.return_type)
        arrow = f" -> {ret}" if ret else ""
        self._line(f"def {self.name(fn.name)}({params}){arrow}:")
        for p in fn.parameters:
            self.declare(p.name, array_of(p.declared_type, p.dimensions))
        self._emit_suite(fn.body)

    def _param(self, p: Parameter) -> str:
        typ = self._annotation(array_of(p.declared_type, p.dimensions))
        return f"{self.name(p.name)}: {typ}" if typ else self.name(p.name)

    def _annotation(self, source_type: str) -> str:
        if not source_type:
            return ""
        typ = map_type(source_type, self.ctx.pair)
        return "" if typ == "object" else typ

    def _emit_loop(self, stmt: LoopStatement) -> None:
        header = stmt.header
        match stmt.kind, header:
            case "for_range", RangeHeader():
                self.declare(header.variable, header.var_type)
                self._line(f"for {self.name(header.variable)} in {self._range(header)}:")
                self._emit_suite(stmt.body)
            case "for_each", EachHeader(variable=var, element_type=elem, iterable=iterable):
                self.declare(var, elem)
                self._line(f"for {self.name(var)} in {self._expr(iterable)}:")
                self._emit_suite(stmt.body)
            case "for_classic", ClassicHeader(init=init, condition=cond, update=update):
                if init is not None:
                    self._emit_stmt(init)
                self._line(f"while {self._expr(cond) if cond is not None else 'True'}:")
                if not stmt.body and not update:
                    self._emit_suite([])
                    return
                self._emit_body(stmt.body)
                self.indent += 1
                for u in update:
                    self._line(self._statement_expr(u))
                self.indent -= 1
            case "while", ConditionHeader(condition=cond):
                self._line(f"while {self._expr(cond)}:")
                self._emit_suite(stmt.body)
            case "do_while", ConditionHeader(condition=cond):
                self._line("while True:")
                self._emit_body(stmt.body)
                self.indent += 1
                self._line(f"if {self._expr(UnaryExpression('!', cond, False))}:")
                self.indent += 1
                self._line("break")
                self.indent -= 2
            case _:
                raise UnsupportedConstruct("loop", f"{stmt.kind} with {type(header).__name__}")

    def _range(self, header: RangeHeader) -> str:
        stop = header.stop
        if header.inclusive:
            delta = 1 if header.step > 0 else -1
            if isinstance(stop, Literal) and stop.literal_kind == "int":
                assert isinstance(stop.value, int)
                stop = Literal(stop.value + delta, "int")
            else:
                stop = BinaryExpression(stop, "+" if delta > 0 else "-", Literal(1, "int"))
        start = header.start
        if header.step == 1 and isinstance(start, Literal) and start.value == 0 and start.literal_kind == "int":
            return f"range({self._expr(stop)})"
        if header.step == 1:
            return f"range({self._expr(start)}, {self._expr(stop)})"
        return f"range({self._expr(start)}, {self._expr(stop)}, {header.step})"

    def _sized_list(self, elem: str, dims: list[Expr | None]) -> str:
        if any(d is None for d in dims):
            raise UnsupportedConstruct("array", "unsized array without initializer")
        zero = zero_literal(kind_of(elem))
        text = f"[{self._expr(zero) if zero is not None else 'None'}]"
        sizes = [d for d in dims if d is not None]
        text = f"{text} * {self.paren(sizes[-1], '*', False)}"
        for size in reversed(sizes[:-1]):
            text = f"[{text} for _ in range({self._expr(size)})]"
        return text

    def _statement_expr(self, e: Expr) -> str:
        match e:
            case AssignmentExpression(target=target, operator=op, value=value):
                if op == "/=" and self.integral(target) and self.integral(value):
                    op = "//="
                if op in ("&&=", "||="):
                    raise UnsupportedConstruct("assignment", op)
                if isinstance(target, Identifier) and op == "=":
                    return f"{self._expr(target)} = {self._value(target.name, value)}"
                return f"{self._expr(target)} {op} {self._expr(value)}"
            case UnaryExpression(operator="++" | "--" as op, operand=operand):
                return f"{self._expr(operand)} {op[0]}= 1"
            case _:
                return self._expr(e)

    def _value(self, name: str, value: Expr) -> str:
        """Initializer text, applying the boolean-name heuristic to 0/1 of flag-like int variables."""
        if (
            not self.options.exact_types
            and isinstance(value, Literal)
            and value.literal_kind == "int"
            and value.value in (0, 1)
            and kind_of(self.ctx.get_variable_type(name)) == "int"
            and looks_boolean(name)
        ):
            return "True" if value.value == 1 else "False"
        return self._expr(value)

    # Printing

    def _emit_print(self, stmt: PrintStatement) -> None:
        end = "" if stmt.newline else 'end=""'
        fragments = stmt.fragments
        args = [self._expr(a) for a in stmt.arguments]
        if not fragments:
            self._line(f"print({end})")
            return
        tail = f", {end}" if end else ""
        match fragments:
            case [Placeholder(index=i, spec=spec)] if not format_spec(spec, self.kind(stmt.arguments[i])):
                self._line(f"print({args[i]}{tail})")
                return
            case _ if not any(isinstance(f, Placeholder) for f in fragments):
                text = "".join(f.text for f in fragments if isinstance(f, TextFragment))
                self._line(f"print({_string_literal(text)}{tail})")
                return
        if any(_breaks_fstring(args[f.index]) for f in fragments if isinstance(f, Placeholder)):
            self._line(f'print({self._print_parts(stmt, args)}, sep=""{tail})')
            return
        parts: list[str] = []
        for frag in fragments:
            if isinstance(frag, TextFragment):
                parts.append(escape_python(frag.text).replace("{", "{{").replace("}", "}}"))
            else:
                spec = format_spec(frag.spec, self.kind(stmt.arguments[frag.index]))
                parts.append("{" + args[frag.index] + (f":{spec}" if spec else "") + "}")
        self._line(f'print(f"{"".join(parts)}"{tail})')

    def _print_parts(self, stmt: PrintStatement, args: list[str]) -> str:
        parts: list[str] = []
        for frag in stmt.fragments:
            if isinstance(frag, TextFragment):
                parts.append(_string_literal(frag.text))
                continue
            spec = format_spec(frag.spec, self.kind(stmt.arguments[frag.index]))
            if spec:
                parts.append(f"format({args[frag.index]}, {_string_literal(spec)})")
            else:
                parts.append(args[frag.index])
        return ", ".join(parts)

    # Expressions

    def op_precedence(self, e: Expr) -> int:
        if isinstance(e, UnaryExpression) and e.operator == "!":
            return _PRECEDENCE["!"]
        if isinstance(e, Literal) and not is_atomic(e):
            return _PRECEDENCE["unary"]
        return super().op_precedence(e)

    def needs_parens(self, e: Expr, parent_op: str, is_left: bool) -> bool:
        # a < b == c would chain
        if isinstance(e, BinaryExpression) and e.operator in _COMPARISONS and parent_op in _COMPARISONS:
            return True
        return super().needs_parens(e, parent_op, is_left)

    def _expr(self, e: Expr) -> str:
        match e:
            case Identifier(name=name):
                return self.name(name)
            case Literal(value=value, literal_kind=kind):
                return self._literal(value, kind)
            case NullLiteral():
                return "None"
            case ArrayLiteral(elements=elements):
                return "[" + ", ".join(self._expr(x) for x in elements) + "]"
            case BinaryExpression(left=left, operator=op, right=right):
                return self._binary(left, op, right)
            case UnaryExpression(operator="!", operand=operand):
                return f"not {self.paren(operand, '!', False)}"
            case UnaryExpression(operator="++" | "--" as op):
                raise UnsupportedConstruct("expression", f"{op} inside an expression")
            case UnaryExpression(operator=op, operand=operand):
                return f"{op}{self.paren(operand, 'unary', False)}"
            case TernaryExpression(condition=cond, then_value=then_value, else_value=else_value):
                return f"{self._ternary_part(then_value)} if {self._ternary_part(cond)} else {self._ternary_part(else_value)}"
            case CallExpression(name=name, arguments=args):
                return self._call(name, args)
            case ArrayAccess(array=array, index=index):
                base = self._expr(array) if is_atomic(array) else f"({self._expr(array)})"
                return f"{base}[{self._expr(index)}]"
            case AssignmentExpression(target=Identifier(name=name), operator="=", value=value):
                return f"({self.name(name)} := {self._expr(value)})"
            case AssignmentExpression(operator=op):
                raise UnsupportedConstruct("expression", f"assignment {op} inside an expression")
            case _:
                raise NotImplementedError(f"no Python rendering for {type(e).__name__}")

    def _literal(self, value: int | float | bool | str, kind: str) -> str:
        match kind:
            case "bool":
                return "True" if value else "False"
            case "int":
                return str(int(value))
            case "float":
                assert isinstance(value, (int, float))
                return float_literal(value)
            case _:
                return _string_literal(str(value))

    def _ternary_part(self, e: Expr) -> str:
        text = self._expr(e)
        if isinstance(e, (TernaryExpression, AssignmentExpression)):
            return f"({text})"
        return text

    def _binary(self, left: Expr, op: str, right: Expr) -> str:
        if op == "+":
            lk, rk = self.kind(left), self.kind(right)
            if lk == "string" and rk not in ("string", "char", "unknown"):
                return f"{self.paren(left, op, True)} + str({self._expr(right)})"
            if rk == "string" and lk not in ("string", "char", "unknown"):
                return f"str({self._expr(left)}) + {self.paren(right, op, False)}"
        text_op = _OPERATORS.get(op, op)
        return f"{self.paren(left, op, True)} {text_op} {self.paren(right, op, False)}"

    def _call(self, name: str, args: list[Expr]) -> str:
        rendered = ", ".join(self._expr(a) for a in args)
        if name == "sqrt":
            self.ctx.require("math")
            return f"math.sqrt({rendered})"
        if name in ("len", "abs", "pow", "min", "max", "str", "int", "float"):
            return f"{name}({rendered})"
        return f"{self.name(name)}({rendered})"


def _breaks_fstring(text: str) -> bool:
    """Expression text that cannot sit inside a double-quoted f-string before 3.12."""
    return '"' in text or "\\" in text or "{" in text or "}" in text
