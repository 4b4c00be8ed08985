"""Base generator for C-like targets (Java, C).

Shared logic for brace-delimited statements, declarations and expressions.
Subclasses override hooks for arrays, printing, builtin calls and the
program shell.
"""

from __future__ import annotations

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
    FunctionDeclaration,
    Identifier,
    Literal,
    LoopStatement,
    NullLiteral,
    PrintStatement,
    RangeHeader,
    ReturnStatement,
    Stmt,
    TernaryExpression,
    UnaryExpression,
    Unsupported,
    VariableDeclaration,
)
from ..typemap import GENERIC_TYPE, array_of, infer_kind, map_type, spelling
from .util import Generator, escape_string, float_literal, is_atomic, negative_index

_PRECEDENCE = {
    "||": 1,
    "&&": 2,
    "|": 3,
    "^": 4,
    "&": 5,
    "==": 6,
    "!=": 6,
    "<": 7,
    ">": 7,
    "<=": 7,
    ">=": 7,
    "<<": 8,
    ">>": 8,
    "+": 9,
    "-": 9,
    "*": 10,
    "/": 10,
    "//": 10,
    "%": 10,
    "unary": 11,
    # rendered as calls
    "**": 100,
}


class CLikeGenerator(Generator):
    """Renders canonical statements for brace-delimited targets."""

    precedence = _PRECEDENCE
    const_keyword = "const"
    null_literal = "NULL"

    # --- Hooks for subclasses ---

    def _emit_array(self, stmt: ArrayDeclaration) -> None:
        raise NotImplementedError

    def _emit_print(self, stmt: PrintStatement) -> None:
        raise NotImplementedError

    def _emit_each(self, header: EachHeader, body: list[Stmt]) -> None:
        raise NotImplementedError

    def _signature(self, fn: FunctionDeclaration) -> str:
        raise NotImplementedError

    def _call(self, name: str, args: list[Expr]) -> str:
        raise NotImplementedError

    def _length(self, array: Expr) -> str:
        """Element count of an array expression."""
        raise NotImplementedError

    def _power(self, left: Expr, right: Expr) -> str:
        raise NotImplementedError

    def _floor_division(self, left: Expr, right: Expr) -> str:
        raise NotImplementedError

    def _string_equality(self, left: Expr, op: str, right: Expr) -> str:
        raise NotImplementedError

    def _initializer(self, typ: str, init: Expr) -> str:
        """Initializer text for a declaration of the given target type."""
        return self._expr(init)

    def _assign_value(self, target: Expr, value: Expr) -> str:
        return self._expr(value)

    def _needs_truth_test(self, e: Expr) -> bool:
        """e stands where a boolean is required but is not one."""
        return False

    def _condition(self, e: Expr) -> str:
        if self._needs_truth_test(e):
            return f"{self.paren(e, '!=', True)} != 0"
        return self._expr(e)

    # --- Types ---

    def target_type(self, source_type: str) -> str:
        return map_type(source_type, self.ctx.pair)

    def decl_type(self, declared: str, init: Expr | None) -> str:
        """Target type of a declaration; falls back to the initializer's kind."""
        generic = GENERIC_TYPE[self.language]
        if declared:
            typ = self.target_type(declared)
            if typ != generic or init is None:
                return typ
        if init is not None:
            inferred = spelling(infer_kind(init, self.ctx), self.language)
            if inferred:
                return inferred
        return generic

    # --- Statements ---

    def _emit_stmt(self, stmt: Stmt) -> None:
        match stmt:
            case VariableDeclaration(name=name, declared_type=declared, initializer=init, is_const=is_const):
                self.declare(name, declared)
                typ = self.decl_type(declared, init)
                prefix = f"{self.const_keyword} " if is_const else ""
                if init is None:
                    self._line(f"{prefix}{typ} {self.name(name)};")
                else:
                    self._line(f"{prefix}{typ} {self.name(name)} = {self._initializer(typ, init)};")
            case ArrayDeclaration(name=name, element_type=elem, dimensions=dims):
                self.declare(name, array_of(elem, len(dims)))
                self._emit_array(stmt)
            case PrintStatement():
                self._emit_print(stmt)
            case Comment():
                self._emit_comment(stmt)
            case ConditionalStatement(
                condition=cond, then_branch=then_branch, elif_branches=elifs, else_branch=else_branch
            ):
                self._line(f"if ({self._condition(cond)}) {{")
                self._emit_body(then_branch)
                for branch in elifs:
                    self._line(f"}} else if ({self._condition(branch.condition)}) {{")
                    self._emit_body(branch.body)
                if else_branch is not None:
                    self._line("} else {")
                    self._emit_body(else_branch)
                self._line("}")
            case LoopStatement():
                self._emit_loop(stmt)
            case ExpressionStatement(expression=e):
                self._line(f"{self._statement_expr(e)};")
            case FunctionDeclaration():
                self._emit_function(stmt)
            case ReturnStatement(value=value):
                if value is not None:
                    self._line(f"return {self._expr(value)};")
                else:
                    self._line("return;")
            case BreakStatement():
                self._line("break;")
            case ContinueStatement():
                self._line("continue;")
            case Unsupported(text=text):
                self._emit_unsupported(text)
            case _:
                raise NotImplementedError(f"no {self.language} rendering for {type(stmt).__name__}")

    def _emit_function(self, fn: FunctionDeclaration) -> None:
        for p in fn.parameters:
            self.declare(p.name, array_of(p.declared_type, p.dimensions))
        self._line(f"{self._signature(fn)} {{")
        self._emit_body(fn.body)
        self._line("}")

    def _emit_loop(self, stmt: LoopStatement) -> None:
        header = stmt.header
        match stmt.kind, header:
            case "for_range", RangeHeader():
                self.declare(header.variable, header.var_type)
                self._line(f"for ({self._range(header)}) {{")
            case "for_each", EachHeader():
                self._emit_each(header, stmt.body)
                return
            case "for_classic", ClassicHeader(init=init, condition=cond, update=update):
                init_text = self._inline_stmt(init) if init is not None else ""
                cond_text = self._condition(cond) if cond is not None else ""
                update_text = ", ".join(self._statement_expr(u) for u in update)
                self._line(f"for ({init_text}; {cond_text}; {update_text}) {{")
            case "while", ConditionHeader(condition=cond):
                self._line(f"while ({self._condition(cond)}) {{")
            case "do_while", ConditionHeader(condition=cond):
                self._line("do {")
                self._emit_body(stmt.body)
                self._line(f"}} while ({self._condition(cond)});")
                return
            case _:
                raise UnsupportedConstruct("loop", f"{stmt.kind} with {type(header).__name__}")
        self._emit_body(stmt.body)
        self._line("}")

    def _range(self, header: RangeHeader) -> str:
        var = self.name(header.variable)
        init = f"{var} = {self._expr(header.start)}"
        if header.declares:
            init = f"{self.decl_type(header.var_type, header.start)} {init}"
        if header.step > 0:
            cmp = "<=" if header.inclusive else "<"
        else:
            cmp = ">=" if header.inclusive else ">"
        match header.step:
            case 1:
                update = f"{var}++"
            case -1:
                update = f"{var}--"
            case step if step > 0:
                update = f"{var} += {step}"
            case step:
                update = f"{var} -= {-step}"
        return f"{init}; {var} {cmp} {self._expr(header.stop)}; {update}"

    def _inline_stmt(self, stmt: Stmt) -> str:
        """Render a statement on one line without its semicolon (for-loop initializers)."""
        saved_lines, saved_indent = self.lines, self.indent
        self.lines, self.indent = [], 0
        try:
            self._emit_stmt(stmt)
            rendered = self.lines
        finally:
            self.lines, self.indent = saved_lines, saved_indent
        if len(rendered) != 1:
            raise UnsupportedConstruct("loop initializer", type(stmt).__name__)
        return rendered[0].rstrip(";")

    def _statement_expr(self, e: Expr) -> str:
        match e:
            case AssignmentExpression(target=target, operator="**=", value=value):
                return f"{self._expr(target)} = {self._power(target, value)}"
            case AssignmentExpression(target=target, operator="//=", value=value):
                return f"{self._expr(target)} /= {self._expr(value)}"
            case AssignmentExpression(target=target, operator="=", value=value):
                return f"{self._expr(target)} = {self._assign_value(target, value)}"
            case _:
                return self._expr(e)

    # --- Expressions ---

    def _expr(self, e: Expr) -> str:
        match e:
            case Identifier(name=name):
                return self.name(name)
            case Literal(value=value, literal_kind=kind):
                return self._literal(value, kind)
            case NullLiteral():
                return self.null_literal
            case ArrayLiteral(elements=elements):
                return "{" + ", ".join(self._expr(x) for x in elements) + "}"
            case BinaryExpression(left=left, operator=op, right=right):
                return self._binary(left, op, right)
            case UnaryExpression(operator="++" | "--" as op, operand=operand, postfix=postfix):
                operand_text = self.paren(operand, "unary", False)
                return f"{operand_text}{op}" if postfix else f"{op}{operand_text}"
            case UnaryExpression(operator="!", operand=operand) if self._needs_truth_test(operand):
                return f"{self.paren(operand, '==', True)} == 0"
            case UnaryExpression(operator=op, operand=operand):
                operand_text = self.paren(operand, "unary", False)
                if op in ("-", "+") and operand_text.startswith(op):
                    operand_text = f"({operand_text})"
                return f"{op}{operand_text}"
            case TernaryExpression(condition=cond, then_value=then_value, else_value=else_value):
                test = self._condition(cond) if self._needs_truth_test(cond) else self._ternary_part(cond)
                return f"{test} ? {self._ternary_part(then_value)} : {self._ternary_part(else_value)}"
            case CallExpression(name="len", arguments=[array]):
                return self._length(array)
            case CallExpression(name=name, arguments=args):
                return self._call(name, args)
            case ArrayAccess(array=array, index=index):
                base = self._expr(array) if is_atomic(array) else f"({self._expr(array)})"
                k = negative_index(index)
                if k is not None:
                    return f"{base}[{self._negative_index(array, k)}]"
                return f"{base}[{self._expr(index)}]"
            case AssignmentExpression(target=target, operator=op, value=value):
                op = "/=" if op == "//=" else op
                return f"{self._expr(target)} {op} {self._expr(value)}"
            case _:
                raise NotImplementedError(f"no {self.language} rendering for {type(e).__name__}")

    def _negative_index(self, array: Expr, k: int) -> str:
        return f"{self._length(array)} - {k}"

    def _literal(self, value: int | float | bool | str, kind: str) -> str:
        match kind:
            case "bool":
                return "true" if value else "false"
            case "int":
                return str(int(value))
            case "float":
                assert isinstance(value, (int, float))
                return float_literal(value)
            case "char":
                return "'" + self.escape(str(value), "'") + "'"
            case _:
                return f'"{self.escape(str(value))}"'

    def escape(self, value: str, quote: str = '"') -> str:
        return escape_string(value, quote)

    def _ternary_part(self, e: Expr) -> str:
        text = self._expr(e)
        if isinstance(e, (TernaryExpression, AssignmentExpression)):
            return f"({text})"
        return text

    def _binary(self, left: Expr, op: str, right: Expr) -> str:
        if isinstance(left, ArrayLiteral) or isinstance(right, ArrayLiteral):
            raise UnsupportedConstruct("expression", f"{op} on a list literal")
        match op:
            case "**":
                return self._power(left, right)
            case "/" if self.integral(left) and self.integral(right):
                return f"(double) {self.paren(left, 'unary', True)} / {self.paren(right, op, False)}"
            case "//" if not (self.integral(left) and self.integral(right)):
                return self._floor_division(left, right)
            case "//":
                return f"{self.paren(left, '//', True)} / {self.paren(right, '//', False)}"
            case "==" | "!=" if self.kind(left) == "string" and self.kind(right) == "string":
                return self._string_equality(left, op, right)
            case "&&" | "||":
                return f"{self._logical_operand(left, op, True)} {op} {self._logical_operand(right, op, False)}"
        return f"{self.paren(left, op, True)} {op} {self.paren(right, op, False)}"

    def _logical_operand(self, e: Expr, op: str, is_left: bool) -> str:
        if self._needs_truth_test(e):
            # comparisons bind tighter than && and ||
            return self._condition(e)
        return self.paren(e, op, is_left)

    def op_precedence(self, e: Expr) -> int:
        if isinstance(e, UnaryExpression) and e.operator == "!" and self._needs_truth_test(e.operand):
            return self.precedence["=="]
        return super().op_precedence(e)

    def cast(self, typ: str, e: Expr) -> str:
        return f"({typ}) {self.paren(e, 'unary', False)}"
