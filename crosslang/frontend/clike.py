"""Shared parsers for C-like sources (Java, C).

Both grammars agree on statement shapes (if/for/while/do, expression
statements) and most expressions. Subclasses name the node types and
fields where the grammars differ, and supply declarations, prints and
calls.
"""

from __future__ import annotations

from tree_sitter import Node

from ..context import TranslationContext
from ..ir import (
    ArrayAccess,
    AssignmentExpression,
    BinaryExpression,
    BreakStatement,
    ClassicHeader,
    ConditionHeader,
    ConditionalStatement,
    ContinueStatement,
    ElifBranch,
    Expr,
    ExpressionStatement,
    Identifier,
    Literal,
    LoopStatement,
    NullLiteral,
    RangeHeader,
    ReturnStatement,
    Stmt,
    TernaryExpression,
    UnaryExpression,
    Unsupported,
    VariableDeclaration,
)
from ..typemap import infer_kind
from .base import Frontend, ParseResult, SourceParser, negate
from .native import field, fields, named, operator_text, strip_parens

_BINARY_OPS = frozenset(
    {"+", "-", "*", "/", "%", "==", "!=", "<", "<=", ">", ">=", "&&", "||", "&", "|", "^", "<<", ">>"}
)

_INTEGRAL = ("int", "char")


class CLikeFrontend(Frontend):
    """Expression conversion common to Java and C."""

    ternary_type = "conditional_expression"
    subscript_type = "subscript_expression"
    subscript_array_field = "argument"
    unary_operand_field = "argument"
    char_literal_type = "char_literal"
    for_init_field = "initializer"
    null_types: frozenset[str] = frozenset({"null"})

    def expr(self, node: Node) -> Expr:
        t = node.type
        if t == "identifier":
            return Identifier(self.text(node))
        if t == "parenthesized_expression":
            inner = named(node)
            if len(inner) != 1:
                raise self.unsupported(node)
            return self.expr(inner[0])
        if t == "true":
            return Literal(True, "bool")
        if t == "false":
            return Literal(False, "bool")
        if t in self.null_types:
            return NullLiteral()
        if t == self.char_literal_type:
            return Literal(self.decode_char(node), "char")
        if t == "binary_expression":
            return self.binary(node)
        if t == "unary_expression":
            return self.unary(node)
        if t == "update_expression":
            return self.update(node)
        if t == "assignment_expression":
            left, right = self.child(node, "left"), self.child(node, "right")
            return AssignmentExpression(self.expr(left), operator_text(node, self.source), self.expr(right))
        if t == self.ternary_type:
            cond = field(node, "condition")
            then_value = field(node, "consequence")
            else_value = field(node, "alternative")
            if cond is None or then_value is None or else_value is None:
                raise self.unsupported(node)
            return TernaryExpression(self.expr(cond), self.expr(then_value), self.expr(else_value))
        if t == self.subscript_type:
            array, index = field(node, self.subscript_array_field), field(node, "index")
            if array is None or index is None:
                raise self.unsupported(node)
            return ArrayAccess(self.expr(array), self.expr(index))
        return self.expr_special(node)

    def expr_special(self, node: Node) -> Expr:
        """Language-specific expressions: literals, calls, casts."""
        raise self.unsupported(node)

    def decode_char(self, node: Node) -> str:
        raise NotImplementedError

    def binary(self, node: Node) -> Expr:
        left_node, right_node = self.child(node, "left"), self.child(node, "right")
        op = operator_text(node, self.source)
        if op not in _BINARY_OPS:
            raise self.unsupported(node, f"operator {op}")
        left, right = self.expr(left_node), self.expr(right_node)
        if op == "/" and self._integral(left) and self._integral(right):
            op = "//"
        return BinaryExpression(left, op, right)

    def _integral(self, e: Expr) -> bool:
        return infer_kind(e, self.ctx) in _INTEGRAL

    def unary(self, node: Node) -> Expr:
        operand_node = self.child(node, self.unary_operand_field)
        op = operator_text(node, self.source)
        operand = self.expr(operand_node)
        if op == "-":
            return negate(operand)
        if op not in ("+", "!", "~"):
            raise self.unsupported(node, f"operator {op}")
        return UnaryExpression(op, operand, False)

    def update(self, node: Node) -> Expr:
        """`i++` / `--i`. The operand is the only named child."""
        operand = named(node)
        if len(operand) != 1:
            raise self.unsupported(node)
        op = operator_text(node, self.source)
        postfix = node.children[0].is_named
        return UnaryExpression(op, self.expr(operand[0]), postfix)

    def declare_loop_init(self, node: Node) -> Stmt | None:
        """Parse a for-loop initializer declaration into a single statement."""
        parsed = self.dispatch.parse_block([node])
        if len(parsed) != 1 or isinstance(parsed[0], Unsupported):
            return None
        return parsed[0]


class ConditionalParser(SourceParser):
    """if / else if / else, flattening nested else-if chains."""

    name = "conditionals"
    node_types = frozenset({"if_statement"})

    def parse(self, node: Node, ctx: TranslationContext) -> ParseResult:
        fe = self.fe
        condition = self._condition(node)
        then_branch = fe.block(field(node, "consequence"))
        elifs: list[ElifBranch] = []
        else_branch: list[Stmt] | None = None
        alt = _else_body(field(node, "alternative"))
        while alt is not None:
            if alt.type == "if_statement":
                elifs.append(ElifBranch(self._condition(alt), fe.block(field(alt, "consequence"))))
                alt = _else_body(field(alt, "alternative"))
            else:
                else_branch = fe.block(alt)
                alt = None
        return ConditionalStatement(condition, then_branch, elifs, else_branch)

    def _condition(self, node: Node) -> Expr:
        cond = self.fe.child(node, "condition")
        return self.fe.expr(strip_parens(cond))


def _else_body(node: Node | None) -> Node | None:
    """tree-sitter-c wraps the else branch in an else_clause."""
    if node is not None and node.type == "else_clause":
        inner = named(node)
        return inner[0] if inner else None
    return node


class LoopParser(SourceParser):
    """for (counting or classic), while, do-while."""

    name = "loops"
    node_types = frozenset({"for_statement", "while_statement", "do_statement"})

    def parse(self, node: Node, ctx: TranslationContext) -> ParseResult:
        fe = self.fe
        assert isinstance(fe, CLikeFrontend)
        body = field(node, "body")
        if node.type in ("while_statement", "do_statement"):
            cond = fe.child(node, "condition")
            header = ConditionHeader(fe.expr(strip_parens(cond)))
            kind = "while" if node.type == "while_statement" else "do_while"
            return LoopStatement(kind, header, fe.block(body))
        inits = fields(node, fe.for_init_field)
        cond_node = field(node, "condition")
        updates = [u for n in fields(node, "update") for u in _comma_parts(n)]
        if len(inits) > 1:
            raise fe.unsupported(node, "several loop initializers")
        init = self._init_stmt(inits[0]) if inits else None
        range_header = self._range(inits, init, cond_node, updates, ctx)
        if range_header is not None:
            return LoopStatement("for_range", range_header, fe.block(body))
        condition = fe.expr(strip_parens(cond_node)) if cond_node is not None else None
        update = [fe.expr(u) for u in updates]
        return LoopStatement("for_classic", ClassicHeader(init, condition, update), fe.block(body))

    def _init_stmt(self, node: Node) -> Stmt:
        fe = self.fe
        assert isinstance(fe, CLikeFrontend)
        if node.type.endswith("declaration"):
            stmt = fe.declare_loop_init(node)
            if stmt is None:
                raise fe.unsupported(node, "loop initializer")
            return stmt
        return ExpressionStatement(fe.expr(node))

    def _range(
        self,
        inits: list[Node],
        init_stmt: Stmt | None,
        cond: Node | None,
        updates: list[Node],
        ctx: TranslationContext,
    ) -> RangeHeader | None:
        """Recognize `for (int i = a; i < b; i++)` and its descending twin."""
        if len(inits) != 1 or cond is None or len(updates) != 1:
            return None
        fe = self.fe
        init = inits[0]
        if init.type.endswith("declaration"):
            stmt = init_stmt
            if not isinstance(stmt, VariableDeclaration) or stmt.initializer is None:
                return None
            var, var_type, start, declares = stmt.name, stmt.declared_type, stmt.initializer, True
        elif init.type == "assignment_expression":
            left, right = field(init, "left"), field(init, "right")
            if left is None or right is None or left.type != "identifier" or operator_text(init, fe.source) != "=":
                return None
            var = fe.text(left)
            var_type = ctx.get_variable_type(var) or "int"
            start, declares = fe.expr(right), False
        else:
            return None
        cond = strip_parens(cond)
        if cond.type != "binary_expression":
            return None
        left, right = field(cond, "left"), field(cond, "right")
        op = operator_text(cond, fe.source)
        if left is None or right is None or fe.text(left) != var or op not in ("<", "<=", ">", ">="):
            return None
        step = self._step(var, updates[0])
        if step is None or (step > 0) != (op in ("<", "<=")):
            return None
        return RangeHeader(var, var_type, start, fe.expr(right), step, op in ("<=", ">="), declares)

    def _step(self, var: str, node: Node) -> int | None:
        fe = self.fe
        if node.type == "update_expression":
            operand = named(node)
            if len(operand) != 1 or fe.text(operand[0]) != var:
                return None
            return 1 if operator_text(node, fe.source) == "++" else -1
        if node.type == "assignment_expression":
            left, right = field(node, "left"), field(node, "right")
            if left is None or right is None or fe.text(left) != var:
                return None
            amount = fe.expr(right)
            if not isinstance(amount, Literal) or amount.literal_kind != "int":
                return None
            value = amount.value
            assert isinstance(value, int)
            match operator_text(node, fe.source):
                case "+=":
                    return value if value else None
                case "-=":
                    return -value if value else None
        return None


def _comma_parts(node: Node) -> list[Node]:
    if node.type == "comma_expression":
        return [p for c in named(node) for p in _comma_parts(c)]
    return [node]


class JumpParser(SourceParser):
    name = "jumps"
    node_types = frozenset({"return_statement", "break_statement", "continue_statement"})

    def parse(self, node: Node, ctx: TranslationContext) -> ParseResult:
        match node.type:
            case "break_statement":
                return BreakStatement()
            case "continue_statement":
                return ContinueStatement()
            case _:
                values = named(node)
                return ReturnStatement(self.fe.expr(values[0]) if values else None)


class BlockParser(SourceParser):
    """A nested `{ ... }` block contributes its statements in place."""

    name = "blocks"
    node_types = frozenset({"block", "compound_statement"})

    def parse(self, node: Node, ctx: TranslationContext) -> ParseResult:
        return self.fe.block(node)


class ExpressionParser(SourceParser):
    """Assignments, increments and calls evaluated for effect."""

    name = "expressions"
    node_types = frozenset({"expression_statement"})
    expression_types = frozenset(
        {"assignment_expression", "update_expression", "call_expression", "method_invocation"}
    )

    def parse(self, node: Node, ctx: TranslationContext) -> ParseResult:
        inner = named(node)
        if not inner:
            return []
        if len(inner) != 1 or inner[0].type not in self.expression_types:
            return None
        return ExpressionStatement(self.fe.expr(inner[0]))
