"""Generators rendering hand-built canonical nodes."""

import pytest

from crosslang.backend import CGenerator, JavaGenerator, PythonGenerator
from crosslang.backend.python import format_spec
from crosslang.backend.util import escape_java, escape_python, escape_string, float_literal
from crosslang.context import TranslateOptions, TranslationContext
from crosslang.errors import UnsupportedConstruct
from crosslang.frontend.literals import decode_string
from crosslang.ir import (
    ArrayAccess,
    BinaryExpression,
    CallExpression,
    ConditionalStatement,
    ConditionHeader,
    FormatSpec,
    FunctionDeclaration,
    Identifier,
    Literal,
    LoopStatement,
    Parameter,
    Placeholder,
    Pos,
    PrintStatement,
    ReturnStatement,
    TernaryExpression,
    TextFragment,
    UnaryExpression,
    VariableDeclaration,
)


def _ctx(source: str, target: str, **bindings: str) -> TranslationContext:
    ctx = TranslationContext(source, target)
    for name, typ in bindings.items():
        ctx.add_variable(name, typ)
    return ctx


def _bin(left, op, right):
    return BinaryExpression(left, op, right)


a, b, c = Identifier("a"), Identifier("b"), Identifier("c")
p, q, r = Identifier("p"), Identifier("q"), Identifier("r")


@pytest.mark.parametrize(
    "expr,expected",
    [
        (_bin(_bin(a, "+", b), "*", c), "(a + b) * c"),
        (_bin(a, "-", _bin(b, "-", c)), "a - (b - c)"),
        (_bin(_bin(a, "-", b), "-", c), "a - b - c"),
        (_bin(a, "&&", _bin(b, "||", c)), "a and (b or c)"),
        (_bin(_bin(a, "<", b), "==", c), "(a < b) == c"),
        (_bin(a, "**", _bin(b, "**", c)), "a ** b ** c"),
        (_bin(_bin(a, "**", b), "**", c), "(a ** b) ** c"),
        (UnaryExpression("!", _bin(a, "==", b), False), "not a == b"),
        (UnaryExpression("-", _bin(a, "+", b), False), "-(a + b)"),
    ],
)
def test_python_parenthesization(expr, expected: str) -> None:
    ctx = _ctx("c", "python", a="int", b="int", c="int")
    assert PythonGenerator().expr(expr, ctx) == expected


@pytest.mark.parametrize(
    "expr,expected",
    [
        (_bin(_bin(a, "+", b), "*", c), "(a + b) * c"),
        (_bin(p, "||", _bin(q, "&&", r)), "p || q && r"),
        (_bin(_bin(p, "||", q), "&&", r), "(p || q) && r"),
        (UnaryExpression("!", _bin(a, "==", b), False), "!(a == b)"),
        (UnaryExpression("-", Literal(-1, "int"), False), "-(-1)"),
    ],
)
def test_java_parenthesization(expr, expected: str) -> None:
    ctx = _ctx("python", "java", a="int", b="int", c="int", p="bool", q="bool", r="bool")
    assert JavaGenerator().expr(expr, ctx) == expected


def test_reserved_names_are_renamed() -> None:
    ctx = _ctx("java", "python")
    stmt = VariableDeclaration("print", "int", Literal(1, "int"), False)
    assert PythonGenerator().generate(stmt, ctx) == "print_ = 1"
    ctx = _ctx("python", "java")
    stmt = VariableDeclaration("new", "int", Literal(1, "int"), False)
    assert JavaGenerator().generate(stmt, ctx) == "int new_ = 1;"
    ctx = _ctx("python", "c")
    stmt = VariableDeclaration("printf", "int", Literal(1, "int"), False)
    assert CGenerator().generate(stmt, ctx) == "int printf_ = 1;"


def test_escapes() -> None:
    assert escape_string('say "hi"\n') == 'say \\"hi\\"\\n'
    assert escape_string("\x01") == "\\001"
    assert escape_java("\x01\t") == "\\u0001\\t"
    assert escape_python("\x7f\\") == "\\x7f\\\\"
    assert escape_string("it's", "'") == "it\\'s"


@pytest.mark.parametrize("generator", [PythonGenerator, JavaGenerator, CGenerator])
def test_string_literals_decode_to_their_value(generator) -> None:
    value = 'tab\there "quoted"\nback\\slash'
    ctx = _ctx("python", generator.language)
    rendered = generator().expr(Literal(value, "string"), ctx)
    assert decode_string(rendered) == value


def test_float_literal() -> None:
    assert float_literal(2.0) == "2.0"
    assert float_literal(1e-7) == "1e-07"
    with pytest.raises(UnsupportedConstruct):
        float_literal(float("inf"))


@pytest.mark.parametrize(
    "spec,kind,expected",
    [
        (None, "int", ""),
        (FormatSpec("", None, None, "d"), "int", ""),
        (FormatSpec("", None, None, "s"), "string", ""),
        (FormatSpec("", None, 2, "f"), "float", ".2f"),
        (FormatSpec("", 5, None, "d"), "int", "5d"),
        (FormatSpec("-", 10, None, "s"), "string", "<10"),
        (FormatSpec("", 10, None, "s"), "string", ">10"),
        (FormatSpec("0", 8, 3, "f"), "float", "08.3f"),
        (FormatSpec("+", None, None, "d"), "int", "+d"),
        (FormatSpec("", None, None, "x"), "int", "x"),
        (FormatSpec("", None, None, "c"), "int", "c"),
    ],
)
def test_python_format_spec(spec, kind: str, expected: str) -> None:
    assert format_spec(spec, kind) == expected


def test_python_print_forms() -> None:
    ctx = _ctx("c", "python", x="double", n="int")
    gen = PythonGenerator()
    plain = PrintStatement([TextFragment("hi")], [], True)
    assert gen.generate(plain, ctx) == 'print("hi")'
    no_newline = PrintStatement([Placeholder(0, None)], [Identifier("n")], False)
    assert gen.generate(no_newline, ctx) == 'print(n, end="")'
    precise = PrintStatement(
        [TextFragment("x={"), Placeholder(0, FormatSpec("", None, 1, "f"))], [Identifier("x")], True
    )
    assert gen.generate(precise, ctx) == 'print(f"x={{{x:.1f}")'


def test_c_print_infers_conversions() -> None:
    ctx = _ctx("java", "c", s="String", d="double", ok="boolean")
    gen = CGenerator()
    stmt = PrintStatement(
        [Placeholder(0, None), TextFragment(" 100% "), Placeholder(1, None), Placeholder(2, None)],
        [Identifier("s"), Identifier("d"), Identifier("ok")],
        True,
    )
    assert gen.generate(stmt, ctx) == 'printf("%s 100%% %g%s\\n", s, d, ok ? "true" : "false");'


def test_java_printf_for_precision() -> None:
    ctx = _ctx("c", "java", avg="double")
    stmt = PrintStatement([Placeholder(0, FormatSpec("", None, 2, "f"))], [Identifier("avg")], True)
    assert JavaGenerator().generate(stmt, ctx) == 'System.out.printf("%.2f%n", avg);'


def test_true_division_of_ints() -> None:
    ctx = _ctx("python", "java", a="int", b="int")
    assert JavaGenerator().expr(_bin(a, "/", b), ctx) == "(double) a / b"
    ctx = _ctx("python", "c", a="int", b="int")
    assert CGenerator().expr(_bin(a, "/", b), ctx) == "(double) a / b"


def test_floor_division_of_floats_in_c() -> None:
    ctx = _ctx("python", "c", x="float", y="float")
    gen = CGenerator()
    assert gen.expr(_bin(Identifier("x"), "//", Identifier("y")), ctx) == "floor(x / y)"
    assert ctx.requires("math.h")


def test_power_and_builtins() -> None:
    ctx = _ctx("python", "java", n="int")
    gen = JavaGenerator()
    n = Identifier("n")
    assert gen.expr(_bin(n, "**", Literal(2, "int")), ctx) == "(int) Math.pow(n, 2)"
    assert gen.expr(CallExpression("max", [n, Literal(1, "int"), Literal(2, "int")]), ctx) == "Math.max(Math.max(n, 1), 2)"
    assert gen.expr(CallExpression("str", [n]), ctx) == "String.valueOf(n)"


def test_negative_index_in_java() -> None:
    ctx = _ctx("python", "java", xs="int[]")
    access = ArrayAccess(Identifier("xs"), Literal(-2, "int"))
    assert JavaGenerator().expr(access, ctx) == "xs[xs.length - 2]"


def test_c_sqrt_sets_include_flag() -> None:
    ctx = _ctx("python", "c")
    assert CGenerator().expr(CallExpression("sqrt", [Literal(2.0, "float")]), ctx) == "sqrt(2.0)"
    assert ctx.requires("math.h")


def test_function_scope_is_popped() -> None:
    ctx = _ctx("c", "python")
    fn = FunctionDeclaration(
        "twice",
        "int",
        [Parameter("n", "int", 0)],
        [ReturnStatement(_bin(Identifier("n"), "*", Literal(2, "int")))],
    )
    out = PythonGenerator().function(fn, ctx, 0)
    assert out == "def twice(n: int) -> int:\n    return n * 2"
    assert not ctx.has_variable("n")


def test_empty_python_suite_gets_pass() -> None:
    ctx = _ctx("c", "python", x="int")
    loop = LoopStatement("while", ConditionHeader(_bin(Identifier("x"), ">", Literal(0, "int"))), [])
    assert PythonGenerator().generate(loop, ctx) == "while x > 0:\n    pass"


def test_boolean_name_heuristic_and_exact_types() -> None:
    ctx = _ctx("c", "python")
    stmt = VariableDeclaration("is_ready", "int", Literal(1, "int"), False)
    assert PythonGenerator().generate(stmt, ctx) == "is_ready = True"
    ctx = _ctx("c", "python")
    exact = PythonGenerator(TranslateOptions(exact_types=True))
    assert exact.generate(stmt, ctx) == "is_ready = 1"


def test_depth_indents_output() -> None:
    ctx = _ctx("python", "java")
    stmt = VariableDeclaration("x", "int", Literal(1, "int"), False)
    assert JavaGenerator().generate(stmt, ctx, 2) == "        int x = 1;"


def test_empty_else_is_rendered() -> None:
    cond = _bin(a, ">", Literal(0, "int"))
    empty_else = ConditionalStatement(cond, [], [], [])
    ctx = _ctx("python", "java", a="int")
    assert JavaGenerator().generate(empty_else, ctx) == "if (a > 0) {\n} else {\n}"
    ctx = _ctx("c", "python", a="int")
    assert PythonGenerator().generate(empty_else, ctx) == "if a > 0:\n    pass\nelse:\n    pass"
    no_else = ConditionalStatement(cond, [], [], None)
    assert "else" not in JavaGenerator().generate(no_else, ctx)


def test_java_numbers_in_boolean_positions() -> None:
    ctx = _ctx("c", "java", n="int", x="double", ok="boolean")
    gen = JavaGenerator()
    n, x, ok = Identifier("n"), Identifier("x"), Identifier("ok")
    assert gen.expr(UnaryExpression("!", n, False), ctx) == "n == 0"
    assert gen.expr(_bin(n, "&&", ok), ctx) == "n != 0 && ok"
    assert gen.expr(_bin(_bin(n, "&", Literal(1, "int")), "||", x), ctx) == "(n & 1) != 0 || x != 0"
    assert gen.expr(TernaryExpression(n, Literal(1, "int"), Literal(2, "int")), ctx) == "n != 0 ? 1 : 2"
    assert gen.expr(UnaryExpression("!", UnaryExpression("!", n, False), False), ctx) == "!(n == 0)"
    loop = LoopStatement("while", ConditionHeader(n), [])
    assert gen.generate(loop, ctx) == "while (n != 0) {\n}"


def test_java_declarations_convert_between_bool_and_int() -> None:
    ctx = _ctx("c", "java", n="int")
    gen = JavaGenerator()
    flag = VariableDeclaration("flag", "int", _bin(Identifier("n"), ">", Literal(2, "int")), False)
    assert gen.generate(flag, ctx) == "int flag = n > 2 ? 1 : 0;"
    ok = VariableDeclaration("ok", "bool", Literal(1, "int"), False)
    assert gen.generate(ok, ctx) == "boolean ok = true;"


def test_c_keeps_integer_conditions() -> None:
    ctx = _ctx("python", "c", n="int")
    assert CGenerator().expr(UnaryExpression("!", Identifier("n"), False), ctx) == "!n"


def test_c_warns_when_float_print_may_differ() -> None:
    ctx = _ctx("python", "c", x="float")
    stmt = PrintStatement([Placeholder(0, None)], [Identifier("x")], True)
    assert CGenerator().generate(stmt, ctx) == 'printf("%g\\n", x);'
    assert any("%g prints floats differently" in w for w in ctx.warnings)
    ctx = _ctx("python", "c", x="float")
    precise = PrintStatement([Placeholder(0, FormatSpec("", None, 2, "f"))], [Identifier("x")], True)
    assert CGenerator().generate(precise, ctx) == 'printf("%.2f\\n", x);'
    assert ctx.warnings == []


def test_nested_blank_line_markers() -> None:
    ctx = _ctx("c", "python", x="int")
    first = VariableDeclaration("y", "int", Literal(1, "int"), False)
    second = VariableDeclaration("z", "int", Literal(2, "int"), False)
    second.pos = Pos(4, 4, "int z = 2;", blank_before=True)
    loop = LoopStatement("while", ConditionHeader(_bin(Identifier("x"), ">", Literal(0, "int"))), [first, second])
    assert PythonGenerator().generate(loop, ctx) == "while x > 0:\n    y = 1\n\n    z = 2"
