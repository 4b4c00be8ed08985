"""Type mapping between language pairs and expression kinds."""

import pytest

from crosslang.context import TranslationContext
from crosslang.ir import (
    ArrayAccess,
    BinaryExpression,
    CallExpression,
    Identifier,
    Literal,
    TernaryExpression,
    UnaryExpression,
)
from crosslang.typemap import (
    GENERIC_TYPE,
    SUPPORTED_PAIRS,
    array_of,
    element_type,
    infer_kind,
    kind_of,
    looks_boolean,
    map_type,
    normalize,
    pair_key,
    split_array,
)


@pytest.mark.parametrize(
    "source_type,pair,expected",
    [
        ("int", "python->java", "int"),
        ("float", "python->java", "double"),
        ("str", "python->c", "char*"),
        ("bool", "python->c", "bool"),
        ("char *", "c->java", "String"),
        ("const char*", "c->python", "str"),
        ("unsigned long", "c->java", "long"),
        ("boolean", "java->c", "bool"),
        ("String", "java->python", "str"),
        ("ArrayList<Integer>", "java->python", "list"),
        ("int[]", "java->c", "int*"),
        ("double[][]", "c->java", "double[][]"),
        ("int[]", "java->python", "list"),
        ("long", "java->c", "long long"),
    ],
)
def test_map_type(source_type: str, pair: str, expected: str) -> None:
    assert map_type(source_type, pair) == expected


@pytest.mark.parametrize("source, target", SUPPORTED_PAIRS)
def test_map_type_unknown_falls_back_to_generic(source: str, target: str) -> None:
    pair = pair_key(source, target)
    assert map_type("Widget", pair) == GENERIC_TYPE[target]
    assert map_type("", pair) == GENERIC_TYPE[target]


def test_normalize_strips_qualifiers() -> None:
    assert normalize("const  unsigned   int") == "unsigned int"
    assert normalize("final String") == "String"
    assert normalize("char *") == "char*"
    assert normalize("List<String>") == "List"


def test_split_array_and_element_type() -> None:
    assert split_array("int[][]") == ("int", 2)
    assert split_array("double*") == ("double", 1)
    assert split_array("char*") == ("char*", 0)
    assert split_array("char**") == ("char*", 1)
    assert element_type("int[]") == "int"
    assert element_type("String") == "char"
    assert array_of("int", 2) == "int[][]"


@pytest.mark.parametrize(
    "source_type,kind",
    [
        ("int", "int"),
        ("long long", "int"),
        ("double", "float"),
        ("boolean", "bool"),
        ("_Bool", "bool"),
        ("String", "string"),
        ("char*", "string"),
        ("char", "char"),
        ("void", "void"),
        ("int[]", "array"),
        ("list", "array"),
        ("Widget", "unknown"),
        (None, "unknown"),
    ],
)
def test_kind_of(source_type: str | None, kind: str) -> None:
    assert kind_of(source_type) == kind


def test_infer_kind() -> None:
    ctx = TranslationContext("c", "python")
    ctx.add_variable("n", "int")
    ctx.add_variable("xs", "double[]")
    ctx.add_variable("s", "char*")
    ctx.add_function("half", "double")
    n, s = Identifier("n"), Identifier("s")
    assert infer_kind(n, ctx) == "int"
    assert infer_kind(ArrayAccess(Identifier("xs"), Literal(0, "int")), ctx) == "float"
    assert infer_kind(BinaryExpression(n, "+", Literal(1, "int")), ctx) == "int"
    assert infer_kind(BinaryExpression(n, "/", Literal(2, "int")), ctx) == "float"
    assert infer_kind(BinaryExpression(n, "//", Literal(2, "int")), ctx) == "int"
    assert infer_kind(BinaryExpression(s, "+", n), ctx) == "string"
    assert infer_kind(BinaryExpression(n, "<", Literal(2, "int")), ctx) == "bool"
    assert infer_kind(UnaryExpression("!", n, False), ctx) == "bool"
    assert infer_kind(TernaryExpression(n, Literal(1, "int"), Literal(2.5, "float")), ctx) == "float"
    assert infer_kind(CallExpression("half", [n]), ctx) == "float"
    assert infer_kind(CallExpression("len", [s]), ctx) == "int"
    assert infer_kind(CallExpression("pow", [n, n]), ctx) == "int"
    assert infer_kind(Identifier("missing"), ctx) == "unknown"


@pytest.mark.parametrize(
    "name,expected",
    [
        ("is_valid", True),
        ("hasItems", True),
        ("found", True),
        ("done", True),
        ("done_flag", True),
        ("count", False),
        ("island", False),
        ("foundation", False),
    ],
)
def test_looks_boolean(name: str, expected: bool) -> None:
    assert looks_boolean(name) is expected
