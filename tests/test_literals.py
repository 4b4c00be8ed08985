"""Literal decoding and format-string decomposition."""

import pytest

from crosslang.errors import UnsupportedConstruct
from crosslang.frontend.literals import (
    count_placeholders,
    decode_char,
    decode_string,
    join_text,
    parse_number,
    parse_printf,
    parse_python_spec,
    unescape,
)
from crosslang.ir import FormatSpec, Literal, Placeholder, TextFragment


@pytest.mark.parametrize(
    "raw,expected",
    [
        (r"a\nb", "a\nb"),
        (r"tab\there", "tab\there"),
        (r"\x41B", "AB"),
        (r"\101", "A"),
        (r"\\", "\\"),
        (r"\q", r"\q"),
    ],
)
def test_unescape(raw: str, expected: str) -> None:
    assert unescape(raw) == expected


def test_decode_string_variants() -> None:
    assert decode_string('"hi\\n"') == "hi\n"
    assert decode_string("'it\\'s'") == "it's"
    assert decode_string('r"a\\nb"') == "a\\nb"
    assert decode_string('"""doc"""') == "doc"


def test_decode_char() -> None:
    assert decode_char("'A'") == "A"
    assert decode_char("'\\n'") == "\n"


@pytest.mark.parametrize(
    "text,value,kind",
    [
        ("42", 42, "int"),
        ("0x1F", 31, "int"),
        ("0b101", 5, "int"),
        ("017", 15, "int"),
        ("1_000", 1000, "int"),
        ("10L", 10, "int"),
        ("3.5", 3.5, "float"),
        ("2.0f", 2.0, "float"),
        ("1e3", 1000.0, "float"),
        ("0", 0, "int"),
    ],
)
def test_parse_number(text: str, value: object, kind: str) -> None:
    assert parse_number(text) == Literal(value, kind)


def test_parse_number_rejects_garbage() -> None:
    with pytest.raises(UnsupportedConstruct):
        parse_number("12abc")


def test_parse_printf_trailing_newline() -> None:
    fragments, newline = parse_printf("Sum: %d\n", "c")
    assert newline
    assert fragments == [TextFragment("Sum: "), Placeholder(0, FormatSpec("", None, None, "d"))]


def test_parse_printf_spec_parts() -> None:
    fragments, newline = parse_printf("%-8s|%05.2f%%", "c")
    assert not newline
    assert fragments == [
        Placeholder(0, FormatSpec("-", 8, None, "s")),
        TextFragment("|"),
        Placeholder(1, FormatSpec("0", 5, 2, "f")),
        TextFragment("%"),
    ]


def test_parse_printf_java_newline_and_length_modifiers() -> None:
    fragments, newline = parse_printf("%ld items%n", "java")
    assert newline
    assert fragments == [Placeholder(0, FormatSpec("", None, None, "d")), TextFragment(" items")]


def test_parse_printf_rejects_n_in_c() -> None:
    with pytest.raises(UnsupportedConstruct):
        parse_printf("count%n", "c")


def test_count_placeholders() -> None:
    fragments, _ = parse_printf("%d and %s and %%", "c")
    assert count_placeholders(fragments) == 2


@pytest.mark.parametrize(
    "spec,expected",
    [
        (".2f", FormatSpec("", None, 2, "f")),
        ("5d", FormatSpec("", 5, None, "d")),
        ("<10", FormatSpec("-", 10, None, None)),
        ("+d", FormatSpec("+", None, None, "d")),
        ("08.3f", FormatSpec("0", 8, 3, "f")),
        ("#x", FormatSpec("#", None, None, "x")),
    ],
)
def test_parse_python_spec(spec: str, expected: FormatSpec) -> None:
    assert parse_python_spec(spec) == expected


@pytest.mark.parametrize("spec", [".1%", "b", "!!"])
def test_parse_python_spec_unsupported(spec: str) -> None:
    with pytest.raises(UnsupportedConstruct):
        parse_python_spec(spec)


def test_join_text_merges_and_drops_empty() -> None:
    joined = join_text([TextFragment("a"), TextFragment(""), TextFragment("b"), Placeholder(0, None)])
    assert joined == [TextFragment("ab"), Placeholder(0, None)]
