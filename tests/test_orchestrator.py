"""Translator pipeline, service responses and the fallback path."""

import logging

import pytest

import crosslang.backend.java
import crosslang.frontend.python
import crosslang.service
from crosslang import TranslateOptions, Translator, supported_pairs, translate
from crosslang.errors import GrammarUnavailable, LedgerConflict
from crosslang.fallback import FallbackTranslator
from crosslang.ir import STATEMENT_TYPES, ConditionalStatement, Unsupported, VariableDeclaration
from crosslang.orchestrator import LineLedger, TranslationResult, collapse_blank_lines

from .conftest import contains_normalized

# End-to-end scenarios


def test_python_if_else_to_java(translate_pair) -> None:
    source = 'age = 25\nif age >= 18:\n    print("Adult")\nelse:\n    print("Minor")\n'
    result, _ = translate_pair(source, "python", "java")
    assert result.success
    code = result.translated_code
    assert "int age = 25;" in code
    assert contains_normalized(code, "if (age >= 18) {")
    assert contains_normalized(code, "} else {")
    assert 'System.out.println("Adult");' in code
    assert 'System.out.println("Minor");' in code


def test_c_printf_to_python(translate_pair) -> None:
    source = 'int main() {\n    int x = 10; int y = 20; printf("Sum: %d\\n", x + y);\n    return 0;\n}\n'
    result, _ = translate_pair(source, "c", "python")
    assert result.success
    assert result.translated_code == 'x = 10\ny = 20\nprint(f"Sum: {x + y}")\n'


def test_python_negative_index_to_c(translate_pair) -> None:
    result, _ = translate_pair("numbers = [1, 2, 3]\nprint(numbers[-1])\n", "python", "c")
    assert "numbers[sizeof(numbers)/sizeof(numbers[0]) - 1]" in result.translated_code


def test_java_ternary_to_python(translate_pair) -> None:
    source = 'int score = 75;\nString grade = score >= 60 ? "Pass" : "Fail";\n'
    result, _ = translate_pair(source, "java", "python")
    assert 'grade = "Pass" if score >= 60 else "Fail"' in result.translated_code


def test_unsupported_construct_is_commented_out(translate_pair) -> None:
    source = "x = 0\ntry:\n    x = 1\nexcept ValueError:\n    x = 2\nprint(x)\n"
    result, translator = translate_pair(source, "python", "c")
    assert result.success
    assert result.warnings
    assert "    // try:" in result.translated_code
    assert "    //     x = 1" in result.translated_code
    assert 'printf("%d\\n", x);' in result.translated_code
    assert any(isinstance(s, Unsupported) for s in translator.unit.body)


# Recovery from parser and generator errors


def _boom(*args, **kwargs):
    raise RuntimeError("boom")


def test_failing_parser_falls_through_to_the_next(translate_pair, monkeypatch, caplog) -> None:
    monkeypatch.setattr(crosslang.frontend.python.ArrayParser, "parse", _boom)
    with caplog.at_level(logging.WARNING, logger="crosslang.orchestrator"):
        result, _ = translate_pair("x = 1\nprint(x)\n", "python", "java")
    assert result.success
    assert result.warnings == []
    assert "int x = 1;" in result.translated_code
    assert "arrays parser raised" in caplog.text


def test_node_every_parser_fails_on_is_commented_out(translate_pair, monkeypatch) -> None:
    monkeypatch.setattr(crosslang.frontend.python.PrintParser, "parse", _boom)
    monkeypatch.setattr(crosslang.frontend.python.ExpressionParser, "parse", _boom)
    result, _ = translate_pair('x = 1\nprint("hi")\ny = 2\n', "python", "java")
    assert result.success
    assert any("print parser failed: RuntimeError('boom')" in w for w in result.warnings)
    assert '// print("hi")' in result.translated_code
    assert "int x = 1;" in result.translated_code
    assert "int y = 2;" in result.translated_code


def test_failing_function_parser_degrades_the_function(translate_pair, monkeypatch) -> None:
    monkeypatch.setattr(crosslang.frontend.python.PythonFrontend, "parse_function", _boom)
    result, _ = translate_pair("def f(a: int) -> int:\n    return a\n\nx = 1\n", "python", "c")
    assert result.success
    assert any("function parser failed" in w for w in result.warnings)
    assert "// def f(a: int) -> int:" in result.translated_code
    assert "int x = 1;" in result.translated_code


def test_failing_generator_comments_the_statement_out(translate_pair, monkeypatch) -> None:
    monkeypatch.setattr(crosslang.backend.java.JavaGenerator, "_emit_print", _boom)
    result, _ = translate_pair("x = 1\nprint(x)\n", "python", "java")
    assert result.success
    assert any("java generator failed: RuntimeError('boom')" in w for w in result.warnings)
    assert "// print(x)" in result.translated_code
    assert "int x = 1;" in result.translated_code


# Layout


def test_blank_line_runs_collapse(translate_pair) -> None:
    result, _ = translate_pair("x = 1\n\n\n\ny = 2\n", "python", "c")
    code = result.translated_code
    assert "    int x = 1;\n\n    int y = 2;" in code
    assert "\n\n\n" not in code


def test_blank_lines_inside_blocks_are_kept(translate_pair) -> None:
    source = "x = 1\nif x > 0:\n    y = 2\n\n\n    print(y)\n"
    result, _ = translate_pair(source, "python", "java")
    assert "            int y = 2;\n\n            System.out.println(y);\n" in result.translated_code


def test_blank_lines_inside_functions_are_kept(translate_pair) -> None:
    source = "def f(a: int) -> int:\n    b = a\n\n\n    return b\n"
    result, _ = translate_pair(source, "python", "c")
    assert "int f(int a) {\n    int b = a;\n\n    return b;\n}" in result.translated_code


def test_split_declarations_share_one_blank_line(translate_pair) -> None:
    source = (
        "int f(int x) {\n    int q = x;\n\n    int a = 1, b = 2;\n    return a + b + q;\n}\n"
        'int main() {\n    printf("%d\\n", f(1));\n    return 0;\n}\n'
    )
    result, _ = translate_pair(source, "c", "python")
    assert "    q = x\n\n    a = 1\n    b = 2\n    return a + b + q\n" in result.translated_code


def test_collapse_blank_lines() -> None:
    assert collapse_blank_lines(["", "a", "", "  ", "", "b", "", ""]) == ["a", "", "b"]
    assert collapse_blank_lines([]) == []


def test_trailing_comment_attaches_to_its_line(translate_pair) -> None:
    result, _ = translate_pair("int x = 5;  // five\nint y = 6;\n", "java", "python")
    assert "x = 5  # five\ny = 6" in result.translated_code


# Structure and provenance


def test_every_entry_node_is_a_known_statement(translate_pair) -> None:
    source = (
        "def f(n: int) -> int:\n"
        "    return n + 1\n"
        "\n"
        "# loop\n"
        "for i in range(3):\n"
        "    if i == 1:\n"
        "        continue\n"
        "    print(f(i))\n"
        "while False:\n"
        "    break\n"
        "xs = [0] * 4\n"
        "xs[0] = 2\n"
    )
    result, translator = translate_pair(source, "python", "java")
    assert result.success, result.error
    assert result.warnings == []
    unit = translator.unit
    assert [fn.name for fn in unit.functions] == ["f"]
    assert unit.body
    assert all(isinstance(s, STATEMENT_TYPES) for s in unit.body)
    assert all(s.pos is not None for s in unit.body)


def test_multiline_statement_rows_share_one_owner(translate_pair) -> None:
    source = "x = 1\nif x > 0:\n    x = 2\nelse:\n    x = 3\ny = x\n"
    _, translator = translate_pair(source, "python", "java")
    ledger = translator.ledger
    owners = {ledger.owner(r) for r in range(1, 5)}
    assert owners == {"if_statement:2"}
    assert ledger.owner(0) != ledger.owner(5)
    assert ledger.consumed() == set(range(6))
    cond = translator.unit.body[1]
    assert isinstance(cond, ConditionalStatement)
    assert (cond.pos.line, cond.pos.end_line) == (1, 4)


def test_ledger_rejects_overlapping_claims() -> None:
    ledger = LineLedger()
    ledger.claim(0, 3, "if_statement")
    ledger.claim(3, 3, "expression_statement")
    with pytest.raises(LedgerConflict):
        ledger.claim(2, 2, "declaration")
    assert ledger.owner(3) == "if_statement:1"


def test_strategies_are_recorded(translate_pair) -> None:
    source = "int main() {\n    int x = 1;\n    printf(\"%d\\n\", x);\n    return 0;\n}\n"
    _, translator = translate_pair(source, "c", "python")
    records = translator.ctx.strategies
    assert [(r.line, r.parser, r.strategy) for r in records] == [
        (1, "variables", "structural"),
        (2, "print", "structural"),
    ]


def test_translator_is_reusable(translate_pair) -> None:
    _, translator = translate_pair("x = 1\n", "python", "java")
    second = translator.translate("y = 2.5\n")
    assert "double y = 2.5;" in second.translated_code
    assert not translator.ctx.has_variable("x")


def test_declared_types_are_kept(translate_pair) -> None:
    result, translator = translate_pair("x = 1\nx = 2.5\n", "python", "java")
    assert "int x = 1;" in result.translated_code
    assert translator.ctx.get_variable_type("x") == "int"
    decl = translator.unit.body[0]
    assert isinstance(decl, VariableDeclaration)


# Options


def test_boolean_heuristic_is_opt_out(translate_pair) -> None:
    source = "int main() {\n    int found = 0;\n    return 0;\n}\n"
    heuristic, _ = translate_pair(source, "c", "python")
    exact, _ = translate_pair(source, "c", "python", exact_types=True)
    assert "found = False" in heuristic.translated_code
    assert "found = 0" in exact.translated_code


def test_unknown_language_is_rejected() -> None:
    with pytest.raises(ValueError):
        Translator("rust", "python")


# Service


def test_supported_pairs() -> None:
    assert sorted(supported_pairs()) == sorted(
        ["python->java", "c->java", "java->python", "c->python", "java->c", "python->c"]
    )


def test_service_response_keys() -> None:
    response = translate("x = 1\n", " Python ", "JAVA")
    assert response["success"] is True
    assert response["service_used"] == "core"
    assert response["source_language"] == "python"
    assert response["target_language"] == "java"
    assert "error" not in response
    assert set(response) == {
        "success",
        "translated_code",
        "warnings",
        "service_used",
        "source_language",
        "target_language",
    }


def test_service_rejects_unsupported_pair() -> None:
    response = translate("x = 1\n", "python", "python")
    assert response["success"] is False
    assert response["error_code"] == "unsupported_pair"
    assert "python->java" in response["supported"]
    assert response["translated_code"] == ""


def test_service_rejects_empty_source() -> None:
    response = translate("  \n\t", "c", "java")
    assert response["success"] is False
    assert response["error_code"] == "empty_source"


def test_service_falls_back_without_grammar(monkeypatch) -> None:
    def unavailable(*args, **kwargs):
        raise GrammarUnavailable("c", OSError("missing"))

    monkeypatch.setattr(crosslang.service, "Translator", unavailable)
    response = translate('int main() { printf("hi\\n"); return 0; }\n', "c", "java", TranslateOptions())
    assert response["success"] is True
    assert response["service_used"] == "fallback"
    assert "public class Main {" in response["translated_code"]
    assert '        // int main() { printf("hi\\n"); return 0; }' in response["translated_code"]
    assert response["warnings"]


# Fallback


def test_fallback_same_language_is_identity() -> None:
    result = FallbackTranslator("c", "c").translate("int main() { return 0; }\n")
    assert result == TranslationResult(True, "int main() { return 0; }\n", [], service_used="fallback")


def test_fallback_python_skeleton() -> None:
    result = FallbackTranslator("java", "python").translate("int x = 1;\n")
    assert result.success
    assert result.translated_code == "# Translation from java unavailable; original source:\n# int x = 1;\n"


def test_result_to_dict_includes_error_only_on_failure() -> None:
    ok = TranslationResult(True, "x", ["w"])
    assert "error" not in ok.to_dict()
    failed = TranslationResult(False, "", [], "boom")
    assert failed.to_dict()["error"] == "boom"
