"""Data-driven translation tests.

Test cases live in translate/<source>_<target>.tests. The expected section
holds snippets that must appear in the output, compared with whitespace
normalized. Snippets are separated by blank lines. Directives:

    warning:  some warning must contain this text
    absent:   the output must not contain this text
    clean:    no warnings at all
"""

from pathlib import Path

import pytest

from crosslang import Translator

from .conftest import TRANSLATE_DIR, contains_normalized, parse_test_file


def _expectations(expected: str) -> tuple[list[str], list[tuple[str, str]]]:
    snippets: list[str] = []
    directives: list[tuple[str, str]] = []
    block: list[str] = []
    for line in expected.split("\n"):
        stripped = line.strip()
        for key in ("warning:", "absent:", "clean:"):
            if stripped.startswith(key):
                directives.append((key[:-1], stripped[len(key) :].strip()))
                break
        else:
            if stripped:
                block.append(line)
                continue
            if block:
                snippets.append("\n".join(block))
                block = []
    if block:
        snippets.append("\n".join(block))
    return snippets, directives


def discover_translate_tests() -> list[tuple[str, str, str, str, str]]:
    """(test_id, source_language, target_language, input, expected) for every case."""
    results = []
    for test_file in sorted(TRANSLATE_DIR.glob("*.tests")):
        source_language, target_language = test_file.stem.split("_")
        for name, source, expected in parse_test_file(test_file):
            test_id = f"{test_file.stem}/{name}"
            results.append((test_id, source_language, target_language, source, expected))
    return results


def pytest_generate_tests(metafunc):
    if "translate_case" in metafunc.fixturenames:
        params = [pytest.param(case[1:], id=case[0]) for case in discover_translate_tests()]
        metafunc.parametrize("translate_case", params)


def test_translate(translate_case: tuple[str, str, str, str]) -> None:
    source_language, target_language, source, expected = translate_case
    result = Translator(source_language, target_language).translate(source)
    assert result.success, result.error
    output = result.translated_code
    snippets, directives = _expectations(expected)
    for snippet in snippets:
        assert contains_normalized(output, snippet), f"missing:\n{snippet}\n\noutput:\n{output}"
    for kind, value in directives:
        if kind == "warning":
            assert any(value in w for w in result.warnings), f"no warning with {value!r}: {result.warnings}"
        elif kind == "absent":
            assert value not in output, f"unexpected {value!r} in:\n{output}"
        elif kind == "clean":
            assert result.warnings == [], result.warnings


def test_corpus_covers_all_pairs() -> None:
    stems = {p.stem for p in Path(TRANSLATE_DIR).glob("*.tests")}
    assert stems == {"python_java", "c_java", "java_python", "c_python", "java_c", "python_c"}
