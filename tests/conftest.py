"""Pytest configuration for the crosslang test suite."""

from pathlib import Path

import pytest

from crosslang import TranslateOptions, Translator

TESTS_DIR = Path(__file__).parent
TRANSLATE_DIR = TESTS_DIR / "translate"
CLI_DIR = TESTS_DIR / "cli"


def parse_test_file(path: Path) -> list[tuple[str, str, str]]:
    """Parse a .tests file into (name, input, expected) tuples.

    Format:

        === test name
        source code
        ---
        expected output (or directives)
        ---
    """
    lines = path.read_text().split("\n")
    result: list[tuple[str, str, str]] = []
    i = 0
    while i < len(lines):
        line = lines[i]
        if line.startswith("=== "):
            test_name = line[4:].strip()
            i += 1
            input_lines: list[str] = []
            while i < len(lines) and not lines[i].startswith("---"):
                input_lines.append(lines[i])
                i += 1
            if i < len(lines) and lines[i] == "---":
                i += 1
            expected_lines: list[str] = []
            while i < len(lines) and not lines[i].startswith("---"):
                expected_lines.append(lines[i])
                i += 1
            if i < len(lines) and lines[i] == "---":
                i += 1
            result.append((test_name, "\n".join(input_lines) + "\n", "\n".join(expected_lines)))
        else:
            i += 1
    return result


def normalize_ws(text: str) -> str:
    return " ".join(text.split())


def contains_normalized(haystack: str, needle: str) -> bool:
    """Substring check that ignores differences in whitespace."""
    return normalize_ws(needle) in normalize_ws(haystack)


@pytest.fixture
def translate_pair():
    """Translate with a fresh Translator and return (result, translator)."""

    def run(source: str, source_language: str, target_language: str, **options):
        translator = Translator(source_language, target_language, TranslateOptions(**options))
        return translator.translate(source), translator

    return run
