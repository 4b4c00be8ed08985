"""CLI tests for the crosslang entry point.

Test cases live in cli/*.tests files. Format:

    === test name
    args: --from c --to python
    source code here
    (stdin for the translator)
    ---
    exit: 0
    stderr-contains: error: some message
    stdout-contains: print(
    stdout-empty: true
    stderr-empty: true
    ---

Special directives in the input section:
    args:           CLI arguments (first line, required)
    stdin-bytes:    hex-encoded raw bytes instead of text (e.g. "ff fe")

Assertion directives in the expected section:
    exit:             exact exit code
    stderr-contains:  stderr must contain substring
    stderr-empty:     stderr must be empty
    stdout-contains:  stdout must contain substring
    stdout-empty:     stdout must be empty
    json:             stdout parses as JSON; key=value checks a field
"""

import json
import subprocess
import sys

import pytest

from crosslang.cli import main, parse_args

from .conftest import CLI_DIR, TESTS_DIR, parse_test_file

PROJECT_DIR = TESTS_DIR.parent


def _parse_spec(source: str, expected: str) -> dict:
    """CLI arguments, stdin and assertions of one case."""
    spec: dict = {"args": [], "stdin": None, "stdin_bytes": None, "assertions": []}
    input_lines = source.split("\n")
    if input_lines[0].startswith("args:"):
        args_str = input_lines[0][5:].strip()
        spec["args"] = args_str.split() if args_str else []
        input_lines = input_lines[1:]
    if input_lines and input_lines[0].startswith("stdin-bytes:"):
        spec["stdin_bytes"] = bytes.fromhex(input_lines[0][len("stdin-bytes:") :].strip())
    else:
        spec["stdin"] = "\n".join(input_lines)
    for line in expected.split("\n"):
        line = line.strip()
        if not line:
            continue
        key, _, value = line.partition(":")
        value = value.strip()
        if key == "exit":
            spec["assertions"].append(("exit", int(value)))
        elif key in ("stderr-contains", "stdout-contains", "json"):
            spec["assertions"].append((key, value))
        elif key in ("stderr-empty", "stdout-empty"):
            spec["assertions"].append((key, None))
    return spec


def discover_cli_tests() -> list[tuple[str, dict]]:
    results = []
    for test_file in sorted(CLI_DIR.glob("*.tests")):
        for name, source, expected in parse_test_file(test_file):
            results.append((f"{test_file.stem}/{name}", _parse_spec(source, expected)))
    return results


def run_cli(spec: dict) -> subprocess.CompletedProcess[bytes]:
    """Run the crosslang CLI from a test spec."""
    cmd = [sys.executable, "-m", "crosslang", *spec["args"]]
    if spec["stdin_bytes"] is not None:
        stdin_data = spec["stdin_bytes"]
    else:
        stdin_data = (spec["stdin"] or "").encode()
    return subprocess.run(cmd, input=stdin_data, capture_output=True, cwd=PROJECT_DIR)


def check_assertions(result: subprocess.CompletedProcess[bytes], assertions: list[tuple]) -> None:
    stdout = result.stdout.decode(errors="replace")
    stderr = result.stderr.decode(errors="replace")
    for kind, value in assertions:
        if kind == "exit":
            assert result.returncode == value, f"expected exit {value}, got {result.returncode}\nstderr: {stderr}"
        elif kind == "stderr-contains":
            assert value in stderr, f"expected stderr to contain {value!r}, got {stderr!r}"
        elif kind == "stderr-empty":
            assert result.stderr == b"", f"expected empty stderr, got {stderr!r}"
        elif kind == "stdout-contains":
            assert value in stdout, f"expected stdout to contain {value!r}, got {stdout!r}"
        elif kind == "stdout-empty":
            assert result.stdout == b"", f"expected empty stdout, got {stdout[:200]!r}"
        elif kind == "json":
            response = json.loads(stdout)
            if value:
                key, _, expected = value.partition("=")
                assert str(response[key]).lower() == expected.lower(), f"{key}: {response[key]!r}"


def pytest_generate_tests(metafunc):
    if "cli_spec" in metafunc.fixturenames:
        params = [pytest.param(spec, id=test_id) for test_id, spec in discover_cli_tests()]
        metafunc.parametrize("cli_spec", params)


def test_cli(cli_spec: dict) -> None:
    check_assertions(run_cli(cli_spec), cli_spec["assertions"])


# In-process checks for file handling


def test_input_and_output_files(tmp_path) -> None:
    src = tmp_path / "prog.c"
    src.write_text('int main() {\n    printf("hi\\n");\n    return 0;\n}\n')
    out = tmp_path / "prog.py"
    assert main(["--from", "c", "--to", "python", str(src), "-o", str(out)]) == 0
    assert out.read_text() == 'print("hi")\n'


def test_missing_input_file(tmp_path, capsys) -> None:
    assert main(["--from", "c", "--to", "python", str(tmp_path / "nope.c")]) == 1
    assert "cannot open" in capsys.readouterr().err


def test_class_name_option(tmp_path, capsys) -> None:
    src = tmp_path / "prog.py"
    src.write_text("x = 1\n")
    assert main(["--from", "python", "--to", "java", "--class-name", "Demo", str(src)]) == 0
    assert "public class Demo {" in capsys.readouterr().out


def test_parse_args_lowercases_languages() -> None:
    args = parse_args(["--from", "C", "--to", "Java", "--exact-types"])
    assert (args.source_language, args.target_language) == ("c", "java")
    assert args.exact_types
    assert args.input_file is None
