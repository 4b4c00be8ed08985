"""Command-line entry point."""

from __future__ import annotations

import json
import logging
import sys
from dataclasses import dataclass

from .context import TranslateOptions
from .service import translate
from .typemap import LANGUAGES

USAGE: str = """\
crosslang --from LANG --to LANG [OPTIONS] [INPUT] [-o OUTPUT]

Languages: python, java, c

Options:
  --from LANG         Source language
  --to LANG           Target language
  --exact-types       Keep integer 0/1 as integers for flag-like names
  --class-name NAME   Wrapper class of Java output (default Main)
  --json              Print the full JSON response instead of the code
  --verbose           Log each dispatched statement to stderr
  -o, --output FILE   Write output to FILE instead of stdout
  --help              Show this help message
"""


@dataclass
class CliArgs:
    source_language: str = ""
    target_language: str = ""
    exact_types: bool = False
    class_name: str = "Main"
    as_json: bool = False
    verbose: bool = False
    input_file: str | None = None
    output_file: str | None = None


def read_source(input_file: str | None) -> tuple[str, int]:
    """Read source from file or stdin. Returns (source, exit_code) where exit_code 0 means OK."""
    if input_file is not None:
        try:
            with open(input_file, "rb") as f:
                raw = f.read()
        except OSError:
            print("error: cannot open '" + input_file + "'", file=sys.stderr)
            return ("", 1)
    else:
        raw = sys.stdin.buffer.read()
    try:
        return (raw.decode("utf-8"), 0)
    except ValueError:
        print("error: invalid utf-8 in input", file=sys.stderr)
        return ("", 1)


def write_output(output: str, output_file: str | None) -> int:
    """Write output to file or stdout. Returns 0 on success, 1 on error."""
    if output_file is not None:
        try:
            with open(output_file, "w") as f:
                f.write(output)
        except OSError:
            print("error: cannot write '" + output_file + "'", file=sys.stderr)
            return 1
        return 0
    print(output, end="" if output.endswith("\n") else "\n")
    return 0


def _value(args: list[str], i: int) -> str:
    if i + 1 >= len(args):
        print("error: " + args[i] + " requires an argument", file=sys.stderr)
        sys.exit(2)
    return args[i + 1]


def parse_args(argv: list[str]) -> CliArgs:
    """Parse command-line arguments; exits with 2 on usage errors."""
    parsed = CliArgs()
    i = 0
    while i < len(argv):
        arg = argv[i]
        if arg == "--help" or arg == "-h":
            print(USAGE, end="")
            sys.exit(0)
        elif arg == "--from":
            parsed.source_language = _value(argv, i).lower()
            i += 2
        elif arg == "--to":
            parsed.target_language = _value(argv, i).lower()
            i += 2
        elif arg == "--class-name":
            parsed.class_name = _value(argv, i)
            i += 2
        elif arg == "-o" or arg == "--output":
            parsed.output_file = _value(argv, i)
            i += 2
        elif arg == "--exact-types":
            parsed.exact_types = True
            i += 1
        elif arg == "--json":
            parsed.as_json = True
            i += 1
        elif arg == "--verbose" or arg == "-v":
            parsed.verbose = True
            i += 1
        elif arg.startswith("-") and arg != "-":
            print("error: unknown flag '" + arg + "'", file=sys.stderr)
            sys.exit(2)
        else:
            if parsed.input_file is not None:
                print("error: unexpected argument '" + arg + "'", file=sys.stderr)
                sys.exit(2)
            parsed.input_file = None if arg == "-" else arg
            i += 1
    for flag, lang in (("--from", parsed.source_language), ("--to", parsed.target_language)):
        if not lang:
            print("error: " + flag + " is required", file=sys.stderr)
            sys.exit(2)
        if lang not in LANGUAGES:
            print("error: unknown language '" + lang + "'", file=sys.stderr)
            sys.exit(2)
    return parsed


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(sys.argv[1:] if argv is None else argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.ERROR,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    source, err = read_source(args.input_file)
    if err != 0:
        return err
    options = TranslateOptions(exact_types=args.exact_types, class_name=args.class_name)
    response = translate(source, args.source_language, args.target_language, options)
    if args.as_json:
        code = write_output(json.dumps(response, indent=2), args.output_file)
        return code if code != 0 else (0 if response["success"] else 1)
    warnings = response["warnings"]
    assert isinstance(warnings, list)
    for w in warnings:
        print("warning: " + str(w), file=sys.stderr)
    if not response["success"]:
        print("error: " + str(response.get("error", "translation failed")), file=sys.stderr)
        return 2 if response.get("error_code") == "unsupported_pair" else 1
    output = response["translated_code"]
    assert isinstance(output, str)
    return write_output(output, args.output_file)


if __name__ == "__main__":
    sys.exit(main())
