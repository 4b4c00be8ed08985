"""Literal decoding and format-string decomposition shared by all frontends.

Escape sequences are decoded to the characters they stand for, so every
string in the IR holds in-memory text and generators re-escape it once.
"""

from __future__ import annotations

import re

from ..errors import UnsupportedConstruct
from ..ir import Fragment, FormatSpec, Literal, Placeholder, TextFragment

_ESCAPE = re.compile(r"\\(x[0-9a-fA-F]{1,2}|u[0-9a-fA-F]{4}|[0-7]{1,3}|.)", re.DOTALL)

_SIMPLE_ESCAPES = {
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "\\": "\\",
    '"': '"',
    "'": "'",
    "a": "\a",
    "b": "\b",
    "f": "\f",
    "v": "\v",
    "?": "?",
    "\n": "",
}


def unescape(body: str) -> str:
    """Decode backslash escapes common to C, Java and Python."""

    def repl(m: re.Match[str]) -> str:
        esc = m.group(1)
        if esc[0] == "x" and len(esc) > 1:
            return chr(int(esc[1:], 16))
        if esc[0] == "u" and len(esc) == 5:
            return chr(int(esc[1:], 16))
        if esc[0] in "01234567":
            return chr(int(esc, 8))
        return _SIMPLE_ESCAPES.get(esc, "\\" + esc)

    return _ESCAPE.sub(repl, body)


_QUOTED = re.compile(r"^([A-Za-z0-9]*)(\"\"\"|'''|\"|')")


def split_quoted(text: str) -> tuple[str, str, str]:
    """Split a quoted literal into (prefix, quote, raw body)."""
    m = _QUOTED.match(text)
    if m is None:
        raise UnsupportedConstruct("string literal", text)
    prefix, quote = m.group(1), m.group(2)
    body = text[len(prefix) + len(quote) :]
    if body.endswith(quote):
        body = body[: len(body) - len(quote)]
    return prefix, quote, body


def decode_string(text: str) -> str:
    """Decoded value of a C/Java/Python string literal (no f-strings)."""
    prefix, _, body = split_quoted(text)
    if "r" in prefix.lower():
        return body
    return unescape(body)


def decode_char(text: str) -> str:
    _, _, body = split_quoted(text)
    return unescape(body)


_OCTAL_C = re.compile(r"^0[0-7]+$")


def parse_number(text: str) -> Literal:
    """Numeric literal in any of the three languages."""
    try:
        return _parse_number(text)
    except ValueError:
        raise UnsupportedConstruct("number", text) from None


def _parse_number(text: str) -> Literal:
    t = text.replace("_", "").replace("'", "")
    if t[:2].lower() in ("0x", "0b", "0o"):
        t = t.rstrip("lLuU")
        return Literal(int(t, 0), "int")
    lowered = t.lower()
    is_float = "." in t or "e" in lowered or lowered.endswith(("f", "d"))
    t = t.rstrip("lLuUfFdD")
    if is_float:
        return Literal(float(t), "float")
    if _OCTAL_C.match(t):
        return Literal(int(t, 8), "int")
    return Literal(int(t), "int")


# ============================================================
# FORMAT STRINGS
# ============================================================

PRINTF_SPEC = re.compile(
    r"%%|%([-+#0 ]*)(\d+)?(?:\.(\d+))?(?:hh|h|ll|l|L|z|t|j|q)?([diuoxXfFeEgGaAcspnb])"
)

_CONVERSIONS = {"i": "d", "u": "d", "b": "s"}


def parse_printf(fmt: str, language: str) -> tuple[list[Fragment], bool]:
    """Decompose a printf-style format into fragments.

    Placeholders are numbered left to right so callers can zip them with
    the argument list. Returns (fragments, newline) where newline reports a
    trailing newline that has been removed from the text.
    """
    fragments: list[Fragment] = []
    text: list[str] = []
    index = 0
    pos = 0
    for m in PRINTF_SPEC.finditer(fmt):
        text.append(fmt[pos : m.start()])
        pos = m.end()
        if m.group(0) == "%%":
            text.append("%")
            continue
        flags, width, precision, conversion = m.groups()
        if conversion == "n":
            if language != "java":
                raise UnsupportedConstruct("printf", "%n stores a count")
            text.append("\n")
            continue
        if conversion in ("p", "a", "A"):
            raise UnsupportedConstruct("printf", f"%{conversion} conversion")
        if "".join(text):
            fragments.append(TextFragment("".join(text)))
        text = []
        spec = FormatSpec(
            flags=flags or "",
            width=int(width) if width else None,
            precision=int(precision) if precision else None,
            conversion=_CONVERSIONS.get(conversion, conversion),
        )
        fragments.append(Placeholder(index, spec))
        index += 1
    text.append(fmt[pos:])
    if "".join(text):
        fragments.append(TextFragment("".join(text)))
    return strip_newline(fragments)


def strip_newline(fragments: list[Fragment]) -> tuple[list[Fragment], bool]:
    """Remove one trailing newline from the last text fragment."""
    if fragments:
        last = fragments[-1]
        if isinstance(last, TextFragment) and last.text.endswith("\n"):
            rest = last.text[:-1]
            if rest:
                return fragments[:-1] + [TextFragment(rest)], True
            return fragments[:-1], True
    return fragments, False


def count_placeholders(fragments: list[Fragment]) -> int:
    return sum(1 for f in fragments if isinstance(f, Placeholder))


_PY_SPEC = re.compile(
    r"^(?:(?P<fill>.)?(?P<align>[<>^=]))?(?P<sign>[-+ ])?(?P<alt>#)?(?P<zero>0)?"
    r"(?P<width>\d+)?[,_]?(?:\.(?P<precision>\d+))?(?P<type>[bcdeEfFgGnosxX%])?$"
)


def parse_python_spec(spec: str) -> FormatSpec:
    """Convert a Python format spec (`5.2f`, `<10`, `+d`) into a FormatSpec."""
    m = _PY_SPEC.match(spec)
    if m is None:
        raise UnsupportedConstruct("format spec", spec)
    if m.group("type") in ("%", "b", "n"):
        raise UnsupportedConstruct("format spec", spec)
    flags = ""
    if m.group("align") == "<":
        flags += "-"
    if m.group("sign") in ("+", " "):
        flags += m.group("sign")
    if m.group("alt"):
        flags += "#"
    if m.group("zero") or (m.group("fill") == "0" and m.group("align") == "="):
        flags += "0"
    width = m.group("width")
    precision = m.group("precision")
    return FormatSpec(
        flags=flags,
        width=int(width) if width else None,
        precision=int(precision) if precision else None,
        conversion=m.group("type"),
    )


def join_text(fragments: list[Fragment]) -> list[Fragment]:
    """Merge adjacent text fragments and drop empty ones."""
    out: list[Fragment] = []
    for frag in fragments:
        if isinstance(frag, TextFragment):
            if not frag.text:
                continue
            if out and isinstance(out[-1], TextFragment):
                out[-1] = TextFragment(out[-1].text + frag.text)
                continue
        out.append(frag)
    return out
