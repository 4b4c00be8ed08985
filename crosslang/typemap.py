"""Type resolution between language pairs, and expression kind inference.

Types travel through the IR as source-language spellings ("int", "char*",
"String", "str", "int[]"). Generators map them to the target with
map_type(), which is total: anything unknown becomes the target's generic
object type.

Kinds are the coarse classification used for format selection, division
and string concatenation: int float bool string char array void unknown.
"""

from __future__ import annotations

import re
from typing import Protocol

from .ir import (
    ArrayAccess,
    ArrayLiteral,
    AssignmentExpression,
    BinaryExpression,
    CallExpression,
    Expr,
    Identifier,
    Literal,
    NullLiteral,
    TernaryExpression,
    UnaryExpression,
)

LANGUAGES = ("python", "java", "c")

SUPPORTED_PAIRS = (
    ("python", "java"),
    ("c", "java"),
    ("java", "python"),
    ("c", "python"),
    ("java", "c"),
    ("python", "c"),
)


def pair_key(source: str, target: str) -> str:
    return f"{source}->{target}"


def split_pair(pair: str) -> tuple[str, str]:
    source, _, target = pair.partition("->")
    return source, target


GENERIC_TYPE = {"java": "Object", "python": "object", "c": "void*"}
STRING_TYPE = {"java": "String", "python": "str", "c": "char*"}

# Source spellings, per ordered pair. Keys are normalized (see normalize()).
_TABLES: dict[str, dict[str, str]] = {
    "python->java": {
        "int": "int",
        "float": "double",
        "str": "String",
        "bool": "boolean",
        "None": "void",
        "void": "void",
        "object": "Object",
        "list": "Object[]",
    },
    "python->c": {
        "int": "int",
        "float": "double",
        "str": "char*",
        "bool": "bool",
        "None": "void",
        "void": "void",
        "object": "void*",
        "list": "void*",
    },
    "c->java": {
        "char": "char",
        "signed char": "byte",
        "unsigned char": "char",
        "short": "short",
        "int": "int",
        "unsigned": "int",
        "unsigned int": "int",
        "long": "long",
        "unsigned long": "long",
        "long long": "long",
        "unsigned long long": "long",
        "size_t": "long",
        "float": "float",
        "double": "double",
        "long double": "double",
        "bool": "boolean",
        "_Bool": "boolean",
        "void": "void",
        "char*": "String",
    },
    "c->python": {
        "char": "str",
        "signed char": "int",
        "unsigned char": "int",
        "short": "int",
        "int": "int",
        "unsigned": "int",
        "unsigned int": "int",
        "long": "int",
        "unsigned long": "int",
        "long long": "int",
        "unsigned long long": "int",
        "size_t": "int",
        "float": "float",
        "double": "float",
        "long double": "float",
        "bool": "bool",
        "_Bool": "bool",
        "void": "None",
        "char*": "str",
    },
    "java->python": {
        "byte": "int",
        "short": "int",
        "int": "int",
        "long": "int",
        "float": "float",
        "double": "float",
        "char": "str",
        "boolean": "bool",
        "String": "str",
        "void": "None",
        "Object": "object",
        "Integer": "int",
        "Long": "int",
        "Double": "float",
        "Float": "float",
        "Boolean": "bool",
        "Character": "str",
        "ArrayList": "list",
        "List": "list",
        "HashMap": "dict",
        "Map": "dict",
        "HashSet": "set",
        "Set": "set",
    },
    "java->c": {
        "byte": "signed char",
        "short": "short",
        "int": "int",
        "long": "long long",
        "float": "float",
        "double": "double",
        "char": "char",
        "boolean": "bool",
        "String": "char*",
        "void": "void",
        "Integer": "int",
        "Long": "long long",
        "Double": "double",
        "Float": "float",
        "Boolean": "bool",
        "Character": "char",
    },
}

_QUALIFIERS = ("const ", "final ", "static ", "volatile ", "register ")

_STRING_SPELLINGS = frozenset({"char*", "char[]", "String", "str"})


def normalize(source_type: str) -> str:
    """Canonical spelling: no qualifiers, single spaces, `char *` -> `char*`."""
    t = " ".join(source_type.split())
    for q in _QUALIFIERS:
        while t.startswith(q):
            t = t[len(q) :]
    t = t.replace(" *", "*").replace("* ", "*").replace(" [", "[")
    # generic arguments never affect the mapping
    t = re.sub(r"<.*>", "", t)
    return t


def split_array(source_type: str) -> tuple[str, int]:
    """Return (base, depth) for `T[]...` and `T*...` spellings."""
    t = normalize(source_type)
    if t in ("char*", "char[]"):
        return t, 0
    depth = 0
    while True:
        if t.endswith("[]"):
            t = t[:-2]
        elif t.endswith("*") and t != "char*":
            t = t[:-1]
        elif t.endswith("*"):
            # char** is an array of strings
            return t, depth
        else:
            return t, depth
        depth += 1


def element_type(source_type: str) -> str:
    """Type of one element of an array-typed spelling."""
    t = normalize(source_type)
    if t.endswith("[]"):
        return t[:-2]
    if t.endswith("*"):
        return t[:-1]
    if t == "list":
        return "object"
    if t in _STRING_SPELLINGS:
        return "char"
    return ""


def array_of(base: str, depth: int) -> str:
    """Canonical array spelling used for Context bindings."""
    return normalize(base) + "[]" * depth


def map_type(source_type: str, pair: str) -> str:
    """Map a source type spelling to the target language of pair.

    Never raises. Unknown types map to the target's generic object type.
    """
    _, target = split_pair(pair)
    generic = GENERIC_TYPE.get(target, "Object")
    t = normalize(source_type)
    if not t:
        return generic
    if t in ("char*", "char[]"):
        return STRING_TYPE[target]
    base, depth = split_array(t)
    if depth:
        inner = _lookup(base, pair, generic)
        if target == "python":
            return "list"
        if target == "c":
            return inner + "*" * depth
        return inner + "[]" * depth
    return _lookup(t, pair, generic)


def _lookup(t: str, pair: str, generic: str) -> str:
    table = _TABLES.get(pair)
    if table is None:
        return generic
    return table.get(t, generic)


_INT_NAMES = frozenset(
    {
        "int",
        "short",
        "long",
        "byte",
        "signed char",
        "unsigned char",
        "unsigned",
        "unsigned int",
        "unsigned long",
        "long long",
        "unsigned long long",
        "size_t",
        "Integer",
        "Long",
        "Short",
        "Byte",
    }
)
_FLOAT_NAMES = frozenset({"float", "double", "long double", "Float", "Double"})
_BOOL_NAMES = frozenset({"bool", "_Bool", "boolean", "Boolean"})
_CHAR_NAMES = frozenset({"char", "Character"})
_VOID_NAMES = frozenset({"void", "None"})


def kind_of(source_type: str | None) -> str:
    """Coarse kind of a source type spelling."""
    if not source_type:
        return "unknown"
    t = normalize(source_type)
    if t in _STRING_SPELLINGS:
        return "string"
    if t in _INT_NAMES:
        return "int"
    if t in _FLOAT_NAMES:
        return "float"
    if t in _BOOL_NAMES:
        return "bool"
    if t in _CHAR_NAMES:
        return "char"
    if t in _VOID_NAMES:
        return "void"
    if t == "list" or split_array(t)[1] > 0:
        return "array"
    return "unknown"


# Spelling of an inferred kind, per language
_SPELLINGS = {
    "python": {"int": "int", "float": "float", "bool": "bool", "string": "str", "char": "str"},
    "java": {"int": "int", "float": "double", "bool": "boolean", "string": "String", "char": "char"},
    "c": {"int": "int", "float": "double", "bool": "bool", "string": "char*", "char": "char"},
}


def spelling(kind: str, language: str) -> str:
    """Source spelling for an inferred kind; "" when the kind has none."""
    return _SPELLINGS[language].get(kind, "")


def unify_kinds(kinds: list[str]) -> str:
    """Common kind of array elements or ternary branches."""
    distinct = set(kinds)
    if not distinct:
        return "unknown"
    if len(distinct) == 1:
        return kinds[0]
    if distinct == {"int", "float"}:
        return "float"
    return "unknown"


# ============================================================
# BOOLEAN-NAME HEURISTIC
# ============================================================

_BOOL_NAME = re.compile(r"^(is|has|can|should)(_|[A-Z])|flag|^found$|^done$")


def looks_boolean(name: str) -> bool:
    """Name suggests a flag (is_valid, hasItems, done_flag).

    Used only when rendering 0/1 literals of integer variables for targets
    without declared types. Declared types never change.
    """
    return _BOOL_NAME.search(name) is not None


# ============================================================
# EXPRESSION KINDS
# ============================================================


class TypeLookup(Protocol):
    def get_variable_type(self, name: str) -> str | None: ...

    def get_function(self, name: str) -> str | None: ...


_COMPARISONS = frozenset({"==", "!=", "<", "<=", ">", ">="})
_INTEGRAL = ("int", "char", "bool")


def source_type_of(expr: Expr, ctx: TypeLookup) -> str:
    """Best-effort source spelling of an expression's type; "" if unknown."""
    match expr:
        case Identifier(name=name):
            return ctx.get_variable_type(name) or ""
        case ArrayAccess(array=array):
            return element_type(source_type_of(array, ctx))
        case _:
            return ""


def infer_kind(expr: Expr, ctx: TypeLookup) -> str:
    """Classify an expression's value into a kind."""
    match expr:
        case Literal(literal_kind=kind):
            return kind
        case NullLiteral():
            return "unknown"
        case ArrayLiteral():
            return "array"
        case Identifier(name=name):
            return kind_of(ctx.get_variable_type(name))
        case ArrayAccess():
            return kind_of(source_type_of(expr, ctx))
        case AssignmentExpression(value=value):
            return infer_kind(value, ctx)
        case UnaryExpression(operator="!"):
            return "bool"
        case UnaryExpression(operand=operand):
            kind = infer_kind(operand, ctx)
            return "int" if kind == "bool" else kind
        case TernaryExpression(then_value=then_value, else_value=else_value):
            return unify_kinds([infer_kind(then_value, ctx), infer_kind(else_value, ctx)])
        case BinaryExpression(left=left, operator=op, right=right):
            return _binary_kind(op, infer_kind(left, ctx), infer_kind(right, ctx))
        case CallExpression(name=name, arguments=args):
            return _call_kind(name, args, ctx)
        case _:
            return "unknown"


def _binary_kind(op: str, left: str, right: str) -> str:
    if op in _COMPARISONS or op in ("&&", "||"):
        return "bool"
    if op == "+" and "string" in (left, right):
        return "string"
    if op == "/":
        return "float"
    if op in ("&", "|", "^", "<<", ">>"):
        return "int"
    if "float" in (left, right):
        return "float"
    if left in _INTEGRAL and right in _INTEGRAL:
        return "int"
    return "unknown"


def _call_kind(name: str, args: list[Expr], ctx: TypeLookup) -> str:
    match name:
        case "len" | "int":
            return "int"
        case "sqrt" | "float":
            return "float"
        case "str":
            return "string"
        case "pow":
            kinds = [infer_kind(a, ctx) for a in args]
            return "float" if "float" in kinds else "int"
        case "abs" | "min" | "max":
            return unify_kinds([infer_kind(a, ctx) for a in args])
        case _:
            return kind_of(ctx.get_function(name))
