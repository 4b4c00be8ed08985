"""Frontend package - converts native parse trees to the canonical AST."""

from .base import EntryPoints, Frontend, ParseDispatch, SourceParser
from .c import CFrontend
from .java import JavaFrontend
from .native import SourceText, load_parser
from .python import PythonFrontend

FRONTENDS: dict[str, type[Frontend]] = {
    "python": PythonFrontend,
    "java": JavaFrontend,
    "c": CFrontend,
}


__all__ = [
    "CFrontend",
    "EntryPoints",
    "FRONTENDS",
    "Frontend",
    "JavaFrontend",
    "ParseDispatch",
    "PythonFrontend",
    "SourceParser",
    "SourceText",
    "load_parser",
]
