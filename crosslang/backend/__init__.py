"""Backend package - renders the canonical AST as target source."""

from .c import CGenerator
from .java import JavaGenerator
from .python import PythonGenerator
from .util import Generator

GENERATORS: dict[str, type[Generator]] = {
    "python": PythonGenerator,
    "java": JavaGenerator,
    "c": CGenerator,
}


__all__ = ["CGenerator", "GENERATORS", "Generator", "JavaGenerator", "PythonGenerator"]
