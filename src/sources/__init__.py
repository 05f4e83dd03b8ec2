"""Symbol sources: where the registry learns what is currently declared."""

from sources.memory import InMemorySymbolSource, Symbol
from sources.python_tree import PythonSourceTree

__all__ = ["InMemorySymbolSource", "PythonSourceTree", "Symbol"]
