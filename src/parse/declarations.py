"""Tree-sitter based class declaration extraction."""

from __future__ import annotations

from typing import TYPE_CHECKING

from tree_sitter import Language, Node, Parser
from tree_sitter_python import language as get_python_language

from contract.models import Declaration

if TYPE_CHECKING:
    from pathlib import Path

_PARSER: Parser | None = None


def _get_parser() -> Parser:
    """Initialize and return the Tree-sitter parser with Python language."""
    global _PARSER
    if _PARSER is None:
        lang = Language(get_python_language())
        _PARSER = Parser(lang)

    return _PARSER


def _extract_base_classes(node: Node) -> tuple[str, ...]:
    """Extract base class names from a class definition node, as written."""
    superclasses = node.child_by_field_name("superclasses")
    if superclasses is None:
        return ()

    bases: list[str] = []
    for child in superclasses.children:
        if child.type in ("identifier", "attribute") and child.text:
            bases.append(child.text.decode("utf8"))
        elif child.type == "subscript":
            # Generic[T] -> Generic
            value_node = child.child_by_field_name("value")
            if value_node and value_node.text:
                bases.append(value_node.text.decode("utf8"))

    return tuple(bases)


def _class_node(node: Node) -> Node | None:
    if node.type == "class_definition":
        return node
    if node.type == "decorated_definition":
        definition = node.child_by_field_name("definition")
        if definition is not None and definition.type == "class_definition":
            return definition
    return None


def extract_declarations(
    source: bytes,
    relative_path: str,
    module_name: str,
) -> list[Declaration]:
    """Return the top-level classes declared in ``source``, in file order.

    Nested classes are not declarations of the file and are skipped.
    """
    tree = _get_parser().parse(source)

    declarations: list[Declaration] = []
    for child in tree.root_node.children:
        node = _class_node(child)
        if node is None:
            continue
        name_node = node.child_by_field_name("name")
        if not (name_node and name_node.text):
            continue

        class_name = name_node.text.decode("utf8")
        declarations.append(
            Declaration(
                path=relative_path,
                name=class_name,
                qualified_name=f"{module_name}.{class_name}",
                start_line=node.start_point[0] + 1,
                start_col=node.start_point[1] + 1,
                base_classes=_extract_base_classes(node),
            )
        )

    return declarations


def primary_declaration(
    file_path: Path,
    relative_path: str,
    module_name: str,
) -> Declaration | None:
    """Return the class a file declares: its first top-level class.

    Args:
        file_path: Absolute path to the Python file
        relative_path: Path relative to the scanned root (for output)
        module_name: Module name derived from relative path (e.g., "shop.items")

    Returns:
        The first top-level class, or None if the file declares none or
        cannot be read.
    """
    try:
        source_bytes = file_path.read_bytes()
    except OSError:
        return None

    declarations = extract_declarations(source_bytes, relative_path, module_name)
    return declarations[0] if declarations else None


__all__ = ["extract_declarations", "primary_declaration"]
