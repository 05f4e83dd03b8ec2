"""Shared utilities for typetrack."""

from __future__ import annotations

from pathlib import Path


def path_to_module(file_path: str | Path) -> str:
    """Convert a source file path to the dotted module that declares it.

    Args:
        file_path: Relative file path (e.g., "src/shop/items.py" or Path object)

    Returns:
        Module name (e.g., "shop.items")

    Raises:
        ValueError: If the path maps to an empty module name.

    Examples:
        >>> path_to_module("src/shop/items.py")
        'shop.items'
        >>> path_to_module("src/shop/__init__.py")
        'shop'
        >>> path_to_module(Path("foo/bar.py"))
        'foo.bar'
    """
    path_str = file_path.as_posix() if isinstance(file_path, Path) else str(file_path)
    normalized_parts = [part for part in path_str.replace("\\", "/").split("/") if part]

    # Sources under src/<package>/... are importable as <package>.<submodules>.
    module_parts = (
        normalized_parts[1:]
        if len(normalized_parts) >= 2 and normalized_parts[0] == "src"
        else normalized_parts
    )

    if module_parts and module_parts[-1].endswith(".py"):
        module_parts[-1] = module_parts[-1][:-3]

    if module_parts and module_parts[-1] == "__init__":
        module_parts = module_parts[:-1]

    if not module_parts:
        msg = f"Path {path_str!r} does not map to a non-empty module name"
        raise ValueError(msg)

    return ".".join(module_parts)


def is_blank(value: str | None) -> bool:
    """Return True for None, empty and whitespace-only strings."""
    return value is None or not value.strip()
