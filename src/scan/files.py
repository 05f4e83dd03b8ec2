"""Source file discovery for typetrack."""

from __future__ import annotations

from dataclasses import dataclass, field
from fnmatch import fnmatch
from typing import TYPE_CHECKING, cast

from gitignore_parser import parse_gitignore  # type: ignore[import-untyped]

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator
    from pathlib import Path


@dataclass(frozen=True)
class ScanOptions:
    """Which files under a root are candidate declaration files."""

    state_dir: str = ".typetrack"
    include_patterns: list[str] = field(default_factory=list)
    exclude_patterns: list[str] = field(default_factory=list)
    nested_gitignore: bool = False


def _is_within_root(path: Path, root: Path) -> bool:
    """Return True when the resolved path stays within the resolved root."""
    try:
        path.resolve().relative_to(root.resolve())
    except (OSError, ValueError):
        return False
    return True


def _should_include_file(
    path: Path,
    root: Path,
    options: ScanOptions,
    gitignore_matches: Callable[[str], bool] | None,
) -> bool:
    if not path.is_file() or path.is_symlink():
        return False

    if not _is_within_root(path, root):
        return False

    rel_path = path.relative_to(root)
    rel_path_str = rel_path.as_posix()

    if options.state_dir and rel_path.parts[0] == options.state_dir:
        return False

    if gitignore_matches is not None and gitignore_matches(str(path)):
        return False

    if options.include_patterns and not any(
        fnmatch(rel_path_str, pat) for pat in options.include_patterns
    ):
        return False

    return not any(fnmatch(rel_path_str, pat) for pat in options.exclude_patterns)


def _build_gitignore_matcher(
    root: Path,
    *,
    nested_gitignore: bool,
) -> Callable[[str], bool] | None:
    if not nested_gitignore:
        gitignore_path = root / ".gitignore"
        if gitignore_path.is_file():
            return cast("Callable[[str], bool]", parse_gitignore(gitignore_path))
        return None

    gitignore_paths = sorted(
        {
            path
            for path in [root / ".gitignore", *root.rglob(".gitignore")]
            if path.is_file() and not path.is_symlink()
        },
        key=lambda p: p.relative_to(root).as_posix(),
    )
    if not gitignore_paths:
        return None

    matchers = [parse_gitignore(path) for path in gitignore_paths]

    def matches(path_str: str) -> bool:
        for matcher in matchers:
            try:
                if matcher(path_str):
                    return True
            except ValueError:
                continue
        return False

    return matches


def find_source_files(root: Path, options: ScanOptions | None = None) -> Iterator[Path]:
    """Yield the Python files under ``root`` that may declare tracked classes.

    Files are skipped when they are symlinks, resolve outside ``root``, live
    in the state directory, are gitignored, miss every include pattern or
    match an exclude pattern. Results are sorted by relative POSIX path.
    """
    options = options or ScanOptions()
    gitignore_matches = _build_gitignore_matcher(
        root, nested_gitignore=options.nested_gitignore
    )

    matched_files = [
        path
        for path in root.rglob("*.py")
        if _should_include_file(path, root, options, gitignore_matches)
    ]
    matched_files.sort(key=lambda p: p.relative_to(root).as_posix())

    yield from matched_files


__all__ = ["ScanOptions", "find_source_files"]
