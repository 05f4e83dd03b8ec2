"""Symbol source over a tree of Python files.

Each file is one declaration site: its stable identity is ``file:<path>``
(relative POSIX path) and the symbol it declares is its first top-level
class, named ``<module>.<Class>``. Renaming the class keeps the identity;
moving the file does not.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from contract.protocols import DirectResolution
from parse.declarations import primary_declaration
from rules.eligibility import build_trackable_predicate, track_all
from scan.files import ScanOptions, find_source_files
from utils import path_to_module

if TYPE_CHECKING:
    from pathlib import Path

    from contract.models import Declaration
    from rules.config import TypeTrackConfig
    from rules.eligibility import TrackablePredicate

logger = structlog.get_logger()


class PythonSourceTree:
    """Snapshot of the classes declared under a root directory.

    The snapshot is taken on first use and kept until ``rescan``; hosts call
    ``rescan`` together with ``IdentityRegistry.invalidate`` after files
    change.
    """

    def __init__(
        self,
        root: Path,
        *,
        options: ScanOptions | None = None,
        trackable: TrackablePredicate = track_all,
    ) -> None:
        self.root = root
        self.options = options or ScanOptions()
        self._trackable = trackable
        self._by_id: dict[str, Declaration] | None = None
        self._by_name: dict[str, Declaration] = {}

    @classmethod
    def from_config(cls, root: Path, config: TypeTrackConfig) -> PythonSourceTree:
        options = ScanOptions(
            state_dir=config.state_dir,
            include_patterns=list(config.include),
            exclude_patterns=list(config.exclude),
            nested_gitignore=config.nested_gitignore,
        )
        return cls(
            root,
            options=options,
            trackable=build_trackable_predicate(config.eligibility),
        )

    @property
    def declarations(self) -> list[Declaration]:
        return list(self._snapshot().values())

    def rescan(self) -> None:
        self._by_id = None
        self._by_name = {}

    def current_name_of(self, stable_id: str) -> str | None:
        declaration = self._snapshot().get(stable_id)
        return declaration.qualified_name if declaration is not None else None

    def resolve_directly(self, name: str) -> DirectResolution | None:
        self._snapshot()
        declaration = self._by_name.get(name)
        if declaration is None:
            return None
        stable_id = declaration.stable_id if self._trackable(declaration) else None
        return DirectResolution(stable_id=stable_id, handle=declaration)

    def _snapshot(self) -> dict[str, Declaration]:
        if self._by_id is not None:
            return self._by_id

        by_id: dict[str, Declaration] = {}
        by_name: dict[str, Declaration] = {}
        for file_path in find_source_files(self.root, self.options):
            relative_path = file_path.relative_to(self.root).as_posix()
            try:
                module_name = path_to_module(relative_path)
            except ValueError:
                continue
            declaration = primary_declaration(file_path, relative_path, module_name)
            if declaration is None:
                continue
            by_id[declaration.stable_id] = declaration
            # Files are visited in path order; the first declaration of a name wins.
            by_name.setdefault(declaration.qualified_name, declaration)

        logger.debug(
            "source_scanned", root=str(self.root), declaration_count=len(by_id)
        )
        self._by_id = by_id
        self._by_name = by_name
        return by_id


__all__ = ["PythonSourceTree"]
