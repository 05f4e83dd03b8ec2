"""Rename history record for a single tracked declaration."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import BaseModel, Field, PrivateAttr

from utils import is_blank

if TYPE_CHECKING:
    from contract.protocols import SymbolSource


class RenameHistoryRecord(BaseModel):
    """Current and previous names of the declaration at a stable identity.

    ``previous_names`` is append-only and ordered oldest first.
    """

    id: str = Field(description="Stable identity of the declaring file")
    current_name: str = Field(default="", description="Name currently declared")
    previous_names: list[str] = Field(
        default_factory=list,
        description="Names this declaration had before, in rename order",
    )

    _handle: object | None = PrivateAttr(default=None)

    @property
    def handle(self) -> object | None:
        """Last declaration handle seen for this record (not persisted)."""
        return self._handle

    def attach_handle(self, handle: object | None) -> None:
        self._handle = handle

    @property
    def known_names(self) -> list[str]:
        return [*self.previous_names, self.current_name]

    def matches_current(self, name: str) -> bool:
        return self.current_name == name

    def matches_previous(self, name: str) -> bool:
        return name in self.previous_names

    def update(self, source: SymbolSource) -> bool:
        """Sync the current name with what the source declares at ``id``.

        Returns:
            False if the identity no longer resolves to a declaration (the
            record is kept as is), True otherwise.
        """
        declared_name = source.current_name_of(self.id)
        if declared_name is None:
            return False

        if declared_name == self.current_name:
            return True

        if not is_blank(self.current_name):
            self.previous_names.append(self.current_name)
        self.current_name = declared_name
        return True


__all__ = ["RenameHistoryRecord"]
