"""Collaborator contracts required by the identity registry."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from collections.abc import Sequence

    from contract.models import StableId, SymbolName
    from tracking.record import RenameHistoryRecord


@dataclass(frozen=True)
class DirectResolution:
    """A live declaration found by name.

    ``stable_id`` is None when the declaration exists but is not eligible
    for tracking.
    """

    stable_id: StableId | None
    handle: object


class SymbolSource(Protocol):
    def current_name_of(self, stable_id: StableId) -> SymbolName | None:
        """Return the name currently declared at ``stable_id``, or None."""
        ...

    def resolve_directly(self, name: SymbolName) -> DirectResolution | None:
        """Return the live declaration named ``name``, or None."""
        ...


class PersistenceAdapter(Protocol):
    def load(self) -> list[RenameHistoryRecord]:
        """Return persisted records in registration order.

        Raises:
            PersistenceError: If the store exists but cannot be read.
        """
        ...

    def save(self, records: Sequence[RenameHistoryRecord]) -> None:
        """Replace the persisted records.

        Raises:
            PersistenceError: If the store cannot be written.
        """
        ...


__all__ = ["DirectResolution", "PersistenceAdapter", "SymbolSource"]
