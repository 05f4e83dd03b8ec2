"""In-memory persistence adapter."""

from __future__ import annotations

from typing import TYPE_CHECKING

from contract.errors import PersistenceError

if TYPE_CHECKING:
    from collections.abc import Sequence

    from tracking.record import RenameHistoryRecord


class InMemoryStore:
    """Keeps deep copies of the last saved records.

    ``fail_saves`` / ``fail_loads`` make the next operations raise
    ``PersistenceError``, for hosts exercising their failure paths.
    """

    location = "<memory>"

    def __init__(self, records: Sequence[RenameHistoryRecord] = ()) -> None:
        self._records = [record.model_copy(deep=True) for record in records]
        self.save_count = 0
        self.fail_saves = False
        self.fail_loads = False

    @property
    def records(self) -> list[RenameHistoryRecord]:
        return [record.model_copy(deep=True) for record in self._records]

    def load(self) -> list[RenameHistoryRecord]:
        if self.fail_loads:
            raise PersistenceError("load", self.location, "store unavailable")
        return self.records

    def save(self, records: Sequence[RenameHistoryRecord]) -> None:
        if self.fail_saves:
            raise PersistenceError("save", self.location, "store unavailable")
        self._records = [record.model_copy(deep=True) for record in records]
        self.save_count += 1


__all__ = ["InMemoryStore"]
