"""Persisted rename history document."""

from __future__ import annotations

from pydantic import BaseModel, Field

from store.scopes import StoreScope
from tracking.record import RenameHistoryRecord

# Schema version of the persisted history document.
SCHEMA_VERSION = 1

HISTORY_FILENAME = "history.json"


class HistoryDocument(BaseModel):
    """Top-level document written by ``JsonFileStore``."""

    schema_version: int = Field(default=SCHEMA_VERSION)
    scope: StoreScope = Field(default=StoreScope.PROJECT)
    records: list[RenameHistoryRecord] = Field(default_factory=list)


__all__ = ["HISTORY_FILENAME", "SCHEMA_VERSION", "HistoryDocument"]
