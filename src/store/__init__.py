"""Persistence adapters for rename histories."""

from store.document import HISTORY_FILENAME, SCHEMA_VERSION, HistoryDocument
from store.json_store import JsonFileStore
from store.memory import InMemoryStore
from store.scopes import StoreScope, store_dir_for
from store.validation import ValidationMessage, ValidationResult, validate_store

__all__ = [
    "HISTORY_FILENAME",
    "SCHEMA_VERSION",
    "HistoryDocument",
    "InMemoryStore",
    "JsonFileStore",
    "StoreScope",
    "ValidationMessage",
    "ValidationResult",
    "store_dir_for",
    "validate_store",
]
