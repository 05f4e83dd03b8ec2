"""Errors raised across the registry boundary."""

from __future__ import annotations

from typing import Literal

PersistenceOperation = Literal["load", "save"]


class PersistenceError(Exception):
    """Raised by a persistence adapter when its store cannot be read or written.

    A missing store is not an error; adapters report it as an empty history.
    """

    def __init__(
        self,
        operation: PersistenceOperation,
        location: str,
        reason: str,
    ) -> None:
        self.operation = operation
        self.location = location
        self.reason = reason
        super().__init__(f"Failed to {operation} rename history at {location}: {reason}")


__all__ = ["PersistenceError", "PersistenceOperation"]
