"""Diagnostics emitted by the identity registry."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Literal

DiagnosticKind = Literal[
    "load_failed",
    "persist_failed",
    "duplicate_current_name",
    "orphaned_record",
]


@dataclass(frozen=True)
class Diagnostic:
    kind: DiagnosticKind
    message: str
    details: dict[str, object] = field(default_factory=dict)

    def to_dict(self) -> dict[str, object]:
        return {"kind": self.kind, "message": self.message, **self.details}


DiagnosticHook = Callable[[Diagnostic], None]


class DiagnosticLog:
    """Hook that collects diagnostics in memory."""

    def __init__(self) -> None:
        self.entries: list[Diagnostic] = []

    def __call__(self, diagnostic: Diagnostic) -> None:
        self.entries.append(diagnostic)

    def of_kind(self, kind: DiagnosticKind) -> list[Diagnostic]:
        return [entry for entry in self.entries if entry.kind == kind]


__all__ = ["Diagnostic", "DiagnosticHook", "DiagnosticKind", "DiagnosticLog"]
