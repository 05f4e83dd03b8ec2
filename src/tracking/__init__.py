"""Rename tracking for stored symbol references."""

from tracking.binding import (
    MappingSlot,
    ReferenceChange,
    ReferenceSlot,
    sync_document,
    sync_reference,
)
from tracking.diagnostics import Diagnostic, DiagnosticHook, DiagnosticLog
from tracking.record import RenameHistoryRecord
from tracking.registry import (
    IdentityRegistry,
    PruneResult,
    RefreshResult,
    Resolution,
)

__all__ = [
    "Diagnostic",
    "DiagnosticHook",
    "DiagnosticLog",
    "IdentityRegistry",
    "MappingSlot",
    "PruneResult",
    "ReferenceChange",
    "ReferenceSlot",
    "RefreshResult",
    "RenameHistoryRecord",
    "Resolution",
    "sync_document",
    "sync_reference",
]
