"""Stable contract surface between the registry and its collaborators.

Hosts implement ``SymbolSource`` and ``PersistenceAdapter``; everything else
in typetrack depends only on the names exported here.
"""

from contract.errors import PersistenceError, PersistenceOperation
from contract.models import Declaration, StableId, SymbolName
from contract.protocols import DirectResolution, PersistenceAdapter, SymbolSource

__all__ = [
    "Declaration",
    "DirectResolution",
    "PersistenceAdapter",
    "PersistenceError",
    "PersistenceOperation",
    "StableId",
    "SymbolName",
    "SymbolSource",
]
