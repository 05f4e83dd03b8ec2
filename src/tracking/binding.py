"""Keep stored symbol names in sync with the registry."""

from __future__ import annotations

from collections.abc import MutableMapping, MutableSequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol

from utils import is_blank

if TYPE_CHECKING:
    from collections.abc import Iterable

    from tracking.registry import IdentityRegistry, Resolution


class ReferenceSlot(Protocol):
    """A single stored string that holds a symbol name."""

    def get(self) -> str | None: ...

    def set(self, value: str) -> None: ...


class MappingSlot:
    """``ReferenceSlot`` over one key of a mutable mapping."""

    def __init__(self, mapping: MutableMapping[str, Any], key: str) -> None:
        self._mapping = mapping
        self._key = key

    def get(self) -> str | None:
        value = self._mapping.get(self._key)
        return value if isinstance(value, str) else None

    def set(self, value: str) -> None:
        self._mapping[self._key] = value


@dataclass(frozen=True)
class ReferenceChange:
    path: str
    old_name: str
    new_name: str

    def to_dict(self) -> dict[str, str]:
        return {"path": self.path, "old_name": self.old_name, "new_name": self.new_name}


def sync_reference(
    registry: IdentityRegistry, slot: ReferenceSlot
) -> Resolution | None:
    """Resolve the name stored in ``slot`` and write back its current name.

    The slot is only written when the resolved name differs from the stored
    one. Empty slots and unresolvable names are left untouched.
    """
    stored = slot.get()
    if stored is None or is_blank(stored):
        return None

    resolution = registry.resolve(stored)
    if resolution is not None and resolution.name != stored:
        slot.set(resolution.name)
    return resolution


def sync_document(
    registry: IdentityRegistry,
    document: object,
    fields: Iterable[str],
) -> list[ReferenceChange]:
    """Sync every string stored under one of ``fields`` in a JSON-like document.

    Nested mappings and lists are walked depth first; changes are reported
    with a ``$.a.b[0].c`` style path in document order.
    """
    field_names = frozenset(fields)
    changes: list[ReferenceChange] = []
    _walk(registry, document, field_names, "$", changes)
    return changes


def _walk(
    registry: IdentityRegistry,
    node: object,
    fields: frozenset[str],
    path: str,
    changes: list[ReferenceChange],
) -> None:
    if isinstance(node, MutableMapping):
        for key in list(node):
            child_path = f"{path}.{key}"
            value = node[key]
            if key in fields and isinstance(value, str):
                resolution = sync_reference(registry, MappingSlot(node, key))
                if resolution is not None and resolution.name != value:
                    changes.append(ReferenceChange(child_path, value, resolution.name))
                continue
            _walk(registry, value, fields, child_path, changes)
    elif isinstance(node, MutableSequence):
        for index, item in enumerate(node):
            _walk(registry, item, fields, f"{path}[{index}]", changes)


__all__ = [
    "MappingSlot",
    "ReferenceChange",
    "ReferenceSlot",
    "sync_document",
    "sync_reference",
]
