"""In-memory symbol source."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass

from contract.protocols import DirectResolution


@dataclass(frozen=True)
class Symbol:
    """Declaration handle returned by ``InMemorySymbolSource``."""

    stable_id: str | None
    name: str


class InMemorySymbolSource:
    """Symbol source backed by a mapping of stable id to current name.

    ``current_name_calls`` counts ``current_name_of`` lookups so hosts can
    observe how often the registry sweeps.
    """

    def __init__(
        self,
        declarations: Mapping[str, str] | None = None,
        *,
        trackable: Callable[[Symbol], bool] | None = None,
    ) -> None:
        self._declarations: dict[str, str] = dict(declarations or {})
        self._untracked: set[str] = set()
        self._trackable = trackable
        self.current_name_calls = 0

    def declare(self, stable_id: str, name: str) -> None:
        self._declarations[stable_id] = name

    def rename(self, stable_id: str, new_name: str) -> None:
        if stable_id not in self._declarations:
            msg = f"Unknown stable id: {stable_id}"
            raise KeyError(msg)
        self._declarations[stable_id] = new_name

    def remove(self, stable_id: str) -> None:
        self._declarations.pop(stable_id, None)

    def declare_untracked(self, name: str) -> None:
        """Declare a live symbol that has no stable identity."""
        self._untracked.add(name)

    def current_name_of(self, stable_id: str) -> str | None:
        self.current_name_calls += 1
        return self._declarations.get(stable_id)

    def resolve_directly(self, name: str) -> DirectResolution | None:
        for stable_id, declared_name in self._declarations.items():
            if declared_name != name:
                continue
            symbol = Symbol(stable_id=stable_id, name=name)
            if self._trackable is not None and not self._trackable(symbol):
                return DirectResolution(stable_id=None, handle=symbol)
            return DirectResolution(stable_id=stable_id, handle=symbol)

        if name in self._untracked:
            return DirectResolution(stable_id=None, handle=Symbol(None, name))
        return None


__all__ = ["InMemorySymbolSource", "Symbol"]
