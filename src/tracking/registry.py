"""Identity registry: resolves stored symbol names across renames.

Each tracked declaration is a ``RenameHistoryRecord`` keyed by the stable
identity of the file that declares it. Resolution tries, in order:

1. a record whose current name equals the input;
2. a record whose rename history contains the input;
3. a live declaration the source resolves directly, which becomes a new
   record when the source gives it a stable identity.

Records whose declaration disappeared are kept and still answer passes 1
and 2; ``prune`` removes them on request.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Literal

import structlog

from contract.errors import PersistenceError
from tracking.diagnostics import Diagnostic
from tracking.record import RenameHistoryRecord
from utils import is_blank

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

    from contract.models import StableId, SymbolName
    from contract.protocols import PersistenceAdapter, SymbolSource
    from tracking.diagnostics import DiagnosticHook

logger = structlog.get_logger()

MatchKind = Literal["current", "previous", "direct"]


@dataclass(frozen=True)
class Resolution:
    """Outcome of a successful ``IdentityRegistry.resolve`` call."""

    name: SymbolName
    stable_id: StableId | None
    handle: object | None
    matched: MatchKind
    orphaned: bool = False
    persist_error: PersistenceError | None = None


@dataclass(frozen=True)
class RefreshResult:
    ran: bool
    changed: bool = False
    renamed: tuple[StableId, ...] = ()
    orphaned: tuple[StableId, ...] = ()
    persist_error: PersistenceError | None = None


@dataclass(frozen=True)
class PruneResult:
    removed: tuple[RenameHistoryRecord, ...] = ()
    persist_error: PersistenceError | None = None


class IdentityRegistry:
    """Ordered collection of rename history records.

    All operations are serialized through one re-entrant lock, and saves
    happen synchronously while it is held, so persisted snapshots are
    written in mutation order.
    """

    def __init__(
        self,
        source: SymbolSource,
        store: PersistenceAdapter,
        *,
        records: Iterable[RenameHistoryRecord] = (),
        on_diagnostic: DiagnosticHook | None = None,
    ) -> None:
        self._source = source
        self._store = store
        self._records: list[RenameHistoryRecord] = list(records)
        self._on_diagnostic = on_diagnostic
        self._lock = threading.RLock()
        self._refreshed = False
        self._orphaned: set[StableId] = set()
        self.load_error: PersistenceError | None = None
        self.last_persist_error: PersistenceError | None = None

    @classmethod
    def open(
        cls,
        source: SymbolSource,
        store: PersistenceAdapter,
        *,
        on_diagnostic: DiagnosticHook | None = None,
    ) -> IdentityRegistry:
        """Create a registry from the records persisted in ``store``.

        A store that cannot be read yields an empty registry; the error is
        kept in ``load_error`` and reported through ``on_diagnostic``.
        """
        registry = cls(source, store, on_diagnostic=on_diagnostic)
        try:
            records = store.load()
        except PersistenceError as exc:
            registry.load_error = exc
            logger.warning("load_failed", location=exc.location, error=exc.reason)
            registry._emit(
                Diagnostic(
                    kind="load_failed",
                    message=str(exc),
                    details={"location": exc.location},
                )
            )
        else:
            registry._records = list(records)
            logger.debug("registry_loaded", record_count=len(registry._records))
        return registry

    @property
    def records(self) -> tuple[RenameHistoryRecord, ...]:
        with self._lock:
            return tuple(self._records)

    @property
    def refreshed(self) -> bool:
        return self._refreshed

    @property
    def orphaned_ids(self) -> frozenset[StableId]:
        """Identities that did not resolve during the last sweep."""
        return frozenset(self._orphaned)

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[RenameHistoryRecord]:
        return iter(self.records)

    def find(self, stable_id: StableId) -> RenameHistoryRecord | None:
        with self._lock:
            for record in self._records:
                if record.id == stable_id:
                    return record
        return None

    def invalidate(self) -> None:
        """Force the next ``refresh`` to sweep every record."""
        with self._lock:
            self._refreshed = False
            logger.debug("registry_invalidated")

    def refresh(self, *, force: bool = False) -> RefreshResult:
        """Sync every record with the source, at most once per epoch."""
        with self._lock:
            if self._refreshed and not force:
                return RefreshResult(ran=False)

            renamed: list[StableId] = []
            orphaned: list[StableId] = []
            for record in self._records:
                old_name = record.current_name
                if not record.update(self._source):
                    orphaned.append(record.id)
                    continue
                if record.current_name != old_name:
                    renamed.append(record.id)
                    logger.info(
                        "record_renamed",
                        stable_id=record.id,
                        old_name=old_name,
                        new_name=record.current_name,
                    )

            self._report_orphans(orphaned)
            self._report_duplicate_names()

            persist_error = self._persist() if renamed else None
            self._refreshed = True
            logger.debug(
                "registry_refreshed",
                record_count=len(self._records),
                renamed=len(renamed),
                orphaned=len(orphaned),
            )
            return RefreshResult(
                ran=True,
                changed=bool(renamed),
                renamed=tuple(renamed),
                orphaned=tuple(orphaned),
                persist_error=persist_error,
            )

    def resolve(self, name: SymbolName) -> Resolution | None:
        """Resolve a possibly stale name to the current declaration.

        A save that fails during the lazy refresh is reported on the returned
        resolution's ``persist_error``.

        Returns:
            The resolution, or None when no pass finds the name.
        """
        if is_blank(name):
            return None

        with self._lock:
            refreshed = self.refresh()
            resolution = self._lookup(name)
            if (
                resolution is not None
                and resolution.persist_error is None
                and refreshed.persist_error is not None
            ):
                resolution = replace(resolution, persist_error=refreshed.persist_error)
            return resolution

    def _lookup(self, name: SymbolName) -> Resolution | None:
        for record in self._records:
            if record.matches_current(name):
                return self._resolve_record(record, "current")

        for record in self._records:
            if record.matches_previous(name):
                return self._resolve_record(record, "previous")

        return self._resolve_fresh(name)

    def resolve_name(self, name: SymbolName) -> SymbolName | None:
        resolution = self.resolve(name)
        return resolution.name if resolution is not None else None

    def track(
        self,
        stable_id: StableId,
        name: SymbolName,
        *,
        handle: object | None = None,
    ) -> RenameHistoryRecord:
        """Append a record with an empty history and persist the registry.

        A failed save leaves the record in place; the error is kept in
        ``last_persist_error``.
        """
        with self._lock:
            record = RenameHistoryRecord(id=stable_id, current_name=name)
            record.attach_handle(handle)
            self._records.append(record)
            logger.info("record_tracked", stable_id=stable_id, symbol=name)
            self._persist()
            return record

    def ensure_tracked(
        self,
        stable_id: StableId,
        name: SymbolName,
        *,
        handle: object | None = None,
    ) -> RenameHistoryRecord:
        """Return the record for ``stable_id``, tracking it as ``name`` if new.

        An existing record is synced with the source rather than overwritten
        with ``name``.
        """
        with self._lock:
            existing = self.find(stable_id)
            if existing is None:
                return self.track(stable_id, name, handle=handle)

            old_name = existing.current_name
            if existing.update(self._source):
                self._orphaned.discard(existing.id)
            if handle is not None:
                existing.attach_handle(handle)
            if existing.current_name != old_name:
                logger.info(
                    "record_renamed",
                    stable_id=existing.id,
                    old_name=old_name,
                    new_name=existing.current_name,
                )
                self._persist()
            return existing

    def prune(self) -> PruneResult:
        """Drop records whose identity no longer resolves in the source."""
        with self._lock:
            kept: list[RenameHistoryRecord] = []
            removed: list[RenameHistoryRecord] = []
            for record in self._records:
                if self._source.current_name_of(record.id) is None:
                    removed.append(record)
                else:
                    kept.append(record)

            if not removed:
                return PruneResult()

            self._records[:] = kept
            self._orphaned.difference_update(record.id for record in removed)
            logger.info(
                "records_pruned",
                stable_ids=[record.id for record in removed],
            )
            return PruneResult(removed=tuple(removed), persist_error=self._persist())

    def _resolve_record(
        self, record: RenameHistoryRecord, matched: MatchKind
    ) -> Resolution:
        orphaned = record.id in self._orphaned
        direct = self._source.resolve_directly(record.current_name)
        if direct is None:
            orphaned = True
        elif direct.stable_id in (record.id, None):
            record.attach_handle(direct.handle)
            if orphaned:
                # Declared again since the last sweep.
                self._orphaned.discard(record.id)
                orphaned = False
                logger.info(
                    "record_restored", stable_id=record.id, symbol=record.current_name
                )
        else:
            # The name now belongs to another identity; keep the last handle.
            logger.debug(
                "resolve_name_shadowed",
                stable_id=record.id,
                symbol=record.current_name,
                declared_by=direct.stable_id,
            )

        return Resolution(
            name=record.current_name,
            stable_id=record.id,
            handle=record.handle,
            matched=matched,
            orphaned=orphaned,
        )

    def _resolve_fresh(self, name: SymbolName) -> Resolution | None:
        direct = self._source.resolve_directly(name)
        if direct is None:
            logger.debug("resolve_not_found", symbol=name)
            return None

        if direct.stable_id is None:
            return Resolution(
                name=name, stable_id=None, handle=direct.handle, matched="direct"
            )

        existing = self.find(direct.stable_id)
        if existing is not None:
            # Renamed since the last sweep of this epoch.
            old_name = existing.current_name
            existing.update(self._source)
            existing.attach_handle(direct.handle)
            self._orphaned.discard(existing.id)
            persist_error = None
            if existing.current_name != old_name:
                logger.info(
                    "record_renamed",
                    stable_id=existing.id,
                    old_name=old_name,
                    new_name=existing.current_name,
                )
                persist_error = self._persist()
            return Resolution(
                name=existing.current_name,
                stable_id=existing.id,
                handle=direct.handle,
                matched="direct",
                persist_error=persist_error,
            )

        self.track(direct.stable_id, name, handle=direct.handle)
        return Resolution(
            name=name,
            stable_id=direct.stable_id,
            handle=direct.handle,
            matched="direct",
            persist_error=self.last_persist_error,
        )

    def _persist(self) -> PersistenceError | None:
        try:
            self._store.save(list(self._records))
        except PersistenceError as exc:
            self.last_persist_error = exc
            logger.error("persist_failed", location=exc.location, error=exc.reason)
            self._emit(
                Diagnostic(
                    kind="persist_failed",
                    message=str(exc),
                    details={"location": exc.location},
                )
            )
            return exc
        self.last_persist_error = None
        return None

    def _report_orphans(self, orphaned: list[StableId]) -> None:
        newly_orphaned = [sid for sid in orphaned if sid not in self._orphaned]
        self._orphaned = set(orphaned)
        for stable_id in newly_orphaned:
            record = self.find(stable_id)
            last_name = record.current_name if record is not None else ""
            logger.info("record_orphaned", stable_id=stable_id, symbol=last_name)
            self._emit(
                Diagnostic(
                    kind="orphaned_record",
                    message=(
                        f"{stable_id} no longer declares a symbol; "
                        f"'{last_name}' is kept as its last known name"
                    ),
                    details={"stable_id": stable_id, "name": last_name},
                )
            )

    def _report_duplicate_names(self) -> None:
        owners: dict[SymbolName, list[StableId]] = {}
        for record in self._records:
            if not is_blank(record.current_name):
                owners.setdefault(record.current_name, []).append(record.id)

        for name, stable_ids in owners.items():
            if len(stable_ids) < 2:
                continue
            logger.warning(
                "duplicate_current_name", symbol=name, stable_ids=stable_ids
            )
            self._emit(
                Diagnostic(
                    kind="duplicate_current_name",
                    message=(
                        f"'{name}' is the current name of {len(stable_ids)} "
                        f"records; {stable_ids[0]} wins"
                    ),
                    details={"name": name, "stable_ids": stable_ids},
                )
            )

    def _emit(self, diagnostic: Diagnostic) -> None:
        if self._on_diagnostic is not None:
            self._on_diagnostic(diagnostic)


__all__ = ["IdentityRegistry", "MatchKind", "PruneResult", "RefreshResult", "Resolution"]
