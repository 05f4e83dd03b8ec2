from __future__ import annotations

from sources.memory import InMemorySymbolSource, Symbol
from store.memory import InMemoryStore
from tracking.diagnostics import DiagnosticLog
from tracking.record import RenameHistoryRecord
from tracking.registry import IdentityRegistry


def _open(
    source: InMemorySymbolSource,
    *records: RenameHistoryRecord,
) -> tuple[IdentityRegistry, InMemoryStore, DiagnosticLog]:
    store = InMemoryStore(records)
    diagnostics = DiagnosticLog()
    registry = IdentityRegistry.open(source, store, on_diagnostic=diagnostics)
    return registry, store, diagnostics


def _rename_and_refresh(
    registry: IdentityRegistry, source: InMemorySymbolSource, new_name: str
) -> None:
    source.rename("X", new_name)
    registry.invalidate()
    registry.refresh()


def test_refresh_runs_at_most_once_per_epoch() -> None:
    source = InMemorySymbolSource({"X": "A"})
    registry, _, _ = _open(source, RenameHistoryRecord(id="X", current_name="A"))

    first = registry.refresh()
    second = registry.refresh()

    assert first.ran is True
    assert second.ran is False
    assert source.current_name_calls == 1
    assert registry.refreshed is True


def test_forced_refresh_without_changes_is_idempotent() -> None:
    source = InMemorySymbolSource({"X": "A"})
    registry, store, _ = _open(source, RenameHistoryRecord(id="X", current_name="A"))

    first = registry.refresh(force=True)
    second = registry.refresh(force=True)

    assert first.ran and second.ran
    assert not first.changed and not second.changed
    assert store.save_count == 0
    assert registry.records[0].previous_names == []
    assert source.current_name_calls == 2


def test_refresh_persists_once_when_a_record_is_renamed() -> None:
    source = InMemorySymbolSource({"X": "B", "Y": "C"})
    registry, store, _ = _open(
        source,
        RenameHistoryRecord(id="X", current_name="A"),
        RenameHistoryRecord(id="Y", current_name="C"),
    )

    result = registry.refresh()

    assert result.changed is True
    assert result.renamed == ("X",)
    assert store.save_count == 1
    assert [record.model_dump() for record in store.records] == [
        {"id": "X", "current_name": "B", "previous_names": ["A"]},
        {"id": "Y", "current_name": "C", "previous_names": []},
    ]


def test_rename_round_trip() -> None:
    source = InMemorySymbolSource({"X": "A"})
    registry, _, _ = _open(source)
    assert registry.resolve("A") is not None

    _rename_and_refresh(registry, source, "B")

    old = registry.resolve("A")
    new = registry.resolve("B")
    assert old is not None and new is not None
    assert old.stable_id == new.stable_id == "X"
    assert old.name == new.name == "B"
    assert old.matched == "previous"
    assert new.matched == "current"


def test_chained_renames_collapse_into_one_record() -> None:
    source = InMemorySymbolSource({"X": "A"})
    registry, _, _ = _open(source)
    registry.resolve("A")

    _rename_and_refresh(registry, source, "B")
    _rename_and_refresh(registry, source, "C")

    assert len(registry) == 1
    assert registry.records[0].previous_names == ["A", "B"]
    for name in ("A", "B", "C"):
        resolution = registry.resolve(name)
        assert resolution is not None
        assert resolution.stable_id == "X"
        assert resolution.name == "C"


def test_invalidate_keeps_records_untouched() -> None:
    source = InMemorySymbolSource({"X": "B"})
    registry, store, _ = _open(source, RenameHistoryRecord(id="X", current_name="A"))

    registry.invalidate()

    assert registry.refreshed is False
    assert registry.records[0].current_name == "A"
    assert store.save_count == 0


def test_orphaned_record_is_retained_and_still_resolves() -> None:
    source = InMemorySymbolSource({"X": "A"})
    registry, _, diagnostics = _open(source)
    registry.resolve("A")

    source.remove("X")
    registry.invalidate()
    result = registry.refresh()

    assert result.orphaned == ("X",)
    assert registry.find("X") is not None
    assert registry.orphaned_ids == frozenset({"X"})

    resolution = registry.resolve("A")
    assert resolution is not None
    assert resolution.orphaned is True
    assert resolution.name == "A"
    assert resolution.handle == Symbol(stable_id="X", name="A")
    assert len(diagnostics.of_kind("orphaned_record")) == 1


def test_orphan_diagnostic_is_emitted_once_per_disappearance() -> None:
    source = InMemorySymbolSource()
    registry, _, diagnostics = _open(source, RenameHistoryRecord(id="X", current_name="A"))

    registry.refresh()
    registry.refresh(force=True)

    assert len(diagnostics.of_kind("orphaned_record")) == 1


def test_prune_removes_only_orphaned_records() -> None:
    source = InMemorySymbolSource({"Y": "B"})
    registry, store, _ = _open(
        source,
        RenameHistoryRecord(id="X", current_name="A"),
        RenameHistoryRecord(id="Y", current_name="B"),
    )
    registry.refresh()

    result = registry.prune()

    assert [record.id for record in result.removed] == ["X"]
    assert [record.id for record in registry.records] == ["Y"]
    assert registry.orphaned_ids == frozenset()
    assert [record.id for record in store.records] == ["Y"]


def test_prune_without_orphans_does_not_write() -> None:
    source = InMemorySymbolSource({"X": "A"})
    registry, store, _ = _open(source, RenameHistoryRecord(id="X", current_name="A"))

    result = registry.prune()

    assert result.removed == ()
    assert store.save_count == 0


def test_duplicate_current_names_are_reported() -> None:
    source = InMemorySymbolSource({"X": "Dup", "Y": "Dup"})
    registry, _, diagnostics = _open(
        source,
        RenameHistoryRecord(id="X", current_name="Dup"),
        RenameHistoryRecord(id="Y", current_name="Dup"),
    )

    registry.refresh()

    [diagnostic] = diagnostics.of_kind("duplicate_current_name")
    assert diagnostic.details == {"name": "Dup", "stable_ids": ["X", "Y"]}


def test_orphan_declared_again_within_epoch_is_restored() -> None:
    source = InMemorySymbolSource({"X": "A"})
    registry, _, _ = _open(source)
    registry.resolve("A")

    source.remove("X")
    registry.invalidate()
    registry.refresh()
    assert registry.orphaned_ids == frozenset({"X"})

    source.declare("X", "A")
    resolution = registry.resolve("A")

    assert resolution is not None
    assert resolution.orphaned is False
    assert registry.orphaned_ids == frozenset()
