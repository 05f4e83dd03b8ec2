from __future__ import annotations

import threading

from sources.memory import InMemorySymbolSource, Symbol
from store.memory import InMemoryStore
from tracking.record import RenameHistoryRecord
from tracking.registry import IdentityRegistry


def _open(
    source: InMemorySymbolSource, *records: RenameHistoryRecord
) -> tuple[IdentityRegistry, InMemoryStore]:
    store = InMemoryStore(records)
    return IdentityRegistry.open(source, store), store


def test_fresh_name_is_adopted_as_new_record() -> None:
    source = InMemorySymbolSource({"Y": "Z"})
    registry, store = _open(source)

    resolution = registry.resolve("Z")

    assert resolution is not None
    assert resolution.name == "Z"
    assert resolution.stable_id == "Y"
    assert resolution.matched == "direct"
    assert resolution.handle == Symbol(stable_id="Y", name="Z")
    assert resolution.persist_error is None
    assert [record.model_dump() for record in registry.records] == [
        {"id": "Y", "current_name": "Z", "previous_names": []}
    ]
    assert store.save_count == 1


def test_adopted_record_is_matched_by_current_name_afterwards() -> None:
    source = InMemorySymbolSource({"Y": "Z"})
    registry, store = _open(source)

    registry.resolve("Z")
    again = registry.resolve("Z")

    assert again is not None
    assert again.matched == "current"
    assert len(registry) == 1
    assert store.save_count == 1


def test_untrackable_declaration_resolves_without_record() -> None:
    source = InMemorySymbolSource({"Y": "Z"}, trackable=lambda symbol: False)
    registry, store = _open(source)

    resolution = registry.resolve("Z")

    assert resolution is not None
    assert resolution.name == "Z"
    assert resolution.stable_id is None
    assert len(registry) == 0
    assert store.save_count == 0


def test_declaration_without_identity_resolves_literally() -> None:
    source = InMemorySymbolSource()
    source.declare_untracked("builtins.Widget")
    registry, _ = _open(source)

    resolution = registry.resolve("builtins.Widget")

    assert resolution is not None
    assert resolution.stable_id is None
    assert resolution.handle == Symbol(stable_id=None, name="builtins.Widget")
    assert len(registry) == 0


def test_unknown_name_is_not_found() -> None:
    source = InMemorySymbolSource({"X": "A"})
    registry, store = _open(source, RenameHistoryRecord(id="X", current_name="A"))

    assert registry.resolve("Missing") is None
    assert registry.resolve_name("Missing") is None
    assert store.save_count == 0


def test_blank_name_is_not_found_without_refreshing() -> None:
    source = InMemorySymbolSource({"X": "A"})
    registry, _ = _open(source, RenameHistoryRecord(id="X", current_name="A"))

    assert registry.resolve("") is None
    assert registry.resolve("   ") is None
    assert registry.refreshed is False
    assert source.current_name_calls == 0


def test_tie_break_prefers_first_registered_record() -> None:
    source = InMemorySymbolSource({"Y": "Dup", "X": "Dup"})
    registry, _ = _open(
        source,
        RenameHistoryRecord(id="X", current_name="Dup"),
        RenameHistoryRecord(id="Y", current_name="Dup"),
    )

    results = [registry.resolve("Dup") for _ in range(3)]

    assert all(result is not None for result in results)
    assert {result.stable_id for result in results if result} == {"X"}
    # The source declares "Dup" at Y first; that declaration is not X's.
    assert all(result.handle is None for result in results if result)
    record = registry.find("X")
    assert record is not None and record.handle is None


def test_current_name_pass_wins_over_history() -> None:
    source = InMemorySymbolSource({"X": "B", "Y": "A"})
    registry, _ = _open(
        source,
        RenameHistoryRecord(id="X", current_name="B", previous_names=["A"]),
        RenameHistoryRecord(id="Y", current_name="A"),
    )

    resolution = registry.resolve("A")

    assert resolution is not None
    assert resolution.stable_id == "Y"
    assert resolution.matched == "current"


def test_history_pass_uses_registration_order() -> None:
    source = InMemorySymbolSource({"X": "N1", "Y": "N2"})
    registry, _ = _open(
        source,
        RenameHistoryRecord(id="X", current_name="N1", previous_names=["Old"]),
        RenameHistoryRecord(id="Y", current_name="N2", previous_names=["Older", "Old"]),
    )

    assert registry.resolve_name("Old") == "N1"
    assert registry.resolve_name("Older") == "N2"


def test_consecutive_resolves_sweep_the_source_once() -> None:
    source = InMemorySymbolSource({"X": "A", "Y": "B"})
    registry, _ = _open(
        source,
        RenameHistoryRecord(id="X", current_name="A"),
        RenameHistoryRecord(id="Y", current_name="B"),
    )

    registry.resolve("A")
    registry.resolve("B")
    registry.resolve("Missing")

    assert source.current_name_calls == 2

    registry.invalidate()
    registry.resolve("A")

    assert source.current_name_calls == 4


def test_rename_within_epoch_updates_existing_record() -> None:
    source = InMemorySymbolSource({"X": "A"})
    registry, store = _open(source)
    registry.resolve("A")

    source.rename("X", "B")
    resolution = registry.resolve("B")

    assert resolution is not None
    assert resolution.stable_id == "X"
    assert len(registry) == 1
    assert registry.records[0].previous_names == ["A"]
    assert store.save_count == 2


def test_resolves_are_serialized_across_threads() -> None:
    source = InMemorySymbolSource({f"id{i}": f"Name{i}" for i in range(20)})
    registry, store = _open(source)

    threads = [
        threading.Thread(target=registry.resolve, args=(f"Name{i}",))
        for i in range(20)
    ]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(registry) == 20
    assert store.save_count == 20
    assert len(store.records) == 20


def test_resolution_keeps_last_handle_when_name_moves_to_another_identity() -> None:
    source = InMemorySymbolSource({"X": "A"})
    registry, _ = _open(source)
    registry.resolve("A")

    source.remove("X")
    source.declare("Y", "A")
    source.declare("X", "A")
    resolution = registry.resolve("A")

    assert resolution is not None
    assert resolution.stable_id == "X"
    assert resolution.handle == Symbol(stable_id="X", name="A")


def test_ensure_tracked_adds_new_identity_once() -> None:
    source = InMemorySymbolSource({"X": "A"})
    registry, store = _open(source)

    record = registry.ensure_tracked("X", "A")
    again = registry.ensure_tracked("X", "A")

    assert again is record
    assert len(registry) == 1
    assert store.save_count == 1
    assert [r.id for r in store.records] == ["X"]


def test_ensure_tracked_syncs_existing_record_with_source() -> None:
    source = InMemorySymbolSource({"X": "B"})
    registry, store = _open(source, RenameHistoryRecord(id="X", current_name="A"))

    record = registry.ensure_tracked("X", "Ignored")

    assert record.current_name == "B"
    assert record.previous_names == ["A"]
    assert len(registry) == 1
    assert store.save_count == 1
