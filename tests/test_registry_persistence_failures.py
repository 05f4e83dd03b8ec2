from __future__ import annotations

from typing import TYPE_CHECKING

from structlog.testing import capture_logs

from contract.errors import PersistenceError
from sources.memory import InMemorySymbolSource
from store.json_store import JsonFileStore
from store.memory import InMemoryStore
from tracking.diagnostics import DiagnosticLog
from tracking.record import RenameHistoryRecord
from tracking.registry import IdentityRegistry

if TYPE_CHECKING:
    from pathlib import Path


def test_failed_save_keeps_in_memory_record_and_reports_error() -> None:
    source = InMemorySymbolSource({"Y": "Z"})
    store = InMemoryStore()
    store.fail_saves = True
    diagnostics = DiagnosticLog()
    registry = IdentityRegistry.open(source, store, on_diagnostic=diagnostics)

    with capture_logs() as logs:
        resolution = registry.resolve("Z")

    assert resolution is not None
    assert isinstance(resolution.persist_error, PersistenceError)
    assert resolution.persist_error.operation == "save"
    assert registry.last_persist_error is resolution.persist_error
    assert [record.id for record in registry.records] == ["Y"]
    assert len(diagnostics.of_kind("persist_failed")) == 1
    assert any(
        entry["event"] == "persist_failed" and entry["log_level"] == "error"
        for entry in logs
    )


def test_failed_refresh_save_is_returned_on_result() -> None:
    source = InMemorySymbolSource({"X": "B"})
    store = InMemoryStore([RenameHistoryRecord(id="X", current_name="A")])
    store.fail_saves = True
    registry = IdentityRegistry.open(source, store)

    result = registry.refresh()

    assert result.changed is True
    assert result.persist_error is not None
    assert registry.refreshed is True
    assert registry.records[0].current_name == "B"


def test_later_successful_save_clears_last_error() -> None:
    source = InMemorySymbolSource({"Y": "Z", "W": "V"})
    store = InMemoryStore()
    registry = IdentityRegistry.open(source, store)

    store.fail_saves = True
    registry.resolve("Z")
    store.fail_saves = False
    registry.resolve("V")

    assert registry.last_persist_error is None
    assert [record.id for record in store.records] == ["Y", "W"]


def test_failed_load_starts_empty_and_is_observable() -> None:
    source = InMemorySymbolSource({"X": "A"})
    store = InMemoryStore([RenameHistoryRecord(id="X", current_name="A")])
    store.fail_loads = True
    diagnostics = DiagnosticLog()

    registry = IdentityRegistry.open(source, store, on_diagnostic=diagnostics)

    assert len(registry) == 0
    assert registry.load_error is not None
    assert registry.load_error.operation == "load"
    assert len(diagnostics.of_kind("load_failed")) == 1


def test_corrupt_history_file_falls_back_to_empty_registry(tmp_path: Path) -> None:
    history = tmp_path / "history.json"
    history.write_text("{not json", encoding="utf-8")
    source = InMemorySymbolSource({"X": "A"})

    registry = IdentityRegistry.open(source, JsonFileStore(history))

    assert registry.load_error is not None
    assert "invalid JSON" in registry.load_error.reason
    assert registry.resolve_name("A") == "A"
    assert len(registry) == 1


def test_duplicate_current_name_is_logged_as_warning() -> None:
    source = InMemorySymbolSource({"X": "Dup", "Y": "Dup"})
    store = InMemoryStore(
        [
            RenameHistoryRecord(id="X", current_name="Dup"),
            RenameHistoryRecord(id="Y", current_name="Dup"),
        ]
    )
    registry = IdentityRegistry.open(source, store)

    with capture_logs() as logs:
        registry.refresh()

    [entry] = [entry for entry in logs if entry["event"] == "duplicate_current_name"]
    assert entry["log_level"] == "warning"
    assert entry["stable_ids"] == ["X", "Y"]


def test_failed_save_during_lazy_refresh_is_returned_on_resolution() -> None:
    source = InMemorySymbolSource({"X": "B"})
    store = InMemoryStore([RenameHistoryRecord(id="X", current_name="A")])
    store.fail_saves = True
    registry = IdentityRegistry.open(source, store)

    resolution = registry.resolve("A")

    assert resolution is not None
    assert resolution.name == "B"
    assert resolution.matched == "previous"
    assert resolution.persist_error is not None
    assert resolution.persist_error is registry.last_persist_error
