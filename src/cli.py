"""Command-line interface for typetrack."""

from __future__ import annotations

import argparse
import sys
from dataclasses import dataclass
from pathlib import Path

import orjson
import structlog

from logs import configure_logging
from rules.config import ConfigError, TypeTrackConfig, load_config, resolve_state_dir
from sources.python_tree import PythonSourceTree
from store.json_store import JsonFileStore
from store.scopes import StoreScope
from store.validation import validate_store
from tracking.binding import sync_document
from tracking.diagnostics import Diagnostic
from tracking.registry import IdentityRegistry

logger = structlog.get_logger()

EXIT_OK = 0
EXIT_NOT_FOUND = 1
EXIT_FAILURE = 2

_REPORTED_DIAGNOSTICS = frozenset(
    {"load_failed", "persist_failed", "duplicate_current_name"}
)


@dataclass
class _Workspace:
    root: Path
    config: TypeTrackConfig
    source: PythonSourceTree
    store: JsonFileStore

    def open_registry(self) -> IdentityRegistry:
        return IdentityRegistry.open(
            self.source, self.store, on_diagnostic=_report_diagnostic
        )


def _report_diagnostic(diagnostic: Diagnostic) -> None:
    if diagnostic.kind in _REPORTED_DIAGNOSTICS:
        sys.stderr.write(f"{diagnostic.kind}: {diagnostic.message}\n")


def _add_common_paths(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "root",
        nargs="?",
        default=".",
        help="Repository root (default: .)",
    )
    parser.add_argument(
        "--scope",
        choices=[scope.value for scope in StoreScope],
        default=None,
        help="Rename history to use (default: config scope)",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="typetrack")
    subparsers = parser.add_subparsers(dest="command", required=True)

    resolve_parser = subparsers.add_parser(
        "resolve", help="Resolve a possibly renamed class name"
    )
    resolve_parser.add_argument("name", help="Stored fully qualified class name")
    _add_common_paths(resolve_parser)

    refresh_parser = subparsers.add_parser(
        "refresh", help="Sync tracked classes with the source tree"
    )
    _add_common_paths(refresh_parser)
    refresh_parser.add_argument(
        "--force",
        action="store_true",
        help="Sweep even if the registry was already refreshed",
    )

    show_parser = subparsers.add_parser("show", help="Print tracked classes")
    _add_common_paths(show_parser)

    prune_parser = subparsers.add_parser(
        "prune", help="Forget classes whose file no longer declares one"
    )
    _add_common_paths(prune_parser)

    sync_parser = subparsers.add_parser(
        "sync",
        help=(
            "Rewrite stale class names stored in a JSON document; a multi-line "
            "document is rewritten with 2-space indentation"
        ),
    )
    sync_parser.add_argument("file", help="JSON document to update in place")
    _add_common_paths(sync_parser)
    sync_parser.add_argument(
        "--field",
        dest="fields",
        action="append",
        required=True,
        help="Key whose string values hold class names (repeatable)",
    )

    validate_parser = subparsers.add_parser(
        "validate", help="Validate the persisted rename history"
    )
    _add_common_paths(validate_parser)
    validate_parser.add_argument(
        "--store",
        default=None,
        help="History document to validate (default: history for the scope)",
    )
    validate_parser.add_argument(
        "--strict",
        action="store_true",
        help="Treat schema version mismatches as errors",
    )

    return parser


def _open_workspace(root: Path, scope: str | None) -> _Workspace:
    config = load_config(root)
    configure_logging(config=config.logging)
    state_dir = resolve_state_dir(root, config.state_dir)
    store_scope = StoreScope(scope) if scope is not None else config.scope
    return _Workspace(
        root=root,
        config=config,
        source=PythonSourceTree.from_config(root, config),
        store=JsonFileStore.for_scope(root, store_scope, state_dir),
    )


def _handle_resolve(workspace: _Workspace, name: str) -> int:
    if not workspace.config.enabled:
        logger.info(
            "tracking_disabled",
            hint="set enabled = true in typetrack.toml to follow renamed classes",
        )
        direct = workspace.source.resolve_directly(name)
        if direct is None:
            sys.stderr.write(f"not found: {name}\n")
            return EXIT_NOT_FOUND
        sys.stdout.write(f"{name}\n")
        return EXIT_OK

    registry = workspace.open_registry()
    resolution = registry.resolve(name)
    if resolution is None:
        sys.stderr.write(f"not found: {name}\n")
        return EXIT_NOT_FOUND

    sys.stdout.write(f"{resolution.name}\n")
    if resolution.orphaned:
        sys.stderr.write(f"warning: {resolution.name} is no longer declared\n")
    if registry.last_persist_error is not None:
        return EXIT_FAILURE
    return EXIT_OK


def _handle_refresh(workspace: _Workspace, *, force: bool) -> int:
    registry = workspace.open_registry()
    result = registry.refresh(force=force)

    for label, stable_ids in (("renamed", result.renamed), ("orphaned", result.orphaned)):
        for stable_id in stable_ids:
            record = registry.find(stable_id)
            name = record.current_name if record is not None else ""
            sys.stdout.write(f"{label}: {stable_id} {name}\n")

    return EXIT_FAILURE if result.persist_error is not None else EXIT_OK


def _handle_show(workspace: _Workspace) -> int:
    registry = workspace.open_registry()
    result = registry.refresh()
    for record in registry.records:
        payload = {
            **record.model_dump(),
            "orphaned": record.id in registry.orphaned_ids,
        }
        sys.stdout.write(orjson.dumps(payload, option=orjson.OPT_SORT_KEYS).decode())
        sys.stdout.write("\n")
    return EXIT_FAILURE if result.persist_error is not None else EXIT_OK


def _handle_prune(workspace: _Workspace) -> int:
    registry = workspace.open_registry()
    registry.refresh()
    result = registry.prune()
    for record in result.removed:
        sys.stdout.write(f"removed: {record.id} {record.current_name}\n")
    return EXIT_FAILURE if result.persist_error is not None else EXIT_OK


def _dump_options_like(raw: bytes) -> int:
    # orjson can only write compact or 2-space indented documents.
    options = orjson.OPT_INDENT_2 if b"\n" in raw.strip() else 0
    if raw.endswith(b"\n"):
        options |= orjson.OPT_APPEND_NEWLINE
    return options


def _handle_sync(workspace: _Workspace, file: str, fields: list[str]) -> int:
    path = Path(file).expanduser().resolve()
    try:
        raw = path.read_bytes()
        document = orjson.loads(raw)
    except (OSError, orjson.JSONDecodeError) as exc:
        sys.stderr.write(f"{path}: {exc}\n")
        return EXIT_FAILURE

    registry = workspace.open_registry()
    changes = sync_document(registry, document, fields)
    if changes:
        path.write_bytes(orjson.dumps(document, option=_dump_options_like(raw)))

    for change in changes:
        sys.stdout.write(f"{change.path}: {change.old_name} -> {change.new_name}\n")

    return EXIT_FAILURE if registry.last_persist_error is not None else EXIT_OK


def _handle_validate(workspace: _Workspace, store: str | None, *, strict: bool) -> int:
    path = (
        Path(store).expanduser().resolve() if store is not None else workspace.store.path
    )
    result = validate_store(path, strict_schema_version=strict)
    for warning in result.warnings:
        sys.stderr.write(f"warning: {warning.location()}: {warning.message}\n")
    if result.errors:
        for error in result.errors:
            sys.stderr.write(f"{error.location()}: {error.message}\n")
        return EXIT_NOT_FOUND
    return EXIT_OK


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    root = Path(args.root).expanduser().resolve()

    try:
        workspace = _open_workspace(root, args.scope)
    except ConfigError as exc:
        sys.stderr.write(f"config: {exc}\n")
        return EXIT_FAILURE

    if args.command == "resolve":
        return _handle_resolve(workspace, args.name)

    if args.command == "refresh":
        return _handle_refresh(workspace, force=args.force)

    if args.command == "show":
        return _handle_show(workspace)

    if args.command == "prune":
        return _handle_prune(workspace)

    if args.command == "sync":
        return _handle_sync(workspace, args.file, args.fields)

    if args.command == "validate":
        return _handle_validate(workspace, args.store, strict=args.strict)

    raise AssertionError


if __name__ == "__main__":
    raise SystemExit(main())
