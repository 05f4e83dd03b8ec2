"""JSON file persistence adapter."""

from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import TYPE_CHECKING

import orjson
import structlog
from pydantic import ValidationError

from contract.errors import PersistenceError
from store.document import HISTORY_FILENAME, SCHEMA_VERSION, HistoryDocument
from store.scopes import StoreScope, store_dir_for

if TYPE_CHECKING:
    from collections.abc import Sequence

    from tracking.record import RenameHistoryRecord

logger = structlog.get_logger()

_DUMP_OPTIONS = orjson.OPT_SORT_KEYS | orjson.OPT_INDENT_2 | orjson.OPT_APPEND_NEWLINE


class JsonFileStore:
    """Stores the rename history as one JSON document on disk."""

    def __init__(self, path: Path, scope: StoreScope = StoreScope.PROJECT) -> None:
        self.path = path
        self.scope = scope

    @classmethod
    def for_scope(
        cls,
        root: Path,
        scope: StoreScope,
        state_dir: Path,
        *,
        home: Path | None = None,
    ) -> JsonFileStore:
        directory = store_dir_for(root, scope, state_dir, home=home)
        return cls(directory / HISTORY_FILENAME, scope)

    @property
    def location(self) -> str:
        return str(self.path)

    def load(self) -> list[RenameHistoryRecord]:
        try:
            raw = self.path.read_bytes()
        except FileNotFoundError:
            return []
        except OSError as exc:
            raise PersistenceError("load", self.location, str(exc)) from exc

        if not raw.strip():
            return []

        try:
            document = HistoryDocument.model_validate(orjson.loads(raw))
        except orjson.JSONDecodeError as exc:
            msg = f"invalid JSON: {exc}"
            raise PersistenceError("load", self.location, msg) from exc
        except ValidationError as exc:
            msg = f"schema validation failed: {exc}"
            raise PersistenceError("load", self.location, msg) from exc

        if document.schema_version != SCHEMA_VERSION:
            logger.warning(
                "history_schema_mismatch",
                location=self.location,
                found=document.schema_version,
                expected=SCHEMA_VERSION,
            )
        return document.records

    def save(self, records: Sequence[RenameHistoryRecord]) -> None:
        document = HistoryDocument(scope=self.scope, records=list(records))
        payload = orjson.dumps(document.model_dump(mode="json"), option=_DUMP_OPTIONS)

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, temp_name = tempfile.mkstemp(
                prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent
            )
        except OSError as exc:
            raise PersistenceError("save", self.location, str(exc)) from exc

        temp_path = Path(temp_name)
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(payload)
            os.replace(temp_path, self.path)
        except OSError as exc:
            temp_path.unlink(missing_ok=True)
            raise PersistenceError("save", self.location, str(exc)) from exc

        logger.debug("history_saved", location=self.location, record_count=len(records))


__all__ = ["JsonFileStore"]
