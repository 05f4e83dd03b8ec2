"""Validation of persisted rename history documents."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import orjson
from pydantic import ValidationError

from store.document import SCHEMA_VERSION, HistoryDocument

if TYPE_CHECKING:
    from pathlib import Path


@dataclass(frozen=True)
class ValidationMessage:
    path: Path
    message: str
    record: int | None = None

    def location(self) -> str:
        if self.record is None:
            return str(self.path)
        return f"{self.path}#records[{self.record}]"

    def to_dict(self) -> dict[str, object]:
        return {
            "path": str(self.path),
            "record": self.record,
            "message": self.message,
        }


@dataclass
class ValidationResult:
    errors: list[ValidationMessage] = field(default_factory=list)
    warnings: list[ValidationMessage] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


def validate_store(
    path: Path, *, strict_schema_version: bool = False
) -> ValidationResult:
    """Check a history document for structural and consistency problems.

    A missing document is valid: it is the empty history.
    """
    result = ValidationResult()

    if not path.exists():
        return result

    if not path.is_file():
        result.errors.append(
            ValidationMessage(path=path, message="History path is not a file.")
        )
        return result

    try:
        raw = orjson.loads(path.read_bytes())
    except OSError as exc:
        result.errors.append(
            ValidationMessage(path=path, message=f"Failed to read file: {exc}.")
        )
        return result
    except orjson.JSONDecodeError as exc:
        result.errors.append(ValidationMessage(path=path, message=f"Invalid JSON: {exc}."))
        return result

    if not isinstance(raw, dict):
        result.errors.append(
            ValidationMessage(path=path, message="Expected a JSON object.")
        )
        return result

    schema_present = "schema_version" in raw
    try:
        document = HistoryDocument.model_validate(raw)
    except ValidationError as exc:
        result.errors.append(
            ValidationMessage(path=path, message=f"Schema validation failed: {exc}.")
        )
        return result

    _check_schema_version(
        path,
        schema_present,
        document.schema_version,
        result,
        strict_schema_version=strict_schema_version,
    )
    _check_records(path, document, result)
    return result


def _check_records(
    path: Path, document: HistoryDocument, result: ValidationResult
) -> None:
    seen_ids: dict[str, int] = {}
    current_owners: dict[str, int] = {}
    history_owners: dict[str, int] = {}

    for index, record in enumerate(document.records):
        if not record.id.strip():
            result.errors.append(
                ValidationMessage(path=path, record=index, message="Empty stable id.")
            )
        elif record.id in seen_ids:
            result.errors.append(
                ValidationMessage(
                    path=path,
                    record=index,
                    message=(
                        f"Duplicate stable id '{record.id}' "
                        f"(first seen at records[{seen_ids[record.id]}])."
                    ),
                )
            )
        else:
            seen_ids[record.id] = index

        if record.current_name in current_owners:
            result.warnings.append(
                ValidationMessage(
                    path=path,
                    record=index,
                    message=(
                        f"Current name '{record.current_name}' is shared with "
                        f"records[{current_owners[record.current_name]}]; "
                        "the earlier record wins."
                    ),
                )
            )
        else:
            current_owners[record.current_name] = index

        for name in dict.fromkeys(record.previous_names):
            if name in history_owners and history_owners[name] != index:
                result.warnings.append(
                    ValidationMessage(
                        path=path,
                        record=index,
                        message=(
                            f"Previous name '{name}' also appears in "
                            f"records[{history_owners[name]}]; "
                            "the earlier record wins."
                        ),
                    )
                )
            else:
                history_owners.setdefault(name, index)


def _check_schema_version(
    path: Path,
    schema_present: bool,
    schema_version: int,
    result: ValidationResult,
    *,
    strict_schema_version: bool,
) -> None:
    if not schema_present:
        message = ValidationMessage(
            path=path,
            message=f"Missing schema_version (expected {SCHEMA_VERSION}).",
        )
    elif schema_version != SCHEMA_VERSION:
        message = ValidationMessage(
            path=path,
            message=(
                f"Schema version {schema_version} does not match "
                f"expected {SCHEMA_VERSION}."
            ),
        )
    else:
        return

    if strict_schema_version:
        result.errors.append(message)
    else:
        result.warnings.append(message)


__all__ = ["ValidationMessage", "ValidationResult", "validate_store"]
