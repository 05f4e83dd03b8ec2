"""Declaration models shared by symbol sources and the registry."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

StableId = str
SymbolName = str


class Declaration(BaseModel):
    """A class declaration found in a source file."""

    model_config = ConfigDict(frozen=True)

    path: str
    name: str
    qualified_name: str
    start_line: int
    start_col: int
    base_classes: tuple[str, ...] = Field(
        default=(), description="Base class names as written in source"
    )

    @property
    def stable_id(self) -> StableId:
        return f"file:{self.path}"


__all__ = ["Declaration", "StableId", "SymbolName"]
