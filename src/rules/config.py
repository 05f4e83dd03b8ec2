from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

import tomllib
from pydantic import BaseModel, ConfigDict, Field, field_validator

from store.scopes import StoreScope

CONFIG_FILENAME = "typetrack.toml"

LogFormat = Literal["console", "json"]
LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR"]


class EligibilityConfig(BaseModel):
    """Rules deciding which declarations are tracked."""

    model_config = ConfigDict(extra="forbid")

    trackable_bases: list[str] = Field(
        default_factory=list,
        description="Only classes deriving from one of these bases are tracked (empty = all)",
    )
    untracked_paths: list[str] = Field(
        default_factory=list,
        description="Glob patterns for files whose classes are never tracked",
    )


class LoggingConfig(BaseModel):
    """Log output settings."""

    model_config = ConfigDict(extra="forbid")

    level: LogLevel = Field(default="WARNING", description="Minimum log level")
    format: LogFormat = Field(default="console", description="console or json")

    @field_validator("level", mode="before")
    @classmethod
    def normalize_level(cls, v: Any) -> Any:
        if isinstance(v, str):
            upper = v.upper()
            return "WARNING" if upper == "WARN" else upper
        return v


class TypeTrackConfig(BaseModel):
    """Configuration for rename tracking in a repository."""

    model_config = ConfigDict(extra="forbid")

    state_dir: str = Field(
        default=".typetrack",
        description="Directory holding project and user rename histories",
    )
    scope: StoreScope = Field(
        default=StoreScope.PROJECT,
        description="Which rename history to use: project, user or machine",
    )
    enabled: bool = Field(
        default=True,
        description="Track renames; when disabled names are resolved literally",
    )
    include: list[str] = Field(
        default_factory=list,
        description="Glob patterns for files to scan (empty = all Python files)",
    )
    exclude: list[str] = Field(
        default_factory=list,
        description="Glob patterns for files to skip",
    )
    nested_gitignore: bool = Field(
        default=False,
        description="Enable nested .gitignore composition (default: root-only)",
    )
    eligibility: EligibilityConfig = Field(default_factory=EligibilityConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


class ConfigError(Exception):
    """Raised when config file exists but cannot be parsed."""


def resolve_state_dir(root: Path, state_dir: str) -> Path:
    """Resolve a config-provided state_dir safely within the repo root.

    The state_dir must be a non-empty relative path that remains within the
    repository root after resolution.
    """
    if not state_dir:
        msg = "state_dir must be a non-empty relative path"
        raise ConfigError(msg)

    state_path = Path(state_dir)
    if state_dir.startswith("~") or state_path.is_absolute():
        msg = "state_dir must be a relative path within the repo root"
        raise ConfigError(msg)

    try:
        resolved_root = root.resolve()
        resolved_state = (resolved_root / state_path).resolve()
    except OSError as exc:
        msg = f"Failed to resolve state_dir '{state_dir}': {exc}"
        raise ConfigError(msg) from exc

    try:
        resolved_state.relative_to(resolved_root)
    except ValueError as exc:
        msg = f"state_dir '{state_dir}' escapes the repository root"
        raise ConfigError(msg) from exc

    return resolved_state


def load_config(root: Path) -> TypeTrackConfig:
    """Load configuration from typetrack.toml if it exists."""
    config_path = root / CONFIG_FILENAME

    if not config_path.is_file():
        return TypeTrackConfig()

    try:
        with config_path.open("rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        msg = f"Invalid TOML in {config_path}: {e}"
        raise ConfigError(msg) from e

    try:
        return TypeTrackConfig.model_validate(data)
    except Exception as e:
        msg = f"Invalid config in {config_path}: {e}"
        raise ConfigError(msg) from e
