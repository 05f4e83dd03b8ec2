"""Where a rename history is stored for each deployment scope."""

from __future__ import annotations

import hashlib
from enum import Enum
from pathlib import Path


class StoreScope(str, Enum):
    """Who a persisted rename history applies to."""

    PROJECT = "project"
    USER = "user"
    MACHINE = "machine"


MACHINE_STATE_DIR = ".typetrack"


def _root_digest(root: Path) -> str:
    return hashlib.sha256(root.resolve().as_posix().encode("utf-8")).hexdigest()[:16]


def store_dir_for(
    root: Path,
    scope: StoreScope,
    state_dir: Path,
    *,
    home: Path | None = None,
) -> Path:
    """Return the directory holding the history document for ``scope``.

    Args:
        root: Repository root the history describes.
        scope: Deployment scope of the history.
        state_dir: Resolved project state directory (inside ``root``).
        home: Home directory for machine-wide histories (default: ``Path.home()``).
    """
    if scope is StoreScope.PROJECT:
        return state_dir
    if scope is StoreScope.USER:
        return state_dir / "user"
    base = home if home is not None else Path.home()
    return base / MACHINE_STATE_DIR / _root_digest(root)


__all__ = ["MACHINE_STATE_DIR", "StoreScope", "store_dir_for"]
