"""Which declarations may be tracked across renames."""

from __future__ import annotations

from collections.abc import Callable
from fnmatch import fnmatch
from typing import TYPE_CHECKING

from contract.models import Declaration

if TYPE_CHECKING:
    from rules.config import EligibilityConfig

TrackablePredicate = Callable[[Declaration], bool]


def track_all(declaration: Declaration) -> bool:
    return True


def _base_matches(base: str, trackable_bases: frozenset[str]) -> bool:
    # "models.Entity" matches both "models.Entity" and "Entity".
    return base in trackable_bases or base.rsplit(".", 1)[-1] in trackable_bases


def build_trackable_predicate(config: EligibilityConfig) -> TrackablePredicate:
    """Build the eligibility predicate for the configured rules.

    A declaration is trackable when its file matches none of the
    ``untracked_paths`` globs and, if ``trackable_bases`` is non-empty, it
    directly derives from one of those bases.
    """
    if not config.trackable_bases and not config.untracked_paths:
        return track_all

    trackable_bases = frozenset(config.trackable_bases)
    untracked_paths = tuple(config.untracked_paths)

    def is_trackable(declaration: Declaration) -> bool:
        if any(fnmatch(declaration.path, pattern) for pattern in untracked_paths):
            return False
        if not trackable_bases:
            return True
        return any(
            _base_matches(base, trackable_bases) for base in declaration.base_classes
        )

    return is_trackable


__all__ = ["TrackablePredicate", "build_trackable_predicate", "track_all"]
