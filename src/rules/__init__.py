"""Configuration and tracking rules for typetrack."""

from rules.config import (
    ConfigError,
    EligibilityConfig,
    LoggingConfig,
    TypeTrackConfig,
    load_config,
    resolve_state_dir,
)
from rules.eligibility import TrackablePredicate, build_trackable_predicate, track_all

__all__ = [
    "ConfigError",
    "EligibilityConfig",
    "LoggingConfig",
    "TrackablePredicate",
    "TypeTrackConfig",
    "build_trackable_predicate",
    "load_config",
    "resolve_state_dir",
    "track_all",
]
