"""Shared configuration, constants, errors and logging helpers."""

from tourney.core.config import ImportConfig, StatsApiConfig, load_env_file
from tourney.core.errors import (
    MalformedPayload,
    PersistenceFailure,
    SchemaMismatch,
    StatsApiError,
    TourneyError,
)
from tourney.core.logging import ProgressLogger, log_timing, setup_logging

__all__ = [
    "ImportConfig",
    "StatsApiConfig",
    "load_env_file",
    "TourneyError",
    "MalformedPayload",
    "SchemaMismatch",
    "PersistenceFailure",
    "StatsApiError",
    "ProgressLogger",
    "log_timing",
    "setup_logging",
]
