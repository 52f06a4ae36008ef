"""Configuration dataclasses for imports and the stats API client."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Optional

from tourney.core.constants import (
    DEFAULT_BACKOFF_FACTOR,
    DEFAULT_GAME_ID,
    DEFAULT_MAX_RETRIES,
    DEFAULT_TIMEOUT,
    STATS_API_BASE_URL,
    STATS_API_DEFAULT_SHARD,
)


def _truthy(value: Optional[str]) -> bool:
    return (value or "").strip().lower() in {"1", "true", "yes", "on"}


def load_env_file(dotenv: Optional[str]) -> None:
    """Seed ``os.environ`` from a ``.env`` file without overriding set vars.

    Only ``KEY=VALUE`` lines are understood; quotes around values are
    stripped. A missing file is ignored.
    """
    if not dotenv or not os.path.exists(dotenv):
        return
    with open(dotenv, "r") as f:
        for line in f:
            line = line.strip()
            if not line or line.startswith("#") or "=" not in line:
                continue
            k, v = line.split("=", 1)
            k = k.strip()
            v = v.strip().strip('"').strip("'")
            os.environ.setdefault(k, v)


@dataclass
class ImportConfig:
    """Settings for normalizing match payloads."""

    # Namespace for team/player identity
    game_id: str = DEFAULT_GAME_ID

    # Directory of raw match JSON files
    match_json_dir: Optional[str] = None

    # Raise SchemaMismatch instead of dropping unknown fields
    strict_schema: bool = False

    @classmethod
    def from_env(cls) -> "ImportConfig":
        return cls(
            game_id=os.getenv("IMPORT_GAME_ID") or DEFAULT_GAME_ID,
            match_json_dir=os.getenv("MATCH_JSON_DIR") or None,
            strict_schema=_truthy(os.getenv("TOURNEY_STRICT_SCHEMA")),
        )


@dataclass
class StatsApiConfig:
    """Settings for the external stats API client."""

    api_key: Optional[str] = None
    shard: str = STATS_API_DEFAULT_SHARD
    base_url: str = STATS_API_BASE_URL
    timeout: float = DEFAULT_TIMEOUT
    max_retries: int = DEFAULT_MAX_RETRIES
    backoff_factor: float = DEFAULT_BACKOFF_FACTOR
    extra_headers: dict = field(default_factory=dict)

    @classmethod
    def from_env(cls) -> "StatsApiConfig":
        return cls(
            api_key=os.getenv("PUBG_API_KEY") or None,
            shard=os.getenv("PUBG_SHARD") or STATS_API_DEFAULT_SHARD,
            base_url=(os.getenv("PUBG_API_BASE") or STATS_API_BASE_URL).rstrip(
                "/"
            ),
        )
