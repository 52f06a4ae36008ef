"""SQL utilities for the tourney package.

This package defines:
- SQLAlchemy models for site entities, raw matches and normalized match rows
- Engine helpers
- Live column introspection and ON CONFLICT upsert helpers
- Repository functions for the admin console and public listings
- Loaders that aggregate player/team statistics into Polars DataFrames

Environment variables:
- TOURNEY_DATABASE_URL or DATABASE_URL: SQLAlchemy URL for the DB engine
- TOURNEY_DB_HOST/USER/PASSWORD/NAME/PORT/SSLMODE: component fallback
"""

from __future__ import annotations

from tourney.sql import models
from tourney.sql.engine import (
    create_all,
    create_engine,
    resolve_database_url,
    with_sslmode,
)
from tourney.sql.introspect import TableColumns, get_columns
from tourney.sql.load import (
    load_player_stats_df,
    load_team_stats_df,
    load_tournament_matches_df,
)
from tourney.sql.upsert import upsert_row, upsert_rows

__all__ = [
    # Engine helpers
    "create_engine",
    "create_all",
    "resolve_database_url",
    "with_sslmode",
    # Introspection / writes
    "TableColumns",
    "get_columns",
    "upsert_row",
    "upsert_rows",
    # Loaders
    "load_player_stats_df",
    "load_team_stats_df",
    "load_tournament_matches_df",
    # Models submodule
    "models",
]
