from __future__ import annotations

from typing import Any, Optional

import pandas as pd
import polars as pl
from sqlalchemy import text
from sqlalchemy.engine import Engine


def _read_sql(
    engine: Engine, sql: str, params: Optional[dict[str, Any]] = None
) -> pl.DataFrame:
    """Read SQL into a Polars DataFrame via pandas for compatibility."""
    with engine.connect() as conn:
        pdf = pd.read_sql_query(text(sql), conn, params=params)
    return pl.from_pandas(pdf) if not pdf.empty else pl.DataFrame([])


def _filters(
    game_id: Optional[str], tournament_id: Optional[str]
) -> tuple[str, dict[str, Any]]:
    where = []
    params: dict[str, Any] = {}
    if game_id:
        where.append("s.game_id = :game_id")
        params["game_id"] = game_id
    if tournament_id:
        where.append("mi.tournament_id = :tournament_id")
        params["tournament_id"] = tournament_id
    where_clause = f"WHERE {' AND '.join(where)}" if where else ""
    return where_clause, params


def load_player_stats_df(
    engine: Engine,
    *,
    game_id: Optional[str] = None,
    tournament_id: Optional[str] = None,
) -> pl.DataFrame:
    """Aggregate per-player statistics from normalized match rows.

    Columns: game_id, player_id, player_name, matches, wins, kills, assists,
    damage_dealt, headshot_kills, revives, avg_damage, kd (kills per
    match). Sorted by kills, then damage, descending.
    """
    where_clause, params = _filters(game_id, tournament_id)
    sql = f"""
        SELECT
            s.game_id,
            s.player_id,
            MAX(p.player_name) AS player_name,
            COUNT(DISTINCT s.match_id) AS matches,
            SUM(CASE WHEN r.won THEN 1 ELSE 0 END) AS wins,
            SUM(COALESCE(s.kills, 0)) AS kills,
            SUM(COALESCE(s.assists, 0)) AS assists,
            SUM(COALESCE(s.damage_dealt, 0)) AS damage_dealt,
            SUM(COALESCE(s.headshot_kills, 0)) AS headshot_kills,
            SUM(COALESCE(s.revives, 0)) AS revives
        FROM match_player_stats s
        JOIN match_information mi ON mi.match_id = s.match_id
        LEFT JOIN match_rosters r
               ON r.match_id = s.match_id AND r.roster_id = s.roster_id
        LEFT JOIN players p
               ON p.game_id = s.game_id AND p.player_id = s.player_id
        {where_clause}
        GROUP BY s.game_id, s.player_id
    """
    df = _read_sql(engine, sql, params)
    if df.is_empty():
        return df
    return (
        df.with_columns(
            [
                pl.col("matches").cast(pl.Int64),
                pl.col("wins").cast(pl.Int64),
                pl.col("kills").cast(pl.Int64),
                pl.col("assists").cast(pl.Int64),
                pl.col("damage_dealt").cast(pl.Float64),
                pl.col("headshot_kills").cast(pl.Int64),
                pl.col("revives").cast(pl.Int64),
            ]
        )
        .with_columns(
            [
                (pl.col("damage_dealt") / pl.col("matches")).alias("avg_damage"),
                (pl.col("kills") / pl.col("matches")).alias("kd"),
            ]
        )
        .sort(["kills", "damage_dealt"], descending=[True, True])
    )


def load_team_stats_df(
    engine: Engine,
    *,
    game_id: Optional[str] = None,
    tournament_id: Optional[str] = None,
) -> pl.DataFrame:
    """Aggregate per-team statistics from match rosters.

    Columns: game_id, team_id, team_name, matches, wins, avg_rank, kills.
    Sorted by wins descending, then average rank ascending.
    """
    where = ["r.team_id IS NOT NULL"]
    params: dict[str, Any] = {}
    if game_id:
        where.append("mi.game_id = :game_id")
        params["game_id"] = game_id
    if tournament_id:
        where.append("mi.tournament_id = :tournament_id")
        params["tournament_id"] = tournament_id
    sql = f"""
        WITH roster_kills AS (
            SELECT match_id, roster_id, SUM(COALESCE(kills, 0)) AS kills
            FROM match_player_stats
            GROUP BY match_id, roster_id
        )
        SELECT
            mi.game_id,
            r.team_id,
            MAX(t.team_name) AS team_name,
            COUNT(DISTINCT r.match_id) AS matches,
            SUM(CASE WHEN r.won THEN 1 ELSE 0 END) AS wins,
            AVG(r.rank) AS avg_rank,
            SUM(COALESCE(rk.kills, 0)) AS kills
        FROM match_rosters r
        JOIN match_information mi ON mi.match_id = r.match_id
        LEFT JOIN roster_kills rk
               ON rk.match_id = r.match_id AND rk.roster_id = r.roster_id
        LEFT JOIN teams t
               ON t.game_id = mi.game_id AND t.team_id = r.team_id
        WHERE {' AND '.join(where)}
        GROUP BY mi.game_id, r.team_id
    """
    df = _read_sql(engine, sql, params)
    if df.is_empty():
        return df
    return df.with_columns(
        [
            pl.col("matches").cast(pl.Int64),
            pl.col("wins").cast(pl.Int64),
            pl.col("avg_rank").cast(pl.Float64),
            pl.col("kills").cast(pl.Int64),
        ]
    ).sort(["wins", "avg_rank"], descending=[True, False], nulls_last=True)


def load_tournament_matches_df(engine: Engine, tournament_id: str) -> pl.DataFrame:
    """Normalized match headers for a tournament, in link order."""
    sql = """
        SELECT
            tm.match_id,
            tm.position,
            mi.map_name,
            mi.game_mode,
            mi.duration,
            mi.created_at_api
        FROM tournament_matches tm
        LEFT JOIN match_information mi ON mi.match_id = tm.match_id
        WHERE tm.tournament_id = :tournament_id
        ORDER BY tm.position
    """
    return _read_sql(engine, sql, {"tournament_id": tournament_id})
