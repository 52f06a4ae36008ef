"""Tests for ON CONFLICT statement building."""

import pytest
from sqlalchemy.dialects import postgresql
from sqlalchemy.dialects.postgresql import insert as pg_insert

from tourney.sql.introspect import TableColumns
from tourney.sql.upsert import build_upsert, dialect_insert, upsert_row, upsert_rows


class FakeDialect:
    def __init__(self, name):
        self.name = name


class FakeConnection:
    """Capture executed statements."""

    def __init__(self, dialect="postgresql"):
        self.dialect = FakeDialect(dialect)
        self.executed = []

    def execute(self, stmt):
        self.executed.append(stmt)


def _sql(stmt) -> str:
    return str(stmt.compile(dialect=postgresql.dialect()))


def test_upsert_updates_non_key_columns():
    stmt = build_upsert(
        pg_insert,
        "players",
        {"game_id": "pubg", "player_id": "a", "player_name": "Alice"},
        ("game_id", "player_id"),
    )
    sql = _sql(stmt)
    assert "ON CONFLICT (game_id, player_id) DO UPDATE" in sql
    assert "player_name = excluded.player_name" in sql
    assert "game_id = excluded.game_id" not in sql


def test_upsert_key_only_row_does_nothing():
    stmt = build_upsert(
        pg_insert, "roster_players", {"roster_id": "r1", "player_id": "a"}, ("roster_id", "player_id")
    )
    assert "ON CONFLICT (roster_id, player_id) DO NOTHING" in _sql(stmt)


def test_upsert_without_conflict_cols_does_nothing():
    stmt = build_upsert(pg_insert, "games", {"game_id": "pubg", "name": "PUBG"})
    assert "ON CONFLICT DO NOTHING" in _sql(stmt)


def test_dialect_insert_rejects_unknown_dialect():
    with pytest.raises(NotImplementedError):
        dialect_insert(FakeConnection("mysql"))


def test_upsert_row_filters_with_live_columns():
    conn = FakeConnection()
    cols = TableColumns({"teams": ["game_id", "team_id"]})
    assert upsert_row(conn, "teams", {"game_id": "pubg", "team_id": "1", "team_name": "x"}, ("game_id", "team_id"), cols)
    sql = _sql(conn.executed[0])
    assert "team_name" not in sql


def test_upsert_row_skips_when_nothing_left():
    conn = FakeConnection()
    cols = TableColumns({"teams": []})
    assert upsert_row(conn, "teams", {"team_id": "1"}, ("game_id", "team_id"), cols) is False
    assert conn.executed == []


def test_upsert_rows_counts_statements():
    conn = FakeConnection()
    rows = [{"match_id": "m1", "roster_id": f"r{i}", "rank": i} for i in range(3)]
    assert upsert_rows(conn, "match_rosters", rows, ("match_id", "roster_id")) == 3
    assert len(conn.executed) == 3
