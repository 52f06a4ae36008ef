import pytest

from tourney.core.errors import SchemaMismatch
from tourney.sql.introspect import TableColumns, get_columns


def test_filter_drops_unknown_fields():
    cols = TableColumns({"match_rosters": ["match_id", "roster_id", "rank"]})
    row = {"match_id": "m1", "roster_id": "r1", "rank": 2, "won": True}
    assert cols.filter("match_rosters", row) == {
        "match_id": "m1",
        "roster_id": "r1",
        "rank": 2,
    }


def test_filter_missing_table_returns_empty():
    cols = TableColumns({"teams": []})
    assert cols.filter("teams", {"team_id": "1"}) == {}
    assert cols.filter("unknown_table", {"a": 1}) == {}


def test_filter_strict_raises_schema_mismatch():
    cols = TableColumns({"players": ["game_id", "player_id"]}, strict=True)
    with pytest.raises(SchemaMismatch) as exc_info:
        cols.filter("players", {"game_id": "pubg", "player_id": "a", "zeta": 1, "alpha": 2})
    assert exc_info.value.table == "players"
    assert exc_info.value.fields == ["alpha", "zeta"]
    assert "alpha, zeta" in str(exc_info.value)


def test_filter_reports_each_field_set_once():
    cols = TableColumns({"players": ["player_id"]})
    cols.filter("players", {"player_id": "a", "x": 1})
    cols.filter("players", {"player_id": "b", "x": 2})
    cols.filter("players", {"player_id": "c", "y": 3})
    assert cols._reported == {("players", ("x",)), ("players", ("y",))}


def test_has_and_get():
    cols = TableColumns({"teams": ["game_id", "team_id"]})
    assert cols.has("teams", "team_id")
    assert not cols.has("teams", "team_name")
    assert cols.get("missing") == frozenset()


def test_load_reads_live_columns(engine):
    cols = TableColumns.load(engine, ["match_rosters", "not_a_table"])
    assert cols.get("match_rosters") == {"match_id", "roster_id", "team_id", "rank", "won"}
    assert cols.get("not_a_table") == frozenset()
    assert get_columns(engine, "not_a_table") == set()
