import polars as pl

from tourney.ingest.importer import import_match_payloads
from tourney.ingest.linker import link_tournament_matches
from tourney.sql.load import (
    load_player_stats_df,
    load_team_stats_df,
    load_tournament_matches_df,
)


def test_player_stats_derived_columns(monkeypatch):
    fake = pl.DataFrame(
        {
            "game_id": ["pubg", "pubg"],
            "player_id": ["a", "b"],
            "player_name": ["A", "B"],
            "matches": [2, 4],
            "wins": [1, 0],
            "kills": [3, 10],
            "assists": [0, 1],
            "damage_dealt": [300, 800],
            "headshot_kills": [1, 2],
            "revives": [0, 0],
        }
    )

    def fake_read_sql(engine, sql, params=None):  # noqa: ARG001
        return fake

    import tourney.sql.load as load_mod

    monkeypatch.setattr(load_mod, "_read_sql", fake_read_sql)

    df = load_player_stats_df(engine=None)
    assert df["player_id"].to_list() == ["b", "a"]
    assert df["avg_damage"].to_list() == [200.0, 150.0]
    assert df["kd"].to_list() == [2.5, 1.5]
    assert df.schema["damage_dealt"] == pl.Float64


def test_player_stats_passes_filters(monkeypatch):
    captured = {}

    def fake_read_sql(engine, sql, params=None):  # noqa: ARG001
        captured["sql"] = sql
        captured["params"] = params
        return pl.DataFrame([])

    import tourney.sql.load as load_mod

    monkeypatch.setattr(load_mod, "_read_sql", fake_read_sql)

    df = load_player_stats_df(engine=None, game_id="pubg", tournament_id="t1")
    assert df.is_empty()
    assert captured["params"] == {"game_id": "pubg", "tournament_id": "t1"}
    assert "mi.tournament_id = :tournament_id" in captured["sql"]


def test_loaders_against_sqlite(engine, payload_factory):
    link_tournament_matches(engine, "t1", ["m1", "m2"])
    import_match_payloads(engine, [payload_factory("m1"), payload_factory("m2")])

    players = load_player_stats_df(engine, tournament_id="t1")
    assert players.height == 8
    top = players.row(0, named=True)
    # kills per match are j=3 for the last participant of each roster
    assert top["kills"] == 6
    assert top["matches"] == 2

    winners = players.filter(pl.col("player_id").str.starts_with("account.0"))
    assert winners["wins"].to_list() == [2, 2, 2, 2]

    teams = load_team_stats_df(engine)
    assert teams["team_id"].to_list() == ["100", "101"]
    assert teams["wins"].to_list() == [2, 0]
    assert teams["avg_rank"].to_list() == [1.0, 2.0]
    assert teams["kills"].to_list() == [12, 12]

    matches = load_tournament_matches_df(engine, "t1")
    assert matches["match_id"].to_list() == ["m1", "m2"]
    assert matches["map_name"].to_list() == ["Baltic_Main", "Baltic_Main"]
