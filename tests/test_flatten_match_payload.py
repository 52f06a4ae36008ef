"""Tests for flattening JSON:API match payloads into table rows."""

import pytest

from tourney.core.errors import MalformedPayload
from tourney.ingest.flatten import (
    build_participant_roster_map,
    flatten_match_payload,
    get_match_id,
)


def test_two_rosters_of_four_participants(payload_factory):
    flat = flatten_match_payload(payload_factory(), "pubg")

    assert len(flat.rosters) == 2
    assert len(flat.player_stats) == 8
    assert len(flat.roster_players) == 8
    assert len(flat.players) == 8
    # Every participant resolves to a roster from the same payload
    roster_ids = {r["roster_id"] for r in flat.rosters}
    assert {s["roster_id"] for s in flat.player_stats} == roster_ids
    by_player = {s["player_id"]: s["roster_id"] for s in flat.player_stats}
    assert by_player["account.00"] == "r0"
    assert by_player["account.13"] == "r1"


def test_match_row_maps_attributes(payload_factory):
    flat = flatten_match_payload(payload_factory(), "pubg")

    assert flat.match["match_id"] == "m1"
    assert flat.match["game_id"] == "pubg"
    assert flat.match["map_name"] == "Baltic_Main"
    assert flat.match["game_mode"] == "squad-fpp"
    assert flat.match["created_at_api"] == "2024-05-01T12:00:00Z"
    assert flat.match["is_custom_match"] is True
    assert flat.match["tournament_id"] is None


def test_missing_match_id_raises_malformed_payload(payload_factory):
    with pytest.raises(MalformedPayload) as exc_info:
        flatten_match_payload(payload_factory(match_id=None), "pubg", source="x.json")
    assert exc_info.value.source == "x.json"


@pytest.mark.parametrize("payload", [None, [], {}, {"data": None}, {"data": {"id": " "}}])
def test_get_match_id_absent(payload):
    assert get_match_id(payload) is None


def test_get_match_id_coerces_to_string():
    assert get_match_id({"data": {"id": 42}}) == "42"


def test_won_parsed_from_strings(payload_factory):
    flat = flatten_match_payload(payload_factory(), "pubg")
    won = {r["roster_id"]: r["won"] for r in flat.rosters}
    assert won == {"r0": True, "r1": False}


def test_missing_stats_are_none_not_zero(payload_factory):
    flat = flatten_match_payload(payload_factory(), "pubg")
    row = flat.player_stats[0]
    assert row["kills"] == 0
    assert row["longest_kill"] is None
    assert row["walk_distance"] is None
    assert row["dbnos"] == 1


def test_teams_deduplicated_and_named(payload_factory):
    payload = payload_factory()
    # Second roster for team 100
    payload["included"].append(
        {
            "type": "roster",
            "id": "r9",
            "attributes": {"won": "false", "stats": {"rank": 3, "teamId": 100}},
            "relationships": {"participants": {"data": []}},
        }
    )
    flat = flatten_match_payload(payload, "pubg")
    assert [t["team_id"] for t in flat.teams] == ["100", "101"]
    assert flat.teams[0]["team_name"] == "Team 100"


def test_tournament_rosters_only_with_tournament(payload_factory):
    assert flatten_match_payload(payload_factory(), "pubg").tournament_rosters == []
    flat = flatten_match_payload(payload_factory(), "pubg", tournament_id="t1")
    assert len(flat.tournament_rosters) == 2
    assert {r["tournament_id"] for r in flat.tournament_rosters} == {"t1"}
    assert flat.match["tournament_id"] == "t1"


def test_unlinked_participant_has_no_roster(payload_factory):
    payload = payload_factory(rosters=1, per_roster=1)
    payload["included"].append(
        {"type": "participant", "id": "ghost", "attributes": {"stats": {}}}
    )
    flat = flatten_match_payload(payload, "pubg")

    ghost = [s for s in flat.player_stats if s["player_id"] == "ghost"][0]
    assert ghost["roster_id"] is None
    assert ghost["raw_stats"] is None
    # Player id and name fall back to the participant id
    assert {"game_id": "pubg", "player_id": "ghost", "player_name": "ghost"} in flat.players
    assert all(rp["player_id"] != "ghost" for rp in flat.roster_players)


def test_participant_roster_map():
    rosters = [
        {"id": "r1", "relationships": {"participants": {"data": [{"id": "a"}, {"id": "b"}]}}},
        {"id": "r2", "relationships": {}},
    ]
    assert build_participant_roster_map(rosters) == {"a": "r1", "b": "r1"}


@pytest.mark.parametrize(
    "relationships",
    [
        "r1",
        {"participants": [{"id": "a"}]},
        {"participants": {"data": {"id": "a"}}},
        None,
    ],
)
def test_participant_roster_map_ignores_bad_shapes(relationships):
    rosters = [
        {"id": "r1", "relationships": relationships},
        {"id": "r2", "relationships": {"participants": {"data": [{"id": "b"}]}}},
    ]
    assert build_participant_roster_map(rosters) == {"b": "r2"}


def test_row_counts(payload_factory):
    counts = flatten_match_payload(payload_factory(), "pubg").row_counts()
    assert counts["match_information"] == 1
    assert counts["match_assets"] == 1
    assert counts["teams"] == 2
    assert counts["match_player_stats"] == 8
