"""Shared fixtures: a throwaway SQLite database and match payload builders."""

from __future__ import annotations

import pytest
from sqlalchemy import create_engine

from tourney.sql import create_all


def make_payload(
    match_id: str | None = "m1",
    rosters: int = 2,
    per_roster: int = 4,
    player_names: dict | None = None,
    with_asset: bool = True,
) -> dict:
    """Build a JSON:API match payload.

    Roster ``r{i}`` belongs to team ``10{i}`` and holds participants
    ``p{i}-{j}``; roster ``r0`` wins.
    """
    included: list[dict] = []
    for i in range(rosters):
        refs = [{"type": "participant", "id": f"p{i}-{j}"} for j in range(per_roster)]
        included.append(
            {
                "type": "roster",
                "id": f"r{i}",
                "attributes": {
                    "won": "true" if i == 0 else "false",
                    "stats": {"rank": i + 1, "teamId": 100 + i},
                },
                "relationships": {"participants": {"data": refs}},
            }
        )
        for j in range(per_roster):
            player_id = f"account.{i}{j}"
            name = (player_names or {}).get(player_id, f"player{i}{j}")
            included.append(
                {
                    "type": "participant",
                    "id": f"p{i}-{j}",
                    "attributes": {
                        "stats": {
                            "playerId": player_id,
                            "name": name,
                            "kills": j,
                            "assists": 1,
                            "damageDealt": 100.0 * (j + 1),
                            "headshotKills": 0,
                            "revives": 0,
                            "DBNOs": 1,
                            "winPlace": i + 1,
                        }
                    },
                }
            )
    if with_asset:
        included.append(
            {
                "type": "asset",
                "id": "asset-1",
                "attributes": {
                    "URL": "https://telemetry.example/m1.json",
                    "name": "telemetry",
                    "createdAt": "2024-05-01T12:00:00Z",
                },
            }
        )
    data: dict = {
        "type": "match",
        "attributes": {
            "createdAt": "2024-05-01T12:00:00Z",
            "duration": 1800,
            "gameMode": "squad-fpp",
            "mapName": "Baltic_Main",
            "matchType": "custom",
            "shardId": "steam",
            "isCustomMatch": True,
        },
    }
    if match_id is not None:
        data["id"] = match_id
    return {"data": data, "included": included}


@pytest.fixture
def payload_factory():
    return make_payload


@pytest.fixture
def engine(tmp_path):
    eng = create_engine(f"sqlite:///{tmp_path / 'tourney.db'}")
    create_all(eng)
    yield eng
    eng.dispose()
