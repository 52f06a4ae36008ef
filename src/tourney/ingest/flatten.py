"""
Flatten JSON:API match payloads into per-table rows.

A payload mirrors the stats API's match endpoint::

    {
        "data": {"type": "match", "id": "...", "attributes": {...}},
        "included": [
            {"type": "roster", "id": "...", "attributes": {...},
             "relationships": {"participants": {"data": [{"id": "..."}]}}},
            {"type": "participant", "id": "...", "attributes": {"stats": {...}}},
            {"type": "asset", "id": "...", "attributes": {"URL": "..."}},
        ],
    }

:func:`flatten_match_payload` turns this into a :class:`FlattenedMatch`
whose rows are keyed by destination column names. It performs no I/O.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from tourney.core.constants import (
    ASSET_TYPE,
    MATCH_ASSETS_TABLE,
    MATCH_ATTRIBUTE_COLUMNS,
    MATCH_INFORMATION_TABLE,
    MATCH_PLAYER_STATS_TABLE,
    MATCH_ROSTERS_TABLE,
    PARTICIPANT_STAT_COLUMNS,
    PARTICIPANT_TYPE,
    PLAYERS_TABLE,
    ROSTER_PLAYERS_TABLE,
    ROSTER_TYPE,
    TEAMS_TABLE,
    TOURNAMENT_ROSTERS_TABLE,
)
from tourney.core.errors import MalformedPayload

Row = Dict[str, Any]


@dataclass
class FlattenedMatch:
    """Normalized rows for one match, grouped by destination table."""

    match_id: str
    game_id: str
    tournament_id: Optional[str] = None
    match: Row = field(default_factory=dict)
    assets: List[Row] = field(default_factory=list)
    teams: List[Row] = field(default_factory=list)
    tournament_rosters: List[Row] = field(default_factory=list)
    rosters: List[Row] = field(default_factory=list)
    players: List[Row] = field(default_factory=list)
    player_stats: List[Row] = field(default_factory=list)
    roster_players: List[Row] = field(default_factory=list)
    # participant id -> roster id
    participant_rosters: Dict[str, str] = field(default_factory=dict)

    def tables(self) -> Dict[str, List[Row]]:
        """Rows per table, in an order that satisfies foreign keys."""
        return {
            MATCH_INFORMATION_TABLE: [self.match] if self.match else [],
            MATCH_ASSETS_TABLE: self.assets,
            TEAMS_TABLE: self.teams,
            TOURNAMENT_ROSTERS_TABLE: self.tournament_rosters,
            MATCH_ROSTERS_TABLE: self.rosters,
            PLAYERS_TABLE: self.players,
            MATCH_PLAYER_STATS_TABLE: self.player_stats,
            ROSTER_PLAYERS_TABLE: self.roster_players,
        }

    def row_counts(self) -> Dict[str, int]:
        return {table: len(rows) for table, rows in self.tables().items()}


def get_match_id(payload: Any) -> Optional[str]:
    """Return ``payload.data.id`` as a string, or None if absent/blank."""
    if not isinstance(payload, dict):
        return None
    data = payload.get("data")
    if not isinstance(data, dict):
        return None
    match_id = data.get("id")
    if match_id is None or str(match_id).strip() == "":
        return None
    return str(match_id)


def _attributes(record: dict) -> dict:
    attrs = record.get("attributes")
    return attrs if isinstance(attrs, dict) else {}


def _stats(record: dict) -> dict:
    stats = _attributes(record).get("stats")
    return stats if isinstance(stats, dict) else {}


def _parse_won(value: Any) -> Optional[bool]:
    """The API reports ``won`` as the strings "true"/"false"."""
    if isinstance(value, bool):
        return value
    if value == "true":
        return True
    if value == "false":
        return False
    return None


def _to_int(value: Any) -> Optional[int]:
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _records_of_type(included: list, record_type: str) -> list[dict]:
    return [
        r
        for r in included
        if isinstance(r, dict) and r.get("type") == record_type
    ]


def team_display_name(team_id: str) -> str:
    return f"Team {team_id}"


def build_participant_roster_map(rosters: list[dict]) -> Dict[str, str]:
    """Map participant id -> roster id from each roster's relationships."""
    mapping: Dict[str, str] = {}
    for roster in rosters:
        relationships = roster.get("relationships")
        if not isinstance(relationships, dict):
            continue
        participants = relationships.get("participants")
        refs = participants.get("data") if isinstance(participants, dict) else None
        if not isinstance(refs, list):
            continue
        for ref in refs:
            if isinstance(ref, dict) and ref.get("id") is not None:
                mapping[str(ref["id"])] = str(roster.get("id"))
    return mapping


def _match_row(
    match_id: str, game_id: str, tournament_id: Optional[str], attrs: dict
) -> Row:
    created_at = attrs.get("createdAt")
    row: Row = {
        "match_id": match_id,
        "game_id": game_id,
        "tournament_id": tournament_id,
        # Some schema revisions carry one or both timestamp columns
        "created_at_api": created_at,
        "created_at": created_at,
    }
    for key, col in MATCH_ATTRIBUTE_COLUMNS.items():
        row[col] = attrs.get(key)
    row["tags"] = attrs.get("tags")
    row["stats"] = attrs.get("stats")
    return row


def _asset_row(asset: dict, match_id: str, game_id: str) -> Row:
    a = _attributes(asset)
    return {
        "asset_id": str(asset.get("id")),
        "match_id": match_id,
        "game_id": game_id,
        "url": a.get("URL"),
        "name": a.get("name"),
        "description": a.get("description"),
        "created_at_api": a.get("createdAt"),
        "created_at": a.get("createdAt"),
    }


def _player_stats_row(
    stats: dict,
    match_id: str,
    player_id: str,
    game_id: str,
    roster_id: Optional[str],
) -> Row:
    row: Row = {
        "match_id": match_id,
        "player_id": player_id,
        "game_id": game_id,
        "roster_id": roster_id,
    }
    # Absent stats stay None so "unknown" is distinguishable from zero
    for key, col in PARTICIPANT_STAT_COLUMNS.items():
        row[col] = stats.get(key)
    row["raw_stats"] = stats or None
    return row


def flatten_match_payload(
    payload: dict,
    game_id: str,
    tournament_id: Optional[str] = None,
    source: Optional[str] = None,
) -> FlattenedMatch:
    """Flatten one match payload into per-table rows.

    Parameters
    ----------
    payload : dict
        JSON:API match document (``data`` + ``included``).
    game_id : str
        Namespace for team and player identity.
    tournament_id : str, optional
        Tournament the match is linked to; tournament rosters are only
        emitted when set.
    source : str, optional
        Where the payload came from (file path, API), for error messages.

    Returns
    -------
    FlattenedMatch

    Raises
    ------
    MalformedPayload
        If the payload has no match id.
    """
    match_id = get_match_id(payload)
    if match_id is None:
        raise MalformedPayload("Payload has no data.id match identifier", source)

    out = FlattenedMatch(
        match_id=match_id, game_id=game_id, tournament_id=tournament_id
    )
    out.match = _match_row(
        match_id, game_id, tournament_id, _attributes(payload["data"])
    )

    included = payload.get("included")
    if not isinstance(included, list):
        included = []
    rosters = _records_of_type(included, ROSTER_TYPE)
    participants = _records_of_type(included, PARTICIPANT_TYPE)
    assets = _records_of_type(included, ASSET_TYPE)

    # Resolve roster membership before any participant row is built
    out.participant_rosters = build_participant_roster_map(rosters)

    for asset in assets:
        out.assets.append(_asset_row(asset, match_id, game_id))

    seen_teams: set[str] = set()
    for roster in rosters:
        roster_id = str(roster.get("id"))
        stats = _stats(roster)
        team_id = (
            str(stats["teamId"]) if stats.get("teamId") is not None else None
        )

        if team_id and team_id not in seen_teams:
            seen_teams.add(team_id)
            out.teams.append(
                {
                    "game_id": game_id,
                    "team_id": team_id,
                    "team_name": team_display_name(team_id),
                }
            )

        if tournament_id:
            out.tournament_rosters.append(
                {
                    "roster_id": roster_id,
                    "tournament_id": tournament_id,
                    "game_id": game_id,
                    "team_id": team_id,
                }
            )

        out.rosters.append(
            {
                "match_id": match_id,
                "roster_id": roster_id,
                "team_id": team_id,
                "rank": _to_int(stats.get("rank")),
                "won": _parse_won(_attributes(roster).get("won")),
            }
        )

    for participant in participants:
        participant_id = str(participant.get("id"))
        stats = _stats(participant)
        player_id = str(stats.get("playerId") or participant_id)
        player_name = stats.get("name") or player_id
        roster_id = out.participant_rosters.get(participant_id)

        out.players.append(
            {
                "game_id": game_id,
                "player_id": player_id,
                "player_name": player_name,
            }
        )
        out.player_stats.append(
            _player_stats_row(stats, match_id, player_id, game_id, roster_id)
        )
        if roster_id:
            out.roster_players.append(
                {
                    "roster_id": roster_id,
                    "player_id": player_id,
                    "game_id": game_id,
                }
            )

    return out
