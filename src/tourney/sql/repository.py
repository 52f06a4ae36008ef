"""
Repository functions behind the admin console and the public listings.

Every function takes an ``Engine`` and works on plain dicts keyed by column
name. Unknown keys in incoming payloads are ignored so API bodies can be
passed through unchanged.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Iterable, Mapping, Optional

from sqlalchemy import Table, and_, delete, insert, or_, select, update
from sqlalchemy.engine import Engine

from tourney.core.constants import DEFAULT_GAME_ID, GAME_DISPLAY_NAMES
from tourney.sql import models as TM
from tourney.sql.upsert import upsert_row

logger = logging.getLogger(__name__)

SCRIM = "scrim"
TOURNAMENT = "tournament"


def _new_id(length: int = 10) -> str:
    return uuid.uuid4().hex[:length]


def _row_to_dict(row) -> dict:
    mapping = row._mapping if hasattr(row, "_mapping") else row
    return dict(mapping)


def _only_columns(table: Table, payload: Mapping[str, Any]) -> dict:
    return {k: v for k, v in payload.items() if k in table.c}


# =============================================================================
# Games
# =============================================================================


def game_name_for_id(game_id: Optional[str]) -> str:
    """Display name for a game id: ``pubg`` -> ``PUBG``, ``apex_legends`` -> ``Apex Legends``."""
    if not game_id:
        return GAME_DISPLAY_NAMES[DEFAULT_GAME_ID]
    key = str(game_id).lower()
    if key in GAME_DISPLAY_NAMES:
        return GAME_DISPLAY_NAMES[key]
    words = str(game_id).replace("_", " ").replace("-", " ").split()
    return " ".join(w[:1].upper() + w[1:] for w in words)


def ensure_game(conn, game_id: str) -> None:
    """Insert the game row if missing (never renames an existing game)."""
    upsert_row(
        conn,
        TM.Game.__tablename__,
        {"game_id": game_id, "name": game_name_for_id(game_id)},
        (),
    )


# =============================================================================
# Generic helpers
# =============================================================================


def _list(engine: Engine, table: Table, *where, order_by=None) -> list[dict]:
    stmt = select(table)
    if where:
        stmt = stmt.where(and_(*where))
    if order_by is not None:
        stmt = stmt.order_by(*order_by)
    with engine.connect() as conn:
        return [_row_to_dict(r) for r in conn.execute(stmt)]


def _get(engine: Engine, table: Table, *where) -> Optional[dict]:
    with engine.connect() as conn:
        row = conn.execute(select(table).where(and_(*where))).first()
    return _row_to_dict(row) if row is not None else None


def _insert(engine: Engine, table: Table, payload: Mapping[str, Any]) -> dict:
    values = _only_columns(table, payload)
    with engine.begin() as conn:
        conn.execute(insert(table).values(values))
    return values


def _update(
    engine: Engine, table: Table, where: list, payload: Mapping[str, Any]
) -> Optional[dict]:
    """Merge ``payload`` into the matching row; None if no row matched."""
    key_cols = {c.name for c in table.primary_key.columns}
    values = {
        k: v for k, v in _only_columns(table, payload).items() if k not in key_cols
    }
    with engine.begin() as conn:
        if values:
            result = conn.execute(update(table).where(and_(*where)).values(values))
            if result.rowcount == 0:
                return None
        row = conn.execute(select(table).where(and_(*where))).first()
    return _row_to_dict(row) if row is not None else None


def _delete(engine: Engine, table: Table, *where) -> bool:
    with engine.begin() as conn:
        result = conn.execute(delete(table).where(and_(*where)))
    return result.rowcount > 0


# =============================================================================
# Tournaments and scrims
# =============================================================================

_TOURNAMENTS = TM.Tournament.__table__


def _sort_clause(table: Table, sort: str):
    descending = sort.startswith("-")
    name = sort.lstrip("-")
    if name not in table.c:
        raise ValueError(f"Unknown sort column: {name!r}")
    col = table.c[name]
    # Nulls last in both directions
    return (col.is_(None), col.desc() if descending else col.asc())


def list_tournaments(
    engine: Engine,
    *,
    event_type: Optional[str] = None,
    status: Optional[str] = None,
    registration: Optional[str] = None,
    mode: Optional[str] = None,
    search: Optional[str] = None,
    sort: Optional[str] = None,
) -> list[dict]:
    """List tournaments (or scrims with ``event_type="scrim"``).

    Args:
        status / registration / mode: exact-match filters.
        search: case-insensitive substring of name or description.
        sort: column name, ``-`` prefix for descending; nulls sort last.
    """
    t = _TOURNAMENTS
    where = []
    if event_type == SCRIM:
        where.append(t.c.event_type == SCRIM)
    else:
        where.append(or_(t.c.event_type.is_(None), t.c.event_type != SCRIM))
    if status:
        where.append(t.c.status == status)
    if registration:
        where.append(t.c.registration_status == registration)
    if mode:
        where.append(t.c.mode == mode)
    if search:
        needle = f"%{search}%"
        where.append(or_(t.c.name.ilike(needle), t.c.description.ilike(needle)))
    order_by = _sort_clause(t, sort) if sort else (t.c.tournament_id,)
    return _list(engine, t, *where, order_by=order_by)


def list_featured_tournaments(engine: Engine) -> list[dict]:
    t = _TOURNAMENTS
    return _list(
        engine,
        t,
        t.c.featured.is_(True),
        order_by=_sort_clause(t, "start_date"),
    )


def get_tournament_by_id(engine: Engine, tournament_id: str) -> Optional[dict]:
    return _get(engine, _TOURNAMENTS, _TOURNAMENTS.c.tournament_id == tournament_id)


def insert_tournament(engine: Engine, payload: Mapping[str, Any]) -> dict:
    values = dict(payload)
    values.setdefault("tournament_id", _new_id())
    values.setdefault("event_type", TOURNAMENT)
    game_id = values.get("game_id") or DEFAULT_GAME_ID
    values["game_id"] = game_id
    with engine.begin() as conn:
        ensure_game(conn, game_id)
    return _insert(engine, _TOURNAMENTS, values)


def update_tournament_by_id(
    engine: Engine, tournament_id: str, payload: Mapping[str, Any]
) -> Optional[dict]:
    return _update(
        engine,
        _TOURNAMENTS,
        [_TOURNAMENTS.c.tournament_id == tournament_id],
        payload,
    )


def delete_tournament_by_id(engine: Engine, tournament_id: str) -> bool:
    return _delete(
        engine, _TOURNAMENTS, _TOURNAMENTS.c.tournament_id == tournament_id
    )


def upsert_tournament(engine: Engine, payload: Mapping[str, Any]) -> dict:
    """Create or overwrite a tournament keyed by ``tournament_id``."""
    values = _only_columns(_TOURNAMENTS, payload)
    values.setdefault("tournament_id", _new_id())
    values["event_type"] = values.get("event_type") or TOURNAMENT
    values["game_id"] = values.get("game_id") or DEFAULT_GAME_ID
    values["name"] = values.get("name") or values["tournament_id"]
    with engine.begin() as conn:
        ensure_game(conn, values["game_id"])
        upsert_row(conn, _TOURNAMENTS.name, values, ("tournament_id",))
    return values


def ensure_tournament(
    engine: Engine, tournament_id: str, status: str = "upcoming"
) -> None:
    """Insert a placeholder tournament if ``tournament_id`` is unknown."""
    with engine.begin() as conn:
        ensure_game(conn, DEFAULT_GAME_ID)
        upsert_row(
            conn,
            _TOURNAMENTS.name,
            {
                "tournament_id": tournament_id,
                "game_id": DEFAULT_GAME_ID,
                "event_type": TOURNAMENT,
                "name": tournament_id,
                "status": status,
            },
            (),
        )


# =============================================================================
# Announcements
# =============================================================================

_ANNOUNCEMENTS = TM.Announcement.__table__


def list_announcements(engine: Engine) -> list[dict]:
    a = _ANNOUNCEMENTS
    return _list(engine, a, order_by=(a.c.created_at.desc(),))


def insert_announcement(engine: Engine, payload: Mapping[str, Any]) -> dict:
    values = dict(payload)
    values.setdefault("announcement_id", _new_id())
    values.setdefault("type", "notice")
    values.setdefault("importance", "medium")
    values.setdefault("created_at", datetime.now(timezone.utc).isoformat())
    return _insert(engine, _ANNOUNCEMENTS, values)


def update_announcement_by_id(
    engine: Engine, announcement_id: str, payload: Mapping[str, Any]
) -> Optional[dict]:
    return _update(
        engine,
        _ANNOUNCEMENTS,
        [_ANNOUNCEMENTS.c.announcement_id == announcement_id],
        payload,
    )


def delete_announcement_by_id(engine: Engine, announcement_id: str) -> bool:
    return _delete(
        engine, _ANNOUNCEMENTS, _ANNOUNCEMENTS.c.announcement_id == announcement_id
    )


def upsert_announcement(engine: Engine, payload: Mapping[str, Any]) -> dict:
    values = _only_columns(_ANNOUNCEMENTS, payload)
    values.setdefault("announcement_id", _new_id())
    values["type"] = values.get("type") or "notice"
    values["importance"] = values.get("importance") or "medium"
    values["created_at"] = (
        values.get("created_at") or datetime.now(timezone.utc).isoformat()
    )
    with engine.begin() as conn:
        upsert_row(conn, _ANNOUNCEMENTS.name, values, ("announcement_id",))
    return values


# =============================================================================
# Teams and players (identity keyed by game)
# =============================================================================

_TEAMS = TM.Team.__table__
_PLAYERS = TM.Player.__table__


def list_teams(engine: Engine, game_id: Optional[str] = None) -> list[dict]:
    where = [_TEAMS.c.game_id == game_id] if game_id else []
    return _list(
        engine, _TEAMS, *where, order_by=(_TEAMS.c.game_id, _TEAMS.c.team_name)
    )


def upsert_team(engine: Engine, payload: Mapping[str, Any]) -> dict:
    """Create or overwrite a team keyed by ``(game_id, team_id)``."""
    values = _only_columns(_TEAMS, payload)
    values["game_id"] = values.get("game_id") or DEFAULT_GAME_ID
    values.setdefault("team_id", _new_id())
    with engine.begin() as conn:
        ensure_game(conn, values["game_id"])
        upsert_row(conn, _TEAMS.name, values, ("game_id", "team_id"))
    return values


def update_team_by_id(
    engine: Engine,
    team_id: str,
    payload: Mapping[str, Any],
    game_id: str = DEFAULT_GAME_ID,
) -> Optional[dict]:
    return _update(
        engine,
        _TEAMS,
        [_TEAMS.c.game_id == game_id, _TEAMS.c.team_id == team_id],
        payload,
    )


def delete_team_by_id(
    engine: Engine, team_id: str, game_id: str = DEFAULT_GAME_ID
) -> bool:
    return _delete(
        engine, _TEAMS, _TEAMS.c.game_id == game_id, _TEAMS.c.team_id == team_id
    )


def list_players(engine: Engine, game_id: Optional[str] = None) -> list[dict]:
    where = [_PLAYERS.c.game_id == game_id] if game_id else []
    return _list(
        engine,
        _PLAYERS,
        *where,
        order_by=(_PLAYERS.c.game_id, _PLAYERS.c.player_name),
    )


def upsert_player(engine: Engine, payload: Mapping[str, Any]) -> dict:
    """Create or overwrite a player keyed by ``(game_id, player_id)``."""
    values = _only_columns(_PLAYERS, payload)
    values["game_id"] = values.get("game_id") or DEFAULT_GAME_ID
    values.setdefault("player_id", _new_id())
    with engine.begin() as conn:
        ensure_game(conn, values["game_id"])
        upsert_row(conn, _PLAYERS.name, values, ("game_id", "player_id"))
    return values


def update_player_by_id(
    engine: Engine,
    player_id: str,
    payload: Mapping[str, Any],
    game_id: str = DEFAULT_GAME_ID,
) -> Optional[dict]:
    return _update(
        engine,
        _PLAYERS,
        [_PLAYERS.c.game_id == game_id, _PLAYERS.c.player_id == player_id],
        payload,
    )


def delete_player_by_id(
    engine: Engine, player_id: str, game_id: str = DEFAULT_GAME_ID
) -> bool:
    return _delete(
        engine,
        _PLAYERS,
        _PLAYERS.c.game_id == game_id,
        _PLAYERS.c.player_id == player_id,
    )


# =============================================================================
# Registrations (participants)
# =============================================================================

_PARTICIPANTS = TM.Participant.__table__


def list_participants(
    engine: Engine, tournament_id: Optional[str] = None
) -> list[dict]:
    p = _PARTICIPANTS
    where = [p.c.tournament_id == tournament_id] if tournament_id else []
    return _list(
        engine,
        p,
        *where,
        order_by=(p.c.slot_number.is_(None), p.c.slot_number, p.c.participant_id),
    )


def insert_participant(engine: Engine, payload: Mapping[str, Any]) -> dict:
    values = dict(payload)
    values.setdefault("participant_id", _new_id())
    values.setdefault("type", "team")
    values.setdefault("status", "pending")
    values.setdefault("payment_status", "unpaid")
    return _insert(engine, _PARTICIPANTS, values)


def update_participant_by_id(
    engine: Engine, participant_id: str, payload: Mapping[str, Any]
) -> Optional[dict]:
    return _update(
        engine,
        _PARTICIPANTS,
        [_PARTICIPANTS.c.participant_id == participant_id],
        payload,
    )


def delete_participant_by_id(engine: Engine, participant_id: str) -> bool:
    return _delete(
        engine, _PARTICIPANTS, _PARTICIPANTS.c.participant_id == participant_id
    )


def upsert_participant(engine: Engine, payload: Mapping[str, Any]) -> dict:
    values = _only_columns(_PARTICIPANTS, payload)
    values.setdefault("participant_id", _new_id())
    values["type"] = values.get("type") or "team"
    values["status"] = values.get("status") or "pending"
    values["payment_status"] = values.get("payment_status") or "unpaid"
    with engine.begin() as conn:
        upsert_row(conn, _PARTICIPANTS.name, values, ("participant_id",))
    return values


# =============================================================================
# Winners
# =============================================================================

_WINNERS = TM.Winner.__table__

_PLACE_KEYS = (("first", 1), ("second", 2), ("third", 3))


def expand_winner_summary(summary: Mapping[str, Any]) -> list[dict]:
    """Expand a winners summary into placement rows.

    The summary shape is::

        {"winner_id": "w1", "tournament_id": "t1",
         "by_points": {"first": "A", "second": "B", "third": "C",
                       "points": [120, 98, 80]},
         "most_kills": {"winner": "D", "kills": 41}}

    Rows get ids ``<winner_id>-p1..p3`` and ``<winner_id>-kills``.
    """
    base = summary.get("winner_id") or _new_id(6)
    tournament_id = summary.get("tournament_id")
    rows: list[dict] = []

    by_points = summary.get("by_points") or {}
    points = by_points.get("points")
    points = points if isinstance(points, list) else []
    for key, place in _PLACE_KEYS:
        team_name = by_points.get(key)
        if not team_name:
            continue
        rows.append(
            {
                "winner_id": f"{base}-p{place}",
                "tournament_id": tournament_id,
                "place": place,
                "team_name": team_name,
                "points": points[place - 1] if len(points) >= place else None,
                "kills": None,
            }
        )

    most_kills = summary.get("most_kills") or {}
    if most_kills.get("winner"):
        rows.append(
            {
                "winner_id": f"{base}-kills",
                "tournament_id": tournament_id,
                "place": None,
                "team_name": most_kills["winner"],
                "points": None,
                "kills": most_kills.get("kills"),
            }
        )
    return rows


def list_winners(engine: Engine, tournament_id: Optional[str] = None) -> list[dict]:
    w = _WINNERS
    where = [w.c.tournament_id == tournament_id] if tournament_id else []
    return _list(
        engine,
        w,
        *where,
        order_by=(w.c.tournament_id, w.c.place.is_(None), w.c.place),
    )


def upsert_winners(engine: Engine, rows: Iterable[Mapping[str, Any]]) -> int:
    written = 0
    with engine.begin() as conn:
        for row in rows:
            values = _only_columns(_WINNERS, row)
            values.setdefault("winner_id", _new_id())
            upsert_row(conn, _WINNERS.name, values, ("winner_id",))
            written += 1
    return written


def insert_winner(engine: Engine, payload: Mapping[str, Any]) -> dict:
    values = dict(payload)
    values.setdefault("winner_id", _new_id())
    return _insert(engine, _WINNERS, values)


def update_winner_by_id(
    engine: Engine, winner_id: str, payload: Mapping[str, Any]
) -> Optional[dict]:
    return _update(
        engine, _WINNERS, [_WINNERS.c.winner_id == winner_id], payload
    )


def delete_winner_by_id(engine: Engine, winner_id: str) -> bool:
    return _delete(engine, _WINNERS, _WINNERS.c.winner_id == winner_id)
