"""
Tournament <-> match associations.

Links are recorded before normalization so the importer can stamp the
tournament id onto match and roster rows. Each link keeps a ``position``
so a tournament's matches read back in the order they were linked.
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from sqlalchemy import delete, func, select
from sqlalchemy.engine import Connection, Engine

from tourney.sql import models as TM
from tourney.sql.upsert import upsert_row

logger = logging.getLogger(__name__)

_TM = TM.TournamentMatch.__table__


def _clean_ids(match_ids: Iterable[object]) -> list[str]:
    """Strip ids, drop blanks and keep the first occurrence of each."""
    seen: set[str] = set()
    out: list[str] = []
    for mid in match_ids or []:
        if mid is None:
            continue
        value = str(mid).strip()
        if value and value not in seen:
            seen.add(value)
            out.append(value)
    return out


def _link_in(conn: Connection, tournament_id: str, ids: list[str]) -> int:
    existing = set(
        conn.execute(
            select(_TM.c.match_id).where(_TM.c.tournament_id == tournament_id)
        ).scalars()
    )
    next_position = conn.execute(
        select(func.coalesce(func.max(_TM.c.position), -1)).where(
            _TM.c.tournament_id == tournament_id
        )
    ).scalar_one()
    added = 0
    for match_id in ids:
        if match_id in existing:
            continue
        next_position += 1
        upsert_row(
            conn,
            _TM.name,
            {
                "tournament_id": tournament_id,
                "match_id": match_id,
                "position": next_position,
            },
            ("tournament_id", "match_id"),
        )
        added += 1
    return added


def link_tournament_matches(
    engine: Engine, tournament_id: Optional[str], match_ids: Iterable[object]
) -> int:
    """Record that ``match_ids`` belong to ``tournament_id`` (idempotent).

    Already linked ids keep their original position. Returns the number of
    new links.
    """
    ids = _clean_ids(match_ids)
    if not tournament_id or not ids:
        return 0
    with engine.begin() as conn:
        added = _link_in(conn, str(tournament_id), ids)
    logger.info(
        "Linked %d new match(es) to tournament %s (%d requested)",
        added,
        tournament_id,
        len(ids),
    )
    return added


def replace_tournament_matches(
    engine: Engine, tournament_id: str, match_ids: Iterable[object]
) -> int:
    """Replace all of a tournament's links with ``match_ids`` in order."""
    ids = _clean_ids(match_ids)
    with engine.begin() as conn:
        conn.execute(delete(_TM).where(_TM.c.tournament_id == tournament_id))
        return _link_in(conn, tournament_id, ids)


def get_tournament_match_ids(
    engine: Engine, tournament_id: Optional[str]
) -> list[str]:
    """Return a tournament's match ids in insertion order."""
    if not tournament_id:
        return []
    stmt = (
        select(_TM.c.match_id)
        .where(_TM.c.tournament_id == tournament_id)
        .order_by(_TM.c.position, _TM.c.created_at)
    )
    with engine.connect() as conn:
        return [mid for mid in conn.execute(stmt).scalars() if mid]


def find_tournament_for_match(conn: Connection, match_id: str) -> Optional[str]:
    """Return the tournament a match is linked to, if any."""
    return conn.execute(
        select(_TM.c.tournament_id)
        .where(_TM.c.match_id == match_id)
        .order_by(_TM.c.created_at)
        .limit(1)
    ).scalar_one_or_none()
