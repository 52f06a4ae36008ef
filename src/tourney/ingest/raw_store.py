"""
Raw match store: opaque payloads keyed by match id.

Payloads are stored exactly as received so normalization can be re-run
(``tourney_backfill``) after schema or mapping changes.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Iterable, Optional

from sqlalchemy import func, select
from sqlalchemy.engine import Engine

from tourney.core.errors import MalformedPayload
from tourney.ingest.flatten import get_match_id
from tourney.sql import models as TM
from tourney.sql.upsert import dialect_insert

logger = logging.getLogger(__name__)

_RAW = TM.RawMatch.__table__


def upsert_matches(engine: Engine, payloads: Iterable[dict]) -> tuple[int, int]:
    """Store raw payloads, replacing any previous payload for the same id.

    Payloads without a match id are skipped with a warning.

    Returns:
        ``(stored, skipped)`` counts.
    """
    stored = skipped = 0
    with engine.begin() as conn:
        insert = dialect_insert(conn)
        for payload in payloads or []:
            match_id = get_match_id(payload)
            if match_id is None:
                skipped += 1
                logger.warning("Skipping raw payload without a match id")
                continue
            stmt = insert(_RAW).values(match_id=match_id, payload=payload)
            stmt = stmt.on_conflict_do_update(
                index_elements=[_RAW.c.match_id],
                set_={"payload": stmt.excluded.payload, "updated_at": func.now()},
            )
            conn.execute(stmt)
            stored += 1
    return stored, skipped


def get_matches_by_ids(engine: Engine, match_ids: Iterable[str]) -> dict[str, dict]:
    """Return ``{match_id: payload}`` for the ids that are stored."""
    ids = [str(m) for m in match_ids or [] if m]
    if not ids:
        return {}
    stmt = select(_RAW.c.match_id, _RAW.c.payload).where(
        _RAW.c.match_id.in_(ids)
    )
    with engine.connect() as conn:
        return {row.match_id: row.payload for row in conn.execute(stmt)}


def get_all_matches(engine: Engine) -> list[dict]:
    """Return every stored payload, oldest first."""
    stmt = select(_RAW.c.payload).order_by(_RAW.c.created_at, _RAW.c.match_id)
    with engine.connect() as conn:
        return list(conn.execute(stmt).scalars())


def get_normalized_match_ids(engine: Engine) -> set[str]:
    """Return ids that already have a ``match_information`` row."""
    info = TM.MatchInformation.__table__
    with engine.connect() as conn:
        return set(conn.execute(select(info.c.match_id)).scalars())


def read_payload_file(path: Path) -> list[dict]:
    """Load a JSON file holding one payload or a list of payloads.

    Raises:
        MalformedPayload: the file is not valid UTF-8 JSON.
    """
    path = Path(path)
    try:
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise MalformedPayload(f"Invalid JSON: {e}", path.name) from e
    if isinstance(data, list):
        return [d for d in data if isinstance(d, dict)]
    if isinstance(data, dict):
        return [data]
    return []


def find_json_files(root: Path) -> list[Path]:
    """Sorted ``*.json`` files directly under ``root``."""
    return sorted(p for p in Path(root).glob("*.json") if p.is_file())


def get_raw_match_payload(data_dir: Path, match_id: str) -> Optional[dict]:
    """Read ``<data_dir>/<match_id>.json`` if present."""
    path = Path(data_dir) / f"{match_id}.json"
    if not path.exists():
        return None
    with path.open("r", encoding="utf-8") as f:
        return json.load(f)
