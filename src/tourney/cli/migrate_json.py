from __future__ import annotations

"""CLI to load the legacy JSON collections into the database.

Reads ``tournaments.json``, ``teams.json``, ``players.json``,
``participants.json``, ``announcements.json`` and ``winners.json`` from
``--data-dir`` (missing or empty files are treated as empty lists) and
upserts every record, so the migration can be re-run.

Usage:
  poetry run tourney_migrate_json --data-dir server/data --sslmode require
"""

import argparse
import json
import logging
from pathlib import Path
from typing import Any

from sqlalchemy.exc import SQLAlchemyError

from tourney.cli.common import add_common_args, build_engine, init_cli
from tourney.core.errors import MalformedPayload
from tourney.core.logging import log_timing
from tourney.ingest.linker import replace_tournament_matches
from tourney.sql import create_all as tourney_create_all
from tourney.sql import repository as repo

logger = logging.getLogger(__name__)

COLLECTIONS = (
    "tournaments",
    "teams",
    "players",
    "participants",
    "announcements",
    "winners",
)


def read_collection(data_dir: Path, name: str) -> list[dict]:
    """Load ``<data_dir>/<name>.json`` as a list of records.

    Raises:
        MalformedPayload: the file is not valid JSON.
    """
    path = Path(data_dir) / f"{name}.json"
    if not path.exists():
        return []
    raw = path.read_text(encoding="utf-8")
    if not raw.strip():
        return []
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise MalformedPayload(f"Invalid JSON: {e}", path.name) from e
    if isinstance(data, dict):
        return [data]
    return [d for d in data if isinstance(d, dict)] if isinstance(data, list) else []


def _number(value: Any) -> float:
    try:
        return float(value or 0)
    except (TypeError, ValueError):
        return 0.0


def tournament_values(t: dict) -> dict:
    """Apply the defaults legacy records relied on."""
    return {
        **t,
        "event_type": t.get("event_type") or "tournament",
        "description": t.get("description") or "",
        "banner_url": t.get("banner_url") or "",
        "start_date": t.get("start_date") or None,
        "end_date": t.get("end_date") or None,
        "status": t.get("status") or "upcoming",
        "registration_status": t.get("registration_status") or "closed",
        "mode": t.get("mode") or "squad",
        "match_type": t.get("match_type") or "classic",
        "perspective": t.get("perspective") or "TPP",
        "tier": t.get("tier") or None,
        "prize_pool": _number(t.get("prize_pool")),
        "registration_charge": _number(t.get("registration_charge")),
        "featured": t.get("featured") is True,
        "max_slots": t.get("max_slots") or None,
        "region": t.get("region") or "",
        "rules": t.get("rules") or "",
        "contact_discord": t.get("contact_discord") or "",
        "api_key_required": t.get("api_key_required") is True,
        "api_provider": t.get("api_provider") or "PUBG",
        "pubg_tournament_id": t.get("pubg_tournament_id") or "",
        "custom_match_mode": t.get("custom_match_mode") is True,
        "allow_non_custom": t.get("allow_non_custom") is True,
        "custom_match_ids": t.get("custom_match_ids") or None,
    }


def migrate(engine, data_dir: Path) -> dict[str, int]:
    """Upsert every legacy collection; returns records written per collection."""
    data = {name: read_collection(data_dir, name) for name in COLLECTIONS}
    counts = {name: 0 for name in COLLECTIONS}

    for t in data["tournaments"]:
        if not t.get("tournament_id"):
            logger.warning(f"Skipping tournament without id: {t.get('name')!r}")
            continue
        repo.upsert_tournament(engine, tournament_values(t))
        if t.get("custom_match_mode") and t.get("custom_match_ids"):
            replace_tournament_matches(
                engine, t["tournament_id"], t["custom_match_ids"]
            )
        counts["tournaments"] += 1

    for team in data["teams"]:
        repo.upsert_team(engine, team)
        counts["teams"] += 1

    for player in data["players"]:
        repo.upsert_player(engine, player)
        counts["players"] += 1

    for p in data["participants"]:
        if p.get("tournament_id"):
            repo.ensure_tournament(engine, p["tournament_id"], status="upcoming")
        repo.upsert_participant(engine, p)
        counts["participants"] += 1

    for a in data["announcements"]:
        repo.upsert_announcement(engine, a)
        counts["announcements"] += 1

    for w in data["winners"]:
        if w.get("tournament_id"):
            repo.ensure_tournament(engine, w["tournament_id"], status="completed")
        counts["winners"] += repo.upsert_winners(
            engine, repo.expand_winner_summary(w)
        )

    return counts


def main(argv: list[str] | None = None) -> int:
    """Entry point: migrate legacy JSON collections from ``--data-dir``."""
    parser = argparse.ArgumentParser(
        description="Load legacy JSON collections into the tourney database"
    )
    parser.add_argument(
        "--data-dir",
        type=str,
        default="data",
        help="Directory holding tournaments.json, teams.json, ...",
    )
    add_common_args(parser)
    args = parser.parse_args(argv)
    init_cli(args, context="tourney_migrate_json")

    data_dir = Path(args.data_dir)
    if not data_dir.exists():
        raise SystemExit(f"Data directory not found: {data_dir}")

    engine = build_engine(args)
    try:
        with log_timing(logger, f"migrating JSON collections from {data_dir}"):
            tourney_create_all(engine)
            counts = migrate(engine, data_dir)
    except (MalformedPayload, SQLAlchemyError) as e:
        logger.error(f"Migration failed: {e}")
        print(f"Migration failed: {e}")
        return 1

    for name, n in counts.items():
        print(f"  {name}: {n}")
    print("Migration complete.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
