from __future__ import annotations

"""CLI to normalize match payloads into the relational match tables.

Payloads come either from a directory of JSON files (``--data-dir``) or from
the stats API (``--match-ids`` or a player's recent matches via
``--player-name``). With ``--tournament-id`` the matches are
linked to the tournament before normalization so roster rows carry the
tournament id.
"""

import argparse
import logging
import os
from pathlib import Path

from sqlalchemy.exc import SQLAlchemyError

from tourney.cli.common import add_common_args, build_engine, init_cli
from tourney.core.config import ImportConfig
from tourney.core.errors import (
    MalformedPayload,
    PersistenceFailure,
    SchemaMismatch,
    StatsApiError,
)
from tourney.ingest.flatten import get_match_id
from tourney.ingest.importer import import_match_payloads
from tourney.ingest.linker import link_tournament_matches
from tourney.ingest.raw_store import find_json_files, read_payload_file, upsert_matches
from tourney.scraping.api import StatsApiClient
from tourney.scraping.storage import save_match_payload

logger = logging.getLogger(__name__)


def _split_ids(values: list[str] | None) -> list[str]:
    """Accept ``--match-ids a b`` as well as ``--match-ids a,b``."""
    ids: list[str] = []
    for value in values or []:
        for part in value.split(","):
            part = part.strip()
            if part and part not in ids:
                ids.append(part)
    return ids


def _load_dir_payloads(
    data_dir: Path, limit: int | None = None
) -> tuple[list[dict], list[str]]:
    """Read payloads from ``data_dir``; unreadable files are returned by name."""
    files = find_json_files(data_dir)
    if limit:
        files = files[:limit]
    payloads: list[dict] = []
    unreadable: list[str] = []
    for path in files:
        try:
            payloads.extend(read_payload_file(path))
        except MalformedPayload as e:
            logger.warning(f"Skipping {path.name}: {e}")
            unreadable.append(path.name)
    logger.info(f"Loaded {len(payloads)} payloads from {len(files)} files")
    return payloads, unreadable


def _fetch_payloads(
    client: StatsApiClient, match_ids: list[str]
) -> tuple[list[dict], list[str]]:
    payloads: list[dict] = []
    failed: list[str] = []
    for match_id in match_ids:
        try:
            payloads.append(client.fetch_match(match_id))
        except StatsApiError as e:
            logger.error(f"Could not fetch match {match_id}: {e}")
            failed.append(match_id)
    return payloads, failed


def main(argv: list[str] | None = None) -> int:
    """Entry point: normalize payloads from a directory or the stats API."""
    config = ImportConfig.from_env()
    parser = argparse.ArgumentParser(
        description="Normalize match payloads into the tourney database"
    )
    source = parser.add_mutually_exclusive_group()
    source.add_argument(
        "--data-dir",
        type=str,
        default=None,
        help="Directory with match JSON files (default: MATCH_JSON_DIR)",
    )
    source.add_argument(
        "--match-ids",
        nargs="+",
        default=None,
        help="Match ids to fetch from the stats API (space or comma separated)",
    )
    source.add_argument(
        "--player-name",
        type=str,
        default=None,
        help="Fetch the recent matches of this player from the stats API",
    )
    parser.add_argument(
        "--game-id",
        type=str,
        default=config.game_id,
        help="Game namespace for teams/players (default: IMPORT_GAME_ID or pubg)",
    )
    parser.add_argument(
        "--tournament-id",
        type=str,
        default=None,
        help="Link the imported matches to this tournament first",
    )
    parser.add_argument(
        "--save-dir",
        type=str,
        default=None,
        help="Write fetched payloads to <save-dir>/<match_id>.json",
    )
    parser.add_argument(
        "--store-raw",
        action="store_true",
        help="Also store the raw payloads in the matches table",
    )
    parser.add_argument(
        "--strict-schema",
        action="store_true",
        default=config.strict_schema,
        help="Fail on payload fields the database has no column for",
    )
    parser.add_argument(
        "--limit",
        type=int,
        default=None,
        help="Limit number of files read from --data-dir",
    )
    add_common_args(parser)
    args = parser.parse_args(argv)
    init_cli(args, context="tourney_import_matches")

    failed: list[str] = []
    unreadable: list[str] = []
    if args.match_ids or args.player_name:
        client = StatsApiClient()
        if args.player_name:
            try:
                match_ids = client.fetch_player_match_ids(args.player_name)
            except StatsApiError as e:
                logger.error(f"Could not look up player {args.player_name}: {e}")
                print(f"Error: {e}")
                return 1
            logger.info(f"Found {len(match_ids)} matches for {args.player_name}")
        else:
            match_ids = _split_ids(args.match_ids)
        payloads, failed = _fetch_payloads(client, match_ids)
        if args.save_dir:
            for payload in payloads:
                save_match_payload(payload, args.save_dir)
    else:
        data_dir = args.data_dir or config.match_json_dir or os.getenv("MATCH_JSON_DIR")
        if not data_dir:
            raise SystemExit(
                "No input given (use --data-dir, --match-ids or MATCH_JSON_DIR)"
            )
        data_dir = Path(data_dir)
        if not data_dir.exists():
            raise SystemExit(f"Data directory not found: {data_dir}")
        payloads, unreadable = _load_dir_payloads(data_dir, args.limit)

    engine = build_engine(args)
    try:
        if args.store_raw:
            stored, _ = upsert_matches(engine, payloads)
            logger.info(f"Stored {stored} raw payloads")
        if args.tournament_id:
            ids = [mid for mid in (get_match_id(p) for p in payloads) if mid]
            linked = link_tournament_matches(engine, args.tournament_id, ids)
            logger.info(f"Linked {linked} new matches to {args.tournament_id}")
        report = import_match_payloads(
            engine,
            payloads,
            game_id=args.game_id,
            strict_schema=args.strict_schema,
        )
    except (PersistenceFailure, SchemaMismatch, SQLAlchemyError) as e:
        logger.error(f"Import aborted: {e}")
        print(f"Error: {e}")
        return 1

    print(
        f"Imported {report.imported_count} matches "
        f"({report.skipped_count + len(unreadable)} skipped, {len(failed)} fetch failures)."
    )
    for table, n in report.rows.items():
        print(f"  {table}: {n}")
    return 1 if failed else 0


if __name__ == "__main__":
    raise SystemExit(main())
