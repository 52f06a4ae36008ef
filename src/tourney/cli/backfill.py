from __future__ import annotations

"""CLI to normalize raw payloads already stored in the matches table.

Re-running is safe: every write is an upsert. Use ``--only-missing`` to skip
matches that already have a ``match_information`` row.
"""

import argparse
import logging

from sqlalchemy.exc import SQLAlchemyError

from tourney.cli.common import add_common_args, build_engine, init_cli
from tourney.core.config import ImportConfig
from tourney.core.errors import PersistenceFailure, SchemaMismatch
from tourney.core.logging import log_timing
from tourney.ingest.flatten import get_match_id
from tourney.ingest.importer import import_match_payloads
from tourney.ingest.raw_store import get_all_matches, get_normalized_match_ids

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    config = ImportConfig.from_env()
    parser = argparse.ArgumentParser(
        description="Normalize stored raw match payloads"
    )
    parser.add_argument(
        "--game-id",
        type=str,
        default=config.game_id,
        help="Game namespace for teams/players (default: IMPORT_GAME_ID or pubg)",
    )
    parser.add_argument(
        "--only-missing",
        action="store_true",
        help="Skip matches that are already normalized",
    )
    parser.add_argument(
        "--strict-schema",
        action="store_true",
        default=config.strict_schema,
        help="Fail on payload fields the database has no column for",
    )
    add_common_args(parser)
    args = parser.parse_args(argv)
    init_cli(args, context="tourney_backfill")

    engine = build_engine(args)
    try:
        with log_timing(logger, "backfilling normalized match tables"):
            payloads = get_all_matches(engine)
            if args.only_missing:
                done = get_normalized_match_ids(engine)
                payloads = [p for p in payloads if get_match_id(p) not in done]
            logger.info(f"Normalizing {len(payloads)} match payloads...")
            report = import_match_payloads(
                engine,
                payloads,
                game_id=args.game_id,
                strict_schema=args.strict_schema,
            )
    except (PersistenceFailure, SchemaMismatch, SQLAlchemyError) as e:
        logger.error(f"Backfill failed: {e}")
        print(f"Error: {e}")
        return 1

    print(
        f"Backfill complete: {report.imported_count} normalized, "
        f"{report.skipped_count} skipped."
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
