from __future__ import annotations

"""CLI to store raw match payloads from a directory of JSON files.

Each ``*.json`` file may hold a single payload or a list of payloads. Stored
payloads can be normalized later with ``tourney_backfill``.
"""

import argparse
import logging
import os
from pathlib import Path

from sqlalchemy.exc import SQLAlchemyError

from tourney.cli.common import add_common_args, build_engine, init_cli
from tourney.core.errors import MalformedPayload
from tourney.core.logging import ProgressLogger
from tourney.ingest.raw_store import find_json_files, read_payload_file, upsert_matches

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    """Entry point: store raw payloads found under ``--data-dir``."""
    parser = argparse.ArgumentParser(
        description="Store raw match JSON payloads in the matches table"
    )
    parser.add_argument(
        "--data-dir",
        type=str,
        default=None,
        help="Directory with match JSON files (default: MATCH_JSON_DIR)",
    )
    parser.add_argument(
        "--limit",
        type=int,
        default=None,
        help="Limit number of files to import",
    )
    add_common_args(parser)
    args = parser.parse_args(argv)
    init_cli(args, context="tourney_import_raw")

    data_dir = args.data_dir or os.getenv("MATCH_JSON_DIR")
    if not data_dir:
        raise SystemExit("No data directory given (use --data-dir or MATCH_JSON_DIR)")
    data_dir = Path(data_dir)
    if not data_dir.exists():
        raise SystemExit(f"Data directory not found: {data_dir}")

    engine = build_engine(args)
    files = find_json_files(data_dir)
    if args.limit:
        files = files[: args.limit]

    stored_total = skipped_total = 0
    with ProgressLogger(logger, "storing raw payloads", total=len(files)) as progress:
        for i, path in enumerate(files, 1):
            try:
                payloads = read_payload_file(path)
            except MalformedPayload as e:
                logger.warning(f"Skipping {path.name}: {e}")
                skipped_total += 1
                progress.update(i, path.name)
                continue
            try:
                stored, skipped = upsert_matches(engine, payloads)
            except SQLAlchemyError as e:
                logger.error(f"Failed to store {path.name}: {e}")
                print(f"Error: {e}")
                return 1
            stored_total += stored
            skipped_total += skipped
            progress.update(i, path.name)

    print(
        f"Stored {stored_total} payloads from {len(files)} files "
        f"({skipped_total} skipped)."
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
