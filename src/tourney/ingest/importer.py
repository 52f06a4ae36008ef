"""
Normalize match payloads into the relational match tables.

Each payload is written inside its own transaction: either every row of a
match lands or none does. Malformed payloads are reported and skipped;
database errors abort the run as :class:`PersistenceFailure`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError

from tourney.core.constants import (
    CONFLICT_KEYS,
    DEFAULT_GAME_ID,
    NORMALIZED_TABLES,
    TEAMS_TABLE,
)
from tourney.core.errors import MalformedPayload, PersistenceFailure
from tourney.core.logging import ProgressLogger
from tourney.ingest.flatten import flatten_match_payload, get_match_id
from tourney.ingest.linker import find_tournament_for_match
from tourney.ingest.raw_store import find_json_files, read_payload_file
from tourney.sql.introspect import TableColumns
from tourney.sql.repository import ensure_game
from tourney.sql.upsert import upsert_rows

logger = logging.getLogger(__name__)


@dataclass
class ImportReport:
    """Outcome of a batch import."""

    imported: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    rows: Dict[str, int] = field(default_factory=dict)

    def add_rows(self, counts: Dict[str, int]) -> None:
        for table, n in counts.items():
            self.rows[table] = self.rows.get(table, 0) + n

    @property
    def imported_count(self) -> int:
        return len(self.imported)

    @property
    def skipped_count(self) -> int:
        return len(self.skipped)


def load_columns(bind, strict: bool = False) -> TableColumns:
    """Introspect the normalized tables once per run.

    Raises:
        PersistenceFailure: the database could not be inspected.
    """
    try:
        return TableColumns.load(bind, NORMALIZED_TABLES, strict=strict)
    except SQLAlchemyError as exc:
        raise PersistenceFailure(f"Failed to inspect match tables: {exc}") from exc


def import_match_payload(
    conn: Connection,
    payload: dict,
    game_id: str,
    columns: TableColumns,
    source: Optional[str] = None,
) -> Dict[str, int]:
    """Write one payload's normalized rows through ``conn``.

    The caller owns the transaction. Returns rows written per table.

    Raises:
        MalformedPayload: the payload has no match id (nothing is written).
    """
    match_id = get_match_id(payload)
    if match_id is None:
        raise MalformedPayload("Payload has no data.id match identifier", source)

    tournament_id = find_tournament_for_match(conn, match_id)
    flat = flatten_match_payload(
        payload, game_id, tournament_id=tournament_id, source=source
    )

    ensure_game(conn, game_id)

    written: Dict[str, int] = {}
    for table, rows in flat.tables().items():
        if table == TEAMS_TABLE and not columns.has(TEAMS_TABLE, "team_id"):
            written[table] = 0
            continue
        written[table] = upsert_rows(
            conn, table, rows, CONFLICT_KEYS[table], columns
        )
    logger.debug(
        "Normalized match %s (tournament=%s): %s",
        match_id,
        tournament_id,
        written,
    )
    return written


def _import_one(
    engine: Engine,
    payload: dict,
    game_id: str,
    columns: TableColumns,
    report: ImportReport,
    source: Optional[str] = None,
) -> None:
    match_id = get_match_id(payload)
    try:
        with engine.begin() as conn:
            counts = import_match_payload(
                conn, payload, game_id, columns, source=source
            )
    except MalformedPayload as exc:
        label = exc.source or source or "<payload>"
        logger.warning("Skipping malformed payload from %s: %s", label, exc)
        report.skipped.append(label)
        return
    except SQLAlchemyError as exc:
        raise PersistenceFailure(
            f"Failed to write match {match_id}: {exc}", match_id=match_id
        ) from exc
    report.imported.append(match_id)
    report.add_rows(counts)


def import_match_payloads(
    engine: Engine,
    payloads: Iterable[dict],
    game_id: str = DEFAULT_GAME_ID,
    columns: Optional[TableColumns] = None,
    strict_schema: bool = False,
) -> ImportReport:
    """Normalize a sequence of payloads, one transaction per payload.

    Malformed payloads are skipped (see ``ImportReport.skipped``); the first
    database error raises :class:`PersistenceFailure`.
    """
    payload_list = list(payloads or [])
    if columns is None:
        columns = load_columns(engine, strict=strict_schema)
    report = ImportReport()
    with ProgressLogger(
        logger, "normalizing match payloads", total=len(payload_list)
    ) as progress:
        for i, payload in enumerate(payload_list, 1):
            _import_one(
                engine, payload, game_id, columns, report, source=f"payload[{i - 1}]"
            )
            progress.update(i)
    return report


def import_match_json_dir(
    engine: Engine,
    data_dir: Path,
    game_id: str = DEFAULT_GAME_ID,
    strict_schema: bool = False,
) -> ImportReport:
    """Normalize every ``*.json`` file in ``data_dir`` (one or many payloads each)."""
    files = find_json_files(Path(data_dir))
    columns = load_columns(engine, strict=strict_schema)
    report = ImportReport()
    if not files:
        logger.info("No JSON files found in %s", data_dir)
        return report
    with ProgressLogger(
        logger, f"importing match files from {data_dir}", total=len(files)
    ) as progress:
        for i, path in enumerate(files, 1):
            try:
                payloads = read_payload_file(path)
            except MalformedPayload as exc:
                logger.warning("Skipping %s: %s", path.name, exc)
                report.skipped.append(path.name)
                progress.update(i)
                continue
            if not payloads:
                logger.warning("Skipping %s: no payload objects", path.name)
                report.skipped.append(path.name)
            for payload in payloads:
                _import_one(
                    engine, payload, game_id, columns, report, source=path.name
                )
            progress.update(i)
    return report
