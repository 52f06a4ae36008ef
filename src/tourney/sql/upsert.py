"""
Idempotent insert-or-update helpers.

Rows are plain dicts keyed by column name. Each write is one
``INSERT ... ON CONFLICT`` statement: the first occurrence inserts, repeats
overwrite every non-key column. Callers control the transaction; the
importer wraps a whole payload in a single ``engine.begin()`` block.
"""

from __future__ import annotations

from typing import Any, Iterable, Mapping, Optional, Sequence

from sqlalchemy import column
from sqlalchemy import table as table_clause
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert

from tourney.sql.engine import Base
from tourney.sql.introspect import TableColumns


def dialect_insert(conn):
    """Return the ON CONFLICT-capable ``insert`` for the connection's dialect."""
    name = conn.dialect.name
    if name == "postgresql":
        return pg_insert
    if name == "sqlite":
        return sqlite_insert
    raise NotImplementedError(f"Upserts are not supported for dialect {name!r}")


def _table_for(table: str, names: Iterable[str]):
    """Build a lightweight table clause for ``names``.

    Column types come from the declared models where available so JSON
    values are serialized; columns only present in the live database are
    left untyped.
    """
    model_table = Base.metadata.tables.get(table)
    cols = []
    for name in names:
        if model_table is not None and name in model_table.c:
            cols.append(column(name, model_table.c[name].type))
        else:
            cols.append(column(name))
    return table_clause(table, *cols)


def build_upsert(
    insert_fn,
    table: str,
    row: Mapping[str, Any],
    conflict_cols: Sequence[str] = (),
):
    """Build the ``INSERT ... ON CONFLICT`` statement for one row."""
    tbl = _table_for(table, row.keys())
    stmt = insert_fn(tbl).values(dict(row))
    if not conflict_cols:
        return stmt.on_conflict_do_nothing()

    set_map = {
        col: stmt.excluded[col] for col in row.keys() if col not in conflict_cols
    }
    if not set_map:
        return stmt.on_conflict_do_nothing(index_elements=list(conflict_cols))
    return stmt.on_conflict_do_update(
        index_elements=list(conflict_cols), set_=set_map
    )


def upsert_row(
    conn,
    table: str,
    row: Mapping[str, Any],
    conflict_cols: Sequence[str] = (),
    columns: Optional[TableColumns] = None,
) -> bool:
    """Insert ``row`` into ``table`` or overwrite the row with the same key.

    Args:
        conn: SQLAlchemy connection (inside the caller's transaction).
        table: Destination table name.
        row: Column values; ``None`` values are written as NULL.
        conflict_cols: Primary or composite key columns. Empty means
            ``ON CONFLICT DO NOTHING``.
        columns: Live column sets; when given, ``row`` is filtered first.

    Returns:
        True if a statement was executed, False if nothing was left to write.
    """
    if columns is not None:
        row = columns.filter(table, row)
    if not row:
        return False
    stmt = build_upsert(dialect_insert(conn), table, row, conflict_cols)
    conn.execute(stmt)
    return True


def upsert_rows(
    conn,
    table: str,
    rows: Iterable[Mapping[str, Any]],
    conflict_cols: Sequence[str] = (),
    columns: Optional[TableColumns] = None,
) -> int:
    """Upsert each row in order; returns the number of statements executed."""
    written = 0
    for row in rows:
        if upsert_row(conn, table, row, conflict_cols, columns):
            written += 1
    return written
