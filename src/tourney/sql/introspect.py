"""
Live column introspection for schema-tolerant writes.

The normalizer builds rows from a speculative field set; a given database
may lag behind (or run ahead of) the models in :mod:`tourney.sql.models`.
:class:`TableColumns` reads the real column set of each destination table
once per run and filters rows down to it.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping, Optional

from sqlalchemy import inspect

from tourney.core.constants import NORMALIZED_TABLES
from tourney.core.errors import SchemaMismatch

logger = logging.getLogger(__name__)


def get_columns(bind, table: str, schema: Optional[str] = None) -> set[str]:
    """Return the live column names of ``table`` (empty if it does not exist)."""
    inspector = inspect(bind)
    if not inspector.has_table(table, schema=schema):
        return set()
    return {c["name"] for c in inspector.get_columns(table, schema=schema)}


class TableColumns:
    """Cached column sets for a group of tables.

    Parameters
    ----------
    columns : mapping of table name to column names
        Usually built with :meth:`load`.
    strict : bool
        Raise :class:`SchemaMismatch` for dropped fields instead of logging.
    """

    def __init__(
        self, columns: Mapping[str, Iterable[str]], strict: bool = False
    ) -> None:
        self.columns = {t: frozenset(c) for t, c in columns.items()}
        self.strict = strict
        self._reported: set[tuple[str, tuple[str, ...]]] = set()

    @classmethod
    def load(
        cls,
        bind,
        tables: Iterable[str] = NORMALIZED_TABLES,
        *,
        schema: Optional[str] = None,
        strict: bool = False,
    ) -> "TableColumns":
        """Introspect ``tables`` through ``bind`` (engine or connection)."""
        columns = {t: get_columns(bind, t, schema=schema) for t in tables}
        missing = [t for t, c in columns.items() if not c]
        if missing:
            logger.warning(
                "Tables missing from database, writes skipped: %s",
                ", ".join(missing),
            )
        return cls(columns, strict=strict)

    def get(self, table: str) -> frozenset[str]:
        return self.columns.get(table, frozenset())

    def has(self, table: str, column: str) -> bool:
        return column in self.get(table)

    def filter(self, table: str, row: Mapping[str, Any]) -> dict[str, Any]:
        """Keep only the fields of ``row`` that ``table`` has as columns.

        Missing fields are reported once per distinct field set.
        """
        known = self.get(table)
        filtered = {k: v for k, v in row.items() if k in known}
        dropped = [k for k in row if k not in known]
        if dropped and known:
            if self.strict:
                raise SchemaMismatch(table, dropped)
            key = (table, tuple(sorted(dropped)))
            if key not in self._reported:
                self._reported.add(key)
                logger.info(
                    "Dropping unknown fields: %s", SchemaMismatch(table, dropped)
                )
        return filtered
