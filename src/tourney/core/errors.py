"""Exception types shared by the ingestion pipeline and CLIs."""

from __future__ import annotations


class TourneyError(Exception):
    """Base exception for tourney errors."""


class MalformedPayload(TourneyError):
    """A match payload cannot be normalized (e.g. it has no match id).

    Non-fatal: batch importers log it, count the payload as skipped and move
    on to the next one.
    """

    def __init__(self, message: str, source: str | None = None) -> None:
        super().__init__(message)
        self.source = source


class SchemaMismatch(TourneyError):
    """Row fields that the destination table does not have.

    Non-fatal by default (the fields are dropped); raised only when the
    column set is in strict mode.
    """

    def __init__(self, table: str, fields: list[str]) -> None:
        super().__init__(
            f"Table {table!r} has no column(s): {', '.join(sorted(fields))}"
        )
        self.table = table
        self.fields = sorted(fields)


class PersistenceFailure(TourneyError):
    """A database write failed; fatal for the current run."""

    def __init__(self, message: str, match_id: str | None = None) -> None:
        super().__init__(message)
        self.match_id = match_id


class StatsApiError(TourneyError):
    """The external stats API could not be reached or returned an error."""
