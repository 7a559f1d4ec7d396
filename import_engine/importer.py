"""
import_engine.importer - Top-level orchestrator.

Coordinates csv_parser → existing-id fetch → validator → coercion →
one bulk insert, and produces a structured ImportReport.  Nothing is
written unless every row passes validation; the bulk insert itself is
all-or-nothing on the store side.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable, Sequence

import config
from import_engine.coercion import coerce_record
from import_engine.csv_parser import CsvParseError, ParseResult, RawRecord, parse_csv, preview_csv
from import_engine.report import (
    ImportReport, STAGE_PARSE, STAGE_FETCH, STAGE_VALIDATE, STAGE_PERSIST,
)
from import_engine.validator import RecordValidator, existing_identifiers
from schema import EntitySchema, get_schema
from services.backing_store import BackingStore, BackingStoreError

logger = logging.getLogger(__name__)

# Substrings (lower-case) that mark a uniqueness violation in driver messages
UNIQUE_VIOLATION_MARKERS = (
    "duplicate key value",          # PostgreSQL
    "unique constraint failed",     # SQLite
    "duplicate entry",              # MySQL
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def persist_error_message(message: str, schema: EntitySchema) -> str:
    """Rewrite uniqueness violations for humans; pass anything else through."""
    lowered = message.lower()
    if any(marker in lowered for marker in UNIQUE_VIOLATION_MARKERS):
        column = schema.unique_column or "record"
        return (f"A {column} identifier already exists in the database for one "
                f"or more rows in your file. Please check and try again.")
    return message


class ImportPipeline:

    def __init__(
        self,
        store: BackingStore,
        *,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self._store = store
        self._clock = clock

    def preview(self, content: str | bytes, rows: int = config.PREVIEW_ROWS) -> ParseResult:
        """First rows of the upload.  Raises CsvParseError."""
        return preview_csv(content, rows)

    def run(self, content: str | bytes, kind: str) -> ImportReport:
        """
        Import a CSV blob into table *kind*.

        Parameters
        ----------
        content : raw CSV (bytes or str)
        kind    : target table, must be a registered schema

        Returns
        -------
        ImportReport; never raises for bad input or a failing store
        """
        schema = get_schema(kind)
        report = ImportReport(kind=kind)

        try:
            parsed = parse_csv(content)
        except CsvParseError as exc:
            logger.info("Import into %s rejected at parse: %s", kind, exc)
            return report.fail(STAGE_PARSE, f"CSV parsing error: {exc}")

        report.total_rows = len(parsed)
        if not parsed.records:
            return report.fail(STAGE_PARSE, "CSV file contains no data")
        logger.info("Parsed %d rows from CSV for %s", len(parsed), kind)

        if schema.validate_on_import:
            existing: set[str] = set()
            if schema.unique_column:
                try:
                    rows = self._store.fetch_existing(kind)
                except BackingStoreError as exc:
                    return report.fail(STAGE_FETCH, str(exc))
                existing = existing_identifiers(rows, schema.unique_column)
                logger.info("Found %d existing %s identifiers", len(existing), kind)

            errors = RecordValidator(schema).validate(parsed.records, existing)
            if errors:
                report.errors = errors
                logger.info("Import into %s rejected: %d validation errors", kind, len(errors))
                return report.fail(STAGE_VALIDATE, f"{len(errors)} validation errors found")

        records = self.coerce(parsed.records, schema)

        try:
            result = self._store.bulk_insert(kind, records)
        except BackingStoreError as exc:
            return report.fail(STAGE_PERSIST, persist_error_message(str(exc), schema))

        if not result.success:
            logger.warning("Bulk insert into %s failed: %s", kind, result.message)
            return report.fail(STAGE_PERSIST, persist_error_message(result.message, schema))

        logger.info("Imported %d rows into %s", len(records), kind)
        return report.succeed(len(records), result.message)

    def coerce(self, records: Sequence[RawRecord], schema: EntitySchema) -> list[dict]:
        """Coerce every record and stamp a missing created_at."""
        stamp = self._clock().isoformat()
        out = []
        for record in records:
            row = coerce_record(record.values, schema)
            if not row.get("created_at"):
                row["created_at"] = stamp
            out.append(row)
        return out
