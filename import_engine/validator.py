"""
import_engine.validator - Field-level rules over a parsed upload.

Every rule runs on every row; a row failing one rule is still checked
against the others.  The full error list is returned in row order and,
within a row, in rule order.  Truncating it for display is the
caller's business.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import AbstractSet, Iterable, Optional, Sequence

from import_engine.coercion import is_number, parse_number
from import_engine.csv_parser import RawRecord
from schema import EntitySchema

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


@dataclass(frozen=True)
class RowValidationError:
    row: int
    message: str
    column: Optional[str] = None

    def to_dict(self) -> dict:
        return {"row": self.row, "column": self.column, "message": self.message}


def identifier_key(value: object) -> Optional[str]:
    """
    Normalise an identifier for comparison: CSV text and stored
    numbers that coerce to the same value compare equal
    ("101" == "101.0" == 101 == 101.0).
    """
    if value is None:
        return None
    if isinstance(value, str):
        parsed = parse_number(value)
        value = value if parsed is None else parsed
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    key = str(value).strip()
    return key or None


def existing_identifiers(rows: Iterable[dict], column: str) -> set[str]:
    keys = (identifier_key(r.get(column)) for r in rows)
    return {k for k in keys if k is not None}


class RecordValidator:
    """Validates uploads for one table schema."""

    def __init__(self, schema: EntitySchema):
        self.schema = schema

    def validate(
        self,
        records: Sequence[RawRecord],
        existing_ids: AbstractSet[str] = frozenset(),
    ) -> list[RowValidationError]:
        errors: list[RowValidationError] = []
        seen_ids: set[str] = set()

        for record in records:
            n = record.row
            self._check_required(record, n, errors)
            self._check_identifier(record, n, seen_ids, existing_ids, errors)
            self._check_emails(record, n, errors)
            self._check_numeric(record, n, errors)

        return errors

    # ── Rules ──────────────────────────────────────────────────────────

    def _check_required(self, record: RawRecord, n: int, errors: list) -> None:
        for column in self.schema.import_required:
            value = record.get(column)
            if value is None or not value.strip():
                errors.append(RowValidationError(
                    n, f'Row {n}: Missing required field "{column}"', column,
                ))

    def _check_identifier(self, record, n, seen_ids, existing_ids, errors) -> None:
        column = self.schema.unique_column
        if not column:
            return
        key = identifier_key(record.get(column))
        if key is None:
            return

        if key in seen_ids:
            errors.append(RowValidationError(
                n, f'Row {n}: Duplicate {column} "{key}" found in CSV file', column,
            ))
        else:
            seen_ids.add(key)

        if key in existing_ids:
            errors.append(RowValidationError(
                n, f'Row {n}: {column} "{key}" already exists in the database', column,
            ))

    def _check_emails(self, record: RawRecord, n: int, errors: list) -> None:
        for column in self.schema.email_columns:
            value = record.get(column)
            if value and not EMAIL_RE.match(value):
                errors.append(RowValidationError(
                    n, f"Row {n}: Invalid {column} format", column,
                ))

    def _check_numeric(self, record: RawRecord, n: int, errors: list) -> None:
        for column in self.schema.numeric_columns:
            value = record.get(column)
            if value and value.strip() and not is_number(value):
                errors.append(RowValidationError(
                    n, f'Row {n}: Invalid numeric value for "{column}"', column,
                ))
