"""
services.records_service - CRUD operations on dashboard table rows.

All session management is the caller's responsibility (open before,
close after).  commit() is the one place that commits and announces
the change on the change feed.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Mapping

from sqlalchemy.orm import Session

from db.models import model_for
from import_engine.coercion import coerce_record
from schema import get_schema
from services.change_feed import ChangeFeed, feed as default_feed


class RecordNotFound(LookupError):
    """No row with that id in that table."""


class RecordValidationError(ValueError):
    """One or more form fields are invalid.  ``errors`` maps column → message."""

    def __init__(self, errors: dict[str, str]):
        super().__init__("; ".join(errors.values()))
        self.errors = errors


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, (list, tuple)):
        return len(value) == 0
    return str(value).strip() == ""


class RecordsService:

    # ── Input preparation ──────────────────────────────────────────────

    @staticmethod
    def prepare(kind: str, data: Mapping[str, Any], *, partial: bool = False) -> dict:
        """
        Coerce submitted values and check the form's required fields.

        With partial=True (updates) only the submitted columns are
        checked.  Raises RecordValidationError listing every missing field.
        """
        schema = get_schema(kind)
        record = coerce_record({k: v for k, v in data.items() if k != "id"}, schema)

        errors: dict[str, str] = {}
        for column in schema.form_required:
            if partial and column not in record:
                continue
            if _is_blank(record.get(column)):
                errors[column] = f"{schema.column(column).label} is required"
        if errors:
            raise RecordValidationError(errors)

        if "created_at" in record and _is_blank(record["created_at"]):
            record["created_at"] = datetime.now(timezone.utc).isoformat()
        return record

    # ── Create ─────────────────────────────────────────────────────────

    @staticmethod
    def create(session: Session, kind: str, data: Mapping[str, Any]):
        record = RecordsService.prepare(kind, data)
        record.setdefault("created_at", datetime.now(timezone.utc).isoformat())
        row = model_for(kind).from_record(record)
        session.add(row)
        session.flush()
        return row

    # ── Read ───────────────────────────────────────────────────────────

    @staticmethod
    def get(session: Session, kind: str, record_id: int):
        return session.get(model_for(kind), record_id)

    @staticmethod
    def get_or_raise(session: Session, kind: str, record_id: int):
        row = RecordsService.get(session, kind, record_id)
        if row is None:
            raise RecordNotFound(f"{kind} #{record_id} not found")
        return row

    # ── Update ─────────────────────────────────────────────────────────

    @staticmethod
    def update(session: Session, kind: str, row, data: Mapping[str, Any]):
        record = RecordsService.prepare(kind, data, partial=True)
        if row.created_at is None and "created_at" not in record:
            record["created_at"] = datetime.now(timezone.utc).isoformat()
        row.apply(record)
        session.flush()
        return row

    # ── Delete ─────────────────────────────────────────────────────────

    @staticmethod
    def delete(session: Session, row) -> None:
        session.delete(row)
        session.flush()

    # ── Commit + notify ────────────────────────────────────────────────

    @staticmethod
    def commit(session: Session, kind: str, event: str, record_id: int | None,
               change_feed: ChangeFeed = default_feed) -> None:
        session.commit()
        change_feed.publish(kind, event, {"id": record_id})
