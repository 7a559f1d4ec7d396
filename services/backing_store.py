"""
services.backing_store - Persistence collaborator for the CSV importer.

The import pipeline never touches a session directly.  It talks to a
BackingStore, so it can run against the SQL database in production and
against an in-memory fake in tests.
"""

from __future__ import annotations

import abc
import logging
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from db.engine import get_session
from db.models import model_for
from services.change_feed import ChangeFeed, Listener, INSERT, feed as default_feed

logger = logging.getLogger(__name__)


class BackingStoreError(RuntimeError):
    """Raised when existing rows cannot be read from the store."""


@dataclass(frozen=True)
class BulkInsertResult:
    success: bool
    message: str
    count: int = 0


class BackingStore(abc.ABC):

    @abc.abstractmethod
    def fetch_existing(self, kind: str) -> list[dict]:
        """Return all stored rows of *kind*.  Raises BackingStoreError."""

    @abc.abstractmethod
    def bulk_insert(self, kind: str, records: Sequence[Mapping[str, Any]]) -> BulkInsertResult:
        """Insert every record or none of them."""

    @abc.abstractmethod
    def subscribe_to_changes(self, kind: str, listener: Listener) -> Callable[[], None]:
        """Call *listener* on every change to *kind*; returns an unsubscribe callable."""


class SqlBackingStore(BackingStore):
    """BackingStore over the SQLAlchemy session factory."""

    def __init__(
        self,
        session_factory: Callable[[], Session] = get_session,
        change_feed: ChangeFeed = default_feed,
    ):
        self._session_factory = session_factory
        self._feed = change_feed

    def fetch_existing(self, kind: str) -> list[dict]:
        model = model_for(kind)
        session = self._session_factory()
        try:
            return [row.to_dict() for row in session.query(model).all()]
        except SQLAlchemyError as exc:
            logger.error("Reading existing %s failed: %s", kind, exc)
            raise BackingStoreError(f"Could not read existing {kind}: {_driver_message(exc)}") from exc
        finally:
            session.close()

    def bulk_insert(self, kind: str, records: Sequence[Mapping[str, Any]]) -> BulkInsertResult:
        model = model_for(kind)
        session = self._session_factory()
        try:
            session.add_all(model.from_record(r) for r in records)
            session.commit()
        except SQLAlchemyError as exc:
            session.rollback()
            logger.warning("Bulk insert into %s rejected: %s", kind, exc)
            return BulkInsertResult(False, _driver_message(exc))
        finally:
            session.close()

        count = len(records)
        self._feed.publish(kind, INSERT, {"count": count})
        return BulkInsertResult(True, f"Successfully inserted {count} records into {kind}", count)

    def subscribe_to_changes(self, kind: str, listener: Listener) -> Callable[[], None]:
        return self._feed.subscribe(kind, listener)


def _driver_message(exc: SQLAlchemyError) -> str:
    """Prefer the DB-API error text over SQLAlchemy's wrapped repr."""
    orig = getattr(exc, "orig", None)
    return str(orig) if orig is not None else str(exc)
