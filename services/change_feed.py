"""
services.change_feed - In-process change notification per table.

Writers call publish() after a successful commit; the browse page
listens through a server-sent-events stream and reloads its rows.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable

logger = logging.getLogger(__name__)

INSERT = "INSERT"
UPDATE = "UPDATE"
DELETE = "DELETE"


@dataclass(frozen=True)
class ChangeEvent:
    kind: str
    event: str
    payload: dict = field(default_factory=dict)
    at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    def to_dict(self) -> dict:
        return {"table": self.kind, "event": self.event,
                "payload": self.payload, "at": self.at}


Listener = Callable[[ChangeEvent], None]


class ChangeFeed:

    def __init__(self):
        self._lock = threading.Lock()
        self._listeners: dict[str, list[Listener]] = {}

    def subscribe(self, kind: str, listener: Listener) -> Callable[[], None]:
        """Register *listener* for *kind*; returns an unsubscribe callable."""
        with self._lock:
            self._listeners.setdefault(kind, []).append(listener)

        def _unsubscribe():
            with self._lock:
                listeners = self._listeners.get(kind, [])
                if listener in listeners:
                    listeners.remove(listener)

        return _unsubscribe

    def publish(self, kind: str, event: str, payload: dict | None = None) -> ChangeEvent:
        change = ChangeEvent(kind=kind, event=event, payload=payload or {})
        with self._lock:
            listeners = list(self._listeners.get(kind, []))
        for listener in listeners:
            try:
                listener(change)
            except Exception:
                logger.exception("Change listener for %s failed", kind)
        return change

    def listener_count(self, kind: str) -> int:
        with self._lock:
            return len(self._listeners.get(kind, []))


# Process-wide feed shared by the store, the CRUD routes and the UI stream
feed = ChangeFeed()
