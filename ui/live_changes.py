"""
ui.live_changes - Server-sent-events stream of table changes.

The browse page opens /ui-api/changes/<kind> and reloads its rows
whenever an insert, update or delete is published for that table.
"""

from __future__ import annotations

import json as _json
import queue

from flask import Response, abort, current_app, stream_with_context

from ui import ui_bp
from schema import get_schema

KEEPALIVE_SECONDS = 15


def _sse(event: str, data: dict) -> str:
    return f"event: {event}\ndata: {_json.dumps(data)}\n\n"


@ui_bp.route("/ui-api/changes/<kind>")
def ui_changes(kind: str):
    try:
        get_schema(kind)
    except KeyError:
        abort(404)

    store = current_app.extensions["backing_store"]
    events: queue.Queue = queue.Queue()
    unsubscribe = store.subscribe_to_changes(kind, events.put)

    def generate():
        try:
            yield _sse("ready", {"table": kind})
            while True:
                try:
                    change = events.get(timeout=KEEPALIVE_SECONDS)
                except queue.Empty:
                    yield ": keepalive\n\n"
                    continue
                yield _sse("change", change.to_dict())
        finally:
            unsubscribe()

    return Response(
        stream_with_context(generate()),
        mimetype="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )
