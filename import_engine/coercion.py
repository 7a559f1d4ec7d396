"""
import_engine.coercion - Column-typed normalisation of raw string values.

coerce_record() is total: a value that cannot be converted is passed
through as the original string (or a one-element list for array
columns) instead of raising.  Shape problems are the validator's job.
"""

from __future__ import annotations

import json
import math
from datetime import datetime, timezone
from typing import Any, Mapping, Optional

from schema import Coercion, EntitySchema

# Value stored for a blank cell
ABSENT = None

DATETIME_FORMATS: tuple[str, ...] = (
    "%Y-%m-%d",
    "%Y/%m/%d",
    "%m/%d/%Y",
    "%Y-%m-%d %H:%M:%S",
    "%Y/%m/%d %H:%M:%S",
    "%m/%d/%Y %H:%M:%S",
    "%B %d, %Y",
    "%b %d, %Y",
    "%d %B %Y",
    "%d %b %Y",
)


def coerce_record(record: Mapping[str, Optional[str]], schema: EntitySchema) -> dict[str, Any]:
    """Same keys as *record*; values converted per the column's coercion."""
    return {
        column: coerce_value(schema.column(column).coercion, value)
        for column, value in record.items()
    }


def coerce_value(coercion: Coercion, value: Any) -> Any:
    if value is None:
        return ABSENT
    if not isinstance(value, str):
        return value                                    # already typed (form posts)
    if not value.strip():
        return ABSENT

    if coercion is Coercion.NUMBER:
        parsed = parse_number(value)
        return value if parsed is None else parsed
    if coercion is Coercion.ARRAY:
        return _to_list(value)
    if coercion is Coercion.DATETIME:
        parsed = parse_datetime(value)
        return value if parsed is None else parsed.isoformat()
    return value


# ── Parsers (shared with the validator) ───────────────────────────────

def parse_number(text: str) -> int | float | None:
    """int or float for numeric text, None otherwise."""
    s = text.strip()
    if not s or "_" in s:
        return None
    try:
        return int(s)
    except ValueError:
        pass
    try:
        num = float(s)
    except ValueError:
        return None
    return num if math.isfinite(num) else None


def is_number(text: str) -> bool:
    return parse_number(text) is not None


def parse_datetime(text: str) -> Optional[datetime]:
    """Aware UTC datetime, or None when *text* is not a recognisable date."""
    raw = text.strip()
    normalized = raw[:-1] + "+00:00" if raw.endswith(("Z", "z")) else raw
    parsed: Optional[datetime] = None
    try:
        parsed = datetime.fromisoformat(normalized)
    except ValueError:
        for fmt in DATETIME_FORMATS:
            try:
                parsed = datetime.strptime(raw, fmt)
                break
            except ValueError:
                continue
    if parsed is None:
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def _to_list(value: str) -> list[str]:
    try:
        if value.startswith("[") and value.endswith("]"):
            items = json.loads(value)
            if not isinstance(items, list):
                return [value]
            return [item if isinstance(item, str) else json.dumps(item) for item in items]
        if "," in value:
            return [item.strip() for item in value.split(",")]
        return [value]
    except (json.JSONDecodeError, TypeError, ValueError):
        return [value]
