"""
schema - Per-table column registry (widgets, coercion, required fields).

Public API:
    get_schema(kind) → EntitySchema
    entity_kinds / column_spec / expected_columns
    format_column_name
"""

from schema.columns import (                         # noqa: F401
    ColumnSpec,
    Coercion,
    Widget,
    format_column_name,
)
from schema.entities import (                        # noqa: F401
    EntitySchema,
    DATA_TABLES,
    get_schema,
    entity_kinds,
    column_spec,
    expected_columns,
)
