"""
api.routes_schema - /api/v1/schema endpoints.

Expose the per-table column registry so the browser can pick form
widgets without guessing from column names.
"""

from flask import jsonify, abort

from api import api_bp
from schema import entity_kinds, get_schema, expected_columns


@api_bp.route("/schema")
def schema_kinds():
    """List all registered tables."""
    return jsonify(entity_kinds())


@api_bp.route("/schema/<kind>")
def schema_table(kind: str):
    """Column specs for one table plus the expected CSV header."""
    try:
        schema = get_schema(kind)
    except KeyError:
        abort(404)
    body = schema.to_dict()
    body["csv_columns"] = expected_columns(kind)
    return jsonify(body)
