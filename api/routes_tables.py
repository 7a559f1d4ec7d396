"""
api.routes_tables - /api/v1/tables/<kind> CRUD endpoints.
"""

from flask import request, jsonify, abort
from sqlalchemy.exc import SQLAlchemyError

from api import api_bp
from db import get_session
from schema import EntitySchema, get_schema
from services.change_feed import INSERT, UPDATE, DELETE
from services.records_service import RecordsService
from services.search_service import SearchService
import config


def schema_or_404(kind: str) -> EntitySchema:
    try:
        return get_schema(kind)
    except KeyError:
        abort(404)


def _int_arg(name: str) -> int | None:
    raw = request.args.get(name, "").strip()
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError:
        abort(400)


@api_bp.route("/tables/<kind>")
def list_rows(kind: str):
    """
    GET /api/v1/tables/<kind>?center_id=&program_id=&q=&filter.<col>=
        &sort=id&order=asc&limit=100&offset=0
    """
    schema_or_404(kind)
    filters = {
        key[len("filter."):]: value.strip()
        for key, value in request.args.items()
        if key.startswith("filter.")
    }
    limit = min(_int_arg("limit") or config.API_DEFAULT_LIMIT, config.API_MAX_LIMIT)
    offset = _int_arg("offset") or 0
    sort_order = request.args.get("order", "asc").strip()
    if sort_order not in ("asc", "desc"):
        sort_order = "asc"

    session = get_session()
    try:
        rows, total = SearchService.search(
            session, kind,
            q=request.args.get("q", "").strip(),
            center_id=_int_arg("center_id"),
            program_id=_int_arg("program_id"),
            filters=filters,
            sort_by=request.args.get("sort", "id").strip(),
            sort_order=sort_order,
            limit=limit, offset=offset,
        )
        return jsonify({
            "total": total,
            "offset": offset,
            "limit": limit,
            "rows": [r.to_dict() for r in rows],
        })
    finally:
        session.close()


@api_bp.route("/tables/<kind>/<int:record_id>")
def get_row(kind: str, record_id: int):
    schema_or_404(kind)
    session = get_session()
    try:
        row = RecordsService.get_or_raise(session, kind, record_id)
        return jsonify(row.to_dict())
    finally:
        session.close()


@api_bp.route("/tables/<kind>", methods=["POST"])
def create_row(kind: str):
    """POST /api/v1/tables/<kind>  (JSON body of column values)"""
    schema_or_404(kind)
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        abort(400)
    session = get_session()
    try:
        row = RecordsService.create(session, kind, data)
        RecordsService.commit(session, kind, INSERT, row.id)
        return jsonify(row.to_dict()), 201
    except SQLAlchemyError as exc:
        session.rollback()
        return jsonify({"error": str(getattr(exc, "orig", None) or exc)}), 400
    finally:
        session.close()


@api_bp.route("/tables/<kind>/<int:record_id>", methods=["PUT"])
def update_row(kind: str, record_id: int):
    """PUT /api/v1/tables/<kind>/<id>  (JSON body with columns to update)"""
    schema_or_404(kind)
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        abort(400)
    session = get_session()
    try:
        row = RecordsService.get_or_raise(session, kind, record_id)
        RecordsService.update(session, kind, row, data)
        RecordsService.commit(session, kind, UPDATE, record_id)
        return jsonify(row.to_dict())
    except SQLAlchemyError as exc:
        session.rollback()
        return jsonify({"error": str(getattr(exc, "orig", None) or exc)}), 400
    finally:
        session.close()


@api_bp.route("/tables/<kind>/<int:record_id>", methods=["DELETE"])
def delete_row(kind: str, record_id: int):
    schema_or_404(kind)
    session = get_session()
    try:
        row = RecordsService.get_or_raise(session, kind, record_id)
        RecordsService.delete(session, row)
        RecordsService.commit(session, kind, DELETE, record_id)
        return jsonify({"deleted": record_id})
    except SQLAlchemyError as exc:
        session.rollback()
        return jsonify({"error": str(getattr(exc, "orig", None) or exc)}), 400
    finally:
        session.close()
