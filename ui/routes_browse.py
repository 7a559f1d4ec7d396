"""
ui.routes_browse - Landing page, center page and table browse page.
"""

from flask import request, render_template, abort

from ui import ui_bp
from db import get_session
from schema import DATA_TABLES, get_schema, format_column_name
from services.directory_service import DirectoryService
from services.search_service import SearchService
import config


def _int_arg(name: str) -> int | None:
    raw = request.args.get(name, "").strip()
    return int(raw) if raw.isdigit() else None


@ui_bp.route("/")
def index():
    session = get_session()
    try:
        return render_template(
            "index.html",
            centers=DirectoryService.centers(session),
            stats=DirectoryService.stats(session),
        )
    finally:
        session.close()


@ui_bp.route("/centers/<int:center_id>")
def center_page(center_id: int):
    session = get_session()
    try:
        center = DirectoryService.center(session, center_id)
        if center is None:
            abort(404)
        return render_template(
            "center.html",
            center=center,
            programs=DirectoryService.programs(session, center_id),
            tables=[get_schema(k) for k in DATA_TABLES],
        )
    finally:
        session.close()


@ui_bp.route("/tables/<kind>")
def table_page(kind: str):
    try:
        schema = get_schema(kind)
    except KeyError:
        abort(404)

    q = request.args.get("q", "").strip()
    center_id = _int_arg("center_id")
    program_id = _int_arg("program_id")
    page = max(_int_arg("page") or 1, 1)
    filters = {
        col: request.args.get(f"f_{col}", "").strip()
        for col in schema.display_columns
        if request.args.get(f"f_{col}", "").strip()
    }

    session = get_session()
    try:
        rows, total = SearchService.search(
            session, kind, q=q, center_id=center_id, program_id=program_id,
            filters=filters,
            limit=config.DEFAULT_PAGE_SIZE,
            offset=(page - 1) * config.DEFAULT_PAGE_SIZE,
        )
        total_pages = max((total + config.DEFAULT_PAGE_SIZE - 1) //
                          config.DEFAULT_PAGE_SIZE, 1)
        return render_template(
            "table.html",
            schema=schema, rows=[r.to_dict() for r in rows],
            columns=schema.display_columns,
            q=q, filters=filters, center_id=center_id, program_id=program_id,
            page=page, total_pages=total_pages, total=total,
            format_column_name=format_column_name,
        )
    finally:
        session.close()
