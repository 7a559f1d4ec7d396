"""
ui.routes_import - CSV import page for one table.

upload -> preview (first rows / first columns) -> confirm -> report
"""

from flask import request, render_template, redirect, url_for, flash, abort

from ui import ui_bp
from api.routes_import import INVALID_CSV_MESSAGE, current_pipeline, is_csv_upload, preview_payload
from import_engine import CsvParseError
from import_engine import staging
from schema import EntitySchema, get_schema, expected_columns, format_column_name
import config


def _schema_or_404(kind: str) -> EntitySchema:
    try:
        return get_schema(kind)
    except KeyError:
        abort(404)


def _render(schema: EntitySchema, **ctx):
    status = ctx.pop("status", 200)
    return render_template(
        "import.html",
        schema=schema,
        expected=expected_columns(schema.kind),
        format_column_name=format_column_name,
        preview=ctx.pop("preview", None),
        token=ctx.pop("token", None),
        filename=ctx.pop("filename", ""),
        error=ctx.pop("error", None),
    ), status


@ui_bp.route("/tables/<kind>/import", methods=["GET"])
def import_page(kind: str):
    return _render(_schema_or_404(kind))


@ui_bp.route("/tables/<kind>/import/preview", methods=["POST"])
def import_preview(kind: str):
    schema = _schema_or_404(kind)
    f = request.files.get("csv_file")
    if not f or not f.filename:
        flash("Please select a CSV file", "danger")
        return _render(schema, status=400)
    if not is_csv_upload(f):
        flash(INVALID_CSV_MESSAGE, "danger")
        return _render(schema, status=400)

    content = f.read()
    try:
        parsed = current_pipeline().preview(content)
    except CsvParseError as exc:
        return _render(schema, error=f"CSV parsing error: {exc}", status=400)

    token = staging.stash(content, kind=kind, filename=f.filename)
    return _render(schema, preview=preview_payload(parsed), token=token,
                   filename=f.filename)


@ui_bp.route("/tables/<kind>/import/confirm", methods=["POST"])
def import_confirm(kind: str):
    schema = _schema_or_404(kind)
    token = request.form.get("token", "").strip()
    content = staging.load(token)
    if content is None:
        flash("The uploaded file has expired, please upload it again", "warning")
        return redirect(url_for("ui.import_page", kind=kind))

    report = current_pipeline().run(content, kind)
    if not report.success:
        meta = staging.metadata(token) or {}
        return _render(schema, error=report.error_text(config.ERROR_DISPLAY_LIMIT),
                       filename=meta.get("filename", ""), status=422)

    staging.discard(token)
    flash(report.message, "success")
    return redirect(url_for("ui.table_page", kind=kind))


@ui_bp.route("/tables/<kind>/import/cancel", methods=["POST"])
def import_cancel(kind: str):
    _schema_or_404(kind)
    staging.discard(request.form.get("token", "").strip())
    return redirect(url_for("ui.import_page", kind=kind))
