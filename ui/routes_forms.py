"""
ui.routes_forms - View / Add / Edit / Delete forms for table rows.

Widgets come from the table's schema.  Photo and document fields are
uploaded alongside the form; a failed upload is reported on its own
field and the rest of the form is still saved.
"""

from flask import request, render_template, redirect, url_for, flash, abort

from ui import ui_bp
from db import get_session
from schema import EntitySchema, Widget, get_schema, format_column_name
from services.attachment_service import AttachmentError, save_upload
from services.change_feed import INSERT, UPDATE, DELETE
from services.directory_service import DirectoryService
from services.records_service import RecordsService, RecordValidationError

UPLOAD_WIDGETS = (Widget.IMAGE, Widget.DOCUMENT)


def _schema_or_404(kind: str) -> EntitySchema:
    try:
        return get_schema(kind)
    except KeyError:
        abort(404)


def _collect_form(schema: EntitySchema) -> tuple[dict, dict[str, str]]:
    """Form values for editable columns, plus per-field upload errors."""
    data: dict = {}
    upload_errors: dict[str, str] = {}
    for spec in schema.columns:
        if not spec.editable:
            continue
        if spec.widget in UPLOAD_WIDGETS:
            upload = request.files.get(spec.name)
            if upload and upload.filename:
                try:
                    data[spec.name] = save_upload(schema.kind, spec.name, upload)
                except AttachmentError as exc:
                    upload_errors[spec.name] = str(exc)
            continue
        if spec.widget is Widget.ARRAY and spec.options:
            data[spec.name] = request.form.getlist(spec.name) or None
        elif spec.name in request.form:
            data[spec.name] = request.form.get(spec.name, "")
    return data, upload_errors


def _render_form(session, schema: EntitySchema, values: dict, mode: str,
                 errors: dict | None = None, record_id: int | None = None, status=200):
    options = {
        spec.name: DirectoryService.options_for(session, spec)
        for spec in schema.columns if spec.options
    }
    return render_template(
        "record_form.html",
        schema=schema, values=values, mode=mode, errors=errors or {},
        options=options, record_id=record_id, readonly=(mode == "view"),
        format_column_name=format_column_name,
    ), status


def _flash_upload_errors(upload_errors: dict[str, str]) -> None:
    for column, message in upload_errors.items():
        flash(f"{format_column_name(column)}: {message}", "warning")


# ── View ───────────────────────────────────────────────────────────────

@ui_bp.route("/tables/<kind>/<int:record_id>")
def record_view(kind: str, record_id: int):
    schema = _schema_or_404(kind)
    session = get_session()
    try:
        row = RecordsService.get(session, kind, record_id)
        if row is None:
            abort(404)
        return _render_form(session, schema, row.to_dict(), "view", record_id=record_id)
    finally:
        session.close()


# ── Add ────────────────────────────────────────────────────────────────

@ui_bp.route("/tables/<kind>/new", methods=["GET", "POST"])
def record_add(kind: str):
    schema = _schema_or_404(kind)
    session = get_session()
    try:
        if request.method == "GET":
            # Pre-fill the scope the user navigated from
            values = {k: request.args[k] for k in ("center_id", "program_id")
                      if k in request.args and schema.has_column(k)}
            return _render_form(session, schema, values, "insert")

        data, upload_errors = _collect_form(schema)
        try:
            row = RecordsService.create(session, kind, data)
            RecordsService.commit(session, kind, INSERT, row.id)
        except RecordValidationError as exc:
            session.rollback()
            return _render_form(session, schema, data, "insert",
                                {**exc.errors, **upload_errors}, status=400)

        _flash_upload_errors(upload_errors)
        flash("Record added successfully", "success")
        return redirect(url_for("ui.record_view", kind=kind, record_id=row.id))
    finally:
        session.close()


# ── Edit ───────────────────────────────────────────────────────────────

@ui_bp.route("/tables/<kind>/<int:record_id>/edit", methods=["GET", "POST"])
def record_edit(kind: str, record_id: int):
    schema = _schema_or_404(kind)
    session = get_session()
    try:
        row = RecordsService.get(session, kind, record_id)
        if row is None:
            abort(404)
        if request.method == "GET":
            return _render_form(session, schema, row.to_dict(), "edit", record_id=record_id)

        data, upload_errors = _collect_form(schema)
        try:
            RecordsService.update(session, kind, row, data)
            RecordsService.commit(session, kind, UPDATE, record_id)
        except RecordValidationError as exc:
            session.rollback()
            return _render_form(session, schema, {**row.to_dict(), **data}, "edit",
                                {**exc.errors, **upload_errors}, record_id, status=400)

        _flash_upload_errors(upload_errors)
        flash("Record updated successfully", "success")
        return redirect(url_for("ui.record_view", kind=kind, record_id=record_id))
    finally:
        session.close()


# ── Delete ─────────────────────────────────────────────────────────────

@ui_bp.route("/tables/<kind>/<int:record_id>/delete", methods=["POST"])
def record_delete(kind: str, record_id: int):
    _schema_or_404(kind)
    session = get_session()
    try:
        row = RecordsService.get(session, kind, record_id)
        if row is None:
            abort(404)
        RecordsService.delete(session, row)
        RecordsService.commit(session, kind, DELETE, record_id)
        flash("Record deleted successfully", "success")
        return redirect(url_for("ui.table_page", kind=kind))
    finally:
        session.close()
