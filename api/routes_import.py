"""
api.routes_import - /api/v1/tables/<kind>/import endpoints.

Accepts CSV via multipart file upload or raw request body.  The
preview step stages the upload and returns a token; the import step
takes either a fresh upload or that token.
"""

from flask import current_app, request, jsonify

from api import api_bp
from api.routes_tables import schema_or_404
from import_engine import CsvParseError, ImportPipeline
from import_engine import staging
import config


CSV_MIMETYPES = frozenset({"text/csv", "application/csv"})
INVALID_CSV_MESSAGE = "Please select a valid CSV file"


def is_csv_upload(upload) -> bool:
    """A .csv file name or a CSV mimetype."""
    name = (upload.filename or "").lower()
    return name.endswith(".csv") or upload.mimetype in CSV_MIMETYPES


def current_pipeline() -> ImportPipeline:
    return ImportPipeline(current_app.extensions["backing_store"])


def _uploaded_content() -> bytes | None:
    if request.content_type and "multipart" in request.content_type:
        f = request.files.get("csv_file")
        return f.read() if f else None
    return request.get_data() or None


def _rejected_file() -> bool:
    """True when a multipart upload carries something other than a CSV."""
    if not (request.content_type and "multipart" in request.content_type):
        return False
    f = request.files.get("csv_file")
    return bool(f and f.filename) and not is_csv_upload(f)


def preview_payload(parsed) -> dict:
    columns = list(parsed.columns)
    return {
        "columns": columns,
        "preview_columns": columns[:config.PREVIEW_COLUMNS],
        "more_columns": len(columns) > config.PREVIEW_COLUMNS,
        "rows": [r.to_dict() for r in parsed.records],
    }


@api_bp.route("/tables/<kind>/import/preview", methods=["POST"])
def api_import_preview(kind: str):
    """
    POST /api/v1/tables/<kind>/import/preview

    Multipart: field name 'csv_file'
    Or: raw CSV as request body (Content-Type: text/csv).
    Returns the first rows and a staging token for the confirm call.
    """
    schema_or_404(kind)
    if _rejected_file():
        return jsonify({"error": INVALID_CSV_MESSAGE}), 400
    content = _uploaded_content()
    if not content:
        return jsonify({"error": "no csv_file in upload"}), 400

    try:
        parsed = current_pipeline().preview(content)
    except CsvParseError as exc:
        return jsonify({"error": f"CSV parsing error: {exc}"}), 400

    body = preview_payload(parsed)
    body["token"] = staging.stash(content, kind=kind)
    return jsonify(body)


@api_bp.route("/tables/<kind>/import", methods=["POST"])
def api_import_csv(kind: str):
    """
    POST /api/v1/tables/<kind>/import[?token=<staging token>]

    200 with the report on success, 422 when the file is rejected.
    """
    schema_or_404(kind)
    token = request.args.get("token", "").strip()
    if token:
        content = staging.load(token)
        if content is None:
            return jsonify({"error": "unknown or expired upload token"}), 404
    elif _rejected_file():
        return jsonify({"error": INVALID_CSV_MESSAGE}), 400
    else:
        content = _uploaded_content()
    if not content:
        return jsonify({"error": "empty body"}), 400

    report = current_pipeline().run(content, kind)
    if token and report.success:
        staging.discard(token)
    return jsonify(report.to_dict(config.ERROR_DISPLAY_LIMIT)), (200 if report.success else 422)
