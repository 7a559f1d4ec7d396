"""
services.attachment_service - Photo and document uploads for form fields.

Files land in config.UPLOAD_DIR/<bucket>/ under a random name and are
served back by the /uploads route.  A failed upload only affects its own field.
"""

from __future__ import annotations

import logging
import uuid
from pathlib import Path

from werkzeug.datastructures import FileStorage
from werkzeug.utils import secure_filename

import config
from schema import Widget, column_spec

logger = logging.getLogger(__name__)

# (table, column) → bucket directory
BUCKETS: dict[tuple[str, str], str] = {
    ("students", "photo"):            "student-photos",
    ("educators", "photo"):           "educator-photos",
    ("employees", "profile_picture"): "employee-photos",
    ("employees", "lor"):             "employee-lor",
}

ALLOWED_EXTENSIONS: dict[Widget, frozenset[str]] = {
    Widget.IMAGE:    frozenset({"png", "jpg", "jpeg", "gif", "webp"}),
    Widget.DOCUMENT: frozenset({"pdf", "doc", "docx", "png", "jpg", "jpeg"}),
}


class AttachmentError(ValueError):
    """The upload for one field was rejected."""


def bucket_for(kind: str, column: str) -> str:
    try:
        return BUCKETS[(kind, column)]
    except KeyError:
        raise AttachmentError(f"{column} does not accept file uploads") from None


def save_upload(kind: str, column: str, upload: FileStorage) -> str:
    """Store *upload* for table/column; returns its public URL path."""
    bucket = bucket_for(kind, column)
    widget = column_spec(kind, column).widget

    filename = secure_filename(upload.filename or "")
    ext = filename.rsplit(".", 1)[-1].lower() if "." in filename else ""
    if ext not in ALLOWED_EXTENSIONS.get(widget, frozenset()):
        raise AttachmentError(f"Unsupported file type for {column}: .{ext or '?'}")

    content = upload.read()
    if not content:
        raise AttachmentError(f"Uploaded file for {column} is empty")
    if len(content) > config.MAX_UPLOAD_BYTES:
        raise AttachmentError(f"Uploaded file for {column} is too large")

    target_dir: Path = config.UPLOAD_DIR / bucket
    target_dir.mkdir(parents=True, exist_ok=True)
    name = f"{uuid.uuid4().hex}.{ext}"
    (target_dir / name).write_bytes(content)
    logger.info("Stored %s upload for %s.%s as %s/%s", widget.value, kind, column, bucket, name)
    return f"/uploads/{bucket}/{name}"
