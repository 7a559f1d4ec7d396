"""
import_engine.staging - Hold an uploaded CSV between preview and confirm.

The preview step stashes the bytes under a random token; the confirm
step loads them back and re-parses the very same file.  Stashes older
than config.STAGING_MAX_AGE are swept whenever a new one is created.
"""

from __future__ import annotations

import json
import logging
import re
import shutil
import uuid
from datetime import datetime
from pathlib import Path
from typing import Optional

import config

logger = logging.getLogger(__name__)

_TOKEN_RE = re.compile(r"^[0-9a-f]{32}$")


def _staging_dir() -> Path:
    return config.STAGING_DIR


def _token_dir(token: str) -> Path:
    if not _TOKEN_RE.match(token or ""):
        raise KeyError(token)
    return _staging_dir() / token


def _cleanup_old() -> None:
    root = _staging_dir()
    if not root.exists():
        return
    now = datetime.now()
    for item in root.iterdir():
        if not item.is_dir():
            continue
        mtime = datetime.fromtimestamp(item.stat().st_mtime)
        if now - mtime > config.STAGING_MAX_AGE:
            shutil.rmtree(item, ignore_errors=True)


def stash(content: bytes, *, kind: str, filename: str = "") -> str:
    """Store *content* for a later confirm; returns the token."""
    _cleanup_old()
    token = uuid.uuid4().hex
    path = _staging_dir() / token
    path.mkdir(parents=True, exist_ok=True)
    (path / "upload.csv").write_bytes(content)
    (path / "_metadata.json").write_text(json.dumps({
        "kind": kind,
        "filename": filename,
        "size": len(content),
        "created": datetime.now().isoformat(),
    }))
    logger.debug("Staged %d bytes for %s as %s", len(content), kind, token)
    return token


def metadata(token: str) -> Optional[dict]:
    try:
        meta_path = _token_dir(token) / "_metadata.json"
    except KeyError:
        return None
    if not meta_path.exists():
        return None
    return json.loads(meta_path.read_text())


def load(token: str) -> Optional[bytes]:
    """Stashed bytes, or None if the token is unknown or expired."""
    try:
        data_path = _token_dir(token) / "upload.csv"
    except KeyError:
        return None
    if not data_path.exists():
        return None
    return data_path.read_bytes()


def discard(token: str) -> None:
    try:
        shutil.rmtree(_token_dir(token), ignore_errors=True)
    except KeyError:
        pass
