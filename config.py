"""
Center Admin - Centralised configuration.

All tunables live here.  Every other module imports from config
instead of reading os.environ directly.
"""

from __future__ import annotations
import os
from datetime import timedelta
from pathlib import Path


# ── Paths ──────────────────────────────────────────────────────────────
BASE_DIR    = Path(__file__).resolve().parent
UPLOAD_DIR  = Path(os.environ.get("CADM_UPLOAD_DIR",  BASE_DIR / "uploads")).resolve()
STAGING_DIR = Path(os.environ.get("CADM_STAGING_DIR", BASE_DIR / "_staging")).resolve()
SEED_DIR    = Path(os.environ.get("CADM_SEED_DIR",    BASE_DIR / "seed")).resolve()

# ── Database ───────────────────────────────────────────────────────────
DB_URL = os.environ.get("CADM_DB", f"sqlite:///{BASE_DIR / 'center_admin.sqlite'}")

# ── Server ─────────────────────────────────────────────────────────────
HOST   = os.environ.get("CADM_HOST", "0.0.0.0")
PORT   = int(os.environ.get("CADM_PORT", "5000"))
DEBUG  = os.environ.get("CADM_DEBUG", "0") == "1"
SECRET = os.environ.get("CADM_SECRET", "cadm-dev-key-change-in-prod")
LOG_LEVEL = os.environ.get("CADM_LOG_LEVEL", "INFO").upper()

# ── Speech-to-text (Gemini) ────────────────────────────────────────────
GEMINI_API_KEY  = os.environ.get("CADM_GEMINI_API_KEY", "")
GEMINI_MODEL    = os.environ.get("CADM_GEMINI_MODEL", "gemini-1.5-pro")
GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1/models"
SPEECH_TIMEOUT  = float(os.environ.get("CADM_SPEECH_TIMEOUT", "30"))

# ── CSV import ─────────────────────────────────────────────────────────
PREVIEW_ROWS        = 3
PREVIEW_COLUMNS     = 5
ERROR_DISPLAY_LIMIT = 5
STAGING_MAX_AGE     = timedelta(hours=2)

# ── Uploads ────────────────────────────────────────────────────────────
MAX_UPLOAD_BYTES = 10 * 1024 * 1024

# ── Pagination ─────────────────────────────────────────────────────────
DEFAULT_PAGE_SIZE = 50
API_MAX_LIMIT     = 1000
API_DEFAULT_LIMIT = 100
