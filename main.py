#!/usr/bin/env python3
"""
Center Admin - Education center administration dashboard
========================================================

Single-command run:  python main.py

See config.py for all environment-variable tunables.
"""

from __future__ import annotations

import logging

from flask import Flask, render_template, send_from_directory

import config
from db import init_db
from api import api_bp
from ui import ui_bp
from services.backing_store import BackingStore, SqlBackingStore
from services.speech_service import SpeechToTextClient

# Seed files are imported in this order so references resolve
SEED_ORDER = ("centers", "programs", "employees", "educators", "students", "courses")


def create_app(
    *,
    db_url: str | None = None,
    store: BackingStore | None = None,
    speech_client: SpeechToTextClient | None = None,
) -> Flask:
    """Flask application factory."""

    app = Flask(
        __name__,
        template_folder=str(config.BASE_DIR / "templates"),
        static_folder=str(config.BASE_DIR / "static"),
    )
    app.secret_key = config.SECRET
    app.config["MAX_CONTENT_LENGTH"] = config.MAX_UPLOAD_BYTES

    # ── Initialise database ─────────────────────────────────────────
    init_db(db_url or config.DB_URL)

    # ── Collaborators used by the routes ────────────────────────────
    app.extensions["backing_store"] = store or SqlBackingStore()
    app.extensions["speech_client"] = speech_client or SpeechToTextClient()

    # ── Register blueprints ─────────────────────────────────────────
    app.register_blueprint(api_bp)
    app.register_blueprint(ui_bp)

    # ── Uploaded photos / documents ─────────────────────────────────
    @app.route("/uploads/<path:filepath>")
    def serve_upload(filepath):
        return send_from_directory(config.UPLOAD_DIR, filepath)

    # ── Error handlers ──────────────────────────────────────────────
    @app.errorhandler(404)
    def _404(e):
        return render_template("error.html", code=404,
                               message="Page not found"), 404

    @app.errorhandler(500)
    def _500(e):
        return render_template("error.html", code=500,
                               message="Internal server error"), 500

    return app


def _seed_if_empty(store: BackingStore) -> None:
    """Import <kind>.csv files from the seed directory into empty tables."""
    from import_engine import ImportPipeline

    if not config.SEED_DIR.is_dir():
        return
    pipeline = ImportPipeline(store)
    for kind in SEED_ORDER:
        path = config.SEED_DIR / f"{kind}.csv"
        if not path.exists() or store.fetch_existing(kind):
            continue
        report = pipeline.run(path.read_bytes(), kind)
        if report.success:
            print(f"  Seeded {kind}: {report.imported} rows from {path.name}")
        else:
            print(f"  Seeding {kind} failed: {report.error_text()}")


def main():
    logging.basicConfig(
        level=getattr(logging, config.LOG_LEVEL, logging.INFO),
        format="%(asctime)s %(levelname)-7s %(name)s: %(message)s",
    )

    print("=" * 56)
    print("  Center Admin - Dashboard")
    print("=" * 56)

    app = create_app()
    print(f"  Database: {config.DB_URL}")
    _seed_if_empty(app.extensions["backing_store"])

    print(f"\n  http://{config.HOST}:{config.PORT}")
    print("=" * 56)

    app.run(host=config.HOST, port=config.PORT, debug=config.DEBUG, threaded=True)


if __name__ == "__main__":
    main()
