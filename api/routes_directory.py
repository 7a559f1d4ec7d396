"""
api.routes_directory - /api/v1/centers, /programs and /stats.
"""

from flask import jsonify, abort

from api import api_bp
from db import get_session
from services.directory_service import DirectoryService


@api_bp.route("/centers")
def list_centers():
    session = get_session()
    try:
        return jsonify([c.to_dict() for c in DirectoryService.centers(session)])
    finally:
        session.close()


@api_bp.route("/centers/<int:center_id>/programs")
def list_center_programs(center_id: int):
    session = get_session()
    try:
        if DirectoryService.center(session, center_id) is None:
            abort(404)
        programs = DirectoryService.programs(session, center_id)
        return jsonify([p.to_dict() for p in programs])
    finally:
        session.close()


@api_bp.route("/stats")
def dashboard_stats():
    """Totals shown on the landing page."""
    session = get_session()
    try:
        return jsonify(DirectoryService.stats(session))
    finally:
        session.close()
