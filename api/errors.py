"""
api.errors - JSON error handlers for the API blueprint.
"""

from flask import jsonify

from api import api_bp
from services.records_service import RecordNotFound, RecordValidationError


@api_bp.errorhandler(RecordNotFound)
def api_record_not_found(e):
    return jsonify({"error": str(e)}), 404


@api_bp.errorhandler(RecordValidationError)
def api_record_invalid(e):
    return jsonify({"error": "validation failed", "fields": e.errors}), 400


@api_bp.errorhandler(404)
def api_not_found(_e):
    return jsonify({"error": "not found"}), 404


@api_bp.errorhandler(400)
def api_bad_request(_e):
    return jsonify({"error": "bad request"}), 400


@api_bp.errorhandler(500)
def api_server_error(_e):
    return jsonify({"error": "internal server error"}), 500
