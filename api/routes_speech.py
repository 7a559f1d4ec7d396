"""
api.routes_speech - /api/v1/speech-to-text endpoint.
"""

from flask import current_app, request, jsonify

from api import api_bp
from services.speech_service import SpeechServiceError


@api_bp.route("/speech-to-text", methods=["POST"])
def speech_to_text():
    """
    POST /api/v1/speech-to-text

    JSON body: {audio (base64), currentField?, fieldContext?, tableName?}
    Returns {text, field, tableName}; text is NULL_VALUE when the
    speaker gave no value.
    """
    data = request.get_json(silent=True) or {}
    if not data.get("audio"):
        return jsonify({"error": "No audio data provided"}), 400

    client = current_app.extensions["speech_client"]
    try:
        result = client.transcribe(
            data["audio"],
            current_field=data.get("currentField"),
            field_context=data.get("fieldContext"),
            table_name=data.get("tableName"),
        )
    except SpeechServiceError as exc:
        return jsonify({"error": str(exc) or "An unexpected error occurred"}), 500
    return jsonify(result.to_dict())
