"""
services.speech_service - Dictate a form field through Gemini.

The browser records audio, base64-encodes it and posts it together
with the field being filled.  The model is asked to return only the
value for that field, or NULL_VALUE when the speaker does not know it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

import requests

import config

logger = logging.getLogger(__name__)

NULL_VALUE = "NULL_VALUE"

# Replies that mean "no value" regardless of how the model phrased it
_NULL_PHRASES = ("null_value", "i don't know", "i don't have", "not available")


class SpeechServiceError(RuntimeError):
    """Transcription could not be produced."""


@dataclass(frozen=True)
class Transcription:
    text: str
    field: Optional[str] = None
    table_name: Optional[str] = None

    def to_dict(self) -> dict:
        return {"text": self.text, "field": self.field, "tableName": self.table_name}


def build_prompt(current_field: str | None, field_context: str | None,
                 table_name: str | None) -> str:
    prompt = "You are a helpful assistant for data entry. "
    if table_name and current_field:
        prompt += (f"I need you to extract the {current_field} for a {table_name} "
                   f"entry from the following speech. ")
        if field_context:
            prompt += f"Context about this field: {field_context}. "
        prompt += ('If the user says they don\'t know, don\'t have the information, '
                   'or similar, respond with "NULL_VALUE". Only respond with the '
                   'exact answer without any additional text.')
    else:
        prompt += "Please transcribe this audio exactly as spoken."
    return prompt


def extract_text(payload: dict[str, Any]) -> str:
    """First candidate's first text part, or ''."""
    try:
        return payload["candidates"][0]["content"]["parts"][0].get("text", "") or ""
    except (KeyError, IndexError, TypeError, AttributeError):
        return ""


def normalize_null(text: str) -> str:
    lowered = text.lower()
    if any(phrase in lowered for phrase in _NULL_PHRASES):
        return NULL_VALUE
    return text.strip()


class SpeechToTextClient:

    def __init__(
        self,
        *,
        api_key: str = config.GEMINI_API_KEY,
        model: str = config.GEMINI_MODEL,
        timeout: float = config.SPEECH_TIMEOUT,
        session: requests.Session | None = None,
    ) -> None:
        self._api_key = api_key
        self._model = model
        self._timeout = timeout
        self._session = session or requests.Session()

    @property
    def endpoint(self) -> str:
        return f"{config.GEMINI_BASE_URL}/{self._model}:generateContent"

    def transcribe(
        self,
        audio: str,
        *,
        current_field: str | None = None,
        field_context: str | None = None,
        table_name: str | None = None,
        mime_type: str = "audio/webm",
    ) -> Transcription:
        """
        Transcribe base64 *audio*; raises SpeechServiceError on any failure.
        """
        if not audio:
            raise SpeechServiceError("No audio data provided")
        if not self._api_key:
            logger.error("Gemini API key is not configured (CADM_GEMINI_API_KEY)")
            raise SpeechServiceError("API key not configured")

        body = {
            "contents": [{
                "parts": [
                    {"text": build_prompt(current_field, field_context, table_name)},
                    {"inline_data": {"mime_type": mime_type, "data": audio}},
                ],
            }],
            "generationConfig": {"temperature": 0.1, "topP": 0.8, "topK": 40},
        }

        try:
            response = self._session.post(
                self.endpoint,
                params={"key": self._api_key},
                json=body,
                timeout=self._timeout,
            )
        except requests.RequestException as exc:
            logger.error("Gemini request failed: %s", exc)
            raise SpeechServiceError(f"Speech service unreachable: {exc}") from exc

        if not response.ok:
            logger.error("Gemini API error %s: %s", response.status_code, response.text[:500])
            raise SpeechServiceError(f"Gemini API error: {response.status_code}")

        try:
            payload = response.json()
        except ValueError as exc:
            raise SpeechServiceError("Gemini API returned invalid JSON") from exc

        text = normalize_null(extract_text(payload))
        logger.debug("Transcribed %s/%s: %r", table_name, current_field, text)
        return Transcription(text=text, field=current_field, table_name=table_name)
