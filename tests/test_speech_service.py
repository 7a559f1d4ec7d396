import pytest
import requests

from conftest import StubHttpSession, StubResponse, gemini_reply
from services.speech_service import (
    NULL_VALUE, SpeechServiceError, SpeechToTextClient, build_prompt, extract_text,
)


def _client(response, api_key="test-key"):
    session = StubHttpSession(response)
    return SpeechToTextClient(api_key=api_key, model="gemini-test", session=session), session


def test_transcribe_posts_audio_and_prompt():
    client, session = _client(StubResponse(payload=gemini_reply(" Ada Lovelace \n")))
    result = client.transcribe("QUJD", current_field="first_name", table_name="students")

    assert result.to_dict() == {"text": "Ada Lovelace", "field": "first_name", "tableName": "students"}
    url, kwargs = session.calls[0]
    assert url.endswith("/gemini-test:generateContent")
    assert kwargs["params"] == {"key": "test-key"}
    parts = kwargs["json"]["contents"][0]["parts"]
    assert "first_name for a students entry" in parts[0]["text"]
    assert parts[1]["inline_data"] == {"mime_type": "audio/webm", "data": "QUJD"}
    assert kwargs["json"]["generationConfig"]["temperature"] == 0.1


@pytest.mark.parametrize("reply", ["NULL_VALUE", "I don't know", "Sorry, not available"])
def test_no_value_replies_become_null(reply):
    client, _ = _client(StubResponse(payload=gemini_reply(reply)))
    assert client.transcribe("QUJD", current_field="dob", table_name="students").text == NULL_VALUE


def test_missing_audio_and_key():
    client, session = _client(StubResponse(payload=gemini_reply("x")), api_key="")
    with pytest.raises(SpeechServiceError, match="No audio data provided"):
        client.transcribe("")
    with pytest.raises(SpeechServiceError, match="API key not configured"):
        client.transcribe("QUJD")
    assert session.calls == []


def test_http_error_status():
    client, _ = _client(StubResponse(status_code=403, text="forbidden"))
    with pytest.raises(SpeechServiceError, match="Gemini API error: 403"):
        client.transcribe("QUJD")


def test_network_failure():
    client, _ = _client(requests.ConnectionError("no route"))
    with pytest.raises(SpeechServiceError):
        client.transcribe("QUJD")


def test_prompt_without_field_is_plain_transcription():
    assert build_prompt(None, None, None).endswith("transcribe this audio exactly as spoken.")
    assert "Context about this field: DD/MM/YYYY." in build_prompt("dob", "DD/MM/YYYY", "students")


def test_extract_text_tolerates_empty_payloads():
    assert extract_text({}) == ""
    assert extract_text({"candidates": []}) == ""
