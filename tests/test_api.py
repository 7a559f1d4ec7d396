import io

from conftest import FakeStore, StubHttpSession, StubResponse, gemini_reply
from main import create_app
from services.speech_service import SpeechToTextClient

STUDENT_CSV = (
    "student_id,first_name,last_name,student_email,program_id,center_id\n"
    "101,Ada,Lovelace,ada@example.com,10,1\n"
    "102,Alan,Turing,alan@example.com,10,1\n"
    "103,Grace,Hopper,grace@example.com,10,1\n"
    "104,Edsger,Dijkstra,edsger@example.com,10,1\n"
)


def test_schema_endpoints(client):
    assert "students" in client.get("/api/v1/schema").get_json()
    body = client.get("/api/v1/schema/students").get_json()
    assert body["unique_column"] == "student_id"
    assert "created_at" not in body["csv_columns"]
    assert client.get("/api/v1/schema/spaceships").status_code == 404


def test_centers_programs_and_stats(seeded):
    centers = seeded.get("/api/v1/centers").get_json()
    assert [c["name"] for c in centers] == ["North"]
    programs = seeded.get("/api/v1/centers/1/programs").get_json()
    assert [p["program_id"] for p in programs] == [10]
    assert seeded.get("/api/v1/centers/99/programs").status_code == 404
    assert seeded.get("/api/v1/stats").get_json()["total_students"] == 0


def test_row_crud(client):
    resp = client.post("/api/v1/tables/courses", json={"name": "Maths", "center_id": "1"})
    assert resp.status_code == 201
    row_id = resp.get_json()["id"]

    resp = client.put(f"/api/v1/tables/courses/{row_id}", json={"max_students": "25"})
    assert resp.get_json()["max_students"] == 25

    listing = client.get("/api/v1/tables/courses?center_id=1&q=mat").get_json()
    assert listing["total"] == 1 and listing["rows"][0]["name"] == "Maths"

    assert client.delete(f"/api/v1/tables/courses/{row_id}").get_json() == {"deleted": row_id}
    assert client.get(f"/api/v1/tables/courses/{row_id}").status_code == 404


def test_create_reports_missing_fields(client):
    resp = client.post("/api/v1/tables/courses", json={"description": "no name"})
    assert resp.status_code == 400
    assert set(resp.get_json()["fields"]) == {"name", "center_id"}


def test_bad_input(client):
    assert client.post("/api/v1/tables/courses", data="nope").status_code == 400
    assert client.get("/api/v1/tables/spaceships").status_code == 404
    assert client.get("/api/v1/tables/courses?limit=abc").status_code == 400


def test_import_preview_then_confirm(client):
    resp = client.post("/api/v1/tables/students/import/preview",
                       data=STUDENT_CSV, content_type="text/csv")
    body = resp.get_json()
    assert resp.status_code == 200
    assert len(body["rows"]) == 3
    assert body["preview_columns"] == ["student_id", "first_name", "last_name",
                                       "student_email", "program_id"]
    assert body["more_columns"] is True

    resp = client.post(f"/api/v1/tables/students/import?token={body['token']}")
    assert resp.status_code == 200
    assert resp.get_json()["imported"] == 4
    assert client.get("/api/v1/stats").get_json()["total_students"] == 4


def test_import_multipart_rejected(client):
    bad = STUDENT_CSV.replace("grace@example.com", "grace@example")
    resp = client.post("/api/v1/tables/students/import",
                       data={"csv_file": (io.BytesIO(bad.encode()), "s.csv")},
                       content_type="multipart/form-data")
    body = resp.get_json()
    assert resp.status_code == 422
    assert body["stage"] == "validate"
    assert body["message"] == "Validation errors found:\nRow 3: Invalid student_email format"


def test_import_errors(client):
    assert client.post("/api/v1/tables/students/import/preview",
                       data="a,a\n1,2\n", content_type="text/csv").status_code == 400
    assert client.post("/api/v1/tables/students/import", data=b"",
                       content_type="text/csv").status_code == 400
    assert client.post("/api/v1/tables/students/import?token=" + "0" * 32).status_code == 404


def test_import_uses_injected_store(tmp_path):
    store = FakeStore()
    app = create_app(db_url=f"sqlite:///{tmp_path / 'x.sqlite'}", store=store)
    resp = app.test_client().post("/api/v1/tables/students/import",
                                  data=STUDENT_CSV, content_type="text/csv")
    assert resp.status_code == 200
    assert len(store.insert_calls) == 1


def test_speech_to_text(tmp_path):
    session = StubHttpSession(StubResponse(payload=gemini_reply("Lovelace")))
    speech = SpeechToTextClient(api_key="k", session=session)
    client = create_app(db_url=f"sqlite:///{tmp_path / 's.sqlite'}", speech_client=speech).test_client()

    resp = client.post("/api/v1/speech-to-text",
                       json={"audio": "QUJD", "currentField": "last_name", "tableName": "students"})
    assert resp.get_json() == {"text": "Lovelace", "field": "last_name", "tableName": "students"}

    assert client.post("/api/v1/speech-to-text", json={}).status_code == 400


def test_speech_to_text_failure(tmp_path):
    speech = SpeechToTextClient(api_key="", session=StubHttpSession(StubResponse()))
    client = create_app(db_url=f"sqlite:///{tmp_path / 's.sqlite'}", speech_client=speech).test_client()
    resp = client.post("/api/v1/speech-to-text", json={"audio": "QUJD"})
    assert resp.status_code == 500
    assert resp.get_json() == {"error": "API key not configured"}


def test_import_rejects_non_csv_upload(client):
    for url in ("/api/v1/tables/students/import/preview", "/api/v1/tables/students/import"):
        resp = client.post(url, data={"csv_file": (io.BytesIO(STUDENT_CSV.encode()), "students.txt")},
                           content_type="multipart/form-data")
        assert resp.status_code == 400
        assert resp.get_json() == {"error": "Please select a valid CSV file"}
    assert client.get("/api/v1/stats").get_json()["total_students"] == 0


def test_csv_upload_detection():
    from werkzeug.datastructures import FileStorage
    from api.routes_import import is_csv_upload

    assert is_csv_upload(FileStorage(io.BytesIO(b""), filename="S.CSV"))
    assert is_csv_upload(FileStorage(io.BytesIO(b""), filename="export", content_type="text/csv"))
    assert not is_csv_upload(FileStorage(io.BytesIO(b""), filename="photo.png", content_type="image/png"))
