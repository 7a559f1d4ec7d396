import pytest

import config
from db import init_db, get_session
from main import create_app
from services.backing_store import BackingStore, BulkInsertResult
from services.change_feed import ChangeFeed


class FakeStore(BackingStore):
    """In-memory BackingStore that records every call."""

    def __init__(self, existing=None, insert_result=None):
        self.existing = {kind: list(rows) for kind, rows in (existing or {}).items()}
        self.insert_result = insert_result
        self.fetch_calls = []
        self.insert_calls = []
        self.feed = ChangeFeed()

    def fetch_existing(self, kind):
        self.fetch_calls.append(kind)
        return list(self.existing.get(kind, []))

    def bulk_insert(self, kind, records):
        records = [dict(r) for r in records]
        self.insert_calls.append((kind, records))
        if self.insert_result is not None:
            return self.insert_result
        self.existing.setdefault(kind, []).extend(records)
        return BulkInsertResult(True, f"Successfully inserted {len(records)} records into {kind}",
                                len(records))

    def subscribe_to_changes(self, kind, listener):
        return self.feed.subscribe(kind, listener)


class StubResponse:

    def __init__(self, status_code=200, payload=None, text=""):
        self.status_code = status_code
        self.ok = 200 <= status_code < 300
        self._payload = payload
        self.text = text

    def json(self):
        if self._payload is None:
            raise ValueError("no json")
        return self._payload


class StubHttpSession:
    """Stands in for requests.Session; replays one canned response."""

    def __init__(self, response):
        self.response = response
        self.calls = []

    def post(self, url, **kwargs):
        self.calls.append((url, kwargs))
        if isinstance(self.response, Exception):
            raise self.response
        return self.response


def gemini_reply(text):
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


@pytest.fixture(autouse=True)
def _temp_dirs(tmp_path, monkeypatch):
    """Keep uploads and staged CSVs out of the source tree."""
    monkeypatch.setattr(config, "UPLOAD_DIR", tmp_path / "uploads")
    monkeypatch.setattr(config, "STAGING_DIR", tmp_path / "staging")


@pytest.fixture
def db(tmp_path):
    init_db(f"sqlite:///{tmp_path / 'test.sqlite'}")
    yield get_session


@pytest.fixture
def fake_store():
    return FakeStore()


@pytest.fixture
def app(tmp_path):
    app = create_app(db_url=f"sqlite:///{tmp_path / 'app.sqlite'}")
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def seeded(client):
    """One center and one program, created through the API."""
    client.post("/api/v1/tables/centers", json={"center_id": 1, "name": "North", "location": "Pune"})
    client.post("/api/v1/tables/programs", json={"program_id": 10, "center_id": 1, "name": "Early Years"})
    return client
