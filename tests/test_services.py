import pytest
from sqlalchemy.exc import OperationalError

from db.models import Course
from services.backing_store import BackingStoreError, SqlBackingStore
from services.change_feed import DELETE, INSERT, UPDATE, ChangeFeed
from services.directory_service import DirectoryService
from services.records_service import RecordNotFound, RecordValidationError, RecordsService
from services.search_service import SearchService


# ── Change feed ───────────────────────────────────────────────────────

def test_feed_delivers_to_subscribers_of_that_table():
    feed = ChangeFeed()
    seen = []
    unsubscribe = feed.subscribe("students", seen.append)
    feed.subscribe("courses", lambda e: pytest.fail("wrong table"))

    feed.publish("students", INSERT, {"count": 2})
    unsubscribe()
    feed.publish("students", DELETE)

    assert [(e.kind, e.event, e.payload) for e in seen] == [("students", INSERT, {"count": 2})]
    assert feed.listener_count("students") == 0


def test_failing_listener_does_not_block_others():
    feed = ChangeFeed()
    seen = []

    def broken(_event):
        raise RuntimeError("boom")

    feed.subscribe("students", broken)
    feed.subscribe("students", seen.append)
    feed.publish("students", UPDATE)
    assert len(seen) == 1


# ── SQL backing store ─────────────────────────────────────────────────

def test_bulk_insert_commits_and_notifies(db):
    feed = ChangeFeed()
    events = []
    store = SqlBackingStore(change_feed=feed)
    store.subscribe_to_changes("courses", events.append)

    result = store.bulk_insert("courses", [
        {"name": "Maths", "center_id": 1, "created_at": "2024-01-01T00:00:00+00:00"},
        {"name": "Art", "center_id": 1, "room": "B2"},
    ])

    assert result.success and result.count == 2
    rows = store.fetch_existing("courses")
    assert [r["name"] for r in rows] == ["Maths", "Art"]
    assert rows[1]["extra"] == {"room": "B2"}
    assert events[0].event == INSERT and events[0].payload == {"count": 2}


def test_bulk_insert_is_all_or_nothing(db):
    feed = ChangeFeed()
    events = []
    store = SqlBackingStore(change_feed=feed)
    store.subscribe_to_changes("employees", events.append)

    result = store.bulk_insert("employees", [
        {"employee_id": 5, "name": "Ravi"},
        {"employee_id": 5, "name": "Meera"},
    ])

    assert not result.success
    assert "unique" in result.message.lower()
    assert store.fetch_existing("employees") == []
    assert events == []


class _LockedSession:

    def query(self, *_args):
        raise OperationalError("SELECT", {}, Exception("database is locked"))

    def close(self):
        pass


def test_fetch_failure_raises_backing_store_error():
    store = SqlBackingStore(session_factory=_LockedSession)
    with pytest.raises(BackingStoreError):
        store.fetch_existing("students")


# ── Records service ───────────────────────────────────────────────────

def test_create_coerces_and_stamps(db):
    session = db()
    try:
        row = RecordsService.create(session, "courses", {
            "name": "Maths", "center_id": "1", "duration_weeks": "12", "start_date": "2024-09-01",
        })
        session.commit()
        data = RecordsService.get_or_raise(session, "courses", row.id).to_dict()
    finally:
        session.close()

    assert data["center_id"] == 1
    assert data["duration_weeks"] == 12
    assert data["start_date"] == "2024-09-01"
    assert data["created_at"]


def test_create_lists_every_missing_field(db):
    session = db()
    try:
        with pytest.raises(RecordValidationError) as exc:
            RecordsService.create(session, "courses", {"name": " "})
    finally:
        session.close()
    assert exc.value.errors == {"name": "Name is required", "center_id": "Center Id is required"}


def test_partial_update_only_checks_submitted_fields(db):
    session = db()
    try:
        row = RecordsService.create(session, "courses", {"name": "Maths", "center_id": 1})
        RecordsService.update(session, "courses", row, {"max_students": "30"})
        assert row.max_students == 30 and row.name == "Maths"

        with pytest.raises(RecordValidationError):
            RecordsService.update(session, "courses", row, {"name": ""})
    finally:
        session.close()


def test_commit_publishes_after_write(db):
    feed = ChangeFeed()
    events = []
    feed.subscribe("courses", events.append)
    session = db()
    try:
        row = RecordsService.create(session, "courses", {"name": "Maths", "center_id": 1})
        RecordsService.commit(session, "courses", INSERT, row.id, change_feed=feed)
        RecordsService.delete(session, row)
        RecordsService.commit(session, "courses", DELETE, row.id, change_feed=feed)
        assert session.query(Course).count() == 0
    finally:
        session.close()
    assert [e.event for e in events] == [INSERT, DELETE]


def test_missing_record_raises(db):
    session = db()
    try:
        with pytest.raises(RecordNotFound):
            RecordsService.get_or_raise(session, "students", 999)
    finally:
        session.close()


# ── Search + directory ────────────────────────────────────────────────

def _add_courses(session):
    for name, center, program in (("Maths", 1, 10), ("Art", 1, 11), ("Music", 2, 10)):
        RecordsService.create(session, "courses",
                              {"name": name, "center_id": center, "program_id": program})
    session.commit()


def test_search_scope_text_and_filters(db):
    session = db()
    try:
        _add_courses(session)
        rows, total = SearchService.search(session, "courses", center_id=1)
        assert total == 2
        rows, total = SearchService.search(session, "courses", program_id=10, sort_by="name")
        assert [r.name for r in rows] == ["Maths", "Music"]
        rows, total = SearchService.search(session, "courses", q="us")
        assert [r.name for r in rows] == ["Music"]
        rows, total = SearchService.search(session, "courses", filters={"name": "ART"})
        assert total == 1
        rows, total = SearchService.search(session, "courses", limit=1, offset=1)
        assert total == 3 and len(rows) == 1
    finally:
        session.close()


def test_directory(db):
    session = db()
    try:
        RecordsService.create(session, "centers", {"center_id": 2, "name": "South"})
        RecordsService.create(session, "centers", {"center_id": 1, "name": "North"})
        RecordsService.create(session, "programs", {"program_id": 10, "center_id": 1, "name": "Early"})
        session.commit()

        assert [c.name for c in DirectoryService.centers(session)] == ["North", "South"]
        assert [p.program_id for p in DirectoryService.programs(session, 1)] == [10]
        assert DirectoryService.programs(session, 2) == []
        assert DirectoryService.reference_options(session, "centers") == [("1", "North"), ("2", "South")]
        assert DirectoryService.stats(session) == {
            "total_students": 0, "total_educators": 0, "total_employees": 0,
        }
    finally:
        session.close()
