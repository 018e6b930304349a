import asyncio

import pytest

from sylman.schemas.syllabus import SyllabusRecord
from sylman.services.dashboard import NO_DATE, UNTITLED, SyllabusDashboard, parse_timestamp
from sylman.services.session import SessionContext


class FakeGateway:
    def __init__(self, records=None):
        self.records = records or []
        self.calls = []

    async def list_all(self):
        self.calls.append("list_all")
        return self.records

    async def list_for_user(self, user_id):
        self.calls.append(("list_for_user", user_id))
        return self.records

    async def create(self, user_id, document, autosave=False):
        self.calls.append(("create", user_id, document))
        return "fresh"

    async def copy(self, syllabus_id):
        self.calls.append(("copy", syllabus_id))
        return f"{syllabus_id}-copy"

    async def delete(self, syllabus_id):
        self.calls.append(("delete", syllabus_id))


def _record(record_id, title="", last_edited="", updated_at="", created_at=""):
    return SyllabusRecord.model_validate({
        "_id": record_id,
        "syllabusData": {"courseTitle": title, "lastEdited": last_edited},
        "updatedAt": updated_at,
        "createdAt": created_at,
    })


def test_rows_sorted_newest_first_with_undated_last():
    gateway = FakeGateway([
        _record("old", "Ethics", last_edited="2024-03-01T10:00:00Z", updated_at="2024-09-01T00:00:00Z"),
        _record("none", "Pharmacology"),
        _record("new", "", updated_at="2024-05-01T00:00:00Z"),
    ])
    dashboard = SyllabusDashboard(SessionContext(user_id="u1"), gateway)

    rows = asyncio.run(dashboard.rows())

    assert [row.syllabus_id for row in rows] == ["new", "old", "none"]
    assert rows[0].title == UNTITLED
    assert rows[0].last_updated == "05/01/2024"
    assert rows[1].last_updated == "03/01/2024"
    assert rows[2].last_updated == NO_DATE
    assert gateway.calls == [("list_for_user", "u1")]


def test_admin_sees_every_syllabus():
    gateway = FakeGateway()
    dashboard = SyllabusDashboard(SessionContext.from_login("u9", "Admin"), gateway)

    asyncio.run(dashboard.rows())

    assert gateway.calls == ["list_all"]


def test_missing_user_id_raises():
    dashboard = SyllabusDashboard(SessionContext(), FakeGateway())
    with pytest.raises(RuntimeError):
        asyncio.run(dashboard.rows())


def test_copy_switches_session_to_new_id():
    session = SessionContext(user_id="u1", syllabus_id="abc")
    dashboard = SyllabusDashboard(session, FakeGateway())

    assert asyncio.run(dashboard.copy("abc")) == "abc-copy"
    assert session.syllabus_id == "abc-copy"


def test_delete_clears_only_matching_session_id():
    session = SessionContext(user_id="u1", syllabus_id="abc")
    dashboard = SyllabusDashboard(session, FakeGateway())

    asyncio.run(dashboard.delete("other"))
    assert session.syllabus_id == "abc"

    asyncio.run(dashboard.delete("abc"))
    assert session.syllabus_id is None


def test_new_syllabus_opens_it():
    session = SessionContext(user_id="u1")
    gateway = FakeGateway()

    assert asyncio.run(SyllabusDashboard(session, gateway).new_syllabus()) == "fresh"
    assert session.syllabus_id == "fresh"
    assert gateway.calls == [("create", "u1", {})]


def test_parse_timestamp():
    assert parse_timestamp("2024-01-02T03:04:05Z").tzinfo is not None
    assert parse_timestamp("2024-01-02T03:04:05").tzinfo is not None
    assert parse_timestamp("yesterday") is None
    assert parse_timestamp("") is None


def test_session_from_login():
    assert SessionContext.from_login(42, "admin").is_admin
    session = SessionContext.from_login("u1")
    assert not session.is_admin
    assert not session.has_syllabus
