# tests/test_sqlite_records.py

from pathlib import Path

import pytest

from tasktrail.errors import NotFound, RemoteOperationFailed
from tasktrail.services.base import OrderBy, Paging, all_of, any_of, leaf
from tasktrail.services.sqlite_records import CURRENT_SCHEMA_VERSION, SqliteRecordService


def _task(title: str, **extra) -> dict:
    return {"title": title, "status": "To Do", "priority": "Medium", **extra}


def test_schema_is_versioned_and_idempotent(tmp_path: Path) -> None:
    service = SqliteRecordService(tmp_path / "nested" / "tasks.db")
    service.initialize_schema()
    service.initialize_schema()

    assert service.get_schema_version() == CURRENT_SCHEMA_VERSION
    assert service.verify_connection() is True


def test_uninitialized_database_fails_verification(tmp_path: Path) -> None:
    service = SqliteRecordService(tmp_path / "empty.db")
    assert service.get_schema_version() is None
    assert service.verify_connection() is False


def test_create_fetch_update_delete(records: SqliteRecordService) -> None:
    created = records.create_record("task", _task("Buy milk", completed=False))
    assert created["Id"] > 0
    assert created["completed"] is False
    assert created["CreatedOn"] == created["ModifiedOn"]

    updated = records.update_record("task", created["Id"], {"completed": True})
    assert updated["completed"] is True
    assert updated["title"] == "Buy milk"

    records.delete_record("task", created["Id"])
    with pytest.raises(NotFound):
        records.fetch_record("task", created["Id"])


def test_rows_are_scoped_to_owner(records: SqliteRecordService) -> None:
    mine = records.create_record("task", _task("Mine"))

    records.owner = 2
    records.create_record("task", _task("Theirs"))
    result = records.fetch_records("task")
    assert [r["title"] for r in result.data] == ["Theirs"]
    with pytest.raises(NotFound):
        records.fetch_record("task", mine["Id"])
    with pytest.raises(NotFound):
        records.delete_record("task", mine["Id"])


def test_fetch_applies_filter_order_and_window(records: SqliteRecordService) -> None:
    for i in range(7):
        records.create_record("task", _task(f"Task {i}", category="Home" if i % 2 else "Work"))

    result = records.fetch_records(
        "task",
        fields=["Id", "title"],
        filter=all_of(leaf("category", "eq", "Home")),
        paging=Paging(limit=2, offset=1),
        order_by=[OrderBy("CreatedOn", "desc")],
    )

    assert result.total == 3
    assert [r["title"] for r in result.data] == ["Task 3", "Task 1"]
    assert set(result.data[0]) == {"Id", "title"}


def test_contains_is_case_sensitive(records: SqliteRecordService) -> None:
    records.create_record("task", _task("Buy milk"))
    records.create_record("task", _task("MILK run"))

    condition = any_of(leaf("title", "contains", "milk"), leaf("description", "contains", "milk"))
    result = records.fetch_records("task", filter=condition)

    assert [r["title"] for r in result.data] == ["Buy milk"]


def test_boolean_filter(records: SqliteRecordService) -> None:
    records.create_record("task", _task("Open"))
    records.create_record("task", _task("Done", completed=True))

    result = records.fetch_records("task", filter=leaf("completed", "eq", True))

    assert [r["title"] for r in result.data] == ["Done"]


def test_unknown_fields_are_rejected(records: SqliteRecordService) -> None:
    with pytest.raises(RemoteOperationFailed):
        records.create_record("task", _task("x", bogus=1))
    with pytest.raises(RemoteOperationFailed):
        records.fetch_records("task", filter=leaf("bogus", "eq", 1))
    with pytest.raises(RemoteOperationFailed):
        records.fetch_records("nope")
