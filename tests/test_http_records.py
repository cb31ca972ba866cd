# tests/test_http_records.py

import pytest
import requests

from tasktrail.errors import NotFound, RemoteOperationFailed
from tasktrail.services.base import OrderBy, Paging, leaf
from tasktrail.services.http_records import HttpRecordService

from .fakes import FakeResponse, FakeSession


def _service(*responses) -> tuple[HttpRecordService, FakeSession]:
    session = FakeSession(responses=list(responses))
    return HttpRecordService("https://api.example.com/", "tasktrail", session=session, timeout=5), session


def test_query_body_and_result() -> None:
    service, session = _service(
        FakeResponse(body={"success": True, "data": [{"Id": 1, "title": "A"}], "totalRecordCount": 12})
    )

    result = service.fetch_records(
        "task",
        fields=["Id", "title"],
        filter=leaf("status", "eq", "To Do"),
        paging=Paging(limit=10, offset=10),
        order_by=[OrderBy("CreatedOn", "desc")],
    )

    assert result.total == 12
    assert result.data == [{"Id": 1, "title": "A"}]
    [sent] = session.sent
    assert sent["method"] == "POST"
    assert sent["url"] == "https://api.example.com/tables/task/query"
    assert sent["timeout"] == 5
    assert sent["json"] == {
        "fields": ["Id", "title"],
        "filter": {"field": "status", "operator": "eq", "value": "To Do"},
        "pagingInfo": {"limit": 10, "offset": 10},
        "orderBy": [{"field": "CreatedOn", "direction": "desc"}],
    }
    assert session.headers["X-Client-Id"] == "tasktrail"


def test_point_requests_map_404_to_not_found() -> None:
    service, _ = _service(FakeResponse(status_code=404, body={"message": "missing"}))

    with pytest.raises(NotFound):
        service.fetch_record("task", 9)


def test_empty_data_is_not_found() -> None:
    service, _ = _service(FakeResponse(body={"success": True, "data": None}))

    with pytest.raises(NotFound):
        service.fetch_record("task", 9)


def test_service_message_is_passed_through() -> None:
    service, _ = _service(FakeResponse(status_code=500, body={"message": "database offline"}))

    with pytest.raises(RemoteOperationFailed, match="database offline"):
        service.create_record("task", {"title": "A"})


def test_unsuccessful_envelope_fails() -> None:
    service, _ = _service(FakeResponse(body={"success": False, "message": "quota exceeded"}))

    with pytest.raises(RemoteOperationFailed, match="quota exceeded"):
        service.update_record("task", 1, {"completed": True})


def test_transport_errors_fail() -> None:
    service, _ = _service(requests.ConnectionError("no route to host"))

    with pytest.raises(RemoteOperationFailed, match="no route to host"):
        service.delete_record("task", 1)


def test_create_sends_record_envelope() -> None:
    service, session = _service(FakeResponse(status_code=201, body={"data": {"Id": 3, "title": "A"}}))

    created = service.create_record("task", {"title": "A"})

    assert created == {"Id": 3, "title": "A"}
    assert session.sent[0]["json"] == {"record": {"title": "A"}}
    assert session.sent[0]["url"].endswith("/tables/task/records")


def test_delete_accepts_empty_reply() -> None:
    service, session = _service(FakeResponse(status_code=204))

    service.delete_record("task_tag", 4)

    assert session.sent[0]["method"] == "DELETE"
    assert session.sent[0]["url"].endswith("/tables/task_tag/records/4")


def test_write_without_returned_record_fails() -> None:
    service, _ = _service(
        FakeResponse(body={"success": True}),
        FakeResponse(status_code=204),
    )

    with pytest.raises(RemoteOperationFailed, match="returned no record"):
        service.create_record("task", {"title": "A"})
    with pytest.raises(RemoteOperationFailed, match="returned no record"):
        service.update_record("task", 1, {"completed": True})
