# tests/fakes.py

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any

from tasktrail.errors import NotFound, RemoteOperationFailed
from tasktrail.services.base import FetchResult, Filter, OrderBy, Paging, Record, matches


class FakeClock:
    """Deterministic clock for the gateway's timestamps."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2026, 1, 5, 9, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **delta: float) -> None:
        self.now += timedelta(**delta)


class InMemoryRecordService:
    """
    RecordService keeping rows in dicts, with failure injection.

    Operations named in fail_on raise RemoteOperationFailed. Names are either
    "<method>" or "<method>:<table>", e.g. "delete_record:task_tag".
    Writes still happen for methods named in replies, but the caller gets
    the canned reply instead of the stored row.
    """

    def __init__(self, fail_on: set[str] | None = None) -> None:
        self.tables: dict[str, dict[int, Record]] = {}
        self.fail_on = set(fail_on or ())
        self.calls: list[tuple[str, str]] = []
        self.replies: dict[str, Any] = {}
        self._next_id = 1

    def _enter(self, method: str, table: str) -> dict[int, Record]:
        self.calls.append((method, table))
        if method in self.fail_on or f"{method}:{table}" in self.fail_on:
            raise RemoteOperationFailed(f"{method} on {table} failed")
        return self.tables.setdefault(table, {})

    def fetch_records(
        self,
        table: str,
        *,
        fields: list[str] | None = None,
        filter: Filter | None = None,
        paging: Paging | None = None,
        order_by: list[OrderBy] | None = None,
    ) -> FetchResult:
        rows = [r for r in self._enter("fetch_records", table).values() if matches(r, filter)]
        # Newest first, like the services' CreatedOn desc ordering
        rows.sort(key=lambda r: r["Id"], reverse=True)
        total = len(rows)
        if paging is not None:
            rows = rows[paging.offset : paging.offset + paging.limit]
        return FetchResult(data=[dict(r) for r in rows], total=total)

    def fetch_record(self, table: str, record_id: int) -> Record:
        rows = self._enter("fetch_record", table)
        if record_id not in rows:
            raise NotFound(table, record_id)
        return dict(rows[record_id])

    def create_record(self, table: str, record: Record) -> Record:
        rows = self._enter("create_record", table)
        record_id = self._next_id
        self._next_id += 1
        rows[record_id] = {**record, "Id": record_id}
        if "create_record" in self.replies:
            return self.replies["create_record"]
        return dict(rows[record_id])

    def update_record(self, table: str, record_id: int, record: Record) -> Record:
        rows = self._enter("update_record", table)
        if record_id not in rows:
            raise NotFound(table, record_id)
        rows[record_id].update(record)
        if "update_record" in self.replies:
            return self.replies["update_record"]
        return dict(rows[record_id])

    def delete_record(self, table: str, record_id: int) -> None:
        rows = self._enter("delete_record", table)
        if rows.pop(record_id, None) is None:
            raise NotFound(table, record_id)


class FakeIdentityService:
    """Identity service that records logout calls and can be told to fail."""

    def __init__(self, error: Exception | None = None) -> None:
        self.error = error
        self.logouts = 0
        self.resumed: list[Record] = []

    def setup(self, target, *, client_id, view, on_success, on_error) -> None:
        pass

    def show_login(self, target) -> None:
        pass

    def show_signup(self, target) -> None:
        pass

    def login(self, email: str, password: str) -> tuple[Record, Record]:
        return {"Id": 1, "Email": email}, {}

    def signup(self, email, password, first_name="", last_name=""):
        return {"Id": 1, "Email": email, "FirstName": first_name, "LastName": last_name}, {}

    def resume(self, user: Record) -> None:
        self.resumed.append(user)

    def logout(self) -> None:
        self.logouts += 1
        if self.error is not None:
            raise self.error


@dataclass
class FakeResponse:
    status_code: int = 200
    body: Any = None
    text: str = ""

    @property
    def ok(self) -> bool:
        return self.status_code < 400

    @property
    def content(self) -> bytes:
        return b"" if self.body is None and not self.text else b"x"

    def json(self) -> Any:
        if self.body is None:
            raise ValueError("No JSON body")
        return self.body


@dataclass
class FakeSession:
    """Stands in for requests.Session; replies are queued per test."""

    responses: list[Any] = field(default_factory=list)
    headers: dict[str, str] = field(default_factory=dict)
    sent: list[dict[str, Any]] = field(default_factory=list)

    def request(self, method: str, url: str, json: Any = None, timeout: float | None = None):
        self.sent.append({"method": method, "url": url, "json": json, "timeout": timeout})
        reply = self.responses.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply

    def post(self, url: str, json: Any = None, timeout: float | None = None):
        return self.request("POST", url, json=json, timeout=timeout)
