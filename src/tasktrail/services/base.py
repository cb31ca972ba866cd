"""Service ports used by the gateway and the app.

The gateway and stores depend on these Protocols rather than on a concrete
backend, so the hosted HTTP service and the local SQLite service are
interchangeable and tests can substitute fakes.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Protocol

Record = dict[str, Any]
# Filter grammar:
#   leaf      {"field": str, "operator": "eq" | "contains", "value": Any}
#   composite {"and": [filter, ...]} or {"or": [filter, ...]}
Filter = dict[str, Any]

OPERATORS = ("eq", "contains")

TASK_TABLE = "task"
TAG_TABLE = "task_tag"
USER_TABLE = "user"


def leaf(field_name: str, operator: str, value: Any) -> Filter:
    """Build a single-field filter condition."""
    if operator not in OPERATORS:
        raise ValueError(f"Unsupported filter operator: {operator}")
    return {"field": field_name, "operator": operator, "value": value}


def all_of(*conditions: Filter) -> Filter:
    return {"and": list(conditions)}


def any_of(*conditions: Filter) -> Filter:
    return {"or": list(conditions)}


def matches(record: Record, condition: Filter | None) -> bool:
    """Evaluate a filter against a record in memory.

    Contains is a case-sensitive substring test. Missing fields never match.
    """
    if condition is None:
        return True
    if "and" in condition:
        return all(matches(record, c) for c in condition["and"])
    if "or" in condition:
        return any(matches(record, c) for c in condition["or"])
    value = record.get(condition["field"])
    if condition["operator"] == "eq":
        return value == condition["value"]
    if value is None:
        return False
    return str(condition["value"]) in str(value)


@dataclass
class Paging:
    """Limit/offset window for a fetch."""

    limit: int
    offset: int = 0


@dataclass
class OrderBy:
    field: str
    direction: str = "desc"


@dataclass
class FetchResult:
    """Rows returned by fetch_records plus the total matching row count."""

    data: list[Record] = field(default_factory=list)
    total: int = 0


class RecordService(Protocol):
    """Table-like CRUD storage.

    Implementations raise NotFound for missing ids and RemoteOperationFailed
    for any other failure.
    """

    def fetch_records(
        self,
        table: str,
        *,
        fields: list[str] | None = None,
        filter: Filter | None = None,
        paging: Paging | None = None,
        order_by: list[OrderBy] | None = None,
    ) -> FetchResult: ...

    def fetch_record(self, table: str, record_id: int) -> Record: ...

    def create_record(self, table: str, record: Record) -> Record: ...

    def update_record(self, table: str, record_id: int, record: Record) -> Record: ...

    def delete_record(self, table: str, record_id: int) -> None: ...


SuccessCallback = Callable[[Record, Record], None]
ErrorCallback = Callable[[Exception], None]


class IdentityService(Protocol):
    """Login/signup and session issuance.

    `target` is the mount point (a Textual container) the service renders
    its credential form into; success and error are reported through the
    callbacks given to setup().
    """

    def setup(
        self,
        target: Any,
        *,
        client_id: str,
        view: str,
        on_success: SuccessCallback,
        on_error: ErrorCallback,
    ) -> None: ...

    def show_login(self, target: Any) -> None: ...

    def show_signup(self, target: Any) -> None: ...

    def login(self, email: str, password: str) -> tuple[Record, Record]: ...

    def signup(
        self, email: str, password: str, first_name: str = "", last_name: str = ""
    ) -> tuple[Record, Record]: ...

    def resume(self, user: Record) -> None: ...

    def logout(self) -> None: ...
