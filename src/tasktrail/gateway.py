"""Task gateway: domain operations translated into record service calls."""

import asyncio
import logging
from datetime import date, datetime, timedelta, timezone
from enum import Enum
from typing import Any, Callable

from tasktrail.errors import (
    NotFound,
    RemoteOperationFailed,
    ServiceNotInitialized,
    TaskTrailError,
    ValidationError,
)
from tasktrail.models import (
    DEFAULT_CATEGORY,
    TAG_FIELDS,
    TASK_FIELDS,
    Pagination,
    TagColor,
    Task,
    TaskFilters,
    TaskPage,
    TaskPriority,
    TaskStatus,
    TaskTag,
)
from tasktrail.services.base import (
    TAG_TABLE,
    TASK_TABLE,
    Filter,
    OrderBy,
    Paging,
    RecordService,
    all_of,
    any_of,
    leaf,
)

logger = logging.getLogger(__name__)

TASK_DEFAULTS: dict[str, Any] = {
    "description": "",
    "status": TaskStatus.TODO.value,
    "priority": TaskPriority.MEDIUM.value,
    "category": DEFAULT_CATEGORY,
    "due_date": None,
    "completed": False,
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def build_task_filter(filters: TaskFilters | None) -> Filter | None:
    """Build the conjunctive record filter for the task list.

    Returns None when no filter is active so the service gets no filter at all.
    """
    if filters is None:
        return None
    conditions: list[Filter] = []
    if filters.status and filters.status != "all":
        conditions.append(leaf("status", "eq", filters.status))
    if filters.priority and filters.priority != "all":
        conditions.append(leaf("priority", "eq", filters.priority))
    if filters.category and filters.category != "all":
        conditions.append(leaf("category", "eq", filters.category))
    if filters.search_query:
        conditions.append(
            any_of(
                leaf("title", "contains", filters.search_query),
                leaf("description", "contains", filters.search_query),
            )
        )
    return all_of(*conditions) if conditions else None


def _serialize(fields: dict[str, Any]) -> dict[str, Any]:
    """Convert enums, dates and timestamps into record service values."""
    record: dict[str, Any] = {}
    for name, value in fields.items():
        if isinstance(value, Enum):
            value = value.value
        elif isinstance(value, (date, datetime)):
            value = value.isoformat()
        record[name] = value
    return record


class TaskGateway:
    """Async task CRUD over an injected record service.

    Each call is a single request/response exchange; the blocking service call
    runs in a worker thread. Failures are logged and re-raised unchanged; a
    record that cannot be decoded fails as RemoteOperationFailed.
    """

    def __init__(
        self,
        client: RecordService | None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.client = client
        self._clock = clock
        self._last_stamp: datetime | None = None

    def _require_client(self) -> RecordService:
        if self.client is None:
            raise ServiceNotInitialized()
        return self.client

    def _stamp(self) -> datetime:
        """Current time, nudged forward so stamps never repeat."""
        now = self._clock()
        if self._last_stamp is not None and now <= self._last_stamp:
            now = self._last_stamp + timedelta(microseconds=1)
        self._last_stamp = now
        return now

    async def _call(self, operation: str, func: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        try:
            return await asyncio.to_thread(func, *args, **kwargs)
        except NotFound:
            raise
        except TaskTrailError as e:
            logger.error("Error %s: %s", operation, e)
            raise

    def _decode(self, operation: str, decoder: Callable[[Any], Any], record: Any) -> Any:
        """Turn a service record into a model; malformed records fail the call."""
        try:
            return decoder(record)
        except (KeyError, ValueError, TypeError, AttributeError) as e:
            logger.error("Error %s: malformed record %r: %s", operation, record, e)
            raise RemoteOperationFailed(f"Malformed record while {operation}: {e}") from e

    async def list_tasks(
        self, filters: TaskFilters | None = None, pagination: Pagination | None = None
    ) -> TaskPage:
        """Fetch one page of tasks, newest first, with the total row count."""
        client = self._require_client()
        pagination = pagination or Pagination()
        result = await self._call(
            "fetching tasks",
            client.fetch_records,
            TASK_TABLE,
            fields=TASK_FIELDS,
            filter=build_task_filter(filters),
            paging=Paging(limit=pagination.limit, offset=pagination.offset),
            order_by=[OrderBy("CreatedOn", "desc")],
        )
        return TaskPage(
            items=[self._decode("fetching tasks", Task.from_record, r) for r in result.data],
            total=result.total,
        )

    async def get_task(self, task_id: int) -> Task:
        client = self._require_client()
        record = await self._call(f"fetching task {task_id}", client.fetch_record, TASK_TABLE, task_id)
        if not record:
            raise NotFound(TASK_TABLE, task_id)
        return self._decode(f"fetching task {task_id}", Task.from_record, record)

    async def list_tags(self, task_id: int) -> list[TaskTag]:
        """Tags attached to a task. An empty list is a valid answer."""
        client = self._require_client()
        result = await self._call(
            f"fetching tags for task {task_id}",
            client.fetch_records,
            TAG_TABLE,
            fields=TAG_FIELDS,
            filter=leaf("task_id", "eq", task_id),
        )
        operation = f"fetching tags for task {task_id}"
        return [self._decode(operation, TaskTag.from_record, r) for r in result.data]

    async def create_task(self, task_input: dict[str, Any]) -> Task:
        """Create a task, filling defaults for unset optional fields."""
        client = self._require_client()
        record = dict(TASK_DEFAULTS)
        record.update({k: v for k, v in task_input.items() if v is not None and v != ""})
        record["title"] = str(record.get("title", "")).strip()
        if not record["title"]:
            raise ValidationError({"title": "Title is required"})
        stamp = self._stamp()
        record["created_at"] = stamp
        record["updated_at"] = stamp
        created = await self._call("creating task", client.create_record, TASK_TABLE, _serialize(record))
        task = self._decode("creating task", Task.from_record, created)
        logger.info("Created task %s", task.id)
        return task

    async def update_task(self, task_id: int, fields: dict[str, Any]) -> Task:
        """Replace only the given fields; updated_at is always refreshed."""
        client = self._require_client()
        record = dict(fields)
        record.pop("Id", None)
        record.pop("created_at", None)
        if "title" in record:
            record["title"] = str(record["title"] or "").strip()
            if not record["title"]:
                raise ValidationError({"title": "Title is required"})
        record["updated_at"] = self._stamp()
        updated = await self._call(
            f"updating task {task_id}", client.update_record, TASK_TABLE, task_id, _serialize(record)
        )
        return self._decode(f"updating task {task_id}", Task.from_record, updated)

    async def delete_task(self, task_id: int, cascade_tags: bool = True) -> None:
        """Hard-delete a task, then its tags.

        Tag cleanup runs only after the task is gone; a failure there leaves
        orphaned tags behind and is logged rather than raised.
        """
        client = self._require_client()
        await self._call(f"deleting task {task_id}", client.delete_record, TASK_TABLE, task_id)
        logger.info("Deleted task %s", task_id)
        if not cascade_tags:
            return
        try:
            tags = await self.list_tags(task_id)
            for tag in tags:
                await self.delete_tag(tag.id)
        except TaskTrailError as e:
            logger.warning("Tags of deleted task %s were not cleaned up: %s", task_id, e)

    async def create_tag(
        self, task_id: int, tag_name: str, color: TagColor | str = TagColor.GRAY
    ) -> TaskTag:
        client = self._require_client()
        record = _serialize({"task_id": task_id, "tag_name": tag_name, "color": color})
        created = await self._call("creating task tag", client.create_record, TAG_TABLE, record)
        return self._decode("creating task tag", TaskTag.from_record, created)

    async def delete_tag(self, tag_id: int) -> None:
        client = self._require_client()
        await self._call(f"deleting task tag {tag_id}", client.delete_record, TAG_TABLE, tag_id)
