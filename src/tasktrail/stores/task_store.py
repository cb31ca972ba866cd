"""Observable in-memory task state."""

import logging
from dataclasses import replace
from typing import Any, Callable

from tasktrail.models import Pagination, Task, TaskFilters

logger = logging.getLogger(__name__)

Listener = Callable[["TaskStore"], None]


class TaskStore:
    """Holds the task list, selection, filters, pagination and load status.

    Tasks live in an insertion-ordered dict keyed by id, so the list can never
    hold two entries for one id. Only the event loop thread writes to the
    store; every transition notifies subscribers synchronously.

    List fetches are sequenced: begin_request() returns a token and any
    result delivered with an older token than the latest one is dropped.
    """

    def __init__(self, page_size: int = 10) -> None:
        self._page_size = page_size
        self._listeners: list[Listener] = []
        self._latest_request = 0
        self._initial_state()

    def _initial_state(self) -> None:
        self._tasks: dict[int, Task] = {}
        self.current_task: Task | None = None
        self.is_loading = False
        self.error: str | None = None
        self.filters = TaskFilters()
        self.pagination = Pagination(limit=self._page_size)

    @property
    def tasks(self) -> list[Task]:
        """Tasks in display order (last fetch order, new tasks first)."""
        return list(self._tasks.values())

    def get(self, task_id: int) -> Task | None:
        return self._tasks.get(task_id)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a change listener. Returns a function that unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)

    def _is_stale(self, request_id: int | None) -> bool:
        if request_id is not None and request_id < self._latest_request:
            logger.debug(
                "Dropping stale response %s (latest %s)", request_id, self._latest_request
            )
            return True
        return False

    def is_current(self, request_id: int) -> bool:
        """True while no newer list fetch has been started."""
        return request_id >= self._latest_request

    def begin_request(self) -> int:
        """Start a list fetch: mark loading and return its sequence token."""
        self._latest_request += 1
        self.is_loading = True
        self._notify()
        return self._latest_request

    def set_tasks(self, tasks: list[Task], request_id: int | None = None) -> None:
        if self._is_stale(request_id):
            return
        self._tasks = {task.id: task for task in tasks}
        self.is_loading = False
        self.error = None
        self._notify()

    def set_current_task(self, task: Task | None) -> None:
        """Select a task. It does not have to be in the current list."""
        self.current_task = task
        self._notify()

    def add_task(self, task: Task) -> None:
        """Insert a task at the front of the list."""
        rest = {k: v for k, v in self._tasks.items() if k != task.id}
        self._tasks = {task.id: task, **rest}
        self._notify()

    def update_task(self, task: Task) -> None:
        """Replace a task in place, keeping its position."""
        if task.id in self._tasks:
            self._tasks[task.id] = task
        if self.current_task is not None and self.current_task.id == task.id:
            self.current_task = task
        self._notify()

    def remove_task(self, task_id: int) -> None:
        self._tasks.pop(task_id, None)
        if self.current_task is not None and self.current_task.id == task_id:
            self.current_task = None
        self._notify()

    def set_loading(self, is_loading: bool) -> None:
        self.is_loading = is_loading
        self._notify()

    def set_error(self, message: str | None, request_id: int | None = None) -> None:
        """Record an error message; this also ends any loading state."""
        if self._is_stale(request_id):
            return
        self.error = message
        self.is_loading = False
        self._notify()

    def set_filters(self, **changes: Any) -> None:
        self.filters = replace(self.filters, **changes)
        self._notify()

    def set_pagination(self, request_id: int | None = None, **changes: Any) -> None:
        if self._is_stale(request_id):
            return
        self.pagination = replace(self.pagination, **changes)
        self._notify()

    def reset(self) -> None:
        """Return to the initial state (used on logout)."""
        self._initial_state()
        self._notify()
