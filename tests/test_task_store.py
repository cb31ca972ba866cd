# tests/test_task_store.py

from tasktrail.models import Pagination, Task, TaskFilters
from tasktrail.stores.task_store import TaskStore


def _task(task_id: int, title: str = "", **extra) -> Task:
    return Task(id=task_id, title=title or f"Task {task_id}", **extra)


def test_add_task_inserts_at_front_without_duplicates(task_store: TaskStore) -> None:
    task_store.set_tasks([_task(1), _task(2)])

    task_store.add_task(_task(3))
    assert [t.id for t in task_store.tasks] == [3, 1, 2]

    task_store.add_task(_task(2, "Moved"))
    assert [t.id for t in task_store.tasks] == [2, 3, 1]
    assert task_store.get(2).title == "Moved"


def test_update_task_keeps_position_and_refreshes_selection(task_store: TaskStore) -> None:
    task_store.set_tasks([_task(1), _task(2), _task(3)])
    task_store.set_current_task(_task(2))

    task_store.update_task(_task(2, "Renamed", completed=True))

    assert [t.id for t in task_store.tasks] == [1, 2, 3]
    assert task_store.tasks[1].title == "Renamed"
    assert task_store.current_task.completed is True


def test_remove_task_clears_matching_selection(task_store: TaskStore) -> None:
    task_store.set_tasks([_task(1), _task(2)])
    task_store.set_current_task(_task(1))

    task_store.remove_task(2)
    assert task_store.current_task is not None

    task_store.remove_task(1)
    assert task_store.tasks == []
    assert task_store.current_task is None


def test_stale_responses_are_dropped(task_store: TaskStore) -> None:
    older = task_store.begin_request()
    newer = task_store.begin_request()
    assert task_store.is_loading is True

    task_store.set_pagination(request_id=newer, total=1)
    task_store.set_tasks([_task(2)], request_id=newer)
    task_store.set_pagination(request_id=older, total=50)
    task_store.set_tasks([_task(1)], request_id=older)
    task_store.set_error("late failure", request_id=older)

    assert [t.id for t in task_store.tasks] == [2]
    assert task_store.pagination.total == 1
    assert task_store.error is None
    assert task_store.is_loading is False


def test_set_error_ends_loading(task_store: TaskStore) -> None:
    request = task_store.begin_request()
    task_store.set_error("Failed to load tasks", request_id=request)

    assert task_store.error == "Failed to load tasks"
    assert task_store.is_loading is False


def test_filters_and_pagination_are_merged(task_store: TaskStore) -> None:
    task_store.set_filters(status="Completed")
    task_store.set_filters(search_query="milk")
    task_store.set_pagination(page=2, total=30)

    assert task_store.filters == TaskFilters(status="Completed", search_query="milk")
    assert task_store.pagination == Pagination(page=2, limit=10, total=30)


def test_subscribers_are_notified_until_unsubscribed(task_store: TaskStore) -> None:
    seen: list[int] = []
    unsubscribe = task_store.subscribe(lambda store: seen.append(len(store.tasks)))

    task_store.set_tasks([_task(1)])
    task_store.add_task(_task(2))
    unsubscribe()
    task_store.add_task(_task(3))

    assert seen == [1, 2]


def test_reset_restores_initial_state() -> None:
    store = TaskStore(page_size=5)
    store.set_tasks([_task(1)])
    store.set_current_task(_task(1))
    store.set_filters(priority="High")
    store.set_pagination(page=3, total=20)
    store.set_error("boom")

    store.reset()

    assert store.tasks == []
    assert store.current_task is None
    assert store.error is None
    assert store.filters == TaskFilters()
    assert store.pagination == Pagination(page=1, limit=5, total=0)
