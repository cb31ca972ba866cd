# tests/test_dashboard.py

from datetime import date, timedelta

import pytest

from tasktrail.dashboard import Dashboard
from tasktrail.errors import AuthenticationError, RemoteOperationFailed, ValidationError
from tasktrail.gateway import TaskGateway
from tasktrail.models import TaskStatus, User
from tasktrail.stores.task_store import TaskStore
from tasktrail.stores.user_store import UserStore

from .fakes import FakeIdentityService, InMemoryRecordService


async def _yes() -> bool:
    return True


async def _no() -> bool:
    return False


@pytest.mark.asyncio
async def test_buy_milk_lifecycle(dashboard: Dashboard, task_store: TaskStore) -> None:
    task = await dashboard.submit({"title": "Buy milk"})

    assert [t.title for t in task_store.tasks] == ["Buy milk"]
    assert task_store.pagination.total == 1
    assert task.completed is False
    assert task.status is TaskStatus.TODO

    dashboard.select_task(task)
    toggled = await dashboard.toggle_complete(task)
    assert toggled.completed is True
    assert task_store.tasks[0].completed is True
    assert task_store.current_task.completed is True

    assert await dashboard.delete_task(task.id, _yes) is True
    assert task_store.tasks == []
    assert task_store.current_task is None
    assert task_store.pagination.total == 0

    await dashboard.load_tasks()
    assert task_store.tasks == []


@pytest.mark.asyncio
async def test_declined_delete_keeps_task(dashboard: Dashboard, task_store: TaskStore, gateway) -> None:
    task = await dashboard.submit({"title": "Keep me"})

    assert await dashboard.delete_task(task.id, _no) is False

    assert [t.id for t in task_store.tasks] == [task.id]
    assert (await gateway.get_task(task.id)).title == "Keep me"


@pytest.mark.asyncio
async def test_invalid_form_never_reaches_the_service(task_store: TaskStore, user_store: UserStore, clock) -> None:
    service = InMemoryRecordService()
    dashboard = Dashboard(TaskGateway(service, clock=clock), task_store, user_store)

    with pytest.raises(ValidationError) as exc:
        await dashboard.submit(
            {"title": " ", "due_date": (date.today() - timedelta(days=1)).isoformat()}
        )

    assert set(exc.value.errors) == {"title", "due_date"}
    assert service.calls == []
    assert task_store.tasks == []


@pytest.mark.asyncio
async def test_editing_an_overdue_task_is_allowed(dashboard: Dashboard, gateway, task_store: TaskStore) -> None:
    past = date.today() - timedelta(days=10)
    task = await gateway.create_task({"title": "Late", "due_date": past})
    await dashboard.load_tasks()

    updated = await dashboard.submit(
        {"title": "Late but renamed", "due_date": past.isoformat()}, editing=task
    )

    assert updated.due_date == past
    assert task_store.tasks[0].title == "Late but renamed"
    assert task_store.pagination.total == 1


@pytest.mark.asyncio
async def test_load_failure_sets_list_error(task_store: TaskStore, user_store: UserStore, clock) -> None:
    service = InMemoryRecordService(fail_on={"fetch_records"})
    dashboard = Dashboard(TaskGateway(service, clock=clock), task_store, user_store)

    await dashboard.load_tasks()

    assert "fetch_records" in task_store.error
    assert task_store.is_loading is False


@pytest.mark.asyncio
async def test_failed_toggle_sets_error_and_keeps_task(task_store: TaskStore, user_store: UserStore, clock) -> None:
    service = InMemoryRecordService()
    dashboard = Dashboard(TaskGateway(service, clock=clock), task_store, user_store)
    task = await dashboard.submit({"title": "Flaky"})
    service.fail_on.add("update_record")

    assert await dashboard.toggle_complete(task) is None

    assert task_store.error.startswith("Could not update task")
    assert task_store.tasks[0].completed is False


@pytest.mark.asyncio
async def test_changing_filters_returns_to_first_page(dashboard: Dashboard, gateway, task_store: TaskStore) -> None:
    for i in range(15):
        await gateway.create_task({"title": f"Task {i}", "priority": "High" if i < 3 else "Low"})
    await dashboard.load_tasks()
    await dashboard.change_page(2)
    assert task_store.pagination.page == 2

    await dashboard.apply_filters(priority="High")

    assert task_store.pagination.page == 1
    assert task_store.pagination.total == 3
    assert len(task_store.tasks) == 3


@pytest.mark.asyncio
async def test_change_page_is_clamped(dashboard: Dashboard, gateway, task_store: TaskStore) -> None:
    for i in range(25):
        await gateway.create_task({"title": f"Task {i}"})
    await dashboard.load_tasks()

    await dashboard.change_page(99)
    assert task_store.pagination.page == 3
    assert len(task_store.tasks) == 5

    await dashboard.change_page(0)
    assert task_store.pagination.page == 1
    assert len(task_store.tasks) == 10


@pytest.mark.asyncio
async def test_deleting_last_item_of_last_page_moves_back(dashboard: Dashboard, gateway, task_store: TaskStore) -> None:
    for i in range(11):
        await gateway.create_task({"title": f"Task {i}"})
    await dashboard.load_tasks()
    await dashboard.change_page(2)
    [only] = task_store.tasks

    await dashboard.delete_task(only.id, _yes)

    assert task_store.pagination.page == 1
    assert task_store.pagination.total == 10
    assert len(task_store.tasks) == 10


def test_edit_clears_selection(dashboard: Dashboard, task_store: TaskStore) -> None:
    from tasktrail.models import Task

    task = Task(id=1, title="Open me")
    dashboard.select_task(task)

    assert dashboard.edit_task(task) is task
    assert task_store.current_task is None
    assert dashboard.add_task() is None


@pytest.mark.asyncio
async def test_tags_need_a_name(dashboard: Dashboard) -> None:
    task = await dashboard.submit({"title": "Tagged"})

    with pytest.raises(ValidationError):
        await dashboard.add_tag(task.id, "  ", "red")

    tag = await dashboard.add_tag(task.id, " home ", "green")
    assert tag.tag_name == "home"
    assert [t.id for t in await dashboard.load_tags(task.id)] == [tag.id]

    await dashboard.remove_tag(tag.id)
    assert await dashboard.load_tags(task.id) == []


@pytest.mark.asyncio
async def test_logout_clears_user_and_tasks(
    dashboard: Dashboard, identity: FakeIdentityService, user_store: UserStore, task_store: TaskStore
) -> None:
    user_store.set_user(User(id=1, email="ada@example.com"))
    await dashboard.submit({"title": "Private"})

    await dashboard.logout()

    assert identity.logouts == 1
    assert user_store.is_authenticated is False
    assert task_store.tasks == []


@pytest.mark.asyncio
async def test_logout_failure_keeps_session(
    gateway, task_store: TaskStore, user_store: UserStore
) -> None:
    identity = FakeIdentityService(error=AuthenticationError("service down"))
    dashboard = Dashboard(gateway, task_store, user_store, identity)
    user_store.set_user(User(id=1, email="ada@example.com"))

    with pytest.raises(AuthenticationError):
        await dashboard.logout()

    assert user_store.is_authenticated is True


@pytest.mark.asyncio
async def test_undecodable_page_sets_error_and_keeps_list(task_store: TaskStore, user_store: UserStore, clock) -> None:
    service = InMemoryRecordService()
    dashboard = Dashboard(TaskGateway(service, clock=clock), task_store, user_store)
    kept = await dashboard.submit({"title": "Fine"})
    service.tables["task"][99] = {"Id": 99, "title": "Odd", "status": "Done"}

    await dashboard.load_tasks()

    assert task_store.is_loading is False
    assert "Malformed record" in task_store.error
    assert [t.id for t in task_store.tasks] == [kept.id]
    assert task_store.pagination.total == 1


@pytest.mark.asyncio
async def test_bad_write_replies_leave_the_store_alone(task_store: TaskStore, user_store: UserStore, clock) -> None:
    service = InMemoryRecordService()
    dashboard = Dashboard(TaskGateway(service, clock=clock), task_store, user_store)
    task = await dashboard.submit({"title": "Steady"})

    service.replies["create_record"] = {"title": "no id"}
    with pytest.raises(RemoteOperationFailed):
        await dashboard.submit({"title": "Another"})
    assert [t.id for t in task_store.tasks] == [task.id]
    assert task_store.pagination.total == 1

    service.replies["update_record"] = {"Id": task.id, "title": "Steady", "priority": "Someday"}
    assert await dashboard.toggle_complete(task) is None
    assert task_store.error.startswith("Could not update task")
    assert task_store.tasks[0].completed is False


@pytest.mark.asyncio
async def test_reload_moves_back_when_rows_vanish(task_store: TaskStore, user_store: UserStore, clock) -> None:
    service = InMemoryRecordService()
    gateway = TaskGateway(service, clock=clock)
    dashboard = Dashboard(gateway, task_store, user_store)
    for i in range(25):
        await gateway.create_task({"title": f"Task {i}"})
    await dashboard.load_tasks()
    await dashboard.change_page(3)
    for record_id in list(service.tables["task"])[3:]:
        del service.tables["task"][record_id]

    await dashboard.load_tasks()

    pagination = task_store.pagination
    assert pagination.total == 3
    assert pagination.page == 1
    assert pagination.page <= pagination.page_count
    assert len(task_store.tasks) == 3
    assert task_store.is_loading is False


@pytest.mark.asyncio
async def test_delete_backfills_from_the_next_page(dashboard: Dashboard, gateway, task_store: TaskStore) -> None:
    for i in range(12):
        await gateway.create_task({"title": f"Task {i}"})
    await dashboard.load_tasks()
    first = task_store.tasks[0]

    await dashboard.delete_task(first.id, _yes)

    assert task_store.pagination.page == 1
    assert task_store.pagination.total == 11
    assert len(task_store.tasks) == 10
    assert first.id not in [t.id for t in task_store.tasks]
