"""Main dashboard screen: task list, detail pane and task dialogs."""

import logging
from typing import Any, Callable

from textual import work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.screen import Screen
from textual.widgets import Footer, Header, Static

from tasktrail.dashboard import Dashboard
from tasktrail.errors import TaskTrailError, ValidationError
from tasktrail.models import Task, TaskTag
from tasktrail.screens.dialogs import ConfirmDialog
from tasktrail.screens.task_form import TaskFormModal
from tasktrail.stores.task_store import TaskStore
from tasktrail.widgets import TaskDetailView, TaskListView
from tasktrail.widgets.task_detail import DetailClosed, TagAddRequested, TagRemoveRequested
from tasktrail.widgets.task_list import (
    AddTaskRequested,
    FiltersChanged,
    PageChangeRequested,
    TaskDeleteRequested,
    TaskEditRequested,
    TaskSelected,
    TaskToggleRequested,
)

logger = logging.getLogger(__name__)


class DashboardScreen(Screen):
    """Renders the task store and turns user intents into dashboard calls."""

    CSS = """
    DashboardScreen #dashboard-body {
        height: 1fr;
    }

    DashboardScreen #list-pane {
        width: 3fr;
        padding: 0 1;
    }

    DashboardScreen #side-pane {
        width: 2fr;
        padding: 0 1;
    }

    DashboardScreen #detail-empty {
        height: 1fr;
        content-align: center middle;
        color: $text-muted;
        border: dashed $primary-muted;
    }

    DashboardScreen .hidden {
        display: none;
    }
    """

    BINDINGS = [
        Binding("a", "add_task", "Add"),
        Binding("r", "refresh", "Refresh"),
        Binding("n", "next_page", "Next page"),
        Binding("p", "prev_page", "Prev page"),
        Binding("slash", "search", "Search"),
        Binding("f", "toggle_filters", "Filters"),
        Binding("escape", "close_detail", "Close", show=False),
        Binding("ctrl+o", "logout", "Logout"),
    ]

    def __init__(self, dashboard: Dashboard) -> None:
        super().__init__()
        self._dashboard = dashboard
        self._filters_visible = True
        self._shown_task_id: int | None = None
        self._unsubscribe: Callable[[], None] | None = None

    @property
    def store(self) -> TaskStore:
        return self._dashboard.tasks

    def compose(self) -> ComposeResult:
        yield Header()
        with Horizontal(id="dashboard-body"):
            with Vertical(id="list-pane"):
                yield TaskListView()
            with Vertical(id="side-pane"):
                yield Static(
                    "Select a task to see its details, or press 'a' to create one.",
                    id="detail-empty",
                )
                yield TaskDetailView()
        yield Footer()

    def on_mount(self) -> None:
        user = self._dashboard.users.user
        self.sub_title = user.name if user is not None else ""
        self.query_one("#task-detail", TaskDetailView).add_class("hidden")
        self._unsubscribe = self.store.subscribe(self._on_store_changed)
        self._sync_view(self.store)
        self.query_one(TaskListView).focus_list()
        self._load_tasks()

    def on_unmount(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def _on_store_changed(self, store: TaskStore) -> None:
        if self.is_attached:
            self._sync_view(store)

    def _sync_view(self, store: TaskStore) -> None:
        self.query_one(TaskListView).render_state(store)
        detail = self.query_one("#task-detail", TaskDetailView)
        empty = self.query_one("#detail-empty", Static)
        current = store.current_task
        if current is None:
            self._shown_task_id = None
            detail.add_class("hidden")
            empty.remove_class("hidden")
            return
        empty.add_class("hidden")
        detail.remove_class("hidden")
        detail.show_task(current)
        if current.id != self._shown_task_id:
            self._shown_task_id = current.id
            self._load_tags(current.id)

    # Workers

    @work(exclusive=True, group="task-list")
    async def _load_tasks(self) -> None:
        await self._dashboard.load_tasks()

    @work(exclusive=True, group="task-list")
    async def _apply_filters(self, changes: dict[str, Any]) -> None:
        await self._dashboard.apply_filters(**changes)

    @work(exclusive=True, group="task-list")
    async def _change_page(self, page: int) -> None:
        await self._dashboard.change_page(page)

    @work(group="task-write")
    async def _toggle(self, task: Task) -> None:
        await self._dashboard.toggle_complete(task)

    @work(group="task-write")
    async def _delete(self, task: Task) -> None:
        async def confirm() -> bool:
            return bool(
                await self.app.push_screen_wait(
                    ConfirmDialog(
                        "Delete Task",
                        f"Delete '{task.title}'? This also removes its tags.",
                    )
                )
            )

        if await self._dashboard.delete_task(task.id, confirm):
            self.notify(f"Deleted '{task.title}'")
            self.query_one(TaskListView).focus_list()

    @work(exclusive=True, group="tags")
    async def _load_tags(self, task_id: int) -> None:
        detail = self.query_one("#task-detail", TaskDetailView)
        try:
            tags = await self._dashboard.load_tags(task_id)
        except TaskTrailError as e:
            logger.warning("Failed to load tags for task %s: %s", task_id, e)
            if self._shown_task_id == task_id:
                detail.show_tags_error("Failed to load task tags")
            return
        if self._shown_task_id == task_id:
            detail.show_tags(tags)

    @work(group="tag-write")
    async def _add_tag(self, task_id: int, tag_name: str, color: str) -> None:
        try:
            await self._dashboard.add_tag(task_id, tag_name, color)
        except ValidationError as e:
            self.notify("; ".join(e.errors.values()), severity="warning")
            return
        except TaskTrailError as e:
            self.notify(f"Could not add tag: {e}", severity="error")
            return
        self._load_tags(task_id)

    @work(group="tag-write")
    async def _remove_tag(self, tag: TaskTag) -> None:
        try:
            await self._dashboard.remove_tag(tag.id)
        except TaskTrailError as e:
            self.notify(f"Could not remove tag: {e}", severity="error")
            return
        self._load_tags(tag.task_id)

    @work(exclusive=True, group="session")
    async def _logout(self) -> None:
        try:
            await self._dashboard.logout()
        except TaskTrailError as e:
            self.notify(f"Logout failed: {e}", severity="error")

    # Forms

    def _open_form(self, task: Task | None) -> None:
        def on_submit(data: dict[str, Any]):
            return self._dashboard.submit(data, editing=task)

        def on_dismiss(saved: Task | None) -> None:
            if saved is not None:
                self.notify(f"Saved '{saved.title}'")
            self.query_one(TaskListView).focus_list()

        self.app.push_screen(TaskFormModal(on_submit, task), on_dismiss)

    # Message handlers

    def on_task_selected(self, message: TaskSelected) -> None:
        self._dashboard.select_task(message.task_data)

    def on_task_edit_requested(self, message: TaskEditRequested) -> None:
        self._open_form(self._dashboard.edit_task(message.task_data))

    def on_add_task_requested(self, message: AddTaskRequested) -> None:
        self.action_add_task()

    def on_task_delete_requested(self, message: TaskDeleteRequested) -> None:
        self._delete(message.task_data)

    def on_task_toggle_requested(self, message: TaskToggleRequested) -> None:
        self._toggle(message.task_data)

    def on_filters_changed(self, message: FiltersChanged) -> None:
        current = self.store.filters
        changes = {
            key: value
            for key, value in message.changes.items()
            if getattr(current, key) != value
        }
        if changes:
            self._apply_filters(changes)

    def on_page_change_requested(self, message: PageChangeRequested) -> None:
        self._change_page(message.page)

    def on_detail_closed(self, message: DetailClosed) -> None:
        self.action_close_detail()

    def on_tag_add_requested(self, message: TagAddRequested) -> None:
        self._add_tag(message.task_id, message.tag_name, message.color)

    def on_tag_remove_requested(self, message: TagRemoveRequested) -> None:
        self._remove_tag(message.tag)

    # Actions

    def action_add_task(self) -> None:
        self._open_form(self._dashboard.add_task())

    def action_refresh(self) -> None:
        self._load_tasks()

    def action_next_page(self) -> None:
        self._change_page(self.store.pagination.page + 1)

    def action_prev_page(self) -> None:
        self._change_page(self.store.pagination.page - 1)

    def action_search(self) -> None:
        self._filters_visible = True
        self.query_one(TaskListView).focus_search()

    def action_toggle_filters(self) -> None:
        self._filters_visible = not self._filters_visible
        view = self.query_one(TaskListView)
        view.show_filters(self._filters_visible)
        if not self._filters_visible:
            view.focus_list()

    def action_close_detail(self) -> None:
        self._dashboard.close_detail()
        self.query_one(TaskListView).focus_list()

    def action_logout(self) -> None:
        self._logout()
