"""Task list widget with filter bar and pagination."""

from typing import Any

from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.message import Message
from textual.widgets import Button, Input, ListItem, ListView, LoadingIndicator, Select, Static

from tasktrail.models import CATEGORIES, Task, TaskPriority, TaskStatus
from tasktrail.stores.task_store import TaskStore
from tasktrail.utils import PRIORITY_MARKERS, completion_indicator, format_due_date


class TaskSelected(Message):
    """Message sent when a task is chosen for the detail pane."""

    def __init__(self, task: Task) -> None:
        self.task_data = task
        super().__init__()


class TaskToggleRequested(Message):
    """Message sent when a task's completed flag should flip."""

    def __init__(self, task: Task) -> None:
        self.task_data = task
        super().__init__()


class TaskEditRequested(Message):
    """Message sent when a task should open in the form."""

    def __init__(self, task: Task) -> None:
        self.task_data = task
        super().__init__()


class TaskDeleteRequested(Message):
    """Message sent when a task should be deleted (after confirmation)."""

    def __init__(self, task: Task) -> None:
        self.task_data = task
        super().__init__()


class AddTaskRequested(Message):
    """Message sent when the blank task form should open."""

    pass


class PageChangeRequested(Message):
    """Message sent to move to another page."""

    def __init__(self, page: int) -> None:
        self.page = page
        super().__init__()


class FiltersChanged(Message):
    """Message sent when a filter control changes."""

    def __init__(self, **changes: Any) -> None:
        self.changes = changes
        super().__init__()


class TaskListItem(ListItem):
    """A single task row."""

    def __init__(self, task: Task) -> None:
        self._task_data = task
        super().__init__()
        if task.completed:
            self.add_class("-completed")
        if task.is_overdue:
            self.add_class("-overdue")

    @property
    def task_data(self) -> Task:
        return self._task_data

    def compose(self) -> ComposeResult:
        task = self._task_data
        marker = PRIORITY_MARKERS.get(task.priority, " ")
        due = format_due_date(task.due_date)
        suffix = f"  [{task.category}]"
        if due:
            suffix += f"  {due}"
        yield Static(
            f"{completion_indicator(task)} {marker} {task.title}{suffix}", markup=False
        )


class TaskList(ListView):
    """ListView for displaying tasks with j/k navigation."""

    BINDINGS = [
        Binding("j", "cursor_down", "Down", show=False),
        Binding("k", "cursor_up", "Up", show=False),
        Binding("space", "toggle_complete", "Toggle done", show=True),
        Binding("e", "edit_task", "Edit", show=True),
        Binding("d", "delete_task", "Delete", show=True),
    ]

    DEFAULT_CSS = """
    TaskList {
        height: 1fr;
    }

    TaskList:focus > TaskListItem.-highlight {
        background: $accent;
    }

    TaskList > TaskListItem.-highlight {
        background: $surface;
    }

    TaskList > TaskListItem {
        height: auto;
        padding: 0 1;
    }

    TaskList > TaskListItem.-completed Static {
        text-style: strike;
        color: $text-muted;
    }

    TaskList > TaskListItem.-overdue Static {
        color: $error;
    }
    """

    def get_selected_task(self) -> Task | None:
        """Return the currently highlighted task, or None if no task is selected."""
        if self.highlighted_child and isinstance(self.highlighted_child, TaskListItem):
            return self.highlighted_child.task_data
        return None

    def action_toggle_complete(self) -> None:
        task = self.get_selected_task()
        if task is not None:
            self.post_message(TaskToggleRequested(task))

    def action_edit_task(self) -> None:
        task = self.get_selected_task()
        if task is not None:
            self.post_message(TaskEditRequested(task))

    def action_delete_task(self) -> None:
        task = self.get_selected_task()
        if task is not None:
            self.post_message(TaskDeleteRequested(task))


def _options(values: list[str], all_label: str) -> list[tuple[str, str]]:
    return [(all_label, "all")] + [(v, v) for v in values]


class FilterBar(Horizontal):
    """Status/priority/category selects and a search box."""

    DEFAULT_CSS = """
    FilterBar {
        height: auto;
        margin-bottom: 1;
    }

    FilterBar Select {
        width: 1fr;
    }

    FilterBar #search-input {
        width: 2fr;
    }

    FilterBar.hidden {
        display: none;
    }
    """

    def compose(self) -> ComposeResult:
        yield Select(
            _options([s.value for s in TaskStatus], "Any status"),
            value="all",
            allow_blank=False,
            id="status-filter",
        )
        yield Select(
            _options([p.value for p in TaskPriority], "Any priority"),
            value="all",
            allow_blank=False,
            id="priority-filter",
        )
        yield Select(
            _options(list(CATEGORIES), "Any category"),
            value="all",
            allow_blank=False,
            id="category-filter",
        )
        yield Input(placeholder="Search title or description", id="search-input")

    def on_select_changed(self, event: Select.Changed) -> None:
        event.stop()
        field_name = {
            "status-filter": "status",
            "priority-filter": "priority",
            "category-filter": "category",
        }.get(event.select.id or "")
        if field_name is not None:
            self.post_message(FiltersChanged(**{field_name: event.value}))

    def on_input_submitted(self, event: Input.Submitted) -> None:
        if event.input.id == "search-input":
            event.stop()
            self.post_message(FiltersChanged(search_query=event.value.strip()))


class TaskListView(Vertical):
    """Widget rendering the task store: filters, errors, list and pages."""

    DEFAULT_CSS = """
    TaskListView {
        height: 1fr;
    }

    TaskListView #list-error {
        background: $error 20%;
        color: $error;
        padding: 0 1;
        height: auto;
    }

    TaskListView #list-error.hidden {
        display: none;
    }

    TaskListView #list-loading {
        height: 3;
    }

    TaskListView #list-loading.hidden {
        display: none;
    }

    TaskListView #empty-message {
        width: 100%;
        height: 3;
        content-align: center middle;
        color: $text-muted;
    }

    TaskListView #empty-message.hidden {
        display: none;
    }

    TaskListView #pagination-row {
        height: auto;
        align-horizontal: center;
    }

    TaskListView #pagination-row.hidden {
        display: none;
    }

    TaskListView #page-label {
        width: auto;
        padding: 0 2;
        content-align: center middle;
        height: 1;
    }

    TaskListView #pagination-row Button {
        min-width: 6;
        border: none;
        height: 1;
    }
    """

    def __init__(self) -> None:
        super().__init__()
        self._task_ids: list[int] = []
        self._page = 1

    def compose(self) -> ComposeResult:
        yield FilterBar(id="filter-bar")
        yield Static("", id="list-error", classes="hidden")
        yield LoadingIndicator(id="list-loading", classes="hidden")
        yield TaskList(id="task-list")
        yield Static(
            "No tasks found. Press 'a' to create your first task.",
            id="empty-message",
            classes="hidden",
        )
        with Horizontal(id="pagination-row", classes="hidden"):
            yield Button("<", id="prev-page")
            yield Static("", id="page-label")
            yield Button(">", id="next-page")

    def render_state(self, store: TaskStore) -> None:
        """Refresh every part of the list from the store."""
        error = self.query_one("#list-error", Static)
        error.update(store.error or "")
        error.set_class(not store.error, "hidden")

        self.query_one("#list-loading").set_class(not store.is_loading, "hidden")

        tasks = store.tasks
        task_list = self.query_one("#task-list", TaskList)
        new_ids = [t.id for t in tasks]
        selected = task_list.get_selected_task()
        if new_ids != self._task_ids or self._rows_changed(task_list, tasks):
            index = task_list.index
            task_list.clear()
            for task in tasks:
                task_list.append(TaskListItem(task))
            self._task_ids = new_ids
            self._restore_highlight(task_list, selected, index)

        self.query_one("#empty-message").set_class(
            bool(tasks) or store.is_loading, "hidden"
        )

        pagination = store.pagination
        self._page = pagination.page
        self.query_one("#pagination-row").set_class(
            pagination.total <= pagination.limit, "hidden"
        )
        self.query_one("#page-label", Static).update(
            f"Page {pagination.page} of {pagination.page_count}"
        )
        self.query_one("#prev-page", Button).disabled = pagination.page <= 1
        self.query_one("#next-page", Button).disabled = (
            pagination.page >= pagination.page_count
        )

    def _rows_changed(self, task_list: TaskList, tasks: list[Task]) -> bool:
        rows = [c.task_data for c in task_list.children if isinstance(c, TaskListItem)]
        return rows != tasks

    def _restore_highlight(
        self, task_list: TaskList, selected: Task | None, index: int | None
    ) -> None:
        if selected is not None and selected.id in self._task_ids:
            task_list.index = self._task_ids.index(selected.id)
        elif index is not None and self._task_ids:
            task_list.index = min(index, len(self._task_ids) - 1)

    def focus_list(self) -> None:
        """Focus the task list for keyboard navigation."""
        self.query_one("#task-list", TaskList).focus()

    def show_filters(self, visible: bool) -> None:
        self.query_one("#filter-bar").set_class(not visible, "hidden")

    def focus_search(self) -> None:
        self.show_filters(True)
        self.query_one("#search-input", Input).focus()

    def on_list_view_selected(self, event: ListView.Selected) -> None:
        if isinstance(event.item, TaskListItem):
            self.post_message(TaskSelected(event.item.task_data))

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id not in ("prev-page", "next-page"):
            return
        event.stop()
        step = -1 if event.button.id == "prev-page" else 1
        self.post_message(PageChangeRequested(self._page + step))
