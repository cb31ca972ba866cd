"""Task detail pane."""

from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.message import Message
from textual.widgets import Button, Input, ListItem, ListView, Static

from tasktrail.models import TagColor, Task, TaskTag
from tasktrail.utils import format_due_date, format_timestamp
from tasktrail.widgets.task_list import (
    TaskDeleteRequested,
    TaskEditRequested,
    TaskToggleRequested,
)


class DetailClosed(Message):
    """Message sent when the detail pane is dismissed."""

    pass


class TagAddRequested(Message):
    """Message sent when a tag should be attached to the shown task."""

    def __init__(self, task_id: int, tag_name: str, color: str) -> None:
        self.task_id = task_id
        self.tag_name = tag_name
        self.color = color
        super().__init__()


class TagRemoveRequested(Message):
    """Message sent when a tag should be removed."""

    def __init__(self, tag: TaskTag) -> None:
        self.tag = tag
        super().__init__()


def parse_tag_input(raw: str) -> tuple[str, str]:
    """Split "name:color" input; the color part is optional.

    >>> parse_tag_input("urgent:red")
    ("urgent", "red")
    """
    name, _, color = raw.partition(":")
    return name.strip(), TagColor.parse(color.strip().lower() or None).value


class TagListItem(ListItem):
    """A single tag row."""

    def __init__(self, tag: TaskTag) -> None:
        self.tag = tag
        super().__init__()
        self.add_class(f"-tag-{tag.color.value}")

    def compose(self) -> ComposeResult:
        yield Static(f"# {self.tag.tag_name}", markup=False)


class TagList(ListView):
    """Tags of the shown task; x removes the highlighted tag."""

    BINDINGS = [Binding("x", "remove_tag", "Remove tag", show=True)]

    def action_remove_tag(self) -> None:
        if isinstance(self.highlighted_child, TagListItem):
            self.post_message(TagRemoveRequested(self.highlighted_child.tag))


class TaskDetailView(Vertical):
    """Shows one task with its tags and the actions available on it."""

    DEFAULT_CSS = """
    TaskDetailView {
        height: 1fr;
        border: solid $primary-muted;
        padding: 0 1;
    }

    TaskDetailView #detail-title {
        text-style: bold;
        margin-bottom: 1;
    }

    TaskDetailView .detail-muted {
        color: $text-muted;
    }

    TaskDetailView #detail-description {
        margin: 1 0;
    }

    TaskDetailView #detail-actions {
        height: auto;
        margin-bottom: 1;
    }

    TaskDetailView #detail-actions Button {
        min-width: 8;
        margin-right: 1;
    }

    TaskDetailView #tags-status {
        color: $text-muted;
    }

    TaskDetailView #tags-status.-error {
        color: $error;
    }

    TaskDetailView TagList {
        height: auto;
        max-height: 8;
    }

    TaskDetailView .-tag-blue Static { color: $primary; }
    TaskDetailView .-tag-green Static { color: $success; }
    TaskDetailView .-tag-red Static { color: $error; }
    TaskDetailView .-tag-yellow Static { color: $warning; }
    TaskDetailView .-tag-purple Static { color: $secondary; }
    TaskDetailView .-tag-pink Static { color: $accent; }
    """

    def __init__(self) -> None:
        super().__init__(id="task-detail")
        self._task_data: Task | None = None

    @property
    def task_data(self) -> Task | None:
        return self._task_data

    def compose(self) -> ComposeResult:
        with Horizontal(id="detail-actions"):
            yield Button("Edit", id="detail-edit")
            yield Button("Done", id="detail-toggle")
            yield Button("Delete", variant="error", id="detail-delete")
            yield Button("Close", id="detail-close")
        yield Static("", id="detail-title", markup=False)
        yield Static("", id="detail-meta", classes="detail-muted", markup=False)
        yield Static("", id="detail-description", markup=False)
        yield Static("", id="detail-stamps", classes="detail-muted", markup=False)
        yield Static("Loading tags...", id="tags-status")
        yield TagList(id="tag-list")
        yield Input(placeholder="Add tag (name or name:color)", id="tag-input")

    def show_task(self, task: Task) -> None:
        """Render a (possibly refreshed) task."""
        self._task_data = task
        self.query_one("#detail-title", Static).update(task.title)
        parts = [
            task.status.value,
            f"{task.priority.value} priority",
            task.category,
            "completed" if task.completed else "open",
        ]
        due = format_due_date(task.due_date)
        if due:
            parts.append(due)
        self.query_one("#detail-meta", Static).update(" · ".join(parts))
        self.query_one("#detail-description", Static).update(
            task.description or "No description."
        )
        self.query_one("#detail-stamps", Static).update(
            f"Created {format_timestamp(task.created_at)}  "
            f"Updated {format_timestamp(task.updated_at)}"
        )
        self.query_one("#detail-toggle", Button).label = "Reopen" if task.completed else "Done"

    def show_tags(self, tags: list[TaskTag]) -> None:
        tag_list = self.query_one("#tag-list", TagList)
        tag_list.clear()
        for tag in tags:
            tag_list.append(TagListItem(tag))
        status = self.query_one("#tags-status", Static)
        status.remove_class("-error")
        status.update("Tags" if tags else "No tags.")

    def show_tags_error(self, message: str) -> None:
        status = self.query_one("#tags-status", Static)
        status.add_class("-error")
        status.update(message)

    def on_button_pressed(self, event: Button.Pressed) -> None:
        event.stop()
        if self._task_data is None:
            return
        if event.button.id == "detail-edit":
            self.post_message(TaskEditRequested(self._task_data))
        elif event.button.id == "detail-toggle":
            self.post_message(TaskToggleRequested(self._task_data))
        elif event.button.id == "detail-delete":
            self.post_message(TaskDeleteRequested(self._task_data))
        elif event.button.id == "detail-close":
            self.post_message(DetailClosed())

    def on_input_submitted(self, event: Input.Submitted) -> None:
        if event.input.id != "tag-input":
            return
        event.stop()
        name, color = parse_tag_input(event.value)
        if name and self._task_data is not None:
            self.post_message(TagAddRequested(self._task_data.id, name, color))
        event.input.value = ""
