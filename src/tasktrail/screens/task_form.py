"""Task create/edit modal dialog."""

from typing import Any, Awaitable, Callable

from textual import work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, Checkbox, Input, Label, Select, Static, TextArea

from tasktrail.errors import TaskTrailError, ValidationError
from tasktrail.models import CATEGORIES, DEFAULT_CATEGORY, Task, TaskPriority, TaskStatus

SubmitHandler = Callable[[dict[str, Any]], Awaitable[Task]]

FORM_FIELDS = ("title", "description", "status", "priority", "category", "due_date")


class SubmitOnEnterTextArea(TextArea):
    """TextArea that posts a Submitted message on Enter, uses Ctrl+Enter for newlines."""

    class Submitted(TextArea.Changed):
        """Posted when Enter is pressed without a modifier."""

        pass

    def _on_key(self, event) -> None:
        """Handle key events - Enter submits, Ctrl+Enter inserts newline."""
        if event.key == "enter":
            event.prevent_default()
            event.stop()
            self.post_message(self.Submitted(self))
        elif event.key == "ctrl+enter":
            event.prevent_default()
            event.stop()
            self.insert("\n")
        else:
            super()._on_key(event)


class TaskFormModal(ModalScreen[Task | None]):
    """Modal form for creating a task or editing an existing one.

    The form stays open until the submit handler succeeds; validation and
    service errors are shown inline. Dismisses with the saved task, or None
    when cancelled.
    """

    CSS = """
    TaskFormModal {
        align: center middle;
        background: $background 60%;
    }

    TaskFormModal > Vertical {
        width: 72;
        height: auto;
        max-height: 95%;
        background: $surface;
        border: solid $primary-muted;
        padding: 1 2;
        overflow-y: auto;
    }

    TaskFormModal #modal-title {
        text-style: bold;
        margin-bottom: 1;
    }

    TaskFormModal .field-label {
        color: $text-muted;
    }

    TaskFormModal .field-error {
        color: $error;
        height: auto;
    }

    TaskFormModal .field-error.hidden {
        display: none;
    }

    TaskFormModal #form-error {
        background: $error 20%;
        color: $error;
        padding: 0 1;
        margin-bottom: 1;
    }

    TaskFormModal #form-error.hidden {
        display: none;
    }

    TaskFormModal #description-area {
        height: 5;
    }

    TaskFormModal .field-row {
        height: auto;
    }

    TaskFormModal .field-row > Vertical {
        width: 1fr;
        height: auto;
    }

    TaskFormModal #button-row {
        margin-top: 1;
        height: auto;
    }

    TaskFormModal Button {
        margin-right: 1;
    }
    """

    BINDINGS = [
        Binding("escape", "cancel", "Cancel", show=False),
        Binding("ctrl+s", "save", "Save", show=False),
    ]

    def __init__(self, on_submit: SubmitHandler, task: Task | None = None) -> None:
        """Initialize the modal, pre-filled from task when editing."""
        super().__init__()
        self._on_submit = on_submit
        self._editing_task = task
        self._submitting = False

    def compose(self) -> ComposeResult:
        """Create dialog widgets."""
        task = self._editing_task
        with Vertical():
            yield Label("Edit Task" if task else "Create New Task", id="modal-title")
            yield Static("", id="form-error", classes="hidden", markup=False)

            yield Label("Title *", classes="field-label")
            yield Input(value=task.title if task else "", placeholder="Task title", id="title-input")
            yield Static("", id="title-error", classes="field-error hidden")

            yield Label("Description", classes="field-label")
            yield SubmitOnEnterTextArea(task.description if task else "", id="description-area")
            yield Static("", id="description-error", classes="field-error hidden")

            with Horizontal(classes="field-row"):
                with Vertical():
                    yield Label("Status", classes="field-label")
                    yield Select(
                        [(s.value, s.value) for s in TaskStatus],
                        value=task.status.value if task else TaskStatus.TODO.value,
                        allow_blank=False,
                        id="status-select",
                    )
                    yield Static("", id="status-error", classes="field-error hidden")
                with Vertical():
                    yield Label("Priority", classes="field-label")
                    yield Select(
                        [(p.value, p.value) for p in TaskPriority],
                        value=task.priority.value if task else TaskPriority.MEDIUM.value,
                        allow_blank=False,
                        id="priority-select",
                    )
                    yield Static("", id="priority-error", classes="field-error hidden")

            with Horizontal(classes="field-row"):
                with Vertical():
                    yield Label("Category", classes="field-label")
                    yield Select(
                        [(c, c) for c in self._category_choices()],
                        value=task.category if task else DEFAULT_CATEGORY,
                        allow_blank=False,
                        id="category-select",
                    )
                    yield Static("", id="category-error", classes="field-error hidden")
                with Vertical():
                    yield Label("Due date (YYYY-MM-DD)", classes="field-label")
                    yield Input(
                        value=task.due_date.isoformat() if task and task.due_date else "",
                        placeholder="YYYY-MM-DD",
                        id="due-date-input",
                    )
                    yield Static("", id="due_date-error", classes="field-error hidden")

            yield Checkbox(
                "Mark as completed", value=task.completed if task else False, id="completed-checkbox"
            )
            with Horizontal(id="button-row"):
                yield Button("Update Task" if task else "Create Task", variant="primary", id="save-btn")
                yield Button("Cancel", id="cancel-btn")

    def _category_choices(self) -> list[str]:
        # Keep a category set by another client selectable
        choices = list(CATEGORIES)
        if self._editing_task is not None and self._editing_task.category not in choices:
            choices.append(self._editing_task.category)
        return choices

    def on_mount(self) -> None:
        """Focus the title input when the modal opens."""
        self.query_one("#title-input", Input).focus()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        self.action_save()

    def on_submit_on_enter_text_area_submitted(
        self, event: SubmitOnEnterTextArea.Submitted
    ) -> None:
        self.action_save()

    def on_input_changed(self, event: Input.Changed) -> None:
        """Clear a field's error once it is edited."""
        field_name = {"title-input": "title", "due-date-input": "due_date"}.get(event.input.id or "")
        if field_name:
            self._set_field_error(field_name, None)

    def on_button_pressed(self, event: Button.Pressed) -> None:
        """Handle button presses."""
        if event.button.id == "save-btn":
            self.action_save()
        elif event.button.id == "cancel-btn":
            self.dismiss(None)

    def action_cancel(self) -> None:
        """Handle Escape key - close without saving."""
        if not self._submitting:
            self.dismiss(None)

    def form_data(self) -> dict[str, Any]:
        """Current raw form values keyed by task field name."""
        return {
            "title": self.query_one("#title-input", Input).value,
            "description": self.query_one("#description-area", TextArea).text,
            "status": self.query_one("#status-select", Select).value,
            "priority": self.query_one("#priority-select", Select).value,
            "category": self.query_one("#category-select", Select).value,
            "due_date": self.query_one("#due-date-input", Input).value,
            "completed": self.query_one("#completed-checkbox", Checkbox).value,
        }

    def action_save(self) -> None:
        if self._submitting:
            return
        self._clear_errors()
        self._save(self.form_data())

    @work(exclusive=True, group="task-form")
    async def _save(self, data: dict[str, Any]) -> None:
        """Hand the form to the submit handler and report its outcome."""
        self._set_submitting(True)
        try:
            task = await self._on_submit(data)
        except ValidationError as e:
            for field_name, message in e.errors.items():
                if field_name in FORM_FIELDS:
                    self._set_field_error(field_name, message)
                else:
                    self._set_form_error(message)
            self._set_submitting(False)
            return
        except TaskTrailError as e:
            self._set_form_error(str(e) or "An error occurred while saving the task")
            self._set_submitting(False)
            return
        self._submitting = False
        self.dismiss(task)

    def _set_submitting(self, submitting: bool) -> None:
        self._submitting = submitting
        save = self.query_one("#save-btn", Button)
        save.disabled = submitting
        self.query_one("#cancel-btn", Button).disabled = submitting
        if submitting:
            save.label = "Saving..."
        else:
            save.label = "Update Task" if self._editing_task else "Create Task"

    def _set_field_error(self, field_name: str, message: str | None) -> None:
        label = self.query_one(f"#{field_name}-error", Static)
        label.update(message or "")
        label.set_class(not message, "hidden")

    def _set_form_error(self, message: str | None) -> None:
        label = self.query_one("#form-error", Static)
        label.update(message or "")
        label.set_class(not message, "hidden")

    def _clear_errors(self) -> None:
        self._set_form_error(None)
        for field_name in FORM_FIELDS:
            self._set_field_error(field_name, None)
