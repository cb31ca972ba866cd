"""Dialog screens for TaskTrail."""

from textual.app import ComposeResult
from textual.containers import Center, Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, Label, Static


class ConfirmDialog(ModalScreen[bool]):
    """Modal yes/no question, used before destructive actions."""

    CSS = """
    ConfirmDialog {
        align: center middle;
    }

    ConfirmDialog > Vertical {
        width: 60;
        height: auto;
        border: thick $error;
        background: $surface;
        padding: 1 2;
    }

    ConfirmDialog #confirm-title {
        text-align: center;
        text-style: bold;
        margin-bottom: 1;
    }

    ConfirmDialog #confirm-message {
        margin-bottom: 1;
    }

    ConfirmDialog Center {
        margin-top: 1;
    }

    ConfirmDialog Button {
        margin: 0 1;
    }
    """

    BINDINGS = [
        ("y", "confirm", "Yes"),
        ("n", "cancel", "No"),
        ("escape", "cancel", "Cancel"),
    ]

    def __init__(self, title: str, message: str, confirm_label: str = "Delete") -> None:
        """Initialize dialog with its question."""
        super().__init__()
        self._title = title
        self._message = message
        self._confirm_label = confirm_label

    def compose(self) -> ComposeResult:
        """Create dialog widgets."""
        with Vertical():
            yield Static(self._title, id="confirm-title", markup=False)
            yield Label(self._message, id="confirm-message", markup=False)
            with Center():
                yield Button(self._confirm_label, variant="error", id="confirm")
                yield Button("Cancel", variant="default", id="cancel")

    def on_mount(self) -> None:
        self.query_one("#cancel", Button).focus()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        """Handle button presses."""
        self.dismiss(event.button.id == "confirm")

    def action_confirm(self) -> None:
        self.dismiss(True)

    def action_cancel(self) -> None:
        self.dismiss(False)
