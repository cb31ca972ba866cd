"""Main application module."""

import logging
import sys

from textual.app import App
from textual.theme import Theme

from tasktrail.cli import run_cli
from tasktrail.config import Config, load_config
from tasktrail.context import AppContext
from tasktrail.errors import TaskTrailError
from tasktrail.logging_setup import setup_logging
from tasktrail.screens import AuthScreen, DashboardScreen
from tasktrail.stores.user_store import UserStore

logger = logging.getLogger(__name__)

DARK_MODE_KEY = "dark_mode"
DARK_THEME = "textual-dark"
LIGHT_THEME = "textual-light"


class TaskTrailApp(App):
    """A Textual app for TaskTrail."""

    TITLE = "TaskTrail"

    BINDINGS = [
        ("D", "toggle_dark", "Toggle dark mode"),
        ("ctrl+q", "quit", "Quit"),
    ]

    def __init__(self, context: AppContext) -> None:
        """Initialize the application around an already wired context."""
        super().__init__()
        self.context = context
        self._config = context.config
        self._authenticated: bool | None = None
        self._unsubscribe = None

    def _apply_theme(self) -> None:
        """Apply the stored dark mode flag, or the configured theme."""
        stored = self.context.storage.get_item(DARK_MODE_KEY)
        if stored in ("true", "false"):
            self.theme = DARK_THEME if stored == "true" else LIGHT_THEME
            return

        if self._config.theme == "custom" and self._config.custom_theme:
            custom = self._config.custom_theme
            if custom.is_valid():
                self.register_theme(Theme(name=custom.name, **custom.theme_kwargs()))
                self.theme = custom.name
                return
            logger.warning("Custom theme %r has no primary color", custom.name)

        # Fall back to built-in theme
        self.theme = self._config.theme

    def on_mount(self) -> None:
        """Apply the theme, then show the screen matching the session state."""
        self._apply_theme()
        self._unsubscribe = self.context.user_store.subscribe(self._on_user_changed)
        self._route(self.context.user_store)

    def on_unmount(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def _on_user_changed(self, store: UserStore) -> None:
        if store.is_authenticated != self._authenticated:
            self._route(store)

    def _route(self, store: UserStore) -> None:
        """Show the dashboard when signed in, the auth screen otherwise."""
        first = self._authenticated is None
        self._authenticated = store.is_authenticated
        if store.is_authenticated:
            screen = DashboardScreen(self.context.dashboard)
            logger.info("Routing to dashboard")
        else:
            screen = AuthScreen(
                self.context.identity, store, client_id=self._config.client_id
            )
            logger.info("Routing to sign in")
        if first:
            self.push_screen(screen)
        else:
            self.switch_screen(screen)

    def action_toggle_dark(self) -> None:
        """Toggle dark mode and remember the choice."""
        dark = self.theme != DARK_THEME
        self.theme = DARK_THEME if dark else LIGHT_THEME
        self.context.storage.set_item(DARK_MODE_KEY, "true" if dark else "false")


def run_tui(config: Config) -> int:
    """Build the app context and run the TUI until it exits."""
    try:
        context = AppContext.create(config)
    except TaskTrailError as e:
        logger.error("Startup failed: %s", e)
        print(f"Error: {e}", file=sys.stderr)
        return 1
    context.restore_session()
    TaskTrailApp(context).run()
    return 0


def main() -> None:
    """Run the CLI when given a subcommand, the TUI otherwise."""
    exit_code = run_cli()
    if exit_code is not None:
        sys.exit(exit_code)

    config = load_config()
    setup_logging(config.log_path, file_level=config.log_level)
    sys.exit(run_tui(config))


if __name__ == "__main__":
    main()
