"""Authentication screen."""

import logging

from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Center, Vertical
from textual.screen import Screen
from textual.widgets import Footer

from tasktrail.models import User
from tasktrail.services.base import IdentityService, Record
from tasktrail.stores.user_store import UserStore
from tasktrail.widgets import AsciiArtHeader

logger = logging.getLogger(__name__)


class AuthScreen(Screen):
    """Provides the mount point for the identity service's login form.

    The identity service renders and drives the form; this screen only
    receives the outcome through the success/error callbacks.
    """

    CSS = """
    AuthScreen #auth-container {
        width: 100%;
        height: auto;
        align-horizontal: center;
        margin-top: 1;
    }
    """

    BINDINGS = [
        Binding("ctrl+l", "show_login", "Login"),
        Binding("ctrl+r", "show_signup", "Sign up"),
    ]

    def __init__(
        self,
        identity: IdentityService,
        users: UserStore,
        client_id: str,
        mode: str = "login",
    ) -> None:
        super().__init__()
        self._identity = identity
        self._users = users
        self._client_id = client_id
        self._mode = mode

    def compose(self) -> ComposeResult:
        yield AsciiArtHeader("Keep track of what matters, one task at a time.")
        with Center():
            yield Vertical(id="auth-container")
        yield Footer()

    def on_mount(self) -> None:
        container = self.query_one("#auth-container", Vertical)
        self._identity.setup(
            container,
            client_id=self._client_id,
            view="both",
            on_success=self._on_success,
            on_error=self._on_error,
        )
        if self._mode == "signup":
            self._identity.show_signup(container)
        else:
            self._identity.show_login(container)

    def action_show_login(self) -> None:
        self._identity.show_login(self.query_one("#auth-container", Vertical))

    def action_show_signup(self) -> None:
        self._identity.show_signup(self.query_one("#auth-container", Vertical))

    def _on_success(self, user: Record, account: Record) -> None:
        try:
            profile = User.from_record(user)
        except (KeyError, TypeError) as e:
            self._on_error(ValueError(f"Identity service returned an unusable profile: {e}"))
            return
        logger.info("Authenticated as %s", profile.email)
        self._users.set_user(profile)

    def _on_error(self, error: Exception) -> None:
        self._users.set_error(str(error))
        self.notify(str(error) or "Authentication failed", severity="error")
