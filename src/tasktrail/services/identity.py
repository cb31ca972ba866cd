"""Identity services and the credential form they render."""

import asyncio
import hashlib
import logging
import secrets
import sqlite3
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any

import requests
from textual import work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.widget import Widget
from textual.widgets import Button, Input, Label, Static

from tasktrail.errors import AuthenticationError, RemoteOperationFailed, TaskTrailError
from tasktrail.services.base import ErrorCallback, Record, SuccessCallback
from tasktrail.services.http_records import DEFAULT_TIMEOUT, error_message
from tasktrail.services.sqlite_records import SqliteRecordService
from tasktrail.storage import LocalStorage

logger = logging.getLogger(__name__)

TOKEN_KEY = "hosted_token"
PBKDF2_ITERATIONS = 200_000


class CredentialsPanel(Vertical):
    """Login/signup form mounted into the auth screen's container."""

    DEFAULT_CSS = """
    CredentialsPanel {
        width: 60;
        height: auto;
        border: solid $primary-muted;
        background: $surface;
        padding: 1 2;
    }

    CredentialsPanel #credentials-title {
        text-style: bold;
        margin-bottom: 1;
    }

    CredentialsPanel .field-label {
        color: $text-muted;
    }

    CredentialsPanel .signup-only.hidden {
        display: none;
    }

    CredentialsPanel #credentials-error {
        color: $error;
        height: auto;
    }

    CredentialsPanel #credentials-buttons {
        margin-top: 1;
        height: auto;
    }

    CredentialsPanel Button {
        margin-right: 1;
    }
    """

    def __init__(
        self,
        service: "BaseIdentityService",
        mode: str,
        allow_switch: bool = True,
    ) -> None:
        super().__init__(id="credentials-panel")
        self._service = service
        self.mode = mode
        self._allow_switch = allow_switch

    def compose(self) -> ComposeResult:
        signup_classes = "signup-only" if self.mode == "signup" else "signup-only hidden"
        yield Static(self._title(), id="credentials-title")
        with Vertical(classes=signup_classes, id="name-fields"):
            yield Label("First name:", classes="field-label")
            yield Input(id="first-name-input")
            yield Label("Last name:", classes="field-label")
            yield Input(id="last-name-input")
        yield Label("Email:", classes="field-label")
        yield Input(placeholder="you@example.com", id="email-input")
        yield Label("Password:", classes="field-label")
        yield Input(password=True, id="password-input")
        yield Static("", id="credentials-error")
        with Horizontal(id="credentials-buttons"):
            yield Button(self._submit_label(), variant="primary", id="credentials-submit")
            if self._allow_switch:
                yield Button(self._switch_label(), id="credentials-switch")

    def on_mount(self) -> None:
        self.query_one("#email-input", Input).focus()

    def _title(self) -> str:
        return "Sign in to TaskTrail" if self.mode == "login" else "Create a TaskTrail account"

    def _submit_label(self) -> str:
        return "Sign in" if self.mode == "login" else "Sign up"

    def _switch_label(self) -> str:
        return "Need an account?" if self.mode == "login" else "Have an account?"

    def set_mode(self, mode: str) -> None:
        """Switch between the login and signup forms."""
        self.mode = mode
        self.query_one("#credentials-title", Static).update(self._title())
        self.query_one("#credentials-submit", Button).label = self._submit_label()
        if self._allow_switch:
            self.query_one("#credentials-switch", Button).label = self._switch_label()
        self.query_one("#name-fields").set_class(mode != "signup", "hidden")
        self.query_one("#credentials-error", Static).update("")

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "credentials-submit":
            self._submit()
        elif event.button.id == "credentials-switch":
            self.set_mode("signup" if self.mode == "login" else "login")

    def on_input_submitted(self, event: Input.Submitted) -> None:
        self._submit()

    def _submit(self) -> None:
        email = self.query_one("#email-input", Input).value.strip()
        password = self.query_one("#password-input", Input).value
        if not email or not password:
            self.query_one("#credentials-error", Static).update(
                "Email and password are required"
            )
            return
        first = self.query_one("#first-name-input", Input).value.strip()
        last = self.query_one("#last-name-input", Input).value.strip()
        self.query_one("#credentials-error", Static).update("")
        self._authenticate(self.mode, email, password, first, last)

    @work(exclusive=True, group="identity")
    async def _authenticate(
        self, mode: str, email: str, password: str, first: str, last: str
    ) -> None:
        """Run the blocking identity call off the event loop."""
        try:
            if mode == "login":
                user, account = await asyncio.to_thread(self._service.login, email, password)
            else:
                user, account = await asyncio.to_thread(
                    self._service.signup, email, password, first, last
                )
        except TaskTrailError as e:
            self.query_one("#credentials-error", Static).update(str(e))
            self._service.report_error(e)
            return
        self._service.report_success(user, account)


class BaseIdentityService(ABC):
    """Shared mount-point and callback handling for identity services."""

    def __init__(self) -> None:
        self._client_id = ""
        self._view = "both"
        self._on_success: SuccessCallback | None = None
        self._on_error: ErrorCallback | None = None

    def setup(
        self,
        target: Widget,
        *,
        client_id: str,
        view: str,
        on_success: SuccessCallback,
        on_error: ErrorCallback,
    ) -> None:
        """Register callbacks for the credential form rendered into target."""
        self._client_id = client_id
        self._view = view
        self._on_success = on_success
        self._on_error = on_error

    def show_login(self, target: Widget) -> None:
        self._show(target, "login")

    def show_signup(self, target: Widget) -> None:
        self._show(target, "signup")

    def _show(self, target: Widget, mode: str) -> None:
        existing = target.query(CredentialsPanel)
        if existing:
            existing.first().set_mode(mode)
            return
        target.mount(CredentialsPanel(self, mode, allow_switch=self._view == "both"))

    def report_success(self, user: Record, account: Record) -> None:
        if self._on_success is not None:
            self._on_success(user, account)

    def report_error(self, error: Exception) -> None:
        logger.error("Authentication error: %s", error)
        if self._on_error is not None:
            self._on_error(error)

    @abstractmethod
    def login(self, email: str, password: str) -> tuple[Record, Record]:
        """Authenticate and return (user, account) records."""

    @abstractmethod
    def signup(
        self, email: str, password: str, first_name: str = "", last_name: str = ""
    ) -> tuple[Record, Record]:
        """Create an account, sign it in and return (user, account) records."""

    @abstractmethod
    def resume(self, user: Record) -> None:
        """Reattach a restored session to the service."""

    @abstractmethod
    def logout(self) -> None:
        """End the current session."""


def hash_password(password: str, salt: str | None = None) -> str:
    """Return a salted PBKDF2 digest as "salt$hex"."""
    salt = salt or secrets.token_hex(16)
    digest = hashlib.pbkdf2_hmac(
        "sha256", password.encode("utf-8"), salt.encode("utf-8"), PBKDF2_ITERATIONS
    )
    return f"{salt}${digest.hex()}"


def verify_password(password: str, stored: str) -> bool:
    salt, _, _ = stored.partition("$")
    return secrets.compare_digest(hash_password(password, salt), stored)


class LocalIdentityService(BaseIdentityService):
    """Accounts stored in the local SQLite database.

    Logging in scopes the record service to the user's rows.
    """

    def __init__(self, records: SqliteRecordService) -> None:
        super().__init__()
        self.records = records

    def login(self, email: str, password: str) -> tuple[Record, Record]:
        try:
            with self.records.connection() as conn:
                cursor = conn.cursor()
                cursor.execute("SELECT * FROM user WHERE Email = ?", (email.lower(),))
                row = cursor.fetchone()
        except sqlite3.Error as e:
            raise RemoteOperationFailed(f"Failed to read accounts: {e}") from e
        if row is None or not verify_password(password, row["PasswordHash"]):
            raise AuthenticationError("Invalid email or password")
        user = self._profile(row)
        self.records.owner = user["Id"]
        logger.info("User %s logged in", user["Id"])
        return user, {"provider": "local"}

    def signup(
        self, email: str, password: str, first_name: str = "", last_name: str = ""
    ) -> tuple[Record, Record]:
        email = email.lower()
        try:
            with self.records.connection() as conn:
                cursor = conn.cursor()
                cursor.execute("SELECT Id FROM user WHERE Email = ?", (email,))
                if cursor.fetchone() is not None:
                    raise AuthenticationError(f"An account for {email} already exists")
                cursor.execute(
                    "INSERT INTO user (Email, FirstName, LastName, PasswordHash, CreatedOn) "
                    "VALUES (?, ?, ?, ?, ?)",
                    (
                        email,
                        first_name,
                        last_name,
                        hash_password(password),
                        datetime.now(timezone.utc).isoformat(),
                    ),
                )
                conn.commit()
                cursor.execute("SELECT * FROM user WHERE Id = ?", (cursor.lastrowid,))
                row = cursor.fetchone()
        except sqlite3.Error as e:
            raise RemoteOperationFailed(f"Failed to create account: {e}") from e
        user = self._profile(row)
        self.records.owner = user["Id"]
        logger.info("User %s signed up", user["Id"])
        return user, {"provider": "local"}

    def resume(self, user: Record) -> None:
        """Scope the record service to a restored session's user."""
        self.records.owner = user.get("Id")

    def logout(self) -> None:
        self.records.owner = None

    def _profile(self, row: sqlite3.Row) -> Record:
        first = row["FirstName"] or ""
        last = row["LastName"] or ""
        return {
            "Id": row["Id"],
            "Name": f"{first} {last}".strip() or row["Email"],
            "FirstName": first,
            "LastName": last,
            "Email": row["Email"],
            "AvatarUrl": row["AvatarUrl"],
        }


class HostedIdentityService(BaseIdentityService):
    """Identity service of the hosted backend.

    The bearer token is kept on the shared requests.Session and persisted in
    local storage so a restored session can keep talking to the backend.
    """

    def __init__(
        self,
        base_url: str,
        session: requests.Session,
        storage: LocalStorage | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        super().__init__()
        self.base_url = base_url.rstrip("/")
        self.session = session
        self.storage = storage
        self.timeout = timeout

    def login(self, email: str, password: str) -> tuple[Record, Record]:
        return self._authenticate("/auth/login", {"email": email, "password": password})

    def signup(
        self, email: str, password: str, first_name: str = "", last_name: str = ""
    ) -> tuple[Record, Record]:
        return self._authenticate(
            "/auth/signup",
            {
                "email": email,
                "password": password,
                "firstName": first_name,
                "lastName": last_name,
            },
        )

    def resume(self, user: Record) -> None:
        token = self.storage.get_item(TOKEN_KEY) if self.storage else None
        if token:
            self._set_token(token)

    def logout(self) -> None:
        try:
            response = self.session.post(
                f"{self.base_url}/auth/logout", timeout=self.timeout
            )
        except requests.RequestException as e:
            raise AuthenticationError(f"Logout failed: {e}") from e
        if not response.ok:
            raise AuthenticationError(error_message(response))
        self.session.headers.pop("Authorization", None)
        if self.storage:
            self.storage.remove_item(TOKEN_KEY)

    def _authenticate(self, path: str, payload: dict[str, Any]) -> tuple[Record, Record]:
        try:
            response = self.session.post(
                f"{self.base_url}{path}", json=payload, timeout=self.timeout
            )
        except requests.RequestException as e:
            raise RemoteOperationFailed(f"Identity service unreachable: {e}") from e
        if not response.ok:
            raise AuthenticationError(error_message(response))
        try:
            body = response.json()
            user = body["user"]
        except (ValueError, KeyError, TypeError) as e:
            raise AuthenticationError("Malformed response from identity service") from e
        token = body.get("token")
        if token:
            self._set_token(token)
            if self.storage:
                self.storage.set_item(TOKEN_KEY, token)
        return user, body.get("account") or {}

    def _set_token(self, token: str) -> None:
        self.session.headers["Authorization"] = f"Bearer {token}"
