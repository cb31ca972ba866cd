"""Observable authentication state with session persistence."""

import json
import logging
from typing import Callable

from tasktrail.models import User
from tasktrail.storage import LocalStorage

logger = logging.getLogger(__name__)

SESSION_KEY = "session"

Listener = Callable[["UserStore"], None]


class UserStore:
    """Holds the current user; a copy is persisted for session restore."""

    def __init__(self, storage: LocalStorage | None = None) -> None:
        self._storage = storage
        self._listeners: list[Listener] = []
        self.user: User | None = None
        self.is_loading = False
        self.error: str | None = None

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a change listener. Returns a function that unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)

    def set_user(self, user: User | None) -> None:
        self.user = user
        self.is_loading = False
        self.error = None
        if self._storage is not None:
            if user is None:
                self._storage.remove_item(SESSION_KEY)
            else:
                self._storage.set_item(SESSION_KEY, json.dumps(user.to_dict()))
        self._notify()

    def clear_user(self) -> None:
        self.user = None
        self.is_loading = False
        self.error = None
        if self._storage is not None:
            self._storage.remove_item(SESSION_KEY)
        self._notify()

    def set_loading(self, is_loading: bool) -> None:
        self.is_loading = is_loading
        self._notify()

    def set_error(self, message: str | None) -> None:
        self.error = message
        self.is_loading = False
        self._notify()


def restore_session(store: UserStore, storage: LocalStorage) -> User | None:
    """Load a persisted session into the store.

    A corrupt session blob is removed and treated as no session.

    Returns:
        The restored user, or None.
    """
    raw = storage.get_item(SESSION_KEY)
    if raw is None:
        return None
    try:
        user = User.from_record(json.loads(raw))
    except (ValueError, KeyError, TypeError, AttributeError) as e:
        logger.warning("Discarding unreadable stored session: %s", e)
        storage.remove_item(SESSION_KEY)
        return None
    store.set_user(user)
    return user
