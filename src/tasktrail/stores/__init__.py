"""Client-side state containers for TaskTrail."""

from tasktrail.stores.task_store import TaskStore
from tasktrail.stores.user_store import UserStore, restore_session

__all__ = ["TaskStore", "UserStore", "restore_session"]
