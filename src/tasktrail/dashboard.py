"""Dashboard orchestration between the gateway and the stores.

Nothing here depends on Textual: screens and the CLI call these coroutines
and render whatever ends up in the stores.
"""

import asyncio
import logging
from dataclasses import replace
from typing import Any, Awaitable, Callable

from tasktrail.errors import TaskTrailError, ValidationError
from tasktrail.gateway import TaskGateway
from tasktrail.models import TagColor, Task, TaskTag
from tasktrail.services.base import IdentityService
from tasktrail.stores.task_store import TaskStore
from tasktrail.stores.user_store import UserStore
from tasktrail.validation import validate_task_input

logger = logging.getLogger(__name__)

Confirm = Callable[[], Awaitable[bool]]


class Dashboard:
    """Coordinates task CRUD intents with the task and user stores."""

    def __init__(
        self,
        gateway: TaskGateway,
        tasks: TaskStore,
        users: UserStore,
        identity: IdentityService | None = None,
    ) -> None:
        self.gateway = gateway
        self.tasks = tasks
        self.users = users
        self.identity = identity

    async def load_tasks(self) -> None:
        """Fetch the current page; failures land in the store's error.

        If the reported total no longer reaches the current page, the page is
        moved back into range and fetched again.
        """
        request_id = self.tasks.begin_request()
        try:
            page = await self.gateway.list_tasks(self.tasks.filters, self.tasks.pagination)
        except TaskTrailError as e:
            self.tasks.set_error(str(e) or "Failed to load tasks", request_id=request_id)
            return
        if not self.tasks.is_current(request_id):
            return
        current = replace(self.tasks.pagination, total=page.total)
        target = current.clamp()
        self.tasks.set_pagination(request_id=request_id, page=target.page, total=page.total)
        if target.page != current.page:
            logger.info("Page %s is past the end, reloading page %s", current.page, target.page)
            await self.load_tasks()
            return
        self.tasks.set_tasks(page.items, request_id=request_id)

    async def apply_filters(self, **changes: Any) -> None:
        """Change filters and go back to the first page."""
        self.tasks.set_filters(**changes)
        self.tasks.set_pagination(page=1)
        await self.load_tasks()

    async def change_page(self, page: int) -> None:
        """Move to another page, clamped to the valid range."""
        target = replace(self.tasks.pagination, page=page).clamp()
        if target.page == self.tasks.pagination.page:
            return
        self.tasks.set_pagination(page=target.page)
        await self.load_tasks()

    def add_task(self) -> Task | None:
        """Open a blank form: there is no task to edit."""
        return None

    def edit_task(self, task: Task) -> Task:
        """Open the form for a task; the detail selection is cleared first."""
        self.tasks.set_current_task(None)
        return task

    def select_task(self, task: Task) -> None:
        self.tasks.set_current_task(task)

    def close_detail(self) -> None:
        self.tasks.set_current_task(None)

    async def submit(self, form_data: dict[str, Any], editing: Task | None = None) -> Task:
        """Create or update a task from form input.

        Raises:
            ValidationError: Before any network call if the input is invalid.
            TaskTrailError: Gateway failures, for the form to display.
        """
        cleaned = validate_task_input(form_data, creating=editing is None)
        if editing is not None:
            task = await self.gateway.update_task(editing.id, cleaned)
            self.tasks.update_task(task)
        else:
            task = await self.gateway.create_task(cleaned)
            self.tasks.add_task(task)
            pagination = self.tasks.pagination
            self.tasks.set_pagination(total=pagination.total + 1)
        return task

    async def delete_task(self, task_id: int, confirm: Confirm) -> bool:
        """Delete a task after the user confirms.

        Returns:
            True if the task was deleted.
        """
        if not await confirm():
            return False
        try:
            await self.gateway.delete_task(task_id)
        except TaskTrailError as e:
            self.tasks.set_error(f"Could not delete task: {e}")
            return False
        self.tasks.remove_task(task_id)
        self.tasks.set_current_task(None)
        pagination = self.tasks.pagination
        self.tasks.set_pagination(total=max(0, pagination.total - 1))
        pagination = self.tasks.pagination
        if pagination.page > pagination.page_count:
            self.tasks.set_pagination(page=pagination.page_count)
            await self.load_tasks()
        elif pagination.total > pagination.offset + len(self.tasks.tasks):
            # Pull the next page's first task up into the gap
            await self.load_tasks()
        return True

    async def toggle_complete(self, task: Task) -> Task | None:
        """Flip only the completed flag of a task."""
        try:
            updated = await self.gateway.update_task(task.id, {"completed": not task.completed})
        except TaskTrailError as e:
            self.tasks.set_error(f"Could not update task: {e}")
            return None
        self.tasks.update_task(updated)
        current = self.tasks.current_task
        if current is not None and current.id == task.id:
            self.tasks.set_current_task(updated)
        return updated

    async def load_tags(self, task_id: int) -> list[TaskTag]:
        return await self.gateway.list_tags(task_id)

    async def add_tag(self, task_id: int, tag_name: str, color: TagColor | str) -> TaskTag:
        name = tag_name.strip()
        if not name:
            raise ValidationError({"tag_name": "Tag name is required"})
        return await self.gateway.create_tag(task_id, name, TagColor.parse(getattr(color, "value", color)))

    async def remove_tag(self, tag_id: int) -> None:
        await self.gateway.delete_tag(tag_id)

    async def logout(self) -> None:
        """End the session with the identity service and clear local state."""
        if self.identity is not None:
            try:
                await asyncio.to_thread(self.identity.logout)
            except TaskTrailError as e:
                logger.error("Logout error: %s", e)
                raise
        self.users.clear_user()
        self.tasks.reset()
