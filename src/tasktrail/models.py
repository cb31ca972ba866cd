"""Data models for TaskTrail."""

import math
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any


class TaskStatus(Enum):
    """Status of a task."""

    TODO = "To Do"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"


class TaskPriority(Enum):
    """Priority of a task."""

    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    URGENT = "Urgent"


class TagColor(Enum):
    """Display color of a task tag."""

    BLUE = "blue"
    GREEN = "green"
    RED = "red"
    PURPLE = "purple"
    YELLOW = "yellow"
    PINK = "pink"
    GRAY = "gray"

    @classmethod
    def parse(cls, value: str | None) -> "TagColor":
        """Return the color for a raw value, falling back to gray."""
        try:
            return cls(value)
        except ValueError:
            return cls.GRAY


DEFAULT_CATEGORY = "Work"
CATEGORIES = ("Work", "Personal", "Study", "Health", "Finance", "Home", "Other")

# Field lists requested from the record service
TASK_FIELDS = [
    "Id",
    "CreatedOn",
    "ModifiedOn",
    "title",
    "description",
    "status",
    "priority",
    "due_date",
    "category",
    "completed",
    "created_at",
    "updated_at",
]
TAG_FIELDS = ["Id", "CreatedOn", "task_id", "tag_name", "color"]


def _parse_datetime(value: Any) -> datetime | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value).replace("Z", "+00:00"))


def _parse_date(value: Any) -> date | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    # Services may hand back a full timestamp for date columns
    return date.fromisoformat(str(value)[:10])


@dataclass
class Task:
    """Represents a task record."""

    id: int
    title: str
    description: str = ""
    status: TaskStatus = TaskStatus.TODO
    priority: TaskPriority = TaskPriority.MEDIUM
    category: str = DEFAULT_CATEGORY
    due_date: date | None = None
    completed: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "Task":
        """Create a Task from a record service dictionary."""
        return cls(
            id=record["Id"],
            title=record.get("title") or "",
            description=record.get("description") or "",
            status=TaskStatus(record.get("status") or TaskStatus.TODO.value),
            priority=TaskPriority(record.get("priority") or TaskPriority.MEDIUM.value),
            category=record.get("category") or DEFAULT_CATEGORY,
            due_date=_parse_date(record.get("due_date")),
            completed=bool(record.get("completed", False)),
            created_at=_parse_datetime(record.get("created_at")),
            updated_at=_parse_datetime(record.get("updated_at")),
        )

    def to_record(self) -> dict[str, Any]:
        """Serialize to a record service dictionary."""
        return {
            "Id": self.id,
            "title": self.title,
            "description": self.description,
            "status": self.status.value,
            "priority": self.priority.value,
            "category": self.category,
            "due_date": self.due_date.isoformat() if self.due_date else None,
            "completed": self.completed,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    @property
    def is_overdue(self) -> bool:
        """True if the task has a due date before today and is not completed."""
        return (
            self.due_date is not None
            and not self.completed
            and self.due_date < date.today()
        )


@dataclass
class TaskTag:
    """A label attached to a task."""

    id: int
    task_id: int
    tag_name: str
    color: TagColor = TagColor.GRAY

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "TaskTag":
        """Create a TaskTag from a record service dictionary."""
        return cls(
            id=record["Id"],
            task_id=record["task_id"],
            tag_name=record.get("tag_name") or "",
            color=TagColor.parse(record.get("color")),
        )


@dataclass
class User:
    """An authenticated principal."""

    id: int | str
    email: str
    first_name: str = ""
    last_name: str = ""
    avatar_url: str | None = None
    display_name: str | None = None

    @property
    def name(self) -> str:
        """Full name, falling back to the service name or the email."""
        full = f"{self.first_name} {self.last_name}".strip()
        return full or self.display_name or self.email

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "User":
        """Create a User from an identity service profile.

        Raises:
            KeyError: If the profile has no Id or email.
        """
        return cls(
            id=record["Id"],
            email=record.get("Email") or record["email"],
            first_name=record.get("FirstName") or "",
            last_name=record.get("LastName") or "",
            avatar_url=record.get("AvatarUrl"),
            display_name=record.get("Name"),
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize back to the profile shape used by the identity service."""
        return {
            "Id": self.id,
            "Name": self.display_name,
            "FirstName": self.first_name,
            "LastName": self.last_name,
            "Email": self.email,
            "AvatarUrl": self.avatar_url,
        }


@dataclass(frozen=True)
class TaskFilters:
    """List filters. Each enum field is either "all" or a concrete value."""

    status: str = "all"
    priority: str = "all"
    category: str = "all"
    search_query: str = ""

    @property
    def is_active(self) -> bool:
        return (
            self.status != "all"
            or self.priority != "all"
            or self.category != "all"
            or bool(self.search_query)
        )


@dataclass(frozen=True)
class Pagination:
    """Page cursor over the server-side task list."""

    page: int = 1
    limit: int = 10
    total: int = 0

    @property
    def page_count(self) -> int:
        """Number of pages for the current total, never less than one."""
        if self.total <= 0:
            return 1
        return math.ceil(self.total / self.limit)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    def clamp(self) -> "Pagination":
        """Return a copy with page moved into [1, page_count]."""
        page = min(max(self.page, 1), self.page_count)
        if page == self.page:
            return self
        return Pagination(page=page, limit=self.limit, total=self.total)


@dataclass
class TaskPage:
    """One page of tasks plus the server-reported total."""

    items: list[Task] = field(default_factory=list)
    total: int = 0
