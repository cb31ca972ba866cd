"""Utility functions for TaskTrail."""

from datetime import date, datetime

from tasktrail.models import Task, TaskPriority, TaskStatus

PRIORITY_MARKERS = {
    TaskPriority.LOW: " ",
    TaskPriority.MEDIUM: "·",
    TaskPriority.HIGH: "!",
    TaskPriority.URGENT: "‼",
}

STATUS_INDICATORS = {
    TaskStatus.TODO: "[ ]",
    TaskStatus.IN_PROGRESS: "[~]",
    TaskStatus.COMPLETED: "[x]",
}


def parse_task_title(raw_title: str) -> tuple[str, str | None]:
    """Parse a quick-add title, extracting category from #tag syntax.

    The category is taken from everything after the LAST '#' character.

    Args:
        raw_title: The raw input string, e.g., "renew passport #Personal"

    Returns:
        A tuple of (title, category). Category is None if no valid category found.

    Examples:
        >>> parse_task_title("buy milk")
        ("buy milk", None)
        >>> parse_task_title("renew passport #Personal")
        ("renew passport", "Personal")
        >>> parse_task_title("task with #multiple #tags")
        ("task with #multiple", "tags")
    """
    if "#" not in raw_title:
        return raw_title.strip(), None

    last_hash_index = raw_title.rfind("#")
    title_part = raw_title[:last_hash_index].strip()
    category_part = raw_title[last_hash_index + 1 :].strip()

    # If category is empty or title is empty, treat as uncategorized
    if not category_part or not title_part:
        return raw_title.strip(), None

    return title_part, category_part


def completion_indicator(task: Task) -> str:
    """Checkbox for the completed flag, falling back to status when open."""
    if task.completed:
        return "[x]"
    return STATUS_INDICATORS.get(task.status, "[ ]")


def format_due_date(due: date | None, today: date | None = None) -> str:
    """Short human label for a due date."""
    if due is None:
        return ""
    today = today or date.today()
    delta = (due - today).days
    if delta == 0:
        return "due today"
    if delta == 1:
        return "due tomorrow"
    if delta < 0:
        return f"overdue {due.isoformat()}"
    return f"due {due.isoformat()}"


def format_timestamp(value: datetime | None) -> str:
    if value is None:
        return "-"
    return value.astimezone().strftime("%Y-%m-%d %H:%M")
