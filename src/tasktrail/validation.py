"""Client-side validation of task form input."""

from datetime import date
from typing import Any

from tasktrail.errors import ValidationError
from tasktrail.models import DEFAULT_CATEGORY, TaskPriority, TaskStatus


def parse_due_date(raw: Any) -> date | None:
    """Parse a YYYY-MM-DD string. Empty input means no due date.

    Raises:
        ValueError: If the string is not a valid ISO date.
    """
    if raw is None or isinstance(raw, date):
        return raw
    text = str(raw).strip()
    if not text:
        return None
    return date.fromisoformat(text)


def validate_task_input(
    data: dict[str, Any],
    creating: bool = True,
    today: date | None = None,
) -> dict[str, Any]:
    """Check form data before it is sent anywhere.

    Args:
        data: Raw form values keyed by task field name.
        creating: True for a new task. A past due date is only rejected on
            creation so existing overdue tasks stay editable.
        today: Reference date, defaults to date.today().

    Returns:
        Cleaned field values ready for the gateway.

    Raises:
        ValidationError: With one message per offending field.
    """
    today = today or date.today()
    errors: dict[str, str] = {}
    cleaned: dict[str, Any] = {}

    title = str(data.get("title") or "").strip()
    if not title:
        errors["title"] = "Title is required"
    cleaned["title"] = title
    cleaned["description"] = str(data.get("description") or "")

    status = data.get("status") or TaskStatus.TODO.value
    try:
        cleaned["status"] = TaskStatus(getattr(status, "value", status)).value
    except ValueError:
        errors["status"] = f"Unknown status: {status}"

    priority = data.get("priority") or TaskPriority.MEDIUM.value
    try:
        cleaned["priority"] = TaskPriority(getattr(priority, "value", priority)).value
    except ValueError:
        errors["priority"] = f"Unknown priority: {priority}"

    cleaned["category"] = str(data.get("category") or DEFAULT_CATEGORY).strip() or DEFAULT_CATEGORY

    try:
        due = parse_due_date(data.get("due_date"))
    except ValueError:
        errors["due_date"] = "Use the format YYYY-MM-DD"
    else:
        if creating and due is not None and due < today:
            errors["due_date"] = "Due date cannot be in the past"
        cleaned["due_date"] = due

    cleaned["completed"] = bool(data.get("completed", False))

    if errors:
        raise ValidationError(errors)
    return cleaned
