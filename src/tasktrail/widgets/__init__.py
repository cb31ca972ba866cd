"""Widgets for TaskTrail."""

from tasktrail.widgets.header import AsciiArtHeader
from tasktrail.widgets.task_detail import TaskDetailView
from tasktrail.widgets.task_list import TaskListView

__all__ = ["AsciiArtHeader", "TaskDetailView", "TaskListView"]
