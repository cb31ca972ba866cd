"""Screen modules for TaskTrail."""

from tasktrail.screens.auth import AuthScreen
from tasktrail.screens.dashboard import DashboardScreen
from tasktrail.screens.dialogs import ConfirmDialog
from tasktrail.screens.task_form import TaskFormModal

__all__ = ["AuthScreen", "ConfirmDialog", "DashboardScreen", "TaskFormModal"]
