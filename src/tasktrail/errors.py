"""Exceptions raised by TaskTrail."""


class TaskTrailError(Exception):
    """Base class for all TaskTrail errors."""


class ServiceNotInitialized(TaskTrailError):
    """Raised when an operation needs a record service client and none is set."""

    def __init__(self, message: str = "Record service client not initialized") -> None:
        super().__init__(message)


class NotFound(TaskTrailError):
    """Raised when a record does not exist."""

    def __init__(self, table: str, record_id: object) -> None:
        self.table = table
        self.record_id = record_id
        super().__init__(f"No {table} record with Id {record_id}")


class ValidationError(TaskTrailError):
    """Raised when task input fails client-side checks.

    Attributes:
        errors: Mapping of field name to message.
    """

    def __init__(self, errors: dict[str, str]) -> None:
        self.errors = dict(errors)
        super().__init__("; ".join(f"{k}: {v}" for k, v in self.errors.items()))


class RemoteOperationFailed(TaskTrailError):
    """Raised for any other failure reported by a backing service."""


class AuthenticationError(TaskTrailError):
    """Raised when the identity service rejects a login, signup or logout."""
