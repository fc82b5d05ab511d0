class TaskNotFoundError(Exception):
    """Raised when a task identifier does not exist in the task store."""

    def __init__(self, task_id: str) -> None:
        super().__init__(f"Task with id '{task_id}' was not found.")
        self.task_id = task_id


class PayloadValidationError(Exception):
    """Raised for malformed task input or malformed worker callbacks."""

    def __init__(self, message: str, errors: dict[str, str] | None = None) -> None:
        super().__init__(message)
        self.errors = errors or {}


class InvalidTaskStateError(Exception):
    """Raised when an operation is attempted on a task not eligible for it."""

    def __init__(self, task_id: str, status: str, operation: str) -> None:
        super().__init__(f"Cannot {operation} task '{task_id}' in status '{status}'.")
        self.task_id = task_id
        self.status = status
        self.operation = operation


class TransientWorkerError(Exception):
    """Raised by worker clients for network and service failures worth retrying."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class WorkerConfigurationError(ValueError):
    """Raised when a worker client is constructed with unusable settings."""


class PersistenceError(Exception):
    """Raised when the task store cannot be reached or rejects a statement."""
