class TasknestError(Exception):
    """Base class for errors raised by the backend."""


class ValidationError(TasknestError):
    """Malformed input rejected before any mutation."""


class TaskNotFound(ValidationError):
    def __init__(self, task_id):
        super().__init__(f"Task {task_id} not found")
        self.task_id = task_id


class StoreError(TasknestError):
    """Persistence layer failure."""


class ConcurrencyConflict(TasknestError):
    """
    A successor for this recurring task already exists.

    Not a failure: the caller treats it as a skipped creation.
    """

    def __init__(self, message: str, reason=None):
        super().__init__(message)
        self.reason = reason


class SmsGatewayError(TasknestError):
    """Transport-level failure talking to the SMS provider."""
