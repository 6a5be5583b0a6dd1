"""Custom exceptions for Storyreel."""
from typing import Any, Dict, List, Optional


class StoryreelException(Exception):
    """Base exception for all Storyreel-specific exceptions."""

    pass


class WorkflowValidationError(StoryreelException):
    """Raised when a workflow configuration is malformed."""

    def __init__(self, errors: List[str]):
        self.errors = list(errors)
        super().__init__("Invalid workflow configuration: " + "; ".join(self.errors))


class UnsupportedWorkflowTypeError(StoryreelException):
    """Raised when no adapter is available for a workflow type."""

    pass


class JobNotFoundError(StoryreelException):
    """Raised when the workflow manager has no record of a job id."""

    pass


class AdapterJobNotFoundError(StoryreelException):
    """Raised when an adapter has no record of a job id."""

    pass


class InvalidStateTransitionError(StoryreelException):
    """Raised when attempting an invalid job state transition."""

    pass


class BackendUnavailableError(StoryreelException):
    """Raised when an adapter backend cannot be reached during initialization."""

    pass


class ExecutionFailedError(StoryreelException):
    """Raised by adapters for backend failures; captured, never thrown from execute."""

    pass


class ManagerNotInitializedError(StoryreelException):
    """Raised when the workflow manager is used before initialize()."""

    pass


class TaskNotFoundError(StoryreelException):
    """Raised when a fan-out task id is unknown."""

    pass


class TaskFailedError(StoryreelException):
    """Raised when waiting on a task that failed or was cancelled."""

    def __init__(self, task_id: str, error: Optional[str] = None):
        self.task_id = task_id
        self.error = error
        self.partial_results: Dict[str, Any] = {}
        super().__init__(f"Task {task_id} failed: {error or 'unknown error'}")


class TaskTimeoutError(StoryreelException):
    """Raised when a task does not finish within the wait timeout."""

    def __init__(self, task_id: str, timeout: float):
        self.task_id = task_id
        self.timeout = timeout
        self.partial_results: Dict[str, Any] = {}
        super().__init__(f"Task {task_id} timed out after {timeout} seconds")


class WorkflowNotFoundError(StoryreelException):
    """Raised when a saved workflow is not found."""

    pass


class PersistenceUnavailableError(StoryreelException, NotImplementedError):
    """Raised when workflow persistence is requested but not configured."""

    pass


class EmptyNovelError(StoryreelException):
    """Raised when a novel to be split into chapters has no content."""

    pass
