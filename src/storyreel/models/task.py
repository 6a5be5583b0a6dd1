"""Fan-out task models."""
import dataclasses
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, Optional
from storyreel.core.enums import JobStatus


@dataclass
class TaskSpec:
    """
    Description of one background generation task.

    ``handler`` is a zero-argument coroutine function; its return value
    becomes the task result.
    """

    name: str
    handler: Callable[[], Awaitable[Any]]
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class Task:
    """Tracked state of a background task."""

    id: str
    name: str
    created_at: datetime
    status: JobStatus = JobStatus.PENDING
    started_at: Optional[datetime] = None
    ended_at: Optional[datetime] = None
    result: Any = None
    error: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def snapshot(self) -> "Task":
        return dataclasses.replace(self, metadata=dict(self.metadata))
