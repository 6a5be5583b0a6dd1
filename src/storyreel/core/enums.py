"""Core enumerations for the Storyreel workflow job manager."""
from enum import Enum


class JobStatus(str, Enum):
    """
    Job state machine states.

    State flow:
        PENDING → RUNNING → COMPLETED/FAILED/CANCELLED
           ↓
        CANCELLED (before the backend starts)
    """

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"

    def __str__(self) -> str:
        """Return string representation of the enum value."""
        return self.value


class WorkflowType(str, Enum):
    """
    Backend families a workflow can be dispatched to.

    - LOCAL_PIPELINE: GPU pipeline launched as a local subprocess
    - REMOTE_AUTOMATION: ComfyUI-style automation server over HTTP
    - TOOL_CALL: tool/plugin capability provider
    """

    LOCAL_PIPELINE = "local-pipeline"
    REMOTE_AUTOMATION = "remote-automation"
    TOOL_CALL = "tool-call"

    def __str__(self) -> str:
        """Return string representation of the enum value."""
        return self.value


class WorkflowIOType(str, Enum):
    """Media types accepted by workflow inputs and outputs."""

    TEXT = "text"
    IMAGE = "image"
    VIDEO = "video"
    AUDIO = "audio"
    FILE = "file"

    def __str__(self) -> str:
        """Return string representation of the enum value."""
        return self.value


class RetryPolicy(str, Enum):
    """
    Retry backoff policies for generation calls.

    - FIXED: Retry with fixed delay
    - EXPONENTIAL: Retry with exponentially increasing delay
    - JITTER: Retry with exponential delay plus random jitter
    """

    FIXED = "fixed"
    EXPONENTIAL = "exponential"
    JITTER = "jitter"

    def __str__(self) -> str:
        """Return string representation of the enum value."""
        return self.value
