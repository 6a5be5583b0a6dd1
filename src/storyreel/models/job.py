"""In-memory job record owned by a single adapter."""
import dataclasses
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional
from storyreel.core.enums import JobStatus, WorkflowType


@dataclass
class Job:
    """
    One unit of workflow execution.

    Jobs live only in the owning adapter's job table and are never persisted;
    callers receive copies produced by ``snapshot``.
    """

    id: str
    workflow_id: str
    workflow_type: WorkflowType
    created_at: datetime
    status: JobStatus = JobStatus.PENDING
    progress: Optional[int] = None
    message: str = ""
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    result: Optional[Dict[str, Any]] = None

    @property
    def duration_seconds(self) -> Optional[float]:
        if self.start_time is None or self.end_time is None:
            return None
        return (self.end_time - self.start_time).total_seconds()

    def snapshot(self) -> "Job":
        """Return an independent copy of this job."""
        copy = dataclasses.replace(self)
        if self.result is not None:
            copy.result = dict(self.result)
        return copy

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "workflow_id": self.workflow_id,
            "workflow_type": str(self.workflow_type),
            "status": str(self.status),
            "progress": self.progress,
            "message": self.message,
            "start_time": self.start_time.isoformat() if self.start_time else None,
            "end_time": self.end_time.isoformat() if self.end_time else None,
            "result": self.result,
        }
