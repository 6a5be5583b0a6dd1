"""Job registry mapping job ids to their originating workflow configs."""
from typing import Dict, List
from storyreel.core.exceptions import JobNotFoundError
from storyreel.models.workflow import WorkflowConfig


class JobRegistry:
    """
    In-memory mapping from job id to the WorkflowConfig that created it.

    Owned exclusively by the WorkflowManager, which uses it to route
    status and cancel calls to the adapter that owns the job.
    """

    def __init__(self):
        """Initialize empty job registry."""
        self._jobs: Dict[str, WorkflowConfig] = {}

    def register(self, job_id: str, config: WorkflowConfig) -> None:
        """
        Record the config a job was submitted with.

        Raises:
            ValueError: If the job id is already registered
        """
        if job_id in self._jobs:
            raise ValueError(f"Job '{job_id}' already registered")
        self._jobs[job_id] = config

    def get(self, job_id: str) -> WorkflowConfig:
        """
        Get the config for a job.

        Raises:
            JobNotFoundError: If the job id is not registered
        """
        config = self._jobs.get(job_id)
        if config is None:
            raise JobNotFoundError(f"Job {job_id} not found")
        return config

    def job_ids(self) -> List[str]:
        return list(self._jobs.keys())

    def clear(self) -> None:
        self._jobs.clear()

    def __contains__(self, job_id: object) -> bool:
        return job_id in self._jobs

    def __len__(self) -> int:
        return len(self._jobs)
