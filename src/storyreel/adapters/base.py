"""Base adapter owning the job table and job lifecycle for one backend."""
import asyncio
import logging
import time
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Set
from storyreel.config import get_settings
from storyreel.core.clock import IdGenerator, SystemClock, TimeSource, TimestampIdGenerator
from storyreel.core.enums import JobStatus, WorkflowType
from storyreel.core.exceptions import AdapterJobNotFoundError, InvalidStateTransitionError
from storyreel.models.job import Job
from storyreel.models.workflow import WorkflowConfig, WorkflowResult
from storyreel.observability.metrics import record_job_finished, record_job_started
from storyreel.services.state_machine import JobStateMachine

logger = logging.getLogger(__name__)


class BaseAdapter(ABC):
    """
    Common lifecycle for workflow backends.

    Subclasses implement ``prepare`` (synchronous parameter building) and
    ``_run`` (the awaited backend call). The base class owns the private job
    table, the in-flight asyncio tasks and a semaphore bounding how many jobs
    may talk to the backend at once.

    Every mutation after an ``await`` re-reads the job from the table and
    checks it is still non-terminal, so a cancel or cleanup that lands while
    the backend is busy is never overwritten.
    """

    workflow_type: WorkflowType

    def __init__(
        self,
        clock: Optional[TimeSource] = None,
        id_generator: Optional[IdGenerator] = None,
        max_concurrent_jobs: Optional[int] = None,
        default_expected_duration: Optional[float] = None,
    ):
        """
        Initialize adapter.

        Args:
            clock: Source of job timestamps
            id_generator: Source of job ids
            max_concurrent_jobs: Maximum jobs running against the backend at once
            default_expected_duration: Seconds used for progress estimates
        """
        settings = get_settings()
        self.clock = clock or SystemClock()
        self.id_generator = id_generator or TimestampIdGenerator(self.clock)
        self.max_concurrent_jobs = max_concurrent_jobs or settings.ADAPTER_MAX_CONCURRENT_JOBS
        self.default_expected_duration = (
            default_expected_duration
            if default_expected_duration is not None
            else settings.DEFAULT_EXPECTED_DURATION
        )

        self._jobs: Dict[str, Job] = {}
        self._tasks: Dict[str, asyncio.Task] = {}
        self._expected_durations: Dict[str, float] = {}
        self._reported_progress: Dict[str, int] = {}

        # Concurrency control
        self._slots = asyncio.Semaphore(self.max_concurrent_jobs)
        self._holding: Set[str] = set()

        self.is_initialized = False

    @property
    def name(self) -> str:
        return str(self.workflow_type)

    # Backend hooks

    async def _initialize_backend(self) -> None:
        """Connectivity check; raise BackendUnavailableError on failure."""

    @abstractmethod
    def prepare(self, config: WorkflowConfig) -> Any:
        """
        Build backend parameters from a workflow config.

        Raises:
            ExecutionFailedError: If the config cannot run on this backend
        """

    @abstractmethod
    async def _run(self, job: Job, prepared: Any) -> Dict[str, Any]:
        """Perform the backend work for a job and return its result."""

    async def abort(self, job: Job) -> None:
        """Signal the backend to stop work for a job. Best effort."""

    async def _close(self) -> None:
        """Release backend resources."""

    # Lifecycle

    async def initialize(self) -> None:
        """
        Perform one-time backend setup.

        Raises:
            BackendUnavailableError: If the backend cannot be reached
        """
        await self._initialize_backend()
        self.is_initialized = True
        logger.info(f"Adapter {self.name} initialized")

    async def execute(self, config: WorkflowConfig) -> WorkflowResult:
        """
        Create a job for ``config`` and start backend work without waiting for it.

        Args:
            config: Workflow configuration

        Returns:
            WorkflowResult: Submission outcome carrying ``result["job_id"]``

        Raises:
            TypeError: If config is not a WorkflowConfig
            ValueError: If config targets a different workflow type
        """
        if not isinstance(config, WorkflowConfig):
            raise TypeError(f"Expected WorkflowConfig, got {type(config).__name__}")
        if config.type != self.workflow_type:
            raise ValueError(
                f"Adapter {self.name} cannot execute workflow of type {config.type}"
            )

        started = time.perf_counter()
        try:
            prepared = self.prepare(config)
        except Exception as e:
            logger.warning(f"Workflow {config.id} rejected by {self.name}: {e}")
            return WorkflowResult.failure(str(e), _elapsed_ms(started))

        job = Job(
            id=self.id_generator.new_id("job"),
            workflow_id=config.id,
            workflow_type=self.workflow_type,
            created_at=self.clock.get_current_time(),
            message="queued",
        )
        self._jobs[job.id] = job
        self._expected_durations[job.id] = _expected_duration(
            config, self.default_expected_duration
        )
        record_job_started(self.name)

        # Take a free slot now so the job reports running before we return
        if not self._slots.locked():
            await self._slots.acquire()
            self._holding.add(job.id)
            self._mark_running(job)

        task = asyncio.create_task(self._drive(job.id, prepared), name=f"{self.name}:{job.id}")
        self._tasks[job.id] = task
        task.add_done_callback(lambda t, job_id=job.id: self._on_task_done(job_id))

        logger.info(f"Job {job.id} accepted for workflow {config.id} on {self.name}")
        return WorkflowResult.ok(
            {
                "job_id": job.id,
                "message": f"Workflow {config.name} submitted",
                "workflow_type": self.name,
            },
            _elapsed_ms(started),
        )

    async def get_status(self, job_id: str) -> Job:
        """
        Get a snapshot of a job.

        Raises:
            AdapterJobNotFoundError: If the adapter has no record of the job
        """
        job = self._get_job(job_id)
        if job.status == JobStatus.RUNNING:
            self._refresh_progress(job)
        return job.snapshot()

    async def cancel(self, job_id: str) -> None:
        """
        Cancel a pending or running job. No-op for terminal jobs.

        Raises:
            AdapterJobNotFoundError: If the adapter has no record of the job
        """
        job = self._get_job(job_id)
        if JobStateMachine.is_terminal(job.status):
            return

        self._finish(job.id, JobStatus.CANCELLED, message="cancelled by user")
        await self._stop_backend(job)
        logger.info(f"Job {job_id} cancelled")

    async def cleanup(self) -> None:
        """Cancel every outstanding job, clear job state and release the backend."""
        outstanding = [
            job for job in self._jobs.values()
            if not JobStateMachine.is_terminal(job.status)
        ]
        for job in outstanding:
            self._finish(job.id, JobStatus.CANCELLED, message="cancelled at shutdown")
            await self._stop_backend(job)

        tasks = list(self._tasks.values())
        if tasks:
            await asyncio.wait(tasks, timeout=5.0)

        self._jobs.clear()
        self._tasks.clear()
        self._expected_durations.clear()
        self._reported_progress.clear()

        try:
            await self._close()
        except Exception as e:
            logger.error(f"Error closing adapter {self.name}: {e}")

        if outstanding:
            logger.info(f"Adapter {self.name} cancelled {len(outstanding)} jobs at shutdown")
        self.is_initialized = False

    def list_jobs(self) -> List[Job]:
        return [job.snapshot() for job in self._jobs.values()]

    def health(self) -> Dict[str, Any]:
        active = sum(
            1 for job in self._jobs.values()
            if not JobStateMachine.is_terminal(job.status)
        )
        return {
            "initialized": self.is_initialized,
            "jobs": len(self._jobs),
            "active_jobs": active,
            "max_concurrent_jobs": self.max_concurrent_jobs,
        }

    # Internals

    def _get_job(self, job_id: str) -> Job:
        job = self._jobs.get(job_id)
        if job is None:
            raise AdapterJobNotFoundError(f"Job {job_id} not found in adapter {self.name}")
        return job

    def _is_live(self, job_id: str) -> bool:
        job = self._jobs.get(job_id)
        return job is not None and not JobStateMachine.is_terminal(job.status)

    def report_progress(self, job_id: str, progress: int) -> None:
        """Record progress reported by the backend itself."""
        if self._is_live(job_id):
            self._reported_progress[job_id] = max(0, min(int(progress), 99))

    def _mark_running(self, job: Job) -> None:
        JobStateMachine.validate_transition(job.status, JobStatus.RUNNING)
        job.status = JobStatus.RUNNING
        job.start_time = self.clock.get_current_time()
        job.progress = 0
        job.message = "running"

    def _finish(
        self,
        job_id: str,
        status: JobStatus,
        message: str,
        result: Optional[Dict[str, Any]] = None,
    ) -> bool:
        """
        Move a job into a terminal state.

        Returns False without touching the job when it is gone or already
        terminal.
        """
        job = self._jobs.get(job_id)
        if job is None:
            return False
        if not JobStateMachine.can_transition(job.status, status):
            if JobStateMachine.is_terminal(job.status):
                return False
            raise InvalidStateTransitionError(
                f"Invalid state transition: {job.status} -> {status}"
            )

        job.status = status
        job.end_time = self.clock.get_current_time()
        job.message = message
        if status == JobStatus.COMPLETED:
            job.progress = 100
            job.result = result if result is not None else {}
        elif status == JobStatus.FAILED:
            job.result = result if result is not None else {"error": message}

        record_job_finished(self.name, str(status), job.duration_seconds)
        return True

    def _refresh_progress(self, job: Job) -> None:
        reported = self._reported_progress.get(job.id)
        if reported is not None:
            estimate = reported
        elif job.start_time is None:
            estimate = 0
        else:
            elapsed = (self.clock.get_current_time() - job.start_time).total_seconds()
            expected = self._expected_durations.get(job.id, self.default_expected_duration)
            estimate = int(elapsed / expected * 100) if expected > 0 else 0
        job.progress = max(job.progress or 0, min(estimate, 99))

    async def _stop_backend(self, job: Job) -> None:
        task = self._tasks.get(job.id)
        if task is not None and not task.done():
            task.cancel()
        try:
            await self.abort(job)
        except Exception as e:
            logger.error(f"Error aborting job {job.id} on {self.name}: {e}")

    async def _drive(self, job_id: str, prepared: Any) -> None:
        if job_id not in self._holding:
            await self._slots.acquire()
            self._holding.add(job_id)
            job = self._jobs.get(job_id)
            if job is None or JobStateMachine.is_terminal(job.status):
                return
            self._mark_running(job)

        job = self._jobs.get(job_id)
        if job is None or JobStateMachine.is_terminal(job.status):
            return

        try:
            result = await self._run(job, prepared)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            if self._finish(job_id, JobStatus.FAILED, message=str(e), result={"error": str(e)}):
                logger.error(f"Job {job_id} failed on {self.name}: {e}")
        else:
            if self._finish(job_id, JobStatus.COMPLETED, message="completed", result=result):
                logger.info(f"Job {job_id} completed on {self.name}")

    def _on_task_done(self, job_id: str) -> None:
        # Runs even when the task was cancelled before it started
        self._tasks.pop(job_id, None)
        self._reported_progress.pop(job_id, None)
        if job_id in self._holding:
            self._holding.discard(job_id)
            self._slots.release()


def _elapsed_ms(started: float) -> float:
    return (time.perf_counter() - started) * 1000.0


def _expected_duration(config: WorkflowConfig, default: float) -> float:
    value = config.config.get("expected_duration", default)
    try:
        return float(value)
    except (TypeError, ValueError):
        return default
