"""Background task fan-out with bounded concurrency."""
import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, TypeVar
from storyreel.config import Settings, get_settings
from storyreel.core.clock import IdGenerator, SystemClock, TimeSource, TimestampIdGenerator
from storyreel.core.enums import JobStatus, RetryPolicy
from storyreel.core.exceptions import TaskFailedError, TaskNotFoundError, TaskTimeoutError
from storyreel.models.task import Task, TaskSpec
from storyreel.observability.metrics import record_task_created, record_task_finished
from storyreel.services.retry_service import RetryService
from storyreel.services.state_machine import JobStateMachine

logger = logging.getLogger(__name__)

T = TypeVar("T")


class AsyncTaskManager:
    """
    Creates, tracks and waits for background generation tasks.

    At most ``max_concurrency`` task handlers run at once across the whole
    manager; ``run_batch`` can cap a single batch lower still. Waiting polls
    task state every ``poll_interval`` seconds.
    """

    def __init__(
        self,
        clock: Optional[TimeSource] = None,
        id_generator: Optional[IdGenerator] = None,
        max_concurrency: int = 3,
        poll_interval: float = 1.0,
        default_timeout: float = 300.0,
        retry_service: Optional[RetryService] = None,
    ):
        """
        Initialize task manager.

        Args:
            clock: Source of task timestamps
            id_generator: Source of task ids
            max_concurrency: Maximum handlers running at once
            poll_interval: Seconds between status checks while waiting
            default_timeout: Wait timeout in seconds when none is given
            retry_service: Backoff calculator for execute_with_retry
        """
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")

        self.clock = clock or SystemClock()
        self.id_generator = id_generator or TimestampIdGenerator(self.clock)
        self.max_concurrency = max_concurrency
        self.poll_interval = poll_interval
        self.default_timeout = default_timeout
        self.retry_service = retry_service or RetryService()

        self._tasks: Dict[str, Task] = {}
        self._runners: Dict[str, asyncio.Task] = {}
        self._semaphore = asyncio.Semaphore(max_concurrency)

        # Results of the tasks that completed during the last wait_for_tasks call
        self.last_partial_results: Dict[str, Any] = {}

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None, **kwargs) -> "AsyncTaskManager":
        """Build a task manager using the task limits from settings."""
        settings = settings or get_settings()
        kwargs.setdefault("max_concurrency", settings.MAX_CONCURRENT_GENERATIONS)
        kwargs.setdefault("poll_interval", settings.TASK_POLL_INTERVAL)
        kwargs.setdefault("default_timeout", settings.TASK_WAIT_TIMEOUT)
        return cls(**kwargs)

    def create_task(self, spec: TaskSpec) -> str:
        """
        Start a background task and return its id immediately.

        Args:
            spec: Task description with a zero-argument coroutine handler

        Returns:
            str: Task id
        """
        return self._spawn(spec, None)

    def run_batch(
        self, specs: List[TaskSpec], max_concurrency: Optional[int] = None
    ) -> List[str]:
        """
        Start a batch of tasks.

        Args:
            specs: Task descriptions
            max_concurrency: Optional ceiling for this batch, below the manager-wide one

        Returns:
            List[str]: Task ids in the order of ``specs``
        """
        batch_semaphore = None
        if max_concurrency is not None:
            if max_concurrency < 1:
                raise ValueError("max_concurrency must be at least 1")
            batch_semaphore = asyncio.Semaphore(max_concurrency)
        return [self._spawn(spec, batch_semaphore) for spec in specs]

    def get_task(self, task_id: str) -> Task:
        """
        Get a snapshot of a task.

        Raises:
            TaskNotFoundError: If the task id is unknown
        """
        return self._get(task_id).snapshot()

    def cancel_task(self, task_id: str) -> None:
        """
        Cancel a task. Cancelling a finished task is a no-op.

        Raises:
            TaskNotFoundError: If the task id is unknown
        """
        task = self._get(task_id)
        if JobStateMachine.is_terminal(task.status):
            return

        self._settle(task_id, JobStatus.CANCELLED, error="cancelled")
        runner = self._runners.get(task_id)
        if runner is not None and not runner.done():
            runner.cancel()

    async def wait_for_task(self, task_id: str, timeout: Optional[float] = None) -> Any:
        """
        Wait for a task to finish and return its result.

        Args:
            task_id: Task id
            timeout: Seconds to wait, defaults to ``default_timeout``

        Returns:
            Any: The handler's return value

        Raises:
            TaskNotFoundError: If the task id is unknown
            TaskFailedError: If the task failed or was cancelled
            TaskTimeoutError: If the task did not finish in time
        """
        timeout = self.default_timeout if timeout is None else timeout
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout

        while True:
            task = self._get(task_id)
            if task.status == JobStatus.COMPLETED:
                return task.result
            if task.status in (JobStatus.FAILED, JobStatus.CANCELLED):
                raise TaskFailedError(task_id, task.error)

            remaining = deadline - loop.time()
            if remaining <= 0:
                raise TaskTimeoutError(task_id, timeout)
            await asyncio.sleep(min(self.poll_interval, remaining))

    async def wait_for_tasks(
        self, task_ids: List[str], timeout: Optional[float] = None
    ) -> List[Any]:
        """
        Wait for several tasks concurrently.

        Args:
            task_ids: Task ids
            timeout: Per-task wait timeout in seconds

        Returns:
            List[Any]: Results where ``results[i]`` belongs to ``task_ids[i]``

        Raises:
            TaskFailedError, TaskTimeoutError: For the first failing task in
            input order, with ``partial_results`` holding the results of every
            task that did complete
        """
        outcomes = await asyncio.gather(
            *(self.wait_for_task(task_id, timeout) for task_id in task_ids),
            return_exceptions=True,
        )

        partial = {
            task_id: outcome
            for task_id, outcome in zip(task_ids, outcomes)
            if not isinstance(outcome, BaseException)
        }
        self.last_partial_results = partial

        for task_id, outcome in zip(task_ids, outcomes):
            if isinstance(outcome, BaseException):
                if isinstance(outcome, (TaskFailedError, TaskTimeoutError)):
                    outcome.partial_results = dict(partial)
                logger.warning(
                    f"Batch wait failed at task {task_id}; "
                    f"{len(partial)}/{len(task_ids)} tasks completed"
                )
                raise outcome

        return list(outcomes)

    async def execute_with_retry(
        self,
        operation: Callable[[], Awaitable[T]],
        max_retries: int = 3,
        base_delay: float = 1.0,
        policy: RetryPolicy = RetryPolicy.EXPONENTIAL,
    ) -> T:
        """
        Run ``operation``, retrying failures with backoff.

        Args:
            operation: Zero-argument coroutine function
            max_retries: Retries after the first attempt
            base_delay: Base backoff delay in seconds
            policy: Backoff policy

        Returns:
            The operation's result

        Raises:
            Exception: The last error once retries are exhausted
        """
        retry_count = 0
        while True:
            try:
                return await operation()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                if not self.retry_service.should_retry(retry_count, max_retries):
                    logger.error(f"Operation failed after {retry_count + 1} attempts: {e}")
                    raise
                delay = self.retry_service.calculate_delay(retry_count, policy, base_delay)
                logger.warning(
                    f"Attempt {retry_count + 1} failed: {e}; retrying in {delay:.2f}s"
                )
                retry_count += 1
                await asyncio.sleep(delay)

    def prune(self) -> int:
        """
        Drop finished tasks so their records stop accumulating.

        Returns:
            int: Number of tasks removed
        """
        finished = [
            task_id
            for task_id, task in self._tasks.items()
            if JobStateMachine.is_terminal(task.status) and task_id not in self._runners
        ]
        for task_id in finished:
            del self._tasks[task_id]
        if finished:
            logger.debug(f"Pruned {len(finished)} finished tasks")
        return len(finished)

    async def shutdown(self, timeout: float = 5.0) -> None:
        """Cancel every outstanding task and drop finished records."""
        for task_id, task in list(self._tasks.items()):
            if not JobStateMachine.is_terminal(task.status):
                self.cancel_task(task_id)

        runners = [runner for runner in self._runners.values() if not runner.done()]
        if runners:
            logger.info(f"Waiting for {len(runners)} cancelled tasks...")
            await asyncio.wait(runners, timeout=timeout)

        self.prune()

    # Internals

    def _get(self, task_id: str) -> Task:
        task = self._tasks.get(task_id)
        if task is None:
            raise TaskNotFoundError(f"Task {task_id} not found")
        return task

    def _spawn(self, spec: TaskSpec, batch_semaphore: Optional[asyncio.Semaphore]) -> str:
        task = Task(
            id=self.id_generator.new_id("task"),
            name=spec.name,
            created_at=self.clock.get_current_time(),
            metadata=dict(spec.metadata),
        )
        self._tasks[task.id] = task

        runner = asyncio.create_task(
            self._execute(task.id, spec.handler, batch_semaphore), name=f"task:{task.id}"
        )
        self._runners[task.id] = runner
        runner.add_done_callback(lambda r, task_id=task.id: self._runners.pop(task_id, None))

        record_task_created()
        logger.debug(f"Task {task.id} ({spec.name}) created")
        return task.id

    async def _execute(
        self,
        task_id: str,
        handler: Callable[[], Awaitable[Any]],
        batch_semaphore: Optional[asyncio.Semaphore],
    ) -> None:
        if batch_semaphore is None:
            await self._execute_limited(task_id, handler)
        else:
            async with batch_semaphore:
                await self._execute_limited(task_id, handler)

    async def _execute_limited(
        self, task_id: str, handler: Callable[[], Awaitable[Any]]
    ) -> None:
        async with self._semaphore:
            task = self._tasks.get(task_id)
            if task is None or JobStateMachine.is_terminal(task.status):
                return
            task.status = JobStatus.RUNNING
            task.started_at = self.clock.get_current_time()

            try:
                result = await handler()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                self._settle(task_id, JobStatus.FAILED, error=str(e) or type(e).__name__)
                logger.error(f"Task {task_id} failed: {e}")
            else:
                self._settle(task_id, JobStatus.COMPLETED, result=result)

    def _settle(
        self,
        task_id: str,
        status: JobStatus,
        result: Any = None,
        error: Optional[str] = None,
    ) -> None:
        task = self._tasks.get(task_id)
        if task is None or not JobStateMachine.can_transition(task.status, status):
            return
        task.status = status
        task.ended_at = self.clock.get_current_time()
        task.result = result
        task.error = error
        record_task_finished(str(status))
