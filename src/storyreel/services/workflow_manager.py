"""Workflow manager dispatching workflows to backend adapters."""
import logging
from typing import Any, Callable, Dict, List, Optional
from storyreel.adapters.base import BaseAdapter
from storyreel.adapters.registry import AdapterRegistry
from storyreel.core.enums import WorkflowType
from storyreel.core.exceptions import (
    BackendUnavailableError,
    ManagerNotInitializedError,
    UnsupportedWorkflowTypeError,
    WorkflowValidationError,
)
from storyreel.models.job import Job
from storyreel.models.workflow import WorkflowConfig, WorkflowResult
from storyreel.observability.metrics import record_workflow_rejected, record_workflow_submitted
from storyreel.services.job_registry import JobRegistry
from storyreel.services.validation import validate_workflow_config

logger = logging.getLogger(__name__)

Validator = Callable[[WorkflowConfig], None]


class WorkflowManager:
    """
    Orchestration facade over the workflow adapters.

    Selects the adapter for ``config.type``, delegates execution and keeps
    the job registry used to route later status and cancel calls. Job ids
    are issued by the adapters; the registry is keyed by the same ids.
    """

    def __init__(
        self,
        adapter_registry: AdapterRegistry,
        validator: Optional[Validator] = validate_workflow_config,
    ):
        """
        Initialize workflow manager.

        Args:
            adapter_registry: Factories for the configured adapters
            validator: Raises WorkflowValidationError for malformed configs
        """
        self.adapter_registry = adapter_registry
        self.validator = validator
        self.jobs = JobRegistry()
        self._adapters: Dict[WorkflowType, BaseAdapter] = {}
        self.is_initialized = False

    async def initialize(self) -> None:
        """
        Build and initialize one adapter per registered workflow type.

        Adapters are initialized sequentially; the first failure cleans up
        the adapters already initialized and aborts startup.

        Raises:
            BackendUnavailableError: If any adapter fails to initialize
        """
        if self.is_initialized:
            return

        adapters: Dict[WorkflowType, BaseAdapter] = {}
        for workflow_type in self.adapter_registry.list_adapters():
            adapter = self.adapter_registry.get_factory(workflow_type)()
            try:
                await adapter.initialize()
            except Exception as e:
                logger.error(f"Adapter {workflow_type} failed to initialize: {e}")
                await self._cleanup_adapter(adapter)
                for started in adapters.values():
                    await self._cleanup_adapter(started)
                if isinstance(e, BackendUnavailableError):
                    raise
                raise BackendUnavailableError(
                    f"Adapter {workflow_type} failed to initialize: {e}"
                ) from e
            adapters[workflow_type] = adapter

        self._adapters = adapters
        self.is_initialized = True
        names = ", ".join(str(t) for t in adapters) or "none"
        logger.info(f"Workflow manager initialized with adapters: {names}")

    async def execute(self, config: WorkflowConfig) -> WorkflowResult:
        """
        Submit a workflow for execution.

        Args:
            config: Workflow configuration

        Returns:
            WorkflowResult: Submission outcome; backend failures are reported
            here with ``success=False`` rather than raised

        Raises:
            TypeError: If config is not a WorkflowConfig
            WorkflowValidationError: If config is malformed
            ManagerNotInitializedError: If initialize() has not completed
            UnsupportedWorkflowTypeError: If no adapter handles config.type
        """
        if not isinstance(config, WorkflowConfig):
            raise TypeError(f"Expected WorkflowConfig, got {type(config).__name__}")

        workflow_type = str(config.type)
        if self.validator is not None:
            try:
                self.validator(config)
            except WorkflowValidationError as e:
                record_workflow_rejected(workflow_type, "validation")
                logger.warning(f"Workflow {config.id} rejected: {e}")
                raise

        if not self.is_initialized:
            raise ManagerNotInitializedError("Workflow manager is not initialized")

        adapter = self._adapters.get(config.type)
        if adapter is None:
            record_workflow_rejected(workflow_type, "unsupported")
            raise UnsupportedWorkflowTypeError(f"Unsupported workflow type: {config.type}")

        result = await adapter.execute(config)
        if result.success and result.job_id:
            self.jobs.register(result.job_id, config)
            record_workflow_submitted(workflow_type)
            logger.info(f"Workflow {config.id} accepted as job {result.job_id}")
        else:
            record_workflow_rejected(workflow_type, "execution_failed")
            logger.warning(f"Workflow {config.id} failed to start: {result.error}")
        return result

    async def get_status(self, job_id: str) -> Job:
        """
        Get a snapshot of a job.

        Raises:
            JobNotFoundError: If the job id is unknown
        """
        adapter = self._adapter_for(job_id)
        return await adapter.get_status(job_id)

    async def cancel(self, job_id: str) -> None:
        """
        Cancel a job. Cancelling a finished job is a no-op.

        Raises:
            JobNotFoundError: If the job id is unknown
        """
        adapter = self._adapter_for(job_id)
        await adapter.cancel(job_id)

    async def list_jobs(self) -> List[Job]:
        """Return snapshots of every tracked job in submission order."""
        jobs: List[Job] = []
        for job_id in self.jobs.job_ids():
            adapter = self._adapters.get(self.jobs.get(job_id).type)
            if adapter is None:
                continue
            jobs.append(await adapter.get_status(job_id))
        return jobs

    def adapter_health(self) -> Dict[str, Any]:
        return {str(t): adapter.health() for t, adapter in self._adapters.items()}

    async def cleanup(self) -> None:
        """
        Cancel every tracked job and tear down the adapters.

        Individual failures are logged and never stop the rest of shutdown.
        """
        for job_id in self.jobs.job_ids():
            try:
                await self.cancel(job_id)
            except Exception as e:
                logger.error(f"Failed to cancel job {job_id} during cleanup: {e}")

        for adapter in self._adapters.values():
            await self._cleanup_adapter(adapter)

        if self.jobs or self._adapters:
            logger.info("Workflow manager cleaned up")
        self.jobs.clear()
        self._adapters = {}
        self.is_initialized = False

    def _adapter_for(self, job_id: str) -> BaseAdapter:
        config = self.jobs.get(job_id)
        adapter = self._adapters.get(config.type)
        if adapter is None:
            raise ManagerNotInitializedError(
                f"No active adapter for workflow type {config.type}"
            )
        return adapter

    async def _cleanup_adapter(self, adapter: BaseAdapter) -> None:
        try:
            await adapter.cleanup()
        except Exception as e:
            logger.error(f"Failed to clean up adapter {adapter.name}: {e}")
