"""Adapter delegating workflows to a tool/plugin capability provider."""
import asyncio
import inspect
import logging
from typing import Any, Dict, Optional, Protocol, Tuple
from storyreel.adapters.base import BaseAdapter
from storyreel.core.enums import WorkflowType
from storyreel.core.exceptions import BackendUnavailableError, ExecutionFailedError
from storyreel.models.job import Job
from storyreel.models.workflow import WorkflowConfig

logger = logging.getLogger(__name__)


class ToolProvider(Protocol):
    """Opaque capability provider, such as the plugin host."""

    async def execute(self, action: str, params: Dict[str, Any]) -> Any:
        ...


class ToolCallAdapter(BaseAdapter):
    """
    Runs a workflow as a single ``execute(action, params)`` call.

    ``config["action"]`` names the action; params are the workflow input
    defaults overlaid with ``config["params"]``.
    """

    workflow_type = WorkflowType.TOOL_CALL

    def __init__(self, provider: Optional[ToolProvider] = None, **kwargs):
        super().__init__(**kwargs)
        self.provider = provider

    async def _initialize_backend(self) -> None:
        if self.provider is None:
            raise BackendUnavailableError("No tool provider configured")

    def prepare(self, config: WorkflowConfig) -> Tuple[str, Dict[str, Any]]:
        action = config.config.get("action")
        if not isinstance(action, str) or not action.strip():
            raise ExecutionFailedError(f"Workflow {config.id} names no tool action")

        params = config.config.get("params") or {}
        if not isinstance(params, dict):
            raise ExecutionFailedError("config['params'] must be an object")

        return action, {**config.input_values(), **params}

    async def _run(self, job: Job, prepared: Tuple[str, Dict[str, Any]]) -> Dict[str, Any]:
        if self.provider is None:
            raise ExecutionFailedError("No tool provider configured")

        action, params = prepared
        logger.info(f"Job {job.id} calling tool action {action}")
        if inspect.iscoroutinefunction(self.provider.execute):
            value = await self.provider.execute(action, params)
        else:
            # Blocking providers run on a worker thread
            value = await asyncio.to_thread(self.provider.execute, action, params)
        if inspect.isawaitable(value):
            value = await value

        if isinstance(value, dict):
            return value
        return {"output": value}
