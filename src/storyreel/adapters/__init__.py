"""Workflow backend adapters."""
import logging
from typing import Optional
from storyreel.adapters.base import BaseAdapter
from storyreel.adapters.local_pipeline import LocalPipelineAdapter
from storyreel.adapters.registry import AdapterRegistry
from storyreel.adapters.remote_automation import RemoteAutomationAdapter
from storyreel.adapters.tool_call import ToolCallAdapter, ToolProvider
from storyreel.config import Settings, get_settings
from storyreel.core.clock import IdGenerator, SystemClock, TimeSource, TimestampIdGenerator
from storyreel.core.enums import WorkflowType

__all__ = [
    "AdapterRegistry",
    "BaseAdapter",
    "LocalPipelineAdapter",
    "RemoteAutomationAdapter",
    "ToolCallAdapter",
    "ToolProvider",
    "build_adapter_registry",
]

logger = logging.getLogger(__name__)


def build_adapter_registry(
    settings: Optional[Settings] = None,
    tool_provider: Optional[ToolProvider] = None,
    clock: Optional[TimeSource] = None,
    id_generator: Optional[IdGenerator] = None,
) -> AdapterRegistry:
    """
    Register a factory for every workflow type enabled in settings.

    All adapters share one clock and one id generator so job ids are unique
    across backends.

    Args:
        settings: Application settings
        tool_provider: Capability provider for tool-call workflows; tool-call is
            skipped when it is missing
        clock: Shared time source
        id_generator: Shared job id generator

    Returns:
        AdapterRegistry: Registry with the enabled adapters
    """
    settings = settings or get_settings()
    clock = clock or SystemClock()
    id_generator = id_generator or TimestampIdGenerator(clock)
    common = {
        "clock": clock,
        "id_generator": id_generator,
        "max_concurrent_jobs": settings.ADAPTER_MAX_CONCURRENT_JOBS,
        "default_expected_duration": settings.DEFAULT_EXPECTED_DURATION,
    }

    registry = AdapterRegistry()
    enabled = {WorkflowType(value) for value in settings.ENABLED_WORKFLOW_TYPES}

    if WorkflowType.LOCAL_PIPELINE in enabled:
        registry.register_adapter(
            WorkflowType.LOCAL_PIPELINE,
            lambda: LocalPipelineAdapter(
                command=settings.LOCAL_PIPELINE_COMMAND,
                kill_timeout=settings.LOCAL_PIPELINE_KILL_TIMEOUT,
                **common,
            ),
        )

    if WorkflowType.REMOTE_AUTOMATION in enabled:
        registry.register_adapter(
            WorkflowType.REMOTE_AUTOMATION,
            lambda: RemoteAutomationAdapter(
                base_url=settings.REMOTE_AUTOMATION_URL,
                request_timeout=settings.REMOTE_REQUEST_TIMEOUT,
                poll_interval=settings.REMOTE_POLL_INTERVAL,
                poll_timeout=settings.REMOTE_POLL_TIMEOUT,
                **common,
            ),
        )

    if WorkflowType.TOOL_CALL in enabled and tool_provider is None:
        logger.warning("Tool-call workflows disabled: no tool provider configured")
    elif WorkflowType.TOOL_CALL in enabled:
        registry.register_adapter(
            WorkflowType.TOOL_CALL,
            lambda: ToolCallAdapter(provider=tool_provider, **common),
        )

    return registry
