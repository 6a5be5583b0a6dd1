"""Adapter registry for workflow type to adapter factory mapping."""
from typing import Callable, Dict, List
from storyreel.adapters.base import BaseAdapter
from storyreel.core.enums import WorkflowType

AdapterFactory = Callable[[], BaseAdapter]


class AdapterRegistry:
    """
    Registry mapping workflow types to adapter factories.

    The workflow manager builds one adapter per registered type when it
    initializes, so factories rather than instances are registered.
    """

    def __init__(self):
        """Initialize empty adapter registry."""
        self._factories: Dict[WorkflowType, AdapterFactory] = {}

    def register_adapter(self, workflow_type: WorkflowType, factory: AdapterFactory) -> None:
        """
        Register an adapter factory for a workflow type.

        Args:
            workflow_type: The workflow type the adapter handles
            factory: Zero-argument callable returning a new adapter

        Raises:
            ValueError: If an adapter for this workflow type is already registered
        """
        workflow_type = WorkflowType(workflow_type)
        if workflow_type in self._factories:
            raise ValueError(f"Adapter for workflow type '{workflow_type}' already registered")

        self._factories[workflow_type] = factory

    def register(self, workflow_type: WorkflowType) -> Callable:
        """
        Decorator for registering an adapter factory.

        Example:
            >>> registry = AdapterRegistry()
            >>> @registry.register(WorkflowType.TOOL_CALL)
            >>> def make_tool_adapter():
            >>>     return ToolCallAdapter(provider)
        """

        def decorator(factory: AdapterFactory) -> AdapterFactory:
            self.register_adapter(workflow_type, factory)
            return factory

        return decorator

    def get_factory(self, workflow_type: WorkflowType) -> AdapterFactory:
        """
        Get the adapter factory for a workflow type.

        Raises:
            KeyError: If no adapter registered for this workflow type
        """
        if workflow_type not in self._factories:
            raise KeyError(f"No adapter registered for workflow type: {workflow_type}")

        return self._factories[workflow_type]

    def has_adapter(self, workflow_type: WorkflowType) -> bool:
        return workflow_type in self._factories

    def list_adapters(self) -> List[WorkflowType]:
        """
        List all registered workflow types in registration order.

        Returns:
            List[WorkflowType]: Registered workflow types
        """
        return list(self._factories.keys())
