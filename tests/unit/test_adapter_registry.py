"""Unit tests for Adapter Registry."""
import pytest
from storyreel.core.enums import WorkflowType
from tests.factories.fakes import FakeAdapter, RecordingToolProvider


class TestAdapterRegistry:
    """Unit tests for AdapterRegistry."""

    def test_register_adapter_factory(self):
        """Test registering an adapter factory."""
        from storyreel.adapters.registry import AdapterRegistry

        registry = AdapterRegistry()

        def factory():
            return FakeAdapter()

        registry.register_adapter(WorkflowType.LOCAL_PIPELINE, factory)

        assert registry.has_adapter(WorkflowType.LOCAL_PIPELINE)
        assert registry.get_factory(WorkflowType.LOCAL_PIPELINE) is factory

    def test_register_accepts_string_type(self):
        """Test workflow types may be given by value."""
        from storyreel.adapters.registry import AdapterRegistry

        registry = AdapterRegistry()
        registry.register_adapter("tool-call", FakeAdapter)

        assert registry.has_adapter(WorkflowType.TOOL_CALL)

    def test_get_factory_not_found_raises_error(self):
        """Test getting an unregistered type raises KeyError."""
        from storyreel.adapters.registry import AdapterRegistry

        registry = AdapterRegistry()

        with pytest.raises(KeyError, match="No adapter registered"):
            registry.get_factory(WorkflowType.REMOTE_AUTOMATION)

    def test_register_duplicate_type_raises_error(self):
        """Test registering the same workflow type twice raises ValueError."""
        from storyreel.adapters.registry import AdapterRegistry

        registry = AdapterRegistry()
        registry.register_adapter(WorkflowType.LOCAL_PIPELINE, FakeAdapter)

        with pytest.raises(ValueError, match="already registered"):
            registry.register_adapter(WorkflowType.LOCAL_PIPELINE, FakeAdapter)

    def test_register_decorator(self):
        """Test registering a factory with the decorator."""
        from storyreel.adapters.registry import AdapterRegistry

        registry = AdapterRegistry()

        @registry.register(WorkflowType.TOOL_CALL)
        def make_adapter():
            return FakeAdapter(workflow_type=WorkflowType.TOOL_CALL)

        assert registry.get_factory(WorkflowType.TOOL_CALL) is make_adapter

    def test_list_adapters_in_registration_order(self):
        """Test list_adapters keeps registration order."""
        from storyreel.adapters.registry import AdapterRegistry

        registry = AdapterRegistry()
        registry.register_adapter(WorkflowType.TOOL_CALL, FakeAdapter)
        registry.register_adapter(WorkflowType.LOCAL_PIPELINE, FakeAdapter)

        assert registry.list_adapters() == [WorkflowType.TOOL_CALL, WorkflowType.LOCAL_PIPELINE]


class TestBuildAdapterRegistry:
    """Unit tests for build_adapter_registry."""

    def test_registers_enabled_types_only(self):
        """Test only workflow types enabled in settings get a factory."""
        from storyreel.adapters import build_adapter_registry
        from storyreel.config import Settings

        settings = Settings(ENABLED_WORKFLOW_TYPES=["tool-call", "local-pipeline"])

        registry = build_adapter_registry(settings, tool_provider=RecordingToolProvider())

        assert registry.has_adapter(WorkflowType.TOOL_CALL)
        assert registry.has_adapter(WorkflowType.LOCAL_PIPELINE)
        assert not registry.has_adapter(WorkflowType.REMOTE_AUTOMATION)

    def test_factories_share_clock_and_id_generator(self, clock, id_generator):
        """Test adapters built by one registry share the id generator."""
        from storyreel.adapters import build_adapter_registry
        from storyreel.config import Settings

        registry = build_adapter_registry(
            Settings(),
            tool_provider=RecordingToolProvider(),
            clock=clock,
            id_generator=id_generator,
        )

        adapters = [registry.get_factory(t)() for t in registry.list_adapters()]

        assert len(adapters) == 3
        assert all(adapter.id_generator is id_generator for adapter in adapters)
        assert all(adapter.clock is clock for adapter in adapters)
        assert {adapter.workflow_type for adapter in adapters} == set(WorkflowType)

    def test_tool_call_skipped_without_provider(self, caplog):
        """Test tool-call is left out with a warning when no provider is given."""
        from storyreel.adapters import build_adapter_registry
        from storyreel.config import Settings

        settings = Settings(ENABLED_WORKFLOW_TYPES=["local-pipeline", "tool-call"])

        with caplog.at_level("WARNING", logger="storyreel.adapters"):
            registry = build_adapter_registry(settings)

        assert registry.list_adapters() == [WorkflowType.LOCAL_PIPELINE]
        assert "no tool provider configured" in caplog.text

    def test_unknown_type_in_settings_raises(self):
        """Test an unknown workflow type in settings is rejected."""
        from storyreel.adapters import build_adapter_registry
        from storyreel.config import Settings

        with pytest.raises(ValueError):
            build_adapter_registry(Settings(ENABLED_WORKFLOW_TYPES=["nope"]))
