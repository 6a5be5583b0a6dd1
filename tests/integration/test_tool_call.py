"""Integration tests for ToolCallAdapter."""
import threading
import pytest
from storyreel.adapters.tool_call import ToolCallAdapter
from storyreel.core.enums import JobStatus, WorkflowType
from storyreel.core.exceptions import BackendUnavailableError
from tests.factories.fakes import RecordingToolProvider, wait_for_status
from tests.factories.workflow_factory import make_config


def tool_config(**config):
    return make_config(workflow_type=WorkflowType.TOOL_CALL, config=config)


@pytest.mark.integration
@pytest.mark.asyncio
class TestToolCallAdapter:
    """Integration tests for the tool-call backend."""

    async def test_initialize_requires_provider(self):
        """Test startup fails without a tool provider."""
        adapter = ToolCallAdapter(provider=None)

        with pytest.raises(BackendUnavailableError, match="No tool provider configured"):
            await adapter.initialize()

    async def test_action_receives_inputs_and_params(self, clock, id_generator):
        """Test the provider is called with the action and merged params."""
        provider = RecordingToolProvider()
        adapter = ToolCallAdapter(provider=provider, clock=clock, id_generator=id_generator)
        await adapter.initialize()

        result = await adapter.execute(
            tool_config(action="tts.synthesize", params={"voice": "narrator"})
        )

        job = await wait_for_status(adapter, result.job_id, JobStatus.COMPLETED)
        assert provider.calls == [
            ("tts.synthesize", {"prompt": "a quiet village at dawn", "voice": "narrator"})
        ]
        assert job.result["action"] == "tts.synthesize"

    async def test_non_dict_result_is_wrapped(self, clock, id_generator):
        """Test scalar provider results are returned under output."""
        adapter = ToolCallAdapter(
            provider=RecordingToolProvider(result="voice.wav"), clock=clock, id_generator=id_generator
        )

        result = await adapter.execute(tool_config(action="tts.synthesize"))

        job = await wait_for_status(adapter, result.job_id, JobStatus.COMPLETED)
        assert job.result == {"output": "voice.wav"}

    async def test_sync_provider_supported(self, clock, id_generator):
        """Test a synchronous provider runs off the event loop thread."""
        threads = []

        class SyncProvider:
            def execute(self, action, params):
                threads.append(threading.current_thread())
                return {"done": action}

        adapter = ToolCallAdapter(provider=SyncProvider(), clock=clock, id_generator=id_generator)

        result = await adapter.execute(tool_config(action="ping"))

        job = await wait_for_status(adapter, result.job_id, JobStatus.COMPLETED)
        assert job.result == {"done": "ping"}
        assert threads and threads[0] is not threading.main_thread()

    async def test_provider_error_fails_job(self, clock, id_generator):
        """Test a provider exception fails the job."""
        adapter = ToolCallAdapter(
            provider=RecordingToolProvider(error=RuntimeError("plugin crashed")),
            clock=clock,
            id_generator=id_generator,
        )

        result = await adapter.execute(tool_config(action="image.upscale"))

        job = await wait_for_status(adapter, result.job_id, JobStatus.FAILED)
        assert job.message == "plugin crashed"

    async def test_missing_action_rejected(self):
        """Test a workflow must name its action."""
        adapter = ToolCallAdapter(provider=RecordingToolProvider())

        result = await adapter.execute(tool_config())

        assert result.success is False
        assert result.error == "Workflow wf-1 names no tool action"

    async def test_params_must_be_object(self):
        """Test params of the wrong shape are rejected."""
        adapter = ToolCallAdapter(provider=RecordingToolProvider())

        result = await adapter.execute(tool_config(action="x", params=["a"]))

        assert result.success is False
