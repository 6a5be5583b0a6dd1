"""Integration tests for RemoteAutomationAdapter against a stubbed server."""
import asyncio
import json
import httpx
import pytest
from storyreel.adapters.remote_automation import RemoteAutomationAdapter
from storyreel.core.enums import JobStatus, WorkflowType
from storyreel.core.exceptions import BackendUnavailableError
from tests.factories.fakes import wait_for_status
from tests.factories.workflow_factory import make_config

GRAPH = {
    "3": {"class_type": "KSampler", "inputs": {"seed": 1}},
    "6": {"class_type": "CLIPTextEncode", "inputs": {"text": ""}},
}

IMAGE_OUTPUTS = {
    "9": {"images": [{"filename": "scene_00001_.png", "subfolder": "", "type": "output"}]}
}


class FakeAutomationServer:
    """
    Minimal automation server.

    History for a prompt stays empty for ``pending_polls`` polls, then
    reports ``status_str``. ``status_str=None`` keeps the prompt running forever.
    """

    def __init__(self, pending_polls=1, status_str="success", outputs=None, stats_status=200):
        self.pending_polls = pending_polls
        self.status_str = status_str
        self.outputs = IMAGE_OUTPUTS if outputs is None else outputs
        self.stats_status = stats_status
        self.prompt_status = 200
        self.prompt_body = {"prompt_id": "p-1", "number": 1}
        self.prompts = []
        self.prompt_ids = []
        self.calls = []
        self.history_polls = 0
        self.interrupted = False
        self.deleted = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        self.calls.append(f"{request.method} {path}")
        if path == "/system_stats":
            return httpx.Response(self.stats_status, json={"system": {"os": "posix"}})
        if path == "/prompt":
            self.prompts.append(json.loads(request.content))
            body = dict(self.prompt_body)
            if "prompt_id" in body:
                body["prompt_id"] = f"p-{len(self.prompts)}"
                self.prompt_ids.append(body["prompt_id"])
            return httpx.Response(self.prompt_status, json=body)
        if path.startswith("/history/"):
            self.history_polls += 1
            prompt_id = path.rsplit("/", 1)[-1]
            if self.status_str is None or self.history_polls <= self.pending_polls:
                return httpx.Response(200, json={})
            return httpx.Response(200, json={
                prompt_id: {
                    "status": {
                        "status_str": self.status_str,
                        "completed": self.status_str == "success",
                    },
                    "outputs": self.outputs,
                }
            })
        if path == "/interrupt":
            self.interrupted = True
            return httpx.Response(200)
        if path == "/queue" and request.method == "GET":
            active = [p for p in self.prompt_ids if p not in self.deleted]
            return httpx.Response(200, json={
                "queue_running": [[0, p, {}, {}, []] for p in active[:1]],
                "queue_pending": [[n, p, {}, {}, []] for n, p in enumerate(active[1:], 1)],
            })
        if path == "/queue":
            self.deleted.extend(json.loads(request.content)["delete"])
            return httpx.Response(200)
        return httpx.Response(404)


def build_adapter(server, clock=None, id_generator=None, **kwargs):
    options = {"poll_interval": 0.01, "poll_timeout": 2.0}
    options.update(kwargs)
    return RemoteAutomationAdapter(
        base_url="http://automation.test",
        transport=httpx.MockTransport(server.handler),
        clock=clock,
        id_generator=id_generator,
        **options
    )


def remote_config(**config):
    return make_config(
        workflow_type=WorkflowType.REMOTE_AUTOMATION,
        config={"workflow": GRAPH, "input_bindings": {"prompt": ["6", "text"]}, **config},
    )


@pytest.mark.integration
@pytest.mark.asyncio
class TestRemoteAutomationInitialize:
    """Integration tests for the startup connectivity check."""

    async def test_initialize_reaches_server(self):
        """Test initialize succeeds when system stats answer."""
        adapter = build_adapter(FakeAutomationServer())

        await adapter.initialize()

        assert adapter.is_initialized is True
        await adapter.cleanup()

    async def test_initialize_server_error(self):
        """Test a server error fails startup."""
        adapter = build_adapter(FakeAutomationServer(stats_status=500))

        with pytest.raises(BackendUnavailableError, match="500"):
            await adapter.initialize()
        await adapter.cleanup()

    async def test_initialize_connection_refused(self):
        """Test an unreachable server fails startup."""
        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        adapter = RemoteAutomationAdapter(
            base_url="http://automation.test", transport=httpx.MockTransport(refuse)
        )

        with pytest.raises(BackendUnavailableError, match="Failed to connect"):
            await adapter.initialize()
        await adapter.cleanup()


@pytest.mark.integration
@pytest.mark.asyncio
class TestRemoteAutomationJobs:
    """Integration tests for prompt submission and polling."""

    async def test_completed_prompt_yields_files(self, clock, id_generator):
        """Test a finished prompt's image files become the job result."""
        server = FakeAutomationServer(pending_polls=2)
        adapter = build_adapter(server, clock, id_generator)

        result = await adapter.execute(remote_config())

        assert result.success is True
        job = await wait_for_status(adapter, result.job_id, JobStatus.COMPLETED)
        assert job.result == {
            "type": "image",
            "files": [{"filename": "scene_00001_.png", "subfolder": "", "type": "output"}],
        }
        assert server.history_polls == 3
        await adapter.cleanup()

    async def test_input_bindings_fill_graph(self, clock, id_generator):
        """Test bound input defaults are written into the submitted graph."""
        server = FakeAutomationServer()
        adapter = build_adapter(server, clock, id_generator)

        result = await adapter.execute(remote_config())
        await wait_for_status(adapter, result.job_id, JobStatus.COMPLETED)

        submitted = server.prompts[0]
        assert submitted["client_id"] == result.job_id
        assert submitted["prompt"]["6"]["inputs"]["text"] == "a quiet village at dawn"
        assert GRAPH["6"]["inputs"]["text"] == ""
        await adapter.cleanup()

    async def test_server_error_status_fails_job(self, clock, id_generator):
        """Test a prompt the server reports as errored fails the job."""
        adapter = build_adapter(FakeAutomationServer(status_str="error"), clock, id_generator)

        result = await adapter.execute(remote_config())

        job = await wait_for_status(adapter, result.job_id, JobStatus.FAILED)
        assert job.message == "Prompt p-1 failed on automation server"
        await adapter.cleanup()

    async def test_submission_rejected_fails_job(self, clock, id_generator):
        """Test a non-200 prompt submission fails the job."""
        server = FakeAutomationServer()
        server.prompt_status = 400
        server.prompt_body = {"error": "invalid prompt"}
        adapter = build_adapter(server, clock, id_generator)

        result = await adapter.execute(remote_config())

        job = await wait_for_status(adapter, result.job_id, JobStatus.FAILED)
        assert job.message.startswith("Automation server error 400")
        await adapter.cleanup()

    async def test_missing_prompt_id_fails_job(self, clock, id_generator):
        """Test a submission response without a prompt id fails the job."""
        server = FakeAutomationServer()
        server.prompt_body = {"number": 1}
        adapter = build_adapter(server, clock, id_generator)

        result = await adapter.execute(remote_config())

        job = await wait_for_status(adapter, result.job_id, JobStatus.FAILED)
        assert job.message == "Automation server response missing prompt_id"
        await adapter.cleanup()

    async def test_poll_timeout_fails_job(self, clock, id_generator):
        """Test a prompt that never finishes fails after the poll timeout."""
        adapter = build_adapter(
            FakeAutomationServer(status_str=None), clock, id_generator, poll_timeout=0.1
        )

        result = await adapter.execute(remote_config())

        job = await wait_for_status(adapter, result.job_id, JobStatus.FAILED)
        assert "did not finish within 0.1 seconds" in job.message
        await adapter.cleanup()

    async def test_cancel_interrupts_prompt(self, clock, id_generator):
        """Test cancelling a running job interrupts and dequeues its prompt."""
        server = FakeAutomationServer(status_str=None)
        adapter = build_adapter(server, clock, id_generator)
        result = await adapter.execute(remote_config())

        loop = asyncio.get_running_loop()
        deadline = loop.time() + 2
        while result.job_id not in adapter._prompt_ids:
            assert loop.time() < deadline, "prompt never submitted"
            await asyncio.sleep(0.01)

        await adapter.cancel(result.job_id)

        assert server.interrupted is True
        assert server.deleted == ["p-1"]
        assert (await adapter.get_status(result.job_id)).status == JobStatus.CANCELLED
        await adapter.cleanup()

    async def test_cancel_queued_prompt_leaves_running_prompt(self, clock, id_generator):
        """Test cancelling a queued job only dequeues its own prompt."""
        server = FakeAutomationServer(status_str=None)
        adapter = build_adapter(server, clock, id_generator)
        first = await adapter.execute(remote_config())
        second = await adapter.execute(remote_config())

        loop = asyncio.get_running_loop()
        deadline = loop.time() + 2
        while not {first.job_id, second.job_id} <= set(adapter._prompt_ids):
            assert loop.time() < deadline, "prompts never submitted"
            await asyncio.sleep(0.01)
        running_prompt, queued_prompt = server.prompt_ids
        queued_job = next(
            job_id for job_id, prompt_id in adapter._prompt_ids.items() if prompt_id == queued_prompt
        )
        running_job = first.job_id if queued_job == second.job_id else second.job_id

        await adapter.cancel(queued_job)

        assert server.interrupted is False
        assert "POST /interrupt" not in server.calls
        assert server.deleted == [queued_prompt]
        assert (await adapter.get_status(queued_job)).status == JobStatus.CANCELLED
        assert (await adapter.get_status(running_job)).status == JobStatus.RUNNING
        assert adapter._prompt_ids[running_job] == running_prompt
        await adapter.cleanup()

    async def test_missing_graph_is_rejected(self):
        """Test a workflow without a node graph fails to submit."""
        adapter = build_adapter(FakeAutomationServer())

        result = await adapter.execute(make_config(workflow_type=WorkflowType.REMOTE_AUTOMATION))

        assert result.success is False
        assert "no node graph" in result.error

    async def test_binding_to_unknown_node_is_rejected(self):
        """Test bindings must point at nodes of the graph."""
        adapter = build_adapter(FakeAutomationServer())

        result = await adapter.execute(remote_config(input_bindings={"prompt": ["99", "text"]}))

        assert result.success is False
        assert "unknown node '99'" in result.error

    async def test_cleanup_closes_client(self, clock, id_generator):
        """Test cleanup closes the HTTP client."""
        adapter = build_adapter(FakeAutomationServer(), clock, id_generator)
        await adapter.initialize()
        client = adapter.client

        await adapter.cleanup()

        assert client.is_closed is True
        assert adapter._client is None
