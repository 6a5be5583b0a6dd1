"""Adapter for a ComfyUI-style remote automation server."""
import asyncio
import copy
import logging
from typing import Any, Dict, List, Optional
import httpx
from storyreel.adapters.base import BaseAdapter
from storyreel.config import get_settings
from storyreel.core.enums import WorkflowType
from storyreel.core.exceptions import BackendUnavailableError, ExecutionFailedError
from storyreel.models.job import Job
from storyreel.models.workflow import WorkflowConfig

logger = logging.getLogger(__name__)


class RemoteAutomationAdapter(BaseAdapter):
    """
    Runs node graphs on a remote automation server.

    A job posts its graph to ``/prompt``, then polls ``/history/{prompt_id}``
    until the server reports completion or an error. The graph comes from
    ``config["workflow"]``; ``config["input_bindings"]`` maps workflow input
    ids to ``[node_id, field]`` pairs whose values are replaced with the
    input's default value.
    """

    workflow_type = WorkflowType.REMOTE_AUTOMATION

    def __init__(
        self,
        base_url: Optional[str] = None,
        request_timeout: Optional[float] = None,
        poll_interval: Optional[float] = None,
        poll_timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        **kwargs,
    ):
        """
        Initialize remote automation adapter.

        Args:
            base_url: Server URL
            request_timeout: Per-request timeout in seconds
            poll_interval: Seconds between history polls
            poll_timeout: Maximum seconds to wait for a prompt to finish
            transport: Optional httpx transport, used to stub the server
            **kwargs: Passed to BaseAdapter
        """
        super().__init__(**kwargs)
        settings = get_settings()
        self.base_url = (base_url or settings.REMOTE_AUTOMATION_URL).rstrip("/")
        self.request_timeout = request_timeout or settings.REMOTE_REQUEST_TIMEOUT
        self.poll_interval = poll_interval if poll_interval is not None else settings.REMOTE_POLL_INTERVAL
        self.poll_timeout = poll_timeout or settings.REMOTE_POLL_TIMEOUT
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None
        self._prompt_ids: Dict[str, str] = {}

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=httpx.Timeout(self.request_timeout),
                transport=self._transport,
            )
        return self._client

    async def _initialize_backend(self) -> None:
        try:
            response = await self.client.get("/system_stats")
        except httpx.RequestError as e:
            raise BackendUnavailableError(
                f"Failed to connect to automation server at {self.base_url}: {e}"
            ) from e

        if response.status_code != 200:
            raise BackendUnavailableError(
                f"Automation server error {response.status_code}: {response.text}"
            )

    def prepare(self, config: WorkflowConfig) -> Dict[str, Any]:
        graph = config.config.get("workflow")
        if not isinstance(graph, dict) or not graph:
            raise ExecutionFailedError(
                f"Workflow {config.id} has no node graph in config['workflow']"
            )

        graph = copy.deepcopy(graph)
        values = config.input_values()
        bindings = config.config.get("input_bindings") or {}
        for input_id, target in bindings.items():
            if input_id not in values:
                continue
            try:
                node_id, field = target
            except (TypeError, ValueError):
                raise ExecutionFailedError(
                    f"Invalid binding for input '{input_id}': expected [node_id, field]"
                )
            node = graph.get(str(node_id))
            if not isinstance(node, dict):
                raise ExecutionFailedError(
                    f"Input '{input_id}' is bound to unknown node '{node_id}'"
                )
            node.setdefault("inputs", {})[field] = values[input_id]

        return graph

    async def _run(self, job: Job, prepared: Dict[str, Any]) -> Dict[str, Any]:
        prompt_id = await self._submit(job, prepared)
        self._prompt_ids[job.id] = prompt_id
        try:
            return await self._poll(prompt_id)
        finally:
            if self._is_live(job.id):
                self._prompt_ids.pop(job.id, None)

    async def _submit(self, job: Job, graph: Dict[str, Any]) -> str:
        try:
            response = await self.client.post(
                "/prompt", json={"prompt": graph, "client_id": job.id}
            )
        except httpx.RequestError as e:
            raise ExecutionFailedError(f"Failed to connect to automation server: {e}") from e

        if response.status_code != 200:
            raise ExecutionFailedError(
                f"Automation server error {response.status_code}: {response.text}"
            )

        prompt_id = response.json().get("prompt_id")
        if not prompt_id:
            raise ExecutionFailedError("Automation server response missing prompt_id")
        logger.info(f"Job {job.id} submitted as prompt {prompt_id}")
        return str(prompt_id)

    async def _poll(self, prompt_id: str) -> Dict[str, Any]:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.poll_timeout

        while True:
            await asyncio.sleep(self.poll_interval)

            try:
                response = await self.client.get(f"/history/{prompt_id}")
            except httpx.RequestError as e:
                logger.warning(f"History poll for prompt {prompt_id} failed: {e}")
                response = None

            if response is not None and response.status_code == 200:
                entry = response.json().get(prompt_id)
                if entry:
                    status = entry.get("status") or {}
                    if status.get("status_str") == "error":
                        raise ExecutionFailedError(f"Prompt {prompt_id} failed on automation server")
                    if status.get("completed"):
                        return extract_outputs(entry.get("outputs"))

            if loop.time() >= deadline:
                raise ExecutionFailedError(
                    f"Prompt {prompt_id} did not finish within {self.poll_timeout} seconds"
                )

    async def abort(self, job: Job) -> None:
        prompt_id = self._prompt_ids.pop(job.id, None)
        if prompt_id is None or self._client is None or self._client.is_closed:
            return
        if prompt_id in await self._running_prompt_ids():
            # /interrupt stops whatever the server is executing right now
            await self._client.post("/interrupt")
            logger.info(f"Prompt {prompt_id} interrupted for job {job.id}")
        await self._client.post("/queue", json={"delete": [prompt_id]})
        logger.info(f"Prompt {prompt_id} removed from queue for job {job.id}")

    async def _running_prompt_ids(self) -> List[str]:
        try:
            response = await self._client.get("/queue")
        except httpx.RequestError as e:
            logger.warning(f"Queue lookup failed: {e}")
            return []
        if response.status_code != 200:
            return []
        # Entries are [number, prompt_id, prompt, extra_data, outputs_to_execute]
        return [
            str(item[1])
            for item in response.json().get("queue_running") or []
            if isinstance(item, list) and len(item) > 1
        ]

    async def _close(self) -> None:
        self._prompt_ids.clear()
        if self._client is not None:
            await self._client.aclose()
            self._client = None


def extract_outputs(outputs: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Pick the first node output carrying files.

    Returns ``{"type": "image"|"video", "files": [...]}`` or the raw outputs
    under ``{"type": "raw"}`` when no node produced files.
    """
    if not outputs:
        return {"type": "raw", "outputs": {}}

    for node_output in outputs.values():
        if not isinstance(node_output, dict):
            continue
        for key, kind in (("images", "image"), ("videos", "video"), ("gifs", "video")):
            files = node_output.get(key)
            if files:
                return {
                    "type": kind,
                    "files": [
                        {
                            "filename": item.get("filename"),
                            "subfolder": item.get("subfolder", ""),
                            "type": item.get("type"),
                        }
                        for item in files
                    ],
                }

    return {"type": "raw", "outputs": outputs}
