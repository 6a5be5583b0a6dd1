"""Adapter running a local GPU pipeline as a subprocess."""
import asyncio
import json
import logging
import os
import shutil
from typing import Any, Dict, List, Optional, Tuple
from storyreel.adapters.base import BaseAdapter
from storyreel.config import get_settings
from storyreel.core.enums import WorkflowType
from storyreel.core.exceptions import BackendUnavailableError, ExecutionFailedError
from storyreel.models.job import Job
from storyreel.models.workflow import WorkflowConfig

logger = logging.getLogger(__name__)

STDERR_TAIL_CHARS = 500

PipelineCall = Tuple[List[str], Dict[str, Any]]


class LocalPipelineAdapter(BaseAdapter):
    """
    Launches one pipeline process per job.

    The process receives the workflow parameters as a JSON object on stdin
    and reports its result as JSON on stdout. A non-zero exit code fails the
    job with the tail of stderr as the message. Cancelling a job sends
    SIGTERM and escalates to SIGKILL after ``kill_timeout`` seconds.
    """

    workflow_type = WorkflowType.LOCAL_PIPELINE

    def __init__(
        self,
        command: Optional[List[str]] = None,
        kill_timeout: Optional[float] = None,
        **kwargs,
    ):
        """
        Initialize local pipeline adapter.

        Args:
            command: Default pipeline command, used when a workflow names none
            kill_timeout: Seconds between SIGTERM and SIGKILL on abort
            **kwargs: Passed to BaseAdapter
        """
        super().__init__(**kwargs)
        settings = get_settings()
        self.command = command if command is not None else settings.LOCAL_PIPELINE_COMMAND
        self.kill_timeout = (
            kill_timeout if kill_timeout is not None else settings.LOCAL_PIPELINE_KILL_TIMEOUT
        )
        self._processes: Dict[str, asyncio.subprocess.Process] = {}

    async def _initialize_backend(self) -> None:
        if not self.command:
            logger.info("No default pipeline command configured; workflows must name one")
            return

        executable = self.command[0]
        if shutil.which(executable) is None and not os.access(executable, os.X_OK):
            raise BackendUnavailableError(f"Pipeline executable not found: {executable}")

    def prepare(self, config: WorkflowConfig) -> PipelineCall:
        command = config.config.get("command") or self.command
        if not command:
            raise ExecutionFailedError(
                f"Workflow {config.id} names no pipeline command and no default is configured"
            )
        if isinstance(command, str) or not all(isinstance(part, str) for part in command):
            raise ExecutionFailedError("Pipeline command must be a list of strings")

        params = config.config.get("params") or {}
        if not isinstance(params, dict):
            raise ExecutionFailedError("config['params'] must be an object")

        payload = {**config.input_values(), **params}
        return list(command), payload

    async def _run(self, job: Job, prepared: PipelineCall) -> Dict[str, Any]:
        command, payload = prepared
        try:
            process = await asyncio.create_subprocess_exec(
                *command,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise ExecutionFailedError(f"Failed to start pipeline {command[0]}: {e}") from e

        self._processes[job.id] = process
        logger.info(f"Job {job.id} started pipeline process {process.pid}")
        try:
            stdout, stderr = await process.communicate(json.dumps(payload).encode("utf-8"))
        finally:
            self._processes.pop(job.id, None)

        if process.returncode != 0:
            tail = stderr.decode("utf-8", errors="replace").strip()[-STDERR_TAIL_CHARS:]
            raise ExecutionFailedError(
                f"Pipeline exited with code {process.returncode}: {tail or 'no error output'}"
            )

        return parse_pipeline_output(stdout.decode("utf-8", errors="replace"))

    async def abort(self, job: Job) -> None:
        process = self._processes.pop(job.id, None)
        if process is None or process.returncode is not None:
            return

        try:
            process.terminate()
        except ProcessLookupError:
            return

        try:
            await asyncio.wait_for(process.wait(), timeout=self.kill_timeout)
        except asyncio.TimeoutError:
            logger.warning(f"Pipeline process {process.pid} ignored SIGTERM, killing")
            try:
                process.kill()
            except ProcessLookupError:
                return
            await process.wait()

    async def _close(self) -> None:
        self._processes.clear()


def parse_pipeline_output(text: str) -> Dict[str, Any]:
    """Parse pipeline stdout as JSON, falling back to the raw text."""
    text = text.strip()
    if not text:
        return {}
    try:
        value = json.loads(text)
    except json.JSONDecodeError:
        return {"stdout": text}
    if isinstance(value, dict):
        return value
    return {"output": value}
