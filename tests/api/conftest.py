"""Fixtures for API tests."""
import time
import pytest
from fastapi.testclient import TestClient
from storyreel.adapters.registry import AdapterRegistry
from storyreel.core.clock import SequentialIdGenerator
from storyreel.core.enums import WorkflowType
from storyreel.main import create_app
from storyreel.services.workflow_manager import WorkflowManager
from storyreel.services.workflow_store import WorkflowStore
from tests.factories.fakes import FakeAdapter


def build_fake_manager() -> WorkflowManager:
    """
    Build a manager over fake backends.

    Local pipeline jobs finish immediately; tool-call jobs run for 30 seconds
    so they can be observed and cancelled.
    """
    id_generator = SequentialIdGenerator()
    registry = AdapterRegistry()
    registry.register_adapter(
        WorkflowType.LOCAL_PIPELINE,
        lambda: FakeAdapter(
            workflow_type=WorkflowType.LOCAL_PIPELINE, id_generator=id_generator
        ),
    )
    registry.register_adapter(
        WorkflowType.TOOL_CALL,
        lambda: FakeAdapter(
            workflow_type=WorkflowType.TOOL_CALL, latency=30, id_generator=id_generator
        ),
    )
    return WorkflowManager(registry)


@pytest.fixture
def client(session_factory):
    """
    Create FastAPI test client over fake adapters and the test database.

    Args:
        session_factory: Test session factory from root conftest

    Returns:
        TestClient: FastAPI test client
    """
    app = create_app(
        workflow_manager=build_fake_manager(),
        workflow_store=WorkflowStore(session_factory),
    )

    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def client_without_persistence():
    """Create a test client whose workflow store has no database."""
    app = create_app(
        workflow_manager=build_fake_manager(),
        workflow_store=WorkflowStore(),
    )

    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def workflow_payload():
    """Valid local-pipeline workflow request body."""
    return {
        "id": "wf-scene",
        "name": "Scene image",
        "type": "local-pipeline",
        "config": {"command": ["render"]},
        "inputs": [
            {"id": "prompt", "name": "Prompt", "type": "text", "default_value": "harbor at dusk"}
        ],
        "outputs": [{"id": "image", "name": "Image", "type": "image"}],
    }


@pytest.fixture
def wait_for_job(client):
    """Return a helper polling the job endpoint until the job reports a status."""

    def wait(job_id: str, status: str, timeout: float = 2.0) -> dict:
        deadline = time.monotonic() + timeout
        while True:
            data = client.get(f"/api/v1/workflows/jobs/{job_id}").json()["data"]
            if data["status"] == status:
                return data
            if time.monotonic() >= deadline:
                raise AssertionError(f"Job {job_id} stuck in {data['status']}, expected {status}")
            time.sleep(0.01)

    return wait
