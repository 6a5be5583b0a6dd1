"""
Tests for API dependencies.

Tests dependency injection error paths for an uninitialized manager and
missing persistence.
"""
import pytest
from types import SimpleNamespace
from fastapi import HTTPException
from storyreel.adapters.registry import AdapterRegistry
from storyreel.api.deps import get_workflow_manager, get_workflow_store
from storyreel.services.workflow_manager import WorkflowManager
from storyreel.services.workflow_store import WorkflowStore


def _request(**state):
    return SimpleNamespace(app=SimpleNamespace(state=SimpleNamespace(**state)))


class TestDependenciesCoverage:
    """Test API dependency functions."""

    def test_get_workflow_manager_missing_raises_503(self):
        """Test a missing manager is reported as service unavailable."""
        with pytest.raises(HTTPException) as exc_info:
            get_workflow_manager(_request())

        assert exc_info.value.status_code == 503
        assert exc_info.value.detail["code"] == "ERR_5031"

    def test_get_workflow_manager_uninitialized_raises_503(self):
        """Test a manager that never initialized is unavailable."""
        manager = WorkflowManager(AdapterRegistry())

        with pytest.raises(HTTPException) as exc_info:
            get_workflow_manager(_request(workflow_manager=manager))

        assert exc_info.value.status_code == 503

    def test_get_workflow_manager_returns_initialized_manager(self):
        """Test an initialized manager is returned."""
        manager = WorkflowManager(AdapterRegistry())
        manager.is_initialized = True

        assert get_workflow_manager(_request(workflow_manager=manager)) is manager

    def test_get_workflow_store_returns_configured_store(self):
        """Test the app's store is returned."""
        store = WorkflowStore()

        assert get_workflow_store(_request(workflow_store=store)) is store

    def test_get_workflow_store_defaults_to_unavailable(self):
        """Test a missing store falls back to one without persistence."""
        store = get_workflow_store(_request())

        assert store.available is False
