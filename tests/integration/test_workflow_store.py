"""Integration tests for WorkflowStore and WorkflowRepository."""
import pytest
from storyreel.core.enums import WorkflowType
from storyreel.core.exceptions import PersistenceUnavailableError, WorkflowNotFoundError
from storyreel.repositories.workflow_repository import WorkflowRepository
from storyreel.services.workflow_store import WorkflowStore
from tests.factories.workflow_factory import make_config


@pytest.mark.integration
class TestWorkflowRepository:
    """Integration tests for saved workflow data access."""

    def test_upsert_inserts_then_replaces(self, db_session):
        """Test upsert creates a row and updates it in place."""
        repo = WorkflowRepository(db_session)

        first = repo.upsert("proj-1", "wf-1", "Draft", "tool-call", {"id": "wf-1"})
        db_session.commit()
        second = repo.upsert("proj-1", "wf-1", "Final", "tool-call", {"id": "wf-1"}, "done")
        db_session.commit()

        assert first.id == second.id
        saved = repo.get("proj-1", "wf-1")
        assert saved.name == "Final"
        assert saved.description == "done"

    def test_get_is_scoped_to_project(self, db_session):
        """Test the same workflow id in another project is not returned."""
        repo = WorkflowRepository(db_session)
        repo.upsert("proj-1", "wf-1", "A", "tool-call", {})
        db_session.commit()

        assert repo.get("proj-2", "wf-1") is None


@pytest.mark.integration
class TestWorkflowStore:
    """Integration tests for per-project workflow persistence."""

    def test_save_and_load_round_trip(self, session_factory):
        """Test a saved config loads back equal."""
        store = WorkflowStore(session_factory)
        config = make_config(
            workflow_type=WorkflowType.REMOTE_AUTOMATION,
            config={"workflow": {"3": {"inputs": {"seed": 7}}}},
            description="scene renderer",
        )

        store.save_workflow("proj-1", config)

        assert store.load_workflow("proj-1", "wf-1") == config

    def test_save_replaces_previous_version(self, session_factory):
        """Test saving the same id twice keeps the latest version."""
        store = WorkflowStore(session_factory)
        store.save_workflow("proj-1", make_config(name="v1"))
        store.save_workflow("proj-1", make_config(name="v2"))

        workflows = store.list_workflows("proj-1")

        assert [w.name for w in workflows] == ["v2"]

    def test_list_workflows_by_project(self, session_factory):
        """Test list returns only the project's workflows ordered by name."""
        store = WorkflowStore(session_factory)
        store.save_workflow("proj-1", make_config(workflow_id="b", name="Voiceover"))
        store.save_workflow("proj-1", make_config(workflow_id="a", name="Scene image"))
        store.save_workflow("proj-2", make_config(workflow_id="c", name="Other"))

        workflows = store.list_workflows("proj-1")

        assert [w.id for w in workflows] == ["a", "b"]
        assert store.list_workflows("proj-3") == []

    def test_load_missing_raises(self, session_factory):
        """Test loading an unknown workflow raises WorkflowNotFoundError."""
        store = WorkflowStore(session_factory)

        with pytest.raises(WorkflowNotFoundError, match="Workflow wf-9 not found in project proj-1"):
            store.load_workflow("proj-1", "wf-9")

    def test_unconfigured_store_is_unavailable(self):
        """Test every operation fails without persistence."""
        store = WorkflowStore()

        assert store.available is False
        with pytest.raises(PersistenceUnavailableError):
            store.list_workflows("proj-1")
        with pytest.raises(PersistenceUnavailableError):
            store.save_workflow("proj-1", make_config())
        with pytest.raises(NotImplementedError):
            store.load_workflow("proj-1", "wf-1")
