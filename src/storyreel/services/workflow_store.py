"""Per-project workflow persistence."""
import logging
from typing import Callable, List, Optional
from sqlalchemy.orm import Session
from storyreel.core.exceptions import PersistenceUnavailableError, WorkflowNotFoundError
from storyreel.models.saved_workflow import SavedWorkflow
from storyreel.models.workflow import WorkflowConfig
from storyreel.repositories.workflow_repository import WorkflowRepository

logger = logging.getLogger(__name__)


class WorkflowStore:
    """
    Service for saving and loading workflow configurations per project.

    A pass-through to the workflow repository. Without a session factory
    persistence is unavailable and every operation raises
    PersistenceUnavailableError.
    """

    def __init__(self, session_factory: Optional[Callable[[], Session]] = None):
        """
        Initialize workflow store.

        Args:
            session_factory: Zero-argument callable returning a new Session
        """
        self.session_factory = session_factory

    @property
    def available(self) -> bool:
        return self.session_factory is not None

    def _open(self) -> Session:
        if self.session_factory is None:
            raise PersistenceUnavailableError("Workflow persistence is not configured")
        return self.session_factory()

    def list_workflows(self, project_id: str) -> List[WorkflowConfig]:
        """
        List saved workflows of a project.

        Args:
            project_id: Owning project

        Returns:
            List[WorkflowConfig]: Saved configurations ordered by name
        """
        session = self._open()
        try:
            saved = WorkflowRepository(session).list_by_project(project_id)
            return [_to_config(item) for item in saved]
        finally:
            session.close()

    def save_workflow(self, project_id: str, config: WorkflowConfig) -> WorkflowConfig:
        """
        Save a workflow, replacing any previous version with the same id.

        Args:
            project_id: Owning project
            config: Workflow configuration

        Returns:
            WorkflowConfig: The saved configuration
        """
        session = self._open()
        try:
            WorkflowRepository(session).upsert(
                project_id=project_id,
                workflow_id=config.id,
                name=config.name,
                workflow_type=str(config.type),
                config=config.model_dump(mode="json"),
                description=config.description,
            )
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

        logger.info(f"Saved workflow {config.id} in project {project_id}")
        return config

    def load_workflow(self, project_id: str, workflow_id: str) -> WorkflowConfig:
        """
        Load a saved workflow.

        Args:
            project_id: Owning project
            workflow_id: Workflow identifier

        Returns:
            WorkflowConfig: Saved configuration

        Raises:
            WorkflowNotFoundError: If the project has no such workflow
        """
        session = self._open()
        try:
            saved = WorkflowRepository(session).get(project_id, workflow_id)
            if saved is None:
                raise WorkflowNotFoundError(
                    f"Workflow {workflow_id} not found in project {project_id}"
                )
            return _to_config(saved)
        finally:
            session.close()


def _to_config(saved: SavedWorkflow) -> WorkflowConfig:
    return WorkflowConfig.model_validate(saved.config)
