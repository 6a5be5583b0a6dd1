"""Saved workflow repository for data access operations."""
from typing import Optional, List, Dict, Any
from sqlalchemy.orm import Session
from storyreel.models.saved_workflow import SavedWorkflow


class WorkflowRepository:
    """Repository for saved workflow data access operations."""

    def __init__(self, db: Session):
        """
        Initialize repository.

        Args:
            db: SQLAlchemy database session
        """
        self.db = db

    def get(self, project_id: str, workflow_id: str) -> Optional[SavedWorkflow]:
        """
        Get a saved workflow by project and workflow id.

        Args:
            project_id: Owning project
            workflow_id: Workflow identifier

        Returns:
            Optional[SavedWorkflow]: Saved workflow if found, None otherwise
        """
        return (
            self.db.query(SavedWorkflow)
            .filter(
                SavedWorkflow.project_id == project_id,
                SavedWorkflow.workflow_id == workflow_id,
            )
            .first()
        )

    def upsert(
        self,
        project_id: str,
        workflow_id: str,
        name: str,
        workflow_type: str,
        config: Dict[str, Any],
        description: Optional[str] = None,
    ) -> SavedWorkflow:
        """
        Insert or replace a saved workflow.

        Note:
            Transaction management is handled by the service layer.
        """
        saved = self.get(project_id, workflow_id)
        if saved is None:
            saved = SavedWorkflow(project_id=project_id, workflow_id=workflow_id)
            self.db.add(saved)

        saved.name = name
        saved.workflow_type = workflow_type
        saved.description = description
        saved.config = config
        self.db.flush()
        return saved

    def list_by_project(self, project_id: str, limit: int = 100) -> List[SavedWorkflow]:
        """
        List saved workflows of a project ordered by name.

        Args:
            project_id: Owning project
            limit: Maximum number of workflows to return

        Returns:
            List[SavedWorkflow]: Saved workflows
        """
        return (
            self.db.query(SavedWorkflow)
            .filter(SavedWorkflow.project_id == project_id)
            .order_by(SavedWorkflow.name)
            .limit(limit)
            .all()
        )
