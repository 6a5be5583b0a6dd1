"""Saved workflow model for per-project workflow definitions."""
from typing import Optional, Dict, Any
from sqlalchemy import String, Text, JSON, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from storyreel.core.database import Base
from storyreel.models.base import TimestampMixin


class SavedWorkflow(Base, TimestampMixin):
    """
    A workflow configuration saved inside a project.

    The full WorkflowConfig is stored as JSON; ``workflow_id`` is the
    caller-chosen workflow identifier, unique per project.
    """

    __tablename__ = "saved_workflows"
    __table_args__ = (
        UniqueConstraint("project_id", "workflow_id", name="uq_saved_workflow_project"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    project_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    workflow_id: Mapped[str] = mapped_column(String(255), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    workflow_type: Mapped[str] = mapped_column(String(50), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    config: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False)

    def __repr__(self) -> str:
        """Return string representation of SavedWorkflow."""
        return (
            f"<SavedWorkflow(project_id={self.project_id}, "
            f"workflow_id={self.workflow_id}, name={self.name})>"
        )
