"""Asset model for intermediate pipeline artifacts."""
from typing import Optional, Dict, Any, List
from sqlalchemy import String, Integer, JSON, Index
from sqlalchemy.orm import Mapped, mapped_column
from storyreel.core.database import Base
from storyreel.models.base import TimestampMixin


class Asset(Base, TimestampMixin):
    """
    Artifact produced by a pipeline stage (chapter text, scene image, voiceover).

    Binary payloads stay on disk; the row records where they live and the
    stage-specific fields.
    """

    __tablename__ = "assets"
    __table_args__ = (Index("ix_assets_project_category", "project_id", "category"),)

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    asset_id: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    project_id: Mapped[str] = mapped_column(String(255), nullable=False)
    category: Mapped[str] = mapped_column(String(100), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    file_path: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)
    sort_index: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    tags: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    fields: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)

    def __repr__(self) -> str:
        """Return string representation of Asset."""
        return f"<Asset(asset_id={self.asset_id}, category={self.category})>"
