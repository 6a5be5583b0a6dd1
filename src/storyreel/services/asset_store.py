"""Asset persistence collaborator and its SQLAlchemy implementation."""
import asyncio
import logging
from typing import Any, Callable, Dict, List, Optional, Protocol
from uuid import uuid4
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session
from storyreel.repositories.asset_repository import AssetRepository

logger = logging.getLogger(__name__)


class AssetSpec(BaseModel):
    """Description of an asset to create."""

    project_id: str = Field(..., min_length=1)
    category: str = Field(..., min_length=1)
    name: str
    asset_id: Optional[str] = None
    file_path: Optional[str] = None
    sort_index: int = 0
    tags: List[str] = Field(default_factory=list)
    fields: Dict[str, Any] = Field(default_factory=dict)


class AssetFilter(BaseModel):
    """Criteria for querying assets."""

    project_id: Optional[str] = None
    category: Optional[str] = None
    tag: Optional[str] = None
    limit: int = 1000


class AssetRecord(BaseModel):
    """A stored asset."""

    asset_id: str
    project_id: str
    category: str
    name: str
    file_path: Optional[str] = None
    sort_index: int = 0
    tags: List[str] = Field(default_factory=list)
    fields: Dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(from_attributes=True)


class AssetPersistence(Protocol):
    """Storage capability for pipeline artifacts."""

    async def create_asset(self, spec: AssetSpec) -> AssetRecord:
        ...

    async def query_assets(self, filter: AssetFilter) -> List[AssetRecord]:
        ...


class SqlAssetStore:
    """
    AssetPersistence backed by SQLAlchemy.

    Uses asyncio.to_thread() so blocking session work never stalls the
    event loop. Each call opens and closes its own session.
    """

    def __init__(self, session_factory: Callable[[], Session]):
        """
        Initialize asset store.

        Args:
            session_factory: Zero-argument callable returning a new Session
        """
        self.session_factory = session_factory

    async def create_asset(self, spec: AssetSpec) -> AssetRecord:
        """
        Create an asset (async wrapper).

        Args:
            spec: Asset description

        Returns:
            AssetRecord: Stored asset
        """
        return await asyncio.to_thread(self._create_sync, spec)

    async def query_assets(self, filter: AssetFilter) -> List[AssetRecord]:
        """
        Query assets (async wrapper).

        Args:
            filter: Query criteria

        Returns:
            List[AssetRecord]: Matching assets ordered by sort index
        """
        return await asyncio.to_thread(self._query_sync, filter)

    def _create_sync(self, spec: AssetSpec) -> AssetRecord:
        data = spec.model_dump()
        if not data["asset_id"]:
            data["asset_id"] = uuid4().hex

        session = self.session_factory()
        try:
            asset = AssetRepository(session).create(data)
            session.commit()
            session.refresh(asset)
            record = AssetRecord.model_validate(asset)
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

        logger.debug(f"Stored asset {record.asset_id} ({record.category})")
        return record

    def _query_sync(self, filter: AssetFilter) -> List[AssetRecord]:
        session = self.session_factory()
        try:
            assets = AssetRepository(session).query(
                project_id=filter.project_id,
                category=filter.category,
                tag=filter.tag,
                limit=filter.limit,
            )
            return [AssetRecord.model_validate(asset) for asset in assets]
        finally:
            session.close()
