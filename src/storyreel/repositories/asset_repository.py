"""Asset repository for data access operations."""
from typing import Optional, List, Dict, Any
from sqlalchemy.orm import Session
from storyreel.models.asset import Asset


class AssetRepository:
    """Repository for asset data access operations."""

    def __init__(self, db: Session):
        self.db = db

    def create(self, asset_data: Dict[str, Any]) -> Asset:
        """
        Create a new asset.

        Args:
            asset_data: Column values for the asset

        Returns:
            Asset: Created asset instance

        Note:
            Transaction management is handled by the caller.
        """
        asset = Asset(**asset_data)
        self.db.add(asset)
        self.db.flush()
        return asset

    def query(
        self,
        project_id: Optional[str] = None,
        category: Optional[str] = None,
        tag: Optional[str] = None,
        limit: int = 1000,
    ) -> List[Asset]:
        """
        Query assets by project and category, ordered by sort index.

        Tag filtering happens in Python since tags are stored as a JSON list.
        """
        query = self.db.query(Asset)
        if project_id is not None:
            query = query.filter(Asset.project_id == project_id)
        if category is not None:
            query = query.filter(Asset.category == category)

        assets = query.order_by(Asset.sort_index, Asset.id).limit(limit).all()
        if tag is not None:
            assets = [asset for asset in assets if tag in (asset.tags or [])]
        return assets
