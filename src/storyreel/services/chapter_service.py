"""Chapter service splitting novels and storing chapters as assets."""
import asyncio
import logging
from pathlib import Path
from typing import List, Optional, Union
from storyreel.core.clock import SystemClock, TimeSource
from storyreel.core.exceptions import EmptyNovelError
from storyreel.services.asset_store import AssetFilter, AssetPersistence, AssetRecord, AssetSpec
from storyreel.services.chapter_splitter import RuleBasedChapterSplitter

logger = logging.getLogger(__name__)

CHAPTER_CATEGORY = "chapters"
CHAPTER_TAGS = ["novel-video", "chapter"]


class ChapterService:
    """Service for turning novel text into chapter assets."""

    def __init__(
        self,
        asset_store: AssetPersistence,
        splitter: Optional[RuleBasedChapterSplitter] = None,
        clock: Optional[TimeSource] = None,
    ):
        """
        Initialize chapter service.

        Args:
            asset_store: Asset persistence collaborator
            splitter: Chapter splitter
            clock: Source of chapter id timestamps
        """
        self.asset_store = asset_store
        self.splitter = splitter or RuleBasedChapterSplitter()
        self.clock = clock or SystemClock()

    async def split_chapters(self, project_id: str, text: str) -> List[AssetRecord]:
        """
        Split a novel and store one asset per chapter.

        Args:
            project_id: Owning project
            text: Novel text

        Returns:
            List[AssetRecord]: Chapter assets in reading order

        Raises:
            EmptyNovelError: If the text is blank
        """
        if not text or not text.strip():
            raise EmptyNovelError("Novel text is empty")

        chapters = self.splitter.split(text)
        if not chapters:
            raise EmptyNovelError("No chapters could be split from the novel")

        logger.info(f"Split novel for project {project_id} into {len(chapters)} chapters")

        millis = int(self.clock.get_current_time().timestamp() * 1000)
        assets: List[AssetRecord] = []
        for index, chapter in enumerate(chapters):
            asset = await self.asset_store.create_asset(
                AssetSpec(
                    project_id=project_id,
                    category=CHAPTER_CATEGORY,
                    name=chapter["title"],
                    sort_index=index,
                    tags=list(CHAPTER_TAGS),
                    fields={
                        "chapter_id": f"chapter-{millis}-{index}",
                        "chapter_title": chapter["title"],
                        "chapter_content": chapter["content"],
                        "chapter_index": index,
                    },
                )
            )
            assets.append(asset)

        return assets

    async def split_chapters_from_file(
        self, project_id: str, path: Union[str, Path]
    ) -> List[AssetRecord]:
        """Read a UTF-8 novel file and split it."""
        text = await asyncio.to_thread(Path(path).read_text, encoding="utf-8")
        return await self.split_chapters(project_id, text)

    async def list_chapters(self, project_id: str) -> List[AssetRecord]:
        """List chapter assets of a project ordered by chapter index."""
        assets = await self.asset_store.query_assets(
            AssetFilter(project_id=project_id, category=CHAPTER_CATEGORY)
        )
        return sorted(assets, key=lambda asset: asset.fields.get("chapter_index", 0))
