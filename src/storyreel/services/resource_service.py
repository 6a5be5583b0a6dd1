"""Resource generation fan-out for scene images, character images and voiceovers."""
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional
from storyreel.core.enums import RetryPolicy
from storyreel.models.task import TaskSpec
from storyreel.services.asset_store import AssetPersistence, AssetRecord, AssetSpec
from storyreel.services.task_manager import AsyncTaskManager

logger = logging.getLogger(__name__)

# Async callable (kind, project_id, item) -> artifact dict, e.g. {"file_path": ...}
Generator = Callable[[str, str, Dict[str, Any]], Awaitable[Dict[str, Any]]]

SCENE_IMAGE = "scene-image"
CHARACTER_IMAGE = "character-image"
VOICEOVER = "voiceover"

CATEGORIES = {
    SCENE_IMAGE: "scene-images",
    CHARACTER_IMAGE: "character-images",
    VOICEOVER: "voiceovers",
}


class ResourceService:
    """
    Generates one artifact per item as background tasks.

    Each task calls the generator with retries and stores the produced
    artifact as an asset; the task result is the stored AssetRecord.
    """

    def __init__(
        self,
        task_manager: AsyncTaskManager,
        asset_store: AssetPersistence,
        generator: Generator,
        max_concurrency: Optional[int] = None,
        max_retries: int = 2,
        retry_base_delay: float = 1.0,
    ):
        """
        Initialize resource service.

        Args:
            task_manager: Task fan-out helper
            asset_store: Asset persistence collaborator
            generator: Backend producing an artifact for one item
            max_concurrency: Ceiling on concurrent generations per batch
            max_retries: Generator retries after the first attempt
            retry_base_delay: Base backoff delay in seconds
        """
        self.task_manager = task_manager
        self.asset_store = asset_store
        self.generator = generator
        self.max_concurrency = max_concurrency
        self.max_retries = max_retries
        self.retry_base_delay = retry_base_delay

    def generate_scene_images(self, project_id: str, scenes: List[Dict[str, Any]]) -> List[str]:
        """Start one scene image task per scene and return the task ids."""
        return self._generate(SCENE_IMAGE, project_id, scenes)

    def generate_character_images(
        self, project_id: str, characters: List[Dict[str, Any]]
    ) -> List[str]:
        """Start one character image task per character and return the task ids."""
        return self._generate(CHARACTER_IMAGE, project_id, characters)

    def generate_voiceovers(self, project_id: str, lines: List[Dict[str, Any]]) -> List[str]:
        """Start one voiceover task per narration line and return the task ids."""
        return self._generate(VOICEOVER, project_id, lines)

    async def wait_for_tasks(
        self, task_ids: List[str], timeout: Optional[float] = None
    ) -> List[AssetRecord]:
        return await self.task_manager.wait_for_tasks(task_ids, timeout)

    def _generate(self, kind: str, project_id: str, items: List[Dict[str, Any]]) -> List[str]:
        specs = [
            TaskSpec(
                name=f"generate {kind} {index + 1}/{len(items)}",
                handler=self._make_handler(kind, project_id, index, item),
                metadata={"kind": kind, "project_id": project_id, "index": index},
            )
            for index, item in enumerate(items)
        ]
        task_ids = self.task_manager.run_batch(specs, self.max_concurrency)
        logger.info(f"Created {len(task_ids)} {kind} tasks for project {project_id}")
        return task_ids

    def _make_handler(
        self, kind: str, project_id: str, index: int, item: Dict[str, Any]
    ) -> Callable[[], Awaitable[AssetRecord]]:
        async def handler() -> AssetRecord:
            artifact = await self.task_manager.execute_with_retry(
                lambda: self.generator(kind, project_id, item),
                max_retries=self.max_retries,
                base_delay=self.retry_base_delay,
                policy=RetryPolicy.EXPONENTIAL,
            )
            artifact = dict(artifact or {})
            return await self.asset_store.create_asset(
                AssetSpec(
                    project_id=project_id,
                    category=CATEGORIES[kind],
                    name=artifact.pop("name", None) or item.get("name") or f"{kind}-{index + 1}",
                    file_path=artifact.pop("file_path", None),
                    sort_index=index,
                    tags=["novel-video", kind],
                    fields={"source": item, **artifact},
                )
            )

        return handler
