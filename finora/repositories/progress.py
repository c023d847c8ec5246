"""
Learning Progress Repository

One record per user, keyed by user id. A user who has never finished a
lesson gets a synthesized empty record; nothing is written until the
first save.
"""

from uuid import UUID

from finora.metrics.learning import apply_lesson_completion
from finora.models.entities import LearningProgress
from finora.repositories.base import Repository
from finora.services.storage import Collection


class ProgressRepository(Repository[LearningProgress]):
    
    collection = Collection.PROGRESS
    model = LearningProgress
    
    def _key(self, item: LearningProgress) -> UUID:
        return item.user_id
    
    async def get_for_user(self, user_id: UUID) -> LearningProgress:
        items = await self._load()
        return items.get(user_id) or LearningProgress(user_id=user_id)
    
    async def save(self, progress: LearningProgress) -> LearningProgress:
        """Replace the user's record, or create it."""
        async with self._store.lock(self.collection):
            items = await self._load()
            items[progress.user_id] = progress
            await self._save(items)
        return progress
    
    async def complete_lesson(
        self,
        user_id: UUID,
        lesson_id: str,
        points: int,
    ) -> tuple[LearningProgress, int]:
        """
        Mark a lesson as passed, awarding points the first time only.
        
        Read and write happen under one lock hold, so two passes of
        the same lesson at once still award its points once.
        
        Returns:
            (progress, points_awarded)
        """
        async with self._store.lock(self.collection):
            items = await self._load()
            current = items.get(user_id) or LearningProgress(user_id=user_id)
            progress, awarded = apply_lesson_completion(current, lesson_id, points)
            if awarded:
                items[user_id] = progress
                await self._save(items)
        return progress, awarded
