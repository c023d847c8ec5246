"""
Budget Repository

A user has at most one budget. It is written with upsert-by-user
semantics: setting a limit replaces the existing record (keeping its id)
or creates one.
"""

from typing import Optional
from uuid import UUID, uuid4

from finora.models.entities import Budget, utcnow
from finora.repositories.base import Repository
from finora.services.storage import Collection


class BudgetRepository(Repository[Budget]):
    
    collection = Collection.BUDGETS
    model = Budget
    
    async def get_for_user(self, user_id: UUID) -> Optional[Budget]:
        budgets = await self.find_all_by_user(user_id)
        return budgets[0] if budgets else None
    
    async def set_for_user(self, user_id: UUID, monthly_limit: float) -> Budget:
        """
        Create or replace the user's budget.
        
        Returns:
            The stored budget, with a fresh updated_at
        """
        async with self._store.lock(self.collection):
            items = await self._load()
            existing = next(
                (b for b in items.values() if b.user_id == user_id),
                None,
            )
            budget = Budget(
                id=existing.id if existing is not None else uuid4(),
                user_id=user_id,
                monthly_limit=monthly_limit,
                updated_at=utcnow(),
            )
            items[budget.id] = budget
            await self._save(items)
        return budget
