"""Goal repository."""

from finora.models.entities import Goal, GoalCreate
from finora.repositories.base import RecordRepository
from finora.services.storage import Collection


class GoalRepository(RecordRepository[Goal, GoalCreate]):
    """Savings goals."""
    
    collection = Collection.GOALS
    model = Goal
    entity_name = "goal"
