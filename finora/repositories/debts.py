"""Debt repository."""

from finora.models.entities import Debt, DebtCreate
from finora.repositories.base import RecordRepository
from finora.services.storage import Collection


class DebtRepository(RecordRepository[Debt, DebtCreate]):
    """Loans being paid down."""
    
    collection = Collection.DEBTS
    model = Debt
    entity_name = "debt"
