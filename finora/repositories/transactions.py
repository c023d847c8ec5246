"""Transaction repository."""

from typing import Optional
from uuid import UUID

from finora.models.entities import Transaction, TransactionCreate, TransactionType
from finora.repositories.base import RecordRepository
from finora.services.storage import Collection


class TransactionRepository(RecordRepository[Transaction, TransactionCreate]):
    """Income and expense entries."""
    
    collection = Collection.TRANSACTIONS
    model = Transaction
    entity_name = "transaction"
    
    async def find_all_by_user(
        self,
        user_id: UUID,
        transaction_type: Optional[TransactionType] = None,
    ) -> list[Transaction]:
        """
        A user's transactions, newest first.
        
        Transactions on the same date keep their stored order.
        """
        transactions = await super().find_all_by_user(user_id)
        if transaction_type is not None:
            transactions = [t for t in transactions if t.type == transaction_type]
        return sorted(transactions, key=lambda t: t.date, reverse=True)
