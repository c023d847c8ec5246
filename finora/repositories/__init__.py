"""Entity repositories layered on the key-value store."""

from finora.repositories.base import RecordRepository, Repository
from finora.repositories.budgets import BudgetRepository
from finora.repositories.debts import DebtRepository
from finora.repositories.goals import GoalRepository
from finora.repositories.progress import ProgressRepository
from finora.repositories.transactions import TransactionRepository
from finora.repositories.users import (
    DuplicateUserError,
    InvalidCredentialsError,
    UserRepository,
)

__all__ = [
    "BudgetRepository",
    "DebtRepository",
    "DuplicateUserError",
    "GoalRepository",
    "InvalidCredentialsError",
    "ProgressRepository",
    "RecordRepository",
    "Repository",
    "TransactionRepository",
    "UserRepository",
]
