"""
Data Models Package

This package contains all Pydantic models used in Finora: the stored
entities, static course content, computed screen summaries and audit
events.
"""

from finora.models.entities import (
    Budget,
    Debt,
    DebtCreate,
    ExpenseCategory,
    Goal,
    GoalCreate,
    IncomeSource,
    LearningProgress,
    Theme,
    Transaction,
    TransactionCreate,
    TransactionType,
    User,
    categories_for,
)
from finora.models.learning import Lesson, QuizQuestion
from finora.models.summary import (
    BudgetStatus,
    DashboardSummary,
    DebtOverview,
    DebtProjection,
    GoalProgress,
    ProfileOverview,
    QuizOutcome,
)
from finora.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Entities
    "Budget",
    "Debt",
    "DebtCreate",
    "ExpenseCategory",
    "Goal",
    "GoalCreate",
    "IncomeSource",
    "LearningProgress",
    "Theme",
    "Transaction",
    "TransactionCreate",
    "TransactionType",
    "User",
    "categories_for",
    # Course content
    "Lesson",
    "QuizQuestion",
    # Summaries
    "BudgetStatus",
    "DashboardSummary",
    "DebtOverview",
    "DebtProjection",
    "GoalProgress",
    "ProfileOverview",
    "QuizOutcome",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
