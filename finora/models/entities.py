"""
Stored Entities for Finora

These models define the records kept in the six key-value collections.
They are designed to:
1. Enforce the per-entity invariants at construction time
2. Serialize to the same camelCase JSON the store has always held
3. Carry the owning user's id on everything except User itself

DESIGN DECISION: Each entity has a *Create payload model holding every
field except the generated id. Repositories accept the payload and hand
back the stored entity, so callers never mint identifiers themselves.
"""

from datetime import date, datetime, timezone
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class TransactionType(str, Enum):
    """Direction of a money movement."""
    INCOME = "income"
    EXPENSE = "expense"


class ExpenseCategory(str, Enum):
    """
    Categories an expense can be filed under.
    
    DESIGN DECISION: Explicit categories rather than free text keep the
    dashboard breakdown stable.
    """
    HOUSING = "Housing"
    TRANSPORTATION = "Transportation"
    FOOD = "Food"
    UTILITIES = "Utilities"
    INSURANCE = "Insurance"
    HEALTHCARE = "Healthcare"
    SAVINGS = "Savings"
    PERSONAL = "Personal"
    ENTERTAINMENT = "Entertainment"
    MISCELLANEOUS = "Miscellaneous"


class IncomeSource(str, Enum):
    """Categories an income entry can be filed under."""
    SALARY = "Salary"
    FREELANCE = "Freelance"
    INVESTMENTS = "Investments"
    GIFT = "Gift"
    RENTAL = "Rental"
    OTHER = "Other"


class Theme(str, Enum):
    LIGHT = "light"
    DARK = "dark"


def categories_for(transaction_type: TransactionType) -> list[str]:
    """The category names allowed for a transaction type, in display order."""
    if transaction_type == TransactionType.INCOME:
        return [source.value for source in IncomeSource]
    return [category.value for category in ExpenseCategory]


class StoredRecord(BaseModel):
    """
    Base for everything persisted in the store.
    
    Fields are snake_case in Python and camelCase on disk.
    """
    model_config = ConfigDict(
        str_strip_whitespace=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )
    
    def to_record(self) -> dict:
        """JSON-safe dict in the on-disk layout."""
        return self.model_dump(mode="json", by_alias=True)


# =============================================================================
# USERS
# =============================================================================

class User(StoredRecord):
    """
    An account holder.
    
    The password is only ever held as a bcrypt hash.
    """
    
    id: UUID = Field(
        default_factory=uuid4,
        description="Unique user ID"
    )
    name: str = Field(
        ...,
        min_length=1,
        max_length=120,
        description="Display name"
    )
    email: str = Field(
        ...,
        min_length=3,
        max_length=254,
        description="Login email, unique across users"
    )
    password_hash: str = Field(
        ...,
        repr=False,
        description="bcrypt hash of the password"
    )
    created_at: datetime = Field(
        default_factory=utcnow,
        description="When the account was registered"
    )
    
    # Profile and preferences
    phone: Optional[str] = None
    currency: Optional[str] = Field(
        default="USD",
        min_length=3,
        max_length=3,
    )
    theme: Optional[Theme] = Theme.LIGHT
    notifications: Optional[bool] = True


# =============================================================================
# TRANSACTIONS
# =============================================================================

class TransactionCreate(StoredRecord):
    """A transaction as submitted from the income or expense form."""
    
    user_id: UUID = Field(
        ...,
        description="Owning user"
    )
    type: TransactionType
    amount: float = Field(
        ...,
        gt=0,
        description="Always positive; direction comes from type"
    )
    category: str = Field(
        ...,
        min_length=1,
    )
    description: str = Field(
        default="",
        max_length=500,
    )
    date: date
    
    @model_validator(mode='after')
    def validate_category(self) -> 'TransactionCreate':
        """Category must come from the list for this transaction type."""
        allowed = categories_for(self.type)
        if self.category not in allowed:
            raise ValueError(
                f"Unknown {self.type.value} category: {self.category}. "
                f"Allowed: {', '.join(allowed)}"
            )
        return self


class Transaction(TransactionCreate):
    """A stored income or expense entry."""
    
    id: UUID = Field(
        default_factory=uuid4,
        description="Unique transaction ID"
    )


# =============================================================================
# BUDGETS
# =============================================================================

class Budget(StoredRecord):
    """
    A user's monthly spending limit.
    
    At most one exists per user; it is replaced in place, keeping its id.
    """
    
    id: UUID = Field(default_factory=uuid4)
    user_id: UUID
    monthly_limit: float = Field(
        ...,
        gt=0,
        description="Spending limit for one calendar month"
    )
    updated_at: datetime = Field(default_factory=utcnow)


# =============================================================================
# DEBTS
# =============================================================================

class DebtCreate(StoredRecord):
    """A loan as entered on the debt page."""
    
    user_id: UUID
    loan_name: str = Field(
        ...,
        min_length=1,
        max_length=120,
    )
    total_amount: float = Field(
        ...,
        gt=0,
        description="Original principal"
    )
    interest_rate: float = Field(
        ...,
        ge=0,
        description="Annual interest rate in percent"
    )
    tenure_months: int = Field(
        ...,
        ge=1,
        description="Loan term in months"
    )
    remaining_amount: float = Field(
        ...,
        ge=0,
        description="Outstanding balance"
    )
    start_date: date
    
    @model_validator(mode='after')
    def validate_balance(self) -> 'DebtCreate':
        """Outstanding balance cannot exceed the original principal."""
        if self.remaining_amount > self.total_amount:
            raise ValueError("Remaining amount cannot exceed total amount")
        return self


class Debt(DebtCreate):
    """A stored loan."""
    
    id: UUID = Field(default_factory=uuid4)


# =============================================================================
# GOALS
# =============================================================================

class GoalCreate(StoredRecord):
    """
    A savings goal.
    
    current_amount may exceed target_amount; progress display clamps it.
    """
    
    user_id: UUID
    title: str = Field(
        ...,
        min_length=1,
        max_length=120,
    )
    target_amount: float = Field(..., gt=0)
    current_amount: float = Field(default=0.0, ge=0)
    deadline: Optional[date] = None


class Goal(GoalCreate):
    """A stored savings goal."""
    
    id: UUID = Field(default_factory=uuid4)


# =============================================================================
# LEARNING PROGRESS
# =============================================================================

class LearningProgress(StoredRecord):
    """
    A user's course progress, keyed by user id (one record per user).
    
    completed_lesson_ids has set semantics; it is kept as a list so it
    serializes to JSON, and duplicates are dropped on construction.
    """
    
    user_id: UUID
    completed_lesson_ids: list[str] = Field(default_factory=list)
    quiz_score: int = Field(
        default=0,
        ge=0,
        description="Accumulated XP; never decreases"
    )
    
    @field_validator('completed_lesson_ids')
    @classmethod
    def dedupe_lessons(cls, v: list[str]) -> list[str]:
        return list(dict.fromkeys(v))
    
    def has_completed(self, lesson_id: str) -> bool:
        return lesson_id in self.completed_lesson_ids
