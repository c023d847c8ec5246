"""
Presentation Models

Values computed from repository data for a single screen. None of these
are stored; they are rebuilt from the records on every request.
"""

from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from finora.models.entities import Debt, Goal, LearningProgress, Transaction


class BudgetStatus(BaseModel):
    """How this month's spending compares to the budget."""
    
    monthly_limit: float
    spent: float
    remaining: float = Field(
        ...,
        description="Negative when over budget"
    )
    percent_used: float = Field(..., ge=0, le=100)
    days_remaining: int = Field(..., ge=0)
    daily_safe_spend: float = Field(..., ge=0)
    is_near_limit: bool
    
    @property
    def is_over_budget(self) -> bool:
        return self.remaining < 0


class DashboardSummary(BaseModel):
    """Everything the dashboard shows."""
    
    total_income: float
    total_expense: float
    net_savings: float
    current_month_expenses: float
    budget: Optional[BudgetStatus] = None
    expense_breakdown: dict[str, float] = Field(default_factory=dict)
    recent_transactions: list[Transaction] = Field(default_factory=list)
    top_debts: list[Debt] = Field(default_factory=list)


class DebtProjection(BaseModel):
    """A debt with its fixed monthly instalment."""
    
    debt: Debt
    monthly_payment: float
    is_focus: bool = Field(
        default=False,
        description="First in snowball order when there is more than one debt"
    )


class DebtOverview(BaseModel):
    """The debt page: debts in snowball order."""
    
    items: list[DebtProjection] = Field(default_factory=list)
    total_outstanding: float = 0.0
    total_monthly_payment: float = 0.0
    
    @property
    def focus_debt_id(self) -> Optional[UUID]:
        for item in self.items:
            if item.is_focus:
                return item.debt.id
        return None


class GoalProgress(BaseModel):
    goal: Goal
    percent: float = Field(..., ge=0, le=100)


class ProfileOverview(BaseModel):
    """Financial snapshot shown on the profile page."""
    
    total_income: float
    total_expense: float
    liquid_assets: float
    total_debt: float
    net_worth: float
    goals: list[GoalProgress] = Field(default_factory=list)
    lessons_completed: int = 0
    quiz_score: int = 0


class QuizOutcome(BaseModel):
    """Result of submitting a lesson's quiz."""
    
    lesson_id: str
    correct_count: int
    total_questions: int
    score_percent: int = Field(..., ge=0, le=100)
    passed: bool
    points_awarded: int = 0
    progress: LearningProgress
