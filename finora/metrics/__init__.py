"""Derived metrics: pure calculations over repository results."""

from finora.metrics.cashflow import (
    budget_consumption_percent,
    budget_remaining,
    build_budget_status,
    current_month_expense_total,
    daily_safe_spend,
    days_remaining_in_month,
    expense_breakdown_by_category,
    filter_by_month,
    goal_progress_percent,
    net_savings,
    net_worth,
    total_by_type,
)
from finora.metrics.learning import (
    apply_lesson_completion,
    count_correct,
    is_passing,
    quiz_score,
)
from finora.metrics.loans import (
    amortized_monthly_payment,
    apply_payment,
    snowball_order,
    total_outstanding_debt,
)

__all__ = [
    "amortized_monthly_payment",
    "apply_lesson_completion",
    "apply_payment",
    "budget_consumption_percent",
    "budget_remaining",
    "build_budget_status",
    "count_correct",
    "current_month_expense_total",
    "daily_safe_spend",
    "days_remaining_in_month",
    "expense_breakdown_by_category",
    "filter_by_month",
    "goal_progress_percent",
    "is_passing",
    "net_savings",
    "net_worth",
    "quiz_score",
    "snowball_order",
    "total_by_type",
    "total_outstanding_debt",
]
