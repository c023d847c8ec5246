"""
Cash-Flow Metrics

Pure functions over already-fetched transactions, budgets and goals.

GUARANTEES:
- No I/O and no mutation of inputs
- Never raise on empty input or a zero denominator; return 0 instead
- Percentages are clamped to [0, 100]
"""

import calendar
from datetime import date
from typing import Iterable, Optional

from finora.models.entities import Debt, Transaction, TransactionType
from finora.models.summary import BudgetStatus


def total_by_type(
    transactions: Iterable[Transaction],
    transaction_type: TransactionType,
) -> float:
    """Sum of amounts for one transaction type."""
    return sum(
        (t.amount for t in transactions if t.type == transaction_type),
        0.0,
    )


def net_savings(transactions: Iterable[Transaction]) -> float:
    """Total income minus total expenses (may be negative)."""
    transactions = list(transactions)
    return (
        total_by_type(transactions, TransactionType.INCOME)
        - total_by_type(transactions, TransactionType.EXPENSE)
    )


def current_month_expense_total(
    transactions: Iterable[Transaction],
    reference_date: date,
    match_year: bool = False,
) -> float:
    """
    Sum of expenses dated in the reference date's month.
    
    By default only the month number is compared, so expenses from the
    same month of any year are counted. This is the long-standing
    dashboard behaviour; pass match_year=True to restrict to the
    reference year as well.
    """
    return sum(
        (
            t.amount
            for t in transactions
            if t.type == TransactionType.EXPENSE
            and t.date.month == reference_date.month
            and (not match_year or t.date.year == reference_date.year)
        ),
        0.0,
    )


def filter_by_month(
    transactions: Iterable[Transaction],
    month: Optional[str],
) -> list[Transaction]:
    """
    Transactions whose ISO date starts with month ("YYYY-MM").
    
    An empty or None month returns everything.
    """
    if not month:
        return list(transactions)
    return [t for t in transactions if t.date.isoformat().startswith(month)]


def expense_breakdown_by_category(
    transactions: Iterable[Transaction],
) -> dict[str, float]:
    """Expense totals per category."""
    breakdown: dict[str, float] = {}
    for t in transactions:
        if t.type == TransactionType.EXPENSE:
            breakdown[t.category] = breakdown.get(t.category, 0.0) + t.amount
    return breakdown


def budget_consumption_percent(spent: float, limit: float) -> float:
    """Share of the limit used, clamped to 100. Zero for a non-positive limit."""
    if limit <= 0:
        return 0.0
    return max(0.0, min(spent / limit * 100, 100.0))


def budget_remaining(limit: float, spent: float) -> float:
    """Money left this month; negative means over budget."""
    return limit - spent


def days_remaining_in_month(reference_date: date) -> int:
    """Days after reference_date until the month ends (0 on the last day)."""
    last_day = calendar.monthrange(reference_date.year, reference_date.month)[1]
    return last_day - reference_date.day


def daily_safe_spend(remaining: float, days_remaining: int) -> float:
    """
    How much can be spent per day without exceeding the budget.
    
    On the last day of the month (no days remaining) the whole
    remainder is available today.
    """
    return max(0.0, remaining / max(days_remaining, 1))


def build_budget_status(
    monthly_limit: float,
    spent: float,
    reference_date: date,
    warning_percent: float = 80.0,
) -> BudgetStatus:
    """Everything the budget page shows for one month."""
    percent = budget_consumption_percent(spent, monthly_limit)
    remaining = budget_remaining(monthly_limit, spent)
    days_left = days_remaining_in_month(reference_date)
    return BudgetStatus(
        monthly_limit=monthly_limit,
        spent=spent,
        remaining=remaining,
        percent_used=percent,
        days_remaining=days_left,
        daily_safe_spend=daily_safe_spend(remaining, days_left),
        is_near_limit=percent >= warning_percent,
    )


def goal_progress_percent(current: float, target: float) -> float:
    """Progress toward a goal, clamped to 100 when the target is exceeded."""
    if target <= 0:
        return 0.0
    return max(0.0, min(current / target * 100, 100.0))


def net_worth(
    transactions: Iterable[Transaction],
    debts: Iterable[Debt],
) -> float:
    """Liquid assets (income minus expenses) less outstanding debt."""
    return net_savings(transactions) - sum((d.remaining_amount for d in debts), 0.0)
