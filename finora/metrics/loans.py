"""
Loan Metrics

Amortized payment and snowball ordering for the debt page.
"""

from typing import Iterable

from finora.models.entities import Debt


def amortized_monthly_payment(
    principal: float,
    annual_rate_percent: float,
    months: int,
) -> float:
    """
    Fixed monthly payment that retires a loan over its term.
    
        r = annual_rate_percent / 12 / 100
        payment = P * r * (1 + r)^n / ((1 + r)^n - 1)
    
    A zero rate repays the principal in equal parts. A term of zero or
    less, or a non-positive principal, yields 0.
    """
    if months <= 0 or principal <= 0:
        return 0.0
    
    monthly_rate = annual_rate_percent / 12 / 100
    if monthly_rate == 0:
        return principal / months
    
    growth = (1 + monthly_rate) ** months
    return principal * monthly_rate * growth / (growth - 1)


def snowball_order(debts: Iterable[Debt]) -> list[Debt]:
    """
    Debts by remaining balance, smallest first.
    
    The sort is stable: equal balances keep their original order.
    """
    return sorted(debts, key=lambda d: d.remaining_amount)


def total_outstanding_debt(debts: Iterable[Debt]) -> float:
    return sum((d.remaining_amount for d in debts), 0.0)


def apply_payment(remaining: float, payment: float) -> float:
    """Balance after a payment, never below zero."""
    return max(0.0, remaining - payment)
