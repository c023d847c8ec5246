"""
Shared fixtures.

Every test runs against a fresh in-memory store with the cheapest
bcrypt cost, so nothing touches disk and hashing stays fast.
"""

import asyncio
import threading
from datetime import date
from uuid import uuid4

import pytest

from finora.config import get_settings
from finora.models.entities import (
    Debt,
    Transaction,
    TransactionType,
)
from finora.services.storage import InMemoryStore


@pytest.fixture(autouse=True)
def test_settings(monkeypatch):
    monkeypatch.setenv("FINORA_SECURITY_BCRYPT_ROUNDS", "4")
    monkeypatch.setenv("FINORA_STORE_BACKEND", "memory")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def store():
    return InMemoryStore()


def _make_transaction(
    user_id,
    amount,
    transaction_type=TransactionType.EXPENSE,
    category=None,
    on=date(2024, 3, 10),
    description="",
):
    if category is None:
        category = "Food" if transaction_type == TransactionType.EXPENSE else "Salary"
    return Transaction(
        id=uuid4(),
        user_id=user_id,
        type=transaction_type,
        amount=amount,
        category=category,
        description=description,
        date=on,
    )


def _make_debt(user_id, remaining, total=None, name="Loan", rate=0.0, months=12):
    return Debt(
        id=uuid4(),
        user_id=user_id,
        loan_name=name,
        total_amount=total if total is not None else max(remaining, 1.0),
        interest_rate=rate,
        tenure_months=months,
        remaining_amount=remaining,
        start_date=date(2024, 1, 1),
    )


@pytest.fixture
def make_transaction():
    """Factory for stored Transaction records."""
    return _make_transaction


@pytest.fixture
def make_debt():
    """Factory for stored Debt records."""
    return _make_debt


def _run_in_threads(*coroutine_functions, timeout=10.0):
    """
    Run each coroutine function on its own thread and event loop, the
    way the app serves separate browser sessions. The first error
    raised in any thread is re-raised here.
    """
    errors = []
    
    def worker(coroutine_function):
        try:
            asyncio.run(coroutine_function())
        except BaseException as e:
            errors.append(e)
    
    threads = [
        threading.Thread(target=worker, args=(fn,), daemon=True)
        for fn in coroutine_functions
    ]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout)
    
    assert not any(thread.is_alive() for thread in threads), "a worker thread is still blocked"
    if errors:
        raise errors[0]


@pytest.fixture
def run_in_threads():
    """Runner for concurrent client sessions on separate threads."""
    return _run_in_threads
