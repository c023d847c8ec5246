"""
Integration tests for the orchestrator flows.

Flows are wired by create_app_components over an in-memory store, the
same way the app wires them over the file store.
"""

import asyncio
from datetime import date
from uuid import uuid4

import pytest
import pytest_asyncio

from finora.learning import LESSONS, get_lesson
from finora.models.audit import AuditEventType
from finora.models.entities import Theme, TransactionType
from finora.orchestrator import create_app_components
from finora.repositories import DebtRepository, DuplicateUserError, InvalidCredentialsError
from finora.services.storage import Collection, NotFoundError, StoreCorruptionError
from finora.session import AuthenticationRequiredError
from finora.validation import InputValidationError


@pytest.fixture
def components(store):
    return create_app_components(store)


@pytest.fixture
def account_flow(components):
    return components[0]


@pytest.fixture
def finance_flow(components):
    return components[1]


@pytest.fixture
def learning_flow(components):
    return components[2]


@pytest.fixture
def session(components):
    return components[3]


@pytest_asyncio.fixture
async def signed_in(account_flow):
    return await account_flow.register("Asha", "asha@example.com", "secret1", "secret1")


def audit_types(flow):
    return [event.event_type for event in flow._audit_logger.history]


def answers_for(lesson, correct):
    """Responses with the first `correct` questions right and the rest wrong."""
    return [
        q.correct_answer if i < correct else (q.correct_answer + 1) % len(q.options)
        for i, q in enumerate(lesson.questions)
    ]


class TestAccountFlow:
    
    @pytest.mark.asyncio
    async def test_register_signs_in(self, account_flow, session, store):
        user = await account_flow.register("Asha", " asha@example.com ", "secret1", "secret1")
        assert session.is_authenticated
        assert session.user.id == user.id
        assert user.email == "asha@example.com"
        assert await store.read(Collection.SESSION) == [
            {"clientId": session.client_id, "userId": str(user.id)}
        ]
        assert AuditEventType.USER_REGISTERED in audit_types(account_flow)
    
    @pytest.mark.asyncio
    async def test_register_password_mismatch(self, account_flow, session):
        with pytest.raises(InputValidationError, match="Passwords don't match"):
            await account_flow.register("Asha", "asha@example.com", "secret1", "secret2")
        assert not session.is_authenticated
        assert AuditEventType.VALIDATION_FAILED in audit_types(account_flow)
    
    @pytest.mark.asyncio
    async def test_register_duplicate(self, account_flow, signed_in):
        with pytest.raises(DuplicateUserError):
            await account_flow.register("Again", "asha@example.com", "secret1", "secret1")
    
    @pytest.mark.asyncio
    async def test_login_and_logout(self, account_flow, session, signed_in):
        await account_flow.logout()
        assert not session.is_authenticated
        
        user = await account_flow.login("asha@example.com", "secret1")
        assert user.id == signed_in.id
        assert session.user.id == signed_in.id
    
    @pytest.mark.asyncio
    async def test_login_failure_is_audited(self, account_flow, session, signed_in):
        await account_flow.logout()
        with pytest.raises(InvalidCredentialsError):
            await account_flow.login("asha@example.com", "nope")
        assert not session.is_authenticated
        assert audit_types(account_flow)[-1] == AuditEventType.LOGIN_FAILED
    
    @pytest.mark.asyncio
    async def test_restore_session_same_client(self, store, session, signed_in):
        account_flow, _, _, reopened = create_app_components(store, client_id=session.client_id)
        restored = await account_flow.restore_session()
        assert restored.id == signed_in.id
        assert reopened.is_authenticated
    
    @pytest.mark.asyncio
    async def test_other_client_does_not_inherit_login(self, store, signed_in):
        account_flow, finance_flow, _, other = create_app_components(store, client_id="other-browser")
        assert await account_flow.restore_session() is None
        assert not other.is_authenticated
        with pytest.raises(AuthenticationRequiredError):
            await finance_flow.get_dashboard()
    
    @pytest.mark.asyncio
    async def test_update_profile(self, account_flow, session, signed_in):
        updated = await account_flow.update_profile(" Asha K ", " 555-0100 ")
        assert updated.name == "Asha K"
        assert updated.phone == "555-0100"
        assert session.user.name == "Asha K"
    
    @pytest.mark.asyncio
    async def test_update_preferences(self, account_flow, session, signed_in):
        updated = await account_flow.update_preferences(currency="inr", theme=Theme.DARK)
        assert updated.currency == "INR"
        assert updated.theme == Theme.DARK
        assert updated.notifications is True
        assert session.user.currency == "INR"
    
    @pytest.mark.asyncio
    async def test_change_password(self, account_flow, signed_in):
        await account_flow.change_password("secret1", "newpass1", "newpass1")
        await account_flow.logout()
        assert (await account_flow.login("asha@example.com", "newpass1")).id == signed_in.id
    
    @pytest.mark.asyncio
    async def test_change_password_wrong_current(self, account_flow, signed_in):
        with pytest.raises(InvalidCredentialsError):
            await account_flow.change_password("wrong1", "newpass1", "newpass1")
        assert audit_types(account_flow)[-1] == AuditEventType.PASSWORD_CHANGE_FAILED
    
    @pytest.mark.asyncio
    async def test_change_password_mismatch(self, account_flow, signed_in):
        with pytest.raises(InputValidationError) as exc_info:
            await account_flow.change_password("secret1", "newpass1", "newpass2")
        assert exc_info.value.field == "confirm_password"
    
    @pytest.mark.asyncio
    async def test_delete_account(self, account_flow, finance_flow, session, store, signed_in):
        await finance_flow.add_transaction("expense", "20", "Food")
        await finance_flow.set_budget("500")
        phone_flow, _, _, _ = create_app_components(store, client_id="phone")
        await phone_flow.login("asha@example.com", "secret1")
        
        removed = await account_flow.delete_account()
        
        assert removed["users"] == 1
        assert removed["transactions"] == 1
        assert removed["budgets"] == 1
        assert removed["session"] == 2
        assert not session.is_authenticated
        assert await store.read(Collection.SESSION) == []
        with pytest.raises(InvalidCredentialsError):
            await account_flow.login("asha@example.com", "secret1")


class TestFinanceFlow:
    
    @pytest.mark.asyncio
    async def test_requires_sign_in(self, finance_flow):
        with pytest.raises(AuthenticationRequiredError):
            await finance_flow.get_dashboard()
    
    @pytest.mark.asyncio
    async def test_add_and_list_transactions(self, finance_flow, signed_in):
        await finance_flow.add_transaction("income", "3000", "Salary", "March pay", "2024-03-31")
        await finance_flow.add_transaction(TransactionType.EXPENSE, 45.5, "Food", on=date(2024, 3, 2))
        await finance_flow.add_transaction("expense", "12", "Utilities", on="2024-04-01")
        
        expenses = await finance_flow.list_transactions("expense")
        assert [t.category for t in expenses] == ["Utilities", "Food"]
        assert all(t.user_id == signed_in.id for t in expenses)
        
        march = await finance_flow.list_transactions(month="2024-03")
        assert {t.category for t in march} == {"Salary", "Food"}
    
    @pytest.mark.asyncio
    async def test_add_transaction_rejects_bad_input(self, finance_flow, signed_in):
        with pytest.raises(InputValidationError):
            await finance_flow.add_transaction("expense", "abc", "Food")
        with pytest.raises(InputValidationError):
            await finance_flow.add_transaction("expense", "10", "Salary")
        assert await finance_flow.list_transactions() == []
    
    @pytest.mark.asyncio
    async def test_transactions_isolated_between_users(self, store, finance_flow, signed_in):
        await finance_flow.add_transaction("expense", "10", "Food")
        
        other_account, other_finance, _, _ = create_app_components(store)
        await other_account.register("Bob", "bob@example.com", "secret1", "secret1")
        assert await other_finance.list_transactions() == []
        
        mine = await finance_flow.list_transactions()
        with pytest.raises(NotFoundError):
            await other_finance.delete_transaction(mine[0].id)
        assert len(await finance_flow.list_transactions()) == 1
    
    @pytest.mark.asyncio
    async def test_delete_transaction(self, finance_flow, signed_in):
        transaction = await finance_flow.add_transaction("expense", "10", "Food")
        await finance_flow.delete_transaction(transaction.id)
        assert await finance_flow.list_transactions() == []
        with pytest.raises(NotFoundError):
            await finance_flow.delete_transaction(transaction.id)
    
    @pytest.mark.asyncio
    async def test_budget_overview(self, finance_flow, signed_in):
        today = date(2024, 3, 21)
        assert await finance_flow.get_budget_overview(today) is None
        
        await finance_flow.set_budget("1000")
        await finance_flow.add_transaction("expense", "850", "Housing", on="2024-03-01")
        
        status = await finance_flow.get_budget_overview(today)
        assert status.spent == 850
        assert status.remaining == 150
        assert status.days_remaining == 10
        assert status.is_near_limit
    
    @pytest.mark.asyncio
    async def test_set_budget_validates(self, finance_flow, signed_in):
        with pytest.raises(InputValidationError):
            await finance_flow.set_budget("0")
    
    @pytest.mark.asyncio
    async def test_dashboard(self, finance_flow, signed_in):
        for day in range(1, 8):
            await finance_flow.add_transaction("expense", "10", "Food", on=date(2024, 3, day))
        await finance_flow.add_transaction("income", "500", "Salary", on="2024-03-01")
        for remaining in ("900", "100", "400", "250"):
            await finance_flow.add_debt("Loan " + remaining, "1000", "5", "12", remaining)
        
        summary = await finance_flow.get_dashboard(date(2024, 3, 15))
        
        assert summary.total_income == 500
        assert summary.total_expense == 70
        assert summary.net_savings == 430
        assert summary.current_month_expenses == 70
        assert summary.budget is None
        assert summary.expense_breakdown == {"Food": 70}
        assert len(summary.recent_transactions) == 5
        assert summary.recent_transactions[0].date == date(2024, 3, 7)
        assert [d.remaining_amount for d in summary.top_debts] == [100, 250, 400]
    
    @pytest.mark.asyncio
    async def test_add_debt_defaults_remaining_to_total(self, finance_flow, signed_in):
        debt = await finance_flow.add_debt("Car", "12000", "7.5", "36")
        assert debt.remaining_amount == 12000
        assert debt.start_date == date.today()
    
    @pytest.mark.asyncio
    async def test_add_debt_remaining_above_total(self, finance_flow, signed_in):
        with pytest.raises(InputValidationError) as exc_info:
            await finance_flow.add_debt("Car", "1000", "5", "12", "2000")
        assert exc_info.value.field == "remaining_amount"
    
    @pytest.mark.asyncio
    async def test_record_debt_payment(self, finance_flow, signed_in):
        debt = await finance_flow.add_debt("Card", "1000", "20", "12", "300")
        
        assert (await finance_flow.record_debt_payment(debt.id, "100")).remaining_amount == 200
        assert (await finance_flow.record_debt_payment(debt.id, "500")).remaining_amount == 0
        
        with pytest.raises(InputValidationError):
            await finance_flow.record_debt_payment(debt.id, "-5")
        with pytest.raises(NotFoundError):
            await finance_flow.record_debt_payment(uuid4(), "10")
    
    def test_payments_from_two_browser_sessions(self, store, run_in_threads):
        async def open_account():
            account_flow, finance_flow, _, _ = create_app_components(store)
            await account_flow.register("Asha", "asha@example.com", "secret1", "secret1")
            return await finance_flow.add_debt("Car", "1000", "0", "12")
        
        debt = asyncio.run(open_account())
        
        async def pay_from_new_tab():
            account_flow, finance_flow, _, _ = create_app_components(store)
            await account_flow.login("asha@example.com", "secret1", remember=False)
            for _ in range(10):
                await finance_flow.record_debt_payment(debt.id, "10")
        
        run_in_threads(pay_from_new_tab, pay_from_new_tab)
        assert asyncio.run(DebtRepository(store).find_by_id(debt.id)).remaining_amount == 800
    
    @pytest.mark.asyncio
    async def test_debt_overview(self, finance_flow, signed_in):
        await finance_flow.add_debt("Big", "1200", "0", "12", "800")
        await finance_flow.add_debt("Small", "500", "0", "10", "200")
        
        overview = await finance_flow.get_debt_overview()
        
        assert [item.debt.loan_name for item in overview.items] == ["Small", "Big"]
        assert overview.items[0].is_focus
        assert not overview.items[1].is_focus
        assert overview.items[0].monthly_payment == 50
        assert overview.items[1].monthly_payment == 100
        assert overview.total_outstanding == 1000
        assert overview.total_monthly_payment == 150
    
    @pytest.mark.asyncio
    async def test_single_debt_has_no_focus(self, finance_flow, signed_in):
        await finance_flow.add_debt("Only", "500", "0", "10")
        overview = await finance_flow.get_debt_overview()
        assert overview.focus_debt_id is None
    
    @pytest.mark.asyncio
    async def test_goals(self, finance_flow, signed_in):
        goal = await finance_flow.add_goal("Vacation", "2000", deadline="2024-12-01")
        assert goal.current_amount == 0
        assert goal.deadline == date(2024, 12, 1)
        
        updated = await finance_flow.update_goal_savings(goal.id, "2500")
        assert updated.current_amount == 2500
        
        overview = await finance_flow.get_profile_overview()
        assert overview.goals[0].percent == 100
        
        await finance_flow.delete_goal(goal.id)
        assert (await finance_flow.get_profile_overview()).goals == []
        with pytest.raises(NotFoundError):
            await finance_flow.update_goal_savings(goal.id, "10")
    
    @pytest.mark.asyncio
    async def test_profile_overview(self, finance_flow, learning_flow, signed_in):
        await finance_flow.add_transaction("income", "1000", "Salary")
        await finance_flow.add_transaction("expense", "300", "Food")
        await finance_flow.add_debt("Loan", "500", "5", "12", "200")
        lesson = LESSONS[0]
        await learning_flow.submit_quiz(lesson.id, answers_for(lesson, len(lesson.questions)))
        
        overview = await finance_flow.get_profile_overview()
        
        assert overview.liquid_assets == 700
        assert overview.total_debt == 200
        assert overview.net_worth == 500
        assert overview.lessons_completed == 1
        assert overview.quiz_score == 50
    
    @pytest.mark.asyncio
    async def test_corruption_is_audited(self, finance_flow, store, signed_in):
        await store.write(Collection.DEBTS, [{"bogus": True}])
        with pytest.raises(StoreCorruptionError):
            await finance_flow.get_debt_overview()
        assert audit_types(finance_flow)[-1] == AuditEventType.STORE_CORRUPTED
    
    @pytest.mark.asyncio
    async def test_mutations_are_audited(self, finance_flow, signed_in):
        await finance_flow.add_transaction("expense", "10", "Food")
        await finance_flow.set_budget("100")
        debt = await finance_flow.add_debt("Card", "100", "0", "2")
        await finance_flow.record_debt_payment(debt.id, "10")
        
        assert audit_types(finance_flow)[-4:] == [
            AuditEventType.TRANSACTION_ADDED,
            AuditEventType.BUDGET_SET,
            AuditEventType.DEBT_ADDED,
            AuditEventType.DEBT_PAYMENT_RECORDED,
        ]


class TestLearningFlow:
    
    @pytest.mark.asyncio
    async def test_pass_awards_points_once(self, learning_flow, store, signed_in):
        lesson = LESSONS[0]
        responses = answers_for(lesson, len(lesson.questions))
        
        first = await learning_flow.submit_quiz(lesson.id, responses)
        assert first.passed
        assert first.score_percent == 100
        assert first.points_awarded == 50
        assert first.progress.completed_lesson_ids == [lesson.id]
        
        second = await learning_flow.submit_quiz(lesson.id, responses)
        assert second.passed
        assert second.points_awarded == 0
        
        progress = await learning_flow.get_progress()
        assert progress.completed_lesson_ids == [lesson.id]
        assert progress.quiz_score == 50
        assert len(await store.read(Collection.PROGRESS)) == 1
    
    @pytest.mark.asyncio
    async def test_pass_mark_is_sixty_percent(self, learning_flow, signed_in):
        lesson = get_lesson("l2")
        # 2 of 3 correct rounds to 67%
        outcome = await learning_flow.submit_quiz(lesson.id, answers_for(lesson, 2))
        assert outcome.correct_count == 2
        assert outcome.score_percent == 67
        assert outcome.passed
    
    @pytest.mark.asyncio
    async def test_failed_quiz_changes_nothing(self, learning_flow, store, signed_in):
        lesson = get_lesson("l3")
        outcome = await learning_flow.submit_quiz(lesson.id, answers_for(lesson, 1))
        
        assert outcome.score_percent == 33
        assert not outcome.passed
        assert outcome.points_awarded == 0
        assert await store.read(Collection.PROGRESS) == []
        assert learning_flow._audit_logger.history[-1].event_type == AuditEventType.QUIZ_FAILED
    
    @pytest.mark.asyncio
    async def test_unknown_lesson(self, learning_flow, signed_in):
        with pytest.raises(NotFoundError):
            await learning_flow.submit_quiz("l99", [])
    
    def test_list_lessons(self, learning_flow):
        assert len(learning_flow.list_lessons()) == 10
