"""
Main Orchestrator for Finora

This module ties together all the components and defines the flows
the view layer calls:
1. Account (register, login, session restore, profile, password, deletion)
2. Finance (transactions, budget, debts, goals and the screens built on them)
3. Learning (lessons and quizzes)

DESIGN DECISION: The orchestrator enforces the boundaries:
- Nothing but the login and register flows runs without a signed-in user
- Raw form values are validated here, before any repository call
- Every record is created, read and deleted for the session's user only
- Every mutation is audited

Views never touch repositories directly.
"""

import asyncio
import functools
from datetime import date
from typing import Optional, Union
from uuid import UUID

from finora.audit import AuditLogger, configure_logging
from finora.config import get_settings
from finora.learning import LESSONS, get_lesson
from finora.metrics import (
    amortized_monthly_payment,
    apply_payment,
    build_budget_status,
    count_correct,
    current_month_expense_total,
    expense_breakdown_by_category,
    filter_by_month,
    goal_progress_percent,
    is_passing,
    net_savings,
    net_worth,
    quiz_score,
    snowball_order,
    total_by_type,
    total_outstanding_debt,
)
from finora.models.audit import AuditEventType
from finora.models.entities import (
    Budget,
    Debt,
    DebtCreate,
    Goal,
    GoalCreate,
    LearningProgress,
    Theme,
    Transaction,
    TransactionCreate,
    TransactionType,
    User,
)
from finora.models.learning import Lesson
from finora.models.summary import (
    BudgetStatus,
    DashboardSummary,
    DebtOverview,
    DebtProjection,
    GoalProgress,
    ProfileOverview,
    QuizOutcome,
)
from finora.repositories import (
    BudgetRepository,
    DebtRepository,
    GoalRepository,
    InvalidCredentialsError,
    ProgressRepository,
    TransactionRepository,
    UserRepository,
)
from finora.services.storage import (
    DuplicateError,
    KeyValueStore,
    NotFoundError,
    StorageError,
    StoreCorruptionError,
    create_store,
)
from finora.session import SessionContext
from finora.validation import InputValidationError, InputValidator


def audit_rejections(method):
    """Audit-log rejected input and storage failures, then re-raise."""
    
    @functools.wraps(method)
    async def wrapper(self, *args, **kwargs):
        try:
            return await method(self, *args, **kwargs)
        except InputValidationError as e:
            user = self._session.user
            await self._audit_logger.log_validation_failed(
                e.field, e.message, user.id if user else None
            )
            raise
        except StoreCorruptionError as e:
            await self._audit_logger.log_store_corrupted(e.collection, e.reason)
            raise
        except (OSError, StorageError) as e:
            if not isinstance(e, (NotFoundError, DuplicateError)):
                await self._audit_logger.log_error(type(e).__name__, str(e))
            raise
    
    return wrapper


class AccountFlow:
    """
    Orchestrates sign-up, sign-in and account management.
    
    Successful register/login signs the user into the session.
    Deleting the account signs them out.
    """
    
    def __init__(
        self,
        session: SessionContext,
        users: UserRepository,
        audit_logger: Optional[AuditLogger] = None,
        validator: Optional[InputValidator] = None,
    ):
        self._session = session
        self._users = users
        self._audit_logger = audit_logger or AuditLogger()
        self._validator = validator or InputValidator()
    
    @audit_rejections
    async def register(
        self,
        name: str,
        email: str,
        password: str,
        confirm_password: Optional[str] = None,
    ) -> User:
        """
        Create an account and sign in.
        
        Raises:
            InputValidationError: Bad name, email or password
            DuplicateUserError: Email already registered
        """
        name = self._validator.require_text(name, "name")
        email = self._validator.validate_email(email)
        self._validator.validate_new_password(password, confirm_password)
        
        user = await self._users.register(name, email, password)
        await self._session.login(user)
        await self._audit_logger.log_user_registered(user.id)
        return user
    
    @audit_rejections
    async def login(self, email: str, password: str, remember: bool = True) -> User:
        """
        Sign in.
        
        Raises:
            InvalidCredentialsError: Unknown email or wrong password
        """
        try:
            user = await self._users.login((email or "").strip(), password)
        except InvalidCredentialsError:
            await self._audit_logger.log_login_failed()
            raise
        
        await self._session.login(user, remember=remember)
        await self._audit_logger.log_login(user.id)
        return user
    
    @audit_rejections
    async def restore_session(self) -> Optional[User]:
        user = await self._session.restore()
        if user is not None:
            await self._audit_logger.log_record_change(
                AuditEventType.SESSION_RESTORED, user.id, "user", user.id
            )
        return user
    
    async def logout(self) -> None:
        user = self._session.user
        await self._session.logout()
        if user is not None:
            await self._audit_logger.log_record_change(
                AuditEventType.LOGOUT, user.id, "user", user.id
            )
    
    @audit_rejections
    async def update_profile(self, name: str, phone: Optional[str] = None) -> User:
        user = self._session.require_user()
        updated = await self._users.update_fields(
            user.id,
            name=self._validator.require_text(name, "name"),
            phone=(phone or "").strip() or None,
        )
        self._session.refresh(updated)
        await self._audit_logger.log_record_change(
            AuditEventType.PROFILE_UPDATED, user.id, "user", user.id,
            details={"fields": ["name", "phone"]},
        )
        return updated
    
    @audit_rejections
    async def update_preferences(
        self,
        currency: Optional[str] = None,
        theme: Optional[Union[Theme, str]] = None,
        notifications: Optional[bool] = None,
    ) -> User:
        """Change any of currency, theme and notifications; None leaves a field as is."""
        user = self._session.require_user()
        changes = {
            key: value
            for key, value in (
                ("currency", currency.strip().upper() if currency else None),
                ("theme", theme),
                ("notifications", notifications),
            )
            if value is not None
        }
        if not changes:
            return user
        
        updated = await self._users.update_fields(user.id, **changes)
        self._session.refresh(updated)
        await self._audit_logger.log_record_change(
            AuditEventType.PROFILE_UPDATED, user.id, "user", user.id,
            details={"fields": sorted(changes)},
        )
        return updated
    
    @audit_rejections
    async def change_password(
        self,
        current_password: str,
        new_password: str,
        confirm_password: str,
    ) -> None:
        """
        Raises:
            InputValidationError: Confirmation mismatch or weak password
            InvalidCredentialsError: Current password is wrong
        """
        user = self._session.require_user()
        self._validator.validate_new_password(new_password, confirm_password, field="new_password")
        
        try:
            await self._users.change_password(user.id, current_password, new_password)
        except InvalidCredentialsError:
            await self._audit_logger.log_record_change(
                AuditEventType.PASSWORD_CHANGE_FAILED, user.id, "user", user.id
            )
            raise
        
        await self._audit_logger.log_record_change(
            AuditEventType.PASSWORD_CHANGED, user.id, "user", user.id
        )
    
    @audit_rejections
    async def delete_account(self) -> dict[str, int]:
        """
        Permanently delete the signed-in user and all their data.
        
        Returns:
            Records removed per collection
        """
        user = self._session.require_user()
        removed = await self._users.delete_account(user.id)
        await self._session.logout()
        await self._audit_logger.log_account_deleted(user.id, removed)
        return removed


class FinanceFlow:
    """
    Orchestrates the money screens: income, expenses, budget, debts,
    goals, dashboard and profile snapshot.
    """
    
    def __init__(
        self,
        session: SessionContext,
        transactions: TransactionRepository,
        budgets: BudgetRepository,
        debts: DebtRepository,
        goals: GoalRepository,
        progress: ProgressRepository,
        audit_logger: Optional[AuditLogger] = None,
        validator: Optional[InputValidator] = None,
    ):
        self._session = session
        self._transactions = transactions
        self._budgets = budgets
        self._debts = debts
        self._goals = goals
        self._progress = progress
        self._audit_logger = audit_logger or AuditLogger()
        self._validator = validator or InputValidator()
        self._settings = get_settings().app
    
    # -------------------------------------------------------------------------
    # Transactions
    # -------------------------------------------------------------------------
    
    @audit_rejections
    async def add_transaction(
        self,
        transaction_type: Union[TransactionType, str],
        amount: Union[str, float],
        category: str,
        description: str = "",
        on: Union[date, str, None] = None,
    ) -> Transaction:
        user = self._session.require_user()
        transaction_type = TransactionType(transaction_type)
        
        payload = TransactionCreate(
            user_id=user.id,
            type=transaction_type,
            amount=self._validator.parse_amount(amount),
            category=self._validator.validate_category(transaction_type, category),
            description=(description or "").strip(),
            date=self._validator.parse_date(on) if on is not None else date.today(),
        )
        transaction = await self._transactions.insert(payload)
        await self._audit_logger.log_record_change(
            AuditEventType.TRANSACTION_ADDED, user.id, "transaction", transaction.id,
            details={"type": transaction_type.value, "category": transaction.category},
        )
        return transaction
    
    @audit_rejections
    async def list_transactions(
        self,
        transaction_type: Union[TransactionType, str, None] = None,
        month: Optional[str] = None,
    ) -> list[Transaction]:
        """The user's transactions, newest first, optionally by type and "YYYY-MM"."""
        user = self._session.require_user()
        transactions = await self._transactions.find_all_by_user(
            user.id,
            TransactionType(transaction_type) if transaction_type else None,
        )
        return filter_by_month(transactions, month)
    
    @audit_rejections
    async def delete_transaction(self, transaction_id: UUID) -> None:
        user = self._session.require_user()
        await self._transactions.delete_by_id(transaction_id, user_id=user.id)
        await self._audit_logger.log_record_change(
            AuditEventType.TRANSACTION_DELETED, user.id, "transaction", transaction_id
        )
    
    # -------------------------------------------------------------------------
    # Budget
    # -------------------------------------------------------------------------
    
    @audit_rejections
    async def set_budget(self, monthly_limit: Union[str, float]) -> Budget:
        user = self._session.require_user()
        limit = self._validator.parse_amount(monthly_limit, field="monthly_limit")
        budget = await self._budgets.set_for_user(user.id, limit)
        await self._audit_logger.log_record_change(
            AuditEventType.BUDGET_SET, user.id, "budget", budget.id,
            details={"monthly_limit": limit},
        )
        return budget
    
    @audit_rejections
    async def get_budget_overview(self, today: Optional[date] = None) -> Optional[BudgetStatus]:
        """This month's budget status, or None if no budget is set."""
        user = self._session.require_user()
        today = today or date.today()
        budget, transactions = await asyncio.gather(
            self._budgets.get_for_user(user.id),
            self._transactions.find_all_by_user(user.id),
        )
        if budget is None:
            return None
        return self._budget_status(budget, transactions, today)
    
    def _budget_status(
        self,
        budget: Budget,
        transactions: list[Transaction],
        today: date,
    ) -> BudgetStatus:
        spent = current_month_expense_total(transactions, today)
        return build_budget_status(
            budget.monthly_limit,
            spent,
            today,
            warning_percent=self._settings.budget_warning_percent,
        )
    
    # -------------------------------------------------------------------------
    # Dashboard
    # -------------------------------------------------------------------------
    
    @audit_rejections
    async def get_dashboard(self, today: Optional[date] = None) -> DashboardSummary:
        user = self._session.require_user()
        today = today or date.today()
        transactions, budget, debts = await asyncio.gather(
            self._transactions.find_all_by_user(user.id),
            self._budgets.get_for_user(user.id),
            self._debts.find_all_by_user(user.id),
        )
        
        return DashboardSummary(
            total_income=total_by_type(transactions, TransactionType.INCOME),
            total_expense=total_by_type(transactions, TransactionType.EXPENSE),
            net_savings=net_savings(transactions),
            current_month_expenses=current_month_expense_total(transactions, today),
            budget=self._budget_status(budget, transactions, today) if budget else None,
            expense_breakdown=expense_breakdown_by_category(transactions),
            recent_transactions=transactions[:5],
            # Smallest balances first, the same order as the debt screen
            top_debts=snowball_order(debts)[:3],
        )
    
    # -------------------------------------------------------------------------
    # Debts
    # -------------------------------------------------------------------------
    
    @audit_rejections
    async def add_debt(
        self,
        loan_name: str,
        total_amount: Union[str, float],
        interest_rate: Union[str, float],
        tenure_months: Union[str, int],
        remaining_amount: Union[str, float, None] = None,
        start_date: Union[date, str, None] = None,
    ) -> Debt:
        """
        Record a loan. The remaining balance defaults to the total.
        """
        user = self._session.require_user()
        total = self._validator.parse_amount(total_amount, field="total_amount")
        if remaining_amount is None or (isinstance(remaining_amount, str) and not remaining_amount.strip()):
            remaining = total
        else:
            remaining = self._validator.parse_amount(
                remaining_amount, field="remaining_amount", allow_zero=True
            )
        if remaining > total:
            raise InputValidationError("remaining_amount", "Remaining amount cannot exceed total amount")
        
        payload = DebtCreate(
            user_id=user.id,
            loan_name=self._validator.require_text(loan_name, "loan_name"),
            total_amount=total,
            interest_rate=self._validator.parse_interest_rate(interest_rate),
            tenure_months=self._validator.parse_months(tenure_months),
            remaining_amount=remaining,
            start_date=(
                self._validator.parse_date(start_date, "start_date")
                if start_date is not None else date.today()
            ),
        )
        debt = await self._debts.insert(payload)
        await self._audit_logger.log_record_change(
            AuditEventType.DEBT_ADDED, user.id, "debt", debt.id
        )
        return debt
    
    @audit_rejections
    async def record_debt_payment(self, debt_id: UUID, amount: Union[str, float]) -> Debt:
        """
        Pay down a debt. The balance never drops below zero.
        
        Raises:
            InputValidationError: Amount missing, non-numeric or not positive
            NotFoundError: No such debt for this user
        """
        user = self._session.require_user()
        payment = self._validator.parse_amount(amount)
        
        updated = await self._debts.modify(
            debt_id, user.id,
            lambda debt: {"remaining_amount": apply_payment(debt.remaining_amount, payment)},
        )
        await self._audit_logger.log_record_change(
            AuditEventType.DEBT_PAYMENT_RECORDED, user.id, "debt", debt_id,
            details={"payment": payment, "remaining_amount": updated.remaining_amount},
        )
        return updated
    
    @audit_rejections
    async def get_debt_overview(self) -> DebtOverview:
        """The user's debts in snowball order with their monthly payments."""
        user = self._session.require_user()
        ordered = snowball_order(await self._debts.find_all_by_user(user.id))
        
        items = [
            DebtProjection(
                debt=debt,
                monthly_payment=amortized_monthly_payment(
                    debt.total_amount, debt.interest_rate, debt.tenure_months
                ),
                is_focus=index == 0 and len(ordered) > 1,
            )
            for index, debt in enumerate(ordered)
        ]
        return DebtOverview(
            items=items,
            total_outstanding=total_outstanding_debt(ordered),
            total_monthly_payment=sum((item.monthly_payment for item in items), 0.0),
        )
    
    # -------------------------------------------------------------------------
    # Goals
    # -------------------------------------------------------------------------
    
    @audit_rejections
    async def add_goal(
        self,
        title: str,
        target_amount: Union[str, float],
        current_amount: Union[str, float, None] = None,
        deadline: Union[date, str, None] = None,
    ) -> Goal:
        user = self._session.require_user()
        saved = 0.0
        if current_amount is not None and str(current_amount).strip():
            saved = self._validator.parse_amount(current_amount, field="current_amount", allow_zero=True)
        
        payload = GoalCreate(
            user_id=user.id,
            title=self._validator.require_text(title, "title"),
            target_amount=self._validator.parse_amount(target_amount, field="target_amount"),
            current_amount=saved,
            deadline=self._validator.parse_optional_date(deadline, "deadline"),
        )
        goal = await self._goals.insert(payload)
        await self._audit_logger.log_record_change(
            AuditEventType.GOAL_ADDED, user.id, "goal", goal.id
        )
        return goal
    
    @audit_rejections
    async def update_goal_savings(self, goal_id: UUID, current_amount: Union[str, float]) -> Goal:
        """
        Set how much has been saved toward a goal.
        
        Raises:
            NotFoundError: No such goal for this user
        """
        user = self._session.require_user()
        saved = self._validator.parse_amount(current_amount, field="current_amount", allow_zero=True)
        
        updated = await self._goals.modify(goal_id, user.id, lambda goal: {"current_amount": saved})
        await self._audit_logger.log_record_change(
            AuditEventType.GOAL_UPDATED, user.id, "goal", goal_id
        )
        return updated
    
    @audit_rejections
    async def delete_goal(self, goal_id: UUID) -> None:
        user = self._session.require_user()
        await self._goals.delete_by_id(goal_id, user_id=user.id)
        await self._audit_logger.log_record_change(
            AuditEventType.GOAL_DELETED, user.id, "goal", goal_id
        )
    
    # -------------------------------------------------------------------------
    # Profile
    # -------------------------------------------------------------------------
    
    @audit_rejections
    async def get_profile_overview(self) -> ProfileOverview:
        user = self._session.require_user()
        transactions, debts, goals, progress = await asyncio.gather(
            self._transactions.find_all_by_user(user.id),
            self._debts.find_all_by_user(user.id),
            self._goals.find_all_by_user(user.id),
            self._progress.get_for_user(user.id),
        )
        
        return ProfileOverview(
            total_income=total_by_type(transactions, TransactionType.INCOME),
            total_expense=total_by_type(transactions, TransactionType.EXPENSE),
            liquid_assets=net_savings(transactions),
            total_debt=total_outstanding_debt(debts),
            net_worth=net_worth(transactions, debts),
            goals=[
                GoalProgress(
                    goal=goal,
                    percent=goal_progress_percent(goal.current_amount, goal.target_amount),
                )
                for goal in goals
            ],
            lessons_completed=len(progress.completed_lesson_ids),
            quiz_score=progress.quiz_score,
        )


class LearningFlow:
    """
    Orchestrates the learning hub.
    
    A quiz at or above the pass mark completes the lesson. Points are
    awarded once per lesson; retaking a passed quiz changes nothing.
    """
    
    def __init__(
        self,
        session: SessionContext,
        progress: ProgressRepository,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._session = session
        self._progress = progress
        self._audit_logger = audit_logger or AuditLogger()
        self._settings = get_settings().learning
    
    def list_lessons(self) -> tuple[Lesson, ...]:
        return LESSONS
    
    @audit_rejections
    async def get_progress(self) -> LearningProgress:
        user = self._session.require_user()
        return await self._progress.get_for_user(user.id)
    
    @audit_rejections
    async def submit_quiz(
        self,
        lesson_id: str,
        responses: list[Optional[int]],
    ) -> QuizOutcome:
        """
        Score a quiz and, on a pass, record the lesson as completed.
        
        Raises:
            NotFoundError: Unknown lesson id
        """
        user = self._session.require_user()
        lesson = get_lesson(lesson_id)
        if lesson is None:
            raise NotFoundError(f"Lesson not found: {lesson_id}")
        
        score = quiz_score(responses, lesson.questions)
        passed = is_passing(score, self._settings.pass_threshold_percent)
        points = 0
        
        if passed:
            progress, points = await self._progress.complete_lesson(
                user.id, lesson.id, self._settings.points_per_lesson
            )
            await self._audit_logger.log_lesson_completed(user.id, lesson.id, score, points)
        else:
            progress = await self._progress.get_for_user(user.id)
            await self._audit_logger.log_quiz_failed(user.id, lesson.id, score)
        
        return QuizOutcome(
            lesson_id=lesson.id,
            correct_count=count_correct(responses, lesson.questions),
            total_questions=len(lesson.questions),
            score_percent=score,
            passed=passed,
            points_awarded=points,
            progress=progress,
        )


def create_app_components(
    store: Optional[KeyValueStore] = None,
    client_id: Optional[str] = None,
) -> tuple[AccountFlow, FinanceFlow, LearningFlow, SessionContext]:
    """
    Factory function to create all application components.
    
    Args:
        store: Store to use. Defaults to the backend chosen in settings.
               The view layer passes one shared store and calls this
               once per client session, so each gets its own
               SessionContext.
        client_id: Token of the client session; its remembered login
                   is the only one restore_session() can pick up.
                   A fresh token is generated when omitted.
                    
    Returns:
        (account_flow, finance_flow, learning_flow, session)
    """
    configure_logging(get_settings().app.log_level)
    store = store or create_store()
    audit_logger = AuditLogger()
    validator = InputValidator()
    
    users = UserRepository(store)
    progress = ProgressRepository(store)
    session = SessionContext(store, users, client_id=client_id)
    
    account_flow = AccountFlow(
        session=session,
        users=users,
        audit_logger=audit_logger,
        validator=validator,
    )
    finance_flow = FinanceFlow(
        session=session,
        transactions=TransactionRepository(store),
        budgets=BudgetRepository(store),
        debts=DebtRepository(store),
        goals=GoalRepository(store),
        progress=progress,
        audit_logger=audit_logger,
        validator=validator,
    )
    learning_flow = LearningFlow(
        session=session,
        progress=progress,
        audit_logger=audit_logger,
    )
    
    return account_flow, finance_flow, learning_flow, session
