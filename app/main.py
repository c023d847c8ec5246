"""
Streamlit Frontend for Finora

The screens a signed-in user moves between every day: dashboard,
income, expenses, budget, debt, learning and profile.

DESIGN PRINCIPLES:
1. Thin views: every read and write goes through an orchestrator flow
2. Clear error messages next to the form that caused them
3. Visual feedback for all operations
4. Nothing but login and register is reachable while signed out

One store is shared by the whole server; every browser session gets its
own flows and SessionContext.
"""

import asyncio
from datetime import date
from uuid import uuid4

import streamlit as st

from finora.config import validate_all_settings
from finora.models.entities import (
    ExpenseCategory,
    IncomeSource,
    Theme,
    TransactionType,
)
from finora.orchestrator import (
    AccountFlow,
    FinanceFlow,
    LearningFlow,
    create_app_components,
)
from finora.repositories import DuplicateUserError, InvalidCredentialsError
from finora.services.storage import StorageError, create_store
from finora.session import AuthenticationRequiredError, SessionContext
from finora.validation import InputValidationError


# Errors shown to the user as a message instead of a stack trace
USER_FACING_ERRORS = (
    InputValidationError,
    DuplicateUserError,
    InvalidCredentialsError,
    AuthenticationRequiredError,
    StorageError,
)

PAGES = [
    "📊 Dashboard",
    "💵 Income",
    "🧾 Expenses",
    "🎯 Budget",
    "🏦 Debt",
    "🎓 Learning",
    "👤 Profile",
]


# Page configuration
st.set_page_config(
    page_title="Finora",
    page_icon="💰",
    layout="wide",
    initial_sidebar_state="expanded",
)

st.markdown("""
<style>
    .stButton>button {
        width: 100%;
        margin-top: 10px;
    }
    .focus-box {
        padding: 16px;
        background-color: #fff3cd;
        border-radius: 10px;
        border-left: 5px solid #f59e0b;
        margin: 10px 0;
    }
</style>
""", unsafe_allow_html=True)


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@st.cache_resource
def get_store():
    """The server-wide store (cached)."""
    return create_store()


def get_components() -> tuple[AccountFlow, FinanceFlow, LearningFlow, SessionContext]:
    """Get or create this browser session's components."""
    if "client_id" not in st.session_state:
        st.session_state.client_id = uuid4().hex
    if "components" not in st.session_state:
        components = create_app_components(get_store(), client_id=st.session_state.client_id)
        account_flow, _, _, _ = components
        try:
            run_async(account_flow.restore_session())
        except StorageError as e:
            st.warning(f"Could not restore your previous session: {e}")
        st.session_state.components = components
    return st.session_state.components


def money(amount: float, session: SessionContext) -> str:
    currency = session.user.currency if session.user else "USD"
    return f"{currency} {amount:,.2f}"


def main():
    """Main application entry point."""
    account_flow, finance_flow, learning_flow, session = get_components()
    
    if not session.is_authenticated:
        render_auth_page(account_flow)
        return
    
    st.sidebar.title("💰 Finora")
    st.sidebar.markdown(f"Signed in as **{session.user.name}**")
    st.sidebar.markdown("---")
    
    page = st.sidebar.radio("Navigate to:", PAGES, index=0)
    
    st.sidebar.markdown("---")
    if st.sidebar.button("🚪 Log out"):
        run_async(account_flow.logout())
        st.rerun()
    
    try:
        if page == "📊 Dashboard":
            render_dashboard_page(finance_flow, session)
        elif page == "💵 Income":
            render_transactions_page(finance_flow, session, TransactionType.INCOME)
        elif page == "🧾 Expenses":
            render_transactions_page(finance_flow, session, TransactionType.EXPENSE)
        elif page == "🎯 Budget":
            render_budget_page(finance_flow, session)
        elif page == "🏦 Debt":
            render_debt_page(finance_flow, session)
        elif page == "🎓 Learning":
            render_learning_page(learning_flow)
        elif page == "👤 Profile":
            render_profile_page(account_flow, finance_flow, session)
    except AuthenticationRequiredError:
        st.rerun()


def render_auth_page(account_flow: AccountFlow):
    """Render login and register."""
    st.title("💰 Finora")
    st.markdown("Track your money, plan your debts, learn as you go.")
    
    login_tab, register_tab = st.tabs(["Log in", "Create account"])
    
    with login_tab:
        with st.form("login"):
            email = st.text_input("Email")
            password = st.text_input("Password", type="password")
            remember = st.checkbox("Keep me signed in", value=True)
            if st.form_submit_button("Log in", type="primary"):
                try:
                    run_async(account_flow.login(email, password, remember=remember))
                    st.rerun()
                except USER_FACING_ERRORS as e:
                    st.error(str(e))
    
    with register_tab:
        with st.form("register"):
            name = st.text_input("Full name")
            email = st.text_input("Email", key="register_email")
            password = st.text_input("Password", type="password", key="register_password")
            confirm = st.text_input("Confirm password", type="password")
            if st.form_submit_button("Create account", type="primary"):
                try:
                    run_async(account_flow.register(name, email, password, confirm))
                    st.rerun()
                except USER_FACING_ERRORS as e:
                    st.error(str(e))


def render_budget_status(status, session: SessionContext):
    if status is None:
        st.info("No monthly budget set yet. Set one on the Budget page.")
        return
    
    st.progress(status.percent_used / 100)
    st.markdown(
        f"**{status.percent_used:.0f}%** of {money(status.monthly_limit, session)} used"
    )
    if status.is_over_budget:
        st.error("You have spent your whole budget for this month.")
    elif status.is_near_limit:
        st.warning("You are approaching your monthly limit.")


def render_dashboard_page(finance_flow: FinanceFlow, session: SessionContext):
    st.title("📊 Dashboard")
    summary = run_async(finance_flow.get_dashboard())
    
    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Total income", money(summary.total_income, session))
    col2.metric("Total expenses", money(summary.total_expense, session))
    col3.metric("Net savings", money(summary.net_savings, session))
    col4.metric("Spent this month", money(summary.current_month_expenses, session))
    
    st.markdown("### Monthly budget")
    render_budget_status(summary.budget, session)
    
    left, right = st.columns(2)
    with left:
        st.markdown("### Spending by category")
        if summary.expense_breakdown:
            st.bar_chart(summary.expense_breakdown)
        else:
            st.caption("No expenses recorded yet.")
    
    with right:
        st.markdown("### Smallest debts")
        for debt in summary.top_debts:
            st.markdown(f"- **{debt.loan_name}**: {money(debt.remaining_amount, session)} left")
        if not summary.top_debts:
            st.caption("Debt free. 🎉")
    
    st.markdown("### Recent transactions")
    for transaction in summary.recent_transactions:
        sign = "+" if transaction.type == TransactionType.INCOME else "-"
        st.markdown(
            f"{transaction.date.isoformat()} · {transaction.category} · "
            f"{sign}{money(transaction.amount, session)} {transaction.description}"
        )
    if not summary.recent_transactions:
        st.caption("Nothing recorded yet.")


def render_transactions_page(
    finance_flow: FinanceFlow,
    session: SessionContext,
    transaction_type: TransactionType,
):
    is_income = transaction_type == TransactionType.INCOME
    st.title("💵 Income" if is_income else "🧾 Expenses")
    categories = [c.value for c in (IncomeSource if is_income else ExpenseCategory)]
    
    with st.form(f"add_{transaction_type.value}", clear_on_submit=True):
        col1, col2 = st.columns(2)
        with col1:
            amount = st.text_input("Amount *")
            category = st.selectbox("Source *" if is_income else "Category *", categories)
        with col2:
            on = st.date_input("Date *", value=date.today())
            description = st.text_input("Description")
        
        if st.form_submit_button("Add", type="primary"):
            try:
                run_async(finance_flow.add_transaction(
                    transaction_type, amount, category, description, on
                ))
                st.success("Saved.")
            except USER_FACING_ERRORS as e:
                st.error(str(e))
    
    st.markdown("---")
    month = st.text_input("Filter by month (YYYY-MM)", value="")
    transactions = run_async(
        finance_flow.list_transactions(transaction_type, month.strip() or None)
    )
    
    for transaction in transactions:
        col1, col2 = st.columns([5, 1])
        col1.markdown(
            f"{transaction.date.isoformat()} · **{transaction.category}** · "
            f"{money(transaction.amount, session)} {transaction.description}"
        )
        if col2.button("🗑️", key=f"delete_{transaction.id}"):
            try:
                run_async(finance_flow.delete_transaction(transaction.id))
                st.rerun()
            except USER_FACING_ERRORS as e:
                st.error(str(e))
    if not transactions:
        st.caption("No entries.")


def render_budget_page(finance_flow: FinanceFlow, session: SessionContext):
    st.title("🎯 Budget")
    status = run_async(finance_flow.get_budget_overview())
    
    with st.form("budget"):
        limit = st.text_input(
            "Monthly limit *",
            value=f"{status.monthly_limit:.2f}" if status else "",
        )
        if st.form_submit_button("Save budget", type="primary"):
            try:
                run_async(finance_flow.set_budget(limit))
                st.rerun()
            except USER_FACING_ERRORS as e:
                st.error(str(e))
    
    if status is not None:
        col1, col2, col3 = st.columns(3)
        col1.metric("Spent this month", money(status.spent, session))
        col2.metric("Remaining", money(status.remaining, session))
        col3.metric(
            "Safe to spend per day",
            money(status.daily_safe_spend, session),
            help=f"{status.days_remaining} days left this month",
        )
    render_budget_status(status, session)


def render_debt_page(finance_flow: FinanceFlow, session: SessionContext):
    st.title("🏦 Debt")
    st.markdown("Debts are ordered smallest balance first (snowball method).")
    
    with st.expander("➕ Add a loan"):
        with st.form("add_debt", clear_on_submit=True):
            col1, col2 = st.columns(2)
            with col1:
                loan_name = st.text_input("Loan name *")
                total = st.text_input("Total amount *")
                remaining = st.text_input("Remaining amount", help="Defaults to the total")
            with col2:
                rate = st.text_input("Annual interest rate (%) *", value="0")
                tenure = st.text_input("Tenure (months) *")
                start = st.date_input("Start date", value=date.today())
            if st.form_submit_button("Add loan", type="primary"):
                try:
                    run_async(finance_flow.add_debt(
                        loan_name, total, rate, tenure, remaining or None, start
                    ))
                    st.rerun()
                except USER_FACING_ERRORS as e:
                    st.error(str(e))
    
    overview = run_async(finance_flow.get_debt_overview())
    col1, col2 = st.columns(2)
    col1.metric("Total outstanding", money(overview.total_outstanding, session))
    col2.metric("Total monthly payments", money(overview.total_monthly_payment, session))
    
    for item in overview.items:
        debt = item.debt
        if item.is_focus:
            st.markdown(
                f'<div class="focus-box">🎯 Focus on <b>{debt.loan_name}</b> first</div>',
                unsafe_allow_html=True,
            )
        with st.container(border=True):
            st.markdown(f"**{debt.loan_name}**")
            st.markdown(
                f"{money(debt.remaining_amount, session)} left of "
                f"{money(debt.total_amount, session)} · "
                f"{debt.interest_rate}% · EMI {money(item.monthly_payment, session)}"
            )
            st.progress(1 - debt.remaining_amount / debt.total_amount)
            payment = st.text_input("Payment", key=f"payment_{debt.id}")
            if st.button("Record payment", key=f"pay_{debt.id}"):
                try:
                    run_async(finance_flow.record_debt_payment(debt.id, payment))
                    st.rerun()
                except USER_FACING_ERRORS as e:
                    st.error(str(e))
    if not overview.items:
        st.caption("No debts recorded.")


def render_learning_page(learning_flow: LearningFlow):
    st.title("🎓 Learning Hub")
    progress = run_async(learning_flow.get_progress())
    lessons = learning_flow.list_lessons()
    
    col1, col2 = st.columns(2)
    col1.metric("Lessons completed", f"{len(progress.completed_lesson_ids)} / {len(lessons)}")
    col2.metric("XP", progress.quiz_score)
    
    for lesson in lessons:
        done = "✅ " if progress.has_completed(lesson.id) else ""
        with st.expander(f"{done}{lesson.title} · {lesson.category} · {lesson.duration_minutes} min"):
            st.markdown(lesson.summary)
            for paragraph in lesson.content:
                st.markdown(paragraph)
            st.markdown("**Key takeaways**")
            for takeaway in lesson.key_takeaways:
                st.markdown(f"- {takeaway}")
            
            with st.form(f"quiz_{lesson.id}"):
                responses = []
                for number, question in enumerate(lesson.questions):
                    choice = st.radio(
                        question.question,
                        options=list(range(len(question.options))),
                        format_func=lambda i, q=question: q.options[i],
                        index=None,
                        key=f"{lesson.id}_q{number}",
                    )
                    responses.append(choice)
                if st.form_submit_button("Submit quiz"):
                    try:
                        outcome = run_async(learning_flow.submit_quiz(lesson.id, responses))
                    except USER_FACING_ERRORS as e:
                        st.error(str(e))
                    else:
                        message = (
                            f"{outcome.correct_count}/{outcome.total_questions} correct "
                            f"({outcome.score_percent}%)"
                        )
                        if outcome.passed:
                            st.success(f"Passed! {message}. +{outcome.points_awarded} XP")
                        else:
                            st.warning(f"{message}. Review the lesson and try again.")


def render_profile_page(
    account_flow: AccountFlow,
    finance_flow: FinanceFlow,
    session: SessionContext,
):
    st.title("👤 Profile")
    user = session.user
    overview = run_async(finance_flow.get_profile_overview())
    
    col1, col2, col3 = st.columns(3)
    col1.metric("Liquid assets", money(overview.liquid_assets, session))
    col2.metric("Total debt", money(overview.total_debt, session))
    col3.metric("Net worth", money(overview.net_worth, session))
    
    st.markdown("### Goals")
    for item in overview.goals:
        goal = item.goal
        col1, col2, col3 = st.columns([4, 2, 1])
        col1.markdown(f"**{goal.title}** · {money(goal.current_amount, session)} of {money(goal.target_amount, session)}")
        col1.progress(item.percent / 100)
        saved = col2.text_input("Saved", value=f"{goal.current_amount:.2f}", key=f"goal_{goal.id}")
        if col2.button("Update", key=f"update_{goal.id}"):
            try:
                run_async(finance_flow.update_goal_savings(goal.id, saved))
                st.rerun()
            except USER_FACING_ERRORS as e:
                st.error(str(e))
        if col3.button("🗑️", key=f"delete_{goal.id}"):
            run_async(finance_flow.delete_goal(goal.id))
            st.rerun()
    
    with st.form("add_goal", clear_on_submit=True):
        title = st.text_input("Goal title (e.g. Vacation)")
        col1, col2, col3 = st.columns(3)
        target = col1.text_input("Target")
        current = col2.text_input("Saved so far")
        deadline = col3.date_input("Deadline", value=None)
        if st.form_submit_button("Add goal"):
            try:
                run_async(finance_flow.add_goal(title, target, current or None, deadline))
                st.rerun()
            except USER_FACING_ERRORS as e:
                st.error(str(e))
    
    st.markdown("### Personal details")
    with st.form("profile"):
        name = st.text_input("Name", value=user.name)
        phone = st.text_input("Phone", value=user.phone or "")
        if st.form_submit_button("Save details"):
            try:
                run_async(account_flow.update_profile(name, phone))
                st.success("Profile updated.")
            except USER_FACING_ERRORS as e:
                st.error(str(e))
    
    st.markdown("### Preferences")
    with st.form("preferences"):
        currency = st.text_input("Currency", value=user.currency or "USD")
        theme = st.selectbox(
            "Theme",
            options=list(Theme),
            index=list(Theme).index(user.theme or Theme.LIGHT),
            format_func=lambda t: t.value.title(),
        )
        notifications = st.checkbox("Notifications", value=bool(user.notifications))
        if st.form_submit_button("Save preferences"):
            try:
                run_async(account_flow.update_preferences(currency, theme, notifications))
                st.success("Preferences saved.")
            except (USER_FACING_ERRORS + (ValueError,)) as e:
                st.error(str(e))
    
    st.markdown("### Security")
    with st.form("password", clear_on_submit=True):
        current_password = st.text_input("Current password", type="password")
        new_password = st.text_input("New password", type="password")
        confirm = st.text_input("Confirm new password", type="password")
        if st.form_submit_button("Change password"):
            try:
                run_async(account_flow.change_password(current_password, new_password, confirm))
                st.success("Password changed.")
            except USER_FACING_ERRORS as e:
                st.error(str(e))
    
    with st.expander("⚠️ Danger zone"):
        st.markdown("Deleting your account removes every record you own. This cannot be undone.")
        confirmed = st.checkbox("I understand")
        if st.button("Delete my account", disabled=not confirmed):
            run_async(account_flow.delete_account())
            st.rerun()
    
    with st.expander("⚙️ Configuration status"):
        status = validate_all_settings()
        for name in ("store", "security", "learning", "app"):
            if status.get(name, False):
                st.success(f"✅ {name}")
            else:
                st.error(f"❌ {name}: {status.get(f'{name}_error', 'Not configured')}")


if __name__ == "__main__":
    main()
