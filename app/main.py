"""
Streamlit Frontend for Pocket Budget

The screens a student uses every day to keep a weekly or monthly
budget: pick a budget type, set the amount, log expenses and watch
what is left.

DESIGN PRINCIPLES:
1. Simple, clear interface
2. Explicit confirmation before anything is destroyed
3. Clear error messages in simple language
4. Visual feedback for all operations

The first screen depends on what is configured:
- No budget type yet → onboarding
- Type but no amount → budget setup
- Both → home
"""

import asyncio

import streamlit as st

from pocketbudget.audit import configure_logging
from pocketbudget.config import get_settings, validate_all_settings
from pocketbudget.models.expense import BudgetStatus, BudgetType, ExpenseCategory
from pocketbudget.orchestrator import BudgetFlow, ExpenseFlow, Route, create_app_components
from pocketbudget.services.storage import NotFoundError, StorageError
from pocketbudget.validation import InvalidArgumentError


# Page configuration
st.set_page_config(
    page_title="Pocket Budget",
    page_icon="💰",
    layout="centered",
    initial_sidebar_state="expanded",
)

# Custom CSS for better UX
st.markdown("""
<style>
    .stButton>button {
        width: 100%;
        margin-top: 10px;
    }
    .success-box {
        padding: 20px;
        background-color: #d4edda;
        border-radius: 10px;
        border-left: 5px solid #28a745;
        margin: 10px 0;
    }
    .warning-box {
        padding: 20px;
        background-color: #fff3cd;
        border-radius: 10px;
        border-left: 5px solid #ffc107;
        margin: 10px 0;
    }
    .error-box {
        padding: 20px;
        background-color: #f8d7da;
        border-radius: 10px;
        border-left: 5px solid #dc3545;
        margin: 10px 0;
    }
    .big-number {
        font-size: 2.5em;
        font-weight: bold;
        color: #2c3e50;
    }
</style>
""", unsafe_allow_html=True)

STATUS_DISPLAY = {
    BudgetStatus.EXCEEDED: ("🚨", "Over budget"),
    BudgetStatus.CRITICAL: ("🔴", "Almost gone"),
    BudgetStatus.WARNING: ("🟠", "Slow down"),
    BudgetStatus.CAUTION: ("🟡", "Halfway there"),
    BudgetStatus.GOOD: ("🟢", "On track"),
    BudgetStatus.NO_BUDGET: ("⚪", "No budget set"),
}


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@st.cache_resource
def get_components():
    """Get or create application components (cached)."""
    configure_logging(get_settings().app.log_level)
    expense_flow, budget_flow = create_app_components()
    # Finish a reset the previous session did not complete
    run_async(budget_flow.recover_pending_reset())
    return expense_flow, budget_flow


def money(amount) -> str:
    return f"{get_settings().app.currency_symbol}{amount:,.2f}"


def show_storage_error(action: str):
    st.markdown(f"""
    <div class="error-box">
        <h4>❌ Could not {action}</h4>
        <p>Your data could not be reached. Please try again.</p>
    </div>
    """, unsafe_allow_html=True)


def main():
    """Main application entry point."""
    try:
        expense_flow, budget_flow = get_components()
        route = run_async(budget_flow.resolve_route())
    except StorageError:
        show_storage_error("load your budget")
        return

    if route == Route.ONBOARDING:
        render_onboarding_page(budget_flow)
        return
    if route == Route.BUDGET_SETUP:
        render_budget_setup_page(budget_flow)
        return

    # Sidebar navigation
    st.sidebar.title("💰 Pocket Budget")
    st.sidebar.markdown("---")

    page = st.sidebar.radio(
        "Navigate to:",
        ["🏠 Home", "➕ Add Expense", "📋 Expenses", "⚙️ Settings"],
        index=0,
    )

    if page == "🏠 Home":
        render_home_page(budget_flow)
    elif page == "➕ Add Expense":
        render_add_expense_page(expense_flow)
    elif page == "📋 Expenses":
        render_expenses_page(expense_flow)
    elif page == "⚙️ Settings":
        render_settings_page(budget_flow)


def render_onboarding_page(budget_flow: BudgetFlow):
    """First run: choose how often the budget resets."""
    st.title("👋 Welcome to Pocket Budget")
    st.markdown("How do you receive your allowance?")

    col1, col2 = st.columns(2)
    chosen = None
    with col1:
        if st.button("📅 Weekly", type="primary"):
            chosen = BudgetType.WEEKLY
    with col2:
        if st.button("🗓️ Monthly", type="primary"):
            chosen = BudgetType.MONTHLY

    if chosen is not None:
        try:
            run_async(budget_flow.choose_type(chosen))
            st.rerun()
        except StorageError:
            show_storage_error("save your budget type")


def render_budget_setup_page(budget_flow: BudgetFlow):
    """Ask for the budget amount once a type is chosen."""
    try:
        configuration = run_async(budget_flow.get_configuration())
    except StorageError:
        show_storage_error("load your budget")
        return
    period = configuration.type.value if configuration.type else "budget"

    st.title("💵 Set Your Budget")
    st.markdown(f"How much is your {period} budget?")

    amount_text = st.text_input(
        f"Amount ({get_settings().app.currency_symbol}) *",
        placeholder="e.g. 1500",
    )

    if st.button("✅ Save Budget", type="primary"):
        try:
            run_async(budget_flow.set_amount(amount_text))
            st.rerun()
        except InvalidArgumentError:
            st.error("Please enter a valid amount greater than 0")
        except StorageError:
            show_storage_error("save your budget")


def render_home_page(budget_flow: BudgetFlow):
    """Budget overview with the most recent expenses."""
    st.title("🏠 Home")

    try:
        snapshot, recent = run_async(budget_flow.snapshot())
    except StorageError:
        show_storage_error("load your budget")
        return

    icon, label = STATUS_DISPLAY[snapshot.status]
    period = snapshot.budget_type.value.title() if snapshot.budget_type else ""

    col1, col2 = st.columns(2)
    with col1:
        st.markdown(f"**{period} Budget**")
        st.markdown(
            f'<div class="big-number">{money(snapshot.budget_amount) if snapshot.budget_amount else label}</div>',
            unsafe_allow_html=True,
        )
    with col2:
        st.markdown("**Remaining**")
        # No budget is shown as such, never as zero left
        remaining = label if snapshot.remaining is None else money(snapshot.remaining)
        st.markdown(
            f'<div class="big-number">{remaining}</div>',
            unsafe_allow_html=True,
        )

    st.markdown(f"**Spent:** {money(snapshot.total_spent)} · {icon} {label}")
    if snapshot.percentage_used is not None:
        st.progress(min(float(snapshot.percentage_used) / 100, 1.0))

    if snapshot.is_over_budget:
        st.markdown(f"""
        <div class="warning-box">
            <h4>⚠️ You've exceeded your budget!</h4>
            <p>You are {money(-snapshot.remaining)} over. Consider cutting back until the next period.</p>
        </div>
        """, unsafe_allow_html=True)
    elif snapshot.suggested_allowance is not None:
        st.info(f"💡 You can spend about {money(snapshot.suggested_allowance)} per {snapshot.allowance_period}.")

    st.markdown("---")
    st.subheader("Recent Expenses")

    if not recent:
        st.info("No expenses yet. Use 'Add Expense' to log your first one.")
        return

    for expense in recent:
        col1, col2 = st.columns([3, 1])
        with col1:
            st.markdown(f"**{expense.category.label}**")
            if expense.note:
                st.caption(expense.note)
            st.caption(expense.date.strftime("%d %b %Y, %H:%M"))
        with col2:
            st.markdown(f"**{money(expense.amount)}**")


def render_add_expense_page(expense_flow: ExpenseFlow):
    """Log a new expense."""
    st.title("➕ Add Expense")

    with st.form("add_expense", clear_on_submit=True):
        amount_text = st.text_input(
            f"Amount ({get_settings().app.currency_symbol}) *",
            placeholder="e.g. 120.50",
        )
        category = st.selectbox(
            "Category *",
            options=list(ExpenseCategory),
            format_func=lambda c: c.label,
        )
        note = st.text_input("Note (optional)", placeholder="What was it for?")
        submitted = st.form_submit_button("💾 Save Expense", type="primary")

    if not submitted:
        return

    try:
        expense = run_async(expense_flow.add_expense(amount_text, category, note))
    except InvalidArgumentError as e:
        st.error(expense_flow.validator.get_user_friendly_summary(e))
        return
    except StorageError:
        show_storage_error("save the expense")
        return

    st.markdown(f"""
    <div class="success-box">
        <h4>✅ Expense Saved</h4>
        <p><strong>Amount:</strong> {money(expense.amount)}</p>
        <p><strong>Category:</strong> {expense.category.label}</p>
    </div>
    """, unsafe_allow_html=True)


def render_expenses_page(expense_flow: ExpenseFlow):
    """All expenses, newest first, with edit, delete and clear-all."""
    st.title("📋 Expenses")

    try:
        expenses = run_async(expense_flow.list_expenses())
    except StorageError:
        show_storage_error("load your expenses")
        return

    if not expenses:
        st.info("No expenses recorded.")
        return

    categories = list(ExpenseCategory)

    for expense in expenses:
        header = f"{expense.category.label} · {money(expense.amount)} · {expense.date.strftime('%d %b %Y')}"
        with st.expander(header):
            with st.form(f"edit_{expense.id}"):
                amount_text = st.text_input("Amount", value=f"{expense.amount:.2f}")
                category = st.selectbox(
                    "Category",
                    options=categories,
                    index=categories.index(expense.category),
                    format_func=lambda c: c.label,
                )
                note = st.text_input("Note", value=expense.note or "")
                col1, col2 = st.columns(2)
                with col1:
                    save = st.form_submit_button("💾 Save Changes")
                with col2:
                    delete = st.form_submit_button("🗑️ Delete")

            if save:
                try:
                    # The original date is kept by not sending it
                    run_async(expense_flow.edit_expense(
                        expense.id,
                        amount=amount_text,
                        category=category,
                        note=note,
                    ))
                    st.rerun()
                except InvalidArgumentError as e:
                    st.error(expense_flow.validator.get_user_friendly_summary(e))
                except NotFoundError:
                    st.warning("This expense no longer exists.")
                except StorageError:
                    show_storage_error("update the expense")

            if delete:
                try:
                    run_async(expense_flow.delete_expense(expense.id))
                    st.rerun()
                except NotFoundError:
                    st.warning("This expense was already deleted.")
                except StorageError:
                    show_storage_error("delete the expense")

    st.markdown("---")

    if "confirm_clear" not in st.session_state:
        st.session_state.confirm_clear = False

    if not st.session_state.confirm_clear:
        if st.button("🧹 Clear All Expenses"):
            st.session_state.confirm_clear = True
            st.rerun()
        return

    st.warning("Delete every expense? This cannot be undone.")
    col1, col2 = st.columns(2)
    with col1:
        if st.button("✅ Yes, clear all", type="primary"):
            st.session_state.confirm_clear = False
            try:
                run_async(expense_flow.clear_expenses())
                st.rerun()
            except StorageError:
                show_storage_error("clear your expenses")
    with col2:
        if st.button("❌ Cancel"):
            st.session_state.confirm_clear = False
            st.rerun()


def render_settings_page(budget_flow: BudgetFlow):
    """Budget reset and configuration status."""
    st.title("⚙️ Settings")

    st.markdown("### Start a New Budget Period")
    st.markdown("Clears your budget type, amount and **all** expenses.")

    if "confirm_reset" not in st.session_state:
        st.session_state.confirm_reset = False

    if not st.session_state.confirm_reset:
        if st.button("🔄 Reset Budget"):
            st.session_state.confirm_reset = True
            st.rerun()
    else:
        st.warning("Reset your budget and delete every expense?")
        col1, col2 = st.columns(2)
        with col1:
            if st.button("✅ Yes, reset", type="primary"):
                st.session_state.confirm_reset = False
                try:
                    run_async(budget_flow.reset_budget())
                    st.rerun()
                except StorageError:
                    show_storage_error("reset your budget")
        with col2:
            if st.button("❌ Cancel"):
                st.session_state.confirm_reset = False
                st.rerun()

    st.markdown("---")
    st.markdown("### Configuration")

    status = validate_all_settings()
    for name in ("app", "local_storage", "api_client"):
        if status.get(name, False):
            st.success(f"✅ {name.replace('_', ' ').title()} settings loaded")
        else:
            st.error(f"❌ {name.replace('_', ' ').title()}: {status.get(f'{name}_error', 'Not configured')}")

    st.markdown(
        "To change where expenses are kept, set `EXPENSE_BACKEND` in a `.env` file. "
        "See `.env.example` for the available variables."
    )


if __name__ == "__main__":
    main()
