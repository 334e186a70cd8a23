"""
Streamlit Frontend for the Finance Ledger

A read-mostly view over the in-memory demo ledger:
1. Dashboard: spending pace, month comparison, net worth, top categories
2. Reports: daily cash flow and the category breakdown of a month
3. Budgets: progress of the month's budgets, with an upsert form
4. Cards: limits, charges and a reconcile action

Every figure shown is recomputed from the ledger on each rerun.
"""

import asyncio
from datetime import date
from decimal import Decimal
from uuid import UUID

import streamlit as st

from finledger.audit import configure_logging
from finledger.config import get_settings, validate_all_settings
from finledger.demo import seed_demo_ledger
from finledger.orchestrator import LedgerComponents, create_app_components
from finledger.periods import InvalidRangeError, current_month_bounds


DEMO_USER_ID = UUID("00000000-0000-4000-8000-000000000001")


# Page configuration
st.set_page_config(
    page_title="Finance Ledger",
    page_icon="💳",
    layout="wide",
    initial_sidebar_state="expanded",
)


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


def money(value: Decimal) -> str:
    return f"R$ {value:,.2f}"


@st.cache_resource
def get_components() -> LedgerComponents:
    """Get or create application components (cached)."""
    app_settings = get_settings().app
    configure_logging(app_settings.log_level)

    components = create_app_components()
    if app_settings.seed_demo_data:
        run_async(seed_demo_ledger(
            components.store,
            DEMO_USER_ID,
            audit_logger=components.audit_logger,
        ))
    return components


def main():
    """Main application entry point."""
    components = get_components()

    st.sidebar.title("💳 Finance Ledger")
    st.sidebar.markdown("---")

    page = st.sidebar.radio(
        "Navigate to:",
        ["📈 Dashboard", "📊 Reports", "🎯 Budgets", "💳 Cards", "⚙️ Settings"],
        index=0,
    )

    if page == "📈 Dashboard":
        render_dashboard_page(components)
    elif page == "📊 Reports":
        render_reports_page(components)
    elif page == "🎯 Budgets":
        render_budgets_page(components)
    elif page == "💳 Cards":
        render_cards_page(components)
    elif page == "⚙️ Settings":
        render_settings_page()


def render_dashboard_page(components: LedgerComponents):
    """Render the dashboard page."""
    st.title("📈 Dashboard")

    snapshot = run_async(components.dashboard.snapshot(DEMO_USER_ID))

    col1, col2, col3, col4 = st.columns(4)
    col1.metric(
        "Net worth",
        money(snapshot.net_worth.net_worth),
        f"{snapshot.net_worth.percentage_change:.2f}%",
    )
    col2.metric("Income this month", money(snapshot.monthly_income))
    col3.metric(
        "Spent this month",
        money(snapshot.total_spent_current_month),
        f"{snapshot.spending_change_percentage:.2f}%",
        delta_color="inverse",
    )
    col4.metric("Result", money(snapshot.monthly_result))

    st.markdown("### Spending pace")
    st.bar_chart(
        {point.label: float(point.value) for point in snapshot.daily_expenses}
    )

    left, right = st.columns(2)
    with left:
        st.markdown("### Top categories last month")
        for entry in snapshot.top_categories:
            st.write(f"**{entry.category}**: {money(entry.total)}")

        st.markdown("### Upcoming")
        if not snapshot.upcoming_recurring:
            st.info("Nothing due in the next days.")
        for item in snapshot.upcoming_recurring:
            st.write(f"Day {item.due_day}: {item.description} ({money(item.amount)})")

    with right:
        st.markdown("### Recent transactions")
        st.dataframe(
            [
                {
                    "Date": t.date.isoformat(),
                    "Description": t.description,
                    "Source": t.source_name,
                    "Type": t.type.value,
                    "Amount": float(t.amount),
                }
                for t in snapshot.recent_transactions
            ],
            use_container_width=True,
        )


def render_reports_page(components: LedgerComponents):
    """Render the reports page."""
    st.title("📊 Reports")

    month_start, month_end = current_month_bounds(date.today())
    col1, col2 = st.columns(2)
    with col1:
        start = st.date_input("From", value=month_start)
    with col2:
        end = st.date_input("To", value=month_end)

    try:
        flow = run_async(components.reports.cash_flow(DEMO_USER_ID, start, end))
    except InvalidRangeError as e:
        st.error(str(e))
        return

    st.markdown("### Cash flow")
    st.line_chart({
        "Income": [float(e.income) for e in flow],
        "Expense": [float(e.expense) for e in flow],
        "Net": [float(e.net) for e in flow],
    })

    st.markdown("### Expenses by category")
    breakdown = run_async(
        components.reports.category_breakdown(DEMO_USER_ID, start.month, start.year)
    )
    if not breakdown:
        st.info("No expenses in this month.")
    for line in breakdown:
        st.progress(
            min(line.percentage / 100, 1.0),
            text=f"{line.category}: {money(line.total)} ({line.percentage:.2f}%)",
        )


def render_budgets_page(components: LedgerComponents):
    """Render the budgets page."""
    st.title("🎯 Budgets")

    today = date.today()
    progress = run_async(
        components.budget_tracker.budget_progress(DEMO_USER_ID, today.month, today.year)
    )
    if not progress:
        st.info("No budgets for this month yet.")
    for line in progress:
        st.progress(
            min(line.percentage / 100, 1.0),
            text=(
                f"{line.category_name}: {money(line.spent)} of {money(line.limit)} "
                f"({line.percentage:.2f}%)"
            ),
        )

    st.markdown("---")
    st.markdown("### Set a budget")

    categories = run_async(components.store.list_categories(DEMO_USER_ID))
    with st.form("budget_form"):
        category = st.selectbox("Category", categories, format_func=lambda c: c.name)
        amount = st.number_input("Limit", min_value=0.0, step=50.0)
        submitted = st.form_submit_button("Save")

    if submitted and category is not None:
        run_async(components.budgets.upsert(
            DEMO_USER_ID,
            category_id=category.id,
            month=today.month,
            year=today.year,
            amount=Decimal(str(amount)),
        ))
        st.success(f"Budget for {category.name} saved")
        st.rerun()


def render_cards_page(components: LedgerComponents):
    """Render the credit cards page."""
    st.title("💳 Cards")

    cards = run_async(components.store.list_credit_cards(DEMO_USER_ID))
    if not cards:
        st.info("No credit cards registered.")

    for card in cards:
        st.markdown(f"### {card.name} •••• {card.last_four_digits or '----'}")
        col1, col2, col3 = st.columns(3)
        col1.metric("Limit", money(card.limit_total))
        col2.metric("Used", money(card.limit_used))
        col3.metric("Available", money(card.limit_available))

        if st.button("Reconcile with charges", key=f"reconcile-{card.id}"):
            reconciled = run_async(components.limits.reconcile(card.id))
            st.success(f"Limit used is {money(reconciled.limit_used)}")


def render_settings_page():
    """Render the settings page."""
    st.title("⚙️ Settings")

    st.markdown("### Configuration Status")
    status = validate_all_settings()
    for name in ("ledger", "app"):
        if status.get(name, False):
            st.success(f"✅ {name} settings - Valid")
        else:
            error = status.get(f"{name}_error", "Invalid")
            st.error(f"❌ {name} settings - {error}")

    st.markdown("---")
    st.json(get_settings().ledger.model_dump())


if __name__ == "__main__":
    main()
