"""
Streamlit Frontend for the Finance Tracker

Three pages:
1. Dashboard - figures for the selected month
2. Expenses - calendar, day list, add form and summary panel
3. Salary - jobs, work entries, payments and progress

DESIGN PRINCIPLES:
1. Every figure comes from the aggregation layer, never from the page
2. Changes show up immediately (optimistic) and are undone on failure
3. Clear error messages in simple language
4. Degraded data is flagged, not hidden
"""

import asyncio
from datetime import date

import streamlit as st

from src.config import get_settings, validate_all_settings
from src.formatting import (
    format_currency,
    format_date,
    format_percent,
    format_short_date,
    month_name,
)
from src.models.records import (
    Expense,
    ExpenseCategory,
    ExpenseDraft,
    JobDraft,
    SalaryPaymentDraft,
    WorkEntryDraft,
)
from src.orchestrator import FinanceDashboard, create_app_components, create_storage
from src.aggregation import shift_month
from src.services.storage import StorageError
from src.state import FinanceStore, InvalidInputError


# Page configuration
st.set_page_config(
    page_title="Finance Tracker",
    page_icon="💰",
    layout="wide",
    initial_sidebar_state="expanded",
)

# Custom CSS for better UX
st.markdown("""
<style>
    .stButton>button {
        width: 100%;
        margin-top: 10px;
    }
    .warning-box {
        padding: 20px;
        background-color: #fff3cd;
        border-radius: 10px;
        border-left: 5px solid #ffc107;
        margin: 10px 0;
    }
    .big-number {
        font-size: 2.5em;
        font-weight: bold;
        color: #2c3e50;
    }
</style>
""", unsafe_allow_html=True)


CURRENCY = get_settings().app.currency_symbol


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


def money(amount) -> str:
    return format_currency(amount, CURRENCY)


@st.cache_resource
def get_storage():
    """Storage backend shared by all sessions (cached)."""
    return create_storage()


def get_components() -> tuple[FinanceStore, FinanceDashboard]:
    """Per-session store and dashboard."""
    if "store" not in st.session_state:
        store, dashboard, _ = create_app_components(storage=get_storage())
        st.session_state.store = store
        st.session_state.dashboard = dashboard
    return st.session_state.store, st.session_state.dashboard


def run_command(coro, success_message: str) -> bool:
    """Run a store command and report the outcome in plain language."""
    try:
        run_async(coro)
    except InvalidInputError as e:
        st.error(f"Please check your input: {e}")
        return False
    except StorageError as e:
        st.error(f"Could not save your change, nothing was modified: {e}")
        return False
    st.success(success_message)
    return True


def show_data_quality(report) -> None:
    if report.is_degraded:
        st.markdown(f"""
        <div class="warning-box">
            <p>⚠️ {report.unparseable_dates} record(s) have an unreadable date and
            {report.missing_amounts} have no amount. They are counted as zero.</p>
        </div>
        """, unsafe_allow_html=True)


def main():
    """Main application entry point."""
    store, dashboard = get_components()

    if "selected_date" not in st.session_state:
        st.session_state.selected_date = date.today()

    if not store.is_loaded:
        with st.spinner("Loading your data..."):
            try:
                run_async(store.refresh())
            except StorageError as e:
                st.error(f"Could not load your data: {e}")

    # Sidebar navigation
    st.sidebar.title("💰 Finance Tracker")
    st.sidebar.markdown("---")

    page = st.sidebar.radio(
        "Navigate to:",
        ["📊 Dashboard", "🧾 Expenses", "💼 Salary", "⚙️ Settings"],
        index=0,
    )

    st.sidebar.markdown("---")
    if st.sidebar.button("🔄 Refresh"):
        try:
            run_async(store.refresh())
        except StorageError as e:
            st.sidebar.error(f"Refresh failed: {e}")

    # Route to appropriate page
    if page == "📊 Dashboard":
        render_dashboard_page(dashboard)
    elif page == "🧾 Expenses":
        render_expenses_page(store, dashboard)
    elif page == "💼 Salary":
        render_salary_page(store, dashboard)
    elif page == "⚙️ Settings":
        render_settings_page()


def month_navigation() -> date:
    """Previous / next month buttons around the selected date."""
    col1, col2, col3 = st.columns([1, 3, 1])
    with col1:
        if st.button("◀ Previous"):
            st.session_state.selected_date = shift_month(st.session_state.selected_date, -1)
            st.rerun()
    with col3:
        if st.button("Next ▶"):
            st.session_state.selected_date = shift_month(st.session_state.selected_date, 1)
            st.rerun()
    with col2:
        st.subheader(month_name(st.session_state.selected_date))
    return st.session_state.selected_date


def render_dashboard_page(dashboard: FinanceDashboard):
    """Render the monthly dashboard."""
    st.title("📊 Dashboard")
    selected = month_navigation()

    stats = run_async(dashboard.monthly_stats(selected))

    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Expenses", money(stats.total_expenses), f"{stats.expense_count} entries")
    col2.metric("Earned", money(stats.total_earned), f"{stats.work_entry_count} entries")
    col3.metric("Received", money(stats.total_received), f"{stats.payment_count} payments")
    col4.metric("Pending", money(stats.total_pending))

    st.markdown(
        f'<p class="big-number">Net: {money(stats.net_balance)}</p>',
        unsafe_allow_html=True,
    )
    show_data_quality(stats.data_quality)


def render_expense_edit_form(store: FinanceStore, expense: Expense, fallback_date: date):
    """Prefilled form that saves changes to one expense."""
    categories = list(ExpenseCategory)
    with st.form(f"edit-expense-{expense.id}"):
        title = st.text_input("Title *", value=expense.title)
        amount = st.number_input(
            "Amount *",
            min_value=0.0,
            step=0.01,
            format="%.2f",
            value=float(expense.amount or 0),
        )
        category = st.selectbox(
            "Category",
            options=categories,
            index=categories.index(expense.category),
            format_func=lambda c: c.value,
        )
        expense_date = st.date_input(
            "Date *",
            value=expense.date.date() if expense.date else fallback_date,
        )
        if st.form_submit_button("💾 Save"):
            draft = ExpenseDraft(
                title=title,
                amount=amount,
                category=category,
                date=expense_date,
            )
            if run_command(store.update_expense(expense.id, draft), "Expense updated"):
                st.rerun()


def render_expenses_page(store: FinanceStore, dashboard: FinanceDashboard):
    """Render the expense tracker."""
    st.title("🧾 Expenses")
    selected = month_navigation()

    # Calendar
    month = run_async(dashboard.calendar(selected, selected))
    header = st.columns(7)
    for col, name in zip(header, ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]):
        col.markdown(f"**{name}**")
    for week in month.weeks:
        cols = st.columns(7)
        for col, cell in zip(cols, week):
            if cell.day is None:
                col.write("")
                continue
            label = f"{cell.day.day}"
            if cell.has_expenses:
                label += f"\n{money(cell.total)}"
            if col.button(label, key=f"day-{cell.day:%Y-%m-%d}",
                          type="primary" if cell.is_selected else "secondary"):
                st.session_state.selected_date = cell.day.date()
                st.rerun()

    day_expenses, summary = run_async(dashboard.expense_view(selected))

    st.markdown("---")
    col1, col2 = st.columns([3, 2])

    with col1:
        st.subheader(f"Expenses on {format_date(selected)}")
        if not day_expenses:
            st.info("No expenses on this day.")
        for expense in day_expenses:
            c1, c2, c3 = st.columns([3, 2, 1])
            c1.markdown(f"**{expense.title}** · {expense.category.value}")
            c2.markdown(money(expense.amount))
            if c3.button("🗑️", key=f"del-expense-{expense.id}"):
                if run_command(store.delete_expense(expense.id), "Expense deleted"):
                    st.rerun()
            with st.expander("✏️ Edit"):
                render_expense_edit_form(store, expense, selected)
        if day_expenses and st.button("Delete all expenses of this day"):
            if run_command(store.delete_expenses_on(selected), "Expenses deleted"):
                st.rerun()

        with st.form("add_expense", clear_on_submit=True):
            st.markdown("### Add Expense")
            title = st.text_input("Title *")
            amount = st.number_input("Amount *", min_value=0.0, step=0.01, format="%.2f")
            category = st.selectbox(
                "Category",
                options=list(ExpenseCategory),
                format_func=lambda c: c.value,
            )
            expense_date = st.date_input("Date *", value=selected)
            if st.form_submit_button("➕ Add Expense", type="primary"):
                draft = ExpenseDraft(
                    title=title,
                    amount=amount,
                    category=category,
                    date=expense_date,
                )
                if run_command(store.add_expense(draft), "Expense added"):
                    st.rerun()

    with col2:
        st.subheader("Summary")
        st.metric("Today", money(summary.daily_total))
        st.metric("This month", money(summary.monthly_total))
        st.progress(
            summary.month_progress_display / 100,
            text=f"Day {summary.day_of_month} of {summary.days_in_month} "
                 f"({format_percent(summary.month_progress_display)})",
        )
        st.metric("Daily average", money(summary.daily_average))
        st.metric("Projected this month", money(summary.projected_monthly))
        if summary.top_category:
            st.markdown(
                f"**Top category:** {summary.top_category.category.value} "
                f"({money(summary.top_category.total)})"
            )
        show_data_quality(summary.data_quality)


def render_salary_page(store: FinanceStore, dashboard: FinanceDashboard):
    """Render the salary tracker."""
    st.title("💼 Salary")

    overview = run_async(dashboard.salary_view())

    col1, col2, col3 = st.columns(3)
    col1.metric("Total earned", money(overview.total_earned))
    col2.metric("Total received", money(overview.total_received))
    col3.metric("Pending", money(overview.total_pending))
    st.progress(
        min(max(overview.overall_progress, 0.0), 100.0) / 100,
        text=f"{format_percent(overview.overall_progress)} received",
    )

    st.markdown("---")
    st.subheader("Jobs")
    for stats in overview.jobs:
        with st.expander(f"{stats.name} · pending {money(stats.pending)}"):
            st.markdown(
                f"Earned {money(stats.total_earned)} · "
                f"received {money(stats.total_received)} · "
                f"{format_percent(stats.progress)}"
            )
            new_name = st.text_input("Rename", value=stats.name, key=f"rename-{stats.id}")
            c1, c2 = st.columns(2)
            if c1.button("💾 Save name", key=f"save-{stats.id}"):
                if run_command(store.rename_job(stats.id, JobDraft(name=new_name)), "Job renamed"):
                    st.rerun()
            if c2.button("🗑️ Delete job", key=f"delete-{stats.id}"):
                if run_command(store.delete_job(stats.id), "Job deleted"):
                    st.rerun()

    with st.form("add_job", clear_on_submit=True):
        name = st.text_input("New job name")
        if st.form_submit_button("➕ Add Job"):
            if run_command(store.add_job(JobDraft(name=name)), "Job added"):
                st.rerun()

    jobs = list(store.jobs)
    if jobs:
        col1, col2 = st.columns(2)
        with col1:
            with st.form("add_work_entry", clear_on_submit=True):
                st.markdown("### Log Work")
                job = st.selectbox("Job", options=jobs, format_func=lambda j: j.name)
                amount = st.number_input("Amount earned", min_value=0.0, step=0.01, format="%.2f")
                worked_on = st.date_input("Date", value=date.today())
                if st.form_submit_button("➕ Add Entry", type="primary"):
                    draft = WorkEntryDraft(job_id=job.id, amount=amount, date=worked_on)
                    if run_command(store.add_work_entry(draft), "Work entry added"):
                        st.rerun()
        with col2:
            with st.form("record_payment", clear_on_submit=True):
                st.markdown("### Record Payment")
                job = st.selectbox("Job", options=jobs, format_func=lambda j: j.name)
                amount = st.number_input("Amount received", min_value=0.0, step=0.01, format="%.2f")
                if st.form_submit_button("💵 Record Payment", type="primary"):
                    draft = SalaryPaymentDraft(job_id=job.id, amount=amount)
                    if run_command(store.record_salary_payment(draft), "Payment recorded"):
                        st.rerun()

    st.markdown("---")
    st.subheader("Work History")
    history = run_async(dashboard.work_history())
    if not history:
        st.info("No work entries yet.")
    for row in history:
        c1, c2, c3, c4 = st.columns([2, 3, 2, 1])
        c1.markdown(format_short_date(row.date) if row.date else "-")
        c2.markdown(row.job_name)
        c3.markdown(money(row.amount))
        if c4.button("🗑️", key=f"del-entry-{row.entry_id}"):
            if run_command(store.delete_work_entry(row.entry_id), "Entry deleted"):
                st.rerun()


def render_settings_page():
    """Render the settings page."""
    st.title("⚙️ Settings")

    st.markdown("### Connection Status")

    status = validate_all_settings()
    settings = get_settings()

    for name, key in [("Backend API", "api"), ("Application", "app")]:
        if status.get(key, False):
            st.success(f"✅ {name} - Configured")
        else:
            error = status.get(f"{key}_error", "Not configured")
            st.error(f"❌ {name} - {error}")

    if status.get("app", False):
        if settings.app.use_remote_api:
            st.markdown(f"Using backend at `{settings.api.base_url}`")
        else:
            st.markdown("Using in-memory storage. Data is lost on restart.")

    st.markdown("---")
    st.markdown("### Configuration")
    st.markdown(
        "To configure the application, create a `.env` file with "
        "`FINANCE_API_BASE_URL`, `FINANCE_API_TOKEN` and `USE_REMOTE_API`."
    )


if __name__ == "__main__":
    main()
