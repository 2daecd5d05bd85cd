"""
Streamlit Frontend for Hisebi / Dor-Dam

This is the dashboard people open every day to see where their Taka went.

DESIGN PRINCIPLES:
1. Headline numbers first (balance, income, expense, Dhar)
2. Clear error messages in simple language
3. Visual feedback for all operations
4. No hidden actions

Every form goes through the ledger session, which validates the input
before anything is saved. Rejected input is shown back to the user with
the reason; nothing is stored.
"""

import asyncio
from datetime import date

import streamlit as st

from hisebi.audit import configure_logging
from hisebi.config import get_settings, validate_all_settings
from hisebi.models.categories import expense_category_names, income_category_names
from hisebi.models.ledger import DebtStatus, TransactionType
from hisebi.models.views import ActivityKind
from hisebi.orchestrator import (
    EntryRejectedError,
    LedgerSession,
    create_app_components,
)
from hisebi.services.storage import StorageWriteError
from hisebi.visualization import (
    create_category_donut,
    create_trend_bar_chart,
    insight_alert_html,
    rejection_box_html,
)


settings = get_settings()
configure_logging(debug=settings.app.debug_mode)
CURRENCY = settings.app.currency_symbol

# Page configuration
st.set_page_config(
    page_title=settings.app.app_title,
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
    .error-box {
        padding: 20px;
        background-color: #f8d7da;
        border-radius: 10px;
        border-left: 5px solid #dc3545;
        margin: 10px 0;
    }
    .info-box {
        padding: 20px;
        background-color: #cce5ff;
        border-radius: 10px;
        border-left: 5px solid #004085;
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
def get_session() -> LedgerSession:
    """Get or create the ledger session (cached)."""
    return create_app_components(settings)


def money(amount: float) -> str:
    return f"{CURRENCY}{amount:,.0f}"


def show_rejection(error: EntryRejectedError):
    """Explain why a form was rejected."""
    st.markdown(rejection_box_html(error.result), unsafe_allow_html=True)


def commit(action, *args, success: str = None, **kwargs):
    """Run a ledger change and report the outcome."""
    try:
        result = action(*args, **kwargs)
    except EntryRejectedError as e:
        show_rejection(e)
        return None
    except StorageWriteError as e:
        st.warning(f"Saved for this session only. Could not write to disk: {e}")
        return None
    if success:
        st.success(success)
    return result


def main():
    """Main application entry point."""
    session = get_session()
    app = session.settings

    # Sidebar navigation
    st.sidebar.title(f"💰 {app.app_title}")
    st.sidebar.markdown(f"Hello, **{session.snapshot.profile.name}**")
    st.sidebar.markdown("---")

    pages = ["📊 Dashboard", "➕ Transactions", "🤝 Dhar"]
    if app.shopping_enabled:
        pages.append("🛒 Shopping List")
    pages.append("⚙️ Settings")

    page = st.sidebar.radio("Navigate to:", pages, index=0)

    # Route to appropriate page
    if page == "📊 Dashboard":
        render_dashboard_page(session)
    elif page == "➕ Transactions":
        render_transactions_page(session)
    elif page == "🤝 Dhar":
        render_debts_page(session)
    elif page == "🛒 Shopping List":
        render_shopping_page(session)
    elif page == "⚙️ Settings":
        render_settings_page(session)


def render_dashboard_page(session: LedgerSession):
    """Render the dashboard page."""
    st.title("📊 Dashboard")
    view = session.dashboard()

    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Balance", money(view.totals.balance))
    col2.metric("Income", money(view.totals.total_income))
    col3.metric("Expense", money(view.totals.total_expense))
    col4.metric("Pending Dhar", money(view.totals.pending_debt))

    if view.budget.over_budget:
        st.markdown(f"""
        <div class="warning-box">
            <h4>⚠️ Budget Alert</h4>
            <p>You have spent {money(view.budget.spent)} against a monthly budget of
            {money(view.budget.budget)}, which is {money(view.budget.overrun)} over.</p>
        </div>
        """, unsafe_allow_html=True)

    chart1, chart2 = st.columns(2)
    with chart1:
        st.plotly_chart(
            create_category_donut(view.category_breakdown, currency_symbol=CURRENCY),
            use_container_width=True,
        )
    with chart2:
        st.plotly_chart(
            create_trend_bar_chart(view.trend, currency_symbol=CURRENCY),
            use_container_width=True,
        )

    st.markdown("### Recent Activity")
    if not view.recent_activity:
        st.info("📋 Nothing recorded yet. Add a transaction or a Dhar entry to get started.")
    for entry in view.recent_activity:
        icon = {
            ActivityKind.INCOME: "🟢",
            ActivityKind.EXPENSE: "🔴",
            ActivityKind.DEBT: "🟡",
        }[entry.kind]
        note = f" · {entry.note}" if entry.note else ""
        st.markdown(
            f"{icon} **{entry.category}**{note} "
            f"&nbsp; {money(entry.amount)} &nbsp; _{entry.date.strftime('%d %b %Y')}_"
        )

    st.markdown("---")
    st.markdown("### 💡 Smart Insights")
    if st.button("Get Insights", type="primary", disabled=session.insight_pending):
        with st.spinner("Analysing your spending..."):
            run_async(session.request_insights())

    insight = session.last_insight
    if insight:
        if insight.alert:
            st.markdown(
                insight_alert_html(insight.alert, insight.is_fallback),
                unsafe_allow_html=True,
            )
        for tip in insight.tips:
            st.markdown(f"- {tip}")


def render_transactions_page(session: LedgerSession):
    """Render the transactions page."""
    st.title("➕ Transactions")

    kind = st.radio(
        "Type",
        options=list(TransactionType),
        format_func=lambda x: x.value.title(),
        horizontal=True,
    )
    categories = (
        income_category_names() if kind == TransactionType.INCOME
        else expense_category_names()
    )

    with st.form("transaction_form", clear_on_submit=True):
        col1, col2 = st.columns(2)
        with col1:
            amount = st.text_input(f"Amount ({CURRENCY}) *", placeholder="e.g. 250")
            category = st.selectbox("Category *", options=categories)
        with col2:
            entry_date = st.date_input("Date", value=date.today())
            note = st.text_input("Note (optional)")

        if st.form_submit_button("Save", type="primary"):
            commit(
                session.add_transaction,
                kind, amount, category, entry_date, note,
                success="✅ Transaction saved",
            )

    st.markdown("---")
    col1, col2 = st.columns([3, 1])
    col1.markdown("### History")
    filename, content = session.export_csv()
    col2.download_button(
        "⬇️ Export CSV",
        data=content,
        file_name=filename,
        mime="text/csv",
    )

    if not session.snapshot.transactions:
        st.info("📋 Your transactions will appear here once you add them.")
    for t in session.snapshot.transactions:
        col1, col2 = st.columns([5, 1])
        sign = "+" if t.is_income else "-"
        note = f" · {t.note}" if t.note else ""
        col1.markdown(
            f"**{t.category}**{note} &nbsp; {sign}{money(t.amount)} "
            f"&nbsp; _{t.date.strftime('%d %b %Y')}_"
        )
        if col2.button("🗑️", key=f"del_tx_{t.id}"):
            commit(session.delete_transaction, t.id)
            st.rerun()


def render_debts_page(session: LedgerSession):
    """Render the Dhar page."""
    st.title("🤝 Dhar")
    st.markdown("Money lent or borrowed. Repaid entries no longer count as pending.")

    with st.form("debt_form", clear_on_submit=True):
        col1, col2 = st.columns(2)
        with col1:
            person = st.text_input("Person *")
            amount = st.text_input(f"Amount ({CURRENCY}) *")
        with col2:
            entry_date = st.date_input("Date", value=date.today())
            note = st.text_input("Note (optional)")

        if st.form_submit_button("Save", type="primary"):
            commit(
                session.add_debt,
                person, amount, entry_date, note,
                success="✅ Dhar entry saved",
            )

    st.markdown("---")
    if not session.snapshot.debts:
        st.info("📋 No Dhar recorded.")
    for debt in session.snapshot.debts:
        col1, col2, col3 = st.columns([4, 1, 1])
        badge = "⏳ Pending" if debt.status == DebtStatus.PENDING else "✅ Repaid"
        col1.markdown(
            f"**{debt.person}** &nbsp; {money(debt.amount)} &nbsp; {badge} "
            f"&nbsp; _{debt.date.strftime('%d %b %Y')}_"
        )
        label = "Mark repaid" if debt.is_pending else "Mark pending"
        if col2.button(label, key=f"toggle_debt_{debt.id}"):
            commit(session.toggle_debt_status, debt.id)
            st.rerun()
        if col3.button("🗑️", key=f"del_debt_{debt.id}"):
            commit(session.delete_debt, debt.id)
            st.rerun()


def render_shopping_page(session: LedgerSession):
    """Render the shopping list page."""
    st.title("🛒 Shopping List")
    totals = session.dashboard().shopping_totals

    col1, col2, col3 = st.columns(3)
    col1.metric("Estimated Total", money(totals.total))
    col2.metric("Bought", money(totals.completed_total))
    col3.metric("Done", f"{totals.completed_count}/{totals.item_count}")
    st.progress(totals.completion_percentage / 100)

    with st.form("shopping_form", clear_on_submit=True):
        col1, col2, col3, col4 = st.columns([3, 1, 1, 1])
        name = col1.text_input("Item *")
        quantity = col2.text_input("Qty")
        unit = col3.text_input("Unit")
        price = col4.text_input(f"Price ({CURRENCY})")

        if st.form_submit_button("Add", type="primary"):
            commit(session.add_shopping_item, name, quantity, price, unit)

    for item in session.shopping_items():
        col1, col2 = st.columns([5, 1])
        quantity = f" × {item.quantity:g}{' ' + item.unit if item.unit else ''}" if item.quantity else ""
        checked = col1.checkbox(
            f"{item.name}{quantity} ({money(item.line_total)})",
            value=item.completed,
            key=f"shop_{item.id}",
        )
        if checked != item.completed:
            commit(session.toggle_shopping_item, item.id)
            st.rerun()
        if col2.button("🗑️", key=f"del_shop_{item.id}"):
            commit(session.delete_shopping_item, item.id)
            st.rerun()

    if totals.completed_count and st.button("🧹 Clear completed"):
        removed = commit(session.clear_completed)
        if removed:
            st.success(f"Removed {removed} item(s)")
        st.rerun()


def render_settings_page(session: LedgerSession):
    """Render the settings page."""
    st.title("⚙️ Settings")

    st.markdown("### Profile")
    profile = session.snapshot.profile
    with st.form("profile_form"):
        name = st.text_input("Name", value=profile.name)
        budget = st.text_input(f"Monthly Budget ({CURRENCY})", value=f"{profile.monthly_budget:g}")
        if st.form_submit_button("Save Profile", type="primary"):
            commit(session.update_profile, name, budget, success="✅ Profile updated")

    st.markdown("---")
    st.markdown("### Connection Status")

    status = validate_all_settings()
    services = [
        ("Gemini (AI Insights)", "gemini"),
        ("Storage", "storage"),
        ("Application", "app"),
    ]

    for name, key in services:
        if status.get(key, False):
            st.success(f"✅ {name} - OK")
        else:
            error = status.get(f"{key}_error", "Not configured")
            st.error(f"❌ {name} - {error}")

    with st.expander("📜 Recent Activity Log"):
        events = session.recent_events(20)
        if not events:
            st.markdown("*No events recorded*")
        for event in events:
            st.markdown(
                f"`{event.timestamp:%Y-%m-%d %H:%M}` **{event.event_type.value}** {event.description}"
            )

    st.markdown("---")
    st.markdown("### Configuration")
    st.markdown(
        "To configure the application, create a `.env` file with your API keys. "
        "See `.env.example` for the available variables."
    )


if __name__ == "__main__":
    main()
