"""
Property Desk - Main Application
Author: Bryce Fountain | Skoll.dev

Entry point for the Streamlit app. Handles navigation, the portfolio
dashboard and saving/loading the portfolio. Views are loaded dynamically
from the tools/ directory.
"""
from datetime import date

import pandas as pd
import streamlit as st

from propdesk import config
from propdesk.errors import PropDeskError
from propdesk.models import Reminder, ReminderCategory, new_id
from propdesk.portfolio import dashboard_stats, recent_transactions
from propdesk.store import PortfolioStore, get_store, set_store
from tools import get_available_tools, load_tool
from tools._common import API_KEY_STATE, format_currency, get_assistant

config.configure_logging()

# -----------------------------------------------------------------------------
# Page Configuration
# -----------------------------------------------------------------------------
st.set_page_config(
    page_title=config.APP_TITLE,
    page_icon=config.APP_ICON,
    layout="wide",
    initial_sidebar_state="expanded"
)

# -----------------------------------------------------------------------------
# Sidebar Navigation
# Discovers views from tools/ directory and builds dynamic menu
# -----------------------------------------------------------------------------
def render_sidebar():
    """Build sidebar with dynamically discovered views and portfolio file controls."""
    st.sidebar.title(f"{config.APP_ICON} {config.APP_TITLE}")
    st.sidebar.markdown("---")

    # Home button
    if st.sidebar.button("🏡 Dashboard", use_container_width=True):
        st.session_state.current_tool = None

    st.sidebar.markdown("### Views")

    tools = get_available_tools()
    for tool_id, tool_info in tools.items():
        icon = tool_info.get("icon", "📊")
        name = tool_info.get("name", tool_id)
        if st.sidebar.button(f"{icon} {name}", use_container_width=True, key=f"nav_{tool_id}"):
            st.session_state.current_tool = tool_id

    st.sidebar.markdown("---")
    st.sidebar.text_input(
        "OpenAI API Key",
        type="password",
        key=API_KEY_STATE,
        help="Overrides the OPENAI_API_KEY environment variable for this session.",
    )

    render_portfolio_file()
    return tools

def render_portfolio_file():
    """Save/load the whole portfolio as JSON."""
    store = get_store()
    with st.sidebar.expander("💾 Save / Load Portfolio"):
        st.download_button(
            label="Save Portfolio (JSON)",
            data=store.to_json(),
            file_name="portfolio.json",
            mime="application/json",
            use_container_width=True,
        )
        uploaded = st.file_uploader("Upload Portfolio (JSON)", type=["json"], key="portfolio_upload")
        if uploaded is not None and st.button("Load Portfolio", type="primary"):
            try:
                set_store(PortfolioStore.from_json(uploaded.getvalue().decode("utf-8")))
                st.session_state.current_tool = None
                st.rerun()
            except (PropDeskError, UnicodeDecodeError) as exc:
                st.error(f"Failed to load file: {exc}")

# -----------------------------------------------------------------------------
# Dashboard (landing page)
# -----------------------------------------------------------------------------
def render_reminders():
    """Open reminders with done toggles and AI e-mail drafts."""
    store = get_store()
    st.subheader("🔔 Reminders")

    open_reminders = sorted((r for r in store.reminders if not r.is_done), key=lambda r: r.date)
    if not open_reminders:
        st.caption("No open reminders.")

    for reminder in open_reminders:
        col1, col2, col3 = st.columns([5, 1, 1])
        with col1:
            st.markdown(f"**{reminder.title}**  \n{reminder.category.value} · due {reminder.date}")
        with col2:
            if st.button("Done", key=f"done_{reminder.id}"):
                reminder.is_done = True
                st.rerun()
        with col3:
            if st.button("✉️ Draft", key=f"mail_{reminder.id}"):
                try:
                    prop = store.find("properties", reminder.property_id)
                    with st.spinner("Drafting e-mail..."):
                        st.session_state["reminder_draft"] = get_assistant().generate_reminder_email(reminder, prop)
                except PropDeskError as exc:
                    st.error(str(exc))

    if st.session_state.get("reminder_draft"):
        st.text_area("E-mail draft", st.session_state["reminder_draft"], height=220)
        if st.button("Close draft"):
            st.session_state.pop("reminder_draft", None)
            st.rerun()

    with st.expander("➕ New reminder"):
        with st.form("new_reminder", clear_on_submit=True):
            title = st.text_input("Title")
            due = st.date_input("Date", value=date.today())
            category = st.selectbox("Category", list(ReminderCategory), format_func=lambda c: c.value)
            prop_ids = [""] + [p.id for p in store.properties]
            names = {p.id: p.name for p in store.properties}
            property_id = st.selectbox("Property", prop_ids, format_func=lambda pid: names.get(pid, "General"))
            if st.form_submit_button("Add reminder") and title:
                store.add("reminders", Reminder(
                    id=new_id("r"),
                    title=title,
                    date=due.isoformat(),
                    category=category,
                    property_id=property_id or None,
                ))
                st.rerun()

def render_dashboard():
    """Render the portfolio overview."""
    store = get_store()
    store.sync_loan_reminders()

    st.title(f"{config.APP_ICON} Portfolio Dashboard")
    stats = dashboard_stats(store.properties, store.tenants, store.transactions)

    col1, col2, col3, col4 = st.columns(4)
    with col1:
        st.metric("Properties", stats["property_count"])
    with col2:
        st.metric("Tenants", stats["tenant_count"])
    with col3:
        st.metric("Occupancy", f"{stats['occupancy_rate']:.0f}%",
                  help=f"{stats['occupied_units']} of {stats['total_units']} units let")
    with col4:
        st.metric("Cashflow", format_currency(stats["cashflow"]))

    st.markdown("---")
    left, right = st.columns([2, 1])
    with left:
        st.subheader("💶 Income & Expenses")
        chart = pd.DataFrame(
            {"Amount": [stats["income"], stats["expenses"], stats["cashflow"]]},
            index=["Income", "Expenses", "Net"],
        )
        st.bar_chart(chart)

        st.subheader("🧾 Recent Bookings")
        recent = recent_transactions(store.transactions)
        if recent:
            st.dataframe(
                pd.DataFrame([
                    {"Date": t.date, "Category": t.category, "Description": t.description,
                     "Type": t.type.value, "Amount": format_currency(t.amount)}
                    for t in recent
                ]),
                use_container_width=True,
                hide_index=True,
            )
        else:
            st.caption("No bookings yet.")
    with right:
        render_reminders()

# -----------------------------------------------------------------------------
# Main Application Flow
# -----------------------------------------------------------------------------
def main():
    """Main application entry point."""
    # Initialize session state for navigation
    if "current_tool" not in st.session_state:
        st.session_state.current_tool = None

    # Render sidebar and get available views
    tools = render_sidebar()

    # Route to appropriate view
    if st.session_state.current_tool is None:
        render_dashboard()
    else:
        tool_id = st.session_state.current_tool
        if tool_id in tools:
            try:
                tool_module = load_tool(tool_id)
                tool_module.render()
            except Exception as e:
                st.error(f"Error loading view: {e}")
                st.session_state.current_tool = None
        else:
            st.error(f"View '{tool_id}' not found.")
            st.session_state.current_tool = None

if __name__ == "__main__":
    main()
