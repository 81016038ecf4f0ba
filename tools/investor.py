"""
Investor Dashboard
Author: Bryce Fountain | Skoll.dev

Yield and cashflow figures per property, a refinancing calculator for
each loan and AI hold/sell and exit analyses.
"""
import pandas as pd
import streamlit as st

from propdesk import config
from propdesk.errors import PropDeskError
from propdesk.financing import estimate_refinancing, loans_frame
from propdesk.models import Property
from propdesk.portfolio import investment_metrics
from propdesk.store import get_store
from tools._common import format_currency, get_assistant, property_selectbox

# Tool metadata for auto-discovery
TOOL_NAME = "Investor"
TOOL_ICON = "📈"
TOOL_DESCRIPTION = "Yields, cashflow, refinancing and exit analysis."
TOOL_ORDER = 60


def render_metrics(metrics: dict):
    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Gross Yield", f"{metrics['gross_yield']:.2f}%")
    col2.metric("Net Yield", f"{metrics['net_yield']:.2f}%")
    col3.metric("Cashflow / Month", format_currency(metrics["monthly_cashflow"]))
    col4.metric("Loan-to-Value", f"{metrics['loan_to_value']:.1f}%")

    col1, col2, col3 = st.columns(3)
    col1.metric("Annual Rent", format_currency(metrics["annual_rent"]))
    col2.metric("Non-allocable Costs", format_currency(metrics["annual_costs"]))
    col3.metric("Market Value", format_currency(metrics["market_value"]))


def render_refinancing(prop: Property):
    """Refinancing estimate for each loan at a user-chosen target rate."""
    st.subheader("🏦 Refinancing")
    if not prop.loans:
        st.info("No loans recorded for this property.")
        return
    st.dataframe(loans_frame(prop), use_container_width=True, hide_index=True)

    rows = []
    for loan in prop.loans:
        target = st.number_input(
            f"Target rate for {loan.bank_name} (%)",
            min_value=0.0,
            max_value=max(15.0, float(loan.interest_rate)),
            value=float(loan.interest_rate),
            step=0.05,
            key=f"target_{loan.id}",
        )
        try:
            estimate = estimate_refinancing(loan, target)
        except PropDeskError as exc:
            st.error(f"{loan.bank_name}: {exc}")
            continue
        rows.append({
            "Bank": loan.bank_name,
            "Months Left": estimate.remaining_months,
            "Interest Saving": estimate.interest_saving,
            "Prepayment Penalty": estimate.prepayment_penalty,
            "Net Benefit": estimate.net_benefit,
            "Worthwhile": "✅" if estimate.is_worthwhile else "❌",
        })
    if rows:
        st.dataframe(pd.DataFrame(rows), use_container_width=True, hide_index=True)
        st.caption(f"The prepayment penalty is estimated at {config.PREPAYMENT_PENALTY_FACTOR:.0%} of the interest saving.")


def render_analysis(prop: Property, metrics: dict):
    st.subheader("🧠 AI Analysis")
    col1, col2 = st.columns(2)
    with col1:
        if st.button("Hold or sell?", type="primary"):
            try:
                with st.spinner("Analysing performance..."):
                    st.session_state["investor_text"] = get_assistant().generate_investment_strategy(prop, metrics)
            except PropDeskError as exc:
                st.error(f"LLM request failed: {exc}")
    with col2:
        if st.button("Exit strategy"):
            interest = prop.loans[0].interest_rate if prop.loans else 0.0
            try:
                with st.spinner("Planning exit..."):
                    st.session_state["investor_text"] = get_assistant().generate_exit_strategy(
                        prop, metrics["market_value"], interest)
            except PropDeskError as exc:
                st.error(f"LLM request failed: {exc}")

    if st.session_state.get("investor_text"):
        st.markdown(st.session_state["investor_text"])


def render():
    """Main entry point for the investor dashboard."""
    st.title("📈 Investor Dashboard")
    store = get_store()
    prop = property_selectbox(store, key="investor_property")
    if prop is None:
        return

    metrics = investment_metrics(prop, store.transactions)
    if not prop.purchase_price:
        st.warning("Enter a purchase price in the property's general data to compute yields.")
    render_metrics(metrics)
    st.markdown("---")
    render_refinancing(prop)
    st.markdown("---")
    render_analysis(prop, metrics)
