"""
Tenant Manager
Author: Bryce Fountain | Skoll.dev

Tenant list with unit assignment and AI-drafted financial e-mails.
"""
from datetime import date

import pandas as pd
import streamlit as st

from propdesk.errors import PropDeskError
from propdesk.letters import mailto_link
from propdesk.models import Tenant, new_id
from propdesk.store import PortfolioStore, get_store
from tools._common import get_assistant

# Tool metadata for auto-discovery
TOOL_NAME = "Tenants"
TOOL_ICON = "👥"
TOOL_DESCRIPTION = "Manage tenants and draft rent adjustment or utility e-mails."
TOOL_ORDER = 20

EMAIL_TOPICS = {
    "rent_adjustment": "Rent adjustment",
    "utility_payment": "Utility payment",
}


def tenant_rows(store: PortfolioStore) -> pd.DataFrame:
    """Tenant table with the property and unit each tenant lives in."""
    rows = []
    for tenant in store.tenants:
        prop = store.property_for_tenant(tenant.id)
        unit = next((u for u in prop.units if u.tenant_id == tenant.id), None) if prop else None
        rows.append({
            "Name": tenant.full_name(),
            "E-mail": tenant.email,
            "Phone": tenant.phone,
            "Since": tenant.start_date,
            "Property": prop.name if prop else "N/A",
            "Unit": unit.number if unit else "",
            "Warm Rent": unit.warm_rent if unit else 0.0,
        })
    return pd.DataFrame(rows, columns=["Name", "E-mail", "Phone", "Since", "Property", "Unit", "Warm Rent"])


def render_add_tenant(store: PortfolioStore):
    with st.expander("➕ New tenant"):
        with st.form("new_tenant", clear_on_submit=True):
            col1, col2 = st.columns(2)
            first_name = col1.text_input("First name")
            last_name = col2.text_input("Last name")
            email = col1.text_input("E-mail")
            phone = col2.text_input("Phone")
            start = st.date_input("Tenancy start", value=date.today())
            if st.form_submit_button("Add tenant"):
                if not first_name or not last_name:
                    st.error("First and last name are required.")
                else:
                    store.add("tenants", Tenant(id=new_id("t"), first_name=first_name, last_name=last_name,
                                                email=email, phone=phone, start_date=start.isoformat()))
                    st.rerun()


def render_email_draft(store: PortfolioStore):
    """AI e-mail about rent or utilities for one tenant."""
    st.subheader("✉️ Financial E-mail")
    if not store.tenants:
        st.info("No tenants yet.")
        return
    tenants = {t.id: t for t in store.tenants}
    tenant = tenants[st.selectbox("Tenant", list(tenants), format_func=lambda tid: tenants[tid].full_name())]
    topic = st.radio("Topic", list(EMAIL_TOPICS), format_func=EMAIL_TOPICS.get, horizontal=True)

    if st.button("Draft e-mail", type="primary"):
        prop = store.property_for_tenant(tenant.id)
        if prop is None:
            st.error("Tenant is not assigned to a property.")
        else:
            try:
                with st.spinner("Drafting..."):
                    st.session_state["tenant_mail"] = {
                        "tenant_id": tenant.id,
                        "topic": topic,
                        "text": get_assistant().generate_tenant_financial_email(
                            tenant, prop, store.property_transactions(prop.id), topic),
                    }
            except PropDeskError as exc:
                st.error(f"LLM request failed: {exc}")

    draft = st.session_state.get("tenant_mail")
    if draft and draft["tenant_id"] == tenant.id:
        text = st.text_area("Draft", draft["text"], height=260)
        if tenant.email:
            st.link_button("Open in mail client",
                           mailto_link(tenant.email, EMAIL_TOPICS[draft["topic"]], text))


def render():
    """Main entry point for the tenant manager."""
    st.title("👥 Tenants")
    store = get_store()

    render_add_tenant(store)
    st.dataframe(tenant_rows(store), use_container_width=True, hide_index=True)

    if store.tenants:
        with st.expander("🗑️ Remove tenant"):
            tenants = {t.id: t.full_name() for t in store.tenants}
            tenant_id = st.selectbox("Tenant to remove", list(tenants), format_func=tenants.get)
            if st.button("Remove"):
                store.remove("tenants", tenant_id)
                st.rerun()

    st.markdown("---")
    render_email_draft(store)
