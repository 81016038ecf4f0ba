"""
AI Tools
Author: Bryce Fountain | Skoll.dev

AI helpers for letters, exposés, market analyses, energy consultations
and subsidy research.
"""
from datetime import date
from typing import Optional

import streamlit as st

from propdesk.errors import PropDeskError
from propdesk.letters import default_closing, mailto_link, render_template
from propdesk.models import Property, Template, Tenant, new_id
from propdesk.store import PortfolioStore, get_store
from tools._common import format_currency, get_assistant, property_selectbox

# Tool metadata for auto-discovery
TOOL_NAME = "AI Tools"
TOOL_ICON = "🤖"
TOOL_DESCRIPTION = "Letters, exposés, market analyses and energy advice written by AI."
TOOL_ORDER = 50

TREND_ICONS = {"rising": "📈", "stable": "➡️", "falling": "📉"}

SUBSIDY_MEASURES = [
    "Heat pump",
    "Solar panels",
    "Facade insulation",
    "Roof insulation",
    "Window replacement",
    "Ventilation system",
]


def template_values(prop: Property, tenant: Optional[Tenant], store: PortfolioStore) -> dict:
    """Placeholder values offered to letter templates."""
    owner = store.owner_for_property(prop)
    return {
        "tenant": tenant.full_name() if tenant else None,
        "first_name": tenant.first_name if tenant else None,
        "last_name": tenant.last_name if tenant else None,
        "property": prop.name,
        "address": prop.address,
        "date": date.today().isoformat(),
        "owner": owner.display_name() if owner else None,
    }


def _run(label: str, state_key: str, generate):
    """Call the assistant behind a spinner and keep the answer in session state."""
    try:
        with st.spinner(label):
            st.session_state[state_key] = generate()
    except PropDeskError as exc:
        st.error(f"LLM request failed: {exc}")


# -----------------------------------------------------------------------------
# Tabs
# -----------------------------------------------------------------------------
def render_letter(store: PortfolioStore, prop: Property):
    st.subheader("✉️ Letter")
    tenants = {t.id: t for t in store.tenants}
    tenant_id = st.selectbox(
        "Recipient",
        [""] + list(tenants),
        format_func=lambda tid: tenants[tid].full_name() if tid else "All tenants",
        key="letter_tenant",
    )
    tenant = tenants.get(tenant_id)

    if store.templates:
        templates = {t.id: t for t in store.templates}
        col1, col2 = st.columns([3, 1])
        template_id = col1.selectbox("Template", list(templates), format_func=lambda tid: templates[tid].name)
        if col2.button("Use template"):
            filled = render_template(templates[template_id], **template_values(prop, tenant, store))
            st.session_state["letter_subject"] = filled["subject"]
            st.session_state["letter_text"] = filled["content"]

    subject = st.text_input("Subject", key="letter_subject")
    notes = st.text_area("Points to cover", key="letter_notes", height=80)
    if st.button("Write with AI", type="primary", disabled=not subject):
        _run("Writing letter...", "letter_text",
             lambda: get_assistant().generate_letter(tenant, prop, subject, notes))

    if "letter_text" in st.session_state:
        text = st.text_area("Letter", key="letter_text", height=320)
        col1, col2 = st.columns(2)
        col1.download_button("Download (.txt)", data=text, file_name="letter.txt", mime="text/plain")
        if tenant and tenant.email:
            col2.link_button("Open in mail client", mailto_link(tenant.email, subject, text))

    with st.expander("💾 Templates"):
        st.caption("Placeholders: {tenant}, {first_name}, {last_name}, {property}, {address}, {date}, {owner}")
        with st.form("new_template", clear_on_submit=True):
            name = st.text_input("Template name")
            template_subject = st.text_input("Template subject")
            content = st.text_area("Template text",
                                   value=f"Dear {{tenant}},\n\n\n\n{default_closing(None)}", height=160)
            if st.form_submit_button("Save template") and name:
                store.add("templates", Template(id=new_id("tpl"), name=name,
                                                subject=template_subject, content=content))
                st.rerun()


def render_expose(prop: Property):
    st.subheader("🏷️ Exposé")
    col1, col2 = st.columns(2)
    purpose = col1.selectbox("Purpose", ["Rental", "Sale"])
    tone = col2.selectbox("Tone", ["Modern", "Classic", "Luxurious", "Factual"])
    highlights = st.text_area("Highlights", placeholder="Balcony, fitted kitchen, quiet location...")
    if st.button("Write exposé", type="primary"):
        _run("Writing exposé...", "expose_text",
             lambda: get_assistant().generate_expose(prop, purpose, tone, highlights))
    if st.session_state.get("expose_text"):
        st.markdown(st.session_state["expose_text"])
        st.download_button("Download (.md)", data=st.session_state["expose_text"],
                           file_name=f"Expose_{prop.name}.md", mime="text/markdown")


def render_market(store: PortfolioStore, prop: Property):
    st.subheader("📊 Market Analysis")
    st.caption(f"Location: {prop.address}")
    if st.button("Analyse market", type="primary"):
        try:
            with st.spinner("Analysing market..."):
                prop.market_analysis = get_assistant().fetch_market_analysis(prop)
            store.save_property(prop)
        except PropDeskError as exc:
            st.error(f"LLM request failed: {exc}")

    market = prop.market_analysis
    if market is None:
        st.info("No market analysis yet.")
        return
    col1, col2, col3 = st.columns(3)
    col1.metric("Avg. rent / m²", format_currency(market.average_rent_per_m2))
    col2.metric("Avg. price / m²", format_currency(market.average_sale_per_m2))
    col3.metric("Trend", f"{TREND_ICONS.get(market.market_trend, '')} {market.market_trend}")
    st.markdown(market.summary)
    for source in market.sources:
        st.markdown(f"- [{source.get('title', source.get('uri'))}]({source.get('uri')})")


def render_energy(prop: Property):
    st.subheader("⚡ Energy Consultation")
    col1, col2, col3 = st.columns(3)
    year_built = col1.number_input("Year built", min_value=1800, max_value=date.today().year,
                                   value=int(prop.year_built or 1980))
    heating = col2.text_input("Heating", value=prop.heating_type or "Gas")
    insulation = col3.selectbox("Insulation", ["none", "standard", "good", "passive house"], index=1)
    if st.button("Get consultation", type="primary"):
        info = {"year_built": year_built, "heating_type": heating, "insulation": insulation}
        _run("Consulting...", "energy_text",
             lambda: get_assistant().generate_energy_consultation(prop, info))
    if st.session_state.get("energy_text"):
        st.markdown(st.session_state["energy_text"])


def render_subsidies(prop: Property):
    st.subheader("💰 Subsidies")
    measures = st.multiselect("Planned measures", SUBSIDY_MEASURES)
    if st.button("Find subsidies", type="primary", disabled=not measures):
        _run("Searching programmes...", "subsidy_text",
             lambda: get_assistant().generate_subsidy_advice(prop, measures))
    if st.session_state.get("subsidy_text"):
        st.markdown(st.session_state["subsidy_text"])


def render():
    """Main entry point for the AI tools."""
    st.title("🤖 AI Tools")
    store = get_store()
    prop = property_selectbox(store, key="ai_property")
    if prop is None:
        return

    tabs = st.tabs(["✉️ Letter", "🏷️ Exposé", "📊 Market", "⚡ Energy", "💰 Subsidies"])
    with tabs[0]:
        render_letter(store, prop)
    with tabs[1]:
        render_expose(prop)
    with tabs[2]:
        render_market(store, prop)
    with tabs[3]:
        render_energy(prop)
    with tabs[4]:
        render_subsidies(prop)
