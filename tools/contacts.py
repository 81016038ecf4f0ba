"""
Contacts
Author: Bryce Fountain | Skoll.dev

Address book for handymen, owners, stakeholders and tenants.
"""
import pandas as pd
import streamlit as st

from propdesk.errors import PropDeskError, ValidationError
from propdesk.models import new_id
from propdesk.store import RECORD_TYPES, PortfolioStore, get_store

# Tool metadata for auto-discovery
TOOL_NAME = "Contacts"
TOOL_ICON = "📇"
TOOL_DESCRIPTION = "Handymen, owners, stakeholders and tenants in one address book."
TOOL_ORDER = 40

# Collection -> (tab label, form fields, required fields)
CONTACT_KINDS = {
    "handymen": ("🔨 Handymen", ["name", "company", "trade", "phone", "email", "address", "zip", "city"],
                 ["name", "trade"]),
    "tenants": ("👥 Tenants", ["first_name", "last_name", "email", "phone", "start_date"],
                ["first_name", "last_name"]),
    "owners": ("🏛️ Owners", ["name", "company", "email", "phone", "address", "zip", "city",
                            "tax_id", "vat_id", "bank_name", "iban", "bic"],
               ["name", "email"]),
    "stakeholders": ("🤝 Stakeholders", ["name", "role", "email", "phone", "address", "note"],
                     ["name", "role"]),
}

ID_PREFIXES = {"handymen": "h", "tenants": "t", "owners": "o", "stakeholders": "s"}


def field_label(field_name: str) -> str:
    return field_name.replace("_", " ").replace("iban", "IBAN").replace("bic", "BIC").capitalize()


def create_contact(kind: str, values: dict):
    """Build a contact record from form values, enforcing the required fields."""
    _, fields, required = CONTACT_KINDS[kind]
    missing = [field_label(name) for name in required if not (values.get(name) or "").strip()]
    if missing:
        raise ValidationError(f"Required: {', '.join(missing)}")
    data = {name: values[name].strip() for name in fields if (values.get(name) or "").strip()}
    return RECORD_TYPES[kind](id=new_id(ID_PREFIXES[kind]), **data)


def render_kind(store: PortfolioStore, kind: str):
    _, fields, required = CONTACT_KINDS[kind]
    records = getattr(store, kind)

    if records:
        st.dataframe(
            pd.DataFrame([{field_label(k): v for k, v in r.to_dict().items() if k in fields} for r in records]),
            use_container_width=True,
            hide_index=True,
        )
        labels = {r.id: " ".join(str(getattr(r, f) or "") for f in required) for r in records}
        col1, col2 = st.columns([3, 1])
        record_id = col1.selectbox("Select", list(labels), format_func=labels.get, key=f"{kind}_pick",
                                   label_visibility="collapsed")
        if col2.button("🗑️ Remove", key=f"{kind}_remove"):
            store.remove(kind, record_id)
            st.rerun()
    else:
        st.caption("No entries yet.")

    with st.expander("➕ Add"):
        with st.form(f"{kind}_form", clear_on_submit=True):
            columns = st.columns(2)
            values = {}
            for index, name in enumerate(fields):
                marker = " *" if name in required else ""
                values[name] = columns[index % 2].text_input(field_label(name) + marker)
            if st.form_submit_button("Save"):
                try:
                    store.add(kind, create_contact(kind, values))
                    st.rerun()
                except PropDeskError as exc:
                    st.error(str(exc))


def render():
    """Main entry point for the address book."""
    st.title("📇 Contacts")
    store = get_store()
    tabs = st.tabs([label for label, _, _ in CONTACT_KINDS.values()])
    for tab, kind in zip(tabs, CONTACT_KINDS):
        with tab:
            render_kind(store, kind)
