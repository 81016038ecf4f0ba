"""
Shared View Helpers
Author: Bryce Fountain | Skoll.dev

Small widgets and accessors used by several views.
"""
from typing import Optional

import streamlit as st

from propdesk import config
from propdesk.assistant import Assistant
from propdesk.models import Property
from propdesk.store import PortfolioStore

API_KEY_STATE = "openai_api_key"


def format_currency(value: float) -> str:
    """Format number as currency string."""
    return f"{value:,.2f} {config.CURRENCY}"


def get_assistant() -> Assistant:
    """Assistant using the sidebar key, or the configured key when none is typed."""
    return Assistant(api_key=st.session_state.get(API_KEY_STATE) or None)


def property_selectbox(store: PortfolioStore, label: str = "Property",
                       key: str = None, allow_none: bool = False) -> Optional[Property]:
    """Selectbox over the store's properties; returns the chosen Property."""
    options = [p.id for p in store.properties]
    if allow_none:
        options = [""] + options
    if not options:
        st.info("Add a property first.")
        return None
    names = {p.id: p.name for p in store.properties}
    selected = st.selectbox(
        label,
        options,
        format_func=lambda pid: names.get(pid, "-- choose --"),
        key=key,
    )
    return store.find("properties", selected)
