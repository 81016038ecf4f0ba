"""
Bookkeeping
Author: Bryce Fountain | Skoll.dev

Manual bookings, the booking journal and the bank statement CSV import.
"""
from datetime import date

import pandas as pd
import streamlit as st

from propdesk import config
from propdesk.bookkeeping import (
    build_pending,
    commit_pending,
    create_transaction,
    guess_mapping,
    parse_bank_csv,
    totals,
    transactions_frame,
)
from propdesk.errors import PropDeskError
from propdesk.models import TransactionType
from propdesk.store import PortfolioStore, get_store
from tools._common import format_currency, property_selectbox

# Tool metadata for auto-discovery
TOOL_NAME = "Finances"
TOOL_ICON = "💶"
TOOL_DESCRIPTION = "Record income and expenses and import bank statements."
TOOL_ORDER = 30

PENDING_KEY = "pending_import"


def render_booking_form(store: PortfolioStore):
    """Form for a single booking."""
    st.subheader("➕ New Booking")
    booking_type = st.radio("Type", list(TransactionType), format_func=lambda t: t.value,
                            horizontal=True, key="booking_type")
    categories = (config.INCOME_CATEGORIES if booking_type is TransactionType.INCOME
                  else config.EXPENSE_CATEGORIES)

    prop = property_selectbox(store, key="booking_property")
    with st.form("new_booking", clear_on_submit=True):
        col1, col2 = st.columns(2)
        category = col1.selectbox("Category", categories)
        amount = col2.number_input("Amount", min_value=0.0, step=10.0, format="%.2f")
        booking_date = col1.date_input("Date", value=date.today())
        unit_id = None
        if prop and prop.units:
            unit_numbers = {u.id: u.number for u in prop.units}
            unit_id = col2.selectbox("Unit (optional)", [""] + list(unit_numbers),
                                     format_func=lambda uid: unit_numbers.get(uid, "-- whole property --"))
        description = st.text_input("Description")
        utility = st.checkbox("Allocable to tenants (utility cost)",
                              value=booking_type is TransactionType.EXPENSE and category != "Maintenance / Repair")

        if st.form_submit_button("Save booking", type="primary"):
            try:
                store.add("transactions", create_transaction(
                    property_id=prop.id if prop else "",
                    type=booking_type,
                    category=category,
                    amount=amount,
                    description=description,
                    date_str=booking_date.isoformat(),
                    unit_id=unit_id or None,
                    is_utility_relevant=utility and booking_type is TransactionType.EXPENSE,
                ))
                st.success("Booking saved.")
            except PropDeskError as exc:
                st.error(str(exc))


def render_import(store: PortfolioStore):
    """Bank CSV import: upload, map columns, assign properties, save."""
    st.subheader("🏦 Bank Import")
    uploaded = st.file_uploader("Bank statement (CSV)", type=["csv"], key="bank_csv")
    if uploaded is None:
        st.caption("Upload a CSV export from your online banking. ';' and ',' separators are supported.")
        return

    try:
        raw = uploaded.getvalue()
        try:
            text = raw.decode("utf-8-sig")
        except UnicodeDecodeError:
            # German banks often export Latin-1
            text = raw.decode("latin-1")
        headers, rows = parse_bank_csv(text)
    except PropDeskError as exc:
        st.error(str(exc))
        return

    guessed = guess_mapping(headers)
    st.markdown("**Column mapping**")
    options = [""] + headers
    col1, col2, col3 = st.columns(3)
    mapping = {
        "date": col1.selectbox("Date", options, index=options.index(guessed["date"])),
        "amount": col2.selectbox("Amount", options, index=options.index(guessed["amount"])),
        "description": col3.selectbox("Description", options, index=options.index(guessed["description"])),
    }
    st.dataframe(rows.head(10), use_container_width=True, hide_index=True)

    if st.button("Prepare bookings"):
        try:
            st.session_state[PENDING_KEY] = build_pending(rows, mapping)
        except PropDeskError as exc:
            st.error(str(exc))

    pending = st.session_state.get(PENDING_KEY)
    if not pending:
        return

    st.markdown("**Assign bookings to properties**")
    names = {p.id: p.name for p in store.properties}
    frame = pd.DataFrame(
        [
            {"Date": t.date, "Description": t.description, "Type": t.type.value,
             "Amount": t.amount, "Category": t.category, "Property": ""}
            for t in pending
        ]
    )
    edited = st.data_editor(
        frame,
        use_container_width=True,
        hide_index=True,
        key="pending_editor",
        column_config={
            "Date": st.column_config.TextColumn("Date", disabled=True),
            "Description": st.column_config.TextColumn("Description", disabled=True),
            "Type": st.column_config.TextColumn("Type", disabled=True),
            "Amount": st.column_config.NumberColumn("Amount", disabled=True, format="%.2f"),
            "Category": st.column_config.SelectboxColumn(
                "Category", options=config.INCOME_CATEGORIES + config.EXPENSE_CATEGORIES),
            "Property": st.column_config.SelectboxColumn("Property", options=[""] + list(names.values())),
        },
    )
    ids_by_name = {name: pid for pid, name in names.items()}
    if st.button("Save bookings", type="primary"):
        for transaction, (_, row) in zip(pending, edited.iterrows()):
            transaction.property_id = ids_by_name.get(row["Property"] or "", "")
            transaction.category = row["Category"] or transaction.category
        try:
            for transaction in commit_pending(pending):
                store.add("transactions", transaction)
            st.session_state.pop(PENDING_KEY, None)
            st.success("Bookings imported.")
            st.rerun()
        except PropDeskError as exc:
            st.error(str(exc))


def render():
    """Main entry point for bookkeeping."""
    st.title("💶 Bookkeeping")
    store = get_store()

    sums = totals(store.transactions)
    col1, col2, col3 = st.columns(3)
    col1.metric("Income", format_currency(sums["income"]))
    col2.metric("Expenses", format_currency(sums["expenses"]))
    col3.metric("Net", format_currency(sums["net"]))

    tab_journal, tab_new, tab_import = st.tabs(["📒 Journal", "➕ New Booking", "🏦 Bank Import"])
    with tab_journal:
        journal = transactions_frame(store.transactions, store.properties)
        if journal.empty:
            st.info("No bookings yet.")
        else:
            st.dataframe(journal, use_container_width=True, hide_index=True)
            st.download_button("Download CSV", data=journal.to_csv(index=False),
                               file_name="bookings.csv", mime="text/csv")
    with tab_new:
        render_booking_form(store)
    with tab_import:
        render_import(store)
