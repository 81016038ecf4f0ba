"""
Property Editor
Author: Bryce Fountain | Skoll.dev

Master data, units, building costs, meters, loans and documents of each
property, plus the per-unit utility cost statement.
"""
from datetime import date
from typing import Dict, List

import pandas as pd
import streamlit as st

from propdesk import config
from propdesk.allocation import allocate_building, build_statement
from propdesk.documents import document_bytes, document_from_upload, meter_consumption, meter_unit
from propdesk.errors import PropDeskError
from propdesk.financing import annuity_installment, loans_frame
from propdesk.letters import DEFAULT_INTRO, default_closing, statement_filename, statement_letter_html
from propdesk.models import (
    AllocationKey,
    HouseType,
    Loan,
    MeterReading,
    MeterType,
    Property,
    PropertyDocument,
    Tenant,
    Transaction,
    TransactionType,
    Unit,
    UnitType,
    new_id,
)
from propdesk.store import PortfolioStore, get_store
from tools._common import format_currency, get_assistant

# Tool metadata for auto-discovery
TOOL_NAME = "Properties"
TOOL_ICON = "🏘️"
TOOL_DESCRIPTION = "Edit properties, units, building costs, meters, loans and utility statements."
TOOL_ORDER = 10

VACANT = "-- vacant --"

# -----------------------------------------------------------------------------
# Helper Functions
# Convert between records and the frames shown in st.data_editor
# -----------------------------------------------------------------------------
def _num(value, default: float = 0.0) -> float:
    if value is None:
        return default
    try:
        if pd.isna(value):
            return default
        return float(value)
    except (TypeError, ValueError):
        return default


def _text(value) -> str:
    if value is None or (isinstance(value, float) and pd.isna(value)):
        return ""
    return str(value).strip()


def tenant_label(tenant: Tenant) -> str:
    return f"{tenant.full_name()} · {tenant.id}"


def units_to_frame(units: List[Unit], tenants: List[Tenant]) -> pd.DataFrame:
    labels = {t.id: tenant_label(t) for t in tenants}
    return pd.DataFrame(
        [
            {
                "id": u.id,
                "Unit": u.number,
                "Type": u.type.value,
                "Size (m²)": u.size,
                "Rooms": u.rooms,
                "Floor": u.floor or "",
                "Cold Rent": u.base_rent,
                "Prepayment": u.utility_prepayment,
                "Tenant": labels.get(u.tenant_id, VACANT),
            }
            for u in units
        ],
        columns=["id", "Unit", "Type", "Size (m²)", "Rooms", "Floor", "Cold Rent", "Prepayment", "Tenant"],
    )


def units_from_frame(df: pd.DataFrame, existing: List[Unit], tenants: List[Tenant]) -> List[Unit]:
    """Apply edited unit rows; documents and meter readings of kept units survive."""
    by_id = {u.id: u for u in existing}
    tenant_ids = {tenant_label(t): t.id for t in tenants}
    units = []
    for _, row in df.iterrows():
        number = _text(row.get("Unit"))
        if not number:
            continue
        unit_id = _text(row.get("id")) or new_id("u")
        previous = by_id.get(unit_id)
        rooms = _num(row.get("Rooms"), default=None)
        units.append(
            Unit(
                id=unit_id,
                number=number,
                type=UnitType(_text(row.get("Type")) or UnitType.RESIDENTIAL.value),
                size=_num(row.get("Size (m²)")),
                rooms=rooms,
                floor=_text(row.get("Floor")) or None,
                base_rent=_num(row.get("Cold Rent")),
                utility_prepayment=_num(row.get("Prepayment")),
                tenant_id=tenant_ids.get(_text(row.get("Tenant"))),
                image_url=previous.image_url if previous else None,
                is_vat_subject=previous.is_vat_subject if previous else False,
                documents=previous.documents if previous else [],
                meter_readings=previous.meter_readings if previous else [],
            )
        )
    return units


def costs_to_frame(costs: List[Transaction]) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {"id": t.id, "Category": t.category, "Amount": t.amount,
             "Date": t.date, "Description": t.description}
            for t in costs
        ],
        columns=["id", "Category", "Amount", "Date", "Description"],
    )


def costs_from_frame(df: pd.DataFrame, property_id: str) -> List[Transaction]:
    """Edited building-cost rows as utility-relevant expense bookings."""
    costs = []
    for _, row in df.iterrows():
        category = _text(row.get("Category"))
        amount = _num(row.get("Amount"))
        if not category and not amount:
            continue
        costs.append(
            Transaction(
                id=_text(row.get("id")) or new_id("tx"),
                property_id=property_id,
                type=TransactionType.EXPENSE,
                category=category or "Other Operating Costs",
                amount=amount,
                date=_text(row.get("Date")) or date.today().isoformat(),
                description=_text(row.get("Description")),
                is_utility_relevant=True,
            )
        )
    return costs


def loans_from_frame(df: pd.DataFrame) -> List[Loan]:
    loans = []
    for _, row in df.iterrows():
        bank = _text(row.get("Bank"))
        if not bank:
            continue
        total = _num(row.get("Amount"))
        interest = _num(row.get("Rate %"))
        repayment = _num(row.get("Repayment %"))
        installment = _num(row.get("Installment")) or annuity_installment(total, interest, repayment)
        loans.append(
            Loan(
                id=_text(row.get("id")) or new_id("l"),
                bank_name=bank,
                total_amount=total,
                current_balance=_num(row.get("Balance")),
                interest_rate=interest,
                repayment_rate=repayment,
                fixed_until=_text(row.get("Fixed Until")),
                monthly_installment=installment,
            )
        )
    return loans


def readings_from_frame(df: pd.DataFrame) -> List[MeterReading]:
    readings = []
    for _, row in df.iterrows():
        meter_type = MeterType(_text(row.get("Type")) or MeterType.WATER.value)
        readings.append(
            MeterReading(
                id=_text(row.get("id")) or new_id("m"),
                type=meter_type,
                value=_num(row.get("Reading")),
                unit=meter_unit(meter_type),
                date=_text(row.get("Date")) or date.today().isoformat(),
                serial_number=_text(row.get("Meter No.")),
            )
        )
    return readings


def breakdown_to_frame(costs: List[Transaction]) -> pd.DataFrame:
    """Editable statement lines: total and allocation key per cost booking."""
    return pd.DataFrame(
        [
            {"transaction_id": t.id, "Cost Type": t.category, "Total": t.amount,
             "Key": AllocationKey.AREA.value}
            for t in costs
        ],
        columns=["transaction_id", "Cost Type", "Total", "Key"],
    )


def breakdown_overrides(df: pd.DataFrame) -> tuple:
    """Return (keys, totals) per transaction id from the edited breakdown."""
    keys: Dict[str, AllocationKey] = {}
    totals: Dict[str, float] = {}
    for _, row in df.iterrows():
        transaction_id = _text(row.get("transaction_id"))
        if not transaction_id:
            continue
        keys[transaction_id] = AllocationKey(_text(row.get("Key")) or AllocationKey.AREA.value)
        totals[transaction_id] = _num(row.get("Total"))
    return keys, totals

# -----------------------------------------------------------------------------
# UI Sections
# -----------------------------------------------------------------------------
def render_new_property(store: PortfolioStore):
    """Form for adding a property."""
    with st.expander("➕ New property"):
        with st.form("new_property", clear_on_submit=True):
            name = st.text_input("Name")
            address = st.text_input("Address")
            house_type = st.selectbox("Type", list(HouseType), format_func=lambda t: t.value)
            if st.form_submit_button("Add property"):
                if not name or not address:
                    st.error("Name and address are required.")
                else:
                    prop = store.add("properties", Property(id=new_id("p"), name=name,
                                                            address=address, type=house_type))
                    st.session_state["selected_property"] = prop.id
                    st.rerun()


def render_general(store: PortfolioStore, prop: Property):
    """Master data and owner assignment."""
    owners = {o.id: o.display_name() for o in store.owners}
    with st.form(f"general_{prop.id}"):
        col1, col2 = st.columns(2)
        with col1:
            st.markdown("**Master Data**")
            name = st.text_input("Name", value=prop.name)
            address = st.text_input("Address", value=prop.address)
            house_type = st.selectbox("Type", list(HouseType), index=list(HouseType).index(prop.type),
                                      format_func=lambda t: t.value)
            year_built = st.number_input("Year Built", min_value=0, max_value=2100,
                                         value=int(prop.year_built or 0), step=1)
            heating = st.text_input("Heating", value=prop.heating_type or "")
            energy_class = st.text_input("Energy Class", value=prop.energy_class or "")
        with col2:
            st.markdown("**Purchase & Management**")
            owner_ids = [""] + list(owners)
            owner_id = st.selectbox("Owner", owner_ids,
                                    index=owner_ids.index(prop.owner_id) if prop.owner_id in owners else 0,
                                    format_func=lambda oid: owners.get(oid, "-- choose --"))
            purchase_price = st.number_input("Purchase Price", min_value=0.0,
                                             value=float(prop.purchase_price or 0), step=1000.0)
            ancillary = st.number_input("Ancillary Purchase Costs", min_value=0.0,
                                        value=float(prop.ancillary_costs or 0), step=500.0)
            purchase_date = st.text_input("Purchase Date (YYYY-MM-DD)", value=prop.purchase_date or "")
            living_space = st.number_input("Living Space (m²)", min_value=0.0,
                                           value=float(prop.living_space or prop.total_unit_area()))
            plot_size = st.number_input("Plot Size (m²)", min_value=0.0, value=float(prop.plot_size or 0))

        if st.form_submit_button("Save master data", type="primary"):
            if not name or not address:
                st.error("Name and address are required.")
                return
            prop.name = name
            prop.address = address
            prop.type = house_type
            prop.year_built = year_built or None
            prop.heating_type = heating or None
            prop.energy_class = energy_class or None
            prop.owner_id = owner_id or None
            prop.purchase_price = purchase_price or None
            prop.ancillary_costs = ancillary or None
            prop.purchase_date = purchase_date or None
            prop.living_space = living_space or None
            prop.plot_size = plot_size or None
            store.save_property(prop)
            st.success("Saved.")

    col_a, col_b = st.columns(2)
    col_a.metric("Units", prop.unit_count())
    col_b.metric("Total Area", f"{prop.total_unit_area():g} m²")

    if st.button("🗑️ Delete property", key=f"delete_{prop.id}"):
        store.remove("properties", prop.id)
        st.session_state.pop("selected_property", None)
        st.rerun()


def render_units(store: PortfolioStore, prop: Property):
    """Unit table editor."""
    tenant_options = [VACANT] + [tenant_label(t) for t in store.tenants]
    edited = st.data_editor(
        units_to_frame(prop.units, store.tenants),
        num_rows="dynamic",
        use_container_width=True,
        hide_index=True,
        key=f"units_editor_{prop.id}",
        column_config={
            "id": None,
            "Type": st.column_config.SelectboxColumn("Type", options=[t.value for t in UnitType]),
            "Size (m²)": st.column_config.NumberColumn("Size (m²)", min_value=0.0),
            "Cold Rent": st.column_config.NumberColumn("Cold Rent", min_value=0.0, format="%.2f"),
            "Prepayment": st.column_config.NumberColumn("Prepayment", min_value=0.0, format="%.2f"),
            "Tenant": st.column_config.SelectboxColumn("Tenant", options=tenant_options),
        },
    )
    if st.button("Save units", type="primary", key=f"save_units_{prop.id}"):
        prop.units = units_from_frame(edited, prop.units, store.tenants)
        store.save_property(prop)
        st.success(f"Saved {prop.unit_count()} units.")
        st.rerun()


def render_costs(store: PortfolioStore, prop: Property):
    """Utility-relevant building costs and their allocation across units."""
    st.caption("Building costs marked here are allocated to the units in the utility statements.")
    costs = [t for t in store.property_transactions(prop.id) if t.is_utility_relevant]
    edited = st.data_editor(
        costs_to_frame(costs),
        num_rows="dynamic",
        use_container_width=True,
        hide_index=True,
        key=f"costs_editor_{prop.id}",
        column_config={
            "id": None,
            "Amount": st.column_config.NumberColumn("Amount", min_value=0.0, format="%.2f"),
        },
    )
    if st.button("Save costs", type="primary", key=f"save_costs_{prop.id}"):
        others = [t for t in store.property_transactions(prop.id) if not t.is_utility_relevant]
        store.save_property(prop, transactions=others + costs_from_frame(edited, prop.id))
        st.success("Costs saved.")
        st.rerun()

    st.markdown("#### Allocation by Area")
    allocation = allocate_building(prop, store.transactions)
    if allocation.empty:
        st.info("Add units to see the allocation.")
    else:
        st.dataframe(allocation, use_container_width=True)


def render_meters(readings: List[MeterReading], key_prefix: str, on_save):
    """Meter reading editor shared by building and unit meters."""
    frame = pd.DataFrame(
        [
            {"id": r.id, "Type": r.type.value, "Meter No.": r.serial_number,
             "Reading": r.value, "Unit": r.unit, "Date": r.date}
            for r in readings
        ],
        columns=["id", "Type", "Meter No.", "Reading", "Unit", "Date"],
    )
    edited = st.data_editor(
        frame,
        num_rows="dynamic",
        use_container_width=True,
        hide_index=True,
        key=f"{key_prefix}_meters",
        column_config={
            "id": None,
            "Type": st.column_config.SelectboxColumn("Type", options=[t.value for t in MeterType]),
            "Unit": st.column_config.TextColumn("Unit", disabled=True),
        },
    )
    if st.button("Save readings", key=f"{key_prefix}_save_meters"):
        readings[:] = readings_from_frame(edited)
        on_save()
        st.success("Readings saved.")
        st.rerun()

    consumption = meter_consumption(readings)
    if consumption:
        st.markdown("**Consumption (latest − first reading)**")
        st.dataframe(
            pd.DataFrame({"Meter": list(consumption), "Consumption": list(consumption.values())}),
            hide_index=True,
        )


def render_loans(store: PortfolioStore, prop: Property):
    """Loan table editor."""
    frame = loans_frame(prop)
    frame.insert(0, "id", [loan.id for loan in prop.loans])
    edited = st.data_editor(
        frame,
        num_rows="dynamic",
        use_container_width=True,
        hide_index=True,
        key=f"loans_editor_{prop.id}",
        column_config={
            "id": None,
            "Months Left": st.column_config.NumberColumn("Months Left", disabled=True),
            "Installment": st.column_config.NumberColumn(
                "Installment", help="Leave 0 to calculate from rate and repayment"),
        },
    )
    if st.button("Save loans", type="primary", key=f"save_loans_{prop.id}"):
        prop.loans = loans_from_frame(edited)
        store.save_property(prop)
        store.sync_loan_reminders()
        st.success("Loans saved.")
        st.rerun()

    st.caption("Refinancing estimates are in the Investor view.")


def render_documents(docs: List[PropertyDocument], key_prefix: str, category: str, on_save):
    """Upload, download, AI-analyse and delete documents."""
    uploads = st.file_uploader("Upload documents", accept_multiple_files=True, key=f"{key_prefix}_upload")
    if uploads and st.button("Store uploads", key=f"{key_prefix}_store"):
        for upload in uploads:
            docs.append(document_from_upload(upload.name, upload.getvalue(), upload.type, category))
        on_save()
        st.rerun()

    for doc in list(docs):
        with st.container(border=True):
            col1, col2, col3, col4 = st.columns([4, 1, 1, 1])
            col1.markdown(f"**{doc.name}**  \n{doc.category} · {doc.upload_date} · {doc.file_size}")
            col2.download_button("⬇️", data=document_bytes(doc), file_name=doc.name,
                                 mime=doc.mime_type, key=f"{key_prefix}_dl_{doc.id}")
            if col3.button("🤖", key=f"{key_prefix}_ai_{doc.id}", help="Analyse lease with AI"):
                try:
                    with st.spinner("Analysing contract..."):
                        doc.analysis = get_assistant().analyze_contract(doc.file_data, doc.mime_type)
                    on_save()
                except PropDeskError as exc:
                    st.error(str(exc))
            if col4.button("🗑️", key=f"{key_prefix}_del_{doc.id}"):
                docs.remove(doc)
                on_save()
                st.rerun()

            if doc.analysis:
                analysis = doc.analysis
                st.markdown(f"_{analysis.summary}_")
                facts = {
                    "Lease start": analysis.lease_start,
                    "Lease end": analysis.lease_end,
                    "Rent": analysis.rent_amount,
                    "Notice period": analysis.notice_period,
                }
                st.write({k: v for k, v in facts.items() if v})
                if analysis.unusual_clauses:
                    st.markdown("**Unusual clauses**\n" + "\n".join(f"- {c}" for c in analysis.unusual_clauses))
                if analysis.risks:
                    st.markdown("**Risks**\n" + "\n".join(f"- {r}" for r in analysis.risks))


def render_statement(store: PortfolioStore, prop: Property, unit: Unit):
    """Utility statement of one unit with editable breakdown and downloads."""
    tenant = store.tenant_for_unit(unit)
    owner = store.owner_for_property(prop)
    key = f"stmt_{unit.id}"

    col1, col2, col3 = st.columns(3)
    with col1:
        year = st.number_input("Billing Year", min_value=2000, max_value=2100,
                               value=config.DEFAULT_BILLING_YEAR, step=1, key=f"{key}_year")
        year_only = st.checkbox("Only bookings dated in this year", key=f"{key}_year_only")
    with col2:
        total_space = st.number_input("Building Area (m²)", min_value=0.0,
                                      value=float(prop.total_unit_area() or config.DEFAULT_TOTAL_SPACE),
                                      key=f"{key}_total")
    with col3:
        unit_size = st.number_input("Unit Area (m²)", min_value=0.0,
                                    value=float(unit.size or config.DEFAULT_UNIT_SIZE),
                                    key=f"{key}_size")

    billing_year = int(year) if year_only else None
    costs = [t for t in store.property_transactions(prop.id) if t.is_utility_relevant]
    if billing_year:
        costs = [t for t in costs if str(t.date).startswith(str(billing_year))]

    edited = st.data_editor(
        breakdown_to_frame(costs),
        use_container_width=True,
        hide_index=True,
        key=f"{key}_breakdown_{billing_year}",
        column_config={
            "transaction_id": None,
            "Cost Type": st.column_config.TextColumn("Cost Type", disabled=True),
            "Total": st.column_config.NumberColumn("Total", min_value=0.0, format="%.2f"),
            "Key": st.column_config.SelectboxColumn(
                "Key", options=[k.value for k in AllocationKey], required=True),
        },
    )
    keys, totals = breakdown_overrides(edited)
    statement = build_statement(prop, unit, store.transactions, year=billing_year,
                                total_space=total_space, unit_size=unit_size, keys=keys)
    for transaction_id, total in totals.items():
        statement = statement.with_item(transaction_id, total=total)
    if not year_only:
        statement.year = int(year)

    st.dataframe(statement.to_frame(), use_container_width=True, hide_index=True)
    col_a, col_b, col_c = st.columns(3)
    col_a.metric("Tenant Share", format_currency(statement.total_share))
    col_b.metric("Prepayments (12 × monthly)", format_currency(statement.annual_prepayment))
    col_c.metric(statement.outcome_label, format_currency(abs(statement.balance)),
                 delta="owed by tenant" if statement.is_additional_payment else "refund to tenant",
                 delta_color="inverse" if statement.is_additional_payment else "normal")

    with st.expander("✉️ Statement letter"):
        intro = st.text_area("Introduction", value=DEFAULT_INTRO, key=f"{key}_intro")
        closing = st.text_area("Closing", value=default_closing(owner), key=f"{key}_closing")
        html = statement_letter_html(statement, prop, unit, tenant, owner, intro=intro, closing=closing)
        dl1, dl2 = st.columns(2)
        dl1.download_button("Download Word letter", data=html,
                            file_name=statement_filename(tenant, statement.year, "doc"),
                            mime="application/msword", key=f"{key}_doc")
        dl2.download_button("Download CSV", data=statement.to_csv(),
                            file_name=statement_filename(tenant, statement.year, "csv"),
                            mime="text/csv", key=f"{key}_csv")


def render_unit_detail(store: PortfolioStore, prop: Property):
    """Pick a unit and show its documents, meters and utility statement."""
    if not prop.units:
        st.info("This property has no units yet.")
        return
    unit_ids = [u.id for u in prop.units]
    numbers = {u.id: u.number for u in prop.units}
    unit = prop.find_unit(st.selectbox("Unit", unit_ids, format_func=numbers.get, key=f"unit_pick_{prop.id}"))
    tenant = store.tenant_for_unit(unit)

    col1, col2, col3 = st.columns(3)
    col1.metric("Tenant", tenant.full_name() if tenant else "Vacant")
    col2.metric("Warm Rent", format_currency(unit.warm_rent))
    col3.metric("Area", f"{unit.size:g} m²")

    def save():
        store.save_property(prop)

    tab_stmt, tab_docs, tab_meters = st.tabs(["🧮 Utility Statement", "📁 Documents", "🔢 Meters"])
    with tab_stmt:
        render_statement(store, prop, unit)
    with tab_docs:
        render_documents(unit.documents, f"unit_{unit.id}", "Unit", save)
    with tab_meters:
        render_meters(unit.meter_readings, f"unit_{unit.id}", save)

# -----------------------------------------------------------------------------
# Main Render Function (Required by framework)
# -----------------------------------------------------------------------------
def render():
    """Main entry point for the property editor."""
    st.title("🏘️ Properties")
    store = get_store()

    render_new_property(store)
    if not store.properties:
        st.info("No properties yet. Add one above.")
        return

    ids = [p.id for p in store.properties]
    names = {p.id: f"{p.name} · {p.address}" for p in store.properties}
    current = st.session_state.get("selected_property")
    prop = store.get("properties", st.selectbox(
        "Property", ids, index=ids.index(current) if current in ids else 0,
        format_func=names.get,
    ))
    st.session_state["selected_property"] = prop.id
    st.markdown("---")

    tabs = st.tabs(["🏠 Master Data", "🚪 Units", "🧾 Building Costs", "🔢 Building Meters",
                    "🏦 Loans", "📁 Documents"])
    with tabs[0]:
        render_general(store, prop)
    with tabs[1]:
        render_units(store, prop)
        st.markdown("---")
        render_unit_detail(store, prop)
    with tabs[2]:
        render_costs(store, prop)
    with tabs[3]:
        render_meters(prop.meter_readings, f"house_{prop.id}", lambda: store.save_property(prop))
    with tabs[4]:
        render_loans(store, prop)
    with tabs[5]:
        render_documents(prop.documents, f"prop_{prop.id}", "Property", lambda: store.save_property(prop))
