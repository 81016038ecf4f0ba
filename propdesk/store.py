"""
Portfolio Store
Author: Bryce Fountain | Skoll.dev

In-memory collections of all records, kept in Streamlit session state and
saved/loaded as JSON.
"""
import json
import logging
from dataclasses import dataclass, field
from typing import List, Optional

import streamlit as st

from propdesk.errors import RecordNotFound, ValidationError
from propdesk.financing import loan_expiry_reminders
from propdesk.models import (
    Handyman,
    HouseType,
    Loan,
    Owner,
    Property,
    Reminder,
    Stakeholder,
    Template,
    Tenant,
    Transaction,
    TransactionType,
    Unit,
)

logger = logging.getLogger(__name__)

# Collection name -> record class
RECORD_TYPES = {
    "properties": Property,
    "tenants": Tenant,
    "transactions": Transaction,
    "reminders": Reminder,
    "handymen": Handyman,
    "owners": Owner,
    "stakeholders": Stakeholder,
    "templates": Template,
}

SESSION_KEY = "portfolio_store"


@dataclass
class PortfolioStore:
    properties: List[Property] = field(default_factory=list)
    tenants: List[Tenant] = field(default_factory=list)
    transactions: List[Transaction] = field(default_factory=list)
    reminders: List[Reminder] = field(default_factory=list)
    handymen: List[Handyman] = field(default_factory=list)
    owners: List[Owner] = field(default_factory=list)
    stakeholders: List[Stakeholder] = field(default_factory=list)
    templates: List[Template] = field(default_factory=list)

    # -------------------------------------------------------------------------
    # Generic CRUD
    # -------------------------------------------------------------------------
    def _collection(self, kind: str) -> list:
        if kind not in RECORD_TYPES:
            raise ValueError(f"Unknown collection: {kind}")
        return getattr(self, kind)

    def add(self, kind: str, record):
        collection = self._collection(kind)
        if not isinstance(record, RECORD_TYPES[kind]):
            raise ValidationError(f"Expected {RECORD_TYPES[kind].__name__} for {kind}")
        if any(existing.id == record.id for existing in collection):
            raise ValidationError(f"Duplicate id in {kind}: {record.id}")
        collection.append(record)
        logger.info("Added %s %s", kind, record.id)
        return record

    def get(self, kind: str, record_id: str):
        for record in self._collection(kind):
            if record.id == record_id:
                return record
        raise RecordNotFound(f"No record {record_id!r} in {kind}")

    def find(self, kind: str, record_id: Optional[str]):
        """Like get(), but returns None for unknown or empty ids."""
        if not record_id:
            return None
        try:
            return self.get(kind, record_id)
        except RecordNotFound:
            return None

    def replace(self, kind: str, record):
        collection = self._collection(kind)
        for index, existing in enumerate(collection):
            if existing.id == record.id:
                collection[index] = record
                return record
        raise RecordNotFound(f"No record {record.id!r} in {kind}")

    def remove(self, kind: str, record_id: str):
        record = self.get(kind, record_id)
        self._collection(kind).remove(record)
        logger.info("Removed %s %s", kind, record_id)
        if kind == "tenants":
            for prop in self.properties:
                for unit in prop.units:
                    if unit.tenant_id == record_id:
                        unit.tenant_id = None
        elif kind == "properties":
            self.transactions = [t for t in self.transactions if t.property_id != record_id]
        return record

    # -------------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------------
    def save_property(self, prop: Property, transactions: Optional[List[Transaction]] = None):
        """
        Store an edited property.

        Args:
            prop: The edited property (added if new)
            transactions: When given, replaces all bookings of this property
        """
        if self.find("properties", prop.id):
            self.replace("properties", prop)
        else:
            self.add("properties", prop)
        if transactions is not None:
            others = [t for t in self.transactions if t.property_id != prop.id]
            own = [t for t in transactions if t.property_id == prop.id]
            self.transactions = others + own
        return prop

    def property_transactions(self, property_id: str) -> List[Transaction]:
        return [t for t in self.transactions if t.property_id == property_id]

    def property_for_tenant(self, tenant_id: str) -> Optional[Property]:
        return next(
            (p for p in self.properties if any(u.tenant_id == tenant_id for u in p.units)),
            None,
        )

    def tenant_for_unit(self, unit: Unit) -> Optional[Tenant]:
        return self.find("tenants", unit.tenant_id)

    def owner_for_property(self, prop: Property) -> Optional[Owner]:
        return self.find("owners", prop.owner_id)

    def sync_loan_reminders(self, as_of=None) -> List[Reminder]:
        """Add loan-expiry reminders that are not tracked yet; returns the new ones."""
        known = {r.id for r in self.reminders}
        added = [r for r in loan_expiry_reminders(self.properties, as_of) if r.id not in known]
        self.reminders.extend(added)
        if added:
            logger.info("Added %d loan expiry reminders", len(added))
        return added

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------
    def to_dict(self) -> dict:
        return {
            kind: [record.to_dict() for record in self._collection(kind)]
            for kind in RECORD_TYPES
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2, ensure_ascii=False)

    @classmethod
    def from_dict(cls, data: dict) -> "PortfolioStore":
        if not isinstance(data, dict):
            raise ValidationError("Portfolio file must contain a JSON object.")
        kwargs = {}
        for kind, record_cls in RECORD_TYPES.items():
            items = data.get(kind, [])
            if not isinstance(items, list):
                raise ValidationError(f"'{kind}' must be a list.")
            try:
                kwargs[kind] = [record_cls.from_dict(item) for item in items]
            except (AttributeError, TypeError, ValueError) as exc:
                raise ValidationError(f"Invalid {kind} entry: {exc}") from exc
        return cls(**kwargs)

    @classmethod
    def from_json(cls, text: str) -> "PortfolioStore":
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ValidationError(f"Not a valid JSON file: {exc}") from exc
        return cls.from_dict(data)


def seed() -> PortfolioStore:
    """Demo portfolio shown on first start."""
    return PortfolioStore(
        properties=[
            Property(
                id="p1",
                name="Sunset Residence",
                type=HouseType.APARTMENT_BLOCK,
                address="Sonnenallee 15, 12047 Berlin",
                purchase_price=245000,
                purchase_date="2021-05-15",
                units=[
                    Unit(id="u1", number="Ground floor left", size=65, base_rent=850,
                         utility_prepayment=150, tenant_id="t1"),
                    Unit(id="u2", number="1st floor right", size=45, base_rent=600,
                         utility_prepayment=110),
                ],
                loans=[
                    Loan(id="l1", bank_name="DKB Bank", total_amount=200000,
                         current_balance=185000, interest_rate=1.25, repayment_rate=2.5,
                         fixed_until="2031-05-15", monthly_installment=625),
                ],
            )
        ],
        tenants=[
            Tenant(id="t1", first_name="Max", last_name="Mustermann", email="max@example.com",
                   phone="0170-1234567", start_date="2022-01-01"),
        ],
        transactions=[
            Transaction(id="tx1", property_id="p1", type=TransactionType.EXPENSE,
                        category="Property Tax", amount=480, date="2024-02-15",
                        description="Property tax 2024", is_utility_relevant=True),
            Transaction(id="tx2", property_id="p1", type=TransactionType.EXPENSE,
                        category="Insurance", amount=720, date="2024-03-01",
                        description="Building insurance", is_utility_relevant=True),
        ],
    )


def get_store() -> PortfolioStore:
    """Return the session's store, seeding it on first access."""
    if SESSION_KEY not in st.session_state:
        st.session_state[SESSION_KEY] = seed()
    return st.session_state[SESSION_KEY]


def set_store(store: PortfolioStore):
    st.session_state[SESSION_KEY] = store
