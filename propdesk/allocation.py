"""
Utility Cost Allocation
Author: Bryce Fountain | Skoll.dev

Splits shared building expenses across units and reconciles a tenant's
utility prepayments against their share.

    share   = category_total * unit_size / total_space     (area key)
    share   = category_total / unit_count                  (unit key)
    balance = sum(shares) - monthly_prepayment * 12

A balance >= 0 is an additional payment owed by the tenant, a negative
balance is a credit.
"""
import logging
from dataclasses import dataclass, field, replace
from typing import Dict, List, Optional

import numpy as np
import pandas as pd

from propdesk import config
from propdesk.models import AllocationKey, Property, Transaction, Unit

logger = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# Share arithmetic
# -----------------------------------------------------------------------------
def round_cents(value):
    """Round half-up to two decimals; works on floats and numpy arrays."""
    rounded = np.floor(np.asarray(value, dtype=float) * 100 + 0.5) / 100
    if np.ndim(rounded) == 0:
        return float(rounded)
    return rounded


def item_share(total: float, key: AllocationKey, unit_size: float,
               total_space: float, unit_count: int) -> float:
    """
    Calculate one unit's share of a building cost.

    Args:
        total: Amount of the cost category for the whole building
        key: Allocation key (by area or equal per unit)
        unit_size: Floor area of the unit in m²
        total_space: Floor area of the building in m²
        unit_count: Number of units in the building

    Returns:
        Share rounded to cents
    """
    key = AllocationKey(key)
    if key is AllocationKey.AREA:
        if total_space == 0:
            return 0.0
        return round_cents(total * unit_size / total_space)
    return round_cents(total / (unit_count or 1))


def key_label(key: AllocationKey, unit_size: float, total_space: float, unit_count: int) -> str:
    """Human readable allocation key, e.g. '65 / 110 m²' or '1 / 2 units'."""
    if AllocationKey(key) is AllocationKey.AREA:
        return f"{unit_size:g} / {total_space:g} m²"
    return f"1 / {unit_count} units"


def utility_costs(transactions: List[Transaction], property_id: str,
                  year: Optional[int] = None) -> List[Transaction]:
    """Utility-relevant bookings of one property, optionally for a billing year only."""
    costs = [
        t for t in transactions
        if t.property_id == property_id and t.is_utility_relevant
    ]
    if year is not None:
        costs = [t for t in costs if str(t.date).startswith(str(year))]
    return costs


# -----------------------------------------------------------------------------
# Statement
# -----------------------------------------------------------------------------
@dataclass
class BreakdownItem:
    """One cost category line of a utility statement."""
    transaction_id: str
    category: str
    total: float
    key: AllocationKey
    key_label: str
    share: float


@dataclass
class UtilityStatement:
    """A unit's annual utility cost statement."""
    property_id: str
    unit_id: str
    year: Optional[int]
    unit_size: float
    total_space: float
    unit_count: int
    monthly_prepayment: float
    items: List[BreakdownItem] = field(default_factory=list)

    @property
    def total_share(self) -> float:
        return round_cents(sum(item.share for item in self.items))

    @property
    def annual_prepayment(self) -> float:
        return round_cents(self.monthly_prepayment * 12)

    @property
    def balance(self) -> float:
        return round_cents(self.total_share - self.annual_prepayment)

    @property
    def is_additional_payment(self) -> bool:
        return self.balance >= 0

    @property
    def outcome_label(self) -> str:
        return "Additional payment" if self.is_additional_payment else "Credit"

    def _make_item(self, transaction_id: str, category: str, total: float,
                   key: AllocationKey) -> BreakdownItem:
        key = AllocationKey(key)
        return BreakdownItem(
            transaction_id=transaction_id,
            category=category,
            total=total,
            key=key,
            key_label=key_label(key, self.unit_size, self.total_space, self.unit_count),
            share=item_share(total, key, self.unit_size, self.total_space, self.unit_count),
        )

    def with_item(self, transaction_id: str, total: float = None,
                  key: AllocationKey = None, category: str = None) -> "UtilityStatement":
        """Return a copy with one line edited and its share recalculated."""
        items = []
        for item in self.items:
            if item.transaction_id == transaction_id:
                item = self._make_item(
                    transaction_id,
                    category if category is not None else item.category,
                    total if total is not None else item.total,
                    key if key is not None else item.key,
                )
            items.append(item)
        return replace(self, items=items)

    def to_frame(self) -> pd.DataFrame:
        """Breakdown table as shown in the statement letter."""
        return pd.DataFrame(
            [
                {
                    "Cost Type": item.category,
                    "Total": item.total,
                    "Key": item.key_label,
                    "Share": item.share,
                }
                for item in self.items
            ],
            columns=["Cost Type", "Total", "Key", "Share"],
        )

    def to_csv(self) -> str:
        """Statement as CSV, with the reconciliation rows appended."""
        df = self.to_frame()
        summary = pd.DataFrame(
            [
                {"Cost Type": "Total share", "Share": self.total_share},
                {"Cost Type": "Prepayments made", "Share": -self.annual_prepayment},
                {"Cost Type": self.outcome_label, "Share": abs(self.balance)},
            ]
        )
        return pd.concat([df, summary], ignore_index=True).to_csv(index=False)


def build_statement(prop: Property, unit: Unit, transactions: List[Transaction],
                    year: Optional[int] = None, total_space: float = None,
                    unit_size: float = None,
                    keys: Optional[Dict[str, AllocationKey]] = None) -> UtilityStatement:
    """
    Build the utility statement of one unit.

    Args:
        prop: Property the unit belongs to
        unit: Unit to bill
        transactions: All bookings (filtered to the property's utility costs)
        year: Billing year; None uses every utility-relevant booking
        total_space: Building area override, defaults to the summed unit areas
        unit_size: Unit area override, defaults to the unit's size
        keys: Allocation key per transaction id, defaults to area for all

    Returns:
        UtilityStatement
    """
    if total_space is None:
        total_space = prop.total_unit_area() or config.DEFAULT_TOTAL_SPACE
    if unit_size is None:
        unit_size = unit.size or config.DEFAULT_UNIT_SIZE
    keys = keys or {}

    statement = UtilityStatement(
        property_id=prop.id,
        unit_id=unit.id,
        year=year,
        unit_size=unit_size,
        total_space=total_space,
        unit_count=prop.unit_count(),
        monthly_prepayment=unit.utility_prepayment,
    )
    statement.items = [
        statement._make_item(t.id, t.category, t.amount, keys.get(t.id, AllocationKey.AREA))
        for t in utility_costs(transactions, prop.id, year)
    ]
    logger.debug("Statement for unit %s: %d items, balance %.2f",
                 unit.id, len(statement.items), statement.balance)
    return statement


def allocate_building(prop: Property, transactions: List[Transaction],
                      year: Optional[int] = None,
                      keys: Optional[Dict[str, AllocationKey]] = None) -> pd.DataFrame:
    """
    Allocate every utility cost of a building across all of its units.

    Returns a DataFrame indexed by unit number with one column per cost
    category, followed by 'Total Share', 'Prepayments' and 'Balance'.
    """
    keys = keys or {}
    units = prop.units
    if not units:
        return pd.DataFrame()

    sizes = np.array([unit.size for unit in units], dtype=float)
    total_space = sizes.sum()
    unit_count = len(units)

    columns = {}
    for t in utility_costs(transactions, prop.id, year):
        key = AllocationKey(keys.get(t.id, AllocationKey.AREA))
        if key is AllocationKey.AREA:
            shares = sizes * t.amount / total_space if total_space else np.zeros(unit_count)
        else:
            shares = np.full(unit_count, t.amount / unit_count)
        # several bookings can share a category
        columns[t.category] = columns.get(t.category, 0) + round_cents(shares)

    df = pd.DataFrame(columns, index=[unit.number for unit in units])
    df.index.name = "Unit"
    df["Total Share"] = round_cents(df.sum(axis=1).to_numpy())
    df["Prepayments"] = round_cents(np.array([unit.utility_prepayment * 12 for unit in units]))
    df["Balance"] = round_cents((df["Total Share"] - df["Prepayments"]).to_numpy())
    return df
