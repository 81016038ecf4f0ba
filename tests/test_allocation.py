"""
Utility cost allocation tests.

Demo building: 110 m² (units of 65 m² and 45 m²), property tax 480 and
insurance 720, unit u1 prepays 150 per month.
"""
import pytest

from propdesk.allocation import (
    allocate_building,
    build_statement,
    item_share,
    key_label,
    round_cents,
    utility_costs,
)
from propdesk.models import AllocationKey, Property, Transaction, TransactionType, Unit


class TestShares:

    def test_area_key(self):
        assert item_share(1000, AllocationKey.AREA, 65, 110, 2) == 590.91

    def test_unit_key(self):
        assert item_share(1000, AllocationKey.UNIT, 65, 110, 2) == 500.0

    def test_key_accepts_plain_values(self):
        assert item_share(1000, "unit", 65, 110, 4) == 250.0

    def test_zero_total_space_gives_no_area_share(self):
        assert item_share(1000, AllocationKey.AREA, 65, 0, 2) == 0.0

    def test_unit_key_ignores_total_space(self):
        assert item_share(1000, AllocationKey.UNIT, 65, 0, 2) == 500.0

    def test_no_units_counts_as_one(self):
        assert item_share(300, AllocationKey.UNIT, 65, 110, 0) == 300.0

    def test_rounding_is_half_up(self):
        assert round_cents(0.125) == 0.13
        assert round_cents(-0.125) == -0.12

    def test_round_cents_on_arrays(self):
        assert list(round_cents([1.005001, 2.2])) == [1.01, 2.2]

    def test_key_labels(self):
        assert key_label(AllocationKey.AREA, 65, 110, 2) == "65 / 110 m²"
        assert key_label(AllocationKey.UNIT, 65, 110, 2) == "1 / 2 units"


class TestUtilityCosts:

    def test_only_utility_relevant_bookings_of_the_property(self, store):
        store.transactions.append(Transaction(
            id="tx3", property_id="p1", type=TransactionType.EXPENSE,
            category="Maintenance / Repair", amount=90, date="2024-04-01"))
        store.transactions.append(Transaction(
            id="tx4", property_id="p2", type=TransactionType.EXPENSE,
            category="Insurance", amount=500, date="2024-04-01", is_utility_relevant=True))
        ids = [t.id for t in utility_costs(store.transactions, "p1")]
        assert ids == ["tx1", "tx2"]

    def test_year_filter(self, store):
        assert utility_costs(store.transactions, "p1", 2024)
        assert utility_costs(store.transactions, "p1", 2023) == []


class TestStatement:

    def test_demo_unit_statement(self, store, prop):
        statement = build_statement(prop, prop.find_unit("u1"), store.transactions)

        assert [item.share for item in statement.items] == [283.64, 425.45]
        assert statement.total_share == pytest.approx(709.09)
        assert statement.annual_prepayment == 1800.0
        assert statement.balance == pytest.approx(-1090.91)
        assert not statement.is_additional_payment
        assert statement.outcome_label == "Credit"

    def test_additional_payment_when_share_exceeds_prepayments(self, store, prop):
        unit = prop.find_unit("u1")
        unit.utility_prepayment = 50
        statement = build_statement(prop, unit, store.transactions)
        assert statement.balance == pytest.approx(109.09)
        assert statement.outcome_label == "Additional payment"

    def test_zero_balance_is_additional_payment(self):
        prop = Property(id="p", name="P", address="A", units=[Unit(id="u", number="1", size=50)])
        statement = build_statement(prop, prop.units[0], [])
        assert statement.balance == 0
        assert statement.is_additional_payment

    def test_year_without_bookings(self, store, prop):
        statement = build_statement(prop, prop.find_unit("u1"), store.transactions, year=2023)
        assert statement.items == []
        assert statement.balance == -1800.0

    def test_area_overrides(self, store, prop):
        statement = build_statement(prop, prop.find_unit("u1"), store.transactions,
                                    total_space=100, unit_size=50)
        assert statement.total_share == 600.0

    def test_per_item_unit_key(self, store, prop):
        statement = build_statement(prop, prop.find_unit("u1"), store.transactions,
                                    keys={"tx1": AllocationKey.UNIT})
        assert statement.items[0].share == 240.0
        assert statement.items[0].key_label == "1 / 2 units"
        assert statement.total_share == pytest.approx(665.45)

    def test_with_item_recalculates_share_on_a_copy(self, store, prop):
        statement = build_statement(prop, prop.find_unit("u1"), store.transactions)
        edited = statement.with_item("tx2", total=1100)
        assert edited.items[1].share == 650.0
        assert statement.items[1].share == 425.45

    def test_csv_contains_summary_rows(self, store, prop):
        csv = build_statement(prop, prop.find_unit("u1"), store.transactions).to_csv()
        assert csv.splitlines()[0] == "Cost Type,Total,Key,Share"
        assert "Property Tax" in csv
        assert "Prepayments made" in csv
        assert "Credit" in csv

    def test_units_without_size_fall_back_to_default_areas(self):
        prop = Property(id="p", name="P", address="A", units=[
            Unit(id="u1", number="1", size=0),
            Unit(id="u2", number="2", size=0),
        ])
        cost = Transaction(id="tx", property_id="p", type=TransactionType.EXPENSE, category="Insurance",
                           amount=1000, date="2024-01-01", is_utility_relevant=True)
        statement = build_statement(prop, prop.units[0], [cost])
        assert statement.total_space == 100
        assert statement.unit_size == 50
        assert statement.items[0].share == 500.0
        assert statement.items[0].key_label == "50 / 100 m²"


class TestAllocateBuilding:

    def test_every_unit_gets_a_row(self, store, prop):
        df = allocate_building(prop, store.transactions)
        assert list(df.index) == ["Ground floor left", "1st floor right"]
        assert df.loc["Ground floor left", "Total Share"] == pytest.approx(709.09)
        assert df.loc["1st floor right", "Total Share"] == pytest.approx(490.91)
        assert df.loc["1st floor right", "Prepayments"] == 1320.0
        assert df.loc["1st floor right", "Balance"] == pytest.approx(-829.09)

    def test_unit_key_splits_evenly(self, store, prop):
        df = allocate_building(prop, store.transactions, keys={"tx1": AllocationKey.UNIT})
        assert list(df["Property Tax"]) == [240.0, 240.0]

    def test_building_without_units(self, store):
        empty = Property(id="p9", name="Empty", address="Nowhere 1")
        assert allocate_building(empty, store.transactions).empty
