import json

import pytest

from propdesk.documents import add_meter_reading
from propdesk.errors import RecordNotFound, ValidationError
from propdesk.models import (
    ContractAnalysis,
    HouseType,
    MeterType,
    PropertyDocument,
    ReminderCategory,
    Tenant,
    Transaction,
    TransactionType,
)
from propdesk.store import PortfolioStore


class TestCrud:

    def test_add_and_get(self, store):
        tenant = Tenant(id="t2", first_name="Erika", last_name="Musterfrau")
        store.add("tenants", tenant)
        assert store.get("tenants", "t2") is tenant

    def test_duplicate_id(self, store):
        with pytest.raises(ValidationError):
            store.add("tenants", Tenant(id="t1", first_name="A", last_name="B"))

    def test_wrong_record_type(self, store):
        with pytest.raises(ValidationError):
            store.add("tenants", Transaction(id="x", property_id="p1", type=TransactionType.INCOME,
                                             category="Cold Rent", amount=1, date="2024-01-01"))

    def test_unknown_collection(self, store):
        with pytest.raises(ValueError):
            store.add("cars", object())

    def test_get_missing(self, store):
        with pytest.raises(RecordNotFound):
            store.get("properties", "nope")

    def test_find_returns_none(self, store):
        assert store.find("properties", "nope") is None
        assert store.find("properties", None) is None

    def test_replace_missing(self, store):
        with pytest.raises(RecordNotFound):
            store.replace("tenants", Tenant(id="t9", first_name="A", last_name="B"))

    def test_removing_tenant_vacates_unit(self, store, prop):
        store.remove("tenants", "t1")
        assert prop.find_unit("u1").tenant_id is None
        assert store.property_for_tenant("t1") is None

    def test_removing_property_drops_its_bookings(self, store):
        store.remove("properties", "p1")
        assert store.transactions == []

    def test_save_property_replaces_bookings(self, store, prop):
        new_cost = Transaction(id="tx7", property_id="p1", type=TransactionType.EXPENSE,
                               category="Water", amount=300, date="2024-06-01", is_utility_relevant=True)
        store.save_property(prop, transactions=[new_cost])
        assert [t.id for t in store.transactions] == ["tx7"]


class TestLookups:

    def test_tenant_lookups(self, store, prop):
        assert store.property_for_tenant("t1") is prop
        assert store.tenant_for_unit(prop.find_unit("u1")).last_name == "Mustermann"
        assert store.tenant_for_unit(prop.find_unit("u2")) is None
        assert store.owner_for_property(prop) is None

    def test_loan_reminders_are_added_once(self, store):
        added = store.sync_loan_reminders(as_of="2030-12-01")
        assert [r.id for r in added] == ["loan-l1"]
        assert store.sync_loan_reminders(as_of="2030-12-01") == []
        assert len(store.reminders) == 1


class TestPersistence:

    def test_json_round_trip_restores_types(self, store, prop):
        prop.documents.append(PropertyDocument(
            id="d1", name="lease.pdf", category="Unit", upload_date="2024-01-01",
            file_size="1 KB", file_data="data:application/pdf;base64,AAAA", mime_type="application/pdf",
            analysis=ContractAnalysis(summary="Standard lease", risks=["Short notice"]),
        ))
        store.sync_loan_reminders(as_of="2030-12-01")

        loaded = PortfolioStore.from_json(store.to_json())

        loaded_prop = loaded.get("properties", "p1")
        assert loaded_prop.type is HouseType.APARTMENT_BLOCK
        assert loaded_prop.units[0].size == 65
        assert loaded_prop.loans[0].fixed_until == "2031-05-15"
        assert loaded_prop.documents[0].analysis.risks == ["Short notice"]
        assert loaded.transactions[0].type is TransactionType.EXPENSE
        assert loaded.reminders[0].category is ReminderCategory.LOAN_EXPIRY

    def test_enums_are_saved_as_strings(self, store, prop):
        add_meter_reading(prop.meter_readings, MeterType.GAS, 1200.5, "G-1", "2024-01-01")
        data = json.loads(store.to_json())
        assert data["properties"][0]["type"] == "Apartment Block"
        assert data["properties"][0]["meter_readings"][0]["type"] == "Gas"

    def test_missing_collections_default_to_empty(self):
        loaded = PortfolioStore.from_json('{"tenants": []}')
        assert loaded.properties == []

    def test_unknown_fields_are_ignored(self):
        loaded = PortfolioStore.from_json(
            '{"tenants": [{"id": "t1", "first_name": "A", "last_name": "B", "legacy": 1}]}')
        assert loaded.tenants[0].full_name() == "A B"

    @pytest.mark.parametrize("text", [
        "not json",
        "[1, 2]",
        '{"tenants": {}}',
        '{"tenants": [{"id": "t1"}]}',
        '{"transactions": [{"id": "x", "property_id": "p", "type": "Gift", '
        '"category": "c", "amount": 1, "date": "2024-01-01"}]}',
    ])
    def test_invalid_files(self, text):
        with pytest.raises(ValidationError):
            PortfolioStore.from_json(text)
