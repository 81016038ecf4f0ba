import pytest

from propdesk import config
from propdesk.bookkeeping import (
    build_pending,
    commit_pending,
    create_transaction,
    detect_separator,
    guess_mapping,
    parse_amount,
    parse_bank_csv,
    totals,
    transactions_frame,
)
from propdesk.errors import BankImportError, ValidationError
from propdesk.models import Transaction, TransactionType

GERMAN_CSV = (
    "Buchungstag;Verwendungszweck;Betrag\n"
    "01.03.2024;Miete März Wohnung 1;\"850,00\"\n"
    "05.03.2024;Handwerker Rechnung;-1.120,50\n"
)

ENGLISH_CSV = (
    "Date,Description,Amount\n"
    "2024-03-01,Rent unit 1,850.00\n"
    "2024-03-05,Plumber,-120.50\n"
    "2024-03-06,Broken row,n/a\n"
)


class TestBookings:

    def test_create_transaction(self):
        t = create_transaction("p1", TransactionType.INCOME, "Cold Rent", 850, " March rent ", "2024-03-01")
        assert t.id.startswith("tx")
        assert t.amount == 850.0
        assert t.description == "March rent"
        assert t.date == "2024-03-01"

    @pytest.mark.parametrize("property_id, amount, description", [
        ("", 100, "Rent"),
        ("p1", 0, "Rent"),
        ("p1", -5, "Rent"),
        ("p1", 100, "   "),
    ])
    def test_create_transaction_rejects_bad_input(self, property_id, amount, description):
        with pytest.raises(ValidationError):
            create_transaction(property_id, TransactionType.EXPENSE, "Insurance", amount, description)

    def test_totals(self, store):
        store.transactions.append(create_transaction(
            "p1", TransactionType.INCOME, "Cold Rent", 850, "Rent", "2024-03-01"))
        assert totals(store.transactions) == {"income": 850, "expenses": 1200, "net": -350}

    def test_journal_is_newest_first_with_signed_amounts(self, store):
        store.transactions.append(create_transaction(
            "p1", TransactionType.INCOME, "Cold Rent", 850, "Rent", "2024-03-02"))
        df = transactions_frame(store.transactions, store.properties)
        assert list(df["Date"]) == ["2024-03-02", "2024-03-01", "2024-02-15"]
        assert list(df["Amount"]) == [850, -720, -480]
        assert set(df["Property"]) == {"Sunset Residence"}


class TestAmounts:

    @pytest.mark.parametrize("raw, expected", [
        ("-1.234,56", -1234.56),
        ("1,234.56", 1234.56),
        ("12,50", 12.5),
        ("+45,00 €", 45.0),
        ("850.00", 850.0),
    ])
    def test_parse_amount(self, raw, expected):
        assert parse_amount(raw) == pytest.approx(expected)

    def test_parse_amount_rejects_text(self):
        with pytest.raises(ValueError):
            parse_amount("n/a")

    def test_decimal_comma_fixes_the_notation(self):
        assert parse_amount("1.234", decimal_comma=True) == 1234.0
        assert parse_amount("1,234", decimal_comma=False) == 1234.0
        assert parse_amount("1.234") == pytest.approx(1.234)


class TestBankImport:

    def test_detect_separator(self):
        assert detect_separator("Datum;Betrag") == ";"
        assert detect_separator("Date,Amount") == ","

    def test_german_export(self):
        headers, rows = parse_bank_csv(GERMAN_CSV)
        assert headers == ["Buchungstag", "Verwendungszweck", "Betrag"]
        mapping = guess_mapping(headers)
        assert mapping == {"date": "Buchungstag", "amount": "Betrag", "description": "Verwendungszweck"}

        income, expense = build_pending(rows, mapping)
        assert income.type is TransactionType.INCOME
        assert income.amount == 850.0
        assert income.date == "2024-03-01"
        assert income.category == config.IMPORT_INCOME_CATEGORY
        assert income.property_id == ""
        assert expense.type is TransactionType.EXPENSE
        assert expense.amount == pytest.approx(1120.5)
        assert expense.date == "2024-03-05"
        assert expense.category == config.IMPORT_EXPENSE_CATEGORY

    def test_english_export_skips_unreadable_amounts(self):
        headers, rows = parse_bank_csv(ENGLISH_CSV)
        pending = build_pending(rows, guess_mapping(headers))
        assert [t.description for t in pending] == ["Rent unit 1", "Plumber"]
        assert pending[1].amount == pytest.approx(120.5)

    def test_semicolon_file_reads_thousands_separator(self):
        headers, rows = parse_bank_csv("Datum;Zweck;Betrag\n01.04.2024;Kaution;1.234\n")
        (deposit,) = build_pending(rows, guess_mapping(headers))
        assert deposit.amount == 1234.0

    def test_comma_file_reads_decimal_point(self):
        headers, rows = parse_bank_csv("Date,Description,Amount\n2024-04-01,Fee,1.234\n")
        (fee,) = build_pending(rows, guess_mapping(headers))
        assert fee.amount == pytest.approx(1.234)

    def test_unmatched_headers(self):
        assert guess_mapping(["Foo", "Bar"]) == {"date": "", "amount": "", "description": ""}

    def test_file_without_rows(self):
        with pytest.raises(BankImportError):
            parse_bank_csv("Datum;Betrag;Zweck\n")

    def test_missing_mapping(self):
        headers, rows = parse_bank_csv(ENGLISH_CSV)
        with pytest.raises(BankImportError):
            build_pending(rows, {"date": "Date", "amount": "Amount", "description": ""})

    def test_commit_keeps_assigned_bookings(self):
        headers, rows = parse_bank_csv(ENGLISH_CSV)
        pending = build_pending(rows, guess_mapping(headers))
        pending[0].property_id = "p1"
        assert commit_pending(pending) == [pending[0]]

    def test_commit_requires_an_assignment(self):
        pending = [Transaction(id="x", property_id="", type=TransactionType.INCOME,
                               category="Cold Rent", amount=1, date="2024-01-01")]
        with pytest.raises(BankImportError):
            commit_pending(pending)
