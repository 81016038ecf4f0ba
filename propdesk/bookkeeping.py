"""
Bookkeeping & Bank Import
Author: Bryce Fountain | Skoll.dev

Manual bookings, income/expense totals and the bank statement CSV import
wizard (separator detection, column guessing, amount parsing).
"""
import logging
import re
from datetime import date
from io import StringIO
from typing import Dict, List, Optional, Tuple

import pandas as pd
from dateutil import parser as date_parser

from propdesk import config
from propdesk.errors import BankImportError, ValidationError
from propdesk.models import Property, Transaction, TransactionType, new_id

logger = logging.getLogger(__name__)

# Header keywords per mapping field, matched case-insensitively
MAPPING_KEYWORDS = {
    "date": ["datum", "tag", "date"],
    "amount": ["betrag", "umsatz", "wert", "amount"],
    "description": ["zweck", "text", "beschreibung", "description", "memo"],
}


# -----------------------------------------------------------------------------
# Bookings
# -----------------------------------------------------------------------------
def create_transaction(property_id: str, type: TransactionType, category: str,
                       amount: float, description: str, date_str: str = None,
                       unit_id: str = None, is_utility_relevant: bool = False) -> Transaction:
    """Validate form input and return a new booking."""
    if not property_id:
        raise ValidationError("Please select a property.")
    if not amount or amount <= 0:
        raise ValidationError("Amount must be greater than zero.")
    if not description or not description.strip():
        raise ValidationError("Please enter a description.")
    return Transaction(
        id=new_id("tx"),
        property_id=property_id,
        type=TransactionType(type),
        category=category,
        amount=float(amount),
        date=date_str or date.today().isoformat(),
        description=description.strip(),
        unit_id=unit_id,
        is_utility_relevant=is_utility_relevant,
    )


def totals(transactions: List[Transaction]) -> dict:
    """Sum income and expenses."""
    income = sum(t.amount for t in transactions if t.type is TransactionType.INCOME)
    expenses = sum(t.amount for t in transactions if t.type is TransactionType.EXPENSE)
    return {"income": income, "expenses": expenses, "net": income - expenses}


def transactions_frame(transactions: List[Transaction], properties: List[Property]) -> pd.DataFrame:
    """Booking journal with property names resolved, newest first."""
    names = {p.id: p.name for p in properties}
    df = pd.DataFrame(
        [
            {
                "Date": t.date,
                "Property": names.get(t.property_id, "-"),
                "Type": t.type.value,
                "Category": t.category,
                "Description": t.description,
                "Amount": t.amount if t.type is TransactionType.INCOME else -t.amount,
                "Utility Relevant": t.is_utility_relevant,
            }
            for t in transactions
        ],
        columns=["Date", "Property", "Type", "Category", "Description", "Amount", "Utility Relevant"],
    )
    return df.sort_values("Date", ascending=False, kind="stable").reset_index(drop=True)


# -----------------------------------------------------------------------------
# Bank CSV import
# -----------------------------------------------------------------------------
def detect_separator(first_line: str) -> str:
    """Bank exports use ';' (German banks) or ','."""
    return ";" if ";" in first_line else ","


def parse_bank_csv(text: str) -> Tuple[List[str], pd.DataFrame]:
    """
    Read a bank statement export.

    Args:
        text: Decoded CSV file content

    Returns:
        Tuple of (headers, rows as a string DataFrame). The separator is kept
        in the frame's attrs so the amounts can be read in the matching notation.

    Raises:
        BankImportError: If the file has no data rows or cannot be parsed
    """
    lines = [line for line in text.splitlines() if line.strip()]
    if len(lines) < 2:
        raise BankImportError("The file contains no data.")

    separator = detect_separator(lines[0])
    try:
        df = pd.read_csv(
            StringIO("\n".join(lines)),
            sep=separator,
            dtype=str,
            keep_default_na=False,
            skipinitialspace=True,
            index_col=False,
        )
    except (pd.errors.ParserError, ValueError) as exc:
        raise BankImportError(f"Could not read CSV: {exc}") from exc

    df.columns = [str(col).strip().strip('"') for col in df.columns]
    df = df.apply(lambda column: column.str.strip().str.strip('"'))
    df.attrs["separator"] = separator
    logger.info("Parsed bank CSV: %d rows, separator %r", len(df), separator)
    return list(df.columns), df


def guess_mapping(headers: List[str]) -> Dict[str, str]:
    """Guess which columns hold date, amount and description ('' if none matches)."""
    mapping = {}
    for field_name, keywords in MAPPING_KEYWORDS.items():
        mapping[field_name] = next(
            (h for h in headers if any(keyword in h.lower() for keyword in keywords)),
            "",
        )
    return mapping


def parse_amount(raw: str, decimal_comma: Optional[bool] = None) -> float:
    """
    Parse a bank amount in German ('-1.234,56') or English ('-1,234.56') notation.

    A lone separator is ambiguous: '1.234' is 1234 in German notation and
    1.234 in English notation. Pass decimal_comma to fix the notation;
    left as None, the last of ',' and '.' is taken as the decimal mark.

    Raises:
        ValueError: If the value is not a number
    """
    value = re.sub(r"[^\d,.\-+]", "", str(raw))
    if not value:
        raise ValueError(f"Not an amount: {raw!r}")
    if decimal_comma is None:
        decimal_comma = "," in value and ("." not in value or value.rfind(",") > value.rfind("."))
    if decimal_comma:
        value = value.replace(".", "").replace(",", ".")
    else:
        value = value.replace(",", "")
    return float(value)


def _normalize_date(raw: str) -> str:
    if not raw:
        return date.today().isoformat()
    try:
        dayfirst = not re.match(r"^\d{4}-", raw)
        return date_parser.parse(raw, dayfirst=dayfirst).date().isoformat()
    except (ValueError, OverflowError):
        return raw


def build_pending(rows: pd.DataFrame, mapping: Dict[str, str],
                  decimal_comma: Optional[bool] = None) -> List[Transaction]:
    """
    Turn mapped CSV rows into unassigned bookings.

    Positive amounts become income, negative amounts expenses. Each booking
    still needs a property before it can be saved. Files separated by ';'
    are German exports and use the decimal comma unless decimal_comma says
    otherwise.
    """
    missing = [name for name in ("date", "amount", "description") if not mapping.get(name)]
    if missing:
        raise BankImportError(f"Please map all required columns: {', '.join(missing)}")

    if decimal_comma is None and "separator" in rows.attrs:
        decimal_comma = rows.attrs["separator"] == ";"

    pending = []
    skipped = 0
    for _, row in rows.iterrows():
        try:
            amount = parse_amount(row[mapping["amount"]], decimal_comma)
        except ValueError:
            skipped += 1
            continue
        is_income = amount >= 0
        pending.append(
            Transaction(
                id=new_id("tx"),
                property_id="",
                type=TransactionType.INCOME if is_income else TransactionType.EXPENSE,
                category=config.IMPORT_INCOME_CATEGORY if is_income else config.IMPORT_EXPENSE_CATEGORY,
                amount=abs(amount),
                date=_normalize_date(row[mapping["date"]]),
                description=row[mapping["description"]],
            )
        )
    if skipped:
        logger.warning("Skipped %d bank rows with unreadable amounts", skipped)
    return pending


def commit_pending(pending: List[Transaction]) -> List[Transaction]:
    """Keep the imported bookings that were assigned to a property."""
    valid = [t for t in pending if t.property_id]
    if not valid:
        raise BankImportError("Please assign at least one booking to a property.")
    logger.info("Committing %d of %d imported bookings", len(valid), len(pending))
    return valid
