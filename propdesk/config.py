"""
Application Configuration
Author: Bryce Fountain | Skoll.dev

Settings read from environment variables, plus the booking category lists.
"""
import logging
import os
from datetime import date

# -----------------------------------------------------------------------------
# Application
# -----------------------------------------------------------------------------
APP_TITLE = "Property Desk"
APP_ICON = "🏢"
CURRENCY = "€"
LOG_LEVEL = os.getenv("PROPDESK_LOG_LEVEL", "INFO")

# -----------------------------------------------------------------------------
# OpenAI
# -----------------------------------------------------------------------------
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY", "")
OPENAI_MODEL = os.getenv("PROPDESK_MODEL", "gpt-4o-mini")
OPENAI_ANALYSIS_MODEL = os.getenv("PROPDESK_ANALYSIS_MODEL", "gpt-4o")
FEEDBACK_EMAIL = os.getenv("PROPDESK_FEEDBACK_EMAIL", "feedback@example.com")

# -----------------------------------------------------------------------------
# Utility statements & loans
# -----------------------------------------------------------------------------
DEFAULT_BILLING_YEAR = date.today().year - 1
DEFAULT_TOTAL_SPACE = 100.0  # m², used when a property has no unit areas yet
DEFAULT_UNIT_SIZE = 50.0
PREPAYMENT_PENALTY_FACTOR = 0.4
LOAN_EXPIRY_WARNING_MONTHS = int(os.getenv("PROPDESK_LOAN_WARNING_MONTHS", "12"))

# -----------------------------------------------------------------------------
# Bookkeeping categories
# -----------------------------------------------------------------------------
INCOME_CATEGORIES = [
    "Cold Rent",
    "Utility Prepayment",
    "Security Deposit",
    "Utility Back-Payment",
    "Parking Space",
    "Other",
]

EXPENSE_CATEGORIES = [
    "Property Tax",
    "Insurance",
    "Water / Sewage",
    "Waste Collection",
    "Heating / Hot Water",
    "Building Cleaning",
    "Chimney Sweep",
    "Electricity (Common Areas)",
    "Caretaker",
    "Gardening",
    "Maintenance / Repair",
    "Management Fees",
    "Loan Interest",
    "Other Operating Costs",
]

IMPORT_INCOME_CATEGORY = "Cold Rent"
IMPORT_EXPENSE_CATEGORY = "Maintenance / Repair"


def configure_logging(level: str = None):
    """Configure root logging once for the Streamlit process."""
    logging.basicConfig(
        level=(level or LOG_LEVEL).upper(),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
