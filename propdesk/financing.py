"""
Loan & Refinancing Calculator
Author: Bryce Fountain | Skoll.dev

Fixed-rate period tracking, annuity installments and refinancing estimates.

    saving  = balance * (current_rate - target_rate) / 100 * remaining_months / 12
    penalty = 0.4 * saving   (prepayment penalty estimate)
"""
import logging
from dataclasses import dataclass
from datetime import date
from typing import List, Optional, Union

import pandas as pd
from dateutil.relativedelta import relativedelta

from propdesk import config
from propdesk.errors import ValidationError
from propdesk.models import Loan, Property, Reminder, ReminderCategory

logger = logging.getLogger(__name__)

DateLike = Union[str, date, None]


def _to_date(value: DateLike) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError as exc:
        raise ValidationError(f"Invalid date: {value!r}") from exc


def remaining_months(fixed_until: DateLike, as_of: DateLike = None) -> int:
    """
    Whole months left in a fixed-rate period.

    Args:
        fixed_until: End of the fixed-rate period (ISO string or date)
        as_of: Reference date, defaults to today

    Returns:
        Number of complete months, 0 once the period has ended or when no
        end date is recorded
    """
    end = _to_date(fixed_until)
    if end is None:
        return 0
    start = _to_date(as_of) or date.today()
    if end <= start:
        return 0
    delta = relativedelta(end, start)
    return delta.years * 12 + delta.months


def annuity_installment(total_amount: float, interest_rate: float, repayment_rate: float) -> float:
    """Monthly installment of an annuity loan from its initial interest and repayment rates."""
    if total_amount <= 0:
        return 0.0
    return round(total_amount * (interest_rate + repayment_rate) / 100 / 12, 2)


# -----------------------------------------------------------------------------
# Refinancing
# -----------------------------------------------------------------------------
@dataclass
class RefinancingEstimate:
    loan_id: str
    balance: float
    current_rate: float
    target_rate: float
    remaining_months: int
    interest_saving: float
    prepayment_penalty: float
    net_benefit: float

    @property
    def is_worthwhile(self) -> bool:
        return self.net_benefit > 0


def estimate_refinancing(loan: Loan, target_rate: float, as_of: DateLike = None,
                         penalty_factor: float = config.PREPAYMENT_PENALTY_FACTOR) -> RefinancingEstimate:
    """
    Estimate the interest saving and prepayment penalty of refinancing a loan.

    The saving covers the rest of the fixed-rate period; the penalty is
    estimated as a fraction of a positive saving. A refinancing at a higher
    rate yields a negative saving and no penalty.
    """
    if loan.current_balance < 0:
        raise ValidationError("Loan balance cannot be negative.")
    if loan.interest_rate < 0 or target_rate < 0:
        raise ValidationError("Interest rates cannot be negative.")

    months = remaining_months(loan.fixed_until, as_of)
    saving = loan.current_balance * (loan.interest_rate - target_rate) / 100 * months / 12
    penalty = penalty_factor * saving if saving > 0 else 0.0
    estimate = RefinancingEstimate(
        loan_id=loan.id,
        balance=loan.current_balance,
        current_rate=loan.interest_rate,
        target_rate=target_rate,
        remaining_months=months,
        interest_saving=round(saving, 2),
        prepayment_penalty=round(penalty, 2),
        net_benefit=round(saving - penalty, 2),
    )
    logger.info("Refinancing %s at %.2f%%: saving %.2f, penalty %.2f",
                loan.id, target_rate, estimate.interest_saving, estimate.prepayment_penalty)
    return estimate


# -----------------------------------------------------------------------------
# Loan overview & reminders
# -----------------------------------------------------------------------------
def loans_frame(prop: Property, as_of: DateLike = None) -> pd.DataFrame:
    """Loan table of a property with the months left in each fixed-rate period."""
    return pd.DataFrame(
        [
            {
                "Bank": loan.bank_name,
                "Amount": loan.total_amount,
                "Balance": loan.current_balance,
                "Rate %": loan.interest_rate,
                "Repayment %": loan.repayment_rate,
                "Installment": loan.monthly_installment,
                "Fixed Until": loan.fixed_until,
                "Months Left": remaining_months(loan.fixed_until, as_of),
            }
            for loan in prop.loans
        ],
        columns=["Bank", "Amount", "Balance", "Rate %", "Repayment %",
                 "Installment", "Fixed Until", "Months Left"],
    )


def loan_expiry_reminders(properties: List[Property], as_of: DateLike = None,
                          months_ahead: int = config.LOAN_EXPIRY_WARNING_MONTHS) -> List[Reminder]:
    """Reminders for loans whose fixed-rate period ends within the window."""
    start = _to_date(as_of) or date.today()
    horizon = start + relativedelta(months=months_ahead)
    reminders = []
    for prop in properties:
        for loan in prop.loans:
            end = _to_date(loan.fixed_until)
            if end is None or end < start or end > horizon:
                continue
            reminders.append(
                Reminder(
                    id=f"loan-{loan.id}",
                    title=f"Fixed rate with {loan.bank_name} ends ({prop.name})",
                    date=end.isoformat(),
                    category=ReminderCategory.LOAN_EXPIRY,
                    property_id=prop.id,
                )
            )
    return reminders
