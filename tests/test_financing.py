from datetime import date

import pytest

from propdesk.errors import ValidationError
from propdesk.financing import (
    annuity_installment,
    estimate_refinancing,
    loan_expiry_reminders,
    loans_frame,
    remaining_months,
)
from propdesk.models import Loan, ReminderCategory


class TestRemainingMonths:

    def test_whole_years(self):
        assert remaining_months("2031-05-15", "2026-05-15") == 60

    def test_partial_month_is_dropped(self):
        assert remaining_months("2025-01-01", "2024-01-15") == 11

    def test_accepts_dates(self):
        assert remaining_months(date(2025, 3, 1), date(2025, 1, 1)) == 2

    def test_ended_period(self):
        assert remaining_months("2020-01-01", "2024-01-01") == 0

    def test_missing_end_date(self):
        assert remaining_months("", "2024-01-01") == 0

    def test_invalid_date(self):
        with pytest.raises(ValidationError):
            remaining_months("next year", "2024-01-01")


class TestAnnuity:

    def test_demo_loan(self):
        assert annuity_installment(200000, 1.25, 2.5) == 625.0

    def test_no_amount(self):
        assert annuity_installment(0, 3.0, 2.0) == 0.0


class TestRefinancing:

    @pytest.fixture
    def loan(self):
        return Loan(id="l1", bank_name="DKB Bank", total_amount=200000, current_balance=185000,
                    interest_rate=1.25, repayment_rate=2.5, fixed_until="2031-05-15",
                    monthly_installment=625)

    def test_lower_rate_saves_interest(self, loan):
        estimate = estimate_refinancing(loan, 0.75, as_of="2026-05-15")
        assert estimate.remaining_months == 60
        assert estimate.interest_saving == pytest.approx(4625.0)
        assert estimate.prepayment_penalty == pytest.approx(1850.0)
        assert estimate.net_benefit == pytest.approx(2775.0)
        assert estimate.is_worthwhile

    def test_higher_rate_has_no_penalty(self, loan):
        estimate = estimate_refinancing(loan, 2.25, as_of="2026-05-15")
        assert estimate.interest_saving == pytest.approx(-9250.0)
        assert estimate.prepayment_penalty == 0.0
        assert not estimate.is_worthwhile

    def test_expired_period_saves_nothing(self, loan):
        estimate = estimate_refinancing(loan, 0.5, as_of="2032-01-01")
        assert estimate.remaining_months == 0
        assert estimate.net_benefit == 0.0

    def test_custom_penalty_factor(self, loan):
        estimate = estimate_refinancing(loan, 0.75, as_of="2026-05-15", penalty_factor=0.0)
        assert estimate.net_benefit == pytest.approx(4625.0)

    def test_negative_rate_rejected(self, loan):
        with pytest.raises(ValidationError):
            estimate_refinancing(loan, -0.5)

    def test_negative_balance_rejected(self, loan):
        loan.current_balance = -1
        with pytest.raises(ValidationError):
            estimate_refinancing(loan, 1.0)


class TestLoanOverview:

    def test_loans_frame(self, prop):
        df = loans_frame(prop, as_of="2026-05-15")
        assert list(df["Bank"]) == ["DKB Bank"]
        assert df.loc[0, "Months Left"] == 60

    def test_expiry_inside_window(self, prop):
        reminders = loan_expiry_reminders([prop], as_of="2030-06-01")
        assert len(reminders) == 1
        reminder = reminders[0]
        assert reminder.id == "loan-l1"
        assert reminder.date == "2031-05-15"
        assert reminder.category is ReminderCategory.LOAN_EXPIRY
        assert reminder.property_id == "p1"

    def test_expiry_outside_window(self, prop):
        assert loan_expiry_reminders([prop], as_of="2026-01-01") == []
        assert loan_expiry_reminders([prop], as_of="2031-06-01") == []
