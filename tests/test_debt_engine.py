"""
Tests for the debt payoff engine.
"""

import pytest
from datetime import datetime
from decimal import Decimal

from fintrack.engines import debt as engine
from fintrack.engines.errors import (
    DebtNotActiveError,
    InvalidPaymentError,
    NonConvergentError,
)
from fintrack.models.debt import (
    Debt,
    DebtStatus,
    DebtType,
    PaymentType,
    RepaymentFrequency,
)


AS_OF = datetime(2024, 1, 15)


def make_debt(**overrides) -> Debt:
    data = {
        "user_id": "user-1",
        "name": "Car loan",
        "creditor": "Bank",
        "debt_type": DebtType.AUTO_LOAN,
        "original_amount": Decimal("1000"),
        "current_balance": Decimal("1000"),
        "interest_rate": Decimal("0"),
        "minimum_payment": Decimal("100"),
    }
    data.update(overrides)
    return Debt(**data)


class TestPayoffProjection:
    """Tests for calculate_payoff_date."""

    def test_interest_free(self):
        assert engine.calculate_payoff_date(make_debt(), AS_OF) == datetime(2024, 11, 15)

    def test_with_interest(self):
        """12% a year on 1000 paid at 100 a month takes 11 months."""
        debt = make_debt(interest_rate=Decimal("12"))
        assert engine.calculate_payoff_date(debt, AS_OF) == datetime(2024, 12, 15)

    def test_weekly_payments_scale_to_months(self):
        debt = make_debt(repayment_frequency=RepaymentFrequency.WEEKLY)
        assert engine.calculate_payoff_date(debt, AS_OF) == datetime(2024, 4, 15)

    def test_monthly_payment_equivalent(self):
        debt = make_debt(repayment_frequency=RepaymentFrequency.BI_WEEKLY)
        assert engine.monthly_payment(debt) == Decimal("100") * Decimal(26) / Decimal(12)

    def test_zero_balance_has_no_date(self):
        debt = make_debt(current_balance=Decimal("0"))
        assert engine.calculate_payoff_date(debt, AS_OF) is None

    def test_payment_equal_to_interest_never_converges(self):
        debt = make_debt(interest_rate=Decimal("12"), minimum_payment=Decimal("10"))
        with pytest.raises(NonConvergentError, match="does not cover the monthly interest"):
            engine.calculate_payoff_date(debt, AS_OF)

    def test_zero_payment_never_converges(self):
        debt = make_debt(minimum_payment=Decimal("0"))
        with pytest.raises(NonConvergentError):
            engine.calculate_payoff_date(debt, AS_OF)

    def test_iteration_cap(self):
        with pytest.raises(NonConvergentError, match="not paid off within 5 months"):
            engine.calculate_payoff_date(make_debt(), AS_OF, max_months=5)

    def test_cap_from_settings(self, monkeypatch):
        monkeypatch.setenv("FINTRACK_ENGINE_MAX_PAYOFF_MONTHS", "3")
        with pytest.raises(NonConvergentError):
            engine.calculate_payoff_date(make_debt(), AS_OF)


class TestAddPayment:
    """Tests for add_payment."""

    def test_reduces_balance_and_reprojects(self):
        debt = make_debt()
        updated = engine.add_payment(debt, Decimal("200"), as_of=AS_OF)

        assert updated.current_balance == Decimal("800")
        assert updated.status == DebtStatus.ACTIVE
        assert len(updated.payments) == 1
        assert updated.payments[0].type == PaymentType.REGULAR
        assert updated.expected_payoff_date == datetime(2024, 9, 15)

    def test_input_debt_is_not_mutated(self):
        debt = make_debt()
        engine.add_payment(debt, Decimal("200"), as_of=AS_OF)
        assert debt.current_balance == Decimal("1000")
        assert debt.payments == []

    def test_exact_balance_pays_off(self):
        updated = engine.add_payment(make_debt(), Decimal("1000"), PaymentType.EXTRA)
        assert updated.current_balance == Decimal("0")
        assert updated.status == DebtStatus.PAID_OFF
        assert updated.expected_payoff_date is None

    def test_overpayment_rejected(self):
        with pytest.raises(InvalidPaymentError, match="exceeds current balance"):
            engine.add_payment(make_debt(), Decimal("1000.01"))

    @pytest.mark.parametrize("amount", [Decimal("0"), Decimal("-10")])
    def test_non_positive_payment_rejected(self, amount):
        with pytest.raises(InvalidPaymentError, match="must be positive"):
            engine.add_payment(make_debt(), amount)

    @pytest.mark.parametrize("status", [DebtStatus.PAID_OFF, DebtStatus.DEFAULTED])
    def test_closed_debt_rejects_payments(self, status):
        debt = make_debt(status=status, current_balance=Decimal("0"))
        with pytest.raises(DebtNotActiveError):
            engine.add_payment(debt, Decimal("10"))

    def test_non_convergent_projection_clears_date(self):
        """A payment never covering the interest leaves no payoff date."""
        debt = make_debt(
            interest_rate=Decimal("24"),
            minimum_payment=Decimal("10"),
            expected_payoff_date=datetime(2030, 1, 1),
        )
        updated = engine.add_payment(debt, Decimal("100"), as_of=AS_OF)
        assert updated.current_balance == Decimal("900")
        assert updated.expected_payoff_date is None


class TestUpdateTerms:
    """Tests for update_terms."""

    def test_higher_payment_shortens_projection(self):
        updated = engine.update_terms(make_debt(), minimum_payment=Decimal("250"), as_of=AS_OF)
        assert updated.minimum_payment == Decimal("250")
        assert updated.expected_payoff_date == datetime(2024, 5, 15)

    def test_only_given_terms_change(self):
        debt = make_debt(interest_rate=Decimal("5"))
        updated = engine.update_terms(debt, repayment_frequency=RepaymentFrequency.WEEKLY)
        assert updated.interest_rate == Decimal("5")
        assert updated.minimum_payment == Decimal("100")
        assert updated.repayment_frequency == RepaymentFrequency.WEEKLY

    def test_negative_minimum_payment_rejected(self):
        with pytest.raises(InvalidPaymentError):
            engine.update_terms(make_debt(), minimum_payment=Decimal("-1"))

    def test_interest_rate_out_of_range(self):
        with pytest.raises(InvalidPaymentError):
            engine.update_terms(make_debt(), interest_rate=Decimal("150"))

    def test_balance_to_zero_pays_off(self):
        updated = engine.update_terms(make_debt(), current_balance=Decimal("0"))
        assert updated.status == DebtStatus.PAID_OFF
        assert updated.expected_payoff_date is None

    def test_balance_above_original_rejected(self):
        with pytest.raises(InvalidPaymentError):
            engine.update_terms(make_debt(), current_balance=Decimal("1200"))

    def test_balance_change_on_closed_debt_rejected(self):
        debt = make_debt(status=DebtStatus.PAID_OFF, current_balance=Decimal("0"))
        with pytest.raises(DebtNotActiveError):
            engine.update_terms(debt, current_balance=Decimal("100"))


class TestDebtProgress:
    """Tests for debt_progress."""

    def test_progress_from_payments(self):
        debt = engine.add_payment(make_debt(), Decimal("300"))
        debt = engine.add_payment(debt, Decimal("100"))
        progress = engine.debt_progress(debt)
        assert progress.total_paid == Decimal("400")
        assert progress.progress_percentage == Decimal("40")
        assert progress.payments_count == 2

    def test_zero_original_amount(self):
        debt = make_debt(original_amount=Decimal("0"), current_balance=Decimal("0"))
        assert engine.debt_progress(debt).progress_percentage == Decimal("0")
