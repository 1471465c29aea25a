"""
Debt Payoff Tracker Engine

Applies payments to a debt and projects when it will be paid off.

CRITICAL: A payment larger than the current balance is rejected, never
clamped. The balance therefore only reaches zero through an exact final
payment, which is also the only way a debt becomes PAID_OFF.

DESIGN DECISION: The payoff projection simulates month by month
(interest accrues on the remaining balance, then the monthly-equivalent
payment is applied) instead of using the closed-form annuity formula.
A payment that does not even cover the first month's interest can never
converge and is reported as NonConvergentError up front.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

import structlog
from dateutil.relativedelta import relativedelta

from fintrack.config import get_settings
from fintrack.engines.errors import (
    DebtNotActiveError,
    InvalidPaymentError,
    NonConvergentError,
)
from fintrack.models.debt import (
    Debt,
    DebtPayment,
    DebtProgress,
    DebtStatus,
    PaymentType,
    RepaymentFrequency,
)
from fintrack.utils.decimal_utils import ZERO, HUNDRED, coerce_decimal, percentage_of
from fintrack.utils.time_utils import utcnow


logger = structlog.get_logger(__name__)

PAYMENTS_PER_MONTH: dict[RepaymentFrequency, Decimal] = {
    RepaymentFrequency.WEEKLY: Decimal(52) / Decimal(12),
    RepaymentFrequency.BI_WEEKLY: Decimal(26) / Decimal(12),
    RepaymentFrequency.MONTHLY: Decimal(1),
}

_MONTHS_PER_YEAR = Decimal(12)


def monthly_payment(debt: Debt) -> Decimal:
    """Minimum payment scaled to a monthly equivalent."""
    return debt.minimum_payment * PAYMENTS_PER_MONTH[debt.repayment_frequency]


def calculate_payoff_date(
    debt: Debt,
    as_of: Optional[datetime] = None,
    max_months: Optional[int] = None,
) -> Optional[datetime]:
    """
    Project the payoff date of a debt.

    Args:
        debt: Debt snapshot
        as_of: Projection start (defaults to now)
        max_months: Iteration cap (defaults to FINTRACK_ENGINE_MAX_PAYOFF_MONTHS)

    Returns:
        `as_of` plus the number of simulated months until the balance first
        reaches zero, or None when there is no balance left.

    Raises:
        NonConvergentError: The payment does not exceed the first month's
            interest, or the cap was reached.
    """
    balance = debt.current_balance
    if balance <= 0:
        return None

    as_of = as_of or utcnow()
    if max_months is None:
        max_months = get_settings().engine.max_payoff_months

    rate = debt.interest_rate / HUNDRED / _MONTHS_PER_YEAR
    payment = monthly_payment(debt)

    first_interest = balance * rate
    if payment <= first_interest:
        raise NonConvergentError(
            "Payment does not cover the monthly interest",
            {
                "monthly_payment": str(payment),
                "first_month_interest": str(first_interest),
            },
        )

    months = 0
    while balance > 0:
        if months >= max_months:
            raise NonConvergentError(
                f"Debt is not paid off within {max_months} months",
                {"max_months": max_months, "remaining_balance": str(balance)},
            )
        balance += balance * rate
        balance -= payment
        months += 1

    return as_of + relativedelta(months=months)


def _with_projection(debt: Debt, as_of: Optional[datetime]) -> Debt:
    """Copy of `debt` with `expected_payoff_date` recomputed."""
    if debt.status == DebtStatus.PAID_OFF:
        expected = None
    else:
        try:
            expected = calculate_payoff_date(debt, as_of)
        except NonConvergentError as e:
            logger.warning(
                "payoff_projection_non_convergent",
                debt_id=str(debt.id),
                reason=e.message,
            )
            expected = None
    return debt.model_copy(update={"expected_payoff_date": expected})


def add_payment(
    debt: Debt,
    amount,
    payment_type: PaymentType = PaymentType.REGULAR,
    note: str = "",
    paid_at: Optional[datetime] = None,
    as_of: Optional[datetime] = None,
) -> Debt:
    """
    Record a payment and reduce the balance.

    Raises:
        DebtNotActiveError: The debt is paid off or defaulted.
        InvalidPaymentError: Amount is not positive or exceeds the balance.
    """
    if debt.status != DebtStatus.ACTIVE:
        raise DebtNotActiveError(
            "Payments can only be added to active debts",
            {"status": debt.status.value},
        )

    amount = coerce_decimal(amount)
    if amount <= 0:
        raise InvalidPaymentError(
            "Payment amount must be positive",
            {"amount": str(amount)},
        )
    if amount > debt.current_balance:
        raise InvalidPaymentError(
            "Payment amount exceeds current balance",
            {"amount": str(amount), "current_balance": str(debt.current_balance)},
        )

    now = utcnow()
    payment = DebtPayment(
        amount=amount,
        date=paid_at or now,
        type=payment_type,
        note=note,
    )
    balance = debt.current_balance - amount
    status = DebtStatus.PAID_OFF if balance == 0 else debt.status

    updated = debt.model_copy(
        update={
            "payments": [*debt.payments, payment],
            "current_balance": balance,
            "status": status,
            "updated_at": now,
        },
        deep=True,
    )
    return _with_projection(updated, as_of)


def update_terms(
    debt: Debt,
    minimum_payment=None,
    interest_rate=None,
    repayment_frequency: Optional[RepaymentFrequency] = None,
    current_balance=None,
    as_of: Optional[datetime] = None,
) -> Debt:
    """
    Change repayment terms and re-project the payoff date.

    Only the given terms change. A balance update must stay within
    `[0, original_amount]`; setting it to zero on an active debt marks the
    debt as paid off.

    Raises:
        InvalidPaymentError: Negative minimum payment or out-of-range balance.
        DebtNotActiveError: Balance change on a debt that is no longer active.
    """
    changes: dict = {}

    if minimum_payment is not None:
        minimum_payment = coerce_decimal(minimum_payment)
        if minimum_payment < 0:
            raise InvalidPaymentError(
                "Minimum payment cannot be negative",
                {"minimum_payment": str(minimum_payment)},
            )
        changes["minimum_payment"] = minimum_payment

    if interest_rate is not None:
        interest_rate = coerce_decimal(interest_rate)
        if not ZERO <= interest_rate <= HUNDRED:
            raise InvalidPaymentError(
                "Interest rate must be between 0 and 100",
                {"interest_rate": str(interest_rate)},
            )
        changes["interest_rate"] = interest_rate

    if repayment_frequency is not None:
        changes["repayment_frequency"] = RepaymentFrequency(repayment_frequency)

    if current_balance is not None:
        current_balance = coerce_decimal(current_balance)
        if debt.status != DebtStatus.ACTIVE:
            raise DebtNotActiveError(
                "Balance can only be changed on active debts",
                {"status": debt.status.value},
            )
        if not ZERO <= current_balance <= debt.original_amount:
            raise InvalidPaymentError(
                "Current balance must be between 0 and the original amount",
                {
                    "current_balance": str(current_balance),
                    "original_amount": str(debt.original_amount),
                },
            )
        changes["current_balance"] = current_balance
        if current_balance == 0:
            changes["status"] = DebtStatus.PAID_OFF

    changes["updated_at"] = utcnow()
    updated = debt.model_copy(update=changes, deep=True)
    return _with_projection(updated, as_of)


def refresh_payoff_date(debt: Debt, as_of: Optional[datetime] = None) -> Debt:
    """Copy of `debt` with a freshly projected payoff date."""
    return _with_projection(debt, as_of)


def debt_progress(debt: Debt) -> DebtProgress:
    """Repayment progress; 0% for a debt with no original amount."""
    return DebtProgress(
        total_paid=sum((p.amount for p in debt.payments), ZERO),
        progress_percentage=percentage_of(
            debt.original_amount - debt.current_balance,
            debt.original_amount,
        ),
        payments_count=len(debt.payments),
    )


__all__ = [
    "PAYMENTS_PER_MONTH",
    "add_payment",
    "calculate_payoff_date",
    "debt_progress",
    "monthly_payment",
    "refresh_payoff_date",
    "update_terms",
]
