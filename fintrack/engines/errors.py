"""
Engine Error Taxonomy

Every failure of an engine operation is one of three kinds:

- InvalidInputError: malformed or out-of-domain input (non-positive amount,
  category or period mismatch, payment larger than the balance).
- InvalidStateError: the operation is not permitted in the entity's current
  state (payment on a closed debt, SIP contribution on a non-SIP holding).
- NonConvergentError: a payoff projection cannot resolve because the
  payment never reduces the principal.

None of them is transient. The same inputs against the same state always
reproduce the same outcome, so callers report them and never retry.
An operation that raises has not changed anything.
"""

from typing import Any, Optional


class EngineError(Exception):
    """Base exception for derived-state engine failures."""

    error_code = "engine_error"

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class InvalidInputError(EngineError):
    """Input is malformed or outside the entity's domain."""

    error_code = "validation_error"


class InvalidAmountError(InvalidInputError):
    """Amount must be strictly positive."""


class CategoryMismatchError(InvalidInputError):
    """Expense category does not match the budget category."""

    def __init__(self, expense_category: str, budget_category: str):
        self.expense_category = expense_category
        self.budget_category = budget_category
        super().__init__(
            f"Expense category '{expense_category}' does not match "
            f"budget category '{budget_category}'",
            {"expense_category": expense_category, "budget_category": budget_category},
        )


class PeriodMismatchError(InvalidInputError):
    """Expense date falls outside the budget period."""


class InvalidPaymentError(InvalidInputError):
    """Payment amount is not positive or exceeds the current balance."""


class BudgetOverlapError(InvalidInputError):
    """An active budget already covers the same category and period."""


class InvalidStateError(EngineError):
    """Operation is not permitted given the entity's current state."""

    error_code = "invalid_state"


class DebtNotActiveError(InvalidStateError):
    """Payments can only be applied to active debts."""


class NotSIPError(InvalidStateError):
    """SIP transactions require an investment configured for SIP."""


class NonConvergentError(EngineError):
    """Payoff projection never reaches a zero balance."""

    error_code = "non_convergent"


__all__ = [
    "EngineError",
    "InvalidInputError",
    "InvalidAmountError",
    "CategoryMismatchError",
    "PeriodMismatchError",
    "InvalidPaymentError",
    "BudgetOverlapError",
    "InvalidStateError",
    "DebtNotActiveError",
    "NotSIPError",
    "NonConvergentError",
]
