"""
Derived-state engines.

Pure functions over ledger snapshots. No engine calls another, and none of
them touches storage.
"""

from fintrack.engines.errors import (
    BudgetOverlapError,
    CategoryMismatchError,
    DebtNotActiveError,
    EngineError,
    InvalidAmountError,
    InvalidInputError,
    InvalidPaymentError,
    InvalidStateError,
    NonConvergentError,
    NotSIPError,
    PeriodMismatchError,
)

__all__ = [
    "BudgetOverlapError",
    "CategoryMismatchError",
    "DebtNotActiveError",
    "EngineError",
    "InvalidAmountError",
    "InvalidInputError",
    "InvalidPaymentError",
    "InvalidStateError",
    "NonConvergentError",
    "NotSIPError",
    "PeriodMismatchError",
]
