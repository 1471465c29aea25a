"""Services package."""

from fintrack.services.storage import (
    AuditStorageInterface,
    BudgetStorageInterface,
    ConflictError,
    DebtStorageInterface,
    DuplicateError,
    ExpenseSourceInterface,
    InMemoryAuditStorage,
    InMemoryBudgetStorage,
    InMemoryDebtStorage,
    InMemoryExpenseSource,
    InMemoryIncomeStorage,
    InMemoryInvestmentStorage,
    IncomeStorageInterface,
    InvestmentStorageInterface,
    NotFoundError,
    StorageError,
)

__all__ = [
    # Storage services
    "AuditStorageInterface",
    "BudgetStorageInterface",
    "ConflictError",
    "DebtStorageInterface",
    "DuplicateError",
    "ExpenseSourceInterface",
    "InMemoryAuditStorage",
    "InMemoryBudgetStorage",
    "InMemoryDebtStorage",
    "InMemoryExpenseSource",
    "InMemoryIncomeStorage",
    "InMemoryInvestmentStorage",
    "IncomeStorageInterface",
    "InvestmentStorageInterface",
    "NotFoundError",
    "StorageError",
]
