"""
Storage Services Package

Provides abstract interfaces and concrete implementations for data storage.
Currently implements an in-memory backend, but designed to be swappable.
"""

from fintrack.services.storage.interface import (
    AuditStorageInterface,
    BudgetStorageInterface,
    ConflictError,
    DebtStorageInterface,
    DuplicateError,
    EntityStorageInterface,
    ExpenseSourceInterface,
    IncomeStorageInterface,
    InvestmentStorageInterface,
    NotFoundError,
    StorageError,
)
from fintrack.services.storage.memory import (
    InMemoryAuditStorage,
    InMemoryBudgetStorage,
    InMemoryDebtStorage,
    InMemoryEntityStorage,
    InMemoryExpenseSource,
    InMemoryIncomeStorage,
    InMemoryInvestmentStorage,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "BudgetStorageInterface",
    "DebtStorageInterface",
    "EntityStorageInterface",
    "ExpenseSourceInterface",
    "IncomeStorageInterface",
    "InvestmentStorageInterface",
    # Exceptions
    "ConflictError",
    "DuplicateError",
    "NotFoundError",
    "StorageError",
    # In-memory implementation
    "InMemoryAuditStorage",
    "InMemoryBudgetStorage",
    "InMemoryDebtStorage",
    "InMemoryEntityStorage",
    "InMemoryExpenseSource",
    "InMemoryIncomeStorage",
    "InMemoryInvestmentStorage",
]
