"""
Data Models Package

This package contains all Pydantic models used by fintrack.
All ledger entities handed to the engines must conform to these schemas.
"""

from fintrack.models.budget import (
    AlertType,
    Budget,
    BudgetAlert,
    BudgetPriority,
    BudgetProgress,
    BudgetsSummary,
    BudgetStatus,
    ExpenseApplication,
    ExpenseRecord,
    ProgressColor,
    ReconciliationEntry,
    ReconciliationResult,
)
from fintrack.models.debt import (
    Debt,
    DebtPayment,
    DebtProgress,
    DebtStatus,
    DebtType,
    PaymentType,
    RepaymentFrequency,
)
from fintrack.models.income import (
    CategoryTotal,
    IncomeCategory,
    IncomeFrequency,
    IncomeRecord,
    IncomeSummary,
    Recurrence,
)
from fintrack.models.investment import (
    AssetAllocation,
    Investment,
    InvestmentMetrics,
    InvestmentTransaction,
    InvestmentType,
    PortfolioFilters,
    PortfolioSummary,
    RiskLevel,
    SIPFrequency,
    SIPTransaction,
    TransactionType,
)
from fintrack.models.validation import ValidationIssue, ValidationResult
from fintrack.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Budget models
    "AlertType",
    "Budget",
    "BudgetAlert",
    "BudgetPriority",
    "BudgetProgress",
    "BudgetsSummary",
    "BudgetStatus",
    "ExpenseApplication",
    "ExpenseRecord",
    "ProgressColor",
    "ReconciliationEntry",
    "ReconciliationResult",
    # Debt models
    "Debt",
    "DebtPayment",
    "DebtProgress",
    "DebtStatus",
    "DebtType",
    "PaymentType",
    "RepaymentFrequency",
    # Income models
    "CategoryTotal",
    "IncomeCategory",
    "IncomeFrequency",
    "IncomeRecord",
    "IncomeSummary",
    "Recurrence",
    # Investment models
    "AssetAllocation",
    "Investment",
    "InvestmentMetrics",
    "InvestmentTransaction",
    "InvestmentType",
    "PortfolioFilters",
    "PortfolioSummary",
    "RiskLevel",
    "SIPFrequency",
    "SIPTransaction",
    "TransactionType",
    # Validation models
    "ValidationIssue",
    "ValidationResult",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
