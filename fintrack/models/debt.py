"""
Debt Models

A debt is reduced by a stream of payments until it is paid off.

CRITICAL: `current_balance` never exceeds `original_amount` and never goes
below zero. Status moves from ACTIVE to PAID_OFF exactly when the balance
reaches zero; DEFAULTED is only ever set by the collaborator layer.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, model_validator

from fintrack.utils.time_utils import utcnow


# =============================================================================
# ENUMS
# =============================================================================

class DebtType(str, Enum):
    """Kinds of debt we track."""
    CREDIT_CARD = "credit-card"
    PERSONAL_LOAN = "personal-loan"
    EDUCATION_LOAN = "education-loan"
    AUTO_LOAN = "auto-loan"
    HOME_LOAN = "home-loan"
    FAMILY_BORROWING = "family-borrowing"
    OTHER = "other"


class DebtStatus(str, Enum):
    """Debt lifecycle status."""
    ACTIVE = "active"
    PAID_OFF = "paid-off"
    DEFAULTED = "defaulted"


class PaymentType(str, Enum):
    """How a payment relates to the repayment plan."""
    REGULAR = "regular"
    EXTRA = "extra"
    MINIMUM = "minimum"


class RepaymentFrequency(str, Enum):
    """Payment cadence."""
    WEEKLY = "weekly"
    BI_WEEKLY = "bi-weekly"
    MONTHLY = "monthly"


# =============================================================================
# CORE DEBT MODEL
# =============================================================================

class DebtPayment(BaseModel):
    """A single payment recorded against a debt."""

    model_config = ConfigDict(str_strip_whitespace=True)

    amount: Decimal = Field(..., gt=0)
    date: datetime = Field(default_factory=utcnow)
    type: PaymentType = PaymentType.REGULAR
    note: str = Field(
        default="",
        max_length=200
    )


class Debt(BaseModel):
    """A debt owed to a creditor."""

    model_config = ConfigDict(str_strip_whitespace=True)

    # Identity
    id: UUID = Field(default_factory=uuid4)
    user_id: str = Field(..., min_length=1)
    name: str = Field(
        ...,
        min_length=1,
        max_length=100
    )
    creditor: str = Field(
        ...,
        min_length=1,
        max_length=100
    )
    debt_type: DebtType
    category: Optional[str] = Field(
        default=None,
        max_length=50
    )
    status: DebtStatus = DebtStatus.ACTIVE

    # Financial details
    original_amount: Decimal = Field(..., ge=0)
    current_balance: Decimal = Field(..., ge=0)
    interest_rate: Decimal = Field(
        ...,
        ge=0,
        le=100,
        description="Annual interest rate in percent"
    )
    minimum_payment: Decimal = Field(..., ge=0)

    # Schedule
    start_date: datetime = Field(default_factory=utcnow)
    expected_payoff_date: Optional[datetime] = None
    due_day: int = Field(
        default=1,
        ge=1,
        le=31
    )
    repayment_frequency: RepaymentFrequency = RepaymentFrequency.MONTHLY

    description: Optional[str] = Field(
        default=None,
        max_length=500
    )

    # Payment history, oldest first
    payments: list[DebtPayment] = Field(default_factory=list)

    version: int = Field(default=0, ge=0)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @model_validator(mode='after')
    def validate_balance(self) -> 'Debt':
        """Balance must stay within the original amount."""
        if self.current_balance > self.original_amount:
            raise ValueError("Current balance cannot exceed original amount")
        return self


# =============================================================================
# DERIVED MODELS
# =============================================================================

class DebtProgress(BaseModel):
    """Read-only repayment progress of a debt."""

    total_paid: Decimal
    progress_percentage: Decimal
    payments_count: int = Field(ge=0)
