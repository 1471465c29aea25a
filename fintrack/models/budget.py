"""
Budget Models

A budget caps spending in one category over a period. Only the
source-of-truth fields are stored here (cap, period, spent, alert flags).
Progress, remaining, status and colour are derived on demand by
fintrack.engines.budget and never persisted.

DESIGN DECISION: `is_active` is an explicit boolean. A record that arrives
without it (older documents) is defaulted to True at write time, so no query
ever needs to special-case a missing field.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)

from fintrack.utils.time_utils import utcnow


# =============================================================================
# ENUMS
# =============================================================================

class BudgetPriority(str, Enum):
    """How discretionary the budgeted spending is."""
    ESSENTIAL = "essential"
    FLEXIBLE = "flexible"
    LUXURY = "luxury"


class BudgetStatus(str, Enum):
    """Status tier derived from progress percentage."""
    OVER_BUDGET = "over_budget"
    NEAR_LIMIT = "near_limit"
    ON_TRACK = "on_track"
    UNDER_BUDGET = "under_budget"


class ProgressColor(str, Enum):
    """Display colour class mapped from the same tiers."""
    RED = "red"
    ORANGE = "orange"
    GREEN = "green"


class AlertType(str, Enum):
    """
    Budget alert kinds.

    The three threshold alerts fire once per crossing of their level.
    EXCEEDED fires when spending moves from within the cap to above it.
    """
    THRESHOLD_50 = "50"
    THRESHOLD_75 = "75"
    THRESHOLD_100 = "100"
    EXCEEDED = "exceeded"


# =============================================================================
# CORE BUDGET MODEL
# =============================================================================

class Budget(BaseModel):
    """A spending cap for one category over `[start_date, end_date]`."""

    model_config = ConfigDict(str_strip_whitespace=True)

    # Identity
    id: UUID = Field(
        default_factory=uuid4,
        description="Unique budget ID"
    )
    user_id: str = Field(
        ...,
        min_length=1,
        description="Owning user"
    )
    name: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Budget name"
    )

    # Category
    category: str = Field(
        ...,
        min_length=1,
        max_length=50,
        description="Primary budget category"
    )
    additional_categories: list[str] = Field(
        default_factory=list,
        description="Extra categories for multi-category budgets"
    )

    # Cap and period
    amount: Decimal = Field(
        ...,
        gt=0,
        description="Budget cap"
    )
    start_date: datetime
    end_date: datetime

    # Spending
    spent: Decimal = Field(
        default=Decimal("0"),
        ge=0,
        description="Cumulative amount spent in the period"
    )
    rollover_amount: Decimal = Field(
        default=Decimal("0"),
        ge=0,
        description="Unspent amount carried over from the previous period"
    )

    # Recurrence
    is_recurring: bool = False
    rollover_enabled: bool = False

    priority: BudgetPriority = BudgetPriority.ESSENTIAL
    notes: Optional[str] = Field(
        default=None,
        max_length=500
    )

    # Alert flags
    alert_50: bool = True
    alert_75: bool = True
    alert_100: bool = True
    alert_exceeded: bool = True

    # Meta
    is_active: bool = True
    version: int = Field(
        default=0,
        ge=0,
        description="Optimistic concurrency token, bumped on every save"
    )
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @field_validator('is_active', mode='before')
    @classmethod
    def default_missing_active(cls, v):
        """Absent or null `is_active` is stored as True."""
        if v is None:
            return True
        return v

    @model_validator(mode='after')
    def validate_period(self) -> 'Budget':
        """Validate the period bounds."""
        if self.start_date >= self.end_date:
            raise ValueError("End date must be after start date")
        return self

    @property
    def categories(self) -> list[str]:
        """Primary category followed by any additional ones."""
        return [self.category, *self.additional_categories]

    def contains_date(self, when: datetime) -> bool:
        """Both period bounds are inclusive."""
        return self.start_date <= when <= self.end_date


# =============================================================================
# DERIVED / RESULT MODELS
# =============================================================================

class BudgetAlert(BaseModel):
    """An alert event raised by applying an expense. Never persisted."""

    type: AlertType
    message: str
    percentage: Decimal = Field(
        ...,
        description="Threshold level, or the new percentage for EXCEEDED"
    )


class BudgetProgress(BaseModel):
    """Read-only fields derived from a budget snapshot."""

    progress_percentage: Decimal = Field(
        ...,
        description="spent / amount * 100, uncapped"
    )
    remaining: Decimal = Field(..., ge=0)
    is_over_budget: bool
    status: BudgetStatus
    progress_color: ProgressColor


class ExpenseApplication(BaseModel):
    """Result of applying one expense to a budget."""

    budget: Budget
    alerts: list[BudgetAlert] = Field(default_factory=list)
    progress: BudgetProgress


class BudgetsSummary(BaseModel):
    """Aggregate figures across a set of budgets."""

    total_budget: Decimal = Decimal("0")
    total_spent: Decimal = Decimal("0")
    total_remaining: Decimal = Decimal("0")
    categories_count: int = 0
    over_budget_count: int = 0
    average_progress: Decimal = Decimal("0")


class ExpenseRecord(BaseModel):
    """
    A raw expense as handed over by the collaborator layer.

    Only the fields that budgets care about are modelled.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(default_factory=uuid4)
    user_id: str
    category: str = Field(..., min_length=1)
    amount: Decimal = Field(..., ge=0)
    date: datetime


class ReconciliationEntry(BaseModel):
    """Outcome of reconciling one budget."""

    budget_id: UUID
    category: str
    expenses_count: int = Field(ge=0)
    total_spent: Decimal
    budget_amount: Decimal
    progress_percentage: Decimal
    status: BudgetStatus


class ReconciliationResult(BaseModel):
    """Outcome of a full-ledger reconciliation sweep."""

    budgets: list[Budget] = Field(default_factory=list)
    entries: list[ReconciliationEntry] = Field(default_factory=list)
    budgets_processed: int = 0
    budgets_updated: int = 0
    expenses_synced: int = 0
