"""Income Models"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator

from fintrack.utils.time_utils import utcnow


class IncomeCategory(str, Enum):
    """Supported income categories."""
    SALARY = "Salary"
    FREELANCE = "Freelance"
    BUSINESS = "Business"
    INVESTMENT = "Investment"
    RENTAL = "Rental"
    PASSIVE = "Passive"
    OTHER = "Other"


class IncomeFrequency(str, Enum):
    """How often an income entry repeats."""
    ONE_TIME = "one-time"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"

    @classmethod
    def _missing_(cls, value):
        # Older records store display casing ("One-time", "Monthly")
        if isinstance(value, str):
            lowered = value.strip().lower()
            for member in cls:
                if member.value == lowered:
                    return member
        return None


class IncomeRecord(BaseModel):
    """
    A single income entry.

    `is_recurring` and `next_occurrence` are derived from `frequency` by
    fintrack.engines.income; they are stored so that queries can filter on
    them, but only the engine writes them.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(default_factory=uuid4)
    user_id: str = Field(..., min_length=1)
    title: str = Field(
        ...,
        min_length=1,
        max_length=100
    )
    amount: Decimal = Field(..., ge=0)
    category: IncomeCategory
    source: str = Field(
        ...,
        min_length=1,
        max_length=100
    )
    date: datetime = Field(default_factory=utcnow)
    frequency: IncomeFrequency = IncomeFrequency.ONE_TIME

    # Derived
    is_recurring: bool = False
    next_occurrence: Optional[datetime] = None

    description: Optional[str] = Field(
        default=None,
        max_length=500
    )
    tags: list[str] = Field(default_factory=list)
    is_active: bool = True

    version: int = Field(default=0, ge=0)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @field_validator('tags')
    @classmethod
    def strip_tags(cls, v: list[str]) -> list[str]:
        return [tag.strip() for tag in v if tag.strip()]

    @field_validator('is_active', mode='before')
    @classmethod
    def default_missing_active(cls, v):
        if v is None:
            return True
        return v


class Recurrence(BaseModel):
    """Classification of an income record."""

    is_recurring: bool
    next_occurrence: Optional[datetime] = None


class CategoryTotal(BaseModel):
    amount: Decimal = Decimal("0")
    count: int = 0


class IncomeSummary(BaseModel):
    """Summary statistics over a user's income records."""

    total_income: Decimal = Decimal("0")
    monthly_income: Decimal = Decimal("0")
    income_sources_count: int = 0
    average_income_per_source: Decimal = Decimal("0")
    recurring_income_count: int = 0
    next_expected_income: Optional[IncomeRecord] = None
    category_breakdown: dict[str, CategoryTotal] = Field(default_factory=dict)
    total_entries: int = 0
