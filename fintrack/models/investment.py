"""
Investment Models

A holding carries its cost basis (`invested_amount`), its current valuation
and two ledgers:

1. `transactions`: ad hoc Buy/Sell/Dividend/Split/Bonus activity, which moves
   the top-level quantity and cost basis.
2. `sip_transactions`: contributions of a systematic investment plan (SIP),
   tracked separately and aggregated at read time.

Profit/loss, annualized return and SIP aggregates are derived by
fintrack.engines.investment and never stored.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator

from fintrack.utils.time_utils import utcnow


# =============================================================================
# ENUMS
# =============================================================================

class InvestmentType(str, Enum):
    """Instrument types."""
    STOCKS = "stocks"
    MUTUAL_FUND = "mutual-fund"
    CRYPTO = "crypto"
    BONDS = "bonds"
    REAL_ESTATE = "real-estate"
    ETF = "etf"
    GOLD = "gold"
    PPF = "ppf"
    NPS = "nps"
    CUSTOM = "custom"


class RiskLevel(str, Enum):
    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"


class SIPFrequency(str, Enum):
    MONTHLY = "monthly"
    WEEKLY = "weekly"


class TransactionType(str, Enum):
    """General transaction kinds."""
    BUY = "Buy"
    SELL = "Sell"
    DIVIDEND = "Dividend"
    SPLIT = "Split"
    BONUS = "Bonus"


# =============================================================================
# LEDGER ENTRIES
# =============================================================================

class InvestmentTransaction(BaseModel):
    """
    One entry of the general transaction history.

    For SPLIT, `quantity` is the split ratio. For BONUS it is the number of
    bonus units received.
    """

    model_config = ConfigDict(frozen=True)

    type: TransactionType
    quantity: Decimal = Field(..., gt=0)
    price: Decimal = Field(default=Decimal("0"), ge=0)
    amount: Decimal = Field(default=Decimal("0"), ge=0)
    date: datetime = Field(default_factory=utcnow)
    note: str = Field(default="", max_length=200)


class SIPTransaction(BaseModel):
    """One SIP contribution."""

    model_config = ConfigDict(frozen=True)

    amount: Decimal = Field(..., gt=0)
    nav: Decimal = Field(
        ...,
        gt=0,
        description="Net asset value per unit at contribution time"
    )
    units: Decimal = Field(..., ge=0)
    date: datetime = Field(default_factory=utcnow)
    note: str = Field(default="", max_length=200)


# =============================================================================
# CORE INVESTMENT MODEL
# =============================================================================

class Investment(BaseModel):
    """A single holding."""

    model_config = ConfigDict(str_strip_whitespace=True)

    # Identity
    id: UUID = Field(default_factory=uuid4)
    user_id: str = Field(..., min_length=1)
    name: str = Field(
        ...,
        min_length=1,
        max_length=100
    )
    investment_type: InvestmentType
    category: Optional[str] = Field(default=None, max_length=50)
    sector: Optional[str] = Field(default=None, max_length=50)
    risk_level: RiskLevel = RiskLevel.MODERATE
    ticker_symbol: Optional[str] = Field(default=None, max_length=20)
    tags: list[str] = Field(default_factory=list)

    # Purchase details
    purchase_date: datetime
    invested_amount: Decimal = Field(
        default=Decimal("0"),
        ge=0,
        description="Cost basis"
    )
    quantity: Optional[Decimal] = Field(default=None, ge=0)
    price_per_unit: Optional[Decimal] = Field(
        default=None,
        ge=0,
        description="Latest known market price per unit"
    )
    purchase_price: Optional[Decimal] = Field(
        default=None,
        ge=0,
        description="Price of the latest buy"
    )
    fees: Decimal = Field(default=Decimal("0"), ge=0)

    # Valuation
    current_value: Decimal = Field(default=Decimal("0"), ge=0)
    last_updated: datetime = Field(default_factory=utcnow)

    # SIP plan
    is_sip: bool = False
    sip_amount: Optional[Decimal] = Field(default=None, ge=0)
    sip_start_date: Optional[datetime] = None
    sip_frequency: Optional[SIPFrequency] = None
    sip_transactions: list[SIPTransaction] = Field(default_factory=list)

    # General ledger, ordered by date
    transactions: list[InvestmentTransaction] = Field(default_factory=list)

    notes: Optional[str] = Field(default=None, max_length=1000)

    version: int = Field(default=0, ge=0)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @field_validator('tags')
    @classmethod
    def strip_tags(cls, v: list[str]) -> list[str]:
        return [tag.strip() for tag in v if tag.strip()]


# =============================================================================
# DERIVED / QUERY MODELS
# =============================================================================

class InvestmentMetrics(BaseModel):
    """Read-only metrics derived from a holding snapshot."""

    profit_loss: Decimal
    profit_loss_percentage: Decimal
    days_held: int = Field(ge=0)
    annualized_return: Decimal = Field(
        ...,
        description="Annualized return as a fraction (0.12 == 12%)"
    )
    total_sip_invested: Decimal = Decimal("0")
    total_sip_units: Decimal = Decimal("0")
    average_nav: Decimal = Decimal("0")


class PortfolioFilters(BaseModel):
    """
    Filters for portfolio queries.

    `None` (or "all" for enums) means no filtering on that field.
    """

    investment_type: Optional[InvestmentType] = None
    risk_level: Optional[RiskLevel] = None
    category: Optional[str] = None
    search: Optional[str] = None

    @field_validator('investment_type', 'risk_level', mode='before')
    @classmethod
    def all_means_none(cls, v):
        if isinstance(v, str) and v.strip().lower() == "all":
            return None
        return v


class PortfolioSummary(BaseModel):
    """Aggregates over a filtered set of holdings."""

    total_invested: Decimal = Decimal("0")
    current_value: Decimal = Decimal("0")
    total_pnl: Decimal = Decimal("0")
    pnl_percent: Decimal = Decimal("0")
    count: int = 0
    sip_count: int = 0
    total_sip_invested: Decimal = Decimal("0")


class AssetAllocation(BaseModel):
    """Per-type slice of a portfolio."""

    investment_type: InvestmentType
    total_invested: Decimal
    current_value: Decimal
    count: int
    pnl: Decimal
    pnl_percent: Decimal
    percentage: Decimal = Field(
        ...,
        description="Share of total current value, in percent"
    )
